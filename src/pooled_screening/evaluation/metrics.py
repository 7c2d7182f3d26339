"""Interval estimates and reporting for Monte Carlo screening results.

Pooled sensitivity and specificity are binomial proportions
(``est_1`` successes out of ``true_1`` trials), so exact Clopper-Pearson
intervals quantify their Monte Carlo error.  Expected tests get a normal
interval from the per-iteration spread when outcome records are kept.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Sequence

import numpy as np
from scipy import stats

from pooled_screening.domain.models import IterationOutcome, MonteCarloSummary

logger = logging.getLogger(__name__)


def clopper_pearson_interval(
    successes: int, trials: int, confidence: float = 0.95,
) -> tuple[float, float]:
    """Exact binomial confidence interval for ``successes / trials``.

    Returns ``(nan, nan)`` when *trials* is zero.
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    if trials <= 0:
        return float("nan"), float("nan")
    if not 0 <= successes <= trials:
        raise ValueError(f"successes={successes} outside [0, {trials}]")
    alpha = 1.0 - confidence
    lower = 0.0 if successes == 0 else float(
        stats.beta.ppf(alpha / 2.0, successes, trials - successes + 1))
    upper = 1.0 if successes == trials else float(
        stats.beta.ppf(1.0 - alpha / 2.0, successes + 1, trials - successes))
    return lower, upper


def _mean_interval(values: np.ndarray, confidence: float) -> tuple[float, float]:
    if len(values) < 2:
        mean = float(values[0]) if len(values) else float("nan")
        return mean, mean
    z = float(stats.norm.ppf(0.5 + confidence / 2.0))
    half = z * float(np.std(values, ddof=1)) / math.sqrt(len(values))
    mean = float(np.mean(values))
    return mean - half, mean + half


def expected_tests_interval(
    outcomes: Sequence[IterationOutcome], confidence: float = 0.95,
) -> tuple[float, float]:
    """Normal-approximation interval for the mean number of tests."""
    tests = np.asarray([o.tests for o in outcomes], dtype=np.float64)
    return _mean_interval(tests, confidence)


def summarize(
    summary: MonteCarloSummary,
    confidence: float = 0.95,
    outcomes: Sequence[IterationOutcome] | None = None,
) -> dict[str, Any]:
    """Point estimates with confidence intervals for a Monte Carlo run.

    The expected-tests interval comes from *outcomes* when given, else
    from the per-iteration counts carried on *summary*.
    """
    t = summary.totals
    report: dict[str, Any] = dict(
        iterations=summary.iterations,
        expected_tests=summary.expected_tests,
        sensitivity=summary.sensitivity,
        specificity=summary.specificity,
        sensitivity_ci=clopper_pearson_interval(t.est_1, t.true_1, confidence),
        specificity_ci=clopper_pearson_interval(t.est_0, t.true_0, confidence),
        confidence=confidence,
    )
    if outcomes:
        report["expected_tests_ci"] = expected_tests_interval(outcomes, confidence)
    elif summary.test_counts:
        report["expected_tests_ci"] = _mean_interval(
            np.asarray(summary.test_counts, dtype=np.float64), confidence,
        )
    return report


def format_summary_table(
    report: dict[str, Any], analytic_expected_tests: float | None = None,
) -> str:
    """Format a :func:`summarize` report as a markdown table.

    | Metric | Estimate | CI |
    """
    level = f"{report.get('confidence', 0.95):.0%}"
    lines = [
        f"| Metric | Estimate | {level} CI |",
        "| :--- | ---: | :--- |",
    ]

    def _ci(key: str, fmt: str) -> str:
        ci = report.get(key)
        if not ci or any(isinstance(v, float) and math.isnan(v) for v in ci):
            return "N/A"
        return f"[{ci[0]:{fmt}}, {ci[1]:{fmt}}]"

    lines.append(
        f"| Expected tests | {report['expected_tests']:.4f} | "
        f"{_ci('expected_tests_ci', '.4f')} |"
    )
    if analytic_expected_tests is not None and math.isfinite(analytic_expected_tests):
        lines.append(f"| Expected tests (design) | {analytic_expected_tests:.4f} | -- |")
    lines.append(
        f"| Sensitivity | {report['sensitivity']:.4f} | {_ci('sensitivity_ci', '.4f')} |"
    )
    lines.append(
        f"| Specificity | {report['specificity']:.4f} | {_ci('specificity_ci', '.4f')} |"
    )
    lines.append(f"| Iterations | {report['iterations']} | -- |")
    return "\n".join(lines)


def format_replay_table(
    total_tests: int, sensitivity: float, specificity: float, population: int,
) -> str:
    """Format a single replay as a markdown table."""
    return "\n".join([
        "| Metric | Value |",
        "| :--- | ---: |",
        f"| Individuals | {population} |",
        f"| Tests used | {total_tests} |",
        f"| Tests per individual | {total_tests / population:.4f} |",
        f"| Measured sensitivity | {sensitivity:.4f} |",
        f"| Measured specificity | {specificity:.4f} |",
    ])

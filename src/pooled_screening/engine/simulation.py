"""Single-iteration simulation and replay of a known status vector."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from pooled_screening.domain.errors import DegenerateRatioError
from pooled_screening.domain.models import Group, IterationOutcome, SplitTable
from pooled_screening.engine.resolver import GroupResolver

logger = logging.getLogger(__name__)


def sample_status(prevalence: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Draw one true-status realization, ``P(x[i] = 1) = q[i]`` independently."""
    q = np.asarray(prevalence, dtype=np.float64)
    return (rng.random(len(q)) > 1.0 - q).astype(np.int8)


def tally(status: np.ndarray, classification: np.ndarray, tests: int) -> IterationOutcome:
    """Count correct classifications against the truth."""
    x = np.asarray(status, dtype=np.int8)
    y = np.asarray(classification, dtype=np.int8)
    true_1 = int(np.sum(x))
    return IterationOutcome(
        est_1=int(np.sum((x == 1) & (y == 1))),
        est_0=int(np.sum((x == 0) & (y == 0))),
        true_1=true_1,
        true_0=len(x) - true_1,
        tests=int(tests),
    )


def measured_ratio(numerator: float, denominator: float, label: str, strict: bool = True) -> float:
    """Return ``numerator / denominator`` with an explicit zero-denominator policy.

    Parameters
    ----------
    numerator, denominator:
        Correct classifications and the matching true count.
    label:
        ``"sensitivity"`` or ``"specificity"``, used in diagnostics.
    strict:
        When True a zero denominator raises; otherwise NaN is returned and
        a warning is logged.

    Raises
    ------
    DegenerateRatioError
        If *denominator* is zero and *strict* is set.
    """
    if denominator == 0:
        kind = "positive" if label == "sensitivity" else "negative"
        message = f"Measured {label} undefined: no truly {kind} individuals"
        if strict:
            raise DegenerateRatioError(message)
        logger.warning("%s; reporting NaN", message)
        return float("nan")
    return float(numerator) / float(denominator)


def _resolve_population(
    status: np.ndarray,
    groups: Sequence[Group],
    split_table: SplitTable,
    sensitivity: float,
    specificity: float,
    rng: np.random.Generator,
) -> tuple[np.ndarray, IterationOutcome]:
    resolver = GroupResolver(status, split_table, sensitivity, specificity, rng)
    classification = resolver.resolve_all(groups)
    return classification, tally(status, classification, resolver.tests)


def run_iteration(
    prevalence: np.ndarray,
    groups: Sequence[Group],
    split_table: SplitTable,
    sensitivity: float,
    specificity: float,
    rng: np.random.Generator,
) -> IterationOutcome:
    """Sample a realization, screen it with the design and tally the result.

    Every call draws a fresh status vector and starts a fresh test
    counter; nothing persists between calls.
    """
    status = sample_status(prevalence, rng)
    _, outcome = _resolve_population(
        status, groups, split_table, sensitivity, specificity, rng,
    )
    return outcome


def replay(
    status: np.ndarray,
    groups: Sequence[Group],
    split_table: SplitTable,
    sensitivity: float,
    specificity: float,
    rng: np.random.Generator,
    strict: bool = True,
) -> tuple[np.ndarray, IterationOutcome, float, float]:
    """Screen a caller-supplied status vector once (no resampling).

    Returns
    -------
    tuple
        ``(classification, outcome, measured_sensitivity, measured_specificity)``.
    """
    classification, outcome = _resolve_population(
        status, groups, split_table, sensitivity, specificity, rng,
    )
    se_hat = measured_ratio(outcome.est_1, outcome.true_1, "sensitivity", strict)
    sp_hat = measured_ratio(outcome.est_0, outcome.true_0, "specificity", strict)
    logger.debug(
        "Replay used %d tests for %d individuals (Se=%.4f, Sp=%.4f)",
        outcome.tests, len(status), se_hat, sp_hat,
    )
    return classification, outcome, se_hat, sp_hat

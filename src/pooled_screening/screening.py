"""Public entry points for evaluating hierarchical screening designs.

The design optimizer is an injected collaborator satisfying
:class:`~pooled_screening.domain.protocols.DesignOptimizer`.  When a
design has already been computed (for example loaded with
:func:`pooled_screening.ingestion.load_design`), wrap it in
:class:`StaticDesignOptimizer`.

Quick usage::

    from pooled_screening import StaticDesignOptimizer, load_design
    from pooled_screening import evaluate_design_with_monte_carlo

    optimizer = StaticDesignOptimizer(load_design("design.yaml"))
    result = evaluate_design_with_monte_carlo(q, 0.95, 0.99, 10_000, optimizer, seed=7)
    print(result.monte_carlo.expected_tests)
"""

from __future__ import annotations

import logging

import numpy as np

from pooled_screening.domain.errors import InvalidParameterError, MalformedDesignError
from pooled_screening.domain.events import DESIGN_EVALUATED, REPLAY_COMPLETED, EventBus
from pooled_screening.domain.models import (
    DesignEvaluation,
    ReplayResult,
    ScreeningDesign,
)
from pooled_screening.domain.protocols import DesignOptimizer
from pooled_screening.engine.monte_carlo import MonteCarloAggregator, validate_prevalence
from pooled_screening.engine.oracle import as_status_vector, test_range, validate_assay
from pooled_screening.engine.partition import load_initial_groups
from pooled_screening.engine.simulation import replay

logger = logging.getLogger(__name__)

__all__ = [
    "StaticDesignOptimizer",
    "evaluate_design",
    "evaluate_design_with_monte_carlo",
    "simulate_given_outcomes",
    "test_range",
]


class StaticDesignOptimizer:
    """Serve one precomputed design regardless of the requested assay accuracy."""

    def __init__(self, design: ScreeningDesign) -> None:
        self.design = design

    def optimize(
        self, prevalence: np.ndarray, sensitivity: float, specificity: float,
    ) -> ScreeningDesign:
        if len(prevalence) != self.design.population_size:
            raise InvalidParameterError(
                f"Prevalence vector has length {len(prevalence)}, stored design "
                f"covers {self.design.population_size} individuals"
            )
        return self.design


def _optimize(
    optimizer: DesignOptimizer, q: np.ndarray, sensitivity: float, specificity: float,
) -> ScreeningDesign:
    design = optimizer.optimize(q, sensitivity, specificity)
    if design.population_size != len(q):
        raise MalformedDesignError(
            f"Optimizer returned a partition of length {design.population_size} "
            f"for {len(q)} individuals"
        )
    return design


def evaluate_design(
    prevalence: object,
    sensitivity: float,
    specificity: float,
    optimizer: DesignOptimizer,
    bus: EventBus | None = None,
) -> ScreeningDesign:
    """Validate inputs and return the optimizer's design for *prevalence*."""
    validate_assay(sensitivity, specificity)
    q = validate_prevalence(prevalence)
    design = _optimize(optimizer, q, sensitivity, specificity)
    logger.info(
        "Design for %d individuals: expected tests %.4f",
        design.population_size, design.expected_tests,
    )
    if bus is not None:
        bus.publish(DESIGN_EVALUATED, {
            "population_size": design.population_size,
            "expected_tests": design.expected_tests,
        })
    return design


def evaluate_design_with_monte_carlo(
    prevalence: object,
    sensitivity: float,
    specificity: float,
    iterations: int,
    optimizer: DesignOptimizer,
    seed: int | None = None,
    workers: int = 1,
    max_seconds: float | None = None,
    strict: bool = True,
    bus: EventBus | None = None,
) -> DesignEvaluation:
    """Optimize a design and estimate its operating characteristics by simulation.

    Parameters
    ----------
    prevalence:
        Ordered individual prevalences ``q``.
    sensitivity, specificity:
        Assay accuracy, used both for optimizing and for simulating.
    iterations:
        Number of Monte Carlo realizations ``M`` (positive).
    optimizer:
        Design optimizer collaborator.
    seed, workers, max_seconds, strict:
        Forwarded to :class:`MonteCarloAggregator`.
    bus:
        Optional event bus.

    Returns
    -------
    DesignEvaluation
        The design (``D``, ``h``, analytic expected tests) plus the
        simulated expected tests and pooled sensitivity/specificity.
    """
    design = evaluate_design(prevalence, sensitivity, specificity, optimizer, bus=bus)
    aggregator = MonteCarloAggregator(
        seed=seed, workers=workers, max_seconds=max_seconds, strict=strict, bus=bus,
    )
    summary = aggregator.aggregate(
        design.partition, design.split_table, prevalence,
        sensitivity, specificity, iterations,
    )
    return DesignEvaluation(design=design, monte_carlo=summary)


def simulate_given_outcomes(
    true_status: object,
    prevalence: object,
    sensitivity: float,
    specificity: float,
    optimizer: DesignOptimizer,
    seed: int | None = None,
    design_assumes_perfect_assay: bool = False,
    strict: bool = True,
    bus: EventBus | None = None,
) -> ReplayResult:
    """Screen a known status vector with the optimal design for *prevalence*.

    The status vector is not resampled; only assay misclassification is
    random.  With *design_assumes_perfect_assay* the design is optimized
    for ``Se = Sp = 1`` while tests are still simulated with the given
    accuracy.

    Raises
    ------
    InvalidParameterError
        On a length mismatch, non-binary status values or bad accuracies.
    DegenerateRatioError
        If *strict* and the status vector is all-positive or all-negative.
    """
    validate_assay(sensitivity, specificity)
    q = validate_prevalence(prevalence)
    x = as_status_vector(true_status)
    if len(x) != len(q):
        raise InvalidParameterError(
            f"Status vector has length {len(x)}, prevalence vector {len(q)}"
        )

    if design_assumes_perfect_assay:
        design = _optimize(optimizer, q, 1.0, 1.0)
    else:
        design = _optimize(optimizer, q, sensitivity, specificity)

    groups = load_initial_groups(design.partition)
    rng = np.random.default_rng(seed)
    classification, outcome, se_hat, sp_hat = replay(
        x, groups, design.split_table, sensitivity, specificity, rng, strict=strict,
    )
    logger.info(
        "Replay screened %d individuals with %d tests (expected %.4f)",
        len(x), outcome.tests, design.expected_tests,
    )
    result = ReplayResult(
        classification=classification,
        sensitivity=se_hat,
        specificity=sp_hat,
        total_tests=outcome.tests,
        expected_tests=design.expected_tests,
    )
    if bus is not None:
        bus.publish(REPLAY_COMPLETED, {
            "total_tests": result.total_tests,
            "sensitivity": result.sensitivity,
            "specificity": result.specificity,
        })
    return result

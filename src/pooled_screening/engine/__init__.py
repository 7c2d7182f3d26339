"""Screening engine -- oracle, partitioning, resolution, and simulation.

This package implements hierarchical group testing under an imperfect
assay:

- **Oracle**: one pooled test on a contiguous group with sensitivity and
  specificity misclassification.
- **Partition**: initial groups from the optimizer's partition vector.
- **Resolver**: adaptive resolve/split testing guided by the split table.
- **Simulation**: one sampled realization, or replay of a known one.
- **Monte Carlo**: pooled estimates of expected tests, sensitivity and
  specificity over many realizations.
"""

from __future__ import annotations

from pooled_screening.engine.monte_carlo import (
    MonteCarloAggregator,
    aggregate,
    validate_iterations,
    validate_prevalence,
)
from pooled_screening.engine.oracle import (
    as_status_vector,
    pooled_test,
    test_range,
    validate_assay,
)
from pooled_screening.engine.partition import load_initial_groups
from pooled_screening.engine.resolver import GroupResolver
from pooled_screening.engine.simulation import (
    measured_ratio,
    replay,
    run_iteration,
    sample_status,
    tally,
)

__all__ = [
    # Oracle
    "pooled_test",
    "test_range",
    "validate_assay",
    "as_status_vector",
    # Partition
    "load_initial_groups",
    # Resolver
    "GroupResolver",
    # Simulation
    "sample_status",
    "tally",
    "measured_ratio",
    "run_iteration",
    "replay",
    # Monte Carlo
    "MonteCarloAggregator",
    "aggregate",
    "validate_iterations",
    "validate_prevalence",
]

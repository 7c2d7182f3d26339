"""Hierarchical group testing simulation for ordered populations.

Simulates adaptive multi-stage pooled testing under an imperfect assay:
a precomputed design (initial partition plus nested split table) is
applied to sampled or supplied infection statuses, and Monte Carlo
aggregation estimates the expected number of tests together with the
overall sensitivity and specificity of the protocol.
"""

from __future__ import annotations

__version__ = "0.1.0"

from pooled_screening.domain.models import ScreeningDesign, SplitTable
from pooled_screening.ingestion.design_file import load_design, save_design
from pooled_screening.screening import (
    StaticDesignOptimizer,
    evaluate_design,
    evaluate_design_with_monte_carlo,
    simulate_given_outcomes,
    test_range,
)

__all__ = [
    "ScreeningDesign",
    "SplitTable",
    "StaticDesignOptimizer",
    "evaluate_design",
    "evaluate_design_with_monte_carlo",
    "load_design",
    "save_design",
    "simulate_given_outcomes",
    "test_range",
]

"""Evaluation of simulated screening results.

Provides exact binomial intervals for pooled sensitivity/specificity, a
normal interval for expected tests, and plain-text report tables.
"""
from pooled_screening.evaluation.metrics import (
    clopper_pearson_interval,
    expected_tests_interval,
    format_replay_table,
    format_summary_table,
    summarize,
)

__all__ = [
    "clopper_pearson_interval",
    "expected_tests_interval",
    "summarize",
    "format_summary_table",
    "format_replay_table",
]

"""Fixed-rule screening designs.

These are not optimized; they encode classic protocols in the same
partition/split-table form the optimizer emits, which makes them handy
baselines and fixtures.

- :func:`dorfman_design` -- two-stage testing: pool, then test members
  of a positive pool one by one.
- :func:`halving_design` -- binary splitting: a positive range is
  retested half by half.
"""

from __future__ import annotations

import math

import numpy as np

from pooled_screening.domain.errors import InvalidParameterError
from pooled_screening.domain.models import ScreeningDesign, SplitTable


def _partition(population_size: int, group_size: int) -> np.ndarray:
    if population_size < 1:
        raise InvalidParameterError(f"population_size must be >= 1, got {population_size}")
    if group_size < 1:
        raise InvalidParameterError(f"group_size must be >= 1, got {group_size}")
    partition = np.zeros(population_size, dtype=np.int64)
    for start in range(0, population_size, group_size):
        partition[start] = min(group_size, population_size - start)
    return partition


def _fill(partition: np.ndarray, rule) -> dict[tuple[int, int], int]:
    entries: dict[tuple[int, int], int] = {}
    start = 0
    while start < len(partition):
        end = start + int(partition[start]) - 1
        for a in range(start, end):
            for b in range(a + 1, end + 1):
                entries[(a, b)] = rule(b - a + 1)
        start = end + 1
    return entries


def dorfman_design(population_size: int, group_size: int) -> ScreeningDesign:
    """Consecutive pools of *group_size*, individual retesting of positive pools."""
    partition = _partition(population_size, group_size)
    return ScreeningDesign(
        partition=partition,
        split_table=SplitTable.from_entries(_fill(partition, lambda size: 1)),
    )


def halving_design(population_size: int, group_size: int) -> ScreeningDesign:
    """Consecutive pools of *group_size*, positive ranges split in half (front rounded up)."""
    partition = _partition(population_size, group_size)
    return ScreeningDesign(
        partition=partition,
        split_table=SplitTable.from_entries(
            _fill(partition, lambda size: math.ceil(size / 2))
        ),
    )

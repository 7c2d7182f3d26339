"""Shared pytest fixtures for the pooled screening test suite."""

from __future__ import annotations

import numpy as np
import pytest

from pooled_screening.domain.models import ScreeningDesign, SplitTable


# ---------------------------------------------------------------------------
# Designs
# ---------------------------------------------------------------------------


@pytest.fixture()
def worked_design() -> ScreeningDesign:
    """Four individuals in one group; split 2 then 1, remainder resolved whole."""
    return ScreeningDesign(
        partition=np.array([4, 0, 0, 0]),
        split_table=SplitTable.from_entries({(0, 3): 2, (0, 1): 1, (2, 3): 1}),
        expected_tests=2.5,
    )


@pytest.fixture()
def worked_status() -> np.ndarray:
    """Only individual 1 is positive."""
    return np.array([0, 1, 0, 0], dtype=np.int8)


def random_split_design(
    population_size: int, group_size: int, seed: int = 0,
) -> ScreeningDesign:
    """Consecutive groups with a random but valid split table.

    Every range ``(a, b)`` with ``a < b`` inside a group gets a first
    sub-group size in ``[1, b - a]``, strictly smaller than the range.
    """
    rng = np.random.default_rng(seed)
    partition = np.zeros(population_size, dtype=np.int64)
    entries: dict[tuple[int, int], int] = {}
    start = 0
    while start < population_size:
        size = min(group_size, population_size - start)
        partition[start] = size
        end = start + size - 1
        for a in range(start, end):
            for b in range(a + 1, end + 1):
                entries[(a, b)] = int(rng.integers(1, b - a + 1))
        start = end + 1
    return ScreeningDesign(partition=partition, split_table=SplitTable.from_entries(entries))


@pytest.fixture()
def random_design() -> ScreeningDesign:
    """37 individuals in groups of 8 with a random split table."""
    return random_split_design(37, 8, seed=3)


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------


@pytest.fixture()
def rng() -> np.random.Generator:
    """Seeded generator for deterministic draws."""
    return np.random.default_rng(seed=0)


@pytest.fixture()
def make_random_design():
    """Factory fixture for :func:`random_split_design`."""
    return random_split_design

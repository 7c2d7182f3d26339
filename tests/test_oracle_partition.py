"""Tests for the single-test oracle and the partition loader."""

from __future__ import annotations

import numpy as np
import pytest

from pooled_screening.domain.errors import InvalidParameterError, MalformedDesignError
from pooled_screening.domain.models import Group, TestCounter
from pooled_screening.engine.oracle import pooled_test, test_range, validate_assay
from pooled_screening.engine.partition import load_initial_groups


# =====================================================================
# pooled_test
# =====================================================================


class TestPooledTest:
    """One pooled assay on a contiguous range."""

    def test_perfect_assay_reports_truth(self, rng):
        status = np.array([0, 0, 1, 0, 0], dtype=np.int8)
        counter = TestCounter()
        assert pooled_test(status, Group(0, 4), 1.0, 1.0, rng, counter) == 1
        assert pooled_test(status, Group(0, 1), 1.0, 1.0, rng, counter) == 0
        assert pooled_test(status, Group(2, 2), 1.0, 1.0, rng, counter) == 1
        assert pooled_test(status, Group(3, 4), 1.0, 1.0, rng, counter) == 0

    def test_one_test_per_call_regardless_of_size(self, rng):
        status = np.zeros(100, dtype=np.int8)
        counter = TestCounter()
        pooled_test(status, Group(0, 99), 0.9, 0.9, rng, counter)
        assert counter.count == 1
        pooled_test(status, Group(5, 5), 0.9, 0.9, rng, counter)
        assert counter.count == 2

    def test_zero_sensitivity_never_flags_defective(self, rng):
        status = np.ones(3, dtype=np.int8)
        counter = TestCounter()
        results = [pooled_test(status, Group(0, 2), 0.0, 1.0, rng, counter) for _ in range(50)]
        assert results == [0] * 50

    def test_zero_specificity_always_flags_clean(self, rng):
        status = np.zeros(3, dtype=np.int8)
        counter = TestCounter()
        results = [pooled_test(status, Group(0, 2), 1.0, 0.0, rng, counter) for _ in range(50)]
        assert results == [1] * 50

    def test_misclassification_rates(self, rng):
        positive = np.array([0, 1], dtype=np.int8)
        negative = np.array([0, 0], dtype=np.int8)
        counter = TestCounter()
        n = 20_000
        hits = sum(pooled_test(positive, Group(0, 1), 0.9, 0.95, rng, counter) for _ in range(n))
        false = sum(pooled_test(negative, Group(0, 1), 0.9, 0.95, rng, counter) for _ in range(n))
        assert abs(hits / n - 0.9) < 0.01
        assert abs(false / n - 0.05) < 0.01
        assert counter.count == 2 * n

    def test_invalid_range_raises(self, rng):
        status = np.zeros(4, dtype=np.int8)
        with pytest.raises(MalformedDesignError):
            pooled_test(status, Group(2, 4), 1.0, 1.0, rng, TestCounter())
        with pytest.raises(MalformedDesignError):
            pooled_test(status, Group(3, 2), 1.0, 1.0, rng, TestCounter())


# =====================================================================
# test_range probe
# =====================================================================


class TestRangeProbe:
    """Whole-vector single-group probe."""

    def test_detects_any_positive(self, rng):
        assert test_range([0, 0, 1], 1.0, 1.0, rng=rng) == 1

    def test_clean_vector(self, rng):
        assert test_range([0, 0, 0, 0], 1.0, 1.0, rng=rng) == 0

    def test_default_generator(self):
        assert test_range([1], 1.0, 1.0) == 1

    @pytest.mark.parametrize("se,sp", [(1.2, 0.9), (0.9, -0.1)])
    def test_rejects_bad_accuracy(self, se, sp):
        with pytest.raises(InvalidParameterError):
            test_range([0, 1], se, sp)

    def test_rejects_non_binary(self):
        with pytest.raises(InvalidParameterError):
            test_range([0, 2, 1], 0.9, 0.9)

    def test_rejects_empty(self):
        with pytest.raises(InvalidParameterError):
            test_range([], 0.9, 0.9)

    def test_validate_assay_accepts_bounds(self):
        validate_assay(0.0, 1.0)
        validate_assay(1.0, 0.0)


# =====================================================================
# load_initial_groups
# =====================================================================


class TestLoadInitialGroups:
    """Partition vector to ordered initial groups."""

    def test_basic_walk(self):
        groups = load_initial_groups([2, 0, 3, 0, 0])
        assert groups == (Group(0, 1), Group(2, 4))

    def test_non_start_cells_ignored(self):
        groups = load_initial_groups([2, 99, 1, 2, -5])
        assert groups == (Group(0, 1), Group(2, 2), Group(3, 4))

    def test_individual_testing(self):
        groups = load_initial_groups(np.ones(5))
        assert [g.size for g in groups] == [1] * 5

    def test_groups_partition_population(self):
        rng = np.random.default_rng(11)
        for _ in range(25):
            n = int(rng.integers(1, 60))
            partition = np.zeros(n)
            i = 0
            while i < n:
                size = int(rng.integers(1, n - i + 1))
                partition[i] = size
                i += size
            groups = load_initial_groups(partition)
            covered = [idx for g in groups for idx in range(g.start, g.end + 1)]
            assert covered == list(range(n))

    def test_zero_size_at_start_raises(self):
        with pytest.raises(MalformedDesignError):
            load_initial_groups([2, 0, 0])

    def test_overrun_raises(self):
        with pytest.raises(MalformedDesignError):
            load_initial_groups([3, 0])

    def test_fractional_size_raises(self):
        with pytest.raises(MalformedDesignError):
            load_initial_groups([1.5, 0])

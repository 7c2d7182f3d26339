"""Tests for the public screening entry points."""

from __future__ import annotations

import numpy as np
import numpy.testing as npt
import pytest

from pooled_screening.designs import dorfman_design
from pooled_screening.domain.errors import (
    DegenerateRatioError,
    InvalidParameterError,
    MalformedDesignError,
)
from pooled_screening.domain.events import (
    DESIGN_EVALUATED,
    REPLAY_COMPLETED,
    SIMULATION_COMPLETED,
    EventBus,
)
from pooled_screening.domain.models import DesignEvaluation, ScreeningDesign
from pooled_screening.domain.protocols import DesignOptimizer
from pooled_screening.screening import (
    StaticDesignOptimizer,
    evaluate_design,
    evaluate_design_with_monte_carlo,
    simulate_given_outcomes,
)


class RecordingOptimizer:
    """Return a fixed design and remember the accuracy it was asked for."""

    def __init__(self, design: ScreeningDesign) -> None:
        self.design = design
        self.calls: list[tuple[float, float]] = []

    def optimize(self, prevalence, sensitivity, specificity):
        self.calls.append((sensitivity, specificity))
        return self.design


# =====================================================================
# Optimizer adapters
# =====================================================================


class TestStaticDesignOptimizer:
    """Serving a precomputed design."""

    def test_satisfies_protocol(self, worked_design):
        assert isinstance(StaticDesignOptimizer(worked_design), DesignOptimizer)

    def test_returns_design(self, worked_design):
        optimizer = StaticDesignOptimizer(worked_design)
        assert optimizer.optimize(np.full(4, 0.1), 0.9, 0.9) is worked_design

    def test_rejects_length_mismatch(self, worked_design):
        with pytest.raises(InvalidParameterError):
            StaticDesignOptimizer(worked_design).optimize(np.full(5, 0.1), 0.9, 0.9)


# =====================================================================
# evaluate_design
# =====================================================================


class TestEvaluateDesign:
    """Thin passthrough to the optimizer."""

    def test_passthrough(self, worked_design):
        design = evaluate_design([0.1, 0.2, 0.1, 0.1], 0.9, 0.95, StaticDesignOptimizer(worked_design))
        assert design is worked_design
        assert design.expected_tests == 2.5

    def test_validates_accuracy(self, worked_design):
        with pytest.raises(InvalidParameterError):
            evaluate_design(np.full(4, 0.1), 0.9, 1.01, StaticDesignOptimizer(worked_design))

    def test_rejects_wrong_size_design(self, worked_design):
        with pytest.raises(MalformedDesignError):
            evaluate_design(np.full(6, 0.1), 0.9, 0.9, RecordingOptimizer(worked_design))

    def test_publishes_event(self, worked_design):
        bus = EventBus()
        seen = []
        bus.subscribe(DESIGN_EVALUATED, seen.append)
        evaluate_design(np.full(4, 0.1), 0.9, 0.9, StaticDesignOptimizer(worked_design), bus=bus)
        assert seen[0].payload["population_size"] == 4


# =====================================================================
# evaluate_design_with_monte_carlo
# =====================================================================


class TestEvaluateDesignWithMonteCarlo:
    """Design plus simulated operating characteristics."""

    def test_returns_design_and_summary(self):
        design = dorfman_design(30, 5)
        result = evaluate_design_with_monte_carlo(
            np.full(30, 0.05), 1.0, 1.0, 100, StaticDesignOptimizer(design), seed=4,
        )
        assert isinstance(result, DesignEvaluation)
        assert result.design is design
        assert result.monte_carlo.iterations == 100
        assert result.monte_carlo.sensitivity == 1.0
        assert result.monte_carlo.specificity == 1.0
        assert np.isnan(result.expected_tests)

    def test_optimizer_sees_assay_accuracy(self):
        design = dorfman_design(10, 5)
        optimizer = RecordingOptimizer(design)
        evaluate_design_with_monte_carlo(np.full(10, 0.2), 0.8, 0.7, 20, optimizer, seed=0)
        assert optimizer.calls == [(0.8, 0.7)]

    def test_rejects_zero_iterations(self):
        design = dorfman_design(10, 5)
        with pytest.raises(InvalidParameterError):
            evaluate_design_with_monte_carlo(
                np.full(10, 0.2), 0.9, 0.9, 0, StaticDesignOptimizer(design),
            )

    def test_events_in_order(self):
        design = dorfman_design(10, 5)
        bus = EventBus()
        order: list[str] = []
        bus.subscribe(DESIGN_EVALUATED, lambda e: order.append(e.type))
        bus.subscribe(SIMULATION_COMPLETED, lambda e: order.append(e.type))
        evaluate_design_with_monte_carlo(
            np.full(10, 0.2), 1.0, 1.0, 20, StaticDesignOptimizer(design), seed=0, bus=bus,
        )
        assert order == [DESIGN_EVALUATED, SIMULATION_COMPLETED]


# =====================================================================
# simulate_given_outcomes
# =====================================================================


class TestSimulateGivenOutcomes:
    """Replay entry point."""

    def test_worked_example(self, worked_design, worked_status):
        result = simulate_given_outcomes(
            worked_status, np.full(4, 0.1), 1.0, 1.0, StaticDesignOptimizer(worked_design),
        )
        npt.assert_array_equal(result.classification, [0, 1, 0, 0])
        assert result.total_tests == 4
        assert result.sensitivity == 1.0
        assert result.specificity == 1.0
        assert result.expected_tests == 2.5

    def test_accepts_plain_lists(self, worked_design):
        result = simulate_given_outcomes(
            [1, 0, 0, 0], [0.1] * 4, 1.0, 1.0, StaticDesignOptimizer(worked_design), seed=1,
        )
        npt.assert_array_equal(result.classification, [1, 0, 0, 0])

    def test_length_mismatch(self, worked_design):
        with pytest.raises(InvalidParameterError):
            simulate_given_outcomes(
                [0, 1, 0], np.full(4, 0.1), 1.0, 1.0, StaticDesignOptimizer(worked_design),
            )

    def test_non_binary_status(self, worked_design):
        with pytest.raises(InvalidParameterError):
            simulate_given_outcomes(
                [0, 1, 2, 0], np.full(4, 0.1), 1.0, 1.0, StaticDesignOptimizer(worked_design),
            )

    def test_all_positive_is_degenerate(self, worked_design):
        with pytest.raises(DegenerateRatioError):
            simulate_given_outcomes(
                [1, 1, 1, 1], np.full(4, 0.1), 1.0, 1.0, StaticDesignOptimizer(worked_design),
            )

    def test_lenient_reports_nan(self, worked_design):
        result = simulate_given_outcomes(
            [1, 1, 1, 1], np.full(4, 0.1), 1.0, 1.0,
            StaticDesignOptimizer(worked_design), strict=False,
        )
        assert result.sensitivity == 1.0
        assert np.isnan(result.specificity)

    def test_perfect_assay_design_flag(self, worked_design, worked_status):
        optimizer = RecordingOptimizer(worked_design)
        simulate_given_outcomes(
            worked_status, np.full(4, 0.1), 0.9, 0.8, optimizer,
            seed=0, design_assumes_perfect_assay=True, strict=False,
        )
        assert optimizer.calls == [(1.0, 1.0)]

    def test_seeded_replay_is_reproducible(self):
        design = dorfman_design(40, 8)
        status = np.zeros(40, dtype=np.int8)
        status[[3, 17, 30]] = 1
        q = np.full(40, 0.05)
        a = simulate_given_outcomes(status, q, 0.8, 0.8, StaticDesignOptimizer(design), seed=11)
        b = simulate_given_outcomes(status, q, 0.8, 0.8, StaticDesignOptimizer(design), seed=11)
        npt.assert_array_equal(a.classification, b.classification)
        assert a.total_tests == b.total_tests

    def test_publishes_replay_event(self, worked_design, worked_status):
        bus = EventBus()
        seen = []
        bus.subscribe(REPLAY_COMPLETED, seen.append)
        simulate_given_outcomes(
            worked_status, np.full(4, 0.1), 1.0, 1.0,
            StaticDesignOptimizer(worked_design), bus=bus,
        )
        assert seen[0].payload["total_tests"] == 4

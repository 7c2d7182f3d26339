"""Monte Carlo estimation of a design's operating characteristics.

Iterations are independent: each gets its own child generator spawned
from one master :class:`numpy.random.SeedSequence`, its own status
vector and its own test counter.  The split table, initial groups and
prevalences are shared read-only, so iterations can be spread over a
thread pool and reduced with a plain sum.  Seeding per iteration makes a
seeded run reproduce exactly regardless of the worker count.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np

from pooled_screening.domain.errors import InvalidParameterError, SimulationTimeoutError
from pooled_screening.domain.events import SIMULATION_COMPLETED, EventBus
from pooled_screening.domain.models import (
    Group,
    IterationOutcome,
    MonteCarloSummary,
    SplitTable,
)
from pooled_screening.engine.oracle import validate_assay
from pooled_screening.engine.partition import load_initial_groups
from pooled_screening.engine.simulation import measured_ratio, run_iteration

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 1000


def validate_prevalence(prevalence: object, population_size: int | None = None) -> np.ndarray:
    """Return *prevalence* as float64, checking shape, range and length."""
    q = np.asarray(prevalence, dtype=np.float64)
    if q.ndim != 1:
        raise InvalidParameterError(f"Prevalence vector must be 1-D, got shape {q.shape}")
    if q.size == 0:
        raise InvalidParameterError("Prevalence vector is empty")
    if not np.all((q >= 0.0) & (q <= 1.0)):
        raise InvalidParameterError("Prevalences must lie in [0, 1]")
    if population_size is not None and len(q) != population_size:
        raise InvalidParameterError(
            f"Prevalence vector has length {len(q)}, design expects {population_size}"
        )
    return q


def validate_iterations(iterations: object) -> int:
    """Reject anything but a positive integer iteration count."""
    if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)):
        raise InvalidParameterError(f"Iteration count must be an integer, got {iterations!r}")
    if iterations <= 0:
        raise InvalidParameterError(f"Iteration count must be positive, got {iterations}")
    return int(iterations)


class MonteCarloAggregator:
    """Repeat single-iteration simulations and pool their counts.

    Parameters
    ----------
    seed:
        Master seed; ``None`` draws fresh OS entropy.
    workers:
        Number of threads.  ``1`` runs in the calling thread.
    max_seconds:
        Optional wall-clock budget, checked between iterations.
    strict:
        Raise :class:`DegenerateRatioError` when pooled true counts are
        zero; otherwise report NaN.
    bus:
        Optional event bus notified with ``simulation.completed``.
    """

    def __init__(
        self,
        seed: int | None = None,
        workers: int = 1,
        max_seconds: float | None = None,
        strict: bool = True,
        bus: EventBus | None = None,
    ) -> None:
        if workers < 1:
            raise InvalidParameterError(f"workers must be >= 1, got {workers}")
        self.seed = seed
        self.workers = workers
        self.max_seconds = max_seconds
        self.strict = strict
        self.bus = bus

    # -- public API --------------------------------------------------------

    def run(
        self,
        groups: Sequence[Group],
        split_table: SplitTable,
        prevalence: np.ndarray,
        sensitivity: float,
        specificity: float,
        iterations: int,
    ) -> list[IterationOutcome]:
        """Run *iterations* simulations and return their outcome records in order."""
        iterations = validate_iterations(iterations)
        children = np.random.SeedSequence(self.seed).spawn(iterations)
        deadline = (
            time.monotonic() + self.max_seconds if self.max_seconds is not None else None
        )
        outcomes: list[IterationOutcome | None] = [None] * iterations

        def work(indices: range) -> None:
            for i in indices:
                if deadline is not None and time.monotonic() > deadline:
                    raise SimulationTimeoutError(
                        f"Monte Carlo exceeded {self.max_seconds}s after "
                        f"starting {i} of {iterations} iterations"
                    )
                rng = np.random.default_rng(children[i])
                outcomes[i] = run_iteration(
                    prevalence, groups, split_table, sensitivity, specificity, rng,
                )
                if (i + 1) % _PROGRESS_EVERY == 0:
                    logger.debug("Completed iteration %d/%d", i + 1, iterations)

        n_workers = min(self.workers, iterations)
        if n_workers == 1:
            work(range(iterations))
        else:
            chunks = [range(k, iterations, n_workers) for k in range(n_workers)]
            with ThreadPoolExecutor(max_workers=n_workers) as pool:
                for future in [pool.submit(work, chunk) for chunk in chunks]:
                    future.result()

        return [o for o in outcomes if o is not None]

    def aggregate(
        self,
        partition: Sequence[float] | np.ndarray,
        split_table: SplitTable,
        prevalence: object,
        sensitivity: float,
        specificity: float,
        iterations: int,
    ) -> MonteCarloSummary:
        """Estimate expected tests, overall sensitivity and overall specificity.

        Sensitivity and specificity are pooled ratios
        (``sum(est_1) / sum(true_1)``), not means of per-iteration ratios.
        """
        iterations = validate_iterations(iterations)
        validate_assay(sensitivity, specificity)
        q = validate_prevalence(prevalence, len(partition))
        groups = load_initial_groups(partition)

        logger.info(
            "Running %d Monte Carlo iterations over %d individuals in %d groups "
            "(Se=%.4f, Sp=%.4f, workers=%d)",
            iterations, len(q), len(groups), sensitivity, specificity, self.workers,
        )
        started = time.perf_counter()
        outcomes = self.run(groups, split_table, q, sensitivity, specificity, iterations)
        totals = sum(outcomes, IterationOutcome())

        summary = MonteCarloSummary(
            expected_tests=totals.tests / iterations,
            sensitivity=measured_ratio(totals.est_1, totals.true_1, "sensitivity", self.strict),
            specificity=measured_ratio(totals.est_0, totals.true_0, "specificity", self.strict),
            iterations=iterations,
            totals=totals,
            test_counts=tuple(o.tests for o in outcomes),
        )
        logger.info(
            "Monte Carlo finished in %.2fs: ET=%.4f Se=%.4f Sp=%.4f",
            time.perf_counter() - started, summary.expected_tests,
            summary.sensitivity, summary.specificity,
        )
        if self.bus is not None:
            self.bus.publish(SIMULATION_COMPLETED, {
                "iterations": iterations,
                "expected_tests": summary.expected_tests,
                "sensitivity": summary.sensitivity,
                "specificity": summary.specificity,
            })
        return summary


def aggregate(
    partition: Sequence[float] | np.ndarray,
    split_table: SplitTable,
    prevalence: object,
    sensitivity: float,
    specificity: float,
    iterations: int,
    seed: int | None = None,
    workers: int = 1,
) -> MonteCarloSummary:
    """Functional shortcut for :meth:`MonteCarloAggregator.aggregate`."""
    return MonteCarloAggregator(seed=seed, workers=workers).aggregate(
        partition, split_table, prevalence, sensitivity, specificity, iterations,
    )

"""Command-line entry point for the pooled screening simulator.

Evaluate a precomputed design by Monte Carlo::

    python -m pooled_screening design.yaml --uniform 0.02 --iterations 5000
    python -m pooled_screening design.yaml --prevalence q.txt --se 0.9 --sp 0.95

Replay a known status vector through the design::

    python -m pooled_screening design.yaml --uniform 0.02 --replay status.txt
"""

from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser.

    Flags left unset fall back to the merged configuration
    (``config/default.yaml`` plus ``PSC_`` overrides).
    """
    parser = argparse.ArgumentParser(
        prog="pooled_screening",
        description="Simulate hierarchical group testing for a precomputed design.",
    )
    parser.add_argument("design", help="Design file (.yaml, .yml or .json).")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--prevalence",
        help="File with the ordered individual prevalences.",
    )
    source.add_argument(
        "--uniform",
        type=float,
        help="Use the same prevalence for every individual.",
    )
    parser.add_argument("--se", type=float, default=None, help="Assay sensitivity.")
    parser.add_argument("--sp", type=float, default=None, help="Assay specificity.")
    parser.add_argument(
        "--iterations", type=int, default=None,
        help="Number of Monte Carlo iterations.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Master random seed.")
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Threads used for Monte Carlo iterations.",
    )
    parser.add_argument(
        "--max-seconds", type=float, default=None,
        help="Abort the Monte Carlo run after this many seconds.",
    )
    parser.add_argument(
        "--replay",
        default=None,
        help="File with a known 0/1 status vector to screen instead of sampling.",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        default=False,
        help="Report NaN instead of failing on undefined sensitivity/specificity.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug mode with verbose logging.",
    )
    return parser


def _configure_logging(debug: bool) -> None:
    """Set up root logger at DEBUG or INFO."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the requested evaluation and print a report."""
    from pooled_screening.config import get_simulation_settings, get_typed_config
    from pooled_screening.domain.errors import ScreeningError, SimulationTimeoutError
    from pooled_screening.evaluation.metrics import (
        format_replay_table, format_summary_table, summarize,
    )
    from pooled_screening.ingestion.design_file import load_design, load_vector
    from pooled_screening.screening import (
        StaticDesignOptimizer, evaluate_design_with_monte_carlo, simulate_given_outcomes,
    )

    args = build_parser().parse_args(argv)
    _configure_logging(args.debug)

    settings = get_simulation_settings()
    confidence = float(get_typed_config().get("report.confidence", 0.95))
    se = settings.sensitivity if args.se is None else args.se
    sp = settings.specificity if args.sp is None else args.sp
    seed = settings.seed if args.seed is None else args.seed
    strict = settings.strict_ratios and not args.lenient

    try:
        design = load_design(args.design)
        if args.prevalence is not None:
            q = load_vector(args.prevalence)
        else:
            q = np.full(design.population_size, args.uniform, dtype=np.float64)
        optimizer = StaticDesignOptimizer(design)

        if args.replay is not None:
            status = load_vector(args.replay)
            result = simulate_given_outcomes(
                status, q, se, sp, optimizer, seed=seed, strict=strict,
            )
            print(format_replay_table(
                result.total_tests, result.sensitivity, result.specificity, len(q),
            ))
            return 0

        evaluation = evaluate_design_with_monte_carlo(
            q, se, sp,
            settings.iterations if args.iterations is None else args.iterations,
            optimizer,
            seed=seed,
            workers=settings.workers if args.workers is None else args.workers,
            max_seconds=settings.max_seconds if args.max_seconds is None else args.max_seconds,
            strict=strict,
        )
    except (ScreeningError, SimulationTimeoutError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 2

    report = summarize(evaluation.monte_carlo, confidence=confidence)
    print(format_summary_table(report, analytic_expected_tests=evaluation.expected_tests))
    return 0


if __name__ == "__main__":
    sys.exit(main())

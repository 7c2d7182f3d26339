#!/usr/bin/env python3
"""Write a fixed-rule example design file.

Usage:
    PYTHONPATH=src python3 scripts/generate_example_design.py [--rule halving] [--size N]

Produces a Dorfman or halving design in the same file format the
``pooled_screening`` CLI reads, handy for trying the simulator without
an optimizer.
"""

from __future__ import annotations

import argparse
import sys


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate an example screening design file.",
    )
    parser.add_argument(
        "--rule",
        choices=("dorfman", "halving"),
        default="halving",
        help="Retesting rule for positive pools (default: halving)",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=100,
        help="Number of individuals (default: 100)",
    )
    parser.add_argument(
        "--group-size",
        type=int,
        default=10,
        help="Initial pool size (default: 10)",
    )
    parser.add_argument(
        "--output",
        default="designs/example.yaml",
        help="Output path; .json or .yaml (default: designs/example.yaml)",
    )
    args = parser.parse_args()

    from pooled_screening.designs import dorfman_design, halving_design
    from pooled_screening.ingestion.design_file import save_design

    build = dorfman_design if args.rule == "dorfman" else halving_design
    design = build(args.size, args.group_size)
    path = save_design(design, args.output)

    entries = design.split_table.as_entries()
    print(f"Rule:        {args.rule}")
    print(f"Individuals: {design.population_size}")
    print(f"Pools:       {int((design.partition > 0).sum())}")
    print(f"Split cells: {len(entries)}")
    print(f"\nDesign written to: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

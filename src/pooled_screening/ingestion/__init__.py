"""Ingestion of precomputed designs and input vectors from files."""

from __future__ import annotations

from pooled_screening.ingestion.design_file import (
    design_from_mapping,
    load_design,
    load_vector,
    save_design,
)

__all__ = [
    "design_from_mapping",
    "load_design",
    "load_vector",
    "save_design",
]

"""Load and save precomputed screening designs.

A design file is YAML (``.yaml``/``.yml``) or JSON with keys:

* ``partition`` -- the partition-size vector ``D``.
* ``expected_tests`` -- optional analytic expected number of tests.
* ``split_table`` -- list of ``[start, end, size]`` triples, **or**
  ``split_matrix`` -- a dense ``N x N`` nested list.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
import yaml

from pooled_screening.domain.errors import InvalidParameterError, MalformedDesignError
from pooled_screening.domain.models import ScreeningDesign, SplitTable

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def _read_mapping(path: Path) -> dict[str, Any]:
    """Parse *path* as YAML or JSON depending on its suffix."""
    with open(path, "r", encoding="utf-8") as fh:
        if path.suffix.lower() in _YAML_SUFFIXES:
            raw = yaml.safe_load(fh)
        else:
            raw = json.load(fh)
    if not isinstance(raw, dict):
        raise MalformedDesignError(f"Design file {path} must contain a mapping")
    return raw


def design_from_mapping(raw: dict[str, Any]) -> ScreeningDesign:
    """Build a :class:`ScreeningDesign` from a parsed design document.

    Raises
    ------
    MalformedDesignError
        If a field has the wrong shape or holds non-numeric values.
    """
    if "partition" not in raw:
        raise MalformedDesignError("Design is missing 'partition'")
    try:
        partition = np.asarray(raw["partition"], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise MalformedDesignError(f"'partition' must be numeric: {exc}") from exc
    if partition.ndim != 1 or partition.size == 0:
        raise MalformedDesignError("'partition' must be a non-empty list")

    if "split_matrix" in raw:
        try:
            matrix = np.asarray(raw["split_matrix"], dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise MalformedDesignError(f"'split_matrix' must be numeric: {exc}") from exc
        table = SplitTable.from_matrix(matrix)
        if table.matrix is not None and table.matrix.shape[0] != len(partition):
            raise MalformedDesignError(
                f"split_matrix is {table.matrix.shape[0]}x{table.matrix.shape[1]}, "
                f"partition has {len(partition)} entries"
            )
    else:
        entries: dict[tuple[int, int], float] = {}
        for row in raw.get("split_table") or []:
            if not isinstance(row, (list, tuple)) or len(row) != 3:
                raise MalformedDesignError(
                    f"split_table rows must be [start, end, size], got {row!r}"
                )
            try:
                start, end = int(row[0]), int(row[1])
                size = float(row[2])
            except (TypeError, ValueError):
                raise MalformedDesignError(
                    f"split_table row {row!r} must hold numbers"
                ) from None
            entries[(start, end)] = size
        table = SplitTable.from_entries(entries)

    expected = raw.get("expected_tests")
    try:
        expected_tests = float("nan") if expected is None else float(expected)
    except (TypeError, ValueError):
        raise MalformedDesignError(
            f"'expected_tests' must be a number, got {expected!r}"
        ) from None
    return ScreeningDesign(
        partition=partition,
        split_table=table,
        expected_tests=expected_tests,
    )


def load_design(path: str | Path) -> ScreeningDesign:
    """Read a design file from *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    MalformedDesignError
        If the document is not a valid design.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Design file not found: {path}")
    design = design_from_mapping(_read_mapping(path))
    logger.info(
        "Loaded design for %d individuals from %s", design.population_size, path,
    )
    return design


def save_design(design: ScreeningDesign, path: str | Path) -> Path:
    """Write *design* in sparse form; the format follows the file suffix."""
    path = Path(path)
    doc: dict[str, Any] = {
        "partition": [int(v) for v in design.partition],
        "split_table": [
            [start, end, size]
            for (start, end), size in sorted(design.split_table.as_entries().items())
        ],
    }
    if np.isfinite(design.expected_tests):
        doc["expected_tests"] = float(design.expected_tests)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        if path.suffix.lower() in _YAML_SUFFIXES:
            yaml.safe_dump(doc, fh, sort_keys=False)
        else:
            json.dump(doc, fh, indent=2)
    return path


def load_vector(path: str | Path) -> np.ndarray:
    """Read a numeric vector (prevalences or statuses) from YAML, JSON or text.

    Plain-text files hold whitespace- or comma-separated numbers.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    InvalidParameterError
        If the content is not a flat list of numbers.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Vector file not found: {path}")
    suffix = path.suffix.lower()
    try:
        if suffix in _YAML_SUFFIXES or suffix == ".json":
            with open(path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) if suffix in _YAML_SUFFIXES else json.load(fh)
            return np.asarray(raw, dtype=np.float64)
        text = path.read_text(encoding="utf-8").replace(",", " ")
        return np.asarray([float(tok) for tok in text.split()], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{path} does not hold a numeric vector: {exc}") from exc

"""Domain models for the hierarchical group testing engine.

Value types are frozen dataclasses. Mutable default values (numpy arrays,
dicts) use ``field(default_factory=...)``. The only mutable model is
:class:`TestCounter`, which is owned by a single resolution pass.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import yaml

from pooled_screening.domain.errors import MalformedDesignError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _empty_int_array() -> np.ndarray:
    """Return an empty int8 array."""
    return np.empty(0, dtype=np.int8)


def _empty_dict() -> dict[Any, Any]:
    """Return an empty dictionary."""
    return {}


# ---------------------------------------------------------------------------
# Design structure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Group:
    """Inclusive index range ``[start, end]`` into the ordered population."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class SplitTable:
    """Read-only lookup of first sub-group sizes for known-positive ranges.

    Entry ``(start, end)`` is the number of individuals peeled off the
    front of the positive range ``[start, end]`` for the next test.  Only
    ranges reached by the recursion are ever queried, so the sparse
    ``entries`` mapping is the preferred form; a dense ``N x N`` matrix as
    produced by the optimizer is accepted through :meth:`from_matrix`.
    """

    entries: Mapping[tuple[int, int], int] = field(default_factory=_empty_dict)
    matrix: np.ndarray | None = None

    # -- factories ---------------------------------------------------------

    @staticmethod
    def from_matrix(matrix: Any) -> SplitTable:
        """Wrap a dense square split matrix (not copied element-wise)."""
        arr = np.asarray(matrix)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise MalformedDesignError(
                f"Split matrix must be square, got shape {arr.shape}"
            )
        arr = arr.view()
        arr.flags.writeable = False
        return SplitTable(matrix=arr)

    @staticmethod
    def from_entries(entries: Mapping[tuple[int, int], int]) -> SplitTable:
        """Build a sparse table from ``(start, end) -> size`` pairs.

        Raises
        ------
        MalformedDesignError
            If a size is non-numeric, non-finite or fractional.
        """
        cleaned: dict[tuple[int, int], int] = {}
        for (a, b), v in entries.items():
            try:
                value = float(v)
            except (TypeError, ValueError):
                raise MalformedDesignError(
                    f"Split size {v!r} for range ({a}, {b}) is not a number"
                ) from None
            if not math.isfinite(value) or value != int(value):
                raise MalformedDesignError(
                    f"Split size {v!r} for range ({a}, {b}) is not an integer"
                )
            cleaned[(int(a), int(b))] = int(value)
        return SplitTable(entries=cleaned)

    # -- lookup ------------------------------------------------------------

    def size_for(self, start: int, end: int) -> int:
        """Return the first sub-group size for the positive range ``[start, end]``.

        Raises
        ------
        MalformedDesignError
            If the entry is missing or not in ``[1, end - start + 1]``.
        """
        if self.matrix is not None:
            n = self.matrix.shape[0]
            if not (0 <= start < n and 0 <= end < n):
                raise MalformedDesignError(
                    f"Split key ({start}, {end}) outside {n}x{n} table"
                )
            raw = self.matrix[start, end]
        else:
            raw = self.entries.get((start, end))
            if raw is None:
                raise MalformedDesignError(
                    f"Split table has no entry for range ({start}, {end})"
                )
        value = float(raw)
        width = end - start + 1
        if not math.isfinite(value) or value != int(value) or not 1 <= value <= width:
            raise MalformedDesignError(
                f"Split size {raw!r} for range ({start}, {end}) "
                f"outside [1, {width}]"
            )
        return int(value)

    def as_entries(self) -> dict[tuple[int, int], int]:
        """Return the table as a sparse dict (non-zero cells of a dense matrix)."""
        if self.matrix is None:
            return dict(self.entries)
        rows, cols = np.nonzero(self.matrix)
        return {
            (int(r), int(c)): int(self.matrix[r, c]) for r, c in zip(rows, cols)
        }


@dataclass(frozen=True)
class ScreeningDesign:
    """The three artifacts produced by the design optimizer.

    Attributes
    ----------
    partition:
        Vector ``D`` of length ``N``; ``D[i]`` is the size of the initial
        group starting at ``i`` (meaningful only at group starts).
    split_table:
        Nested split sizes for known-positive ranges.
    expected_tests:
        Optimizer's analytic expected number of tests for the design.
    """

    partition: np.ndarray
    split_table: SplitTable
    expected_tests: float = float("nan")

    @property
    def population_size(self) -> int:
        return int(len(self.partition))


# ---------------------------------------------------------------------------
# Simulation state and results
# ---------------------------------------------------------------------------

class TestCounter:
    """Number of physical tests consumed during one resolution pass."""

    __test__ = False  # not a pytest collection target

    def __init__(self) -> None:
        self.count = 0

    def increment(self) -> None:
        self.count += 1

    def __repr__(self) -> str:
        return f"TestCounter(count={self.count})"


@dataclass(frozen=True)
class IterationOutcome:
    """Classification accuracy counts and test total for one realization."""

    est_1: int = 0
    est_0: int = 0
    true_1: int = 0
    true_0: int = 0
    tests: int = 0

    def __add__(self, other: IterationOutcome) -> IterationOutcome:
        if not isinstance(other, IterationOutcome):
            return NotImplemented
        return IterationOutcome(
            est_1=self.est_1 + other.est_1,
            est_0=self.est_0 + other.est_0,
            true_1=self.true_1 + other.true_1,
            true_0=self.true_0 + other.true_0,
            tests=self.tests + other.tests,
        )


@dataclass(frozen=True)
class MonteCarloSummary:
    """Pooled Monte Carlo estimates over ``iterations`` realizations.

    ``test_counts`` holds the number of tests of each iteration in order,
    for interval estimates on ``expected_tests``.
    """

    expected_tests: float
    sensitivity: float
    specificity: float
    iterations: int
    totals: IterationOutcome = field(default_factory=IterationOutcome)
    test_counts: tuple[int, ...] = ()


@dataclass(frozen=True)
class ReplayResult:
    """Outcome of resolving one caller-supplied status vector."""

    classification: np.ndarray = field(default_factory=_empty_int_array)
    sensitivity: float = float("nan")
    specificity: float = float("nan")
    total_tests: int = 0
    expected_tests: float = float("nan")


@dataclass(frozen=True)
class DesignEvaluation:
    """A design together with its Monte Carlo operating characteristics."""

    design: ScreeningDesign
    monte_carlo: MonteCarloSummary

    @property
    def expected_tests(self) -> float:
        return self.design.expected_tests


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppConfig:
    """Application configuration loaded from YAML with environment overlays.

    Configuration is resolved in order:
      1. ``config/default.yaml``
      2. Optional overlay file
      3. Environment variables prefixed with ``PSC_``
    """

    data: dict[str, Any] = field(default_factory=_empty_dict)

    # -- factory -----------------------------------------------------------

    @staticmethod
    def load(
        default_path: str | Path = "config/default.yaml",
        overlay_path: str | Path | None = None,
        env_prefix: str = "PSC_",
    ) -> AppConfig:
        """Load configuration from YAML files and environment variables.

        Parameters
        ----------
        default_path:
            Path to the base configuration file.
        overlay_path:
            Optional path to an overlay file (e.g. a per-study profile).
        env_prefix:
            Prefix for environment variable overrides.  A variable named
            ``PSC_MONTE_CARLO__ITERATIONS`` maps to
            ``config["monte_carlo"]["iterations"]``.

        Returns
        -------
        AppConfig
            Frozen configuration object.
        """
        import os

        merged: dict[str, Any] = {}

        default = Path(default_path)
        if default.exists():
            with open(default, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            merged = _deep_merge(merged, raw)

        if overlay_path is not None:
            overlay = Path(overlay_path)
            if overlay.exists():
                with open(overlay, "r", encoding="utf-8") as fh:
                    raw = yaml.safe_load(fh) or {}
                merged = _deep_merge(merged, raw)

        for key, value in os.environ.items():
            if key.startswith(env_prefix):
                parts = key[len(env_prefix):].lower().split("__")
                _set_nested(merged, parts, _coerce(value))

        return AppConfig(data=merged)

    # -- typed accessors ---------------------------------------------------

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Retrieve a value using dot-separated path, e.g. ``assay.sensitivity``."""
        node: Any = self.data
        for part in dotted_key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def section(self, name: str) -> dict[str, Any]:
        """Return a top-level section as a dict (empty dict if missing)."""
        val = self.data.get(name)
        if isinstance(val, dict):
            return dict(val)
        return {}


@dataclass(frozen=True)
class SimulationSettings:
    """Typed defaults for simulation runs."""

    iterations: int = 10_000
    seed: int | None = None
    workers: int = 1
    max_seconds: float | None = None
    strict_ratios: bool = True
    sensitivity: float = 1.0
    specificity: float = 1.0

    @staticmethod
    def from_config(config: AppConfig) -> SimulationSettings:
        """Read the ``monte_carlo`` and ``assay`` sections of *config*."""
        seed = config.get("monte_carlo.seed")
        max_seconds = config.get("monte_carlo.max_seconds")
        return SimulationSettings(
            iterations=int(config.get("monte_carlo.iterations", 10_000)),
            seed=None if seed is None else int(seed),
            workers=int(config.get("monte_carlo.workers", 1)),
            max_seconds=None if max_seconds is None else float(max_seconds),
            strict_ratios=bool(config.get("monte_carlo.strict_ratios", True)),
            sensitivity=float(config.get("assay.sensitivity", 1.0)),
            specificity=float(config.get("assay.specificity", 1.0)),
        )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into *base* (non-destructive)."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _set_nested(d: dict[str, Any], parts: list[str], value: Any) -> None:
    """Set a value in a nested dict using a list of keys."""
    for part in parts[:-1]:
        d = d.setdefault(part, {})
    if parts:
        d[parts[-1]] = value


def _coerce(value: str) -> Any:
    """Best-effort coercion from string to bool / int / float / str."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    if value.lower() in ("none", "null"):
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value

"""Single-test oracle: one pooled assay on a contiguous group.

The assay is imperfect.  A group containing at least one positive
individual reads positive with probability ``Se``; a clean group reads
positive with probability ``1 - Sp``.  Every call consumes exactly one
physical test, whatever the group size.
"""

from __future__ import annotations

import numpy as np

from pooled_screening.domain.errors import InvalidParameterError, MalformedDesignError
from pooled_screening.domain.models import Group, TestCounter


def validate_assay(sensitivity: float, specificity: float) -> None:
    """Raise :class:`InvalidParameterError` unless both accuracies lie in [0, 1]."""
    for name, value in (("sensitivity", sensitivity), ("specificity", specificity)):
        if not 0.0 <= float(value) <= 1.0:
            raise InvalidParameterError(f"{name} must be in [0, 1], got {value}")


def as_status_vector(status: object) -> np.ndarray:
    """Return *status* as an int8 array, rejecting anything but 0/1 values."""
    arr = np.asarray(status)
    if arr.ndim != 1:
        raise InvalidParameterError(f"Status vector must be 1-D, got shape {arr.shape}")
    if arr.size and not np.all((arr == 0) | (arr == 1)):
        raise InvalidParameterError("Status vector values must be 0 or 1")
    return arr.astype(np.int8)


def pooled_test(
    status: np.ndarray,
    group: Group,
    sensitivity: float,
    specificity: float,
    rng: np.random.Generator,
    counter: TestCounter,
) -> int:
    """Run one pooled test on ``status[group.start:group.end + 1]``.

    Parameters
    ----------
    status:
        True-status vector of the whole population.
    group:
        Inclusive, non-empty range to pool.
    sensitivity, specificity:
        Assay accuracy.
    rng:
        Source of the misclassification draw.
    counter:
        Incremented by one.

    Returns
    -------
    int
        Observed outcome, 0 or 1.
    """
    if group.start < 0 or group.end >= len(status) or group.size < 1:
        raise MalformedDesignError(
            f"Test range ({group.start}, {group.end}) invalid for "
            f"population of {len(status)}"
        )
    defective = bool(np.any(status[group.start:group.end + 1]))
    draw = rng.random()
    counter.increment()
    if defective:
        return int(draw < sensitivity)
    return int(draw < 1.0 - specificity)


def test_range(
    status: object,
    sensitivity: float,
    specificity: float,
    rng: np.random.Generator | None = None,
) -> int:
    """Test an entire status vector as a single pooled group.

    Intended for ad hoc single-group evaluation.

    Raises
    ------
    InvalidParameterError
        On out-of-range accuracies, an empty vector or non-binary values.
    """
    validate_assay(sensitivity, specificity)
    x = as_status_vector(status)
    if x.size == 0:
        raise InvalidParameterError("Cannot test an empty group")
    if rng is None:
        rng = np.random.default_rng()
    return pooled_test(x, Group(0, len(x) - 1), sensitivity, specificity, rng, TestCounter())


test_range.__test__ = False  # type: ignore[attr-defined]

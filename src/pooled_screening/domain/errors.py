"""Exception hierarchy for the screening engine.

Every error derives from :class:`ScreeningError`, itself a
:class:`ValueError`, so callers that only guard against ``ValueError``
keep working.
"""

from __future__ import annotations


class ScreeningError(ValueError):
    """Base class for all screening engine errors."""


class InvalidParameterError(ScreeningError):
    """An input parameter is outside its valid domain.

    Raised for assay accuracies outside ``[0, 1]``, non-positive Monte
    Carlo iteration counts, prevalence/status length mismatches, and
    non-binary status values.
    """


class DegenerateRatioError(ScreeningError):
    """A measured sensitivity or specificity has a zero denominator.

    Happens when a realization contains no truly positive (or no truly
    negative) individuals.
    """


class MalformedDesignError(ScreeningError):
    """The partition vector or split table is inconsistent with the population."""


class SimulationTimeoutError(TimeoutError):
    """The Monte Carlo deadline elapsed before all iterations finished."""

"""Protocol interfaces for collaborators of the screening engine.

Using :class:`typing.Protocol` enables structural subtyping -- an optimizer
does not need to inherit from anything, it only has to provide
``optimize``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from pooled_screening.domain.models import ScreeningDesign


@runtime_checkable
class DesignOptimizer(Protocol):
    """Produce an optimal hierarchical testing design for an ordered population."""

    def optimize(
        self, prevalence: np.ndarray, sensitivity: float, specificity: float,
    ) -> ScreeningDesign:
        """Return the design for *prevalence* under the given assay accuracy.

        Parameters
        ----------
        prevalence:
            Ordered vector of individual prevalences, length ``N``.
        sensitivity:
            Assay sensitivity assumed while optimizing.
        specificity:
            Assay specificity assumed while optimizing.

        Returns
        -------
        ScreeningDesign
            Initial partition vector, nested split table and the analytic
            expected number of tests.
        """
        ...

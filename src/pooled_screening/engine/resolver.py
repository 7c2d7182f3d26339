"""Recursive group resolver for hierarchical pooled testing.

A group that has not been tested yet is *resolved*: one pooled test, and
a negative result clears every member at once.  A group known to be
positive is *split*: sub-groups are peeled off its front, with sizes read
from the optimizer's split table, until every member is classified.

The two modes call each other recursively.  Here the recursion is driven
by an explicit stack of ``(mode, start, end)`` frames, so pathological
split tables cannot exhaust the interpreter stack.  Frames are pushed in
reverse order of the output they produce, which keeps the classification
vector aligned with population order.
"""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from pooled_screening.domain.errors import MalformedDesignError
from pooled_screening.domain.models import Group, SplitTable, TestCounter
from pooled_screening.engine.oracle import pooled_test

logger = logging.getLogger(__name__)

_RESOLVE = 0
_SPLIT = 1

_Frame = tuple[int, int, int]


class GroupResolver:
    """Classify individuals of a population realization by adaptive pooled testing.

    One resolver serves one resolution pass: it owns the test counter and
    draws misclassification noise from the injected generator.

    Parameters
    ----------
    status:
        True-status vector of the whole population (0/1).
    split_table:
        First sub-group sizes for known-positive ranges.
    sensitivity, specificity:
        Assay accuracy applied to every pooled test.
    rng:
        Random generator for test outcomes.
    counter:
        Optional shared counter; a fresh one is created when omitted.
    """

    def __init__(
        self,
        status: np.ndarray,
        split_table: SplitTable,
        sensitivity: float,
        specificity: float,
        rng: np.random.Generator,
        counter: TestCounter | None = None,
    ) -> None:
        self.status = status
        self.split_table = split_table
        self.sensitivity = sensitivity
        self.specificity = specificity
        self.rng = rng
        self.counter = counter if counter is not None else TestCounter()

    @property
    def tests(self) -> int:
        """Tests consumed so far by this resolver."""
        return self.counter.count

    # -- public API --------------------------------------------------------

    def resolve(self, group: Group) -> np.ndarray:
        """Classify every member of an untested group.

        Returns
        -------
        np.ndarray
            int8 vector of length ``group.size`` in population order.
        """
        out: list[int] = []
        stack: list[_Frame] = [(_RESOLVE, group.start, group.end)]
        while stack:
            mode, start, end = stack.pop()
            if mode == _RESOLVE:
                self._resolve_frame(start, end, out, stack)
            else:
                self._split_frame(start, end, out, stack)
        result = np.asarray(out, dtype=np.int8)
        logger.debug(
            "Resolved group [%d, %d]: %d positive, %d tests so far",
            group.start, group.end, int(result.sum()), self.counter.count,
        )
        return result

    def resolve_all(self, groups: Iterable[Group]) -> np.ndarray:
        """Resolve consecutive initial groups and concatenate their classifications."""
        parts = [self.resolve(group) for group in groups]
        if not parts:
            return np.empty(0, dtype=np.int8)
        return np.concatenate(parts)

    # -- frames ------------------------------------------------------------

    def _test(self, start: int, end: int) -> int:
        return pooled_test(
            self.status, Group(start, end), self.sensitivity,
            self.specificity, self.rng, self.counter,
        )

    def _resolve_frame(
        self, start: int, end: int, out: list[int], stack: list[_Frame],
    ) -> None:
        outcome = self._test(start, end)
        if start == end:
            out.append(outcome)
        elif outcome == 0:
            out.extend([0] * (end - start + 1))
        else:
            stack.append((_SPLIT, start, end))

    def _split_frame(
        self, start: int, end: int, out: list[int], stack: list[_Frame],
    ) -> None:
        ind_max = end
        first = self.split_table.size_for(start, end)
        if first >= end - start + 1:
            raise MalformedDesignError(
                f"Split size {first} for positive range ({start}, {end}) "
                f"does not subdivide it"
            )
        cursor1, cursor2 = start, start + first - 1

        while True:
            if self._test(cursor1, cursor2) == 0:
                out.extend([0] * (cursor2 - cursor1 + 1))
                if cursor2 == ind_max:
                    return
                cursor1 = cursor2 + 1
                if cursor1 == ind_max:
                    # Last member of a positive group, inferred without a test.
                    out.append(1)
                    return
                cursor2 = cursor1 + self.split_table.size_for(cursor1, ind_max) - 1
                continue

            if cursor2 < ind_max:
                stack.append((_RESOLVE, cursor2 + 1, ind_max))
            if cursor1 == cursor2:
                out.append(1)
            else:
                stack.append((_SPLIT, cursor1, cursor2))
            return

"""Initial partition loading.

The optimizer encodes the initial groups as a vector ``D`` of length
``N`` where ``D[i]`` is the size of the group starting at ``i``.  Only
group-start cells are read; the walk skips over the rest.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from pooled_screening.domain.errors import MalformedDesignError
from pooled_screening.domain.models import Group

logger = logging.getLogger(__name__)


def load_initial_groups(partition: Sequence[float] | np.ndarray) -> tuple[Group, ...]:
    """Convert a partition-size vector into ordered, disjoint groups.

    Parameters
    ----------
    partition:
        Vector ``D``; ``D[i]`` is read at every group start ``i``.

    Returns
    -------
    tuple[Group, ...]
        Groups covering ``[0, N - 1]`` exactly once, left to right.

    Raises
    ------
    MalformedDesignError
        If a block size at a group start is not a positive integer or a
        block runs past the end of the population.
    """
    sizes = np.asarray(partition, dtype=np.float64)
    n = len(sizes)
    groups: list[Group] = []
    i = 0
    while i < n:
        block = sizes[i]
        if not np.isfinite(block) or block != int(block) or block < 1:
            raise MalformedDesignError(
                f"Partition entry D[{i}]={block!r} is not a positive group size"
            )
        end = i + int(block) - 1
        if end >= n:
            raise MalformedDesignError(
                f"Group starting at {i} with size {int(block)} overruns "
                f"population of {n}"
            )
        groups.append(Group(i, end))
        i = end + 1

    logger.debug("Loaded %d initial groups for %d individuals", len(groups), n)
    return tuple(groups)

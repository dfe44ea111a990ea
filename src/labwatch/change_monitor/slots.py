"""
Slot and disk index assignment for multi-entry component families.

Both the baseline builder and the reconciler index RAM modules and disks with
the same rule, so an entry lands on the same index whether it is being
recorded or compared:

1. An entry carrying an explicit index claims it. On duplicates the first
   claimant wins and later ones are treated as unindexed. When matching
   against a baseline, an explicit index the baseline does not have is
   treated as unindexed too.
2. Every other entry takes its position in the submitted array if that index
   is still free, otherwise the smallest free index.

Reordered entries with correct explicit indices therefore pair with the same
baseline rows, and submissions without usable indices fall back to array
order.
"""

import logging
from typing import Collection, Dict, Optional, Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)


class Indexed(Protocol):
    @property
    def explicit_index(self) -> Optional[int]: ...


T = TypeVar("T", bound=Indexed)


def assign_indices(entries: Sequence[T], known: Optional[Collection[int]] = None) -> Dict[int, T]:
    """
    Map each submitted entry to its slot/disk index.

    Args:
        entries: Entries in submission order
        known: Baseline indices to match against (None when building one)

    Returns:
        Dict of index -> entry, ordered by index
    """
    assigned: Dict[int, T] = {}
    deferred = []

    for position, entry in enumerate(entries):
        index = entry.explicit_index
        if index is not None and index not in assigned and (known is None or index in known):
            assigned[index] = entry
        else:
            if index is not None:
                logger.debug(f"Unusable index {index} at position {position}; using positional fallback")
            deferred.append((position, entry))

    for position, entry in deferred:
        index = position
        if index in assigned:
            index = 0
            while index in assigned:
                index += 1
        assigned[index] = entry

    return dict(sorted(assigned.items()))

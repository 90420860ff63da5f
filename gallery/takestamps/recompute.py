"""
Full recomputation of album takestamp aggregates.

This is expensive (every album scans its whole subtree) and is only meant for
migrations and operator-triggered repair. It must not run while incremental
updates are being applied to the same albums; callers are expected to hold a
maintenance lock.
"""

import logging
from dataclasses import dataclass
from typing import List

from .store import TakestampRange, TreeStore

logger = logging.getLogger(__name__)


@dataclass
class RecomputeStats:
    """Outcome of a full recomputation."""
    albums_processed: int = 0
    albums_changed: int = 0


@dataclass(frozen=True)
class TakestampDrift:
    """An album whose cached aggregate differs from its true value."""
    album_id: int
    stored: TakestampRange
    actual: TakestampRange


def compute_album_range(store: TreeStore, album_id: int) -> TakestampRange:
    """Min/max takestamp of every photo in the album and all its descendants."""
    album_list = [album_id] + store.descendant_ids(album_id)
    return store.subtree_photo_range(album_list)


def recompute_all(store: TreeStore) -> RecomputeStats:
    """
    Recalculate takestamps of every album from scratch and persist them.

    Albums are processed independently, so the order does not matter.
    """
    stats = RecomputeStats()
    for album_id in store.album_ids():
        actual = compute_album_range(store, album_id)
        if actual != store.get_bounds(album_id):
            store.save_bounds(album_id, actual)
            stats.albums_changed += 1
        stats.albums_processed += 1

    logger.info(
        f"Recomputed takestamps of {stats.albums_processed} albums "
        f"({stats.albums_changed} changed)"
    )
    return stats


def check_all(store: TreeStore) -> List[TakestampDrift]:
    """Report albums whose stored takestamps have drifted, without writing."""
    drifted = []
    for album_id in store.album_ids():
        stored = store.get_bounds(album_id)
        actual = compute_album_range(store, album_id)
        if stored != actual:
            drifted.append(TakestampDrift(album_id, stored, actual))

    if drifted:
        logger.warning(f"{len(drifted)} albums have stale takestamps")
    return drifted

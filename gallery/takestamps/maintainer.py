"""
Incremental maintenance of album min/max takestamps.

Every album caches the minimum and maximum takestamp of all photos below it.
When the direct content of an album changes, ``TakestampMaintainer`` updates
that album and walks up the parent chain for as long as the cached bounds keep
moving.
"""

import logging
from typing import Iterable, Optional

from .errors import ConcurrentUpdateError, PersistenceError, TreeStructureError
from .store import AlbumHandle, TakestampRange, TakestampValue, TreeStore

logger = logging.getLogger(__name__)


class TakestampMaintainer:
    """
    Keeps album takestamp aggregates consistent under content changes.

    The maintainer holds no state between calls; all tree access goes
    through the ``TreeStore`` it is constructed with.
    """

    def __init__(self, store: TreeStore):
        self.store = store

    def apply_change(self, album_id: int, takestamps: Iterable[TakestampValue],
                     adding: bool) -> bool:
        """
        Update an album's aggregate after its direct content changed.

        Args:
            album_id: Album whose photos or sub-albums were added or removed
            takestamps: Takestamps of the changed elements. For a sub-album
                pass both its min and max takestamp. None values are ignored.
            adding: True if content was added, False if it was removed.
                Removals must already be committed to the store.

        Returns:
            True if every write along the propagation path succeeded

        Raises:
            TreeStructureError: a cycle or a missing album was met
            ConcurrentUpdateError: an album lock could not be acquired. Its
                ``album_id`` is the album the walk stopped at; calling again
                from there with the same takestamps finishes the update.
        """
        changed = TakestampRange.of(takestamps)
        if changed.min is None or changed.max is None:
            return True

        no_error = True
        visited = set()
        current: Optional[int] = album_id

        while current is not None:
            if current in visited:
                raise TreeStructureError(
                    f"Cycle detected in parent chain of album {album_id} at album {current}"
                )
            visited.add(current)

            parent_id = None
            updated = changed
            try:
                with self.store.locked(current) as album:
                    parent_id = album.parent_id
                    if adding:
                        updated = self._widen(album.bounds, changed)
                    else:
                        updated = self._rescan(album, changed)
                    moved = updated != album.bounds
                    if moved:
                        album.save(updated)
            except PersistenceError as e:
                logger.error(f"Failed to save takestamps of album {current}: {e}")
                no_error = False
                moved = True
            except ConcurrentUpdateError as e:
                # Levels below ``current`` are committed; a retry resumes here.
                e.album_id = current
                e.partial = not no_error
                raise

            if not moved:
                break

            logger.debug(
                f"Album {current} takestamps {'widened' if adding else 'rescanned'} "
                f"to [{updated.min}, {updated.max}]"
            )
            # Ancestors see the same changed values, not this album's new bounds.
            current = parent_id

        return no_error

    @staticmethod
    def _widen(bounds: TakestampRange, changed: TakestampRange) -> TakestampRange:
        """Adding can only push the bounds outwards."""
        return bounds.merge(changed)

    @staticmethod
    def _rescan(album: AlbumHandle, changed: TakestampRange) -> TakestampRange:
        """
        Recompute the bounds the removed values may have defined.

        Only the album's direct content is read; child albums are assumed to
        already hold correct aggregates.
        """
        bounds = album.bounds
        rescan_min = bounds.min == changed.min
        rescan_max = bounds.max == changed.max
        if not (rescan_min or rescan_max):
            return bounds

        content = album.direct_photo_range().merge(album.child_album_range())
        return TakestampRange(
            content.min if rescan_min else bounds.min,
            content.max if rescan_max else bounds.max,
        )

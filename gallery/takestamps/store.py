"""
Tree store abstraction for album takestamp aggregates.

The maintainer and the bulk recomputation only talk to the album tree through
the interfaces defined here, so the aggregate logic stays independent of the
database layer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ContextManager, Iterable, List, Optional, Union
import logging

from .errors import TreeStructureError

logger = logging.getLogger(__name__)

TakestampValue = Union[int, datetime, None]


def as_takestamp(value: TakestampValue) -> Optional[int]:
    """
    Normalize a takestamp to integer epoch seconds.

    Naive datetimes are taken to be UTC. Floats are rejected because bounds
    are compared with exact equality.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Takestamp must be an int or datetime, got {type(value).__name__}")
    return value


def _min(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _max(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


@dataclass(frozen=True)
class TakestampRange:
    """Min/max takestamp pair; either bound is None when unknown."""
    min: Optional[int] = None
    max: Optional[int] = None

    @classmethod
    def of(cls, takestamps: Iterable[TakestampValue]) -> "TakestampRange":
        """Reduce a sequence of takestamps, skipping None values."""
        result = cls()
        for value in takestamps:
            value = as_takestamp(value)
            if value is not None:
                result = cls(_min(result.min, value), _max(result.max, value))
        return result

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None

    def merge(self, other: "TakestampRange") -> "TakestampRange":
        """Combine two ranges, treating None as no bound."""
        return TakestampRange(_min(self.min, other.min), _max(self.max, other.max))


class AlbumHandle(ABC):
    """
    A single album opened for a read-modify-write of its aggregate.

    Handles are only valid inside ``TreeStore.locked()``; the album is held
    under mutual exclusion for that time.
    """

    @property
    @abstractmethod
    def album_id(self) -> int:
        pass

    @property
    @abstractmethod
    def parent_id(self) -> Optional[int]:
        pass

    @property
    @abstractmethod
    def bounds(self) -> TakestampRange:
        """Currently stored min/max takestamp of the album."""
        pass

    @abstractmethod
    def direct_photo_range(self) -> TakestampRange:
        """Min/max takestamp over the photos directly in the album."""
        pass

    @abstractmethod
    def child_album_range(self) -> TakestampRange:
        """Min of min_takestamp and max of max_takestamp over direct child albums."""
        pass

    @abstractmethod
    def save(self, bounds: TakestampRange) -> None:
        """Stage new bounds; written when the locked block exits."""
        pass


class TreeStore(ABC):
    """Persistent album tree consumed by the takestamp maintainer."""

    @abstractmethod
    def locked(self, album_id: int) -> ContextManager[AlbumHandle]:
        """
        Open one album under mutual exclusion.

        Raises:
            AlbumNotFoundError: the album does not exist
            ConcurrentUpdateError: the album lock could not be acquired
            PersistenceError: staged bounds could not be written on exit
        """
        pass

    @abstractmethod
    def child_ids(self, album_id: int) -> List[int]:
        """Identifiers of the direct child albums."""
        pass

    @abstractmethod
    def album_ids(self) -> List[int]:
        """Identifiers of every album in the store."""
        pass

    @abstractmethod
    def get_bounds(self, album_id: int) -> TakestampRange:
        pass

    @abstractmethod
    def save_bounds(self, album_id: int, bounds: TakestampRange) -> None:
        pass

    @abstractmethod
    def subtree_photo_range(self, album_ids: List[int]) -> TakestampRange:
        """Min/max takestamp over all photos in any of the given albums."""
        pass

    def descendant_ids(self, album_id: int) -> List[int]:
        """
        Enumerate every album below ``album_id`` (not including it).

        Raises:
            TreeStructureError: if the walk revisits an album
        """
        seen = {album_id}
        result = []
        pending = [album_id]
        while pending:
            current = pending.pop()
            for child_id in self.child_ids(current):
                if child_id in seen:
                    raise TreeStructureError(
                        f"Cycle detected below album {album_id} at album {child_id}"
                    )
                seen.add(child_id)
                result.append(child_id)
                pending.append(child_id)
        return result

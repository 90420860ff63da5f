"""
Album takestamp aggregates.

Keeps the min/max takestamp cached on every album consistent with the photos
below it, incrementally or by full recomputation.
"""

from .errors import (
    TakestampError,
    TreeStructureError,
    AlbumNotFoundError,
    PersistenceError,
    ConcurrentUpdateError,
)
from .store import TakestampRange, AlbumHandle, TreeStore, as_takestamp
from .maintainer import TakestampMaintainer
from .recompute import RecomputeStats, TakestampDrift, recompute_all, check_all

__all__ = [
    'TakestampError',
    'TreeStructureError',
    'AlbumNotFoundError',
    'PersistenceError',
    'ConcurrentUpdateError',
    'TakestampRange',
    'AlbumHandle',
    'TreeStore',
    'as_takestamp',
    'TakestampMaintainer',
    'RecomputeStats',
    'TakestampDrift',
    'recompute_all',
    'check_all',
]

"""
Exceptions raised while maintaining album takestamp aggregates.
"""


class TakestampError(Exception):
    """Base exception for takestamp aggregate maintenance."""
    pass


class TreeStructureError(TakestampError):
    """Raised when the album tree is malformed (cycle or dangling parent)."""
    pass


class AlbumNotFoundError(TreeStructureError):
    """Raised when an album referenced by the tree does not exist."""

    def __init__(self, album_id):
        super().__init__(f"Album not found: {album_id}")
        self.album_id = album_id


class PersistenceError(TakestampError):
    """Raised when updated bounds could not be written to the store."""
    pass


class ConcurrentUpdateError(TakestampError):
    """
    Raised when an album's lock could not be acquired.

    ``album_id`` names the album that was busy. When raised out of a
    propagation walk, ``partial`` is True if an earlier level already
    failed to persist.
    """

    def __init__(self, message, album_id=None):
        super().__init__(message)
        self.album_id = album_id
        self.partial = False

"""
SQLAlchemy implementation of the album tree store.

Each locked album is read and written inside its own short transaction, with
the album row selected ``FOR UPDATE`` and an in-process lock per album id so
concurrent updates of one album never interleave.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..takestamps.errors import AlbumNotFoundError, ConcurrentUpdateError, PersistenceError
from ..takestamps.store import AlbumHandle, TakestampRange, TreeStore
from .models import Album, Photo

logger = logging.getLogger(__name__)


class AlbumLocks:
    """Per-album mutual exclusion within one process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}
        self._waiters: Dict[int, int] = {}

    @contextmanager
    def hold(self, album_id: int, timeout: float = 10.0) -> Iterator[None]:
        """
        Hold the lock of one album.

        Raises:
            ConcurrentUpdateError: if the lock is not acquired within ``timeout`` seconds
        """
        with self._guard:
            lock = self._locks.setdefault(album_id, threading.Lock())
            self._waiters[album_id] = self._waiters.get(album_id, 0) + 1
        try:
            if not lock.acquire(timeout=timeout):
                raise ConcurrentUpdateError(
                    f"Timed out after {timeout}s waiting for lock on album {album_id}",
                    album_id,
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            with self._guard:
                self._waiters[album_id] -= 1
                if not self._waiters[album_id]:
                    del self._waiters[album_id]
                    del self._locks[album_id]

    def __len__(self):
        with self._guard:
            return len(self._locks)


class SQLAlchemyAlbumHandle(AlbumHandle):
    """An album row selected for update inside an open session."""

    def __init__(self, session: Session, album: Album):
        self.session = session
        self.album = album

    @property
    def album_id(self) -> int:
        return self.album.id

    @property
    def parent_id(self) -> Optional[int]:
        return self.album.parent_id

    @property
    def bounds(self) -> TakestampRange:
        return TakestampRange(self.album.min_takestamp, self.album.max_takestamp)

    def direct_photo_range(self) -> TakestampRange:
        low, high = self.session.query(
            func.min(Photo.takestamp), func.max(Photo.takestamp)
        ).filter(
            Photo.album_id == self.album.id,
            Photo.takestamp.isnot(None)
        ).one()
        return TakestampRange(low, high)

    def child_album_range(self) -> TakestampRange:
        low, high = self.session.query(
            func.min(Album.min_takestamp), func.max(Album.max_takestamp)
        ).filter(
            Album.parent_id == self.album.id
        ).one()
        return TakestampRange(low, high)

    def save(self, bounds: TakestampRange) -> None:
        self.album.min_takestamp = bounds.min
        self.album.max_takestamp = bounds.max


class SQLAlchemyTreeStore(TreeStore):
    """Album tree backed by the ``albums`` and ``photos`` tables."""

    def __init__(self, session_factory: sessionmaker, lock_timeout: float = 10.0):
        """
        Args:
            session_factory: Factory for new sessions, one per transaction
            lock_timeout: Seconds to wait for an album's in-process lock
        """
        self.session_factory = session_factory
        self.lock_timeout = lock_timeout
        self.locks = AlbumLocks()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def locked(self, album_id: int) -> Iterator[AlbumHandle]:
        with self.locks.hold(album_id, self.lock_timeout):
            session = self.session_factory()
            try:
                try:
                    album = session.query(Album).filter(
                        Album.id == album_id
                    ).with_for_update().one_or_none()
                except OperationalError as e:
                    raise ConcurrentUpdateError(
                        f"Could not lock album {album_id}: {e}", album_id
                    ) from e

                if album is None:
                    raise AlbumNotFoundError(album_id)

                yield SQLAlchemyAlbumHandle(session, album)

                try:
                    session.commit()
                except SQLAlchemyError as e:
                    raise PersistenceError(
                        f"Could not save takestamps of album {album_id}: {e}"
                    ) from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def child_ids(self, album_id: int) -> List[int]:
        with self._session() as session:
            rows = session.query(Album.id).filter(Album.parent_id == album_id).all()
            return [row.id for row in rows]

    def album_ids(self) -> List[int]:
        with self._session() as session:
            return [row.id for row in session.query(Album.id).order_by(Album.id).all()]

    def get_bounds(self, album_id: int) -> TakestampRange:
        with self._session() as session:
            row = session.query(
                Album.min_takestamp, Album.max_takestamp
            ).filter(Album.id == album_id).one_or_none()
            if row is None:
                raise AlbumNotFoundError(album_id)
            return TakestampRange(row.min_takestamp, row.max_takestamp)

    def save_bounds(self, album_id: int, bounds: TakestampRange) -> None:
        try:
            with self._session() as session:
                updated = session.query(Album).filter(Album.id == album_id).update(
                    {'min_takestamp': bounds.min, 'max_takestamp': bounds.max},
                    synchronize_session=False
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not save takestamps of album {album_id}: {e}") from e

        if not updated:
            raise AlbumNotFoundError(album_id)

    def subtree_photo_range(self, album_ids: List[int]) -> TakestampRange:
        if not album_ids:
            return TakestampRange()
        with self._session() as session:
            low, high = session.query(
                func.min(Photo.takestamp), func.max(Photo.takestamp)
            ).filter(
                Photo.album_id.in_(album_ids),
                Photo.takestamp.isnot(None)
            ).one()
            return TakestampRange(low, high)

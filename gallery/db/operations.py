"""
Content operations for the gallery.

Every mutation of album content is committed first and then reported to the
takestamp maintainer. Takestamps are a derived index: if updating them fails,
the failure is logged as a maintenance warning and the content change stands.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional

from sqlalchemy.orm import Session, sessionmaker

from ..config import get_config_value
from ..takestamps import (
    ConcurrentUpdateError,
    TakestampError,
    TakestampMaintainer,
    as_takestamp,
)
from ..takestamps.store import TakestampValue
from .models import Album, Photo

logger = logging.getLogger(__name__)


class ContentOperations:
    """Shared session and takestamp handling for content operations."""

    def __init__(self, session_factory: sessionmaker, maintainer: TakestampMaintainer,
                 lock_retries: int = 3, retry_delay: float = 0.1):
        """
        Args:
            session_factory: Factory for database sessions
            maintainer: Maintainer notified after every content change
            lock_retries: Retries when an album lock is unavailable
            retry_delay: Initial delay between retries, doubled each attempt
        """
        self.session_factory = session_factory
        self.maintainer = maintainer
        self.lock_retries = lock_retries
        self.retry_delay = retry_delay

    @classmethod
    def from_config(cls, session_factory: sessionmaker, maintainer: TakestampMaintainer,
                    config: Dict[str, Any]):
        """Build operations using the ``takestamps`` configuration section."""
        return cls(
            session_factory,
            maintainer,
            lock_retries=get_config_value(config, 'takestamps.lock_retries', 3),
            retry_delay=get_config_value(config, 'takestamps.retry_delay', 0.1),
        )

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def _sync_takestamps(self, album_id: Optional[int], takestamps: Iterable[TakestampValue],
                         adding: bool) -> bool:
        """
        Report a committed content change to the maintainer.

        A busy album is retried from the album the walk stopped at, so the
        levels already written below it are not revisited.

        Returns:
            True if the album aggregates were fully updated
        """
        if album_id is None:
            return True

        takestamps = list(takestamps)
        resume_from = album_id
        clean = True
        delay = self.retry_delay
        for attempt in range(self.lock_retries + 1):
            try:
                ok = self.maintainer.apply_change(resume_from, takestamps, adding) and clean
            except ConcurrentUpdateError as e:
                if e.album_id is not None:
                    resume_from = e.album_id
                clean = clean and not e.partial
                if attempt < self.lock_retries:
                    logger.warning(
                        f"Album {resume_from} busy, retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{self.lock_retries})"
                    )
                    time.sleep(delay)
                    delay *= 2
                    continue
                if resume_from != album_id:
                    logger.warning(
                        f"Takestamps of album {album_id} updated only below album "
                        f"{resume_from}: {e}; run 'gallery db recompute-takestamps' to repair"
                    )
                else:
                    logger.warning(f"Takestamps of album {album_id} not updated: {e}")
                return False
            except TakestampError as e:
                logger.warning(f"Takestamps of album {album_id} not updated: {e}")
                if resume_from != album_id:
                    logger.warning("Run 'gallery db recompute-takestamps' to repair")
                return False

            if not ok:
                logger.warning(
                    f"Takestamps of album {album_id} partially updated; "
                    f"run 'gallery db recompute-takestamps' to repair"
                )
            return ok

        return False

    @staticmethod
    def _require_album(session: Session, album_id: int) -> Album:
        album = session.get(Album, album_id)
        if album is None:
            raise ValueError(f"Album not found: {album_id}")
        return album

    @staticmethod
    def _require_photo(session: Session, photo_id: int) -> Photo:
        photo = session.get(Photo, photo_id)
        if photo is None:
            raise ValueError(f"Photo not found: {photo_id}")
        return photo


class PhotoOperations(ContentOperations):
    """Operations for managing photos."""

    def add_photo(self, title: str, album_id: Optional[int] = None,
                  takestamp: TakestampValue = None, star: bool = False) -> Photo:
        """
        Create a photo, optionally inside an album.

        Args:
            title: Photo title
            album_id: Owning album, or None for an unsorted photo
            takestamp: Capture time (epoch seconds or datetime), None if unknown
            star: Whether the photo is starred

        Returns:
            Photo: Created photo
        """
        takestamp = as_takestamp(takestamp)
        with self._session() as session:
            if album_id is not None:
                self._require_album(session, album_id)
            photo = Photo(title=title, album_id=album_id, takestamp=takestamp, star=star)
            session.add(photo)
            session.flush()
            logger.info(f"Created photo {photo.id} in album {album_id}")

        self._sync_takestamps(album_id, [takestamp], adding=True)
        return photo

    def remove_photo(self, photo_id: int) -> bool:
        """
        Delete a photo.

        Returns:
            True if deleted, False if not found
        """
        with self._session() as session:
            photo = session.get(Photo, photo_id)
            if photo is None:
                return False
            album_id, takestamp = photo.album_id, photo.takestamp
            session.delete(photo)

        logger.info(f"Deleted photo {photo_id} from album {album_id}")
        self._sync_takestamps(album_id, [takestamp], adding=False)
        return True

    def move_photo(self, photo_id: int, album_id: Optional[int]) -> Photo:
        """
        Move a photo to another album (None moves it to unsorted).

        Returns:
            Photo: Moved photo
        """
        with self._session() as session:
            photo = self._require_photo(session, photo_id)
            if album_id is not None:
                self._require_album(session, album_id)
            old_album_id = photo.album_id
            if old_album_id == album_id:
                return photo
            photo.album_id = album_id

        logger.info(f"Moved photo {photo_id} from album {old_album_id} to {album_id}")
        self._sync_takestamps(old_album_id, [photo.takestamp], adding=False)
        self._sync_takestamps(album_id, [photo.takestamp], adding=True)
        return photo

    def set_takestamp(self, photo_id: int, takestamp: TakestampValue) -> Photo:
        """
        Change the capture time of a photo.

        Returns:
            Photo: Updated photo
        """
        takestamp = as_takestamp(takestamp)
        with self._session() as session:
            photo = self._require_photo(session, photo_id)
            old_takestamp = photo.takestamp
            if old_takestamp == takestamp:
                return photo
            photo.takestamp = takestamp

        self._sync_takestamps(photo.album_id, [old_takestamp], adding=False)
        self._sync_takestamps(photo.album_id, [takestamp], adding=True)
        return photo

    def set_star(self, photo_id: int, star: bool) -> Photo:
        """Star or unstar a photo. Takestamps are unaffected."""
        with self._session() as session:
            photo = self._require_photo(session, photo_id)
            photo.star = star
        return photo


class AlbumOperations(ContentOperations):
    """Operations for managing the album tree."""

    def create_album(self, title: str, parent_id: Optional[int] = None,
                     description: Optional[str] = None) -> Album:
        """
        Create an empty album. An empty album has no takestamps, so the
        parent's aggregate is unaffected.
        """
        with self._session() as session:
            if parent_id is not None:
                self._require_album(session, parent_id)
            album = Album(title=title, parent_id=parent_id, description=description)
            session.add(album)
            session.flush()
            logger.info(f"Created album {album.id} under {parent_id}")
        return album

    def move_album(self, album_id: int, parent_id: Optional[int]) -> Album:
        """
        Re-parent an album together with its subtree.

        Raises:
            ValueError: if the new parent is the album itself or one of its descendants
        """
        if parent_id is not None and (
            parent_id == album_id
            or parent_id in self.maintainer.store.descendant_ids(album_id)
        ):
            raise ValueError(f"Cannot move album {album_id} below itself")

        with self._session() as session:
            album = self._require_album(session, album_id)
            if parent_id is not None:
                self._require_album(session, parent_id)
            old_parent_id = album.parent_id
            if old_parent_id == parent_id:
                return album
            album.parent_id = parent_id
            takestamps = [album.min_takestamp, album.max_takestamp]

        logger.info(f"Moved album {album_id} from {old_parent_id} to {parent_id}")
        self._sync_takestamps(old_parent_id, takestamps, adding=False)
        self._sync_takestamps(parent_id, takestamps, adding=True)
        return album

    def delete_album(self, album_id: int) -> int:
        """
        Delete an album, its sub-albums and every photo in them.

        Returns:
            Number of photos deleted
        """
        subtree = [album_id] + self.maintainer.store.descendant_ids(album_id)

        with self._session() as session:
            album = self._require_album(session, album_id)
            parent_id = album.parent_id
            takestamps = [album.min_takestamp, album.max_takestamp]

            deleted_photos = session.query(Photo).filter(
                Photo.album_id.in_(subtree)
            ).delete(synchronize_session=False)
            session.query(Album).filter(
                Album.id.in_(subtree)
            ).delete(synchronize_session=False)

        logger.info(f"Deleted album {album_id} with {len(subtree) - 1} sub-albums "
                    f"and {deleted_photos} photos")
        self._sync_takestamps(parent_id, takestamps, adding=False)
        return deleted_photos

"""
Starred photos smart album.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ..config import get_config_value
from ..db.models import Photo
from ..takestamps.store import TakestampRange

logger = logging.getLogger(__name__)


class SmartAlbum(ABC):
    """
    Album whose content is defined by a photo query.

    Smart albums sit outside the album tree, so their takestamp range is
    computed from the query on demand instead of being cached.
    """

    title: str = ''

    def __init__(self, session: Session, config: Optional[Dict[str, Any]] = None):
        self.session = session
        self.config = config or {}

    @abstractmethod
    def photos(self) -> Query:
        """Query selecting the album's photos in display order."""
        pass

    def is_public(self) -> bool:
        return False

    def takestamps(self) -> TakestampRange:
        """Min/max takestamp of the photos currently matching the album."""
        subquery = self.photos().order_by(None).subquery()
        low, high = self.session.query(
            func.min(subquery.c.takestamp), func.max(subquery.c.takestamp)
        ).one()
        return TakestampRange(low, high)

    def photo_ids(self) -> List[int]:
        return [photo.id for photo in self.photos().all()]


class StarredAlbum(SmartAlbum):
    """All starred photos, newest first."""

    title = 'starred'

    def photos(self) -> Query:
        return self.session.query(Photo).filter(
            Photo.star.is_(True)
        ).order_by(Photo.takestamp.desc(), Photo.id)

    def is_public(self) -> bool:
        return bool(get_config_value(self.config, 'smart_albums.public_starred', False))

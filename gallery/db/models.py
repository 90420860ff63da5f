"""
Database models for the gallery.

Defines the SQLAlchemy ORM models for the album tree and its photos.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    ForeignKey, Index, BigInteger
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Album(Base):
    """Album in the album tree, caching the takestamp range of its subtree."""
    __tablename__ = 'albums'

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)

    # Parent link; NULL for root albums. Not enforced as a foreign key so a
    # dangling parent can be reported instead of silently cascading.
    parent_id = Column(Integer, index=True)

    # Takestamp aggregate over every photo below this album (epoch seconds)
    min_takestamp = Column(BigInteger)
    max_takestamp = Column(BigInteger)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    photos = relationship("Photo", back_populates="album")

    def __repr__(self):
        return (f"<Album(id={self.id}, title='{self.title}', parent_id={self.parent_id}, "
                f"takestamps=[{self.min_takestamp}, {self.max_takestamp}])>")


class Photo(Base):
    """Photo, optionally filed in an album."""
    __tablename__ = 'photos'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)

    # NULL album_id means the photo is unsorted
    album_id = Column(Integer, ForeignKey('albums.id'), index=True)

    # Capture time in epoch seconds; NULL when unknown
    takestamp = Column(BigInteger, index=True)

    star = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())

    album = relationship("Album", back_populates="photos")

    __table_args__ = (
        Index('idx_photo_album_takestamp', 'album_id', 'takestamp'),
    )

    def __repr__(self):
        return f"<Photo(id={self.id}, title='{self.title}', album_id={self.album_id}, takestamp={self.takestamp})>"

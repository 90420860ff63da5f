"""
Shared fixtures for gallery tests.

Every test gets a fresh in-memory SQLite database.
"""

import pytest

from gallery.db.connection import build_session_factory, create_database_engine
from gallery.db.models import Album, Base, Photo
from gallery.db.operations import AlbumOperations, PhotoOperations
from gallery.db.store import SQLAlchemyTreeStore
from gallery.takestamps import TakestampMaintainer


@pytest.fixture
def engine():
    """In-memory database with the gallery schema"""
    engine = create_database_engine({'url': 'sqlite://'})
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return SQLAlchemyTreeStore(session_factory, lock_timeout=0.1)


@pytest.fixture
def maintainer(store):
    return TakestampMaintainer(store)


@pytest.fixture
def photo_ops(session_factory, maintainer):
    return PhotoOperations(session_factory, maintainer, lock_retries=2, retry_delay=0)


@pytest.fixture
def album_ops(session_factory, maintainer):
    return AlbumOperations(session_factory, maintainer, lock_retries=2, retry_delay=0)


@pytest.fixture
def make_album(session_factory):
    """Insert an album row directly, with whatever bounds the test wants"""
    def _make(title='album', parent=None, bounds=(None, None)):
        parent_id = parent.id if isinstance(parent, Album) else parent
        album = Album(
            title=title,
            parent_id=parent_id,
            min_takestamp=bounds[0],
            max_takestamp=bounds[1],
        )
        with session_factory.begin() as session:
            session.add(album)
        return album
    return _make


@pytest.fixture
def make_photo(session_factory):
    """Insert a photo row directly, without touching album takestamps"""
    def _make(album=None, takestamp=None, title='photo', star=False):
        album_id = album.id if isinstance(album, Album) else album
        photo = Photo(title=title, album_id=album_id, takestamp=takestamp, star=star)
        with session_factory.begin() as session:
            session.add(photo)
        return photo
    return _make


@pytest.fixture
def delete_photo(session_factory):
    """Delete a photo row directly, without touching album takestamps"""
    def _delete(photo):
        with session_factory.begin() as session:
            session.delete(session.get(Photo, photo.id))
    return _delete


@pytest.fixture
def bounds(store):
    """Stored takestamp range of an album"""
    def _bounds(album):
        return store.get_bounds(album.id)
    return _bounds

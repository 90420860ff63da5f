"""
Tests for the starred smart album.
"""

import pytest

from gallery.smart_albums import SmartAlbum, StarredAlbum
from gallery.takestamps import TakestampRange


class TestStarredAlbum:
    """Starred photos from anywhere in the gallery"""

    def test_photos(self, session_factory, make_album, make_photo):
        album = make_album()
        old = make_photo(album, 10, star=True)
        new = make_photo(None, 30, star=True)
        make_photo(album, 20, star=False)

        with session_factory() as session:
            starred = StarredAlbum(session)
            assert starred.title == 'starred'
            assert starred.photo_ids() == [new.id, old.id]
            assert starred.takestamps() == TakestampRange(10, 30)

    def test_no_starred_photos(self, session_factory, make_photo):
        make_photo(None, 10)

        with session_factory() as session:
            starred = StarredAlbum(session)
            assert starred.photo_ids() == []
            assert starred.takestamps().is_empty

    def test_visibility_from_config(self, session_factory):
        with session_factory() as session:
            assert StarredAlbum(session).is_public() is False
            assert StarredAlbum(
                session, {'smart_albums': {'public_starred': True}}
            ).is_public() is True


class TestSmartAlbumBase:

    def test_requires_photo_query(self, session_factory):
        with session_factory() as session:
            with pytest.raises(TypeError):
                SmartAlbum(session)

"""
Tests for incremental takestamp maintenance.
"""

import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from gallery.db.models import Album
from gallery.takestamps import (
    AlbumNotFoundError,
    ConcurrentUpdateError,
    TakestampRange,
    TreeStructureError,
)


class TestNoOpChanges:
    """Empty or all-null deltas leave the tree untouched."""

    @pytest.mark.parametrize("takestamps", [[], [None], [None, None]])
    @pytest.mark.parametrize("adding", [True, False])
    def test_empty_delta(self, maintainer, make_album, bounds, takestamps, adding):
        root = make_album('root', bounds=(50, 150))
        child = make_album('child', parent=root, bounds=(80, 120))

        assert maintainer.apply_change(child.id, takestamps, adding) is True

        assert bounds(child) == TakestampRange(80, 120)
        assert bounds(root) == TakestampRange(50, 150)

    def test_empty_delta_on_missing_album(self, maintainer):
        """No store access happens for an all-null delta"""
        assert maintainer.apply_change(12345, [None], adding=True) is True


class TestAdding:
    """Insertions widen bounds and propagate only while they move."""

    def test_first_photo_sets_both_bounds(self, maintainer, make_album, make_photo, bounds):
        album = make_album()
        make_photo(album, 100)

        assert maintainer.apply_change(album.id, [100], adding=True)
        assert bounds(album) == TakestampRange(100, 100)

    def test_widening_propagates_to_root(self, maintainer, make_album, make_photo, bounds):
        root = make_album('root', bounds=(50, 150))
        a = make_album('a', parent=root, bounds=(80, 120))
        b = make_album('b', parent=a, bounds=(90, 100))
        make_photo(b, 10)

        assert maintainer.apply_change(b.id, [10], adding=True)

        assert bounds(b) == TakestampRange(10, 100)
        assert bounds(a) == TakestampRange(10, 120)
        assert bounds(root) == TakestampRange(10, 150)

    def test_propagation_stops_inside_range(self, maintainer, make_album, make_photo, bounds):
        a = make_album('a', bounds=(50, 150))
        b = make_album('b', parent=a, bounds=(80, 120))
        make_photo(b, 90)

        with patch.object(maintainer.store, 'locked', wraps=maintainer.store.locked) as locked:
            assert maintainer.apply_change(b.id, [90], adding=True)

        assert bounds(b) == TakestampRange(80, 120)
        assert bounds(a) == TakestampRange(50, 150)
        locked.assert_called_once_with(b.id)

    def test_propagation_stops_at_unaffected_ancestor(self, maintainer, make_album, make_photo, bounds):
        root = make_album('root', bounds=(0, 1000))
        a = make_album('a', parent=root, bounds=(10, 20))
        b = make_album('b', parent=a, bounds=(12, 18))
        make_photo(b, 5)

        with patch.object(maintainer.store, 'locked', wraps=maintainer.store.locked) as locked:
            assert maintainer.apply_change(b.id, [5], adding=True)

        assert bounds(b) == TakestampRange(5, 18)
        assert bounds(a) == TakestampRange(5, 20)
        assert bounds(root) == TakestampRange(0, 1000)
        assert locked.call_count == 3

    def test_only_max_moves(self, maintainer, make_album, make_photo, bounds):
        root = make_album('root', bounds=(50, 150))
        a = make_album('a', parent=root, bounds=(50, 100))
        make_photo(a, 200)

        assert maintainer.apply_change(a.id, [200], adding=True)

        assert bounds(a) == TakestampRange(50, 200)
        assert bounds(root) == TakestampRange(50, 200)

    def test_sub_album_range_added(self, maintainer, make_album, bounds):
        """Attaching a sub-album passes both of its bounds"""
        parent = make_album('parent', bounds=(100, 200))
        make_album('moved', parent=parent, bounds=(20, 300))

        assert maintainer.apply_change(parent.id, [20, 300], adding=True)
        assert bounds(parent) == TakestampRange(20, 300)

    def test_null_values_are_skipped(self, maintainer, make_album, make_photo, bounds):
        album = make_album()
        make_photo(album, 70)
        make_photo(album, None)

        assert maintainer.apply_change(album.id, [None, 70, None], adding=True)
        assert bounds(album) == TakestampRange(70, 70)


class TestRemoving:
    """Removals rescan direct content only when a bound was removed."""

    def test_removing_inner_value_changes_nothing(self, maintainer, make_album, make_photo,
                                                  delete_photo, bounds):
        album = make_album(bounds=(10, 30))
        make_photo(album, 10)
        middle = make_photo(album, 20)
        make_photo(album, 30)

        delete_photo(middle)
        assert maintainer.apply_change(album.id, [20], adding=False)

        assert bounds(album) == TakestampRange(10, 30)

    def test_tie_keeps_bound(self, maintainer, make_album, make_photo, delete_photo, bounds):
        root = make_album('root', bounds=(100, 100))
        album = make_album('a', parent=root, bounds=(100, 100))
        first = make_photo(album, 100)
        make_photo(album, 100)

        delete_photo(first)
        with patch.object(maintainer.store, 'locked', wraps=maintainer.store.locked) as locked:
            assert maintainer.apply_change(album.id, [100], adding=False)

        assert bounds(album) == TakestampRange(100, 100)
        assert bounds(root) == TakestampRange(100, 100)
        locked.assert_called_once_with(album.id)

    def test_last_photo_clears_bounds(self, maintainer, make_album, make_photo, delete_photo, bounds):
        album = make_album(bounds=(42, 42))
        photo = make_photo(album, 42)

        delete_photo(photo)
        assert maintainer.apply_change(album.id, [42], adding=False)

        assert bounds(album) == TakestampRange(None, None)

    def test_rescan_uses_child_albums(self, maintainer, make_album, make_photo, delete_photo, bounds):
        album = make_album('a', bounds=(5, 500))
        make_album('child', parent=album, bounds=(40, 60))
        low = make_photo(album, 5)
        make_photo(album, 500)

        delete_photo(low)
        assert maintainer.apply_change(album.id, [5], adding=False)

        assert bounds(album) == TakestampRange(40, 500)

    def test_cascading_removal(self, maintainer, make_album, make_photo, delete_photo, bounds):
        root = make_album('root', bounds=(10, 40))
        a = make_album('a', parent=root, bounds=(10, 30))
        b = make_album('b', parent=a, bounds=(10, 10))
        make_photo(root, 40)
        make_photo(a, 30)
        b_photo = make_photo(b, 10)

        delete_photo(b_photo)
        assert maintainer.apply_change(b.id, [10], adding=False)

        assert bounds(b) == TakestampRange(None, None)
        assert bounds(a) == TakestampRange(30, 30)
        assert bounds(root) == TakestampRange(30, 40)

    def test_cascade_stops_where_bound_differs(self, maintainer, make_album, make_photo,
                                               delete_photo, bounds):
        root = make_album('root', bounds=(1, 90))
        a = make_album('a', parent=root, bounds=(10, 90))
        make_photo(root, 1)
        make_photo(a, 90)
        low = make_photo(a, 10)

        delete_photo(low)
        assert maintainer.apply_change(a.id, [10], adding=False)

        assert bounds(a) == TakestampRange(90, 90)
        assert bounds(root) == TakestampRange(1, 90)

    def test_removing_both_bounds(self, maintainer, make_album, make_photo, session_factory, bounds):
        """Detaching a sub-album removes its min and max at once"""
        parent = make_album('parent', bounds=(10, 90))
        make_photo(parent, 50)
        child = make_album('child', parent=parent, bounds=(10, 90))

        with session_factory.begin() as session:
            session.query(Album).filter_by(id=child.id).update({'parent_id': None})

        assert maintainer.apply_change(parent.id, [10, 90], adding=False)
        assert bounds(parent) == TakestampRange(50, 50)


class TestStructuralErrors:
    """Broken trees abort propagation with a structural error."""

    def test_missing_album(self, maintainer):
        with pytest.raises(AlbumNotFoundError):
            maintainer.apply_change(999, [10], adding=True)

    def test_missing_parent(self, maintainer, make_album, bounds):
        orphan = make_album('orphan', parent=999)

        with pytest.raises(AlbumNotFoundError) as excinfo:
            maintainer.apply_change(orphan.id, [10], adding=True)

        assert excinfo.value.album_id == 999
        # Levels below the break keep their update
        assert bounds(orphan) == TakestampRange(10, 10)

    def test_cycle_in_parent_chain(self, maintainer, make_album, session_factory):
        a = make_album('a')
        b = make_album('b', parent=a)
        with session_factory.begin() as session:
            session.query(Album).filter_by(id=a.id).update({'parent_id': b.id})

        with pytest.raises(TreeStructureError, match="Cycle"):
            maintainer.apply_change(a.id, [10], adding=True)


class TestPersistenceFailures:
    """A failed write is reported but does not undo other levels."""

    def test_failed_write_reported(self, maintainer, make_album, bounds):
        root = make_album('root', bounds=(50, 150))
        child = make_album('child', parent=root, bounds=(80, 120))

        real_commit = Session.commit
        calls = []

        def flaky_commit(session):
            calls.append(session)
            if len(calls) == 1:
                raise OperationalError("UPDATE albums", {}, Exception("disk I/O error"))
            return real_commit(session)

        with patch.object(Session, 'commit', autospec=True, side_effect=flaky_commit):
            assert maintainer.apply_change(child.id, [10], adding=True) is False

        assert bounds(child) == TakestampRange(80, 120)
        assert bounds(root) == TakestampRange(10, 150)


class TestBusyAlbums:
    """A lock timeout stops the walk and names the busy album."""

    def test_busy_ancestor_reported(self, maintainer, store, make_album, make_photo,
                                    delete_photo, bounds):
        root = make_album('root', bounds=(10, 90))
        child = make_album('child', parent=root, bounds=(10, 90))
        low = make_photo(child, 10)
        make_photo(child, 90)
        delete_photo(low)

        with store.locks.hold(root.id):
            with pytest.raises(ConcurrentUpdateError) as exc_info:
                maintainer.apply_change(child.id, [10], adding=False)

        assert exc_info.value.album_id == root.id
        assert exc_info.value.partial is False
        assert bounds(child) == TakestampRange(90, 90)

        # Resuming at the busy album finishes the update
        assert maintainer.apply_change(root.id, [10], adding=False) is True
        assert bounds(root) == TakestampRange(90, 90)

import pytest

from route_discovery.errors import LookupUnavailableError
from route_discovery.reviewed_store import ReviewedPlacesStore


def test_saved_and_dismissed_are_per_user(tmp_path):
    with ReviewedPlacesStore(str(tmp_path / "reviewed.db")) as store:
        store.mark_saved("u1", "p1")
        store.mark_dismissed("u1", "p2")
        store.mark_saved("u2", "p3")

        assert store.get_saved_and_dismissed("u1") == ({"p1"}, {"p2"})
        assert store.get_saved_and_dismissed("u2") == ({"p3"}, set())
        assert store.get_saved_and_dismissed("nobody") == (set(), set())


def test_remarking_moves_between_states(tmp_path):
    with ReviewedPlacesStore(str(tmp_path / "reviewed.db")) as store:
        store.mark_saved("u1", "p1")
        store.mark_dismissed("u1", "p1")
        assert store.get_saved_and_dismissed("u1") == (set(), {"p1"})

        assert store.unmark("u1", "p1") is True
        assert store.unmark("u1", "p1") is False
        assert store.get_saved_and_dismissed("u1") == (set(), set())


def test_state_persists_across_connections(tmp_path):
    db_path = str(tmp_path / "reviewed.db")
    with ReviewedPlacesStore(db_path) as store:
        store.mark_saved("u1", "p1")
    with ReviewedPlacesStore(db_path) as store:
        assert store.get_saved_and_dismissed("u1") == ({"p1"}, set())


def test_lookup_errors_are_wrapped(tmp_path):
    store = ReviewedPlacesStore(str(tmp_path / "reviewed.db"))
    store.close()
    with pytest.raises(LookupUnavailableError):
        store.get_saved_and_dismissed("u1")

import pytest

from route_discovery.filters import apply_preference_filter, filter_by_preferences, filter_reviewed
from route_discovery.models import CandidateSource, Coordinate, PlaceCandidate, PreferenceSet


def cand(name, rating=None, review_count=0, primary_type="restaurant", external_id=None):
    return PlaceCandidate(
        name=name,
        location=Coordinate(40.0, -74.0),
        source=CandidateSource.ROUTE_SEARCH,
        external_id=external_id,
        rating=rating,
        review_count=review_count,
        primary_type=primary_type,
    )


def test_min_rating_drops_low_and_keeps_unrated():
    items = [cand("low", rating=3.5), cand("high", rating=4.2), cand("unrated")]
    kept = filter_by_preferences(items, PreferenceSet(min_rating=4.0))
    assert [c.name for c in kept] == ["high", "unrated"]


def test_min_reviews_and_type():
    items = [
        cand("busy", review_count=50),
        cand("quiet", review_count=2),
        cand("park", review_count=80, primary_type="park"),
    ]
    kept, reasons = apply_preference_filter(items, PreferenceSet(min_reviews=10, type="restaurant"))
    assert [c.name for c in kept] == ["busy"]
    assert reasons == {"insufficient_reviews": 1, "type_mismatch": 1}


def test_type_all_matches_everything():
    items = [cand("a", primary_type="park"), cand("b", primary_type="bar")]
    assert len(filter_by_preferences(items, PreferenceSet(type="all"))) == 2


def test_stricter_rating_never_adds_results():
    items = [cand(str(r), rating=r) for r in (1.0, 2.5, 3.0, 3.9, 4.0, 4.5, 5.0)] + [cand("none")]
    previous = None
    for threshold in (1.0, 2.0, 3.0, 4.0, 4.5, 5.0):
        kept = {c.name for c in filter_by_preferences(items, PreferenceSet(min_rating=threshold))}
        if previous is not None:
            assert kept <= previous
        previous = kept
    assert previous == {"5.0", "none"}


def test_preference_bounds_are_validated():
    with pytest.raises(ValueError):
        PreferenceSet(min_rating=5.5)
    with pytest.raises(ValueError):
        PreferenceSet(min_reviews=-1)


def test_filter_reviewed_drops_saved_and_dismissed():
    items = [
        cand("saved", external_id="s1"),
        cand("dismissed", external_id="d1"),
        cand("fresh", external_id="f1"),
        cand("no id"),
    ]
    kept = filter_reviewed(items, {"s1"}, {"d1"})
    assert [c.name for c in kept] == ["fresh", "no id"]
    assert filter_reviewed(items, set(), set()) == items


def test_filtering_twice_changes_nothing():
    items = [
        cand("a", rating=4.5, review_count=30),
        cand("b", rating=3.0, review_count=30),
        cand("c", rating=None, review_count=12),
        cand("d", rating=4.8, review_count=3),
        cand("e", rating=4.1, review_count=40, primary_type="bar"),
    ]
    prefs = PreferenceSet(min_rating=4.0, min_reviews=10, type="restaurant")

    once = filter_by_preferences(items, prefs)
    twice = filter_by_preferences(once, prefs)

    assert [c.name for c in once] == ["a", "c"]
    assert twice == once

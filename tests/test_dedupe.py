import pytest

from route_discovery.dedupe import are_similar, deduplicate, merge_candidates
from route_discovery.models import CandidateSource, Coordinate, PhotoRef, PlaceCandidate

BASE_LAT = 52.2297
BASE_LNG = 21.0122
# ~1.11 m of latitude
LAT_PER_M = 1 / 111_195.0


def cand(name, north_m=0.0, external_id=None, **kwargs):
    kwargs.setdefault("source", CandidateSource.ROUTE_SEARCH)
    return PlaceCandidate(
        name=name,
        location=Coordinate(BASE_LAT + north_m * LAT_PER_M, BASE_LNG),
        external_id=external_id,
        **kwargs,
    )


def test_shared_external_id_merges_regardless_of_distance():
    a = cand("Cafe Nero", 0, external_id="p1", rating=4.0)
    b = cand("Caffe Nero", 500, external_id="p1", source=CandidateSource.CENTER_POINT_SEARCH)

    out = deduplicate([a, b])

    assert len(out) == 1
    assert out[0].external_id == "p1"
    assert out[0].all_sources == [CandidateSource.ROUTE_SEARCH, CandidateSource.CENTER_POINT_SEARCH]


def test_punctuation_variants_merge_when_close():
    a = cand("McDonald's", 0)
    b = cand("Mcdonalds", 5)
    assert are_similar(a, b)
    assert len(deduplicate([a, b])) == 1


def test_substring_names_need_tighter_distance():
    a = cand("Starbucks", 0)
    assert are_similar(a, cand("Starbucks Reserve", 8))
    assert not are_similar(a, cand("Starbucks Reserve", 15))


def test_far_apart_or_different_names_stay_separate():
    a = cand("Central Park", 0)
    assert not are_similar(a, cand("Central Park", 25))
    assert not are_similar(a, cand("Joe's Pizza", 3))
    assert len(deduplicate([a, cand("Joe's Pizza", 3)])) == 2


def test_clustering_is_greedy_and_seed_based():
    a = cand("Corner Shop", 0)
    b = cand("Corner Shop", 15)
    c = cand("Corner Shop", 30)

    assert len(deduplicate([a, b, c])) == 2
    assert len(deduplicate([b, a, c])) == 1


def test_deduplicate_is_idempotent():
    items = [
        cand("Bakery One", 0, external_id="x1"),
        cand("Bakery One", 1, external_id="x1"),
        cand("Green Park", 100),
        cand("green park", 104),
        cand("Museum", 400),
    ]
    once = deduplicate(items)
    assert deduplicate(once) == once
    assert len(once) == 3


def test_no_two_outputs_share_an_id():
    items = [cand("A", i, external_id=f"id{i % 3}") for i in range(9)]
    ids = [c.external_id for c in deduplicate(items)]
    assert sorted(ids) == ["id0", "id1", "id2"]


def test_merge_rules():
    photo = PhotoRef("places/p/photos/1")
    low = cand(
        "Blue Cafe",
        0,
        primary_type="cafe",
        rating=3.9,
        review_count=10,
        description="Cozy spot",
    )
    high = cand(
        "Blue Cafe",
        2,
        primary_type="coffee_shop",
        rating=4.7,
        review_count=250,
        description="Great espresso",
        photos=[photo],
        source=CandidateSource.CENTER_POINT_SEARCH,
    )
    unrated = cand("Blue Cafe", 3, primary_type="cafe", description="Cozy spot")

    merged = merge_candidates([low, high, unrated])

    assert merged.name == "Blue Cafe"
    assert merged.location == low.location
    assert merged.primary_type == "coffee_shop"
    assert merged.combined_types == ["cafe", "coffee_shop"]
    assert merged.rating == 4.7
    assert merged.review_count == 250
    assert merged.photos == [photo]
    assert merged.description == "Cozy spot, Great espresso"
    assert merged.all_sources == [CandidateSource.ROUTE_SEARCH, CandidateSource.CENTER_POINT_SEARCH]


def test_merge_single_and_empty():
    only = cand("Solo", 0)
    assert merge_candidates([only]) is only
    with pytest.raises(ValueError):
        merge_candidates([])

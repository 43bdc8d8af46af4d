from route_discovery import config
from route_discovery.models import CandidateSource, PhotoRef, ProviderResult
from route_discovery.normalize import normalize_result, normalize_results
from route_discovery.places_client import parse_places_response, photo_media_url


def test_parse_places_new_and_legacy_fields():
    response = {
        "places": [
            {
                "id": "p1",
                "displayName": {"text": "Blue Bottle"},
                "types": ["cafe", "food"],
                "primaryType": "cafe",
                "rating": 4.6,
                "userRatingCount": 120,
                "location": {"latitude": 37.78, "longitude": -122.41},
                "formattedAddress": "66 Mint St, San Francisco",
                "shortFormattedAddress": "66 Mint St",
                "editorialSummary": {"text": "Third-wave coffee."},
                "photos": [{"name": "places/p1/photos/a", "widthPx": 800, "heightPx": 600}],
            },
            {
                "place_id": "p2",
                "name": "Old Bar",
                "geometry": {"location": {"lat": 1.0, "lng": 2.0}},
                "user_ratings_total": 7,
                "vicinity": "Main St",
            },
            {"id": "p3"},
        ]
    }

    parsed = parse_places_response(response, CandidateSource.ROUTE_SEARCH)

    assert [p.place_id for p in parsed] == ["p1", "p2", "p3"]
    first = parsed[0]
    assert first.name == "Blue Bottle"
    assert first.primary_type == "cafe"
    assert first.review_count == 120
    assert first.editorial_summary == "Third-wave coffee."
    assert first.photos == (PhotoRef("places/p1/photos/a", 800, 600),)
    assert first.source is CandidateSource.ROUTE_SEARCH
    assert (parsed[1].lat, parsed[1].lng) == (1.0, 2.0)
    assert parsed[1].review_count == 7
    assert parsed[1].address == "Main St"
    assert parsed[2].name is None
    assert parsed[2].lat is None


def test_parse_empty_response():
    assert parse_places_response({}, CandidateSource.CENTER_POINT_SEARCH) == []


def test_normalize_applies_defaults():
    result = ProviderResult(
        source=CandidateSource.CENTER_POINT_SEARCH,
        place_id="p9",
        name="  ",
        types=("tourist_attraction", "point_of_interest"),
        lat=48.85,
        lng=2.35,
    )

    candidate = normalize_result(result)

    assert candidate is not None
    assert candidate.name == config.UNKNOWN_PLACE_NAME
    assert candidate.primary_type == "tourist_attraction"
    assert candidate.review_count == 0
    assert candidate.rating is None
    assert candidate.description == "tourist attraction"
    assert candidate.address == ""
    assert candidate.all_sources == [CandidateSource.CENTER_POINT_SEARCH]


def test_normalize_without_types_is_unknown():
    candidate = normalize_result(ProviderResult(source=CandidateSource.ROUTE_SEARCH, lat=1.0, lng=1.0))
    assert candidate.primary_type == config.UNKNOWN_PLACE_TYPE
    assert candidate.external_id is None


def test_normalize_drops_invalid_locations():
    results = [
        ProviderResult(source=CandidateSource.ROUTE_SEARCH, place_id="ok", lat=10.0, lng=10.0),
        ProviderResult(source=CandidateSource.ROUTE_SEARCH, place_id="nolat", lng=10.0),
        ProviderResult(source=CandidateSource.ROUTE_SEARCH, place_id="far", lat=95.0, lng=10.0),
    ]

    candidates, dropped = normalize_results(results)

    assert [c.external_id for c in candidates] == ["ok"]
    assert dropped == 2


def test_photo_media_url():
    url = photo_media_url(PhotoRef("places/p1/photos/a"), "k/ey", max_width=320)
    assert url == "https://places.googleapis.com/v1/places/p1/photos/a/media?maxWidthPx=320&key=k%2Fey"

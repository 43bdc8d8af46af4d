"""Places API (New) client: route-aware text search and nearby search."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from . import config
from .errors import SearchUnavailableError
from .http import HttpClient, RequestMetrics
from .models import CandidateSource, PhotoRef, ProviderResult

logger = logging.getLogger(__name__)

# Statuses meaning the route-aware mode is not usable for this key/project.
UNAVAILABLE_STATUSES = (400, 403, 404, 501)


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        field_mask: str = config.PLACES_FIELD_MASK,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.http = http_client
        self.field_mask = field_mask
        self.metrics = metrics

    def search_along_route(
        self,
        query: str,
        encoded_polyline: str,
        language: str = config.DEFAULT_LANGUAGE,
        max_results: int = config.ROUTE_SEARCH_MAX_RESULTS,
    ) -> List[ProviderResult]:
        """Text Search constrained to a route, following page tokens up to max_results.

        Only a failure on the first page raises; a later page failing ends
        pagination and keeps what was already collected.
        """
        results: List[ProviderResult] = []
        page_token: Optional[str] = None
        for page in range(config.PLACES_MAX_PAGES):
            remaining = max_results - len(results)
            if remaining <= 0:
                break
            body = build_route_search_body(query, encoded_polyline, language, remaining, page_token)
            try:
                resp = self._post(
                    config.PLACES_TEXT_SEARCH_URL, body, "route_search", self.field_mask + ",nextPageToken"
                )
            except SearchUnavailableError as exc:
                if page == 0:
                    raise
                logger.warning("Route search page %s failed, keeping %s places: %s", page + 1, len(results), exc)
                break
            results.extend(parse_places_response(resp, CandidateSource.ROUTE_SEARCH))
            page_token = resp.get("nextPageToken") if isinstance(resp, dict) else None
            if not page_token:
                break
        logger.debug("Route search %r returned %s places", query, len(results))
        return results[:max_results]

    def search_nearby(
        self,
        lat: float,
        lng: float,
        radius_m: int,
        type_key: str,
        max_results: int,
        language: str = config.DEFAULT_LANGUAGE,
    ) -> List[ProviderResult]:
        body = build_nearby_search_body(lat, lng, radius_m, type_key, max_results, language)
        resp = self._post(config.PLACES_NEARBY_SEARCH_URL, body, "nearby", self.field_mask)
        return parse_places_response(resp, CandidateSource.CENTER_POINT_SEARCH)[:max_results]

    def _post(self, url: str, body: Dict[str, Any], kind: str, field_mask: str) -> Dict[str, Any]:
        if self.metrics is not None:
            self.metrics.inc_network(kind)
        try:
            return self.http.post_json(url, body, field_mask)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status in UNAVAILABLE_STATUSES:
                raise SearchUnavailableError(f"{kind} unavailable (HTTP {status})", status) from exc
            raise SearchUnavailableError(f"{kind} failed (HTTP {status})", status) from exc
        except (requests.RequestException, ValueError) as exc:
            raise SearchUnavailableError(f"{kind} failed: {exc}") from exc


def build_route_search_body(
    query: str,
    encoded_polyline: str,
    language: str,
    max_results: int,
    page_token: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "textQuery": query,
        "searchAlongRouteParameters": {
            "polyline": {"encodedPolyline": encoded_polyline},
        },
        "languageCode": language,
        "pageSize": max(1, min(int(max_results), config.PLACES_MAX_PAGE_SIZE)),
    }
    if page_token:
        body["pageToken"] = page_token
    return body


def build_nearby_search_body(
    lat: float,
    lng: float,
    radius_m: int,
    type_key: Optional[str],
    max_results: int,
    language: str,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "locationRestriction": {
            "circle": {
                "center": {"latitude": lat, "longitude": lng},
                "radius": float(radius_m),
            }
        },
        "maxResultCount": max(1, min(int(max_results), config.PLACES_MAX_PAGE_SIZE)),
        "languageCode": language,
    }
    if type_key and type_key not in ("all", "point_of_interest"):
        body["includedTypes"] = [type_key]
    return body


# Adapter/mapper for Places response fields

def parse_places_response(response: Dict[str, Any], source: CandidateSource) -> List[ProviderResult]:
    """Lift provider JSON into ProviderResult records.

    Accepts both Places (New) fields and legacy field names. Malformed
    optional fields are dropped; malformed records are skipped.
    """
    if not isinstance(response, dict):
        logger.debug("Ignoring non-object Places response: %r", type(response).__name__)
        return []
    places = response.get("places") or response.get("results") or []
    parsed: List[ProviderResult] = []
    for p in places:
        if not isinstance(p, dict):
            logger.debug("Skipping malformed place record: %r", p)
            continue
        display = p.get("displayName")
        if isinstance(display, dict):
            name = display.get("text") or display.get("value")
        else:
            name = display or p.get("name")
        geometry = p.get("geometry")
        location = p.get("location") or (geometry.get("location") if isinstance(geometry, dict) else None) or {}
        if not isinstance(location, dict):
            location = {}
        summary = p.get("editorialSummary")
        if isinstance(summary, dict):
            summary = summary.get("text")
        place_id = p.get("id") or p.get("placeId") or p.get("place_id")
        types = p.get("types")
        review_count = _number(
            p.get("userRatingCount", p.get("user_ratings_total")), int, "review count", place_id
        )
        parsed.append(
            ProviderResult(
                source=source,
                place_id=place_id,
                name=name if isinstance(name, str) else None,
                types=tuple(t for t in types if isinstance(t, str)) if isinstance(types, list) else (),
                primary_type=p.get("primaryType"),
                rating=_number(p.get("rating"), float, "rating", place_id),
                review_count=review_count,
                lat=location.get("latitude", location.get("lat")),
                lng=location.get("longitude", location.get("lng", location.get("lon"))),
                address=p.get("formattedAddress") or p.get("formatted_address") or p.get("vicinity"),
                short_address=p.get("shortFormattedAddress") or p.get("vicinity"),
                editorial_summary=summary if isinstance(summary, str) else None,
                photos=tuple(_parse_photos(p.get("photos") or [])),
            )
        )
    return parsed


def _number(value: Any, cast, field_name: str, place_id: Optional[str]):
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        logger.debug("Dropping malformed %s %r for %s", field_name, value, place_id)
        return None


def _parse_photos(photos: List[Dict[str, Any]]) -> List[PhotoRef]:
    out: List[PhotoRef] = []
    for photo in photos:
        if not isinstance(photo, dict):
            continue
        name = photo.get("name") or photo.get("photo_reference")
        if not name:
            continue
        out.append(
            PhotoRef(
                name=name,
                width=photo.get("widthPx", photo.get("width")),
                height=photo.get("heightPx", photo.get("height")),
            )
        )
    return out


def photo_media_url(photo: PhotoRef, api_key: str, max_width: int = 400) -> str:
    return (
        f"{config.PLACES_MEDIA_BASE_URL}/{photo.name}/media"
        f"?maxWidthPx={int(max_width)}&key={quote(api_key, safe='')}"
    )

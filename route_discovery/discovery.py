"""Route discovery orchestration.

State machine per invocation:

    VALIDATING -> ROUTE_SEARCH -> [FALLBACK] -> NORMALIZING -> DEDUPING -> FILTERING -> DONE
                                                  (EMPTY from validation or any search state)

Collaborator failures never propagate: a failed route search falls back to
per-type nearby searches, failed nearby types are skipped, and a failed
reviewed-places lookup leaves the candidates unfiltered. Only a missing
preference set raises.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Set, Tuple, Union

from .config import DEFAULT_CONFIG, DiscoveryConfig
from .dedupe import deduplicate
from .errors import SearchUnavailableError
from .filters import apply_preference_filter, filter_reviewed
from .geo import bounding_circle, haversine_m, is_valid_location, route_center
from .http import RequestMetrics
from .models import Coordinate, PlaceCandidate, PreferenceSet, ProviderResult, RouteBoundingCircle
from .normalize import normalize_results
from .place_types import build_query, enabled_types
from .polyline import encode_polyline

logger = logging.getLogger(__name__)

_POLL_INTERVAL_S = 0.05


class SearchState(str, Enum):
    VALIDATING = "validating"
    ROUTE_SEARCH = "route_search"
    FALLBACK = "fallback"
    NORMALIZING = "normalizing"
    DEDUPING = "deduping"
    FILTERING = "filtering"
    DONE = "done"
    EMPTY = "empty"


class DiscoveryOutcome(str, Enum):
    DONE = "done"
    EMPTY_ROUTE_TOO_SHORT = "route_too_short"
    EMPTY_NO_PREFERENCES = "no_preferences_enabled"
    EMPTY_INVALID_CENTER = "invalid_center"
    EMPTY_CANCELLED = "cancelled"
    EMPTY_NO_RESULTS = "no_results"


class RouteSearcher(Protocol):
    def search_along_route(
        self, query: str, encoded_polyline: str, language: str, max_results: int
    ) -> List[ProviderResult]: ...


class NearbySearcher(Protocol):
    def search_nearby(
        self, lat: float, lng: float, radius_m: int, type_key: str, max_results: int, language: str = ...
    ) -> List[ProviderResult]: ...


class ReviewedPlacesLookup(Protocol):
    def get_saved_and_dismissed(self, user_id: str) -> Tuple[Set[str], Set[str]]: ...


@dataclass
class DiscoveryResult:
    candidates: List[PlaceCandidate]
    outcome: DiscoveryOutcome
    states: List[SearchState]
    used_fallback: bool = False
    bounding_circle: Optional[RouteBoundingCircle] = None
    summary: Dict[str, Any] = field(default_factory=dict)


class RouteSearchOrchestrator:
    def __init__(
        self,
        route_searcher: RouteSearcher,
        nearby_searcher: NearbySearcher,
        reviewed_lookup: Optional[ReviewedPlacesLookup] = None,
        discovery_config: DiscoveryConfig = DEFAULT_CONFIG,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.route_searcher = route_searcher
        self.nearby_searcher = nearby_searcher
        self.reviewed_lookup = reviewed_lookup
        self.config = discovery_config
        self.metrics = metrics

    def discover_along_route(
        self,
        route: Sequence[Coordinate],
        prefs: Union[PreferenceSet, Mapping[str, Any]],
        language: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[PlaceCandidate]:
        return self.run(route, prefs, language=language, user_id=user_id).candidates

    def run(
        self,
        route: Sequence[Coordinate],
        prefs: Union[PreferenceSet, Mapping[str, Any]],
        language: Optional[str] = None,
        user_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout_s: Optional[float] = None,
    ) -> DiscoveryResult:
        prefs = _coerce_preferences(prefs)
        language = language or self.config.language
        deadline = time.monotonic() + timeout_s if timeout_s is not None else None

        def cancelled() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return deadline is not None and time.monotonic() >= deadline

        states: List[SearchState] = []

        def enter(state: SearchState) -> None:
            logger.debug("Discovery state -> %s", state.value)
            states.append(state)

        enter(SearchState.VALIDATING)
        summary: Dict[str, Any] = {
            "route_points": len(route or []),
            "dropped_route_points": 0,
            "query": "",
            "raw_results": 0,
            "invalid_locations": 0,
            "duplicates_merged": 0,
            "preference_rejections": {},
            "reviewed_filtered": 0,
            "lookup_failed": False,
            "failed_fallback_types": [],
            "fallback_interrupted": False,
        }
        result = DiscoveryResult(candidates=[], outcome=DiscoveryOutcome.DONE, states=states, summary=summary)

        def empty(outcome: DiscoveryOutcome) -> DiscoveryResult:
            enter(SearchState.EMPTY)
            result.outcome = outcome
            result.candidates = []
            self._finish(result)
            return result

        points = [c for c in (route or []) if is_valid_location(c.latitude, c.longitude)]
        summary["dropped_route_points"] = len(route or []) - len(points)
        if summary["dropped_route_points"]:
            logger.warning("Dropped %s invalid route points", summary["dropped_route_points"])
        if not self._route_long_enough(points):
            logger.debug("Route too short for discovery (%s points)", len(points))
            return empty(DiscoveryOutcome.EMPTY_ROUTE_TOO_SHORT)

        enter(SearchState.ROUTE_SEARCH)
        query = build_query(prefs)
        summary["query"] = query
        if not query:
            logger.debug("No place types enabled; skipping search")
            return empty(DiscoveryOutcome.EMPTY_NO_PREFERENCES)
        if cancelled():
            return empty(DiscoveryOutcome.EMPTY_CANCELLED)

        result.bounding_circle = bounding_circle(points)
        raw = self._route_search(query, points, language, cancelled)
        if not raw:
            if cancelled():
                return empty(DiscoveryOutcome.EMPTY_CANCELLED)
            if raw is not None and not self.config.fallback_on_empty:
                return empty(DiscoveryOutcome.EMPTY_NO_RESULTS)
            enter(SearchState.FALLBACK)
            result.used_fallback = True
            center = route_center(points)
            if center is None:
                logger.warning("Route center is not a valid search location; giving up")
                return empty(DiscoveryOutcome.EMPTY_INVALID_CENTER)
            radius_m = self.config.fallback_radius_m or int(result.bounding_circle.radius_meters)
            raw = self._fallback_search(center, enabled_types(prefs), radius_m, language, summary, cancelled)
        summary["raw_results"] = len(raw)
        if not raw:
            return empty(DiscoveryOutcome.EMPTY_NO_RESULTS)

        enter(SearchState.NORMALIZING)
        candidates, dropped = normalize_results(raw)
        summary["invalid_locations"] = dropped

        enter(SearchState.DEDUPING)
        deduped = deduplicate(
            candidates,
            proximity_threshold_m=self.config.proximity_threshold_m,
            substring_threshold_m=self.config.substring_threshold_m,
        )
        summary["duplicates_merged"] = len(candidates) - len(deduped)

        enter(SearchState.FILTERING)
        filtered, rejection_counts = apply_preference_filter(deduped, prefs)
        summary["preference_rejections"] = rejection_counts
        if user_id and self.reviewed_lookup is not None:
            filtered = self._drop_reviewed(filtered, user_id, summary)

        enter(SearchState.DONE)
        result.candidates = filtered
        result.outcome = DiscoveryOutcome.DONE
        self._finish(result)
        return result

    def _route_long_enough(self, points: Sequence[Coordinate]) -> bool:
        if len(points) < 2:
            return False
        if len(points) == 2:
            return haversine_m(points[0], points[1]) >= self.config.min_route_distance_m
        return True

    def _route_search(
        self, query: str, points: Sequence[Coordinate], language: str, cancelled
    ) -> Optional[List[ProviderResult]]:
        """Route-aware search; None means it failed, is unavailable or was cut off.

        The search runs on a worker thread so the caller's deadline and cancel
        event are honored while it is in flight.
        """
        encoded = encode_polyline(points)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="route-search")
        future = executor.submit(
            self.route_searcher.search_along_route,
            query,
            encoded,
            language,
            self.config.route_search_max_results,
        )
        interrupted = False
        try:
            while not future.done():
                if cancelled():
                    interrupted = True
                    break
                wait([future], timeout=_POLL_INTERVAL_S)
        finally:
            executor.shutdown(wait=not interrupted, cancel_futures=True)
        if interrupted:
            logger.warning("Route search cut off by cancellation or deadline")
            return None

        try:
            results = future.result()
        except SearchUnavailableError as exc:
            logger.warning("Route search unavailable, falling back to nearby search: %s", exc)
            return None
        except Exception as exc:
            logger.warning("Route search failed, falling back to nearby search: %r", exc)
            return None
        if not results:
            logger.info("Route search returned no places for %r", query)
        return list(results or [])

    def _fallback_search(
        self,
        center: Coordinate,
        type_keys: List[str],
        radius_m: int,
        language: str,
        summary: Dict[str, Any],
        cancelled,
    ) -> List[ProviderResult]:
        """One nearby search per type on a small pool; results kept in type order."""
        if not type_keys:
            return []
        results_by_index: Dict[int, List[ProviderResult]] = {}
        failed: List[str] = []
        workers = min(self.config.fallback_max_workers, len(type_keys))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="nearby")
        futures: Dict[Future, int] = {
            executor.submit(self._search_type, center, key, radius_m, language): idx
            for idx, key in enumerate(type_keys)
        }
        pending = set(futures)
        interrupted = False
        try:
            while pending:
                if cancelled():
                    interrupted = True
                    break
                done, pending = wait(pending, timeout=_POLL_INTERVAL_S, return_when=FIRST_COMPLETED)
                for future in done:
                    idx = futures[future]
                    try:
                        results_by_index[idx] = future.result()
                    except Exception as exc:
                        logger.warning("Nearby search for %s failed: %s", type_keys[idx], exc)
                        failed.append(type_keys[idx])
        finally:
            executor.shutdown(wait=not interrupted, cancel_futures=True)

        if interrupted:
            logger.warning(
                "Fallback interrupted; keeping %s of %s type searches",
                len(results_by_index),
                len(type_keys),
            )
        summary["failed_fallback_types"] = [k for k in type_keys if k in failed]
        summary["fallback_interrupted"] = interrupted
        out: List[ProviderResult] = []
        for idx in sorted(results_by_index):
            out.extend(results_by_index[idx])
        return out

    def _search_type(self, center: Coordinate, type_key: str, radius_m: int, language: str) -> List[ProviderResult]:
        return list(
            self.nearby_searcher.search_nearby(
                center.latitude,
                center.longitude,
                radius_m,
                type_key,
                self.config.fallback_max_results_per_type,
                language=language,
            )
            or []
        )

    def _drop_reviewed(
        self, candidates: List[PlaceCandidate], user_id: str, summary: Dict[str, Any]
    ) -> List[PlaceCandidate]:
        try:
            saved, dismissed = self.reviewed_lookup.get_saved_and_dismissed(user_id)
        except Exception as exc:
            logger.warning("Reviewed-places lookup failed for %s; keeping all candidates: %s", user_id, exc)
            summary["lookup_failed"] = True
            return candidates
        kept = filter_reviewed(candidates, saved, dismissed)
        summary["reviewed_filtered"] = len(candidates) - len(kept)
        return kept

    def _finish(self, result: DiscoveryResult) -> None:
        if self.metrics is not None:
            result.summary.update(self.metrics.as_dict())
        logger.info(
            "Discovery %s: %s candidates (fallback=%s, raw=%s, merged=%s)",
            result.outcome.value,
            len(result.candidates),
            result.used_fallback,
            result.summary.get("raw_results", 0),
            result.summary.get("duplicates_merged", 0),
        )


def _coerce_preferences(prefs: Union[PreferenceSet, Mapping[str, Any], None]) -> PreferenceSet:
    if prefs is None:
        raise TypeError("A preference set is required")
    if isinstance(prefs, PreferenceSet):
        return prefs
    if isinstance(prefs, Mapping):
        return PreferenceSet.from_mapping(prefs)
    raise TypeError(f"Unsupported preference set type: {type(prefs).__name__}")


def discover_along_route(
    route: Sequence[Coordinate],
    prefs: Union[PreferenceSet, Mapping[str, Any]],
    language: Optional[str] = None,
    user_id: Optional[str] = None,
    *,
    places_client: Any,
    reviewed_lookup: Optional[ReviewedPlacesLookup] = None,
    discovery_config: DiscoveryConfig = DEFAULT_CONFIG,
) -> List[PlaceCandidate]:
    """Find deduplicated, preference-filtered places along a recorded route.

    `places_client` must provide both search_along_route and search_nearby
    (PlacesClient does). Never raises for network conditions; returns [] or
    a partial list instead.
    """
    orchestrator = RouteSearchOrchestrator(
        route_searcher=places_client,
        nearby_searcher=places_client,
        reviewed_lookup=reviewed_lookup,
        discovery_config=discovery_config,
        metrics=getattr(places_client, "metrics", None),
    )
    return orchestrator.discover_along_route(route, prefs, language=language, user_id=user_id)

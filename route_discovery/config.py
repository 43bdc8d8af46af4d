"""Project configuration.

Endpoint constants and algorithm defaults live here. Per-run tunables are
carried by DiscoveryConfig, optionally loaded from discovery_config.json.
API keys are never read here; callers pass them to the HTTP clients.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

PLACES_TEXT_SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
PLACES_NEARBY_SEARCH_URL = "https://places.googleapis.com/v1/places:searchNearby"
PLACES_MEDIA_BASE_URL = "https://places.googleapis.com/v1"
ROADS_SNAP_URL = "https://roads.googleapis.com/v1/snapToRoads"

# --- Field masks ---

PLACES_FIELD_MASK = (
    "places.id,places.displayName,places.types,places.primaryType,"
    "places.rating,places.userRatingCount,places.location,places.formattedAddress,"
    "places.shortFormattedAddress,places.photos,places.editorialSummary"
)

# --- Places API request shape ---

PLACES_MAX_PAGE_SIZE = 20
PLACES_MAX_PAGES = 3

# --- Discovery defaults ---

DEFAULT_LANGUAGE = "en"
ROUTE_SEARCH_MAX_RESULTS = 50
MIN_ROUTE_DISTANCE_M = 50.0
FALLBACK_RADIUS_M = 500
FALLBACK_MAX_RESULTS_PER_TYPE = 5
FALLBACK_MAX_WORKERS = 5
PROXIMITY_THRESHOLD_M = 20.0
SUBSTRING_THRESHOLD_M = 10.0
BOUNDING_RADIUS_MIN_M = 50
BOUNDING_RADIUS_MAX_M = 50_000
UNKNOWN_PLACE_NAME = "Unknown Place"
UNKNOWN_PLACE_TYPE = "unknown"

# --- Roads ---

SNAP_BATCH_SIZE = 100

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 3
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Outputs ---

OUTPUT_DIR = "out"
REVIEWED_DB_PATH = "reviewed.db"
DISCOVERY_CONFIG_FILENAME = "discovery_config.json"


@dataclass(frozen=True)
class DiscoveryConfig:
    language: str = DEFAULT_LANGUAGE
    route_search_max_results: int = ROUTE_SEARCH_MAX_RESULTS
    min_route_distance_m: float = MIN_ROUTE_DISTANCE_M
    # None means "use the route bounding circle radius".
    fallback_radius_m: Optional[int] = FALLBACK_RADIUS_M
    fallback_max_results_per_type: int = FALLBACK_MAX_RESULTS_PER_TYPE
    fallback_max_workers: int = FALLBACK_MAX_WORKERS
    fallback_on_empty: bool = True
    proximity_threshold_m: float = PROXIMITY_THRESHOLD_M
    substring_threshold_m: float = SUBSTRING_THRESHOLD_M
    snap_batch_size: int = SNAP_BATCH_SIZE

    def __post_init__(self) -> None:
        if self.route_search_max_results <= 0:
            raise ValueError("route_search_max_results must be positive")
        if self.fallback_max_results_per_type <= 0:
            raise ValueError("fallback_max_results_per_type must be positive")
        if self.fallback_max_workers <= 0:
            raise ValueError("fallback_max_workers must be positive")
        if self.fallback_radius_m is not None and self.fallback_radius_m <= 0:
            raise ValueError("fallback_radius_m must be positive or null")
        if self.proximity_threshold_m < 0 or self.substring_threshold_m < 0:
            raise ValueError("similarity thresholds must be non-negative")
        if self.snap_batch_size <= 0:
            raise ValueError("snap_batch_size must be positive")


DEFAULT_CONFIG = DiscoveryConfig()


def load_discovery_config(path: Optional[str] = None) -> DiscoveryConfig:
    """Load discovery tunables from a JSON file.

    Only keys present in the file override the defaults; unknown keys are
    ignored. Returns the defaults if the file does not exist.
    """
    if path is None:
        path = str(_REPO_ROOT / DISCOVERY_CONFIG_FILENAME)

    config_path = Path(path)
    if not config_path.exists():
        return DEFAULT_CONFIG

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Discovery config must be a JSON object: {config_path}")

    known = {f.name for f in fields(DiscoveryConfig)}
    overrides: Dict[str, Any] = {k: v for k, v in data.items() if k in known}
    return replace(DEFAULT_CONFIG, **overrides)

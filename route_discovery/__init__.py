"""Route-based place discovery and deduplication."""
from .config import DEFAULT_CONFIG, DiscoveryConfig, load_discovery_config
from .discovery import (
    DiscoveryOutcome,
    DiscoveryResult,
    RouteSearchOrchestrator,
    SearchState,
    discover_along_route,
)
from .errors import DiscoveryError, LookupUnavailableError, SearchUnavailableError
from .models import (
    CandidateSource,
    Coordinate,
    PhotoRef,
    PlaceCandidate,
    PreferenceSet,
    ProviderResult,
    RouteBoundingCircle,
)

__all__ = [
    "CandidateSource",
    "Coordinate",
    "DEFAULT_CONFIG",
    "DiscoveryConfig",
    "DiscoveryError",
    "DiscoveryOutcome",
    "DiscoveryResult",
    "LookupUnavailableError",
    "PhotoRef",
    "PlaceCandidate",
    "PreferenceSet",
    "ProviderResult",
    "RouteBoundingCircle",
    "RouteSearchOrchestrator",
    "SearchState",
    "SearchUnavailableError",
    "discover_along_route",
    "load_discovery_config",
]

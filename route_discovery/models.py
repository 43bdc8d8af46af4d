"""Core records shared across the discovery engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class CandidateSource(str, Enum):
    ROUTE_SEARCH = "route_search"
    CENTER_POINT_SEARCH = "center_point_search"


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float
    timestamp_millis: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Coordinate":
        lat = data.get("latitude", data.get("lat"))
        lng = data.get("longitude", data.get("lng", data.get("lon")))
        if lat is None or lng is None:
            raise ValueError(f"Coordinate is missing latitude/longitude: {dict(data)}")
        ts = data.get("timestamp_millis", data.get("timestamp"))
        return cls(float(lat), float(lng), int(ts) if ts is not None else None)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"latitude": self.latitude, "longitude": self.longitude}
        if self.timestamp_millis is not None:
            out["timestamp_millis"] = self.timestamp_millis
        return out


@dataclass(frozen=True)
class PhotoRef:
    name: str
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class RouteBoundingCircle:
    center_lat: float
    center_lng: float
    radius_meters: float


@dataclass
class PreferenceSet:
    """User place-type preferences plus optional post-filters.

    `types` maps provider type keys (e.g. "restaurant") to enabled flags.
    Insertion order of `types` is the order used for query building and the
    per-type fallback search.
    """

    types: Dict[str, bool] = field(default_factory=dict)
    min_rating: Optional[float] = None
    min_reviews: Optional[int] = None
    type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.min_rating is not None and not 1.0 <= float(self.min_rating) <= 5.0:
            raise ValueError(f"min_rating must be between 1.0 and 5.0, got {self.min_rating}")
        if self.min_reviews is not None and int(self.min_reviews) < 0:
            raise ValueError(f"min_reviews must be non-negative, got {self.min_reviews}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PreferenceSet":
        """Build from either {"types": {...}, "min_rating": ...} or a bare type->bool map."""
        if "types" in data and isinstance(data["types"], Mapping):
            return cls(
                types={str(k): bool(v) for k, v in data["types"].items()},
                min_rating=data.get("min_rating"),
                min_reviews=data.get("min_reviews"),
                type=data.get("type"),
            )
        return cls(types={str(k): bool(v) for k, v in data.items()})

    def enabled_keys(self) -> List[str]:
        return [key for key, enabled in self.types.items() if enabled]


@dataclass(frozen=True)
class ProviderResult:
    """One provider record, already lifted out of the provider's JSON shape.

    `source` tags which search mode produced it. Fields stay optional here;
    defaults are applied by the normalizer.
    """

    source: CandidateSource
    place_id: Optional[str] = None
    name: Optional[str] = None
    types: Tuple[str, ...] = ()
    primary_type: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    short_address: Optional[str] = None
    editorial_summary: Optional[str] = None
    photos: Tuple[PhotoRef, ...] = ()


@dataclass
class PlaceCandidate:
    name: str
    location: Coordinate
    source: CandidateSource
    external_id: Optional[str] = None
    types: List[str] = field(default_factory=list)
    primary_type: str = "unknown"
    rating: Optional[float] = None
    review_count: int = 0
    address: str = ""
    description: str = ""
    photos: List[PhotoRef] = field(default_factory=list)
    combined_types: Optional[List[str]] = None
    all_sources: List[CandidateSource] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.all_sources:
            self.all_sources = [self.source]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "external_id": self.external_id,
            "name": self.name,
            "types": list(self.types),
            "primary_type": self.primary_type,
            "combined_types": list(self.combined_types) if self.combined_types is not None else None,
            "rating": self.rating,
            "review_count": self.review_count,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "address": self.address,
            "description": self.description,
            "photos": [
                {"name": p.name, "width": p.width, "height": p.height} for p in self.photos
            ],
            "source": self.source.value,
            "all_sources": [s.value for s in self.all_sources],
        }

"""Map ProviderResult records into PlaceCandidate."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from . import config
from .geo import is_valid_location
from .models import Coordinate, PlaceCandidate, ProviderResult

logger = logging.getLogger(__name__)


def normalize_result(result: ProviderResult) -> Optional[PlaceCandidate]:
    """Return a candidate, or None when the record has no usable location."""
    if not is_valid_location(result.lat, result.lng):
        return None

    types = [t for t in result.types if t]
    primary_type = result.primary_type or (types[0] if types else config.UNKNOWN_PLACE_TYPE)
    name = (result.name or "").strip() or config.UNKNOWN_PLACE_NAME
    return PlaceCandidate(
        external_id=result.place_id or None,
        name=name,
        types=types,
        primary_type=primary_type,
        rating=result.rating,
        review_count=result.review_count or 0,
        location=Coordinate(float(result.lat), float(result.lng)),
        address=result.address or result.short_address or "",
        description=_description(result, types),
        photos=list(result.photos),
        source=result.source,
    )


def normalize_results(results: Iterable[ProviderResult]) -> Tuple[List[PlaceCandidate], int]:
    """Normalize a batch; returns (candidates, number dropped for invalid location)."""
    candidates: List[PlaceCandidate] = []
    dropped = 0
    for result in results:
        candidate = normalize_result(result)
        if candidate is None:
            dropped += 1
            logger.debug(
                "Dropping %r (%s): invalid location %r,%r",
                result.name,
                result.place_id,
                result.lat,
                result.lng,
            )
            continue
        candidates.append(candidate)
    return candidates, dropped


def _description(result: ProviderResult, types: List[str]) -> str:
    if result.editorial_summary:
        return result.editorial_summary
    if result.short_address:
        return result.short_address
    if types:
        return types[0].replace("_", " ")
    return ""

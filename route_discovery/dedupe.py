"""Candidate deduplication and merging.

Two phases:
  1. candidates with an external id are grouped by that id;
  2. candidates without one are clustered greedily by proximity and name.

The second phase is a single left-to-right pass, not a transitive closure.
Each cluster only compares against its seed, so if A~B and B~C but not
A~C, all three end up together only when B is the seed; with A first in
scan order the result is {A, B} and {C}.
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from . import config
from .geo import haversine_m
from .models import CandidateSource, PlaceCandidate

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^0-9a-z]+")


def _clean(name: str) -> str:
    return (name or "").strip().lower()


def _alnum(name: str) -> str:
    return _NON_ALNUM.sub("", _clean(name))


def are_similar(
    p1: PlaceCandidate,
    p2: PlaceCandidate,
    proximity_threshold_m: float = config.PROXIMITY_THRESHOLD_M,
    substring_threshold_m: float = config.SUBSTRING_THRESHOLD_M,
) -> bool:
    distance = haversine_m(p1.location, p2.location)
    if distance > proximity_threshold_m:
        return False

    name1 = _clean(p1.name)
    name2 = _clean(p2.name)
    if name1 == name2:
        return True

    alnum1 = _alnum(name1)
    alnum2 = _alnum(name2)
    if alnum1 and alnum1 == alnum2:
        return True

    if distance <= substring_threshold_m and name1 and name2:
        return name1 in name2 or name2 in name1
    return False


def merge_candidates(group: Sequence[PlaceCandidate]) -> PlaceCandidate:
    """Collapse candidates for the same physical place into one record.

    Fields come from the first member except:
      - primary_type: longest distinct category (first seen wins ties),
        with combined_types set when categories differ;
      - description: distinct descriptions joined with ", ";
      - rating/review_count: the highest-rated member that has a rating;
      - photos: that member's photos, else the first member that has any;
      - all_sources: union over the group.
    """
    if not group:
        raise ValueError("merge_candidates requires at least one candidate")
    base = group[0]
    if len(group) == 1:
        return base

    categories: List[str] = []
    combined: set = set()
    for member in group:
        if member.primary_type and member.primary_type not in categories:
            categories.append(member.primary_type)
        if member.combined_types:
            combined.update(member.combined_types)
    primary_type = base.primary_type
    for category in categories:
        if len(category) > len(primary_type):
            primary_type = category
    combined.update(categories)
    combined_types = sorted(combined) if len(combined) > 1 else base.combined_types

    descriptions: List[str] = []
    for member in group:
        if member.description and member.description not in descriptions:
            descriptions.append(member.description)

    rated: Optional[PlaceCandidate] = None
    for member in group:
        if member.rating is None:
            continue
        if rated is None or member.rating > rated.rating:
            rated = member

    photos = rated.photos if rated is not None and rated.photos else []
    if not photos:
        with_photos = next((m for m in group if m.photos), None)
        photos = with_photos.photos if with_photos is not None else []

    sources: List[CandidateSource] = []
    for member in group:
        for source in member.all_sources or [member.source]:
            if source not in sources:
                sources.append(source)

    return replace(
        base,
        primary_type=primary_type,
        combined_types=list(combined_types) if combined_types is not None else None,
        description=", ".join(descriptions),
        rating=rated.rating if rated is not None else base.rating,
        review_count=rated.review_count if rated is not None else base.review_count,
        photos=list(photos),
        all_sources=sources,
    )


def deduplicate(
    candidates: Sequence[PlaceCandidate],
    proximity_threshold_m: float = config.PROXIMITY_THRESHOLD_M,
    substring_threshold_m: float = config.SUBSTRING_THRESHOLD_M,
) -> List[PlaceCandidate]:
    by_id: Dict[str, List[PlaceCandidate]] = {}
    without_id: List[PlaceCandidate] = []
    for candidate in candidates:
        if candidate.external_id:
            by_id.setdefault(candidate.external_id, []).append(candidate)
        else:
            without_id.append(candidate)

    merged: List[PlaceCandidate] = [merge_candidates(group) for group in by_id.values()]

    assigned = [False] * len(without_id)
    for i, seed in enumerate(without_id):
        if assigned[i]:
            continue
        assigned[i] = True
        cluster = [seed]
        for j in range(i + 1, len(without_id)):
            if assigned[j]:
                continue
            if are_similar(seed, without_id[j], proximity_threshold_m, substring_threshold_m):
                assigned[j] = True
                cluster.append(without_id[j])
        merged.append(merge_candidates(cluster))

    if len(merged) != len(candidates):
        logger.debug("Deduplicated %s candidates into %s", len(candidates), len(merged))
    return merged

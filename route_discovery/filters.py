"""Preference-based and reviewed-place post filters."""
from __future__ import annotations

from typing import AbstractSet, Dict, List, Sequence, Tuple

from .models import PlaceCandidate, PreferenceSet

ANY_TYPE = "all"


def rejection_reason(candidate: PlaceCandidate, prefs: PreferenceSet) -> str:
    """Why a candidate fails the preference filters, or "" if it passes.

    Missing optional fields never reject: an unrated place passes min_rating.
    """
    if prefs.min_rating is not None and candidate.rating is not None:
        if candidate.rating < prefs.min_rating:
            return "below_min_rating"
    if prefs.min_reviews is not None and candidate.review_count < prefs.min_reviews:
        return "insufficient_reviews"
    if prefs.type and prefs.type != ANY_TYPE and candidate.primary_type != prefs.type:
        return "type_mismatch"
    return ""


def apply_preference_filter(
    candidates: Sequence[PlaceCandidate],
    prefs: PreferenceSet,
) -> Tuple[List[PlaceCandidate], Dict[str, int]]:
    kept: List[PlaceCandidate] = []
    rejection_counts: Dict[str, int] = {}
    for candidate in candidates:
        reason = rejection_reason(candidate, prefs)
        if reason:
            rejection_counts[reason] = rejection_counts.get(reason, 0) + 1
        else:
            kept.append(candidate)
    return kept, rejection_counts


def filter_by_preferences(candidates: Sequence[PlaceCandidate], prefs: PreferenceSet) -> List[PlaceCandidate]:
    kept, _ = apply_preference_filter(candidates, prefs)
    return kept


def filter_reviewed(
    candidates: Sequence[PlaceCandidate],
    saved_ids: AbstractSet[str],
    dismissed_ids: AbstractSet[str],
) -> List[PlaceCandidate]:
    """Drop candidates the user already saved or dismissed. Candidates without an id are kept."""
    reviewed = set(saved_ids) | set(dismissed_ids)
    if not reviewed:
        return list(candidates)
    return [c for c in candidates if not c.external_id or c.external_id not in reviewed]

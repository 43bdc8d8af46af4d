"""Place-type vocabulary and search-query building."""
from __future__ import annotations

from typing import Dict, List, Mapping, Tuple, Union

from .models import PreferenceSet

# Keys must match Google Places "type" values exactly.
SUPPORTED_PLACE_TYPES: Tuple[str, ...] = (
    # Food & Drink
    "restaurant", "cafe", "bar", "bakery", "meal_takeaway",
    # Shopping
    "shopping_mall", "store", "convenience_store", "department_store",
    # Entertainment & Culture
    "museum", "art_gallery", "night_club", "tourist_attraction", "zoo",
    "stadium", "concert_hall", "movie_theater", "amusement_park",
    # Health & Wellness
    "gym", "pharmacy", "hospital", "dentist", "doctor",
    # Services & Utilities
    "bank", "atm", "gas_station", "car_wash", "car_repair",
    # Outdoors & Recreation
    "park", "lodging", "campground", "natural_feature",
    # Transportation
    "subway_station", "train_station", "bus_station", "airport",
    # Education
    "school", "university", "library",
    # Religious
    "church", "mosque", "synagogue", "hindu_temple",
    # General
    "point_of_interest", "establishment",
)

_SUPPORTED = frozenset(SUPPORTED_PLACE_TYPES)

# Search terms for types whose key is not already a readable word.
SEARCH_TERMS: Dict[str, str] = {
    "meal_takeaway": "takeaway",
    "shopping_mall": "shopping mall",
    "convenience_store": "convenience store",
    "department_store": "department store",
    "art_gallery": "art gallery",
    "night_club": "night club",
    "tourist_attraction": "tourist attraction",
    "concert_hall": "concert hall",
    "movie_theater": "movie theater",
    "amusement_park": "amusement park",
    "gas_station": "gas station",
    "car_wash": "car wash",
    "car_repair": "car repair",
    "natural_feature": "natural feature",
    "subway_station": "subway station",
    "train_station": "train station",
    "bus_station": "bus station",
    "hindu_temple": "hindu temple",
    "point_of_interest": "point of interest",
}

# UI labels, mirrored from the preferences screen.
PLACE_TYPE_LABELS: Dict[str, str] = {
    "restaurant": "Restaurants",
    "cafe": "Cafés",
    "bar": "Bars",
    "bakery": "Bakeries",
    "park": "Parks",
    "museum": "Museums",
    "art_gallery": "Art Galleries",
    "night_club": "Nightlife",
    "tourist_attraction": "Attractions",
    "zoo": "Zoos",
    "shopping_mall": "Shopping",
    "stadium": "Stadiums",
    "concert_hall": "Concerts",
    "movie_theater": "Theaters",
}

DEFAULT_PREFERENCES: Dict[str, bool] = {key: True for key in PLACE_TYPE_LABELS}


def is_supported_type(key: str) -> bool:
    return key in _SUPPORTED


def search_term(key: str) -> str:
    return SEARCH_TERMS.get(key, key)


def enabled_types(prefs: Union[PreferenceSet, Mapping[str, bool]]) -> List[str]:
    """Enabled keys that belong to the provider vocabulary, in preference order.

    Unknown keys are skipped here but left untouched in the preference set.
    """
    if isinstance(prefs, PreferenceSet):
        keys = prefs.enabled_keys()
    else:
        keys = [k for k, v in prefs.items() if v]
    return [k for k in keys if is_supported_type(k)]


def build_query(prefs: Union[PreferenceSet, Mapping[str, bool]]) -> str:
    """Space-joined search terms for the enabled types ("" when nothing is enabled)."""
    return " ".join(search_term(k) for k in enabled_types(prefs))

"""
Great-circle distance and radius search over documents fetched from the store.

There is no geospatial index behind these helpers: callers fetch the candidate
set with equality filters and rank it here.
"""
from math import radians, cos, sin, atan2, sqrt
from typing import Callable, Iterable

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points in kilometers using the Haversine formula.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def coordinates(location) -> tuple[float, float] | None:
    """Return (latitude, longitude) from a stored location map, or None if it has none."""
    if not isinstance(location, dict):
        return None
    lat = location.get("latitude")
    lng = location.get("longitude")
    if lat is None or lng is None:
        return None
    try:
        return float(lat), float(lng)
    except (TypeError, ValueError):
        return None


def distance_between(a: dict, b: dict) -> float | None:
    a_coords = coordinates(a)
    b_coords = coordinates(b)
    if a_coords is None or b_coords is None:
        return None
    return haversine_km(*a_coords, *b_coords)


def within_radius(
    candidates: Iterable[dict],
    origin: dict,
    radius_km: float,
    location_of: Callable[[dict], dict | None],
    distance_field: str = "distance",
) -> list[dict]:
    """
    Keep the candidates whose location lies within radius_km of origin, nearest first.

    Candidates without coordinates are dropped. Each returned document is a copy
    carrying its computed distance under distance_field.
    """
    matches = []
    for candidate in candidates:
        distance = distance_between(origin, location_of(candidate))
        if distance is None or distance > radius_km:
            continue
        matches.append({**candidate, distance_field: distance})
    matches.sort(key=lambda match: match[distance_field])
    return matches

"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Mon Feb 02 2026
# SPDX-License-Identifier: MIT
"""

import math
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple

EARTH_RADIUS_KM = 6371.0


class Located(NamedTuple):
    item: Any
    distance: float


def distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in kilometers between two coordinates (haversine formula).
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance(km: float) -> str:
    """
    Renders meters below one kilometer, otherwise kilometers with one decimal.
    """
    if km < 1:
        return f"{math.floor(km * 1000 + 0.5)} m"
    return f"{km:.1f} km"


def coordinates_of(item: Any) -> Optional[Tuple[float, float]]:
    """
    Reads latitude/longitude from a mapping or an object. Returns None when either is missing.
    """
    if isinstance(item, dict):
        lat, lng = item.get("latitude"), item.get("longitude")
    else:
        lat, lng = getattr(item, "latitude", None), getattr(item, "longitude", None)
    if lat is None or lng is None:
        return None
    return lat, lng


def sort_by_distance(items: Iterable[Any], ref_lat: float, ref_lng: float) -> List[Located]:
    """
    Pairs each item with its distance from the reference point, nearest first.
    Items without coordinates are skipped.
    """
    located = []
    for item in items:
        coords = coordinates_of(item)
        if coords is None:
            continue
        located.append(Located(item, distance(ref_lat, ref_lng, coords[0], coords[1])))
    located.sort(key=lambda entry: entry.distance)
    return located


def filter_by_radius(items: Iterable[Any], ref_lat: float, ref_lng: float, radius_km: float) -> List[Located]:
    return [entry for entry in sort_by_distance(items, ref_lat, ref_lng) if entry.distance <= radius_km]

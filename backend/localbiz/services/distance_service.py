from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import replace

from .business_record_service import BusinessRecord, Coordinates

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinates, b: Coordinates) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def format_distance(km: float) -> str:
    if km < 1:
        return f"{round(km * 1000)} m away"
    if km < 10:
        return f"{km:.1f} km away"
    return f"{round(km)} km away"


def sort_by_proximity(records: Iterable[BusinessRecord], user_coords: Coordinates) -> list[BusinessRecord]:
    """Nearest first; records without a pinned location go last in input order.

    A library entry point for callers that want a plain proximity list. The
    HTTP search ranks with the composite score instead and does not call this.
    """
    annotated: list[BusinessRecord] = []
    for record in records:
        location = record.coordinates
        if location is None:
            annotated.append(replace(record, distance_km=None))
        else:
            annotated.append(replace(record, distance_km=distance_km(user_coords, location)))
    return sorted(annotated, key=lambda item: math.inf if item.distance_km is None else item.distance_km)

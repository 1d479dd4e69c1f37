"""Geodesic helpers for GPS pings.

Distances are great-circle (haversine) distances on a sphere of radius
6371 km. Inputs are not validated: out-of-range latitudes or longitudes
produce a number, just not a meaningful one.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

EARTH_RADIUS_KM = 6371.0
STATIONARY_THRESHOLD_KM = 0.05


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two lat/lon points."""
    # abs() keeps the result bit-for-bit symmetric in its arguments
    dlat = math.radians(abs(lat2 - lat1))
    dlon = math.radians(abs(lon2 - lon1))
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    # rounding can push a just past 1 for near-antipodal points
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_distance_km(points: Iterable[Sequence[float]]) -> float:
    """Sum of pairwise haversine distances over consecutive (lat, lon) points.

    No smoothing or outlier rejection is applied. Fewer than two points
    yields 0.
    """
    total = 0.0
    previous: Sequence[float] | None = None
    for point in points:
        if previous is not None:
            total += haversine_km(previous[0], previous[1], point[0], point[1])
        previous = point
    return total


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from point 1 to point 2, in degrees 0-360."""
    dlon = math.radians(lon2 - lon1)
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    y = math.sin(dlon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def is_stationary(distance_km: float) -> bool:
    """True when movement is under 50 metres."""
    return distance_km < STATIONARY_THRESHOLD_KM


def average_speed_kmh(distance_km: float, duration_minutes: float) -> float:
    if duration_minutes == 0:
        return 0.0
    return distance_km / (duration_minutes / 60)


def format_coordinates(lat: float, lon: float) -> str:
    return f"{lat:.6f}, {lon:.6f}"

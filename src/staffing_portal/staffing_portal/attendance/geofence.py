"""Great-circle distance and the check-out radius rule.

Spherical-Earth approximation, good enough for a radius of a few hundred meters.
"""

from __future__ import annotations

import math

from ..core.constants import CHECKOUT_RADIUS_METERS, EARTH_RADIUS_METERS
from .model import GeoPoint


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def distance_between(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_meters(a.latitude, a.longitude, b.latitude, b.longitude)


def is_within_radius(distance_m: float, radius_m: float = CHECKOUT_RADIUS_METERS) -> bool:
    """Inclusive: exactly ``radius_m`` away is still inside."""
    return distance_m <= radius_m

from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Optional

from ..config import get_settings
from ..models import Site
from ..schemas.attendance import LocationAttestation, LocationWarning

EARTH_RADIUS_METERS = 6_371_000


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * asin(sqrt(a))


def check_attested_location(
    site: Optional[Site],
    location: Optional[LocationAttestation],
    tolerance_meters: float | None = None,
) -> Optional[LocationWarning]:
    """Advisory only: a mismatch is reported, never enforced."""
    if location is None or site is None or not site.has_coordinates:
        return None
    tolerance = tolerance_meters if tolerance_meters is not None else get_settings().location_tolerance_meters
    distance = haversine_meters(site.latitude, site.longitude, location.latitude, location.longitude)
    if distance <= tolerance:
        return None
    return LocationWarning(site_id=site.id, distance_meters=round(distance, 1), tolerance_meters=tolerance)

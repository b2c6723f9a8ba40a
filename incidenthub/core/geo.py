"""Geographic calculations - Pure functions.

This module provides the GeoPoint value type and the great-circle distance
calculations used for radius filtering, nearest-neighbour lookups and
distance annotation. All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from typing import Any


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """Immutable geographic point.

    Attributes:
        longitude: Longitude in degrees, -180 to 180
        latitude: Latitude in degrees, -90 to 90
    """
    longitude: float
    latitude: float

    def __post_init__(self) -> None:
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(
                f"Invalid coordinates: longitude={self.longitude}, latitude={self.latitude}"
            )

    @property
    def coordinates(self) -> list[float]:
        """Return GeoJSON-ordered [longitude, latitude]."""
        return [self.longitude, self.latitude]

    def to_geojson(self) -> dict[str, Any]:
        """Return a GeoJSON Point dict."""
        return {"type": "Point", "coordinates": self.coordinates}


def is_valid_coordinate(latitude: Any, longitude: Any) -> bool:
    """Check that a latitude/longitude pair is numeric, finite and in range.

    Pure function. Booleans are rejected even though they are ints.
    """
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False

    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def is_fallback_center(center: GeoPoint | None) -> bool:
    """Check whether a query center means "no location supplied".

    An absent center and the (0, 0) null-island point both disable radius
    filtering.
    """
    return center is None or (center.latitude == 0 and center.longitude == 0)


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Calculate distance between two points using the Haversine formula.

    Pure function.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    delta_lat = math.radians(b.latitude - a.latitude)
    delta_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_KM * c


def radius_to_radians(radius_km: float) -> float:
    """Convert a surface radius into the angular radius of a spherical cap."""
    return radius_km / EARTH_RADIUS_KM


def latitude_band(center: GeoPoint, radius_km: float) -> tuple[float, float]:
    """Latitude range that contains every point within radius_km of center.

    Used as a coarse index pre-filter before the exact haversine check.

    Returns:
        (min_latitude, max_latitude), clamped to [-90, 90]
    """
    delta = math.degrees(radius_to_radians(radius_km))
    return (
        max(-90.0, center.latitude - delta),
        min(90.0, center.latitude + delta),
    )


def is_within_radius(point: GeoPoint, center: GeoPoint, radius_km: float) -> bool:
    """Check if a point lies within radius_km of center.

    Pure function.
    """
    return haversine_km(point, center) <= radius_km


def nearest(
    center: GeoPoint,
    candidates: list[tuple[GeoPoint, Any]],
) -> tuple[Any, float] | None:
    """Find the candidate closest to center.

    Pure function. Ties keep the first candidate.

    Args:
        center: Reference point
        candidates: (location, item) pairs

    Returns:
        (item, distance_km) for the closest candidate, or None if empty
    """
    best: tuple[Any, float] | None = None

    for location, item in candidates:
        distance = haversine_km(center, location)
        if best is None or distance < best[1]:
            best = (item, distance)

    return best

"""Great-circle distance and bounding-box helpers."""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points using the Haversine formula.

    Returns:
        Distance in kilometres, rounded to one decimal place
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
         * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c, 1)


@dataclass
class BBox:
    west: float
    south: float
    east: float
    north: float

    def as_viewbox(self) -> str:
        """Nominatim ``viewbox`` order: left,top,right,bottom."""
        return f"{self.west},{self.north},{self.east},{self.south}"


def point_bbox(lat: float, lon: float, half_size_deg: float = 1.0) -> BBox:
    return BBox(
        west=lon - half_size_deg,
        south=lat - half_size_deg,
        east=lon + half_size_deg,
        north=lat + half_size_deg
    )

"""
Nearest-feature query variants, one per feature class.

Each variant knows how to ask the geodata services for candidates around a
point and how to turn a raw candidate into a name and location. Ranking by
great-circle distance and the class cutoff are shared.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .geo_distance import haversine_km, point_bbox
from .geo_models import FeatureClass, GeoFeature
from .geodata_client import GeodataClient


@dataclass(frozen=True)
class Candidate:
    """A named point returned by an upstream query."""

    name: str
    latitude: float
    longitude: float


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class FeatureQuery(ABC):
    """Abstract base class for feature-class queries."""

    feature_class: FeatureClass
    # Candidates farther than this are treated as not found
    max_distance_km: Optional[float] = None

    @abstractmethod
    def fetch(self, client: GeodataClient, lat: float, lon: float) -> List[Dict[str, Any]]:
        """
        Ask the upstream service for raw candidates around a point.

        Raises:
            FeatureLookupError: If the upstream call fails
        """
        pass

    @abstractmethod
    def to_candidate(self, element: Dict[str, Any]) -> Optional[Candidate]:
        """Convert a raw element, or return None when it has no usable location."""
        pass

    def rank(self, lat: float, lon: float, elements: List[Dict[str, Any]]) -> Optional[GeoFeature]:
        """Pick the closest candidate within the cutoff."""
        nearest = None
        for element in elements:
            candidate = self.to_candidate(element)
            if candidate is None:
                continue
            distance = haversine_km(lat, lon, candidate.latitude, candidate.longitude)
            if self.max_distance_km is not None and distance >= self.max_distance_km:
                continue
            if nearest is None or distance < nearest.distance_km:
                nearest = GeoFeature(name=candidate.name, distance_km=distance)
        return nearest

    def find_nearest(self, client: GeodataClient, lat: float, lon: float) -> Optional[GeoFeature]:
        """
        Query upstream and return the nearest feature, or None when nothing qualifies.

        Raises:
            FeatureLookupError: If the upstream call fails
        """
        return self.rank(lat, lon, self.fetch(client, lat, lon))


class AirportQuery(FeatureQuery):
    """Airports via Nominatim keyword search."""

    feature_class = FeatureClass.AIRPORT
    max_distance_km = 200.0
    bbox_half_size_deg = 1.0

    def fetch(self, client: GeodataClient, lat: float, lon: float) -> List[Dict[str, Any]]:
        bbox = point_bbox(lat, lon, self.bbox_half_size_deg)
        places = client.search_places({
            "q": "airport",
            "limit": 10,
            "viewbox": bbox.as_viewbox(),
            "bounded": 1,
        })
        if places:
            return places

        # Nothing inside the box, try an unbounded search
        return client.search_places({
            "q": f"airport near {lat},{lon}",
            "limit": 5,
        })

    def to_candidate(self, element: Dict[str, Any]) -> Optional[Candidate]:
        lat = _as_float(element.get("lat"))
        lon = _as_float(element.get("lon"))
        if lat is None or lon is None:
            return None
        display_name = element.get("display_name") or ""
        name = display_name.split(",")[0].strip() or "Airport"
        return Candidate(name=name, latitude=lat, longitude=lon)


class HighwayQuery(FeatureQuery):
    """National and state highways via Overpass."""

    feature_class = FeatureClass.HIGHWAY
    radius_m = 100_000
    designation_pattern = re.compile(r"(NH|SH)[\s-]*(\d+)", re.IGNORECASE)

    def build_query(self, lat: float, lon: float) -> str:
        around = f"(around:{self.radius_m},{lat},{lon})"
        return (
            "[out:json][timeout:60];\n"
            "(\n"
            f'  way["highway"~"motorway|trunk|primary"]["ref"~"NH"]{around};\n'
            f'  way["highway"~"motorway|trunk|primary"]["ref"~"SH"]{around};\n'
            f'  way["highway"~"motorway|trunk"]["name"~"National Highway"]{around};\n'
            f'  way["highway"~"motorway|trunk"]["name"~"State Highway"]{around};\n'
            ");\n"
            "out center 20;"
        )

    def fetch(self, client: GeodataClient, lat: float, lon: float) -> List[Dict[str, Any]]:
        return client.run_overpass(self.build_query(lat, lon))

    def designation(self, tags: Dict[str, Any]) -> str:
        """Short highway label: ref tag, an NH/SH code from the name, the name, or "Highway"."""
        if tags.get("ref"):
            return tags["ref"]
        name = tags.get("name")
        if name:
            match = self.designation_pattern.search(name)
            if match:
                return f"{match.group(1).upper()}-{match.group(2)}"
            return name
        return "Highway"

    def to_candidate(self, element: Dict[str, Any]) -> Optional[Candidate]:
        center = element.get("center")
        bounds = element.get("bounds")
        if center:
            lat = _as_float(center.get("lat"))
            lon = _as_float(center.get("lon"))
        elif bounds:
            try:
                lat = (float(bounds["minlat"]) + float(bounds["maxlat"])) / 2
                lon = (float(bounds["minlon"]) + float(bounds["maxlon"])) / 2
            except (KeyError, TypeError, ValueError):
                return None
        else:
            return None
        if lat is None or lon is None:
            return None
        return Candidate(name=self.designation(element.get("tags") or {}),
                         latitude=lat, longitude=lon)


class RailwayStationQuery(FeatureQuery):
    """Railway stations via Overpass."""

    feature_class = FeatureClass.RAILWAY_STATION
    radius_m = 100_000

    def build_query(self, lat: float, lon: float) -> str:
        return (
            "[out:json][timeout:60];\n"
            f'node["railway"="station"](around:{self.radius_m},{lat},{lon});\n'
            "out 10;"
        )

    def fetch(self, client: GeodataClient, lat: float, lon: float) -> List[Dict[str, Any]]:
        return client.run_overpass(self.build_query(lat, lon))

    def to_candidate(self, element: Dict[str, Any]) -> Optional[Candidate]:
        lat = _as_float(element.get("lat"))
        lon = _as_float(element.get("lon"))
        if lat is None or lon is None:
            return None
        name = (element.get("tags") or {}).get("name") or "Railway Station"
        return Candidate(name=name, latitude=lat, longitude=lon)


FEATURE_QUERIES: Dict[FeatureClass, FeatureQuery] = {
    query.feature_class: query
    for query in (AirportQuery(), HighwayQuery(), RailwayStationQuery())
}

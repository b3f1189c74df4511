"""
Data models for geospatial enrichment.

Coordinates, nearest features, satellite imagery and the enriched location
aggregate are pydantic models. ``LookupOutcome`` carries a value or a
failure reason between components so the reason can be logged before the
public API collapses it to ``None``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


T = TypeVar("T")


class FeatureClass(str, Enum):
    """Categories of nearest-feature lookups."""

    AIRPORT = "airport"
    HIGHWAY = "highway"
    RAILWAY_STATION = "railway"


def is_valid_coordinate(latitude: Any, longitude: Any) -> bool:
    """
    Check that a latitude/longitude pair is usable.

    Both values must be real finite numbers (booleans are rejected) with
    latitude in [-90, 90] and longitude in [-180, 180].
    """
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


class Coordinates(BaseModel):
    """An immutable WGS84 point."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)

    @classmethod
    def try_create(cls, latitude: Any, longitude: Any) -> Optional["Coordinates"]:
        """Build coordinates, or return None when the pair is out of range."""
        if not is_valid_coordinate(latitude, longitude):
            return None
        return cls(latitude=latitude, longitude=longitude)

    def as_pair(self) -> str:
        return f"{self.latitude},{self.longitude}"


class GeoFeature(BaseModel):
    """The nearest instance of a feature class to a query point."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    distance_km: float = Field(ge=0, allow_inf_nan=False)


class SatelliteImage(BaseModel):
    """
    Satellite imagery for a point.

    Either ``content`` (with ``content_type``) for a ready-to-embed image, or
    ``url`` for a deferred reference the consumer fetches itself. Never both.
    """

    model_config = ConfigDict(frozen=True)

    content: Optional[bytes] = None
    content_type: Optional[str] = None
    url: Optional[str] = None

    @model_validator(mode="after")
    def _check_exactly_one_form(self) -> "SatelliteImage":
        if (self.content is None) == (self.url is None):
            raise ValueError("SatelliteImage needs exactly one of content or url")
        if self.content is not None and not self.content_type:
            raise ValueError("SatelliteImage content requires a content_type")
        if self.url is not None and self.content_type is not None:
            raise ValueError("A deferred SatelliteImage carries no content_type")
        return self

    @property
    def is_deferred(self) -> bool:
        return self.url is not None


class EnrichedLocation(BaseModel):
    """Everything the geospatial pipeline learned about one location reference."""

    coordinates: Optional[Coordinates] = None
    nearest_airport: Optional[GeoFeature] = None
    nearest_highway: Optional[GeoFeature] = None
    nearest_railway: Optional[GeoFeature] = None
    satellite_image: Optional[SatelliteImage] = None

    @property
    def latitude(self) -> Optional[float]:
        return self.coordinates.latitude if self.coordinates else None

    @property
    def longitude(self) -> Optional[float]:
        return self.coordinates.longitude if self.coordinates else None

    def feature(self, feature_class: FeatureClass) -> Optional[GeoFeature]:
        """Return the nearest feature stored for ``feature_class``."""
        return {
            FeatureClass.AIRPORT: self.nearest_airport,
            FeatureClass.HIGHWAY: self.nearest_highway,
            FeatureClass.RAILWAY_STATION: self.nearest_railway,
        }[feature_class]


class FailureReason(str, Enum):
    """Why a lookup produced no value."""

    INVALID_INPUT = "invalid_input"
    MISSING_CREDENTIAL = "missing_credential"
    UNRESOLVED_LINK = "unresolved_link"
    NO_MATCH = "no_match"
    NOT_FOUND = "not_found"
    UPSTREAM_FAILURE = "upstream_failure"


@dataclass(frozen=True)
class LookupOutcome(Generic[T]):
    """Result of an internal lookup: a value, or the reason there is none."""

    value: Optional[T] = None
    reason: Optional[FailureReason] = None
    detail: str = ""

    @classmethod
    def ok(cls, value: T) -> "LookupOutcome[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str = "") -> "LookupOutcome[T]":
        return cls(value=None, reason=reason, detail=detail)

    @property
    def succeeded(self) -> bool:
        return self.reason is None

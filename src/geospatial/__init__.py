"""
Geospatial module for the warehouse deck generator.

This module provides functionality for:
- Resolving map links and coordinate strings to coordinates
- Geocoding place names using Google Maps API
- Finding the nearest airport, highway and railway station
- Fetching static satellite images for coordinates
- Caching, rate limiting and retrying upstream requests

Main classes:
- CoordinateResolver: Location reference to coordinates
- NearestFeatureFinder: Nearest-feature lookups per feature class
- SatelliteImageFetcher: Static satellite imagery
- TTLCache, IntervalRateLimiter, RetryPolicy: Shared request plumbing

Errors:
- LinkResolutionError: Shortened link could not be followed
- GeocodingError: Geocoding failures
- FeatureLookupError: Upstream geodata query failures
- ImageryError: Satellite image fetch failures
- MissingCredentialError: Provider credential not configured
"""

from .coordinate_resolver import CoordinateResolver, extract_coordinates
from .feature_finder import NearestFeatureFinder
from .feature_queries import FEATURE_QUERIES, AirportQuery, FeatureQuery, HighwayQuery, RailwayStationQuery
from .geo_cache import TTLCache
from .geo_config import GeoConfig
from .geo_distance import haversine_km
from .geo_errors import (
    FeatureLookupError,
    GeocodingError,
    GeospatialError,
    ImageryError,
    LinkResolutionError,
    MissingCredentialError,
    PlaceNotFoundError,
)
from .geo_models import (
    Coordinates,
    EnrichedLocation,
    FailureReason,
    FeatureClass,
    GeoFeature,
    LookupOutcome,
    SatelliteImage,
)
from .geo_rate_limiter import IntervalRateLimiter
from .geo_retry import RetryPolicy
from .geodata_client import GeodataClient
from .place_geocoder import GooglePlaceGeocoder
from .satellite_imagery import SatelliteImageFetcher

__all__ = [
    # Main classes
    "CoordinateResolver",
    "NearestFeatureFinder",
    "SatelliteImageFetcher",
    "GooglePlaceGeocoder",
    "GeodataClient",
    "TTLCache",
    "IntervalRateLimiter",
    "RetryPolicy",
    "GeoConfig",

    # Query variants
    "FeatureQuery",
    "AirportQuery",
    "HighwayQuery",
    "RailwayStationQuery",
    "FEATURE_QUERIES",

    # Models
    "Coordinates",
    "GeoFeature",
    "SatelliteImage",
    "EnrichedLocation",
    "FeatureClass",
    "FailureReason",
    "LookupOutcome",

    # Helpers
    "extract_coordinates",
    "haversine_km",

    # Errors
    "GeospatialError",
    "LinkResolutionError",
    "GeocodingError",
    "PlaceNotFoundError",
    "FeatureLookupError",
    "ImageryError",
    "MissingCredentialError",
]

__version__ = "1.0.0"

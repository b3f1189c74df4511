"""
Custom exceptions for the geospatial module.

These exceptions describe the failure modes of link resolution, geocoding,
nearest-feature lookups and imagery fetching. They are raised inside the
pipeline and turned into lookup outcomes before reaching public callers.
"""


class GeospatialError(Exception):
    """Base class for all geospatial enrichment failures."""
    pass


class LinkResolutionError(GeospatialError):
    """Raised when a shortened map link cannot be followed to its target."""
    pass


class GeocodingError(GeospatialError):
    """Raised when the geocoding API fails or returns no results."""
    pass


class FeatureLookupError(GeospatialError):
    """Raised when an upstream geodata query fails (HTTP error, timeout, bad payload)."""
    pass


class ImageryError(GeospatialError):
    """Raised when fetching the static satellite image fails."""
    pass


class MissingCredentialError(GeospatialError):
    """Raised when an API credential required by a provider is not configured."""
    pass


class PlaceNotFoundError(GeocodingError):
    """Raised when the geocoding API answers but has no match for the query."""
    pass

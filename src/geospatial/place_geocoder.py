"""
Place-name geocoding with the Google Maps SDK.

Last-resort fallback of coordinate resolution: a place name isolated from a
map URL is cleaned and geocoded, then retried with only its locality parts
when the full name returns nothing.
"""

import re
from typing import List, Optional, Tuple

import googlemaps

from ..config.config_module import get_config
from ..config.logger_module import log_error, log_info, log_warning
from .geo_errors import GeocodingError, MissingCredentialError, PlaceNotFoundError
from .geo_models import Coordinates, FailureReason, LookupOutcome
from .geo_rate_limiter import IntervalRateLimiter


_PARENTHETICAL = re.compile(r"\([^)]*\)")


def clean_place_name(place_name: str) -> Tuple[str, List[str]]:
    """
    Strip parenthetical text and drop redundant address hierarchy.

    With more than three comma-separated parts only the first part and the
    last two are kept, e.g. ``"Warehouse 7, Plot 12, MIDC, Pune, India"``
    becomes ``"Warehouse 7, Pune, India"``.

    Returns:
        The cleaned name and the list of its non-empty parts
    """
    cleaned = _PARENTHETICAL.sub("", place_name).strip()
    parts = [part.strip() for part in cleaned.split(",") if part.strip()]
    if len(parts) > 3:
        cleaned = ", ".join([parts[0]] + parts[-2:])
    return cleaned, parts


class GooglePlaceGeocoder:
    """Geocodes free-text place names through the Google Geocoding API."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 rate_limiter: Optional[IntervalRateLimiter] = None,
                 request_timeout: float = 10.0,
                 client: Optional[googlemaps.Client] = None):
        """
        Initialize the geocoder.

        Args:
            api_key: Google Maps API key (loaded from config if not provided)
            rate_limiter: Limiter shared with other Google Maps Platform calls
            request_timeout: Per-request timeout in seconds
            client: Pre-built googlemaps client
        """
        self.api_key = api_key if api_key is not None else get_config("GOOGLE_MAPS_API_KEY")
        self._rate_limiter = rate_limiter
        self._gmaps = client

        if self._gmaps is None and self.api_key:
            try:
                self._gmaps = googlemaps.Client(
                    key=self.api_key,
                    timeout=request_timeout,
                    retry_over_query_limit=False,
                )
            except ValueError as e:
                # googlemaps rejects malformed keys up front
                log_error(f"Invalid Google Maps API key, geocoding disabled: {e}")
                self._gmaps = None

    @property
    def is_configured(self) -> bool:
        return self._gmaps is not None

    def geocode(self, query: str) -> Coordinates:
        """
        Geocode a query string to coordinates.

        Args:
            query: Free-text place query

        Returns:
            Coordinates of the best match

        Raises:
            MissingCredentialError: If no API key is configured
            GeocodingError: On API failure, empty or out-of-range results
        """
        if not self.is_configured:
            raise MissingCredentialError("GOOGLE_MAPS_API_KEY not configured")
        if not query or not query.strip():
            raise GeocodingError("Empty place name provided")

        if self._rate_limiter is not None:
            self._rate_limiter.throttle()

        try:
            results = self._gmaps.geocode(query)
        except googlemaps.exceptions.Timeout:
            raise GeocodingError(f"Timeout geocoding '{query}'")
        except (googlemaps.exceptions.ApiError,
                googlemaps.exceptions.HTTPError,
                googlemaps.exceptions.TransportError) as e:
            raise GeocodingError(f"API error geocoding '{query}': {e}")

        if not results:
            raise PlaceNotFoundError(f"No coordinates found for '{query}'")

        try:
            location = results[0]["geometry"]["location"]
            coordinates = Coordinates.try_create(location["lat"], location["lng"])
        except (KeyError, IndexError, TypeError) as e:
            raise GeocodingError(f"Malformed geocoding result for '{query}': {e}")

        if coordinates is None:
            raise GeocodingError(f"Out-of-range coordinates returned for '{query}'")
        return coordinates

    def _try_geocode(self, query: str) -> Tuple[Optional[Coordinates], bool]:
        """Geocode, returning (coordinates, api_failed) instead of raising on empty results."""
        try:
            return self.geocode(query), False
        except PlaceNotFoundError:
            return None, False
        except GeocodingError as e:
            log_error("Failed to geocode place name", place_name=query, error=str(e))
            return None, True

    def geocode_place_name(self, place_name: str) -> LookupOutcome[Coordinates]:
        """
        Geocode a place name isolated from a map link.

        Args:
            place_name: Raw place name

        Returns:
            Outcome holding the coordinates, or the reason there are none
        """
        if not self.is_configured:
            log_error("GOOGLE_MAPS_API_KEY not configured, cannot geocode", place_name=place_name)
            return LookupOutcome.failed(FailureReason.MISSING_CREDENTIAL, "GOOGLE_MAPS_API_KEY")

        cleaned, parts = clean_place_name(place_name)
        if not cleaned:
            return LookupOutcome.failed(FailureReason.INVALID_INPUT, "empty place name")

        coordinates, api_failed = self._try_geocode(cleaned)
        if coordinates is not None:
            log_info("Geocoded successfully", place_name=cleaned,
                     latitude=coordinates.latitude, longitude=coordinates.longitude)
            return LookupOutcome.ok(coordinates)
        if api_failed:
            return LookupOutcome.failed(FailureReason.UPSTREAM_FAILURE, cleaned)

        # Retry with just the locality (last two or three parts)
        if len(parts) > 1:
            location_only = ", ".join(parts[-3:])
            coordinates, api_failed = self._try_geocode(location_only)
            if coordinates is not None:
                log_info("Geocoded (location-only) successfully", place_name=location_only,
                         latitude=coordinates.latitude, longitude=coordinates.longitude)
                return LookupOutcome.ok(coordinates)
            if api_failed:
                return LookupOutcome.failed(FailureReason.UPSTREAM_FAILURE, location_only)

        log_warning("Could not geocode place name", place_name=place_name)
        return LookupOutcome.failed(FailureReason.NOT_FOUND, cleaned)

"""
Satellite imagery from the Google Static Maps API.

Produces either the image bytes (ready to embed in a slide) or a deferred
URL reference. Single attempt only: the slide renderer already shows a
placeholder when imagery is missing.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from ..config.config_module import get_config
from ..config.logger_module import log_error, log_info
from .geo_config import STATIC_MAPS_BASE_URL
from .geo_errors import ImageryError
from .geo_models import FailureReason, LookupOutcome, SatelliteImage, is_valid_coordinate
from .geo_rate_limiter import IntervalRateLimiter


class SatelliteImageFetcher:
    """Fetches static satellite imagery centred on a point with a marker."""

    # Anything smaller is an error payload rather than an image
    MIN_IMAGE_BYTES = 100

    def __init__(self,
                 api_key: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 rate_limiter: Optional[IntervalRateLimiter] = None,
                 base_url: str = STATIC_MAPS_BASE_URL,
                 zoom: int = 14,
                 size: str = "480x455",
                 scale: int = 2,
                 map_type: str = "hybrid",
                 marker_color: str = "red",
                 request_timeout: float = 30.0):
        """
        Initialize the fetcher.

        Args:
            api_key: Google Maps API key (loaded from config if not provided)
            session: HTTP session
            rate_limiter: Limiter shared with other Google Maps Platform calls
            base_url: Static Maps endpoint
            zoom: Default zoom level (1-20)
            size: Image size before scaling, e.g. "480x455"
            scale: 2 for high-DPI output with larger labels
            map_type: "satellite", or "hybrid" for imagery with road labels
            marker_color: Colour of the centre marker
            request_timeout: HTTP request timeout in seconds
        """
        self.api_key = api_key if api_key is not None else get_config("GOOGLE_MAPS_API_KEY")
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter
        self.base_url = base_url
        self.zoom = zoom
        self.size = size
        self.scale = scale
        self.map_type = map_type
        self.marker_color = marker_color
        self.request_timeout = request_timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_params(self, lat: float, lng: float, zoom: int) -> Dict[str, Any]:
        return {
            "center": f"{lat},{lng}",
            "zoom": str(zoom),
            "size": self.size,
            "scale": str(self.scale),
            "maptype": self.map_type,
            "markers": f"size:mid|color:{self.marker_color}|{lat},{lng}",
            "key": self.api_key,
        }

    def _check_request(self, lat: float, lng: float, zoom: int) -> Optional[LookupOutcome[SatelliteImage]]:
        """Return a failed outcome when no call should be made, else None."""
        if not is_valid_coordinate(lat, lng):
            return LookupOutcome.failed(FailureReason.INVALID_INPUT, f"{lat},{lng}")
        if not (1 <= zoom <= 20):
            return LookupOutcome.failed(FailureReason.INVALID_INPUT, f"zoom {zoom}")
        if not self.is_configured:
            log_error("GOOGLE_MAPS_API_KEY not configured, skipping satellite image", lat=lat, lng=lng)
            return LookupOutcome.failed(FailureReason.MISSING_CREDENTIAL, "GOOGLE_MAPS_API_KEY")
        return None

    def build_static_map_url(self, lat: float, lng: float, zoom: Optional[int] = None) -> str:
        """
        Build the Static Maps URL for a point.

        Args:
            lat: Latitude
            lng: Longitude
            zoom: Zoom level (defaults to the configured zoom)

        Returns:
            Complete URL for the static map
        """
        params = self._build_params(lat, lng, zoom or self.zoom)
        return f"{self.base_url}?{urlencode(params)}"

    def _download(self, lat: float, lng: float, zoom: int) -> SatelliteImage:
        """
        Download the image bytes.

        Raises:
            ImageryError: On HTTP errors or a non-image response
        """
        if self._rate_limiter is not None:
            self._rate_limiter.throttle()

        try:
            response = self._session.get(
                self.base_url,
                params=self._build_params(lat, lng, zoom),
                timeout=self.request_timeout,
            )
        except requests.exceptions.Timeout:
            raise ImageryError("Request timeout")
        except requests.exceptions.RequestException as e:
            raise ImageryError(f"Request failed: {e}")

        if response.status_code != 200:
            raise ImageryError(f"HTTP {response.status_code} fetching satellite image")

        content = response.content
        if not content or len(content) < self.MIN_IMAGE_BYTES:
            raise ImageryError(
                f"Response too small ({len(content or b'')} bytes), likely an error message"
            )

        content_type = (response.headers.get("Content-Type") or "image/png").split(";")[0].strip()
        if not content_type.startswith("image/"):
            raise ImageryError(f"Unexpected content type {content_type}")

        return SatelliteImage(content=content, content_type=content_type)

    def fetch_outcome(self, lat: float, lng: float, zoom: Optional[int] = None) -> LookupOutcome[SatelliteImage]:
        """Fetch the image bytes, keeping the failure reason."""
        zoom = zoom or self.zoom
        rejected = self._check_request(lat, lng, zoom)
        if rejected is not None:
            return rejected

        log_info("Fetching satellite image", lat=lat, lng=lng, zoom=zoom)
        try:
            image = self._download(lat, lng, zoom)
        except ImageryError as e:
            log_error("Error fetching satellite image", lat=lat, lng=lng, zoom=zoom, error=str(e))
            return LookupOutcome.failed(FailureReason.UPSTREAM_FAILURE, str(e))

        log_info("Satellite image downloaded", lat=lat, lng=lng, size_bytes=len(image.content))
        return LookupOutcome.ok(image)

    def fetch(self, lat: float, lng: float, zoom: Optional[int] = None) -> Optional[SatelliteImage]:
        """
        Fetch satellite image bytes for a point.

        Returns:
            Image with content and content type, or None on any failure
        """
        return self.fetch_outcome(lat, lng, zoom).value

    def reference(self, lat: float, lng: float, zoom: Optional[int] = None) -> Optional[SatelliteImage]:
        """
        Build a deferred image reference without any network call.

        Returns:
            Image carrying only a URL, or None for invalid input or missing key
        """
        zoom = zoom or self.zoom
        if self._check_request(lat, lng, zoom) is not None:
            return None
        return SatelliteImage(url=self.build_static_map_url(lat, lng, zoom))

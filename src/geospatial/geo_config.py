"""
Runtime settings for the geospatial module.

Defines endpoints, timeouts, rate limits, cache and retry tuning for the
enrichment pipeline, loaded from environment variables.
"""

from dataclasses import dataclass
from typing import Optional

from ..config.config_module import get_config, get_typed_config


NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
OVERPASS_INTERPRETER_URL = "https://overpass-api.de/api/interpreter"
STATIC_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api/staticmap"


@dataclass
class GeoConfig:
    """Configuration for geospatial enrichment."""

    # Google Maps Platform key (geocoding and static imagery)
    google_maps_api_key: Optional[str] = None

    # Sent to OpenStreetMap services, which require an identifying agent
    user_agent: str = "WarehouseDeckGenerator/1.0"

    # Upstream endpoints
    nominatim_url: str = NOMINATIM_SEARCH_URL
    overpass_url: str = OVERPASS_INTERPRETER_URL
    static_maps_url: str = STATIC_MAPS_BASE_URL

    # Timeouts in seconds
    redirect_timeout: float = 60.0
    geocode_timeout: float = 10.0
    nominatim_timeout: float = 15.0
    overpass_timeout: float = 90.0
    imagery_timeout: float = 30.0

    # Shortened links
    max_redirects: int = 10

    # Minimum spacing between upstream calls, per provider family
    osm_requests_per_second: float = 1.0
    google_requests_per_second: float = 5.0

    # Nearest-feature cache
    cache_ttl_seconds: float = 300.0
    negative_cache_ttl_seconds: Optional[float] = None
    cache_max_entries: int = 10_000
    cache_key_precision: Optional[int] = None

    # Retries for nearest-feature lookups
    max_retries: int = 2
    retry_base_delay: float = 1.0

    # Satellite imagery: zoom 14 shows roughly a 5 km radius
    satellite_zoom: int = 14
    satellite_size: str = "480x455"
    satellite_scale: int = 2
    satellite_map_type: str = "hybrid"
    satellite_marker_color: str = "red"

    def __post_init__(self):
        """Validate configuration values."""
        if self.google_maps_api_key is not None and not self.google_maps_api_key.strip():
            self.google_maps_api_key = None

        for name in ("osm_requests_per_second", "google_requests_per_second"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")

        if self.negative_cache_ttl_seconds is not None and self.negative_cache_ttl_seconds <= 0:
            raise ValueError("negative_cache_ttl_seconds must be positive when set")

        if self.cache_max_entries < 1:
            raise ValueError("cache_max_entries must be at least 1")

        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")

        if self.retry_base_delay < 0:
            raise ValueError("retry_base_delay cannot be negative")

        if not (1 <= self.satellite_zoom <= 20):
            raise ValueError(f"Invalid satellite_zoom: {self.satellite_zoom}")

        if self.satellite_scale not in (1, 2):
            raise ValueError("satellite_scale must be 1 or 2")

        if self.satellite_map_type not in ("satellite", "hybrid"):
            raise ValueError(
                f"Invalid satellite_map_type: {self.satellite_map_type}. "
                f"Must be 'satellite' or 'hybrid'"
            )

        if self.max_redirects < 1:
            raise ValueError("max_redirects must be at least 1")

    @property
    def has_google_credentials(self) -> bool:
        return bool(self.google_maps_api_key)

    @classmethod
    def from_env(cls) -> "GeoConfig":
        """
        Build settings from environment variables.

        Raises:
            ConfigError: If a numeric variable cannot be parsed
            ValueError: If a parsed value is out of range
        """
        defaults = cls()
        return cls(
            google_maps_api_key=get_config("GOOGLE_MAPS_API_KEY"),
            user_agent=get_config("GEO_USER_AGENT", defaults.user_agent),
            osm_requests_per_second=get_typed_config(
                "GEO_OSM_REQUESTS_PER_SECOND", defaults.osm_requests_per_second, float),
            google_requests_per_second=get_typed_config(
                "GEO_GOOGLE_REQUESTS_PER_SECOND", defaults.google_requests_per_second, float),
            cache_ttl_seconds=get_typed_config(
                "GEO_CACHE_TTL_SECONDS", defaults.cache_ttl_seconds, float),
            negative_cache_ttl_seconds=get_typed_config(
                "GEO_NEGATIVE_CACHE_TTL_SECONDS", None, float),
            cache_max_entries=get_typed_config(
                "GEO_CACHE_MAX_ENTRIES", defaults.cache_max_entries, int),
            cache_key_precision=get_typed_config(
                "GEO_CACHE_KEY_PRECISION", None, int),
            max_retries=get_typed_config(
                "GEO_MAX_RETRIES", defaults.max_retries, int),
            retry_base_delay=get_typed_config(
                "GEO_RETRY_BASE_DELAY_SECONDS", defaults.retry_base_delay, float),
            satellite_zoom=get_typed_config(
                "GEO_SATELLITE_ZOOM", defaults.satellite_zoom, int),
            max_redirects=get_typed_config(
                "GEO_MAX_REDIRECTS", defaults.max_redirects, int),
        )

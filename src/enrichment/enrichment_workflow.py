"""
High-level orchestrator for warehouse geospatial enrichment.

Resolves each warehouse's location reference, then runs the nearest-feature
and satellite lookups concurrently, providing a simple interface for the
slide renderer. Nothing here raises: every failure becomes a null field.
"""

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config.logger_module import log_error, log_info, log_warning
from ..geospatial.coordinate_resolver import CoordinateResolver
from ..geospatial.feature_finder import NearestFeatureFinder
from ..geospatial.geo_cache import TTLCache
from ..geospatial.geo_config import GeoConfig
from ..geospatial.geo_models import Coordinates, EnrichedLocation, FeatureClass
from ..geospatial.geo_rate_limiter import IntervalRateLimiter
from ..geospatial.geo_retry import RetryPolicy
from ..geospatial.geodata_client import GeodataClient
from ..geospatial.place_geocoder import GooglePlaceGeocoder
from ..geospatial.satellite_imagery import SatelliteImageFetcher
from .photo_parser import parse_photos


SATELLITE_MODES = ("embed", "reference")


class WarehouseRecord(BaseModel):
    """A warehouse row as read from the store; unknown columns are kept as-is."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[Union[int, str]] = None
    google_location: Optional[Any] = Field(default=None, alias="googleLocation")
    photos: Optional[Any] = None


class EnrichedWarehouse(BaseModel):
    """A warehouse record plus everything the renderer needs beyond it."""

    record: WarehouseRecord
    geospatial: EnrichedLocation = Field(default_factory=EnrichedLocation)
    valid_photos: List[str] = Field(default_factory=list)


class EnrichmentOrchestrator:
    """
    Coordinates coordinate resolution, nearest-feature lookups and imagery.

    Owns one cache, one retry policy and one rate limiter per provider family,
    and injects them into the components it builds. Any component can be
    passed in instead.
    """

    def __init__(self,
                 config: Optional[GeoConfig] = None,
                 resolver: Optional[CoordinateResolver] = None,
                 feature_finder: Optional[NearestFeatureFinder] = None,
                 satellite_fetcher: Optional[SatelliteImageFetcher] = None,
                 session: Optional[requests.Session] = None,
                 satellite_mode: str = "embed",
                 max_workers: int = 4):
        """
        Initialize the orchestrator.

        Args:
            config: Geospatial settings (loaded from the environment if None)
            resolver: Coordinate resolver
            feature_finder: Nearest-feature finder
            satellite_fetcher: Satellite image fetcher
            session: HTTP session shared by the default components
            satellite_mode: "embed" for image bytes, "reference" for a URL
            max_workers: Threads used for the per-location lookups
        """
        if satellite_mode not in SATELLITE_MODES:
            raise ValueError(
                f"Invalid satellite_mode: {satellite_mode}. Must be 'embed' or 'reference'"
            )

        self.config = config or GeoConfig.from_env()
        self.satellite_mode = satellite_mode
        self.max_workers = max_workers

        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": self.config.user_agent})
        self._session = session

        self.osm_rate_limiter = IntervalRateLimiter(
            self.config.osm_requests_per_second, name="openstreetmap")
        self.google_rate_limiter = IntervalRateLimiter(
            self.config.google_requests_per_second, name="google-maps")
        self.cache = TTLCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.cache_max_entries,
            key_precision=self.config.cache_key_precision,
            name="nearest-features",
        )
        self.retry_policy = RetryPolicy(
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
        )

        # An empty key disables the Google paths without re-reading the environment
        api_key = self.config.google_maps_api_key or ""

        self.resolver = resolver or CoordinateResolver(
            geocoder=GooglePlaceGeocoder(
                api_key=api_key,
                rate_limiter=self.google_rate_limiter,
                request_timeout=self.config.geocode_timeout,
            ),
            session=self._session,
            redirect_timeout=self.config.redirect_timeout,
            max_redirects=self.config.max_redirects,
        )
        self.feature_finder = feature_finder or NearestFeatureFinder(
            client=GeodataClient(
                session=self._session,
                rate_limiter=self.osm_rate_limiter,
                nominatim_url=self.config.nominatim_url,
                overpass_url=self.config.overpass_url,
                user_agent=self.config.user_agent,
                nominatim_timeout=self.config.nominatim_timeout,
                overpass_timeout=self.config.overpass_timeout,
            ),
            cache=self.cache,
            retry_policy=self.retry_policy,
            negative_ttl_seconds=self.config.negative_cache_ttl_seconds,
        )
        self.satellite_fetcher = satellite_fetcher or SatelliteImageFetcher(
            api_key=api_key,
            session=self._session,
            rate_limiter=self.google_rate_limiter,
            base_url=self.config.static_maps_url,
            zoom=self.config.satellite_zoom,
            size=self.config.satellite_size,
            scale=self.config.satellite_scale,
            map_type=self.config.satellite_map_type,
            marker_color=self.config.satellite_marker_color,
            request_timeout=self.config.imagery_timeout,
        )

        log_info(
            f"EnrichmentOrchestrator initialized "
            f"(satellite_mode={satellite_mode}, max_workers={max_workers}, "
            f"google_credentials={self.config.has_google_credentials})"
        )

    def _satellite_image(self, coordinates: Coordinates):
        if self.satellite_mode == "reference":
            return self.satellite_fetcher.reference(coordinates.latitude, coordinates.longitude)
        return self.satellite_fetcher.fetch(coordinates.latitude, coordinates.longitude)

    def _lookups(self, coordinates: Coordinates) -> Dict[str, Callable[[], Any]]:
        lat, lon = coordinates.latitude, coordinates.longitude
        finder = self.feature_finder
        return {
            "nearest_airport": lambda: finder.find_nearest(FeatureClass.AIRPORT, lat, lon),
            "nearest_highway": lambda: finder.find_nearest(FeatureClass.HIGHWAY, lat, lon),
            "nearest_railway": lambda: finder.find_nearest(FeatureClass.RAILWAY_STATION, lat, lon),
            "satellite_image": lambda: self._satellite_image(coordinates),
        }

    def enrich_location(self, location: Any) -> EnrichedLocation:
        """
        Enrich a single location reference.

        Workflow:
        1. Resolve the reference to coordinates
        2. If resolved, run the airport, highway, railway and satellite
           lookups in parallel and wait for all of them
        3. Merge the results; failed lookups stay None

        Args:
            location: Map URL, shortened link or "lat,lon" string

        Returns:
            Enriched location (all fields None when nothing could be resolved)
        """
        try:
            coordinates = self.resolver.resolve(location)
        except Exception as e:
            log_error("Error extracting coordinates", location=location, error=str(e))
            return EnrichedLocation()

        if coordinates is None:
            return EnrichedLocation()

        results: Dict[str, Any] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {name: pool.submit(task) for name, task in self._lookups(coordinates).items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as e:
                    # One failed lookup never discards the others
                    log_error(f"Lookup {name} failed", latitude=coordinates.latitude,
                              longitude=coordinates.longitude, error=str(e))
                    results[name] = None

        return EnrichedLocation(coordinates=coordinates, **results)

    def enrich_warehouse(self, warehouse: Union[WarehouseRecord, Mapping[str, Any]]) -> EnrichedWarehouse:
        """
        Enrich a warehouse record with geospatial data and parsed photos.

        Args:
            warehouse: Warehouse record or a mapping with ``googleLocation``

        Returns:
            Enriched warehouse

        Raises:
            pydantic.ValidationError: If ``warehouse`` is not a record-like mapping
        """
        record = (warehouse if isinstance(warehouse, WarehouseRecord)
                  else WarehouseRecord.model_validate(dict(warehouse)))

        log_info("Starting geospatial enrichment", warehouse_id=record.id,
                 google_location=record.google_location)

        geospatial = self.enrich_location(record.google_location)

        if geospatial.coordinates is None:
            log_warning("No coordinates found for warehouse", warehouse_id=record.id,
                        google_location=record.google_location)
        else:
            log_info("Geospatial data fetched", warehouse_id=record.id,
                     has_airport=geospatial.nearest_airport is not None,
                     has_highway=geospatial.nearest_highway is not None,
                     has_railway=geospatial.nearest_railway is not None,
                     has_satellite_image=geospatial.satellite_image is not None)

        return EnrichedWarehouse(
            record=record,
            geospatial=geospatial,
            valid_photos=parse_photos(record.photos),
        )

    def enrich_warehouses(self,
                          warehouses: Iterable[Union[WarehouseRecord, Mapping[str, Any]]]
                          ) -> List[EnrichedWarehouse]:
        """
        Enrich a batch of warehouses in order.

        Processes warehouses sequentially so the shared rate limiters pace the
        whole batch. Invalid entries are skipped with a warning.

        Args:
            warehouses: Warehouse records or mappings

        Returns:
            Enriched warehouses, in input order
        """
        warehouses = list(warehouses)
        if not warehouses:
            log_warning("enrich_warehouses called with empty list")
            return []

        log_info(f"Starting batch enrichment of {len(warehouses)} warehouses")

        results = []
        for i, warehouse in enumerate(warehouses, 1):
            if not isinstance(warehouse, (WarehouseRecord, Mapping)):
                log_warning(f"Skipping invalid entry {i}: {warehouse!r}")
                continue
            try:
                results.append(self.enrich_warehouse(warehouse))
            except ValidationError as e:
                log_warning(f"Skipping invalid entry {i}", error=str(e))

        log_info(
            f"Batch enrichment complete: {len(results)} enriched, "
            f"{len(warehouses) - len(results)} skipped"
        )
        return results

    def get_stats(self) -> Dict[str, Any]:
        """
        Get combined statistics from the cache and rate limiters.

        Returns:
            Dictionary with cache and rate limit statistics
        """
        return {
            "cache": self.feature_finder.cache.get_cache_stats(),
            "rate_limit": {
                "openstreetmap": self.osm_rate_limiter.get_status(),
                "google_maps": self.google_rate_limiter.get_status(),
            },
        }

    def close(self) -> None:
        """Release the HTTP session."""
        self._session.close()

    def __enter__(self) -> "EnrichmentOrchestrator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

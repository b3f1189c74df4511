"""
Nearest-feature lookups with caching and retries.

For a point and a feature class, finds the nearest airport, highway or
railway station. Results, including "not found", are cached so repeated
queries for the same point never hit upstream twice within the TTL.
"""

from typing import Dict, Optional

from ..config.logger_module import log_info, log_warning
from .feature_queries import FEATURE_QUERIES, FeatureQuery
from .geo_cache import TTLCache
from .geo_models import FailureReason, FeatureClass, GeoFeature, LookupOutcome, is_valid_coordinate
from .geo_retry import RetryPolicy
from .geodata_client import GeodataClient


class NearestFeatureFinder:
    """
    Dispatches nearest-feature lookups to the query variant for each class.

    The cache, the retry policy and the client (which owns the rate limiter)
    are injected so they can be shared across lookups and replaced in tests.
    """

    def __init__(self,
                 client: Optional[GeodataClient] = None,
                 cache: Optional[TTLCache] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 queries: Optional[Dict[FeatureClass, FeatureQuery]] = None,
                 negative_ttl_seconds: Optional[float] = None):
        """
        Initialize the finder.

        Args:
            client: Geodata client
            cache: Result cache shared by all feature classes
            retry_policy: Retry policy for upstream queries
            queries: Query variant per feature class
            negative_ttl_seconds: TTL for cached "not found" results
                (defaults to the cache TTL)
        """
        self.client = client or GeodataClient()
        self.cache = cache if cache is not None else TTLCache()
        self.retry_policy = retry_policy or RetryPolicy()
        self.queries = queries or FEATURE_QUERIES
        self.negative_ttl_seconds = negative_ttl_seconds

    def lookup(self, feature_class: FeatureClass, lat: float, lon: float) -> LookupOutcome[GeoFeature]:
        """
        Find the nearest feature, keeping the failure reason.

        Args:
            feature_class: Feature class to look for
            lat: Latitude of the query point
            lon: Longitude of the query point

        Returns:
            Outcome with the nearest feature, or the reason there is none
        """
        if not is_valid_coordinate(lat, lon):
            return LookupOutcome.failed(FailureReason.INVALID_INPUT, f"{lat},{lon}")

        query = self.queries[feature_class]
        cache_key = self.cache.make_key(feature_class.value, lat, lon)

        hit, cached = self.cache.lookup(cache_key)
        if hit:
            if cached is None:
                return LookupOutcome.failed(FailureReason.NOT_FOUND, "cached")
            return LookupOutcome.ok(cached)

        outcome = self.retry_policy.run(
            lambda: query.find_nearest(self.client, lat, lon),
            description=f"nearest {feature_class.value} lookup",
        )

        if not outcome.succeeded:
            # Failures are negative-cached as well
            self.cache.set(cache_key, None, ttl=self.negative_ttl_seconds)
            return outcome

        feature = outcome.value
        if feature is None:
            log_warning(f"No {feature_class.value} found near coordinates", lat=lat, lon=lon)
            self.cache.set(cache_key, None, ttl=self.negative_ttl_seconds)
            return LookupOutcome.failed(FailureReason.NOT_FOUND)

        log_info(f"Found nearest {feature_class.value}", lat=lat, lon=lon,
                 name=feature.name, distance_km=feature.distance_km)
        self.cache.set(cache_key, feature)
        return LookupOutcome.ok(feature)

    def find_nearest(self, feature_class: FeatureClass, lat: float, lon: float) -> Optional[GeoFeature]:
        """Find the nearest feature of ``feature_class``, or None."""
        return self.lookup(feature_class, lat, lon).value

    def find_nearest_airport(self, lat: float, lon: float) -> Optional[GeoFeature]:
        return self.find_nearest(FeatureClass.AIRPORT, lat, lon)

    def find_nearest_highway(self, lat: float, lon: float) -> Optional[GeoFeature]:
        return self.find_nearest(FeatureClass.HIGHWAY, lat, lon)

    def find_nearest_railway_station(self, lat: float, lon: float) -> Optional[GeoFeature]:
        return self.find_nearest(FeatureClass.RAILWAY_STATION, lat, lon)

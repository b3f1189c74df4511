"""
HTTP client for the OpenStreetMap geodata services.

Wraps a requests session for Nominatim searches and Overpass queries. Every
request first passes the shared rate limiter; any failure is raised as
``FeatureLookupError`` so the retry policy can act on it.
"""

from typing import Any, Dict, List, Optional

import requests

from ..config.logger_module import log_debug
from .geo_config import NOMINATIM_SEARCH_URL, OVERPASS_INTERPRETER_URL
from .geo_errors import FeatureLookupError
from .geo_rate_limiter import IntervalRateLimiter


class GeodataClient:
    """Rate-limited access to Nominatim and Overpass."""

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 rate_limiter: Optional[IntervalRateLimiter] = None,
                 nominatim_url: str = NOMINATIM_SEARCH_URL,
                 overpass_url: str = OVERPASS_INTERPRETER_URL,
                 user_agent: str = "WarehouseDeckGenerator/1.0",
                 nominatim_timeout: float = 15.0,
                 overpass_timeout: float = 90.0):
        """
        Initialize the client.

        Args:
            session: HTTP session (a new one is created if not provided)
            rate_limiter: Limiter shared by every OpenStreetMap request
            nominatim_url: Nominatim search endpoint
            overpass_url: Overpass interpreter endpoint
            user_agent: Identifying User-Agent required by the OSM usage policy
            nominatim_timeout: Timeout in seconds for Nominatim searches
            overpass_timeout: Timeout in seconds for Overpass queries
        """
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter or IntervalRateLimiter(1.0, name="openstreetmap")
        self.nominatim_url = nominatim_url
        self.overpass_url = overpass_url
        self.user_agent = user_agent
        self.nominatim_timeout = nominatim_timeout
        self.overpass_timeout = overpass_timeout

    @property
    def rate_limiter(self) -> IntervalRateLimiter:
        return self._rate_limiter

    def _parse_json(self, response: requests.Response, service: str) -> Any:
        if response.status_code != 200:
            raise FeatureLookupError(f"HTTP {response.status_code} from {service}")
        try:
            return response.json()
        except ValueError as e:
            raise FeatureLookupError(f"Invalid JSON from {service}: {e}")

    def search_places(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Run a Nominatim search.

        Args:
            params: Query parameters; ``format=json`` is always added

        Returns:
            List of place dictionaries (possibly empty)

        Raises:
            FeatureLookupError: On HTTP errors, timeouts or malformed payloads
        """
        self._rate_limiter.throttle()
        log_debug("Nominatim search", params=params)

        try:
            response = self._session.get(
                self.nominatim_url,
                params={**params, "format": "json"},
                headers={"User-Agent": self.user_agent},
                timeout=self.nominatim_timeout,
            )
        except requests.exceptions.Timeout:
            raise FeatureLookupError("Nominatim request timeout")
        except requests.exceptions.RequestException as e:
            raise FeatureLookupError(f"Nominatim request failed: {e}")

        data = self._parse_json(response, "Nominatim")
        if not isinstance(data, list):
            raise FeatureLookupError("Unexpected Nominatim payload")
        return data

    def run_overpass(self, query: str) -> List[Dict[str, Any]]:
        """
        Run an Overpass QL query.

        Args:
            query: Overpass QL text

        Returns:
            The ``elements`` list of the response (possibly empty)

        Raises:
            FeatureLookupError: On HTTP errors, timeouts or malformed payloads
        """
        self._rate_limiter.throttle()
        log_debug("Overpass query", query=query)

        try:
            response = self._session.post(
                self.overpass_url,
                data=query.encode("utf-8"),
                headers={"Content-Type": "text/plain", "User-Agent": self.user_agent},
                timeout=self.overpass_timeout,
            )
        except requests.exceptions.Timeout:
            raise FeatureLookupError("Overpass request timeout")
        except requests.exceptions.RequestException as e:
            raise FeatureLookupError(f"Overpass request failed: {e}")

        data = self._parse_json(response, "Overpass")
        if not isinstance(data, dict):
            raise FeatureLookupError("Unexpected Overpass payload")
        return data.get("elements") or []

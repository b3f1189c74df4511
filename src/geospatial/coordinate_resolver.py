"""
Coordinate resolution for warehouse location references.

A location reference may be a shortened map link, a full map URL carrying
coordinates in one of several encodings, a bare "lat,lon" pair, or a map URL
naming a place. Resolution tries, in order:

1. Follow shortened links (goo.gl, maps.app.goo.gl, share.google)
2. Extract coordinates with a fixed, precision-ordered list of patterns
3. Geocode a place name isolated from the URL
"""

import html
import re
from typing import List, NamedTuple, Optional, Pattern, Tuple
from urllib.parse import unquote, unquote_plus

import requests

from ..config.logger_module import log_debug, log_info, log_warning
from .geo_errors import LinkResolutionError
from .geo_models import Coordinates, FailureReason, LookupOutcome
from .place_geocoder import GooglePlaceGeocoder


SHORT_LINK_PATTERN = re.compile(r"goo\.gl|share\.google", re.IGNORECASE)

# Pin markers come first: they locate the place itself, while "@" and the
# other forms usually describe the map viewport.
COORDINATE_PATTERNS: List[Tuple[str, Pattern]] = [
    ("pin", re.compile(r"!3d(-?\d+\.\d+)!4d(-?\d+\.\d+)")),
    ("viewport", re.compile(r"@(-?\d+\.\d+),(-?\d+\.\d+)")),
    ("search", re.compile(r"/search/(-?\d+\.?\d*),\s*\+?(-?\d+\.?\d*)")),
    ("ll", re.compile(r"ll=(-?\d+\.\d+),(-?\d+\.\d+)")),
    ("query", re.compile(r"q=(-?\d+\.\d+),(-?\d+\.\d+)")),
    ("bare", re.compile(r"^(-?\d+\.?\d*),\s*(-?\d+\.?\d*)$")),
    ("place_path", re.compile(r"/place/(-?\d+\.?\d*),(-?\d+\.?\d*)")),
]

_DMS_PART = r"(\d+(?:\.\d+)?)\s*°\s*(\d+(?:\.\d+)?)\s*['′]\s*(\d+(?:\.\d+)?)\s*(?:\"|″|'')\s*"
DMS_PATTERN = re.compile(
    _DMS_PART + r"([NS])[\s,+]*" + _DMS_PART + r"([EW])",
    re.IGNORECASE,
)

NUMERIC_PAIR_PATTERN = re.compile(r"^-?\d+\.?\d*,\s*-?\d+\.?\d*$")
PLACE_NAME_PATTERN = re.compile(r"/place/([^/?#]+)")
QUERY_PARAM_PATTERN = re.compile(r"[?&]q=([^&#]+)")

_META_REFRESH = re.compile(
    r"<meta[^>]+http-equiv=[\"']refresh[\"'][^>]+content=[\"'][^\"']*url=([^\"']+)[\"']",
    re.IGNORECASE,
)
_CANONICAL_LINK = re.compile(
    r"<link[^>]+rel=[\"']canonical[\"'][^>]+href=[\"']([^\"']+)[\"']",
    re.IGNORECASE,
)
_EMBEDDED_PLACE_URL = re.compile(
    r"https://www\.google\.com/maps/place/[^\"'\s]+@-?[\d.]+,-?[\d.]+[^\"'\s]*"
)

# Google serves a consent page instead of redirecting bare HTTP clients
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cookie": "CONSENT=YES+; SOCS=CAISNQgDEitib3FfaWRlbnRpdHlmcm9udGVuZHVpXzIwMjMwMTEwLjA3X3AxLjhmGgJlbiACGgYIgLCjnwY;",
    "DNT": "1",
}


class PatternMatch(NamedTuple):
    """Raw coordinates found in a location string and the pattern that found them."""

    pattern: str
    latitude: float
    longitude: float


def dms_to_decimal(degrees: float, minutes: float, seconds: float, hemisphere: str) -> float:
    """Convert degrees/minutes/seconds to decimal degrees, negative for S and W."""
    value = degrees + minutes / 60 + seconds / 3600
    return -value if hemisphere.upper() in ("S", "W") else value


def extract_coordinates(text: str) -> Optional[PatternMatch]:
    """
    Apply the coordinate patterns in priority order.

    Args:
        text: Location string or resolved URL

    Returns:
        The first match, or None. Values are not range-checked here.
    """
    decoded = unquote(text)
    for name, pattern in COORDINATE_PATTERNS:
        match = pattern.search(text) or pattern.search(decoded)
        if match:
            return PatternMatch(name, float(match.group(1)), float(match.group(2)))

    dms = DMS_PATTERN.search(decoded)
    if dms:
        lat = dms_to_decimal(float(dms.group(1)), float(dms.group(2)), float(dms.group(3)), dms.group(4))
        lon = dms_to_decimal(float(dms.group(5)), float(dms.group(6)), float(dms.group(7)), dms.group(8))
        return PatternMatch("dms", lat, lon)

    return None


def extract_place_name(text: str) -> Optional[str]:
    """
    Isolate a place name from a map URL for geocoding.

    Looks at a ``/place/<name>`` path segment first, then a ``q=`` parameter
    whose value is not a numeric pair.
    """
    match = PLACE_NAME_PATTERN.search(text)
    if match:
        name = unquote_plus(match.group(1)).strip()
        if name:
            return name

    match = QUERY_PARAM_PATTERN.search(text)
    if match:
        name = unquote_plus(match.group(1)).strip()
        if name and not NUMERIC_PAIR_PATTERN.match(name):
            return name

    return None


def find_url_in_html(page: str) -> Optional[str]:
    """
    Find a better target URL inside a search-page body.

    Later signals win: an embedded place URL beats a canonical link, which
    beats a meta refresh.
    """
    found = None
    for pattern in (_META_REFRESH, _CANONICAL_LINK):
        match = pattern.search(page)
        if match:
            found = html.unescape(match.group(1))

    match = _EMBEDDED_PLACE_URL.search(page)
    if match:
        found = html.unescape(match.group(0))

    return found


class CoordinateResolver:
    """Turns location references into coordinates without ever raising."""

    def __init__(self,
                 geocoder: Optional[GooglePlaceGeocoder] = None,
                 session: Optional[requests.Session] = None,
                 redirect_timeout: float = 60.0,
                 max_redirects: int = 10):
        """
        Initialize the resolver.

        Args:
            geocoder: Place-name geocoder used as the last resort
            session: HTTP session used to follow shortened links
            redirect_timeout: Timeout in seconds for link resolution
            max_redirects: Maximum redirect hops when following a link
        """
        self._geocoder = geocoder
        self._session = session or requests.Session()
        self._session.max_redirects = max_redirects
        self.redirect_timeout = redirect_timeout

    @staticmethod
    def is_short_link(text: str) -> bool:
        return bool(SHORT_LINK_PATTERN.search(text))

    def _resolve_short_link(self, url: str) -> str:
        """
        Follow a shortened link to the URL it points at.

        Raises:
            LinkResolutionError: On network errors, HTTP errors or redirect loops
        """
        try:
            response = self._session.get(
                url,
                headers=BROWSER_HEADERS,
                timeout=self.redirect_timeout,
                allow_redirects=True,
            )
        except requests.exceptions.TooManyRedirects as e:
            raise LinkResolutionError(f"Too many redirects: {e}")
        except requests.exceptions.RequestException as e:
            raise LinkResolutionError(f"Request failed: {e}")

        if response.status_code >= 400:
            raise LinkResolutionError(f"HTTP {response.status_code} resolving link")

        final_url = response.url or url
        log_info("Resolved shortened URL", original_url=url, final_url=final_url)

        # A generic search page carries the real place URL in its body
        if "google.com/maps?q=" in final_url or "google.com/search" in final_url:
            found = find_url_in_html(response.text or "")
            if found:
                log_info("Found place URL in page body", final_url=found)
                final_url = found

        return final_url

    def resolve_outcome(self, location: object) -> LookupOutcome[Coordinates]:
        """
        Resolve a location reference, keeping the failure reason.

        Args:
            location: Location reference; anything but a non-blank string is unresolvable

        Returns:
            Outcome with coordinates, or the reason resolution failed
        """
        if not isinstance(location, str) or not location.strip():
            return LookupOutcome.failed(FailureReason.INVALID_INPUT, "empty or non-string location")

        text = location.strip()
        log_debug("Processing location reference", location=text)

        if self.is_short_link(text):
            try:
                text = self._resolve_short_link(text)
            except LinkResolutionError as e:
                log_warning("Failed to resolve shortened URL", url=location, error=str(e))
                return LookupOutcome.failed(FailureReason.UNRESOLVED_LINK, str(e))

        match = extract_coordinates(text)
        if match is not None:
            coordinates = Coordinates.try_create(match.latitude, match.longitude)
            if coordinates is None:
                log_debug("Coordinates out of range", pattern=match.pattern,
                          latitude=match.latitude, longitude=match.longitude)
                return LookupOutcome.failed(FailureReason.INVALID_INPUT,
                                            f"{match.pattern} coordinates out of range")
            log_info(f"Found coordinates in {match.pattern} format",
                     latitude=coordinates.latitude, longitude=coordinates.longitude)
            return LookupOutcome.ok(coordinates)

        place_name = extract_place_name(text)
        if place_name and self._geocoder is not None:
            log_warning("No coordinates in URL, falling back to geocoding", place_name=place_name)
            return self._geocoder.geocode_place_name(place_name)

        log_warning("No coordinates found in location reference", location=location)
        return LookupOutcome.failed(FailureReason.NO_MATCH, text)

    def resolve(self, location: object) -> Optional[Coordinates]:
        """
        Resolve a location reference to coordinates.

        Args:
            location: Map URL, shortened link or "lat,lon" string

        Returns:
            Coordinates, or None if the reference cannot be resolved
        """
        return self.resolve_outcome(location).value

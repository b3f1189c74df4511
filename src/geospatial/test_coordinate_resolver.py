"""
Tests for coordinate resolution and place-name geocoding.

HTTP sessions and the googlemaps client are mocked; nothing here touches
the network.
"""

from unittest.mock import Mock, patch

import googlemaps
import pytest
import requests

from .coordinate_resolver import (
    CoordinateResolver,
    dms_to_decimal,
    extract_coordinates,
    extract_place_name,
    find_url_in_html,
)
from .geo_errors import GeocodingError, MissingCredentialError, PlaceNotFoundError
from .geo_models import Coordinates, FailureReason
from .place_geocoder import GooglePlaceGeocoder, clean_place_name


def geocode_result(lat, lng):
    return [{"geometry": {"location": {"lat": lat, "lng": lng}}}]


@pytest.fixture
def mock_session():
    session = Mock(spec=requests.Session)
    return session


@pytest.fixture
def mock_gmaps():
    return Mock()


@pytest.fixture
def geocoder(mock_gmaps):
    return GooglePlaceGeocoder(api_key="AIzaTestKey", client=mock_gmaps)


def redirect_response(url, text="", status_code=200):
    response = Mock()
    response.url = url
    response.text = text
    response.status_code = status_code
    return response


# ==================== PATTERN EXTRACTION ====================

class TestExtractCoordinates:
    """Test each coordinate encoding and their priority."""

    @pytest.mark.parametrize("text,pattern,lat,lon", [
        ("https://www.google.com/maps/place/X/@28.7041,77.1025,17z", "viewport", 28.7041, 77.1025),
        ("https://www.google.com/maps/place/X/data=!3m1!4b1!4m5!3m4!8m2!3d19.076!4d72.8777",
         "pin", 19.076, 72.8777),
        ("https://www.google.com/maps/search/28.6139,+77.2090", "search", 28.6139, 77.2090),
        ("https://maps.google.com/maps?ll=12.9716,77.5946&z=12", "ll", 12.9716, 77.5946),
        ("https://maps.google.com/?q=22.5726,88.3639", "query", 22.5726, 88.3639),
        ("28.7041, 77.1025", "bare", 28.7041, 77.1025),
        ("-33.8688,151.2093", "bare", -33.8688, 151.2093),
        ("https://www.google.com/maps/place/17.385,78.4867", "place_path", 17.385, 78.4867),
    ])
    def test_patterns(self, text, pattern, lat, lon):
        match = extract_coordinates(text)
        assert match is not None
        assert match.pattern == pattern
        assert match.latitude == pytest.approx(lat)
        assert match.longitude == pytest.approx(lon)

    def test_pin_beats_viewport(self):
        url = ("https://www.google.com/maps/place/Warehouse/@28.70,77.10,15z/"
               "data=!3m1!4b1!4m6!3m5!1s0x0:0x0!8m2!3d28.7123!4d77.1234")
        match = extract_coordinates(url)
        assert match.pattern == "pin"
        assert (match.latitude, match.longitude) == (28.7123, 77.1234)

    def test_plain_dms(self):
        match = extract_coordinates("28°42'14.8\"N 77°06'09.0\"E")
        assert match.pattern == "dms"
        assert match.latitude == pytest.approx(28.70411, abs=1e-4)
        assert match.longitude == pytest.approx(77.1025, abs=1e-4)

    def test_url_encoded_dms(self):
        url = "https://www.google.com/maps/place/28%C2%B042'14.8%22N+77%C2%B006'09.0%22E/"
        match = extract_coordinates(url)
        assert match.pattern == "dms"
        assert match.latitude == pytest.approx(28.70411, abs=1e-4)

    @pytest.mark.parametrize("text,pattern", [
        ("https://maps.google.com/?q=28.7041%2C77.1025", "query"),
        ("https://maps.google.com/maps?ll=28.7041%2c77.1025&z=12", "ll"),
    ])
    def test_percent_encoded_comma(self, text, pattern):
        match = extract_coordinates(text)
        assert match is not None
        assert match.pattern == pattern
        assert match.latitude == pytest.approx(28.7041)
        assert match.longitude == pytest.approx(77.1025)

    def test_southern_western_dms(self):
        match = extract_coordinates("33°52'07.7\"S 151°12'33.5\"E")
        assert match.latitude < 0
        assert match.longitude > 0

    def test_no_match(self):
        assert extract_coordinates("invalid string") is None

    def test_out_of_range_still_matches(self):
        """Range checking is the resolver's job, not the extractor's."""
        match = extract_coordinates("91.0,200.0")
        assert (match.latitude, match.longitude) == (91.0, 200.0)

    def test_dms_to_decimal(self):
        assert dms_to_decimal(10, 30, 0, "N") == 10.5
        assert dms_to_decimal(10, 30, 0, "w") == -10.5


class TestExtractPlaceName:
    """Test place-name isolation from map URLs."""

    def test_place_path(self):
        url = "https://www.google.com/maps/place/Bhiwandi+Logistics+Park,+Thane/data=abc"
        assert extract_place_name(url) == "Bhiwandi Logistics Park, Thane"

    def test_query_param(self):
        assert extract_place_name("https://maps.google.com/?q=Chakan%20MIDC&hl=en") == "Chakan MIDC"

    def test_numeric_query_ignored(self):
        assert extract_place_name("https://maps.google.com/?q=91.0,200.0") is None

    def test_free_text_not_extracted(self):
        assert extract_place_name("Warehouse near Pune") is None


class TestFindUrlInHtml:
    """Test place URL discovery in search-page bodies."""

    def test_embedded_place_url_wins(self):
        page = (
            '<meta http-equiv="refresh" content="0;url=https://www.google.com/maps?q=x">'
            '<link rel="canonical" href="https://www.google.com/maps/search/x">'
            '<a href="https://www.google.com/maps/place/Depot/@28.5,77.3,15z/data=!4m2">'
        )
        assert find_url_in_html(page) == "https://www.google.com/maps/place/Depot/@28.5,77.3,15z/data=!4m2"

    def test_canonical_beats_meta_refresh(self):
        page = (
            '<meta http-equiv="refresh" content="0;url=https://a.example/">'
            '<link rel="canonical" href="https://b.example/?a=1&amp;b=2">'
        )
        assert find_url_in_html(page) == "https://b.example/?a=1&b=2"

    def test_nothing_found(self):
        assert find_url_in_html("<html></html>") is None


# ==================== RESOLVER ====================

class TestCoordinateResolver:
    """Test end-to-end resolution of location references."""

    def test_viewport_url(self, mock_session):
        resolver = CoordinateResolver(session=mock_session)
        coords = resolver.resolve("https://www.google.com/maps/place/X/@28.7041,77.1025,17z")

        assert coords == Coordinates(latitude=28.7041, longitude=77.1025)
        mock_session.get.assert_not_called()

    def test_bare_pair(self, mock_session):
        resolver = CoordinateResolver(session=mock_session)
        assert resolver.resolve("  19.0760, 72.8777 ") == Coordinates(latitude=19.076, longitude=72.8777)

    @pytest.mark.parametrize("location", [None, 42, "", "   ", ["28.7,77.1"]])
    def test_invalid_input(self, mock_session, geocoder, mock_gmaps, location):
        resolver = CoordinateResolver(geocoder=geocoder, session=mock_session)
        outcome = resolver.resolve_outcome(location)

        assert outcome.reason == FailureReason.INVALID_INPUT
        assert resolver.resolve(location) is None
        mock_session.get.assert_not_called()
        mock_gmaps.geocode.assert_not_called()

    def test_unparseable_string(self, mock_session, geocoder, mock_gmaps):
        resolver = CoordinateResolver(geocoder=geocoder, session=mock_session)
        outcome = resolver.resolve_outcome("invalid string")

        assert outcome.reason == FailureReason.NO_MATCH
        mock_session.get.assert_not_called()
        mock_gmaps.geocode.assert_not_called()

    def test_encoded_query_pair_resolves(self, mock_session, geocoder, mock_gmaps):
        resolver = CoordinateResolver(geocoder=geocoder, session=mock_session)

        coords = resolver.resolve("https://maps.google.com/?q=28.7041%2C77.1025")

        assert coords == Coordinates(latitude=28.7041, longitude=77.1025)
        mock_gmaps.geocode.assert_not_called()

    def test_out_of_range_is_terminal(self, mock_session, geocoder, mock_gmaps):
        resolver = CoordinateResolver(geocoder=geocoder, session=mock_session)
        outcome = resolver.resolve_outcome("91.0,200.0")

        assert outcome.reason == FailureReason.INVALID_INPUT
        mock_gmaps.geocode.assert_not_called()

    def test_short_link_followed(self, mock_session):
        mock_session.get.return_value = redirect_response(
            "https://www.google.com/maps/place/Depot/@28.5355,77.391,15z")
        resolver = CoordinateResolver(session=mock_session, redirect_timeout=5.0, max_redirects=3)

        coords = resolver.resolve("https://maps.app.goo.gl/AbCdEf123")

        assert coords == Coordinates(latitude=28.5355, longitude=77.391)
        assert mock_session.max_redirects == 3
        args, kwargs = mock_session.get.call_args
        assert args[0] == "https://maps.app.goo.gl/AbCdEf123"
        assert kwargs["allow_redirects"] is True
        assert kwargs["timeout"] == 5.0

    def test_short_link_search_page(self, mock_session):
        body = '<a href="https://www.google.com/maps/place/Depot/@12.9,77.6,15z">'
        mock_session.get.return_value = redirect_response(
            "https://www.google.com/maps?q=Depot+Bengaluru", text=body)
        resolver = CoordinateResolver(session=mock_session)

        assert resolver.resolve("https://share.google/xyz") == Coordinates(latitude=12.9, longitude=77.6)

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.Timeout("slow"),
        requests.exceptions.TooManyRedirects("loop"),
    ])
    def test_short_link_network_failure(self, mock_session, error):
        mock_session.get.side_effect = error
        resolver = CoordinateResolver(session=mock_session)

        outcome = resolver.resolve_outcome("https://goo.gl/maps/abc")

        assert outcome.reason == FailureReason.UNRESOLVED_LINK
        assert outcome.value is None

    def test_short_link_http_error(self, mock_session):
        mock_session.get.return_value = redirect_response("https://goo.gl/maps/abc", status_code=404)
        resolver = CoordinateResolver(session=mock_session)

        outcome = resolver.resolve_outcome("https://goo.gl/maps/abc")

        assert outcome.reason == FailureReason.UNRESOLVED_LINK
        assert "404" in outcome.detail

    def test_place_name_geocoded(self, mock_session, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = geocode_result(18.7557, 73.4091)
        resolver = CoordinateResolver(geocoder=geocoder, session=mock_session)

        coords = resolver.resolve("https://www.google.com/maps/place/Chakan+Industrial+Area,+Pune")

        assert coords == Coordinates(latitude=18.7557, longitude=73.4091)
        mock_gmaps.geocode.assert_called_once_with("Chakan Industrial Area, Pune")

    def test_place_name_without_geocoder(self, mock_session):
        resolver = CoordinateResolver(session=mock_session)
        outcome = resolver.resolve_outcome("https://www.google.com/maps/place/Chakan")
        assert outcome.reason == FailureReason.NO_MATCH


# ==================== GEOCODER ====================

class TestCleanPlaceName:
    """Test place-name cleanup."""

    def test_parentheses_removed(self):
        cleaned, parts = clean_place_name("Depot (Gate 2), Pune")
        assert cleaned == "Depot , Pune"
        assert parts == ["Depot", "Pune"]

    def test_long_hierarchy_shortened(self):
        cleaned, parts = clean_place_name("Warehouse 7, Plot 12, MIDC, Pune, India")
        assert cleaned == "Warehouse 7, Pune, India"
        assert len(parts) == 5

    def test_short_name_unchanged(self):
        assert clean_place_name("Pune, India")[0] == "Pune, India"


class TestGooglePlaceGeocoder:
    """Test the googlemaps-backed geocoder."""

    @patch('src.geospatial.place_geocoder.googlemaps.Client')
    @patch('src.geospatial.place_geocoder.get_config')
    def test_key_from_config(self, mock_get_config, mock_client_class):
        mock_get_config.return_value = "AIzaFromEnv"

        geocoder = GooglePlaceGeocoder(request_timeout=7.0)

        assert geocoder.is_configured
        mock_get_config.assert_called_once_with("GOOGLE_MAPS_API_KEY")
        mock_client_class.assert_called_once_with(
            key="AIzaFromEnv", timeout=7.0, retry_over_query_limit=False)

    def test_empty_key_not_configured(self):
        geocoder = GooglePlaceGeocoder(api_key="")
        assert not geocoder.is_configured
        with pytest.raises(MissingCredentialError):
            geocoder.geocode("Pune")

    def test_malformed_key_not_configured(self):
        assert not GooglePlaceGeocoder(api_key="not-a-google-key").is_configured

    def test_missing_credential_outcome(self, caplog):
        outcome = GooglePlaceGeocoder(api_key="").geocode_place_name("Pune")
        assert outcome.reason == FailureReason.MISSING_CREDENTIAL
        assert "GOOGLE_MAPS_API_KEY not configured" in caplog.text

    def test_geocode_success(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = geocode_result(18.52, 73.85)
        assert geocoder.geocode("Pune") == Coordinates(latitude=18.52, longitude=73.85)

    def test_geocode_no_results(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = []
        with pytest.raises(PlaceNotFoundError):
            geocoder.geocode("Nowhere")

    def test_geocode_out_of_range_result(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = geocode_result(95.0, 10.0)
        with pytest.raises(GeocodingError):
            geocoder.geocode("Somewhere")

    def test_geocode_malformed_result(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = [{"geometry": {}}]
        with pytest.raises(GeocodingError):
            geocoder.geocode("Somewhere")

    def test_rate_limiter_used(self, mock_gmaps):
        limiter = Mock()
        mock_gmaps.geocode.return_value = geocode_result(1.0, 2.0)
        GooglePlaceGeocoder(api_key="AIzaTestKey", client=mock_gmaps, rate_limiter=limiter).geocode("X")
        limiter.throttle.assert_called_once()

    def test_location_only_fallback(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.side_effect = [[], geocode_result(19.2183, 73.0868)]

        outcome = geocoder.geocode_place_name(
            "Unit 4 (Rear), Bhiwandi Logistics Park, Thane, Maharashtra, India")

        assert outcome.value == Coordinates(latitude=19.2183, longitude=73.0868)
        assert [c.args[0] for c in mock_gmaps.geocode.call_args_list] == [
            "Unit 4, Maharashtra, India",
            "Thane, Maharashtra, India",
        ]

    def test_not_found_after_fallback(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = []
        outcome = geocoder.geocode_place_name("Depot, Nowhere")
        assert outcome.reason == FailureReason.NOT_FOUND
        assert mock_gmaps.geocode.call_count == 2

    def test_single_part_not_retried(self, geocoder, mock_gmaps):
        mock_gmaps.geocode.return_value = []
        geocoder.geocode_place_name("Nowhere")
        mock_gmaps.geocode.assert_called_once()

    @pytest.mark.parametrize("error", [
        googlemaps.exceptions.ApiError("OVER_QUERY_LIMIT"),
        googlemaps.exceptions.Timeout(),
        googlemaps.exceptions.TransportError("connection reset"),
    ])
    def test_api_failure(self, geocoder, mock_gmaps, error):
        mock_gmaps.geocode.side_effect = error

        outcome = geocoder.geocode_place_name("Depot, Pune")

        assert outcome.reason == FailureReason.UPSTREAM_FAILURE
        mock_gmaps.geocode.assert_called_once()

    def test_blank_after_cleaning(self, geocoder, mock_gmaps):
        outcome = geocoder.geocode_place_name("(unknown)")
        assert outcome.reason == FailureReason.INVALID_INPUT
        mock_gmaps.geocode.assert_not_called()

from unittest import mock

import pytest
import requests

from rentals.core.exceptions import GeocodingServiceError
from rentals.utils.geo_utils import GeocodeResult, GoogleGeocoder, GeoPoint, NominatimGeocoder, distance_km


def test_distance_is_zero_for_same_point():
    p = GeoPoint(13.7942, -88.8965)
    assert distance_km(p, p) == 0


def test_distance_is_symmetric():
    a, b = GeoPoint(48.8566, 2.3522), GeoPoint(51.5074, -0.1278)
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))


def test_one_degree_of_longitude_on_equator():
    assert distance_km(GeoPoint(0, 0), GeoPoint(0, 1)) == pytest.approx(111.195, abs=0.01)


def test_paris_to_london():
    assert distance_km(GeoPoint(48.8566, 2.3522), GeoPoint(51.5074, -0.1278)) == pytest.approx(343.5, abs=0.5)


def test_antipodal_points_do_not_overflow():
    assert distance_km(GeoPoint(0, 0), GeoPoint(0, 180)) == pytest.approx(20015.09, abs=0.1)


@pytest.mark.parametrize("lat,lon", [(91, 0), (-91, 0), (0, 181), (0, -181)])
def test_geopoint_rejects_out_of_range(lat, lon):
    with pytest.raises(ValueError):
        GeoPoint(lat, lon)


def test_geocode_result_dict_keeps_place_id():
    result = GeocodeResult.from_dict({"latitude": 1.0, "longitude": 2.0, "place_id": "osm:1"})
    assert result.point == GeoPoint(1.0, 2.0)
    assert result.to_dict()["place_id"] == "osm:1"


def _session_returning(payload=None, error=None):
    session = mock.Mock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
    else:
        response = mock.Mock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        session.get.return_value = response
    return session


def test_nominatim_parses_first_match():
    session = _session_returning([
        {"lat": "13.7942", "lon": "-88.8965", "osm_type": "node", "osm_id": 7, "display_name": "San Salvador",
         "address": {"city": "San Salvador", "country": "El Salvador"}},
    ])
    result = NominatimGeocoder("test-agent", session=session).geocode("San Salvador")
    assert result.point == GeoPoint(13.7942, -88.8965)
    assert result.address.city == "San Salvador"


def test_nominatim_without_match_returns_none():
    assert NominatimGeocoder("test-agent", session=_session_returning([])).geocode("nowhere") is None


def test_network_errors_become_geocoding_errors():
    session = _session_returning(error=requests.ConnectionError("refused"))
    with pytest.raises(GeocodingServiceError):
        NominatimGeocoder("test-agent", session=session).geocode("Paris")


def test_google_zero_results_is_not_an_error():
    session = _session_returning({"status": "ZERO_RESULTS", "results": []})
    assert GoogleGeocoder("key", session=session).geocode("nowhere") is None


def test_google_denied_request_raises():
    session = _session_returning({"status": "REQUEST_DENIED", "results": []})
    with pytest.raises(GeocodingServiceError):
        GoogleGeocoder("key", session=session).geocode("Paris")

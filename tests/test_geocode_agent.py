"""
Unit tests for agents/GeocodeAgent.py
"""
from unittest.mock import patch

import requests

from conftest import make_response
from agents.GeocodeAgent import Location, geocode

PARIS = {
    "lat": "48.8588897",
    "lon": "2.3200410",
    "display_name": "Paris, Île-de-France, France métropolitaine, France",
    "address": {"city": "Paris", "state": "Île-de-France", "country": "France"},
}


class TestGeocode:
    def test_first_result(self):
        with patch("agents.GeocodeAgent.requests.get", return_value=make_response([PARIS])):
            loc = geocode("Paris, France")

        assert isinstance(loc, Location)
        assert loc.coordinates == (2.3200410, 48.8588897)
        assert loc.lat == 48.8588897
        assert loc.city == "Paris"
        assert loc.country == "France"
        assert loc.raw_query == "Paris, France"
        assert loc.name == PARIS["display_name"]

    def test_sends_user_agent_and_limit(self):
        with patch("agents.GeocodeAgent.requests.get",
                   return_value=make_response([PARIS])) as mock_get:
            geocode("Paris", user_agent="tests/0.1", timeout=3)

        kwargs = mock_get.call_args.kwargs
        assert kwargs["headers"]["User-Agent"] == "tests/0.1"
        assert kwargs["params"]["limit"] == 1
        assert kwargs["params"]["format"] == "json"
        assert kwargs["timeout"] == 3

    def test_town_used_when_no_city(self):
        result = dict(PARIS, address={"town": "Chamonix-Mont-Blanc", "country": "France"})
        with patch("agents.GeocodeAgent.requests.get", return_value=make_response([result])):
            assert geocode("Chamonix").city == "Chamonix-Mont-Blanc"

    def test_falls_back_to_display_name(self):
        result = {"lat": "45.9", "lon": "6.87", "display_name": "Chamonix, Haute-Savoie, France"}
        with patch("agents.GeocodeAgent.requests.get", return_value=make_response([result])):
            loc = geocode("Chamonix")
        assert loc.city == "Chamonix"
        assert loc.country == "France"

    def test_no_results(self):
        with patch("agents.GeocodeAgent.requests.get", return_value=make_response([])):
            assert geocode("Atlantis") is None

    def test_network_error_is_not_found(self):
        with patch("agents.GeocodeAgent.requests.get", side_effect=requests.ConnectionError("down")):
            assert geocode("Paris") is None

    def test_bad_coordinates(self):
        with patch("agents.GeocodeAgent.requests.get",
                   return_value=make_response([{"display_name": "Somewhere"}])):
            assert geocode("Somewhere") is None

    def test_to_dict_is_lon_lat(self):
        with patch("agents.GeocodeAgent.requests.get", return_value=make_response([PARIS])):
            data = geocode("Paris").to_dict()
        assert data["coordinates"] == [2.3200410, 48.8588897]
        assert data["rawQuery"] == "Paris"

    def test_error_body_is_not_found(self):
        with patch("agents.GeocodeAgent.requests.get",
                   return_value=make_response({"error": "Unable to geocode"})):
            assert geocode("Paris") is None

"""
Unit tests for agents/ImageAgent.py
"""
import random
from unittest.mock import patch

import requests

from conftest import make_response
from agents.ImageAgent import DEFAULT_IMAGES, build_queries, default_image, find_trip_image


def _photos(n, prefix="img"):
    return [{"urls": {"regular": f"https://images.example.com/{prefix}{i}.jpg"},
             "user": {"name": f"Photographer {i}"}} for i in range(n)]


class TestBuildQueries:
    def test_most_specific_first(self):
        queries = build_queries("Annecy, France", "hiking")
        assert queries[0] == "Annecy, France hiking"
        assert queries[1] == "Annecy hiking"
        assert queries[2] == "France hiking"

    def test_no_duplicates(self):
        queries = build_queries("Lyon", "cycling")
        assert len(queries) == len(set(queries))

    def test_ends_with_generic_activity_terms(self):
        assert build_queries("Lyon", "driving")[-1] == "highway"

    def test_empty_location(self):
        assert build_queries("", "hiking") == ["hiking", "trail", "mountains"]


class TestDefaultImage:
    def test_known_type(self):
        assert default_image("cycling") == DEFAULT_IMAGES["cycling"]

    def test_unknown_type(self):
        assert default_image("sailing") == DEFAULT_IMAGES["default"]


class TestFindTripImage:
    def test_no_key_returns_default_without_network(self):
        with patch("agents.ImageAgent.requests.get") as mock_get:
            assert find_trip_image("Lyon, France", "cycling", "") == DEFAULT_IMAGES["cycling"]
        mock_get.assert_not_called()

    def test_first_query_with_results_wins(self):
        with patch("agents.ImageAgent._search", side_effect=[[], [], _photos(1, "lyon")]) as mock_search:
            url = find_trip_image("Lyon, France", "cycling", "key")
        assert url == "https://images.example.com/lyon0.jpg"
        assert mock_search.call_count == 3

    def test_error_moves_to_next_query(self):
        with patch("agents.ImageAgent._search",
                   side_effect=[requests.HTTPError("403"), _photos(1)]) as mock_search:
            url = find_trip_image("Lyon, France", "cycling", "key")
        assert url == "https://images.example.com/img0.jpg"
        assert mock_search.call_count == 2

    def test_random_pick_within_top_five(self):
        photos = _photos(5)
        expected = photos[random.Random(99).randrange(5)]["urls"]["regular"]
        with patch("agents.ImageAgent._search", return_value=photos):
            assert find_trip_image("Lyon", "hiking", "key", rng=random.Random(99)) == expected

    def test_all_queries_empty_falls_back(self):
        with patch("agents.ImageAgent._search", return_value=[]):
            assert find_trip_image("Nowhere", "driving", "key") == DEFAULT_IMAGES["driving"]

    def test_search_sends_client_id(self):
        with patch("agents.ImageAgent.requests.get",
                   return_value=make_response({"results": _photos(2)})) as mock_get:
            find_trip_image("Lyon", "hiking", "abc", rng=random.Random(0))

        kwargs = mock_get.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Client-ID abc"
        assert kwargs["params"]["orientation"] == "landscape"
        assert kwargs["params"]["per_page"] == 5

    def test_unexpected_body_falls_back_to_default(self):
        with patch("agents.ImageAgent.requests.get", return_value=make_response(["unexpected"])):
            assert find_trip_image("Lyon", "hiking", "key") == DEFAULT_IMAGES["hiking"]

    def test_malformed_result_moves_to_next_query(self):
        with patch("agents.ImageAgent._search", side_effect=[["not-a-photo"], _photos(1)]) as mock_search:
            url = find_trip_image("Lyon, France", "cycling", "key")
        assert url == "https://images.example.com/img0.jpg"
        assert mock_search.call_count == 2

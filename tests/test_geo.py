"""
Unit tests for geo.py

- haversine / route distance (symmetry, degenerate routes)
- polyline decoding
- checkpoint sampling
"""
import pytest

import geo


class TestRouteDistance:
    def test_empty_route_is_zero(self):
        assert geo.route_distance_km([]) == 0.0

    def test_single_point_is_zero(self):
        assert geo.route_distance_km([(48.85, 2.35)]) == 0.0

    def test_none_is_zero(self):
        assert geo.route_distance_km(None) == 0.0

    def test_reversed_route_has_same_distance(self, route):
        forward = geo.route_distance_km(route)
        backward = geo.route_distance_km(list(reversed(route)))
        assert forward == pytest.approx(backward)

    def test_distance_is_positive_for_distinct_points(self, route):
        assert geo.route_distance_km(route) > 0

    def test_one_degree_of_latitude(self):
        # 1 degree along a meridian on a 6371 km sphere
        assert geo.route_distance_km([(0.0, 0.0), (1.0, 0.0)]) == pytest.approx(111.195, abs=0.01)

    def test_repeated_point_adds_nothing(self):
        assert geo.route_distance_km([(10.0, 10.0), (10.0, 10.0)]) == 0.0


class TestDecodePolyline:
    def test_reference_example(self):
        decoded = geo.decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")
        assert decoded == [
            pytest.approx((38.5, -120.2)),
            pytest.approx((40.7, -120.95)),
            pytest.approx((43.252, -126.453)),
        ]

    def test_round_trips_fixture_route(self, route, encoded_route):
        decoded = geo.decode_polyline(encoded_route)
        assert len(decoded) == len(route)
        for (lat, lon), (elat, elon) in zip(decoded, route):
            assert lat == pytest.approx(elat, abs=1e-5)
            assert lon == pytest.approx(elon, abs=1e-5)


class TestRouteCheckpoints:
    def test_three_evenly_spaced_points(self):
        route = [(float(i), 0.0) for i in range(8)]
        # step = 8 / 4 = 2 -> indexes 2, 4, 6
        assert geo.route_checkpoints(route, 3) == [(2.0, 0.0), (4.0, 0.0), (6.0, 0.0)]

    def test_single_point_route(self):
        assert geo.route_checkpoints([(1.0, 2.0)], 3) == [(1.0, 2.0)]

    def test_empty_route(self):
        assert geo.route_checkpoints([], 3) == []

    def test_short_route_may_repeat_indexes(self):
        route = [(0.0, 0.0), (1.0, 1.0)]
        # step = 0.5 -> indexes 0, 1, 1
        assert geo.route_checkpoints(route, 3) == [(0.0, 0.0), (1.0, 1.0), (1.0, 1.0)]


class TestRound1:
    def test_rounds_to_one_decimal(self):
        assert geo.round1(44.04) == 44.0
        assert geo.round1(43.96) == 44.0

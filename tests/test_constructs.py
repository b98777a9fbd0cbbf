from unittest import TestCase

import pandas as pd
from shapely.geometry import Polygon

from curvematch.constructs.bounding_box import BoundingBox
from curvematch.constructs.match_config import MatchingConfig
from curvematch.constructs.route import GeoPoint, Route, RouteRecord
from curvematch.utils.exceptions import ConfigurationException, InvalidRouteException
from curvematch.utils.geo import route_distance
from tests.test_geo import NORTHBOUND


class TestBoundingBox(TestCase):
    def test_from_bounds_orders_edges(self):
        bbox = BoundingBox.from_bounds(west=13.5, south=52.6, east=13.3, north=52.4)
        self.assertEqual(bbox, BoundingBox(13.3, 52.4, 13.5, 52.6))

    def test_from_geometry(self):
        bbox = BoundingBox.from_geometry([(13.41, 52.52), (13.40, 52.53), (13.42, 52.51)])
        self.assertEqual(bbox.bounds, (13.40, 52.51, 13.42, 52.53))

    def test_from_empty_geometry(self):
        with self.assertRaises(ValueError):
            BoundingBox.from_geometry([])

    def test_intersects(self):
        a = BoundingBox(0.0, 0.0, 1.0, 1.0)

        self.assertTrue(a.intersects(BoundingBox(0.5, 0.5, 2.0, 2.0)))
        self.assertTrue(a.intersects(BoundingBox(1.0, 1.0, 2.0, 2.0)))
        self.assertFalse(a.intersects(BoundingBox(1.1, 0.0, 2.0, 1.0)))

    def test_contains(self):
        a = BoundingBox(0.0, 0.0, 1.0, 1.0)

        self.assertTrue(a.contains(BoundingBox(0.2, 0.2, 0.8, 0.8)))
        self.assertFalse(a.contains(BoundingBox(0.5, 0.5, 2.0, 2.0)))

    def test_to_polygon(self):
        polygon = BoundingBox(0.0, 0.0, 1.0, 2.0).to_polygon()

        self.assertIsInstance(polygon, Polygon)
        self.assertEqual(polygon.bounds, (0.0, 0.0, 1.0, 2.0))


class TestRoute(TestCase):
    def setUp(self):
        self.route = Route(NORTHBOUND, [100.0, 102.0, 101.0, 105.0, 104.0, 110.0], "north")

    def test_derived_values(self):
        self.assertAlmostEqual(self.route.distance, route_distance(NORTHBOUND))
        self.assertEqual(self.route.elevation_gain, 11.0)
        self.assertEqual(len(self.route.distances), len(NORTHBOUND))
        self.assertEqual(self.route.bbox, BoundingBox.from_geometry(NORTHBOUND))
        self.assertIsInstance(self.route.geometry[0], GeoPoint)

    def test_validate(self):
        self.assertIs(self.route.validate(), self.route)

        with self.assertRaises(InvalidRouteException):
            Route([(13.4, 52.5)]).validate()

    def test_short_route_has_empty_derived_values(self):
        route = Route([(13.4, 52.5)])

        self.assertEqual(route.distance, 0.0)
        self.assertEqual(route.elevation_gain, 0.0)
        self.assertEqual(route.distances, [0.0])

    def test_rejects_bad_coordinates(self):
        with self.assertRaises(InvalidRouteException):
            Route([(13.4, 95.0), (13.4, 52.5)])
        with self.assertRaises(InvalidRouteException):
            Route([(float("nan"), 52.5), (13.4, 52.5)])
        with self.assertRaises(InvalidRouteException):
            Route([(13.4,), (13.4, 52.5)])

    def test_rejects_bad_elevation(self):
        with self.assertRaises(InvalidRouteException):
            Route(NORTHBOUND[:2], ["high", "low"])
        with self.assertRaises(InvalidRouteException):
            Route(NORTHBOUND[:2], [100.0, float("nan")])
        with self.assertRaises(InvalidRouteException):
            Route(NORTHBOUND[:2], [float("inf"), 100.0])

    def test_ignores_third_coordinate(self):
        route = Route([(13.4, 52.5, 30.0), (13.4, 52.6, 31.0)])
        self.assertEqual(route.geometry[1], GeoPoint(13.4, 52.6))

    def test_downsample(self):
        long_route = Route(
            [(13.4, 52.5 + i * 0.0001) for i in range(100)],
            [float(i) for i in range(100)],
        )
        short_route = long_route.downsample(10)

        self.assertEqual(len(short_route), 10)
        self.assertEqual(short_route.geometry[0], long_route.geometry[0])
        self.assertEqual(short_route.geometry[-1], long_route.geometry[-1])
        self.assertEqual(short_route.elevation_profile[0], 0.0)
        self.assertEqual(short_route.elevation_profile[-1], 99.0)

    def test_downsample_short_route(self):
        self.assertIs(self.route.downsample(50), self.route)

        with self.assertRaises(ValueError):
            self.route.downsample(1)

    def test_from_dataframe(self):
        df = pd.DataFrame(
            {
                "latitude": [52.520, 52.522, 52.525],
                "longitude": [13.405, 13.410, 13.415],
                "elevation": [34.0, 38.5, 36.0],
            }
        )
        route = Route.from_dataframe(df, name="evening loop")

        self.assertEqual(route.geometry[0], GeoPoint(13.405, 52.520))
        self.assertEqual(route.elevation_profile, (34.0, 38.5, 36.0))
        self.assertEqual(route.name, "evening loop")

    def test_from_dataframe_without_columns(self):
        with self.assertRaises(ValueError):
            Route.from_dataframe(pd.DataFrame({"lat": [1.0], "lon": [2.0]}))

    def test_dict_round_trip(self):
        route = Route.from_dict(self.route.to_dict())

        self.assertEqual(route.geometry, self.route.geometry)
        self.assertEqual(route.elevation_profile, self.route.elevation_profile)
        self.assertEqual(route.name, "north")


class TestRouteRecord(TestCase):
    def test_from_route(self):
        route = Route(NORTHBOUND, [1.0, 2.0], "north")
        record = RouteRecord.from_route(7, route)

        self.assertEqual(record.id, "7")
        self.assertAlmostEqual(record.distance, route.distance)
        self.assertEqual(record.elevation_gain, 1.0)
        self.assertEqual(record.bbox, route.bbox)

    def test_from_dict_keeps_stored_totals(self):
        record = RouteRecord.from_dict(
            {
                "id": 1,
                "name": "Berlin Loop",
                "distance": 5000.0,
                "elevationGain": 50.0,
                "geometry": [[13.405, 52.52], [13.415, 52.525]],
                "elevationProfile": [100.0, 105.0],
            }
        )

        self.assertEqual(record.id, "1")
        self.assertEqual(record.distance, 5000.0)
        self.assertEqual(record.elevation_gain, 50.0)
        self.assertEqual(record.elevation_profile, (100.0, 105.0))

    def test_from_dict_computes_missing_totals(self):
        record = RouteRecord.from_dict(
            {"id": "x", "geometry": NORTHBOUND, "elevation_profile": [1.0, 3.0, 2.0]}
        )

        self.assertAlmostEqual(record.distance, route_distance(NORTHBOUND))
        self.assertEqual(record.elevation_gain, 2.0)

    def test_from_dict_without_profile(self):
        record = RouteRecord.from_dict({"id": "x", "geometry": NORTHBOUND})
        self.assertEqual(record.elevation_profile, ())

    def test_from_dict_rejects_malformed(self):
        for d in [
            {"geometry": NORTHBOUND},
            {"id": "x"},
            {"id": "x", "geometry": NORTHBOUND[:1]},
            {"id": "x", "geometry": NORTHBOUND, "distance": "far"},
        ]:
            with self.assertRaises(InvalidRouteException):
                RouteRecord.from_dict(d)


class TestMatchingConfig(TestCase):
    def test_defaults(self):
        config = MatchingConfig()

        self.assertEqual(config.distance_flexibility_pct, 10.0)
        self.assertEqual(config.min_match_percentage, 40.0)
        self.assertEqual(config.dtw_importance, 0.0)
        self.assertEqual(config.shape_importance, 1.0)
        self.assertEqual(config.granularity_meters, 100.0)

    def test_all_zero_importances_are_allowed(self):
        config = MatchingConfig(
            shape_importance=0.0, turns_importance=0.0, elevation_importance=0.0
        )
        self.assertEqual(config.elevation_importance, 0.0)

    def test_rejects_invalid_values(self):
        for kwargs in [
            {"shape_importance": -1.0},
            {"dtw_importance": -0.5},
            {"distance_flexibility_pct": -5.0},
            {"granularity_meters": 0.0},
            {"min_match_percentage": 101.0},
            {"dtw_window_size": -1},
        ]:
            with self.assertRaises(ConfigurationException):
                MatchingConfig(**kwargs)

    def test_from_dict(self):
        config = MatchingConfig.from_dict(
            {
                "distanceFlexibility": "20",
                "minMatchPercentage": 25,
                "elevation_importance": 2,
                "dtwWindowSize": 4.0,
                "safetyMode": "Moderate",
            }
        )

        self.assertEqual(config.distance_flexibility_pct, 20.0)
        self.assertEqual(config.min_match_percentage, 25.0)
        self.assertEqual(config.elevation_importance, 2.0)
        self.assertEqual(config.dtw_window_size, 4)
        self.assertEqual(config.shape_importance, 1.0)

    def test_to_dict(self):
        d = MatchingConfig(turns_importance=0.5).to_dict()

        self.assertEqual(d["turns_importance"], 0.5)
        self.assertEqual(MatchingConfig.from_dict(d), MatchingConfig(turns_importance=0.5))

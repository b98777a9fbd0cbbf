from unittest import TestCase

from curvematch.similarity.shape import (
    HAUSDORFF_SCALE_METERS,
    frechet_similarity,
    hausdorff_distance,
    hausdorff_similarity,
    turn_sequence_similarity,
)
from curvematch.utils.geo import haversine_distance
from tests.test_geo import NORTHBOUND, ZIGZAG


class TestHausdorff(TestCase):
    def test_identical_routes(self):
        self.assertEqual(hausdorff_distance(NORTHBOUND, NORTHBOUND), 0.0)
        self.assertEqual(hausdorff_similarity(NORTHBOUND, NORTHBOUND), 1.0)
        self.assertEqual(hausdorff_similarity(ZIGZAG, ZIGZAG), 1.0)

    def test_parallel_offset(self):
        shifted = [(lon + 0.001, lat) for lon, lat in NORTHBOUND]
        offset = haversine_distance(NORTHBOUND[0], shifted[0])

        distance = hausdorff_distance(NORTHBOUND, shifted)
        self.assertAlmostEqual(distance, offset, delta=0.01)

        similarity = hausdorff_similarity(NORTHBOUND, shifted)
        self.assertAlmostEqual(
            similarity, 1.0 / (1.0 + distance / HAUSDORFF_SCALE_METERS)
        )

    def test_is_symmetric(self):
        self.assertAlmostEqual(
            hausdorff_distance(NORTHBOUND, ZIGZAG), hausdorff_distance(ZIGZAG, NORTHBOUND)
        )

    def test_subset_uses_the_larger_directed_distance(self):
        # every point of the short route lies on the long one, but not the other way round
        short = NORTHBOUND[:2]
        expected = haversine_distance(NORTHBOUND[1], NORTHBOUND[-1])

        self.assertAlmostEqual(hausdorff_distance(short, NORTHBOUND), expected, places=6)

    def test_far_apart_routes_score_low(self):
        paris = [(2.35 + i * 0.001, 48.85) for i in range(5)]
        self.assertLess(hausdorff_similarity(NORTHBOUND, paris), 0.01)

    def test_empty_route(self):
        self.assertEqual(hausdorff_distance([], NORTHBOUND), float("inf"))
        self.assertEqual(hausdorff_similarity([], NORTHBOUND), 0.0)

    def test_similarity_is_bounded(self):
        s = hausdorff_similarity(NORTHBOUND, ZIGZAG)
        self.assertGreaterEqual(s, 0.0)
        self.assertLessEqual(s, 1.0)

    def test_frechet_matches_hausdorff(self):
        self.assertEqual(
            frechet_similarity(NORTHBOUND, ZIGZAG), hausdorff_similarity(NORTHBOUND, ZIGZAG)
        )


class TestTurnSequence(TestCase):
    def test_same_route(self):
        self.assertEqual(turn_sequence_similarity(ZIGZAG, ZIGZAG), 1.0)
        self.assertEqual(turn_sequence_similarity(NORTHBOUND, NORTHBOUND), 1.0)

    def test_no_turns_on_either_route(self):
        self.assertEqual(turn_sequence_similarity(NORTHBOUND, NORTHBOUND[:2]), 1.0)

    def test_half_the_turns(self):
        # the first four points hold two turns, the full zigzag four
        self.assertAlmostEqual(turn_sequence_similarity(ZIGZAG[:4], ZIGZAG), 0.5)

    def test_turns_against_none(self):
        self.assertEqual(turn_sequence_similarity(NORTHBOUND, ZIGZAG), 0.0)

    def test_threshold(self):
        # with a threshold above the 90 degree turns, neither route turns
        self.assertEqual(turn_sequence_similarity(NORTHBOUND, ZIGZAG, 120.0), 1.0)

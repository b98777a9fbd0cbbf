"""Similarity of the positional shape and turning pattern of two routes."""

from __future__ import annotations

from typing import Sequence

from curvematch.utils.geo import LonLat, count_turns, pairwise_haversine

# Hausdorff distance, in meters, at which the shape similarity drops to 0.5.
# Routes on the same roads deviate by tens of meters, routes on parallel streets by
# a few hundred.
HAUSDORFF_SCALE_METERS = 1000.0

DEFAULT_TURN_THRESHOLD_DEGREES = 30.0


def hausdorff_distance(a: Sequence[LonLat], b: Sequence[LonLat]) -> float:
    """
    Compute the symmetric discrete Hausdorff distance between two point sets.

    For each direction this finds the point of one set that is furthest from its
    nearest neighbour in the other set (the directed Hausdorff distance); the symmetric
    distance is the larger of the two directed values. Point distances are great-circle
    distances, so the result is in meters. Cost is O(len(a) * len(b)).

    Args:
        a: The (longitude, latitude) points of the first route
        b: The (longitude, latitude) points of the second route

    Returns:
        The Hausdorff distance in meters, or infinity if either set is empty
    """
    if len(a) == 0 or len(b) == 0:
        return float("inf")

    d = pairwise_haversine(a, b)

    directed_ab = d.min(axis=1).max()
    directed_ba = d.min(axis=0).max()

    return float(max(directed_ab, directed_ba))


def hausdorff_similarity(a: Sequence[LonLat], b: Sequence[LonLat]) -> float:
    """
    Score how closely two routes overlap in space.

    The Hausdorff distance is mapped into [0, 1] with 1 / (1 + d / HAUSDORFF_SCALE_METERS),
    so identical routes score 1.0 and a worst-case deviation of 1 km scores 0.5.

    Args:
        a: The (longitude, latitude) points of the first route
        b: The (longitude, latitude) points of the second route

    Returns:
        A similarity in [0, 1]; 0 if either route has no points

    Examples:
        >>> route = [(13.405, 52.520), (13.410, 52.522), (13.415, 52.525)]
        >>> hausdorff_similarity(route, route)
        1.0
    """
    distance = hausdorff_distance(a, b)
    if distance == float("inf"):
        return 0.0

    return 1.0 / (1.0 + distance / HAUSDORFF_SCALE_METERS)


def frechet_similarity(a: Sequence[LonLat], b: Sequence[LonLat]) -> float:
    """
    Frechet-style shape similarity.

    This is currently the Hausdorff similarity; point order is not taken into account.
    """
    return hausdorff_similarity(a, b)


def turn_sequence_similarity(
    a: Sequence[LonLat],
    b: Sequence[LonLat],
    threshold_degrees: float = DEFAULT_TURN_THRESHOLD_DEGREES,
) -> float:
    """
    Compare how often two routes change direction.

    Args:
        a: The (longitude, latitude) points of the first route
        b: The (longitude, latitude) points of the second route
        threshold_degrees: Minimum heading change for a vertex to count as a turn. Default is 30 degrees.

    Returns:
        1.0 if neither route has a turn; otherwise
        1 - min(1, |turns_a - turns_b| / max(turns_a, turns_b))
    """
    turns_a = count_turns(a, threshold_degrees)
    turns_b = count_turns(b, threshold_degrees)

    if turns_a == 0 and turns_b == 0:
        return 1.0

    difference = abs(turns_a - turns_b) / max(turns_a, turns_b)

    return 1.0 - min(1.0, difference)

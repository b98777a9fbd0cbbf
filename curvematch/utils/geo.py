from __future__ import annotations

import math
from typing import List, NamedTuple, Sequence, Tuple

import numpy as np

# mean Earth radius in meters used by all great-circle computations
EARTH_RADIUS_METERS = 6_371_000.0

LonLat = Tuple[float, float]


class ElevationStats(NamedTuple):
    """
    Summary statistics of an elevation profile.

    Attributes:
        total_gain: Sum of all positive consecutive elevation differences, in meters
        total_loss: Sum of all negative consecutive elevation differences as a positive number, in meters
        max_elevation: The highest sample of the profile, in meters
        min_elevation: The lowest sample of the profile, in meters
    """

    total_gain: float = 0.0
    total_loss: float = 0.0
    max_elevation: float = 0.0
    min_elevation: float = 0.0


def haversine_distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """
    Calculate the great-circle distance between two WGS84 points.

    Args:
        p1: The first point as (longitude, latitude) in decimal degrees
        p2: The second point as (longitude, latitude) in decimal degrees

    Returns:
        The distance between the two points in meters

    Examples:
        >>> # one thousandth of a degree of latitude is roughly 111 meters
        >>> d = haversine_distance((13.4050, 52.5200), (13.4050, 52.5210))
        >>> print(f"{d:.0f} m")
        111 m
    """
    lon1, lat1 = p1[0], p1[1]
    lon2, lat2 = p2[0], p2[1]

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))

    return EARTH_RADIUS_METERS * c


def pairwise_haversine(a: Sequence[LonLat], b: Sequence[LonLat]) -> np.ndarray:
    """
    Compute the matrix of great-circle distances between two point sets.

    Args:
        a: A sequence of (longitude, latitude) points
        b: A sequence of (longitude, latitude) points

    Returns:
        An array of shape (len(a), len(b)) where entry [i, j] is the distance
        in meters between a[i] and b[j]
    """
    pa = np.radians(np.asarray(a, dtype=float).reshape(-1, 2))
    pb = np.radians(np.asarray(b, dtype=float).reshape(-1, 2))

    lon1 = pa[:, 0][:, np.newaxis]
    lat1 = pa[:, 1][:, np.newaxis]
    lon2 = pb[:, 0][np.newaxis, :]
    lat2 = pb[:, 1][np.newaxis, :]

    h = (
        np.sin((lat2 - lat1) / 2.0) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2.0) ** 2
    )
    h = np.clip(h, 0.0, 1.0)

    return 2.0 * EARTH_RADIUS_METERS * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))


def route_distance(geometry: Sequence[LonLat]) -> float:
    """
    Total length of a path in meters.

    Args:
        geometry: The ordered (longitude, latitude) points of the path

    Returns:
        The sum of the haversine distances between consecutive points, or 0 if
        the path has fewer than 2 points
    """
    if len(geometry) < 2:
        return 0.0

    return sum(
        haversine_distance(geometry[i - 1], geometry[i])
        for i in range(1, len(geometry))
    )


def distance_array(geometry: Sequence[LonLat]) -> List[float]:
    """
    Cumulative distance from the start of the path for every point.

    Args:
        geometry: The ordered (longitude, latitude) points of the path

    Returns:
        A list the same length as the geometry; the first element is 0 and
        each following element adds the distance from the previous point

    Examples:
        >>> distance_array([(0.0, 0.0), (0.0, 0.001), (0.0, 0.002)])
        [0.0, 111.19..., 222.39...]
    """
    if len(geometry) == 0:
        return []

    distances = [0.0]
    for i in range(1, len(geometry)):
        distances.append(distances[-1] + haversine_distance(geometry[i - 1], geometry[i]))

    return distances


def elevation_gain(profile: Sequence[float]) -> float:
    """Sum of the positive consecutive differences of an elevation profile."""
    gain = 0.0
    for i in range(1, len(profile)):
        diff = profile[i] - profile[i - 1]
        if diff > 0:
            gain += diff

    return gain


def elevation_stats(profile: Sequence[float]) -> ElevationStats:
    """
    Compute gain, loss and extremes of an elevation profile in a single pass.

    Args:
        profile: The ordered elevation samples in meters

    Returns:
        An ElevationStats tuple; all fields are 0 for an empty profile
    """
    if len(profile) == 0:
        return ElevationStats()

    gain = 0.0
    loss = 0.0
    max_elevation = profile[0]
    min_elevation = profile[0]

    for i in range(1, len(profile)):
        diff = profile[i] - profile[i - 1]
        if diff > 0:
            gain += diff
        else:
            loss += abs(diff)

        max_elevation = max(max_elevation, profile[i])
        min_elevation = min(min_elevation, profile[i])

    return ElevationStats(gain, loss, float(max_elevation), float(min_elevation))


def bearing(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Initial great-circle bearing from p1 to p2 in radians, in (-pi, pi]."""
    lon1, lat1 = math.radians(p1[0]), math.radians(p1[1])
    lon2, lat2 = math.radians(p2[0]), math.radians(p2[1])
    delta_lon = lon2 - lon1

    y = math.sin(delta_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        delta_lon
    )

    return math.atan2(y, x)


def turn_angle(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> float:
    """
    The change of heading at p2 when travelling p1 -> p2 -> p3.

    A zero-length segment has no heading, so a repeated point never produces a turn.

    Args:
        p1: The point before the vertex as (longitude, latitude)
        p2: The vertex as (longitude, latitude)
        p3: The point after the vertex as (longitude, latitude)

    Returns:
        The absolute heading change in radians, in [0, pi]. A straight line is 0
        and a full reversal is pi.
    """
    if tuple(p1[:2]) == tuple(p2[:2]) or tuple(p2[:2]) == tuple(p3[:2]):
        return 0.0

    diff = bearing(p2, p3) - bearing(p1, p2)

    # normalize into [-pi, pi]
    while diff > math.pi:
        diff -= 2.0 * math.pi
    while diff < -math.pi:
        diff += 2.0 * math.pi

    return abs(diff)


def count_turns(geometry: Sequence[LonLat], threshold_degrees: float) -> int:
    """
    Count the vertices of a path where the heading changes by more than a threshold.

    Args:
        geometry: The ordered (longitude, latitude) points of the path
        threshold_degrees: The minimum heading change, in degrees, for a vertex to count as a turn

    Returns:
        The number of interior vertices whose turn angle exceeds the threshold,
        or 0 if the path has fewer than 3 points
    """
    if len(geometry) < 3:
        return 0

    threshold = math.radians(threshold_degrees)

    return sum(
        1
        for i in range(1, len(geometry) - 1)
        if turn_angle(geometry[i - 1], geometry[i], geometry[i + 1]) > threshold
    )


def total_curvature(geometry: Sequence[LonLat]) -> float:
    """Sum of all turn angles along a path in radians; 0 for fewer than 3 points."""
    if len(geometry) < 3:
        return 0.0

    return sum(
        turn_angle(geometry[i - 1], geometry[i], geometry[i + 1])
        for i in range(1, len(geometry) - 1)
    )

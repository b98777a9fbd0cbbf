"""
Similarity of the elevation profiles of two routes.

Raw elevation values depend on where a route starts and how densely it was sampled,
so the primary metric compares the shape of the climbing profile instead: each
profile is turned into a series of local gradients (percent grade) with a sliding
window regression against distance, both gradient series are brought to the same
length and their Pearson correlation is mapped into [0, 1].

A banded Dynamic Time Warping similarity over the raw elevations is available as an
optional, alignment tolerant alternative.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

log = logging.getLogger(__name__)

# below this the spread of distances inside a window is treated as zero
MIN_DISTANCE_VARIANCE = 1e-9

# below this a series is treated as constant
MIN_SERIES_VARIANCE = 1e-12

NEUTRAL_SCORE = 0.5

# normalized DTW distance, in meters per sample, at which the similarity drops to 0.5
DTW_SCALE_METERS = 10.0


def _slope(x: np.ndarray, y: np.ndarray) -> float:
    """Ordinary least squares slope of y against x; 0 for a degenerate window."""
    if len(x) == 2:
        run = x[1] - x[0]
        if abs(run) < MIN_DISTANCE_VARIANCE:
            return 0.0
        return float((y[1] - y[0]) / run)

    dx = x - x.mean()
    variance = float(np.dot(dx, dx)) / len(x)
    if variance < MIN_DISTANCE_VARIANCE:
        return 0.0

    return float(np.dot(dx, y - y.mean()) / (variance * len(x)))


def rolling_gradients(
    elevations: Sequence[float],
    distances: Sequence[float],
    window_meters: float,
) -> List[float]:
    """
    Compute the local gradient, in percent grade, at every sample of a profile.

    For sample i, every (distance, elevation) pair whose distance lies within
    window_meters / 2 of distances[i] is collected, and a least squares line of
    elevation against distance is fitted through them. With exactly two pairs this is
    the slope between them. Windows holding a single pair, or whose distances do not
    spread (repeated points), give a gradient of 0.

    Only the first min(len(elevations), len(distances)) samples are used.

    Args:
        elevations: The elevation samples in meters
        distances: The cumulative distance of each sample from the route start, in meters. Must be non-decreasing.
        window_meters: The width of the sliding window in meters

    Returns:
        A list of gradients in percent, one per sample

    Examples:
        >>> # a steady 5% climb
        >>> rolling_gradients([100.0, 105.0, 110.0, 115.0], [0.0, 100.0, 200.0, 300.0], 250.0)
        [5.0, 5.0, 5.0, 5.0]
    """
    n = min(len(elevations), len(distances))
    if n == 0:
        return []

    y = np.asarray(elevations[:n], dtype=float)
    x = np.asarray(distances[:n], dtype=float)
    half_window = window_meters / 2.0

    lower = np.searchsorted(x, x - half_window, side="left")
    upper = np.searchsorted(x, x + half_window, side="right")

    gradients = []
    for i in range(n):
        lo, hi = lower[i], upper[i]
        if hi - lo < 2:
            gradients.append(0.0)
            continue
        gradients.append(_slope(x[lo:hi], y[lo:hi]) * 100.0)

    return gradients


def resample(series: Sequence[float], target_length: int) -> List[float]:
    """
    Stretch or shrink a series to a given length by linear interpolation.

    The series is treated as evenly spaced samples over [0, 1] and re-sampled at
    target_length evenly spaced positions over the same interval, so the first and
    last values are always kept.

    Args:
        series: The values to resample
        target_length: The number of values wanted

    Returns:
        A new list of target_length values. A series that already has the target
        length is returned as an exact copy. An empty series, or a target length of
        0 or less, gives an empty list; a single value is repeated.
    """
    n = len(series)
    if n == 0 or target_length <= 0:
        return []
    if n == target_length:
        return list(series)
    if n == 1:
        return [float(series[0])] * target_length

    source = np.linspace(0.0, 1.0, n)
    target = np.linspace(0.0, 1.0, target_length)

    return np.interp(target, source, np.asarray(series, dtype=float)).tolist()


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two series.

    Args:
        x: The first series
        y: The second series. Only the first min(len(x), len(y)) values of each are used.

    Returns:
        The correlation in [-1, 1]; 0 if fewer than 2 values are shared or either
        series is (nearly) constant
    """
    n = min(len(x), len(y))
    if n < 2:
        return 0.0

    a = np.asarray(x[:n], dtype=float)
    b = np.asarray(y[:n], dtype=float)

    da = a - a.mean()
    db = b - b.mean()

    var_a = float(np.dot(da, da)) / n
    var_b = float(np.dot(db, db)) / n
    if var_a < MIN_SERIES_VARIANCE or var_b < MIN_SERIES_VARIANCE:
        return 0.0

    r = float(np.dot(da, db)) / (n * np.sqrt(var_a) * np.sqrt(var_b))

    return float(np.clip(r, -1.0, 1.0))


def gradient_profile_similarity(
    gradients_a: Sequence[float], gradients_b: Sequence[float]
) -> float:
    """
    Score how alike two gradient series are.

    Both series are resampled to the longer of the two lengths and correlated; the
    correlation r is mapped into [0, 1] with (r + 1) / 2, so uncorrelated profiles
    score 0.5 and mirrored profiles score 0. Series that are equal after resampling
    score 1, even when they have no variance to correlate (flat rides, steady climbs).

    Args:
        gradients_a: The gradient series of the first route
        gradients_b: The gradient series of the second route

    Returns:
        A similarity in [0, 1]; the neutral 0.5 if either series is empty
    """
    if len(gradients_a) == 0 or len(gradients_b) == 0:
        return NEUTRAL_SCORE

    length = max(len(gradients_a), len(gradients_b))
    a = resample(gradients_a, length)
    b = resample(gradients_b, length)

    if np.allclose(a, b):
        return 1.0

    r = pearson_correlation(a, b)

    return (r + 1.0) / 2.0


def rolling_gradient_elevation_similarity(
    profile_a: Sequence[float],
    profile_b: Sequence[float],
    distances_a: Sequence[float],
    distances_b: Sequence[float],
    granularity_meters: float,
) -> float:
    """
    Compare the climbing profiles of two routes.

    This is the primary elevation metric: rolling gradients are computed for both
    profiles with a window of granularity_meters and compared with
    gradient_profile_similarity. A smaller granularity compares short, sharp ramps;
    a larger one compares the overall character of the climbs.

    Args:
        profile_a: The elevation samples of the first route, in meters
        profile_b: The elevation samples of the second route, in meters
        distances_a: The cumulative distances of the first route, in meters
        distances_b: The cumulative distances of the second route, in meters
        granularity_meters: The width of the gradient window, in meters

    Returns:
        A similarity in [0, 1]

    Examples:
        >>> route = Route(points, elevations)
        >>> rolling_gradient_elevation_similarity(
        ...     route.elevation_profile,
        ...     route.elevation_profile,
        ...     route.distances,
        ...     route.distances,
        ...     granularity_meters=100,
        ... )
        1.0
    """
    gradients_a = rolling_gradients(profile_a, distances_a, granularity_meters)
    gradients_b = rolling_gradients(profile_b, distances_b, granularity_meters)

    return gradient_profile_similarity(gradients_a, gradients_b)


def dtw_distance(
    profile_a: Sequence[float], profile_b: Sequence[float], window_size: int
) -> float:
    """
    Banded Dynamic Time Warping distance between two elevation profiles.

    The local cost of aligning two samples is their absolute difference. Only cells
    within window_size of the diagonal are filled; the band is widened to the length
    difference of the profiles so the final cell can always be reached. Cost is
    O(len(a) * window).

    Args:
        profile_a: The elevation samples of the first route, in meters
        profile_b: The elevation samples of the second route, in meters
        window_size: The band width, in samples, on each side of the diagonal

    Returns:
        The accumulated alignment cost, or infinity if either profile is empty
    """
    n, m = len(profile_a), len(profile_b)
    if n == 0 or m == 0:
        return float("inf")

    a = np.asarray(profile_a, dtype=float)
    b = np.asarray(profile_b, dtype=float)

    window = max(window_size, abs(n - m), 1)

    cost = np.full((n + 1, m + 1), np.inf, dtype=float)
    cost[0, 0] = 0.0

    for i in range(1, n + 1):
        start_j = max(1, i - window)
        end_j = min(m, i + window)
        for j in range(start_j, end_j + 1):
            d = abs(a[i - 1] - b[j - 1])
            cost[i, j] = d + min(cost[i - 1, j], cost[i, j - 1], cost[i - 1, j - 1])

    return float(cost[n, m])


def dtw_similarity(
    profile_a: Sequence[float], profile_b: Sequence[float], window_size: int
) -> float:
    """
    Score two elevation profiles with banded Dynamic Time Warping.

    The DTW distance is normalized by len(a) + len(b) and mapped into [0, 1] with
    1 / (1 + normalized / 10).

    Args:
        profile_a: The elevation samples of the first route, in meters
        profile_b: The elevation samples of the second route, in meters
        window_size: The band width, in samples, on each side of the diagonal

    Returns:
        A similarity in [0, 1]; 1.0 for identical profiles and 0 if either is empty
    """
    distance = dtw_distance(profile_a, profile_b, window_size)
    if distance == float("inf"):
        log.debug("cannot compute DTW for an empty elevation profile")
        return 0.0

    normalized = distance / (len(profile_a) + len(profile_b))

    return 1.0 / (1.0 + normalized / DTW_SCALE_METERS)

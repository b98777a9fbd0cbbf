from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Tuple

from curvematch.constructs.bounding_box import BoundingBox
from curvematch.constructs.match_config import MatchingConfig
from curvematch.constructs.route import Route, RouteRecord
from curvematch.index.index_interface import RouteIndexInterface
from curvematch.index.strtree_index import STRtreeRouteIndex
from curvematch.matchers.match_result import MatchResult
from curvematch.matchers.matcher_interface import MatcherInterface, SearchArea
from curvematch.similarity.elevation import (
    NEUTRAL_SCORE,
    dtw_similarity,
    rolling_gradient_elevation_similarity,
)
from curvematch.similarity.shape import hausdorff_similarity, turn_sequence_similarity
from curvematch.utils.geo import count_turns

log = logging.getLogger(__name__)

Scorer = Callable[[RouteRecord], float]


def _search_bounds(search_area: SearchArea) -> BoundingBox:
    if isinstance(search_area, BoundingBox):
        return search_area

    west, south, east, north = search_area
    return BoundingBox.from_bounds(west, south, east, north)


def distance_window(distance: float, flexibility_pct: float) -> Tuple[float, float]:
    """
    The range of route lengths accepted for a given input length.

    Args:
        distance: The input route length in meters
        flexibility_pct: The accepted deviation in percent of the input length

    Returns:
        The (minimum, maximum) accepted length in meters, both inclusive

    Examples:
        >>> distance_window(500.0, 10.0)
        (450.0, 550.0)
    """
    return (
        distance * (1.0 - flexibility_pct / 100.0),
        distance * (1.0 + flexibility_pct / 100.0),
    )


def weighted_score(terms: Iterable[Tuple[float, Scorer]], candidate: RouteRecord) -> float:
    """
    Combine the similarity metrics of a candidate into one score.

    Every (importance, scorer) term with a positive importance is evaluated and the
    scores are averaged with the importances as weights. Terms with an importance of 0
    are skipped without being evaluated.

    Args:
        terms: The (importance, scorer) pairs to combine
        candidate: The candidate route passed to every scorer

    Returns:
        The weighted average score in [0, 1], or the neutral 0.5 if no term has a
        positive importance
    """
    total_score = 0.0
    total_weight = 0.0
    for importance, scorer in terms:
        if importance <= 0:
            continue
        total_score += scorer(candidate) * importance
        total_weight += importance

    if total_weight > 0:
        return total_score / total_weight

    return NEUTRAL_SCORE


class MatchingEngine(MatcherInterface):
    """
    Ranks stored routes by how similar they are to a newly supplied route.

    For each request the engine:

    1. computes the length, climb, turn count and distance array of the input route
    2. queries the route index for candidates whose bounding box intersects the search area
    3. drops candidates whose length is outside the accepted distance window
    4. scores every remaining candidate on elevation profile, shape and turns (plus
       Dynamic Time Warping when enabled) and combines the scores with the configured
       importances
    5. drops candidates below the minimum match percentage and sorts the rest, best
       first; candidates with equal scores keep the index order

    The engine holds no per-request state and never mutates its index, so a single
    engine can serve concurrent requests. There is no internal timeout: shape scoring
    costs O(points_a * points_b) per candidate, so callers that need bounded latency
    should limit the search area or downsample long routes.

    When either the input route or a candidate has no elevation profile, the elevation
    terms are left out of that candidate's score, as if their importance were 0.

    Args:
        route_index: The index of stored routes to search

    Examples:
        >>> from curvematch.constructs.match_config import MatchingConfig
        >>> from curvematch.constructs.route import Route
        >>> from curvematch.matchers.engine import MatchingEngine
        >>>
        >>> engine = MatchingEngine.from_file('routes.json')
        >>> route = Route(points, elevations, name="saturday ride")
        >>>
        >>> results = engine.find_matches(
        ...     route,
        ...     (13.30, 52.48, 13.48, 52.56),
        ...     MatchingConfig(distance_flexibility_pct=15, min_match_percentage=60),
        ... )
        >>> for r in results[:5]:
        ...     print(f"{r.name}: {r.match_percentage:.0f}%")
    """

    def __init__(self, route_index: RouteIndexInterface):
        self.route_index = route_index

    @classmethod
    def from_records(cls, records: Iterable[RouteRecord]) -> MatchingEngine:
        """Build an engine over a freshly bulk loaded index of the given records."""
        return cls(STRtreeRouteIndex(records))

    @classmethod
    def from_file(cls, file) -> MatchingEngine:
        """Build an engine over the routes stored in a JSON file."""
        return cls(STRtreeRouteIndex.from_file(file))

    def find_matches(
        self,
        route: Route,
        search_area: SearchArea,
        config: Optional[MatchingConfig] = None,
    ) -> List[MatchResult]:
        if config is None:
            config = MatchingConfig()

        input_distance = route.distance
        input_distances = route.distances
        input_profile = route.elevation_profile
        input_turns = count_turns(route.geometry, config.turn_threshold_degrees)

        log.debug(
            "matching route %r: %.0f m, %.0f m gain, %d turns",
            route.name,
            input_distance,
            route.elevation_gain,
            input_turns,
        )

        min_distance, max_distance = distance_window(
            input_distance, config.distance_flexibility_pct
        )

        candidates = self.route_index.query_bbox(_search_bounds(search_area))

        in_window = [c for c in candidates if min_distance <= c.distance <= max_distance]

        results = []
        for candidate in in_window:
            has_elevation = len(input_profile) > 0 and len(candidate.elevation_profile) > 0
            if not has_elevation:
                log.debug(
                    "no elevation profile for route %s, skipping elevation terms",
                    candidate.id,
                )

            terms = [
                (
                    config.elevation_importance if has_elevation else 0.0,
                    lambda c: rolling_gradient_elevation_similarity(
                        input_profile,
                        c.elevation_profile,
                        input_distances,
                        c.distances,
                        config.granularity_meters,
                    ),
                ),
                (
                    config.shape_importance,
                    lambda c: hausdorff_similarity(route.geometry, c.geometry),
                ),
                (
                    config.turns_importance,
                    lambda c: turn_sequence_similarity(
                        route.geometry, c.geometry, config.turn_threshold_degrees
                    ),
                ),
                (
                    config.dtw_importance if has_elevation else 0.0,
                    lambda c: dtw_similarity(
                        input_profile, c.elevation_profile, config.dtw_window_size
                    ),
                ),
            ]

            curve_score = weighted_score(terms, candidate)
            result = MatchResult.from_record(candidate, curve_score)

            if result.match_percentage >= config.min_match_percentage:
                results.append(result)

        # sorted is stable, so equal scores keep the index order
        results = sorted(results, key=lambda r: r.match_percentage, reverse=True)

        log.debug(
            "%d candidates in search area, %d within %.0f-%.0f m, %d above %.1f%%",
            len(candidates),
            len(in_window),
            min_distance,
            max_distance,
            len(results),
            config.min_match_percentage,
        )

        return results

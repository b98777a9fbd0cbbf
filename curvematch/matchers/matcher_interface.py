from abc import ABCMeta, abstractmethod
from typing import List, Optional, Sequence, Union

from curvematch.constructs.bounding_box import BoundingBox
from curvematch.constructs.match_config import MatchingConfig
from curvematch.constructs.route import Route
from curvematch.matchers.match_result import MatchResult

SearchArea = Union[BoundingBox, Sequence[float]]


class MatcherInterface(metaclass=ABCMeta):
    """
    Abstract base class defining the interface for route matchers.

    A matcher takes a newly supplied route and ranks the stored routes inside a search
    area by how similar they are to it.

    Examples:
        >>> from curvematch.matchers.engine import MatchingEngine
        >>>
        >>> matcher = MatchingEngine(route_index)
        >>> results = matcher.find_matches(route, (13.30, 52.48, 13.48, 52.56))
    """

    @abstractmethod
    def find_matches(
        self,
        route: Route,
        search_area: SearchArea,
        config: Optional[MatchingConfig] = None,
    ) -> List[MatchResult]:
        """
        Rank the stored routes inside a search area by similarity to a route.

        Args:
            route: The route to match. Must have at least 2 points.
            search_area: The area to search, as a BoundingBox or a (west, south, east, north) tuple in decimal degrees
            config: The matching parameters; defaults are used if None

        Returns:
            The matching routes, best match first
        """

    def find_matches_batch(
        self,
        routes: List[Route],
        search_area: SearchArea,
        config: Optional[MatchingConfig] = None,
    ) -> List[List[MatchResult]]:
        return [self.find_matches(r, search_area, config) for r in routes]

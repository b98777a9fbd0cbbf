from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import List

from curvematch.constructs.bounding_box import BoundingBox
from curvematch.constructs.route import RouteRecord


class RouteIndexInterface(metaclass=ABCMeta):
    """
    Abstract base class defining the query contract of a candidate route index.

    An index holds the stored routes a new route can be matched against and answers
    bounding box queries over them. The matching engine only depends on this contract,
    so an index that is rebuilt wholesale and one that is updated incrementally can be
    used interchangeably.

    Implementations must be safe to query from several threads at once.
    """

    @property
    @abstractmethod
    def routes(self) -> List[RouteRecord]:
        """
        Get a list of all the routes in the index

        Returns:
            All indexed route records, in load order
        """

    @abstractmethod
    def query(
        self, west: float, south: float, east: float, north: float
    ) -> List[RouteRecord]:
        """
        Find the routes whose bounding box intersects a search rectangle.

        The test is intersection, not containment: a route that only partly overlaps the
        search rectangle is returned too.

        Args:
            west: The western edge of the search rectangle in decimal degrees
            south: The southern edge of the search rectangle in decimal degrees
            east: The eastern edge of the search rectangle in decimal degrees
            north: The northern edge of the search rectangle in decimal degrees

        Returns:
            The matching route records in no particular order
        """

    def query_bbox(self, bbox: BoundingBox) -> List[RouteRecord]:
        """Query with a BoundingBox instead of four edges."""
        return self.query(*bbox.bounds)

    def __len__(self):
        return len(self.routes)

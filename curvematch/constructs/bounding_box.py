from __future__ import annotations

from typing import NamedTuple, Sequence, Tuple

from shapely.geometry import Polygon, box


class BoundingBox(NamedTuple):
    """
    An axis-aligned longitude/latitude rectangle.

    Bounding boxes are used both to describe the search area of a match request and to
    enclose each candidate route inside the spatial index. They are immutable.

    Attributes:
        min_lon: The western edge in decimal degrees
        min_lat: The southern edge in decimal degrees
        max_lon: The eastern edge in decimal degrees
        max_lat: The northern edge in decimal degrees

    Examples:
        >>> from curvematch.constructs.bounding_box import BoundingBox
        >>>
        >>> # A search area around central Berlin
        >>> area = BoundingBox.from_bounds(west=13.30, south=52.48, east=13.48, north=52.56)
        >>>
        >>> # The box enclosing a route
        >>> route_box = BoundingBox.from_geometry([(13.405, 52.52), (13.415, 52.525)])
        >>> area.intersects(route_box)
        True
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @classmethod
    def from_bounds(
        cls, west: float, south: float, east: float, north: float
    ) -> BoundingBox:
        """
        Build a bounding box from its four edges.

        Edges given in the wrong order are swapped so the box is always well formed.
        """
        return cls(min(west, east), min(south, north), max(west, east), max(south, north))

    @classmethod
    def from_geometry(cls, geometry: Sequence[Sequence[float]]) -> BoundingBox:
        """
        Build the smallest bounding box enclosing a sequence of points.

        Args:
            geometry: The (longitude, latitude) points to enclose

        Returns:
            A new BoundingBox

        Raises:
            ValueError: If the geometry has no points
        """
        if len(geometry) == 0:
            raise ValueError("cannot build a bounding box from an empty geometry")

        lons = [p[0] for p in geometry]
        lats = [p[1] for p in geometry]

        return cls(min(lons), min(lats), max(lons), max(lats))

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """The box as a (west, south, east, north) tuple."""
        return self.min_lon, self.min_lat, self.max_lon, self.max_lat

    def intersects(self, other: BoundingBox) -> bool:
        """True if the two boxes overlap or touch."""
        return not (
            other.min_lon > self.max_lon
            or other.max_lon < self.min_lon
            or other.min_lat > self.max_lat
            or other.max_lat < self.min_lat
        )

    def contains(self, other: BoundingBox) -> bool:
        """True if the other box lies entirely inside this one."""
        return (
            self.min_lon <= other.min_lon
            and self.min_lat <= other.min_lat
            and self.max_lon >= other.max_lon
            and self.max_lat >= other.max_lat
        )

    def to_polygon(self) -> Polygon:
        """Convert the box to a shapely Polygon for use in a spatial index."""
        return box(self.min_lon, self.min_lat, self.max_lon, self.max_lat)

from __future__ import annotations

import math
from functools import cached_property
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from curvematch.constructs.bounding_box import BoundingBox
from curvematch.utils.exceptions import InvalidRouteException
from curvematch.utils.geo import distance_array, elevation_gain, route_distance


class GeoPoint(NamedTuple):
    """A WGS84 position as (longitude, latitude) in decimal degrees."""

    lon: float
    lat: float


Geometry = Tuple[GeoPoint, ...]


def parse_geometry(points: Iterable[Sequence[Any]]) -> Geometry:
    """
    Convert a sequence of coordinate pairs into a validated tuple of GeoPoints.

    Each pair is read as (longitude, latitude); any further values (such as an
    elevation stored as a third coordinate) are ignored.

    Args:
        points: An iterable of coordinate pairs

    Returns:
        A tuple of GeoPoints in the same order

    Raises:
        InvalidRouteException: If a pair cannot be read as two finite numbers, or
            if a longitude/latitude is outside the WGS84 range
    """
    geometry = []
    for i, p in enumerate(points):
        try:
            lon, lat = float(p[0]), float(p[1])
        except (TypeError, ValueError, IndexError) as e:
            raise InvalidRouteException(
                f"point {i} cannot be read as a (lon, lat) pair: {p!r}"
            ) from e

        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise InvalidRouteException(f"point {i} is not finite: ({lon}, {lat})")
        if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
            raise InvalidRouteException(
                f"point {i} is outside the WGS84 range: ({lon}, {lat})"
            )

        geometry.append(GeoPoint(lon, lat))

    return tuple(geometry)


def parse_elevation_profile(values: Optional[Iterable[Any]]) -> Tuple[float, ...]:
    """
    Convert raw elevation samples to floats; None becomes an empty profile.

    Raises:
        InvalidRouteException: If a sample is not a finite number
    """
    if values is None:
        return ()
    try:
        profile = tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise InvalidRouteException(f"elevation profile is not numeric: {e}") from e

    for i, v in enumerate(profile):
        if not math.isfinite(v):
            raise InvalidRouteException(f"elevation sample {i} is not finite: {v}")

    return profile


class Route:
    """
    A GPS track to be matched against the stored candidate routes.

    A Route pairs an ordered geometry with the elevation profile recorded along it.
    The derived values used for matching (total distance, elevation gain, cumulative
    distance array and bounding box) are computed lazily and cached.

    Routes with fewer than 2 points are accepted by the constructor so that callers can
    decide how to reject them; every derived value of such a route is 0 or empty. Use
    `validate` to reject them explicitly.

    Attributes:
        geometry: The ordered (longitude, latitude) points of the track
        elevation_profile: The elevation samples in meters, index aligned to the geometry
        name: An optional human readable name

    Examples:
        >>> from curvematch.constructs.route import Route
        >>>
        >>> route = Route(
        ...     geometry=[(13.405, 52.520), (13.410, 52.522), (13.415, 52.525)],
        ...     elevation_profile=[34.0, 38.5, 36.0],
        ...     name="evening loop",
        ... )
        >>> print(f"{route.distance:.0f} m, {route.elevation_gain:.1f} m gain")
    """

    def __init__(
        self,
        geometry: Iterable[Sequence[float]],
        elevation_profile: Optional[Iterable[float]] = None,
        name: str = "",
    ):
        self.geometry: Geometry = parse_geometry(geometry)
        self.elevation_profile: Tuple[float, ...] = parse_elevation_profile(
            elevation_profile
        )
        self.name = name

    def __len__(self):
        """Number of points in the geometry."""
        return len(self.geometry)

    def __str__(self):
        output_lines = [
            "Curvematch Route object",
            f"name: {self.name}",
            f"points: {len(self.geometry)}",
            f"distance: {self.distance:.1f} m",
            f"elevation samples: {len(self.elevation_profile)}",
        ]
        return "\n".join(output_lines)

    def __repr__(self):
        return self.__str__()

    @cached_property
    def distance(self) -> float:
        """Total length of the route in meters."""
        return route_distance(self.geometry)

    @cached_property
    def elevation_gain(self) -> float:
        """Total climb of the elevation profile in meters."""
        return elevation_gain(self.elevation_profile)

    @cached_property
    def distances(self) -> List[float]:
        """Cumulative distance from the start for every point, in meters."""
        return distance_array(self.geometry)

    @cached_property
    def bbox(self) -> BoundingBox:
        """The bounding box enclosing the route geometry."""
        return BoundingBox.from_geometry(self.geometry)

    def validate(self) -> Route:
        """
        Check that the route can take part in matching.

        Returns:
            The route itself, so the call can be chained

        Raises:
            InvalidRouteException: If the geometry has fewer than 2 points
        """
        if len(self.geometry) < 2:
            raise InvalidRouteException(
                f"a route needs at least 2 points but got {len(self.geometry)}"
            )
        return self

    def downsample(self, npoints: int) -> Route:
        """
        Reduce the route to a number of evenly spaced points.

        Matching cost grows with the product of the point counts of the two routes being
        compared, so long tracks can be downsampled before they are matched. The first
        and last points are always kept. When the elevation profile is index aligned to
        the geometry it is sampled at the same positions; otherwise it is sampled at
        evenly spaced positions of its own.

        Args:
            npoints: The target number of points

        Returns:
            A new Route with at most npoints points; the route itself if it is already
            small enough

        Raises:
            ValueError: If npoints is smaller than 2

        Examples:
            >>> long_route = Route(points, elevations)  # 5000 points
            >>> short_route = long_route.downsample(500)
            >>> len(short_route)
            500
        """
        if npoints < 2:
            raise ValueError("npoints must be at least 2")

        if len(self.geometry) <= npoints:
            return self

        index = np.unique(np.linspace(0, len(self.geometry) - 1, npoints).astype(int))
        geometry = [self.geometry[i] for i in index]

        profile_length = len(self.elevation_profile)
        if profile_length == len(self.geometry):
            profile = [self.elevation_profile[i] for i in index]
        elif profile_length > npoints:
            profile_index = np.unique(
                np.linspace(0, profile_length - 1, npoints).astype(int)
            )
            profile = [self.elevation_profile[i] for i in profile_index]
        else:
            profile = list(self.elevation_profile)

        return Route(geometry, profile, self.name)

    @classmethod
    def from_dataframe(
        cls,
        dataframe: pd.DataFrame,
        lon_column: str = "longitude",
        lat_column: str = "latitude",
        elevation_column: Optional[str] = "elevation",
        name: str = "",
    ) -> Route:
        """
        Create a route from a pandas DataFrame with one row per track point.

        Args:
            dataframe: A DataFrame of WGS84 coordinates in track order
            lon_column: The name of the longitude column. Default is "longitude".
            lat_column: The name of the latitude column. Default is "latitude".
            elevation_column: The name of the elevation column. If None or missing from the DataFrame, the route has no elevation profile. Default is "elevation".
            name: An optional name for the route

        Returns:
            A new Route

        Raises:
            ValueError: If the longitude or latitude column is missing

        Examples:
            >>> import pandas as pd
            >>>
            >>> df = pd.DataFrame({
            ...     'latitude': [52.520, 52.522, 52.525],
            ...     'longitude': [13.405, 13.410, 13.415],
            ...     'elevation': [34.0, 38.5, 36.0],
            ... })
            >>> route = Route.from_dataframe(df, name="evening loop")
        """
        columns = set(dataframe.columns)
        if lon_column not in columns or lat_column not in columns:
            raise ValueError(
                f"could not find the columns {lon_column!r} and {lat_column!r}; "
                "provide the lon/lat column names to this function"
            )

        geometry = zip(dataframe[lon_column].tolist(), dataframe[lat_column].tolist())
        if elevation_column is not None and elevation_column in columns:
            profile = dataframe[elevation_column].tolist()
        else:
            profile = None

        return cls(geometry, profile, name)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Route:
        """
        Build a route from a dictionary.

        The dictionary holds a "geometry" list of [lon, lat] pairs and optionally an
        "elevation_profile" (or "elevationProfile") list and a "name".
        """
        if "geometry" not in d:
            raise InvalidRouteException("route dictionary has no geometry")

        profile = d.get("elevation_profile", d.get("elevationProfile"))

        return cls(d["geometry"], profile, d.get("name", ""))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the route to a dictionary of plain python values."""
        return {
            "name": self.name,
            "geometry": [list(p) for p in self.geometry],
            "elevation_profile": list(self.elevation_profile),
        }


class RouteRecord(NamedTuple):
    """
    An immutable snapshot of a stored route, as held by the spatial index.

    Records are produced by the persistence collaborator and handed to the index in bulk.
    The distance and elevation gain are the stored values; they are computed from the
    geometry and profile only when the stored values are missing.

    Attributes:
        id: The identifier of the stored route
        name: The route name
        distance: Total route length in meters
        elevation_gain: Total climb in meters
        geometry: The ordered (longitude, latitude) points of the route
        elevation_profile: The elevation samples in meters; may be empty
        bbox: The bounding box enclosing the geometry
    """

    id: str
    name: str
    distance: float
    elevation_gain: float
    geometry: Geometry
    elevation_profile: Tuple[float, ...]
    bbox: BoundingBox

    @property
    def distances(self) -> List[float]:
        return distance_array(self.geometry)

    @classmethod
    def from_route(cls, route_id: Any, route: Route) -> RouteRecord:
        """
        Build a record from a Route, computing all derived values.

        Raises:
            InvalidRouteException: If the route has fewer than 2 points
        """
        route.validate()

        return cls(
            id=str(route_id),
            name=route.name,
            distance=route.distance,
            elevation_gain=route.elevation_gain,
            geometry=route.geometry,
            elevation_profile=route.elevation_profile,
            bbox=route.bbox,
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> RouteRecord:
        """
        Build a record from the dictionary shape used by the route store.

        Keys may be snake_case or camelCase ("elevation_gain" or "elevationGain").
        "distance" and "elevation_gain" are optional and computed when missing.

        Raises:
            InvalidRouteException: If the dictionary has no id or geometry, or the
                geometry is malformed
        """
        if "id" not in d:
            raise InvalidRouteException("route record has no id")

        route = Route.from_dict(d).validate()

        distance = d.get("distance")
        gain = d.get("elevation_gain", d.get("elevationGain"))
        try:
            distance = route.distance if distance is None else float(distance)
            gain = route.elevation_gain if gain is None else float(gain)
        except (TypeError, ValueError) as e:
            raise InvalidRouteException(f"route record {d['id']} has bad totals: {e}") from e

        return cls(
            id=str(d["id"]),
            name=route.name,
            distance=distance,
            elevation_gain=gain,
            geometry=route.geometry,
            elevation_profile=route.elevation_profile,
            bbox=route.bbox,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "distance": self.distance,
            "elevation_gain": self.elevation_gain,
            "geometry": [list(p) for p in self.geometry],
            "elevation_profile": list(self.elevation_profile),
        }

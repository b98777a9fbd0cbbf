from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry import LineString

from curvematch.constructs.route import Geometry, RouteRecord
from curvematch.utils.crs import LATLON_CRS


@dataclass(frozen=True)
class MatchResult:
    """
    A stored route that passed all filters of a match request, with its score.

    Attributes:
        id: The identifier of the stored route
        name: The route name
        distance: Total route length in meters
        elevation_gain: Total climb in meters
        gain_per_km: Meters of climb per kilometer of distance
        match_percentage: The combined similarity as a percentage, in [0, 100]
        curve_score: The combined similarity, in [0, 1]
        geometry: The ordered (longitude, latitude) points of the route
        elevation_profile: The elevation samples in meters
    """

    id: str
    name: str
    distance: float
    elevation_gain: float
    gain_per_km: float
    match_percentage: float
    curve_score: float
    geometry: Geometry
    elevation_profile: Tuple[float, ...]

    @classmethod
    def from_record(cls, record: RouteRecord, curve_score: float) -> MatchResult:
        """
        Build a result for a scored candidate.

        The match percentage is always derived from the curve score.
        """
        if record.distance > 0:
            gain_per_km = record.elevation_gain / (record.distance / 1000.0)
        else:
            gain_per_km = 0.0

        return cls(
            id=record.id,
            name=record.name,
            distance=record.distance,
            elevation_gain=record.elevation_gain,
            gain_per_km=gain_per_km,
            match_percentage=curve_score * 100.0,
            curve_score=curve_score,
            geometry=record.geometry,
            elevation_profile=record.elevation_profile,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the result to the camelCase dictionary used in API responses.

        The geometry is written as a GeoJSON LineString.
        """
        return {
            "id": self.id,
            "name": self.name,
            "distance": self.distance,
            "elevationGain": self.elevation_gain,
            "gainPerKm": self.gain_per_km,
            "matchPercentage": self.match_percentage,
            "curveScore": self.curve_score,
            "geometry": {
                "type": "LineString",
                "coordinates": [[p[0], p[1]] for p in self.geometry],
            },
            "elevationProfile": list(self.elevation_profile),
        }

    def to_flat_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "distance": self.distance,
            "elevation_gain": self.elevation_gain,
            "gain_per_km": self.gain_per_km,
            "match_percentage": self.match_percentage,
            "curve_score": self.curve_score,
            "geom": LineString(self.geometry),
            "elevation_profile": list(self.elevation_profile),
        }


def results_to_dataframe(
    results: Sequence[MatchResult], limit: Optional[int] = None
) -> pd.DataFrame:
    """
    Convert ranked match results to a pandas DataFrame.

    Each row is one matched route; the row order is the ranking order.

    Args:
        results: The ranked match results
        limit: If given, only the first `limit` results are kept

    Returns:
        A DataFrame with the columns id, name, distance, elevation_gain, gain_per_km,
        match_percentage, curve_score, geom and elevation_profile. Empty if there are
        no results.

    Examples:
        >>> results = engine.find_matches(route, search_area, config)
        >>> df = results_to_dataframe(results, limit=20)
        >>> df[['name', 'match_percentage']].head()
    """
    if limit is not None:
        results = results[:limit]

    df = pd.DataFrame([r.to_flat_dict() for r in results])
    df = df.fillna(np.nan)

    return df


def results_to_geodataframe(
    results: Sequence[MatchResult], limit: Optional[int] = None
) -> gpd.GeoDataFrame:
    """
    Convert ranked match results to a GeoDataFrame of route LineStrings.

    The GeoDataFrame is in the WGS84 (EPSG:4326) coordinate reference system.

    Args:
        results: The ranked match results
        limit: If given, only the first `limit` results are kept

    Returns:
        A GeoDataFrame with the same columns as results_to_dataframe and `geom` as its
        geometry column. Returns an empty GeoDataFrame if there are no results.

    Examples:
        >>> gdf = results_to_geodataframe(results)
        >>> gdf.to_file('matches.geojson', driver='GeoJSON')
    """
    df = results_to_dataframe(results, limit)
    if len(df) == 0:
        return gpd.GeoDataFrame()

    gdf = gpd.GeoDataFrame(df, geometry="geom", crs=LATLON_CRS)

    return gdf


def results_to_dicts(results: Sequence[MatchResult]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in results]

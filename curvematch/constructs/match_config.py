from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from curvematch.utils.exceptions import ConfigurationException

# request payloads from the web client use camelCase keys
_CAMEL_CASE_KEYS = {
    "distanceFlexibilityPct": "distance_flexibility_pct",
    "distanceFlexibility": "distance_flexibility_pct",
    "shapeImportance": "shape_importance",
    "turnsImportance": "turns_importance",
    "elevationImportance": "elevation_importance",
    "granularityMeters": "granularity_meters",
    "minMatchPercentage": "min_match_percentage",
    "turnThresholdDegrees": "turn_threshold_degrees",
    "dtwImportance": "dtw_importance",
    "dtwWindowSize": "dtw_window_size",
}


@dataclass(frozen=True)
class MatchingConfig:
    """
    The tunable parameters of a single match request.

    Each similarity metric carries an importance weight. Metrics with an importance of
    0 are not computed at all; the remaining scores are combined as a weighted average.
    When every importance is 0 the engine falls back to a neutral score of 0.5 rather
    than failing.

    Args:
        distance_flexibility_pct: How far, in percent of the input route length, a candidate's length may deviate and still be considered. Default is 10.
        shape_importance: Weight of the positional shape (Hausdorff) similarity. Default is 1.
        turns_importance: Weight of the turn count similarity. Default is 1.
        elevation_importance: Weight of the rolling gradient elevation similarity. Default is 1.
        granularity_meters: Width of the sliding window, in meters, used to compute rolling gradients. Default is 100.
        min_match_percentage: Candidates scoring below this percentage are dropped. Default is 40.
        turn_threshold_degrees: Minimum heading change for a vertex to count as a turn. Default is 30.
        dtw_importance: Weight of the Dynamic Time Warping elevation similarity. Default is 0 (disabled).
        dtw_window_size: Band width, in samples, of the DTW alignment. Default is 10.

    Raises:
        ConfigurationException: If an importance or the flexibility is negative, the
            granularity is not positive, or the minimum percentage is outside [0, 100]

    Examples:
        >>> from curvematch.constructs.match_config import MatchingConfig
        >>>
        >>> # Care mostly about the climbing profile
        >>> config = MatchingConfig(elevation_importance=3.0, turns_importance=0.0)
        >>>
        >>> # Build from a request payload
        >>> config = MatchingConfig.from_dict({"distanceFlexibility": 20, "minMatchPercentage": 25})
    """

    distance_flexibility_pct: float = 10.0
    shape_importance: float = 1.0
    turns_importance: float = 1.0
    elevation_importance: float = 1.0
    granularity_meters: float = 100.0
    min_match_percentage: float = 40.0
    turn_threshold_degrees: float = 30.0
    dtw_importance: float = 0.0
    dtw_window_size: int = 10

    def __post_init__(self):
        importances = {
            "shape_importance": self.shape_importance,
            "turns_importance": self.turns_importance,
            "elevation_importance": self.elevation_importance,
            "dtw_importance": self.dtw_importance,
        }
        for name, value in importances.items():
            if value < 0:
                raise ConfigurationException(f"{name} must not be negative but got {value}")

        if self.distance_flexibility_pct < 0:
            raise ConfigurationException(
                "distance_flexibility_pct must not be negative but got "
                f"{self.distance_flexibility_pct}"
            )
        if self.granularity_meters <= 0:
            raise ConfigurationException(
                f"granularity_meters must be positive but got {self.granularity_meters}"
            )
        if not 0 <= self.min_match_percentage <= 100:
            raise ConfigurationException(
                "min_match_percentage must be within [0, 100] but got "
                f"{self.min_match_percentage}"
            )
        if self.dtw_window_size < 0:
            raise ConfigurationException(
                f"dtw_window_size must not be negative but got {self.dtw_window_size}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> MatchingConfig:
        """
        Build a config from a dictionary, ignoring unknown keys.

        Keys may be given in snake_case or in the camelCase used by request payloads.
        Missing keys keep their defaults.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in d.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = int(value) if name == "dtw_window_size" else float(value)

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

class CurveMatchException(Exception):
    """Base class for all curvematch errors."""


class InvalidRouteException(CurveMatchException):
    """
    Raised when a route cannot be used for matching.

    This covers degenerate geometry (fewer than 2 points), non-finite or
    out-of-range coordinates and records that cannot be parsed at all.
    """


class ConfigurationException(CurveMatchException):
    """Raised when a MatchingConfig holds values outside their allowed range."""

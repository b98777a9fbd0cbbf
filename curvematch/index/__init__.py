from curvematch.index.index_interface import RouteIndexInterface
from curvematch.index.strtree_index import STRtreeRouteIndex

__all__ = ["RouteIndexInterface", "STRtreeRouteIndex"]

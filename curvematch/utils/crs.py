"""
Route geometry is stored as WGS84 (lon, lat) pairs and measured on the sphere,
so the only CRS curvematch needs is the one it tags exported frames with.
"""

from pyproj import CRS

LATLON_CRS = CRS(4326)

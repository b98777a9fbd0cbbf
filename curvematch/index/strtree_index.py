from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from shapely.strtree import STRtree

from curvematch.constructs.bounding_box import BoundingBox
from curvematch.constructs.route import (
    RouteRecord,
    parse_elevation_profile,
    parse_geometry,
)
from curvematch.index.index_interface import RouteIndexInterface
from curvematch.utils.exceptions import InvalidRouteException

log = logging.getLogger(__name__)


class STRtreeRouteIndex(RouteIndexInterface):
    """
    A read-only spatial index of candidate routes backed by a shapely STRtree.

    The bounding boxes of all records are bulk loaded into a Sort-Tile-Recursive packed
    R-tree in a single pass when the index is built. The tree cannot be changed
    afterwards; to pick up new or changed routes, build a new index from the full record
    set. Because nothing is mutated after construction, one index can be queried from
    any number of threads.

    Records with malformed geometry are skipped with a warning instead of failing the
    whole build.

    Args:
        records: The candidate route records to index

    Attributes:
        rtree: The underlying shapely STRtree, or None if no records were indexed

    Examples:
        >>> from curvematch.index.strtree_index import STRtreeRouteIndex
        >>>
        >>> # Load the stored routes exported by the route store
        >>> route_index = STRtreeRouteIndex.from_file('routes.json')
        >>>
        >>> # Find the routes passing through central Berlin
        >>> candidates = route_index.query(13.30, 52.48, 13.48, 52.56)
        >>> print(f"{len(candidates)} candidates")
    """

    def __init__(self, records: Iterable[RouteRecord]):
        self._records: List[RouteRecord] = []

        skipped = 0
        for record in records:
            try:
                self._check_record(record)
            except InvalidRouteException as e:
                log.warning("skipping route %s: %s", getattr(record, "id", None), e)
                skipped += 1
                continue
            self._records.append(record)

        self._build_rtree()

        log.info(
            "indexed %d routes, skipped %d malformed routes", len(self._records), skipped
        )

    @staticmethod
    def _check_record(record: RouteRecord):
        if not isinstance(record, RouteRecord):
            raise InvalidRouteException(f"expected a RouteRecord but got {type(record)}")

        geometry = parse_geometry(record.geometry)
        if len(geometry) < 2:
            raise InvalidRouteException(
                f"a route needs at least 2 points but got {len(geometry)}"
            )
        parse_elevation_profile(record.elevation_profile)
        if not isinstance(record.bbox, BoundingBox):
            raise InvalidRouteException(f"route has no bounding box: {record.bbox!r}")

    def _build_rtree(self):
        if len(self._records) == 0:
            self.rtree = None
            return

        geoms = [r.bbox.to_polygon() for r in self._records]
        self.rtree = STRtree(geoms)

    def __str__(self):
        output_lines = [
            "Curvematch STRtreeRouteIndex object:\n",
            f" - routes: {len(self._records)} RouteRecord objects",
        ]
        return "\n".join(output_lines)

    def __repr__(self):
        return self.__str__()

    @property
    def routes(self) -> List[RouteRecord]:
        return list(self._records)

    def query(
        self, west: float, south: float, east: float, north: float
    ) -> List[RouteRecord]:
        if self.rtree is None:
            return []

        search_area = BoundingBox.from_bounds(west, south, east, north)

        # without a predicate the tree tests envelopes, which for boxes is exactly
        # bounding box intersection
        hits = self.rtree.query(search_area.to_polygon())

        return [self._records[i] for i in sorted(int(h) for h in hits)]

    @classmethod
    def from_dicts(cls, dicts: Iterable[Dict[str, Any]]) -> STRtreeRouteIndex:
        """
        Build an index from route dictionaries as stored by the route store.

        Dictionaries that cannot be parsed into a RouteRecord are skipped with a warning.

        Args:
            dicts: Route dictionaries with "id", "name", "geometry" (a list of [lon, lat] pairs) and optionally "distance", "elevation_gain" and "elevation_profile"

        Returns:
            A new STRtreeRouteIndex
        """
        records = []
        for d in dicts:
            try:
                records.append(RouteRecord.from_dict(d))
            except InvalidRouteException as e:
                log.warning("skipping route %s: %s", d.get("id"), e)

        return cls(records)

    @classmethod
    def from_file(cls, file: Union[str, Path]) -> STRtreeRouteIndex:
        """
        Build an index from a JSON file holding a list of route dictionaries.

        Args:
            file: Path to the JSON file

        Returns:
            A new STRtreeRouteIndex

        Raises:
            FileNotFoundError: If the file does not exist
            TypeError: If the file is not a .json file or does not hold a list
        """
        p = Path(file)
        if not p.is_file():
            raise FileNotFoundError(file)
        elif p.suffix != ".json":
            raise TypeError("STRtreeRouteIndex only supports reading from json files")

        with p.open("r") as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise TypeError(f"expected a list of routes in {p} but got {type(data)}")

        return cls.from_dicts(data)

    def to_file(self, outfile: Union[str, Path]):
        """Write all indexed records to a JSON file readable by `from_file`."""
        outfile = Path(outfile)
        if outfile.suffix != ".json":
            raise TypeError("STRtreeRouteIndex only supports writing to json files")

        with open(outfile, "w") as f:
            json.dump([r.to_dict() for r in self._records], f)

"""
Polygon Algebra Module
======================
Boolean operations on multipolygons behind a small injectable interface.

The engine only ever talks to ``PolygonAlgebra``; ``ShapelyPolygonAlgebra``
is the production implementation backed by shapely/GEOS. Multipolygons are
plain nested lists (polygons of rings of ``(x, y)`` points, ring 0 outer) so
results can be serialized and compared without shapely objects leaking out.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from shapely.errors import ShapelyError
from shapely.geometry import GeometryCollection, MultiPolygon as ShapelyMultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient
from shapely.ops import unary_union
from shapely.prepared import prep
from shapely.validation import make_valid

from config_tiling import TilingConfig
from tile_models import MultiPolygon, Ring

logger = logging.getLogger(__name__)


class PolygonAlgebraError(Exception):
    """Raised when a boolean operation cannot be completed."""
    pass


class PolygonAlgebra(ABC):
    """Union, difference and intersection over nested-list multipolygons."""

    @abstractmethod
    def union(self, shapes: Sequence[MultiPolygon]) -> MultiPolygon:
        """Union of all given multipolygons."""

    @abstractmethod
    def difference(self, subject: MultiPolygon, clip: MultiPolygon) -> MultiPolygon:
        """Parts of ``subject`` not covered by ``clip``."""

    @abstractmethod
    def intersection(self, subject: MultiPolygon, clip: MultiPolygon) -> MultiPolygon:
        """Parts of ``subject`` covered by ``clip``."""

    def clip_rings(self, rings: Sequence[Ring], area: MultiPolygon) -> List[MultiPolygon]:
        """Intersect each ring with ``area``; empty lists mark misses."""
        return [self.intersection([[ring]], area) for ring in rings]


class ShapelyPolygonAlgebra(PolygonAlgebra):
    """Polygon algebra backed by shapely."""

    def __init__(self, area_epsilon: Optional[float] = None):
        """Initialize with the area below which result parts are dropped."""
        if area_epsilon is None:
            area_epsilon = TilingConfig.GEOMETRY['area_epsilon']
        self.area_epsilon = area_epsilon

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_geometry(self, multi_polygon: MultiPolygon) -> BaseGeometry:
        """Convert nested rings to a valid shapely geometry."""
        parts = []
        for rings in multi_polygon or []:
            if not rings or len(rings[0]) < 3:
                continue
            poly = Polygon(rings[0], [r for r in rings[1:] if len(r) >= 3])
            if not poly.is_valid:
                poly = make_valid(poly)
            if not poly.is_empty:
                parts.append(poly)

        if not parts:
            return Polygon()
        if len(parts) == 1:
            return parts[0]
        return unary_union(parts)

    def from_geometry(self, geometry: BaseGeometry) -> MultiPolygon:
        """Convert a shapely geometry to nested rings, keeping polygonal parts."""
        if geometry is None or geometry.is_empty:
            return []

        if isinstance(geometry, Polygon):
            polygons = [geometry]
        elif isinstance(geometry, (ShapelyMultiPolygon, GeometryCollection)):
            polygons = []
            for part in geometry.geoms:
                polygons.extend(self._polygons_of(part))
        else:
            return []

        result = []
        for poly in polygons:
            if poly.area <= self.area_epsilon:
                continue
            poly = orient(poly, sign=1.0)
            rings = [[(float(x), float(y)) for x, y in poly.exterior.coords]]
            rings.extend([(float(x), float(y)) for x, y in interior.coords]
                         for interior in poly.interiors)
            result.append(rings)
        return result

    def _polygons_of(self, geometry: BaseGeometry) -> List[Polygon]:
        if isinstance(geometry, Polygon):
            return [geometry]
        if isinstance(geometry, (ShapelyMultiPolygon, GeometryCollection)):
            polygons = []
            for part in geometry.geoms:
                polygons.extend(self._polygons_of(part))
            return polygons
        return []

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def union(self, shapes: Sequence[MultiPolygon]) -> MultiPolygon:
        try:
            geometries = [self.to_geometry(s) for s in shapes]
            geometries = [g for g in geometries if not g.is_empty]
            if not geometries:
                return []
            return self.from_geometry(unary_union(geometries))
        except (ShapelyError, ValueError) as e:
            logger.warning(f"Polygon union failed: {e}")
            raise PolygonAlgebraError(f"Union failed: {e}") from e

    def difference(self, subject: MultiPolygon, clip: MultiPolygon) -> MultiPolygon:
        try:
            subject_geom = self.to_geometry(subject)
            clip_geom = self.to_geometry(clip)
            if clip_geom.is_empty:
                return self.from_geometry(subject_geom)
            return self.from_geometry(subject_geom.difference(clip_geom))
        except (ShapelyError, ValueError) as e:
            logger.warning(f"Polygon difference failed: {e}")
            raise PolygonAlgebraError(f"Difference failed: {e}") from e

    def intersection(self, subject: MultiPolygon, clip: MultiPolygon) -> MultiPolygon:
        try:
            subject_geom = self.to_geometry(subject)
            clip_geom = self.to_geometry(clip)
            return self.from_geometry(subject_geom.intersection(clip_geom))
        except (ShapelyError, ValueError) as e:
            logger.warning(f"Polygon intersection failed: {e}")
            raise PolygonAlgebraError(f"Intersection failed: {e}") from e

    def clip_rings(self, rings: Sequence[Ring], area: MultiPolygon) -> List[MultiPolygon]:
        """Batch intersection with the area converted and prepared once."""
        try:
            area_geom = self.to_geometry(area)
            prepared = prep(area_geom)
            results = []

            for ring in rings:
                tile = Polygon(ring)
                if prepared.disjoint(tile):
                    results.append([])
                elif prepared.contains(tile):
                    results.append([[list(ring)]])
                else:
                    results.append(self.from_geometry(tile.intersection(area_geom)))

            return results
        except (ShapelyError, ValueError) as e:
            logger.warning(f"Tile clipping failed: {e}")
            raise PolygonAlgebraError(f"Clipping failed: {e}") from e

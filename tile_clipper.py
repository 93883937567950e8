"""
Tile Clipper Module
===================
Clips candidate tiles against the available area and classifies each piece
as a full tile or a cut tile.
"""

import logging
from typing import Optional, Tuple

from area_resolver import composite_bounds
from config_tiling import TilingConfig
from pattern_generator import CandidateTile, PatternGenerator
from pattern_validator import validate_pattern
from polygon_algebra import PolygonAlgebra, ShapelyPolygonAlgebra
from tile_geometry import GeometryUtils
from tile_models import ErrorKind, MultiPolygon, Point, PreviewResult, Room, Tile
from utils import timer

logger = logging.getLogger(__name__)


class TileClipper:
    """Produces the classified tiles covering a room."""

    def __init__(self, algebra: Optional[PolygonAlgebra] = None,
                 max_tiles: Optional[int] = None,
                 full_tolerance: Optional[float] = None):
        """
        Initialize tile clipper.

        Args:
            algebra: Polygon boolean operations, shapely-backed by default
            max_tiles: Candidate ceiling, defaults to the configured one
            full_tolerance: Share of the nominal area counted as a full tile
        """
        self.algebra = algebra or ShapelyPolygonAlgebra()
        self.max_tiles = max_tiles or TilingConfig.PREVIEW['max_tiles']
        self.full_tolerance = full_tolerance or TilingConfig.PREVIEW['full_tile_tolerance']
        self.area_epsilon = TilingConfig.GEOMETRY['area_epsilon']

    @timer
    def preview(self, room: Room, available_area: Optional[MultiPolygon],
                include_excluded: bool = False) -> PreviewResult:
        """
        Generate the tiles covering ``available_area``.

        Args:
            room: Room with tile, pattern and excluded tile ids
            available_area: Output of the area resolver
            include_excluded: Keep user-excluded tiles, flagged, instead of
                dropping them

        Returns:
            PreviewResult with tiles in lattice order, or an error
        """
        if room.tile.is_degenerate or not available_area:
            return PreviewResult()

        check = validate_pattern(room.tile, room.pattern.type)
        if not check.ok:
            return PreviewResult(error=check.message.text,
                                 error_kind=ErrorKind.PATTERN_RATIO)

        generator = PatternGenerator(room.tile, room.pattern)
        area_bounds = GeometryUtils.multi_polygon_bounds(available_area)
        room_bounds = composite_bounds(room.sections) or area_bounds
        plan = generator.generate(area_bounds, room_bounds, max_tiles=self.max_tiles)

        if plan.estimated_count > self.max_tiles:
            return PreviewResult(
                error=f"Too many tiles for preview ({plan.estimated_count})",
                error_kind=ErrorKind.CAPACITY,
                candidate_count=plan.estimated_count,
            )

        try:
            pieces = self.algebra.clip_rings([c.ring for c in plan.candidates],
                                             available_area)
        except Exception as e:
            logger.warning(f"Clipping failed for room {room.id or '?'}: {e}")
            return PreviewResult(error=str(e), error_kind=ErrorKind.AREA,
                                 candidate_count=len(plan.candidates))

        excluded_ids = set(room.excluded_tiles)
        tiles = []

        for candidate, clipped in zip(plan.candidates, pieces):
            if not clipped:
                continue
            area = GeometryUtils.multi_polygon_area(clipped)
            if area <= self.area_epsilon:
                continue

            excluded = candidate.id in excluded_ids
            if excluded and not include_excluded:
                continue

            is_full = area >= self.full_tolerance * candidate.nominal_area
            if is_full:
                outline = [[GeometryUtils.close_ring(candidate.ring)]]
                need_w, need_h = candidate.tile_w, candidate.tile_h
            else:
                outline = clipped
                need_w, need_h = self._need_footprint(generator, plan.origin,
                                                      clipped, candidate)

            tiles.append(Tile(
                id=candidate.id,
                outline=outline,
                is_full=is_full,
                area_cm2=area,
                nominal_area_cm2=candidate.nominal_area,
                tile_w_cm=candidate.tile_w,
                tile_h_cm=candidate.tile_h,
                need_w_cm=need_w,
                need_h_cm=need_h,
                excluded=excluded,
            ))

        full = sum(1 for t in tiles if t.is_full)
        logger.info(f"Preview: {len(tiles)} tiles ({full} full, {len(tiles) - full} cut) "
                    f"from {len(plan.candidates)} candidates")
        return PreviewResult(tiles=tiles, candidate_count=len(plan.candidates))

    @staticmethod
    def _need_footprint(generator: PatternGenerator, origin: Point, clipped: MultiPolygon,
                        candidate: CandidateTile) -> Tuple[float, float]:
        """Bounding box of a cut piece measured along the tile's own axes."""
        points = [p for poly in clipped for p in poly[0]]
        local = GeometryUtils.rotate_points(points, -generator.pattern.rotation_deg, origin)
        min_x, min_y, max_x, max_y = GeometryUtils.ring_bounds(local)
        return (min(candidate.tile_w, max_x - min_x),
                min(candidate.tile_h, max_y - min_y))


def tiles_for_preview(room: Room, available_area: Optional[MultiPolygon],
                      include_excluded: bool = False,
                      algebra: Optional[PolygonAlgebra] = None) -> PreviewResult:
    """Convenience wrapper around ``TileClipper.preview``."""
    return TileClipper(algebra).preview(room, available_area, include_excluded)

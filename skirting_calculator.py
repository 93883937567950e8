"""
Skirting Calculator Module
==========================
Finds the wall runs that receive skirting boards, chops them into pieces and
works out the material: strips cut from floor tiles or boards bought by the
piece.
"""

import logging
import math
from typing import Iterator, List, Optional, Tuple

from shapely.geometry import LineString, Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge, unary_union
from shapely.validation import make_valid

from config_tiling import TilingConfig
from tile_models import (Point, PricingConfig, Room, SkirtingNeeds, SkirtingType,
                         SkirtSegment)
from utils import cm2_to_m2

logger = logging.getLogger(__name__)

ID_PRECISION = 2


def _lines_of(geometry: BaseGeometry) -> Iterator[LineString]:
    """Linear parts of any geometry; points are dropped."""
    if geometry is None or geometry.is_empty:
        return
    if isinstance(geometry, LineString):
        yield geometry
    elif hasattr(geometry, 'geoms'):
        for part in geometry.geoms:
            yield from _lines_of(part)


def _straight_runs(geometry: BaseGeometry) -> List[Tuple[Point, Point]]:
    """Split linear geometry into straight wall runs."""
    lines = list(_lines_of(geometry))
    if not lines:
        return []

    merged = linemerge(lines) if len(lines) > 1 else lines[0]
    runs = []
    for line in _lines_of(merged):
        line = line.simplify(0, preserve_topology=False)
        coords = list(line.coords)
        for start, end in zip(coords, coords[1:]):
            if math.dist(start, end) > 0:
                runs.append(((start[0], start[1]), (end[0], end[1])))
    return runs


def _normalized(p1: Point, p2: Point) -> Tuple[Point, Point]:
    """Order endpoints so a run has the same id whichever way it was traced."""
    a = (round(p1[0], 6) + 0.0, round(p1[1], 6) + 0.0)
    b = (round(p2[0], 6) + 0.0, round(p2[1], 6) + 0.0)
    return (a, b) if a <= b else (b, a)


def _run_id(p1: Point, p2: Point, index: int) -> str:
    return (f"w{p1[0]:.{ID_PRECISION}f},{p1[1]:.{ID_PRECISION}f}-"
            f"{p2[0]:.{ID_PRECISION}f},{p2[1]:.{ID_PRECISION}f}-p{index}")


def piece_length(room: Room) -> Optional[float]:
    """Length of one skirting piece, or None to keep whole runs."""
    if room.skirting.type == SkirtingType.BOUGHT:
        length = room.skirting.bought_width_cm
    else:
        length = room.tile.width_cm
    return length if length and length > 0 else None


class SkirtingCalculator:
    """Computes skirting runs and material for a room."""

    def __init__(self, room: Room):
        """
        Initialize skirting calculator.

        Args:
            room: Room with sections, exclusions and skirting settings
        """
        self.room = room
        self.tolerance = TilingConfig.SKIRTING['boundary_tolerance_cm']

        sections = [s for s in room.sections if s.is_valid]
        self.room_geom = unary_union([box(*s.bounds) for s in sections]) if sections else Polygon()

        self.exclusion_geoms = []
        for exclusion in room.exclusions:
            if exclusion.is_degenerate:
                continue
            geom = Polygon(exclusion.to_ring())
            if not geom.is_valid:
                geom = make_valid(geom)
            self.exclusion_geoms.append((exclusion, geom))

    def _wall_runs(self) -> List[Tuple[Tuple[Point, Point], str]]:
        """Outer boundary portions of skirting-enabled sections."""
        if not self.room.skirting.enabled or self.room_geom.is_empty:
            return []

        boundary = self.room_geom.boundary
        removed = unary_union([g for _, g in self.exclusion_geoms]) if self.exclusion_geoms else None
        covered = LineString()
        runs = []

        for section in self.room.sections:
            if not (section.is_valid and section.skirting_enabled):
                continue
            x1, y1, x2, y2 = section.bounds
            edges = [((x1, y1), (x2, y1)), ((x2, y1), (x2, y2)),
                     ((x2, y2), (x1, y2)), ((x1, y2), (x1, y1))]
            for start, end in edges:
                wall = LineString([start, end]).intersection(boundary)
                if removed is not None:
                    wall = wall.difference(removed)
                # Overlapping sections share outer walls; count each run once
                wall = wall.difference(covered)
                covered = unary_union([covered, wall]) if not covered.is_empty else wall
                runs.extend((run, section.id) for run in _straight_runs(wall))

        return runs

    def _exclusion_runs(self) -> List[Tuple[Tuple[Point, Point], str]]:
        """Exclusion borders that lie inside the room, off the walls."""
        if self.room_geom.is_empty:
            return []

        boundary = self.room_geom.boundary
        runs = []

        for index, (exclusion, geom) in enumerate(self.exclusion_geoms):
            if not exclusion.skirting_enabled:
                continue
            border = geom.boundary.intersection(self.room_geom).difference(boundary)
            others = [g for i, (_, g) in enumerate(self.exclusion_geoms) if i != index]
            if others:
                border = border.difference(unary_union(others))
            runs.extend((run, exclusion.id) for run in _straight_runs(border))

        return runs

    def segments(self, include_excluded: bool = False) -> List[SkirtSegment]:
        """
        Skirting pieces for the room.

        Args:
            include_excluded: Keep pieces the user removed, flagged as
                excluded, instead of dropping them

        Returns:
            Pieces in wall order, each at most one piece length long
        """
        excluded_ids = set(self.room.excluded_skirts)
        length_limit = piece_length(self.room)
        segments = []

        for (start, end), source_id in self._wall_runs() + self._exclusion_runs():
            p1, p2 = _normalized(start, end)
            run_length = math.dist(p1, p2)
            if run_length <= self.tolerance:
                continue

            count = 1 if not length_limit else max(1, math.ceil(run_length / length_limit - 1e-9))
            ux, uy = (p2[0] - p1[0]) / run_length, (p2[1] - p1[1]) / run_length

            for k in range(count):
                t0 = k * length_limit if length_limit else 0.0
                t1 = min(run_length, (k + 1) * length_limit) if length_limit else run_length
                seg_id = _run_id(p1, p2, k)
                excluded = seg_id in excluded_ids
                if excluded and not include_excluded:
                    continue
                segments.append(SkirtSegment(
                    id=seg_id,
                    p1=(p1[0] + ux * t0, p1[1] + uy * t0),
                    p2=(p1[0] + ux * t1, p1[1] + uy * t1),
                    length_cm=t1 - t0,
                    excluded=excluded,
                    source_id=source_id,
                ))

        logger.debug(f"Skirting: {len(segments)} pieces for room {self.room.id or '?'}")
        return segments

    def perimeter(self) -> float:
        """Total skirting length in cm, removed pieces not counted."""
        return sum(s.length_cm for s in self.segments())

    def needs(self, pricing: Optional[PricingConfig] = None) -> SkirtingNeeds:
        """Material and cost of the skirting."""
        pricing = pricing or PricingConfig()
        settings = self.room.skirting
        pieces = self.segments()

        needs = SkirtingNeeds(
            enabled=bool(pieces),
            type=settings.type,
            total_length_cm=sum(s.length_cm for s in pieces),
            pieces=len(pieces),
        )
        if not pieces:
            return needs

        if settings.type == SkirtingType.BOUGHT:
            needs.bought_pieces = len(pieces)
            needs.cost = len(pieces) * settings.bought_price_per_piece
            return needs

        tile = self.room.tile
        if settings.height_cm > 0 and tile.height_cm > 0:
            needs.strips_per_tile = min(TilingConfig.SKIRTING['max_strips_per_tile'],
                                        int(math.floor(tile.height_cm / settings.height_cm)))
        if needs.strips_per_tile > 0:
            needs.additional_tiles = math.ceil(len(pieces) / needs.strips_per_tile)
        else:
            logger.warning(f"Skirting height {settings.height_cm} cm exceeds tile height "
                           f"{tile.height_cm} cm; no strips can be cut")

        needs.cost = (needs.additional_tiles * cm2_to_m2(tile.nominal_area_cm2)
                      * pricing.price_per_m2)
        return needs


def compute_skirting_segments(room: Room, include_excluded: bool = False) -> List[SkirtSegment]:
    """Convenience wrapper around ``SkirtingCalculator.segments``."""
    return SkirtingCalculator(room).segments(include_excluded)


def compute_skirting_perimeter(room: Room) -> float:
    """Convenience wrapper around ``SkirtingCalculator.perimeter``."""
    return SkirtingCalculator(room).perimeter()


def compute_skirting_needs(room: Room, pricing: Optional[PricingConfig] = None) -> SkirtingNeeds:
    """Convenience wrapper around ``SkirtingCalculator.needs``."""
    return SkirtingCalculator(room).needs(pricing)

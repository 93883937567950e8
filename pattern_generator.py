"""
Pattern Generator Module
========================
Lays an unbounded tile lattice over a room for every supported bond pattern
and tile shape, and hands back the candidate tiles that may touch the area.

Every pattern is described the same way: two lattice basis vectors and a
list of motifs (tile outlines relative to a unit cell corner). Tiles are
enumerated in lattice space, then rotated rigidly about the pattern origin.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from config_tiling import TilingConfig
from tile_geometry import Bounds, GeometryUtils
from tile_models import (OriginPreset, PatternConfig, PatternType, Point, Ring,
                         TileConfig, TileShape)

logger = logging.getLogger(__name__)


@dataclass
class Motif:
    """One tile inside a lattice unit cell."""
    dx: float
    dy: float
    w: float
    h: float
    shape: str = "rect"
    row_off: int = 0
    col_off: int = 0
    tag: str = ""

    def ring(self, x: float, y: float) -> Ring:
        """Outline in lattice space for a cell corner at (x, y)."""
        left, top = x + self.dx, y + self.dy
        if self.shape == "hex":
            return GeometryUtils.hex_ring(left, top, self.w)
        if self.shape == "rhombus":
            return GeometryUtils.rhombus_ring(left, top, self.w, self.h)
        return GeometryUtils.rect_ring(left, top, self.w, self.h)


@dataclass
class LatticeSpec:
    """Basis vectors, motifs and id scheme of a pattern."""
    a1: Tuple[float, float]
    a2: Tuple[float, float]
    motifs: List[Motif]
    prefix: str = ""
    row_stride: int = 1
    col_stride: int = 1

    @property
    def extent(self) -> float:
        """Largest distance a motif reaches from its cell corner."""
        return max(max(abs(m.dx) + m.w, abs(m.dy) + m.h) for m in self.motifs)

    def tile_id(self, i: int, j: int, motif: Motif) -> str:
        row = j * self.row_stride + motif.row_off
        col = i * self.col_stride + motif.col_off
        base = f"{self.prefix}r{row}c{col}"
        return f"{base}-{motif.tag}" if motif.tag else base


@dataclass
class CandidateTile:
    """A lattice tile in room coordinates, before clipping."""
    id: str
    ring: Ring
    nominal_area: float
    tile_w: float
    tile_h: float


@dataclass
class LatticePlan:
    """Candidates for one room together with the placement used."""
    candidates: List[CandidateTile] = field(default_factory=list)
    estimated_count: int = 0
    origin: Point = (0.0, 0.0)
    anchor: Point = (0.0, 0.0)
    rotation_deg: float = 0.0


def detect_bond_period(fraction: float) -> int:
    """Rows after which a running bond repeats, or 0 when it never does."""
    if not fraction or fraction <= 0 or not math.isfinite(fraction):
        return 0
    inverse = 1.0 / fraction
    rounded = math.floor(inverse + 0.5)
    if (abs(inverse - rounded) < TilingConfig.PATTERNS['ratio_epsilon']
            and 2 <= rounded <= TilingConfig.PATTERNS['max_bond_period']):
        return rounded
    return 0


class PatternGenerator:
    """Generates candidate tiles for a tile configuration and pattern."""

    def __init__(self, tile: TileConfig, pattern: PatternConfig):
        """
        Initialize pattern generator.

        Args:
            tile: Tile shape, size and grout width
            pattern: Bond pattern, rotation, offsets and origin anchor
        """
        self.tile = tile
        self.pattern = pattern
        self.spec = None if tile.is_degenerate else self._build_spec()

    # ------------------------------------------------------------------
    # Lattice definitions
    # ------------------------------------------------------------------

    def _build_spec(self) -> LatticeSpec:
        shape = self.tile.shape
        if shape == TileShape.HEX:
            return self._hex_spec()
        if shape == TileShape.RHOMBUS:
            return self._rhombus_spec()

        builders = {
            PatternType.GRID: self._grid_spec,
            PatternType.RUNNING_BOND: self._running_bond_spec,
            PatternType.HERRINGBONE: self._herringbone_spec,
            PatternType.DOUBLE_HERRINGBONE: self._double_herringbone_spec,
            PatternType.BASKETWEAVE: self._basketweave_spec,
            PatternType.VERTICAL_STACK_ALTERNATING: self._vertical_stack_spec,
        }
        return builders[self.pattern.type]()

    def _grid_spec(self) -> LatticeSpec:
        tw, th, g = self.tile.width_cm, self.tile.height_cm, self.tile.grout_width_cm
        return LatticeSpec((tw + g, 0.0), (0.0, th + g), [Motif(0.0, 0.0, tw, th)])

    def _running_bond_spec(self) -> LatticeSpec:
        tw, th, g = self.tile.width_cm, self.tile.height_cm, self.tile.grout_width_cm
        step_x, step_y = tw + g, th + g
        shift = step_x * self.pattern.bond_fraction
        period = detect_bond_period(self.pattern.bond_fraction) or 2

        motifs = [Motif((k * shift) % step_x, k * step_y, tw, th, row_off=k)
                  for k in range(period)]
        return LatticeSpec((step_x, 0.0), (0.0, period * step_y), motifs,
                           row_stride=period)

    def _herringbone_spec(self) -> LatticeSpec:
        long_side, short_side = self.tile.long_side, self.tile.short_side
        g = self.tile.grout_width_cm
        lp, sp = long_side + g, short_side + g

        motifs = [
            Motif(0.0, 0.0, long_side, short_side, tag="h"),
            Motif(lp, sp - lp, short_side, long_side, tag="v"),
        ]
        return LatticeSpec((sp, sp), (lp, -lp), motifs, prefix="hb-")

    def _double_herringbone_spec(self) -> LatticeSpec:
        long_side, short_side = self.tile.long_side, self.tile.short_side
        g = self.tile.grout_width_cm
        lp = long_side + g
        bp = 2 * short_side + 2 * g
        s_pitch = short_side + g

        motifs = [
            Motif(0.0, 0.0, long_side, short_side, tag="h0"),
            Motif(0.0, s_pitch, long_side, short_side, tag="h1"),
            Motif(lp, bp - lp, short_side, long_side, tag="v0"),
            Motif(lp + s_pitch, bp - lp, short_side, long_side, tag="v1"),
        ]
        return LatticeSpec((bp, bp), (lp, -lp), motifs, prefix="dhb-")

    def _basketweave_spec(self) -> LatticeSpec:
        long_side, short_side = self.tile.long_side, self.tile.short_side
        g = self.tile.grout_width_cm
        count = max(1, math.floor(long_side / short_side + 0.5))
        s_pitch = short_side + g
        block = count * s_pitch

        motifs = []
        for br in range(2):
            for bc in range(2):
                horizontal = (br + bc) % 2 == 0
                for k in range(count):
                    if horizontal:
                        motif = Motif(bc * block, br * block + k * s_pitch,
                                      long_side, short_side)
                    else:
                        motif = Motif(bc * block + k * s_pitch, br * block,
                                      short_side, long_side)
                    motif.row_off, motif.col_off, motif.tag = br, bc, str(k)
                    motifs.append(motif)

        return LatticeSpec((2 * block, 0.0), (0.0, 2 * block), motifs,
                           prefix="bw-", row_stride=2, col_stride=2)

    def _vertical_stack_spec(self) -> LatticeSpec:
        tw, th, g = self.tile.width_cm, self.tile.height_cm, self.tile.grout_width_cm
        step_x, step_y = tw + g, th + g
        motifs = [
            Motif(0.0, 0.0, tw, th),
            Motif(step_x, step_y / 2.0, tw, th, col_off=1),
        ]
        return LatticeSpec((2 * step_x, 0.0), (0.0, step_y), motifs,
                           prefix="vsa-", col_stride=2)

    def _hex_spec(self) -> LatticeSpec:
        width = self.tile.width_cm
        height = width * math.sqrt(3) / 2.0
        scale = (height + self.tile.grout_width_cm) / height
        step_x = 0.75 * width * scale
        step_y = height * scale

        motifs = [
            Motif(0.0, 0.0, width, height, shape="hex"),
            Motif(step_x, step_y / 2.0, width, height, shape="hex", col_off=1),
        ]
        return LatticeSpec((2 * step_x, 0.0), (0.0, step_y), motifs,
                           prefix="hex-", col_stride=2)

    def _rhombus_spec(self) -> LatticeSpec:
        w, h = self.tile.width_cm, self.tile.height_cm
        edge = math.hypot(w / 2.0, h / 2.0)
        scale = 1.0 + 2.0 * edge * self.tile.grout_width_cm / (w * h)
        motifs = [Motif(0.0, 0.0, w, h, shape="rhombus")]
        return LatticeSpec((w * scale, 0.0), (w * scale / 2.0, h * scale / 2.0),
                           motifs, prefix="rh-")

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def resolve_origin(self, room_bounds: Bounds) -> Point:
        """Pattern origin in room coordinates; rotation pivots here."""
        min_x, min_y, max_x, max_y = room_bounds
        origin = self.pattern.origin
        presets = {
            OriginPreset.TOP_LEFT: (min_x, min_y),
            OriginPreset.TOP_RIGHT: (max_x, min_y),
            OriginPreset.BOTTOM_LEFT: (min_x, max_y),
            OriginPreset.BOTTOM_RIGHT: (max_x, max_y),
            OriginPreset.CENTER: ((min_x + max_x) / 2.0, (min_y + max_y) / 2.0),
        }
        return presets.get(origin.preset, (origin.x_cm, origin.y_cm))

    def resolve_anchor(self, origin: Point) -> Point:
        """Lattice-space corner of cell (0, 0)."""
        x = origin[0] + self.pattern.offset_x_cm
        y = origin[1] + self.pattern.offset_y_cm
        if self.pattern.origin.preset == OriginPreset.CENTER and self.spec:
            first = self.spec.motifs[0]
            x -= first.w / 2.0
            y -= first.h / 2.0
        return (x, y)

    def room_to_lattice(self, point: Point, origin: Point) -> Point:
        """Undo the pattern rotation for a room point."""
        return GeometryUtils.rotate_point(point, -self.pattern.rotation_deg, origin)

    def lattice_to_room(self, point: Point, origin: Point) -> Point:
        """Apply the pattern rotation to a lattice point."""
        return GeometryUtils.rotate_point(point, self.pattern.rotation_deg, origin)

    def _index_ranges(self, lattice_bounds: Bounds,
                      anchor: Point) -> Tuple[range, range]:
        """Cell index ranges whose corners can reach the lattice bounds."""
        basis = np.column_stack([self.spec.a1, self.spec.a2])
        corners = np.asarray(GeometryUtils.bounds_corners(lattice_bounds)) - np.asarray(anchor)
        coeffs = np.linalg.solve(basis, corners.T)

        i_min = int(math.floor(coeffs[0].min())) - 1
        i_max = int(math.ceil(coeffs[0].max())) + 1
        j_min = int(math.floor(coeffs[1].min())) - 1
        j_max = int(math.ceil(coeffs[1].max())) + 1
        return range(i_min, i_max + 1), range(j_min, j_max + 1)

    def generate(self, area_bounds: Optional[Bounds], room_bounds: Optional[Bounds] = None,
                 max_tiles: Optional[int] = None) -> LatticePlan:
        """
        Enumerate candidate tiles covering ``area_bounds``.

        Args:
            area_bounds: Bounding box of the available area
            room_bounds: Bounding box the origin presets refer to
                (defaults to ``area_bounds``)
            max_tiles: Ceiling on the estimated count; above it no
                candidates are built and only the estimate is returned

        Returns:
            LatticePlan with candidates in row-major lattice order
        """
        if self.spec is None or area_bounds is None:
            return LatticePlan(rotation_deg=self.pattern.rotation_deg)

        room_bounds = room_bounds or area_bounds
        rotation = self.pattern.rotation_deg
        origin = self.resolve_origin(room_bounds)
        anchor = self.resolve_anchor(origin)

        corners = [self.room_to_lattice(p, origin)
                   for p in GeometryUtils.bounds_corners(area_bounds)]
        lattice_bounds = GeometryUtils.expand_bounds(
            GeometryUtils.ring_bounds(corners),
            TilingConfig.PATTERNS['lattice_margin_extents'] * self.spec.extent,
        )

        i_range, j_range = self._index_ranges(lattice_bounds, anchor)
        estimated = len(i_range) * len(j_range) * len(self.spec.motifs)
        plan = LatticePlan(estimated_count=estimated, origin=origin,
                           anchor=anchor, rotation_deg=rotation)

        if max_tiles is not None and estimated > max_tiles:
            logger.warning(f"Lattice estimate {estimated} exceeds limit {max_tiles}")
            return plan

        a1x, a1y = self.spec.a1
        a2x, a2y = self.spec.a2
        nominal = self.tile.nominal_area_cm2
        min_x, min_y, max_x, max_y = lattice_bounds

        for j in j_range:
            for i in i_range:
                cell_x = anchor[0] + i * a1x + j * a2x
                cell_y = anchor[1] + i * a1y + j * a2y
                for motif in self.spec.motifs:
                    left, top = cell_x + motif.dx, cell_y + motif.dy
                    if (left > max_x or top > max_y or
                            left + motif.w < min_x or top + motif.h < min_y):
                        continue
                    ring = GeometryUtils.rotate_points(motif.ring(cell_x, cell_y),
                                                       rotation, origin)
                    plan.candidates.append(CandidateTile(
                        id=self.spec.tile_id(i, j, motif),
                        ring=ring,
                        nominal_area=nominal,
                        tile_w=motif.w,
                        tile_h=motif.h,
                    ))

        logger.debug(f"{self.pattern.type.value}: {len(plan.candidates)} candidates "
                     f"(estimate {estimated}) at rotation {rotation}")
        return plan

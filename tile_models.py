"""
Tile Models for Floor Tiling System
===================================
Core data structures for rooms, exclusions, tiling configuration and results.

Coordinates are centimeters in a room-local frame with the origin at the
top-left corner and y growing downwards.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from config_tiling import TilingConfig
from utils import ValidationError


Point = Tuple[float, float]
Ring = List[Point]
PolygonRings = List[Ring]
MultiPolygon = List[PolygonRings]


class PatternType(Enum):
    """Bond patterns the layout engine can lay."""
    GRID = "grid"
    RUNNING_BOND = "runningBond"
    HERRINGBONE = "herringbone"
    DOUBLE_HERRINGBONE = "doubleHerringbone"
    BASKETWEAVE = "basketweave"
    VERTICAL_STACK_ALTERNATING = "verticalStackAlternating"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return {
            PatternType.GRID: "Grid",
            PatternType.RUNNING_BOND: "Running bond",
            PatternType.HERRINGBONE: "Herringbone",
            PatternType.DOUBLE_HERRINGBONE: "Double herringbone",
            PatternType.BASKETWEAVE: "Basketweave",
            PatternType.VERTICAL_STACK_ALTERNATING: "Vertical stack alternating",
        }[self]


class TileShape(Enum):
    """Supported tile outlines."""
    RECT = "rect"
    SQUARE = "square"
    HEX = "hex"
    RHOMBUS = "rhombus"

    @property
    def is_rectangular(self) -> bool:
        return self in (TileShape.RECT, TileShape.SQUARE)


class OriginPreset(Enum):
    """Anchor positions for the pattern origin."""
    TOP_LEFT = "tl"
    TOP_RIGHT = "tr"
    BOTTOM_LEFT = "bl"
    BOTTOM_RIGHT = "br"
    CENTER = "center"
    FREE = "free"


class SkirtingType(Enum):
    """Skirting supply options."""
    CUTOUT = "cutout"
    BOUGHT = "bought"


class ErrorKind(Enum):
    """Categories of structured errors returned by the engine."""
    AREA = "area"
    PATTERN_RATIO = "pattern_ratio"
    CAPACITY = "capacity"
    INPUT = "input"


def _point_from_any(value: Any) -> Point:
    """Read a point given as {'x':..,'y':..} or as a two item sequence."""
    if isinstance(value, dict):
        return (float(value['x']), float(value['y']))
    x, y = value
    return (float(x), float(y))


# ============================================================================
# ROOM GEOMETRY INPUTS
# ============================================================================

@dataclass
class Section:
    """Axis-aligned rectangular part of a room."""
    x: float
    y: float
    width_cm: float
    height_cm: float
    id: str = ""
    label: str = ""
    skirting_enabled: bool = True

    @property
    def is_valid(self) -> bool:
        """Sections with a non-positive side are ignored."""
        return self.width_cm > 0 and self.height_cm > 0

    @property
    def area(self) -> float:
        """Area in cm2."""
        return self.width_cm * self.height_cm if self.is_valid else 0.0

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Get bounding box (x1, y1, x2, y2)."""
        return (self.x, self.y, self.x + self.width_cm, self.y + self.height_cm)

    def to_ring(self) -> Ring:
        """Closed outline of the section."""
        x1, y1, x2, y2 = self.bounds
        return [(x1, y1), (x1, y2), (x2, y2), (x2, y1), (x1, y1)]

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'label': self.label,
            'x': self.x,
            'y': self.y,
            'widthCm': self.width_cm,
            'heightCm': self.height_cm,
            'skirtingEnabled': self.skirting_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Section':
        """Create a section from its serialized form."""
        return cls(
            x=float(data.get('x', 0)),
            y=float(data.get('y', 0)),
            width_cm=float(data.get('widthCm', data.get('width_cm', 0))),
            height_cm=float(data.get('heightCm', data.get('height_cm', 0))),
            id=str(data.get('id', '')),
            label=str(data.get('label', '')),
            skirting_enabled=bool(data.get('skirtingEnabled',
                                           data.get('skirting_enabled', True))),
        )


class Exclusion(ABC):
    """Zone removed from the tiled area (fixed furniture, pillars, shafts)."""

    kind: str = ""

    @abstractmethod
    def to_ring(self) -> Ring:
        """Closed polygon approximating the exclusion."""

    @abstractmethod
    def shape_dict(self) -> Dict:
        """Shape specific fields for serialization."""

    def bounds(self) -> Tuple[float, float, float, float]:
        """Get bounding box (x1, y1, x2, y2)."""
        ring = self.to_ring()
        xs = [p[0] for p in ring]
        ys = [p[1] for p in ring]
        return (min(xs), min(ys), max(xs), max(ys))

    def area(self) -> float:
        """Area of the polygon used for subtraction, in cm2."""
        ring = self.to_ring()
        total = 0.0
        for (x1, y1), (x2, y2) in zip(ring, ring[1:]):
            total += x1 * y2 - x2 * y1
        return abs(total) / 2.0

    @property
    def is_degenerate(self) -> bool:
        """Zero-area exclusions contribute nothing."""
        return self.area() <= TilingConfig.GEOMETRY['area_epsilon']

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        data = {
            'type': self.kind,
            'id': self.id,
            'label': self.label,
            'skirtingEnabled': self.skirting_enabled,
        }
        data.update(self.shape_dict())
        return data


@dataclass
class RectExclusion(Exclusion):
    """Rectangular exclusion zone."""
    x: float
    y: float
    w: float
    h: float
    id: str = ""
    label: str = ""
    skirting_enabled: bool = False

    kind = "rect"

    def to_ring(self) -> Ring:
        x2, y2 = self.x + self.w, self.y + self.h
        return [(self.x, self.y), (self.x, y2), (x2, y2), (x2, self.y), (self.x, self.y)]

    def shape_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y, 'w': self.w, 'h': self.h}


@dataclass
class CircleExclusion(Exclusion):
    """Circular exclusion zone, subtracted as a regular polygon."""
    cx: float
    cy: float
    r: float
    id: str = ""
    label: str = ""
    skirting_enabled: bool = False

    kind = "circle"

    def to_ring(self, segments: Optional[int] = None) -> Ring:
        segments = segments or TilingConfig.GEOMETRY['circle_segments']
        ring = []
        for i in range(segments):
            angle = 2 * math.pi * i / segments
            ring.append((self.cx + math.cos(angle) * self.r,
                         self.cy + math.sin(angle) * self.r))
        ring.append(ring[0])
        return ring

    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.cx - self.r, self.cy - self.r, self.cx + self.r, self.cy + self.r)

    def shape_dict(self) -> Dict:
        return {'cx': self.cx, 'cy': self.cy, 'r': self.r}


@dataclass
class TriangleExclusion(Exclusion):
    """Triangular exclusion zone."""
    p1: Point
    p2: Point
    p3: Point
    id: str = ""
    label: str = ""
    skirting_enabled: bool = False

    kind = "tri"

    def to_ring(self) -> Ring:
        return [tuple(self.p1), tuple(self.p2), tuple(self.p3), tuple(self.p1)]

    def shape_dict(self) -> Dict:
        return {
            'p1': {'x': self.p1[0], 'y': self.p1[1]},
            'p2': {'x': self.p2[0], 'y': self.p2[1]},
            'p3': {'x': self.p3[0], 'y': self.p3[1]},
        }


@dataclass
class FreeformExclusion(Exclusion):
    """Free-form polygonal exclusion zone."""
    vertices: List[Point]
    id: str = ""
    label: str = ""
    skirting_enabled: bool = False

    kind = "freeform"

    def to_ring(self) -> Ring:
        ring = [tuple(v) for v in self.vertices]
        if ring and ring[0] != ring[-1]:
            ring.append(ring[0])
        return ring

    @property
    def is_degenerate(self) -> bool:
        if len(self.vertices) < 3:
            return True
        return super().is_degenerate

    def shape_dict(self) -> Dict:
        return {'vertices': [{'x': x, 'y': y} for x, y in self.vertices]}


def exclusion_from_dict(data: Dict) -> Exclusion:
    """Create the exclusion variant named by the ``type`` tag."""
    kind = data.get('type')
    common = {
        'id': str(data.get('id', '')),
        'label': str(data.get('label', '')),
        'skirting_enabled': bool(data.get('skirtingEnabled',
                                          data.get('skirting_enabled', False))),
    }

    try:
        if kind == 'rect':
            return RectExclusion(float(data['x']), float(data['y']),
                                 float(data['w']), float(data['h']), **common)
        if kind == 'circle':
            return CircleExclusion(float(data['cx']), float(data['cy']),
                                   float(data['r']), **common)
        if kind in ('tri', 'triangle'):
            return TriangleExclusion(_point_from_any(data['p1']),
                                     _point_from_any(data['p2']),
                                     _point_from_any(data['p3']), **common)
        if kind == 'freeform':
            return FreeformExclusion([_point_from_any(v) for v in data['vertices']],
                                     **common)
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Malformed {kind} exclusion: {e}") from e

    raise ValidationError(f"Unknown exclusion type: {kind}")


# ============================================================================
# TILING CONFIGURATION
# ============================================================================

@dataclass
class TileConfig:
    """Tile dimensions and joint width."""
    width_cm: float
    height_cm: float
    grout_width_cm: float = 0.0
    shape: TileShape = TileShape.RECT

    @property
    def is_degenerate(self) -> bool:
        """No tiles can be generated from a degenerate configuration."""
        return self.width_cm <= 0 or self.height_cm <= 0 or self.grout_width_cm < 0

    @property
    def long_side(self) -> float:
        return max(self.width_cm, self.height_cm)

    @property
    def short_side(self) -> float:
        return min(self.width_cm, self.height_cm)

    @property
    def nominal_area_cm2(self) -> float:
        """Area of one whole tile."""
        if self.shape == TileShape.HEX:
            # Flat-top hexagon, width is the corner-to-corner span
            side = self.width_cm / 2.0
            return 1.5 * math.sqrt(3) * side * side
        if self.shape == TileShape.RHOMBUS:
            return self.width_cm * self.height_cm / 2.0
        return self.width_cm * self.height_cm

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'shape': self.shape.value,
            'widthCm': self.width_cm,
            'heightCm': self.height_cm,
            'groutWidthCm': self.grout_width_cm,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'TileConfig':
        """Create a tile configuration from its serialized form."""
        return cls(
            width_cm=float(data.get('widthCm', data.get('width_cm', 0))),
            height_cm=float(data.get('heightCm', data.get('height_cm', 0))),
            grout_width_cm=float(data.get('groutWidthCm', data.get('grout_width_cm', 0))),
            shape=TileShape(data.get('shape', 'rect')),
        )


@dataclass
class Origin:
    """Pattern origin anchor."""
    preset: OriginPreset = OriginPreset.TOP_LEFT
    x_cm: float = 0.0
    y_cm: float = 0.0

    def to_dict(self) -> Dict:
        return {'preset': self.preset.value, 'xCm': self.x_cm, 'yCm': self.y_cm}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Origin':
        return cls(
            preset=OriginPreset(data.get('preset', 'tl')),
            x_cm=float(data.get('xCm', data.get('x_cm', 0))),
            y_cm=float(data.get('yCm', data.get('y_cm', 0))),
        )


@dataclass
class PatternConfig:
    """Bond pattern, rotation and placement of the lattice."""
    type: PatternType = PatternType.GRID
    bond_fraction: float = 0.5
    rotation_deg: float = 0.0
    offset_x_cm: float = 0.0
    offset_y_cm: float = 0.0
    origin: Origin = field(default_factory=Origin)

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'type': self.type.value,
            'bondFraction': self.bond_fraction,
            'rotationDeg': self.rotation_deg,
            'offsetXcm': self.offset_x_cm,
            'offsetYcm': self.offset_y_cm,
            'origin': self.origin.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'PatternConfig':
        """Create a pattern configuration from its serialized form."""
        bond = data.get('bondFraction', data.get('bond_fraction'))
        if bond is None:
            bond = TilingConfig.PATTERNS['default_bond_fraction']
        return cls(
            type=PatternType(data.get('type', 'grid')),
            bond_fraction=float(bond),
            rotation_deg=float(data.get('rotationDeg', data.get('rotation_deg', 0))),
            offset_x_cm=float(data.get('offsetXcm', data.get('offset_x_cm', 0))),
            offset_y_cm=float(data.get('offsetYcm', data.get('offset_y_cm', 0))),
            origin=Origin.from_dict(data.get('origin', {})),
        )


@dataclass
class WasteConfig:
    """Offcut reuse settings."""
    allow_rotate: bool = True
    optimize_cuts: bool = False
    kerf_cm: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'allowRotate': self.allow_rotate,
            'optimizeCuts': self.optimize_cuts,
            'kerfCm': self.kerf_cm,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'WasteConfig':
        defaults = TilingConfig.WASTE
        return cls(
            allow_rotate=bool(data.get('allowRotate', defaults['allow_rotate'])),
            optimize_cuts=bool(data.get('optimizeCuts', defaults['optimize_cuts'])),
            kerf_cm=max(0.0, float(data.get('kerfCm', defaults['kerf_cm']))),
        )


@dataclass
class PricingConfig:
    """Purchase settings."""
    pack_m2: float = 0.0
    price_per_m2: float = 0.0
    reserve_tiles: int = 0
    price_by_packs: bool = False
    currency: str = "EUR"

    def to_dict(self) -> Dict:
        return {
            'packM2': self.pack_m2,
            'pricePerM2': self.price_per_m2,
            'reserveTiles': self.reserve_tiles,
            'priceByPacks': self.price_by_packs,
            'currency': self.currency,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'PricingConfig':
        defaults = TilingConfig.PRICING
        return cls(
            pack_m2=float(data.get('packM2', defaults['pack_m2'])),
            price_per_m2=float(data.get('pricePerM2', defaults['price_per_m2'])),
            reserve_tiles=int(data.get('reserveTiles', defaults['reserve_tiles'])),
            price_by_packs=bool(data.get('priceByPacks', defaults['price_by_packs'])),
            currency=str(data.get('currency', defaults['currency'])),
        )


@dataclass
class SkirtingConfig:
    """Skirting board settings for a room."""
    enabled: bool = True
    type: SkirtingType = SkirtingType.CUTOUT
    height_cm: float = 6.0
    bought_width_cm: float = 60.0
    bought_price_per_piece: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'enabled': self.enabled,
            'type': self.type.value,
            'heightCm': self.height_cm,
            'boughtWidthCm': self.bought_width_cm,
            'boughtPricePerPiece': self.bought_price_per_piece,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SkirtingConfig':
        defaults = TilingConfig.SKIRTING
        return cls(
            enabled=bool(data.get('enabled', defaults['enabled'])),
            type=SkirtingType(data.get('type', defaults['type'])),
            height_cm=float(data.get('heightCm', defaults['height_cm'])),
            bought_width_cm=float(data.get('boughtWidthCm', defaults['bought_width_cm'])),
            bought_price_per_piece=float(data.get('boughtPricePerPiece',
                                                  defaults['bought_price_per_piece'])),
        )


@dataclass
class Room:
    """A room to be tiled: geometry, tile choice and pattern."""
    sections: List[Section]
    tile: TileConfig
    pattern: PatternConfig = field(default_factory=PatternConfig)
    exclusions: List[Exclusion] = field(default_factory=list)
    skirting: SkirtingConfig = field(default_factory=SkirtingConfig)
    excluded_tiles: List[str] = field(default_factory=list)
    excluded_skirts: List[str] = field(default_factory=list)
    id: str = ""
    name: str = ""

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'sections': [s.to_dict() for s in self.sections],
            'exclusions': [e.to_dict() for e in self.exclusions],
            'tile': self.tile.to_dict(),
            'pattern': self.pattern.to_dict(),
            'skirting': self.skirting.to_dict(),
            'excludedTiles': list(self.excluded_tiles),
            'excludedSkirts': list(self.excluded_skirts),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Room':
        """Create a room from its serialized form."""
        if 'tile' not in data:
            raise ValidationError(f"Room {data.get('id', '?')} has no tile settings")
        return cls(
            id=str(data.get('id', '')),
            name=str(data.get('name', '')),
            sections=[Section.from_dict(s) for s in data.get('sections', [])],
            exclusions=[exclusion_from_dict(e) for e in data.get('exclusions', [])],
            tile=TileConfig.from_dict(data['tile']),
            pattern=PatternConfig.from_dict(data.get('pattern', {})),
            skirting=SkirtingConfig.from_dict(data.get('skirting', {})),
            excluded_tiles=list(data.get('excludedTiles', [])),
            excluded_skirts=list(data.get('excludedSkirts', [])),
        )


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class ValidationMessage:
    """A titled validation finding."""
    title: str
    text: str

    def to_dict(self) -> Dict:
        return {'title': self.title, 'text': self.text}


@dataclass
class ValidationResult:
    """Errors block generation, warnings are informational."""
    errors: List[ValidationMessage] = field(default_factory=list)
    warnings: List[ValidationMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def extend(self, other: 'ValidationResult'):
        """Merge another result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def to_dict(self) -> Dict:
        return {
            'ok': self.ok,
            'errors': [m.to_dict() for m in self.errors],
            'warnings': [m.to_dict() for m in self.warnings],
        }


@dataclass
class AreaResult:
    """Tileable area of a room."""
    multi_polygon: Optional[MultiPolygon]
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    warnings: List[ValidationMessage] = field(default_factory=list)
    net_area_cm2: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.multi_polygon is not None

    def to_dict(self) -> Dict:
        return {
            'ok': self.ok,
            'error': self.error,
            'polygonCount': len(self.multi_polygon) if self.multi_polygon else 0,
            'netAreaCm2': self.net_area_cm2,
            'warnings': [w.to_dict() for w in self.warnings],
        }


@dataclass
class Tile:
    """A placed tile, whole or cut to the room outline."""
    id: str
    outline: MultiPolygon
    is_full: bool
    area_cm2: float
    nominal_area_cm2: float
    tile_w_cm: float
    tile_h_cm: float
    need_w_cm: float
    need_h_cm: float
    excluded: bool = False

    @property
    def is_cut(self) -> bool:
        return not self.is_full

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'isFull': self.is_full,
            'excluded': self.excluded,
            'areaCm2': round(self.area_cm2, 4),
            'nominalAreaCm2': round(self.nominal_area_cm2, 4),
            'tileSizeCm': [self.tile_w_cm, self.tile_h_cm],
            'needCm': [round(self.need_w_cm, 4), round(self.need_h_cm, 4)],
            'outline': self.outline,
        }


@dataclass
class PreviewResult:
    """Tiles covering a room, or the reason none could be generated."""
    tiles: List[Tile] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    candidate_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def full_tiles(self) -> int:
        return sum(1 for t in self.tiles if t.is_full and not t.excluded)

    @property
    def cut_tiles(self) -> int:
        return sum(1 for t in self.tiles if not t.is_full and not t.excluded)


@dataclass
class SkirtSegment:
    """One skirting piece along a wall."""
    id: str
    p1: Point
    p2: Point
    length_cm: float
    excluded: bool = False
    source_id: str = ""

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'p1': list(self.p1),
            'p2': list(self.p2),
            'lengthCm': round(self.length_cm, 4),
            'excluded': self.excluded,
            'sourceId': self.source_id,
        }


@dataclass
class SkirtingNeeds:
    """Material needed for the skirting of one room."""
    enabled: bool
    type: SkirtingType
    total_length_cm: float = 0.0
    pieces: int = 0
    strips_per_tile: int = 0
    additional_tiles: int = 0
    bought_pieces: int = 0
    cost: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'enabled': self.enabled,
            'type': self.type.value,
            'totalLengthCm': round(self.total_length_cm, 4),
            'pieces': self.pieces,
            'stripsPerTile': self.strips_per_tile,
            'additionalTiles': self.additional_tiles,
            'boughtPieces': self.bought_pieces,
            'cost': round(self.cost, 2),
        }


@dataclass
class WasteMetrics:
    """Outcome of matching cut pieces against reusable offcuts."""
    full_tiles: int
    cut_tiles: int
    reused_cuts: int
    purchased_tiles: int
    waste_area_cm2: float
    waste_pct: float
    tile_usage: List[Dict] = field(default_factory=list)
    offcut_pool: List[Dict] = field(default_factory=list)

    @property
    def waste_area_m2(self) -> float:
        return self.waste_area_cm2 / 10000.0

    def to_dict(self) -> Dict:
        return {
            'fullTiles': self.full_tiles,
            'cutTiles': self.cut_tiles,
            'reusedCuts': self.reused_cuts,
            'purchasedTiles': self.purchased_tiles,
            'wasteAreaM2': round(self.waste_area_m2, 6),
            'wastePct': round(self.waste_pct, 4),
        }


@dataclass
class PlanMetrics:
    """Material, labor, area and price figures for one room."""
    full_tiles: int
    cut_tiles: int
    reused_cuts: int
    purchased_tiles: int
    reserve_tiles: int
    total_tiles_with_reserve: int
    excluded_tiles: int
    tile_area_cm2: float
    gross_area_m2: float
    net_area_m2: float
    installed_area_m2: float
    purchased_area_m2: float
    material_waste_m2: float
    offcut_waste_m2: float
    waste_pct: float
    cut_tiles_pct: float
    packs: Optional[int]
    price_per_m2: float
    price_total: float
    currency: str = "EUR"
    skirting: Optional[SkirtingNeeds] = None
    warnings: List[ValidationMessage] = field(default_factory=list)
    tile_usage: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        """Grouped view used by the reports and the CLI."""
        return {
            'tiles': {
                'fullTiles': self.full_tiles,
                'cutTiles': self.cut_tiles,
                'reusedCuts': self.reused_cuts,
                'purchasedTiles': self.purchased_tiles,
                'reserveTiles': self.reserve_tiles,
                'totalTilesWithReserve': self.total_tiles_with_reserve,
                'excludedTiles': self.excluded_tiles,
            },
            'material': {
                'tileAreaCm2': self.tile_area_cm2,
                'purchasedAreaM2': round(self.purchased_area_m2, 6),
                'installedAreaM2': round(self.installed_area_m2, 6),
                'materialWasteM2': round(self.material_waste_m2, 6),
                'offcutWasteM2': round(self.offcut_waste_m2, 6),
                'wastePct': round(self.waste_pct, 4),
            },
            'labor': {
                'placedTiles': self.full_tiles + self.cut_tiles,
                'cutTiles': self.cut_tiles,
                'cutTilesPct': round(self.cut_tiles_pct, 4),
            },
            'area': {
                'grossAreaM2': round(self.gross_area_m2, 6),
                'netAreaM2': round(self.net_area_m2, 6),
            },
            'pricing': {
                'packs': self.packs,
                'pricePerM2': self.price_per_m2,
                'priceTotal': round(self.price_total, 2),
                'currency': self.currency,
            },
            'skirting': self.skirting.to_dict() if self.skirting else None,
            'warnings': [w.to_dict() for w in self.warnings],
        }


@dataclass
class PlanResult:
    """Envelope returned by the metrics aggregator."""
    ok: bool
    data: Optional[PlanMetrics] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    room_id: str = ""

    def to_dict(self) -> Dict:
        return {
            'ok': self.ok,
            'roomId': self.room_id,
            'error': self.error,
            'errorKind': self.error_kind.value if self.error_kind else None,
            'data': self.data.to_dict() if self.data else None,
        }


@dataclass
class GrandTotals:
    """Floor plus skirting totals across rooms."""
    rooms: int = 0
    floor_tiles: int = 0
    skirting_tiles: int = 0
    bought_skirting_pieces: int = 0
    floor_area_m2: float = 0.0
    skirting_area_m2: float = 0.0
    floor_cost: float = 0.0
    skirting_cost: float = 0.0
    failed_rooms: List[str] = field(default_factory=list)

    @property
    def total_tiles(self) -> int:
        return self.floor_tiles + self.skirting_tiles

    @property
    def total_area_m2(self) -> float:
        return self.floor_area_m2 + self.skirting_area_m2

    @property
    def total_cost(self) -> float:
        return self.floor_cost + self.skirting_cost

    def to_dict(self) -> Dict:
        return {
            'rooms': self.rooms,
            'floorTiles': self.floor_tiles,
            'skirtingTiles': self.skirting_tiles,
            'totalTiles': self.total_tiles,
            'boughtSkirtingPieces': self.bought_skirting_pieces,
            'floorAreaM2': round(self.floor_area_m2, 6),
            'skirtingAreaM2': round(self.skirting_area_m2, 6),
            'totalAreaM2': round(self.total_area_m2, 6),
            'floorCost': round(self.floor_cost, 2),
            'skirtingCost': round(self.skirting_cost, 2),
            'totalCost': round(self.total_cost, 2),
            'failedRooms': list(self.failed_rooms),
        }

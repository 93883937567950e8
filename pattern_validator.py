"""
Pattern Validator Module
========================
Checks that a tile size can physically form the requested bond pattern and
collects the room level errors and warnings shown before planning.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from area_resolver import AreaResolver, composite_bounds
from config_tiling import TilingConfig
from polygon_algebra import PolygonAlgebra
from tile_models import (PatternType, Room, TileConfig, ValidationMessage,
                         ValidationResult)

logger = logging.getLogger(__name__)


# Pattern -> (title, requirement sentence)
RATIO_RULES = {
    PatternType.HERRINGBONE: (
        "Herringbone ratio invalid",
        "Herringbone needs the long side to be a whole multiple of the short side.",
    ),
    PatternType.DOUBLE_HERRINGBONE: (
        "Double Herringbone ratio invalid",
        "Double herringbone needs the long side to be a whole multiple of twice the short side.",
    ),
    PatternType.BASKETWEAVE: (
        "Basketweave ratio invalid",
        "Basketweave needs the long side to be a whole multiple of the short side.",
    ),
}


@dataclass
class PatternCheck:
    """Outcome of a tile ratio check."""
    ok: bool
    ratio: float
    ratio_text: str
    message: Optional[ValidationMessage] = None


def _is_whole(value: float, epsilon: float) -> bool:
    nearest = math.floor(value + 0.5)
    return abs(value - nearest) <= epsilon


def validate_pattern(tile: TileConfig, pattern_type: PatternType) -> PatternCheck:
    """
    Check the tile aspect ratio against the pattern.

    Args:
        tile: Tile dimensions
        pattern_type: Requested bond pattern

    Returns:
        PatternCheck; ``message`` is set only when the check fails
    """
    if tile.width_cm <= 0 or tile.height_cm <= 0:
        return PatternCheck(ok=True, ratio=0.0, ratio_text="")

    long_side, short_side = tile.long_side, tile.short_side
    ratio = long_side / short_side
    ratio_text = f"{ratio:.2f}:1"

    if pattern_type not in RATIO_RULES or not tile.shape.is_rectangular:
        return PatternCheck(ok=True, ratio=ratio, ratio_text=ratio_text)

    epsilon = TilingConfig.PATTERNS['ratio_epsilon']
    if pattern_type == PatternType.DOUBLE_HERRINGBONE:
        ok = _is_whole(long_side / (2 * short_side), epsilon)
    else:
        ok = _is_whole(ratio, epsilon)

    if ok:
        return PatternCheck(ok=True, ratio=ratio, ratio_text=ratio_text)

    title, requirement = RATIO_RULES[pattern_type]
    logger.info(f"{pattern_type.display_name} rejected for "
                f"{tile.width_cm}x{tile.height_cm} tile (ratio {ratio_text})")
    return PatternCheck(
        ok=False,
        ratio=ratio,
        ratio_text=ratio_text,
        message=ValidationMessage(title, f"{requirement} Current ratio: {ratio_text}."),
    )


def validate_room(room: Room, algebra: Optional[PolygonAlgebra] = None) -> ValidationResult:
    """Collect every error and warning for a room before planning."""
    result = AreaResolver(algebra).validate_sections(room.sections)
    tile = room.tile

    if not tile.width_cm > 0:
        result.errors.append(ValidationMessage(
            "Tile width invalid",
            f"Current value \"{tile.width_cm}\". Tile width must be greater than 0."))
    if not tile.height_cm > 0:
        result.errors.append(ValidationMessage(
            "Tile height invalid",
            f"Current value \"{tile.height_cm}\". Tile height must be greater than 0."))
    if tile.grout_width_cm < 0:
        result.errors.append(ValidationMessage(
            "Grout width invalid",
            f"Current value \"{tile.grout_width_cm}\". Grout width cannot be negative."))

    check = validate_pattern(tile, room.pattern.type)
    if not check.ok:
        result.errors.append(check.message)

    rotation = room.pattern.rotation_deg
    step = TilingConfig.PATTERNS['rotation_step_deg']
    if rotation % step != 0 or rotation < 0 or rotation >= 360:
        result.warnings.append(ValidationMessage(
            "Unusual rotation",
            f"Rotation {rotation} deg is not a multiple of {step} between 0 and 359; "
            f"expect more cut tiles."))

    bounds = composite_bounds(room.sections)
    if bounds:
        min_x, min_y, max_x, max_y = bounds
        for exclusion in room.exclusions:
            ex_min_x, ex_min_y, ex_max_x, ex_max_y = exclusion.bounds()
            if ex_min_x < min_x or ex_min_y < min_y or ex_max_x > max_x or ex_max_y > max_y:
                result.warnings.append(ValidationMessage(
                    "Exclusion outside room",
                    f"{exclusion.label or exclusion.kind} extends beyond the room bounds."))

    return result

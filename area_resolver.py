"""
Area Resolver Module
====================
Merges room sections into one composite outline and subtracts exclusion
zones, producing the multipolygon that tiles are clipped against.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from polygon_algebra import PolygonAlgebra, ShapelyPolygonAlgebra
from tile_geometry import Bounds, GeometryUtils
from tile_models import (AreaResult, ErrorKind, Exclusion, MultiPolygon, Section,
                         ValidationMessage, ValidationResult)

logger = logging.getLogger(__name__)

DEFAULT_SECTION_SIZE_CM = 300.0


class AreaResolver:
    """Resolves the tileable area of a room."""

    def __init__(self, algebra: Optional[PolygonAlgebra] = None):
        """
        Initialize area resolver.

        Args:
            algebra: Polygon boolean operations, shapely-backed by default
        """
        self.algebra = algebra or ShapelyPolygonAlgebra()

    @staticmethod
    def valid_sections(sections: Sequence[Section]) -> List[Section]:
        """Sections with positive width and height."""
        return [s for s in sections or [] if s.is_valid]

    @staticmethod
    def _disconnected_warning(polygon_count: int) -> ValidationMessage:
        return ValidationMessage(
            title="Disconnected sections",
            text=f"Room has {polygon_count} separate areas that don't connect",
        )

    def compose_sections(self, sections: Sequence[Section]) -> AreaResult:
        """Union of the valid section rectangles."""
        if not sections:
            return AreaResult(None, error="No sections defined", error_kind=ErrorKind.AREA)

        valid = self.valid_sections(sections)
        if not valid:
            return AreaResult(None, error="No valid sections", error_kind=ErrorKind.AREA)

        try:
            composite = self.algebra.union([[[s.to_ring()]] for s in valid])
        except Exception as e:
            logger.warning(f"Could not merge {len(valid)} sections: {e}")
            return AreaResult(None, error=str(e), error_kind=ErrorKind.AREA)

        warnings = []
        if len(composite) > 1:
            warnings.append(self._disconnected_warning(len(composite)))

        return AreaResult(
            multi_polygon=composite,
            warnings=warnings,
            net_area_cm2=GeometryUtils.multi_polygon_area(composite),
        )

    def exclusions_union(self, exclusions: Sequence[Exclusion]) -> MultiPolygon:
        """Union of every non-degenerate exclusion polygon."""
        shapes = [[[e.to_ring()]] for e in exclusions or [] if not e.is_degenerate]
        if not shapes:
            return []
        return self.algebra.union(shapes)

    def resolve(self, sections: Sequence[Section],
                exclusions: Sequence[Exclusion] = ()) -> AreaResult:
        """
        Compute the available area of a room.

        Args:
            sections: Rectangular room parts; invalid ones are ignored
            exclusions: Zones removed from the composite outline

        Returns:
            AreaResult with the multipolygon, or the error that prevented it
        """
        composed = self.compose_sections(sections)
        if not composed.ok:
            return composed

        try:
            removed = self.exclusions_union(exclusions)
            available = (self.algebra.difference(composed.multi_polygon, removed)
                         if removed else composed.multi_polygon)
        except Exception as e:
            logger.warning(f"Could not subtract exclusions: {e}")
            return AreaResult(None, error=str(e), error_kind=ErrorKind.AREA,
                              warnings=composed.warnings)

        net_area = GeometryUtils.multi_polygon_area(available)
        logger.debug(f"Resolved area: {len(available)} polygon(s), "
                     f"{net_area:.1f} cm2 after {len(exclusions or [])} exclusion(s)")

        return AreaResult(
            multi_polygon=available,
            warnings=composed.warnings,
            net_area_cm2=net_area,
        )

    def sections_area(self, sections: Sequence[Section]) -> float:
        """Area of the section union in cm2, overlaps counted once."""
        composed = self.compose_sections(sections)
        if not composed.ok:
            return 0.0
        return composed.net_area_cm2

    def validate_sections(self, sections: Sequence[Section]) -> ValidationResult:
        """Check section dimensions and connectivity."""
        result = ValidationResult()

        if not sections:
            result.errors.append(ValidationMessage(
                "No room sections", "At least one room section is required"))
            return result

        for i, section in enumerate(sections):
            label = section.label or f"Section {i + 1}"
            if not section.width_cm > 0:
                result.errors.append(ValidationMessage(
                    f"Invalid width in {label}",
                    f"Section width must be positive (got {section.width_cm})"))
            if not section.height_cm > 0:
                result.errors.append(ValidationMessage(
                    f"Invalid height in {label}",
                    f"Section height must be positive (got {section.height_cm})"))

        if not self.valid_sections(sections):
            result.errors.append(ValidationMessage(
                "No valid sections",
                "At least one section must have positive width and height"))
            return result

        if len(sections) > 1:
            composed = self.compose_sections(sections)
            if not composed.ok or not composed.multi_polygon:
                result.warnings.append(ValidationMessage(
                    "Sections may not connect properly",
                    "The room sections could not be combined into a valid shape"))
            else:
                result.warnings.extend(composed.warnings)

        return result


def composite_bounds(sections: Sequence[Section]) -> Optional[Bounds]:
    """Bounding box of the valid sections, or None when there are none."""
    valid = AreaResolver.valid_sections(sections)
    if not valid:
        return None

    boxes = [s.bounds for s in valid]
    return (min(b[0] for b in boxes), min(b[1] for b in boxes),
            max(b[2] for b in boxes), max(b[3] for b in boxes))


def suggest_connected_section(sections: Sequence[Section],
                              direction: str = "right") -> Section:
    """
    Propose a new section glued to the last one.

    The new section shares a full edge with the last section and is at most
    300 cm deep in the growth direction.
    """
    new_id = uuid.uuid4().hex[:8]
    if not sections:
        return Section(0.0, 0.0, DEFAULT_SECTION_SIZE_CM, DEFAULT_SECTION_SIZE_CM, id=new_id)

    last = sections[-1]
    w = last.width_cm or DEFAULT_SECTION_SIZE_CM
    h = last.height_cm or DEFAULT_SECTION_SIZE_CM
    x, y = last.x, last.y
    depth_w = min(w, DEFAULT_SECTION_SIZE_CM)
    depth_h = min(h, DEFAULT_SECTION_SIZE_CM)

    placements = {
        "right": (x + w, y, depth_w, h),
        "left": (x - depth_w, y, depth_w, h),
        "bottom": (x, y + h, w, depth_h),
        "top": (x, y - depth_h, w, depth_h),
    }
    if direction not in placements:
        raise ValueError(f"Unknown direction: {direction}")

    nx, ny, nw, nh = placements[direction]
    return Section(nx, ny, nw, nh, id=new_id)


def resolve_area(sections: Sequence[Section], exclusions: Sequence[Exclusion] = (),
                 algebra: Optional[PolygonAlgebra] = None) -> AreaResult:
    """Convenience wrapper around ``AreaResolver.resolve``."""
    return AreaResolver(algebra).resolve(sections, exclusions)


def sections_area(sections: Sequence[Section],
                  algebra: Optional[PolygonAlgebra] = None) -> float:
    """Convenience wrapper around ``AreaResolver.sections_area``."""
    return AreaResolver(algebra).sections_area(sections)


def validate_sections(sections: Sequence[Section],
                      algebra: Optional[PolygonAlgebra] = None) -> ValidationResult:
    """Convenience wrapper around ``AreaResolver.validate_sections``."""
    return AreaResolver(algebra).validate_sections(sections)

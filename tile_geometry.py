"""
Tile Geometry Module
====================
Plain-coordinate geometry helpers shared by the area resolver, pattern
generator and clipper: shoelace areas, bounds, tile outlines and rotations.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from tile_models import MultiPolygon, Point, PolygonRings, Ring

Bounds = Tuple[float, float, float, float]


class GeometryUtils:
    """Utility functions for geometric operations."""

    @staticmethod
    def signed_ring_area(ring: Sequence[Point]) -> float:
        """
        Signed shoelace area of a ring.
        Works for closed and open rings; positive for counter-clockwise order.
        """
        if len(ring) < 3:
            return 0.0

        area = 0.0
        n = len(ring)
        for i in range(n):
            x1, y1 = ring[i]
            x2, y2 = ring[(i + 1) % n]
            area += x1 * y2 - x2 * y1

        return area / 2.0

    @staticmethod
    def ring_area(ring: Sequence[Point]) -> float:
        """Unsigned shoelace area of a ring."""
        return abs(GeometryUtils.signed_ring_area(ring))

    @staticmethod
    def polygon_area(polygon: PolygonRings) -> float:
        """Outer ring area minus hole areas, never negative."""
        if not polygon:
            return 0.0
        outer = GeometryUtils.ring_area(polygon[0])
        holes = sum(GeometryUtils.ring_area(h) for h in polygon[1:])
        return max(0.0, outer - holes)

    @staticmethod
    def multi_polygon_area(multi_polygon: Optional[MultiPolygon]) -> float:
        """Net area of a multipolygon in the units of its coordinates squared."""
        if not multi_polygon:
            return 0.0
        return sum(GeometryUtils.polygon_area(p) for p in multi_polygon)

    @staticmethod
    def ring_bounds(ring: Sequence[Point]) -> Bounds:
        """Axis-aligned bounding box (min_x, min_y, max_x, max_y)."""
        xs = [p[0] for p in ring]
        ys = [p[1] for p in ring]
        return (min(xs), min(ys), max(xs), max(ys))

    @staticmethod
    def multi_polygon_bounds(multi_polygon: Optional[MultiPolygon]) -> Optional[Bounds]:
        """Bounding box of every outer ring, or None for an empty multipolygon."""
        rings = [poly[0] for poly in (multi_polygon or []) if poly and poly[0]]
        if not rings:
            return None

        boxes = [GeometryUtils.ring_bounds(r) for r in rings]
        return (min(b[0] for b in boxes), min(b[1] for b in boxes),
                max(b[2] for b in boxes), max(b[3] for b in boxes))

    @staticmethod
    def bounds_overlap(a: Bounds, b: Bounds, tolerance: float = 0.0) -> bool:
        """Check if two bounding boxes overlap with a positive area."""
        return not (a[2] <= b[0] + tolerance or b[2] <= a[0] + tolerance or
                    a[3] <= b[1] + tolerance or b[3] <= a[1] + tolerance)

    @staticmethod
    def close_ring(points: Sequence[Point]) -> Ring:
        """Return the ring with its first point repeated at the end."""
        ring = [(float(x), float(y)) for x, y in points]
        if ring and ring[0] != ring[-1]:
            ring.append(ring[0])
        return ring

    # ------------------------------------------------------------------
    # Tile outlines, all expressed from their bounding box top-left corner
    # ------------------------------------------------------------------

    @staticmethod
    def rect_ring(x: float, y: float, width: float, height: float) -> Ring:
        """Closed rectangle outline."""
        return [(x, y), (x + width, y), (x + width, y + height),
                (x, y + height), (x, y)]

    @staticmethod
    def hex_ring(x: float, y: float, width: float) -> Ring:
        """
        Closed flat-top regular hexagon.

        ``width`` is the corner-to-corner span, the height is
        ``width * sqrt(3) / 2``.
        """
        height = width * math.sqrt(3) / 2.0
        quarter = width / 4.0
        return [
            (x + quarter, y),
            (x + 3 * quarter, y),
            (x + width, y + height / 2.0),
            (x + 3 * quarter, y + height),
            (x + quarter, y + height),
            (x, y + height / 2.0),
            (x + quarter, y),
        ]

    @staticmethod
    def rhombus_ring(x: float, y: float, width: float, height: float) -> Ring:
        """Closed rhombus whose diagonals are ``width`` and ``height``."""
        return [
            (x + width / 2.0, y),
            (x + width, y + height / 2.0),
            (x + width / 2.0, y + height),
            (x, y + height / 2.0),
            (x + width / 2.0, y),
        ]

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    @staticmethod
    def rotation_matrix(angle_deg: float) -> np.ndarray:
        """2x2 rotation matrix for the given angle in degrees."""
        theta = math.radians(angle_deg)
        c, s = math.cos(theta), math.sin(theta)
        return np.array([[c, -s], [s, c]])

    @staticmethod
    def rotate_points(points: Sequence[Point], angle_deg: float,
                      center: Point = (0.0, 0.0)) -> List[Point]:
        """Rotate points rigidly about ``center``."""
        if not points:
            return []
        if angle_deg % 360 == 0:
            return [(float(x), float(y)) for x, y in points]

        pts = np.asarray(points, dtype=float)
        origin = np.asarray(center, dtype=float)
        rotated = (pts - origin) @ GeometryUtils.rotation_matrix(angle_deg).T + origin
        return [(float(x), float(y)) for x, y in rotated]

    @staticmethod
    def rotate_point(point: Point, angle_deg: float,
                     center: Point = (0.0, 0.0)) -> Point:
        """Rotate a single point about ``center``."""
        return GeometryUtils.rotate_points([point], angle_deg, center)[0]

    @staticmethod
    def expand_bounds(bounds: Bounds, margin: float) -> Bounds:
        """Grow a bounding box by ``margin`` on every side."""
        return (bounds[0] - margin, bounds[1] - margin,
                bounds[2] + margin, bounds[3] + margin)

    @staticmethod
    def bounds_corners(bounds: Bounds) -> List[Point]:
        """The four corners of a bounding box."""
        min_x, min_y, max_x, max_y = bounds
        return [(min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y)]

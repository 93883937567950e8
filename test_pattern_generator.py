"""
Test Pattern Generator
======================
Lattice layout, tile ids, origin handling and the candidate estimate.
"""

import math

import pytest
from shapely.geometry import Polygon, box
from shapely.ops import unary_union
from shapely.strtree import STRtree

from pattern_generator import PatternGenerator, detect_bond_period
from tile_geometry import GeometryUtils
from tile_models import (Origin, OriginPreset, PatternConfig, PatternType, TileConfig,
                         TileShape)

ROOM = (0.0, 0.0, 200.0, 200.0)


def _generate(tile, pattern, bounds=ROOM, max_tiles=None):
    return PatternGenerator(tile, pattern).generate(bounds, bounds, max_tiles=max_tiles)


def test_generation_is_deterministic():
    tile = TileConfig(30, 10, 0.3)
    pattern = PatternConfig(type=PatternType.RUNNING_BOND, rotation_deg=30)

    first = _generate(tile, pattern)
    second = _generate(tile, pattern)

    assert [c.id for c in first.candidates] == [c.id for c in second.candidates]
    assert [c.ring for c in first.candidates] == [c.ring for c in second.candidates]


def test_ids_are_unique_and_pattern_prefixed():
    cases = [
        (TileConfig(30, 10), PatternType.GRID, "r"),
        (TileConfig(20, 10), PatternType.HERRINGBONE, "hb-"),
        (TileConfig(40, 10), PatternType.DOUBLE_HERRINGBONE, "dhb-"),
        (TileConfig(20, 10), PatternType.BASKETWEAVE, "bw-"),
        (TileConfig(30, 10), PatternType.VERTICAL_STACK_ALTERNATING, "vsa-"),
        (TileConfig(20, 20, shape=TileShape.HEX), PatternType.GRID, "hex-"),
        (TileConfig(20, 10, shape=TileShape.RHOMBUS), PatternType.GRID, "rh-"),
    ]
    for tile, pattern_type, prefix in cases:
        plan = _generate(tile, PatternConfig(type=pattern_type))
        ids = [c.id for c in plan.candidates]
        assert ids
        assert len(ids) == len(set(ids))
        assert all(i.startswith(prefix) for i in ids)


def test_grid_tiles_sit_on_the_pitch():
    plan = _generate(TileConfig(30, 10, 1.0), PatternConfig())
    by_id = {c.id: c for c in plan.candidates}

    assert GeometryUtils.ring_bounds(by_id["r0c0"].ring) == pytest.approx((0, 0, 30, 10))
    assert GeometryUtils.ring_bounds(by_id["r2c1"].ring) == pytest.approx((31, 22, 61, 32))


def test_herringbone_tiles_do_not_overlap():
    plan = _generate(TileConfig(20, 10), PatternConfig(type=PatternType.HERRINGBONE),
                     bounds=(0.0, 0.0, 60.0, 60.0))
    boxes = [GeometryUtils.ring_bounds(c.ring) for c in plan.candidates]

    for a in range(len(boxes)):
        for b in range(a + 1, len(boxes)):
            ax1, ay1, ax2, ay2 = boxes[a]
            bx1, by1, bx2, by2 = boxes[b]
            overlap_w = min(ax2, bx2) - max(ax1, bx1)
            overlap_h = min(ay2, by2) - max(ay1, by1)
            assert overlap_w <= 1e-9 or overlap_h <= 1e-9


def test_running_bond_shifts_each_row():
    plan = _generate(TileConfig(30, 10), PatternConfig(type=PatternType.RUNNING_BOND,
                                                        bond_fraction=0.5))
    lefts = {}
    for c in plan.candidates:
        min_x, min_y, _, _ = GeometryUtils.ring_bounds(c.ring)
        lefts.setdefault(round(min_y, 6), set()).add(round(min_x % 30, 6))

    assert lefts[0.0] == {0.0}
    assert lefts[10.0] == {15.0}
    assert lefts[20.0] == {0.0}


def test_bond_period_detection():
    assert detect_bond_period(0.5) == 2
    assert detect_bond_period(1 / 3) == 3
    assert detect_bond_period(0.25) == 4
    assert detect_bond_period(0.4) == 0
    assert detect_bond_period(0) == 0


def test_offset_moves_the_lattice():
    plan = _generate(TileConfig(30, 10), PatternConfig(offset_x_cm=5, offset_y_cm=2))
    first = {c.id: c for c in plan.candidates}["r0c0"]
    assert GeometryUtils.ring_bounds(first.ring) == pytest.approx((5, 2, 35, 12))


def test_origin_presets_anchor_the_lattice():
    pattern = PatternConfig(origin=Origin(OriginPreset.CENTER))
    generator = PatternGenerator(TileConfig(30, 10), pattern)
    origin = generator.resolve_origin(ROOM)

    assert origin == (100.0, 100.0)
    assert generator.resolve_anchor(origin) == (85.0, 95.0)

    free = PatternGenerator(TileConfig(30, 10),
                            PatternConfig(origin=Origin(OriginPreset.FREE, 12, 34)))
    assert free.resolve_origin(ROOM) == (12, 34)

    bottom_right = PatternGenerator(TileConfig(30, 10),
                                    PatternConfig(origin=Origin(OriginPreset.BOTTOM_RIGHT)))
    assert bottom_right.resolve_origin(ROOM) == (200.0, 200.0)


def test_rotation_is_rigid_about_the_origin():
    tile = TileConfig(30, 10)
    generator = PatternGenerator(tile, PatternConfig(rotation_deg=90))
    plan = generator.generate(ROOM, ROOM)
    by_id = {c.id: c for c in plan.candidates}

    x, y = generator.room_to_lattice((0.0, 30.0), plan.origin)
    assert (x, y) == pytest.approx((30.0, 0.0))
    assert GeometryUtils.ring_bounds(by_id["r0c0"].ring) == pytest.approx((-10, 0, 0, 30))


def test_estimate_over_the_limit_builds_no_candidates():
    plan = _generate(TileConfig(1, 1), PatternConfig(),
                     bounds=(0.0, 0.0, 1000.0, 1000.0), max_tiles=12000)
    assert plan.estimated_count > 12000
    assert plan.candidates == []


def test_degenerate_tile_generates_nothing():
    plan = _generate(TileConfig(0, 10), PatternConfig())
    assert plan.candidates == []
    assert plan.estimated_count == 0


def test_hex_and_rhombus_nominal_areas():
    hex_tile = TileConfig(20, 20, shape=TileShape.HEX)
    assert hex_tile.nominal_area_cm2 == pytest.approx(1.5 * 3 ** 0.5 * 100)

    plan = _generate(hex_tile, PatternConfig())
    ring = plan.candidates[0].ring
    assert GeometryUtils.ring_area(ring) == pytest.approx(hex_tile.nominal_area_cm2)

    rhombus = TileConfig(20, 10, shape=TileShape.RHOMBUS)
    plan = _generate(rhombus, PatternConfig())
    assert GeometryUtils.ring_area(plan.candidates[0].ring) == pytest.approx(100.0)


LAYOUT_CASES = [
    (TileConfig(30, 10), PatternConfig()),
    (TileConfig(30, 10), PatternConfig(rotation_deg=30)),
    (TileConfig(30, 10), PatternConfig(type=PatternType.RUNNING_BOND, bond_fraction=0.5)),
    (TileConfig(30, 10), PatternConfig(type=PatternType.RUNNING_BOND, bond_fraction=1 / 3)),
    (TileConfig(20, 10), PatternConfig(type=PatternType.HERRINGBONE)),
    (TileConfig(30, 10), PatternConfig(type=PatternType.HERRINGBONE, rotation_deg=45)),
    (TileConfig(40, 10), PatternConfig(type=PatternType.DOUBLE_HERRINGBONE)),
    (TileConfig(20, 10), PatternConfig(type=PatternType.DOUBLE_HERRINGBONE)),
    (TileConfig(20, 10), PatternConfig(type=PatternType.BASKETWEAVE)),
    (TileConfig(30, 10), PatternConfig(type=PatternType.BASKETWEAVE)),
    (TileConfig(30, 10), PatternConfig(type=PatternType.VERTICAL_STACK_ALTERNATING)),
    (TileConfig(20, 20, shape=TileShape.HEX), PatternConfig()),
    (TileConfig(20, 10, shape=TileShape.RHOMBUS), PatternConfig()),
]


@pytest.mark.parametrize("tile,pattern", LAYOUT_CASES,
                         ids=[f"{p.type.value}-{t.shape.value}-{t.width_cm:g}x{t.height_cm:g}"
                              f"-rot{p.rotation_deg:g}-bond{p.bond_fraction:.2f}"
                              for t, p in LAYOUT_CASES])
def test_patterns_tile_the_room_without_overlap(tile, pattern):
    plan = _generate(tile, pattern)
    polygons = [Polygon(c.ring) for c in plan.candidates]
    tree = STRtree(polygons)

    for index, polygon in enumerate(polygons):
        for other in tree.query(polygon):
            if other > index:
                assert polygon.intersection(polygons[other]).area == pytest.approx(0.0, abs=1e-6)

    room = box(*ROOM)
    covered = unary_union(polygons).intersection(room)
    assert covered.area == pytest.approx(room.area, rel=1e-6)


def test_vertical_stack_shifts_odd_columns_half_a_tile():
    plan = _generate(TileConfig(30, 10), PatternConfig(type=PatternType.VERTICAL_STACK_ALTERNATING))

    for candidate in plan.candidates:
        min_x, min_y, _, _ = GeometryUtils.ring_bounds(candidate.ring)
        column = round(min_x / 30)
        expected = 5.0 if column % 2 else 0.0
        assert round(min_y % 10, 6) == expected


def test_basketweave_blocks_alternate_orientation():
    plan = _generate(TileConfig(20, 10), PatternConfig(type=PatternType.BASKETWEAVE))

    for candidate in plan.candidates:
        min_x, min_y, max_x, max_y = GeometryUtils.ring_bounds(candidate.ring)
        block_col = math.floor((min_x + max_x) / 2 / 20)
        block_row = math.floor((min_y + max_y) / 2 / 20)
        horizontal = (block_col + block_row) % 2 == 0
        assert (max_x - min_x, max_y - min_y) == pytest.approx((20, 10) if horizontal else (10, 20))

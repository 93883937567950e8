"""
Test Pattern Validator
======================
Tile ratio rules per bond pattern and room level checks.
"""

from pattern_validator import validate_pattern, validate_room
from tile_models import (PatternConfig, PatternType, RectExclusion, TileConfig,
                         TileShape)

from conftest import make_room


def test_herringbone_accepts_whole_ratios():
    for w, h in [(10, 20), (20, 10), (10, 30), (7.5, 15)]:
        assert validate_pattern(TileConfig(w, h), PatternType.HERRINGBONE).ok


def test_herringbone_rejects_fractional_ratio():
    check = validate_pattern(TileConfig(10, 25), PatternType.HERRINGBONE)

    assert not check.ok
    assert check.ratio_text == "2.50:1"
    assert check.message.title == "Herringbone ratio invalid"
    assert check.message.text.endswith("Current ratio: 2.50:1.")


def test_double_herringbone_needs_twice_the_short_side():
    assert validate_pattern(TileConfig(10, 40), PatternType.DOUBLE_HERRINGBONE).ok
    assert validate_pattern(TileConfig(10, 20), PatternType.DOUBLE_HERRINGBONE).ok

    check = validate_pattern(TileConfig(10, 30), PatternType.DOUBLE_HERRINGBONE)
    assert not check.ok
    assert check.message.title == "Double Herringbone ratio invalid"
    assert "3.00:1" in check.message.text


def test_basketweave_ratio():
    assert validate_pattern(TileConfig(20, 10), PatternType.BASKETWEAVE).ok
    assert not validate_pattern(TileConfig(25, 10), PatternType.BASKETWEAVE).ok


def test_unconstrained_patterns_always_pass():
    for pattern in (PatternType.GRID, PatternType.RUNNING_BOND,
                    PatternType.VERTICAL_STACK_ALTERNATING):
        assert validate_pattern(TileConfig(10, 25), pattern).ok


def test_non_rectangular_shapes_skip_the_ratio_rule():
    hex_tile = TileConfig(10, 25, shape=TileShape.HEX)
    assert validate_pattern(hex_tile, PatternType.HERRINGBONE).ok


def test_room_with_invalid_tile_lists_each_problem():
    room = make_room(tile_w=0, tile_h=-5, grout=-1)
    result = validate_room(room)

    titles = [e.title for e in result.errors]
    assert "Tile width invalid" in titles
    assert "Tile height invalid" in titles
    assert "Grout width invalid" in titles
    assert not result.ok


def test_room_with_bad_ratio_is_an_error():
    room = make_room(tile_w=10, tile_h=25, pattern=PatternType.HERRINGBONE)
    result = validate_room(room)
    assert [e.title for e in result.errors] == ["Herringbone ratio invalid"]


def test_unusual_rotation_is_only_a_warning():
    room = make_room(pattern_config=PatternConfig(rotation_deg=30))
    result = validate_room(room)

    assert result.ok
    assert [w.title for w in result.warnings] == ["Unusual rotation"]

    room.pattern.rotation_deg = 45
    assert validate_room(room).warnings == []


def test_exclusion_outside_room_warns():
    room = make_room(exclusions=[RectExclusion(180, 180, 50, 50, label="Column")])
    result = validate_room(room)

    assert result.ok
    assert result.warnings[0].title == "Exclusion outside room"
    assert "Column" in result.warnings[0].text

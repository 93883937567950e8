"""
Test Tile Models
================
Serialization of rooms and exclusions, and tile shape properties.
"""

import pytest

from tile_models import (CircleExclusion, FreeformExclusion, PatternType, PlanResult,
                         RectExclusion, Room, TileConfig, TileShape, TriangleExclusion,
                         exclusion_from_dict)
from utils import ValidationError, content_hash


ROOM_DOC = {
    'id': 'kitchen',
    'name': 'Kitchen',
    'sections': [{'x': 0, 'y': 0, 'widthCm': 300, 'heightCm': 250, 'label': 'Main'}],
    'exclusions': [
        {'type': 'rect', 'x': 10, 'y': 10, 'w': 60, 'h': 60, 'label': 'Cabinet'},
        {'type': 'circle', 'cx': 150, 'cy': 120, 'r': 15, 'skirtingEnabled': True},
        {'type': 'tri', 'p1': {'x': 250, 'y': 0}, 'p2': {'x': 300, 'y': 0},
         'p3': {'x': 300, 'y': 50}},
        {'type': 'freeform', 'vertices': [[0, 200], [40, 200], [40, 250], [0, 250]]},
    ],
    'tile': {'widthCm': 60, 'heightCm': 30, 'groutWidthCm': 0.3},
    'pattern': {'type': 'runningBond', 'bondFraction': 0.25, 'rotationDeg': 45,
                'origin': {'preset': 'center'}},
    'skirting': {'type': 'bought', 'boughtWidthCm': 80},
    'excludedTiles': ['r0c0'],
}


def test_room_from_dict_reads_every_part():
    room = Room.from_dict(ROOM_DOC)

    assert room.name == 'Kitchen'
    assert room.sections[0].width_cm == 300.0
    assert [type(e) for e in room.exclusions] == [RectExclusion, CircleExclusion,
                                                  TriangleExclusion, FreeformExclusion]
    assert room.exclusions[1].skirting_enabled
    assert room.pattern.type == PatternType.RUNNING_BOND
    assert room.pattern.bond_fraction == 0.25
    assert room.tile.grout_width_cm == 0.3
    assert room.skirting.bought_width_cm == 80.0
    assert room.excluded_tiles == ['r0c0']


def test_room_dict_round_trip():
    room = Room.from_dict(ROOM_DOC)
    again = Room.from_dict(room.to_dict())

    assert again.to_dict() == room.to_dict()
    assert content_hash(again) == content_hash(room)


def test_room_without_tile_is_rejected():
    with pytest.raises(ValidationError):
        Room.from_dict({'sections': []})


def test_unknown_or_malformed_exclusions_are_rejected():
    with pytest.raises(ValidationError, match="Unknown exclusion type"):
        exclusion_from_dict({'type': 'star'})
    with pytest.raises(ValidationError, match="Malformed circle"):
        exclusion_from_dict({'type': 'circle', 'cx': 1})


def test_circle_polygon_is_closed_48_gon():
    ring = CircleExclusion(0, 0, 10).to_ring()
    assert len(ring) == 49
    assert ring[0] == ring[-1]
    assert CircleExclusion(5, 5, 2).bounds() == (3, 3, 7, 7)


def test_tile_shape_properties():
    tile = TileConfig(10, 40)
    assert (tile.long_side, tile.short_side) == (40, 10)
    assert tile.nominal_area_cm2 == 400
    assert not tile.is_degenerate
    assert TileConfig(10, 10, -0.1).is_degenerate
    assert TileConfig(20, 10, shape=TileShape.RHOMBUS).nominal_area_cm2 == 100


def test_content_hash_changes_with_input():
    room = Room.from_dict(ROOM_DOC)
    before = content_hash(room)
    room.tile.width_cm = 61
    assert content_hash(room) != before


def test_failed_plan_result_dict():
    data = PlanResult(ok=False, error="boom", room_id="x").to_dict()
    assert data == {'ok': False, 'roomId': 'x', 'error': 'boom', 'errorKind': None, 'data': None}

"""
Shared test fixtures for the tiling engine.
"""

import copy

import pytest

from config_tiling import TilingConfig
from polygon_algebra import PolygonAlgebra, PolygonAlgebraError
from tile_models import (PatternConfig, PatternType, PricingConfig, Room, Section,
                         SkirtingConfig, TileConfig, WasteConfig)


class FailingPolygonAlgebra(PolygonAlgebra):
    """Algebra whose every operation fails, for error boundary tests."""

    def union(self, shapes):
        raise PolygonAlgebraError("union unavailable")

    def difference(self, subject, clip):
        raise PolygonAlgebraError("difference unavailable")

    def intersection(self, subject, clip):
        raise PolygonAlgebraError("intersection unavailable")


class PassThroughPolygonAlgebra(PolygonAlgebra):
    """Algebra that only understands a single rectangle and fails on clipping."""

    def union(self, shapes):
        return [polygon for shape in shapes for polygon in shape]

    def difference(self, subject, clip):
        return subject

    def intersection(self, subject, clip):
        raise PolygonAlgebraError("intersection unavailable")


class BrokenPolygonAlgebra(PolygonAlgebra):
    """Algebra raising plain runtime errors instead of PolygonAlgebraError."""

    def union(self, shapes):
        raise RuntimeError("union crashed")

    def difference(self, subject, clip):
        raise TypeError("difference crashed")

    def intersection(self, subject, clip):
        raise RuntimeError("intersection crashed")


def make_room(width=200.0, height=200.0, tile_w=30.0, tile_h=10.0, grout=0.0,
              pattern=PatternType.GRID, **kwargs) -> Room:
    """Single-section room with a tile and pattern."""
    skirting = kwargs.pop('skirting', SkirtingConfig(enabled=False))
    return Room(
        sections=[Section(0.0, 0.0, width, height, id="s1")],
        tile=TileConfig(tile_w, tile_h, grout),
        pattern=kwargs.pop('pattern_config', PatternConfig(type=pattern)),
        skirting=skirting,
        id=kwargs.pop('id', "room1"),
        **kwargs
    )


@pytest.fixture
def grid_room():
    """200 x 200 cm room laid with 30 x 10 cm tiles on a grid, no grout."""
    return make_room()


@pytest.fixture
def pricing():
    return PricingConfig(pack_m2=1.0, price_per_m2=10.0, reserve_tiles=2)


@pytest.fixture
def waste():
    return WasteConfig()


@pytest.fixture
def failing_algebra():
    return FailingPolygonAlgebra()


@pytest.fixture
def clip_failing_algebra():
    return PassThroughPolygonAlgebra()


@pytest.fixture
def broken_algebra():
    return BrokenPolygonAlgebra()


@pytest.fixture
def restore_config():
    """Snapshot TilingConfig settings and put them back after the test."""
    saved = copy.deepcopy(TilingConfig.to_dict())
    yield TilingConfig
    for name, value in saved.items():
        setattr(TilingConfig, name, value)

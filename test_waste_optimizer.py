"""
Test Waste Optimizer
====================
Offcut pool behaviour and purchased tile counts.
"""

import pytest

from tile_models import Tile, WasteConfig
from waste_optimizer import (OffcutPool, WasteOptimizer, compute_waste_metrics,
                             fits_with_kerf, guillotine_remainders)


def _tile(tile_id, need_w=30.0, need_h=10.0, tile_w=30.0, tile_h=10.0, excluded=False):
    full = need_w == tile_w and need_h == tile_h
    return Tile(
        id=tile_id,
        outline=[],
        is_full=full,
        area_cm2=need_w * need_h,
        nominal_area_cm2=tile_w * tile_h,
        tile_w_cm=tile_w,
        tile_h_cm=tile_h,
        need_w_cm=need_w,
        need_h_cm=need_h,
        excluded=excluded,
    )


def test_pool_ids_are_sequential():
    pool = OffcutPool()
    assert pool.add(10, 10) == "o1"
    assert pool.add(0, 10) is None
    assert pool.add(5, 5) == "o2"
    assert pool.count() == 2
    assert pool.total_area() == pytest.approx(125.0)


def test_kerf_is_charged_only_on_sawn_axes():
    assert fits_with_kerf(10, 10, 10, 10, kerf=0.5)
    assert fits_with_kerf(10.5, 10, 10, 10, kerf=0.5)
    assert not fits_with_kerf(10.25, 10, 10, 10, kerf=0.5)
    assert not fits_with_kerf(9.9, 10, 10, 10)


def test_guillotine_split_leaves_two_strips():
    remainders = guillotine_remainders(30, 10, 20, 6)
    assert [(r.w, r.h) for r in remainders] == [(10, 10), (20, 4)]
    assert guillotine_remainders(30, 10, 30, 10) == []


def test_take_respects_rotation_setting():
    pool = OffcutPool()
    pool.add(10, 30)

    assert pool.take(25, 8, allow_rotate=False) is None
    taken = pool.take(25, 8, allow_rotate=True)
    assert taken.rotated
    assert pool.count() == 0


def test_first_fit_versus_best_fit():
    pool = OffcutPool()
    pool.add(30, 30)
    pool.add(12, 12)
    assert pool.take(10, 10).offcut.id == "o1"

    pool = OffcutPool()
    pool.add(30, 30)
    pool.add(12, 12)
    best = pool.take(10, 10, optimize_cuts=True)
    assert best.offcut.id == "o2"
    assert [(r.w, r.h) for r in best.remainders] == [(2, 12), (10, 2)]


def test_full_tiles_are_bought_one_each():
    metrics = compute_waste_metrics([_tile("a"), _tile("b"), _tile("c")])
    assert metrics.full_tiles == 3
    assert metrics.purchased_tiles == 3
    assert metrics.waste_pct == 0.0


def test_matching_cuts_share_a_tile_when_optimizing():
    tiles = [_tile(f"r{k}c1", need_w=15.0) for k in range(10)]

    plain = WasteOptimizer(WasteConfig(optimize_cuts=False)).run(tiles)
    optimized = WasteOptimizer(WasteConfig(optimize_cuts=True)).run(tiles)

    assert plain.cut_tiles == optimized.cut_tiles == 10
    assert optimized.reused_cuts == 5
    assert optimized.purchased_tiles == 5
    assert plain.purchased_tiles >= optimized.purchased_tiles


def test_conservative_offcut_can_be_reused():
    tiles = [_tile("a", need_w=10.0), _tile("b", need_w=5.0, need_h=5.0)]
    metrics = WasteOptimizer(WasteConfig()).run(tiles)

    assert metrics.reused_cuts == 1
    assert metrics.purchased_tiles == 1
    assert metrics.tile_usage[1]['source'] == 'offcut'


def test_excluded_tiles_are_not_bought():
    metrics = compute_waste_metrics([_tile("a"), _tile("b", excluded=True),
                                     _tile("c", need_w=5.0, excluded=True)])
    assert metrics.full_tiles == 1
    assert metrics.cut_tiles == 0
    assert metrics.purchased_tiles == 1


def test_purchased_never_below_full_tiles():
    tiles = [_tile("a"), _tile("b", need_w=12.0), _tile("c", need_w=7.0, need_h=4.0),
             _tile("d", need_w=29.0, need_h=9.0)]
    for optimize in (False, True):
        metrics = WasteOptimizer(WasteConfig(optimize_cuts=optimize, kerf_cm=0.2)).run(tiles)
        assert metrics.purchased_tiles >= metrics.full_tiles
        assert metrics.purchased_tiles <= metrics.full_tiles + metrics.cut_tiles
        assert 0.0 <= metrics.waste_pct <= 100.0

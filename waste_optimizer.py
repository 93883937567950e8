"""
Waste Optimizer Module
======================
Matches cut tile pieces against a pool of reusable rectangular offcuts and
works out how many tiles actually have to be bought.

Cut pieces are processed in placement order. A piece first tries to come out
of an existing offcut; otherwise a new tile is cut and its leftover goes
back into the pool. With ``optimize_cuts`` the pool picks the tightest
offcut, splits leftovers guillotine style and charges the saw kerf.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from config_tiling import TilingConfig
from tile_models import Tile, WasteConfig, WasteMetrics
from utils import safe_divide

logger = logging.getLogger(__name__)


@dataclass
class Offcut:
    """Rectangular leftover available for reuse."""
    id: str
    w: float
    h: float
    source: str = "tile"

    @property
    def area(self) -> float:
        return self.w * self.h

    def to_dict(self) -> Dict:
        return {'id': self.id, 'w': self.w, 'h': self.h, 'from': self.source}


@dataclass
class TakeResult:
    """Offcut consumed for a cut piece."""
    offcut: Offcut
    rotated: bool
    remainders: List[Offcut] = field(default_factory=list)

    def to_dict(self) -> Dict:
        data = self.offcut.to_dict()
        data['rotUsed'] = self.rotated
        data['remainders'] = [r.to_dict() for r in self.remainders]
        return data


def fits_with_kerf(off_w: float, off_h: float, need_w: float, need_h: float,
                   kerf: float = 0.0) -> bool:
    """
    Check whether a piece can be cut out of an offcut.

    An axis that is strictly larger than the need has to be sawn, so the saw
    blade width is added on that axis. An exact match needs no cut.
    """
    if not (off_w > 0 and off_h > 0 and need_w > 0 and need_h > 0):
        return False

    for have, need in ((off_w, need_w), (off_h, need_h)):
        if have < need:
            return False
        if need < have < need + kerf:
            return False

    return True


def guillotine_remainders(w: float, h: float, need_w: float, need_h: float,
                          kerf: float = 0.0) -> List[Offcut]:
    """
    Split what is left of a ``w`` x ``h`` rectangle after cutting the need
    from its corner: a full-height strip on the right and a strip below the
    need.
    """
    if not (w > 0 and h > 0 and need_w > 0 and need_h > 0):
        return []
    if need_w > w or need_h > h:
        return []

    remainders = []

    right_w = max(0.0, w - need_w - (kerf if w > need_w else 0.0))
    if right_w > 0:
        remainders.append(Offcut("", right_w, h))

    bottom_h = max(0.0, h - need_h - (kerf if h > need_h else 0.0))
    if bottom_h > 0:
        remainders.append(Offcut("", need_w, bottom_h))

    return remainders


class OffcutPool:
    """Pool of reusable rectangular offcuts with sequential ids."""

    def __init__(self):
        """Initialize an empty pool."""
        self.offcuts: List[Offcut] = []
        self._seq = 0

    def _next_id(self) -> str:
        self._seq += 1
        return f"o{self._seq}"

    def add(self, w: float, h: float, source: str = "tile") -> Optional[str]:
        """Add an offcut; returns its id, or None when it is too small."""
        w, h = max(0.0, w), max(0.0, h)
        if w <= 0 or h <= 0 or w * h < TilingConfig.WASTE['min_offcut_area_cm2']:
            return None

        offcut = Offcut(self._next_id(), w, h, source)
        self.offcuts.append(offcut)
        return offcut.id

    def take(self, need_w: float, need_h: float, allow_rotate: bool = True,
             optimize_cuts: bool = False, kerf: float = 0.0) -> Optional[TakeResult]:
        """
        Remove an offcut that can supply a ``need_w`` x ``need_h`` piece.

        Args:
            need_w: Piece width
            need_h: Piece height
            allow_rotate: Also try the piece turned by 90 degrees
            optimize_cuts: Best fit by smallest leftover and keep guillotine
                remainders; otherwise the first fitting offcut is used
            kerf: Saw blade width

        Returns:
            TakeResult, or None when no offcut fits
        """
        if not (need_w > 0 and need_h > 0):
            return None

        best = None  # (leftover, index, w, h, rotated)

        for index, offcut in enumerate(self.offcuts):
            orientations = [(need_w, need_h, False)]
            if allow_rotate:
                orientations.append((need_h, need_w, True))

            for w, h, rotated in orientations:
                if not fits_with_kerf(offcut.w, offcut.h, w, h, kerf):
                    continue
                if not optimize_cuts:
                    return self._consume(index, w, h, rotated, optimize_cuts, kerf)
                leftover = offcut.area - need_w * need_h
                if best is None or leftover < best[0]:
                    best = (leftover, index, w, h, rotated)

        if best is None:
            return None

        _, index, w, h, rotated = best
        return self._consume(index, w, h, rotated, optimize_cuts, kerf)

    def _consume(self, index: int, used_w: float, used_h: float, rotated: bool,
                 optimize_cuts: bool, kerf: float) -> TakeResult:
        chosen = self.offcuts.pop(index)
        result = TakeResult(chosen, rotated)

        if optimize_cuts:
            for remainder in guillotine_remainders(chosen.w, chosen.h, used_w, used_h, kerf):
                new_id = self.add(remainder.w, remainder.h, "offcut")
                if new_id:
                    result.remainders.append(Offcut(new_id, remainder.w, remainder.h, "offcut"))

        return result

    def count(self) -> int:
        """Number of offcuts in the pool."""
        return len(self.offcuts)

    def total_area(self) -> float:
        """Area of all offcuts still in the pool."""
        return sum(o.area for o in self.offcuts)

    def clear(self):
        """Empty the pool; ids keep counting up."""
        self.offcuts = []

    def snapshot(self) -> List[Dict]:
        """Serializable copy of the pool contents."""
        return [o.to_dict() for o in self.offcuts]


class WasteOptimizer:
    """Runs cut pieces through an offcut pool."""

    def __init__(self, waste: Optional[WasteConfig] = None):
        """
        Initialize waste optimizer.

        Args:
            waste: Reuse settings; defaults come from TilingConfig.WASTE
        """
        self.waste = waste or WasteConfig(
            allow_rotate=TilingConfig.WASTE['allow_rotate'],
            optimize_cuts=TilingConfig.WASTE['optimize_cuts'],
            kerf_cm=TilingConfig.WASTE['kerf_cm'],
        )
        self.pool = OffcutPool()

    def _new_tile_offcuts(self, tile: Tile) -> List[Offcut]:
        """Leftovers put into the pool after cutting a fresh tile."""
        tile_w, tile_h = tile.tile_w_cm, tile.tile_h_cm
        need_w, need_h = tile.need_w_cm, tile.need_h_cm
        created = []

        if self.waste.optimize_cuts:
            for remainder in guillotine_remainders(tile_w, tile_h, need_w, need_h,
                                                   self.waste.kerf_cm):
                new_id = self.pool.add(remainder.w, remainder.h, "tile")
                if new_id:
                    created.append(Offcut(new_id, remainder.w, remainder.h))
            return created

        # Conservative single rectangle carrying the leftover area
        leftover = max(0.0, tile.nominal_area_cm2 - need_w * need_h)
        if leftover > 0:
            max_side = max(tile_w, tile_h)
            w = min(max_side, max(TilingConfig.WASTE['min_offcut_side_cm'], leftover / max_side))
            h = leftover / w
            new_id = self.pool.add(w, h, "tile")
            if new_id:
                created.append(Offcut(new_id, w, h))
        return created

    def run(self, tiles: Sequence[Tile]) -> WasteMetrics:
        """
        Count purchased tiles for the given placement.

        Excluded tiles are not installed and are skipped.
        """
        self.pool.clear()
        kerf = self.waste.kerf_cm if self.waste.optimize_cuts else 0.0

        full_tiles = cut_tiles = reused_cuts = 0
        usage = []
        nominal = 0.0

        for tile in tiles:
            if tile.excluded:
                continue
            nominal = nominal or tile.nominal_area_cm2

            if tile.is_full:
                full_tiles += 1
                usage.append({'id': tile.id, 'isFull': True, 'reused': False,
                              'source': 'new', 'need': None,
                              'usedOffcut': None, 'createdOffcuts': []})
                continue

            cut_tiles += 1
            need = {'w': tile.need_w_cm, 'h': tile.need_h_cm}

            taken = self.pool.take(tile.need_w_cm, tile.need_h_cm,
                                   allow_rotate=self.waste.allow_rotate,
                                   optimize_cuts=self.waste.optimize_cuts,
                                   kerf=kerf)
            if taken:
                reused_cuts += 1
                usage.append({'id': tile.id, 'isFull': False, 'reused': True,
                              'source': 'offcut', 'need': need,
                              'usedOffcut': taken.to_dict(),
                              'createdOffcuts': [r.to_dict() for r in taken.remainders]})
                continue

            created = self._new_tile_offcuts(tile)
            usage.append({'id': tile.id, 'isFull': False, 'reused': False,
                          'source': 'new', 'need': need, 'usedOffcut': None,
                          'createdOffcuts': [c.to_dict() for c in created]})

        purchased = full_tiles + max(0, cut_tiles - reused_cuts)
        waste_area = self.pool.total_area()
        waste_pct = safe_divide(waste_area, purchased * nominal) * 100

        logger.info(f"Waste: {full_tiles} full, {cut_tiles} cut, {reused_cuts} reused, "
                    f"{purchased} purchased, {waste_pct:.1f}% offcut waste")

        return WasteMetrics(
            full_tiles=full_tiles,
            cut_tiles=cut_tiles,
            reused_cuts=reused_cuts,
            purchased_tiles=purchased,
            waste_area_cm2=waste_area,
            waste_pct=waste_pct,
            tile_usage=usage,
            offcut_pool=self.pool.snapshot(),
        )


def compute_waste_metrics(tiles: Sequence[Tile],
                          waste: Optional[WasteConfig] = None) -> WasteMetrics:
    """Convenience wrapper around ``WasteOptimizer.run``."""
    return WasteOptimizer(waste).run(tiles)

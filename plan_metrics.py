"""
Plan Metrics Module
===================
Runs a room through the whole pipeline (area, tiles, offcut reuse, skirting)
and turns the result into material, labor, area and price figures.
"""

import copy
import logging
import math
import threading
from collections import OrderedDict
from typing import Callable, Iterable, Optional

from area_resolver import AreaResolver
from pattern_validator import validate_room
from polygon_algebra import PolygonAlgebra, ShapelyPolygonAlgebra
from skirting_calculator import SkirtingCalculator
from tile_clipper import TileClipper
from tile_models import (ErrorKind, GrandTotals, PlanMetrics, PlanResult, PricingConfig,
                         Room, SkirtingType, WasteConfig)
from utils import cm2_to_m2, content_hash, safe_divide
from waste_optimizer import WasteOptimizer

logger = logging.getLogger(__name__)


class MetricsCache:
    """
    Memoizes plan results by a content hash of their inputs.

    Population is serialized by a lock so concurrent callers computing the
    same key do the work once. Stored entries are never mutated; readers get
    a copy and ``invalidate`` drops entries explicitly.
    """

    def __init__(self, max_entries: int = 128):
        """Initialize an empty cache holding at most ``max_entries`` results."""
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, PlanResult]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key_for(room: Room, pricing: PricingConfig, waste: WasteConfig) -> str:
        """Content hash of everything a plan result depends on."""
        return content_hash(room, pricing, waste)

    def get(self, key: str) -> Optional[PlanResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(entry)

    def put(self, key: str, result: PlanResult):
        with self._lock:
            self._store(key, result)

    def _store(self, key: str, result: PlanResult):
        self._entries[key] = copy.deepcopy(result)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def get_or_compute(self, key: str, compute: Callable[[], PlanResult]) -> PlanResult:
        """Return the cached result, computing and storing it on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self.hits += 1
                self._entries.move_to_end(key)
                return copy.deepcopy(entry)

            self.misses += 1
            result = compute()
            self._store(key, result)
            return copy.deepcopy(result)

    def invalidate(self, key: Optional[str] = None):
        """Drop one entry, or all of them when no key is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


class PlanCalculator:
    """Computes plan metrics for rooms."""

    def __init__(self, algebra: Optional[PolygonAlgebra] = None,
                 cache: Optional[MetricsCache] = None):
        """
        Initialize plan calculator.

        Args:
            algebra: Polygon boolean operations, shapely-backed by default
            cache: Optional memoization of results
        """
        self.algebra = algebra or ShapelyPolygonAlgebra()
        self.cache = cache
        self.resolver = AreaResolver(self.algebra)
        self.clipper = TileClipper(self.algebra)

    def compute(self, room: Room, pricing: Optional[PricingConfig] = None,
                waste: Optional[WasteConfig] = None) -> PlanResult:
        """
        Compute the plan metrics of a room.

        Args:
            room: Room to plan
            pricing: Purchase settings
            waste: Offcut reuse settings

        Returns:
            PlanResult with ``ok`` and either ``data`` or ``error``
        """
        pricing = pricing or PricingConfig()
        waste = waste or WasteConfig()

        if self.cache is None:
            return self._compute(room, pricing, waste)

        key = MetricsCache.key_for(room, pricing, waste)
        return self.cache.get_or_compute(key, lambda: self._compute(room, pricing, waste))

    def _compute(self, room: Room, pricing: PricingConfig, waste: WasteConfig) -> PlanResult:
        if room.tile.is_degenerate:
            return PlanResult(ok=False, error="Invalid tile or grout dimensions",
                              error_kind=ErrorKind.INPUT, room_id=room.id)

        area = self.resolver.resolve(room.sections, room.exclusions)
        if not area.ok:
            return PlanResult(ok=False, error=f"No available area: {area.error}",
                              error_kind=area.error_kind or ErrorKind.AREA, room_id=room.id)

        preview = self.clipper.preview(room, area.multi_polygon, include_excluded=True)
        if not preview.ok:
            return PlanResult(ok=False, error=preview.error,
                              error_kind=preview.error_kind, room_id=room.id)

        # Only ids matching a placed lattice cell count as removed
        placed_tiles = [t for t in preview.tiles if not t.excluded]
        excluded_count = len(preview.tiles) - len(placed_tiles)

        usage = WasteOptimizer(waste).run(placed_tiles)

        tile_area_cm2 = room.tile.nominal_area_cm2
        tile_area_m2 = cm2_to_m2(tile_area_cm2)
        reserve = max(0, int(math.floor(pricing.reserve_tiles or 0)))
        total_tiles = usage.purchased_tiles + reserve
        purchased_area_m2 = total_tiles * tile_area_m2
        installed_area_m2 = cm2_to_m2(area.net_area_cm2)

        packs = None
        if pricing.pack_m2 > 0:
            # Exact multiples of the pack size must not round up
            packs = int(math.ceil(purchased_area_m2 / pricing.pack_m2 - 1e-9))

        billed_area_m2 = purchased_area_m2
        if pricing.price_by_packs and packs is not None:
            billed_area_m2 = packs * pricing.pack_m2

        skirting = None
        if room.skirting.enabled or any(e.skirting_enabled for e in room.exclusions):
            skirting = SkirtingCalculator(room).needs(pricing)

        warnings = list(area.warnings)
        seen = {(w.title, w.text) for w in warnings}
        for warning in validate_room(room, self.algebra).warnings:
            if (warning.title, warning.text) not in seen:
                warnings.append(warning)

        placed = usage.full_tiles + usage.cut_tiles
        metrics = PlanMetrics(
            full_tiles=usage.full_tiles,
            cut_tiles=usage.cut_tiles,
            reused_cuts=usage.reused_cuts,
            purchased_tiles=usage.purchased_tiles,
            reserve_tiles=reserve,
            total_tiles_with_reserve=total_tiles,
            excluded_tiles=excluded_count,
            tile_area_cm2=tile_area_cm2,
            gross_area_m2=cm2_to_m2(self.resolver.sections_area(room.sections)),
            net_area_m2=installed_area_m2,
            installed_area_m2=installed_area_m2,
            purchased_area_m2=purchased_area_m2,
            material_waste_m2=max(0.0, purchased_area_m2 - installed_area_m2),
            offcut_waste_m2=usage.waste_area_m2,
            waste_pct=usage.waste_pct,
            cut_tiles_pct=safe_divide(usage.cut_tiles, placed) * 100,
            packs=packs,
            price_per_m2=pricing.price_per_m2,
            price_total=billed_area_m2 * pricing.price_per_m2,
            currency=pricing.currency,
            skirting=skirting,
            warnings=warnings,
            tile_usage=usage.tile_usage,
        )

        logger.info(f"Room {room.name or room.id or '?'}: {total_tiles} tiles to buy, "
                    f"{installed_area_m2:.2f} m2 net, price {metrics.price_total:.2f}")
        return PlanResult(ok=True, data=metrics, room_id=room.id)

    def grand_totals(self, rooms: Iterable[Room], pricing: Optional[PricingConfig] = None,
                     waste: Optional[WasteConfig] = None) -> GrandTotals:
        """Floor and skirting totals over several rooms."""
        totals = GrandTotals()

        for room in rooms:
            totals.rooms += 1
            result = self.compute(room, pricing, waste)
            if not result.ok:
                logger.warning(f"Skipping room {room.name or room.id or '?'}: {result.error}")
                totals.failed_rooms.append(room.id or room.name)
                continue

            data = result.data
            totals.floor_tiles += data.total_tiles_with_reserve
            totals.floor_area_m2 += data.purchased_area_m2
            totals.floor_cost += data.price_total

            skirting = data.skirting
            if skirting is None or not skirting.enabled:
                continue
            if skirting.type == SkirtingType.CUTOUT:
                totals.skirting_tiles += skirting.additional_tiles
                totals.skirting_area_m2 += skirting.additional_tiles * cm2_to_m2(data.tile_area_cm2)
            else:
                totals.bought_skirting_pieces += skirting.bought_pieces
            totals.skirting_cost += skirting.cost

        return totals


def compute_plan_metrics(room: Room, pricing: Optional[PricingConfig] = None,
                         waste: Optional[WasteConfig] = None,
                         cache: Optional[MetricsCache] = None,
                         algebra: Optional[PolygonAlgebra] = None) -> PlanResult:
    """Convenience wrapper around ``PlanCalculator.compute``."""
    return PlanCalculator(algebra, cache).compute(room, pricing, waste)


def compute_grand_totals(rooms: Iterable[Room], pricing: Optional[PricingConfig] = None,
                         waste: Optional[WasteConfig] = None,
                         cache: Optional[MetricsCache] = None) -> GrandTotals:
    """Convenience wrapper around ``PlanCalculator.grand_totals``."""
    return PlanCalculator(cache=cache).grand_totals(rooms, pricing, waste)

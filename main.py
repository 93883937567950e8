#!/usr/bin/env python3
"""
Tile Layout Planner
===================
Main entry point: plans every room of a project document and writes the
material reports.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

from area_resolver import resolve_area
from config_tiling import TilingConfig
from plan_metrics import MetricsCache, PlanCalculator
from plan_report import PlanReportGenerator
from skirting_calculator import compute_skirting_segments
from tile_clipper import tiles_for_preview
from tile_models import PricingConfig, Room, WasteConfig
from utils import ValidationError, ensure_directory, load_document, save_json, setup_logging

logger = logging.getLogger(__name__)


def load_project(path: str) -> Dict:
    """
    Read a project document.

    A project holds ``rooms`` plus optional ``pricing`` and ``waste``
    settings. A document describing a single room is accepted as well.

    Returns:
        Dictionary with ``name``, ``rooms``, ``pricing`` and ``waste``
    """
    data = load_document(path)
    if not isinstance(data, dict):
        raise ValidationError(f"Project document must be a mapping: {path}")

    room_dicts = data.get('rooms')
    if room_dicts is None and 'sections' in data:
        room_dicts = [data]
    if not room_dicts:
        raise ValidationError(f"No rooms in project document: {path}")

    rooms = []
    for index, room_data in enumerate(room_dicts):
        room = Room.from_dict(room_data)
        if not room.id:
            room.id = f"room{index + 1}"
        rooms.append(room)

    return {
        'name': data.get('name') or Path(path).stem,
        'rooms': rooms,
        'pricing': PricingConfig.from_dict(data.get('pricing') or {}),
        'waste': WasteConfig.from_dict(data.get('waste') or {}),
    }


class TilePlanner:
    """Runs the planning pipeline over a project."""

    def __init__(self, cache: Optional[MetricsCache] = None):
        """Initialize the planner with a shared results cache."""
        self.cache = cache or MetricsCache()
        self.calculator = PlanCalculator(cache=self.cache)

    def plan_project(self, project: Dict, output_dir: Optional[str] = None,
                     formats: Optional[List[str]] = None,
                     export_tiles: bool = False) -> Dict:
        """
        Plan every room of a project.

        Args:
            project: Output of ``load_project``
            output_dir: Where reports go; nothing is written when None
            formats: Report formats, defaults to the configured ones
            export_tiles: Also write tile outlines and skirting pieces

        Returns:
            Dictionary with results, totals and written files
        """
        start_time = time.time()
        rooms = project['rooms']
        pricing, waste = project['pricing'], project['waste']

        logger.info(f"Planning {len(rooms)} room(s) of {project['name']}")
        results = [self.calculator.compute(room, pricing, waste) for room in rooms]
        totals = self.calculator.grand_totals(rooms, pricing, waste)

        written = []
        if output_dir:
            output_path = ensure_directory(output_dir)
            reporter = PlanReportGenerator(rooms, results, totals, project['name'],
                                           currency=pricing.currency)
            written.extend(reporter.generate_all_reports(str(output_path), formats))

            if export_tiles:
                tiles_path = output_path / f"{project['name']}_tiles.json"
                save_json(self._tile_export(rooms), tiles_path)
                written.append(tiles_path)

        elapsed = time.time() - start_time
        logger.info(f"Planning finished in {elapsed:.2f} seconds "
                    f"(cache hits {self.cache.hits}, misses {self.cache.misses})")

        return {
            'success': all(r.ok for r in results),
            'name': project['name'],
            'results': results,
            'totals': totals,
            'files': written,
            'time_seconds': elapsed,
        }

    @staticmethod
    def _tile_export(rooms: List[Room]) -> Dict:
        """Tile outlines and skirting pieces; removed ones are kept and flagged when configured."""
        include_excluded = TilingConfig.REPORTING['include_excluded_tiles']
        export = {'rooms': []}
        for room in rooms:
            area = resolve_area(room.sections, room.exclusions)
            preview = tiles_for_preview(room, area.multi_polygon,
                                        include_excluded=include_excluded)
            export['rooms'].append({
                'id': room.id,
                'name': room.name,
                'error': area.error or preview.error,
                'tiles': [t.to_dict() for t in preview.tiles],
                'skirting': [s.to_dict() for s in
                             compute_skirting_segments(room, include_excluded=include_excluded)],
            })
        return export

    @staticmethod
    def print_summary(outcome: Dict):
        """Print results summary to console."""
        totals = outcome['totals']

        print("\n" + "=" * 70)
        print(f"TILE PLAN: {outcome['name']}")
        print("=" * 70)

        for result in outcome['results']:
            if not result.ok:
                print(f"{result.room_id:12} FAILED: {result.error}")
                continue
            data = result.data
            print(f"{result.room_id:12} {data.net_area_m2:8.2f} m2  "
                  f"{data.full_tiles:5} full  {data.cut_tiles:5} cut  "
                  f"{data.total_tiles_with_reserve:5} to buy  "
                  f"{data.price_total:10.2f} {data.currency}")
            for warning in data.warnings:
                print(f"{'':12} ! {warning.title}: {warning.text}")

        print("-" * 70)
        print(f"Floor tiles:    {totals.floor_tiles}")
        print(f"Skirting tiles: {totals.skirting_tiles}")
        if totals.bought_skirting_pieces:
            print(f"Bought skirting pieces: {totals.bought_skirting_pieces}")
        print(f"Total area:     {totals.total_area_m2:.2f} m2")
        print(f"Total cost:     {totals.total_cost:.2f}")

        for path in outcome['files']:
            print(f"Wrote {path}")
        print("=" * 70)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Tile Layout and Material Estimation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s project.json                      # Plan and write reports to output/
  %(prog)s project.yaml --output reports/    # Write reports elsewhere
  %(prog)s project.json --no-reports         # Only print the summary
  %(prog)s project.json --format txt json    # Only some report formats
  %(prog)s project.json --debug              # Enable debug logging
        """
    )

    parser.add_argument(
        "project",
        help="Path to project document (JSON or YAML)"
    )

    parser.add_argument(
        "--output",
        default=None,
        help="Output directory for reports (default: output/)"
    )

    parser.add_argument(
        "--no-reports",
        action="store_true",
        help="Only print the summary"
    )

    parser.add_argument(
        "--format",
        nargs="+",
        choices=["txt", "json", "html", "csv"],
        default=None,
        help="Report formats (default: all configured formats)"
    )

    parser.add_argument(
        "--export-tiles",
        action="store_true",
        help="Write tile outlines and skirting pieces as JSON"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Settings file overriding the defaults (JSON or YAML)"
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Also log to this file"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    if args.debug:
        setup_logging("DEBUG", args.log_file)
    elif args.verbose:
        setup_logging("INFO", args.log_file)
    else:
        setup_logging("WARNING", args.log_file)

    try:
        if args.config:
            TilingConfig.from_file(args.config)
            for warning in TilingConfig.validate_config():
                logger.warning(f"Config: {warning}")

        if not Path(args.project).exists():
            print(f"Error: File not found: {args.project}")
            return 1

        project = load_project(args.project)
        planner = TilePlanner()
        output_dir = None if args.no_reports else (args.output or str(TilingConfig.OUTPUT_DIR))
        outcome = planner.plan_project(project, output_dir=output_dir,
                                       formats=args.format,
                                       export_tiles=args.export_tiles)
        planner.print_summary(outcome)

        return 0 if outcome['success'] else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1

    except (ValidationError, ValueError, OSError) as e:
        logger.error(f"Error: {e}", exc_info=args.debug)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

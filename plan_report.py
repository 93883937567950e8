"""
Report Generation Module
========================
Generates material reports for tiling plans in text, JSON, HTML and CSV.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Template

from config_tiling import TilingConfig
from tile_models import GrandTotals, PlanResult, Room
from utils import format_area, format_currency

logger = logging.getLogger(__name__)


class PlanReportGenerator:
    """Generates reports for a set of planned rooms."""

    def __init__(self, rooms: Sequence[Room], results: Sequence[PlanResult],
                 totals: GrandTotals, project_name: str = "project",
                 currency: Optional[str] = None):
        """
        Initialize report generator.

        Args:
            rooms: Planned rooms
            results: Plan result of each room, in the same order
            totals: Grand totals across the rooms
            project_name: Name used in titles and file names
            currency: Currency label; taken from the first priced room by default
        """
        if len(rooms) != len(results):
            raise ValueError(f"Got {len(rooms)} rooms but {len(results)} results")

        self.rooms = list(rooms)
        self.results = list(results)
        self.totals = totals
        self.project_name = project_name
        self.config = TilingConfig.REPORTING
        self.currency = currency or self._detect_currency()
        self.report_data = self._prepare_report_data()

    def _detect_currency(self) -> str:
        for result in self.results:
            if result.ok and result.data:
                return result.data.currency
        return TilingConfig.PRICING['currency']

    def _prepare_report_data(self) -> Dict:
        """Prepare data for reports."""
        decimals = self.config['decimal_places']
        rooms = []

        for room, result in zip(self.rooms, self.results):
            entry = {
                'id': room.id,
                'name': room.name or room.id or "Room",
                'pattern': room.pattern.type.display_name,
                'tile': f"{room.tile.width_cm:g} x {room.tile.height_cm:g} cm",
                'grout_cm': room.tile.grout_width_cm,
                'ok': result.ok,
                'error': result.error,
            }

            if result.ok and result.data:
                data = result.data
                entry.update({
                    'full_tiles': data.full_tiles,
                    'cut_tiles': data.cut_tiles,
                    'reused_cuts': data.reused_cuts,
                    'purchased_tiles': data.purchased_tiles,
                    'reserve_tiles': data.reserve_tiles,
                    'total_tiles': data.total_tiles_with_reserve,
                    'net_area_m2': round(data.net_area_m2, decimals),
                    'purchased_area_m2': round(data.purchased_area_m2, decimals),
                    'waste_pct': round(data.waste_pct, decimals),
                    'cut_tiles_pct': round(data.cut_tiles_pct, decimals),
                    'packs': data.packs,
                    'price_total': round(data.price_total, 2),
                    'skirting': data.skirting.to_dict() if data.skirting else None,
                    'warnings': [f"{w.title}: {w.text}" for w in data.warnings],
                    'tile_usage': data.tile_usage,
                })

            rooms.append(entry)

        return {
            'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'project_name': self.project_name,
            'currency': self.currency,
            'rooms': rooms,
            'totals': self.totals.to_dict(),
            'recommendations': self._generate_recommendations(),
        }

    def generate_text_report(self, output_path: Optional[str] = None) -> str:
        """Generate text report."""
        logger.info("Generating text report")

        totals = self.totals
        lines = []
        lines.append("=" * 80)
        lines.append("TILE LAYOUT MATERIAL REPORT")
        lines.append("=" * 80)
        lines.append("")

        lines.append(f"Report Generated: {self.report_data['timestamp']}")
        lines.append(f"Project: {self.project_name}")
        lines.append(f"Rooms: {totals.rooms} ({len(totals.failed_rooms)} failed)")
        lines.append("")

        for room in self.report_data['rooms']:
            lines.append(f"ROOM: {room['name']}")
            lines.append("-" * 40)
            lines.append(f"Tile: {room['tile']}, grout {room['grout_cm']:g} cm, "
                         f"{room['pattern']}")

            if not room['ok']:
                lines.append(f"FAILED: {room['error']}")
                lines.append("")
                continue

            lines.append(f"Net area:        {room['net_area_m2']} m2")
            lines.append(f"Full tiles:      {room['full_tiles']:5}")
            lines.append(f"Cut tiles:       {room['cut_tiles']:5} ({room['cut_tiles_pct']}%)")
            lines.append(f"Reused offcuts:  {room['reused_cuts']:5}")
            lines.append(f"Purchased:       {room['purchased_tiles']:5} "
                         f"+ {room['reserve_tiles']} reserve = {room['total_tiles']}")
            lines.append(f"Purchased area:  {room['purchased_area_m2']} m2")
            lines.append(f"Offcut waste:    {room['waste_pct']}%")
            if room['packs'] is not None:
                lines.append(f"Packs:           {room['packs']:5}")
            lines.append(f"Price:           {format_currency(room['price_total'], self.currency)}")

            skirting = room['skirting']
            if skirting and skirting['enabled']:
                lines.append(f"Skirting:        {skirting['pieces']} pieces, "
                             f"{skirting['totalLengthCm']:.1f} cm ({skirting['type']})")

            for warning in room['warnings']:
                lines.append(f"  ! {warning}")
            lines.append("")

        lines.append("GRAND TOTALS")
        lines.append("-" * 40)
        lines.append(f"{'Floor tiles':20} : {totals.floor_tiles:6}")
        lines.append(f"{'Skirting tiles':20} : {totals.skirting_tiles:6}")
        lines.append(f"{'Bought skirting':20} : {totals.bought_skirting_pieces:6} pieces")
        lines.append(f"{'Total tiles':20} : {totals.total_tiles:6}")
        lines.append(f"{'Total area':20} : {format_area(totals.total_area_m2)}")
        lines.append(f"{'Floor cost':20} : {format_currency(totals.floor_cost, self.currency)}")
        lines.append(f"{'Skirting cost':20} : {format_currency(totals.skirting_cost, self.currency)}")
        lines.append(f"{'TOTAL COST':20} : {format_currency(totals.total_cost, self.currency)}")
        lines.append("")

        lines.append("RECOMMENDATIONS")
        lines.append("-" * 40)
        for i, rec in enumerate(self.report_data['recommendations'], 1):
            lines.append(f"{i}. {rec}")
        lines.append("")
        lines.append("=" * 80)

        report = "\n".join(lines)

        if output_path:
            with open(output_path, 'w') as f:
                f.write(report)
            logger.info(f"Text report saved to {output_path}")

        return report

    def generate_json_report(self, output_path: Optional[str] = None) -> Dict:
        """Generate JSON report."""
        logger.info("Generating JSON report")

        json_data = self._clean_for_json(self.report_data)
        json_data['results'] = [r.to_dict() for r in self.results]

        if output_path:
            with open(output_path, 'w') as f:
                json.dump(json_data, f, indent=2)
            logger.info(f"JSON report saved to {output_path}")

        return json_data

    def generate_html_report(self, output_path: Optional[str] = None) -> str:
        """Generate HTML report."""
        logger.info("Generating HTML report")

        html_template = """
        <!DOCTYPE html>
        <html>
        <head>
            <title>Tile Material Report - {{ project_name }}</title>
            <style>
                body { font-family: Arial, sans-serif; margin: 40px; background-color: #f5f5f5; }
                .header { background-color: #2c3e50; color: white; padding: 20px; border-radius: 5px; }
                .section { background-color: white; margin: 20px 0; padding: 20px; border-radius: 5px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
                .metric { display: inline-block; margin: 10px 20px; }
                .metric-value { font-size: 24px; font-weight: bold; color: #2c3e50; }
                .metric-label { font-size: 12px; color: #7f8c8d; }
                table { width: 100%; border-collapse: collapse; margin: 20px 0; }
                th { background-color: #34495e; color: white; padding: 10px; text-align: left; }
                td { padding: 8px; border-bottom: 1px solid #ecf0f1; }
                .warning { color: #f39c12; font-weight: bold; }
                .error { color: #e74c3c; font-weight: bold; }
            </style>
        </head>
        <body>
            <div class="header">
                <h1>Tile Material Report</h1>
                <p>{{ project_name }} | Generated: {{ timestamp }}</p>
            </div>

            <div class="section">
                <h2>Grand Totals</h2>
                <div class="metric">
                    <div class="metric-value">{{ totals.totalTiles }}</div>
                    <div class="metric-label">Tiles to buy</div>
                </div>
                <div class="metric">
                    <div class="metric-value">{{ total_area }}</div>
                    <div class="metric-label">Total Area</div>
                </div>
                <div class="metric">
                    <div class="metric-value">{{ total_cost }}</div>
                    <div class="metric-label">Total Cost</div>
                </div>
            </div>

            <div class="section">
                <h2>Rooms</h2>
                <table>
                    <tr>
                        <th>Room</th><th>Tile</th><th>Pattern</th><th>Net m2</th>
                        <th>Full</th><th>Cut</th><th>Reused</th><th>To buy</th>
                        <th>Waste %</th><th>Price</th>
                    </tr>
                    {% for room in rooms %}
                    <tr>
                        <td>{{ room.name }}</td>
                        <td>{{ room.tile }}</td>
                        <td>{{ room.pattern }}</td>
                        {% if room.ok %}
                        <td>{{ room.net_area_m2 }}</td>
                        <td>{{ room.full_tiles }}</td>
                        <td>{{ room.cut_tiles }}</td>
                        <td>{{ room.reused_cuts }}</td>
                        <td>{{ room.total_tiles }}</td>
                        <td>{{ room.waste_pct }}</td>
                        <td>{{ room.price_total }} {{ currency }}</td>
                        {% else %}
                        <td colspan="7" class="error">{{ room.error }}</td>
                        {% endif %}
                    </tr>
                    {% endfor %}
                </table>
            </div>

            <div class="section">
                <h2>Recommendations</h2>
                <ul>
                    {% for rec in recommendations %}
                    <li>{{ rec }}</li>
                    {% endfor %}
                </ul>
                {% for room in rooms %}
                {% for warning in room.warnings %}
                <p class="warning">{{ room.name }}: {{ warning }}</p>
                {% endfor %}
                {% endfor %}
            </div>
        </body>
        </html>
        """

        template_data = dict(self.report_data)
        template_data['total_area'] = format_area(self.totals.total_area_m2)
        template_data['total_cost'] = format_currency(self.totals.total_cost, self.currency)

        template = Template(html_template)
        html_content = template.render(**template_data)

        if output_path:
            with open(output_path, 'w') as f:
                f.write(html_content)
            logger.info(f"HTML report saved to {output_path}")

        return html_content

    def generate_csv_report(self, output_path: Optional[str] = None,
                            include_tiles: Optional[bool] = None) -> List[Dict]:
        """Generate CSV report: one row per room, or per tile with ``include_tiles``."""
        logger.info("Generating CSV report")

        if include_tiles is None:
            include_tiles = self.config['include_tile_list']

        rows = []
        for room in self.report_data['rooms']:
            if not room['ok']:
                continue

            if not include_tiles:
                rows.append({
                    'Room': room['name'],
                    'Net Area (m2)': room['net_area_m2'],
                    'Full Tiles': room['full_tiles'],
                    'Cut Tiles': room['cut_tiles'],
                    'Reused Cuts': room['reused_cuts'],
                    'Tiles To Buy': room['total_tiles'],
                    'Packs': room['packs'] if room['packs'] is not None else '',
                    'Waste (%)': room['waste_pct'],
                    f'Price ({self.currency})': room['price_total'],
                })
                continue

            for usage in room['tile_usage']:
                need = usage.get('need') or {}
                used = usage.get('usedOffcut') or {}
                rows.append({
                    'Room': room['name'],
                    'Tile ID': usage['id'],
                    'Full': usage['isFull'],
                    'Source': usage['source'],
                    'Need W (cm)': round(need['w'], 2) if need else '',
                    'Need H (cm)': round(need['h'], 2) if need else '',
                    'Offcut Used': used.get('id', ''),
                    'Offcuts Created': len(usage.get('createdOffcuts', [])),
                })

        if output_path:
            with open(output_path, 'w', newline='') as f:
                if rows:
                    writer = csv.DictWriter(f, fieldnames=rows[0].keys())
                    writer.writeheader()
                    writer.writerows(rows)
            logger.info(f"CSV report saved to {output_path}")

        return rows

    def generate_summary_report(self) -> str:
        """Generate brief summary report."""
        totals = self.totals
        summary = f"""
MATERIAL SUMMARY - {self.project_name}
{'='*50}
Rooms: {totals.rooms} ({len(totals.failed_rooms)} failed)
Floor tiles: {totals.floor_tiles} ({format_area(totals.floor_area_m2)})
Skirting tiles: {totals.skirting_tiles}
Bought skirting pieces: {totals.bought_skirting_pieces}
Total tiles: {totals.total_tiles}
Cost: {format_currency(totals.total_cost, self.currency)}
"""
        return summary

    def generate_all_reports(self, output_dir: str, formats: Optional[List[str]] = None) -> List[Path]:
        """Generate all report formats."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        formats = formats or self.config['formats']

        base_name = f"{self.project_name}_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        generators = {
            'txt': self.generate_text_report,
            'json': self.generate_json_report,
            'html': self.generate_html_report,
            'csv': self.generate_csv_report,
        }

        written = []
        for fmt in formats:
            if fmt not in generators:
                logger.warning(f"Unknown report format: {fmt}")
                continue
            path = output_dir / f"{base_name}.{fmt}"
            generators[fmt](path)
            written.append(path)

        logger.info(f"All reports generated in {output_dir}")
        return written

    def _generate_recommendations(self) -> List[str]:
        """Generate recommendations based on results."""
        recommendations = []

        for room, result in zip(self.rooms, self.results):
            name = room.name or room.id or "Room"
            if not result.ok:
                recommendations.append(f"{name}: no plan could be computed ({result.error}).")
                continue

            data = result.data
            if data.waste_pct > 15:
                recommendations.append(
                    f"{name}: offcut waste is {data.waste_pct:.1f}%. "
                    "Try another origin or offset, or enable cut optimization."
                )
            if data.cut_tiles_pct > 50:
                recommendations.append(
                    f"{name}: {data.cut_tiles_pct:.0f}% of the tiles are cut. "
                    "A larger room or a smaller tile reduces cutting labor."
                )
            if data.reserve_tiles == 0 and data.purchased_tiles > 0:
                recommendations.append(
                    f"{name}: no reserve tiles planned. Keep a few spare tiles for breakage."
                )

        if not recommendations:
            recommendations.append("Plan complete. All metrics within usual ranges.")

        return recommendations[:10]

    def _clean_for_json(self, data: Any) -> Any:
        """Clean data for JSON serialization."""
        if isinstance(data, dict):
            return {k: self._clean_for_json(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple)):
            return [self._clean_for_json(v) for v in data]
        elif hasattr(data, 'to_dict'):
            return self._clean_for_json(data.to_dict())
        elif isinstance(data, (int, float, str, bool, type(None))):
            return data
        else:
            return str(data)

"""
Excel export of hot issue statistics.

Generates a formatted workbook with:
- A title row naming the time window
- Bold, colored headers
- One row per tag, most used first
"""

import logging
from pathlib import Path
from typing import Any, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .config import OutputConfig
from .models import HotIssuesStats, TagStat, TimeRange


logger = logging.getLogger(__name__)


class ReportGeneratorError(Exception):
    """Error during report generation."""
    pass


COLUMN_CONFIG = [
    {"key": "tag_name", "header": "Tag", "width": 25},
    {"key": "tag_description", "header": "Description", "width": 40},
    {"key": "count", "header": "Tickets", "width": 12},
    {"key": "avg_confidence", "header": "Avg Confidence", "width": 16},
]

HEADER_ROW = 2


def stat_to_row(stat: TagStat) -> list[Any]:
    """
    Convert a TagStat to a row of values.

    Args:
        stat: The stats row to convert.

    Returns:
        List of cell values matching COLUMN_CONFIG order.
    """
    avg = round(stat.avg_confidence, 3) if stat.avg_confidence is not None else None
    return [stat.tag_name, stat.tag_description, stat.count, avg]


class StatsReportGenerator:
    """Writes HotIssuesStats to an .xlsx file."""

    HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
    HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)
    TITLE_FONT = Font(bold=True, size=12)

    CELL_ALIGNMENT = Alignment(vertical="top", wrap_text=True)
    CELL_BORDER = Border(
        left=Side(style="thin", color="D0D0D0"),
        right=Side(style="thin", color="D0D0D0"),
        top=Side(style="thin", color="D0D0D0"),
        bottom=Side(style="thin", color="D0D0D0"),
    )

    def __init__(self, config: OutputConfig):
        self._config = config

    def generate(
        self,
        stats: HotIssuesStats,
        time_range: Optional[TimeRange] = None,
        output_path: Optional[Path] = None,
    ) -> Path:
        """
        Generate the stats workbook.

        Args:
            stats: Aggregated tag usage.
            time_range: Window shown in the title row.
            output_path: Overrides the configured report path.

        Returns:
            Path to the generated Excel file.

        Raises:
            ReportGeneratorError: If report generation fails.
        """
        output_path = output_path or self._config.report_path

        try:
            wb = Workbook()
            ws = wb.active
            ws.title = "Hot Issues"

            ws.cell(row=1, column=1, value=self._title(time_range)).font = self.TITLE_FONT
            self._write_headers(ws)
            self._write_data(ws, stats.tag_stats)

            for col_idx, col_config in enumerate(COLUMN_CONFIG, 1):
                ws.column_dimensions[get_column_letter(col_idx)].width = col_config["width"]

            ws.freeze_panes = f"A{HEADER_ROW + 1}"

            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)

        except Exception as e:
            logger.error(f"Failed to generate stats report: {e}")
            raise ReportGeneratorError(f"Report generation failed: {e}") from e

        logger.info(f"Stats report saved to: {output_path}")
        return output_path

    @staticmethod
    def _title(time_range: Optional[TimeRange]) -> str:
        if time_range is None:
            return "Hot issues"
        return (
            f"Hot issues {time_range.start:%Y-%m-%d %H:%M} - "
            f"{time_range.end:%Y-%m-%d %H:%M}"
        )

    def _write_headers(self, ws: Worksheet) -> None:
        for col_idx, col_config in enumerate(COLUMN_CONFIG, 1):
            cell = ws.cell(row=HEADER_ROW, column=col_idx, value=col_config["header"])
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.CELL_BORDER

    def _write_data(self, ws: Worksheet, tag_stats: list[TagStat]) -> None:
        for row_idx, stat in enumerate(tag_stats, HEADER_ROW + 1):
            for col_idx, value in enumerate(stat_to_row(stat), 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.alignment = self.CELL_ALIGNMENT
                cell.border = self.CELL_BORDER


def generate_stats_report(
    stats: HotIssuesStats,
    config: OutputConfig,
    time_range: Optional[TimeRange] = None,
    output_path: Optional[Path] = None,
) -> Path:
    """Convenience function to generate a stats report."""
    return StatsReportGenerator(config).generate(stats, time_range, output_path)

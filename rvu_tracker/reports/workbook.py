"""Excel export of period summaries and HCPCS breakdowns."""

import logging

import openpyxl
from openpyxl.styles import Font

from ..logic.analytics import AnalyticsAggregator

logger = logging.getLogger(__name__)

SUMMARY_HEADERS = ["Period", "Period Start", "Work RVU", "Encounters", "No-Shows"]
BREAKDOWN_HEADERS = ["Period", "HCPCS", "Description", "Quantity", "Work RVU"]


def _write_header(sheet, headers):
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = Font(bold=True)


def export_analytics_workbook(aggregator: AnalyticsAggregator, path: str) -> str:
    """Save the aggregator's current view to an .xlsx file.

    The Summary sheet lists buckets oldest first with a totals row; the
    Breakdown sheet follows the breakdown order (newest first, respecting
    any selected bucket).

    Returns:
        The path written
    """
    wb = openpyxl.Workbook()

    summary_sheet = wb.active
    summary_sheet.title = "Summary"
    _write_header(summary_sheet, SUMMARY_HEADERS)
    for summary in aggregator.period_summaries:
        summary_sheet.append([
            summary.period_label,
            summary.period_start,
            round(summary.total_rvu, 2),
            summary.encounter_count,
            summary.no_show_count,
        ])
    summary_sheet.append([
        "Total",
        None,
        round(aggregator.total_rvu, 2),
        aggregator.total_encounters,
        aggregator.total_no_shows,
    ])
    summary_sheet[summary_sheet.max_row][0].font = Font(bold=True)

    breakdown_sheet = wb.create_sheet("Breakdown")
    _write_header(breakdown_sheet, BREAKDOWN_HEADERS)
    row_count = 0
    for breakdown in aggregator.period_breakdowns:
        for row in breakdown.rows:
            breakdown_sheet.append([
                breakdown.period_label,
                row.code,
                row.description,
                row.total_quantity,
                round(row.total_work_rvu, 2),
            ])
            row_count += 1

    summary_sheet.column_dimensions['A'].width = 18
    summary_sheet.column_dimensions['B'].width = 14
    breakdown_sheet.column_dimensions['A'].width = 18
    breakdown_sheet.column_dimensions['C'].width = 48

    wb.save(path)
    logger.info(f"Exported analytics workbook to {path} ({row_count} breakdown rows)")
    return path


__all__ = ['export_analytics_workbook', 'SUMMARY_HEADERS', 'BREAKDOWN_HEADERS']

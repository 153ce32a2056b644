"""
Excel export of forecast results.
"""
import os
from typing import Dict, List, Mapping, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from models import FlexibilityScore, PeriodCapacity, WorkItem
from utils.logger import logger


def _style_header(sheet) -> None:
    header_fill = PatternFill(start_color="D0D0D0", end_color="D0D0D0", fill_type="solid")
    header_font = Font(bold=True)
    center_align = Alignment(horizontal="center")
    for cell in sheet[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = center_align


def export_forecast_to_excel(
    filename: str,
    items: Sequence[WorkItem],
    scheduled_days: Sequence[PeriodCapacity],
    flexibility: Optional[Mapping[int, Optional[FlexibilityScore]]] = None,
    metrics: Optional[Dict[str, object]] = None,
) -> bool:
    """
    Export a scheduled forecast to an Excel workbook.

    Args:
        filename: File to save the workbook to
        items: Work items the forecast covers
        scheduled_days: Per-day scheduled capacity with breakdown
        flexibility: Flexibility score per item id
        metrics: Output of compute_forecast_metrics

    Returns:
        bool: True if export successful
    """
    wb = Workbook()

    # Capacity sheet
    ws1 = wb.active
    ws1.title = "Capacity"
    ws1.append(["Start", "End", "LoadHrs", "CapacityHrs", "Load %", "Status"])
    _style_header(ws1)
    for day in scheduled_days:
        ws1.append([
            day.start_date.isoformat(),
            day.end_date.isoformat(),
            day.load_hours,
            day.capacity_hours,
            day.percentage,
            day.status,
        ])

    # Breakdown sheet
    ws2 = wb.create_sheet("Breakdown")
    ws2.append(["Start", "End", "ItemID", "Hours", "Slippage", "Actual"])
    _style_header(ws2)
    for day in scheduled_days:
        for entry in day.breakdown:
            ws2.append([
                day.start_date.isoformat(),
                day.end_date.isoformat(),
                entry.item_id,
                entry.hours,
                "Yes" if entry.is_slippage else "",
                "Yes" if entry.is_actual else "",
            ])

    # Items sheet
    ws3 = wb.create_sheet("Items")
    ws3.append([
        "ItemID", "Subject", "Start", "Due", "EstHrs", "SpentHrs", "Done %",
        "Initial Flex %", "Remaining Flex %", "Status",
    ])
    _style_header(ws3)
    flexibility = flexibility or {}
    for item in sorted(items, key=lambda x: x.id):
        score = flexibility.get(item.id)
        ws3.append([
            item.id,
            item.subject,
            item.start_date.isoformat() if item.start_date else "",
            item.due_date.isoformat() if item.due_date else "",
            item.estimated_hours,
            item.spent_hours,
            item.done_ratio,
            score.initial_percent if score else "",
            score.remaining_percent if score else "",
            score.status if score else ("closed" if item.is_closed else "n/a"),
        ])

    # Summary sheet
    if metrics:
        ws4 = wb.create_sheet("Summary")
        ws4.append(["Metric", "Value"])
        _style_header(ws4)
        for key, value in metrics.items():
            if isinstance(value, dict):
                continue
            ws4.append([key, value])

    for sheet in wb.worksheets:
        for col in sheet.columns:
            col_letter = get_column_letter(col[0].column)
            max_len = max((len(str(cell.value)) for cell in col if cell.value is not None), default=0)
            sheet.column_dimensions[col_letter].width = max_len + 2

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    try:
        wb.save(filename)
        logger.info(f"Excel report saved as '{filename}'")
        return True
    except OSError as e:
        logger.error(f"Error saving Excel report: {e}")
        return False


def breakdown_rows(days: Sequence[PeriodCapacity]) -> List[Dict[str, object]]:
    """Flatten per-day breakdowns into rows, one per (day, item) entry."""
    return [
        {"date": day.start_date.isoformat(), **entry.to_dict()}
        for day in days
        for entry in day.breakdown
    ]

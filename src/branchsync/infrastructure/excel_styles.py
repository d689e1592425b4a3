"""
Excel styling configuration and utilities.

Provides the styling used when provisioning a template sheet:
- Color palette
- Font, fill, border and alignment presets
- Column definitions and header helpers
"""

from __future__ import annotations

from dataclasses import dataclass

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet


# ============================================================================
# Color Palette
# ============================================================================


class Colors:
    """Workbook color palette (hex codes without #)."""

    HEADER_BG = "203764"  # Navy
    HEADER_TEXT = "FFFFFF"
    MANUAL_HEADER_BG = "4472C4"  # Steel blue marks user-edited columns
    BORDER = "1F4E79"


# ============================================================================
# Fonts
# ============================================================================


class Fonts:
    """Font definitions."""

    HEADER = Font(name="Segoe UI", size=11, bold=True, color=Colors.HEADER_TEXT)


# ============================================================================
# Fills (Backgrounds)
# ============================================================================


class Fills:
    """Background fill patterns."""

    HEADER = PatternFill(
        start_color=Colors.HEADER_BG, end_color=Colors.HEADER_BG, fill_type="solid"
    )
    MANUAL_HEADER = PatternFill(
        start_color=Colors.MANUAL_HEADER_BG,
        end_color=Colors.MANUAL_HEADER_BG,
        fill_type="solid",
    )


# ============================================================================
# Borders
# ============================================================================


class Borders:
    """Border styles."""

    HEADER = Border(
        left=Side(style="thin", color=Colors.BORDER),
        right=Side(style="thin", color=Colors.BORDER),
        top=Side(style="thin", color=Colors.BORDER),
        bottom=Side(style="medium", color=Colors.BORDER),
    )


# ============================================================================
# Alignments
# ============================================================================


class Alignments:
    """Text alignment definitions."""

    CENTER_WRAP = Alignment(horizontal="center", vertical="center", wrap_text=True)


# ============================================================================
# Column Definition
# ============================================================================


@dataclass
class ColumnDef:
    """
    Column definition for a working-table sheet.

    Attributes:
        name: Column header text
        width: Column width in characters
        is_manual: If True, this is a user-input column (annotations)
    """

    name: str
    width: int = 14
    is_manual: bool = False


# Widths for the default maintenance-record columns; others use ColumnDef's default.
COLUMN_WIDTHS = {
    "StockId": 10,
    "Description": 36,
    "Serial": 18,
    "Manufacturer": 18,
    "Model": 16,
    "Due": 14,
    "Overdue": 10,
    "Notes": 40,
}


def column_defs(fields: tuple[str, ...], manual: tuple[str, ...] = ()) -> list[ColumnDef]:
    """Build column definitions for a field order, flagging annotation columns."""
    return [
        ColumnDef(name=name, width=COLUMN_WIDTHS.get(name, 14), is_manual=name in manual)
        for name in fields
    ]


# ============================================================================
# Helper Functions
# ============================================================================


def apply_header_row(ws: Worksheet, columns: list[ColumnDef], row: int = 1) -> None:
    """
    Apply header styling to a row.

    Args:
        ws: Worksheet
        columns: List of column definitions
        row: Row number (1-indexed)
    """
    for col_idx, col_def in enumerate(columns, start=1):
        cell = ws.cell(row=row, column=col_idx)
        cell.value = col_def.name
        cell.font = Fonts.HEADER
        cell.fill = Fills.MANUAL_HEADER if col_def.is_manual else Fills.HEADER
        cell.alignment = Alignments.CENTER_WRAP
        cell.border = Borders.HEADER

        ws.column_dimensions[get_column_letter(col_idx)].width = col_def.width


def freeze_panes(ws: Worksheet, row: int = 2, col: int = 1) -> None:
    """
    Freeze panes in a worksheet.

    Args:
        ws: Worksheet
        row: First unfrozen row (freeze rows above)
        col: First unfrozen column (freeze columns to the left)
    """
    ws.freeze_panes = ws.cell(row=row, column=col)


def add_autofilter(
    ws: Worksheet, columns: list[ColumnDef], header_row: int = 1
) -> None:
    """
    Add autofilter to header row.

    Args:
        ws: Worksheet
        columns: Column definitions
        header_row: Header row number
    """
    last_col = get_column_letter(len(columns))
    ws.auto_filter.ref = f"A{header_row}:{last_col}{header_row}"

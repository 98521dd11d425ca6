"""
File exports for a rigging survey.

- The quoting workbook: a "Bill of Materials" sheet with live per-row and
  grand-total formulas, and a flat "Components" sheet.
- A CSV of the AI-generated hardware list.
"""

import csv
import io
import math
from collections.abc import Sequence
from typing import Any

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from src.rig_lib import (
    FittingTotal,
    MiscHardware,
    PinTotal,
    RiggingComponent,
    WireTotal,
    coerce_quantity,
    safe_file_stem,
)
from src.rig_lib import constants as C


def _addr(col: int, row: int) -> str:
    """1-based (column, row) -> 'A1' style reference."""
    return f"{get_column_letter(col)}{row}"


def _write_value(ws: Worksheet, row: int, col: int, value: Any) -> None:
    """
    Writes a data cell from recorded survey values.

    Text is stored as a literal string: characters Excel cannot hold are
    stripped, and a leading '=' never turns it into a formula. Values
    openpyxl cannot store (lists, dicts, non-finite floats) are written as
    their text.
    """
    if value is None or isinstance(value, bool):
        ws.cell(row=row, column=col, value=value)
        return
    if isinstance(value, (int, float)) and math.isfinite(value):
        ws.cell(row=row, column=col, value=value)
        return

    cell = ws.cell(row=row, column=col)
    cell.value = ILLEGAL_CHARACTERS_RE.sub("", str(value))
    cell.data_type = "s"


def _write_section(
    ws: Worksheet,
    row: int,
    title: str,
    headers: list[str],
    rows: list[list[Any]],
    qty_col: int,
    price_col: int,
    total_col: int,
    total_cells: list[str],
) -> int:
    """
    Writes one priced section of the Bill of Materials starting at `row`.

    Layout: a title row, a column-header row, one row per entry, then one
    blank separator row. The unit price cell is left empty for the user to
    fill in; each entry's Total is `=<qty cell>*<price cell>`.

    Args:
        ws: Target worksheet.
        row: First row to write (1-based).
        title: Section title.
        headers: Column headers, starting at column A.
        rows: Entry values, starting at column A (price and total excluded).
        qty_col: Column holding the quantity (or length) multiplier.
        price_col: Column of the blank unit-price input.
        total_col: Column receiving the Total formula.
        total_cells: Collector for each Total cell address (appended to).

    Returns:
        The next free row. Unchanged if `rows` is empty, since empty
        sections are omitted entirely.
    """
    if not rows:
        return row

    ws.cell(row=row, column=1, value=title).font = Font(bold=True)
    row += 1

    for col, header in enumerate(headers, start=1):
        ws.cell(row=row, column=col, value=header).font = Font(bold=True)
    row += 1

    for values in rows:
        for col, value in enumerate(values, start=1):
            _write_value(ws, row, col, value)
        ws.cell(
            row=row,
            column=total_col,
            value=f"={_addr(qty_col, row)}*{_addr(price_col, row)}",
        )
        total_cells.append(_addr(total_col, row))
        row += 1

    # Separator
    return row + 1


def build_project_workbook(
    vessel_name: str,
    wire: Sequence[WireTotal],
    fittings: Sequence[FittingTotal],
    pins: Sequence[PinTotal],
    misc: Sequence[MiscHardware],
    components: Sequence[RiggingComponent],
) -> Workbook:
    """
    Renders the pick list and raw components into a two-sheet workbook.

    Sheet 1 ("Bill of Materials") stacks the Wire, Fittings, Clevis Pins and
    Miscellaneous sections, skipping any that are empty, and closes with a
    GRAND TOTAL formula summing every per-row Total cell. Sheet 2
    ("Components") is a flat export with no aggregation.

    The row cursor is threaded through each section so cell references stay
    correct whichever sections are present.

    Args:
        vessel_name: Stored as the workbook title.
        wire: Wire totals (length in meters).
        fittings: Fitting totals.
        pins: Clevis pin totals.
        misc: Miscellaneous hardware lines.
        components: The raw rigging components.

    Returns:
        An openpyxl Workbook (not yet saved).
    """
    wb = Workbook()
    wb.properties.title = f"{vessel_name} Rigging Specification"

    # --- Sheet 1: Bill of Materials ---
    ws1 = wb.active
    ws1.title = C.BOM_SHEET_TITLE
    total_cells: list[str] = []
    row = 1

    # A=Material, B=Diameter, C=Length (m), D=Unit Price ($/m), E=Total
    row = _write_section(
        ws1,
        row,
        C.SECTION_WIRE,
        C.WIRE_HEADERS,
        [[w["material"], w["diameter"], round(w["length"], 2)] for w in wire],
        qty_col=3,
        price_col=4,
        total_col=5,
        total_cells=total_cells,
    )

    # A=Type, B=Pin Size, C=Wire Dia, D=Qty, E=Unit Price, F=Total
    row = _write_section(
        ws1,
        row,
        C.SECTION_FITTINGS,
        C.FITTING_HEADERS,
        [[f["type"], f["pin_size"], f["diameter"], f["quantity"]] for f in fittings],
        qty_col=4,
        price_col=5,
        total_col=6,
        total_cells=total_cells,
    )

    # A=Size, B=Qty, C=Unit Price, D=Total
    row = _write_section(
        ws1,
        row,
        C.SECTION_PINS,
        C.PIN_HEADERS,
        [[p["size"], p["quantity"]] for p in pins],
        qty_col=2,
        price_col=3,
        total_col=4,
        total_cells=total_cells,
    )

    # A=Item, B=Qty, C=Unit Price, D=Total
    row = _write_section(
        ws1,
        row,
        C.SECTION_MISC,
        C.MISC_HEADERS,
        [[m.get("item", ""), coerce_quantity(m.get("quantity"))] for m in misc],
        qty_col=2,
        price_col=3,
        total_col=4,
        total_cells=total_cells,
    )

    if total_cells:
        ws1.cell(row=row, column=1, value=C.GRAND_TOTAL_LABEL).font = Font(bold=True)
        ws1.cell(row=row, column=2, value="=" + "+".join(total_cells))

    for i, width in enumerate(C.BOM_COLUMN_WIDTHS, start=1):
        ws1.column_dimensions[get_column_letter(i)].width = width

    # --- Sheet 2: Components ---
    ws2 = wb.create_sheet(C.COMPONENTS_SHEET_TITLE)
    ws2.append(C.COMPONENT_HEADERS)
    for cell in ws2[1]:
        cell.font = Font(bold=True)

    for row, c in enumerate(components, start=2):
        quantity = c.get("quantity")
        values = [
            c.get("type", ""),
            quantity if quantity is not None else 1,
            c.get("length", ""),
            c.get("diameter", ""),
            c.get("material", ""),
            c.get("upper_termination", ""),
            c.get("pin_size_upper", ""),
            c.get("lower_termination", ""),
            c.get("pin_size_lower", ""),
            c.get("notes", ""),
        ]
        for col, value in enumerate(values, start=1):
            _write_value(ws2, row, col, value)

    for i, width in enumerate(C.COMPONENT_COLUMN_WIDTHS, start=1):
        ws2.column_dimensions[get_column_letter(i)].width = width

    return wb


def workbook_to_bytes(wb: Workbook) -> bytes:
    """Serializes a workbook to .xlsx bytes for download."""
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def spreadsheet_filename(vessel_name: str | None) -> str:
    """e.g. "S/V Sea Breeze!" -> "S-V-Sea-Breeze-rigging-spec.xlsx"."""
    return f"{safe_file_stem(vessel_name)}-rigging-spec.xlsx"


def generate_hardware_list_csv(items: Sequence[dict[str, Any]]) -> bytes:
    """
    Generates a CSV file for an AI-generated hardware list.

    Args:
        items (list[dict]): Hardware items with keys `item_name`, `quantity`,
            `specifications`, and optionally `suggested_replacement_part`
            and `notes`.

    Returns:
        bytes: The CSV content encoded as utf-8-sig.
    """
    csv_buf = io.StringIO()
    fields = ["Item", "Qty", "Specifications", "Suggested Replacement", "Notes"]
    writer = csv.DictWriter(csv_buf, fieldnames=fields)
    writer.writeheader()

    for item in items:
        writer.writerow(
            {
                "Item": item.get("item_name", ""),
                "Qty": item.get("quantity", ""),
                "Specifications": item.get("specifications", ""),
                "Suggested Replacement": item.get("suggested_replacement_part") or "",
                "Notes": item.get("notes") or "",
            }
        )

    # encode "utf-8-sig" to ensure Excel opens it correctly with special characters
    return csv_buf.getvalue().encode("utf-8-sig")

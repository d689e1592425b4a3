"""
Upload reader.

Turns an uploaded CSV or XLSX file into the ordered record set the
orchestrator consumes. Header cells are trimmed; blank rows are skipped;
values are passed through untouched.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from openpyxl import load_workbook

from branchsync.domain.record import Record, normalize_text, records_from_rows

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xlsm")


def read_csv_upload(path: Path) -> list[Record]:
    """Read a CSV upload; extra unnamed columns are ignored."""
    records: list[Record] = []
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        headers = reader.fieldnames or []
        names = {header: header.strip() for header in headers if header is not None}
        for raw_row in reader:
            record = {names[key]: value for key, value in raw_row.items() if key in names and names[key]}
            if all(normalize_text(value) == "" for value in record.values()):
                continue
            records.append(record)
    return records


def read_xlsx_upload(path: Path, sheet: str | None = None) -> list[Record]:
    """Read the first (or named) sheet of an XLSX upload."""
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        ws = workbook[sheet] if sheet else workbook.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        return records_from_rows(header, rows)
    finally:
        workbook.close()


def read_upload(path: str | Path, sheet: str | None = None) -> list[Record]:
    """
    Read an upload file into records.

    Args:
        path: CSV or XLSX file
        sheet: Sheet to read for XLSX uploads (default: first)

    Raises:
        ValueError: For unsupported file types
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        records = read_csv_upload(path)
    elif suffix in (".xlsx", ".xlsm"):
        records = read_xlsx_upload(path, sheet)
    else:
        raise ValueError(f"Unsupported upload type '{suffix}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})")

    logger.info("Read %d record(s) from %s", len(records), path)
    return records

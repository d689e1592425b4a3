"""
Record model.

A record is a plain mapping of field name to scalar value, exactly as it comes
out of an upload or a worksheet row. RecordLayout carries the configured field
order and the role each special field plays (identifier, branch key, carried
over annotations, status), and is the one place identifiers are normalized.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, TypeAlias

Scalar: TypeAlias = str | int | float | bool | date | datetime | None
Record: TypeAlias = Mapping[str, Scalar]
CarryoverEntry: TypeAlias = dict[str, Scalar]

DEFAULT_FIELDS: tuple[str, ...] = (
    "StockId",
    "Description",
    "Type",
    "Serial",
    "Manufacturer",
    "Model",
    "BranchKey",
    "Due",
    "Overdue",
    "Notes",
)


def normalize_text(value: Any) -> str:
    """Return the trimmed string form of a cell value, '' for empty."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel hands back whole numbers as floats when the cell was typed.
        value = int(value)
    return str(value).strip()


@dataclass(frozen=True, slots=True)
class RecordLayout:
    """
    Field order and field roles for records and working-table rows.

    Attributes:
        fields: Output column order (also the working-table header)
        id_field: Stable record identifier column
        branch_field: Branch classification column
        carryover_fields: Annotation columns preserved across uploads
        status_field: Column checked against the exclusion set
    """

    fields: tuple[str, ...] = DEFAULT_FIELDS
    id_field: str = "StockId"
    branch_field: str = "BranchKey"
    carryover_fields: tuple[str, ...] = ("Due", "Notes")
    status_field: str = "Due"

    def record_id(self, record: Record) -> str | None:
        """Normalized identifier of a record, or None when blank or missing."""
        return normalize_text(record.get(self.id_field)) or None

    def branch_key(self, record: Record) -> str | None:
        """Normalized branch key of a record, or None when blank or missing."""
        return normalize_text(record.get(self.branch_field)) or None

    def to_row(self, record: Record) -> tuple[Scalar, ...]:
        """Project a record onto the configured field order."""
        return tuple(record.get(name) for name in self.fields)


def records_from_rows(header: Sequence[Any], rows: Iterable[Sequence[Any]]) -> list[dict[str, Scalar]]:
    """
    Turn raw worksheet rows into records keyed by header name.

    Header cells are trimmed; unnamed columns are ignored. Rows whose cells
    are all empty are skipped.
    """
    names = [normalize_text(cell) for cell in header]
    records: list[dict[str, Scalar]] = []
    for row in rows:
        if all(normalize_text(cell) == "" for cell in row):
            continue
        record: dict[str, Scalar] = {}
        for name, value in zip(names, row):
            if name:
                record[name] = value
        records.append(record)
    return records

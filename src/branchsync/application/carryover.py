"""
Carryover resolution.

Reads the annotation columns of a branch's current working table into a
lookup keyed by normalized record identifier, so they can be merged into the
next upload.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from branchsync.domain.errors import MissingColumn
from branchsync.domain.record import CarryoverEntry, Record, RecordLayout

logger = logging.getLogger(__name__)


def resolve_carryover(
    existing: Sequence[Record] | None,
    layout: RecordLayout,
    *,
    table_name: str = "working table",
) -> dict[str, CarryoverEntry]:
    """
    Build ``identifier -> {carryover field: value}`` from existing rows.

    Args:
        existing: Rows of the current working table, or None if it does not exist
        layout: Record layout naming the identifier and carryover fields
        table_name: Used in error and log messages

    Returns:
        Carryover lookup. Empty when the table does not exist.

    Raises:
        MissingColumn: If the table has rows but no identifier column

    Rows with a blank identifier are skipped. When an identifier repeats, the
    later row wins.
    """
    if existing is None:
        return {}

    entries: dict[str, CarryoverEntry] = {}
    if existing and not any(layout.id_field in row for row in existing):
        raise MissingColumn(layout.id_field, source=f"sheet '{table_name}'")

    duplicates = 0
    for row in existing:
        record_id = layout.record_id(row)
        if record_id is None:
            continue
        if record_id in entries:
            duplicates += 1
        entries[record_id] = {name: row.get(name) for name in layout.carryover_fields}

    if duplicates:
        logger.warning(
            "%s has %d duplicate %s value(s); the last row of each was kept",
            table_name,
            duplicates,
            layout.id_field,
        )
    logger.debug("Read %d carryover entries from %s", len(entries), table_name)
    return entries

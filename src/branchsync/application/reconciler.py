"""
Reconciliation of one branch's upload against its carryover.

Pure functions: same inputs give the same rows, in input order.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field

from branchsync.domain.record import CarryoverEntry, Record, RecordLayout, Scalar, normalize_text


@dataclass(slots=True)
class ReconcileResult:
    """Rows to write for one branch, with counters for the run report."""

    rows: list[tuple[Scalar, ...]] = field(default_factory=list)
    carried_over: int = 0
    excluded: int = 0
    skipped: int = 0


def merge_record(record: Record, entry: CarryoverEntry | None, layout: RecordLayout) -> dict[str, Scalar]:
    """
    Merge carryover annotations into an incoming record.

    Each carryover field takes the previous value verbatim when there is one
    (anything but None or ""), else the incoming value. Every other field
    comes from the upload.
    """
    merged = {name: record.get(name) for name in layout.fields}
    if entry is None:
        return merged
    for name in layout.carryover_fields:
        previous = entry.get(name)
        if previous is not None and previous != "":
            merged[name] = previous
    return merged


def is_excluded(record: Record, layout: RecordLayout, exclusions: Collection[str]) -> bool:
    """Whether the record's trimmed status exactly matches an exclusion value."""
    if not exclusions:
        return False
    return normalize_text(record.get(layout.status_field)) in exclusions


def reconcile_branch(
    records: Sequence[Record],
    carryover: Mapping[str, CarryoverEntry],
    layout: RecordLayout,
    exclusions: Collection[str] = (),
) -> ReconcileResult:
    """
    Produce the output rows for one branch.

    Args:
        records: Incoming records for the branch, in upload order
        carryover: Previous annotations keyed by normalized identifier
        layout: Field order and roles
        exclusions: Status values that drop a record after merging

    Returns:
        ReconcileResult whose rows follow ``layout.fields``
    """
    exclusion_set = frozenset(exclusions)
    result = ReconcileResult()

    for record in records:
        record_id = layout.record_id(record)
        if record_id is None:
            result.skipped += 1
            continue

        entry = carryover.get(record_id)
        merged = merge_record(record, entry, layout)
        if entry is not None:
            result.carried_over += 1

        if is_excluded(merged, layout, exclusion_set):
            result.excluded += 1
            continue
        result.rows.append(layout.to_row(merged))

    return result

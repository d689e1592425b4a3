"""Group an uploaded record set by branch key."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from branchsync.domain.errors import MissingColumn
from branchsync.domain.record import Record, RecordLayout

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Partition:
    """
    Records grouped per configured branch.

    Attributes:
        groups: One list per configured branch key, in input order
        dropped: Records whose branch key is blank or not configured
    """

    groups: dict[str, list[Record]]
    dropped: list[Record] = field(default_factory=list)

    def __getitem__(self, branch_key: str) -> list[Record]:
        return self.groups[branch_key]


def partition_records(
    records: Sequence[Record],
    branch_keys: Iterable[str],
    layout: RecordLayout,
) -> Partition:
    """
    Split records into one group per configured branch.

    Every configured key gets a group, even when no record maps to it.
    Records with a blank or unrecognized branch key are dropped (returned in
    ``Partition.dropped``), which is not an error.

    Raises:
        MissingColumn: If records are present but the first one has no
            branch column at all
    """
    groups: dict[str, list[Record]] = {key: [] for key in branch_keys}
    partition = Partition(groups=groups)
    if not records:
        return partition

    if layout.branch_field not in records[0]:
        raise MissingColumn(layout.branch_field)

    for record in records:
        key = layout.branch_key(record)
        if key is not None and key in groups:
            groups[key].append(record)
        else:
            partition.dropped.append(record)

    if partition.dropped:
        logger.info(
            "Dropped %d record(s) with unconfigured branch keys: %s",
            len(partition.dropped),
            ", ".join(sorted({layout.branch_key(r) or "<blank>" for r in partition.dropped})),
        )
    return partition


def discover_branch_keys(records: Iterable[Record], layout: RecordLayout) -> list[str]:
    """Sorted distinct non-blank branch keys present in a record set."""
    return sorted({key for key in (layout.branch_key(r) for r in records) if key})

"""
Archive naming scheme.

Archive sheets are titled ``<prefix>|<branch key>|<YYYYMMDD-HHMM>`` with an
optional ``.<n>`` suffix (n in 2..9) when the same branch is archived twice in
one minute. Excel rejects ':' in sheet titles and caps them at 31 characters,
so '|' is the separator and is forbidden in branch keys and prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from branchsync.domain.errors import MalformedArchiveName

SEPARATOR = "|"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M"
TIMESTAMP_LENGTH = len("20240101-0000")
MAX_SHEET_TITLE = 31
MAX_SEQUENCE = 9
# Room reserved for the ".<n>" collision suffix.
SEQUENCE_SUFFIX_LENGTH = 2
INVALID_TITLE_CHARS = frozenset("\\/?*[]:")


def max_branch_key_length(prefix: str) -> int:
    """Longest branch key whose archive names still fit an Excel sheet title."""
    return MAX_SHEET_TITLE - len(prefix) - 2 * len(SEPARATOR) - TIMESTAMP_LENGTH - SEQUENCE_SUFFIX_LENGTH


@dataclass(frozen=True, slots=True)
class ArchiveName:
    """Decoded form of an archive sheet title."""

    branch_key: str
    created_at: datetime
    sequence: int = 1

    def encode(self, prefix: str) -> str:
        """Build the sheet title for this archive."""
        stamp = self.created_at.strftime(TIMESTAMP_FORMAT)
        name = SEPARATOR.join((prefix, self.branch_key, stamp))
        if self.sequence > 1:
            name = f"{name}.{self.sequence}"
        return name

    @classmethod
    def for_snapshot(cls, branch_key: str, now: datetime, sequence: int = 1) -> ArchiveName:
        """Archive name for a snapshot taken at ``now`` (truncated to the minute)."""
        return cls(branch_key, now.replace(second=0, microsecond=0), sequence)


def is_archive_title(title: str, prefix: str) -> bool:
    """Whether a sheet title belongs to the archive namespace."""
    return title.startswith(prefix + SEPARATOR)


def parse_archive_name(title: str, prefix: str) -> ArchiveName:
    """
    Decode an archive sheet title.

    Args:
        title: Sheet title to decode
        prefix: Configured archive prefix

    Returns:
        The decoded ArchiveName

    Raises:
        MalformedArchiveName: If the title does not follow the naming scheme
    """
    if not is_archive_title(title, prefix):
        raise MalformedArchiveName(title, f"does not start with '{prefix}{SEPARATOR}'")

    parts = title[len(prefix) + len(SEPARATOR):].split(SEPARATOR)
    if len(parts) != 2:
        raise MalformedArchiveName(title, "expected branch key and timestamp")

    branch_key, stamp = parts
    if not branch_key.strip():
        raise MalformedArchiveName(title, "branch key is empty")

    sequence = 1
    if "." in stamp:
        stamp, _, seq_text = stamp.partition(".")
        if not seq_text.isdigit() or not 2 <= int(seq_text) <= MAX_SEQUENCE:
            raise MalformedArchiveName(title, f"invalid sequence suffix '{seq_text}'")
        sequence = int(seq_text)

    try:
        created_at = datetime.strptime(stamp, TIMESTAMP_FORMAT)
    except ValueError:
        raise MalformedArchiveName(title, f"invalid timestamp '{stamp}'") from None

    return ArchiveName(branch_key, created_at, sequence)

"""
Archive Store.

Snapshots of working tables live in the same workbook as hidden sheets named
by branch key and minute (see branchsync.domain.archive_name). Archives are
never modified or deleted here; restoring one copies it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from openpyxl.worksheet.worksheet import Worksheet

from branchsync.domain.archive_name import (
    MAX_SEQUENCE,
    ArchiveName,
    is_archive_title,
    parse_archive_name,
)
from branchsync.domain.config import SyncConfig
from branchsync.domain.errors import (
    ArchiveNotFound,
    DuplicateArchiveName,
    MalformedArchiveName,
    SourceNotFound,
)
from branchsync.infrastructure.excel.workbook_store import HIDDEN, WorkbookStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """One archive as shown to a browsing UI."""

    id: str
    branch_key: str | None
    created_at: datetime | None
    visibility_state: str
    sequence: int = 1
    issue: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.issue is None


class ArchiveStore:
    """
    Create, list and restore archived working tables.

    Usage:
        archives = ArchiveStore(store, config)
        archive_id = archives.snapshot("Springfield")
        archives.promote(archive_id)
    """

    def __init__(
        self,
        store: WorkbookStore,
        config: SyncConfig,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.config = config
        self.clock = clock

    @property
    def prefix(self) -> str:
        return self.config.archive_prefix

    def archive_table(self, branch_key: str) -> str:
        """
        Turn the branch's working table into a hidden archive.

        The sheet is renamed and hidden in place, so at no point are there two
        copies or none.

        Raises:
            UnknownBranch: If the branch is not configured
            SourceNotFound: If the branch has no working table
            DuplicateArchiveName: If no free archive name is left this minute
        """
        branch = self.config.branch_for(branch_key)
        if not self.store.has_table(branch.tab_name):
            raise SourceNotFound(branch.key, branch.tab_name)

        archive_id = self._free_name(branch.key)
        self.store.rename(branch.tab_name, archive_id)
        self.store.set_visibility(archive_id, HIDDEN)
        logger.info("Archived '%s' as '%s'", branch.tab_name, archive_id)
        return archive_id

    def snapshot(self, branch_key: str) -> str | None:
        """
        Archive the branch's working table if there is one.

        Returns:
            The new archive id, or None when there was nothing to archive
        """
        try:
            return self.archive_table(branch_key)
        except SourceNotFound as exc:
            logger.debug("Nothing to archive: %s", exc)
            return None

    def list(self, branch_key: str | None = None) -> list[ArchiveEntry]:
        """
        Enumerate archive sheets, oldest first within each branch.

        Sheets in the archive namespace whose titles cannot be decoded are
        included with ``issue`` set instead of raising.
        """
        entries: list[ArchiveEntry] = []
        for title in self.store.table_names():
            if not is_archive_title(title, self.prefix):
                continue
            state = self.store.visibility(title)
            try:
                name = parse_archive_name(title, self.prefix)
            except MalformedArchiveName as exc:
                logger.warning("%s", exc)
                entries.append(ArchiveEntry(title, None, None, state, issue=exc.reason))
                continue
            entries.append(ArchiveEntry(title, name.branch_key, name.created_at, state, name.sequence))

        if branch_key is not None:
            entries = [entry for entry in entries if entry.branch_key == branch_key]
        entries.sort(
            key=lambda e: (e.branch_key is None, e.branch_key or "", e.created_at or datetime.min, e.sequence, e.id)
        )
        return entries

    def promote(self, archive_id: str) -> Worksheet:
        """
        Restore an archive as its branch's working table.

        The current working table, if any, is archived first so nothing is
        lost. The archive itself is left in place.

        Raises:
            MalformedArchiveName: If the id cannot be decoded
            UnknownBranch: If the decoded branch is not configured
            ArchiveNotFound: If no such archive sheet exists
        """
        name = parse_archive_name(archive_id, self.prefix)
        branch = self.config.branch_for(name.branch_key)
        if archive_id not in self.store.table_names():
            raise ArchiveNotFound(archive_id)

        position = self.store.index_of(branch.tab_name) if self.store.has_table(branch.tab_name) else None
        backup_id = self.snapshot(branch.key)
        if backup_id is not None:
            logger.info("Current '%s' saved as '%s' before restore", branch.tab_name, backup_id)

        ws = self.store.copy_table(archive_id, branch.tab_name)
        if position is not None:
            self.store.move_to(branch.tab_name, position)
        logger.info("Restored '%s' from '%s'", branch.tab_name, archive_id)
        return ws

    def _free_name(self, branch_key: str) -> str:
        now = self.clock()
        for sequence in range(1, MAX_SEQUENCE + 1):
            candidate = ArchiveName.for_snapshot(branch_key, now, sequence).encode(self.prefix)
            if not self.store.has_table(candidate):
                return candidate
        raise DuplicateArchiveName(branch_key, ArchiveName.for_snapshot(branch_key, now).encode(self.prefix))

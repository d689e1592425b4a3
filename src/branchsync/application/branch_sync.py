"""
Branch Sync Orchestrator.

Runs one ingestion: partitions the upload, then for each configured branch in
turn reads carryover, archives the current working table, clones the template,
reconciles and writes the new rows, and commits the workbook.

Branches are independent. A failing branch is rolled back to the last commit
(its previous working table untouched) and reported, and the run moves on to
the next branch. Run-level errors (missing template, missing branch column)
are raised before any branch is touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from branchsync.application.carryover import resolve_carryover
from branchsync.application.partitioner import discover_branch_keys, partition_records
from branchsync.application.reconciler import reconcile_branch
from branchsync.domain.config import Branch, SyncConfig
from branchsync.domain.errors import BranchStepError
from branchsync.domain.record import Record
from branchsync.domain.state_machine import BranchOutcome, BranchState, next_state
from branchsync.infrastructure.excel.archive_store import ArchiveStore
from branchsync.infrastructure.excel.template import TemplateCloner
from branchsync.infrastructure.excel.workbook_store import WorkbookStore

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Result of one ingestion run."""

    outcomes: list[BranchOutcome] = field(default_factory=list)
    dropped: list[Record] = field(default_factory=list)
    unknown_branch_keys: list[str] = field(default_factory=list)  # "" for a blank key

    @property
    def succeeded(self) -> list[BranchOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed(self) -> list[BranchOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is BranchState.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed


class BranchSyncOrchestrator:
    """
    Coordinates carryover, archive, template clone, reconcile and write.

    Usage:
        store = WorkbookStore.open("branches.xlsx")
        orchestrator = BranchSyncOrchestrator(config, store)
        report = orchestrator.run(records)
    """

    def __init__(
        self,
        config: SyncConfig,
        store: WorkbookStore,
        *,
        clock: Callable[[], datetime] = datetime.now,
        archives: ArchiveStore | None = None,
        cloner: TemplateCloner | None = None,
    ):
        self.config = config
        self.store = store
        self.layout = config.layout
        self.archives = archives or ArchiveStore(store, config, clock=clock)
        self.cloner = cloner or TemplateCloner(store, config.template_name, config.columns)

    def run(self, records: Sequence[Record]) -> SyncReport:
        """
        Sync every configured branch from one upload.

        Raises:
            TemplateNotFound: If the template sheet is missing
            MissingColumn: If the upload has rows but no branch column
        """
        self.cloner.ensure_template()
        partition = partition_records(records, self.config.branch_keys, self.layout)

        unknown = discover_branch_keys(partition.dropped, self.layout)
        if any(self.layout.branch_key(r) is None for r in partition.dropped):
            unknown.insert(0, "")
        report = SyncReport(dropped=partition.dropped, unknown_branch_keys=unknown)
        logger.info(
            "Syncing %d record(s) into %d branch(es)", len(records), len(self.config.branches)
        )
        for branch in self.config.branches:
            report.outcomes.append(self._sync_branch(branch, partition[branch.key]))

        logger.info(
            "Sync finished: %d succeeded, %d failed", len(report.succeeded), len(report.failed)
        )
        return report

    def restore(self, archive_id: str) -> str:
        """
        Promote an archive to its branch's working table and commit.

        Returns:
            The restored working table name
        """
        try:
            ws = self.archives.promote(archive_id)
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
        return ws.title

    def _sync_branch(self, branch: Branch, records: Sequence[Record]) -> BranchOutcome:
        outcome = BranchOutcome(branch_key=branch.key, table_name=branch.tab_name)
        try:
            self._run_pipeline(branch, records, outcome)
        except Exception as exc:
            error = BranchStepError(branch.key, next_state(outcome.state).value, exc)
            logger.error("%s", error, exc_info=True)
            self.store.rollback()
            outcome.archive_id = None
            outcome.rows_written = outcome.carried_over = outcome.excluded = outcome.skipped = 0
            outcome.fail(str(error))
        return outcome

    def _run_pipeline(self, branch: Branch, records: Sequence[Record], outcome: BranchOutcome) -> None:
        existing = self.store.read_records(branch.tab_name)
        carryover = resolve_carryover(existing, self.layout, table_name=branch.tab_name)
        outcome.advance(BranchState.CARRYOVER_READ)

        position = self.store.index_of(branch.tab_name) if existing is not None else None
        outcome.archive_id = self.archives.snapshot(branch.key)
        outcome.advance(BranchState.ARCHIVED)

        self.cloner.clone(branch.tab_name)
        if position is not None:
            self.store.move_to(branch.tab_name, position)
        outcome.advance(BranchState.TEMPLATE_CLONED)

        result = reconcile_branch(records, carryover, self.layout, self.config.exclusions)
        outcome.carried_over = result.carried_over
        outcome.excluded = result.excluded
        outcome.skipped = result.skipped
        outcome.advance(BranchState.RECONCILED)

        outcome.rows_written = self.store.write_rows(branch.tab_name, result.rows)
        outcome.advance(BranchState.WRITTEN)

        self.store.commit()
        outcome.advance(BranchState.DONE)
        logger.info(
            "Branch %s: %d row(s) written, %d carried over, %d excluded, %d skipped%s",
            branch.key,
            outcome.rows_written,
            outcome.carried_over,
            outcome.excluded,
            outcome.skipped,
            f", previous table archived as '{outcome.archive_id}'" if outcome.archive_id else "",
        )

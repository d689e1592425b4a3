"""
Per-branch state machine for one ingestion run.

Architecture Note:
    - Pure domain logic - no I/O, no workbook access
    - The orchestrator moves each branch through these states in a fixed order
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BranchState(str, Enum):
    """Pipeline position of one branch within a run."""

    PENDING = "Pending"
    CARRYOVER_READ = "CarryoverRead"
    ARCHIVED = "Archived"
    TEMPLATE_CLONED = "TemplateCloned"
    RECONCILED = "Reconciled"
    WRITTEN = "Written"
    DONE = "Done"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        """Done and Failed accept no further transitions."""
        return self in (BranchState.DONE, BranchState.FAILED)


PIPELINE: tuple[BranchState, ...] = (
    BranchState.PENDING,
    BranchState.CARRYOVER_READ,
    BranchState.ARCHIVED,
    BranchState.TEMPLATE_CLONED,
    BranchState.RECONCILED,
    BranchState.WRITTEN,
    BranchState.DONE,
)


def next_state(current: BranchState) -> BranchState:
    """Return the state that follows ``current`` in the pipeline."""
    if current.is_terminal:
        raise ValueError(f"No transition out of terminal state {current.value}")
    return PIPELINE[PIPELINE.index(current) + 1]


def can_transition(current: BranchState, target: BranchState) -> bool:
    """Only the next pipeline step, or Failed from any live state, is allowed."""
    if current.is_terminal:
        return False
    if target is BranchState.FAILED:
        return True
    return next_state(current) is target


@dataclass
class BranchOutcome:
    """
    Progress and result of one branch in one run.

    Attributes:
        branch_key: Configured branch key
        table_name: Working table (sheet) name
        state: Current pipeline state
        failed_step: Step that was in progress when the branch failed
        error: Failure message (includes branch key and step)
        archive_id: Archive created for the replaced table, if any
        rows_written: Rows in the new working table
        carried_over: Rows that took annotations from the previous table
        excluded: Rows dropped by the exclusion set
        skipped: Rows dropped for a blank identifier
    """

    branch_key: str
    table_name: str
    state: BranchState = BranchState.PENDING
    failed_step: BranchState | None = None
    error: str | None = None
    archive_id: str | None = None
    rows_written: int = 0
    carried_over: int = 0
    excluded: int = 0
    skipped: int = 0
    history: list[BranchState] = field(default_factory=lambda: [BranchState.PENDING])

    def advance(self, target: BranchState) -> None:
        """Move to ``target``; raises ValueError on an out-of-order transition."""
        if target is BranchState.FAILED or not can_transition(self.state, target):
            raise ValueError(
                f"Illegal transition for branch '{self.branch_key}': "
                f"{self.state.value} -> {target.value}"
            )
        self.state = target
        self.history.append(target)

    def fail(self, error: str) -> None:
        """Record a failure at the current step."""
        if self.state.is_terminal:
            raise ValueError(f"Branch '{self.branch_key}' already finished as {self.state.value}")
        self.failed_step = next_state(self.state)
        self.error = error
        self.state = BranchState.FAILED
        self.history.append(BranchState.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.state is BranchState.DONE

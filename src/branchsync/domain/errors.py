"""
Error taxonomy for branch synchronization.

Run-level errors (MissingColumn on the upload, TemplateNotFound) abort a run
before any working table is touched. Branch-level errors are wrapped in
BranchStepError by the orchestrator and reported per branch.
"""

from __future__ import annotations


class BranchSyncError(Exception):
    """Base class for all branch synchronization errors."""


class MissingColumn(BranchSyncError):
    """A required column is absent from a record set or working table."""

    def __init__(self, column: str, source: str = "upload"):
        self.column = column
        self.source = source
        super().__init__(f"Required column '{column}' is missing from {source}")


class TemplateNotFound(BranchSyncError):
    """The configured template worksheet does not exist."""

    def __init__(self, template_name: str):
        self.template_name = template_name
        super().__init__(f"Template sheet '{template_name}' not found in workbook")


class SourceNotFound(BranchSyncError):
    """There is no working table to archive for a branch."""

    def __init__(self, branch_key: str, table_name: str):
        self.branch_key = branch_key
        self.table_name = table_name
        super().__init__(f"No working table '{table_name}' exists for branch '{branch_key}'")


class UnknownBranch(BranchSyncError):
    """A branch key does not map to any configured branch."""

    def __init__(self, branch_key: str):
        self.branch_key = branch_key
        super().__init__(f"Branch '{branch_key}' is not configured")


class MalformedArchiveName(BranchSyncError):
    """An archive sheet title cannot be decoded into (branch, timestamp)."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Malformed archive name '{name}': {reason}")


class ArchiveNotFound(BranchSyncError):
    """The requested archive sheet does not exist."""

    def __init__(self, archive_id: str):
        self.archive_id = archive_id
        super().__init__(f"Archive '{archive_id}' not found in workbook")


class DuplicateArchiveName(BranchSyncError):
    """Every collision suffix for an archive name is already taken."""

    def __init__(self, branch_key: str, base_name: str):
        self.branch_key = branch_key
        self.base_name = base_name
        super().__init__(
            f"Cannot archive branch '{branch_key}': too many archives named '{base_name}' this minute"
        )


class BranchStepError(BranchSyncError):
    """A failure inside one branch's pipeline, tagged with the failing step."""

    def __init__(self, branch_key: str, step: str, cause: Exception):
        self.branch_key = branch_key
        self.step = step
        self.cause = cause
        super().__init__(f"Branch '{branch_key}' failed at {step}: {cause}")

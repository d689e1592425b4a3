"""
Workbook Store.

Named-table access over one openpyxl workbook, plus the commit / rollback
boundary used to make each branch replacement all-or-nothing:

- commit() checkpoints the in-memory workbook and, when backed by a file,
  saves it through a temporary file and an atomic rename
- rollback() discards every change since the last commit

Worksheet objects are invalidated by rollback(); callers look sheets up by
name after it.
"""

from __future__ import annotations

import copy
import logging
import os
import stat
import tempfile
from collections.abc import Iterable, Sequence
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from branchsync.domain.record import Scalar, records_from_rows

logger = logging.getLogger(__name__)

VISIBLE = "visible"
HIDDEN = "hidden"


class WorkbookStore:
    """
    Named worksheets of a workbook treated as tables.

    Usage:
        store = WorkbookStore.open("branches.xlsx")
        rows = store.read_records("Springfield")
        ...
        store.commit()
    """

    def __init__(self, workbook: Workbook, path: str | Path | None = None):
        """
        Args:
            workbook: Workbook to manage (its current state is the first checkpoint)
            path: File that commit() saves to; None keeps everything in memory
        """
        self._workbook = workbook
        self.path = Path(path) if path is not None else None
        self._checkpoint = self._serialize()

    @classmethod
    def open(cls, path: str | Path) -> WorkbookStore:
        """Load a workbook file for read-write use."""
        path = Path(path)
        logger.debug("Opening workbook %s", path)
        return cls(load_workbook(path), path)

    @property
    def workbook(self) -> Workbook:
        return self._workbook

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def table_names(self) -> list[str]:
        """Sheet titles in tab order."""
        return list(self._workbook.sheetnames)

    def has_table(self, name: str) -> bool:
        """Whether a sheet with this title exists (case-insensitive, like Excel)."""
        wanted = name.casefold()
        return any(title.casefold() == wanted for title in self._workbook.sheetnames)

    def table(self, name: str) -> Worksheet:
        """Return a sheet by title (case-insensitive); raises KeyError when absent."""
        return self._workbook[self._resolve(name)]

    def index_of(self, name: str) -> int:
        return self._workbook.sheetnames.index(self._resolve(name))

    def _resolve(self, name: str) -> str:
        if name in self._workbook.sheetnames:
            return name
        wanted = name.casefold()
        for title in self._workbook.sheetnames:
            if title.casefold() == wanted:
                return title
        raise KeyError(f"Worksheet {name} does not exist.")

    def visibility(self, name: str) -> str:
        return self.table(name).sheet_state

    # ------------------------------------------------------------------
    # Reading and writing rows
    # ------------------------------------------------------------------

    def read_records(self, name: str) -> list[dict[str, Scalar]] | None:
        """
        Read a sheet's rows as records keyed by its header row.

        Returns:
            List of records, or None if the sheet does not exist
        """
        if not self.has_table(name):
            return None
        ws = self.table(name)
        header_rows = list(ws.iter_rows(min_row=1, max_row=1, values_only=True))
        if not header_rows:
            return []
        data = ws.iter_rows(min_row=2, values_only=True)
        return records_from_rows(header_rows[0], data)

    def read_rows(self, name: str) -> list[tuple[Scalar, ...]]:
        """All rows below the header, as raw value tuples."""
        return list(self.table(name).iter_rows(min_row=2, values_only=True))

    def write_rows(self, name: str, rows: Iterable[Sequence[Scalar]], start_row: int = 2) -> int:
        """
        Write rows into a sheet starting at ``start_row``; returns the count.

        Text is always stored as text, so a value such as "=1+1" never
        becomes a formula.
        """
        ws = self.table(name)
        count = 0
        for row_idx, row in enumerate(rows, start=start_row):
            for col_idx, value in enumerate(row, start=1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                if isinstance(value, str):
                    cell.data_type = "s"
            count += 1
        return count

    # ------------------------------------------------------------------
    # Sheet operations
    # ------------------------------------------------------------------

    def rename(self, name: str, new_title: str) -> None:
        """Rename a sheet; refuses to collide with an existing title."""
        if self.has_table(new_title):
            raise ValueError(f"Sheet '{new_title}' already exists")
        self.table(name).title = new_title

    def set_visibility(self, name: str, state: str) -> None:
        ws = self.table(name)
        ws.sheet_state = state
        if state != VISIBLE:
            # Hidden sheets must be neither selected nor active.
            ws.sheet_view.tabSelected = False
            if self._workbook.active is ws:
                visible = [sheet for sheet in self._workbook.worksheets if sheet.sheet_state == VISIBLE]
                if visible:
                    self._workbook.active = visible[0]

    def copy_table(self, source: str, title: str) -> Worksheet:
        """
        Copy a sheet into a new visible sheet named ``title``.

        Besides what openpyxl's copy_worksheet carries (values, styles,
        dimensions, merged cells), this also copies data validations,
        conditional formatting, frozen panes and the autofilter range.
        """
        if self.has_table(title):
            raise ValueError(f"Sheet '{title}' already exists")
        src = self.table(source)
        ws = self._workbook.copy_worksheet(src)
        ws.title = title
        ws.sheet_state = VISIBLE

        for validation in src.data_validations.dataValidation:
            ws.add_data_validation(copy.deepcopy(validation))
        for formatting in src.conditional_formatting:
            for rule in formatting.rules:
                ws.conditional_formatting.add(str(formatting.sqref), copy.copy(rule))
        ws.freeze_panes = src.freeze_panes
        ws.auto_filter.ref = src.auto_filter.ref
        return ws

    def move_to(self, name: str, index: int) -> None:
        """Move a sheet to a tab position."""
        offset = index - self.index_of(name)
        if offset:
            self._workbook.move_sheet(self.table(name), offset=offset)

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Make all changes since the last commit durable."""
        payload = self._serialize()
        if self.path is not None:
            self._write_atomically(payload)
            logger.debug("Committed workbook to %s", self.path)
        self._checkpoint = payload

    def rollback(self) -> None:
        """Discard all changes since the last commit."""
        self._workbook = load_workbook(BytesIO(self._checkpoint))
        logger.debug("Rolled workbook back to last commit")

    def save_as(self, path: str | Path) -> Path:
        """Commit and rebind the store to a new file."""
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.commit()
        return self.path

    def _serialize(self) -> bytes:
        buffer = BytesIO()
        self._workbook.save(buffer)
        return buffer.getvalue()

    def _write_atomically(self, payload: bytes) -> None:
        assert self.path is not None
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.stem}-", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.chmod(tmp_name, _target_mode(self.path))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _target_mode(path: Path) -> int:
    """Permission bits for a rewritten file: the old file's, or the umask default."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask

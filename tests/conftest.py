"""
Shared test fixtures for branch sync tests.

Provides a two-branch config, a fixed clock and an in-memory workbook store
that already holds the template sheet.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

sys.path.insert(0, str(Path(__file__).parents[1] / "src"))

from branchsync.domain.config import SyncConfig  # noqa: E402
from branchsync.domain.record import DEFAULT_FIELDS  # noqa: E402
from branchsync.infrastructure.excel import WorkbookStore, build_template_sheet  # noqa: E402

FIXED_NOW = datetime(2026, 10, 17, 14, 30, 12)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_config(**overrides: Any) -> SyncConfig:
    """Springfield / WestPlains config with 'Removed' excluded."""
    data: dict[str, Any] = {
        "branches": [
            {"key": "Springfield", "tabName": "Springfield"},
            {"key": "WestPlains", "tabName": "West Plains"},
        ],
        "exclusions": ["Removed"],
    }
    data.update(overrides)
    return SyncConfig.model_validate(data)


def make_record(stock_id: Any, branch: Any = "Springfield", **values: Any) -> dict[str, Any]:
    """A full record with every default field; unspecified fields are blank."""
    record: dict[str, Any] = {name: "" for name in DEFAULT_FIELDS}
    record.update(
        StockId=stock_id,
        Description=f"Item {stock_id}",
        Type="Extinguisher",
        BranchKey=branch,
    )
    record.update(values)
    return record


def make_workbook(config: SyncConfig, with_template: bool = True) -> Workbook:
    wb = Workbook()
    default_sheet = wb.active
    if with_template:
        build_template_sheet(wb, config)
    else:
        wb.create_sheet("Cover")
    wb.remove(default_sheet)
    return wb


def seed_table(store: WorkbookStore, name: str, rows: list[dict[str, Any]], header=DEFAULT_FIELDS) -> None:
    """Create a visible sheet with a header and rows, then commit it."""
    ws = store.workbook.create_sheet(name)
    ws.append(list(header))
    for row in rows:
        ws.append([row.get(column) for column in header])
    store.commit()


def table_records(store: WorkbookStore, name: str) -> list[dict[str, Any]]:
    records = store.read_records(name)
    assert records is not None, f"Sheet '{name}' is missing"
    return records


@pytest.fixture
def config() -> SyncConfig:
    return make_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(config: SyncConfig) -> WorkbookStore:
    """In-memory store holding only the template sheet."""
    return WorkbookStore(make_workbook(config))

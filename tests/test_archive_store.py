"""
Tests for snapshotting, listing and restoring archived working tables.
"""

import pytest

from branchsync.domain.errors import (
    ArchiveNotFound,
    DuplicateArchiveName,
    MalformedArchiveName,
    SourceNotFound,
    UnknownBranch,
)
from branchsync.infrastructure.excel import HIDDEN, VISIBLE, ArchiveStore

from conftest import make_record, seed_table

ARCHIVE_ID = "Arc|Springfield|20261017-1430"


@pytest.fixture
def archives(store, config, clock):
    return ArchiveStore(store, config, clock=clock)


@pytest.fixture
def springfield(store):
    rows = [make_record("100", Due="Overdue", Notes="A"), make_record("101", Notes="B")]
    seed_table(store, "Springfield", rows)
    return rows


class TestSnapshot:
    """Test ArchiveStore.snapshot() / archive_table()."""

    def test_nothing_to_archive(self, archives, store):
        before = store.table_names()

        assert archives.snapshot("Springfield") is None
        assert store.table_names() == before

    def test_archive_table_requires_source(self, archives):
        with pytest.raises(SourceNotFound):
            archives.archive_table("Springfield")

    def test_renames_and_hides_working_table(self, archives, store, springfield):
        rows_before = store.read_rows("Springfield")

        archive_id = archives.snapshot("Springfield")

        assert archive_id == ARCHIVE_ID
        assert not store.has_table("Springfield")
        assert store.visibility(archive_id) == HIDDEN
        assert store.read_rows(archive_id) == rows_before

    def test_same_minute_gets_suffix(self, archives, store, springfield):
        first = archives.snapshot("Springfield")
        seed_table(store, "Springfield", [])

        second = archives.snapshot("Springfield")

        assert first == ARCHIVE_ID
        assert second == ARCHIVE_ID + ".2"

    def test_new_minute_no_suffix(self, archives, store, clock, springfield):
        archives.snapshot("Springfield")
        seed_table(store, "Springfield", [])
        clock.advance(minutes=1)

        assert archives.snapshot("Springfield") == "Arc|Springfield|20261017-1431"

    def test_all_suffixes_taken(self, archives, store, springfield):
        for sequence in ["", ".2", ".3", ".4", ".5", ".6", ".7", ".8", ".9"]:
            store.workbook.create_sheet(ARCHIVE_ID + sequence)

        with pytest.raises(DuplicateArchiveName):
            archives.snapshot("Springfield")
        assert store.has_table("Springfield")

    def test_unknown_branch(self, archives):
        with pytest.raises(UnknownBranch):
            archives.snapshot("Gotham")


class TestList:
    """Test ArchiveStore.list()."""

    def test_sorted_by_branch_then_time(self, archives, store, clock):
        seed_table(store, "West Plains", [])
        clock.advance(minutes=5)
        archives.snapshot("WestPlains")
        seed_table(store, "Springfield", [])
        archives.snapshot("Springfield")
        seed_table(store, "West Plains", [])
        clock.advance(hours=-1)
        archives.snapshot("WestPlains")

        entries = archives.list()

        assert [(e.branch_key, e.created_at.strftime("%H%M")) for e in entries] == [
            ("Springfield", "1435"),
            ("WestPlains", "1335"),
            ("WestPlains", "1435"),
        ]
        assert all(e.visibility_state == HIDDEN and e.is_valid for e in entries)

    def test_branch_filter(self, archives, store):
        seed_table(store, "Springfield", [])
        archives.snapshot("Springfield")
        seed_table(store, "West Plains", [])
        archives.snapshot("WestPlains")

        assert [e.branch_key for e in archives.list("WestPlains")] == ["WestPlains"]

    def test_malformed_names_listed_with_issue(self, archives, store, caplog):
        """Undecodable archive titles are reported, never raised."""
        store.workbook.create_sheet("Arc|broken")
        store.workbook.create_sheet("Notes")

        entries = archives.list()

        assert len(entries) == 1
        assert entries[0].id == "Arc|broken"
        assert entries[0].branch_key is None
        assert not entries[0].is_valid
        assert "Arc|broken" in caplog.text

    def test_empty(self, archives):
        assert archives.list() == []


class TestPromote:
    """Test ArchiveStore.promote()."""

    def test_promote_snapshot_restores_identical_rows(self, archives, store, springfield):
        rows_before = store.read_rows("Springfield")
        archive_id = archives.snapshot("Springfield")

        ws = archives.promote(archive_id)

        assert ws.title == "Springfield"
        assert store.visibility("Springfield") == VISIBLE
        assert store.read_rows("Springfield") == rows_before
        # The archive stays put.
        assert store.visibility(archive_id) == HIDDEN

    def test_current_table_is_backed_up(self, archives, store, clock, springfield):
        archive_id = archives.snapshot("Springfield")
        seed_table(store, "Springfield", [make_record("999")])
        clock.advance(minutes=2)

        archives.promote(archive_id)

        backup = "Arc|Springfield|20261017-1432"
        assert store.visibility(backup) == HIDDEN
        assert [r["StockId"] for r in store.read_records(backup)] == ["999"]
        assert [r["StockId"] for r in store.read_records("Springfield")] == ["100", "101"]

    def test_keeps_tab_position(self, archives, store, springfield):
        seed_table(store, "West Plains", [])
        position = store.index_of("Springfield")
        archive_id = archives.snapshot("Springfield")
        seed_table(store, "Springfield", [])
        store.move_to("Springfield", position)

        archives.promote(archive_id)

        assert store.index_of("Springfield") == position

    def test_unknown_branch_mutates_nothing(self, archives, store):
        ws = store.workbook.create_sheet("Arc|Gotham|20261017-1430")
        ws.sheet_state = HIDDEN
        store.commit()
        before = [(name, store.visibility(name)) for name in store.table_names()]

        with pytest.raises(UnknownBranch):
            archives.promote("Arc|Gotham|20261017-1430")

        assert [(name, store.visibility(name)) for name in store.table_names()] == before

    def test_missing_archive(self, archives, store):
        before = store.table_names()

        with pytest.raises(ArchiveNotFound):
            archives.promote("Arc|Springfield|20200101-0000")
        assert store.table_names() == before

    def test_malformed_id(self, archives):
        with pytest.raises(MalformedArchiveName):
            archives.promote("Springfield")

"""
CLI main entry point.

Commands:
    init      Provision a workbook with a styled template sheet
    sync      Reconcile an upload into every branch's working table
    archives  List archived working tables
    restore   Promote an archive back to its branch's working table
"""

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from openpyxl import Workbook
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from branchsync.application.branch_sync import BranchSyncOrchestrator, SyncReport
from branchsync.domain.config import SyncConfig
from branchsync.domain.state_machine import BranchState
from branchsync.infrastructure.config import load_config
from branchsync.infrastructure.excel import ArchiveStore, WorkbookStore, build_template_sheet
from branchsync.infrastructure.logging_config import setup_logging
from branchsync.infrastructure.upload_reader import read_upload

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    name="branchsync",
    help="🔄 Reconcile uploaded service records into per-branch working tables",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

WorkbookOption = typer.Option(..., "--workbook", "-w", help="Workbook holding the template, working tables and archives")
ConfigOption = typer.Option(
    Path("config"), "--config", "-c", help="Config file, or directory containing branchsync.json"
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write a debug log to this file."),
):
    """
    🔄 BranchSync - keep per-branch working tables in step with each upload.

    User annotations (Due, Notes) are carried over by StockId, excluded
    statuses are dropped, and every replaced table is kept as a hidden,
    restorable archive.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, log_file)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]❌ Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def _load(config_path: Path) -> SyncConfig:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Config load failed: %s", e)
        _fail(str(e))


def _open_store(workbook: Path) -> WorkbookStore:
    if not workbook.exists():
        _fail(f"Workbook not found: {workbook}")
    return WorkbookStore.open(workbook)


@app.command("init")
def init_command(
    workbook: Path = WorkbookOption,
    config: Path = ConfigOption,
):
    """
    Add a styled template sheet to a workbook (creating the workbook if needed).

    Archive sheet names embed the branch key, so keys are limited to 11
    characters with the default "Arc" prefix. Long display names go in tabName.
    """
    sync_config = _load(config)

    if workbook.exists():
        store = WorkbookStore.open(workbook)
        if store.has_table(sync_config.template_name):
            _fail(f"Workbook already has a '{sync_config.template_name}' sheet")
        build_template_sheet(store.workbook, sync_config)
    else:
        wb = Workbook()
        default_sheet = wb.active
        build_template_sheet(wb, sync_config)
        wb.remove(default_sheet)
        store = WorkbookStore(wb)

    path = store.save_as(workbook)
    console.print(f"[green]✅ Template '{escape(sync_config.template_name)}' ready in {escape(str(path))}[/green]")


@app.command("sync")
def sync_command(
    upload: Path = typer.Argument(..., help="CSV or XLSX file with the new records"),
    workbook: Path = WorkbookOption,
    config: Path = ConfigOption,
    sheet: Optional[str] = typer.Option(None, "--sheet", help="Sheet to read from an XLSX upload"),
):
    """
    Rebuild every branch's working table from an upload.

    Branches are processed one at a time; a failing branch keeps its previous
    table and the others still run.
    """
    sync_config = _load(config)
    store = _open_store(workbook)

    try:
        records = read_upload(upload, sheet)
        report = BranchSyncOrchestrator(sync_config, store).run(records)
    except Exception as e:
        logger.error("Sync failed: %s", e)
        _fail(str(e))

    _print_report(report)
    if not report.ok:
        raise typer.Exit(1)


@app.command("archives")
def archives_command(
    workbook: Path = WorkbookOption,
    config: Path = ConfigOption,
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Only list archives of this branch"),
):
    """
    List archived working tables, oldest first per branch.
    """
    sync_config = _load(config)
    store = _open_store(workbook)
    entries = ArchiveStore(store, sync_config).list(branch)

    if not entries:
        console.print("[dim]No archives found[/dim]")
        return

    table = Table(title="Archives")
    table.add_column("Archive", no_wrap=True)
    table.add_column("Branch")
    table.add_column("Created")
    table.add_column("Visibility")
    table.add_column("Issue", style="yellow")
    for entry in entries:
        table.add_row(
            escape(entry.id),
            escape(entry.branch_key or "?"),
            entry.created_at.strftime("%Y-%m-%d %H:%M") if entry.created_at else "?",
            entry.visibility_state,
            escape(entry.issue or ""),
        )
    console.print(table)


@app.command("restore")
def restore_command(
    archive_id: str = typer.Argument(..., help="Archive sheet name (see 'archives')"),
    workbook: Path = WorkbookOption,
    config: Path = ConfigOption,
):
    """
    Make an archive the working table of its branch again.

    The current working table is archived first, so nothing is lost.
    """
    sync_config = _load(config)
    store = _open_store(workbook)

    try:
        restored = BranchSyncOrchestrator(sync_config, store).restore(archive_id)
    except Exception as e:
        logger.error("Restore failed: %s", e)
        _fail(str(e))

    console.print(f"[green]✅ Restored '{escape(restored)}' from '{escape(archive_id)}'[/green]")


def _print_report(report: SyncReport) -> None:
    table = Table(title="Branch sync")
    table.add_column("Branch")
    table.add_column("State")
    table.add_column("Rows", justify="right")
    table.add_column("Carried", justify="right")
    table.add_column("Excluded", justify="right")
    table.add_column("Archive", overflow="fold")

    for outcome in report.outcomes:
        state = (
            f"[green]{outcome.state.value}[/green]"
            if outcome.state is BranchState.DONE
            else f"[red]{outcome.state.value} @ {outcome.failed_step.value if outcome.failed_step else '?'}[/red]"
        )
        table.add_row(
            escape(outcome.branch_key),
            state,
            str(outcome.rows_written),
            str(outcome.carried_over),
            str(outcome.excluded),
            escape(outcome.archive_id or "-"),
        )
    console.print(table)

    for outcome in report.failed:
        console.print(f"[red]❌ {escape(outcome.error or '')}[/red]")
    if report.dropped:
        keys = ", ".join(key or "<blank>" for key in report.unknown_branch_keys)
        console.print(
            f"[yellow]⚠️  {len(report.dropped)} record(s) skipped for unconfigured branches: {escape(keys)}[/yellow]"
        )


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()

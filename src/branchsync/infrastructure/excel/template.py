"""
Template sheet handling.

TemplateCloner is the template cloning service: it produces a new, visible,
empty working table whose formatting and validation rules come from the
designated template sheet. build_template_sheet provisions such a template
for a fresh workbook.
"""

from __future__ import annotations

import logging

from openpyxl import Workbook
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

from branchsync.domain.config import SyncConfig
from branchsync.domain.errors import TemplateNotFound
from branchsync.infrastructure.excel.workbook_store import WorkbookStore
from branchsync.infrastructure.excel_styles import (
    add_autofilter,
    apply_header_row,
    column_defs,
    freeze_panes,
)

logger = logging.getLogger(__name__)

# Rows covered by validations on a provisioned template.
TEMPLATE_ROWS = 2000


class TemplateCloner:
    """Clone the template sheet into new working tables."""

    def __init__(self, store: WorkbookStore, template_name: str, header: tuple[str, ...]):
        self.store = store
        self.template_name = template_name
        self.header = header

    def ensure_template(self) -> None:
        """Raise TemplateNotFound unless the template sheet exists."""
        if not self.store.has_table(self.template_name):
            raise TemplateNotFound(self.template_name)

    def clone(self, title: str) -> Worksheet:
        """
        Create sheet ``title`` from the template.

        The copy keeps the template's styles, widths, validations and
        conditional formatting. Everything below the header is cleared and the
        header is rewritten in the configured column order.

        Raises:
            TemplateNotFound: If the template sheet is missing
            ValueError: If a sheet named ``title`` already exists
        """
        self.ensure_template()
        ws = self.store.copy_table(self.template_name, title)
        if ws.max_row > 1:
            ws.delete_rows(2, ws.max_row - 1)
        for col_idx, name in enumerate(self.header, start=1):
            ws.cell(row=1, column=col_idx, value=name)
        for col_idx in range(len(self.header) + 1, ws.max_column + 1):
            ws.cell(row=1, column=col_idx, value=None)
        logger.debug("Cloned template '%s' into '%s'", self.template_name, title)
        return ws


def build_template_sheet(workbook: Workbook, config: SyncConfig) -> Worksheet:
    """
    Add a styled template sheet to a workbook.

    Annotation columns get a distinct header color and, when status choices
    are configured, the status column gets a dropdown.
    """
    if config.template_name in workbook.sheetnames:
        raise ValueError(f"Sheet '{config.template_name}' already exists")

    ws = workbook.create_sheet(config.template_name)
    columns = column_defs(config.columns, manual=config.carryover_fields)
    apply_header_row(ws, columns)
    freeze_panes(ws)
    add_autofilter(ws, columns)

    if config.status_choices:
        status_col = ws.cell(row=1, column=config.columns.index(config.status_field) + 1).column_letter
        choices = ",".join(config.status_choices)
        validation = DataValidation(type="list", formula1=f'"{choices}"', allow_blank=True)
        validation.add(f"{status_col}2:{status_col}{TEMPLATE_ROWS}")
        ws.add_data_validation(validation)

    logger.info("Created template sheet '%s' with %d columns", ws.title, len(columns))
    return ws

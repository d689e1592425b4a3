"""
Tests for provisioning and cloning the template sheet.
"""

import pytest
from openpyxl import Workbook
from openpyxl.worksheet.datavalidation import DataValidation

from branchsync.domain.errors import TemplateNotFound
from branchsync.domain.record import DEFAULT_FIELDS
from branchsync.infrastructure.excel import VISIBLE, TemplateCloner, WorkbookStore, build_template_sheet
from branchsync.infrastructure.excel_styles import Fills

from conftest import make_config, make_workbook


class TestBuildTemplateSheet:
    """Test build_template_sheet()."""

    def test_header_and_layout(self, config):
        wb = Workbook()

        ws = build_template_sheet(wb, config)

        assert ws.title == "Template"
        assert [c.value for c in ws[1]] == list(DEFAULT_FIELDS)
        assert ws.freeze_panes == "A2"
        assert ws.auto_filter.ref == "A1:J1"

    def test_annotation_columns_are_highlighted(self, config):
        ws = build_template_sheet(Workbook(), config)

        due = ws.cell(row=1, column=DEFAULT_FIELDS.index("Due") + 1)
        serial = ws.cell(row=1, column=DEFAULT_FIELDS.index("Serial") + 1)
        assert due.fill.start_color.rgb.endswith(Fills.MANUAL_HEADER.start_color.rgb[-6:])
        assert serial.fill.start_color.rgb.endswith(Fills.HEADER.start_color.rgb[-6:])

    def test_status_dropdown(self):
        config = make_config(status_choices=["Overdue", "Done", "Removed"])

        ws = build_template_sheet(Workbook(), config)

        validations = ws.data_validations.dataValidation
        assert len(validations) == 1
        assert validations[0].formula1 == '"Overdue,Done,Removed"'
        assert "H2:H2000" in str(validations[0].sqref)

    def test_no_dropdown_without_choices(self, config):
        ws = build_template_sheet(Workbook(), config)
        assert ws.data_validations.dataValidation == []

    def test_refuses_existing_sheet(self, config):
        wb = Workbook()
        build_template_sheet(wb, config)

        with pytest.raises(ValueError):
            build_template_sheet(wb, config)


class TestTemplateCloner:
    """Test TemplateCloner."""

    def test_missing_template(self, config):
        store = WorkbookStore(make_workbook(config, with_template=False))
        cloner = TemplateCloner(store, "Template", config.columns)

        with pytest.raises(TemplateNotFound):
            cloner.ensure_template()
        with pytest.raises(TemplateNotFound):
            cloner.clone("Springfield")

    def test_clone_copies_formatting_and_clears_rows(self, config):
        wb = make_workbook(config)
        template = wb["Template"]
        template.append(["stray", "row"])
        template["K1"] = "Scratch"
        validation = DataValidation(type="list", formula1='"Yes,No"')
        validation.add("H2:H50")
        template.add_data_validation(validation)
        store = WorkbookStore(wb)

        ws = TemplateCloner(store, "Template", config.columns).clone("Springfield")

        assert ws.title == "Springfield"
        assert ws.sheet_state == VISIBLE
        assert [c.value for c in ws[1]][: len(DEFAULT_FIELDS)] == list(DEFAULT_FIELDS)
        assert ws["K1"].value is None
        assert ws.max_row == 1
        assert ws.freeze_panes == "A2"
        assert ws.auto_filter.ref == "A1:J1"
        assert len(ws.data_validations.dataValidation) == 1
        assert ws.column_dimensions["B"].width == template.column_dimensions["B"].width
        assert ws["A1"].fill.start_color.rgb == template["A1"].fill.start_color.rgb
        # The template itself is untouched.
        assert template["A2"].value == "stray"

    def test_header_follows_configured_columns(self):
        config = make_config(
            columns=["StockId", "BranchKey", "Due", "Notes"],
        )
        store = WorkbookStore(make_workbook(make_config()))

        ws = TemplateCloner(store, "Template", config.columns).clone("Springfield")

        assert [c.value for c in ws[1]] == ["StockId", "BranchKey", "Due", "Notes"] + [None] * 6

    def test_clone_refuses_existing_title(self, store, config):
        cloner = TemplateCloner(store, "Template", config.columns)
        cloner.clone("Springfield")

        with pytest.raises(ValueError):
            cloner.clone("springfield")

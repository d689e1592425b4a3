"""
Workbook-backed tables: store, template cloning and archives.
"""

from .archive_store import ArchiveEntry, ArchiveStore
from .template import TemplateCloner, build_template_sheet
from .workbook_store import HIDDEN, VISIBLE, WorkbookStore

__all__ = [
    "ArchiveEntry",
    "ArchiveStore",
    "HIDDEN",
    "TemplateCloner",
    "VISIBLE",
    "WorkbookStore",
    "build_template_sheet",
]

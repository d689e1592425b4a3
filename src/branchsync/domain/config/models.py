"""
Configuration domain models.

SyncConfig is an immutable value handed to the orchestrator at construction.
It fixes the branch set, the record layout, the exclusion set and the names
of the template and archive sheets.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from branchsync.domain.archive_name import (
    INVALID_TITLE_CHARS,
    MAX_SHEET_TITLE,
    SEPARATOR,
    is_archive_title,
    max_branch_key_length,
)
from branchsync.domain.errors import UnknownBranch
from branchsync.domain.record import DEFAULT_FIELDS, RecordLayout

# Excel caps an inline list validation formula at 255 characters.
MAX_LIST_VALIDATION = 255


def _check_title_chars(value: str, what: str) -> str:
    bad = sorted(set(value) & INVALID_TITLE_CHARS)
    if bad:
        raise ValueError(f"{what} '{value}' contains characters not allowed in sheet names: {' '.join(bad)}")
    return value


class Branch(BaseModel):
    """A branch and the name of its working table."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    key: str = Field(..., description="Value of the branch column that selects this branch")
    tab_name: str = Field(..., description="Working table (sheet) name", alias="tabName")

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Branch keys are trimmed, non-empty and free of the archive separator."""
        v = v.strip()
        if not v:
            raise ValueError("Branch key cannot be empty")
        if SEPARATOR in v:
            raise ValueError(f"Branch key '{v}' cannot contain '{SEPARATOR}'")
        return _check_title_chars(v, "Branch key")

    @field_validator("tab_name")
    @classmethod
    def validate_tab_name(cls, v: str) -> str:
        """Tab names must be valid Excel sheet titles."""
        v = v.strip()
        if not v:
            raise ValueError("Tab name cannot be empty")
        if len(v) > MAX_SHEET_TITLE:
            raise ValueError(f"Tab name '{v}' is longer than {MAX_SHEET_TITLE} characters")
        return _check_title_chars(v, "Tab name")


class SyncConfig(BaseModel):
    """
    Domain model for a branch sync setup.

    Contains the branch set, record layout and archive settings for one
    workbook.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    branches: Tuple[Branch, ...] = Field(..., description="Configured branches, in processing order")
    columns: Tuple[str, ...] = Field(DEFAULT_FIELDS, description="Working table column order")
    id_field: str = Field("StockId", description="Stable record identifier column")
    branch_field: str = Field("BranchKey", description="Branch classification column")
    carryover_fields: Tuple[str, ...] = Field(("Due", "Notes"), description="Annotation columns kept across uploads")
    status_field: str = Field("Due", description="Column compared against the exclusion set")
    exclusions: Tuple[str, ...] = Field((), description="Status values that drop a record from output")
    template_name: str = Field("Template", description="Sheet cloned to build working tables")
    archive_prefix: str = Field("Arc", description="Prefix of archive sheet titles")
    status_choices: Tuple[str, ...] = Field((), description="Dropdown values for the status column of a new template")

    @field_validator("branches")
    @classmethod
    def validate_branches(cls, v: Tuple[Branch, ...]) -> Tuple[Branch, ...]:
        """At least one branch, with keys and tab names unique ignoring case."""
        if not v:
            raise ValueError("At least one branch must be configured")
        keys = [branch.key.casefold() for branch in v]
        tabs = [branch.tab_name.casefold() for branch in v]
        if len(set(keys)) != len(keys):
            raise ValueError("Branch keys must be unique")
        if len(set(tabs)) != len(tabs):
            raise ValueError("Branch tab names must be unique")
        return v

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Field names are trimmed, non-empty and unique."""
        v = tuple(name.strip() for name in v)
        if not v or any(not name for name in v):
            raise ValueError("Field names cannot be empty")
        if len(set(v)) != len(v):
            raise ValueError("Field names must be unique")
        return v

    @field_validator("exclusions")
    @classmethod
    def strip_exclusions(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Exclusions are compared against trimmed status values."""
        return tuple(value.strip() for value in v)

    @field_validator("status_choices")
    @classmethod
    def validate_status_choices(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Choices must fit an Excel list validation: no commas or quotes, 255 characters in all."""
        v = tuple(value.strip() for value in v)
        for value in v:
            if not value:
                raise ValueError("Status choices cannot be empty")
            if "," in value or '"' in value:
                raise ValueError(f"Status choice '{value}' cannot contain ',' or '\"'")
        if len(",".join(v)) > MAX_LIST_VALIDATION:
            raise ValueError(
                f"Status choices are longer than {MAX_LIST_VALIDATION} characters when joined"
            )
        return v

    @field_validator("archive_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v or SEPARATOR in v:
            raise ValueError(f"Archive prefix must be non-empty and cannot contain '{SEPARATOR}'")
        return _check_title_chars(v, "Archive prefix")

    @model_validator(mode="after")
    def validate_layout(self) -> "SyncConfig":
        """Cross-field checks: roles exist in columns, names do not collide."""
        for role, name in (("id_field", self.id_field), ("branch_field", self.branch_field),
                           ("status_field", self.status_field)):
            if name not in self.columns:
                raise ValueError(f"{role} '{name}' is not one of the configured fields")
        for name in self.carryover_fields:
            if name not in self.columns:
                raise ValueError(f"Carryover field '{name}' is not one of the configured fields")
        if self.id_field in self.carryover_fields:
            raise ValueError("The identifier field cannot be a carryover field")

        limit = max_branch_key_length(self.archive_prefix)
        for branch in self.branches:
            if len(branch.key) > limit:
                raise ValueError(
                    f"Branch key '{branch.key}' is longer than {limit} characters. "
                    f"Archive sheet names embed the key and are limited to {MAX_SHEET_TITLE}; "
                    f"use a short key and put the full name in tabName"
                )
            if branch.tab_name.casefold() == self.template_name.casefold():
                raise ValueError(f"Branch '{branch.key}' cannot use the template sheet '{self.template_name}'")
            if is_archive_title(branch.tab_name, self.archive_prefix):
                raise ValueError(f"Tab name '{branch.tab_name}' collides with archive names")
        return self

    @property
    def layout(self) -> RecordLayout:
        return RecordLayout(
            fields=self.columns,
            id_field=self.id_field,
            branch_field=self.branch_field,
            carryover_fields=self.carryover_fields,
            status_field=self.status_field,
        )

    @property
    def branch_keys(self) -> Tuple[str, ...]:
        return tuple(branch.key for branch in self.branches)

    def branch_for(self, key: str) -> Branch:
        """
        Look up a branch by key.

        Raises:
            UnknownBranch: If no branch has this key
        """
        for branch in self.branches:
            if branch.key == key:
                return branch
        raise UnknownBranch(key)

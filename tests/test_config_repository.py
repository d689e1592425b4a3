"""
Tests for loading config files.
"""

import json

import pytest

from branchsync.domain.config import SyncConfig
from branchsync.infrastructure.config import ConfigRepository, load_config

CONFIG_DATA = {
    "branches": [
        {"key": "Springfield", "tabName": "Springfield"},
        {"key": "WestPlains", "tabName": "West Plains"},
    ],
    "exclusions": ["Removed"],
}


class TestConfigRepository:
    """Test cases for ConfigRepository."""

    def test_load_json_file(self, tmp_path):
        (tmp_path / "test.json").write_text(json.dumps({"key": "value"}))

        assert ConfigRepository(tmp_path).load_json_file("test") == {"key": "value"}

    def test_load_jsonc_with_comments(self, tmp_path):
        content = '{\n  // branches come from the regional office\n  "url": "http://example.com"\n}\n'
        (tmp_path / "test.jsonc").write_text(content)

        assert ConfigRepository(tmp_path).load_json_file("test") == {"url": "http://example.com"}

    def test_jsonc_disabled(self, tmp_path):
        (tmp_path / "test.jsonc").write_text("{}")

        with pytest.raises(FileNotFoundError):
            ConfigRepository(tmp_path).load_json_file("test", allow_jsonc=False)

    def test_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigRepository(tmp_path).load_json_file("nonexistent")

    def test_invalid_json(self, tmp_path):
        (tmp_path / "bad.json").write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            ConfigRepository(tmp_path).load_json_file("bad")

    def test_top_level_must_be_object(self, tmp_path):
        (tmp_path / "list.json").write_text("[1, 2]")

        with pytest.raises(ValueError):
            ConfigRepository(tmp_path).load_json_file("list")

    def test_load_sync_config(self, tmp_path):
        (tmp_path / "branchsync.json").write_text(json.dumps(CONFIG_DATA))

        config = ConfigRepository(tmp_path).load_sync_config()

        assert isinstance(config, SyncConfig)
        assert config.branch_for("WestPlains").tab_name == "West Plains"

    def test_invalid_sync_config(self, tmp_path):
        (tmp_path / "branchsync.json").write_text(json.dumps({"branches": []}))

        with pytest.raises(ValueError, match="Invalid sync configuration"):
            ConfigRepository(tmp_path).load_sync_config()


class TestLoadConfig:
    """Test load_config()."""

    def test_directory(self, tmp_path):
        (tmp_path / "branchsync.json").write_text(json.dumps(CONFIG_DATA))

        assert load_config(tmp_path).branch_keys == ("Springfield", "WestPlains")

    def test_named_file(self, tmp_path):
        (tmp_path / "north.jsonc").write_text("// north region\n" + json.dumps(CONFIG_DATA))

        assert load_config(tmp_path / "north.jsonc").exclusions == ("Removed",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

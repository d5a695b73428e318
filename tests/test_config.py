"""Tests for the configuration system."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from prthreads.config import Config, DisplayConfig, LoggingConfig, _collect_unknown_keys, load_config
from prthreads.models import ViewMode


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.editor.command is None
        assert config.display.wrap_width == 80
        assert config.display.show_diff is True
        assert config.display.initial_view is ViewMode.UNRESOLVED
        assert config.logging.level == "WARNING"

    def test_default_paths_use_state_dir(self, tmp_path: Path):
        config = Config()
        assert config.state.resolved_skip_file == tmp_path / "state" / "prthreads" / "skipped.json"
        assert config.logging.resolved_file == tmp_path / "state" / "prthreads" / "prthreads.log"

    def test_explicit_paths_expand_user(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = Config.model_validate({"state": {"skip_file": "~/skips.json"}, "logging": {"file": "~/pr.log"}})
        assert config.state.resolved_skip_file == tmp_path / "skips.json"
        assert config.logging.resolved_file == tmp_path / "pr.log"

    def test_wrap_width_minimum(self):
        with pytest.raises(ValueError, match="greater than or equal to 20"):
            DisplayConfig(wrap_width=5)

    def test_log_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_log_level_rejected(self):
        with pytest.raises(ValueError, match="level must be one of"):
            LoggingConfig(level="chatty")


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        config, path = load_config(cwd=tmp_path)
        assert path is None
        assert config == Config()

    def test_load_valid_toml(self, tmp_path: Path):
        # Create a git root so the walk-up stops
        (tmp_path / ".git").mkdir()
        config_file = tmp_path / ".prthreads.toml"
        config_file.write_text(
            """\
[editor]
command = "nvim -f"

[display]
wrap_width = 100
show_diff = false
initial_view = "unskipped"

[logging]
level = "info"
""",
            encoding="utf-8",
        )
        config, path = load_config(cwd=tmp_path)
        assert path == config_file
        assert config.editor.command == "nvim -f"
        assert config.display.wrap_width == 100
        assert config.display.show_diff is False
        assert config.display.initial_view is ViewMode.UNSKIPPED
        assert config.logging.level == "INFO"

    def test_load_walks_up_to_git_root(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".prthreads.toml").write_text("[display]\nshow_diff = false\n", encoding="utf-8")
        subdir = tmp_path / "src" / "deep"
        subdir.mkdir(parents=True)
        config, _ = load_config(cwd=subdir)
        assert config.display.show_diff is False

    def test_stops_at_git_root(self, tmp_path: Path):
        # Config above git root should not be found
        (tmp_path / ".prthreads.toml").write_text("[display]\nshow_diff = false\n", encoding="utf-8")
        project = tmp_path / "project"
        project.mkdir()
        (project / ".git").mkdir()
        config, path = load_config(cwd=project)
        assert path is None
        assert config.display.show_diff is True

    def test_invalid_toml_raises(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".prthreads.toml").write_text("{{invalid toml", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config(cwd=tmp_path)

    def test_invalid_config_values_raises(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".prthreads.toml").write_text('[display]\ninitial_view = "everything"\n', encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config(cwd=tmp_path)

    def test_empty_config_file_returns_defaults(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".prthreads.toml").write_text("", encoding="utf-8")
        config, _ = load_config(cwd=tmp_path)
        assert config == Config()


class TestCollectUnknownKeys:
    def test_top_level_unknown(self):
        data = {"display": {}, "bogus_key": True}
        assert _collect_unknown_keys(data, Config) == ["bogus_key"]

    def test_nested_unknown(self):
        data = {"display": {"wrap_width": 90, "wrap": 90}}
        assert _collect_unknown_keys(data, Config) == ["display.wrap"]

    def test_no_unknowns(self):
        data = {"editor": {"command": "vim"}, "state": {"skip_file": "/tmp/x.json"}}  # noqa: S108
        assert _collect_unknown_keys(data, Config) == []


class TestLoadConfigWarnings:
    def test_warns_on_unknown_keys(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".prthreads.toml").write_text("[display]\ntheme = \"dark\"\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="prthreads.config"):
            config, _ = load_config(cwd=tmp_path)
        assert any("display.theme" in r.message for r in caplog.records)
        assert config.display == DisplayConfig()

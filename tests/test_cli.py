"""Tests for CLI module.

Tests the command-line tools for inspecting feature defaults, config
sources and composed table options.
"""

import contextlib
import json
import sys

from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest

from gridkit import config
from gridkit.cli import feature_defaults, format_defaults, main
from gridkit.composer import FEATURE_ORDER


class TestMainEntryPoint:
    """Tests for CLI main entry point."""

    def test_no_args_prints_help_text(self):
        """Running with no args prints help text listing the commands."""
        with (
            patch.object(sys, "argv", ["gridkit"]),
            patch("sys.stdout", new_callable=StringIO) as mock_stdout,
        ):
            result = main()

        output = mock_stdout.getvalue()
        assert result == 0
        assert "usage:" in output.lower()
        for command in ("defaults", "sources", "compose"):
            assert command in output

    def test_help_flag_shows_usage(self):
        """--help flag shows usage information."""
        with (
            patch("sys.stdout", new_callable=StringIO) as mock_stdout,
            contextlib.suppress(SystemExit),
        ):
            main(["--help"])

        assert "gridkit" in mock_stdout.getvalue()

    def test_unknown_feature_rejected(self):
        """Feature names are validated by the parser."""
        with (
            patch("sys.stderr", new_callable=StringIO) as mock_stderr,
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["compose", "--features", "sorting,grouping"])

        assert exc_info.value.code == 2
        assert "unknown feature 'grouping'" in mock_stderr.getvalue()


class TestDefaults:
    """Tests for the defaults command."""

    def test_all_features_listed(self, capsys):
        """Text output lists every feature with its resolved options."""
        assert main(["defaults"]) == 0
        output = capsys.readouterr().out
        for name in FEATURE_ORDER:
            assert f"\n{name}\n" in f"\n{output}\n"
        assert "page_size" in output

    def test_json_for_selected_features(self, capsys):
        """JSON output is limited to the named features."""
        assert main(["defaults", "pagination", "undo-redo", "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert list(data) == ["pagination", "undo_redo"]
        assert data["pagination"]["page_size"] == 20
        assert data["undo_redo"]["max_steps"] == 20

    def test_settings_layers_applied(self, monkeypatch):
        """Defaults reflect environment settings."""
        monkeypatch.setenv("GRIDKIT_PAGINATION__PAGE_SIZE", "75")
        config.clear_settings()
        assert feature_defaults(["pagination"])["pagination"]["page_size"] == 75

    def test_toml_written_to_file(self, tmp_path, capsys):
        """TOML export writes every settings section to the output file."""
        target = tmp_path / "gridkit.toml"
        assert main(["defaults", "--format", "toml", "-o", str(target)]) == 0
        assert "Written to" in capsys.readouterr().out
        content = target.read_text(encoding="utf-8")
        assert "[pagination]" in content
        assert "[log]" in content

    def test_env_export(self, capsys):
        """env export uses the GRIDKIT_SECTION__FIELD scheme."""
        assert main(["defaults", "--format", "env"]) == 0
        assert 'export GRIDKIT_UNDO_REDO__MAX_STEPS="20"' in capsys.readouterr().out

    def test_format_defaults(self):
        """format_defaults renders one block per feature."""
        text = format_defaults({"sorting": {"multi_sort": False}})
        assert text.splitlines()[0] == "sorting"
        assert "multi_sort" in text.splitlines()[1]


class TestSources:
    """Tests for the sources command."""

    def test_lists_candidates(self, capsys):
        """Every candidate file is listed with its status."""
        Path("gridkit.toml").write_text("[sorting]\nmulti_sort = true\n", encoding="utf-8")
        assert main(["sources"]) == 0
        lines = capsys.readouterr().out.splitlines()
        gridkit_line = next(line for line in lines if line.strip().startswith("gridkit.toml"))
        assert "found" in gridkit_line
        pyproject_line = next(line for line in lines if "pyproject.toml" in line)
        assert "missing" in pyproject_line

    def test_user_path_matches_loader(self, monkeypatch, tmp_path, capsys):
        """The reported user config path is the one the loader reads."""
        monkeypatch.setattr(config.sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", str(tmp_path))
        user_file = tmp_path / "gridkit" / "config.toml"
        user_file.parent.mkdir()
        user_file.write_text("[pagination]\npage_size = 30\n", encoding="utf-8")

        assert config.user_config_path() == user_file
        assert user_file in config._find_config_files()  # pylint: disable=protected-access
        main(["sources"])
        user_line = next(line for line in capsys.readouterr().out.splitlines() if "user config" in line)
        assert "found" in user_line
        assert str(user_file) in user_line

    def test_env_vars_counted(self, monkeypatch, capsys):
        """GRIDKIT_ environment variables are counted and named."""
        monkeypatch.setenv("GRIDKIT_LOG__LEVEL", "DEBUG")
        main(["sources"])
        assert "GRIDKIT_LOG__LEVEL" in capsys.readouterr().out


class TestCompose:
    """Tests for the compose command."""

    @pytest.fixture
    def rows_file(self, tmp_path, rows):
        path = tmp_path / "rows.json"
        path.write_text(json.dumps(rows), encoding="utf-8")
        return path

    def test_grid_options(self, rows_file, capsys):
        """Grid options carry rows, columns and feature fragments."""
        assert main(["compose", "--features", "sorting,pagination", "--rows", str(rows_file)]) == 0
        grid = json.loads(capsys.readouterr().out)["gridOptions"]
        assert len(grid["rowData"]) == 3
        assert [col["field"] for col in grid["columnDefs"]] == ["id", "name", "hours", "details"]
        assert grid["pagination"] is True
        assert "sortingOrder" in grid

    def test_columns_and_toolbar(self, rows_file, capsys):
        """--columns picks columns; --toolbar adds the toolbar items."""
        args = ["compose", "--features", "filtering", "--rows", str(rows_file), "--columns", "name", "--toolbar"]
        assert main(args) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["gridOptions"]["columnDefs"] == [{"field": "name"}]
        assert "table:quick-filter" in [item["event"] for item in result["toolbar"]]

    def test_no_features(self, capsys):
        """With no features only the base options are printed."""
        assert main(["compose"]) == 0
        grid = json.loads(capsys.readouterr().out)["gridOptions"]
        assert grid["rowData"] == []
        assert grid["columnDefs"] == []

    def test_bad_rows_file(self, tmp_path, capsys):
        """A rows file that is not a JSON list is an error."""
        path = tmp_path / "rows.json"
        path.write_text('{"id": "r1"}', encoding="utf-8")
        assert main(["compose", "--rows", str(path)]) == 1
        assert "must hold a JSON list" in capsys.readouterr().err

    def test_missing_rows_file(self, tmp_path, capsys):
        """An unreadable rows file is an error."""
        assert main(["compose", "--rows", str(tmp_path / "nope.json")]) == 1
        assert "cannot read rows" in capsys.readouterr().err

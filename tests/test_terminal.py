"""Tests for user-facing terminal output."""

from __future__ import annotations

import pytest

from ipctl import terminal
from ipctl.terminal import build_table, rows_from, to_yaml


class TestConsole:
    """Shared rich consoles."""

    def test_consoles_are_shared(self):
        assert terminal.console is terminal.terminal.console
        assert terminal.err_console.stderr is True
        assert terminal.console.stderr is False

    def test_error_line_goes_to_stderr(self, capsys):
        terminal.error(ValueError("login rejected"), no_color=True)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "Error: login rejected"

    def test_error_line_is_redacted(self, capsys):
        terminal.error(ValueError("bad password=hunter22"), no_color=True)
        err = capsys.readouterr().err
        assert "hunter22" not in err
        assert "password=<REDACTED>" in err

    def test_table_follows_captured_stdout(self, capsys):
        terminal.display_table(["name", "state"], [{"name": "alpha", "state": "RUNNING"}], no_color=True)
        out = capsys.readouterr().out
        assert "NAME" in out and "STATE" in out
        assert "alpha" in out and "RUNNING" in out


class TestRendering:
    """Tables, YAML and row normalisation."""

    def test_long_cells_are_truncated(self):
        table = build_table(["name"], [{"name": "x" * 80}])
        cell = table.columns[0]._cells[0]
        assert len(cell) == terminal.terminal.MAX_COLUMN_WIDTH
        assert cell.endswith("…")

    def test_list_cells_are_joined(self):
        table = build_table(["groups"], [{"groups": ["admins", "ops"]}])
        assert table.columns[0]._cells[0] == "admins, ops"

    def test_yaml_keeps_key_order(self):
        assert to_yaml({"b": 1, "a": 2}) == "b: 1\na: 2\n"

    @pytest.mark.parametrize("obj, rows", [(None, []), ({"a": 1}, [{"a": 1}]), ([1, 2], [1, 2])])
    def test_rows_from(self, obj, rows):
        assert rows_from(obj) == rows

"""Unit tests for pure_compiled_cli.output."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from rich.console import Console

from pure_compiled_cli import output


@pytest.fixture(autouse=True)
def plain_console(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(output, "console", Console(width=120, no_color=True))


class TestCreateConsole:
    """Tests for create_console."""

    def test_no_color(self) -> None:
        """no_color=True disables colors."""
        assert output.create_console(no_color=True).no_color is True

    def test_respects_env_var(self) -> None:
        """NO_COLOR set at import time disables colors."""
        with patch.object(output, "_force_no_color", True):
            assert output.create_console().no_color is True


class TestMessages:
    """Tests for the message helpers."""

    def test_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.success("Wrote 4 compiled modules")
        assert "✓ Wrote 4 compiled modules" in capsys.readouterr().out

    def test_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.error('Unknown repositories: "nope"')
        assert '✗ Unknown repositories: "nope"' in capsys.readouterr().out

    def test_warning(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.warning("Cache file is stale")
        assert "⚠ Cache file is stale" in capsys.readouterr().out

    def test_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.info("Repositories: repo-a")
        assert capsys.readouterr().out.strip() == "Repositories: repo-a"


class TestPrintTable:
    def test_rows_and_title(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Title, headers and every cell are printed."""
        output.print_table("Repositories", ["Name", "Root"], [["platform", "/p"], ["repo-a", "/a"]])

        out = capsys.readouterr().out
        for text in ("Repositories", "Name", "Root", "platform", "repo-a", "/a"):
            assert text in out


class TestSetNoColor:
    def test_replaces_console(self) -> None:
        """The module-level console is swapped for an uncolored one."""
        before = output.console
        output.set_no_color(True)
        assert output.console is not before
        assert output.console.no_color is True

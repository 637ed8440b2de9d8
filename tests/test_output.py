"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response and print_table in each format
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from pluggable import output as output_module
from pluggable.output import OutputFormat, OutputManager


@pytest.fixture
def no_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pluggable.output._is_tty", lambda: False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


@pytest.fixture
def tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pluggable.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


class TestFormatResolution:
    def test_auto_plain_when_piped(self, no_tty) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_rich_on_tty(self, tty) -> None:
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_plain_on_tty_without_color(self, tty) -> None:
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    @pytest.mark.parametrize(("var", "value"), [("NO_COLOR", ""), ("TERM", "dumb")])
    def test_environment_disables_color(self, tty, monkeypatch, var, value) -> None:
        monkeypatch.setenv(var, value)
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_format_wins(self, tty) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestStreams:
    def test_data_goes_to_stdout(self, no_tty, capsys) -> None:
        OutputManager().print_data("payload")
        captured = capsys.readouterr()
        assert captured.out == "payload\n"
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, no_tty, capsys) -> None:
        mgr = OutputManager(no_color=True)
        mgr.info("hello")
        mgr.error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == ["hello", "Error: broken"]

    def test_quiet_suppresses_info_and_success(self, no_tty, capsys) -> None:
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden too")
        mgr.error("shown")
        assert capsys.readouterr().err == "Error: shown\n"

    def test_debug_only_when_verbose(self, no_tty, capsys) -> None:
        OutputManager(no_color=True).debug("quiet")
        OutputManager(no_color=True, verbose=True).debug("loud")
        assert capsys.readouterr().err == "[debug] loud\n"


class TestFormatting:
    def test_json_response(self, no_tty, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({"a": 1})
        assert json.loads(capsys.readouterr().out) == {"a": 1}

    def test_plain_response_dict(self, no_tty, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({"a": 1, "b": "x"})
        assert capsys.readouterr().out == "a\t1\nb\tx\n"

    def test_plain_response_other(self, no_tty, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response([1, 2])
        assert capsys.readouterr().out == "[1, 2]\n"

    def test_plain_table(self, no_tty, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).print_table(
            ["Owner", "Method"], [["Discussion", "save"]]
        )
        assert capsys.readouterr().out == "Owner\tMethod\nDiscussion\tsave\n"

    def test_json_table(self, no_tty, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(
            ["Owner", "Method"], [["Discussion", "save"]]
        )
        assert json.loads(capsys.readouterr().out) == [{"Owner": "Discussion", "Method": "save"}]

    def test_rich_table_contains_cells(self, no_tty, capsys) -> None:
        OutputManager(format=OutputFormat.RICH).print_table(
            ["Owner", "Method"], [["Discussion", "save"]], title="Handlers"
        )
        out = capsys.readouterr().out
        assert "Discussion" in out
        assert "Handlers" in out


class TestGlobalInstance:
    def test_get_output_creates_default(self, no_tty) -> None:
        output_module.reset_output()
        assert isinstance(output_module.get_output(), OutputManager)
        assert output_module.get_output() is output_module.get_output()

    def test_set_and_reset(self) -> None:
        mgr = OutputManager(format=OutputFormat.JSON)
        output_module.set_output(mgr)
        assert output_module.get_output() is mgr
        output_module.reset_output()
        assert output_module.get_output() is not mgr

    def test_convenience_functions_delegate(self, quiet_output, capsys) -> None:
        output_module.info("hidden")
        output_module.print_table(["A"], [["1"]])
        output_module.format_response({"k": "v"})
        captured = capsys.readouterr()
        assert captured.out == "A\n1\nk\tv\n"
        assert captured.err == ""

"""OutputManager behaviour: format selection, stream routing, and rendering."""

from __future__ import annotations

import json

import pytest

from specview import output as output_module
from specview.models import (
    Diagnostic,
    GraphModel,
    GraphNode,
    NodeKind,
    Severity,
)
from specview.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def terminal(monkeypatch):
    """Pretend stdout is an interactive terminal with colour allowed."""
    monkeypatch.setattr("specview.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


@pytest.fixture()
def piped(monkeypatch):
    monkeypatch.setattr("specview.output._is_tty", lambda: False)


@pytest.fixture()
def plain(piped) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


def _graph() -> GraphModel:
    return GraphModel(
        nodes=[
            GraphNode(id="api-root", kind=NodeKind.API, label="Petstore"),
            GraphNode(
                id="endpoint-list-pets",
                kind=NodeKind.ENDPOINT,
                label="/pets",
                parent_id="api-root",
                expandable=True,
                data={"method": "GET"},
            ),
            GraphNode(
                id="endpoint-list-pets-response-200",
                kind=NodeKind.RESPONSE,
                label="200",
                parent_id="endpoint-list-pets",
                expandable=True,
            ),
            GraphNode(
                id="endpoint-create-pets",
                kind=NodeKind.ENDPOINT,
                label="/pets",
                parent_id="api-root",
                data={"method": "POST"},
            ),
        ],
        expansion_state=["endpoint-list-pets"],
    )


# --- choosing a format ------------------------------------------------------


class TestFormatChoice:
    def test_pipe_gets_plain(self, piped):
        assert OutputManager().format is OutputFormat.PLAIN

    def test_terminal_gets_rich(self, terminal):
        assert OutputManager().format is OutputFormat.RICH

    def test_terminal_without_colour_gets_plain(self, terminal):
        assert OutputManager(no_color=True).format is OutputFormat.PLAIN

    @pytest.mark.parametrize("chosen", [OutputFormat.JSON, OutputFormat.RICH, OutputFormat.PLAIN])
    def test_explicit_choice_wins(self, piped, chosen):
        assert OutputManager(format=chosen).format is chosen


@pytest.mark.parametrize(
    ("env", "disabled"),
    [
        ({"NO_COLOR": ""}, True),
        ({"NO_COLOR": "1", "TERM": "xterm"}, True),
        ({"TERM": "dumb"}, True),
        ({"TERM": "xterm-256color"}, False),
        ({}, False),
    ],
)
def test_colour_environment(monkeypatch, env, disabled):
    for var in ("NO_COLOR", "TERM"):
        monkeypatch.delenv(var, raising=False)
    for var, value in env.items():
        monkeypatch.setenv(var, value)
    assert _should_disable_color() is disabled


# --- which stream -----------------------------------------------------------


class TestStreams:
    def test_print_data_goes_to_stdout(self, capfd, plain):
        plain.print_data("hello world")
        captured = capfd.readouterr()
        assert captured.out == "hello world\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_messages_go_to_stderr(self, capfd, plain, method):
        getattr(plain, method)("a message")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "a message" in captured.err

    def test_error_prefix(self, capfd, plain):
        plain.error("broke")
        assert capfd.readouterr().err == "Error: broke\n"

    def test_warning_prefix(self, capfd, plain):
        plain.warning("careful")
        assert capfd.readouterr().err == "Warning: careful\n"


class TestQuietAndVerbose:
    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_quiet_suppresses(self, capfd, piped, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps_problems(self, capfd, piped, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("shown")
        assert "shown" in capfd.readouterr().err

    def test_debug_needs_verbose(self, capfd, piped):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("trace")
        assert capfd.readouterr().err == "[debug] trace\n"


# --- tables and structured data ---------------------------------------------


class TestPrintTable:
    def test_plain_is_tab_separated(self, capfd, plain):
        plain.print_table(["Method", "Path"], [["GET", "/pets"], ["POST", "/pets"]])
        assert capfd.readouterr().out == "Method\tPath\nGET\t/pets\nPOST\t/pets\n"

    def test_json_is_records(self, capfd, piped):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Method", "Path"], [["GET", "/pets"]])
        assert json.loads(capfd.readouterr().out) == [{"Method": "GET", "Path": "/pets"}]

    def test_rich_renders_cells(self, capfd, piped):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(["Method", "Path"], [["GET", "/pets/[id]"]], title="Endpoints")
        out = capfd.readouterr().out
        assert "Endpoints" in out
        assert "/pets/[id]" in out


class TestPrintStructured:
    def test_json(self, capfd, piped):
        mgr = OutputManager(format=OutputFormat.JSON)
        mgr.print_structured({"title": "Petstore", "endpoints": 4})
        assert json.loads(capfd.readouterr().out) == {"title": "Petstore", "endpoints": 4}

    def test_plain_dict(self, capfd, plain):
        plain.print_structured({"title": "Petstore", "endpoints": 4})
        assert capfd.readouterr().out == "title\tPetstore\nendpoints\t4\n"

    def test_plain_list_of_dicts(self, capfd, plain):
        plain.print_structured([{"id": "a", "name": "A"}, "loose"])
        assert capfd.readouterr().out == "a\tA\nloose\n"


# --- graph rendering --------------------------------------------------------


class TestPrintGraph:
    def test_plain_tree(self, capfd, plain):
        plain.print_graph(_graph())
        lines = capfd.readouterr().out.splitlines()
        assert lines == [
            "Petstore\tapi-root",
            "  - GET /pets\tendpoint-list-pets",
            "    + 200\tendpoint-list-pets-response-200",
            "  POST /pets\tendpoint-create-pets",
        ]

    def test_json_is_model(self, capfd, piped):
        mgr = OutputManager(format=OutputFormat.JSON)
        mgr.print_graph(_graph())
        data = json.loads(capfd.readouterr().out)
        assert data["expansion_state"] == ["endpoint-list-pets"]
        assert [n["id"] for n in data["nodes"]][0] == "api-root"

    def test_orphans_become_roots(self, capfd, plain):
        model = GraphModel(
            nodes=[GraphNode(id="x", kind=NodeKind.SCHEMA, label="X", parent_id="gone")]
        )
        plain.print_graph(model)
        assert capfd.readouterr().out == "X\tx\n"

    def test_rich_tree(self, capfd, piped):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_graph(_graph())
        out = capfd.readouterr().out
        assert "GET /pets" in out
        assert "endpoint-list-pets-response-200" in out


# --- diagnostics ------------------------------------------------------------


class TestPrintDiagnostics:
    def test_errors_and_warnings_with_suggestions(self, capfd, plain):
        plain.print_diagnostics(
            [
                Diagnostic(
                    path="info.title",
                    message="API specification is missing required title",
                    severity=Severity.ERROR,
                ),
                Diagnostic(message="Something odd", severity=Severity.WARNING),
            ]
        )
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == [
            "Error: info.title: API specification is missing required title",
            '→ Add the required "info" object with "title" and "version" properties.',
            "Warning: Something odd",
        ]

    def test_without_suggestions(self, capfd, plain):
        plain.print_diagnostics(
            [Diagnostic(message="Reference error: x", severity=Severity.ERROR)],
            suggestions=False,
        )
        assert capfd.readouterr().err == "Error: Reference error: x\n"


# --- output file ------------------------------------------------------------


class TestOutputFile:
    def test_print_data_appends(self, tmp_path, capfd, piped):
        target = tmp_path / "out.txt"
        mgr = OutputManager(format=OutputFormat.PLAIN, output_file=str(target))
        mgr.print_data("one")
        mgr.print_data("two\n")
        assert target.read_text(encoding="utf-8") == "one\ntwo\n"
        assert capfd.readouterr().out == ""

    def test_structured_overwrites_with_json(self, tmp_path, piped):
        target = tmp_path / "out.json"
        target.write_text("stale", encoding="utf-8")
        mgr = OutputManager(format=OutputFormat.PLAIN, output_file=str(target))
        mgr.print_structured({"a": 1})
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1}


# --- global instance --------------------------------------------------------


class TestGlobalInstance:
    def test_lazy_default(self, piped):
        reset_output()
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_convenience_functions(self, capfd, plain):
        set_output(plain)
        output_module.print_data("data")
        output_module.info("note")
        captured = capfd.readouterr()
        assert captured.out == "data\n"
        assert captured.err == "note\n"

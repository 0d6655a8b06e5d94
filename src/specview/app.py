"""Typer application and console-script entry point.

The root :data:`app` carries the global flags and mounts four command
groups:

* ``inspect`` -- validate a document, list endpoints, classify errors;
* ``graph`` -- render or export the schema graph;
* ``library`` -- manage stored documents;
* ``config`` -- view and edit the global configuration.

:func:`main` is what ``specview`` runs.  It turns a
:class:`~specview.exceptions.SpecviewError` escaping a command into that
error's exit code and writes a crash log for anything else.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from specview import __version__
from specview.commands.config import config_app
from specview.commands.graph import graph_app
from specview.commands.inspect import inspect_app
from specview.commands.library import library_app
from specview.config import get_data_dir, load_global_config
from specview.exceptions import ConfigError, SpecviewError
from specview.exit_codes import EXIT_GENERIC_FAILURE
from specview.output import OutputFormat, OutputManager, error, set_output

_EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="specview",
    help="Validate OpenAPI/Swagger documents and explore them as a schema graph.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(inspect_app, name="inspect", help="Validate and inspect API documents.")
app.add_typer(graph_app, name="graph", help="Render or export the schema graph.")
app.add_typer(library_app, name="library", help="Manage stored documents.")
app.add_typer(config_app, name="config", help="View and edit configuration.")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"specview {__version__}")
        raise typer.Exit()


def _pick_format(json_output: bool, plain_output: bool) -> OutputFormat:
    """Flag choice first, then ``output.format`` from the config file, then auto."""
    if json_output:
        return OutputFormat.JSON
    if plain_output:
        return OutputFormat.PLAIN
    try:
        configured = load_global_config().output.format
    except ConfigError:
        # Reported by the command that actually needs the config.
        return OutputFormat.AUTO
    try:
        return OutputFormat(configured)
    except ValueError:
        return OutputFormat.AUTO


def _configure_logging(verbose: bool) -> None:
    """Send the ``specview`` logger to stderr through a single RichHandler.

    WARNING by default, DEBUG with ``--verbose``.
    """
    logger = logging.getLogger("specview")
    for existing in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(existing)
    logger.addHandler(
        RichHandler(console=Console(stderr=True), show_path=False, show_time=False, markup=False)
    )
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain tab-separated output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only data, warnings, and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug messages and logging."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Reference resolution timeout in seconds."
    ),
    output_file: Optional[str] = typer.Option(
        None, "--output-file", help="Write primary data to this file instead of stdout."
    ),
) -> None:
    """Install the output manager and logging, and share ``--timeout`` via ``ctx.obj``."""
    set_output(
        OutputManager(
            format=_pick_format(json_output, plain_output),
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj.update(timeout=timeout, verbose=verbose)


def _setup_signal_handlers() -> None:
    def _on_interrupt(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(_EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _on_interrupt)


def _write_crash_log(exc: BaseException) -> Path:
    """Save the traceback of *exc* under ``<data dir>/logs`` and return the file."""
    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return path


def main() -> None:
    """Run the CLI; always ends in :class:`SystemExit`."""
    _setup_signal_handlers()
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(_EXIT_INTERRUPTED)
    except SpecviewError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)

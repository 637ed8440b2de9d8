"""Typer application and CLI entry point for the ``pluggable`` developer tool.

The CLI is a read-mostly companion to the library: it shows how a pluggable
class resolves method names, which handlers a plugin declares, and what the
effective configuration is. It never dispatches calls itself.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~pluggable.exceptions.PluggableError` instances
escaping a command exit with the error's ``exit_code``.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from pluggable import __version__
from pluggable.commands.config import config_app
from pluggable.commands.inspect import inspect_app
from pluggable.exit_codes import EXIT_GENERIC_FAILURE

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="pluggable",
    help="Inspect pluggable classes, plugin handlers and dispatch configuration.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(inspect_app, name="inspect", help="Inspect classes and plugins.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pluggable {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Override the reserved method prefix."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~pluggable.output.OutputManager`, resolves
    the effective configuration, configures logging, and stores the
    resolved method prefix in ``ctx.obj`` for sub-commands.
    """
    from pluggable.config import configure_logging, resolve_config
    from pluggable.exceptions import ConfigError
    from pluggable.output import OutputFormat, OutputManager, error, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    try:
        config = resolve_config(cli_prefix=prefix)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    configure_logging("DEBUG" if verbose else config.log_level)

    ctx.ensure_object(dict)
    ctx.obj["prefix"] = config.dispatch.method_prefix
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``pluggable`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except Exception as exc:
        from pluggable.exceptions import PluggableError
        from pluggable.output import error

        if isinstance(exc, PluggableError):
            error(str(exc))
            sys.exit(exc.exit_code)
        logger.debug("Unhandled exception", exc_info=True)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)

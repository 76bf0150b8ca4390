"""Typer application factory and CLI entry point for swaggen.

This module wires together the top-level Typer application: the global
output flags, the ``serve`` command that runs the MCP tool server on
stdio, the document commands (``parse``, ``types``, ``client``) and the
``templates`` and ``cache`` sub-groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, invokes the Typer app and
maps :class:`~swaggen.exceptions.SwaggenError` to exit codes. Any other
unhandled exception is written to a crash log under the data directory.

See Also:
    :mod:`swaggen.config`: Configuration resolution.
    :mod:`swaggen.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from swaggen import __version__
from swaggen.commands.cache import cache_app
from swaggen.commands.generate import client_command, parse_command, types_command
from swaggen.commands.templates import templates_app
from swaggen.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="swaggen",
    help="Parse OpenAPI/Swagger documents and generate TypeScript types and API clients.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("parse")(parse_command)
app.command("types")(types_command)
app.command("client")(client_command)
app.add_typer(templates_app, name="templates", help="Manage code generation templates.")
app.add_typer(cache_app, name="cache", help="Inspect and clear the document cache.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"swaggen {__version__}")
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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~swaggen.output.OutputManager` and the
    ``swaggen`` logger from CLI flags, and stores the flags in the Typer
    context so that sub-commands can read them via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from swaggen.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose=verbose, quiet=quiet, no_color=no_color)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


@app.command("serve")
def serve_command(ctx: typer.Context) -> None:
    """Run the MCP tool server on stdio.

    Writes a default configuration file on first start, then serves the
    parse, generate, template and file tools until the client
    disconnects. Logs go to stderr; stdout carries the protocol.

    Example::

        swaggen serve
    """
    from swaggen.commands.common import get_services
    from swaggen.config import ensure_default_config
    from swaggen.tools import run_server

    ensure_default_config()
    run_server(get_services(ctx))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from swaggen.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``swaggen`` console script.

    Unhandled :class:`~swaggen.exceptions.SwaggenError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from swaggen.exceptions import SwaggenError
        from swaggen.output import error

        if isinstance(exc, SwaggenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)

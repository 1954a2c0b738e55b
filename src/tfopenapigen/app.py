"""Typer application and CLI entry point for tfopenapigen.

This module wires the top-level Typer application, registers the built-in
sub-commands (``generate``, ``inspect``), and installs the global
:class:`~tfopenapigen.output.OutputManager` from the root flags.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler, invokes the Typer app, and
maps :class:`~tfopenapigen.exceptions.TfOpenAPIGenError` to its exit code.

See Also:
    :mod:`tfopenapigen.config`: Configuration file resolution.
    :mod:`tfopenapigen.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any

import typer

from tfopenapigen import __version__
from tfopenapigen.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED

app = typer.Typer(
    name="tfopenapigen",
    help="Generate Terraform Framework IR from OpenAPI 3.0/3.1 documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"tfopenapigen {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output for tables."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output for tables."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress warnings and non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~tfopenapigen.output.OutputManager` and
    routes ``logging`` through it.

    Args:
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output for tables.
        plain_output: Force plain-text output for tables.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress warnings and informational output.
        verbose: Enable debug output, including the generator's log records.
    """
    from tfopenapigen.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.configure_logging()
    set_output(output)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from tfopenapigen.commands.generate import generate_command  # noqa: E402
from tfopenapigen.commands.inspect import inspect_app  # noqa: E402

app.command("generate")(generate_command)
app.add_typer(inspect_app, name="inspect", help="Inspect a document and the configured entities.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``tfopenapigen`` console script.

    Unhandled :class:`~tfopenapigen.exceptions.TfOpenAPIGenError` instances
    exit with the error's ``exit_code``; anything else is reported and
    exits with the generic failure code.

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
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from tfopenapigen.exceptions import TfOpenAPIGenError
        from tfopenapigen.output import error

        if isinstance(exc, TfOpenAPIGenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc!r}. Re-run with --verbose and report it.")
        sys.exit(EXIT_GENERIC_FAILURE)

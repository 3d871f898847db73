"""Typer application and CLI entry point for ramlkit.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``resolve``, ``inspect``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and invokes the Typer app;
a :class:`~ramlkit.exceptions.RamlError` escaping a command becomes a clean
exit with the error's ``exit_code``.

See Also:
    :mod:`ramlkit.config`: Configuration precedence resolved in
    :func:`main_callback`.
    :mod:`ramlkit.output`: Output formatting initialised in
    :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import TYPE_CHECKING, Any, Optional

import typer

from ramlkit import __version__
from ramlkit.exit_codes import EXIT_GENERIC_FAILURE

if TYPE_CHECKING:
    from ramlkit.output import OutputFormat

app = typer.Typer(
    name="ramlkit",
    help="Parse and resolve RAML 1.0 API definitions.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _output_format(value: str) -> OutputFormat:
    from ramlkit.exceptions import InvalidUsageError
    from ramlkit.output import OutputFormat

    try:
        return OutputFormat(value)
    except ValueError:
        choices = ", ".join(f.value for f in OutputFormat)
        raise InvalidUsageError(
            f"Unknown output format: {value} (expected one of: {choices})"
        ) from None


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ramlkit {__version__}")
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
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and parser logging."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="HTTP timeout in seconds for remote documents."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Resolves the effective configuration, installs the global
    :class:`~ramlkit.output.OutputManager` and stores the fetch settings in
    ``ctx.obj`` for the sub-commands.
    """
    from ramlkit.config import resolve_config
    from ramlkit.exceptions import RamlError
    from ramlkit.output import OutputFormat, OutputManager, configure_logging, error, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    try:
        config = resolve_config(cli_timeout=timeout, cli_format=cli_format)
        fmt = _output_format(config.output.format)
    except RamlError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose, no_color=no_color)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["fetch"] = config.fetch
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from ramlkit.commands.config import config_app  # noqa: E402
from ramlkit.commands.inspect import inspect_app  # noqa: E402
from ramlkit.commands.resolve import resolve_command  # noqa: E402

app.command("resolve")(resolve_command)
app.add_typer(inspect_app, name="inspect", help="Inspect a resolved API definition.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``ramlkit`` console script.

    Unhandled :class:`~ramlkit.exceptions.RamlError` instances cause a clean
    exit with the error's ``exit_code``; any other exception is reported and
    exits with :data:`~ramlkit.exit_codes.EXIT_GENERIC_FAILURE`.

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
        from ramlkit.exceptions import RamlError
        from ramlkit.output import error

        if isinstance(exc, RamlError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)

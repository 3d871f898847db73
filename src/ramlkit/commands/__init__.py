"""Built-in CLI sub-commands for ramlkit.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~ramlkit.commands.resolve` -- print the fully resolved document.
* :mod:`~ramlkit.commands.inspect` -- tables of resources, methods, types
  and traits of a resolved document.
* :mod:`~ramlkit.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``inspect`` and ``config``) or a plain callback
function registered directly on the root app (for single commands like
``resolve``).
"""

from __future__ import annotations

from typing import Optional

import typer

from ramlkit.models import APIDefinition, FetchConfig


def load_api(ctx: typer.Context, source: str) -> APIDefinition:
    """Parse and resolve *source* with the fetch settings stored in ``ctx.obj``.

    Raises:
        typer.Exit: With the ``exit_code`` of the raised
            :class:`~ramlkit.exceptions.RamlError` when parsing fails.
    """
    from ramlkit.exceptions import RamlError
    from ramlkit.output import error
    from ramlkit.parser import parse_file

    fetch: Optional[FetchConfig] = ctx.obj.get("fetch") if ctx.obj else None
    try:
        return parse_file(source, fetch=fetch)
    except RamlError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

"""Resolve command -- print the fully resolved API definition.

The resolved :class:`~ramlkit.models.APIDefinition` is dumped with its RAML
(camelCase) key spelling, so the output reads like a RAML document in which
every resource type, trait and library reference has been applied.
"""

from __future__ import annotations

from typing import Any, Optional

import typer
import yaml

from ramlkit.commands import load_api
from ramlkit.models import APIDefinition
from ramlkit.output import format_response, get_output, success


def dump_api(api: APIDefinition) -> dict[str, Any]:
    """Return the JSON-compatible form of *api*, without empty fields."""
    return api.model_dump(mode="json", by_alias=True, exclude_none=True)


def resolve_command(
    ctx: typer.Context,
    source: str = typer.Argument(help="Path or URL of the root RAML document."),
    output_file: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the resolved document to FILE."
    ),
    as_yaml: bool = typer.Option(False, "--yaml", help="Emit YAML instead of JSON."),
) -> None:
    """Parse SOURCE, apply every resource type and trait, and print the result.

    Example::

        ramlkit resolve api.raml
        ramlkit resolve https://example.com/api.raml -o resolved.json
        ramlkit resolve api.raml --yaml
    """
    data = dump_api(load_api(ctx, source))

    if as_yaml:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        if output_file:
            get_output().write_file(output_file, text)
            success(f"Wrote {output_file}")
        else:
            get_output().print_data(text.rstrip("\n"))
        return

    if output_file:
        get_output().write_file(output_file, data)
        success(f"Wrote {output_file}")
    else:
        format_response(data)

"""Inspect commands -- examine a resolved API definition.

Provides the ``ramlkit inspect`` sub-command group with read-only commands
for viewing the contents of a RAML document after resolution: general API
info, the resource tree, every method, declared types and traits. Each
sub-command parses SOURCE and presents the data in table or structured
output format.
"""

from __future__ import annotations

from typing import Any

import typer

from ramlkit.commands import load_api
from ramlkit.output import format_response, get_output, info


inspect_app = typer.Typer(no_args_is_help=True)

_SOURCE_HELP = "Path or URL of the root RAML document."


def _names(choices: list[Any]) -> str:
    names = [choice.name if choice is not None else "null" for choice in choices]
    return ", ".join(names) or "-"


@inspect_app.command("info")
def inspect_info(
    ctx: typer.Context,
    source: str = typer.Argument(help=_SOURCE_HELP),
) -> None:
    """Show API info (title, version, base URI, counts).

    Example::

        ramlkit inspect info api.raml
    """
    api = load_api(ctx, source)
    resources = list(api.iter_resources())

    data: dict[str, Any] = {
        "title": api.title,
        "version": api.version or "-",
        "raml_version": api.raml_version,
        "base_uri": api.base_uri or "-",
        "media_type": api.media_type,
        "protocols": api.protocols,
        "resources": len(resources),
        "methods": sum(len(r.methods) for r in resources),
        "types": len(api.types),
        "traits": len(api.traits),
        "resource_types": len(api.resource_types),
        "security_schemes": list(api.security_schemes),
        "libraries": {alias: lib.location for alias, lib in api.libraries.items()},
    }
    format_response(data)


@inspect_app.command("resources")
def inspect_resources(
    ctx: typer.Context,
    source: str = typer.Argument(help=_SOURCE_HELP),
) -> None:
    """List every resource with its methods, resource type and traits.

    Example::

        ramlkit inspect resources api.raml
    """
    api = load_api(ctx, source)

    headers = ["Path", "Methods", "Type", "Traits"]
    rows: list[list[str]] = []
    for resource in api.iter_resources():
        rows.append([
            resource.full_uri(),
            ", ".join(m.name for m in resource.methods.values()) or "-",
            resource.type.name if resource.type is not None else "-",
            _names(resource.is_),
        ])

    get_output().print_table(headers, rows, title=f"{api.title} -- Resources ({len(rows)})")


@inspect_app.command("methods")
def inspect_methods(
    ctx: typer.Context,
    source: str = typer.Argument(help=_SOURCE_HELP),
) -> None:
    """List every method with its responses and security.

    Example::

        ramlkit inspect methods api.raml
    """
    api = load_api(ctx, source)

    headers = ["Method", "Path", "Description", "Responses", "Secured By"]
    rows: list[list[str]] = []
    for resource in api.iter_resources():
        for method in resource.methods.values():
            lines = (method.description or "").strip().splitlines()
            description = lines[0][:60] if lines else "-"
            rows.append([
                method.name,
                resource.full_uri(),
                description,
                ", ".join(method.responses) or "-",
                _names(method.secured_by or resource.secured_by or api.secured_by),
            ])

    get_output().print_table(headers, rows, title=f"{api.title} -- Methods ({len(rows)})")


@inspect_app.command("types")
def inspect_types(
    ctx: typer.Context,
    source: str = typer.Argument(help=_SOURCE_HELP),
) -> None:
    """List declared types, including those of used libraries.

    Shows each type with its base type and up to five property names.
    Library types are listed under their ``alias.Name`` form.

    Example::

        ramlkit inspect types api.raml
    """
    api = load_api(ctx, source)

    declarations = [("", api)] + [
        (alias + ".", library) for alias, library in api.libraries.items()
    ]
    headers = ["Type", "Base", "Properties"]
    rows: list[list[str]] = []
    for prefix, owner in declarations:
        for name, declaration in owner.types.items():
            names = [p.name for p in declaration.iter_properties()]
            props = ", ".join(names[:5])
            if len(names) > 5:
                props += "..."
            rows.append([prefix + name, declaration.type_string(), props or "-"])

    if not rows:
        info("No types declared.")
        return

    get_output().print_table(headers, rows, title=f"Types ({len(rows)})")


@inspect_app.command("traits")
def inspect_traits(
    ctx: typer.Context,
    source: str = typer.Argument(help=_SOURCE_HELP),
) -> None:
    """List declared traits and resource types.

    Example::

        ramlkit inspect traits api.raml
    """
    api = load_api(ctx, source)

    headers = ["Kind", "Name", "Usage"]
    rows: list[list[str]] = []
    owners = [("", api)] + [(alias + ".", lib) for alias, lib in api.libraries.items()]
    for prefix, owner in owners:
        for name, trait in owner.traits.items():
            rows.append(["trait", prefix + name, trait.usage or "-"])
        for name, resource_type in owner.resource_types.items():
            rows.append(["resource type", prefix + name, resource_type.usage or "-"])

    if not rows:
        info("No traits or resource types declared.")
        return

    get_output().print_table(headers, rows, title=f"Templates ({len(rows)})")

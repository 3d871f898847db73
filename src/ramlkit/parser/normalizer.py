"""Normalize shape shortcuts once inheritance is complete.

The main rewrite turns the two-field array form into the compact one::

    type: array                  type: string[]
    items: string          ->

    type: array                  type: Person[]
    items:                 ->    items:
      type: Person                 minItems: 1
      minItems: 1

The ``items`` entry survives only while it still holds something besides the
moved ``type``. Every function here is idempotent.

Also handled here:

* A :class:`~ramlkit.models.Bodies` holding both a flat body and media-type
  bodies has the flat body merged into each media-type body and cleared.
* A header or parameter whose key ends in ``?`` gets its name without the
  marker and ``required: false`` unless ``required`` is set.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from ramlkit.models import (
    Bodies,
    Body,
    Declarations,
    Method,
    NamedParameter,
    Resource,
    TypeDeclaration,
)
from ramlkit.parser.inheritance import Application, merge_body
from ramlkit.shapes import ArrayShape, InlineShape, ReferenceShape, ScalarShape, ShapeValue

OPTIONAL = "?"


def collapse_array(
    type_: Optional[ShapeValue], items: Optional[ShapeValue]
) -> tuple[Optional[ShapeValue], Optional[ShapeValue]]:
    """Collapse ``type: array`` + ``items`` into an :class:`ArrayShape`.

    Returns:
        The new ``(type, items)`` pair; unchanged when *type_* is not the
        built-in ``array`` or there are no items.
    """
    if not (isinstance(type_, ScalarShape) and type_.value == "array") or items is None:
        return type_, items
    if isinstance(items, InlineShape):
        if items.type is None:
            return type_, items
        rest = items.model_copy(update={"type": None})
        return ArrayShape(items=items.type), None if rest.is_empty() else rest
    return ArrayShape(items=items), None


def normalize_shape(shape: ShapeValue) -> ShapeValue:
    """Return *shape* with every nested array shortcut collapsed."""
    if isinstance(shape, (ScalarShape, ReferenceShape)):
        return shape
    if isinstance(shape, ArrayShape):
        return ArrayShape(items=normalize_shape(shape.items))
    if isinstance(shape, InlineShape):
        type_ = normalize_shape(shape.type) if shape.type is not None else None
        items = normalize_shape(shape.items) if shape.items is not None else None
        type_, items = collapse_array(type_, items)
        properties = {k: normalize_shape(v) for k, v in shape.properties.items()}
        if (
            isinstance(type_, ArrayShape)
            and items is None
            and not properties
            and not shape.facets
        ):
            return type_
        return InlineShape(type=type_, properties=properties, items=items, facets=shape.facets)
    raise TypeError(f"Unknown shape variant: {shape!r}")


def normalize_body(body: Body) -> None:
    type_ = normalize_shape(body.type) if body.type is not None else None
    items = normalize_shape(body.items) if body.items is not None else None
    body.type, body.items = collapse_array(type_, items)
    body.properties = {k: normalize_shape(v) for k, v in body.properties.items()}
    normalize_parameters(body.headers)


def normalize_bodies(bodies: Bodies) -> None:
    """Fold a flat body into the media-type bodies, then normalize each body."""
    if bodies.default is not None and bodies.media_types:
        flat = bodies.default
        for body in bodies.media_types.values():
            merge_body(body, flat, Application({}))
        bodies.default = None
    for body in bodies.all_bodies():
        normalize_body(body)


def normalize_type(declaration: TypeDeclaration) -> None:
    type_ = normalize_shape(declaration.type) if declaration.type is not None else None
    items = normalize_shape(declaration.items) if declaration.items is not None else None
    declaration.type, declaration.items = collapse_array(type_, items)
    declaration.properties = {
        k: normalize_shape(v) for k, v in declaration.properties.items()
    }


def normalize_parameters(parameters: Mapping[str, NamedParameter]) -> None:
    for key, parameter in parameters.items():
        if key.endswith(OPTIONAL):
            parameter.name = key[: -len(OPTIONAL)]
            if parameter.required is None:
                parameter.required = False


def normalize_method(method: Method) -> None:
    normalize_parameters(method.query_parameters)
    normalize_parameters(method.headers)
    if method.query_string is not None:
        method.query_string = normalize_shape(method.query_string)
    normalize_bodies(method.bodies)
    for response in method.responses.values():
        normalize_parameters(response.headers)
        normalize_bodies(response.bodies)


def normalize_resource(resource: Resource) -> None:
    """Normalize one resource and its methods (nested resources excluded)."""
    normalize_parameters(resource.uri_parameters)
    for method in resource.methods.values():
        normalize_method(method)


def normalize_declarations(declarations: Declarations) -> None:
    """Normalize declared types of a document and of every library it uses."""
    for declaration in declarations.types.values():
        normalize_type(declaration)
    for library in declarations.libraries.values():
        normalize_declarations(library)

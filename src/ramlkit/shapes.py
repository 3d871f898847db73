"""Shape values -- the polymorphic ``type`` / ``items`` / property nodes of RAML.

A RAML type position accepts several syntaxes::

    type: string                 # built-in scalar type
    type: Person                 # reference to a declared type
    type: Person | Error         # union expression (kept as a reference)
    type: Person[]               # array shorthand
    type: { properties: ... }    # inline declaration
    type: |                      # opaque JSON/XML schema text
      { "$schema": ... }

Instead of carrying raw YAML values around, every such position is decoded
into exactly one variant of a closed tagged union:

* :class:`ScalarShape` -- a built-in scalar type or opaque schema text.
* :class:`ReferenceShape` -- a named type or a union expression.
* :class:`InlineShape` -- a nested mapping with its own ``type``,
  ``properties``, ``items`` and any other facets.
* :class:`ArrayShape` -- an array of another shape.

Code that consumes shapes dispatches over the four classes and raises
``TypeError`` for anything else.

Public helpers:

* :func:`parse_shape` / :func:`parse_optional_shape` -- raw node to shape.
* :func:`render_shape` -- the compact string form (``Person[]``).
* :func:`to_raw` -- the plain YAML-like form used for serialisation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, model_serializer

BUILTIN_TYPES = frozenset(
    {
        "any",
        "object",
        "array",
        "union",
        "string",
        "number",
        "integer",
        "boolean",
        "date-only",
        "time-only",
        "datetime-only",
        "datetime",
        "file",
        "nil",
    }
)

ARRAY_SUFFIX = "[]"


class ScalarShape(BaseModel):
    """A built-in scalar type name, or an opaque schema document."""

    kind: Literal["scalar"] = "scalar"
    value: str

    @property
    def is_schema(self) -> bool:
        """Whether the value is inline JSON or XML schema text."""
        return _is_schema_text(self.value)

    @model_serializer
    def _serialize(self) -> Any:
        return to_raw(self)


class ReferenceShape(BaseModel):
    """A reference to a declared type, possibly library-qualified or a union."""

    kind: Literal["reference"] = "reference"
    name: str

    @property
    def is_union(self) -> bool:
        return _has_top_level_union(self.name)

    def members(self) -> list[str]:
        """Return the member type expressions of a union (or ``[name]``)."""
        return split_union(self.name)

    @model_serializer
    def _serialize(self) -> Any:
        return to_raw(self)


class ArrayShape(BaseModel):
    """An array whose elements have the ``items`` shape."""

    kind: Literal["array"] = "array"
    items: ShapeField

    @model_serializer
    def _serialize(self) -> Any:
        return to_raw(self)


class InlineShape(BaseModel):
    """An inline type declaration.

    ``facets`` holds every key other than ``type``, ``properties`` and
    ``items`` (``required``, ``minLength``, ``enum``, ``description`` ...),
    in declaration order.
    """

    kind: Literal["inline"] = "inline"
    type: OptionalShapeField = None
    properties: dict[str, ShapeField] = Field(default_factory=dict)
    items: OptionalShapeField = None
    facets: dict[str, Any] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            self.type is None
            and not self.properties
            and self.items is None
            and not self.facets
        )

    @model_serializer
    def _serialize(self) -> Any:
        return to_raw(self)


ShapeValue = Union[ScalarShape, ReferenceShape, ArrayShape, InlineShape]

_SHAPE_CLASSES = (ScalarShape, ReferenceShape, ArrayShape, InlineShape)


# --- Parsing ---


def parse_shape(value: Any) -> ShapeValue:
    """Decode a raw YAML node in a type position into a shape.

    ``None`` (a bare ``name:`` property) becomes an empty inline shape.

    Raises:
        ValueError: If the node is neither a string nor a mapping. Raised as
            ``ValueError`` so that pydantic reports it alongside other
            structural errors of the same document.
    """
    if isinstance(value, _SHAPE_CLASSES):
        return value
    if value is None:
        return InlineShape()
    if isinstance(value, str):
        if not value.strip():
            return InlineShape()
        return parse_type_expression(value)
    if isinstance(value, Mapping):
        return _parse_inline(value)
    if isinstance(value, list):
        raise ValueError("multiple inheritance (a list of types) is not supported")
    raise ValueError(
        f"expected a type name or a type declaration, got {type(value).__name__}"
    )


def parse_optional_shape(value: Any) -> Optional[ShapeValue]:
    """Like :func:`parse_shape`, but ``None`` and blank strings stay ``None``."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return parse_shape(value)


def parse_type_expression(text: str) -> ShapeValue:
    """Decode a type expression string (``Person[]``, ``(A | B)[]``, ``string``)."""
    if _is_schema_text(text):
        return ScalarShape(value=text)
    expr = text.strip()
    if expr.endswith(ARRAY_SUFFIX) and not _has_top_level_union(expr):
        return ArrayShape(items=parse_type_expression(expr[: -len(ARRAY_SUFFIX)]))
    if _is_wrapped_in_parens(expr):
        return parse_type_expression(expr[1:-1])
    if expr in BUILTIN_TYPES:
        return ScalarShape(value=expr)
    return ReferenceShape(name=expr)


def _parse_inline(node: Mapping[Any, Any]) -> InlineShape:
    facets = {str(k): v for k, v in node.items()}
    type_value = facets.pop("type", None)
    items_value = facets.pop("items", None)
    properties = facets.pop("properties", None) or {}
    if not isinstance(properties, Mapping):
        raise ValueError("'properties' must be a mapping")
    return InlineShape(
        type=parse_optional_shape(type_value),
        properties={str(k): parse_shape(v) for k, v in properties.items()},
        items=parse_optional_shape(items_value),
        facets=facets,
    )


def _is_schema_text(text: str) -> bool:
    stripped = text.lstrip()
    return stripped.startswith("{") or stripped.startswith("<")


def _has_top_level_union(expr: str) -> bool:
    depth = 0
    for char in expr:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "|" and depth == 0:
            return True
    return False


def split_union(expr: str) -> list[str]:
    """Split ``"A | (B | C)[]"`` into ``["A", "(B | C)[]"]``."""
    members: list[str] = []
    depth = 0
    current = ""
    for char in expr:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "|" and depth == 0:
            members.append(current.strip())
            current = ""
            continue
        current += char
    members.append(current.strip())
    return members


def _is_wrapped_in_parens(expr: str) -> bool:
    if not (expr.startswith("(") and expr.endswith(")")):
        return False
    depth = 0
    for index, char in enumerate(expr):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and index != len(expr) - 1:
                return False
    return True


# --- Rendering ---


def render_shape(shape: ShapeValue) -> str:
    """Return the compact type-expression form of *shape*.

    Inline shapes render as their own ``type``, defaulting to ``object``
    when they declare properties and ``string`` otherwise.
    """
    if isinstance(shape, ScalarShape):
        return shape.value
    if isinstance(shape, ReferenceShape):
        return shape.name
    if isinstance(shape, ArrayShape):
        inner = render_shape(shape.items)
        if isinstance(shape.items, ReferenceShape) and shape.items.is_union:
            inner = f"({inner})"
        return inner + ARRAY_SUFFIX
    if isinstance(shape, InlineShape):
        if shape.type is not None:
            return render_shape(shape.type)
        return "object" if shape.properties else "string"
    raise TypeError(f"Unknown shape variant: {shape!r}")


def to_raw(shape: ShapeValue) -> Any:
    """Return *shape* as plain strings and dicts, the way it would be written."""
    if isinstance(shape, (ScalarShape, ReferenceShape)):
        return render_shape(shape)
    if isinstance(shape, ArrayShape):
        if isinstance(shape.items, InlineShape):
            return {"type": "array", "items": to_raw(shape.items)}
        return render_shape(shape)
    if isinstance(shape, InlineShape):
        raw: dict[str, Any] = {}
        if shape.type is not None:
            raw["type"] = to_raw(shape.type)
        if shape.properties:
            raw["properties"] = {k: to_raw(v) for k, v in shape.properties.items()}
        if shape.items is not None:
            raw["items"] = to_raw(shape.items)
        raw.update(shape.facets)
        return raw
    raise TypeError(f"Unknown shape variant: {shape!r}")


ShapeField = Annotated[ShapeValue, BeforeValidator(parse_shape)]
"""Pydantic field type for a required shape position."""

OptionalShapeField = Annotated[Optional[ShapeValue], BeforeValidator(parse_optional_shape)]
"""Pydantic field type for an optional shape position."""

ArrayShape.model_rebuild()
InlineShape.model_rebuild()

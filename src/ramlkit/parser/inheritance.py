"""Copy-merge resource types and traits into concrete resources and methods.

Every merge takes a *child* (the concrete entity, modified in place), a
*parent* (the template) and an :class:`Application` carrying the dictionary
and library scope of this one template application. Parents are never
modified and nothing is shared: every value taken from a parent is a fresh
copy produced by placeholder expansion.

Field policy:

* Text fields -- the child wins when it is non-empty and placeholder-free,
  otherwise the parent text is substituted (:func:`~.substitution.substitute`).
* Other scalar fields -- the child wins when set.
* Mappings (headers, query/URI parameters, responses, media-type bodies) --
  every parent key missing from the child is added; keys present on both
  sides are merged field by field. A parent key ``name\\?`` is added as
  ``name?``; a parent key ``name?`` is only merged when the child declares
  ``name`` (or ``name?``).
* Body properties -- missing properties are added, existing ones are kept.
* Lists used as sets (``protocols``, ``securedBy``) -- missing entries are
  appended in order.
* Type names taken from a template declared in a library are rewritten to
  their qualified form (``Person`` -> ``lib.Person``) when the library
  declares that type. Security scheme names in ``securedBy`` are qualified the
  same way.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from ramlkit.exceptions import DecodeError
from ramlkit.models import (
    Bodies,
    Body,
    DefinitionChoice,
    Method,
    NamedParameter,
    RamlModel,
    Resource,
    ResourceType,
    Response,
)
from ramlkit.parser.substitution import expand, has_placeholder, substitute
from ramlkit.shapes import (
    ArrayShape,
    InlineShape,
    ReferenceShape,
    ScalarShape,
    ShapeValue,
    parse_shape,
    parse_type_expression,
    render_shape,
    to_raw,
)

M = TypeVar("M", bound=RamlModel)

ESCAPED_OPTIONAL = "\\?"
OPTIONAL = "?"

_PARAMETER_FIELDS = tuple(
    name
    for name in NamedParameter.model_fields
    if name not in ("name", "type", "annotations")
)


@dataclass(frozen=True)
class Application:
    """The context of applying one template.

    Attributes:
        dictionary: Placeholder values for this application.
        alias: Qualified alias of the library that declares the template
            (``"lib"``, ``"lib.inner"``), or ``None`` for root templates.
        library_types: Names of the types declared by that library.
        library_schemes: Names of the security schemes declared by that
            library.
    """

    dictionary: Mapping[str, Any]
    alias: Optional[str] = None
    library_types: frozenset[str] = field(default_factory=frozenset)
    library_schemes: frozenset[str] = field(default_factory=frozenset)

    def text(self, child: Optional[str], parent: Optional[str]) -> Optional[str]:
        return substitute(child, parent, self.dictionary)

    def value(self, raw: Any) -> Any:
        return expand(raw, self.dictionary)

    def type_name(self, child: Optional[str], parent: Optional[str]) -> Optional[str]:
        if child and not has_placeholder(child):
            return child
        merged = self.text(child, parent)
        if not merged or merged.lstrip().startswith(("{", "<")):
            return merged
        return render_shape(self.qualify(parse_type_expression(merged)))

    def shape(
        self, child: Optional[ShapeValue], parent: Optional[ShapeValue]
    ) -> Optional[ShapeValue]:
        if parent is None:
            return child
        if child is not None and not _raw_has_placeholder(to_raw(child)):
            return child
        return self.qualify(parse_shape(self.value(to_raw(parent))))

    def scheme_name(self, name: str) -> str:
        """Qualify a security scheme declared in the template's library."""
        if self.alias and name in self.library_schemes:
            return f"{self.alias}.{name}"
        return name

    def qualify(self, shape: ShapeValue) -> ShapeValue:
        """Rewrite names declared in the template's library to ``alias.Name``."""
        if not self.alias:
            return shape
        if isinstance(shape, ScalarShape):
            return shape
        if isinstance(shape, ReferenceShape):
            if shape.is_union:
                members = [
                    render_shape(self.qualify(parse_type_expression(member)))
                    for member in shape.members()
                ]
                return ReferenceShape(name=" | ".join(members))
            if shape.name in self.library_types:
                return ReferenceShape(name=f"{self.alias}.{shape.name}")
            return shape
        if isinstance(shape, ArrayShape):
            return ArrayShape(items=self.qualify(shape.items))
        if isinstance(shape, InlineShape):
            return InlineShape(
                type=self.qualify(shape.type) if shape.type is not None else None,
                properties={k: self.qualify(v) for k, v in shape.properties.items()},
                items=self.qualify(shape.items) if shape.items is not None else None,
                facets=shape.facets,
            )
        raise TypeError(f"Unknown shape variant: {shape!r}")


def _raw_has_placeholder(raw: Any) -> bool:
    if isinstance(raw, str):
        return has_placeholder(raw)
    if isinstance(raw, Mapping):
        return any(_raw_has_placeholder(k) or _raw_has_placeholder(v) for k, v in raw.items())
    if isinstance(raw, list):
        return any(_raw_has_placeholder(item) for item in raw)
    return False


# --- Generic helpers ---


@lru_cache(maxsize=None)
def _field_adapter(model: type[RamlModel], name: str) -> TypeAdapter[Any]:
    return TypeAdapter(model.model_fields[name].annotation)


def _retype(child: RamlModel, name: str, value: Optional[str]) -> Any:
    """Convert substituted text back to the field type (``"50"`` -> ``50.0``)."""
    if value is None or has_placeholder(value):
        return value
    try:
        return _field_adapter(type(child), name).validate_python(value)
    except ValidationError as exc:
        label = getattr(child, child.key_field) if child.key_field else type(child).__name__
        raise DecodeError(
            f"template value for {label}",
            [f"{name}: {error['msg']} (got {value!r})" for error in exc.errors()],
        ) from exc


def merge_fields(
    child: RamlModel, parent: RamlModel, app: Application, names: Iterable[str]
) -> None:
    """Merge plain (non-collection) fields: text is substituted, others copied."""
    for name in names:
        inherited = getattr(parent, name)
        if inherited is None:
            continue
        current = getattr(child, name)
        if isinstance(inherited, str) and (current is None or isinstance(current, str)):
            setattr(child, name, _retype(child, name, app.text(current, inherited)))
        elif current is None:
            setattr(child, name, app.value(inherited))


def merge_annotations(child: RamlModel, parent: RamlModel, app: Application) -> None:
    for key, value in parent.annotations.items():
        if key not in child.annotations:
            child.annotations[key] = app.value(value)


def _target_key(
    raw_key: str, children: Mapping[str, Any], app: Application
) -> Optional[str]:
    key = app.text(None, raw_key) or raw_key
    if key.endswith(ESCAPED_OPTIONAL):
        return key[: -len(ESCAPED_OPTIONAL)] + OPTIONAL
    if key.endswith(OPTIONAL):
        base = key[: -len(OPTIONAL)]
        if base in children:
            return base
        if key in children:
            return key
        return None
    return key


def merge_mapping(
    children: dict[str, M],
    parents: Mapping[str, M],
    app: Application,
    merge: Callable[[M, M, Application], None],
    create: Callable[[str], M],
) -> None:
    """Additively merge a mapping of parent entries into *children*.

    Args:
        children: The child's mapping, updated in place.
        parents: The template's mapping.
        app: Substitution context.
        merge: Field-wise merge of one parent entry into one child entry.
        create: Factory for a fresh child entry under a given key.
    """
    for raw_key, parent in parents.items():
        key = _target_key(raw_key, children, app)
        if key is None:
            continue
        entry = children.get(key)
        if entry is None:
            entry = create(key)
            children[key] = entry
        merge(entry, parent, app)


def append_missing(children: list[Any], parents: Iterable[Any], key: Callable[[Any], Any]) -> None:
    seen = [key(item) for item in children]
    for item in parents:
        if key(item) not in seen:
            children.append(item)
            seen.append(key(item))


def _choice_name(choice: Optional[DefinitionChoice]) -> Optional[str]:
    return choice.name if choice is not None else None


def copy_choice(
    choice: Optional[DefinitionChoice], app: Application
) -> Optional[DefinitionChoice]:
    if choice is None:
        return None
    return DefinitionChoice(
        name=app.scheme_name(app.text(None, choice.name) or choice.name),
        parameters=app.value(choice.parameters),
    )


# --- Entity merges ---


def merge_parameter(child: NamedParameter, parent: NamedParameter, app: Application) -> None:
    child.type = app.type_name(child.type, parent.type)
    merge_fields(child, parent, app, _PARAMETER_FIELDS)
    merge_annotations(child, parent, app)


def _parameters(
    children: dict[str, NamedParameter],
    parents: Mapping[str, NamedParameter],
    app: Application,
) -> None:
    merge_mapping(children, parents, app, merge_parameter, lambda key: NamedParameter(name=key))


def merge_properties(
    children: dict[str, ShapeValue],
    parents: Mapping[str, ShapeValue],
    app: Application,
) -> None:
    """Add parent properties the child lacks; existing properties are kept."""
    for raw_key, parent in parents.items():
        key = _target_key(raw_key, children, app)
        if key is None or key in children:
            continue
        children[key] = app.qualify(parse_shape(app.value(to_raw(parent))))


def merge_body(child: Body, parent: Body, app: Application) -> None:
    child.type = app.shape(child.type, parent.type)
    child.items = app.shape(child.items, parent.items)
    merge_fields(child, parent, app, ("schema_", "description", "example"))
    merge_properties(child.properties, parent.properties, app)
    _parameters(child.headers, parent.headers, app)
    for key, value in parent.facets.items():
        if key not in child.facets:
            child.facets[key] = app.value(value)
    merge_annotations(child, parent, app)


def merge_bodies(child: Bodies, parent: Bodies, app: Application) -> None:
    if parent.default is not None:
        if child.default is None:
            child.default = Body()
        merge_body(child.default, parent.default, app)
    merge_mapping(child.media_types, parent.media_types, app, merge_body, lambda key: Body())
    merge_annotations(child, parent, app)


def merge_response(child: Response, parent: Response, app: Application) -> None:
    child.description = app.text(child.description, parent.description)
    _parameters(child.headers, parent.headers, app)
    merge_bodies(child.bodies, parent.bodies, app)
    merge_annotations(child, parent, app)


def inherit_method(child: Method, parent: Method, app: Application) -> None:
    """Merge a trait or a resource-type method template into *child*."""
    child.display_name = app.text(child.display_name, parent.display_name)
    child.description = app.text(child.description, parent.description)
    _parameters(child.query_parameters, parent.query_parameters, app)
    _parameters(child.headers, parent.headers, app)
    child.query_string = app.shape(child.query_string, parent.query_string)
    merge_mapping(
        child.responses,
        parent.responses,
        app,
        merge_response,
        lambda key: Response(code=key),
    )
    merge_bodies(child.bodies, parent.bodies, app)
    append_missing(child.protocols, parent.protocols, key=lambda protocol: protocol)
    append_missing(
        child.secured_by,
        [copy_choice(choice, app) for choice in parent.secured_by],
        key=_choice_name,
    )
    merge_annotations(child, parent, app)


def inherit_resource(resource: Resource, parent: ResourceType, app: Application) -> None:
    """Merge the resource-level fields of a resource type into *resource*."""
    resource.description = app.text(resource.description, parent.description)
    resource.display_name = app.text(resource.display_name, parent.display_name)
    _parameters(resource.uri_parameters, parent.uri_parameters, app)
    append_missing(
        resource.secured_by,
        [copy_choice(choice, app) for choice in parent.secured_by],
        key=_choice_name,
    )
    merge_annotations(resource, parent, app)

"""Canonical Pydantic models shared across all ramlkit modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`FetchConfig`, :class:`OutputConfig` and :class:`GlobalConfig`.

**Document models** -- produced by the RAML parser and consumed by the
resolution engine and the CLI:
    :class:`HTTPMethod`, :class:`NamedParameter`, :class:`DefinitionChoice`,
    :class:`Body`, :class:`Bodies`, :class:`Response`, :class:`Method`,
    :class:`Trait`, :class:`ResourceType`, :class:`Resource`,
    :class:`TypeDeclaration`, :class:`SecurityScheme`, :class:`Library`,
    :class:`APIDefinition` and the read-only :class:`Property` view.

Document models share :class:`RamlModel`, which adapts raw YAML nodes before
validation: a null node is an empty mapping, keys are stringified, annotation
keys ``(name)`` are collected into ``annotations``, and a null value for a
collection field falls back to the empty collection. Fields use the RAML
camelCase spelling as their alias, so ``model_dump(by_alias=True)`` yields a
document that reads like the source.
"""

from __future__ import annotations

import enum
import re
import weakref
from collections.abc import Iterator, Mapping
from typing import Annotated, Any, ClassVar, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StringConstraints,
    model_validator,
)

from ramlkit.shapes import (
    ArrayShape,
    InlineShape,
    OptionalShapeField,
    ReferenceShape,
    ScalarShape,
    ShapeField,
    ShapeValue,
    parse_shape,
    render_shape,
)

_ANNOTATION_KEY = re.compile(r"^\(.*\)$")

# Template values awaiting ``<<parameter>>`` substitution.
PlaceholderText = Annotated[str, StringConstraints(pattern=r"(?s)^.*<<[^<>]+>>")]
TemplatedInt = Union[int, PlaceholderText]
TemplatedFloat = Union[float, PlaceholderText]
TemplatedBool = Union[bool, PlaceholderText]


# --- Configuration ---


class FetchConfig(BaseModel):
    """Settings for reading documents from disk or over HTTP."""

    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/ramlkit/config.json``.

    Fields here have the lowest precedence and can be overridden by the
    project config, environment variables, or CLI flags. See
    :func:`~ramlkit.config.resolve_config` for the full precedence chain.
    """

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Document base ---


def _key(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RamlModel(BaseModel):
    """Base class for every document entity.

    Subclasses customise raw-node handling through two hooks:

    * ``_from_scalar(value)`` -- called for a non-mapping node (for example
      the ``header: string`` shorthand). Returns the mapping to validate.
    * ``_restructure(node)`` -- called with the key-normalised mapping; may
      move keys around (verbs into ``methods``, ``/path`` keys into
      ``nested``) before field validation.

    ``collect_facets`` moves keys that are not declared fields into the
    ``facets`` field instead of dropping them. ``key_field`` names the field
    that is filled from the owning mapping's key (``name``, ``code``,
    ``uri``) after the parent is validated.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    collect_facets: ClassVar[bool] = False
    key_field: ClassVar[Optional[str]] = None

    annotations: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Any:
        if isinstance(data, BaseModel):
            return data
        if data is None:
            data = {}
        elif not isinstance(data, Mapping):
            data = cls._from_scalar(data)
            if not isinstance(data, Mapping):
                return data

        node: dict[str, Any] = {}
        annotations = _mapping(data.get("annotations"), "annotations")
        for raw_key, value in data.items():
            key = _key(raw_key)
            if _ANNOTATION_KEY.match(key):
                annotations[key[1:-1]] = value
            elif key != "annotations":
                node[key] = value
        node["annotations"] = annotations
        node = cls._restructure(node)

        known: set[str] = set()
        for name, info in cls.model_fields.items():
            known.add(name)
            if info.alias:
                known.add(info.alias)
            # A bare ``headers:`` means no headers, not an invalid value.
            if info.default_factory is not None:
                for spelling in (name, info.alias):
                    if spelling and spelling in node and node[spelling] is None:
                        del node[spelling]

        if cls.collect_facets:
            facets = _mapping(node.pop("facets", None), "facets")
            for key in [k for k in node if k not in known]:
                facets[key] = node.pop(key)
            node["facets"] = facets
        return node

    @model_validator(mode="after")
    def _adopt_keys(self) -> RamlModel:
        for name in type(self).model_fields:
            value = getattr(self, name)
            if not isinstance(value, dict):
                continue
            for key, member in value.items():
                if isinstance(member, RamlModel) and member.key_field:
                    if not getattr(member, member.key_field):
                        setattr(member, member.key_field, member._key_value(key))
        return self

    @classmethod
    def _from_scalar(cls, value: Any) -> Any:
        return value

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        return node

    @staticmethod
    def _key_value(key: str) -> str:
        return key


def _mapping(value: Any, key: str) -> dict[str, Any]:
    """Copy a mapping-valued node; a null node is an empty mapping."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{key} must be a mapping, got {type(value).__name__}")
    return dict(value)


def _listify(node: dict[str, Any], *keys: str) -> None:
    """Wrap single ``is`` / ``securedBy`` / ``protocols`` values in a list."""
    for key in keys:
        value = node.get(key)
        if isinstance(value, (str, Mapping)):
            node[key] = [value]


def _stringify_codes(node: dict[str, Any]) -> None:
    responses = node.get("responses")
    if isinstance(responses, Mapping):
        node["responses"] = {_key(code): value for code, value in responses.items()}


# --- Parser output: enums ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods a RAML resource may declare."""

    GET = "get"
    PATCH = "patch"
    PUT = "put"
    HEAD = "head"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"


VERBS = frozenset(m.value for m in HTTPMethod)


# --- Parser output: parameters and references ---


class NamedParameter(RamlModel):
    """A header, query parameter, URI parameter or base URI parameter.

    A scalar node is the type shorthand: ``X-Request-Id: string``.
    """

    key_field: ClassVar[Optional[str]] = "name"

    name: str = ""
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    type: Optional[str] = None
    enum: Optional[list[Any]] = None
    pattern: Optional[str] = None
    min_length: Optional[TemplatedInt] = Field(default=None, alias="minLength")
    max_length: Optional[TemplatedInt] = Field(default=None, alias="maxLength")
    minimum: Optional[TemplatedFloat] = None
    maximum: Optional[TemplatedFloat] = None
    format: Optional[str] = None
    example: Any = None
    default: Any = None
    repeat: Optional[TemplatedBool] = None
    required: Optional[TemplatedBool] = None
    items: Any = None

    @classmethod
    def _from_scalar(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"type": value}
        return value

    @property
    def is_required(self) -> bool:
        return self.required is not False


class DefinitionChoice(RamlModel):
    """A reference to a trait, resource type or security scheme.

    Accepts both ``is: [paged]`` and the parameterised form
    ``is: [{paged: {size: 10}}]``.
    """

    name: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def _from_scalar(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"name": value}
        return value

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        keys = [k for k in node if k != "annotations"]
        if len(keys) == 1 and keys[0] not in ("name", "parameters"):
            name = keys[0]
            return {
                "name": name,
                "parameters": node[name],
                "annotations": node["annotations"],
            }
        return node


class Documentation(RamlModel):
    title: str = ""
    content: str = ""


# --- Parser output: bodies ---


class Body(RamlModel):
    """A request or response body for one media type.

    Keys that are not modelled explicitly (``minProperties``,
    ``discriminator``, ``examples`` ...) are kept in ``facets``.
    """

    collect_facets: ClassVar[bool] = True

    type: OptionalShapeField = None
    items: OptionalShapeField = None
    properties: dict[str, ShapeField] = Field(default_factory=dict)
    schema_: Optional[str] = Field(default=None, alias="schema")
    description: Optional[str] = None
    example: Any = None
    headers: dict[str, NamedParameter] = Field(default_factory=dict)
    facets: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def _from_scalar(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"type": value}
        return value

    def type_string(self) -> str:
        if self.type is None:
            return "object" if self.properties else ""
        return render_shape(self.type)

    def property(self, name: str) -> Property:
        """Return the :class:`Property` view of one declared property.

        ``name`` may be given with or without the optional ``?`` marker.

        Raises:
            KeyError: If the body declares no such property.
        """
        for key in (name, name + "?", name.rstrip("?")):
            if key in self.properties:
                return to_property(key, self.properties[key])
        raise KeyError(name)

    def iter_properties(self) -> Iterator[Property]:
        for key, value in self.properties.items():
            yield to_property(key, value)


class Bodies(RamlModel):
    """The ``body`` of a method or response.

    RAML allows either a flat body (``body: {type: Person}``) that applies
    to the default media type, or a mapping of media types to bodies. The
    flat form lands in ``default``, the keyed form in ``media_types``.
    """

    default: Optional[Body] = None
    media_types: dict[str, Body] = Field(default_factory=dict)

    @classmethod
    def _from_scalar(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"default": {"type": value}}
        return value

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        keys = set(node) - {"annotations"}
        if keys and keys <= {"default", "media_types"}:
            return node
        result: dict[str, Any] = {"annotations": node.pop("annotations")}
        media = {k: v for k, v in node.items() if "/" in k}
        flat = {k: v for k, v in node.items() if "/" not in k}
        if media:
            result["media_types"] = media
        if flat:
            result["default"] = flat
        return result

    def is_empty(self) -> bool:
        return self.default is None and not self.media_types

    def for_media_type(self, media_type: str) -> Optional[Body]:
        return self.media_types.get(media_type)

    @property
    def application_json(self) -> Optional[Body]:
        return self.media_types.get("application/json")

    def all_bodies(self) -> Iterator[Body]:
        if self.default is not None:
            yield self.default
        yield from self.media_types.values()


class Response(RamlModel):
    key_field: ClassVar[Optional[str]] = "code"

    code: str = ""
    description: Optional[str] = None
    headers: dict[str, NamedParameter] = Field(default_factory=dict)
    bodies: Bodies = Field(default_factory=Bodies, alias="body")


# --- Parser output: methods and templates ---


class Method(RamlModel):
    """One HTTP method of a resource (or of a resource type template)."""

    key_field: ClassVar[Optional[str]] = "name"

    name: str = ""
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    query_parameters: dict[str, NamedParameter] = Field(
        default_factory=dict, alias="queryParameters"
    )
    headers: dict[str, NamedParameter] = Field(default_factory=dict)
    query_string: OptionalShapeField = Field(default=None, alias="queryString")
    responses: dict[str, Response] = Field(default_factory=dict)
    bodies: Bodies = Field(default_factory=Bodies, alias="body")
    protocols: list[str] = Field(default_factory=list)
    is_: list[DefinitionChoice] = Field(default_factory=list, alias="is")
    secured_by: list[Optional[DefinitionChoice]] = Field(
        default_factory=list, alias="securedBy"
    )

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        _listify(node, "is", "securedBy", "protocols")
        _stringify_codes(node)
        return node

    @staticmethod
    def _key_value(key: str) -> str:
        return key.rstrip("?").upper()


class Trait(Method):
    """A reusable method fragment applied through ``is:``."""

    usage: Optional[str] = None

    @staticmethod
    def _key_value(key: str) -> str:
        return key


class ResourceType(RamlModel):
    """A reusable resource template applied through ``type:``.

    Methods keyed ``get?`` are optional: they apply only when the resource
    itself declares that verb, and are kept in ``optional_methods``.
    """

    key_field: ClassVar[Optional[str]] = "name"

    name: str = ""
    usage: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    uri_parameters: dict[str, NamedParameter] = Field(
        default_factory=dict, alias="uriParameters"
    )
    is_: list[DefinitionChoice] = Field(default_factory=list, alias="is")
    secured_by: list[Optional[DefinitionChoice]] = Field(
        default_factory=list, alias="securedBy"
    )
    methods: dict[str, Method] = Field(default_factory=dict)
    optional_methods: dict[str, Method] = Field(default_factory=dict)

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        _listify(node, "is", "securedBy")
        methods = _mapping(node.pop("methods", None), "methods")
        optional = _mapping(node.pop("optional_methods", None), "optional_methods")
        for key in list(node):
            if key in VERBS:
                methods[key] = node.pop(key) or {}
            elif key.endswith("?") and key[:-1] in VERBS:
                optional[key[:-1]] = node.pop(key) or {}
        node["methods"] = methods
        node["optional_methods"] = optional
        return node


# --- Parser output: resources ---


class Resource(RamlModel):
    """A node of the resource tree.

    ``nested`` owns the child resources; each child keeps a weak reference
    back to its parent, reachable through :attr:`parent`.
    """

    key_field: ClassVar[Optional[str]] = "uri"

    uri: str = ""
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    methods: dict[str, Method] = Field(default_factory=dict)
    is_: list[DefinitionChoice] = Field(default_factory=list, alias="is")
    type: Optional[DefinitionChoice] = None
    secured_by: list[Optional[DefinitionChoice]] = Field(
        default_factory=list, alias="securedBy"
    )
    uri_parameters: dict[str, NamedParameter] = Field(
        default_factory=dict, alias="uriParameters"
    )
    nested: dict[str, Resource] = Field(default_factory=dict)

    _parent: Optional[weakref.ReferenceType[Resource]] = PrivateAttr(default=None)

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        _listify(node, "is", "securedBy")
        methods = _mapping(node.pop("methods", None), "methods")
        nested = _mapping(node.pop("nested", None), "nested")
        for key in list(node):
            if key in VERBS:
                methods[key] = node.pop(key) or {}
            elif key.startswith("/"):
                nested[key] = node.pop(key) or {}
        node["methods"] = methods
        node["nested"] = nested
        return node

    @model_validator(mode="after")
    def _link_children(self) -> Resource:
        for child in self.nested.values():
            child._parent = weakref.ref(self)
        return self

    @property
    def parent(self) -> Optional[Resource]:
        return self._parent() if self._parent is not None else None

    def full_uri(self) -> str:
        """Return the concatenated relative URIs from the root down to here."""
        parent = self.parent
        prefix = parent.full_uri() if parent is not None else ""
        return prefix + self.uri

    def resource_path_name(self) -> str:
        """Return the rightmost URI segment that is not a ``{parameter}``.

        Segments of ancestors are considered when this resource's own URI
        contains only parameters; returns ``""`` when none qualifies.
        """
        resource: Optional[Resource] = self
        while resource is not None:
            for segment in reversed(resource.uri.split("/")):
                if segment and not segment.endswith("}"):
                    return segment
            resource = resource.parent
        return ""

    def method(self, verb: str) -> Optional[Method]:
        return self.methods.get(verb.lower())

    def iter_resources(self) -> Iterator[Resource]:
        """Yield this resource and all its descendants, depth-first."""
        yield self
        for child in self.nested.values():
            yield from child.iter_resources()


# --- Parser output: declarations ---


class TypeDeclaration(RamlModel):
    """A named entry of ``types:`` (or the legacy ``schemas:``)."""

    collect_facets: ClassVar[bool] = True
    key_field: ClassVar[Optional[str]] = "name"

    name: str = ""
    type: OptionalShapeField = None
    properties: dict[str, ShapeField] = Field(default_factory=dict)
    items: OptionalShapeField = None
    description: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    example: Any = None
    examples: Any = None
    enum: Optional[list[Any]] = None
    facets: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def _from_scalar(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"type": value}
        return value

    def type_string(self) -> str:
        if self.type is None:
            return "object" if self.properties else "string"
        return render_shape(self.type)

    def property(self, name: str) -> Property:
        for key in (name, name + "?", name.rstrip("?")):
            if key in self.properties:
                return to_property(key, self.properties[key])
        raise KeyError(name)

    def iter_properties(self) -> Iterator[Property]:
        for key, value in self.properties.items():
            yield to_property(key, value)


class DescribedBy(RamlModel):
    headers: dict[str, NamedParameter] = Field(default_factory=dict)
    query_parameters: dict[str, NamedParameter] = Field(
        default_factory=dict, alias="queryParameters"
    )
    query_string: OptionalShapeField = Field(default=None, alias="queryString")
    responses: dict[str, Response] = Field(default_factory=dict)

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        _stringify_codes(node)
        return node


class SecurityScheme(RamlModel):
    """An entry of ``securitySchemes:``."""

    key_field: ClassVar[Optional[str]] = "name"

    name: str = ""
    type: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    described_by: DescribedBy = Field(default_factory=DescribedBy, alias="describedBy")
    settings: dict[str, Any] = Field(default_factory=dict)


class Declarations(RamlModel):
    """Declarations shared by root documents and libraries."""

    types: dict[str, TypeDeclaration] = Field(default_factory=dict)
    traits: dict[str, Trait] = Field(default_factory=dict)
    resource_types: dict[str, ResourceType] = Field(
        default_factory=dict, alias="resourceTypes"
    )
    annotation_types: dict[str, Any] = Field(
        default_factory=dict, alias="annotationTypes"
    )
    security_schemes: dict[str, SecurityScheme] = Field(
        default_factory=dict, alias="securitySchemes"
    )
    uses: dict[str, str] = Field(default_factory=dict)
    libraries: dict[str, Library] = Field(default_factory=dict)
    location: str = ""


class Library(Declarations):
    """A RAML library (``#%RAML 1.0 Library``) imported through ``uses:``."""

    usage: Optional[str] = None


class APIDefinition(Declarations):
    """The fully parsed (and, after resolution, fully resolved) root document.

    Example::

        api = parse_file("api.raml")
        for resource in api.iter_resources():
            print(resource.full_uri(), sorted(resource.methods))
    """

    title: str = ""
    version: Optional[str] = None
    base_uri: Optional[str] = Field(default=None, alias="baseUri")
    base_uri_parameters: dict[str, NamedParameter] = Field(
        default_factory=dict, alias="baseUriParameters"
    )
    protocols: list[str] = Field(default_factory=list)
    media_type: list[str] = Field(default_factory=list, alias="mediaType")
    documentation: list[Documentation] = Field(default_factory=list)
    schemas: Any = None
    secured_by: list[Optional[DefinitionChoice]] = Field(
        default_factory=list, alias="securedBy"
    )
    resources: dict[str, Resource] = Field(default_factory=dict)
    raml_version: str = ""

    @classmethod
    def _restructure(cls, node: dict[str, Any]) -> dict[str, Any]:
        _listify(node, "securedBy", "protocols")
        if isinstance(node.get("mediaType"), str):
            node["mediaType"] = [node["mediaType"]]
        resources = _mapping(node.pop("resources", None), "resources")
        for key in list(node):
            if key.startswith("/"):
                resources[key] = node.pop(key) or {}
        node["resources"] = resources
        return node

    def iter_resources(self) -> Iterator[Resource]:
        """Yield every resource of the tree, depth-first in declaration order."""
        for resource in self.resources.values():
            yield from resource.iter_resources()

    def resource(self, path: str) -> Optional[Resource]:
        """Return the resource whose :meth:`Resource.full_uri` is *path*."""
        for resource in self.iter_resources():
            if resource.full_uri() == path:
                return resource
        return None


# --- Property view ---


class Property(BaseModel):
    """Read-only view of one property of a body or a type declaration.

    Built by :func:`to_property`. The raw shape is kept in ``shape`` so that
    nested inline objects remain reachable.
    """

    name: str
    type: ShapeValue
    shape: ShapeValue
    required: bool = True
    enum: Optional[list[Any]] = None
    description: Optional[str] = None
    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    multiple_of: Optional[float] = None
    format: Optional[str] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: bool = False
    items: Optional[ShapeValue] = None

    def type_string(self) -> str:
        return render_shape(self.type)

    def is_array(self) -> bool:
        if isinstance(self.type, ArrayShape):
            return True
        return isinstance(self.type, ScalarShape) and self.type.value == "array"

    def is_union(self) -> bool:
        return isinstance(self.type, ReferenceShape) and self.type.is_union

    def is_enum(self) -> bool:
        return bool(self.enum)

    def array_type(self) -> str:
        """Return the element type of an array property, ``""`` otherwise."""
        if isinstance(self.type, ArrayShape):
            return render_shape(self.type.items)
        if self.is_array():
            return render_shape(self.items) if self.items is not None else "any"
        return ""

    def is_bidimensional_array(self) -> bool:
        return isinstance(self.type, ArrayShape) and isinstance(
            self.type.items, ArrayShape
        )


def to_property(name: str, value: Any) -> Property:
    """Build a :class:`Property` from a property key and its raw or parsed shape.

    A trailing ``?`` on the key marks the property optional; an explicit
    ``required`` facet takes precedence over the marker.
    """
    shape = parse_shape(value)
    required = True
    if name.endswith("?"):
        name = name[:-1]
        required = False

    if not isinstance(shape, InlineShape):
        return Property(name=name, type=shape, shape=shape, required=required)

    facets = shape.facets
    if shape.type is not None:
        type_ = shape.type
    else:
        type_ = ScalarShape(value="object" if shape.properties else "string")
    if facets.get("required") is not None:
        required = facets["required"]
    return Property(
        name=name,
        type=type_,
        shape=shape,
        required=required,
        enum=facets.get("enum"),
        description=facets.get("description"),
        pattern=facets.get("pattern"),
        min_length=facets.get("minLength"),
        max_length=facets.get("maxLength"),
        minimum=facets.get("minimum"),
        maximum=facets.get("maximum"),
        multiple_of=facets.get("multipleOf"),
        format=facets.get("format"),
        min_items=facets.get("minItems"),
        max_items=facets.get("maxItems"),
        unique_items=facets.get("uniqueItems") or False,
        items=shape.items,
    )


Declarations.model_rebuild()
Library.model_rebuild()
APIDefinition.model_rebuild()

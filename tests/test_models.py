"""Tests for ramlkit.models -- raw node adaptation and model helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ramlkit.models import (
    APIDefinition,
    Bodies,
    Body,
    DefinitionChoice,
    GlobalConfig,
    Method,
    NamedParameter,
    Resource,
    ResourceType,
    SecurityScheme,
    Trait,
    TypeDeclaration,
    to_property,
)
from ramlkit.shapes import ArrayShape, ReferenceShape, ScalarShape


# ------------------------------------------------------------------ #
# RamlModel node handling
# ------------------------------------------------------------------ #


class TestRawNodes:
    """Test how raw YAML nodes are adapted before validation."""

    def test_null_collections_become_empty(self) -> None:
        method = Method.model_validate({"headers": None, "queryParameters": None, "responses": None})
        assert method.headers == {}
        assert method.query_parameters == {}
        assert method.responses == {}

    def test_null_node_is_empty_model(self) -> None:
        assert Method.model_validate(None).description is None

    def test_annotations_collected(self) -> None:
        method = Method.model_validate({"(internal)": True, "description": "x"})
        assert method.annotations == {"internal": True}
        assert method.description == "x"

    def test_numeric_response_codes_become_strings(self) -> None:
        method = Method.model_validate({"responses": {200: {}, 404: {"description": "Nope"}}})
        assert list(method.responses) == ["200", "404"]
        assert method.responses["404"].code == "404"

    def test_keys_fill_names(self) -> None:
        api = APIDefinition.model_validate({
            "types": {"Person": {}},
            "traits": {"paged": {}},
            "resourceTypes": {"collection": {"get?": {}}},
            "securitySchemes": {"oauth": {"type": "OAuth 2.0"}},
            "/users": {"get": {"queryParameters": {"page": "integer"}}},
        })
        assert api.types["Person"].name == "Person"
        assert api.traits["paged"].name == "paged"
        assert api.resource_types["collection"].name == "collection"
        assert api.security_schemes["oauth"].name == "oauth"

        users = api.resources["/users"]
        assert users.uri == "/users"
        assert users.method("GET").name == "GET"
        assert users.method("get").query_parameters["page"].name == "page"

    def test_single_values_listified(self) -> None:
        method = Method.model_validate({"is": "paged", "securedBy": "oauth", "protocols": "HTTPS"})
        assert method.is_ == [DefinitionChoice(name="paged")]
        assert method.secured_by == [DefinitionChoice(name="oauth")]
        assert method.protocols == ["HTTPS"]

    def test_populate_by_name(self) -> None:
        method = Method(query_parameters={"q": "string"}, display_name="Find")
        assert method.query_parameters["q"].type == "string"
        assert method.display_name == "Find"

    def test_wrong_node_kind_raises(self) -> None:
        with pytest.raises(ValidationError):
            Method.model_validate({"queryParameters": ["page"]})

    @pytest.mark.parametrize(
        ("model", "node"),
        [
            (Method, {"annotations": "internal"}),
            (Resource, {"nested": 5}),
            (Resource, {"methods": ["get"]}),
            (ResourceType, {"optional_methods": "get"}),
            (APIDefinition, {"title": "API", "resources": 3}),
        ],
    )
    def test_scalar_in_mapping_slot_raises(self, model: type, node: dict) -> None:
        with pytest.raises(ValidationError, match="must be a mapping"):
            model.model_validate(node)


# ------------------------------------------------------------------ #
# Parameters and references
# ------------------------------------------------------------------ #


class TestNamedParameter:
    def test_shorthand(self) -> None:
        parameter = NamedParameter.model_validate("integer")
        assert parameter.type == "integer"
        assert parameter.is_required

    def test_not_required(self) -> None:
        parameter = NamedParameter.model_validate({"required": False})
        assert not parameter.is_required

    def test_aliases(self) -> None:
        parameter = NamedParameter.model_validate({"minLength": 2, "maxLength": 5, "displayName": "Q"})
        assert (parameter.min_length, parameter.max_length, parameter.display_name) == (2, 5, "Q")

    def test_template_placeholders_in_typed_facets(self) -> None:
        parameter = NamedParameter.model_validate(
            {"maximum": "<<max>>", "minLength": "<<min>>", "required": "<<req>>"}
        )
        assert parameter.maximum == "<<max>>"
        assert parameter.min_length == "<<min>>"
        assert parameter.required == "<<req>>"

    def test_numeric_strings_are_coerced(self) -> None:
        parameter = NamedParameter.model_validate({"maximum": "50", "repeat": "false"})
        assert parameter.maximum == 50
        assert parameter.repeat is False

    def test_text_without_placeholder_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NamedParameter.model_validate({"maximum": "lots"})


class TestDefinitionChoice:
    def test_bare_name(self) -> None:
        choice = DefinitionChoice.model_validate("paged")
        assert choice.name == "paged"
        assert choice.parameters == {}

    def test_parameterised(self) -> None:
        choice = DefinitionChoice.model_validate({"collection": {"item": "User"}})
        assert choice.name == "collection"
        assert choice.parameters == {"item": "User"}

    def test_parameterised_without_values(self) -> None:
        choice = DefinitionChoice.model_validate({"collection": None})
        assert choice.parameters == {}


# ------------------------------------------------------------------ #
# Bodies
# ------------------------------------------------------------------ #


class TestBodies:
    def test_media_type_keys(self) -> None:
        bodies = Bodies.model_validate({"application/json": {"type": "Person"}, "text/xml": None})
        assert bodies.default is None
        assert set(bodies.media_types) == {"application/json", "text/xml"}
        assert bodies.application_json.type == ReferenceShape(name="Person")
        assert bodies.for_media_type("text/xml") is not None

    def test_flat_body(self) -> None:
        bodies = Bodies.model_validate({"type": "Person", "description": "A person"})
        assert bodies.default.description == "A person"
        assert bodies.media_types == {}

    def test_type_shorthand(self) -> None:
        bodies = Bodies.model_validate("Person")
        assert bodies.default.type_string() == "Person"

    def test_empty(self) -> None:
        assert Bodies().is_empty()
        assert list(Bodies().all_bodies()) == []

    def test_unknown_keys_become_facets(self) -> None:
        body = Body.model_validate({"type": "object", "minProperties": 1, "schema": "{}"})
        assert body.facets == {"minProperties": 1}
        assert body.schema_ == "{}"

    def test_body_properties(self) -> None:
        body = Body.model_validate({"properties": {"id": "integer", "nick?": "string"}})
        assert body.type_string() == "object"
        assert [p.name for p in body.iter_properties()] == ["id", "nick"]
        assert body.property("nick").required is False
        with pytest.raises(KeyError):
            body.property("missing")


# ------------------------------------------------------------------ #
# Templates and resources
# ------------------------------------------------------------------ #


class TestResourceType:
    def test_optional_methods(self) -> None:
        resource_type = ResourceType.model_validate({"get": None, "delete?": {"description": "x"}})
        assert set(resource_type.methods) == {"get"}
        assert set(resource_type.optional_methods) == {"delete"}
        assert resource_type.optional_methods["delete"].name == "DELETE"

    def test_trait_keeps_its_name(self) -> None:
        api = APIDefinition.model_validate({"traits": {"secured": {"usage": "Apply to writes"}}})
        trait = api.traits["secured"]
        assert isinstance(trait, Trait)
        assert trait.name == "secured"
        assert trait.usage == "Apply to writes"


class TestResource:
    @pytest.fixture
    def api(self) -> APIDefinition:
        return APIDefinition.model_validate({
            "title": "API",
            "/orgs/{orgId}": {
                "/members": {"/{memberId}": {"get": None}},
            },
            "/{tenant}": {},
        })

    def test_full_uri(self, api: APIDefinition) -> None:
        paths = [r.full_uri() for r in api.iter_resources()]
        assert paths == ["/orgs/{orgId}", "/orgs/{orgId}/members", "/orgs/{orgId}/members/{memberId}", "/{tenant}"]

    def test_parent_links(self, api: APIDefinition) -> None:
        member = api.resource("/orgs/{orgId}/members/{memberId}")
        assert member.parent.uri == "/members"
        assert member.parent.parent.uri == "/orgs/{orgId}"
        assert member.parent.parent.parent is None

    def test_resource_path_name(self, api: APIDefinition) -> None:
        assert api.resource("/orgs/{orgId}").resource_path_name() == "orgs"
        assert api.resource("/orgs/{orgId}/members/{memberId}").resource_path_name() == "members"
        assert api.resource("/{tenant}").resource_path_name() == ""

    def test_resource_lookup_misses(self, api: APIDefinition) -> None:
        assert api.resource("/nothing") is None

    def test_method_lookup_is_case_insensitive(self, api: APIDefinition) -> None:
        member = api.resource("/orgs/{orgId}/members/{memberId}")
        assert member.method("GET") is member.method("get")
        assert member.method("post") is None

    def test_standalone_resource(self) -> None:
        resource = Resource.model_validate({"type": {"collection": {"item": "User"}}, "is": ["paged"]})
        assert resource.type == DefinitionChoice(name="collection", parameters={"item": "User"})
        assert resource.is_ == [DefinitionChoice(name="paged")]


# ------------------------------------------------------------------ #
# Declarations and property views
# ------------------------------------------------------------------ #


class TestApiDefinition:
    def test_media_type_string_becomes_list(self) -> None:
        api = APIDefinition.model_validate({"title": "API", "mediaType": "application/json"})
        assert api.media_type == ["application/json"]

    def test_security_scheme(self) -> None:
        scheme = SecurityScheme.model_validate({
            "type": "OAuth 2.0",
            "describedBy": {"headers": {"Authorization": "string"}, "responses": {401: {}}},
            "settings": {"scopes": ["read"]},
        })
        assert scheme.described_by.headers["Authorization"].type == "string"
        assert list(scheme.described_by.responses) == ["401"]
        assert scheme.settings == {"scopes": ["read"]}


class TestProperty:
    def test_type_declaration_properties(self) -> None:
        declaration = TypeDeclaration.model_validate({
            "properties": {
                "id": "integer",
                "kind": {"enum": ["a", "b"]},
                "tags": "string[]",
                "grid": "number[][]",
                "owner": "Person | Team",
                "nick?": {"type": "string", "required": True},
                "items": {"type": "array", "items": "Person", "uniqueItems": True},
            },
            "discriminator": "kind",
        })
        assert declaration.facets == {"discriminator": "kind"}
        assert declaration.type_string() == "object"

        assert declaration.property("id").type == ScalarShape(value="integer")
        assert declaration.property("kind").is_enum()
        assert declaration.property("kind").type_string() == "string"
        assert declaration.property("tags").array_type() == "string"
        assert declaration.property("grid").is_bidimensional_array()
        assert declaration.property("owner").is_union()
        assert declaration.property("nick").required is True

        items = declaration.property("items")
        assert items.is_array()
        assert items.array_type() == "Person"
        assert items.unique_items is True

    def test_to_property_optional_marker(self) -> None:
        prop = to_property("email?", "string")
        assert prop.name == "email"
        assert prop.required is False
        assert prop.type_string() == "string"

    def test_to_property_substituted_required_text(self) -> None:
        assert to_property("nick", {"type": "string", "required": "false"}).required is False
        assert to_property("nick?", {"type": "string", "required": "true"}).required is True

    def test_to_property_array_shape(self) -> None:
        prop = to_property("list", ArrayShape(items=ReferenceShape(name="Item")))
        assert prop.is_array()
        assert prop.array_type() == "Item"


class TestGlobalConfig:
    def test_defaults(self) -> None:
        config = GlobalConfig()
        assert config.fetch.timeout == 30.0
        assert config.fetch.follow_redirects is True
        assert config.fetch.verify_ssl is True
        assert config.output.format == "auto"

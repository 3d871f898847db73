"""Tests for ramlkit.parser.inheritance -- merging templates into resources."""

from __future__ import annotations

import pytest

from ramlkit.models import (
    APIDefinition,
    Body,
    DefinitionChoice,
    Method,
    NamedParameter,
    ResourceType,
    Trait,
)
from ramlkit.parser.inheritance import (
    Application,
    append_missing,
    copy_choice,
    inherit_method,
    inherit_resource,
    merge_body,
    merge_properties,
)
from ramlkit.shapes import ArrayShape, ReferenceShape, ScalarShape, parse_shape, render_shape

USERS = {"resourcePathName": "users", "resourcePath": "/users", "methodName": "get"}


def _trait(data: dict) -> Trait:
    return Trait.model_validate(data)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


class TestApplication:
    """Test substitution and library qualification of one application."""

    def test_text_child_wins(self) -> None:
        app = Application(USERS)
        assert app.text("Custom", "<<resourcePathName>> list") == "Custom"
        assert app.text(None, "<<resourcePathName>> list") == "users list"

    def test_shape_child_wins(self) -> None:
        app = Application({"item": "User"})
        child = ReferenceShape(name="Admin")
        assert app.shape(child, parse_shape("<<item>>")) is child

    def test_shape_expands_parent(self) -> None:
        app = Application({"item": "User"})
        shape = app.shape(None, parse_shape("<<item>>[]"))
        assert isinstance(shape, ArrayShape)
        assert render_shape(shape) == "User[]"

    def test_qualify_library_type(self) -> None:
        app = Application({}, "common", frozenset({"Error", "Page"}))
        assert render_shape(app.qualify(parse_shape("Error"))) == "common.Error"
        assert render_shape(app.qualify(parse_shape("Page[]"))) == "common.Page[]"
        assert render_shape(app.qualify(parse_shape("Error | string"))) == "common.Error | string"
        assert render_shape(app.qualify(parse_shape("string"))) == "string"
        assert render_shape(app.qualify(parse_shape("Other"))) == "Other"

    def test_qualify_inline_properties(self) -> None:
        app = Application({}, "common", frozenset({"Error"}))
        shape = app.qualify(parse_shape({"properties": {"error": "Error"}}))
        assert render_shape(shape.properties["error"]) == "common.Error"

    def test_root_application_does_not_qualify(self) -> None:
        app = Application({})
        assert render_shape(app.qualify(parse_shape("Error"))) == "Error"

    def test_qualify_rejects_unknown_variant(self) -> None:
        app = Application({}, "common", frozenset())
        with pytest.raises(TypeError):
            app.qualify("Error")  # type: ignore[arg-type]

    def test_type_name_keeps_schema_text(self) -> None:
        app = Application({}, "common", frozenset({"Error"}))
        assert app.type_name(None, '{"type": "object"}') == '{"type": "object"}'
        assert app.type_name(None, "Error") == "common.Error"

    def test_copy_choice_qualifies_library_scheme(self) -> None:
        app = Application({"scope": "read"}, "sec", frozenset(), frozenset({"oauth"}))
        choice = copy_choice(DefinitionChoice(name="oauth", parameters={"scopes": ["<<scope>>"]}), app)
        assert choice == DefinitionChoice(name="sec.oauth", parameters={"scopes": ["read"]})
        assert copy_choice(DefinitionChoice(name="basic"), app).name == "basic"
        assert copy_choice(None, app) is None

    def test_copy_choice_root_scheme_unqualified(self) -> None:
        assert copy_choice(DefinitionChoice(name="oauth"), Application({})).name == "oauth"


# ---------------------------------------------------------------------------
# Methods
# ---------------------------------------------------------------------------


class TestInheritMethod:
    """Test merging a trait or method template into a method."""

    def test_description_substituted(self) -> None:
        method = Method(name="GET")
        inherit_method(method, _trait({"description": "Get all <<resourcePathName>>"}), Application(USERS))
        assert method.description == "Get all users"

    def test_placeholder_facets_take_typed_values(self) -> None:
        method = Method(name="GET")
        trait = _trait({"queryParameters": {"page": {"maximum": "<<max>>", "repeat": "<<many>>"}}})
        inherit_method(method, trait, Application({"max": 20, "many": False}))

        page = method.query_parameters["page"]
        assert page.maximum == 20
        assert page.repeat is False

    def test_child_description_wins(self) -> None:
        method = Method(name="GET", description="Custom")
        inherit_method(method, _trait({"description": "<<resourcePathName>> list"}), Application(USERS))
        assert method.description == "Custom"

    def test_missing_parameters_added(self) -> None:
        method = Method(name="GET")
        trait = _trait({"queryParameters": {"page": {"type": "integer", "description": "Page of <<resourcePathName>>"}}})
        inherit_method(method, trait, Application(USERS))

        page = method.query_parameters["page"]
        assert page.name == "page"
        assert page.type == "integer"
        assert page.description == "Page of users"

    def test_existing_parameter_merged_field_by_field(self) -> None:
        method = Method.model_validate({"queryParameters": {"page": {"maximum": 10}}})
        trait = _trait({"queryParameters": {"page": {"type": "integer", "maximum": 99, "minimum": 1}}})
        inherit_method(method, trait, Application(USERS))

        page = method.query_parameters["page"]
        assert page.type == "integer"
        assert page.maximum == 10
        assert page.minimum == 1

    def test_optional_key_skipped_when_child_lacks_it(self) -> None:
        method = Method(name="GET")
        trait = _trait({"queryParameters": {"size?": {"type": "integer"}}})
        inherit_method(method, trait, Application(USERS))
        assert method.query_parameters == {}

    def test_optional_key_merged_when_child_declares_it(self) -> None:
        method = Method.model_validate({"queryParameters": {"size": {"maximum": 100}}})
        trait = _trait({"queryParameters": {"size?": {"type": "integer"}}})
        inherit_method(method, trait, Application(USERS))

        assert list(method.query_parameters) == ["size"]
        assert method.query_parameters["size"].type == "integer"

    def test_escaped_optional_key_added_literally(self) -> None:
        method = Method(name="GET")
        trait = _trait({"headers": {"X-Trace\\?": "string"}})
        inherit_method(method, trait, Application(USERS))
        assert "X-Trace?" in method.headers

    def test_placeholder_in_key(self) -> None:
        method = Method(name="GET")
        trait = _trait({"headers": {"X-<<resourcePathName | !uppercamelcase>>-Count": "integer"}})
        inherit_method(method, trait, Application(USERS))
        assert "X-Users-Count" in method.headers

    def test_responses_and_bodies_merged(self) -> None:
        method = Method.model_validate({"responses": {200: {"description": "Mine"}}})
        trait = _trait({
            "responses": {
                200: {"description": "Theirs", "body": {"application/json": {"type": "<<item>>"}}},
                404: {"description": "No <<item>>"},
            }
        })
        inherit_method(method, trait, Application({"item": "User"}))

        ok = method.responses["200"]
        assert ok.description == "Mine"
        assert ok.bodies.application_json.type_string() == "User"
        assert method.responses["404"].code == "404"
        assert method.responses["404"].description == "No User"

    def test_protocols_and_security_appended(self) -> None:
        method = Method.model_validate({"protocols": ["HTTPS"], "securedBy": ["oauth"]})
        trait = _trait({"protocols": ["HTTP", "HTTPS"], "securedBy": [None, "oauth"]})
        inherit_method(method, trait, Application({}))

        assert method.protocols == ["HTTPS", "HTTP"]
        assert [c.name if c else None for c in method.secured_by] == ["oauth", None]

    def test_parent_never_modified(self) -> None:
        trait = _trait({
            "description": "Get <<resourcePathName>>",
            "queryParameters": {"page": {"description": "Page of <<resourcePathName>>"}},
        })
        first, second = Method(name="GET"), Method(name="POST")
        inherit_method(first, trait, Application(USERS))
        inherit_method(second, trait, Application({"resourcePathName": "groups"}))

        assert trait.description == "Get <<resourcePathName>>"
        assert trait.query_parameters["page"].description == "Page of <<resourcePathName>>"
        assert first.query_parameters["page"] is not second.query_parameters["page"]
        assert second.description == "Get groups"

    def test_annotations_inherited(self) -> None:
        method = Method(name="GET")
        inherit_method(method, _trait({"(audit)": "<<methodName>>"}), Application(USERS))
        assert method.annotations == {"audit": "get"}


# ---------------------------------------------------------------------------
# Bodies and properties
# ---------------------------------------------------------------------------


class TestMergeBody:
    def test_properties_added_not_replaced(self) -> None:
        child = Body.model_validate({"properties": {"id": "string"}})
        parent = Body.model_validate({"properties": {"id": "integer", "name": "string"}})
        merge_body(child, parent, Application({}))

        assert render_shape(child.properties["id"]) == "string"
        assert render_shape(child.properties["name"]) == "string"

    def test_optional_property_skipped(self) -> None:
        children = {"id": parse_shape("string")}
        merge_properties(children, {"extra?": parse_shape("string")}, Application({}))
        assert list(children) == ["id"]

    def test_facets_copied(self) -> None:
        child = Body()
        merge_body(child, Body.model_validate({"minProperties": 1}), Application({}))
        assert child.facets == {"minProperties": 1}

    def test_type_qualified_from_library(self) -> None:
        child = Body()
        merge_body(child, Body.model_validate({"type": "Error"}), Application({}, "lib", frozenset({"Error"})))
        assert child.type == ReferenceShape(name="lib.Error")


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class TestInheritResource:
    def test_resource_fields_merged(self) -> None:
        api = APIDefinition.model_validate({"/users": {"/{userId}": {}}})
        resource = api.resource("/users/{userId}")
        resource_type = ResourceType.model_validate({
            "description": "One <<resourcePathName | !singularize>>",
            "uriParameters": {"<<resourcePathName | !singularize>>Id": {"type": "string"}},
            "securedBy": ["oauth"],
        })
        inherit_resource(resource, resource_type, Application({"resourcePathName": "users"}))

        assert resource.description == "One user"
        assert resource.uri_parameters["userId"].type == "string"
        assert resource.secured_by == [DefinitionChoice(name="oauth")]


class TestAppendMissing:
    def test_keeps_order_and_skips_duplicates(self) -> None:
        items = ["a", "b"]
        append_missing(items, ["b", "c", "c"], key=lambda item: item)
        assert items == ["a", "b", "c"]


def test_parameter_shorthand_is_type() -> None:
    assert NamedParameter.model_validate("string").type == "string"
    assert isinstance(parse_shape("integer"), ScalarShape)

"""Tests for ramlkit.parser.substitution -- placeholders and inflectors."""

from __future__ import annotations

import pytest

from ramlkit.exceptions import UnknownInflectorError
from ramlkit.exit_codes import EXIT_UNKNOWN_INFLECTOR
from ramlkit.models import APIDefinition
from ramlkit.parser.substitution import (
    METHOD_NAME,
    RESOURCE_PATH,
    RESOURCE_PATH_NAME,
    expand,
    has_placeholder,
    inflect,
    render_value,
    resource_type_dictionary,
    substitute,
    trait_dictionary,
)


# ---------------------------------------------------------------------------
# substitute
# ---------------------------------------------------------------------------


class TestSubstitute:
    """Test merging one child text with one template text."""

    def test_child_without_placeholder_wins(self) -> None:
        result = substitute("Custom", "<<resourcePathName>> list", {"resourcePathName": "users"})
        assert result == "Custom"

    def test_empty_child_takes_template(self) -> None:
        result = substitute("", "<<resourcePathName>> list", {"resourcePathName": "users"})
        assert result == "users list"

    def test_none_child_takes_template(self) -> None:
        assert substitute(None, "Get <<item>>", {"item": "User"}) == "Get User"

    def test_child_with_placeholder_is_replaced(self) -> None:
        result = substitute("<<own>> value", "Get <<item>>", {"item": "User", "own": "x"})
        assert result == "Get User"

    def test_empty_template_keeps_child(self) -> None:
        assert substitute(None, "", {"a": "b"}) is None
        assert substitute("", None, {"a": "b"}) == ""

    def test_unknown_name_left_untouched(self) -> None:
        result = substitute(None, "<<known>> and <<unknown>>", {"known": "yes"})
        assert result == "yes and <<unknown>>"

    def test_inflector_chain_left_to_right(self) -> None:
        template = "Delete a <<resourcePathName | !singularize | !uppercamelcase>>"
        result = substitute("", template, {"resourcePathName": "users"})
        assert result == "Delete a User"

    def test_whitespace_around_parts_is_ignored(self) -> None:
        result = substitute(None, "<<  name|!uppercase  >>", {"name": "id"})
        assert result == "ID"

    def test_substitution_is_idempotent(self) -> None:
        template = "Get all <<resourcePathName>> by <<field | !lowerhyphencase>>"
        dictionary = {"resourcePathName": "users", "field": "createdAt"}
        once = substitute(None, template, dictionary)
        assert substitute(once, template, dictionary) == once
        assert once == "Get all users by created-at"

    def test_boolean_and_numeric_values(self) -> None:
        assert substitute(None, "<<flag>>/<<size>>", {"flag": True, "size": 10}) == "true/10"

    def test_unknown_inflector_raises(self) -> None:
        with pytest.raises(UnknownInflectorError) as exc_info:
            substitute(None, "<<name | !frobnicate>>", {"name": "x"})
        assert exc_info.value.inflector == "!frobnicate"
        assert exc_info.value.exit_code == EXIT_UNKNOWN_INFLECTOR

    def test_unknown_inflector_on_unresolved_name_is_left(self) -> None:
        assert substitute(None, "<<missing | !frobnicate>>", {}) == "<<missing | !frobnicate>>"


# ---------------------------------------------------------------------------
# Inflectors
# ---------------------------------------------------------------------------


class TestInflect:
    @pytest.mark.parametrize(
        ("value", "inflector", "expected"),
        [
            ("users", "!singularize", "user"),
            ("user", "!pluralize", "users"),
            ("userId", "!uppercase", "USERID"),
            ("UserId", "!lowercase", "userid"),
            ("user_id", "!lowercamelcase", "userId"),
            ("user_id", "!uppercamelcase", "UserId"),
            ("userId", "!lowerunderscorecase", "user_id"),
            ("userId", "!upperunderscorecase", "USER_ID"),
            ("userId", "!lowerhyphencase", "user-id"),
            ("userId", "!upperhyphencase", "USER-ID"),
        ],
    )
    def test_known_inflectors(self, value: str, inflector: str, expected: str) -> None:
        assert inflect(value, inflector) == expected

    def test_name_is_case_insensitive_and_bang_optional(self) -> None:
        assert inflect("users", "!SingularIze") == "user"
        assert inflect("users", "singularize") == "user"

    def test_unknown_inflector(self) -> None:
        with pytest.raises(UnknownInflectorError, match="Invalid inflector"):
            inflect("users", "!reverse")


# ---------------------------------------------------------------------------
# expand and helpers
# ---------------------------------------------------------------------------


class TestExpand:
    def test_expands_keys_values_and_lists(self) -> None:
        raw = {"<<name>>Id": {"description": "Id of <<name>>", "enum": ["<<name>>", 1]}}
        result = expand(raw, {"name": "user"})
        assert result == {"userId": {"description": "Id of user", "enum": ["user", 1]}}

    def test_leaves_input_untouched(self) -> None:
        raw = {"type": "<<item>>"}
        expand(raw, {"item": "User"})
        assert raw == {"type": "<<item>>"}

    def test_non_text_values_pass_through(self) -> None:
        assert expand(5, {}) == 5
        assert expand(None, {}) is None
        assert expand("", {"a": "b"}) == ""

    def test_has_placeholder(self) -> None:
        assert has_placeholder("<<a>>")
        assert not has_placeholder("plain")
        assert not has_placeholder(None)

    def test_render_value(self) -> None:
        assert render_value(False) == "false"
        assert render_value(None) == ""
        assert render_value(3.5) == "3.5"


# ---------------------------------------------------------------------------
# Dictionaries
# ---------------------------------------------------------------------------


@pytest.fixture
def user_api() -> APIDefinition:
    return APIDefinition.model_validate(
        {"title": "API", "/users": {"/{userId}": {"get": {}}}}
    )


class TestDictionaries:
    def test_resource_type_dictionary(self, user_api: APIDefinition) -> None:
        resource = user_api.resource("/users/{userId}")
        dictionary = resource_type_dictionary(resource, {"item": "User"})

        assert dictionary["item"] == "User"
        assert dictionary[RESOURCE_PATH] == "/users/{userId}"
        assert dictionary[RESOURCE_PATH_NAME] == "users"
        assert METHOD_NAME not in dictionary

    def test_reserved_names_override_parameters(self, user_api: APIDefinition) -> None:
        resource = user_api.resource("/users")
        dictionary = resource_type_dictionary(resource, {RESOURCE_PATH: "/other"})
        assert dictionary[RESOURCE_PATH] == "/users"

    def test_trait_dictionary_has_method_name(self, user_api: APIDefinition) -> None:
        resource = user_api.resource("/users/{userId}")
        dictionary = trait_dictionary(resource, resource.method("get"), {"size": 10})

        assert dictionary[METHOD_NAME] == "get"
        assert dictionary["size"] == 10

    def test_dictionary_is_read_only(self, user_api: APIDefinition) -> None:
        dictionary = resource_type_dictionary(user_api.resource("/users"))
        with pytest.raises(TypeError):
            dictionary["item"] = "x"  # type: ignore[index]

"""Placeholder substitution for resource types and traits.

Template text may contain ``<<name>>`` placeholders, optionally followed by a
chain of inflectors applied left to right::

    description: Get a <<resourcePathName | !singularize | !uppercamelcase>>

Values come from a *dictionary*: the parameters given where the template is
applied (``type: {collection: {item: User}}``) plus the reserved names
``resourcePath``, ``resourcePathName`` and ``methodName``. Dictionaries are
read-only :class:`types.MappingProxyType` objects built fresh for every
application.

The public functions are:

* :func:`substitute` -- Merge one child text with one template text.
* :func:`expand` -- Substitute placeholders throughout a raw value (keys,
  nested mappings and lists).
* :func:`inflect` -- Apply one named inflector.
* :func:`resource_type_dictionary` / :func:`trait_dictionary` -- Build the
  dictionary for one application.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, Optional

import inflection

from ramlkit.exceptions import UnknownInflectorError
from ramlkit.models import Method, Resource

PLACEHOLDER = re.compile(r"<<([^<>]+)>>")

RESOURCE_PATH = "resourcePath"
RESOURCE_PATH_NAME = "resourcePathName"
METHOD_NAME = "methodName"


def _lower_camel(word: str) -> str:
    return inflection.camelize(inflection.underscore(word), False)


def _upper_camel(word: str) -> str:
    return inflection.camelize(inflection.underscore(word), True)


def _lower_hyphen(word: str) -> str:
    return inflection.dasherize(inflection.underscore(word))


INFLECTORS: dict[str, Callable[[str], str]] = {
    "singularize": inflection.singularize,
    "pluralize": inflection.pluralize,
    "uppercase": str.upper,
    "lowercase": str.lower,
    "lowercamelcase": _lower_camel,
    "uppercamelcase": _upper_camel,
    "lowerunderscorecase": inflection.underscore,
    "upperunderscorecase": lambda word: inflection.underscore(word).upper(),
    "lowerhyphencase": _lower_hyphen,
    "upperhyphencase": lambda word: _lower_hyphen(word).upper(),
}
"""Known inflectors, keyed by lower-case name without the leading ``!``."""


def has_placeholder(text: Optional[str]) -> bool:
    return bool(text) and ("<<" in text or ">>" in text)


def inflect(value: str, inflector: str) -> str:
    """Apply the inflector named *inflector* (``!pluralize``, ``pluralize`` ...).

    Raises:
        UnknownInflectorError: If the name is not in :data:`INFLECTORS`.
    """
    function = INFLECTORS.get(inflector.strip().lstrip("!").lower())
    if function is None:
        raise UnknownInflectorError(inflector.strip())
    return function(value)


def render_value(value: Any) -> str:
    """Render a parameter value the way it reads in YAML."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def substitute(
    child: Optional[str],
    template: Optional[str],
    dictionary: Mapping[str, Any],
) -> Optional[str]:
    """Return the merged value of a child text and a template text.

    * A non-empty child without placeholders wins as-is.
    * An empty template leaves the child unchanged.
    * Otherwise every placeholder of *template* whose name is in
      *dictionary* is replaced; unknown names are left untouched.

    Example::

        >>> substitute("", "Delete a <<resourcePathName | !singularize>>",
        ...            {"resourcePathName": "Users"})
        'Delete a User'

    Raises:
        UnknownInflectorError: If a resolved placeholder uses an unknown
            inflector.
    """
    if child and not has_placeholder(child):
        return child
    if not template:
        return child
    return PLACEHOLDER.sub(lambda match: _replace(match, dictionary), template)


def _replace(match: re.Match[str], dictionary: Mapping[str, Any]) -> str:
    name, *inflectors = (part.strip() for part in match.group(1).split("|"))
    if name not in dictionary:
        return match.group(0)
    value = render_value(dictionary[name])
    for inflector in inflectors:
        value = inflect(value, inflector)
    return value


def expand(value: Any, dictionary: Mapping[str, Any]) -> Any:
    """Substitute placeholders in every string of a raw value, keys included."""
    if isinstance(value, str):
        return substitute(None, value, dictionary) if value else value
    if isinstance(value, Mapping):
        return {expand(k, dictionary): expand(v, dictionary) for k, v in value.items()}
    if isinstance(value, list):
        return [expand(item, dictionary) for item in value]
    return value


# --- Dictionaries ---


def resource_type_dictionary(
    resource: Resource,
    parameters: Optional[Mapping[str, Any]] = None,
    method: Optional[Method] = None,
) -> Mapping[str, Any]:
    """Build the dictionary for applying a resource type to *resource*.

    Reserved names override user parameters of the same name.
    """
    values = dict(parameters or {})
    values[RESOURCE_PATH] = resource.full_uri()
    values[RESOURCE_PATH_NAME] = resource.resource_path_name()
    if method is not None:
        values[METHOD_NAME] = method.name.lower()
    return MappingProxyType(values)


def trait_dictionary(
    resource: Resource,
    method: Method,
    parameters: Optional[Mapping[str, Any]] = None,
) -> Mapping[str, Any]:
    """Build the dictionary for applying a trait to *method* of *resource*."""
    return resource_type_dictionary(resource, parameters, method)

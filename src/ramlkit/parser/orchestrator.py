"""Drive the whole resolution of one API definition.

:class:`Orchestrator` runs the phases in dependency order:

1. Read the root document, check its version header, expand inclusions,
   decode the YAML and build the model.
2. Load every library the document uses (recursively).
3. Build the :class:`~ramlkit.parser.libraries.SymbolTable` and normalize
   declared types.
4. Walk the resource tree depth-first, parents before children, applying
   resource types and traits to every resource and method and normalizing
   the result.

Per method, templates are applied in this order: the resource's traits, the
method's own traits, the traits named by the resource type and by its method
template, the resource type's method template, and finally the optional
(``get?``) template when the resource itself declared that verb. Because
merges never overwrite what is already present, earlier sources win.

Any error aborts the parse; a partially resolved document is never returned.
"""

from __future__ import annotations

import logging
from typing import Optional

from ramlkit.models import (
    APIDefinition,
    DefinitionChoice,
    FetchConfig,
    Method,
    Resource,
    ResourceType,
)
from ramlkit.parser import normalizer
from ramlkit.parser.builder import build_api, load_document, load_text
from ramlkit.parser.inheritance import inherit_method, inherit_resource
from ramlkit.parser.libraries import (
    RESOURCE_TYPE,
    SECURITY_SCHEME,
    TRAIT,
    LibraryLoader,
    Symbol,
    SymbolTable,
)
from ramlkit.parser.loader import split_location
from ramlkit.parser.substitution import (
    expand,
    resource_type_dictionary,
    trait_dictionary,
)

logger = logging.getLogger(__name__)


class Orchestrator:
    """Resolves one API definition at a time.

    Args:
        fetch: HTTP settings used for the root document, inclusions and
            libraries.

    Example::

        api = Orchestrator().parse("specs/api.raml")
        print(api.resource("/users/{id}").method("get").description)
    """

    def __init__(self, fetch: Optional[FetchConfig] = None) -> None:
        self.fetch = fetch or FetchConfig()

    def parse(self, source: str) -> APIDefinition:
        """Parse and resolve the document at *source* (path or URL)."""
        logger.debug("Parsing %s", source)
        version, data = load_document(source, self.fetch)
        base, _ = split_location(source)
        return self._resolve(build_api(data, source, version), base, source)

    def parse_string(
        self, text: str, base: str = ".", source: str = "<string>"
    ) -> APIDefinition:
        """Parse and resolve RAML *text*; relative references resolve from *base*."""
        version, data = load_text(text, base, source=source, fetch=self.fetch)
        return self._resolve(build_api(data, source, version), base, source)

    def _resolve(self, api: APIDefinition, base: str, source: str) -> APIDefinition:
        LibraryLoader(self.fetch).load_uses(api, base, [source])
        symbols = SymbolTable.build(api)
        normalizer.normalize_declarations(api)
        _check_security(api.secured_by, symbols)
        for resource in api.resources.values():
            self._resolve_resource(resource, symbols)
        logger.debug("Resolved %s", source)
        return api

    def _resolve_resource(self, resource: Resource, symbols: SymbolTable) -> None:
        resource_type: Optional[Symbol] = None
        declared = set(resource.methods)
        if resource.type is not None and resource.type.name:
            resource_type = symbols.lookup(RESOURCE_TYPE, resource.type.name)
            template: ResourceType = resource_type.template
            inherit_resource(
                resource,
                template,
                resource_type.application(
                    resource_type_dictionary(resource, resource.type.parameters)
                ),
            )
            for verb in template.methods:
                if verb not in resource.methods:
                    resource.methods[verb] = Method(name=verb.upper())

        for verb, method in resource.methods.items():
            self._resolve_method(resource, method, resource_type, verb in declared, symbols)

        _check_security(resource.secured_by, symbols)
        normalizer.normalize_resource(resource)
        for child in resource.nested.values():
            self._resolve_resource(child, symbols)

    def _resolve_method(
        self,
        resource: Resource,
        method: Method,
        resource_type: Optional[Symbol],
        declared: bool,
        symbols: SymbolTable,
    ) -> None:
        for choice in [*resource.is_, *method.is_]:
            _apply_trait(resource, method, choice, symbols)

        if resource_type is not None:
            self._apply_resource_type(resource, method, resource_type, declared, symbols)

        _check_security(method.secured_by, symbols)

    def _apply_resource_type(
        self,
        resource: Resource,
        method: Method,
        resource_type: Symbol,
        declared: bool,
        symbols: SymbolTable,
    ) -> None:
        template: ResourceType = resource_type.template
        verb = method.name.lower()
        parameters = resource.type.parameters if resource.type is not None else {}
        templates = [template.methods.get(verb)]
        if declared:
            templates.append(template.optional_methods.get(verb))
        templates = [t for t in templates if t is not None]

        # Traits named inside the resource type live in its library's scope
        # and take their parameter values through the resource type's dictionary.
        dictionary = resource_type_dictionary(resource, parameters, method)
        for choice in template.is_ + [c for t in templates for c in t.is_]:
            scoped = DefinitionChoice(
                name=choice.name,
                parameters=expand(choice.parameters, dictionary),
            )
            _apply_trait(resource, method, scoped, symbols, scope=resource_type.alias)

        for method_template in templates:
            inherit_method(method, method_template, resource_type.application(dictionary))


def _apply_trait(
    resource: Resource,
    method: Method,
    choice: DefinitionChoice,
    symbols: SymbolTable,
    scope: Optional[str] = None,
) -> None:
    trait = symbols.lookup(TRAIT, choice.name, scope)
    dictionary = trait_dictionary(resource, method, choice.parameters)
    inherit_method(method, trait.template, trait.application(dictionary))


def _check_security(
    secured_by: list[Optional[DefinitionChoice]], symbols: SymbolTable
) -> None:
    for choice in secured_by:
        if choice is not None:
            symbols.lookup(SECURITY_SCHEME, choice.name)


# --- Public entry points ---


def parse_file(source: str, fetch: Optional[FetchConfig] = None) -> APIDefinition:
    """Parse and fully resolve the RAML document at *source*.

    Args:
        source: Local path or HTTP(S) URL of the root document.
        fetch: HTTP settings; defaults to :class:`~ramlkit.models.FetchConfig`.

    Returns:
        The resolved :class:`~ramlkit.models.APIDefinition`.

    Raises:
        RamlError: Any subclass; see :mod:`ramlkit.exceptions`.
    """
    return Orchestrator(fetch).parse(source)


def parse_string(
    text: str, base: str = ".", fetch: Optional[FetchConfig] = None
) -> APIDefinition:
    """Parse and fully resolve RAML *text*.

    Args:
        text: Document text, starting with the ``#%RAML 1.0`` header.
        base: Directory or base URL for relative inclusions and libraries.
        fetch: HTTP settings; defaults to :class:`~ramlkit.models.FetchConfig`.
    """
    return Orchestrator(fetch).parse_string(text, base)


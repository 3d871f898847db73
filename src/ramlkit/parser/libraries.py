"""Load ``uses:`` libraries and resolve template references across them.

:class:`LibraryLoader` loads every library imported by a document, then the
libraries those import, resolving each reference relative to the importing
document. Within one parse every location is loaded once; a library that
imports itself (directly or through others) raises
:class:`~ramlkit.exceptions.CyclicReferenceError`.

:class:`SymbolTable` flattens the resource types, traits and security schemes
of the root document and of all loaded libraries into one table per kind::

    paged                 # declared in the root document
    lib.paged             # declared in the library imported as ``lib``
    lib.inner.paged       # declared in a library ``lib`` imports as ``inner``
    inner.paged           # ... also reachable under its own alias
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

from ramlkit.exceptions import CyclicReferenceError, UnresolvedReferenceError
from ramlkit.models import (
    APIDefinition,
    Declarations,
    FetchConfig,
    Library,
    ResourceType,
    SecurityScheme,
    Trait,
)
from ramlkit.parser.builder import build_library, load_document
from ramlkit.parser.inheritance import Application
from ramlkit.parser.loader import join_location, split_location

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "resource type"
TRAIT = "trait"
SECURITY_SCHEME = "security scheme"

Template = Union[ResourceType, Trait, SecurityScheme]


class LibraryLoader:
    """Loads libraries recursively, caching them by location for one parse.

    Args:
        fetch: HTTP settings for remote libraries.
    """

    def __init__(self, fetch: Optional[FetchConfig] = None) -> None:
        self.fetch = fetch
        self._cache: dict[str, Library] = {}

    def load_uses(
        self, owner: Declarations, base: str, chain: Sequence[str] = ()
    ) -> None:
        """Load every library *owner* imports into ``owner.libraries``.

        Args:
            owner: The importing document or library.
            base: Directory or base URL of the importing document.
            chain: Locations of the importing documents, outermost first.
        """
        for alias, reference in owner.uses.items():
            owner.libraries[alias] = self.load(join_location(base, reference), chain)

    def load(self, location: str, chain: Sequence[str] = ()) -> Library:
        if location in chain:
            raise CyclicReferenceError([*chain, location])
        cached = self._cache.get(location)
        if cached is not None:
            return cached

        logger.debug("Loading library %s", location)
        _, data = load_document(location, self.fetch)
        library = build_library(data, location)
        directory, _ = split_location(location)
        self.load_uses(library, directory, [*chain, location])
        self._cache[location] = library
        return library


@dataclass(frozen=True)
class Symbol:
    """A resolved template and the library it was declared in."""

    template: Any
    library: Optional[Library] = None
    alias: Optional[str] = None

    def application(self, dictionary: Mapping[str, Any]) -> Application:
        """Return the substitution context for applying this template."""
        if self.library is None:
            return Application(dictionary, self.alias)
        return Application(
            dictionary,
            self.alias,
            frozenset(self.library.types),
            frozenset(self.library.security_schemes),
        )


class SymbolTable:
    """Flat lookup tables for resource types, traits and security schemes."""

    def __init__(self) -> None:
        self._symbols: dict[str, dict[str, Symbol]] = {
            RESOURCE_TYPE: {},
            TRAIT: {},
            SECURITY_SCHEME: {},
        }

    @classmethod
    def build(cls, api: APIDefinition) -> SymbolTable:
        table = cls()
        table._add(api, None, None)
        for alias, library in api.libraries.items():
            table._add_library(library, alias, alias)
        return table

    def _add_library(self, library: Library, alias: str, own_alias: str) -> None:
        self._add(library, library, alias)
        if own_alias != alias:
            self._add(library, library, alias, key_alias=own_alias)
        for nested_alias, nested in library.libraries.items():
            self._add_library(nested, f"{alias}.{nested_alias}", nested_alias)

    def _add(
        self,
        declarations: Declarations,
        library: Optional[Library],
        alias: Optional[str],
        key_alias: Optional[str] = None,
    ) -> None:
        prefix = key_alias or alias
        for kind, templates in (
            (RESOURCE_TYPE, declarations.resource_types),
            (TRAIT, declarations.traits),
            (SECURITY_SCHEME, declarations.security_schemes),
        ):
            table = self._symbols[kind]
            for name, template in templates.items():
                key = f"{prefix}.{name}" if prefix else name
                table.setdefault(key, Symbol(template, library, alias))

    def lookup(self, kind: str, name: str, scope: Optional[str] = None) -> Symbol:
        """Resolve a reference.

        The name is tried as written first (a root declaration, or an
        ``alias.name`` reference), then relative to *scope*, the alias of the
        library whose template contains the reference.

        Raises:
            UnresolvedReferenceError: If no table entry matches.
        """
        table = self._symbols[kind]
        symbol = table.get(name)
        if symbol is None and scope:
            symbol = table.get(f"{scope}.{name}")
        if symbol is None:
            raise UnresolvedReferenceError(kind, name)
        return symbol

    def names(self, kind: str) -> list[str]:
        return list(self._symbols[kind])

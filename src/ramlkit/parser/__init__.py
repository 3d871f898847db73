"""RAML parser -- expand inclusions, build the model, resolve templates.

This sub-package turns a RAML 1.0 document (local file or remote URL) into a
fully resolved :class:`~ramlkit.models.APIDefinition`: every ``!include``
expanded, every library loaded, every resource type and trait applied and
every array shortcut normalized.

Typical usage::

    from ramlkit.parser import parse_file

    api = parse_file("api.raml")
    users = api.resource("/users")
    print(users.method("get").description)

Sub-modules:

* :mod:`~ramlkit.parser.loader` -- I/O layer (file, URL), version header
  check and YAML decoding.
* :mod:`~ramlkit.parser.preprocessor` -- Textual ``!include`` expansion.
* :mod:`~ramlkit.parser.builder` -- Validation into the pydantic models with
  aggregated error reporting.
* :mod:`~ramlkit.parser.substitution` -- ``<<placeholder>>`` substitution
  and inflectors.
* :mod:`~ramlkit.parser.inheritance` -- Field-by-field template merging.
* :mod:`~ramlkit.parser.libraries` -- ``uses:`` loading and the symbol table.
* :mod:`~ramlkit.parser.normalizer` -- Array shortcut normalization.
* :mod:`~ramlkit.parser.orchestrator` -- Phase ordering and the public entry
  points.
"""

from ramlkit.parser.orchestrator import Orchestrator, parse_file, parse_string

__all__ = ["Orchestrator", "parse_file", "parse_string"]

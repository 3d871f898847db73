"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~ramlkit.exceptions.RamlError` subclass.
External tooling (CI scripts, pre-commit hooks) can inspect the exit code to
tell a broken include apart from a dangling trait reference without parsing
stderr.

Example::

    $ ramlkit resolve api.raml
    $ echo $?
    6   # EXIT_UNRESOLVED_REFERENCE -- a trait or resource type is missing
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_FETCH_ERROR = 3
"""A file or URL referenced by the document could not be read."""

EXIT_VERSION_MISMATCH = 4
"""The root document does not start with a supported RAML version header."""

EXIT_DECODE_ERROR = 5
"""The document is not valid YAML or a node has the wrong shape."""

EXIT_UNRESOLVED_REFERENCE = 6
"""A resource type, trait or security scheme reference could not be found."""

EXIT_UNKNOWN_INFLECTOR = 7
"""A placeholder uses an inflector the engine does not know."""

EXIT_CYCLIC_REFERENCE = 8
"""Libraries or includes reference each other in a cycle."""

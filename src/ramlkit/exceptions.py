"""Exception hierarchy for ramlkit.

All exceptions inherit from :class:`RamlError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ramlkit.exit_codes`.
The top-level error handler in :func:`ramlkit.app.main` catches
``RamlError`` and exits with the appropriate code.

Every error is fatal for the document being parsed: the parser never hands
back a partially resolved :class:`~ramlkit.models.APIDefinition`.

Subclass hierarchy::

    RamlError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- FetchError                 (exit 3)
    +-- VersionError               (exit 4)
    +-- DecodeError                (exit 5)
    +-- UnresolvedReferenceError   (exit 6)
    +-- UnknownInflectorError      (exit 7)
    +-- CyclicReferenceError       (exit 8)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from collections.abc import Sequence

from ramlkit.exit_codes import (
    EXIT_CYCLIC_REFERENCE,
    EXIT_DECODE_ERROR,
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_UNKNOWN_INFLECTOR,
    EXIT_UNRESOLVED_REFERENCE,
    EXIT_VERSION_MISMATCH,
)


class RamlError(Exception):
    """Base exception for all ramlkit errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`ramlkit.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RamlError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class FetchError(RamlError):
    """Raised when a referenced file or URL cannot be read.

    Args:
        reference: The path or URL that failed, as written in the document
            (or the joined location when no shorter form is known).
        message: Description of the underlying failure.
    """

    exit_code = EXIT_FETCH_ERROR

    def __init__(self, reference: str, message: str):
        super().__init__(f"Error including {reference}: {message}")
        self.reference = reference


class VersionError(RamlError):
    """Raised when a document does not start with ``#%RAML 1.0``."""

    exit_code = EXIT_VERSION_MISMATCH


class DecodeError(RamlError):
    """Raised when a document cannot be decoded into the model.

    Several structural problems found in one pass are reported together;
    ``errors`` holds one ``"location: message"`` line per problem.
    """

    exit_code = EXIT_DECODE_ERROR

    def __init__(self, source: str, errors: Sequence[str]):
        self.source = source
        self.errors = list(errors)
        lines = "\n".join(f"  {line}" for line in self.errors)
        super().__init__(f"Failed to decode {source}:\n{lines}")


class UnresolvedReferenceError(RamlError):
    """Raised when a trait, resource type or security scheme is not declared.

    Args:
        kind: What was being looked up (``"resource type"``, ``"trait"``,
            ``"security scheme"``).
        name: The name exactly as referenced.
    """

    exit_code = EXIT_UNRESOLVED_REFERENCE

    def __init__(self, kind: str, name: str):
        super().__init__(f"Can't find {kind} named: {name}")
        self.kind = kind
        self.name = name


class UnknownInflectorError(RamlError):
    """Raised when a ``<<param | !name>>`` placeholder uses an unknown inflector."""

    exit_code = EXIT_UNKNOWN_INFLECTOR

    def __init__(self, inflector: str):
        super().__init__(f"Invalid inflector: {inflector}")
        self.inflector = inflector


class CyclicReferenceError(RamlError):
    """Raised when libraries or includes import themselves transitively."""

    exit_code = EXIT_CYCLIC_REFERENCE

    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__("Cyclic reference: " + " -> ".join(self.chain))


class ConfigError(RamlError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE

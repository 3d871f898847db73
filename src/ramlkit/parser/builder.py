"""Turn RAML text into the typed document models.

:func:`load_document` runs the front half of the pipeline for one document
(root or library): read, check the version header, expand ``!include``
directives and decode the YAML. :func:`build_api` and :func:`build_library`
then validate the decoded mapping into :class:`~ramlkit.models.APIDefinition`
or :class:`~ramlkit.models.Library`.

Validation never stops at the first problem: every pydantic error found in
one document is reported together in a single
:class:`~ramlkit.exceptions.DecodeError`, one ``location: message`` line per
error, where *location* is the dotted path of the offending node (for example
``/users.get.responses.200.body``).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Optional, TypeVar

from pydantic import ValidationError

from ramlkit.exceptions import DecodeError
from ramlkit.models import APIDefinition, FetchConfig, Library, RamlModel
from ramlkit.parser.loader import check_version, decode, read_text, split_location
from ramlkit.parser.preprocessor import preprocess

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=RamlModel)


def load_document(
    location: str,
    fetch: Optional[FetchConfig] = None,
    chain: Sequence[str] = (),
) -> tuple[str, dict[str, Any]]:
    """Read, version-check, expand and decode the document at *location*.

    Returns:
        ``(version, data)``: the header's version string (``RAML 1.0``,
        ``RAML 1.0 Library`` ...) and the decoded top-level mapping.
    """
    text = read_text(location, fetch)
    directory, _ = split_location(location)
    return load_text(text, directory, source=location, fetch=fetch, chain=[*chain, location])


def load_text(
    text: str,
    base: str,
    source: str = "<string>",
    fetch: Optional[FetchConfig] = None,
    chain: Sequence[str] = (),
) -> tuple[str, dict[str, Any]]:
    """Like :func:`load_document`, for text already in memory."""
    version, body = check_version(text, source)
    expanded = preprocess(body, base, fetch, chain)
    logger.debug("Decoding %s (%s)", source, version)
    return version, decode(expanded, source)


def build(model: type[M], data: dict[str, Any], source: str) -> M:
    """Validate *data* into *model*, aggregating every error.

    Raises:
        DecodeError: With one line per validation error.
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(source, [format_error(e) for e in exc.errors()]) from exc


def format_error(error: Any) -> str:
    """Render one pydantic error dict as ``dotted.location: message``."""
    location = ".".join(str(part) for part in error.get("loc", ())) or "<document>"
    return f"{location}: {error.get('msg', 'invalid value')}"


def build_api(data: dict[str, Any], source: str, version: str) -> APIDefinition:
    api = build(APIDefinition, data, source)
    api.location = source
    api.raml_version = version
    return api


def build_library(data: dict[str, Any], source: str) -> Library:
    library = build(Library, data, source)
    library.location = source
    return library

"""Read RAML documents from local files or URLs and decode them.

This module handles all I/O for fetching raw RAML text and turning it into
Python data. The public functions are:

* :func:`read_file_or_url` -- Read the raw bytes behind a path or URL.
* :func:`join_location` / :func:`split_location` -- Resolve references
  relative to the document that contains them.
* :func:`check_version` -- Validate the ``#%RAML 1.0`` header line and
  return the version string and the remaining body.
* :func:`decode` -- Decode (already preprocessed) YAML text into a mapping.

Relative references resolve against the directory of the including document
for files, and with :func:`urllib.parse.urljoin` for URLs.
"""

from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urljoin, urlsplit

import httpx
import yaml

from ramlkit.exceptions import DecodeError, FetchError, VersionError
from ramlkit.models import FetchConfig

logger = logging.getLogger(__name__)

RAML_VERSION_PREFIX = "#%RAML 1.0"


class RamlLoader(yaml.SafeLoader):
    """``SafeLoader`` that keeps dates and timestamps as plain strings.

    RAML treats ``version: 2024-01-01`` or an example value as text.
    """


RamlLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def join_location(base: str, reference: str) -> str:
    """Resolve *reference* against the directory (or URL) *base*.

    Absolute paths and absolute URLs are returned unchanged.

    Example::

        >>> join_location("https://example.com/api/", "types/person.raml")
        'https://example.com/api/types/person.raml'
    """
    if is_url(reference):
        return reference
    if is_url(base):
        if not base.endswith("/"):
            base += "/"
        return urljoin(base, reference)
    return os.path.normpath(Path(base) / reference)


def split_location(location: str) -> tuple[str, str]:
    """Split a path or URL into ``(directory, filename)``.

    The directory of a URL keeps its trailing slash so that it can be fed
    back into :func:`join_location`.
    """
    if is_url(location):
        parts = urlsplit(location)
        directory, filename = posixpath.split(parts.path)
        if not directory.endswith("/"):
            directory += "/"
        return f"{parts.scheme}://{parts.netloc}{directory}", filename
    path = Path(location)
    return str(path.parent), path.name


def read_file_or_url(
    location: str,
    fetch: Optional[FetchConfig] = None,
    reference: Optional[str] = None,
) -> bytes:
    """Return the raw content of a local file or an HTTP(S) URL.

    Args:
        location: Resolved path or URL.
        fetch: HTTP settings; defaults to :class:`~ramlkit.models.FetchConfig`.
        reference: The reference as written by the including document, used
            in error messages. Defaults to *location*.

    Raises:
        FetchError: If the file cannot be read or the request fails.
    """
    fetch = fetch or FetchConfig()
    reference = reference or location
    if is_url(location):
        logger.debug("Fetching %s", location)
        try:
            response = httpx.get(
                location,
                timeout=fetch.timeout,
                follow_redirects=fetch.follow_redirects,
                verify=fetch.verify_ssl,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                reference, f"HTTP {exc.response.status_code} fetching {location}"
            ) from exc
        except httpx.RequestError as exc:
            raise FetchError(reference, f"Failed to fetch {location}: {exc}") from exc
        return response.content

    logger.debug("Reading %s", location)
    try:
        return Path(location).read_bytes()
    except OSError as exc:
        raise FetchError(reference, str(exc)) from exc


def read_text(location: str, fetch: Optional[FetchConfig] = None) -> str:
    """Read a root or library document as UTF-8 text.

    Raises:
        FetchError: If the content cannot be read or is not valid UTF-8.
    """
    data = read_file_or_url(location, fetch)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FetchError(location, f"not valid UTF-8: {exc}") from exc


def check_version(text: str, source: str = "<string>") -> tuple[str, str]:
    """Validate the version header and split it from the document body.

    The first line must start with ``#%RAML 1.0``; the library form
    ``#%RAML 1.0 Library`` satisfies the same prefix.

    Returns:
        ``(version, body)`` where *version* is the header line without the
        leading ``#%`` and *body* is everything after the first line.

    Raises:
        VersionError: If the header is missing or names another version.
    """
    first, _, body = text.lstrip("\ufeff").partition("\n")
    first = first.rstrip("\r")
    if not first.startswith(RAML_VERSION_PREFIX):
        shown = first if first else "<empty>"
        raise VersionError(
            f"Invalid RAML version header in {source}: {shown!r}. "
            f"Expected a document starting with '{RAML_VERSION_PREFIX}'"
        )
    return first[2:].strip(), body


def decode(text: str, source: str = "<string>") -> dict[str, Any]:
    """Decode YAML text into a mapping.

    An empty document decodes to an empty mapping.

    Raises:
        DecodeError: On YAML syntax errors or when the top level is not a
            mapping.
    """
    try:
        result = yaml.load(text, Loader=RamlLoader)  # noqa: S506
    except yaml.YAMLError as exc:
        raise DecodeError(source, [f"YAML error: {exc}"]) from exc

    if result is None:
        return {}
    if not isinstance(result, dict):
        raise DecodeError(
            source,
            [f"document must be a mapping (got {type(result).__name__})"],
        )
    return result

"""Textual expansion of ``!include`` directives.

PyYAML has no notion of RAML's ``!include`` tag, so inclusions are spliced in
as text before the document is decoded. For every line containing the
directive, the text before the directive is kept, the referenced content is
read, reindented to the directive's column and written in its place::

    # api.raml                         # person.raml
    types:                             type: object
      Person: !include person.raml     properties:
                                         name: string
    # becomes
    types:
      Person:
              type: object
              properties:
                name: string

A line whose content begins with ``type:`` gets a ``|`` block indicator
instead of a bare newline, so that an included JSON or XML schema stays opaque
block text. Such opaque inclusions are not expanded any further; all other
included content is expanded recursively, relative to its own location.

Anything after ``#`` in the reference is not part of the location. It is
written back as a comment line after the spliced content.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from ramlkit.exceptions import CyclicReferenceError
from ramlkit.models import FetchConfig
from ramlkit.parser.loader import join_location, read_file_or_url, split_location

logger = logging.getLogger(__name__)

INCLUDE_DIRECTIVE = "!include"


def preprocess(
    text: str,
    base: str,
    fetch: Optional[FetchConfig] = None,
    chain: Sequence[str] = (),
) -> str:
    """Return *text* with every ``!include`` directive expanded.

    Args:
        text: Document text (without the version header line).
        base: Directory or base URL that relative references resolve against.
        fetch: HTTP settings for remote references.
        chain: Locations currently being expanded, outermost first. Used to
            detect a file that includes itself.

    Returns:
        The expanded text, always newline-terminated per line.

    Raises:
        FetchError: If a referenced file or URL cannot be read.
        CyclicReferenceError: If a reference includes itself transitively.
    """
    expanded: list[str] = []
    for line in _lines(text):
        idx = line.find(INCLUDE_DIRECTIVE)
        if idx == -1:
            expanded.append(line + "\n")
            continue

        reference, fragment = split_reference(line[idx + len(INCLUDE_DIRECTIVE):])
        expanded.append(line[:idx])

        location = join_location(base, reference)
        if location in chain:
            raise CyclicReferenceError([*chain, location])

        content = _read_included(location, reference, fetch)
        opaque = _opens_type_declaration(line)
        if content and not opaque:
            directory, _ = split_location(location)
            content = preprocess(content, directory, fetch, [*chain, location])

        expanded.append(_reindent(("|\n" if opaque else "\n") + content, idx))
        if fragment:
            expanded.append(" " * idx + "#" + fragment + "\n")
    return "".join(expanded)


def split_reference(text: str) -> tuple[str, str]:
    """Split ``" schemas/user.json#/definitions/x"`` into reference and fragment."""
    reference, _, fragment = text.partition("#")
    return reference.strip(), fragment


def _read_included(
    location: str, reference: str, fetch: Optional[FetchConfig]
) -> str:
    raw = read_file_or_url(location, fetch, reference=reference)
    logger.debug("Including %s (%d bytes)", location, len(raw))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Ignoring %s: content is not valid UTF-8", reference)
        return ""


def _opens_type_declaration(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("type:") or stripped.startswith("type ")


def _lines(text: str) -> list[str]:
    """Split on line breaks only; form feeds and Unicode separators are content."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _reindent(content: str, column: int) -> str:
    indent = " " * column
    lines = _lines(content)
    return "".join(
        (indent if number else "") + line + "\n" for number, line in enumerate(lines)
    )

# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Resolve text ranges of symbol occurrences and include clauses."""

import logging
import re

from cch.model import TextRange
from cch.source import SourceAccessor

logger = logging.getLogger(__name__)

INCLUDE_PATTERN = re.compile(r'#\s*include\s*[<"](?P<header>[^>"]+)[>"]')


class RangeNotFoundError(RuntimeError):
    """Represent a token that does not occur on the expected line."""


def find_word(text: str, word: str) -> tuple[int, int]:
    """Locate the first whole-word, case-insensitive occurrence of ``word``.

    Args:
        text: Line text.
        word: Target identifier or header name.

    Returns:
        ``(start, end)`` column span.

    Raises:
        RangeNotFoundError: If ``word`` is empty or not found.
    """
    if not word:
        raise RangeNotFoundError("Empty search word")
    match = re.search(rf"\b{re.escape(word)}\b", text, re.IGNORECASE)
    if match is None:
        raise RangeNotFoundError(f"{word!r} not found in {text!r}")
    return match.start(), match.end()


def word_range(
    source: SourceAccessor, file_path: str, line_index: int, word: str
) -> TextRange:
    """Resolve the range of ``word`` on one line of a file.

    Args:
        source: Source text accessor.
        file_path: File to read.
        line_index: Zero-based line index.
        word: Target identifier.

    Returns:
        Range covering the first word-boundary match.

    Raises:
        RangeNotFoundError: If the word does not occur on the line.
        SourceNotFoundError: If the file or line cannot be read.
    """
    text = source.open_line(file_path, line_index)
    start, end = find_word(text, word)
    return TextRange.on_line(line_index, start, end)


def include_header(text: str) -> str | None:
    """Return the header named by an include directive line, if any."""
    match = INCLUDE_PATTERN.search(text)
    if match is None:
        return None
    return match.group("header")


def find_include_clause(text: str, header: str) -> tuple[int, int] | None:
    """Locate the whole ``#include`` clause naming ``header``.

    A directive matches when its header equals ``header`` or ends with
    ``/header``.
    """
    for match in INCLUDE_PATTERN.finditer(text):
        found = match.group("header")
        if found == header or found.endswith(f"/{header}"):
            return match.start(), match.end()
    return None


def include_clause_range(
    source: SourceAccessor, file_path: str, line_index: int, header: str
) -> TextRange:
    """Resolve the range of the include clause for ``header``.

    Args:
        source: Source text accessor.
        file_path: File to read.
        line_index: Zero-based line index.
        header: Header file name.

    Returns:
        Range spanning ``#include <header>`` in full, or a zero-width range at
        column 0 when the line holds no matching directive.

    Raises:
        SourceNotFoundError: If the file or line cannot be read.
    """
    span = find_include_clause(source.open_line(file_path, line_index), header)
    if span is None:
        logger.debug(
            f"Include clause not found (file_path={file_path} line={line_index + 1} header={header})"
        )
        return TextRange.empty(line_index)
    return TextRange.on_line(line_index, span[0], span[1])

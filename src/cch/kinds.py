# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Symbol kind classification from ctags kind codes."""

import logging
import re

from cch.model import SymbolKind
from cch.query import TagEntry, authoritative_tag
from cch.source import SourceAccessor, SourceNotFoundError

logger = logging.getLogger(__name__)

TAG_KINDS: dict[str, SymbolKind] = {
    "d": "constant",
    "e": "enum",
    "f": "function",
    "g": "enum_member",
    "h": "file",
    "l": "variable",
    "m": "field",
    "p": "function",
    "s": "struct",
    "t": "class",
    "u": "struct",
    "v": "variable",
    "x": "variable",
    "z": "type_parameter",
    "L": "namespace",
    "D": "type_parameter",
}

MACRO_KIND_CODE = "d"
FUNCTION_LIKE_MACRO_KIND: SymbolKind = "field"


def is_function_like_macro(definition: str, symbol_name: str) -> bool:
    """Check whether ``definition`` defines ``symbol_name`` as ``#define NAME(``."""
    pattern = rf"#\s*define\s+{re.escape(symbol_name)}\("
    return re.search(pattern, definition) is not None


def kind_for_code(
    kind_code: str, symbol_name: str = "", definition: str | None = None
) -> SymbolKind:
    """Map a ctags kind code to a symbol kind.

    Args:
        kind_code: ctags kind letter.
        symbol_name: Symbol name, used for the macro check.
        definition: Defining source line, when available.

    Returns:
        Mapped kind; ``unclassified`` for unknown codes.
    """
    kind = TAG_KINDS.get(kind_code)
    if kind is None:
        logger.debug(f"Unknown tag kind code (kind_code={kind_code!r} symbol={symbol_name})")
        return "unclassified"
    if (
        kind_code == MACRO_KIND_CODE
        and definition is not None
        and is_function_like_macro(definition, symbol_name)
    ):
        return FUNCTION_LIKE_MACRO_KIND
    return kind


class SymbolClassifier:
    """Classify symbols from tag entries, reading macro definitions as needed."""

    def __init__(self, source: SourceAccessor) -> None:
        """Initialize classifier.

        Args:
            source: Accessor used to read macro definition lines.
        """
        self._source = source

    def classify(self, symbol_name: str, entries: list[TagEntry]) -> SymbolKind:
        """Classify ``symbol_name`` using its authoritative (last) tag entry.

        Args:
            symbol_name: Symbol to classify.
            entries: Tag entries returned by the tag query.

        Returns:
            Symbol kind; ``unclassified`` when no entry exists.
        """
        entry = authoritative_tag(entries, symbol_name)
        if entry is None:
            return "unclassified"
        definition: str | None = None
        if entry.kind_code == MACRO_KIND_CODE and entry.line >= 1:
            try:
                definition = self._source.open_line(entry.file_path, entry.line - 1)
            except SourceNotFoundError as exc:
                logger.warning(
                    f"Macro definition unreadable; keeping base kind "
                    f"(symbol={symbol_name} file_path={entry.file_path} error={exc})"
                )
        return kind_for_code(entry.kind_code, symbol_name, definition)

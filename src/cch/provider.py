# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Symbol relation provider contract shared by all backends."""

from typing import Protocol

from cch.model import SymbolKind, SymbolRecord


class SymbolRelationProvider(Protocol):
    """Answer caller, callee and include relations for the graph builder.

    Query methods may raise :class:`cch.query.QueryFailedError`.
    """

    def find_definition(self, symbol_name: str) -> SymbolRecord | None:
        """Return the definition site of a symbol, if known."""

    def find_callers(self, symbol_name: str) -> list[SymbolRecord]:
        """Return functions calling ``symbol_name`` with their call lines."""

    def find_callees(self, symbol_name: str) -> list[SymbolRecord]:
        """Return symbols called by ``symbol_name`` with their call lines."""

    def find_includers(self, header_name: str) -> list[SymbolRecord]:
        """Return files including ``header_name`` with the directive lines."""

    def find_file(self, file_name: str) -> list[SymbolRecord]:
        """Return workspace files whose name matches ``file_name``."""

    def classify(self, symbol_name: str) -> SymbolKind:
        """Return the kind of ``symbol_name``."""

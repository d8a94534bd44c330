# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Relation provider backed by the cscope and ctags databases."""

import logging

from cch.kinds import SymbolClassifier
from cch.model import SymbolKind, SymbolRecord
from cch.query import IndexQueryClient, QueryFailedError

logger = logging.getLogger(__name__)


class IndexRelationProvider:
    """Serve relations from cscope queries and kinds from readtags."""

    def __init__(self, client: IndexQueryClient, classifier: SymbolClassifier) -> None:
        self._client = client
        self._classifier = classifier

    def find_definition(self, symbol_name: str) -> SymbolRecord | None:
        return self._client.find_definition(symbol_name)

    def find_callers(self, symbol_name: str) -> list[SymbolRecord]:
        return self._client.find_callers(symbol_name)

    def find_callees(self, symbol_name: str) -> list[SymbolRecord]:
        return self._client.find_callees(symbol_name)

    def find_includers(self, header_name: str) -> list[SymbolRecord]:
        return self._client.find_includers(header_name)

    def find_file(self, file_name: str) -> list[SymbolRecord]:
        return self._client.find_file(file_name)

    def classify(self, symbol_name: str) -> SymbolKind:
        """Classify a symbol; a failing tag query degrades to ``unclassified``."""
        try:
            entries = self._client.classify_tag(symbol_name)
        except QueryFailedError as exc:
            logger.warning(f"Tag query failed (symbol={symbol_name} error={exc})")
            return "unclassified"
        return self._classifier.classify(symbol_name, entries)

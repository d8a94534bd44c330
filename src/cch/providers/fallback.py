# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Relation provider backed by the in-memory fallback function index."""

import logging

from cch.fallback_indexer import FunctionIndex
from cch.model import SymbolKind, SymbolRecord

logger = logging.getLogger(__name__)


class FallbackRelationProvider:
    """Serve relations from a regex-built function index.

    Record shapes match the cscope queries: callers and callees carry the
    call line, includers carry the directive line.
    """

    def __init__(self, index: FunctionIndex) -> None:
        self._index = index

    def find_definition(self, symbol_name: str) -> SymbolRecord | None:
        for function in self._index.functions:
            if function.name == symbol_name:
                return SymbolRecord(
                    name=function.name,
                    file_path=function.file_path,
                    line=function.line_number,
                )
        return None

    def find_callers(self, symbol_name: str) -> list[SymbolRecord]:
        records: list[SymbolRecord] = []
        for function in self._index.functions:
            for callee, line in zip(function.callee_names, function.callee_lines):
                if callee == symbol_name:
                    records.append(
                        SymbolRecord(name=function.name, file_path=function.file_path, line=line)
                    )
        return records

    def find_callees(self, symbol_name: str) -> list[SymbolRecord]:
        records: list[SymbolRecord] = []
        for function in self._index.functions:
            if function.name != symbol_name:
                continue
            for callee, line in zip(function.callee_names, function.callee_lines):
                records.append(SymbolRecord(name=callee, file_path=function.file_path, line=line))
        return records

    def find_includers(self, header_name: str) -> list[SymbolRecord]:
        return [
            SymbolRecord(
                name=directive.file_path.rsplit("/", 1)[-1],
                file_path=directive.file_path,
                line=directive.line_number,
            )
            for directive in self._index.includes
            if directive.header == header_name or directive.header.endswith(f"/{header_name}")
        ]

    def find_file(self, file_name: str) -> list[SymbolRecord]:
        return [
            SymbolRecord(name=file_name, file_path=path, line=1)
            for path in self._index.files
            if path == file_name or path.endswith(f"/{file_name}")
        ]

    def classify(self, symbol_name: str) -> SymbolKind:
        if any(function.name == symbol_name for function in self._index.functions):
            return "function"
        if self.find_file(symbol_name):
            return "file"
        return "unclassified"

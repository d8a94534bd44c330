# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Assemble call and include hierarchy levels from symbol relations."""

import logging
import re
from pathlib import PurePosixPath
from typing import Callable, Hashable, Protocol

from cch.config import HierarchyOptions
from cch.model import (
    CallEdge,
    HierarchyNode,
    HierarchyResult,
    Location,
    SymbolKind,
    SymbolRecord,
    TextRange,
)
from cch.provider import SymbolRelationProvider
from cch.query import QueryFailedError
from cch.ranges import (
    RangeNotFoundError,
    find_include_clause,
    include_header,
    word_range,
)
from cch.source import SourceAccessor, SourceNotFoundError

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_]\w*")


class CancellationToken(Protocol):
    """Cooperative cancellation signal checked between external steps."""

    @property
    def is_cancelled(self) -> bool:
        """Return True once the request has been cancelled."""


class CancellationFlag:
    """Simple settable cancellation token."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


def line_key(record: SymbolRecord) -> Hashable:
    return (record.file_path, record.line)


def call_key(record: SymbolRecord) -> Hashable:
    return (record.file_path, record.line, record.name)


def dedupe_last_per_line(
    records: list[SymbolRecord],
    key: Callable[[SymbolRecord], Hashable] = line_key,
) -> list[SymbolRecord]:
    """Collapse records sharing a key, keeping the last one observed.

    Keys keep the order in which they were first seen, so the reduction is
    stable with respect to query output order.

    Args:
        records: Records in query output order.
        key: Grouping key; defaults to ``(file_path, line)``.

    Returns:
        One record per key.
    """
    latest: dict[Hashable, SymbolRecord] = {}
    for record in records:
        latest[key(record)] = record
    return list(latest.values())


def describe(file_path: str, line: int, options: HierarchyOptions) -> str:
    """Build the ``file @ line`` detail text for a node."""
    file_name = PurePosixPath(file_path.replace("\\", "/")).name
    return f"{file_name if options.show_file_names else ''} @ {line}"


def word_at(text: str, character: int) -> tuple[int, int] | None:
    """Return the identifier span touching ``character``, if any."""
    touching: tuple[int, int] | None = None
    for match in IDENTIFIER_PATTERN.finditer(text):
        if match.start() <= character < match.end():
            return match.span()
        if match.end() == character:
            touching = match.span()
    return touching


class HierarchyBuilder:
    """Build incoming and outgoing hierarchy levels for one node at a time."""

    def __init__(
        self,
        provider: SymbolRelationProvider,
        source: SourceAccessor,
        options: HierarchyOptions | None = None,
    ) -> None:
        """Initialize builder.

        Args:
            provider: Backend answering relation queries.
            source: Source text accessor used for range resolution.
            options: Default presentation options; calls may override them.
        """
        self._provider = provider
        self._source = source
        self._options = options or HierarchyOptions()

    def prepare(
        self,
        file_path: str,
        line_index: int,
        character: int,
        options: HierarchyOptions | None = None,
    ) -> HierarchyNode | None:
        """Create the root node for the symbol or include under the cursor.

        Args:
            file_path: Workspace-relative file path.
            line_index: Zero-based cursor line.
            character: Zero-based cursor column.
            options: Per-call options override.

        Returns:
            Root node, or ``None`` when the cursor is not on a symbol.
        """
        options = options or self._options
        try:
            text = self._source.open_line(file_path, line_index)
        except SourceNotFoundError as exc:
            logger.warning(f"Cannot prepare hierarchy (file_path={file_path} error={exc})")
            return None

        header = include_header(text)
        if header is not None:
            span = find_include_clause(text, header) or (0, 0)
            return HierarchyNode(
                kind="file",
                name=header,
                detail=describe(file_path, line_index + 1, options),
                location=Location(file_path, TextRange.on_line(line_index, *span)),
                is_include_node=True,
            )

        span = word_at(text, character)
        if span is None:
            return None
        name = text[span[0] : span[1]]
        selection = Location(file_path, TextRange.on_line(line_index, *span))
        warnings: list[str] = []
        location, detail = self._navigation(
            name=name,
            call_site=selection,
            call_site_detail=describe(file_path, line_index + 1, options),
            options=options,
            warnings=warnings,
        )
        return HierarchyNode(
            kind=self._classify(name, warnings),
            name=name,
            detail=detail,
            location=location,
        )

    def build_incoming(
        self,
        node: HierarchyNode,
        cancellation: CancellationToken | None = None,
        options: HierarchyOptions | None = None,
    ) -> HierarchyResult:
        """Resolve callers of a symbol, or includers of a header.

        Args:
            node: Node being expanded.
            cancellation: Optional cooperative cancellation token.
            options: Per-call options override.

        Returns:
            Edges pointing at ``node``; empty with a warning on query failure.
        """
        options = options or self._options
        token = cancellation or CancellationFlag()
        result = HierarchyResult()
        if token.is_cancelled:
            return HierarchyResult(cancelled=True)

        try:
            if node.is_include_node:
                records = self._provider.find_includers(node.name)
            else:
                records = dedupe_last_per_line(self._provider.find_callers(node.name))
        except QueryFailedError as exc:
            return self._failed(f"Incoming query failed for {node.name}: {exc}")

        for record in records:
            if token.is_cancelled:
                return _cancelled(result)
            if node.is_include_node:
                site = self._site_range(record, (node.name,), result.warnings)
                caller = HierarchyNode(
                    kind="file",
                    name=record.name,
                    detail=describe(record.file_path, record.line, options),
                    location=Location(record.file_path, site),
                    is_include_node=True,
                )
            else:
                site = self._site_range(record, (node.name, record.name), result.warnings)
                # A caller's click target is the definition of the symbol it calls.
                caller = self._symbol_node(
                    record, site, node.name, options, result.warnings, token
                )
                if caller is None:
                    return _cancelled(result)
            result.edges.append(CallEdge(from_node=caller, to_node=node, site_ranges=(site,)))
        return result

    def build_outgoing(
        self,
        node: HierarchyNode,
        cancellation: CancellationToken | None = None,
        options: HierarchyOptions | None = None,
    ) -> HierarchyResult:
        """Resolve callees of a symbol, or headers included by a file.

        Args:
            node: Node being expanded.
            cancellation: Optional cooperative cancellation token.
            options: Per-call options override.

        Returns:
            Edges leaving ``node``; empty with a warning on failure.
        """
        options = options or self._options
        token = cancellation or CancellationFlag()
        if token.is_cancelled:
            return HierarchyResult(cancelled=True)
        if node.is_include_node:
            return self._outgoing_includes(node, token, options)

        result = HierarchyResult()
        try:
            records = dedupe_last_per_line(self._provider.find_callees(node.name), key=call_key)
        except QueryFailedError as exc:
            return self._failed(f"Outgoing query failed for {node.name}: {exc}")

        for record in records:
            if token.is_cancelled:
                return _cancelled(result)
            site = self._site_range(record, (record.name,), result.warnings)
            callee = self._symbol_node(
                record, site, record.name, options, result.warnings, token
            )
            if callee is None:
                return _cancelled(result)
            result.edges.append(CallEdge(from_node=node, to_node=callee, site_ranges=(site,)))
        return result

    def _outgoing_includes(
        self, node: HierarchyNode, token: CancellationToken, options: HierarchyOptions
    ) -> HierarchyResult:
        try:
            file_path = self._include_source_path(node)
        except QueryFailedError as exc:
            return self._failed(f"File query failed for {node.name}: {exc}")
        if file_path is None:
            return self._failed(f"File {node.name} was not found in the workspace")
        if token.is_cancelled:
            return HierarchyResult(cancelled=True)
        try:
            text = self._source.open_file(file_path)
        except SourceNotFoundError as exc:
            return self._failed(str(exc))

        result = HierarchyResult()
        for line_index, line in enumerate(text.splitlines()):
            header = include_header(line)
            if header is None:
                continue
            span = find_include_clause(line, header) or (0, 0)
            site = TextRange.on_line(line_index, *span)
            included = HierarchyNode(
                kind="file",
                name=header,
                detail=describe(file_path, line_index + 1, options),
                location=Location(file_path, site),
                is_include_node=True,
            )
            result.edges.append(CallEdge(from_node=node, to_node=included, site_ranges=(site,)))
        return result

    def _include_source_path(self, node: HierarchyNode) -> str | None:
        """Return the file whose includes the node stands for."""
        located = node.location.file_path
        if PurePosixPath(located.replace("\\", "/")).name == node.name:
            return located
        records = self._provider.find_file(node.name)
        return records[0].file_path if records else None

    def _symbol_node(
        self,
        record: SymbolRecord,
        site: TextRange,
        definition_name: str,
        options: HierarchyOptions,
        warnings: list[str],
        token: CancellationToken,
    ) -> HierarchyNode | None:
        """Build the node for one related symbol.

        Args:
            record: Caller or callee record.
            site: Resolved call-site range in the record file.
            definition_name: Symbol whose definition is the click target in
                ``definition`` mode.
            options: Presentation options.
            warnings: Collector for degraded-step messages.
            token: Cancellation token, checked before each query.

        Returns:
            Node, or ``None`` when the request was cancelled midway.
        """
        if token.is_cancelled:
            return None
        location, detail = self._navigation(
            name=definition_name,
            call_site=Location(record.file_path, site),
            call_site_detail=describe(record.file_path, record.line, options),
            options=options,
            warnings=warnings,
        )
        if token.is_cancelled:
            return None
        return HierarchyNode(
            kind=self._classify(record.name, warnings),
            name=record.name,
            detail=detail,
            location=location,
        )

    def _navigation(
        self,
        name: str,
        call_site: Location,
        call_site_detail: str,
        options: HierarchyOptions,
        warnings: list[str],
    ) -> tuple[Location, str]:
        """Pick the click target of a node according to ``options``."""
        if options.click_target != "definition":
            return call_site, call_site_detail
        try:
            definition = self._provider.find_definition(name)
        except QueryFailedError as exc:
            self._warn(warnings, f"Definition query failed for {name}: {exc}")
            return call_site, call_site_detail
        if definition is None:
            return call_site, call_site_detail
        site = self._site_range(definition, (definition.name,), warnings)
        return (
            Location(definition.file_path, site),
            describe(definition.file_path, definition.line, options),
        )

    def _site_range(
        self, record: SymbolRecord, targets: tuple[str, ...], warnings: list[str]
    ) -> TextRange:
        """Resolve the first target found on the record line.

        Falls back to a zero-width range at the start of the line.
        """
        line_index = record.line - 1
        for target in targets:
            try:
                return word_range(self._source, record.file_path, line_index, target)
            except RangeNotFoundError:
                continue
            except SourceNotFoundError as exc:
                self._warn(warnings, str(exc))
                break
        logger.debug(
            f"Range not found; using line start (file_path={record.file_path} "
            f"line={record.line} targets={targets})"
        )
        return TextRange.empty(line_index)

    def _classify(self, name: str, warnings: list[str]) -> SymbolKind:
        try:
            return self._provider.classify(name)
        except QueryFailedError as exc:
            self._warn(warnings, f"Kind query failed for {name}: {exc}")
            return "unclassified"

    def _warn(self, warnings: list[str], message: str) -> None:
        logger.warning(message)
        warnings.append(message)

    def _failed(self, message: str) -> HierarchyResult:
        logger.warning(message)
        return HierarchyResult(warnings=[message])


def _cancelled(result: HierarchyResult) -> HierarchyResult:
    return HierarchyResult(edges=result.edges, warnings=result.warnings, cancelled=True)

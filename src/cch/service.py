# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Session facade wiring databases, relation providers and the graph builder."""

import logging
from typing import Literal

from cch.config import HierarchyOptions, IndexerConfig, missing_tools
from cch.database import DatabaseManager, ProgressCallback
from cch.fallback_indexer import FallbackSourceIndexer, FunctionIndex, load_function_pattern
from cch.hierarchy import CancellationToken, HierarchyBuilder
from cch.kinds import SymbolClassifier
from cch.model import HierarchyNode, HierarchyResult
from cch.provider import SymbolRelationProvider
from cch.providers import FallbackRelationProvider, IndexRelationProvider
from cch.query import CommandRunner, IndexQueryClient
from cch.source import FileSystemSourceAccessor, SourceAccessor

logger = logging.getLogger(__name__)

Backend = Literal["auto", "index", "fallback"]


class CallHierarchyService:
    """Serve hierarchy requests for one workspace for the whole session."""

    def __init__(
        self,
        config: IndexerConfig,
        options: HierarchyOptions | None = None,
        runner: CommandRunner | None = None,
        source: SourceAccessor | None = None,
        backend: Backend = "auto",
    ) -> None:
        """Initialize service.

        Args:
            config: Workspace and tool configuration.
            options: Default presentation options.
            runner: Process runner shared by queries and builds.
            source: Source accessor; defaults to reading from ``config.root_path``.
            backend: ``auto`` prefers cscope/ctags and falls back to source
                scanning, ``index`` always queries cscope/ctags, ``fallback``
                always scans sources.
        """
        self._config = config
        self._options = options or HierarchyOptions()
        self._source = source or FileSystemSourceAccessor(config.root_path)
        self._client = IndexQueryClient(config, runner=runner)
        self.database = DatabaseManager(config, runner=runner)
        self._backend = backend
        self._indexer: FallbackSourceIndexer | None = None
        self._fallback_index: FunctionIndex | None = None
        self._provider: SymbolRelationProvider | None = None

    @property
    def fallback_index(self) -> FunctionIndex | None:
        return self._fallback_index

    def provider(self, progress: ProgressCallback | None = None) -> SymbolRelationProvider:
        """Return the active relation provider, preparing a backend if needed.

        The cscope/ctags backend is used when its databases exist or can be
        built. Otherwise the workspace is scanned once and the fallback
        backend serves the rest of the session.

        Args:
            progress: Receives ``(increment_percent, message)`` updates.

        Returns:
            Relation provider.
        """
        if isinstance(self._provider, FallbackRelationProvider):
            return self._provider
        if self._backend == "fallback":
            self._provider = self._fallback_provider(progress)
            return self._provider

        missing = missing_tools(self._config.tools) if self._backend == "auto" else []
        if not missing:
            report = self.database.ensure_ready(progress=progress)
            if self._backend == "index" or not self.database.missing_databases():
                if self._provider is None:
                    self._provider = IndexRelationProvider(
                        self._client, SymbolClassifier(self._source)
                    )
                return self._provider
            logger.warning(
                f"Databases unavailable; using source scan "
                f"(failures={[str(failure) for failure in report.failures]})"
            )
        else:
            logger.warning(f"Indexer tools missing; using source scan (missing={missing})")
        self._provider = self._fallback_provider(progress)
        return self._provider

    def builder(self, progress: ProgressCallback | None = None) -> HierarchyBuilder:
        return HierarchyBuilder(self.provider(progress), self._source, self._options)

    def prepare(
        self,
        file_path: str,
        line_index: int,
        character: int,
        options: HierarchyOptions | None = None,
        progress: ProgressCallback | None = None,
    ) -> HierarchyNode | None:
        return self.builder(progress).prepare(file_path, line_index, character, options)

    def incoming(
        self,
        node: HierarchyNode,
        cancellation: CancellationToken | None = None,
        options: HierarchyOptions | None = None,
    ) -> HierarchyResult:
        return self.builder().build_incoming(node, cancellation, options)

    def outgoing(
        self,
        node: HierarchyNode,
        cancellation: CancellationToken | None = None,
        options: HierarchyOptions | None = None,
    ) -> HierarchyResult:
        return self.builder().build_outgoing(node, cancellation, options)

    def _fallback_provider(
        self, progress: ProgressCallback | None
    ) -> FallbackRelationProvider:
        if self._fallback_index is None:
            if self._indexer is None:
                self._indexer = FallbackSourceIndexer(
                    extensions=self._config.source_extensions,
                    function_pattern=load_function_pattern(self._config.function_pattern_path),
                )
            index = self._indexer.index(self._config.root_path, progress=progress)
            if index is None:
                return FallbackRelationProvider(FunctionIndex())
            self._fallback_index = index
        return FallbackRelationProvider(self._fallback_index)

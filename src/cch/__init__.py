# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Public import surface for the C call hierarchy engine."""

from cch.config import HierarchyOptions, IndexerConfig, ToolPaths
from cch.database import BuildReport, DatabaseManager, DatabaseType
from cch.hierarchy import CancellationFlag, HierarchyBuilder
from cch.model import CallEdge, HierarchyNode, HierarchyResult, SymbolRecord
from cch.service import CallHierarchyService

__all__ = [
    "BuildReport",
    "CallEdge",
    "CallHierarchyService",
    "CancellationFlag",
    "DatabaseManager",
    "DatabaseType",
    "HierarchyBuilder",
    "HierarchyNode",
    "HierarchyOptions",
    "HierarchyResult",
    "IndexerConfig",
    "SymbolRecord",
    "ToolPaths",
]

# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Configuration values for the external indexer tools and hierarchy views."""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

ClickTarget = Literal["call_site", "definition"]

DEFAULT_SOURCE_EXTENSIONS: tuple[str, ...] = (".c", ".h")
USER_INSTALL_DIRNAME = "c-call-hierarchy"


@dataclass(frozen=True)
class ToolPaths:
    """Executable names or paths of the external indexer tools."""

    cscope: str = "cscope"
    ctags: str = "ctags"
    readtags: str = "readtags"

    def as_dict(self) -> dict[str, str]:
        return {"cscope": self.cscope, "ctags": self.ctags, "readtags": self.readtags}


@dataclass(frozen=True)
class IndexerConfig:
    """Describe one workspace and how to index it.

    Attributes:
        root_path: Workspace root; queries and builds run in this directory.
        tools: External tool locations.
        cscope_db: Cross-reference store path, relative to ``root_path`` unless absolute.
        ctags_db: Tag store path, relative to ``root_path`` unless absolute.
        source_extensions: File suffixes scanned by the fallback indexer.
        function_pattern_path: Optional override of the function boundary pattern.
    """

    root_path: Path
    tools: ToolPaths = field(default_factory=ToolPaths)
    cscope_db: Path = Path("cscope.out")
    ctags_db: Path = Path("ctags.out")
    source_extensions: tuple[str, ...] = DEFAULT_SOURCE_EXTENSIONS
    function_pattern_path: Path | None = None

    @property
    def cscope_db_path(self) -> Path:
        return self._resolve(self.cscope_db)

    @property
    def ctags_db_path(self) -> Path:
        return self._resolve(self.ctags_db)

    def _resolve(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return self.root_path / path


@dataclass(frozen=True)
class HierarchyOptions:
    """Per-request presentation and navigation options.

    Attributes:
        show_file_names: Include the file name in node details.
        click_target: Navigate to the call site or to the symbol definition.
    """

    show_file_names: bool = True
    click_target: ClickTarget = "call_site"


def discover_tool_paths(home: Path | None = None) -> ToolPaths:
    """Locate the indexer tools on PATH or in the per-user install directory.

    Args:
        home: Home directory override; defaults to the current user's home.

    Returns:
        Tool paths. Tools that cannot be found keep their bare names.
    """
    install_root = (home or Path.home()) / USER_INSTALL_DIRNAME
    suffix = ".exe" if os.name == "nt" else ""
    candidates = {
        "cscope": install_root / "cscope" / f"cscope{suffix}",
        "ctags": install_root / "ctags" / f"ctags{suffix}",
        "readtags": install_root / "ctags" / f"readtags{suffix}",
    }
    resolved: dict[str, str] = {}
    for name, installed in candidates.items():
        on_path = shutil.which(name)
        if on_path:
            resolved[name] = on_path
        elif installed.is_file():
            logger.debug(f"Using user-installed tool (tool={name} path={installed})")
            resolved[name] = str(installed)
        else:
            resolved[name] = name
    return ToolPaths(**resolved)


def missing_tools(tools: ToolPaths) -> list[str]:
    """Return the names of tools that cannot be executed.

    Args:
        tools: Configured tool paths.

    Returns:
        Tool names (``cscope``, ``ctags``, ``readtags``) not found.
    """
    return [name for name, path in tools.as_dict().items() if shutil.which(path) is None]

# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Source text access contracts."""

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class SourceNotFoundError(RuntimeError):
    """Represent a source file or line that cannot be read."""


class SourceAccessor(Protocol):
    """Define read access to workspace source text."""

    def open_line(self, file_path: str, line_index: int) -> str:
        """Return the text of one line.

        Args:
            file_path: Workspace-relative or absolute file path.
            line_index: Zero-based line index.

        Returns:
            Line text without the trailing newline.

        Raises:
            SourceNotFoundError: If the file or line does not exist.
        """

    def open_file(self, file_path: str) -> str:
        """Return the whole text of a file.

        Raises:
            SourceNotFoundError: If the file cannot be read.
        """


class FileSystemSourceAccessor:
    """Read source text from files beneath a workspace root."""

    def __init__(self, root_path: Path) -> None:
        """Initialize accessor.

        Args:
            root_path: Workspace root used to resolve relative paths.
        """
        self._root_path = root_path

    def open_file(self, file_path: str) -> str:
        path = self._resolve(file_path)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug(f"Source file unreadable (file_path={path} error={exc})")
            raise SourceNotFoundError(f"Cannot read {file_path}: {exc}") from exc

    def open_line(self, file_path: str, line_index: int) -> str:
        lines = self.open_file(file_path).splitlines()
        if line_index < 0 or line_index >= len(lines):
            raise SourceNotFoundError(
                f"Line {line_index + 1} does not exist in {file_path} ({len(lines)} lines)"
            )
        return lines[line_index]

    def _resolve(self, file_path: str) -> Path:
        path = Path(file_path)
        if path.is_absolute():
            return path
        return self._root_path / path

# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Approximate call graph built by scanning C sources with regular expressions."""

import logging
import os
import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Callable

import pathspec

from cch.model import FunctionRecord, IncludeDirective
from cch.ranges import INCLUDE_PATTERN

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

FUNCTION_PATTERN_RESOURCE = "function_boundary.regex"

CALL_PATTERN = re.compile(r"\b(?P<name>[A-Za-z_]\w*)\s*\([^;{}]*?\)\s*;")

C_KEYWORDS: frozenset[str] = frozenset(
    {
        "if",
        "else",
        "for",
        "while",
        "do",
        "switch",
        "case",
        "return",
        "sizeof",
        "typeof",
        "alignof",
        "_Alignof",
        "__attribute__",
        "defined",
        "goto",
    }
)

_SKIP_DIRS: frozenset[str] = frozenset({".git"})


@dataclass(frozen=True)
class IndexerError:
    """Represent an indexer failure for one file."""

    file_path: str
    message: str


@dataclass
class FunctionIndex:
    """In-memory result of one fallback indexing pass.

    Attributes:
        functions: Function records in scan order.
        includes: Include directives in scan order.
        files: Workspace-relative paths of every scanned file.
        errors: Recoverable per-file failures.
    """

    functions: list[FunctionRecord] = field(default_factory=list)
    includes: list[IncludeDirective] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    errors: list[IndexerError] = field(default_factory=list)


def load_function_pattern(pattern_path: Path | None = None) -> re.Pattern[str]:
    """Load and compile the function boundary pattern.

    Args:
        pattern_path: Optional pattern file; defaults to the bundled resource.

    Returns:
        Compiled multiline pattern with a ``name`` group.

    Raises:
        OSError: If the pattern file cannot be read.
        re.error: If the pattern does not compile.
    """
    if pattern_path is None:
        text = (
            resources.files("cch")
            .joinpath("resources", FUNCTION_PATTERN_RESOURCE)
            .read_text(encoding="utf-8")
        )
    else:
        text = pattern_path.read_text(encoding="utf-8")
    return re.compile(text.strip(), re.MULTILINE)


def extract_calls(body: str, first_line: int = 1) -> list[tuple[str, int]]:
    """Collect called identifiers from a function body in order of appearance.

    Argument contents are skipped; keywords followed by parentheses are not
    treated as calls.

    Args:
        body: Function body text.
        first_line: Line number (1-based) of the first body character.

    Returns:
        ``(name, line)`` pairs.
    """
    calls: list[tuple[str, int]] = []
    position = 0
    while True:
        match = CALL_PATTERN.search(body, position)
        if match is None:
            break
        name = match.group("name")
        if name in C_KEYWORDS:
            position = match.end("name")
            continue
        line = first_line + body.count("\n", 0, match.start("name"))
        calls.append((name, line))
        position = match.end()
    return calls


def carve_body(text: str, open_brace: int) -> str:
    """Return the brace-balanced block starting at ``open_brace``.

    String/character literals and comments are skipped while counting. An
    unbalanced block runs to the end of the text.
    """
    depth = 0
    index = open_brace
    length = len(text)
    while index < length:
        char = text[index]
        if text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if text.startswith("/*", index):
            close = text.find("*/", index + 2)
            index = length if close == -1 else close + 2
            continue
        if char in "\"'":
            index = _skip_literal(text, index)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[open_brace : index + 1]
        index += 1
    return text[open_brace:]


def _skip_literal(text: str, start: int) -> int:
    quote = text[start]
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == quote or char == "\n":
            return index + 1
        index += 1
    return index


class FallbackSourceIndexer:
    """Scan workspace sources one file at a time to build a function index."""

    def __init__(
        self,
        extensions: tuple[str, ...] = (".c", ".h"),
        function_pattern: re.Pattern[str] | None = None,
    ) -> None:
        """Initialize indexer.

        Args:
            extensions: File suffixes to scan.
            function_pattern: Compiled function boundary pattern; defaults to
                the bundled resource.
        """
        self._extensions = tuple(ext.lower() for ext in extensions)
        self._function_pattern = function_pattern or load_function_pattern()
        self._indexing = False

    @property
    def is_indexing(self) -> bool:
        return self._indexing

    def index(
        self, root_path: Path, progress: ProgressCallback | None = None
    ) -> FunctionIndex | None:
        """Index all matching files beneath ``root_path``.

        Args:
            root_path: Workspace root.
            progress: Receives ``(increment_percent, message)`` per file.

        Returns:
            Function index, or ``None`` when a scan is already running.
        """
        if self._indexing:
            logger.warning(f"Indexing already in progress; request rejected (root_path={root_path})")
            return None
        self._indexing = True
        try:
            return self._scan(root_path=root_path, progress=progress)
        finally:
            self._indexing = False

    def discover_files(self, root_path: Path) -> list[Path]:
        """List source files to scan, honoring ``.gitignore`` files."""
        spec = _load_gitignore_spec(root_path)
        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root_path):
            current = Path(dirpath)
            dirnames[:] = sorted(
                name
                for name in dirnames
                if name not in _SKIP_DIRS
                and not spec.match_file(f"{_relative(current / name, root_path)}/")
            )
            for name in sorted(filenames):
                path = current / name
                if path.suffix.lower() not in self._extensions:
                    continue
                if spec.match_file(_relative(path, root_path)):
                    continue
                files.append(path)
        return sorted(files)

    def _scan(self, root_path: Path, progress: ProgressCallback | None) -> FunctionIndex:
        result = FunctionIndex()
        files = self.discover_files(root_path)
        total = len(files)
        reported = 0.0
        for position, file_path in enumerate(files, start=1):
            relative_path = _relative(file_path, root_path)
            try:
                text = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(
                    f"Skipping file due to read failure (file_path={relative_path} error={exc})"
                )
                result.errors.append(IndexerError(file_path=relative_path, message=str(exc)))
            else:
                result.files.append(relative_path)
                result.functions.extend(self._extract_functions(relative_path, text))
                result.includes.extend(_extract_includes(relative_path, text))

            percent = position / total * 100.0
            if progress is not None:
                progress(percent - reported, f"Indexing {relative_path} ({position}/{total})")
            reported = percent

        logger.info(
            f"Fallback indexing completed (root_path={root_path} files={total} "
            f"functions={len(result.functions)} errors={len(result.errors)})"
        )
        return result

    def _extract_functions(self, relative_path: str, text: str) -> list[FunctionRecord]:
        records: list[FunctionRecord] = []
        position = 0
        while True:
            match = self._function_pattern.search(text, position)
            if match is None:
                break
            name = match.group("name")
            open_brace = match.end() - 1
            if name in C_KEYWORDS:
                position = open_brace + 1
                continue
            body = carve_body(text, open_brace)
            line_number = text.count("\n", 0, match.start("name")) + 1
            body_line = text.count("\n", 0, open_brace) + 1
            calls = extract_calls(body, first_line=body_line)
            records.append(
                FunctionRecord(
                    file_path=relative_path,
                    line_number=line_number,
                    name=name,
                    body_text=body,
                    callee_names=tuple(call for call, _ in calls),
                    callee_lines=tuple(line for _, line in calls),
                )
            )
            position = open_brace + max(len(body), 1)
        return records


def _extract_includes(relative_path: str, text: str) -> list[IncludeDirective]:
    directives: list[IncludeDirective] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        match = INCLUDE_PATTERN.search(line)
        if match is not None:
            directives.append(
                IncludeDirective(
                    file_path=relative_path,
                    line_number=line_number,
                    header=match.group("header"),
                )
            )
    return directives


def _load_gitignore_spec(root_path: Path) -> pathspec.GitIgnoreSpec:
    patterns: list[str] = []
    for ignore_path in sorted(root_path.rglob(".gitignore")):
        base = ignore_path.parent.relative_to(root_path).as_posix()
        try:
            lines = ignore_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Ignoring unreadable .gitignore (path={ignore_path} error={exc})")
            continue
        for line in lines:
            patterns.append(_translate_gitignore_line(line=line, base="" if base == "." else base))
    return pathspec.GitIgnoreSpec.from_lines(patterns)


def _translate_gitignore_line(line: str, base: str) -> str:
    """Translate one nested ``.gitignore`` line to a root-relative pattern."""
    if not base or not line or line.lstrip().startswith("#"):
        return line
    is_negation = line.startswith("!")
    pattern = line[1:] if is_negation else line
    anchored = pattern.startswith("/")
    normalized = pattern[1:] if anchored else pattern
    prefixed = f"{base}/{normalized}" if normalized else base
    if anchored:
        prefixed = f"/{prefixed}"
    return f"!{prefixed}" if is_negation else prefixed


def _relative(path: Path, root_path: Path) -> str:
    return path.relative_to(root_path).as_posix()

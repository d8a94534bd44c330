# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for symbol records and hierarchy graphs."""

from dataclasses import dataclass, field
from typing import Literal


SymbolKind = Literal[
    "constant",
    "enum",
    "enum_member",
    "function",
    "file",
    "variable",
    "field",
    "struct",
    "class",
    "type_parameter",
    "namespace",
    "unclassified",
]


@dataclass(frozen=True)
class SymbolRecord:
    """Represent one symbol occurrence parsed from a query result line.

    Attributes:
        name: Symbol name (caller, callee or file name depending on query).
        file_path: Workspace-relative file path.
        line: Line number (1-based); ``-1`` when the source line was malformed.
    """

    name: str
    file_path: str
    line: int

    @property
    def is_usable(self) -> bool:
        return bool(self.name) and self.line >= 1

    @property
    def file_name(self) -> str:
        return self.file_path.replace("\\", "/").rsplit("/", 1)[-1]

    @property
    def description(self) -> str:
        return f"{self.file_name} @ {self.line}"


@dataclass(frozen=True)
class Position:
    """Zero-based line/character position."""

    line: int
    character: int


@dataclass(frozen=True)
class TextRange:
    """Half-open ``[start, end)`` range within one line."""

    start: Position
    end: Position

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "TextRange":
        return cls(start=Position(line, start), end=Position(line, end))

    @classmethod
    def empty(cls, line: int) -> "TextRange":
        return cls.on_line(line, 0, 0)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class Location:
    """File path plus a range inside that file."""

    file_path: str
    range: TextRange


@dataclass(frozen=True)
class HierarchyNode:
    """Represent one row of the call or include hierarchy.

    Attributes:
        kind: Symbol kind used for the row icon.
        name: Symbol name, or header/file name for include nodes.
        detail: Human readable ``file @ line`` text.
        location: Where a click on the row navigates to.
        is_include_node: True for header/file nodes, False for code symbols.
    """

    kind: SymbolKind
    name: str
    detail: str
    location: Location
    is_include_node: bool = False


@dataclass(frozen=True)
class CallEdge:
    """Directed edge between two hierarchy nodes.

    Attributes:
        from_node: Calling (or including) side.
        to_node: Called (or included) side.
        site_ranges: Ordered call-site ranges in the file of ``from_node``.
    """

    from_node: HierarchyNode
    to_node: HierarchyNode
    site_ranges: tuple[TextRange, ...]


@dataclass(frozen=True)
class FunctionRecord:
    """Represent one function carved out by the fallback source indexer.

    Attributes:
        file_path: Workspace-relative source file path.
        line_number: Line of the function definition (1-based).
        name: Function name.
        body_text: Function body including the enclosing braces.
        callee_names: Called identifiers in order of appearance.
        callee_lines: Line (1-based) of each entry of ``callee_names``.
    """

    file_path: str
    line_number: int
    name: str
    body_text: str
    callee_names: tuple[str, ...] = ()
    callee_lines: tuple[int, ...] = ()


@dataclass(frozen=True)
class IncludeDirective:
    """Represent one ``#include`` line found by the fallback source indexer."""

    file_path: str
    line_number: int
    header: str


@dataclass(frozen=True)
class HierarchyResult:
    """Represent one expanded hierarchy level.

    Attributes:
        edges: Resolved edges in query output order.
        warnings: Human readable failure messages for this expansion.
        cancelled: True when expansion stopped early on cancellation.
    """

    edges: list[CallEdge] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cancelled: bool = False

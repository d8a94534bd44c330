"""Unit tests for call and include hierarchy assembly."""

from pathlib import Path

from cch.config import HierarchyOptions, IndexerConfig
from cch.hierarchy import (
    CancellationFlag,
    HierarchyBuilder,
    call_key,
    dedupe_last_per_line,
    describe,
    word_at,
)
from cch.kinds import SymbolClassifier
from cch.model import HierarchyNode, Location, SymbolKind, SymbolRecord, TextRange
from cch.providers import IndexRelationProvider
from cch.query import READTAGS_FORMAT, IndexQueryClient, QueryFailedError
from cch.source import FileSystemSourceAccessor

A_C = "\n".join(
    [
        '#include "b.h"',
        "void main(void) {",
        "    bar(); bar();",
        "    int foobar = 0;",
        "",
        "",
        "    bar();",
        "}",
    ]
)

B_C = "\n".join(["", "", "", "", "", "", "", "", "", "int bar(void)", "{", "    return baz();", "}"])


class _FakeProvider:
    def __init__(
        self,
        callers: list[SymbolRecord] | None = None,
        callees: list[SymbolRecord] | None = None,
        includers: list[SymbolRecord] | None = None,
        definitions: dict[str, SymbolRecord] | None = None,
        files: dict[str, list[SymbolRecord]] | None = None,
        kinds: dict[str, SymbolKind] | None = None,
        fail: bool = False,
    ) -> None:
        self.callers = callers or []
        self.callees = callees or []
        self.includers = includers or []
        self.definitions = definitions or {}
        self.files = files or {}
        self.kinds = kinds or {}
        self.fail = fail
        self.calls: list[str] = []
        self.on_classify = None
        self.on_definition = None

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise QueryFailedError("cscope: cannot open cscope.out")

    def find_definition(self, symbol_name: str) -> SymbolRecord | None:
        self._check("definition")
        if self.on_definition is not None:
            self.on_definition()
        return self.definitions.get(symbol_name)

    def find_callers(self, symbol_name: str) -> list[SymbolRecord]:
        self._check("callers")
        return list(self.callers)

    def find_callees(self, symbol_name: str) -> list[SymbolRecord]:
        self._check("callees")
        return list(self.callees)

    def find_includers(self, header_name: str) -> list[SymbolRecord]:
        self._check("includers")
        return list(self.includers)

    def find_file(self, file_name: str) -> list[SymbolRecord]:
        self._check("file")
        return list(self.files.get(file_name, []))

    def classify(self, symbol_name: str) -> SymbolKind:
        self.calls.append("classify")
        if self.on_classify is not None:
            self.on_classify()
        return self.kinds.get(symbol_name, "function")


def _workspace(tmp_path: Path, write_file) -> FileSystemSourceAccessor:
    write_file(tmp_path / "a.c", A_C)
    write_file(tmp_path / "b.c", B_C)
    write_file(tmp_path / "b.h", '#include "types.h"\nint bar(void);\n#include <stdio.h>\n')
    return FileSystemSourceAccessor(tmp_path)


def _bar_node() -> HierarchyNode:
    return HierarchyNode(
        kind="function",
        name="bar",
        detail="b.c @ 10",
        location=Location("b.c", TextRange.on_line(9, 4, 7)),
    )


def test_hier_001_dedupe_keeps_last_record_per_line_in_first_seen_order() -> None:
    records = [
        SymbolRecord(name="a", file_path="x.c", line=5),
        SymbolRecord(name="b", file_path="x.c", line=5),
        SymbolRecord(name="c", file_path="x.c", line=9),
    ]

    assert dedupe_last_per_line(records) == [records[1], records[2]]


def test_hier_002_dedupe_by_call_key_keeps_distinct_callees_on_one_line() -> None:
    records = [
        SymbolRecord(name="a", file_path="x.c", line=5),
        SymbolRecord(name="b", file_path="x.c", line=5),
        SymbolRecord(name="a", file_path="x.c", line=5),
    ]

    assert dedupe_last_per_line(records, key=call_key) == [records[2], records[1]]


def test_hier_003_incoming_collapses_call_sites_per_line(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(
        callers=[
            SymbolRecord(name="a", file_path="a.c", line=3),
            SymbolRecord(name="b", file_path="a.c", line=3),
            SymbolRecord(name="c", file_path="a.c", line=7),
        ]
    )
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(_bar_node())

    assert [edge.from_node.name for edge in result.edges] == ["b", "c"]
    assert all(edge.to_node == _bar_node() for edge in result.edges)
    assert result.warnings == []


def test_hier_004_end_to_end_incoming_through_cscope_queries(
    tmp_path: Path, write_file, runner
) -> None:
    source = _workspace(tmp_path, write_file)
    runner.add(
        "-L3",
        "bar",
        stdout="a.c main 3 bar(); bar();\na.c main 3 bar(); bar();\na.c main 7 bar();\n",
    )
    runner.add(READTAGS_FORMAT, "main", stdout="main a.c 2 f\n")
    client = IndexQueryClient(IndexerConfig(root_path=tmp_path), runner=runner)
    provider = IndexRelationProvider(client, SymbolClassifier(source))
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(_bar_node())

    assert len(result.edges) == 2
    first, second = result.edges
    assert first.from_node.name == "main"
    assert first.from_node.kind == "function"
    assert first.from_node.detail == "a.c @ 3"
    assert first.site_ranges == (TextRange.on_line(2, 4, 7),)
    assert second.from_node.detail == "a.c @ 7"
    assert second.site_ranges == (TextRange.on_line(6, 4, 7),)


def test_hier_005_incoming_site_falls_back_to_line_start_when_token_missing(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(callers=[SymbolRecord(name="main", file_path="a.c", line=4)])
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(_bar_node())

    assert result.edges[0].site_ranges == (TextRange.empty(3),)
    assert result.warnings == []


def test_hier_006_incoming_degrades_on_missing_source_file(tmp_path: Path) -> None:
    provider = _FakeProvider(callers=[SymbolRecord(name="main", file_path="gone.c", line=2)])
    builder = HierarchyBuilder(provider, FileSystemSourceAccessor(tmp_path))

    result = builder.build_incoming(_bar_node())

    assert len(result.edges) == 1
    assert result.edges[0].site_ranges == (TextRange.empty(1),)
    assert result.warnings


def test_hier_007_query_failure_yields_empty_edges_and_warning(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    builder = HierarchyBuilder(_FakeProvider(fail=True), source)

    incoming = builder.build_incoming(_bar_node())
    outgoing = builder.build_outgoing(_bar_node())

    assert incoming.edges == []
    assert outgoing.edges == []
    assert "cannot open" in incoming.warnings[0]
    assert "cannot open" in outgoing.warnings[0]


def test_hier_008_outgoing_resolves_callee_ranges(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(
        callees=[SymbolRecord(name="baz", file_path="b.c", line=12)],
        kinds={"baz": "field"},
    )
    builder = HierarchyBuilder(provider, source)

    result = builder.build_outgoing(_bar_node())

    assert len(result.edges) == 1
    edge = result.edges[0]
    assert edge.from_node == _bar_node()
    assert edge.to_node.name == "baz"
    assert edge.to_node.kind == "field"
    assert edge.site_ranges == (TextRange.on_line(11, 11, 14),)
    assert edge.to_node.location == Location("b.c", TextRange.on_line(11, 11, 14))


def test_hier_009_incoming_definition_click_target_points_at_callee_definition(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(
        callers=[SymbolRecord(name="main", file_path="a.c", line=7)],
        definitions={
            "main": SymbolRecord(name="main", file_path="a.c", line=2),
            "bar": SymbolRecord(name="bar", file_path="b.c", line=10),
        },
    )
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(
        _bar_node(), options=HierarchyOptions(click_target="definition")
    )

    edge = result.edges[0]
    assert edge.from_node.name == "main"
    assert edge.from_node.location == Location("b.c", TextRange.on_line(9, 4, 7))
    assert edge.from_node.detail == "b.c @ 10"
    assert edge.site_ranges == (TextRange.on_line(6, 4, 7),)


def test_hier_010_definition_click_target_keeps_call_site_when_undefined(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(callers=[SymbolRecord(name="main", file_path="a.c", line=7)])
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(
        _bar_node(), options=HierarchyOptions(click_target="definition")
    )

    assert result.edges[0].from_node.location == Location("a.c", TextRange.on_line(6, 4, 7))


def test_hier_011_hidden_file_names_leave_only_line_in_detail() -> None:
    assert describe("src/a.c", 3, HierarchyOptions(show_file_names=False)) == " @ 3"
    assert describe("src/a.c", 3, HierarchyOptions()) == "a.c @ 3"


def test_hier_012_incoming_includers_become_file_nodes(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(includers=[SymbolRecord(name="a.c", file_path="a.c", line=1)])
    builder = HierarchyBuilder(provider, source)
    header = HierarchyNode(
        kind="file",
        name="b.h",
        detail="a.c @ 1",
        location=Location("a.c", TextRange.on_line(0, 0, 14)),
        is_include_node=True,
    )

    result = builder.build_incoming(header)

    edge = result.edges[0]
    assert edge.from_node.kind == "file"
    assert edge.from_node.is_include_node
    assert edge.from_node.name == "a.c"
    assert edge.from_node.location == Location("a.c", TextRange.on_line(0, 10, 13))
    assert provider.calls == ["includers"]


def test_hier_013_outgoing_includes_scan_the_file_text(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(files={"b.h": [SymbolRecord(name="b.h", file_path="b.h", line=1)]})
    builder = HierarchyBuilder(provider, source)
    header = HierarchyNode(
        kind="file",
        name="b.h",
        detail="a.c @ 1",
        location=Location("a.c", TextRange.on_line(0, 0, 14)),
        is_include_node=True,
    )

    result = builder.build_outgoing(header)

    assert [edge.to_node.name for edge in result.edges] == ["types.h", "stdio.h"]
    assert result.edges[0].site_ranges == (TextRange.on_line(0, 0, 18),)
    assert result.edges[1].site_ranges == (TextRange.on_line(2, 0, 18),)
    assert all(edge.to_node.is_include_node for edge in result.edges)
    assert provider.calls == ["file"]


def test_hier_014_outgoing_includes_of_unknown_header_warn(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    builder = HierarchyBuilder(_FakeProvider(), source)
    header = HierarchyNode(
        kind="file",
        name="nowhere.h",
        detail="",
        location=Location("a.c", TextRange.empty(0)),
        is_include_node=True,
    )

    result = builder.build_outgoing(header)

    assert result.edges == []
    assert "nowhere.h" in result.warnings[0]


def test_hier_015_cancelled_request_runs_no_queries(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(callers=[SymbolRecord(name="main", file_path="a.c", line=3)])
    builder = HierarchyBuilder(provider, source)
    flag = CancellationFlag()
    flag.cancel()

    result = builder.build_incoming(_bar_node(), cancellation=flag)

    assert result.cancelled
    assert result.edges == []
    assert provider.calls == []


def test_hier_016_cancellation_mid_expansion_returns_partial_edges(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(
        callers=[
            SymbolRecord(name="main", file_path="a.c", line=3),
            SymbolRecord(name="main", file_path="a.c", line=7),
        ]
    )
    flag = CancellationFlag()
    provider.on_classify = flag.cancel
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(_bar_node(), cancellation=flag)

    assert result.cancelled
    assert len(result.edges) == 1
    assert provider.calls.count("classify") == 1


def test_hier_017_prepare_builds_symbol_node_under_cursor(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    builder = HierarchyBuilder(_FakeProvider(), source)

    node = builder.prepare("a.c", 2, 5)

    assert node is not None
    assert node.name == "bar"
    assert node.kind == "function"
    assert not node.is_include_node
    assert node.location == Location("a.c", TextRange.on_line(2, 4, 7))
    assert node.detail == "a.c @ 3"


def test_hier_018_prepare_on_include_line_builds_include_node(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    builder = HierarchyBuilder(_FakeProvider(), source)

    node = builder.prepare("a.c", 0, 12)

    assert node is not None
    assert node.is_include_node
    assert node.kind == "file"
    assert node.name == "b.h"
    assert node.location.range == TextRange.on_line(0, 0, 14)


def test_hier_019_prepare_returns_none_off_symbol(tmp_path: Path, write_file) -> None:
    source = _workspace(tmp_path, write_file)
    builder = HierarchyBuilder(_FakeProvider(), source)

    assert builder.prepare("a.c", 4, 0) is None
    assert builder.prepare("missing.c", 0, 0) is None


def test_hier_020_word_at_accepts_cursor_at_word_end() -> None:
    assert word_at("foo(bar)", 3) == (0, 3)
    assert word_at("foo(bar)", 4) == (4, 7)
    assert word_at("   ", 1) is None


def test_hier_021_cancellation_during_definition_lookup_skips_classification(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(
        callers=[
            SymbolRecord(name="main", file_path="a.c", line=3),
            SymbolRecord(name="main", file_path="a.c", line=7),
        ],
        definitions={"bar": SymbolRecord(name="bar", file_path="b.c", line=10)},
    )
    flag = CancellationFlag()
    provider.on_definition = flag.cancel
    builder = HierarchyBuilder(provider, source)

    result = builder.build_incoming(
        _bar_node(),
        cancellation=flag,
        options=HierarchyOptions(click_target="definition"),
    )

    assert result.cancelled
    assert result.edges == []
    assert provider.calls == ["callers", "definition"]


def test_hier_022_outgoing_definition_click_target_points_at_callee_definition(
    tmp_path: Path, write_file
) -> None:
    source = _workspace(tmp_path, write_file)
    provider = _FakeProvider(
        callees=[SymbolRecord(name="bar", file_path="a.c", line=7)],
        definitions={"bar": SymbolRecord(name="bar", file_path="b.c", line=10)},
    )
    builder = HierarchyBuilder(provider, source)
    main = HierarchyNode(
        kind="function",
        name="main",
        detail="a.c @ 2",
        location=Location("a.c", TextRange.on_line(1, 5, 9)),
    )

    result = builder.build_outgoing(main, options=HierarchyOptions(click_target="definition"))

    edge = result.edges[0]
    assert edge.to_node.location == Location("b.c", TextRange.on_line(9, 4, 7))
    assert edge.site_ranges == (TextRange.on_line(6, 4, 7),)

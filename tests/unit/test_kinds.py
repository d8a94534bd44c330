from pathlib import Path

import pytest

from cch.kinds import SymbolClassifier, is_function_like_macro, kind_for_code
from cch.query import TagEntry
from cch.source import FileSystemSourceAccessor


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("f", "function"),
        ("p", "function"),
        ("e", "enum"),
        ("g", "enum_member"),
        ("s", "struct"),
        ("u", "struct"),
        ("t", "class"),
        ("m", "field"),
        ("v", "variable"),
        ("L", "namespace"),
        ("D", "type_parameter"),
    ],
)
def test_kind_001_table_maps_codes(code: str, expected: str) -> None:
    assert kind_for_code(code, "sym") == expected


def test_kind_002_unknown_code_is_unclassified_not_class() -> None:
    assert kind_for_code("q", "sym") == "unclassified"
    assert kind_for_code("", "sym") == "unclassified"


def test_kind_003_function_like_macro_is_reclassified_as_field() -> None:
    assert kind_for_code("d", "FOO", "#define FOO(x) ((x) + 1)") == "field"


def test_kind_004_object_like_macro_keeps_base_kind() -> None:
    assert kind_for_code("d", "FOO", "#define FOO 1") == "constant"
    assert kind_for_code("d", "FOO", None) == "constant"


def test_kind_005_macro_check_requires_exact_name() -> None:
    assert not is_function_like_macro("#define FOOBAR(x) x", "FOO")
    assert is_function_like_macro("  #  define FOO(a, b) a", "FOO")
    assert not is_function_like_macro("#define FOO (x)", "FOO")


def test_kind_006_classifier_reads_definition_line_of_last_entry(
    tmp_path: Path, write_file
) -> None:
    write_file(tmp_path / "a.h", "#define MAX 10\n")
    write_file(tmp_path / "b.h", "\n\n#define MAX(a, b) ((a) > (b) ? (a) : (b))\n")
    classifier = SymbolClassifier(FileSystemSourceAccessor(tmp_path))
    entries = [
        TagEntry(name="MAX", file_path="a.h", line=1, kind_code="d"),
        TagEntry(name="MAX", file_path="b.h", line=3, kind_code="d"),
    ]

    assert classifier.classify("MAX", entries) == "field"
    assert classifier.classify("MAX", entries[:1]) == "constant"


def test_kind_007_classifier_without_entries_is_unclassified(tmp_path: Path) -> None:
    classifier = SymbolClassifier(FileSystemSourceAccessor(tmp_path))

    assert classifier.classify("nothing", []) == "unclassified"


def test_kind_008_classifier_keeps_base_kind_when_definition_unreadable(
    tmp_path: Path,
) -> None:
    classifier = SymbolClassifier(FileSystemSourceAccessor(tmp_path))
    entries = [TagEntry(name="LIMIT", file_path="missing.h", line=4, kind_code="d")]

    assert classifier.classify("LIMIT", entries) == "constant"

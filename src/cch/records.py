# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Parsing of raw cross-reference query output lines."""

import logging
from typing import Callable

from cch.model import SymbolRecord

logger = logging.getLogger(__name__)

LineParser = Callable[[str], SymbolRecord]

_MIN_FIELDS = 3


def parse_call_site(line: str) -> SymbolRecord:
    """Parse a ``<file> <symbol> <line> ...`` query line.

    Args:
        line: One line of query output.

    Returns:
        Parsed record. Malformed input yields a record with ``line == -1``.
    """
    fields = line.split()
    if len(fields) < _MIN_FIELDS:
        return SymbolRecord(
            name=fields[1] if len(fields) > 1 else "",
            file_path=fields[0] if fields else "",
            line=-1,
        )
    return SymbolRecord(name=fields[1], file_path=fields[0], line=_parse_line_number(fields[2]))


def parse_file_record(line: str) -> SymbolRecord:
    """Parse an include/file query line where the first field is the subject.

    The record name is the final path segment of the first field.

    Args:
        line: One line of query output.

    Returns:
        Parsed record. Malformed input yields a record with ``line == -1``.
    """
    fields = line.split()
    file_path = fields[0] if fields else ""
    name = file_path.replace("\\", "/").rsplit("/", 1)[-1]
    if len(fields) < _MIN_FIELDS:
        return SymbolRecord(name=name, file_path=file_path, line=-1)
    return SymbolRecord(name=name, file_path=file_path, line=_parse_line_number(fields[2]))


def parse_output(output: str, parser: LineParser = parse_call_site) -> list[SymbolRecord]:
    """Parse raw query output into usable records, preserving order.

    Args:
        output: Raw newline separated query output.
        parser: Line parser variant to apply.

    Returns:
        Usable records; malformed lines are skipped.
    """
    records: list[SymbolRecord] = []
    for raw_line in output.splitlines():
        if not raw_line.strip():
            continue
        record = parser(raw_line)
        if not record.is_usable:
            logger.debug(f"Skipping malformed query line (line={raw_line!r})")
            continue
        records.append(record)
    return records


def _parse_line_number(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        return -1
    return number if number >= 1 else -1

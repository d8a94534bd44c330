# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Cross-reference and tag queries against cscope and readtags."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cch.config import IndexerConfig
from cch.model import SymbolRecord
from cch.records import LineParser, parse_call_site, parse_file_record, parse_output

logger = logging.getLogger(__name__)

QUERY_DEFINITION = 1
QUERY_CALLEES = 2
QUERY_CALLERS = 3
QUERY_FILE = 7
QUERY_INCLUDERS = 8

READTAGS_FORMAT = '(list $name " " $input " " $line " " $kind #t)'


class QueryFailedError(RuntimeError):
    """Represent a failed external query process."""


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one external process."""

    returncode: int
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    """Define how external processes are executed."""

    def run(self, argv: list[str], cwd: Path) -> CommandResult:
        """Run ``argv`` in ``cwd`` and wait for it to exit.

        Raises:
            OSError: If the executable cannot be started.
        """


class SubprocessRunner:
    """Run external processes with :mod:`subprocess`."""

    def run(self, argv: list[str], cwd: Path) -> CommandResult:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


@dataclass(frozen=True)
class TagEntry:
    """Represent one readtags result line.

    Attributes:
        name: Tag name.
        file_path: File holding the definition.
        line: Definition line (1-based), ``-1`` when not numeric.
        kind_code: ctags kind letter.
    """

    name: str
    file_path: str
    line: int
    kind_code: str


class IndexQueryClient:
    """Issue one-shot cscope and readtags queries for a workspace."""

    def __init__(self, config: IndexerConfig, runner: CommandRunner | None = None) -> None:
        """Initialize query client.

        Args:
            config: Workspace and tool configuration.
            runner: Process runner; defaults to :class:`SubprocessRunner`.
        """
        self._config = config
        self._runner = runner or SubprocessRunner()

    def find_definition(self, symbol_name: str) -> SymbolRecord | None:
        records = self._cscope(QUERY_DEFINITION, symbol_name, parse_call_site)
        return records[0] if records else None

    def find_callers(self, symbol_name: str) -> list[SymbolRecord]:
        return self._cscope(QUERY_CALLERS, symbol_name, parse_call_site)

    def find_callees(self, symbol_name: str) -> list[SymbolRecord]:
        return self._cscope(QUERY_CALLEES, symbol_name, parse_call_site)

    def find_includers(self, header_name: str) -> list[SymbolRecord]:
        return self._cscope(QUERY_INCLUDERS, header_name, parse_file_record)

    def find_file(self, file_name: str) -> list[SymbolRecord]:
        return self._cscope(QUERY_FILE, file_name, parse_file_record)

    def classify_tag(self, symbol_name: str) -> list[TagEntry]:
        """Query tag entries for a symbol.

        Args:
            symbol_name: Symbol to look up.

        Returns:
            Entries with at least four fields, in output order.

        Raises:
            QueryFailedError: If readtags fails.
        """
        output = self._execute(
            [
                self._config.tools.readtags,
                "-t",
                str(self._config.ctags_db_path),
                "-F",
                READTAGS_FORMAT,
                symbol_name,
            ]
        )
        entries: list[TagEntry] = []
        for line in output.splitlines():
            fields = line.split()
            if len(fields) < 4:
                continue
            try:
                line_number = int(fields[2])
            except ValueError:
                line_number = -1
            entries.append(
                TagEntry(
                    name=fields[0],
                    file_path=fields[1],
                    line=line_number,
                    kind_code=fields[3],
                )
            )
        return entries

    def _cscope(
        self, query_code: int, symbol_name: str, parser: LineParser
    ) -> list[SymbolRecord]:
        output = self._execute(
            [
                self._config.tools.cscope,
                "-d",
                "-f",
                str(self._config.cscope_db_path),
                f"-L{query_code}",
                symbol_name,
            ]
        )
        return parse_output(output, parser)

    def _execute(self, argv: list[str]) -> str:
        try:
            result = self._runner.run(argv, cwd=self._config.root_path)
        except OSError as exc:
            logger.warning(f"Query process could not start (argv={argv} error={exc})")
            raise QueryFailedError(f"Cannot run {argv[0]}: {exc}") from exc

        stderr = result.stderr.strip()
        if result.returncode != 0:
            logger.warning(
                f"Query failed (argv={argv} returncode={result.returncode} stderr={stderr!r})"
            )
            raise QueryFailedError(stderr or f"{argv[0]} exited with status {result.returncode}")
        if stderr:
            if not result.stdout.strip():
                logger.warning(f"Query reported errors (argv={argv} stderr={stderr!r})")
                raise QueryFailedError(stderr)
            logger.warning(f"Query produced warnings (argv={argv} stderr={stderr!r})")
        return result.stdout


def authoritative_tag(entries: list[TagEntry], symbol_name: str) -> TagEntry | None:
    """Return the last tag entry for ``symbol_name``; later entries win."""
    selected: TagEntry | None = None
    for entry in entries:
        if entry.name == symbol_name:
            selected = entry
    return selected

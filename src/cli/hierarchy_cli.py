# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command line front end for call and include hierarchies."""

import argparse
import json
import logging
import re
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, TextIO, cast

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from cch.config import (
    ClickTarget,
    HierarchyOptions,
    IndexerConfig,
    ToolPaths,
    discover_tool_paths,
    missing_tools,
)
from cch.database import DatabaseType
from cch.fallback_indexer import FallbackSourceIndexer, load_function_pattern
from cch.model import HierarchyNode
from cch.service import Backend, CallHierarchyService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HierarchyRow:
    """Represent one printed hierarchy row."""

    depth: int
    node: HierarchyNode
    site_line: int
    site_column: int


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root", default=".", help="Workspace root path.")
    common.add_argument("--cscope", help="cscope executable.")
    common.add_argument("--ctags", help="ctags executable.")
    common.add_argument("--readtags", help="readtags executable.")
    common.add_argument("--cscope-db", default="cscope.out", help="cscope database path.")
    common.add_argument("--ctags-db", default="ctags.out", help="ctags database path.")
    common.add_argument(
        "--format", choices=("table", "json"), default="table", help="Output format."
    )
    common.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    parser = argparse.ArgumentParser(prog="cch")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("check-tools", parents=[common])

    build_parser_ = subparsers.add_parser("build", parents=[common])
    build_parser_.add_argument(
        "--force", action="store_true", help="Rebuild both databases even if present."
    )

    index_parser = subparsers.add_parser("index", parents=[common])
    index_parser.add_argument(
        "--extensions", default=".c,.h", help="Comma-separated source file suffixes."
    )
    index_parser.add_argument("--pattern-file", help="Function boundary pattern override.")

    for name in ("incoming", "outgoing"):
        hierarchy_parser = subparsers.add_parser(name, parents=[common])
        hierarchy_parser.add_argument(
            "--file", required=True, help="Workspace-relative source file."
        )
        hierarchy_parser.add_argument("--line", type=int, required=True, help="Line (1-based).")
        hierarchy_parser.add_argument(
            "--column", type=int, default=1, help="Column (1-based)."
        )
        hierarchy_parser.add_argument(
            "--depth", type=int, default=1, help="Number of levels to expand."
        )
        hierarchy_parser.add_argument(
            "--click-target",
            choices=("call_site", "definition"),
            default="call_site",
            help="Where hierarchy rows navigate to.",
        )
        hierarchy_parser.add_argument(
            "--hide-file-names", action="store_true", help="Omit file names from details."
        )
        hierarchy_parser.add_argument(
            "--backend",
            choices=("auto", "index", "fallback"),
            default="auto",
            help="Relation backend.",
        )
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    root_path = Path(args.root)
    if not root_path.is_dir():
        logger.warning(f"Root path does not exist (path={root_path})")
        stderr.write(f"Root path does not exist: {root_path}\n")
        return 2
    config = build_config(args=args, root_path=root_path.resolve())

    if args.command == "check-tools":
        return _run_check_tools(config=config, args=args, stdout=stdout)
    if args.command == "build":
        return _run_build(config=config, args=args, stdout=stdout, stderr=stderr)
    if args.command == "index":
        return _run_index(config=config, args=args, stdout=stdout, stderr=stderr)
    if args.command in ("incoming", "outgoing"):
        return _run_hierarchy(config=config, args=args, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def build_config(args: argparse.Namespace, root_path: Path) -> IndexerConfig:
    """Create the indexer configuration from parsed arguments.

    Tools not given on the command line are discovered on PATH or in the
    per-user install directory.
    """
    discovered = discover_tool_paths()
    tools = ToolPaths(
        cscope=args.cscope or discovered.cscope,
        ctags=args.ctags or discovered.ctags,
        readtags=args.readtags or discovered.readtags,
    )
    extensions = getattr(args, "extensions", None)
    pattern_file = getattr(args, "pattern_file", None)
    return IndexerConfig(
        root_path=root_path,
        tools=tools,
        cscope_db=Path(args.cscope_db),
        ctags_db=Path(args.ctags_db),
        source_extensions=parse_extensions(extensions) if extensions else (".c", ".h"),
        function_pattern_path=Path(pattern_file) if pattern_file else None,
    )


def parse_extensions(value: str) -> tuple[str, ...]:
    """Parse a comma-separated suffix list, adding missing leading dots."""
    tokens = [part.strip() for part in value.split(",") if part.strip()]
    return tuple(token if token.startswith(".") else f".{token}" for token in tokens)


def _run_check_tools(config: IndexerConfig, args: argparse.Namespace, stdout: TextIO) -> int:
    missing = set(missing_tools(config.tools))
    rows = [
        {"tool": name, "path": path, "found": name not in missing}
        for name, path in config.tools.as_dict().items()
    ]
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    if args.format == "json":
        _print_json(console, {"tools": rows})
    else:
        table = Table(show_header=True, expand=True)
        table.add_column("tool")
        table.add_column("path", overflow="fold")
        table.add_column("found")
        for row in rows:
            table.add_row(str(row["tool"]), str(row["path"]), "yes" if row["found"] else "no")
        console.print(table)
    return 0 if not missing else 1


def _run_build(
    config: IndexerConfig, args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> int:
    service = CallHierarchyService(config)
    if args.force:
        report = service.database.build(DatabaseType.BOTH, progress=_log_progress("database_build"))
    else:
        report = service.database.ensure_ready(progress=_log_progress("database_build"))
    for failure in report.failures:
        stderr.write(f"build_error: {failure.step.name}: {failure}\n")
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    payload = {
        "executed": [step.name for step in report.executed if step.name],
        "failed": [failure.step.name for failure in report.failures if failure.step.name],
        "state": service.database.state,
    }
    if args.format == "json":
        _print_json(console, payload)
    else:
        console.print(
            f"executed={','.join(payload['executed']) or '-'} "
            f"failed={','.join(payload['failed']) or '-'} state={payload['state']}",
            markup=False,
            highlight=False,
        )
    return 0 if report.succeeded else 1


def _run_index(
    config: IndexerConfig, args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> int:
    try:
        pattern = load_function_pattern(config.function_pattern_path)
    except (OSError, re.error) as exc:
        logger.warning(f"Invalid function pattern (path={config.function_pattern_path} error={exc})")
        stderr.write(f"Invalid function pattern: {exc}\n")
        return 2
    indexer = FallbackSourceIndexer(extensions=config.source_extensions, function_pattern=pattern)
    index = indexer.index(config.root_path, progress=_log_progress("fallback_index"))
    if index is None:
        stderr.write("Indexing already in progress\n")
        return 1
    for error in index.errors:
        stderr.write(f"indexer_error: {error}\n")

    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    if args.format == "json":
        _print_json(
            console,
            {
                "functions": [
                    {key: value for key, value in asdict(record).items() if key != "body_text"}
                    for record in index.functions
                ],
                "includes": [asdict(directive) for directive in index.includes],
                "errors": [asdict(error) for error in index.errors],
            },
        )
        return 0
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column("file_path", ratio=2, overflow="fold")
    table.add_column("line", justify="right", ratio=1)
    table.add_column("name", ratio=2, overflow="fold")
    table.add_column("callees", ratio=5, overflow="fold")
    for record in index.functions:
        table.add_row(
            record.file_path,
            str(record.line_number),
            record.name,
            ", ".join(record.callee_names),
        )
    console.print(table)
    return 0


def _run_hierarchy(
    config: IndexerConfig, args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> int:
    if args.line <= 0 or args.column <= 0 or args.depth <= 0:
        logger.warning(
            f"Invalid position or depth (line={args.line} column={args.column} depth={args.depth})"
        )
        stderr.write("line, column and depth must be > 0\n")
        return 2
    options = HierarchyOptions(
        show_file_names=not args.hide_file_names,
        click_target=cast(ClickTarget, args.click_target),
    )
    service = CallHierarchyService(
        config, options=options, backend=cast(Backend, args.backend)
    )
    root = service.prepare(
        args.file, args.line - 1, args.column - 1, progress=_log_progress("prepare")
    )
    if root is None:
        stderr.write(f"No symbol at {args.file}:{args.line}:{args.column}\n")
        return 1

    rows, warnings = expand_hierarchy(
        service=service, root=root, incoming=args.command == "incoming", depth=args.depth
    )
    for warning in warnings:
        stderr.write(f"warning: {warning}\n")
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    if args.format == "json":
        _print_json(
            console,
            {
                "root": asdict(root),
                "direction": args.command,
                "rows": [asdict(row) for row in rows],
                "warnings": warnings,
            },
        )
    else:
        _write_hierarchy_table(console=console, root=root, rows=rows)
    return 0


def expand_hierarchy(
    service: CallHierarchyService, root: HierarchyNode, incoming: bool, depth: int
) -> tuple[list[HierarchyRow], list[str]]:
    """Expand a hierarchy depth-first up to ``depth`` levels.

    Nodes already on the current path are listed but not expanded again.

    Args:
        service: Hierarchy service.
        root: Prepared root node.
        incoming: Expand callers/includers when True, callees/includes otherwise.
        depth: Maximum number of levels.

    Returns:
        Printed rows in expansion order and collected warnings.
    """
    rows: list[HierarchyRow] = []
    warnings: list[str] = []
    _expand_level(
        service=service,
        node=root,
        incoming=incoming,
        level=1,
        depth=depth,
        path=frozenset({_node_key(root)}),
        rows=rows,
        warnings=warnings,
    )
    return rows, warnings


def _expand_level(
    service: CallHierarchyService,
    node: HierarchyNode,
    incoming: bool,
    level: int,
    depth: int,
    path: frozenset[str],
    rows: list[HierarchyRow],
    warnings: list[str],
) -> None:
    result = service.incoming(node) if incoming else service.outgoing(node)
    warnings.extend(result.warnings)
    for edge in result.edges:
        other = edge.from_node if incoming else edge.to_node
        site = edge.site_ranges[0]
        rows.append(
            HierarchyRow(
                depth=level,
                node=other,
                site_line=site.start.line + 1,
                site_column=site.start.character + 1,
            )
        )
        key = _node_key(other)
        if level < depth and key not in path:
            _expand_level(
                service=service,
                node=other,
                incoming=incoming,
                level=level + 1,
                depth=depth,
                path=path | {key},
                rows=rows,
                warnings=warnings,
            )


def _node_key(node: HierarchyNode) -> str:
    return f"{'include' if node.is_include_node else 'symbol'}:{node.name}"


def _write_hierarchy_table(console: Console, root: HierarchyNode, rows: list[HierarchyRow]) -> None:
    console.rule(Text(f"{root.name} ({root.kind}) {root.detail}"), characters="-")
    table = Table(show_header=True, expand=True)
    table.add_column("depth", justify="right", ratio=1)
    table.add_column("kind", ratio=2)
    table.add_column("name", ratio=3, overflow="fold")
    table.add_column("detail", ratio=3, overflow="fold")
    table.add_column("location", ratio=4, overflow="fold")
    for row in rows:
        location = row.node.location
        table.add_row(
            str(row.depth),
            row.node.kind,
            f"{'  ' * (row.depth - 1)}{row.node.name}",
            row.node.detail,
            f"{location.file_path}:{location.range.start.line + 1}:"
            f"{location.range.start.character + 1}",
        )
    console.print(table)


def _print_json(console: Console, payload: dict[str, object]) -> None:
    console.print(
        json.dumps(payload, indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _log_progress(operation: str) -> Callable[[float, str], None]:
    completed = 0.0

    def report(increment: float, message: str) -> None:
        nonlocal completed
        completed = min(100.0, completed + increment)
        logger.info(f"{operation}_progress percent={completed:.2f} message={message}")

    return report


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

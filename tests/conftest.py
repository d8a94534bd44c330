import sys
from pathlib import Path

import pytest


def _add_src_to_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_add_src_to_path()

from cch.query import CommandResult  # noqa: E402


class ScriptedRunner:
    """Answer external commands from canned results keyed by argv tail."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._results: dict[tuple[str, ...], CommandResult] = {}
        self._side_effects: dict[str, list[Path]] = {}

    def add(
        self,
        *argv_tail: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> None:
        self._results[argv_tail] = CommandResult(
            returncode=returncode, stdout=stdout, stderr=stderr
        )

    def creates(self, tool: str, path: Path) -> None:
        self._side_effects.setdefault(tool, []).append(path)

    def run(self, argv: list[str], cwd: Path) -> CommandResult:
        self.calls.append(list(argv))
        for path in self._side_effects.get(argv[0], []):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("db", encoding="utf-8")
        for size in range(len(argv), 0, -1):
            result = self._results.get(tuple(argv[-size:]))
            if result is not None:
                return result
        return CommandResult(returncode=0, stdout="", stderr="")

    def tools_called(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def runner() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture
def write_file():
    def _write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write

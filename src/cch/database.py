# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Lifecycle of the cscope cross-reference and ctags tag databases."""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal

from cch.config import IndexerConfig
from cch.query import CommandRunner, SubprocessRunner

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]
DatabaseState = Literal["missing", "building", "ready"]


class DatabaseType(enum.Flag):
    """Selects which databases a build covers."""

    CSCOPE = 1
    CTAGS = 2
    BOTH = CSCOPE | CTAGS


class BuildStepFailedError(RuntimeError):
    """Represent one failed database build step."""

    def __init__(self, step: DatabaseType, message: str) -> None:
        super().__init__(message)
        self.step = step


@dataclass
class BuildReport:
    """Summarize one build request.

    Attributes:
        executed: Steps that were invoked, in order.
        failures: Failed steps with their error messages.
        rejected: True when the request arrived while a build was running.
    """

    executed: list[DatabaseType] = field(default_factory=list)
    failures: list[BuildStepFailedError] = field(default_factory=list)
    rejected: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.rejected and not self.failures


class DatabaseManager:
    """Decide when to (re)build the databases and run the build steps."""

    def __init__(self, config: IndexerConfig, runner: CommandRunner | None = None) -> None:
        """Initialize manager.

        Args:
            config: Workspace, tool and database path configuration.
            runner: Process runner; defaults to :class:`SubprocessRunner`.
        """
        self._config = config
        self._runner = runner or SubprocessRunner()
        self._building = False

    @property
    def state(self) -> DatabaseState:
        if self._building:
            return "building"
        if self.missing_databases():
            return "missing"
        return "ready"

    def missing_databases(self) -> DatabaseType:
        """Return the databases whose files do not exist."""
        missing = DatabaseType(0)
        if not self._config.cscope_db_path.exists():
            missing |= DatabaseType.CSCOPE
        if not self._config.ctags_db_path.exists():
            missing |= DatabaseType.CTAGS
        return missing

    def ensure_ready(self, progress: ProgressCallback | None = None) -> BuildReport:
        """Build only the databases that are missing.

        Args:
            progress: Receives ``(increment_percent, message)`` updates.

        Returns:
            Build report; empty when both databases exist.
        """
        missing = self.missing_databases()
        if not missing:
            return BuildReport()
        logger.info(f"Databases missing; rebuilding (targets={missing})")
        return self.build(missing, progress=progress)

    def build(
        self,
        targets: DatabaseType = DatabaseType.BOTH,
        progress: ProgressCallback | None = None,
    ) -> BuildReport:
        """Run the selected build steps; one failing step does not stop the other.

        Args:
            targets: Databases to build.
            progress: Receives ``(increment_percent, message)`` updates.

        Returns:
            Build report.
        """
        if self._building:
            logger.warning(f"Database build already running; request rejected (targets={targets})")
            return BuildReport(rejected=True)

        report = BuildReport()
        steps = [step for step in (DatabaseType.CSCOPE, DatabaseType.CTAGS) if step in targets]
        if not steps:
            return report
        share = 100.0 / len(steps)
        self._building = True
        try:
            for index, step in enumerate(steps):
                _report(progress, 0.0 if index == 0 else share, _STEP_MESSAGES[step])
                report.executed.append(step)
                try:
                    self._run_step(step)
                except BuildStepFailedError as exc:
                    report.failures.append(exc)
            _report(progress, share, "Finished building database")
        finally:
            self._building = False

        logger.info(
            f"Database build completed (targets={targets} executed={len(report.executed)} "
            f"failures={len(report.failures)})"
        )
        return report

    def _run_step(self, step: DatabaseType) -> None:
        output_path = self._output_path(step)
        argv = self._build_command(step, output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            result = self._runner.run(argv, cwd=self._config.root_path)
        except OSError as exc:
            logger.warning(f"Build step could not run (step={step} argv={argv} error={exc})")
            raise BuildStepFailedError(step, str(exc)) from exc
        if result.returncode != 0:
            message = result.stderr.strip() or f"{argv[0]} exited with status {result.returncode}"
            logger.warning(f"Build step failed (step={step} argv={argv} error={message})")
            raise BuildStepFailedError(step, message)

    def _output_path(self, step: DatabaseType) -> Path:
        if step == DatabaseType.CSCOPE:
            return self._config.cscope_db_path
        return self._config.ctags_db_path

    def _build_command(self, step: DatabaseType, output_path: Path) -> list[str]:
        tools = self._config.tools
        if step == DatabaseType.CSCOPE:
            return [tools.cscope, "-Rcbk", "-f", str(output_path)]
        return [tools.ctags, "--fields=+i", "-Rn", "-o", str(output_path)]


_STEP_MESSAGES: dict[DatabaseType, str] = {
    DatabaseType.CSCOPE: "Building cscope database...",
    DatabaseType.CTAGS: "Building ctags database...",
}


def _report(progress: ProgressCallback | None, increment: float, message: str) -> None:
    logger.debug(f"Database build progress (increment={increment} message={message})")
    if progress is not None:
        progress(increment, message)

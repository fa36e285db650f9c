"""Local command execution session."""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..utils.logging import get_logger

logger = get_logger(__name__)

# Exit status reported when the executable itself could not be started
COMMAND_NOT_RUNNABLE = 127


@dataclass
class LocalCommandResult:
    """Result of executing a local command."""
    command: List[str]
    output: str
    exit_status: int
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)

    @property
    def output_lines(self) -> List[str]:
        return self.output.splitlines()


class LocalSession:
    """
    Runs external commands on the current machine.

    Commands are argument lists handed straight to the process spawner, never
    to a shell. Standard output and standard error are captured as a single
    stream. No timeout is applied: a command waiting on input blocks the
    caller until it exits.

    In dry-run mode nothing is spawned and a successful, empty result is
    returned, so callers do not need to special-case dry runs.
    """

    def __init__(self, env: Optional[dict] = None) -> None:
        """
        Initialize local session.

        Args:
            env: Environment for spawned commands. Defaults to the current one.
        """
        self.env = env

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Optional[Union[str, Path]] = None,
        dry_run: bool = False,
    ) -> LocalCommandResult:
        """
        Execute a command.

        Args:
            args: Program and its arguments
            cwd: Working directory for the command
            dry_run: Skip execution and report success

        Returns:
            LocalCommandResult with combined output and exit status
        """
        command = [str(arg) for arg in args]
        if dry_run:
            return LocalCommandResult(command=command, output="", exit_status=0, dry_run=True)
        return self._run_blocking(command, cwd)

    def _run_blocking(self, command: List[str], cwd: Optional[Union[str, Path]]) -> LocalCommandResult:
        """Run command and wait for completion."""
        try:
            process = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                env=self.env,
                check=False,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as exc:
            logger.debug("Could not start %s: %s", command[0], exc)
            return LocalCommandResult(
                command=command,
                output=str(exc),
                exit_status=COMMAND_NOT_RUNNABLE,
            )

        return LocalCommandResult(
            command=command,
            output=(process.stdout or "").rstrip(),
            exit_status=process.returncode,
        )

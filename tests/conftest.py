"""Shared test doubles."""

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from app_deployer.local import LocalCommandResult, LocalSession


class RecordingSession(LocalSession):
    """Records every command instead of spawning it.

    `responses` maps a command prefix (tuple) to (exit_status, output). The
    longest matching prefix wins; unmatched commands succeed silently.
    """

    def __init__(self, responses: Optional[Dict[Tuple[str, ...], Tuple[int, str]]] = None) -> None:
        super().__init__()
        self.responses = responses or {}
        self.calls: List[Tuple[List[str], bool]] = []

    def run(self, args: Sequence[str], *, cwd=None, dry_run: bool = False) -> LocalCommandResult:
        command = [str(arg) for arg in args]
        self.calls.append((command, dry_run))
        if dry_run:
            return LocalCommandResult(command=command, output="", exit_status=0, dry_run=True)

        matches = [p for p in self.responses if tuple(command[: len(p)]) == p]
        if matches:
            status, output = self.responses[max(matches, key=len)]
            return LocalCommandResult(command=command, output=output, exit_status=status)
        return LocalCommandResult(command=command, output="", exit_status=0)

    @property
    def commands(self) -> List[List[str]]:
        return [command for command, _ in self.calls]

    @property
    def executed(self) -> List[List[str]]:
        """Commands that would really have been spawned."""
        return [command for command, dry_run in self.calls if not dry_run]


@pytest.fixture
def on_branch_session() -> RecordingSession:
    return RecordingSession({("git", "branch"): (0, "  develop\n* main\n")})


@pytest.fixture
def on_tag_session() -> RecordingSession:
    return RecordingSession({("git", "branch"): (0, "* (HEAD detached at release-2.0)\n  main\n")})

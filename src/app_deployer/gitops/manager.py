"""Git-based checkout synchronisation."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import DeploymentError, FailureCode
from ..local import LocalCommandResult, LocalSession
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Text git puts in the current-branch line of `git branch` when HEAD is not on
# a branch. Old clients print "(no branch)", newer ones "(HEAD detached at X)"
# or "(HEAD detached from X)" once commits were made on top.
DETACHED_MARKERS = ("(no branch", "detached at", "detached from")


class GitCommandError(DeploymentError):
    """Raised when a git command fails."""

    failure_code = FailureCode.CHECKOUT_FAILED

    def __init__(self, message: str, result: Optional[LocalCommandResult] = None) -> None:
        super().__init__(
            self.failure_code,
            message,
            command=result.command if result else None,
            exit_code=result.exit_status if result else None,
            output=result.output if result else "",
        )


class NotARepositoryError(GitCommandError):
    failure_code = FailureCode.NOT_A_REPOSITORY


class CheckoutFailedError(GitCommandError):
    failure_code = FailureCode.CHECKOUT_FAILED


class MergeFailedError(GitCommandError):
    failure_code = FailureCode.MERGE_FAILED


class HeadKind(str, Enum):
    """Where HEAD points after a checkout."""
    ATTACHED = "attached"
    DETACHED = "detached"
    UNKNOWN = "unknown"  # dry run, nothing was checked out


@dataclass(frozen=True)
class GitState:
    kind: HeadKind
    branch: Optional[str] = None

    @property
    def is_attached(self) -> bool:
        return self.kind is HeadKind.ATTACHED

    @classmethod
    def attached(cls, branch: str) -> "GitState":
        return cls(HeadKind.ATTACHED, branch)

    @classmethod
    def detached(cls) -> "GitState":
        return cls(HeadKind.DETACHED)


@dataclass
class GitUpdateResult:
    """Details about a completed reference update."""

    state: GitState
    merged: bool = False
    commands: List[LocalCommandResult] = field(default_factory=list)

    @property
    def output_lines(self) -> List[str]:
        lines: List[str] = []
        for result in self.commands:
            lines.extend(result.output_lines)
        return lines


def check_ref(ref: str) -> None:
    """Reject refs git would read as an option or that cannot name anything."""
    if not ref or ref.startswith("-") or any(char.isspace() for char in ref):
        raise CheckoutFailedError(f"Invalid branch or tag name: {ref!r}")


def classify_head(branch_listing: str) -> GitState:
    """Classify HEAD from the output of `git branch`.

    Only the line flagged with `*` matters. A repository without any commit
    has no such line and is treated as detached, since there is nothing to
    merge into.
    """
    for line in branch_listing.splitlines():
        if not line.startswith("*"):
            continue
        current = line[1:].strip()
        if not current or any(marker in current for marker in DETACHED_MARKERS):
            return GitState.detached()
        return GitState.attached(current)
    return GitState.detached()


class GitRepositoryManager:
    """Checks out a tag or branch in an existing working copy.

    Branches are fast-forwarded to the remote tip after checkout; tags and
    raw commits are left exactly as checked out.
    """

    def __init__(
        self,
        session: LocalSession,
        git_binary: str = "git",
        remote: str = "origin",
    ) -> None:
        self.session = session
        self.git_binary = git_binary
        self.remote = remote

    def update(self, path: Path, ref: str, dry_run: bool = False) -> GitUpdateResult:
        """Synchronise the checkout at `path` with `ref`.

        Raises:
            NotARepositoryError: `path` is not a git working copy
            CheckoutFailedError: `ref` is not a usable name, or fetch or
                checkout exited non-zero
            MergeFailedError: the fast-forward merge exited non-zero
        """
        path = Path(path)
        self.ensure_repository(path)
        check_ref(ref)

        logger.info("Checking out the %s branch or tag", ref)
        commands = [
            self._run(["fetch", self.remote], path, dry_run, CheckoutFailedError,
                      f"Error while fetching from {self.remote}"),
            self._run(["checkout", ref], path, dry_run, CheckoutFailedError,
                      "Error while checking out the git version"),
        ]

        if dry_run:
            logger.info("Dry run: not checking whether %s needs a merge", ref)
            return GitUpdateResult(state=GitState(HeadKind.UNKNOWN), commands=commands)

        state = self.current_state(path)
        if not state.is_attached:
            logger.debug("HEAD is detached, leaving %s as checked out", ref)
            return GitUpdateResult(state=state, commands=commands)

        commands.append(
            self._run(["merge", f"{self.remote}/{ref}"], path, dry_run, MergeFailedError,
                      f"Error while updating the git branch {ref}")
        )
        return GitUpdateResult(state=state, merged=True, commands=commands)

    def ensure_repository(self, path: Path) -> None:
        # Read-only, so it runs for real even in a dry run
        result = self.session.run(self._command(["rev-parse", "--git-dir"]), cwd=path)
        if not result.ok:
            raise NotARepositoryError(f"The directory {path} is not a git repository", result)

    def current_state(self, path: Path) -> GitState:
        result = self.session.run(self._command(["branch", "--no-color"]), cwd=path)
        if not result.ok:
            raise CheckoutFailedError("Could not read the current branch", result)
        state = classify_head(result.output)
        logger.debug("Current HEAD: %s%s", state.kind.value, f" ({state.branch})" if state.branch else "")
        return state

    def _run(
        self,
        args: Sequence[str],
        path: Path,
        dry_run: bool,
        error: type,
        message: str,
    ) -> LocalCommandResult:
        command = self._command(args)
        logger.debug("Running: %s", shlex.join(command))
        result = self.session.run(command, cwd=path, dry_run=dry_run)
        if not result.ok:
            raise error(message, result)
        return result

    def _command(self, args: Sequence[str]) -> List[str]:
        return [self.git_binary, *args]

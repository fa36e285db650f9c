"""Deployment failure taxonomy."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence


class FailureCode(str, Enum):
    """Why a deployment step failed."""
    NOT_A_REPOSITORY = "NotARepository"
    CHECKOUT_FAILED = "CheckoutFailed"
    MERGE_FAILED = "MergeFailed"
    DEPENDENCY_INSTALL_FAILED = "DependencyInstallFailed"
    CACHE_CLEAR_FAILED = "CacheClearFailed"
    MIGRATION_FAILED = "MigrationFailed"
    RESTART_FAILED = "RestartFailed"


class DeploymentError(RuntimeError):
    """Raised by a step when one of its commands fails."""

    def __init__(
        self,
        code: FailureCode,
        message: str,
        command: Optional[Sequence[str]] = None,
        exit_code: Optional[int] = None,
        output: str = "",
    ) -> None:
        self.code = code
        self.command = list(command) if command else []
        self.exit_code = exit_code
        self.output = output
        super().__init__(message)


class CommandFailedError(DeploymentError):
    """A step command exited with a non-zero status."""

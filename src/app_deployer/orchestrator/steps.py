"""Deployment steps.

Each step wraps one action against the checkout and reports a StepResult.
Steps raise DeploymentError internally; `DeploymentStep.execute` turns it
into a failed result so the runner only ever sees results.
"""

from __future__ import annotations

import re
import shlex
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config import CommandConfig
from ..errors import CommandFailedError, DeploymentError, FailureCode
from ..gitops import GitRepositoryManager
from ..interaction import ConfirmationGate
from ..local import CheckoutProbe, LocalCommandResult, LocalSession
from ..utils.logging import get_logger
from .models import DeploymentRequest, StepResult, StepStatus

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class StepSkipped(Exception):
    """Raised by a step that decided, after asking, not to run."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class DeploymentStep(ABC):
    """A named unit of the deployment pipeline."""

    name: str = "step"
    failure_code: FailureCode = FailureCode.DEPENDENCY_INSTALL_FAILED
    error_message: str = "Error while running the step"

    def __init__(self, session: LocalSession) -> None:
        self.session = session

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        """Return why the step does not apply, or None to run it."""
        return None

    @abstractmethod
    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        """Run the step and return the commands it executed."""

    def execute(self, request: DeploymentRequest) -> StepResult:
        reason = self.should_skip(request)
        if reason:
            logger.info("%s, skipping", reason)
            return StepResult.skipped(self.name, reason)

        try:
            results = self.perform(request)
        except StepSkipped as skip:
            logger.info("%s, skipping", skip.reason)
            return StepResult.skipped(self.name, skip.reason)
        except DeploymentError as exc:
            return StepResult(
                step=self.name,
                status=StepStatus.FAILED,
                exit_code=exc.exit_code,
                output_lines=exc.output.splitlines(),
                failure_code=exc.code,
                command=exc.command,
                message=str(exc),
            )

        output_lines: List[str] = []
        for result in results:
            output_lines.extend(result.output_lines)
        return StepResult(
            step=self.name,
            status=StepStatus.SUCCESS,
            exit_code=results[-1].exit_status if results else None,
            output_lines=output_lines,
            command=results[-1].command if results else [],
        )

    def run_command(
        self,
        template: Sequence[str],
        request: DeploymentRequest,
        **values: str,
    ) -> LocalCommandResult:
        command = render_command(template, request, **values)
        logger.debug("Running: %s", shlex.join(command))
        result = self.session.run(command, cwd=request.path, dry_run=request.dry_run)
        if not result.ok:
            raise CommandFailedError(
                self.failure_code,
                self.error_message,
                command=command,
                exit_code=result.exit_status,
                output=result.output,
            )
        return result


def render_command(template: Sequence[str], request: DeploymentRequest, **values: str) -> List[str]:
    """Fill placeholders argument by argument.

    Only `{name}` tokens with a known value are replaced. Anything else,
    such as the `{}` of `find -exec`, is passed through untouched.
    """
    context: Dict[str, str] = {"path": str(request.path), "ref": request.ref}
    context.update(values)

    def substitute(match: "re.Match[str]") -> str:
        return context.get(match.group(1), match.group(0))

    return [_PLACEHOLDER.sub(substitute, item) for item in template]


class GitUpdateStep(DeploymentStep):
    """Checks out the requested ref. Failures carry the code of the git error."""

    name = "git update"

    def __init__(self, session: LocalSession, git_manager: GitRepositoryManager) -> None:
        super().__init__(session)
        self.git_manager = git_manager

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        return self.git_manager.update(request.path, request.ref, dry_run=request.dry_run).commands


class DependencyInstallStep(DeploymentStep):
    name = "dependency install"
    failure_code = FailureCode.DEPENDENCY_INSTALL_FAILED
    error_message = "Error while installing project dependencies"

    def __init__(self, session: LocalSession, probe: CheckoutProbe, command: Sequence[str]) -> None:
        super().__init__(session)
        self.probe = probe
        self.command = list(command)

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        if not self.command:
            return "No dependency install command configured"
        if not self.probe.collect(request.path).has_backend_manifest:
            return f"No {self.probe.backend_manifest} found"
        return None

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        logger.info("Updating project dependencies")
        return [self.run_command(self.command, request)]


class FrontendBuildStep(DeploymentStep):
    name = "frontend build"
    failure_code = FailureCode.DEPENDENCY_INSTALL_FAILED
    error_message = "Error while building the frontend"

    def __init__(
        self,
        session: LocalSession,
        probe: CheckoutProbe,
        commands: Sequence[Sequence[str]],
    ) -> None:
        super().__init__(session)
        self.probe = probe
        self.commands = [list(command) for command in commands if command]

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        if not self.commands:
            return "No frontend build configured"
        if not self.probe.collect(request.path).has_frontend_manifest:
            return f"No {self.probe.frontend_manifest} found, no frontend to build"
        return None

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        logger.info("Building frontend assets")
        return [self.run_command(command, request) for command in self.commands]


class CacheInvalidateStep(DeploymentStep):
    name = "cache clear"
    failure_code = FailureCode.CACHE_CLEAR_FAILED
    error_message = "Error while clearing the cache"

    def __init__(self, session: LocalSession, probe: CheckoutProbe, command: Sequence[str]) -> None:
        super().__init__(session)
        self.probe = probe
        self.command = list(command)

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        if not self.command:
            return "No cache clear command configured"
        if not self.probe.collect(request.path).has_cache_dir:
            return "No cache to clear"
        return None

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        logger.info("Clearing cache")
        cache_dir = self.probe.cache_path(Path(request.path))
        return [self.run_command(self.command, request, cache_dir=str(cache_dir))]


class WebServerReloadStep(DeploymentStep):
    """Graceful web server restart, flushing the opcode cache."""

    name = "web server reload"
    failure_code = FailureCode.RESTART_FAILED
    error_message = "Error while reloading the web server"

    def __init__(self, session: LocalSession, command: Sequence[str]) -> None:
        super().__init__(session)
        self.command = list(command)

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        if not self.command:
            return "No web server reload configured"
        return None

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        logger.info("Reloading the web server to empty the opcode cache")
        return [self.run_command(self.command, request)]


class DatabaseMigrateStep(DeploymentStep):
    name = "database migration"
    failure_code = FailureCode.MIGRATION_FAILED
    error_message = "Error while running DB update"

    def __init__(self, session: LocalSession, gate: ConfirmationGate, command: Sequence[str]) -> None:
        super().__init__(session)
        self.gate = gate
        self.command = list(command)

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        if not self.command:
            return "No database migration command configured"
        return None

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        if not self.gate.confirm(request.update_database, "Run the migrations to update the database?"):
            raise StepSkipped("Database update not requested")
        logger.info("Updating the database")
        return [self.run_command(self.command, request)]


class WorkerRestartStep(DeploymentStep):
    name = "worker restart"
    failure_code = FailureCode.RESTART_FAILED
    error_message = "Error while restarting the worker"

    def __init__(self, session: LocalSession, gate: ConfirmationGate, command: Sequence[str]) -> None:
        super().__init__(session)
        self.gate = gate
        self.command = list(command)

    def should_skip(self, request: DeploymentRequest) -> Optional[str]:
        if not self.command:
            return "No worker restart command configured"
        return None

    def perform(self, request: DeploymentRequest) -> List[LocalCommandResult]:
        worker = self.gate.ask_name(
            request.restart_worker,
            "Name of the worker to restart (leave empty to skip step)",
        )
        if not worker:
            raise StepSkipped("No worker to restart")
        logger.info("Restarting the worker '%s'", worker)
        return [self.run_command(self.command, request, worker=worker)]


def default_steps(
    session: LocalSession,
    git_manager: GitRepositoryManager,
    gate: ConfirmationGate,
    probe: CheckoutProbe,
    commands: CommandConfig,
) -> List[DeploymentStep]:
    """The fixed deployment order."""
    return [
        GitUpdateStep(session, git_manager),
        DependencyInstallStep(session, probe, commands.dependency_install),
        FrontendBuildStep(session, probe, commands.frontend_build),
        CacheInvalidateStep(session, probe, commands.cache_clear),
        WebServerReloadStep(session, commands.web_server_reload),
        DatabaseMigrateStep(session, gate, commands.database_migrate),
        WorkerRestartStep(session, gate, commands.worker_restart),
    ]

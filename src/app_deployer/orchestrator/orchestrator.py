"""Pipeline runner: executes deployment steps in order, fail-fast."""

from __future__ import annotations

import shlex
from typing import List, Optional, Sequence

from ..config import AppConfig
from ..gitops import GitRepositoryManager
from ..interaction import ConfirmationGate
from ..local import CheckoutProbe, LocalSession
from ..utils.logging import get_logger
from .models import DeploymentRequest, PipelineOutcome, StepResult
from .steps import DeploymentStep, default_steps

logger = get_logger(__name__)


class PipelineRunner:
    """
    Runs the deployment steps against one checkout.

    Steps run strictly one after another. The first failed step stops the
    run and decides the outcome; skipped steps count as success. Nothing is
    rolled back: a failed migration leaves the checkout already updated.
    """

    def __init__(
        self,
        session: LocalSession,
        git_manager: GitRepositoryManager,
        gate: ConfirmationGate,
        config: Optional[AppConfig] = None,
        steps: Optional[Sequence[DeploymentStep]] = None,
    ) -> None:
        self.session = session
        self.git_manager = git_manager
        self.gate = gate
        self.config = config or AppConfig()
        if steps is None:
            deployment = self.config.deployment
            probe = CheckoutProbe(
                backend_manifest=deployment.backend_manifest,
                frontend_manifest=deployment.frontend_manifest,
                cache_dir=deployment.cache_dir,
            )
            steps = default_steps(session, git_manager, gate, probe, self.config.commands)
        self.steps: List[DeploymentStep] = list(steps)

    def run(self, request: DeploymentRequest) -> PipelineOutcome:
        outcome = PipelineOutcome()
        logger.info("Deploying version %s to %s", request.ref, request.path)
        if request.dry_run:
            logger.info("Dry run: no command will be executed")

        for step in self.steps:
            logger.debug("Step: %s", step.name)
            result = step.execute(request)
            outcome.record(result)
            if result.failed:
                self._report_failure(result)
                return outcome

        logger.info("Deployment success")
        return outcome

    def _report_failure(self, result: StepResult) -> None:
        # Errors are logged at ERROR so they show even in quiet mode
        logger.error(
            "%s [%s]",
            result.message or f"Step {result.step} failed",
            result.failure_code.value if result.failure_code else "failed",
        )
        if result.command:
            logger.error("Command used: %s", shlex.join(result.command))
        if result.exit_code is not None:
            logger.error("Exit status: %s", result.exit_code)
        for line in result.output_lines:
            logger.error("  %s", line)

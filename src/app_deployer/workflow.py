"""High-level workflow: wires collaborators together and runs a deployment."""

from __future__ import annotations

import logging
from typing import Optional

from .config import AppConfig
from .gitops import GitRepositoryManager
from .interaction import (
    AutoResponseHandler,
    CLIInteractionHandler,
    ConfirmationGate,
    UserInteractionHandler,
)
from .local import LocalSession
from .orchestrator import DeploymentRequest, PipelineOutcome, PipelineRunner, Verbosity
from .utils.logging import configure_logging

LOG_LEVELS = {
    Verbosity.QUIET: logging.WARNING,
    Verbosity.NORMAL: logging.INFO,
    Verbosity.VERBOSE: logging.DEBUG,
}


class DeploymentWorkflow:
    """Builds the pipeline from configuration and runs one request."""

    def __init__(
        self,
        config: AppConfig,
        session: Optional[LocalSession] = None,
        interaction_handler: Optional[UserInteractionHandler] = None,
    ) -> None:
        self.config = config
        self.session = session or LocalSession()
        # Operator prompts - terminal by default, canned answers in auto mode
        self.interaction_handler = interaction_handler or self._default_handler(config)
        self.git_manager = GitRepositoryManager(
            self.session,
            git_binary=config.git.binary,
            remote=config.git.remote,
        )
        self.runner = PipelineRunner(
            session=self.session,
            git_manager=self.git_manager,
            gate=ConfirmationGate(self.interaction_handler),
            config=config,
        )

    @staticmethod
    def _default_handler(config: AppConfig) -> UserInteractionHandler:
        if config.interaction.mode == "auto":
            return AutoResponseHandler(always_confirm=config.interaction.auto_confirm)
        if config.interaction.mode != "cli":
            raise ValueError(f"Unsupported interaction mode: {config.interaction.mode}")
        return CLIInteractionHandler()

    def run_deploy(self, request: DeploymentRequest) -> PipelineOutcome:
        configure_logging(LOG_LEVELS[request.verbosity])
        return self.runner.run(request)

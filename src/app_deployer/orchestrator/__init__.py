"""
Deployment pipeline.

Runs the fixed sequence of deployment steps against one checkout:
source sync, dependency installation, frontend build, cache invalidation,
web server reload, database migration and worker restart.

Main components:
- PipelineRunner: runs the steps in order and stops at the first failure
- DeploymentStep: a named unit with a uniform execute/report contract
- Models: DeploymentRequest, StepResult, PipelineOutcome
"""

from .models import (
    DeploymentRequest,
    PipelineOutcome,
    StepResult,
    StepStatus,
    Verbosity,
)
from .orchestrator import PipelineRunner
from .steps import (
    CacheInvalidateStep,
    DatabaseMigrateStep,
    DependencyInstallStep,
    DeploymentStep,
    FrontendBuildStep,
    GitUpdateStep,
    StepSkipped,
    WebServerReloadStep,
    WorkerRestartStep,
    default_steps,
)

__all__ = [
    "CacheInvalidateStep",
    "DatabaseMigrateStep",
    "DependencyInstallStep",
    "DeploymentRequest",
    "DeploymentStep",
    "FrontendBuildStep",
    "GitUpdateStep",
    "PipelineOutcome",
    "PipelineRunner",
    "StepResult",
    "StepSkipped",
    "StepStatus",
    "Verbosity",
    "WebServerReloadStep",
    "WorkerRestartStep",
    "default_steps",
]

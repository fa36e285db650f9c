"""Data models for the deployment pipeline."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import List, Optional

from ..errors import FailureCode
from ..interaction import AskOperator, Decision


class Verbosity(IntEnum):
    """How much the pipeline reports."""
    QUIET = 0
    NORMAL = 1
    VERBOSE = 2


class StepStatus(Enum):
    """Outcome of a single step"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DeploymentRequest:
    """One deployment invocation. Built once from the CLI, never mutated."""

    ref: str
    path: Path
    dry_run: bool = False
    verbosity: Verbosity = Verbosity.NORMAL
    update_database: Decision = field(default_factory=AskOperator)
    restart_worker: Decision = field(default_factory=AskOperator)


@dataclass
class StepResult:
    """What happened when a step ran."""
    step: str
    status: StepStatus
    exit_code: Optional[int] = None     # None when no command ran
    output_lines: List[str] = field(default_factory=list)
    failure_code: Optional[FailureCode] = None
    command: List[str] = field(default_factory=list)
    message: Optional[str] = None       # skip reason or error message

    @property
    def failed(self) -> bool:
        return self.status is StepStatus.FAILED

    @classmethod
    def skipped(cls, step: str, reason: str) -> "StepResult":
        return cls(step=step, status=StepStatus.SKIPPED, message=reason)


@dataclass
class PipelineOutcome:
    """Aggregate of a pipeline run, built up as steps complete."""
    results: List[StepResult] = field(default_factory=list)
    failed_step: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.failed_step is None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def failure(self) -> Optional[StepResult]:
        for result in self.results:
            if result.failed:
                return result
        return None

    def record(self, result: StepResult) -> None:
        if self.failed_step is not None:
            raise RuntimeError(
                f"Step {result.step} ran after {self.failed_step} had already failed"
            )
        self.results.append(result)
        if result.failed:
            self.failed_step = result.step

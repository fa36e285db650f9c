"""Operator decisions for optional deployment steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .handler import InputType, InteractionRequest, UserInteractionHandler


@dataclass(frozen=True)
class Forced:
    """The operator already decided: run with this value."""
    value: Union[bool, str]


@dataclass(frozen=True)
class Forbidden:
    """The operator already decided: do not run."""


@dataclass(frozen=True)
class AskOperator:
    """No decision was given, ask when the step is reached."""


Decision = Union[Forced, Forbidden, AskOperator]


def decision_from_flags(force: Union[bool, str, None], forbid: bool) -> Decision:
    """Build a decision from a force flag and a no-op flag.

    `force` is True or a name when given, None or False when not. A name
    given but blank means the operator asked for nothing to run.
    """
    if forbid:
        return Forbidden()
    if isinstance(force, str) and not force.strip():
        return Forbidden()
    if force:
        return Forced(force)
    return AskOperator()


class ConfirmationGate:
    """Resolves a decision, prompting the operator only when needed."""

    def __init__(self, handler: UserInteractionHandler) -> None:
        self.handler = handler

    def confirm(self, decision: Decision, prompt: str) -> bool:
        """Resolve a yes/no decision. Unanswered prompts default to no."""
        if isinstance(decision, Forced):
            return bool(decision.value)
        if isinstance(decision, Forbidden):
            return False
        response = self.handler.ask(
            InteractionRequest(question=prompt, input_type=InputType.CONFIRM, default="n")
        )
        return response.confirmed

    def ask_name(self, decision: Decision, prompt: str) -> Optional[str]:
        """Resolve a name. None means the step should be skipped.

        An empty answer is a request to skip, never an empty name.
        """
        if isinstance(decision, Forced):
            if not isinstance(decision.value, str):
                return None
            return decision.value.strip() or None
        if isinstance(decision, Forbidden):
            return None
        response = self.handler.ask(
            InteractionRequest(question=prompt, input_type=InputType.TEXT, default="")
        )
        if response.cancelled:
            return None
        return response.value.strip() or None

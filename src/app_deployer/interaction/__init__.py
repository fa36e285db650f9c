"""Operator interaction: prompts and decisions."""

from .gate import AskOperator, ConfirmationGate, Decision, Forbidden, Forced, decision_from_flags
from .handler import (
    AutoResponseHandler,
    CLIInteractionHandler,
    InputType,
    InteractionRequest,
    InteractionResponse,
    UserInteractionHandler,
)

__all__ = [
    "AskOperator",
    "AutoResponseHandler",
    "CLIInteractionHandler",
    "ConfirmationGate",
    "Decision",
    "Forbidden",
    "Forced",
    "InputType",
    "InteractionRequest",
    "InteractionResponse",
    "UserInteractionHandler",
    "decision_from_flags",
]

"""User interaction handlers for deployment prompts."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

logger = logging.getLogger(__name__)


class InputType(str, Enum):
    """Type of user input expected."""
    TEXT = "text"           # free text, empty answer allowed
    CONFIRM = "confirm"     # yes/no


@dataclass
class InteractionRequest:
    """A question put to the operator."""

    question: str
    input_type: InputType = InputType.CONFIRM
    default: Optional[str] = None


@dataclass
class InteractionResponse:
    """Operator's answer to an interaction request."""

    value: str
    cancelled: bool = False

    @property
    def confirmed(self) -> bool:
        return not self.cancelled and self.value.strip().lower() in ("y", "yes")

    @classmethod
    def cancelled_response(cls) -> "InteractionResponse":
        return cls(value="", cancelled=True)


class UserInteractionHandler(ABC):
    """Abstract base class for handling operator interaction."""

    @abstractmethod
    def ask(self, request: InteractionRequest) -> InteractionResponse:
        """
        Present a request to the operator and block for the answer.

        Args:
            request: The interaction request to present

        Returns:
            The operator's response
        """


class CLIInteractionHandler(UserInteractionHandler):
    """Terminal prompts rendered with rich."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        try:
            if request.input_type == InputType.CONFIRM:
                return self._handle_confirm(request)
            return self._handle_text(request)
        except KeyboardInterrupt:
            self.console.print("(cancelled)")
            return InteractionResponse.cancelled_response()
        except EOFError:
            return InteractionResponse.cancelled_response()

    def _handle_confirm(self, request: InteractionRequest) -> InteractionResponse:
        default = (request.default or "n").lower() in ("y", "yes")
        answer = Confirm.ask(request.question, default=default, console=self.console)
        return InteractionResponse(value="yes" if answer else "no")

    def _handle_text(self, request: InteractionRequest) -> InteractionResponse:
        answer = Prompt.ask(
            request.question,
            default=request.default or "",
            show_default=bool(request.default),
            console=self.console,
        )
        return InteractionResponse(value=(answer or "").strip())


class AutoResponseHandler(UserInteractionHandler):
    """
    Answers without a terminal, for non-interactive runs and tests.

    Predefined responses are matched by keyword in the question. Otherwise
    confirmations are accepted when `always_confirm` is set and everything
    else gets the request default.
    """

    def __init__(
        self,
        default_responses: Optional[Dict[str, str]] = None,
        always_confirm: bool = False,
    ) -> None:
        self.default_responses = default_responses or {}
        self.always_confirm = always_confirm
        self.asked: List[InteractionRequest] = []

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        self.asked.append(request)
        logger.debug("Auto-responding to: %s", request.question)

        for keyword, response in self.default_responses.items():
            if keyword.lower() in request.question.lower():
                return InteractionResponse(value=response)

        if request.input_type == InputType.CONFIRM:
            if self.always_confirm:
                return InteractionResponse(value="yes")
            return InteractionResponse(value=request.default or "no")
        return InteractionResponse(value=request.default or "")

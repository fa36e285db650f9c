"""Local execution module for running deployment commands on this machine."""

from .session import LocalSession, LocalCommandResult
from .probe import CheckoutProbe, CheckoutFacts

__all__ = ["LocalSession", "LocalCommandResult", "CheckoutProbe", "CheckoutFacts"]

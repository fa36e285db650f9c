"""Git operations helpers."""

from .manager import (
    CheckoutFailedError,
    GitCommandError,
    GitRepositoryManager,
    GitState,
    GitUpdateResult,
    HeadKind,
    MergeFailedError,
    NotARepositoryError,
    check_ref,
    classify_head,
)

__all__ = [
    "CheckoutFailedError",
    "GitCommandError",
    "GitRepositoryManager",
    "GitState",
    "GitUpdateResult",
    "HeadKind",
    "MergeFailedError",
    "NotARepositoryError",
    "check_ref",
    "classify_head",
]

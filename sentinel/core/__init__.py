"""Core building blocks: submission state machine, retry policy, logging."""

from sentinel.core.workflow import (
    SubmissionWorkflow,
    WorkflowTransition,
    InvalidTransitionError,
)
from sentinel.core.retry import RetryStrategy

__all__ = [
    "SubmissionWorkflow",
    "WorkflowTransition",
    "InvalidTransitionError",
    "RetryStrategy",
]

"""
Submission state machine.

Aggregate status:
    SCANNING → VERIFIED | PAYOUT_SENT | FAILED

Stage sub-statuses (ownership → duplicate → freshness → decision):
    PENDING → VERIFIED | FAILED | SKIPPED

A failed stage fails the whole submission and freezes the remaining stages.
FAILED and PAYOUT_SENT are terminal.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import logging

from pydantic import BaseModel, Field

from sentinel.models.submission import (
    STAGE_ORDER,
    Stage,
    StageStatus,
    SubmissionRecord,
    SubmissionStatus,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a transition would move a record backward or out of order."""
    pass


class WorkflowTransition(BaseModel):
    """A single applied transition."""

    target: str  # "status" or a stage name
    from_value: str
    to_value: str
    reason: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SubmissionWorkflow:
    """
    State machine guarding a SubmissionRecord.

    The workflow mutates the record it wraps; the coordinator publishes the
    record after every successful transition.
    """

    ALLOWED_TRANSITIONS = {
        SubmissionStatus.SCANNING: [
            SubmissionStatus.VERIFIED,
            SubmissionStatus.PAYOUT_SENT,
            SubmissionStatus.FAILED,
        ],
        SubmissionStatus.VERIFIED: [],
        SubmissionStatus.PAYOUT_SENT: [],
        SubmissionStatus.FAILED: [],
    }

    def __init__(self, record: SubmissionRecord):
        """
        Initialize workflow state machine.

        Args:
            record: Record to guard, normally fresh in SCANNING state
        """
        self.record = record
        self.transition_history: List[WorkflowTransition] = []

    @property
    def current_status(self) -> SubmissionStatus:
        return self.record.status

    @property
    def is_terminal(self) -> bool:
        return self.record.is_terminal

    def can_transition_to(self, target: SubmissionStatus) -> bool:
        """Check whether the aggregate status may move to ``target``."""
        return target in self.ALLOWED_TRANSITIONS.get(self.record.status, [])

    def next_pending_stage(self) -> Optional[Stage]:
        """First stage still pending, in pipeline order."""
        for stage in STAGE_ORDER:
            if self.record.steps[stage] == StageStatus.PENDING:
                return stage
        return None

    def set_stage(
        self,
        stage: Union[Stage, str],
        status: StageStatus,
        reason: str = "",
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Resolve a stage.

        Stages must be resolved in pipeline order and only once. Setting a
        stage to FAILED also fails the submission.

        Raises:
            InvalidTransitionError: If the record is terminal, the stage is
                already resolved, or an earlier stage is still pending
        """
        stage = Stage(stage)
        self._ensure_open()

        if status == StageStatus.PENDING:
            raise InvalidTransitionError(f"Stage {stage.value} cannot move back to pending")

        current = self.record.steps[stage]
        if current != StageStatus.PENDING:
            raise InvalidTransitionError(
                f"Stage {stage.value} already resolved as {current.value}"
            )

        expected = self.next_pending_stage()
        if expected != stage:
            raise InvalidTransitionError(
                f"Stage {stage.value} resolved out of order (next pending: "
                f"{expected.value if expected else 'none'})"
            )

        self.record.steps[stage] = status
        self._record(stage.value, current.value, status.value, reason, metadata)
        logger.info(f"[{self.record.id}] {stage.value}: {status.value}")

        if status == StageStatus.FAILED:
            self.fail(reason or f"{stage.value} check failed")
        else:
            self.record.touch()
        return True

    def transition_to(
        self,
        target: SubmissionStatus,
        reason: str = "",
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Move the aggregate status.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target):
            raise InvalidTransitionError(
                f"Invalid transition from {self.record.status.value} to {target.value}. "
                f"Allowed transitions: {[s.value for s in self.ALLOWED_TRANSITIONS[self.record.status]]}"
            )

        previous = self.record.status
        self.record.status = target
        if reason:
            self.record.reasoning = reason
        self.record.touch()
        self._record("status", previous.value, target.value, reason, metadata)
        logger.info(f"[{self.record.id}] status {previous.value} → {target.value}")
        return True

    def fail(self, reason: str) -> bool:
        """Fail the submission with a human-readable reason."""
        return self.transition_to(SubmissionStatus.FAILED, reason=reason)

    def get_transition_history(self) -> List[WorkflowTransition]:
        """Get full transition history."""
        return self.transition_history.copy()

    def to_dict(self) -> Dict[str, Any]:
        """Export workflow state to dictionary."""
        return {
            "id": self.record.id,
            "status": self.record.status.value,
            "steps": {stage.value: status.value for stage, status in self.record.steps.items()},
            "transition_count": len(self.transition_history),
        }

    def _ensure_open(self):
        if self.record.is_terminal:
            raise InvalidTransitionError(
                f"Submission {self.record.id} is terminal ({self.record.status.value})"
            )

    def _record(self, target, from_value, to_value, reason, metadata):
        self.transition_history.append(
            WorkflowTransition(
                target=target,
                from_value=from_value,
                to_value=to_value,
                reason=reason,
                metadata=metadata or {},
            )
        )

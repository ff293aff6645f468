"""Pydantic models shared across the pipeline."""

from sentinel.models.submission import (
    Decision,
    PayoutInstrumentKind,
    ScoreBreakdown,
    Stage,
    STAGE_ORDER,
    StageStatus,
    Submission,
    SubmissionRecord,
    SubmissionRequest,
    SubmissionStatus,
    SubmissionValidationError,
    TERMINAL_STATUSES,
    generate_submission_id,
)

__all__ = [
    "Decision",
    "PayoutInstrumentKind",
    "ScoreBreakdown",
    "Stage",
    "STAGE_ORDER",
    "StageStatus",
    "Submission",
    "SubmissionRecord",
    "SubmissionRequest",
    "SubmissionStatus",
    "SubmissionValidationError",
    "TERMINAL_STATUSES",
    "generate_submission_id",
]

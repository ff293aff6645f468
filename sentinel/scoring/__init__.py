"""Deterministic keyword scoring and funding recommendation."""

from sentinel.scoring.scorer import (
    BASE_SCORE,
    FUND_THRESHOLD,
    REVIEW_THRESHOLD,
    SIGNAL_INCREMENT,
    SUB_SCORE_MAX,
    EvaluationResult,
    decide,
    score_content,
    score_signals,
    verification_hash,
)

__all__ = [
    "BASE_SCORE",
    "FUND_THRESHOLD",
    "REVIEW_THRESHOLD",
    "SIGNAL_INCREMENT",
    "SUB_SCORE_MAX",
    "EvaluationResult",
    "decide",
    "score_content",
    "score_signals",
    "verification_hash",
]

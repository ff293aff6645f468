"""
Submission data models.

Submission is the immutable ingress entity; SubmissionRecord is the mutable
projection the coordinator updates and broadcasts to observers.
"""

import secrets
import string
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_submission_id(length: int = 9) -> str:
    """Generate an opaque submission id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class SubmissionValidationError(ValueError):
    """Raised when an ingress request is malformed."""
    pass


class StageStatus(str, Enum):
    """Status of a single verification stage."""
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"
    SKIPPED = "skipped"


class Stage(str, Enum):
    """Verification stages, in pipeline order."""
    OWNERSHIP = "ownership"
    DUPLICATE = "duplicate"
    FRESHNESS = "freshness"
    DECISION = "decision"


STAGE_ORDER = [Stage.OWNERSHIP, Stage.DUPLICATE, Stage.FRESHNESS, Stage.DECISION]


class SubmissionStatus(str, Enum):
    """Aggregate status of a submission."""
    SCANNING = "Scanning"
    VERIFIED = "Verified"
    PAYOUT_SENT = "Payout Sent"
    FAILED = "Failed"


TERMINAL_STATUSES = {SubmissionStatus.FAILED, SubmissionStatus.PAYOUT_SENT}


class Decision(str, Enum):
    """Grant recommendation produced by the scorer."""
    FUND = "FUND"
    REVIEW = "REVIEW"
    REJECT = "REJECT"


class PayoutInstrumentKind(str, Enum):
    """Funding instruments, primary first."""
    BIO = "BIO"
    SOL = "SOL"


class Submission(BaseModel):
    """An accepted research submission. Never mutated after ingress."""

    model_config = ConfigDict(frozen=True)

    id: str
    locator: str
    title: str
    author: str
    claimant: Optional[str] = None
    proof: Optional[str] = None  # base64 ed25519 signature
    client_id: Optional[str] = None
    received_at: datetime = Field(default_factory=_utcnow)

    @property
    def has_claim(self) -> bool:
        return self.claimant is not None

    @property
    def recipient(self) -> str:
        """Payout recipient: the claimant wallet, else the declared author."""
        return self.claimant or self.author or ""


class SubmissionRequest(BaseModel):
    """
    Ingress request body.

    Example:
        ```python
        request = SubmissionRequest(
            cid="bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
            title="Senolytic cocktail in aged mice",
            walletAddress="7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
            signature="<base64 signature>",
        )
        ```
    """

    model_config = ConfigDict(populate_by_name=True)

    cid: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")
    signature: Optional[str] = None

    @field_validator("cid", "title", "author", "wallet_address", "signature")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def validate_claim(self) -> "SubmissionRequest":
        if not self.cid:
            raise ValueError("Missing CID field")
        if (self.wallet_address is None) != (self.signature is None):
            raise ValueError(
                "Both walletAddress and signature are required for verified claims."
            )
        return self

    @classmethod
    def parse(cls, data: Any) -> "SubmissionRequest":
        """
        Validate a raw request body.

        Raises:
            SubmissionValidationError: If the body is malformed
        """
        if not isinstance(data, dict):
            raise SubmissionValidationError("Request body must be a JSON object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            errors = e.errors()
            message = errors[0]["msg"] if errors else str(e)
            raise SubmissionValidationError(message.removeprefix("Value error, ")) from e

    def to_submission(self, submission_id: str, client_id: Optional[str] = None) -> Submission:
        """Build the immutable submission, filling default title and author."""
        return Submission(
            id=submission_id,
            locator=self.cid,
            title=self.title or f"Research Submission {submission_id}",
            author=self.author or "Unknown Researcher",
            claimant=self.wallet_address,
            proof=self.signature,
            client_id=client_id,
        )


class ScoreBreakdown(BaseModel):
    """Four sub-scores, each in [0, 25]."""

    reproducibility: int = Field(ge=0, le=25)
    methodology: int = Field(ge=0, le=25)
    novelty: int = Field(ge=0, le=25)
    impact: int = Field(ge=0, le=25)

    @property
    def trust_score(self) -> int:
        total = self.reproducibility + self.methodology + self.novelty + self.impact
        return max(0, min(total, 100))


def _pending_steps() -> Dict[Stage, StageStatus]:
    return {stage: StageStatus.PENDING for stage in STAGE_ORDER}


class SubmissionRecord(BaseModel):
    """Observable state of one submission."""

    id: str
    title: str
    author: str
    locator: str
    status: SubmissionStatus = SubmissionStatus.SCANNING
    steps: Dict[Stage, StageStatus] = Field(default_factory=_pending_steps)

    trust_score: int = 0
    reproducibility_score: Optional[int] = None
    methodology_score: Optional[int] = None
    novelty_score: Optional[int] = None
    impact_score: Optional[int] = None
    recommended_destination: str = "Unassigned"
    impact_category: str = ""
    decision: Optional[Decision] = None
    reasoning: str = ""

    verification_hash: str = ""
    fingerprint: str = ""
    payout_tx: Optional[str] = None
    payout_instrument: Optional[PayoutInstrumentKind] = None

    timestamp: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_submission(cls, submission: Submission) -> "SubmissionRecord":
        return cls(
            id=submission.id,
            title=submission.title,
            author=submission.author,
            locator=submission.locator,
            timestamp=submission.received_at,
            updated_at=submission.received_at,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def apply_scores(self, breakdown: ScoreBreakdown):
        self.reproducibility_score = breakdown.reproducibility
        self.methodology_score = breakdown.methodology
        self.novelty_score = breakdown.novelty
        self.impact_score = breakdown.impact
        self.trust_score = breakdown.trust_score

    def touch(self):
        self.updated_at = _utcnow()

    def to_event(self) -> Dict[str, Any]:
        """Serialize for observers (camelCase keys, JSON-safe values)."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "cid": self.locator,
            "status": self.status.value,
            "verificationSteps": {stage.value: status.value for stage, status in self.steps.items()},
            "trustScore": self.trust_score,
            "reproducibilityScore": self.reproducibility_score,
            "methodologyScore": self.methodology_score,
            "noveltyScore": self.novelty_score,
            "impactScore": self.impact_score,
            "recommendedBioDao": self.recommended_destination,
            "impactCategory": self.impact_category,
            "grantRecommendation": self.decision.value if self.decision else None,
            "agentReasoning": self.reasoning,
            "verificationHash": self.verification_hash,
            "fingerprint": self.fingerprint,
            "payoutTx": self.payout_tx,
            "payoutToken": self.payout_instrument.value if self.payout_instrument else None,
            "timestamp": self.timestamp.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

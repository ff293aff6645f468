"""
SQLAlchemy models for persisted submission records.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionRecordRow(Base):
    """One submission record, overwritten on every published transition."""

    __tablename__ = "submission_records"

    id = Column(String(32), primary_key=True)
    title = Column(Text, nullable=False)
    author = Column(String(255), nullable=False)
    locator = Column(String(255), nullable=False, index=True)
    status = Column(String(32), nullable=False, index=True)
    steps = Column(JSON, nullable=False, default=dict)

    trust_score = Column(Integer, nullable=False, default=0)
    reproducibility_score = Column(Integer)
    methodology_score = Column(Integer)
    novelty_score = Column(Integer)
    impact_score = Column(Integer)
    recommended_destination = Column(String(128))
    impact_category = Column(String(128))
    decision = Column(String(16))
    reasoning = Column(Text)

    verification_hash = Column(String(64), index=True)
    fingerprint = Column(String(64))
    payout_tx = Column(String(128))
    payout_instrument = Column(String(16))

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

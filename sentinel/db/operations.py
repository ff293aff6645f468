"""
CRUD operations for persisted submission records.
"""

from typing import List, Optional
import logging
import time

from sqlalchemy import event
from sqlalchemy.orm import Session

from sentinel.db.models import SubmissionRecordRow
from sentinel.models.submission import SubmissionRecord

logger = logging.getLogger(__name__)


def log_slow_queries(engine, threshold_ms: float = 100.0):
    """
    Log slow database queries.

    Args:
        engine: SQLAlchemy engine
        threshold_ms: Threshold in milliseconds for slow query logging
    """
    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.time()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if context.executemany:
            return

        duration_ms = (time.time() - context._query_start_time) * 1000
        if duration_ms > threshold_ms:
            logger.warning(
                f"Slow query ({duration_ms:.2f}ms): {statement[:200]}"
                + ("..." if len(statement) > 200 else "")
            )


def upsert_record(session: Session, record: SubmissionRecord) -> SubmissionRecordRow:
    """Insert or overwrite the row for ``record``."""
    row = session.get(SubmissionRecordRow, record.id)
    if row is None:
        row = SubmissionRecordRow(id=record.id, created_at=record.timestamp)
        session.add(row)

    row.title = record.title
    row.author = record.author
    row.locator = record.locator
    row.status = record.status.value
    row.steps = {stage.value: status.value for stage, status in record.steps.items()}
    row.trust_score = record.trust_score
    row.reproducibility_score = record.reproducibility_score
    row.methodology_score = record.methodology_score
    row.novelty_score = record.novelty_score
    row.impact_score = record.impact_score
    row.recommended_destination = record.recommended_destination
    row.impact_category = record.impact_category
    row.decision = record.decision.value if record.decision else None
    row.reasoning = record.reasoning
    row.verification_hash = record.verification_hash
    row.fingerprint = record.fingerprint
    row.payout_tx = record.payout_tx
    row.payout_instrument = record.payout_instrument.value if record.payout_instrument else None
    row.updated_at = record.updated_at

    session.flush()
    return row


def get_record(session: Session, record_id: str) -> Optional[SubmissionRecordRow]:
    return session.get(SubmissionRecordRow, record_id)


def list_records(
    session: Session,
    status: Optional[str] = None,
    limit: int = 100
) -> List[SubmissionRecordRow]:
    """
    List records, newest first.

    Args:
        session: Database session
        status: Filter by aggregate status value (e.g. "Payout Sent")
        limit: Maximum results to return
    """
    query = session.query(SubmissionRecordRow)
    if status:
        query = query.filter(SubmissionRecordRow.status == status)
    return query.order_by(SubmissionRecordRow.created_at.desc()).limit(limit).all()

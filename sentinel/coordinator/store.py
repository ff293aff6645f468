"""
In-memory record store with optional database write-through.

Inside an event loop, writes are handed to a single background writer thread
so a slow database never stalls the pipelines; the single worker keeps writes
in submission order. Outside a loop they run inline.
"""

import asyncio
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Set
import logging

from sqlalchemy.exc import SQLAlchemyError

from sentinel.models.submission import PayoutInstrumentKind, SubmissionRecord, SubmissionStatus

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Ordered log of submission records, newest first.

    Records are held by reference: the coordinator mutates a record through
    its workflow and calls ``update`` to persist the new state.
    """

    def __init__(self, persist: bool = False):
        """
        Initialize the store.

        Args:
            persist: Write every add/update through to ``sentinel.db``
                (the database must already be initialized)
        """
        self.persist = persist
        self._lock = threading.Lock()
        self._records: List[SubmissionRecord] = []
        self._index: Dict[str, SubmissionRecord] = {}
        self._writer: Optional[ThreadPoolExecutor] = None
        self._pending: Set[asyncio.Future] = set()

    def __contains__(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._index

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def add(self, record: SubmissionRecord):
        with self._lock:
            if record.id in self._index:
                raise ValueError(f"Record {record.id} already exists")
            self._records.insert(0, record)
            self._index[record.id] = record
        self._write_through(record)

    def get(self, record_id: str) -> Optional[SubmissionRecord]:
        with self._lock:
            return self._index.get(record_id)

    def update(self, record: SubmissionRecord):
        with self._lock:
            if record.id not in self._index:
                raise KeyError(f"Unknown record {record.id}")
            self._index[record.id] = record
            self._records = [record if r.id == record.id else r for r in self._records]
        self._write_through(record)

    def list(self) -> List[SubmissionRecord]:
        """All records, newest first."""
        with self._lock:
            return list(self._records)

    def stats(self) -> Dict[str, Any]:
        """
        Aggregate counters.

        Verified counts include paid records; the average trust score is
        rounded half-up to one decimal.
        """
        records = self.list()
        total = len(records)
        verified = sum(
            1 for r in records
            if r.status in (SubmissionStatus.VERIFIED, SubmissionStatus.PAYOUT_SENT)
        )
        funded = sum(1 for r in records if r.status == SubmissionStatus.PAYOUT_SENT)
        average = sum(r.trust_score for r in records) / total if total else 0.0

        return {
            "papersScanned": total,
            "papersVerified": verified,
            "payoutsSent": funded,
            "avgTrustScore": math.floor(average * 10 + 0.5) / 10,
            "integrations": {
                "bioTokenPayouts": sum(
                    1 for r in records if r.payout_instrument == PayoutInstrumentKind.BIO
                ),
                "solPayouts": sum(
                    1 for r in records if r.payout_instrument == PayoutInstrumentKind.SOL
                ),
            },
        }

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def flush(self):
        """Wait for every queued database write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self):
        """Flush queued writes and stop the writer thread."""
        await self.flush()
        if self._writer is not None:
            self._writer.shutdown(wait=False)
            self._writer = None

    def _write_through(self, record: SubmissionRecord):
        if not self.persist:
            return

        snapshot = record.model_copy(deep=True)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._persist(snapshot)
            return

        if self._writer is None:
            self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-writer")
        future = loop.run_in_executor(self._writer, self._persist, snapshot)
        self._pending.add(future)
        future.add_done_callback(self._write_done)

    def _write_done(self, future: asyncio.Future):
        self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error(f"Record write failed: {future.exception()}")

    def _persist(self, record: SubmissionRecord):
        from sentinel.db import get_session
        from sentinel.db.operations import upsert_record

        try:
            with get_session() as session:
                upsert_record(session, record)
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist record {record.id}: {e}")

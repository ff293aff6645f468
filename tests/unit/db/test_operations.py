"""
Tests for record persistence.
"""

import time

import pytest

from sentinel import db
from sentinel.config import reset_config
from sentinel.coordinator import RecordStore
from sentinel.db.operations import get_record, list_records, upsert_record
from sentinel.models.submission import (
    Decision,
    PayoutInstrumentKind,
    Stage,
    StageStatus,
    SubmissionRecord,
    SubmissionStatus,
)


@pytest.fixture
def database():
    db.init_database("sqlite:///:memory:", enable_slow_query_logging=False)
    yield
    db.reset_database()


def make_record(record_id="rec1"):
    return SubmissionRecord(id=record_id, title="Paper", author="Author", locator="bafy")


def test_upsert_inserts_and_updates(database):
    record = make_record()

    with db.get_session() as session:
        upsert_record(session, record)

    record.status = SubmissionStatus.PAYOUT_SENT
    record.steps[Stage.OWNERSHIP] = StageStatus.SKIPPED
    record.decision = Decision.FUND
    record.payout_tx = "sig"
    record.payout_instrument = PayoutInstrumentKind.BIO

    with db.get_session() as session:
        upsert_record(session, record)

    with db.get_session() as session:
        row = get_record(session, "rec1")
        assert row.status == "Payout Sent"
        assert row.steps["ownership"] == "skipped"
        assert row.decision == "FUND"
        assert row.payout_instrument == "BIO"
        assert len(list_records(session)) == 1


def test_list_records_filter(database):
    paid = make_record("paid")
    paid.status = SubmissionStatus.PAYOUT_SENT

    with db.get_session() as session:
        upsert_record(session, paid)
        upsert_record(session, make_record("scanning"))

    with db.get_session() as session:
        rows = list_records(session, status="Payout Sent")
        assert [r.id for r in rows] == ["paid"]


def test_store_write_through(database):
    store = RecordStore(persist=True)
    record = make_record("through")
    store.add(record)

    record.status = SubmissionStatus.VERIFIED
    store.update(record)

    with db.get_session() as session:
        assert get_record(session, "through").status == "Verified"


def test_session_rolls_back_on_error(database):
    with pytest.raises(RuntimeError):
        with db.get_session() as session:
            upsert_record(session, make_record("rolled-back"))
            raise RuntimeError("abort")

    with db.get_session() as session:
        assert get_record(session, "rolled-back") is None


def test_init_from_config_requires_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    reset_config()
    try:
        with pytest.raises(RuntimeError, match="database_url"):
            db.init_from_config()
    finally:
        reset_config()


async def test_write_through_leaves_event_loop_free(database, monkeypatch):
    def slow_upsert(session, record):
        time.sleep(0.2)
        upsert_record(session, record)

    monkeypatch.setattr("sentinel.db.operations.upsert_record", slow_upsert)
    store = RecordStore(persist=True)
    record = make_record("queued")

    started = time.monotonic()
    store.add(record)
    record.status = SubmissionStatus.VERIFIED
    store.update(record)
    elapsed = time.monotonic() - started

    assert elapsed < 0.1
    assert store.pending_writes == 2

    await store.aclose()

    assert store.pending_writes == 0
    with db.get_session() as session:
        assert get_record(session, "queued").status == "Verified"


async def test_queued_writes_keep_order(database):
    store = RecordStore(persist=True)
    record = make_record("ordered")
    store.add(record)
    for status in (SubmissionStatus.VERIFIED, SubmissionStatus.PAYOUT_SENT):
        record.status = status
        store.update(record)

    await store.flush()

    with db.get_session() as session:
        assert get_record(session, "ordered").status == "Payout Sent"
    await store.aclose()

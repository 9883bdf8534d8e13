from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from flag_notifier.models import (
    ChangeKind,
    FlagListResponse,
    FlagRecord,
    FlagStatus,
    SnapshotEntry,
)


def test_terminal_statuses():
    assert FlagStatus.RESOLVED.is_terminal
    assert FlagStatus.DISMISSED.is_terminal
    assert not FlagStatus.PENDING.is_terminal
    assert not FlagStatus.REVIEWED.is_terminal


def test_change_kind_for_terminal_status():
    assert ChangeKind.for_terminal_status(FlagStatus.RESOLVED) == ChangeKind.STATUS_RESOLVED
    assert ChangeKind.for_terminal_status(FlagStatus.DISMISSED) == ChangeKind.STATUS_DISMISSED
    with pytest.raises(ValueError):
        ChangeKind.for_terminal_status(FlagStatus.PENDING)


def test_flag_record_parses_wire_format(make_payload):
    record = FlagRecord.model_validate(
        make_payload(
            "flag_1",
            status="resolved",
            response="See lecture 4",
            instructor_name="Dr. Lee",
            questionContent={"question": "What is ATP?"},
        )
    )

    assert record.flag_id == "flag_1"
    assert record.status == FlagStatus.RESOLVED
    assert record.instructor_response == "See lecture 4"
    assert record.responder_name == "Dr. Lee"
    assert record.question_text == "What is ATP?"
    assert record.created_at.tzinfo is not None


def test_updated_at_defaults_to_created_at(make_flag):
    record = make_flag("f1")
    assert record.updated_at == record.created_at


def test_naive_timestamps_are_utc():
    record = FlagRecord(flag_id="f1", status="pending", created_at=datetime(2026, 1, 1, 8, 30))
    assert record.created_at == datetime(2026, 1, 1, 8, 30, tzinfo=timezone.utc)


def test_unknown_status_is_rejected(make_payload):
    with pytest.raises(ValidationError):
        FlagRecord.model_validate(make_payload(status="archived"))


def test_responder_name_fallback(make_flag):
    assert make_flag().responder_name == "Instructor"
    assert make_flag().question_text == "your flagged question"


def test_snapshot_entry_projection(make_flag):
    record = make_flag("f9", status="reviewed", response="", instructor_name="TA Sam")
    entry = SnapshotEntry.from_record(record)

    assert entry.flag_id == "f9"
    assert entry.status == FlagStatus.REVIEWED
    assert entry.instructor_response is None
    assert entry.updated_at == record.created_at

    dumped = entry.model_dump(mode="json", by_alias=True)
    assert set(dumped) == {"flagId", "flagStatus", "instructorResponse", "updatedAt", "createdAt"}


def test_envelope_defaults_to_empty_flags():
    envelope = FlagListResponse.model_validate({"success": True, "data": {}})
    assert envelope.data.flags == []

    failed = FlagListResponse.model_validate({"success": False, "message": "Not logged in"})
    assert failed.data is None
    assert failed.message == "Not logged in"

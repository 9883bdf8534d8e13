"""Shared fixtures for flag notifier tests."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from flag_notifier.config import NotifierSettings
from flag_notifier.models import FlagRecord

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
LONG_AGO = NOW - timedelta(days=14)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat().replace("+00:00", "Z") if value else None


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_payload():
    """Build a flag dict in the REST layer's camelCase format."""

    def _make(
        flag_id: str = "f1",
        status: str = "pending",
        response: Optional[str] = None,
        instructor_name: Optional[str] = None,
        created_at: Optional[datetime] = LONG_AGO,
        updated_at: Optional[datetime] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        payload = {
            "flagId": flag_id,
            "flagStatus": status,
            "createdAt": _iso(created_at),
        }
        if response is not None:
            payload["instructorResponse"] = response
        if instructor_name is not None:
            payload["instructorName"] = instructor_name
        if updated_at is not None:
            payload["updatedAt"] = _iso(updated_at)
        payload.update(extra)
        return payload

    return _make


@pytest.fixture
def make_flag(make_payload):
    """Build a validated FlagRecord."""

    def _make(*args, **kwargs) -> FlagRecord:
        return FlagRecord.model_validate(make_payload(*args, **kwargs))

    return _make


@pytest.fixture
def envelope():
    def _envelope(flags: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {"success": True, "data": {"flags": flags}}

    return _envelope


@pytest.fixture
def fast_settings() -> NotifierSettings:
    """Settings with timers short enough for tests."""
    return NotifierSettings(
        base_url="http://testserver",
        poll_interval_seconds=0.05,
        initial_check_delay_seconds=0.01,
        visibility_check_delay_seconds=0.01,
        identity_poll_interval_seconds=0.01,
        identity_max_attempts=5,
        status_notification_seconds=5.0,
        response_notification_seconds=5.0,
        notification_animation_seconds=0.01,
    )

"""
Flag change classification.

Compares the previous snapshot with a freshly fetched flag set and turns
the differences into change events. At most one event is produced per
flag per cycle.

Rules, per fetched record:

  Unknown flag (not in the snapshot):
    Closed (resolved/dismissed) and created within the recent window
    → status event. The flag was most likely opened and closed between
    two polls, so its "before" state was never observed. Older closed
    flags and open flags enter the baseline silently.

  Known flag, first match wins:
    1. response appeared          → RESPONSE_ADDED
    2. pending → resolved/dismissed → STATUS_RESOLVED / STATUS_DISMISSED
    3. response text changed and updated_at moved forward → RESPONSE_UPDATED

The recent-window rule is a heuristic: flags closed longer ago than the
window before they were first observed are never reported.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Mapping, Optional, Sequence

from flag_notifier.models import ChangeEvent, ChangeKind, FlagRecord, FlagStatus, SnapshotEntry
from flag_notifier.utils.timestamps import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RECENT_WINDOW = timedelta(hours=2)


def _classify_unseen(
    record: FlagRecord, now: datetime, recent_window: timedelta
) -> Optional[ChangeEvent]:
    if not record.status.is_terminal:
        logger.debug(f"New flag {record.flag_id} (status: {record.status.value}), baseline only")
        return None

    opened_at = record.created_at or record.updated_at
    if opened_at is None:
        return None

    age = now - opened_at
    if timedelta(0) < age < recent_window:
        logger.info(
            f"New {record.status.value} flag detected: {record.flag_id} "
            f"(created {round(age.total_seconds() / 60)} minutes ago)"
        )
        return ChangeEvent(
            kind=ChangeKind.for_terminal_status(record.status),
            flag=record,
            responder_name=record.responder_name,
        )

    logger.debug(f"New flag {record.flag_id} is not recent, baseline only")
    return None


def _classify_known(record: FlagRecord, previous: SnapshotEntry) -> Optional[ChangeEvent]:
    # A new response says more than the status flip that usually accompanies it
    if not previous.instructor_response and record.instructor_response:
        logger.info(f"New response detected on flag {record.flag_id}")
        return ChangeEvent(ChangeKind.RESPONSE_ADDED, record, record.responder_name)

    if previous.status == FlagStatus.PENDING and record.status.is_terminal:
        logger.info(f"Flag {record.flag_id} changed from pending to {record.status.value}")
        return ChangeEvent(
            ChangeKind.for_terminal_status(record.status), record, record.responder_name
        )

    if (
        previous.instructor_response
        and record.instructor_response
        and previous.instructor_response != record.instructor_response
        and previous.updated_at is not None
        and record.updated_at is not None
        and record.updated_at > previous.updated_at
    ):
        logger.info(f"Response updated on flag {record.flag_id}")
        return ChangeEvent(ChangeKind.RESPONSE_UPDATED, record, record.responder_name)

    return None


def classify(
    previous: Mapping[str, SnapshotEntry],
    current: Sequence[FlagRecord],
    now: Optional[datetime] = None,
    recent_window: timedelta = DEFAULT_RECENT_WINDOW,
) -> List[ChangeEvent]:
    """Classify the differences between a snapshot and a fetched flag set.

    Pure given an explicit ``now``: no I/O and no state, so repeated calls
    with the same inputs return equal event lists.

    Args:
        previous: Snapshot from the previous successful cycle, keyed by flag id
        current: Full flag set from this cycle's fetch
        now: Reference time for the recent-window rule (default: current UTC time)
        recent_window: Maximum age of an unseen closed flag that is still reported

    Returns:
        Change events in the order of ``current``
    """
    now = ensure_utc(now) if now is not None else utc_now()

    events: List[ChangeEvent] = []
    for record in current:
        prior = previous.get(record.flag_id)
        if prior is None:
            event = _classify_unseen(record, now, recent_window)
        else:
            event = _classify_known(record, prior)
        if event is not None:
            events.append(event)

    logger.debug(f"Total changes detected: {len(events)}")
    return events

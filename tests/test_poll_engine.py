import asyncio
from datetime import timedelta

import httpx
import pytest

from flag_notifier.auth import Identity, StaticIdentityProvider
from flag_notifier.clients import FlagsClient
from flag_notifier.engine import PollEngine, PollState
from flag_notifier.models import ChangeKind, FlagStatus, SnapshotEntry
from flag_notifier.notifications import NotificationDispatcher, NotificationStack
from flag_notifier.host import HostPage
from flag_notifier.storage import InMemoryKeyValueStore, SnapshotStore


class Backend:
    """Programmable stand-in for the flags endpoint."""

    def __init__(self, envelope):
        self._envelope = envelope
        self.flags = []
        self.status_code = 200
        self.calls = 0
        self.gate = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.status_code != 200:
            return httpx.Response(self.status_code)
        return httpx.Response(200, json=self._envelope(self.flags))


@pytest.fixture
def backend(envelope):
    return Backend(envelope)


@pytest.fixture
def page():
    return HostPage()


@pytest.fixture
def stack():
    return NotificationStack(animation_seconds=0.01)


@pytest.fixture
def engine(backend, page, stack, fast_settings, now):
    client = FlagsClient(
        base_url=fast_settings.base_url, transport=httpx.MockTransport(backend.handler)
    )
    return PollEngine(
        client=client,
        snapshot_store=SnapshotStore(InMemoryKeyValueStore()),
        dispatcher=NotificationDispatcher(stack, navigator=page.navigate),
        identity_provider=StaticIdentityProvider(Identity(user_id="student-42")),
        page=page,
        settings=fast_settings,
        clock=lambda: now,
    )


async def test_cold_start_skips_comparison(engine, backend, stack, make_payload, now):
    backend.flags = [
        make_payload("f1", status="dismissed", created_at=now - timedelta(minutes=10)),
        make_payload("f2", status="pending"),
    ]

    events = await engine.check_for_updates()

    assert events == []
    assert len(stack) == 0
    assert set(engine.snapshot_store.current) == {"f1", "f2"}


async def test_end_to_end_response_added(engine, backend, stack, make_flag, make_payload, now, page):
    t0 = now - timedelta(hours=1)
    await engine.snapshot_store.save([make_flag("f1", status="pending", updated_at=t0)])
    backend.flags = [
        make_payload(
            "f1",
            status="resolved",
            response="Please see office hours",
            instructor_name="Dr. Lee",
            updated_at=now,
        )
    ]

    events = await engine.check_for_updates()

    assert [(e.kind, e.responder_name) for e in events] == [(ChangeKind.RESPONSE_ADDED, "Dr. Lee")]
    assert stack.notifications[0].message == (
        "Dr. Lee responded to your flag. Click to view their response."
    )
    entry = engine.snapshot_store.current["f1"]
    assert entry.status == FlagStatus.RESOLVED
    assert entry.instructor_response == "Please see office hours"
    assert entry.updated_at == now

    stack.notifications[0].click()
    assert page.location == "/student/flagged"
    stack.clear()


async def test_second_cycle_reports_nothing_new(engine, backend, stack, make_flag, make_payload, now):
    await engine.snapshot_store.save([make_flag("f1", status="pending")])
    backend.flags = [make_payload("f1", status="dismissed", updated_at=now)]

    first = await engine.check_for_updates()
    second = await engine.check_for_updates()

    assert [e.kind for e in first] == [ChangeKind.STATUS_DISMISSED]
    assert second == []
    assert len(stack) == 1
    stack.clear()


async def test_failed_fetch_keeps_snapshot(engine, backend, make_flag, make_payload, now):
    await engine.snapshot_store.save([make_flag("f1", status="pending")])
    before = engine.snapshot_store.current
    backend.status_code = 500

    assert await engine.check_for_updates() == []
    assert engine.snapshot_store.current is before
    assert engine.is_checking is False

    # The transition is still reported once the backend recovers
    backend.status_code = 200
    backend.flags = [make_payload("f1", status="resolved", updated_at=now)]
    events = await engine.check_for_updates()
    assert [e.kind for e in events] == [ChangeKind.STATUS_RESOLVED]
    engine.dispatcher.stack.clear()


async def test_single_flight(engine, backend, envelope):
    backend.gate = asyncio.Event()

    first = asyncio.create_task(engine.check_for_updates())
    await asyncio.sleep(0.01)
    assert engine.is_checking

    assert await engine.check_for_updates() == []
    assert backend.calls == 1

    backend.gate.set()
    await first
    assert engine.is_checking is False


async def test_guard_released_on_unexpected_error(engine, backend, make_flag, make_payload, now):
    class ExplodingDispatcher:
        def dispatch(self, event):
            raise RuntimeError("render failed")

    engine.dispatcher = ExplodingDispatcher()
    await engine.snapshot_store.save([make_flag("f1", status="pending")])
    backend.flags = [make_payload("f1", status="resolved", updated_at=now)]

    with pytest.raises(RuntimeError):
        await engine.check_for_updates()

    assert engine.is_checking is False
    assert engine.snapshot_store.current["f1"].status == FlagStatus.PENDING


async def test_start_polls_after_settle_delay(engine, backend):
    engine.start()
    assert engine.state == PollState.POLLING

    await asyncio.sleep(0.03)
    await engine.wait_idle()
    assert backend.calls >= 1

    engine.stop()
    assert engine.state == PollState.IDLE


async def test_timer_ticks_repeatedly(engine, backend):
    engine.start()
    await asyncio.sleep(0.18)
    engine.stop()
    await engine.wait_idle()

    # settle check plus at least two ticks at 50ms
    assert backend.calls >= 3


async def test_hidden_page_pauses_polling(engine, backend, page):
    engine.start()
    await asyncio.sleep(0.03)
    await engine.wait_idle()

    page.set_visible(False)
    assert engine.state == PollState.IDLE
    calls_when_hidden = backend.calls

    await asyncio.sleep(0.15)
    assert backend.calls == calls_when_hidden

    page.set_visible(True)
    assert engine.state == PollState.POLLING
    await asyncio.sleep(0.03)
    await engine.wait_idle()
    assert backend.calls == calls_when_hidden + 1

    engine.stop()


async def test_stop_drops_visibility_subscription(engine, backend, page):
    engine.start()
    assert page.subscriber_count == 1

    engine.stop()
    engine.stop()
    assert page.subscriber_count == 0

    page.set_visible(False)
    page.set_visible(True)
    assert engine.state == PollState.IDLE

    await asyncio.sleep(0.1)
    assert backend.calls == 0


async def test_start_twice_is_noop(engine, page):
    engine.start()
    engine.start()

    assert page.subscriber_count == 1
    engine.stop()


async def test_slow_fetch_skips_ticks(engine, backend):
    backend.gate = asyncio.Event()

    engine.start()
    await asyncio.sleep(0.2)
    assert backend.calls == 1

    backend.gate.set()
    engine.stop()
    await engine.wait_idle()
    assert engine.is_checking is False


async def test_snapshot_is_projection_of_fetch(engine, backend, make_payload, make_flag):
    backend.flags = [make_payload("a", status="reviewed", response="On it", instructor_name="TA")]

    await engine.check_for_updates()

    assert dict(engine.snapshot_store.current) == {
        "a": SnapshotEntry.from_record(make_flag("a", status="reviewed", response="On it", instructor_name="TA"))
    }

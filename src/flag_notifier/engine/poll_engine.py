"""
Poll Engine (flag_notifier/engine/poll_engine.py)

Periodically fetches the student's flags, compares them with the stored
snapshot and notifies about what changed.

STATES:
  IDLE     no timer running
  POLLING  timer running, one check per tick

TRANSITIONS:
  start()          IDLE → POLLING   (timer + settle-delayed check)
  page hidden      POLLING → IDLE   (timer and pending check cancelled)
  page visible     IDLE → POLLING   (timer + settle-delayed check)
  stop()           * → IDLE         (visibility subscription dropped)

At most one check runs at a time. A tick that lands while a check is in
flight is skipped, not queued, so a slow backend never builds a backlog.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Set

from flag_notifier.auth.identity import IdentityProvider
from flag_notifier.clients.flags_client import FlagsClient
from flag_notifier.config import NotifierSettings
from flag_notifier.core import classify
from flag_notifier.errors import NetworkError, ProtocolError
from flag_notifier.host.page import Disposer, HostPage
from flag_notifier.models import ChangeEvent
from flag_notifier.notifications import NotificationDispatcher
from flag_notifier.storage import SnapshotStore
from flag_notifier.utils.timestamps import utc_now

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"


class PollEngine:
    """
    Change-detection loop for one student page session.

    All mutable notifier state (snapshot, timer, in-flight flag) lives on
    the instance, so independent engines can coexist.
    """

    def __init__(
        self,
        client: FlagsClient,
        snapshot_store: SnapshotStore,
        dispatcher: NotificationDispatcher,
        identity_provider: IdentityProvider,
        page: HostPage,
        settings: Optional[NotifierSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.snapshot_store = snapshot_store
        self.dispatcher = dispatcher
        self.identity_provider = identity_provider
        self.page = page
        self.settings = settings or NotifierSettings()
        self.clock = clock

        self._state = PollState.IDLE
        self._started = False
        self._is_checking = False
        self._timer_task: Optional[asyncio.Task] = None
        self._settle_handle: Optional[asyncio.TimerHandle] = None
        self._check_tasks: Set[asyncio.Task] = set()
        self._dispose_visibility: Optional[Disposer] = None

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def is_checking(self) -> bool:
        return self._is_checking

    @property
    def started(self) -> bool:
        return self._started

    async def load_snapshot(self) -> None:
        await self.snapshot_store.load()

    def start(self) -> None:
        """Begin polling. Must be called from a running event loop."""
        if self._started:
            logger.warning("[PollEngine] Polling already started, skipping")
            return

        self._started = True
        self._dispose_visibility = self.page.on_visibility_change(self._on_visibility_change)
        self._resume(self.settings.initial_check_delay_seconds)
        logger.info(
            f"[PollEngine] Started polling every {self.settings.poll_interval_seconds:g} seconds"
        )

    def stop(self) -> None:
        """Stop polling. In-flight checks run to completion; safe to call repeatedly."""
        if self._dispose_visibility is not None:
            self._dispose_visibility()
            self._dispose_visibility = None
        self._pause()
        if self._started:
            self._started = False
            logger.info("[PollEngine] Stopped polling")

    def _on_visibility_change(self, visible: bool) -> None:
        if not visible and self._state == PollState.POLLING:
            logger.info("[PollEngine] Page hidden, pausing polling")
            self._pause()
        elif visible and self._state == PollState.IDLE and self._started:
            logger.info("[PollEngine] Page visible, resuming polling")
            self._resume(self.settings.visibility_check_delay_seconds)

    def _resume(self, settle_delay: float) -> None:
        loop = asyncio.get_running_loop()
        self._timer_task = loop.create_task(self._tick_loop())
        if self._settle_handle is not None:
            self._settle_handle.cancel()
        self._settle_handle = loop.call_later(settle_delay, self._settled_check)
        self._state = PollState.POLLING

    def _pause(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None
        self._state = PollState.IDLE

    async def _tick_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.settings.poll_interval_seconds)
                self._spawn_check()
        except asyncio.CancelledError:
            logger.debug("[PollEngine] Timer cancelled")

    def _settled_check(self) -> None:
        self._settle_handle = None
        self._spawn_check()

    def _spawn_check(self) -> None:
        task = asyncio.get_running_loop().create_task(self._run_scheduled_check())
        self._check_tasks.add(task)
        task.add_done_callback(self._check_tasks.discard)

    async def _run_scheduled_check(self) -> None:
        try:
            await self.check_for_updates()
        except Exception:
            # Scheduled checks have no caller to report to
            logger.exception("[PollEngine] Unexpected error during scheduled check")

    async def wait_idle(self) -> None:
        """Wait for every spawned check to finish."""
        while self._check_tasks:
            await asyncio.gather(*list(self._check_tasks), return_exceptions=True)

    async def check_for_updates(self) -> List[ChangeEvent]:
        """Run one poll cycle: fetch, classify, dispatch, replace the snapshot.

        Returns:
            Events dispatched this cycle; empty when skipped, failed, or on cold start
        """
        if self._is_checking:
            logger.debug("[PollEngine] Already checking, skipping")
            return []

        self._is_checking = True
        try:
            # Read before the fetch; save() installs a new mapping, so this stays pre-update
            previous = self.snapshot_store.current
            identity = self.identity_provider.get_identity()

            logger.debug(f"[PollEngine] Checking for flag updates ({len(previous)} last known)")
            try:
                flags = await self.client.fetch_current_flags(identity)
            except (NetworkError, ProtocolError) as e:
                logger.warning(f"[PollEngine] Error checking for flag updates: {e}")
                return []

            events: List[ChangeEvent] = []
            if previous:
                events = classify(
                    previous,
                    flags,
                    now=self.clock(),
                    recent_window=self.settings.recent_window,
                )
                for event in events:
                    self.dispatcher.dispatch(event)
            else:
                logger.info("[PollEngine] No last known flags, skipping comparison (first load)")

            await self.snapshot_store.save(flags)
            logger.debug(f"[PollEngine] Cycle complete: {len(flags)} flags, {len(events)} changes")
            return events
        finally:
            self._is_checking = False

"""Start-up and teardown of the flag notifier."""

import asyncio
import logging
from typing import Optional

from flag_notifier.auth.identity import IdentityProvider
from flag_notifier.config import NotifierSettings
from flag_notifier.engine.poll_engine import PollEngine
from flag_notifier.host.page import Disposer, HostPage
from flag_notifier.utils.resilience import wait_until_ready

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Sequences start-up and teardown of a PollEngine.

    initialize():
    1. Waits (bounded) for the identity provider to report ready
    2. Scopes the snapshot key to the resolved user and loads it
    3. Starts the poll engine
    4. Registers shutdown() as the page-unload hook

    shutdown() may arrive at any point, including while initialize() is
    still waiting; initialize() then returns without starting the engine.
    The snapshot backend is closed once any in-flight check has finished.

    Usage:
        manager = LifecycleManager(engine, identity_provider, page)
        await manager.initialize()
        ...
        manager.shutdown()
        await manager.wait_closed()
    """

    def __init__(
        self,
        engine: PollEngine,
        identity_provider: IdentityProvider,
        page: HostPage,
        settings: Optional[NotifierSettings] = None,
    ):
        self.engine = engine
        self.identity_provider = identity_provider
        self.page = page
        self.settings = settings or engine.settings

        self._initialized = False
        self._shut_down = False
        self._dispose_unload: Optional[Disposer] = None
        self._closing: Optional[asyncio.Task] = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def shut_down(self) -> bool:
        return self._shut_down

    def _cancelled(self) -> bool:
        if self._shut_down or self.page.unloaded:
            logger.info("[FlagNotifications] Shut down during initialization, not starting")
            return True
        return False

    async def initialize(self) -> None:
        """Bring the notifier up. A second call is a no-op."""
        if self._initialized:
            logger.warning("[FlagNotifications] Already initialized, skipping")
            return
        self._initialized = True

        logger.info("[FlagNotifications] Initializing flag notification system...")

        ready = await wait_until_ready(
            self.identity_provider.is_ready,
            interval=self.settings.identity_poll_interval_seconds,
            max_attempts=self.settings.identity_max_attempts,
        )
        if not ready:
            logger.warning(
                f"[FlagNotifications] Identity not ready after "
                f"{self.settings.identity_max_attempts} checks, starting anyway"
            )

        if self._cancelled():
            return

        identity = self.identity_provider.get_identity()
        if identity is not None:
            self.engine.snapshot_store.scope_to(identity.user_id)
        else:
            logger.warning("[FlagNotifications] No user identity, using the shared snapshot key")

        await self.engine.load_snapshot()
        if self._cancelled():
            return

        self.engine.start()
        self._dispose_unload = self.page.on_unload(self.shutdown)

        logger.info("[FlagNotifications] Flag notification system initialized")

    def shutdown(self) -> None:
        """Stop polling, drop the unload hook and release the backend. Idempotent."""
        if self._shut_down:
            return
        self._shut_down = True

        if self._dispose_unload is not None:
            self._dispose_unload()
            self._dispose_unload = None
        if self.engine.started:
            self.engine.stop()
            logger.info("[FlagNotifications] Cleaned up flag notification system")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[FlagNotifications] No running event loop, snapshot backend left open")
            return
        self._closing = loop.create_task(self._release_backend())

    async def _release_backend(self) -> None:
        await self.engine.wait_idle()
        await self.engine.snapshot_store.backend.close()
        logger.debug("[FlagNotifications] Snapshot backend closed")

    async def wait_closed(self) -> None:
        """Wait until shutdown() has released the snapshot backend."""
        if self._closing is not None:
            await self._closing

"""Assembly of a ready-to-run flag notifier."""

import logging
from typing import Optional

import httpx

from flag_notifier.auth.identity import IdentityProvider
from flag_notifier.clients import FlagsClient
from flag_notifier.config import NotifierSettings, StorageBackend, get_settings
from flag_notifier.engine import LifecycleManager, PollEngine
from flag_notifier.host.page import HostPage
from flag_notifier.notifications import NotificationDispatcher, NotificationStack
from flag_notifier.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    SnapshotStore,
)

logger = logging.getLogger(__name__)


async def create_key_value_store(settings: NotifierSettings) -> KeyValueStore:
    """Create the snapshot backend selected by settings.

    Raises:
        ConnectionError: If the Redis backend is selected and unreachable
    """
    if settings.storage_backend == StorageBackend.FILE:
        logger.info(f"Using file snapshot store at {settings.storage_path}")
        return JsonFileKeyValueStore(settings.storage_path)

    if settings.storage_backend == StorageBackend.REDIS:
        from flag_notifier.storage.redis_store import RedisKeyValueStore, get_redis_client

        client = await get_redis_client(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
        )
        return RedisKeyValueStore(client)

    logger.info("Using in-memory snapshot store")
    return InMemoryKeyValueStore()


async def create_notifier(
    identity_provider: IdentityProvider,
    page: HostPage,
    settings: Optional[NotifierSettings] = None,
    kv_store: Optional[KeyValueStore] = None,
    stack: Optional[NotificationStack] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> LifecycleManager:
    """Wire client, snapshot store, dispatcher and engine together.

    Args:
        identity_provider: Source of the student's identity
        page: Host page signals
        settings: Configuration (default: global settings from the environment)
        kv_store: Snapshot backend (default: chosen from settings)
        stack: Notification surface (default: a new stack from settings)
        transport: Optional httpx transport for the flags client

    Returns:
        LifecycleManager; call ``await manager.initialize()`` to start

    Example:
        ```python
        manager = await create_notifier(StaticIdentityProvider(identity), HostPage())
        await manager.initialize()
        ```
    """
    settings = settings or get_settings()
    # An empty NotificationStack is falsy
    if kv_store is None:
        kv_store = await create_key_value_store(settings)
    if stack is None:
        stack = NotificationStack(
            base_offset=settings.notification_base_offset,
            spacing=settings.notification_spacing,
            animation_seconds=settings.notification_animation_seconds,
        )

    client = FlagsClient(
        base_url=settings.base_url,
        flags_path=settings.flags_path,
        timeout=settings.request_timeout,
        transport=transport,
    )
    dispatcher = NotificationDispatcher(
        stack,
        navigator=page.navigate,
        review_route=settings.review_route,
        status_duration=settings.status_notification_seconds,
        response_duration=settings.response_notification_seconds,
    )
    engine = PollEngine(
        client=client,
        snapshot_store=SnapshotStore(kv_store, storage_key=settings.storage_key),
        dispatcher=dispatcher,
        identity_provider=identity_provider,
        page=page,
        settings=settings,
    )
    return LifecycleManager(engine, identity_provider, page, settings=settings)

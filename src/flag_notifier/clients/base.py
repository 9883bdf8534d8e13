"""Base client for calls to the course assistant backend."""

import json
import logging
from typing import Dict, Optional

import httpx

from flag_notifier.auth.identity import Identity

logger = logging.getLogger(__name__)


class BaseServiceClient:
    """Base class for HTTP clients that act on behalf of a student.

    The caller's identity is propagated via X-User-* headers and the
    identity's session cookies.

    Usage:
        class FlagsClient(BaseServiceClient):
            async def fetch_current_flags(self, identity: Identity) -> List[FlagRecord]:
                async with self._get_client(identity) as client:
                    response = await client.get(
                        f"{self.base_url}/api/flags/my",
                        headers=self._headers(identity)
                    )
                    ...
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: Backend base URL (e.g., http://localhost:3000)
            timeout: Request timeout in seconds (default: 10.0)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        logger.info(f"Initialized {self.__class__.__name__} with base_url={base_url}")

    def _headers(
        self,
        identity: Optional[Identity] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, str]:
        """Generate request headers with user context.

        Args:
            identity: Caller identity for X-User-* headers
            correlation_id: Optional correlation ID, overrides the identity's

        Returns:
            Headers dict with X-User-* headers and correlation ID
        """
        headers = {
            "Accept": "application/json",
        }

        if identity is None:
            return headers

        headers["X-User-ID"] = identity.user_id

        if identity.user_email:
            headers["X-User-Email"] = identity.user_email

        if identity.user_roles:
            headers["X-User-Roles"] = json.dumps(identity.user_roles)

        correlation_id = correlation_id or identity.correlation_id
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id

        return headers

    def _get_client(self, identity: Optional[Identity] = None) -> httpx.AsyncClient:
        """Get HTTP client instance carrying the caller's session cookies.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        cookies = identity.session_cookies if identity else None
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            cookies=cookies or None,
        )

"""HTTP client for the flags-for-caller endpoint."""

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from flag_notifier.auth.identity import Identity
from flag_notifier.clients.base import BaseServiceClient
from flag_notifier.errors import NetworkError, ProtocolError
from flag_notifier.models import FlagListResponse, FlagRecord

logger = logging.getLogger(__name__)


class FlagsClient(BaseServiceClient):
    """Async HTTP client that retrieves the caller's full flag set.

    Usage:
        client = FlagsClient(base_url="http://localhost:3000")
        flags = await client.fetch_current_flags(identity)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        flags_path: str = "/api/flags/my",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: Base URL of the backend (default: http://localhost:3000)
            flags_path: Path of the flags-for-caller endpoint (default: /api/flags/my)
            timeout: Request timeout in seconds (default: 10.0)
            transport: Optional httpx transport
        """
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.flags_path = flags_path

    @property
    def flags_url(self) -> str:
        return f"{self.base_url}{self.flags_path}"

    async def fetch_current_flags(
        self, identity: Optional[Identity] = None, correlation_id: Optional[str] = None
    ) -> List[FlagRecord]:
        """Fetch every flag visible to the caller.

        Args:
            identity: Caller identity (headers and session cookies)
            correlation_id: Optional correlation ID for request tracing

        Returns:
            Current flag records, in server order

        Raises:
            NetworkError: On transport failure or a non-2xx status
            ProtocolError: If the body is not a valid success envelope
        """
        try:
            async with self._get_client(identity) as client:
                response = await client.get(
                    self.flags_url,
                    headers=self._headers(identity, correlation_id=correlation_id),
                )
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {self.flags_url} failed: {e}") from e

        if response.is_error:
            raise NetworkError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ProtocolError(f"Flags response is not JSON: {e}") from e

        try:
            envelope = FlagListResponse.model_validate(payload)
        except ValidationError as e:
            raise ProtocolError(f"Flags response does not match the envelope: {e}") from e

        if not envelope.success:
            raise ProtocolError(envelope.message or "Failed to fetch flags")

        if envelope.data is None:
            raise ProtocolError("Flags response has no data")

        logger.debug(f"Fetched {len(envelope.data.flags)} flags from {self.flags_url}")
        return envelope.data.flags

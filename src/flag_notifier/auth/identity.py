"""Caller identity for flag requests.

The session system of the host page resolves the student asynchronously.
The notifier only needs two things from it: whether an identity is ready
yet, and the identity itself once it is.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """Resolved identity of the student the notifier runs for.

    Attributes:
        user_id: User ID, sent as X-User-ID
        user_email: Optional user email, sent as X-User-Email
        user_roles: User roles, sent as X-User-Roles (JSON array)
        session_cookies: Session cookies sent with every request
        correlation_id: Optional correlation ID for request tracing
    """

    user_id: str
    user_email: Optional[str] = None
    user_roles: List[str] = field(default_factory=list)
    session_cookies: Dict[str, str] = field(default_factory=dict)
    correlation_id: Optional[str] = None


class IdentityProvider(ABC):
    """Readiness predicate plus identity accessor."""

    @abstractmethod
    def is_ready(self) -> bool:
        """True once a caller identity has been resolved"""

    @abstractmethod
    def get_identity(self) -> Optional[Identity]:
        """The resolved identity, or None while not ready"""


class StaticIdentityProvider(IdentityProvider):
    """Identity provider fed by the embedding application.

    The provider becomes ready as soon as set_identity() is called, the
    way the page's auth:ready event resolves the current user.

    Usage:
        provider = StaticIdentityProvider()
        ...
        provider.set_identity(Identity(user_id="student-42"))
    """

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity

    def set_identity(self, identity: Optional[Identity]) -> None:
        self._identity = identity
        if identity is not None:
            logger.info(f"Identity resolved: user_id={identity.user_id}")
        else:
            logger.info("Identity cleared")

    def is_ready(self) -> bool:
        return self._identity is not None

    def get_identity(self) -> Optional[Identity]:
        return self._identity

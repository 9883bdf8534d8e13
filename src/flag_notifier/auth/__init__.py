"""Identity utilities for the flag notifier.

The notifier runs on behalf of one student; requests carry that student's
identity as X-User-* headers and session cookies.
"""

from flag_notifier.auth.identity import Identity, IdentityProvider, StaticIdentityProvider

__all__ = [
    "Identity",
    "IdentityProvider",
    "StaticIdentityProvider",
]

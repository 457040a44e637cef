"""
Expiry helpers. These read the clear metadata only, so no secret is needed.
They do not authenticate the token; use :func:`cwc.core.decode` for that.

All values are in seconds.
"""

from __future__ import annotations

import time
from typing import Optional

from .core import extract_metadata
from .errors import ExpiredTokenError


def is_expired(token: str) -> bool:
    return extract_metadata(token).is_expired(time.time())


def get_expiration_time(token: str) -> Optional[int]:
    """Expiry as epoch seconds, or ``None`` if the token never expires."""
    return extract_metadata(token).expires_at


def get_remaining_time(token: str) -> Optional[float]:
    expires_at = get_expiration_time(token)
    if expires_at is None:
        return None
    return max(0.0, expires_at - time.time())


def will_expire_soon(token: str, within: float) -> bool:
    remaining = get_remaining_time(token)
    return remaining is not None and remaining <= within


def validate_not_expired(token: str) -> None:
    if is_expired(token):
        raise ExpiredTokenError("Token has expired.")


def get_token_age(token: str) -> Optional[float]:
    timestamp = extract_metadata(token).timestamp
    if timestamp is None:
        return None
    return max(0.0, time.time() - timestamp)


def get_ttl_percentage_elapsed(token: str) -> Optional[float]:
    metadata = extract_metadata(token)
    if metadata.timestamp is None or metadata.ttl is None:
        return None
    if metadata.ttl == 0:
        return 100.0
    elapsed = time.time() - metadata.timestamp
    return min(100.0, max(0.0, elapsed / metadata.ttl * 100.0))

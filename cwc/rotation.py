"""
Key rotation: re-encrypt tokens under a new secret, and decode with a list
of candidate secrets.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .core import EncodeOptions, TokenCodec, default_codec
from .crypto import Secret
from .errors import CWCError, KeyFallbackError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackResult:
    data: Any
    key_index: int


@dataclass(frozen=True)
class RotationCheck:
    """Outcome of a rotation dry-run. ``stage`` is where it stopped."""

    ok: bool
    stage: str
    error: Optional[Exception] = None


def rotate_key(
    token: str,
    old_secret: Secret,
    new_secret: Secret,
    options: Optional[EncodeOptions] = None,
    codec: Optional[TokenCodec] = None,
) -> str:
    """
    Decode *token* with *old_secret* and re-encode the value under
    *new_secret*.

    The new token gets a fresh IV (and salt), and a fresh timestamp when
    *options* asks for one.
    """
    codec = codec or default_codec
    data = codec.decode(token, old_secret)
    return codec.encode(data, new_secret, options)


def rotate_keys(
    tokens: Sequence[str],
    old_secret: Secret,
    new_secret: Secret,
    options: Optional[EncodeOptions] = None,
    max_workers: Optional[int] = None,
    codec: Optional[TokenCodec] = None,
) -> List[str]:
    """
    Rotate every token in parallel.

    All-or-nothing: the first failure is raised and no partial list is
    returned. Output order follows input order.
    """
    if not tokens:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        rotated = list(
            pool.map(
                lambda t: rotate_key(t, old_secret, new_secret, options, codec),
                tokens,
            )
        )
    logger.debug("Rotated %d tokens", len(rotated))
    return rotated


def decode_with_key_fallback(
    token: str,
    secrets: Sequence[Secret],
    codec: Optional[TokenCodec] = None,
) -> FallbackResult:
    """
    Try each secret in order and return the first successful decode.

    Raises
    ------
    KeyFallbackError
        Every secret failed (or none were given); ``errors`` holds one
        exception per secret.
    """
    codec = codec or default_codec
    errors: List[Exception] = []
    for index, secret in enumerate(secrets):
        try:
            data = codec.decode(token, secret)
        except CWCError as exc:
            errors.append(exc)
            continue
        if index:
            logger.debug("Token decoded with fallback key #%d", index)
        return FallbackResult(data=data, key_index=index)
    raise KeyFallbackError(errors)


def check_key_rotation(
    token: str,
    old_secret: Secret,
    new_secret: Secret,
    codec: Optional[TokenCodec] = None,
) -> RotationCheck:
    """Dry-run a rotation and report the stage that failed, if any."""
    codec = codec or default_codec
    try:
        original = codec.decode(token, old_secret)
    except Exception as exc:
        return RotationCheck(ok=False, stage="decode", error=exc)
    try:
        rotated = codec.encode(original, new_secret)
    except Exception as exc:
        return RotationCheck(ok=False, stage="encode", error=exc)
    try:
        roundtrip = codec.decode(rotated, new_secret)
    except Exception as exc:
        return RotationCheck(ok=False, stage="verify", error=exc)
    if roundtrip != original:
        return RotationCheck(ok=False, stage="compare")
    return RotationCheck(ok=True, stage="done")


def validate_key_rotation(
    token: str,
    old_secret: Secret,
    new_secret: Secret,
    codec: Optional[TokenCodec] = None,
) -> bool:
    """``True`` iff *token* can be rotated and decoded back to the same value."""
    return check_key_rotation(token, old_secret, new_secret, codec).ok


def get_rotation_age(token: str, codec: Optional[TokenCodec] = None) -> Optional[int]:
    """Seconds since the token was (last) encoded, or ``None`` without a timestamp."""
    metadata = (codec or default_codec).extract_metadata(token)
    if metadata.timestamp is None:
        return None
    return max(0, int(time.time()) - metadata.timestamp)

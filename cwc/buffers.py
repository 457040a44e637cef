"""
Byte / text helpers and URL-safe Base64.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import os
import re

from .errors import FormatError

_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def string_to_bytes(text: str) -> bytes:
    return text.encode("utf-8")


def bytes_to_string(data: bytes) -> str:
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError("Payload is not valid UTF-8.") from exc


# ---------------------------------------------------------------------------
# Bytes
# ---------------------------------------------------------------------------


def concat_bytes(*parts: bytes) -> bytes:
    return b"".join(bytes(p) for p in parts)


def are_equal(a: bytes, b: bytes) -> bool:
    """Constant-time comparison."""
    return hmac.compare_digest(bytes(a), bytes(b))


def random_bytes(length: int) -> bytes:
    """Cryptographically secure random bytes from the OS."""
    if length < 0:
        raise ValueError("length must be non-negative")
    return os.urandom(length)


def hex_to_bytes(text: str) -> bytes:
    """Decode hex, with or without a ``0x`` prefix."""
    clean = text[2:] if text.startswith("0x") else text
    if not _HEX_RE.match(clean):
        raise FormatError("Invalid hex string.")
    if len(clean) % 2:
        raise FormatError("Hex string must have even length.")
    return bytes.fromhex(clean)


def bytes_to_hex(data: bytes, prefix: bool = False) -> str:
    h = bytes(data).hex()
    return "0x" + h if prefix else h


# ---------------------------------------------------------------------------
# URL-safe Base64 (RFC 4648 §5, padding stripped)
# ---------------------------------------------------------------------------


def encode_base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")


def decode_base64url(text: str) -> bytes:
    """
    Decode URL-safe Base64.

    Standard-alphabet input and input that still carries padding are
    accepted as well.

    Raises
    ------
    FormatError
        If *text* is not valid Base64.
    """
    if text == "":
        return b""
    normalized = text.replace("-", "+").replace("_", "/").rstrip("=")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError("Invalid token: not valid base64.") from exc


def is_valid_base64url(text: str) -> bool:
    if text == "":
        return True
    if not _BASE64URL_RE.match(text):
        return False
    try:
        decode_base64url(text)
    except FormatError:
        return False
    return True

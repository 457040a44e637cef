"""
AES-256-GCM encryption with optional PBKDF2 key derivation.

A secret is either

* ``bytes``: a raw 256-bit key, used directly, or
* ``str``:   a passphrase; a fresh 16-byte salt is drawn on every
  encryption and a key is derived with PBKDF2-HMAC-SHA256
  (100 000 iterations).

Every encryption draws a fresh 12-byte IV. Ciphertext always carries the
16-byte GCM tag at its end. Uses the ``cryptography`` library exclusively.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .buffers import random_bytes
from .constants import KEY_SIZE, NONCE_SIZE, PBKDF2_ITERATIONS, SALT_SIZE, TAG_SIZE
from .errors import (
    DecryptionError,
    EmptySecretError,
    FormatError,
    InvalidKeyError,
    InvalidKeyLengthError,
    SaltRequiredError,
)


Secret = Union[str, bytes, bytearray, memoryview]

_AUTH_FAILED = "Decryption failed: invalid key or corrupted data."


@dataclass(frozen=True)
class EncryptedPayload:
    iv: bytes
    ciphertext: bytes
    salt: Optional[bytes] = None


# ---------------------------------------------------------------------------
# Secret handling
# ---------------------------------------------------------------------------


def is_passphrase(secret: Secret) -> bool:
    return isinstance(secret, str)


def _validate_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise InvalidKeyError("Key must be bytes.")
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise InvalidKeyLengthError(
            f"Key must be exactly {KEY_SIZE} bytes ({KEY_SIZE * 8} bits), got {len(key)}."
        )
    return key


def _validate_passphrase(passphrase: str) -> None:
    if len(passphrase) == 0:
        raise EmptySecretError("Passphrase cannot be empty.")


def derive_key(
    passphrase: str,
    salt: Optional[bytes] = None,
    iterations: int = PBKDF2_ITERATIONS,
) -> Tuple[bytes, bytes]:
    """
    Derive a 256-bit key from a passphrase using PBKDF2-HMAC-SHA256.

    Parameters
    ----------
    passphrase : str
        User-supplied passphrase.
    salt : bytes, optional
        16-byte salt.  Generated randomly if not provided.
    iterations : int
        PBKDF2 iteration count (default 100 000).

    Returns
    -------
    (key, salt) : tuple[bytes, bytes]
    """
    _validate_passphrase(passphrase)
    if salt is None:
        salt = random_bytes(SALT_SIZE)
    if len(salt) != SALT_SIZE:
        raise InvalidKeyError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}.")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=bytes(salt),
        iterations=iterations,
    )
    return kdf.derive(passphrase.encode("utf-8")), bytes(salt)


def _resolve_key(secret: Secret, salt: Optional[bytes]) -> Tuple[bytes, Optional[bytes]]:
    """Return ``(key, salt)``; *salt* is drawn fresh when ``None``."""
    if is_passphrase(secret):
        return derive_key(secret, salt)
    return _validate_key(secret), None


# ---------------------------------------------------------------------------
# Encrypt / decrypt
# ---------------------------------------------------------------------------


def encrypt(
    plaintext: bytes,
    secret: Secret,
    associated_data: Optional[bytes] = None,
) -> EncryptedPayload:
    """
    Encrypt *plaintext* under *secret*.

    *associated_data* is authenticated but not encrypted; the same bytes
    must be supplied to :func:`decrypt`.

    Raises
    ------
    InvalidKeyLengthError
        Raw key is not 32 bytes.
    EmptySecretError
        Passphrase is empty.
    """
    if not isinstance(secret, (str, bytes, bytearray, memoryview)):
        raise InvalidKeyError("Secret must be a str or bytes.")
    key, salt = _resolve_key(secret, None)
    iv = random_bytes(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(iv, bytes(plaintext), associated_data)
    return EncryptedPayload(iv=iv, ciphertext=ciphertext, salt=salt)


def decrypt(
    payload: EncryptedPayload,
    secret: Secret,
    salt: Optional[bytes] = None,
    associated_data: Optional[bytes] = None,
) -> bytes:
    """
    Decrypt and authenticate *payload*.

    *salt* defaults to ``payload.salt`` and is required for passphrases.

    Raises
    ------
    SaltRequiredError
        Passphrase given without a salt.
    FormatError
        IV is not 12 bytes or ciphertext is shorter than the tag.
    DecryptionError
        Authentication failed: wrong key or corrupted data.
    """
    if not isinstance(secret, (str, bytes, bytearray, memoryview)):
        raise InvalidKeyError("Secret must be a str or bytes.")
    if salt is None:
        salt = payload.salt
    if is_passphrase(secret):
        _validate_passphrase(secret)
        if salt is None:
            raise SaltRequiredError("Salt is required for passphrase-based decryption.")
        if len(salt) != SALT_SIZE:
            raise FormatError(f"Invalid salt length: expected {SALT_SIZE}, got {len(salt)}.")
    else:
        _validate_key(secret)

    if len(payload.iv) != NONCE_SIZE:
        raise FormatError(f"Invalid IV length: expected {NONCE_SIZE}, got {len(payload.iv)}.")
    if len(payload.ciphertext) < TAG_SIZE:
        raise FormatError("Invalid ciphertext: too short.")

    key, _ = _resolve_key(secret, salt)
    try:
        return AESGCM(key).decrypt(bytes(payload.iv), bytes(payload.ciphertext), associated_data)
    except InvalidTag:
        raise DecryptionError(_AUTH_FAILED) from None


# ---------------------------------------------------------------------------
# Key helpers
# ---------------------------------------------------------------------------


def generate_key() -> bytes:
    """Generate a cryptographically secure random 256-bit key."""
    return random_bytes(KEY_SIZE)


def is_valid_key(key: bytes) -> bool:
    return isinstance(key, (bytes, bytearray, memoryview)) and len(key) == KEY_SIZE


def key_to_base64(key: bytes) -> str:
    """Encode a key as URL-safe Base64."""
    return base64.urlsafe_b64encode(_validate_key(key)).decode("ascii")


def key_from_base64(b64: str) -> bytes:
    """Decode a key from URL-safe Base64."""
    try:
        key = base64.urlsafe_b64decode(b64)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKeyError("Invalid Base64 key encoding.") from exc
    return _validate_key(key)


def key_to_hex(key: bytes) -> str:
    """Encode a key as lowercase hex."""
    return _validate_key(key).hex()


def key_from_hex(h: str) -> bytes:
    """Decode a key from hex."""
    try:
        key = bytes.fromhex(h)
    except ValueError as exc:
        raise InvalidKeyError("Invalid hex key encoding.") from exc
    return _validate_key(key)

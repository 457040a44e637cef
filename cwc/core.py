"""
Token pipeline: JSON -> compress -> encrypt -> pack -> base64url.

Token layout (before base64url)::

    metadata (4-12 B) | salt (16 B, passphrase only) | IV (12 B) | ciphertext + tag

The packed metadata is passed to AES-GCM as associated data, so any change
to the clear header fails authentication just like a change to the
ciphertext.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Optional

from . import crypto
from .buffers import bytes_to_string, concat_bytes, decode_base64url, encode_base64url, string_to_bytes
from .compression import CompressionProvider, default_provider
from .constants import (
    HEADER_SIZE,
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    CompressionAlgorithm,
    EncryptionAlgorithm,
)
from .crypto import Secret
from .errors import ExpiredTokenError, FormatError, SerializationError
from .metadata import (
    TokenMetadata,
    create_default_metadata,
    get_metadata_size,
    pack_metadata,
    unpack_metadata,
)
from .versioning import validate_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodeOptions:
    compression: Optional[CompressionAlgorithm] = None
    algorithm: EncryptionAlgorithm = EncryptionAlgorithm.AES_GCM_256
    include_timestamp: bool = False
    ttl: Optional[int] = None


@dataclass(frozen=True)
class DecodeResult:
    data: Any
    metadata: TokenMetadata


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def serialize(data: Any) -> str:
    """Compact JSON. NaN / Infinity and non-JSON types are rejected."""
    try:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Value is not JSON-serializable: {exc}") from exc


def deserialize(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError("Decrypted payload is not valid JSON.") from exc


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class TokenCodec:
    """
    Encodes and decodes tokens.

    The codec holds no mutable state; one instance may be shared between
    threads.
    """

    def __init__(self, compression: Optional[CompressionProvider] = None) -> None:
        self.compression = compression or default_provider

    # -- encode -------------------------------------------------------------

    def encode(self, data: Any, secret: Secret, options: Optional[EncodeOptions] = None) -> str:
        """
        Encode *data* into a URL-safe token.

        Raises
        ------
        SerializationError
            *data* is not JSON-representable.
        InvalidKeyError
            *secret* is an empty passphrase or a raw key of the wrong size.
        """
        options = options or EncodeOptions()
        compression = options.compression or self.compression.get_default_compression()

        if options.ttl is not None and not options.include_timestamp:
            logger.warning("TTL given without include_timestamp; token will never expire.")

        text = serialize(data)
        plain = string_to_bytes(text)
        compressed = self.compression.compress(plain, compression)

        metadata = create_default_metadata(
            compression=compression,
            algorithm=options.algorithm,
            include_timestamp=options.include_timestamp,
            ttl=options.ttl,
        )
        header = pack_metadata(metadata)
        payload = crypto.encrypt(compressed, secret, associated_data=header)

        logger.debug(
            "Encoded %d bytes -> %d compressed (%s) -> %d ciphertext",
            len(plain),
            len(compressed),
            metadata.compression.value,
            len(payload.ciphertext),
        )
        return encode_base64url(
            concat_bytes(header, payload.salt or b"", payload.iv, payload.ciphertext)
        )

    # -- decode -------------------------------------------------------------

    def _open(self, token: str, secret: Secret) -> DecodeResult:
        raw = decode_base64url(token)
        metadata = unpack_metadata(raw)
        validate_version(metadata)

        offset = get_metadata_size(metadata)
        header = raw[:offset]

        salt = None
        if crypto.is_passphrase(secret):
            salt = raw[offset : offset + SALT_SIZE]
            offset += SALT_SIZE
        if len(raw) < offset + NONCE_SIZE + TAG_SIZE:
            raise FormatError("Invalid token: too short.")

        iv = raw[offset : offset + NONCE_SIZE]
        ciphertext = raw[offset + NONCE_SIZE :]

        compressed = crypto.decrypt(
            crypto.EncryptedPayload(iv=iv, ciphertext=ciphertext, salt=salt),
            secret,
            associated_data=header,
        )
        plain = self.compression.decompress(compressed, metadata.compression)
        data = deserialize(bytes_to_string(plain))

        if metadata.is_expired(time.time()):
            raise ExpiredTokenError("Token has expired.")

        logger.debug("Decoded token v%d (%s)", metadata.version, metadata.compression.value)
        return DecodeResult(data=data, metadata=metadata)

    def decode(self, token: str, secret: Secret) -> Any:
        """
        Decode *token* and return the original value.

        Raises
        ------
        FormatError
            Malformed token or unsupported version / algorithm ids.
        DecryptionError
            Wrong secret or tampered token.
        CompressionError
            Payload is not valid for the stated compression.
        ExpiredTokenError
            Timestamp + TTL has passed.
        """
        return self._open(token, secret).data

    def decode_with_metadata(self, token: str, secret: Secret) -> DecodeResult:
        return self._open(token, secret)

    # -- inspection ---------------------------------------------------------

    def validate_token(self, token: str) -> bool:
        """Structural and version check; no secret is needed and nothing is decrypted."""
        try:
            raw = decode_base64url(token)
            metadata = unpack_metadata(raw)
            validate_version(metadata)
        except FormatError:
            return False
        return len(raw) >= get_metadata_size(metadata) + NONCE_SIZE + TAG_SIZE

    def extract_metadata(self, token: str) -> TokenMetadata:
        """
        Read the clear header without decrypting.

        Raises
        ------
        FormatError
            Malformed header, or ``UnsupportedVersionError`` for an unknown
            version byte.
        """
        raw = decode_base64url(token)
        if len(raw) < HEADER_SIZE:
            raise FormatError("Invalid token: too short.")
        metadata = unpack_metadata(raw)
        validate_version(metadata)
        return metadata

    # -- async --------------------------------------------------------------

    async def async_encode(
        self, data: Any, secret: Secret, options: Optional[EncodeOptions] = None
    ) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.encode, data, secret, options))

    async def async_decode(self, token: str, secret: Secret) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.decode, token, secret))


# ---------------------------------------------------------------------------
# Module-level convenience aliases
# ---------------------------------------------------------------------------

default_codec = TokenCodec()

encode = default_codec.encode
decode = default_codec.decode
decode_with_metadata = default_codec.decode_with_metadata
validate_token = default_codec.validate_token
extract_metadata = default_codec.extract_metadata
async_encode = default_codec.async_encode
async_decode = default_codec.async_decode


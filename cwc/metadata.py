"""
Token metadata packing and unpacking.

Binary layout (all integers big-endian)::

    0     Version          1 byte
    1     Algorithm ID     1 byte   0x01 = AES-256-GCM
    2     Compression ID   1 byte   0x00 none | 0x01 brotli | 0x02 lz-string | 0x03 zlib
    3     Flags            1 byte   bit0 = timestamp present, bit1 = TTL present
    4-7   Timestamp        uint32   seconds since epoch   (iff bit0)
    ...   TTL              uint32   seconds               (iff bit1)

Timestamps are stored in whole seconds. Sub-second precision is dropped on
pack, so a decoded timestamp can be up to one second earlier than the
moment of encoding.
"""

from __future__ import annotations

import math
import struct
import time
from dataclasses import dataclass
from typing import Optional, Union

from .constants import (
    ALGORITHM_IDS,
    ALGORITHMS_BY_ID,
    COMPRESSION_IDS,
    COMPRESSIONS_BY_ID,
    FIELD_SIZE,
    FLAG_HAS_TIMESTAMP,
    FLAG_HAS_TTL,
    HEADER_SIZE,
    UINT32_MAX,
    CompressionAlgorithm,
    EncryptionAlgorithm,
)
from .errors import (
    FormatError,
    UnsupportedAlgorithmError,
    UnsupportedCompressionError,
)

CURRENT_VERSION: int = 1


@dataclass(frozen=True)
class TokenMetadata:
    """Header fields carried in clear at the front of every token."""

    version: int
    algorithm: EncryptionAlgorithm
    compression: CompressionAlgorithm
    timestamp: Optional[int] = None
    ttl: Optional[int] = None

    @property
    def expires_at(self) -> Optional[int]:
        """Expiry in epoch seconds, or ``None`` when either field is absent."""
        if self.timestamp is None or self.ttl is None:
            return None
        return self.timestamp + self.ttl

    def is_expired(self, now: Optional[float] = None) -> bool:
        expires_at = self.expires_at
        if expires_at is None:
            return False
        if now is None:
            now = time.time()
        return now >= expires_at

    def to_dict(self) -> dict:
        out = {
            "version": self.version,
            "algorithm": self.algorithm.value,
            "compression": self.compression.value,
        }
        if self.timestamp is not None:
            out["timestamp"] = self.timestamp
        if self.ttl is not None:
            out["ttl"] = self.ttl
        return out


# ---------------------------------------------------------------------------
# Id coercion
# ---------------------------------------------------------------------------


def coerce_algorithm(value: Union[str, EncryptionAlgorithm]) -> EncryptionAlgorithm:
    try:
        return EncryptionAlgorithm(value)
    except ValueError:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {value}") from None


def coerce_compression(value: Union[str, CompressionAlgorithm]) -> CompressionAlgorithm:
    try:
        return CompressionAlgorithm(value)
    except ValueError:
        raise UnsupportedCompressionError(f"Unsupported compression: {value}") from None


def _pack_uint32(value: int, name: str) -> bytes:
    if not 0 <= value <= UINT32_MAX:
        raise FormatError(f"{name} out of range for a 32-bit field.")
    return struct.pack(">I", value)


# ---------------------------------------------------------------------------
# Pack / unpack
# ---------------------------------------------------------------------------


def pack_metadata(metadata: TokenMetadata) -> bytes:
    """
    Serialize *metadata* into its binary header.

    Raises
    ------
    UnsupportedAlgorithmError, UnsupportedCompressionError
        If an algorithm has no wire id.
    FormatError
        If a field does not fit its slot.
    """
    algorithm_id = ALGORITHM_IDS.get(coerce_algorithm(metadata.algorithm))
    compression_id = COMPRESSION_IDS.get(coerce_compression(metadata.compression))
    if not 0 <= metadata.version <= 0xFF:
        raise FormatError(f"Version {metadata.version} does not fit in one byte.")

    flags = 0
    if metadata.timestamp is not None:
        flags |= FLAG_HAS_TIMESTAMP
    if metadata.ttl is not None:
        flags |= FLAG_HAS_TTL

    parts = [bytes([metadata.version, algorithm_id, compression_id, flags])]
    if metadata.timestamp is not None:
        parts.append(_pack_uint32(math.floor(metadata.timestamp), "timestamp"))
    if metadata.ttl is not None:
        parts.append(_pack_uint32(int(metadata.ttl), "ttl"))
    return b"".join(parts)


def unpack_metadata(data: bytes) -> TokenMetadata:
    """
    Parse the metadata header at the start of *data*.

    Trailing bytes (salt, IV, ciphertext) are ignored. The version byte is
    returned as-is; see :func:`cwc.versioning.validate_version`.

    Raises
    ------
    FormatError
        If the header is truncated or carries unknown ids.
    """
    if len(data) < HEADER_SIZE:
        raise FormatError("Invalid metadata: too short.")

    version, algorithm_id, compression_id, flags = data[0], data[1], data[2], data[3]

    algorithm = ALGORITHMS_BY_ID.get(algorithm_id)
    if algorithm is None:
        raise UnsupportedAlgorithmError(f"Unknown algorithm ID: {algorithm_id}")
    compression = COMPRESSIONS_BY_ID.get(compression_id)
    if compression is None:
        raise UnsupportedCompressionError(f"Unknown compression ID: {compression_id}")

    offset = HEADER_SIZE
    timestamp = ttl = None

    if flags & FLAG_HAS_TIMESTAMP:
        if len(data) < offset + FIELD_SIZE:
            raise FormatError("Invalid metadata: missing timestamp bytes.")
        (timestamp,) = struct.unpack(">I", data[offset : offset + FIELD_SIZE])
        offset += FIELD_SIZE

    if flags & FLAG_HAS_TTL:
        if len(data) < offset + FIELD_SIZE:
            raise FormatError("Invalid metadata: missing TTL bytes.")
        (ttl,) = struct.unpack(">I", data[offset : offset + FIELD_SIZE])
        offset += FIELD_SIZE

    return TokenMetadata(
        version=version,
        algorithm=algorithm,
        compression=compression,
        timestamp=timestamp,
        ttl=ttl,
    )


def get_metadata_size(metadata: TokenMetadata) -> int:
    """Size in bytes of the packed form of *metadata*."""
    size = HEADER_SIZE
    if metadata.timestamp is not None:
        size += FIELD_SIZE
    if metadata.ttl is not None:
        size += FIELD_SIZE
    return size


def create_default_metadata(
    compression: Union[str, CompressionAlgorithm] = CompressionAlgorithm.BROTLI,
    algorithm: Union[str, EncryptionAlgorithm] = EncryptionAlgorithm.AES_GCM_256,
    include_timestamp: bool = False,
    ttl: Optional[int] = None,
    now: Optional[float] = None,
) -> TokenMetadata:
    timestamp = None
    if include_timestamp:
        timestamp = math.floor(time.time() if now is None else now)
    return TokenMetadata(
        version=CURRENT_VERSION,
        algorithm=coerce_algorithm(algorithm),
        compression=coerce_compression(compression),
        timestamp=timestamp,
        ttl=ttl,
    )

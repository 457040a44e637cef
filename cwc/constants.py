"""
Wire-format constants and algorithm identifiers.
"""

from __future__ import annotations

from enum import Enum

# ---------------------------------------------------------------------------
# AES-256-GCM parameters
# ---------------------------------------------------------------------------

KEY_SIZE: int = 32    # AES-256 = 32 bytes
NONCE_SIZE: int = 12  # AES-GCM recommended nonce
TAG_SIZE: int = 16    # GCM authentication tag
SALT_SIZE: int = 16   # PBKDF2 salt
PBKDF2_ITERATIONS: int = 100_000

# ---------------------------------------------------------------------------
# Metadata header
# ---------------------------------------------------------------------------

HEADER_SIZE: int = 4  # version | algorithm | compression | flags
FIELD_SIZE: int = 4   # each optional uint32 field

FLAG_HAS_TIMESTAMP: int = 0b0000_0001
FLAG_HAS_TTL: int = 0b0000_0010

UINT32_MAX: int = 0xFFFF_FFFF

# ---------------------------------------------------------------------------
# Compression levels
# ---------------------------------------------------------------------------

BROTLI_QUALITY: int = 6
ZLIB_LEVEL: int = 6

# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

DEFAULT_CHUNK_SIZE: int = 1024 * 1024  # characters of serialized JSON


class EncryptionAlgorithm(str, Enum):
    AES_GCM_256 = "aes-gcm-256"


class CompressionAlgorithm(str, Enum):
    NONE = "none"
    BROTLI = "brotli"
    LZ_STRING = "lz-string"
    ZLIB = "zlib"


ALGORITHM_IDS = {
    EncryptionAlgorithm.AES_GCM_256: 0x01,
}

COMPRESSION_IDS = {
    CompressionAlgorithm.NONE: 0x00,
    CompressionAlgorithm.BROTLI: 0x01,
    CompressionAlgorithm.LZ_STRING: 0x02,
    CompressionAlgorithm.ZLIB: 0x03,
}

ALGORITHMS_BY_ID = {v: k for k, v in ALGORITHM_IDS.items()}
COMPRESSIONS_BY_ID = {v: k for k, v in COMPRESSION_IDS.items()}

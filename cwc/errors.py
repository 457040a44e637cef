"""
Exception hierarchy.

Messages only ever carry structural facts (lengths, counts, ids). Secrets,
salts and plaintext never appear in an exception message.
"""

from __future__ import annotations

from typing import List, Sequence


class CWCError(Exception):
    """Base exception for all CWC errors."""


# ---------------------------------------------------------------------------
# Token structure
# ---------------------------------------------------------------------------


class FormatError(CWCError):
    """Token or metadata has an invalid or unsupported format."""


class UnsupportedVersionError(FormatError):
    """Token version byte is not one this library understands."""


class UnsupportedAlgorithmError(FormatError):
    """Encryption algorithm has no wire id."""


class UnsupportedCompressionError(FormatError):
    """Compression algorithm has no wire id."""


class SerializationError(CWCError):
    """Value cannot be represented as JSON."""


# ---------------------------------------------------------------------------
# Keys & authentication
# ---------------------------------------------------------------------------


class InvalidKeyError(CWCError):
    """Key material is malformed."""


class InvalidKeyLengthError(InvalidKeyError):
    """Raw key is not exactly 32 bytes."""


class EmptySecretError(InvalidKeyError):
    """Passphrase is empty."""


class SaltRequiredError(InvalidKeyError):
    """Passphrase decryption was attempted without a salt."""


class DecryptionError(CWCError):
    """Wrong key, corrupted ciphertext, or authentication failure."""


# ---------------------------------------------------------------------------
# Payload processing
# ---------------------------------------------------------------------------


class CompressionError(CWCError):
    """Compressed stream is not valid for the stated algorithm."""


class ExpiredTokenError(CWCError):
    """Token TTL has elapsed."""


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class ChunkError(CWCError):
    """Base class for chunk reassembly failures."""


class ChunkMismatchError(ChunkError):
    """Chunks belong to different streams."""


class IncompleteChunksError(ChunkError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Incomplete chunks: expected {expected}, got {actual}.")


class MissingChunkError(ChunkError):
    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Missing chunk at index {index}.")


class ReassemblyError(ChunkError):
    """Concatenated chunk text is not valid JSON."""


# ---------------------------------------------------------------------------
# Key rotation
# ---------------------------------------------------------------------------


class KeyFallbackError(CWCError):
    """No candidate key could decode the token."""

    def __init__(self, errors: Sequence[Exception]) -> None:
        self.errors: List[Exception] = list(errors)
        detail = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"Failed to decode token with any of the {len(self.errors)} provided keys. "
            f"Errors: {detail}"
        )


# ---------------------------------------------------------------------------
# Custom metadata
# ---------------------------------------------------------------------------


class MetadataSchemaError(CWCError):
    """Custom metadata does not match its schema."""

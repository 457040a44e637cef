"""
CWC: compact, authenticated, URL-safe tokens for JSON values.

    >>> import cwc
    >>> token = cwc.encode({"user": "alice"}, "passphrase")
    >>> cwc.decode(token, "passphrase")
    {'user': 'alice'}
"""

from .compression import CompressionProvider, get_compression_ratio, get_default_compression
from .constants import CompressionAlgorithm, EncryptionAlgorithm
from .core import (
    DecodeResult,
    EncodeOptions,
    TokenCodec,
    async_decode,
    async_encode,
    decode,
    decode_with_metadata,
    encode,
    extract_metadata,
    validate_token,
)
from .crypto import generate_key, is_valid_key, key_from_base64, key_from_hex, key_to_base64, key_to_hex
from .custom_metadata import (
    DataWithMetadata,
    TypedMetadata,
    decode_with_custom_metadata,
    encode_with_metadata,
    extract_custom_metadata,
    has_custom_metadata,
    update_metadata,
    validate_metadata_schema,
)
from .errors import (
    ChunkError,
    ChunkMismatchError,
    CompressionError,
    CWCError,
    DecryptionError,
    EmptySecretError,
    ExpiredTokenError,
    FormatError,
    IncompleteChunksError,
    InvalidKeyError,
    InvalidKeyLengthError,
    KeyFallbackError,
    MetadataSchemaError,
    MissingChunkError,
    ReassemblyError,
    SaltRequiredError,
    SerializationError,
    UnsupportedAlgorithmError,
    UnsupportedCompressionError,
    UnsupportedVersionError,
)
from .metadata import CURRENT_VERSION, TokenMetadata
from .rotation import (
    FallbackResult,
    RotationCheck,
    check_key_rotation,
    decode_with_key_fallback,
    get_rotation_age,
    rotate_key,
    rotate_keys,
    validate_key_rotation,
)
from .streaming import (
    ChunkMetadata,
    EncodedChunk,
    decode_stream,
    decode_stream_from_tokens,
    encode_stream,
    estimate_chunk_count,
    should_stream,
)
from .ttl import (
    get_expiration_time,
    get_remaining_time,
    get_token_age,
    get_ttl_percentage_elapsed,
    is_expired,
    validate_not_expired,
    will_expire_soon,
)
from .versioning import SUPPORTED_VERSIONS, get_version_info, is_supported_version

__version__ = "1.0.0"

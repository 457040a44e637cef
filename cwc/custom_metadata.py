"""
Application metadata stored inside the encrypted payload.

The value is wrapped as ``{"data": ..., "meta": {...}}`` before encoding, so
the wire format is unchanged and the metadata is confidential.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .core import EncodeOptions, TokenCodec, default_codec
from .crypto import Secret
from .errors import CWCError, FormatError, MetadataSchemaError


@dataclass(frozen=True)
class DataWithMetadata:
    data: Any
    meta: Dict[str, Any]


def encode_with_metadata(
    data: Any,
    metadata: Mapping[str, Any],
    secret: Secret,
    options: Optional[EncodeOptions] = None,
    codec: Optional[TokenCodec] = None,
) -> str:
    return (codec or default_codec).encode({"data": data, "meta": dict(metadata)}, secret, options)


def decode_with_custom_metadata(
    token: str, secret: Secret, codec: Optional[TokenCodec] = None
) -> DataWithMetadata:
    """
    Raises
    ------
    FormatError
        The token decodes but is not a ``{"data", "meta"}`` wrapper.
    """
    decoded = (codec or default_codec).decode(token, secret)
    if not _is_wrapper(decoded):
        raise FormatError("Token does not carry custom metadata.")
    return DataWithMetadata(data=decoded["data"], meta=decoded["meta"])


def extract_custom_metadata(
    token: str, secret: Secret, codec: Optional[TokenCodec] = None
) -> Dict[str, Any]:
    return decode_with_custom_metadata(token, secret, codec).meta


def update_metadata(
    token: str,
    changes: Mapping[str, Any],
    secret: Secret,
    options: Optional[EncodeOptions] = None,
    codec: Optional[TokenCodec] = None,
) -> str:
    """Merge *changes* into the token's metadata and re-encode."""
    current = decode_with_custom_metadata(token, secret, codec)
    merged = {**current.meta, **changes}
    return encode_with_metadata(current.data, merged, secret, options, codec)


def _is_wrapper(value: Any) -> bool:
    return isinstance(value, dict) and "data" in value and isinstance(value.get("meta"), dict)


def has_custom_metadata(token: str, secret: Secret, codec: Optional[TokenCodec] = None) -> bool:
    try:
        return _is_wrapper((codec or default_codec).decode(token, secret))
    except CWCError:
        return False


# ---------------------------------------------------------------------------
# Schema validation
# ---------------------------------------------------------------------------


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def validate_metadata_schema(metadata: Mapping[str, Any], schema: Mapping[str, str]) -> None:
    """
    Check *metadata* against *schema*.

    Schema values are type names (``string``, ``number``, ``boolean``,
    ``object``, ``array``, ``null``); a leading ``?`` marks the field
    optional. ``object`` also accepts arrays.

    Raises
    ------
    MetadataSchemaError
        A required field is missing or a field has the wrong type.
    """
    for key, spec in schema.items():
        optional = spec.startswith("?")
        expected = spec[1:] if optional else spec

        if key not in metadata:
            if not optional:
                raise MetadataSchemaError(f"Missing required metadata field: {key}")
            continue

        actual = _type_name(metadata[key])
        if actual != expected and not (expected == "object" and actual == "array"):
            raise MetadataSchemaError(
                f"Invalid type for metadata field '{key}': expected {expected}, got {actual}"
            )


class TypedMetadata:
    """Encoder/decoder pair that validates metadata against a fixed schema."""

    def __init__(self, schema: Mapping[str, str], codec: Optional[TokenCodec] = None) -> None:
        self.schema = dict(schema)
        self._codec = codec

    def encode(
        self,
        data: Any,
        metadata: Mapping[str, Any],
        secret: Secret,
        options: Optional[EncodeOptions] = None,
    ) -> str:
        validate_metadata_schema(metadata, self.schema)
        return encode_with_metadata(data, metadata, secret, options, self._codec)

    def decode(self, token: str, secret: Secret) -> DataWithMetadata:
        result = decode_with_custom_metadata(token, secret, self._codec)
        validate_metadata_schema(result.meta, self.schema)
        return result

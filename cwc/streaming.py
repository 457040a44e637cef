"""
Chunked encoding for large values.

The value is serialized once and the JSON text is cut into fixed-size
slices. Each slice is wrapped as::

    {"data": "<slice>", "meta": {"index": i, "total": n, "chunkId": "<hex>"}}

and encoded as an ordinary token. All chunks of one stream share a
``chunkId``; decoding checks it, sorts by index and rejoins the text.
"""

from __future__ import annotations

import json
import logging
import math
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .constants import DEFAULT_CHUNK_SIZE
from .core import EncodeOptions, TokenCodec, default_codec, serialize
from .crypto import Secret
from .errors import (
    ChunkError,
    ChunkMismatchError,
    IncompleteChunksError,
    MissingChunkError,
    ReassemblyError,
)

logger = logging.getLogger(__name__)

STREAM_THRESHOLD: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class ChunkMetadata:
    index: int
    total: int
    chunk_id: str

    def to_dict(self) -> dict:
        return {"index": self.index, "total": self.total, "chunkId": self.chunk_id}

    @classmethod
    def from_dict(cls, raw: Any) -> "ChunkMetadata":
        try:
            return cls(index=int(raw["index"]), total=int(raw["total"]), chunk_id=str(raw["chunkId"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ChunkError("Token is not a stream chunk.") from exc


@dataclass(frozen=True)
class EncodedChunk:
    token: str
    metadata: ChunkMetadata


def _check_chunk_size(chunk_size: int) -> None:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")


def estimate_chunk_count(data: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    _check_chunk_size(chunk_size)
    return math.ceil(len(serialize(data)) / chunk_size)


def should_stream(data: Any, threshold: int = STREAM_THRESHOLD) -> bool:
    """``True`` when the serialized form of *data* is longer than *threshold*."""
    return len(serialize(data)) > threshold


def encode_stream(
    data: Any,
    secret: Secret,
    options: Optional[EncodeOptions] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_workers: Optional[int] = None,
    codec: Optional[TokenCodec] = None,
) -> List[EncodedChunk]:
    """
    Split *data* into independently encoded chunks.

    JSON text is never empty, so at least one chunk is produced. Chunks are
    returned in index order.
    """
    _check_chunk_size(chunk_size)
    codec = codec or default_codec

    text = serialize(data)
    total = math.ceil(len(text) / chunk_size)
    chunk_id = uuid.uuid4().hex

    metas = [ChunkMetadata(index=i, total=total, chunk_id=chunk_id) for i in range(total)]

    def _encode(meta: ChunkMetadata) -> EncodedChunk:
        start = meta.index * chunk_size
        payload = {"data": text[start : start + chunk_size], "meta": meta.to_dict()}
        return EncodedChunk(token=codec.encode(payload, secret, options), metadata=meta)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        chunks = list(pool.map(_encode, metas))

    logger.debug("Encoded %d characters into %d chunks", len(text), total)
    return chunks


def _open_chunks(
    tokens: Sequence[str],
    secret: Secret,
    max_workers: Optional[int],
    codec: Optional[TokenCodec],
) -> List[Tuple[EncodedChunk, str]]:
    """Decrypt each token once and recover its chunk metadata and text slice."""
    codec = codec or default_codec

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        payloads = list(pool.map(lambda t: codec.decode(t, secret), tokens))

    opened = []
    for token, payload in zip(tokens, payloads):
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), str):
            raise ChunkError("Token is not a stream chunk.")
        meta = ChunkMetadata.from_dict(payload.get("meta"))
        opened.append((EncodedChunk(token=token, metadata=meta), payload["data"]))
    return opened


def _reassemble(opened: List[Tuple[EncodedChunk, str]]) -> Any:
    chunk_id = opened[0][0].metadata.chunk_id
    if any(chunk.metadata.chunk_id != chunk_id for chunk, _ in opened):
        raise ChunkMismatchError("Chunk ID mismatch: chunks belong to different streams.")

    opened = sorted(opened, key=lambda p: p[0].metadata.index)
    expected = opened[0][0].metadata.total
    if len(opened) != expected:
        raise IncompleteChunksError(expected, len(opened))
    for position, (chunk, _) in enumerate(opened):
        if chunk.metadata.index != position:
            raise MissingChunkError(position)

    text = "".join(piece for _, piece in opened)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReassemblyError("Failed to reassemble stream: invalid JSON.") from exc


def decode_stream(
    chunks: Iterable[EncodedChunk],
    secret: Secret,
    max_workers: Optional[int] = None,
    codec: Optional[TokenCodec] = None,
) -> Any:
    """
    Reassemble the value produced by :func:`encode_stream`, in any order.

    The metadata carried beside each token is checked against the copy
    sealed inside it.

    Raises
    ------
    ChunkError
        No chunks, or a token is not a stream chunk.
    ChunkMismatchError
        Chunks come from more than one stream, or a chunk's metadata does
        not match its token.
    IncompleteChunksError
        Fewer (or more) chunks than the stream declares.
    MissingChunkError
        Indices are not contiguous from 0.
    ReassemblyError
        Rejoined text is not valid JSON.
    """
    chunks = list(chunks)
    if not chunks:
        raise ChunkError("No chunks to decode.")

    opened = _open_chunks([chunk.token for chunk in chunks], secret, max_workers, codec)
    for given, (chunk, _) in zip(chunks, opened):
        if given.metadata != chunk.metadata:
            raise ChunkMismatchError("Chunk metadata does not match its token.")
    return _reassemble(opened)


def decode_stream_from_tokens(
    tokens: Sequence[str],
    secret: Secret,
    max_workers: Optional[int] = None,
    codec: Optional[TokenCodec] = None,
) -> Any:
    """
    Like :func:`decode_stream` for bare tokens; chunk metadata is recovered
    from each decrypted payload. Raises the same errors.
    """
    if not tokens:
        raise ChunkError("No chunks to decode.")
    return _reassemble(_open_chunks(tokens, secret, max_workers, codec))

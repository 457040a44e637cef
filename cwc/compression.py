"""
Pluggable compression layer.

Four algorithms share the :class:`Compressor` interface:

* ``none``       pass-through
* ``lz-string``  portable LZ-String, available everywhere
* ``brotli``     best ratio; needs the ``brotli`` module
* ``zlib``       deflate; needs the ``zlib`` module

Capabilities are probed once, when a :class:`CompressionProvider` is built,
and the provider is handed to whoever needs it.

Substitution rule (wire format v1): a request for ``brotli`` on a provider
without a Brotli backend is served by LZ-String, for compress *and*
decompress. Metadata always records the *requested* id, so a token
compressed with the substitute can only be read back by a provider that
also lacks Brotli, and vice versa.
"""

from __future__ import annotations

import base64
import binascii
import logging
import struct
import zlib
from typing import Any, Dict, Optional, Protocol, Union

import lzstring

from .constants import BROTLI_QUALITY, ZLIB_LEVEL, CompressionAlgorithm
from .errors import CompressionError
from .metadata import coerce_compression

logger = logging.getLogger(__name__)

try:
    import brotli
except ImportError:
    logger.debug("brotli not installed; brotli requests will use LZ-String.")
    brotli = None


class Compressor(Protocol):
    def compress(self, data: bytes) -> bytes: ...

    def decompress(self, data: bytes) -> bytes: ...


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class NoneCompressor:
    def compress(self, data: bytes) -> bytes:
        return bytes(data)

    def decompress(self, data: bytes) -> bytes:
        return bytes(data)


class LZStringCompressor:
    """
    LZ-String over the Base64 form of the input.

    The 16-bit code units produced by LZ-String are stored big-endian, two
    bytes each, so compressed output always has even length.
    """

    def __init__(self) -> None:
        self._lz = lzstring.LZString()

    def compress(self, data: bytes) -> bytes:
        if not data:
            return b""
        text = base64.b64encode(bytes(data)).decode("ascii")
        packed = self._lz.compress(text)
        units = [ord(c) for c in packed]
        return struct.pack(f">{len(units)}H", *units)

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return b""
        if len(data) % 2:
            raise CompressionError("LZ-String stream has odd length.")
        units = struct.unpack(f">{len(data) // 2}H", bytes(data))
        try:
            text = self._lz.decompress("".join(chr(u) for u in units))
        except Exception as exc:
            raise CompressionError("LZ-String decompression failed.") from exc
        if not text:
            raise CompressionError("LZ-String decompression failed.")
        try:
            return base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CompressionError("LZ-String decompression failed.") from exc


class BrotliCompressor:
    """Brotli, or LZ-String when no Brotli backend was supplied."""

    def __init__(self, backend: Any = None, quality: int = BROTLI_QUALITY) -> None:
        self._backend = backend
        self._quality = quality
        self._fallback = LZStringCompressor() if backend is None else None

    @property
    def substituted(self) -> bool:
        return self._fallback is not None

    def compress(self, data: bytes) -> bytes:
        if self._fallback is not None:
            return self._fallback.compress(data)
        try:
            return self._backend.compress(bytes(data), quality=self._quality)
        except Exception as exc:
            raise CompressionError("Brotli compression failed.") from exc

    def decompress(self, data: bytes) -> bytes:
        if self._fallback is not None:
            return self._fallback.decompress(data)
        try:
            return self._backend.decompress(bytes(data))
        except Exception as exc:
            raise CompressionError("Brotli decompression failed.") from exc


class ZlibCompressor:
    def __init__(self, backend: Any = None, level: int = ZLIB_LEVEL) -> None:
        self._backend = backend
        self._level = level

    def _require_backend(self) -> Any:
        if self._backend is None:
            raise CompressionError("Zlib compression is not available.")
        return self._backend

    def compress(self, data: bytes) -> bytes:
        backend = self._require_backend()
        try:
            return backend.compress(bytes(data), self._level)
        except Exception as exc:
            raise CompressionError("Zlib compression failed.") from exc

    def decompress(self, data: bytes) -> bytes:
        backend = self._require_backend()
        try:
            return backend.decompress(bytes(data))
        except Exception as exc:
            raise CompressionError("Zlib decompression failed.") from exc


# ---------------------------------------------------------------------------
# Capability provider
# ---------------------------------------------------------------------------


class CompressionProvider:
    """
    Holds one compressor per algorithm, built from the backends it was
    given.

    Pass ``brotli_module=None`` or ``zlib_module=None`` to model a runtime
    without that backend.
    """

    def __init__(self, brotli_module: Any = brotli, zlib_module: Any = zlib) -> None:
        self._available = {
            CompressionAlgorithm.NONE: True,
            CompressionAlgorithm.LZ_STRING: True,
            CompressionAlgorithm.BROTLI: brotli_module is not None,
            CompressionAlgorithm.ZLIB: zlib_module is not None,
        }
        brotli_compressor = BrotliCompressor(brotli_module)
        if brotli_compressor.substituted:
            logger.warning("Brotli backend unavailable; brotli requests will use LZ-String.")
        self._compressors: Dict[CompressionAlgorithm, Compressor] = {
            CompressionAlgorithm.NONE: NoneCompressor(),
            CompressionAlgorithm.LZ_STRING: LZStringCompressor(),
            CompressionAlgorithm.BROTLI: brotli_compressor,
            CompressionAlgorithm.ZLIB: ZlibCompressor(zlib_module),
        }

    def is_available(self, algorithm: Union[str, CompressionAlgorithm]) -> bool:
        try:
            return self._available[CompressionAlgorithm(algorithm)]
        except ValueError:
            return False

    def get_compressor(self, algorithm: Union[str, CompressionAlgorithm]) -> Compressor:
        return self._compressors[coerce_compression(algorithm)]

    def compress(
        self,
        data: bytes,
        algorithm: Union[str, CompressionAlgorithm] = CompressionAlgorithm.BROTLI,
    ) -> bytes:
        return self.get_compressor(algorithm).compress(data)

    def decompress(self, data: bytes, algorithm: Union[str, CompressionAlgorithm]) -> bytes:
        return self.get_compressor(algorithm).decompress(data)

    def get_default_compression(self) -> CompressionAlgorithm:
        """Highest-ratio algorithm this provider can actually run."""
        if self.is_available(CompressionAlgorithm.BROTLI):
            return CompressionAlgorithm.BROTLI
        return CompressionAlgorithm.LZ_STRING


def get_compression_ratio(original: int, compressed: int) -> float:
    """``original / compressed``; 0 when *compressed* is 0."""
    if compressed == 0:
        return 0.0
    return original / compressed


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------

default_provider = CompressionProvider()


def compress(
    data: bytes,
    algorithm: Union[str, CompressionAlgorithm] = CompressionAlgorithm.BROTLI,
    provider: Optional[CompressionProvider] = None,
) -> bytes:
    return (provider or default_provider).compress(data, algorithm)


def decompress(
    data: bytes,
    algorithm: Union[str, CompressionAlgorithm],
    provider: Optional[CompressionProvider] = None,
) -> bytes:
    return (provider or default_provider).decompress(data, algorithm)


def is_available(algorithm: Union[str, CompressionAlgorithm]) -> bool:
    return default_provider.is_available(algorithm)


def get_compressor(algorithm: Union[str, CompressionAlgorithm]) -> Compressor:
    return default_provider.get_compressor(algorithm)


def get_default_compression() -> CompressionAlgorithm:
    return default_provider.get_default_compression()

import unittest
import zlib

import brotli

from cwc.compression import (
    BrotliCompressor,
    CompressionProvider,
    LZStringCompressor,
    ZlibCompressor,
    get_compression_ratio,
)
from cwc.constants import CompressionAlgorithm
from cwc.errors import CompressionError, UnsupportedCompressionError

SAMPLE = ('{"user":"alice","roles":["admin","editor"],"note":"héllo ✓"}' * 20).encode("utf-8")


class CompressorRoundTripTests(unittest.TestCase):
    def setUp(self):
        self.provider = CompressionProvider()

    def test_every_algorithm_round_trips(self):
        for algorithm in CompressionAlgorithm:
            with self.subTest(algorithm=algorithm):
                packed = self.provider.compress(SAMPLE, algorithm)
                self.assertEqual(self.provider.decompress(packed, algorithm), SAMPLE)

    def test_binary_input(self):
        data = bytes(range(256)) * 3
        for algorithm in CompressionAlgorithm:
            with self.subTest(algorithm=algorithm):
                packed = self.provider.compress(data, algorithm)
                self.assertEqual(self.provider.decompress(packed, algorithm), data)

    def test_repetitive_input_shrinks(self):
        for algorithm in (CompressionAlgorithm.BROTLI, CompressionAlgorithm.ZLIB, CompressionAlgorithm.LZ_STRING):
            with self.subTest(algorithm=algorithm):
                self.assertLess(len(self.provider.compress(SAMPLE, algorithm)), len(SAMPLE))

    def test_string_names_are_accepted(self):
        packed = self.provider.compress(SAMPLE, "zlib")
        self.assertEqual(zlib.decompress(packed), SAMPLE)

    def test_unknown_algorithm(self):
        with self.assertRaises(UnsupportedCompressionError):
            self.provider.compress(SAMPLE, "lzma")
        self.assertFalse(self.provider.is_available("lzma"))


class CorruptInputTests(unittest.TestCase):
    def test_corrupt_zlib(self):
        with self.assertRaises(CompressionError):
            ZlibCompressor(zlib).decompress(b"not zlib at all")

    def test_corrupt_brotli(self):
        with self.assertRaises(CompressionError):
            BrotliCompressor(brotli).decompress(b"\xff\xff\xff\xff not brotli")

    def test_odd_length_lz_string(self):
        with self.assertRaises(CompressionError):
            LZStringCompressor().decompress(b"\x00\x01\x02")

    def test_empty_lz_string(self):
        self.assertEqual(LZStringCompressor().compress(b""), b"")
        self.assertEqual(LZStringCompressor().decompress(b""), b"")


class CapabilityTests(unittest.TestCase):
    def test_default_prefers_brotli(self):
        provider = CompressionProvider()
        self.assertTrue(provider.is_available(CompressionAlgorithm.BROTLI))
        self.assertEqual(provider.get_default_compression(), CompressionAlgorithm.BROTLI)

    def test_missing_brotli_substitutes_lz_string(self):
        with self.assertLogs("cwc.compression", level="WARNING"):
            provider = CompressionProvider(brotli_module=None)
        self.assertFalse(provider.is_available("brotli"))
        self.assertEqual(provider.get_default_compression(), CompressionAlgorithm.LZ_STRING)

        packed = provider.compress(SAMPLE, "brotli")
        self.assertEqual(packed, provider.compress(SAMPLE, "lz-string"))
        self.assertEqual(provider.decompress(packed, "brotli"), SAMPLE)

    def test_missing_zlib(self):
        provider = CompressionProvider(zlib_module=None)
        self.assertFalse(provider.is_available("zlib"))
        with self.assertRaises(CompressionError):
            provider.compress(SAMPLE, "zlib")

    def test_ratio(self):
        self.assertEqual(get_compression_ratio(100, 25), 4.0)
        self.assertEqual(get_compression_ratio(100, 0), 0.0)


if __name__ == "__main__":
    unittest.main()

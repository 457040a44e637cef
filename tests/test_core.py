import asyncio
import re
import unittest
from unittest.mock import patch

import cwc
from cwc.buffers import decode_base64url, encode_base64url
from cwc.compression import CompressionProvider
from cwc.constants import CompressionAlgorithm
from cwc.core import EncodeOptions, TokenCodec, deserialize, serialize
from cwc.errors import (
    DecryptionError,
    EmptySecretError,
    ExpiredTokenError,
    FormatError,
    InvalidKeyLengthError,
    SerializationError,
    UnsupportedVersionError,
)

KEY = bytes(range(32))
PAYLOAD = {"user": "alice", "roles": ["admin", "editor"], "n": 42, "ok": True, "none": None, "text": "héllo ✓"}
URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")
NOW = 1_700_000_000.0


def _flip(token, index, bit=0):
    raw = bytearray(decode_base64url(token))
    raw[index] ^= 1 << bit
    return encode_base64url(bytes(raw))


class RoundTripTests(unittest.TestCase):
    def test_every_compression_with_raw_key(self):
        for algorithm in CompressionAlgorithm:
            with self.subTest(algorithm=algorithm):
                token = cwc.encode(PAYLOAD, KEY, EncodeOptions(compression=algorithm))
                self.assertRegex(token, URL_SAFE)
                self.assertEqual(cwc.decode(token, KEY), PAYLOAD)
                self.assertEqual(cwc.extract_metadata(token).compression, algorithm)

    def test_passphrase(self):
        token = cwc.encode({"user": "alice"}, "correct horse battery staple")
        self.assertRegex(token, URL_SAFE)
        self.assertEqual(cwc.decode(token, "correct horse battery staple"), {"user": "alice"})

    def test_scalar_values(self):
        for value in ("plain string", 0, 3.5, False, None, [], {}):
            with self.subTest(value=value):
                self.assertEqual(cwc.decode(cwc.encode(value, KEY), KEY), value)

    def test_tokens_are_unique(self):
        self.assertNotEqual(cwc.encode(PAYLOAD, KEY), cwc.encode(PAYLOAD, KEY))
        self.assertNotEqual(cwc.encode(PAYLOAD, "pw"), cwc.encode(PAYLOAD, "pw"))

    def test_default_compression_follows_provider(self):
        token = cwc.encode(PAYLOAD, KEY)
        self.assertEqual(cwc.extract_metadata(token).compression, CompressionAlgorithm.BROTLI)

    def test_decode_with_metadata(self):
        with patch("time.time", return_value=NOW):
            token = cwc.encode(PAYLOAD, KEY, EncodeOptions(include_timestamp=True, ttl=60))
            result = cwc.decode_with_metadata(token, KEY)
        self.assertEqual(result.data, PAYLOAD)
        self.assertEqual(result.metadata.timestamp, int(NOW))
        self.assertEqual(result.metadata.ttl, 60)

    def test_async(self):
        async def run():
            token = await cwc.async_encode(PAYLOAD, KEY)
            return await cwc.async_decode(token, KEY)

        self.assertEqual(asyncio.run(run()), PAYLOAD)


class SubstitutionTests(unittest.TestCase):
    def test_codec_without_brotli_still_records_brotli(self):
        with self.assertLogs("cwc.compression", level="WARNING"):
            codec = TokenCodec(CompressionProvider(brotli_module=None))
        token = codec.encode(PAYLOAD, KEY, EncodeOptions(compression=CompressionAlgorithm.BROTLI))
        self.assertEqual(codec.extract_metadata(token).compression, CompressionAlgorithm.BROTLI)
        self.assertEqual(codec.decode(token, KEY), PAYLOAD)

    def test_codec_without_brotli_defaults_to_lz_string(self):
        with self.assertLogs("cwc.compression", level="WARNING"):
            codec = TokenCodec(CompressionProvider(brotli_module=None))
        token = codec.encode(PAYLOAD, KEY)
        self.assertEqual(codec.extract_metadata(token).compression, CompressionAlgorithm.LZ_STRING)
        self.assertEqual(cwc.decode(token, KEY), PAYLOAD)


class TamperTests(unittest.TestCase):
    def test_every_bit_position_of_raw_key_token(self):
        token = cwc.encode({"a": 1}, KEY, EncodeOptions(compression=CompressionAlgorithm.NONE))
        length = len(decode_base64url(token))
        for index in range(length):
            with self.subTest(index=index):
                with self.assertRaises((DecryptionError, FormatError)):
                    cwc.decode(_flip(token, index), KEY)

    def test_header_flip_fails_authentication(self):
        token = cwc.encode(PAYLOAD, KEY, EncodeOptions(compression=CompressionAlgorithm.BROTLI))
        # brotli (0x01) -> none (0x00) is still a valid header
        with self.assertRaises(DecryptionError):
            cwc.decode(_flip(token, 2), KEY)

    def test_salt_iv_and_ciphertext_of_passphrase_token(self):
        token = cwc.encode(PAYLOAD, "pw")
        # header is 4 bytes; salt 4..19, IV 20..31, ciphertext from 32
        for index in (4, 19, 20, 31, 32, len(decode_base64url(token)) - 1):
            with self.subTest(index=index):
                with self.assertRaises(DecryptionError):
                    cwc.decode(_flip(token, index, bit=7), "pw")

    def test_wrong_secret(self):
        with self.assertRaises(DecryptionError):
            cwc.decode(cwc.encode(PAYLOAD, KEY), bytes(32))
        with self.assertRaises(DecryptionError):
            cwc.decode(cwc.encode(PAYLOAD, "pw"), "other")

    def test_secret_kind_mismatch(self):
        with self.assertRaises((DecryptionError, FormatError)):
            cwc.decode(cwc.encode(PAYLOAD, "pw"), KEY)
        with self.assertRaises((DecryptionError, FormatError)):
            cwc.decode(cwc.encode(PAYLOAD, KEY), "pw")


class ExpiryTests(unittest.TestCase):
    def _token(self, ttl, include_timestamp=True):
        with patch("time.time", return_value=NOW):
            return cwc.encode(PAYLOAD, KEY, EncodeOptions(include_timestamp=include_timestamp, ttl=ttl))

    def test_valid_until_ttl_elapses(self):
        token = self._token(60)
        with patch("time.time", return_value=NOW + 59):
            self.assertEqual(cwc.decode(token, KEY), PAYLOAD)
        with patch("time.time", return_value=NOW + 60):
            with self.assertRaises(ExpiredTokenError):
                cwc.decode(token, KEY)

    def test_zero_ttl_expires_immediately(self):
        token = self._token(0)
        with patch("time.time", return_value=NOW):
            with self.assertRaises(ExpiredTokenError):
                cwc.decode(token, KEY)

    def test_ttl_without_timestamp_never_expires(self):
        with self.assertLogs("cwc.core", level="WARNING"):
            token = self._token(1, include_timestamp=False)
        with patch("time.time", return_value=NOW + 10 ** 6):
            self.assertEqual(cwc.decode(token, KEY), PAYLOAD)

    def test_tampered_expired_token_reports_authentication_failure(self):
        token = _flip(self._token(1), 20)
        with patch("time.time", return_value=NOW + 100):
            with self.assertRaises(DecryptionError):
                cwc.decode(token, KEY)


class StructureTests(unittest.TestCase):
    def test_unsupported_version(self):
        raw = bytearray(decode_base64url(cwc.encode(PAYLOAD, KEY)))
        raw[0] = 2
        with self.assertRaises(UnsupportedVersionError):
            cwc.decode(encode_base64url(bytes(raw)), KEY)

    def test_unsupported_version_rejected_without_secret(self):
        raw = bytearray(decode_base64url(cwc.encode(PAYLOAD, KEY, EncodeOptions(include_timestamp=True, ttl=60))))
        raw[0] = 2
        bad = encode_base64url(bytes(raw))
        self.assertFalse(cwc.validate_token(bad))
        for helper in (cwc.extract_metadata, cwc.get_expiration_time, cwc.is_expired, cwc.get_rotation_age):
            with self.subTest(helper=helper.__name__):
                with self.assertRaises(UnsupportedVersionError):
                    helper(bad)

    def test_validate_token(self):
        token = cwc.encode(PAYLOAD, KEY)
        self.assertTrue(cwc.validate_token(token))
        self.assertFalse(cwc.validate_token("not a token!"))
        self.assertFalse(cwc.validate_token(encode_base64url(b"\x01\x01\x01\x00" + bytes(10))))
        self.assertFalse(cwc.validate_token(""))

    def test_truncated_token(self):
        short = encode_base64url(b"\x01\x01\x01\x00" + bytes(20))
        with self.assertRaises(FormatError):
            cwc.decode(short, KEY)
        with self.assertRaises(FormatError):
            cwc.decode("", KEY)

    def test_extract_metadata(self):
        with patch("time.time", return_value=NOW):
            token = cwc.encode(PAYLOAD, KEY, EncodeOptions(compression="zlib", include_timestamp=True))
        meta = cwc.extract_metadata(token)
        self.assertEqual(meta.version, 1)
        self.assertEqual(meta.compression, CompressionAlgorithm.ZLIB)
        self.assertEqual(meta.timestamp, int(NOW))
        self.assertIsNone(meta.ttl)
        with self.assertRaises(FormatError):
            cwc.extract_metadata("AAE")

    def test_invalid_secrets(self):
        with self.assertRaises(EmptySecretError):
            cwc.encode(PAYLOAD, "")
        with self.assertRaises(InvalidKeyLengthError):
            cwc.encode(PAYLOAD, bytes(16))


class SerializationTests(unittest.TestCase):
    def test_compact_json(self):
        self.assertEqual(serialize({"a": [1, 2], "b": "é"}), '{"a":[1,2],"b":"é"}')
        self.assertEqual(deserialize('{"a":1}'), {"a": 1})

    def test_unrepresentable_values(self):
        for value in (float("nan"), float("inf"), {1, 2}, object(), b"bytes"):
            with self.subTest(value=value):
                with self.assertRaises(SerializationError):
                    cwc.encode(value, KEY)

    def test_invalid_json(self):
        with self.assertRaises(FormatError):
            deserialize("{not json")


if __name__ == "__main__":
    unittest.main()

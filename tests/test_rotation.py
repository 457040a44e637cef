import unittest
from unittest.mock import patch

import cwc
from cwc.core import EncodeOptions
from cwc.errors import DecryptionError, KeyFallbackError

OLD = bytes(range(32))
NEW = bytes(range(1, 33))
NOW = 1_700_000_000.0


class RotateTests(unittest.TestCase):
    def test_rotate_key(self):
        token = cwc.encode({"id": 1}, OLD)
        rotated = cwc.rotate_key(token, OLD, NEW)
        self.assertNotEqual(rotated, token)
        self.assertEqual(cwc.decode(rotated, NEW), {"id": 1})
        with self.assertRaises(DecryptionError):
            cwc.decode(rotated, OLD)

    def test_rotate_between_passphrase_and_raw_key(self):
        token = cwc.encode({"id": 2}, "old pass")
        self.assertEqual(cwc.decode(cwc.rotate_key(token, "old pass", NEW), NEW), {"id": 2})

    def test_rotate_keys_preserves_order(self):
        tokens = [cwc.encode({"id": i}, OLD) for i in range(8)]
        rotated = cwc.rotate_keys(tokens, OLD, NEW, max_workers=4)
        self.assertEqual([cwc.decode(t, NEW) for t in rotated], [{"id": i} for i in range(8)])

    def test_rotate_keys_is_all_or_nothing(self):
        tokens = [cwc.encode({"id": i}, OLD) for i in range(3)]
        tokens.append(cwc.encode({"id": 3}, NEW))
        with self.assertRaises(DecryptionError):
            cwc.rotate_keys(tokens, OLD, NEW)

    def test_rotate_keys_empty(self):
        self.assertEqual(cwc.rotate_keys([], OLD, NEW), [])

    def test_rotation_applies_new_options(self):
        token = cwc.encode({"id": 1}, OLD)
        with patch("time.time", return_value=NOW):
            rotated = cwc.rotate_key(token, OLD, NEW, EncodeOptions(include_timestamp=True))
        self.assertEqual(cwc.extract_metadata(rotated).timestamp, int(NOW))


class FallbackTests(unittest.TestCase):
    def test_returns_index_of_working_key(self):
        token = cwc.encode({"id": 1}, NEW)
        result = cwc.decode_with_key_fallback(token, [OLD, "nope", NEW])
        self.assertEqual(result.data, {"id": 1})
        self.assertEqual(result.key_index, 2)

    def test_first_key_wins(self):
        token = cwc.encode({"id": 1}, OLD)
        self.assertEqual(cwc.decode_with_key_fallback(token, [OLD, NEW]).key_index, 0)

    def test_all_keys_fail(self):
        token = cwc.encode({"id": 1}, OLD)
        with self.assertRaises(KeyFallbackError) as ctx:
            cwc.decode_with_key_fallback(token, [NEW, bytes(32)])
        self.assertEqual(len(ctx.exception.errors), 2)
        self.assertIn("any of the 2 provided keys", str(ctx.exception))

    def test_no_keys(self):
        with self.assertRaises(KeyFallbackError) as ctx:
            cwc.decode_with_key_fallback(cwc.encode(1, OLD), [])
        self.assertEqual(ctx.exception.errors, [])


class ValidationTests(unittest.TestCase):
    def test_valid_rotation(self):
        token = cwc.encode({"id": 1}, OLD)
        self.assertTrue(cwc.validate_key_rotation(token, OLD, NEW))
        check = cwc.check_key_rotation(token, OLD, NEW)
        self.assertTrue(check.ok)
        self.assertIsNone(check.error)

    def test_wrong_old_key_fails_at_decode(self):
        token = cwc.encode({"id": 1}, OLD)
        self.assertFalse(cwc.validate_key_rotation(token, NEW, OLD))
        check = cwc.check_key_rotation(token, NEW, OLD)
        self.assertEqual(check.stage, "decode")
        self.assertIsInstance(check.error, DecryptionError)

    def test_bad_new_key_fails_at_encode(self):
        token = cwc.encode({"id": 1}, OLD)
        check = cwc.check_key_rotation(token, OLD, bytes(8))
        self.assertFalse(check.ok)
        self.assertEqual(check.stage, "encode")

    def test_rotation_age(self):
        with patch("time.time", return_value=NOW):
            token = cwc.encode(1, OLD, EncodeOptions(include_timestamp=True))
        with patch("time.time", return_value=NOW + 90):
            self.assertEqual(cwc.get_rotation_age(token), 90)
        self.assertIsNone(cwc.get_rotation_age(cwc.encode(1, OLD)))


if __name__ == "__main__":
    unittest.main()

import unittest
from unittest.mock import patch

import cwc
from cwc.core import EncodeOptions
from cwc.errors import ExpiredTokenError

KEY = bytes(range(32))
NOW = 1_700_000_000.0


def _token(ttl=100, include_timestamp=True):
    with patch("time.time", return_value=NOW):
        return cwc.encode({"a": 1}, KEY, EncodeOptions(include_timestamp=include_timestamp, ttl=ttl))


class TTLTests(unittest.TestCase):
    def test_expiry_is_read_without_a_secret(self):
        token = _token()
        self.assertEqual(cwc.get_expiration_time(token), int(NOW) + 100)
        with patch("time.time", return_value=NOW + 25):
            self.assertFalse(cwc.is_expired(token))
            self.assertEqual(cwc.get_remaining_time(token), 75)
            self.assertEqual(cwc.get_token_age(token), 25)
            self.assertEqual(cwc.get_ttl_percentage_elapsed(token), 25.0)
            cwc.validate_not_expired(token)
        with patch("time.time", return_value=NOW + 100):
            self.assertTrue(cwc.is_expired(token))
            self.assertEqual(cwc.get_remaining_time(token), 0)
            with self.assertRaises(ExpiredTokenError):
                cwc.validate_not_expired(token)

    def test_percentage_is_clamped(self):
        token = _token()
        with patch("time.time", return_value=NOW + 1000):
            self.assertEqual(cwc.get_ttl_percentage_elapsed(token), 100.0)
        with patch("time.time", return_value=NOW - 10):
            self.assertEqual(cwc.get_ttl_percentage_elapsed(token), 0.0)
            self.assertEqual(cwc.get_token_age(token), 0.0)

    def test_will_expire_soon(self):
        token = _token()
        with patch("time.time", return_value=NOW + 50):
            self.assertTrue(cwc.will_expire_soon(token, 60))
            self.assertFalse(cwc.will_expire_soon(token, 10))

    def test_zero_ttl(self):
        token = _token(ttl=0)
        with patch("time.time", return_value=NOW):
            self.assertTrue(cwc.is_expired(token))
            self.assertEqual(cwc.get_ttl_percentage_elapsed(token), 100.0)

    def test_tokens_without_ttl(self):
        for token in (_token(ttl=None), cwc.encode(1, KEY)):
            with self.subTest(token=token):
                self.assertFalse(cwc.is_expired(token))
                self.assertIsNone(cwc.get_expiration_time(token))
                self.assertIsNone(cwc.get_remaining_time(token))
                self.assertIsNone(cwc.get_ttl_percentage_elapsed(token))
                self.assertFalse(cwc.will_expire_soon(token, 10 ** 9))

    def test_age_without_timestamp(self):
        self.assertIsNone(cwc.get_token_age(cwc.encode(1, KEY)))
        self.assertIsNotNone(cwc.get_token_age(_token(ttl=None)))


if __name__ == "__main__":
    unittest.main()

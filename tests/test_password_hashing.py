"""Tests for the passlib-backed password hasher."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path
from unittest import mock


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from shopapi.errors import HashingError
from shopapi.passwords import PasswordHasher


class PasswordHashingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.hasher = PasswordHasher()

    def test_hash_and_verify(self) -> None:
        hashed = self.hasher.hash("supersecurepassword")
        self.assertNotEqual(hashed, "supersecurepassword")
        self.assertTrue(self.hasher.verify("supersecurepassword", hashed))
        self.assertFalse(self.hasher.verify("incorrect", hashed))

    def test_each_hash_uses_a_fresh_salt(self) -> None:
        first = self.hasher.hash("samepassword")
        second = self.hasher.hash("samepassword")
        self.assertNotEqual(first, second)
        self.assertTrue(self.hasher.verify("samepassword", first))
        self.assertTrue(self.hasher.verify("samepassword", second))

    def test_malformed_digest_never_verifies(self) -> None:
        self.assertFalse(self.hasher.verify("anything", "not-a-real-hash"))
        self.assertFalse(self.hasher.verify("anything", ""))

    def test_internal_failure_is_wrapped(self) -> None:
        with mock.patch.object(self.hasher._context, "hash", side_effect=MemoryError()):
            with self.assertRaises(HashingError):
                self.hasher.hash("password123")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

"""Unit tests for password hashing, JWT helpers and email checks."""

import unittest

import jwt

from sorinb.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    is_valid_email,
    verify_password,
)
from tests.helpers import make_settings


class TestPasswords(unittest.TestCase):

    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret-pass")
        self.assertNotEqual(hashed, "s3cret-pass")
        self.assertTrue(verify_password("s3cret-pass", hashed))
        self.assertFalse(verify_password("other-pass", hashed))

    def test_verify_against_garbage_hash(self) -> None:
        self.assertFalse(verify_password("whatever", "not-a-bcrypt-hash"))


class TestTokens(unittest.TestCase):

    def test_claims_round_trip(self) -> None:
        settings = make_settings()
        token = create_access_token(sub=7, email="a@b.co", role="admin", settings=settings)
        claims = decode_access_token(token, settings)
        self.assertEqual(claims["sub"], "7")
        self.assertEqual(claims["email"], "a@b.co")
        self.assertEqual(claims["role"], "admin")
        self.assertEqual(claims["exp"] - claims["iat"], settings.JWT_EXPIRE_MINUTES * 60)

    def test_wrong_secret_fails(self) -> None:
        token = create_access_token(sub=1, email="a@b.co", role="user", settings=make_settings())
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(token, make_settings(JWT_SECRET="different"))


class TestEmail(unittest.TestCase):

    def test_valid(self) -> None:
        for email in ("a@b.co", "first.last+tag@sub.example.org"):
            with self.subTest(email=email):
                self.assertTrue(is_valid_email(email))

    def test_invalid(self) -> None:
        for email in ("", "plain", "@example.com", "a@", "a@b", "a@@b.co", "a b@c.co", "a@.co", "a@b."):
            with self.subTest(email=email):
                self.assertFalse(is_valid_email(email))


if __name__ == "__main__":
    unittest.main()

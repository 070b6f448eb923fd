"""
Credential hashing tests.

Verifies:
- Hashes verify with the right password and not with a wrong one
- Two hashes of the same password differ (fresh salt)
- Malformed stored values fail closed instead of raising
"""

import hashlib

import pytest

from leunique.services.password_service import (
    DELIMITER,
    hash_password,
    looks_hashed,
    verify_password,
)


class TestHashRoundTrip:

    def test_verify_accepts_correct_password(self):
        stored = hash_password("gerente123")
        assert verify_password("gerente123", stored) is True

    def test_verify_rejects_wrong_password(self):
        stored = hash_password("gerente123")
        assert verify_password("gerente124", stored) is False

    def test_same_password_hashes_differently(self):
        assert hash_password("Admin") != hash_password("Admin")

    def test_stored_form_is_key_dot_salt(self):
        key_hex, salt_hex = hash_password("Admin").split(DELIMITER)
        assert len(key_hex) == 128
        assert len(salt_hex) == 32
        assert looks_hashed(f"{key_hex}.{salt_hex}")

    def test_verifies_record_built_with_hex_salt_text(self):
        # Salt is the hex text itself, not its decoded bytes
        salt_hex = "00112233445566778899aabbccddeeff"
        key = hashlib.scrypt(b"Admin", salt=salt_hex.encode(), n=16384, r=8, p=1, dklen=64)
        assert verify_password("Admin", f"{key.hex()}.{salt_hex}")

    def test_unicode_password(self):
        stored = hash_password("contraseña-ñandú")
        assert verify_password("contraseña-ñandú", stored)


class TestMalformedStoredValues:

    @pytest.mark.parametrize(
        "stored",
        [
            "",
            "plaintext",
            ".",
            "abc.",
            ".abc",
            "a.b.c",
            "zz-not-hex.0011",
            None,
            12345,
        ],
    )
    def test_fails_closed(self, stored):
        assert verify_password("anything", stored) is False

    def test_plaintext_is_not_hashed(self):
        assert looks_hashed("Admin") is False
        assert looks_hashed("abcd.ef") is False

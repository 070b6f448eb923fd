# Overview: Credential hashing; one-way salted scrypt hashes and constant-time verification.

"""
Password Hashing Service

Stored form: "<hex derived key>.<hex salt>"

- 16 random bytes of salt, rendered as 32 hex characters
- scrypt (N=16384, r=8, p=1) derives a 64-byte key from the password, using
  the hex salt text as the scrypt salt input
- "." never appears in hex output, so the two parts split unambiguously

Node's crypto.scrypt with its default cost writes the same layout, so
records hashed by a Node backend verify here unchanged.

SECURITY NOTES:
- verify_password() never raises. Malformed records, bad hex and KDF
  failures all come back as False so the login path cannot tell a crypto
  error apart from a wrong password.
- Comparison uses hmac.compare_digest (constant time).
"""

import hashlib
import hmac
import secrets

SALT_BYTES = 16
KEY_LENGTH = 64
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_MAXMEM = 64 * 1024 * 1024

DELIMITER = "."


def _derive(password: str, salt_hex: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt_hex.encode("ascii"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        maxmem=SCRYPT_MAXMEM,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Hash a plaintext password. A fresh salt is drawn on every call."""
    salt_hex = secrets.token_hex(SALT_BYTES)
    key = _derive(password, salt_hex)
    return f"{key.hex()}{DELIMITER}{salt_hex}"


def verify_password(password: str, stored: str) -> bool:
    """
    Verify a plaintext password against a stored hash.

    Returns False (never raises) when the stored form is malformed.
    """
    try:
        parts = stored.split(DELIMITER)
        if len(parts) != 2:
            return False
        key_hex, salt_hex = parts
        if not key_hex or not salt_hex:
            return False

        expected = bytes.fromhex(key_hex)
        supplied = _derive(password, salt_hex)
        return hmac.compare_digest(expected, supplied)
    except Exception:
        return False


def looks_hashed(value: str) -> bool:
    """
    Diagnostic only: does value have the shape of a stored hash?

    The store never uses this to decide whether to hash; callers pick
    create_user_with_password or create_user_with_hash explicitly.
    """
    parts = value.split(DELIMITER) if isinstance(value, str) else []
    if len(parts) != 2 or not all(parts):
        return False
    key_hex, salt_hex = parts
    try:
        return len(bytes.fromhex(key_hex)) == KEY_LENGTH and len(bytes.fromhex(salt_hex)) == SALT_BYTES
    except ValueError:
        return False

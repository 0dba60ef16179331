"""Argon2 password hashing for user accounts."""

import argon2

_hasher = argon2.PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, pwhash: str) -> bool:
    """True when ``password`` matches; malformed hashes count as a mismatch."""
    try:
        return _hasher.verify(pwhash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False

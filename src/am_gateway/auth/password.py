"""Password hashing with the ``bcrypt`` library (>=4.0), no passlib wrapper."""

import bcrypt

# bcrypt reads at most 72 bytes. The schema caps length in characters, so
# multi-byte passwords can still be cut here.
_BCRYPT_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    """Hash a plain-text password. Returns the utf-8 hash string."""
    hashed: bytes = bcrypt.hashpw(plain.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    return bcrypt.checkpw(plain.encode("utf-8")[:_BCRYPT_MAX_BYTES], hashed.encode("utf-8"))

"""bcrypt hashing as used by registration and login."""

import pytest
from pydantic import ValidationError

from src.am_gateway.auth.password import hash_password, verify_password
from src.am_gateway.user.schemas import RegisterRequest


def test_stored_hash_is_bcrypt_and_salted() -> None:
    first = hash_password("Gallery2026")
    second = hash_password("Gallery2026")

    assert first.startswith("$2b$")
    assert first != second
    assert verify_password("Gallery2026", first)
    assert verify_password("Gallery2026", second)


def test_case_matters() -> None:
    assert not verify_password("gallery2026", hash_password("Gallery2026"))


def test_accented_password_round_trip() -> None:
    hashed = hash_password("Ménines1656")
    assert verify_password("Ménines1656", hashed)
    assert not verify_password("Menines1656", hashed)


def test_only_first_72_utf8_bytes_count() -> None:
    # 35 two-byte characters plus "a1" fill the 72 bytes bcrypt reads
    base = "é" * 35 + "a1"
    hashed = hash_password(base + "tail-one")
    assert verify_password(base + "tail-two", hashed)


def test_registration_caps_length_before_hashing() -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(
            email="painter@example.com",
            password="Aa1" * 25,
            first_name="Berthe",
            last_name="Morisot",
        )

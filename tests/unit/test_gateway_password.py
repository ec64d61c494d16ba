"""Unit tests for password hashing and stored-password variants."""

from src.wb_gateway.auth.password import (
    HashedPassword,
    LegacyPlaintextPassword,
    check_password,
    hash_password,
    load_stored_password,
    needs_migration,
    verify_password,
)


def test_hash_and_verify() -> None:
    hashed = hash_password("Pass1word")
    assert hashed != "Pass1word"
    assert verify_password("Pass1word", hashed)
    assert not verify_password("wrong", hashed)


def test_hashes_are_salted() -> None:
    assert hash_password("Pass1word") != hash_password("Pass1word")


def test_load_stored_password_picks_variant() -> None:
    assert load_stored_password("bcrypt", "$2b$...") == HashedPassword("$2b$...")
    assert load_stored_password("plaintext", "secret") == LegacyPlaintextPassword("secret")


def test_check_password_against_hashed_variant() -> None:
    stored = HashedPassword(hash_password("Pass1word"))
    assert check_password("Pass1word", stored)
    assert not check_password("nope", stored)
    assert not needs_migration(stored)


def test_check_password_against_legacy_variant() -> None:
    stored = LegacyPlaintextPassword("Pass1word")
    assert check_password("Pass1word", stored)
    assert not check_password("Pass1wor", stored)
    assert needs_migration(stored)

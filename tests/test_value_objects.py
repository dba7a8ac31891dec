"""
Credential value object tests.

Verifies:
1. Email normalisation and rejection reasons
2. Password length limits and hash-only storage
3. Staff name sanitising
4. Staff id format
"""

import re

import pytest

from library_staff.domain.errors import InvalidEmail, InvalidPassword, InvalidStaffName
from library_staff.domain.value_objects import Email, Password, StaffId, StaffName


# ── Email ───────────────────────────────────────────────────────────
def test_email_is_trimmed_and_lowercased():
    assert Email.create("  Alice@Library.Example.COM ").value == "alice@library.example.com"


def test_email_equality_is_by_value():
    assert Email.create("a@example.com") == Email.create("A@EXAMPLE.com")


@pytest.mark.parametrize(
    "raw, kind",
    [
        ("", InvalidEmail.EMPTY),
        ("   ", InvalidEmail.EMPTY),
        ("a" * 250 + "@example.com", InvalidEmail.TOO_LONG),
        ("not-an-email", InvalidEmail.BAD_FORMAT),
        ("two@@example.com", InvalidEmail.BAD_FORMAT),
    ],
)
def test_email_rejections(raw, kind):
    with pytest.raises(InvalidEmail) as exc_info:
        Email.create(raw)
    assert exc_info.value.kind == kind
    assert exc_info.value.code == "INVALID_EMAIL"


def _address_of_length(total: int) -> str:
    local = "a" * 64
    domain = "b" * 63 + "." + "c" * 63 + "." + "d" * (total - 65 - 128 - 4) + ".com"
    return f"{local}@{domain}"


def test_email_accepts_the_longest_valid_address():
    raw = _address_of_length(254)
    assert len(raw) == 254
    assert Email.create(raw).value == raw


def test_email_one_past_the_limit_is_too_long():
    raw = _address_of_length(255)
    with pytest.raises(InvalidEmail) as exc_info:
        Email.create(raw)
    assert exc_info.value.kind == InvalidEmail.TOO_LONG


def test_email_from_storage_skips_validation():
    assert Email.from_storage("legacy").value == "legacy"


# ── Password ────────────────────────────────────────────────────────
def test_password_stores_only_a_hash():
    password = Password.from_plain_text("correct horse")
    assert password.hashed_value != "correct horse"
    assert password.hashed_value.startswith("$2")
    assert "correct horse" not in repr(password)


def test_password_verify():
    password = Password.from_plain_text("correct horse")
    assert password.verify("correct horse")
    assert not password.verify("correct horsf")


@pytest.mark.parametrize(
    "raw, kind",
    [
        ("", InvalidPassword.EMPTY),
        ("short", InvalidPassword.TOO_SHORT),
        ("x" * 73, InvalidPassword.TOO_LONG),
    ],
)
def test_password_length_limits(raw, kind):
    with pytest.raises(InvalidPassword) as exc_info:
        Password.from_plain_text(raw)
    assert exc_info.value.kind == kind


def test_password_boundaries_accepted():
    assert Password.from_plain_text("x" * 8).verify("x" * 8)
    assert Password.from_plain_text("y" * 72).verify("y" * 72)


def test_password_from_hash_round_trip():
    original = Password.from_plain_text("correct horse")
    assert Password.from_hash(original.hashed_value).verify("correct horse")


# ── Staff name ──────────────────────────────────────────────────────
def test_name_strips_control_characters():
    assert StaffName.create("  Ada\x00 Love\x1flace\x7f ").value == "Ada Lovelace"


@pytest.mark.parametrize("raw", ["", "   ", "\x00\x01\x02"])
def test_name_empty_after_sanitising(raw):
    with pytest.raises(InvalidStaffName) as exc_info:
        StaffName.create(raw)
    assert exc_info.value.kind == InvalidStaffName.EMPTY


def test_name_too_long():
    StaffName.create("n" * 100)
    with pytest.raises(InvalidStaffName) as exc_info:
        StaffName.create("n" * 101)
    assert exc_info.value.kind == InvalidStaffName.TOO_LONG


# ── Staff id ────────────────────────────────────────────────────────
def test_staff_id_is_a_ulid():
    value = StaffId.generate().value
    assert re.fullmatch(r"[0-9A-HJKMNP-TV-Z]{26}", value)


def test_staff_ids_are_unique_and_time_ordered():
    first = StaffId.generate().value
    ids = [StaffId.generate().value for _ in range(50)]
    assert len(set(ids)) == 50
    # The 10-character timestamp prefix never goes backwards.
    assert all(first[:10] <= other[:10] for other in ids)

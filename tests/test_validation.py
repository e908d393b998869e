from datetime import date

import pytest

from storefront.validation import (
    CardDetails,
    is_valid_email,
    is_valid_phone,
    luhn_checksum_ok,
    not_empty,
    validate_card,
)

TODAY = date(2026, 6, 15)


def _card(**overrides):
    values = dict(number="4111 1111 1111 1111", holder="ANA PEREZ", expiry="07/26", cvv="123")
    values.update(overrides)
    return CardDetails(**values)


def test_not_empty():
    assert not_empty("Ana")
    assert not not_empty("   ")
    assert not not_empty(None)


@pytest.mark.parametrize(
    "email, valid",
    [("ana@example.com", True), ("ana@example", False), ("ana example@x.com", False), ("", False)],
)
def test_email(email, valid):
    assert is_valid_email(email) is valid


@pytest.mark.parametrize(
    "phone, valid",
    [("987654321", True), ("+51 987 654 321", True), ("98765", False), ("98765432a", False)],
)
def test_phone(phone, valid):
    assert is_valid_phone(phone) is valid


@pytest.mark.parametrize(
    "number, valid",
    [
        ("4111111111111111", True),
        ("4111-1111-1111-1111", True),
        ("4111111111111112", False),
        ("41111", False),
        ("4111 1111 1111 111x", False),
    ],
)
def test_luhn(number, valid):
    assert luhn_checksum_ok(number) is valid


def test_valid_card_has_no_problem():
    assert validate_card(_card(), today=TODAY) is None


@pytest.mark.parametrize(
    "overrides, problem",
    [
        ({"number": "1234"}, "Card number is not valid"),
        ({"holder": " "}, "Enter the name printed on the card"),
        ({"expiry": "0726"}, "Expiry must be MM/YY"),
        ({"expiry": "13/27"}, "Expiry must be MM/YY"),
        ({"expiry": "05/26"}, "Card has expired"),
        ({"cvv": "12"}, "CVV must be 3 or 4 digits"),
    ],
)
def test_card_problems(overrides, problem):
    assert validate_card(_card(**overrides), today=TODAY) == problem


def test_card_valid_through_its_expiry_month():
    assert validate_card(_card(expiry="06/26"), today=TODAY) is None

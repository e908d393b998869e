"""Client-side form validators."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[\d\s+\-()]+$")
_EXPIRY_RE = re.compile(r"^(\d{2})/(\d{2})$")


def not_empty(value: str | None) -> bool:
    return bool(value and value.strip())


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    return bool(_PHONE_RE.match(phone)) and len(re.sub(r"\D", "", phone)) >= 9


def luhn_checksum_ok(number: str) -> bool:
    digits = re.sub(r"[\s-]", "", number)
    if not digits.isdigit() or not (12 <= len(digits) <= 19):
        return False
    total = 0
    for idx, char in enumerate(reversed(digits)):
        digit = int(char)
        if idx % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


@dataclass(frozen=True)
class CardDetails:
    number: str
    holder: str
    expiry: str
    cvv: str


def validate_card(card: CardDetails, today: date | None = None) -> str | None:
    """Return the first problem with the card form, or None when it is usable."""
    today = today or date.today()
    if not luhn_checksum_ok(card.number):
        return "Card number is not valid"
    if not not_empty(card.holder):
        return "Enter the name printed on the card"
    match = _EXPIRY_RE.match(card.expiry.strip())
    if match is None:
        return "Expiry must be MM/YY"
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if not (1 <= month <= 12):
        return "Expiry must be MM/YY"
    if (year, month) < (today.year, today.month):
        return "Card has expired"
    if not (card.cvv.isdigit() and len(card.cvv) in (3, 4)):
        return "CVV must be 3 or 4 digits"
    return None

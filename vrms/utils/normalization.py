"""Normalization helpers shared by records and the claim flow."""

import secrets
import string
from decimal import Decimal


def normalize_email(email: str | None) -> str | None:
    """Lower-case and strip an email; None for empty input."""
    if not email:
        return None
    email = email.strip().lower()
    return email or None


def normalize_tags(tags) -> list[str]:
    """Deduplicate tags keeping first-seen order, dropping blanks."""
    seen: list[str] = []
    for tag in tags or []:
        tag = (tag or "").strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def generate_temp_password(length: int = 16) -> str:
    """Throwaway credential for accounts the guest has not set up yet.

    Always contains an upper-case letter, a digit and a symbol so provider
    password policies accept it.
    """
    alphabet = string.ascii_letters + string.digits
    body = "".join(secrets.choice(alphabet) for _ in range(length))
    return body + secrets.choice(string.ascii_uppercase) + secrets.choice(string.digits) + "!"


def format_amount(value) -> str:
    """Render a numeric discount without trailing zeros (20.00 -> 20, 12.50 -> 12.5)."""
    if value is None:
        return "0"
    amount = Decimal(str(value))
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")

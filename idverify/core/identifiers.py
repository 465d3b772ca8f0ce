"""
Identifier classification and normalization.

An identifier is either an E.164-like phone number or an email address.
Patterns are matched against the whole string; digits are ASCII 0-9 only.
Records are keyed by the normalized form so lookups are case-insensitive.
"""

import re

PHONE_PATTERN = re.compile(r"\+[0-9]{2,15}")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
CODE_PATTERN = re.compile(r"[0-9]+")


def is_phone_number(identifier: str) -> bool:
    """True when the identifier is '+' followed by 2-15 digits."""
    return bool(PHONE_PATTERN.fullmatch(identifier))


def is_email(identifier: str) -> bool:
    """True when the identifier has a local@domain.tld shape."""
    return bool(EMAIL_PATTERN.fullmatch(identifier))


def is_numeric_code(code: str) -> bool:
    return bool(CODE_PATTERN.fullmatch(code))


def normalize_identifier(identifier: str) -> str:
    """Store key for an identifier: trimmed and lower-cased."""
    return identifier.strip().lower()


def provider_recipient(identifier: str) -> str:
    """Recipient as the code delivery API expects it (no leading '+')."""
    return identifier[1:] if identifier.startswith("+") else identifier

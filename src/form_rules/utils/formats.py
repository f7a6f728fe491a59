"""String format checks used by the *_format operators.

All checks return False for non-string input instead of raising.
"""

import re
from typing import Any
from urllib.parse import urlsplit

_RE_EMAIL = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,63}$"
)

_RE_HOSTNAME = re.compile(
    r"^(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,63}$"
)

_RE_IPV4 = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")

# Separators tolerated inside phone and card numbers
_RE_PHONE_SEPARATORS = re.compile(r"[\s\-().]")
_RE_PHONE = re.compile(r"^\+?[1-9]\d{6,14}$")

_RE_CARD_SEPARATORS = re.compile(r"[\s\-]")
_RE_CARD = re.compile(r"^\d{13,19}$")

_RE_UUID = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

_URL_SCHEMES = {"http", "https", "ftp"}


def is_email(value: Any) -> bool:
    return isinstance(value, str) and len(value) <= 254 and bool(_RE_EMAIL.fullmatch(value))


def _is_ipv4(host: str) -> bool:
    m = _RE_IPV4.fullmatch(host)
    return bool(m) and all(int(part) <= 255 for part in m.groups())


def is_url(value: Any) -> bool:
    """Check for an http(s)/ftp URL with a dotted host name or IPv4 address.

    A missing scheme is tolerated ("example.com/path"); bare words are not.
    """
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text or any(ch.isspace() for ch in text):
        return False

    candidate = text if "://" in text else f"http://{text}"
    try:
        parts = urlsplit(candidate)
        host = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return False

    if parts.scheme.lower() not in _URL_SCHEMES or not host:
        return False
    return bool(_RE_HOSTNAME.fullmatch(host)) or _is_ipv4(host)


def is_phone(value: Any) -> bool:
    """Check for an international-style phone number (7 to 15 digits)."""
    if not isinstance(value, str):
        return False
    compact = _RE_PHONE_SEPARATORS.sub("", value)
    return bool(_RE_PHONE.fullmatch(compact))


def luhn_checksum_ok(digits: str) -> bool:
    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_credit_card(value: Any) -> bool:
    """Check for 13 to 19 digits passing the Luhn checksum."""
    if not isinstance(value, str):
        return False
    compact = _RE_CARD_SEPARATORS.sub("", value)
    return bool(_RE_CARD.fullmatch(compact)) and luhn_checksum_ok(compact)


def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(_RE_UUID.fullmatch(value))

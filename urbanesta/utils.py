import re
import hashlib
from datetime import datetime, timezone

from .config import settings

_NON_DIGITS = re.compile(r"\D")
_EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


# =========================
# Phone number handling
# =========================
def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_valid_local_phone(phone: str) -> bool:
    """True for exactly ten digits, nothing else."""
    return bool(phone) and phone.isdigit() and len(phone) == 10


def format_phone_for_api(phone: str, country_code: str = None) -> str:
    """Country-code-prefixed digits without a leading '+', as the gateway expects."""
    country_code = country_code or settings.PHONE_COUNTRY_CODE
    cleaned = digits_only(phone)
    if cleaned.startswith(country_code) and len(cleaned) > 10:
        return cleaned
    if len(cleaned) == 10:
        return f"{country_code}{cleaned}"
    return cleaned


def format_phone_for_storage(phone: str, country_code: str = None) -> str:
    """International '+'-prefixed form used for persistence and display."""
    if phone and phone.startswith("+"):
        return "+" + digits_only(phone)
    return "+" + format_phone_for_api(phone, country_code)


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256((phone or "").encode()).hexdigest()


def mask_phone(phone: str) -> str:
    cleaned = digits_only(phone)
    if len(cleaned) <= 4:
        return "****"
    return "*" * (len(cleaned) - 4) + cleaned[-4:]


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(_EMAIL_RE.match(email))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

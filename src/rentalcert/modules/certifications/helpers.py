"""
Certification helpers: certificate numbers, tokens and month arithmetic.
"""

import calendar
import re
import secrets
from datetime import datetime

from rentalcert.core.config import settings

CERTIFICATE_NUMBER_PATTERN = re.compile(r"CERT-\d{4}-\d{6}")


def generate_certificate_number(now: datetime) -> str:
    """Candidate number ``CERT-<year>-<6 random digits>``. Uniqueness is enforced by storage."""
    return f"CERT-{now.year}-{secrets.randbelow(1_000_000):06d}"


def generate_verification_token() -> str:
    return secrets.token_hex(16)


def build_verification_url(token: str, base_url: str | None = None) -> str:
    base = (base_url or settings.app_base_url).rstrip("/")
    return f"{base}/verify/{token}"


def extract_certificate_number(identifier: str) -> str | None:
    match = CERTIFICATE_NUMBER_PATTERN.search(identifier.upper())
    return match.group(0) if match else None


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)

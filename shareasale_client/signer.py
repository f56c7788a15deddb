"""Request signing for the ShareASale API.

Each call carries two headers: the UTC timestamp the call was signed at, and
the hex SHA-256 of ``token:timestamp:action:secret_key``. Field order and the
colon separator are fixed by the service.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from email.utils import format_datetime

DATE_HEADER = "x-ShareASale-Date"
AUTH_HEADER = "x-ShareASale-Authentication"


def rfc1123_timestamp(now: datetime | None = None) -> str:
    """Format *now* (default: current UTC time) as ``Mon, 19 Oct 2026 12:00:00 +0000``."""
    if now is None:
        now = datetime.now(timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return format_datetime(now.replace(microsecond=0))


def canonical_string(token: str, secret_key: str, action: str, timestamp: str) -> str:
    """Build the string that is hashed for x-ShareASale-Authentication."""
    return ":".join((token, timestamp, action, secret_key))


def sign(token: str, secret_key: str, action: str, timestamp: str) -> str:
    """Return the lowercase hex SHA-256 of the canonical signing string."""
    message = canonical_string(token, secret_key, action, timestamp)
    return hashlib.sha256(message.encode("utf-8")).hexdigest()


def auth_headers(token: str, secret_key: str, action: str, timestamp: str) -> dict[str, str]:
    return {
        DATE_HEADER: timestamp,
        AUTH_HEADER: sign(token, secret_key, action, timestamp),
    }

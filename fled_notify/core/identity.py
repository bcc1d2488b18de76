# fled_notify/core/identity.py
"""
Canonical guardian keys.

Guardian documents are keyed by a URL-safe base64 rendering of the
trimmed, lower-cased email. Every caller (token resolution, section
fan-out, the parent merge job) must go through ``normalize_email`` so
the keys stay byte-identical.
"""
import base64


def canonical_email(email: str) -> str:
    return email.strip().lower()


def normalize_email(email: str) -> str:
    """
    Map an email address to its canonical guardian document id.

    Raises ValueError for empty input; callers are expected to skip
    records without an email rather than key them under "".
    """
    if email is None:
        raise ValueError("email is required")
    cleaned = canonical_email(email)
    if not cleaned:
        raise ValueError("email is empty")
    encoded = base64.b64encode(cleaned.encode("utf-8")).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def try_normalize_email(email) -> str | None:
    """Like normalize_email, but returns None for missing or blank values."""
    if not isinstance(email, str) or not email.strip():
        return None
    return normalize_email(email)

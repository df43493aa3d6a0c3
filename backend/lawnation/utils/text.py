"""
Law Nation Editorial - Text Utilities
====================================
Slugs, timestamps and small normalizers shared by services.
"""

import re
import unicodedata
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def slugify(value: str, max_length: int = 200) -> str:
    """Lowercase ASCII slug: accents folded, runs of non-alphanumerics become '-'."""
    if not value:
        return ""
    text = unicodedata.normalize("NFKD", value)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9]+", "-", text.lower()).strip("-")
    return text[:max_length].rstrip("-")


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()

"""Citation number format: ``yyyy LN(volume)Anumber``, e.g. ``2026 LN(53)A1234``."""

from __future__ import annotations

import re

from lawnation.core.exceptions import InvalidCitationError

CITATION_PATTERN = re.compile(r"^\d{4} LN\(\d+\)A\d+$")
CITATION_EXAMPLE = "2026 LN(53)A1234"


def normalize_citation(value: str | None) -> str:
    return (value or "").strip()


def is_valid_citation(value: str | None) -> bool:
    return bool(CITATION_PATTERN.match(normalize_citation(value)))


def validate_citation(value: str | None) -> str:
    """Return the trimmed citation or raise ``InvalidCitationError``."""
    citation = normalize_citation(value)
    if not citation:
        raise InvalidCitationError("Citation number is required")
    if not is_valid_citation(citation):
        raise InvalidCitationError(
            f"Invalid citation format. Expected e.g. {CITATION_EXAMPLE}",
            details={"citation_number": citation},
        )
    return citation

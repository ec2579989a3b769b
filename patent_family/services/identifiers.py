"""US patent number normalization and display helpers."""

from __future__ import annotations

import re
from typing import List, Optional

from patent_family.core.errors import InvalidIdentifier

UNKNOWN_PATENT_NUMBER = "Unknown"
PADDED_LENGTH = 8

_US_PREFIX = re.compile(r"^US\s*", flags=re.IGNORECASE)
_SEPARATORS = re.compile(r"[,\s]")
_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))")


def _strip(raw: str) -> str:
    value = _US_PREFIX.sub("", raw.strip())
    return _SEPARATORS.sub("", value).upper().strip()


def normalize(raw: Optional[str]) -> str:
    """Canonicalize a raw patent number ("US 10,123,456" -> "10123456")."""

    if raw is None:
        raise InvalidIdentifier(raw)
    canonical = _strip(str(raw))
    if not canonical:
        raise InvalidIdentifier(raw)
    return canonical


def format_patent_number(number: Optional[str]) -> str:
    """Return the display form ("10123456" -> "US10,123,456"). Never raises."""

    if not number:
        return UNKNOWN_PATENT_NUMBER
    # Only separators are dropped; the value is already canonical.
    canonical = _SEPARATORS.sub("", str(number)).upper()
    if not canonical:
        return UNKNOWN_PATENT_NUMBER
    return f"US{_THOUSANDS.sub(',', canonical)}"


def zero_pad(canonical: str) -> str:
    """Left-pad all-digit identifiers shorter than eight characters with zeros."""

    if canonical.isdigit() and len(canonical) < PADDED_LENGTH:
        return canonical.zfill(PADDED_LENGTH)
    return canonical


def lookup_variants(canonical: str) -> List[str]:
    """Identifier encodings to try against the registry, in order."""

    return list(dict.fromkeys([canonical, zero_pad(canonical)]))

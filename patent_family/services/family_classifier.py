"""Classify document sections into family relations and citations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from patent_family.core.errors import InvalidIdentifier
from patent_family.services.identifiers import normalize

MIN_CANDIDATE_DIGITS = 6


class SectionClass(str, Enum):
    FAMILY = "family"
    CITATION = "citation"
    IGNORED = "ignored"


# Header patterns naming true family relations.
DEFAULT_INCLUDE_PATTERNS = {
    "priority": r"\bpriority\b",
    "related": r"\brelated\s+(applications?|patents?|documents?)\b",
    "parent": r"\bparent\b",
    "child": r"\bchild(ren)?\b",
    "family": r"\bfamil(y|ies)\b",
    "continuation": r"\bcontinuations?\b",
    "divisional": r"\bdivisionals?\b",
    "also_published": r"\balso\s+published\b",
}

# Header patterns naming prior art or unrelated documents; these win over includes.
DEFAULT_EXCLUDE_PATTERNS = {
    "citations": r"\bcit(ed|es|ing|ations?)\b",
    "similar": r"\bsimilar\s+documents?\b",
    "non_patent": r"\bnon[-\s]?patent\b",
}

_US_HREF = re.compile(r"/patent/US(\d+)(?:[A-Z]\d?)?(?:/|$)", flags=re.IGNORECASE)
_US_TEXT = re.compile(r"^\s*US\s*([\d,]+)(?:\s*[A-Z]\d?)?\s*$", flags=re.IGNORECASE)


@dataclass
class DocumentReference:
    """An anchor found inside a document section."""

    href: str = ""
    text: str = ""


@dataclass
class DocumentSection:
    header: str
    references: List[DocumentReference] = field(default_factory=list)


@dataclass
class SectionPolicy:
    """Include/exclude header pattern tables; exclusion takes precedence."""

    include: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_INCLUDE_PATTERNS))
    exclude: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXCLUDE_PATTERNS))

    def matches(self, header: str, patterns: Dict[str, str]) -> List[str]:
        return [
            name
            for name, pattern in patterns.items()
            if re.search(pattern, header, flags=re.IGNORECASE)
        ]

    def classify(self, header: str) -> SectionClass:
        if self.matches(header, self.exclude):
            return SectionClass.CITATION
        if self.matches(header, self.include):
            return SectionClass.FAMILY
        return SectionClass.IGNORED


DEFAULT_POLICY = SectionPolicy()


def classify_section(header: str, policy: Optional[SectionPolicy] = None) -> SectionClass:
    return (policy or DEFAULT_POLICY).classify(header)


def classify_sections(
    sections: Sequence[DocumentSection], policy: Optional[SectionPolicy] = None
) -> Dict[str, SectionClass]:
    return {section.header: classify_section(section.header, policy) for section in sections}


def reference_number(reference: DocumentReference) -> Optional[str]:
    """Canonical US number referenced by an anchor, if any."""

    raw = None
    href_match = _US_HREF.search(reference.href or "")
    if href_match:
        raw = href_match.group(1)
    else:
        text_match = _US_TEXT.match(reference.text or "")
        if text_match:
            raw = text_match.group(1)
    if raw is None:
        return None
    try:
        return normalize(raw)
    except InvalidIdentifier:
        return None


def extract_family_candidates(
    sections: Iterable[DocumentSection],
    own_number: str,
    policy: Optional[SectionPolicy] = None,
) -> List[str]:
    """Ordered, de-duplicated US numbers referenced from family sections only."""

    candidates: Dict[str, None] = {}
    for section in sections:
        if classify_section(section.header, policy) is not SectionClass.FAMILY:
            continue
        for reference in section.references:
            number = reference_number(reference)
            if not number or number == own_number:
                continue
            if len(number) < MIN_CANDIDATE_DIGITS:
                continue
            candidates.setdefault(number, None)
    return list(candidates)

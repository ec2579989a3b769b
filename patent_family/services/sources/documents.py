"""HTML document store adapter (Google Patents style pages)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

import httpx

from patent_family.core.config import Settings, get_settings
from patent_family.services.family_classifier import (
    DocumentReference,
    DocumentSection,
    SectionClass,
    SectionPolicy,
    classify_sections,
    extract_family_candidates,
)

logger = logging.getLogger(__name__)

DOCUMENT_MARKER = re.compile(r"""itemprop=["'](publicationNumber|claims)["']""")
_LEADING_NUMBER = re.compile(r"^\s*\d+\s*[.)]")
_WHITESPACE = re.compile(r"\s+")


def _is_claims_region(tag: str, attrs: Dict[str, Optional[str]]) -> bool:
    return (
        attrs.get("itemprop") == "claims"
        or attrs.get("data-section") == "claims"
        or (attrs.get("id") == "claims" and tag != "h2")
    )


def _is_claim_element(tag: str, attrs: Dict[str, Optional[str]]) -> bool:
    classes = (attrs.get("class") or "").split()
    return tag == "claim" or "claim" in classes


def _clean(parts: List[str]) -> str:
    return _WHITESPACE.sub(" ", " ".join(parts)).strip()


class PatentDocumentParser(HTMLParser):
    """Single-pass extraction of claims and <h2>-delimited sections."""

    def __init__(self) -> None:
        super().__init__()
        self.sections: List[DocumentSection] = []
        self.region_parts: List[str] = []
        self.claims: List[str] = []
        self.has_claims_region = False

        self._region_tag: Optional[str] = None
        self._region_depth = 0
        self._claim_tag: Optional[str] = None
        self._claim_depth = 0
        self._claim_parts: List[str] = []
        self._in_header = False
        self._header_parts: List[str] = []
        self._anchor: Optional[DocumentReference] = None
        self._anchor_parts: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        attrs_dict = dict(attrs)

        if tag == "h2":
            self._in_header = True
            self._header_parts = []
            return

        if tag == "a" and self.sections and not self._in_header:
            self._anchor = DocumentReference(href=attrs_dict.get("href") or "")
            self._anchor_parts = []

        if self._region_tag is None:
            if _is_claims_region(tag, attrs_dict):
                self._region_tag = tag
                self._region_depth = 1
                self.has_claims_region = True
            return

        if tag == self._region_tag:
            self._region_depth += 1

        if self._claim_tag is None:
            if _is_claim_element(tag, attrs_dict):
                self._claim_tag = tag
                self._claim_depth = 1
                self._claim_parts = []
        elif tag == self._claim_tag:
            self._claim_depth += 1

    def handle_endtag(self, tag: str) -> None:
        if tag == "h2" and self._in_header:
            self._in_header = False
            self.sections.append(DocumentSection(header=_clean(self._header_parts)))
            return

        if tag == "a" and self._anchor is not None:
            self._anchor.text = _clean(self._anchor_parts)
            self.sections[-1].references.append(self._anchor)
            self._anchor = None

        if self._claim_tag is not None and tag == self._claim_tag:
            self._claim_depth -= 1
            if self._claim_depth == 0:
                text = _clean(self._claim_parts)
                if text:
                    self.claims.append(text)
                self._claim_tag = None

        if self._region_tag is not None and tag == self._region_tag:
            self._region_depth -= 1
            if self._region_depth == 0:
                self._region_tag = None
                self._claim_tag = None

    def handle_data(self, data: str) -> None:
        if self._in_header:
            self._header_parts.append(data)
            return
        if self._anchor is not None:
            self._anchor_parts.append(data)
        if self._region_tag is not None:
            self.region_parts.append(data)
            if self._claim_tag is not None:
                self._claim_parts.append(data)

    @property
    def claims_text(self) -> str:
        if self.claims:
            numbered = []
            for index, claim in enumerate(self.claims, start=1):
                if not _LEADING_NUMBER.match(claim):
                    claim = f"{index}. {claim}"
                numbered.append(claim)
            return "\n\n".join(numbered)
        if self.has_claims_region:
            return _clean(self.region_parts)
        return ""


@dataclass
class ParsedDocument:
    url: str
    variant: str
    claims_text: str
    sections: List[DocumentSection] = field(default_factory=list)
    classifications: Dict[str, SectionClass] = field(default_factory=dict)
    family_candidates: List[str] = field(default_factory=list)


def parse_document(
    html: str,
    own_number: str,
    url: str = "",
    variant: str = "",
    policy: Optional[SectionPolicy] = None,
) -> ParsedDocument:
    parser = PatentDocumentParser()
    parser.feed(html)
    parser.close()
    return ParsedDocument(
        url=url,
        variant=variant,
        claims_text=parser.claims_text,
        sections=parser.sections,
        classifications=classify_sections(parser.sections, policy),
        family_candidates=extract_family_candidates(parser.sections, own_number, policy),
    )


class DocumentStoreClient:
    """Fetch the first recognizable document among guessed identifier variants."""

    name = "documents"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        policy: Optional[SectionPolicy] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.http_timeout_seconds, follow_redirects=True
        )
        self.policy = policy

    async def aclose(self) -> None:
        await self._client.aclose()

    def variants(self, canonical: str) -> List[str]:
        base = f"US{canonical}"
        ordered = [f"{base}{suffix}" for suffix in self.settings.document_kind_suffixes]
        ordered.append(base)
        return list(dict.fromkeys(ordered))

    def document_url(self, variant: str) -> str:
        return f"{self.settings.document_base_url.rstrip('/')}/patent/{variant}/en"

    def default_url(self, canonical: str) -> str:
        return self.document_url(f"US{canonical}")

    async def fetch_document(self, canonical: str) -> Optional[ParsedDocument]:
        """Parse the first variant that looks like a patent page; None if none does."""

        for variant in self.variants(canonical):
            url = self.document_url(variant)
            try:
                response = await self._client.get(url)
            except httpx.TransportError as exc:
                logger.warning("Document fetch failed for %s: %s", variant, exc)
                continue
            if response.status_code >= 400:
                logger.debug("Document variant %s returned %s", variant, response.status_code)
                continue
            body = response.text
            if not DOCUMENT_MARKER.search(body):
                logger.debug("Document variant %s is not a patent page", variant)
                continue
            logger.info("Using document %s for %s", variant, canonical)
            return parse_document(body, canonical, url=url, variant=variant, policy=self.policy)
        logger.info("No document found for %s after %s variants", canonical, len(self.variants(canonical)))
        return None

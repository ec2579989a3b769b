"""Fetch a patent from the registry and the document store and merge the results."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from patent_family.models.family import PatentRecord, Relationship
from patent_family.services.identifiers import normalize
from patent_family.services.sources.documents import DocumentStoreClient, ParsedDocument
from patent_family.services.sources.registry import RegistryClient

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionResult:
    """Merged view of one patent across both sources."""

    patent_number: str
    title: str
    date: str
    patent_type: str
    claims_text: str
    document_url: str
    family_candidates: List[str] = field(default_factory=list)
    claims_source: str = "none"

    def to_record(self, *, is_original: bool = False) -> PatentRecord:
        return PatentRecord(
            patent_number=self.patent_number,
            title=self.title,
            date=self.date,
            patent_type=self.patent_type,
            relationship=Relationship.ORIGINAL if is_original else Relationship.UNKNOWN,
            all_claims=self.claims_text,
            document_url=self.document_url,
            is_original=is_original,
        )


class PatentAcquirer:
    """Compose registry and document store lookups with a fallback policy."""

    def __init__(self, registry: RegistryClient, documents: DocumentStoreClient) -> None:
        self.registry = registry
        self.documents = documents

    async def acquire(self, raw_identifier: str, existing: Iterable[str] = ()) -> AcquisitionResult:
        canonical = normalize(raw_identifier)
        logger.info("Acquiring patent %s", canonical)

        document_task = asyncio.ensure_future(self.documents.fetch_document(canonical))
        try:
            patent = await self.registry.fetch_by_id(canonical)
        except BaseException:
            document_task.cancel()
            raise

        document = await self._settle_document(canonical, document_task)

        claims_text = patent.claims_text
        claims_source = "registry" if claims_text else "none"
        if not claims_text and document and document.claims_text:
            claims_text = document.claims_text
            claims_source = "documents"

        known = set(existing)
        known.add(canonical)
        candidates = [
            number for number in (document.family_candidates if document else []) if number not in known
        ]

        return AcquisitionResult(
            patent_number=canonical,
            title=patent.title,
            date=patent.date,
            patent_type=patent.patent_type,
            claims_text=claims_text,
            document_url=document.url if document and document.url else self.documents.default_url(canonical),
            family_candidates=candidates,
            claims_source=claims_source,
        )

    async def _settle_document(
        self, canonical: str, task: "asyncio.Future[Optional[ParsedDocument]]"
    ) -> Optional[ParsedDocument]:
        try:
            return await task
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Document store unavailable for %s: %s", canonical, exc)
            return None

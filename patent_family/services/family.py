"""Add a single patent to the family: acquire, insert, enrich."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from patent_family.models.family import PatentRecord
from patent_family.services.acquisition import PatentAcquirer
from patent_family.services.collection import FamilyCollection
from patent_family.services.enrichment import EnrichmentMachine
from patent_family.services.identifiers import normalize

logger = logging.getLogger(__name__)


@dataclass
class AddResult:
    record: PatentRecord
    created: bool
    family_candidates: List[str] = field(default_factory=list)


class FamilyService:
    """Glue between acquisition, the collection and the enrichment machine."""

    def __init__(
        self,
        collection: FamilyCollection,
        acquirer: PatentAcquirer,
        enrichment: EnrichmentMachine,
    ) -> None:
        self.collection = collection
        self.acquirer = acquirer
        self.enrichment = enrichment

    async def acquire_and_add(self, raw_identifier: str) -> AddResult:
        """Fetch and insert a raw record; enrichment is left to the caller."""

        canonical = normalize(raw_identifier)
        existing = self.collection.get(canonical)
        if existing is not None:
            return AddResult(record=existing, created=False)

        result = await self.acquirer.acquire(raw_identifier, existing=self.collection.numbers())
        record, created = self.collection.add(result.to_record())
        candidates: List[str] = []
        if created and record.is_original:
            candidates = [number for number in result.family_candidates if number not in self.collection]
        logger.info(
            "Added %s (%s claims, %s family candidates)",
            record.patent_number,
            result.claims_source,
            len(candidates),
        )
        return AddResult(record=record, created=created, family_candidates=candidates)

    async def enrich(self, record_id: str) -> Optional[PatentRecord]:
        return await self.enrichment.run(record_id)

    async def add_patent(self, raw_identifier: str) -> AddResult:
        """Acquire, insert and fully enrich one patent."""

        added = await self.acquire_and_add(raw_identifier)
        if not added.created:
            return added
        enriched = await self.enrich(added.record.id)
        return AddResult(
            record=enriched or added.record,
            created=True,
            family_candidates=added.family_candidates,
        )

"""Staged enrichment of family members: claim -> concept -> relationship."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol, Sequence

from patent_family.core.errors import InvalidTransition, PatentFamilyError
from patent_family.models.family import EnrichmentStage, PatentRecord, Relationship
from patent_family.services.collection import FamilyCollection

logger = logging.getLogger(__name__)

CLASSIFIABLE_RELATIONSHIPS = {
    Relationship.CONTINUATION.value: Relationship.CONTINUATION,
    Relationship.DIVISIONAL.value: Relationship.DIVISIONAL,
    Relationship.CIP.value: Relationship.CIP,
}


class AnalysisCapability(Protocol):
    async def extract_first_independent_claim(self, claims_text: str) -> str:
        ...

    async def generate_inventive_concept(self, claim_text: str, title: str) -> str:
        ...

    async def classify_relationship(self, new_summary: str, existing_summaries: Sequence[str]) -> str:
        ...


@dataclass(frozen=True)
class StageResult:
    """Outcome of one stage: a value on success, an error message on failure."""

    value: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def coerce_relationship(answer: Optional[str]) -> Relationship:
    """Map a free-text classification onto the allowed relationships."""

    return CLASSIFIABLE_RELATIONSHIPS.get((answer or "").strip().lower(), Relationship.UNKNOWN)


def advance(record: PatentRecord, result: StageResult) -> PatentRecord:
    """Pure transition function returning the record one stage further along."""

    if record.stage.is_terminal:
        raise InvalidTransition(f"{record.patent_number} is already {record.stage.value}")
    if not result.ok:
        return replace(record, stage=EnrichmentStage.ERRORED, last_error=result.error)

    target = record.stage.next_stage
    if target is EnrichmentStage.CLAIM_EXTRACTED:
        return replace(record, stage=target, first_independent_claim=result.value.strip())
    if target is EnrichmentStage.CONCEPT_GENERATED:
        return replace(record, stage=target, inventive_concept=result.value.strip())
    if target is EnrichmentStage.RELATIONSHIP_RESOLVED:
        relationship = Relationship.ORIGINAL if record.is_original else coerce_relationship(result.value)
        return replace(record, stage=target, relationship=relationship)
    raise InvalidTransition(f"No transition from {record.stage.value}")


class EnrichmentMachine:
    """Drive records through the enrichment stages, publishing after each one."""

    def __init__(self, collection: FamilyCollection, analysis: AnalysisCapability) -> None:
        self.collection = collection
        self.analysis = analysis
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def run(self, record_id: str) -> Optional[PatentRecord]:
        """Advance the record until it is terminal; None if it left the collection."""

        lock = self._locks.setdefault(record_id, asyncio.Lock())
        self._lock_users[record_id] = self._lock_users.get(record_id, 0) + 1
        try:
            async with lock:
                return await self._run_locked(record_id)
        finally:
            self._lock_users[record_id] -= 1
            if not self._lock_users[record_id]:
                del self._lock_users[record_id]
                del self._locks[record_id]

    async def _run_locked(self, record_id: str) -> Optional[PatentRecord]:
        record = self.collection.get_by_id(record_id)
        while record is not None and not record.stage.is_terminal:
            result = await self.run_stage(record)
            # Apply the result to the stored record; other writers may have updated it meanwhile.
            current = self.collection.get_by_id(record_id)
            if current is None:
                logger.info("Patent %s left the family during enrichment", record.patent_number)
                return None
            record = advance(current, result)
            self.collection.publish(record)
            logger.info("Patent %s -> %s", record.patent_number, record.stage.value)
        return record

    async def run_stage(self, record: PatentRecord) -> StageResult:
        try:
            value = await self._invoke(record)
        except PatentFamilyError as exc:
            logger.warning("Stage %s failed for %s: %s", record.stage.value, record.patent_number, exc)
            return StageResult(error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure enriching %s", record.patent_number)
            return StageResult(error=str(exc) or exc.__class__.__name__)
        return StageResult(value=value)

    async def _invoke(self, record: PatentRecord) -> str:
        if record.stage is EnrichmentStage.RAW:
            if not record.all_claims.strip():
                raise PatentFamilyError(f"No claim text available for {record.patent_number}")
            return await self.analysis.extract_first_independent_claim(record.all_claims)

        if record.stage is EnrichmentStage.CLAIM_EXTRACTED:
            return await self.analysis.generate_inventive_concept(
                record.first_independent_claim, record.title
            )

        if record.is_original:
            return Relationship.ORIGINAL.value
        others = [
            other.summary()
            for other in self.collection.records
            if other.patent_number != record.patent_number
        ]
        if not others:
            return Relationship.UNKNOWN.value
        return await self.analysis.classify_relationship(record.summary(), others)

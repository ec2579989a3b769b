"""Family-wide overlap and differentiation analysis."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Sequence

from pydantic import ValidationError

from patent_family.core.errors import ParseFailure
from patent_family.models.family import PatentRecord
from patent_family.schemas.family import AnalysisPayload
from patent_family.services.collection import FamilyCollection

logger = logging.getLogger(__name__)


class FamilyAnalysisCapability(Protocol):
    async def analyze_family(self, summaries: Sequence[str]) -> Dict[str, Any]:
        ...


def family_summary(record: PatentRecord) -> str:
    return (
        f"Patent {record.patent_number} ({record.relationship.value}):\n"
        f"Title: {record.title}\n"
        f"Inventive Concept: {record.inventive_concept}"
    )


class FamilyAnalyzer:
    def __init__(self, collection: FamilyCollection, analysis: FamilyAnalysisCapability) -> None:
        self.collection = collection
        self.analysis = analysis

    async def analyze(self) -> List[PatentRecord]:
        """Ask the model how members overlap and store the answer on each record."""

        records = self.collection.records
        if not records:
            return []
        payload = await self.analysis.analyze_family([family_summary(record) for record in records])
        try:
            parsed = AnalysisPayload.model_validate(payload)
        except ValidationError as exc:
            raise ParseFailure(f"Unexpected family analysis shape: {exc.error_count()} errors") from exc
        updated = self.collection.apply_analysis(parsed.analysis)
        logger.info("Family analysis updated %s of %s members", len(updated), len(records))
        return updated

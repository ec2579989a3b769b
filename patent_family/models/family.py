"""In-memory representation of family members."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Relationship(str, Enum):
    ORIGINAL = "original"
    CONTINUATION = "continuation"
    DIVISIONAL = "divisional"
    CIP = "cip"
    UNKNOWN = "unknown"


class EnrichmentStage(str, Enum):
    """Ordered enrichment stages of a record."""

    RAW = "raw"
    CLAIM_EXTRACTED = "claim_extracted"
    CONCEPT_GENERATED = "concept_generated"
    RELATIONSHIP_RESOLVED = "relationship_resolved"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (EnrichmentStage.RELATIONSHIP_RESOLVED, EnrichmentStage.ERRORED)

    @property
    def next_stage(self) -> Optional["EnrichmentStage"]:
        order = STAGE_ORDER
        if self not in order or self is order[-1]:
            return None
        return order[order.index(self) + 1]


STAGE_ORDER = (
    EnrichmentStage.RAW,
    EnrichmentStage.CLAIM_EXTRACTED,
    EnrichmentStage.CONCEPT_GENERATED,
    EnrichmentStage.RELATIONSHIP_RESOLVED,
)


def generate_record_id() -> str:
    return f"patent-{uuid.uuid4().hex[:12]}"


@dataclass
class PatentRecord:
    """One member of the patent family collection."""

    patent_number: str
    title: str
    date: str
    patent_type: str = "utility"
    relationship: Relationship = Relationship.UNKNOWN
    all_claims: str = ""
    first_independent_claim: str = ""
    inventive_concept: str = ""
    overlaps_with: List[str] = field(default_factory=list)
    overlap_explanation: str = ""
    differentiation: str = ""
    document_url: str = ""
    stage: EnrichmentStage = EnrichmentStage.RAW
    last_error: Optional[str] = None
    is_original: bool = False
    id: str = field(default_factory=generate_record_id)

    @property
    def in_progress(self) -> bool:
        return not self.stage.is_terminal

    def summary(self) -> str:
        """Single-line description used when prompting about relationships."""

        return f"{self.patent_number}: {self.title} ({self.date})"

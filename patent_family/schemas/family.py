"""Pydantic schemas for API payloads and the persisted collection snapshot."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from patent_family.models.family import EnrichmentStage, Relationship
from patent_family.services.identifiers import format_patent_number


class PatentRecordSchema(BaseModel):
    id: str
    patent_number: str = Field(..., description="Canonical (digits-only) patent number.")
    title: str
    date: str
    patent_type: str = "utility"
    relationship: Relationship = Relationship.UNKNOWN
    all_claims: str = ""
    first_independent_claim: str = ""
    inventive_concept: str = ""
    overlaps_with: List[str] = Field(default_factory=list)
    overlap_explanation: str = ""
    differentiation: str = ""
    document_url: str = ""
    stage: EnrichmentStage = EnrichmentStage.RAW
    last_error: Optional[str] = None
    is_original: bool = False
    in_progress: bool = False

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_number(self) -> str:
        return format_patent_number(self.patent_number)


class FamilySnapshot(BaseModel):
    """Everything persisted under the session key."""

    members: List[PatentRecordSchema] = Field(default_factory=list)
    analyzed: bool = False


class AddPatentRequest(BaseModel):
    identifier: str = Field(..., description="Patent number in any common format.")


class AddPatentResponse(BaseModel):
    record: PatentRecordSchema
    created: bool
    family_candidates: List[str] = Field(
        default_factory=list, description="Related US patents not yet in the family."
    )


class ImportRequest(BaseModel):
    identifiers: List[str] = Field(..., min_length=1)


class ImportOutcomeRead(BaseModel):
    identifier: str
    ok: bool
    patent_number: Optional[str] = None
    record_id: Optional[str] = None
    duplicate: bool = False
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ImportProgressRead(BaseModel):
    active: bool
    completed: int
    total: int
    cancelled: bool = False
    outcomes: List[ImportOutcomeRead] = Field(default_factory=list)


class AnalysisEntry(BaseModel):
    """One element of the family analysis JSON contract."""

    patent_number: str = Field(..., alias="patentNumber")
    overlaps_with: List[str] = Field(default_factory=list, alias="overlapsWith")
    overlap_explanation: str = Field("", alias="overlapExplanation")
    differentiation: str = ""

    model_config = ConfigDict(populate_by_name=True)


class AnalysisPayload(BaseModel):
    analysis: List[AnalysisEntry]

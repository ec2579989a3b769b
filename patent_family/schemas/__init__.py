"""Schema exports."""

from patent_family.schemas.family import (
	AddPatentRequest,
	AddPatentResponse,
	AnalysisEntry,
	AnalysisPayload,
	FamilySnapshot,
	ImportOutcomeRead,
	ImportProgressRead,
	ImportRequest,
	PatentRecordSchema,
)

__all__ = [
	"AddPatentRequest",
	"AddPatentResponse",
	"AnalysisEntry",
	"AnalysisPayload",
	"FamilySnapshot",
	"ImportOutcomeRead",
	"ImportProgressRead",
	"ImportRequest",
	"PatentRecordSchema",
]

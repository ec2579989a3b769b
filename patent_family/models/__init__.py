"""Model exports."""

from patent_family.models.family import (
	EnrichmentStage,
	PatentRecord,
	Relationship,
	STAGE_ORDER,
	generate_record_id,
)
from patent_family.models.store import KeyValueEntry

__all__ = [
	"EnrichmentStage",
	"KeyValueEntry",
	"PatentRecord",
	"Relationship",
	"STAGE_ORDER",
	"generate_record_id",
]

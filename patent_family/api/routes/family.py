"""Patent family endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from patent_family import schemas
from patent_family.api.dependencies import Pipeline, Progress
from patent_family.api.progress import ImportProgress
from patent_family.services.pipeline import FamilyPipeline

router = APIRouter(prefix="/family", tags=["family"])

logger = logging.getLogger(__name__)


@router.get("", response_model=schemas.FamilySnapshot)
def get_family(pipeline: Pipeline) -> schemas.FamilySnapshot:
    """Return every member with its current enrichment stage."""

    collection = pipeline.collection
    return schemas.FamilySnapshot(
        members=[schemas.PatentRecordSchema.model_validate(record) for record in collection.records],
        analyzed=collection.analyzed,
    )


@router.post(
    "/patents",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.AddPatentResponse,
)
async def add_patent(
    payload: schemas.AddPatentRequest,
    pipeline: Pipeline,
    background_tasks: BackgroundTasks,
) -> schemas.AddPatentResponse:
    """Fetch a patent, add it in the raw stage and enrich it in the background."""

    added = await pipeline.service.acquire_and_add(payload.identifier)
    if added.created:
        background_tasks.add_task(pipeline.service.enrich, added.record.id)
    return schemas.AddPatentResponse(
        record=schemas.PatentRecordSchema.model_validate(added.record),
        created=added.created,
        family_candidates=added.family_candidates,
    )


async def run_import(pipeline: FamilyPipeline, progress: ImportProgress, identifiers: List[str]) -> None:
    report = await pipeline.importer.import_many(identifiers, on_progress=progress.update)
    progress.finish(report)
    logger.info(
        "Family import finished: %s added, %s failed", len(report.succeeded), len(report.failed)
    )


@router.post(
    "/import",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=schemas.ImportProgressRead,
)
def import_family(
    payload: schemas.ImportRequest,
    pipeline: Pipeline,
    progress: Progress,
    background_tasks: BackgroundTasks,
) -> schemas.ImportProgressRead:
    """Queue a sequential import of the selected family members."""

    if progress.active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="A family import is already running."
        )
    progress.start(len(payload.identifiers))
    background_tasks.add_task(run_import, pipeline, progress, list(payload.identifiers))
    return read_progress(progress)


@router.get("/import", response_model=schemas.ImportProgressRead)
def import_status(progress: Progress) -> schemas.ImportProgressRead:
    return read_progress(progress)


def read_progress(progress: ImportProgress) -> schemas.ImportProgressRead:
    return schemas.ImportProgressRead(
        active=progress.active,
        completed=progress.completed,
        total=progress.total,
        cancelled=progress.cancelled,
        outcomes=[schemas.ImportOutcomeRead.model_validate(outcome) for outcome in progress.outcomes],
    )


@router.delete("/patents/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_patent(record_id: str, pipeline: Pipeline) -> None:
    if not pipeline.collection.remove(record_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patent not found")


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_family(pipeline: Pipeline) -> None:
    """Remove every member; a running import stops before its next item."""

    pipeline.collection.clear()


@router.post("/analyze", response_model=schemas.FamilySnapshot)
async def analyze_family(pipeline: Pipeline) -> schemas.FamilySnapshot:
    """Run the overlap/differentiation analysis across all members."""

    await pipeline.analyzer.analyze()
    return get_family(pipeline)

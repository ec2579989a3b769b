"""Shared API dependencies for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Request

from patent_family.api.progress import ImportProgress
from patent_family.services.pipeline import FamilyPipeline


def get_pipeline(request: Request) -> FamilyPipeline:
    return request.app.state.pipeline


def get_import_progress(request: Request) -> ImportProgress:
    return request.app.state.import_progress


Pipeline = Annotated[FamilyPipeline, Depends(get_pipeline)]
Progress = Annotated[ImportProgress, Depends(get_import_progress)]

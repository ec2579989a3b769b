"""Aggregate API router for the FastAPI application."""

from fastapi import APIRouter

from patent_family.api.routes import family

api_router = APIRouter()
api_router.include_router(family.router)

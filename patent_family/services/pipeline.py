"""Wire the sources, analysis client and collection into one pipeline object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from patent_family.core.config import Settings, get_settings
from patent_family.db.store import KeyValueStore
from patent_family.services.acquisition import PatentAcquirer
from patent_family.services.analysis import FamilyAnalyzer
from patent_family.services.collection import FamilyCollection
from patent_family.services.enrichment import EnrichmentMachine
from patent_family.services.family import FamilyService
from patent_family.services.importer import FamilyImporter
from patent_family.services.llm import AnalysisClient
from patent_family.services.sources.documents import DocumentStoreClient
from patent_family.services.sources.registry import RegistryClient


@dataclass
class FamilyPipeline:
    settings: Settings
    collection: FamilyCollection
    registry: RegistryClient
    documents: DocumentStoreClient
    analysis: AnalysisClient
    service: FamilyService
    importer: FamilyImporter
    analyzer: FamilyAnalyzer

    async def aclose(self) -> None:
        await self.registry.aclose()
        await self.documents.aclose()


def build_pipeline(
    store: KeyValueStore,
    settings: Optional[Settings] = None,
    *,
    registry_client: Optional[httpx.AsyncClient] = None,
    document_client: Optional[httpx.AsyncClient] = None,
    analysis: Optional[AnalysisClient] = None,
) -> FamilyPipeline:
    """Build a pipeline around ``store`` and load any saved family from it."""

    settings = settings or get_settings()
    collection = FamilyCollection(store, key=settings.session_key)
    collection.load()

    registry = RegistryClient(settings, client=registry_client)
    documents = DocumentStoreClient(settings, client=document_client)
    analysis = analysis or AnalysisClient(settings)
    service = FamilyService(
        collection,
        PatentAcquirer(registry, documents),
        EnrichmentMachine(collection, analysis),
    )
    return FamilyPipeline(
        settings=settings,
        collection=collection,
        registry=registry,
        documents=documents,
        analysis=analysis,
        service=service,
        importer=FamilyImporter(service, delay_seconds=settings.import_delay_seconds),
        analyzer=FamilyAnalyzer(collection, analysis),
    )

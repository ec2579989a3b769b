from __future__ import annotations

import httpx
import pytest

from patent_family.core.errors import InvalidIdentifier, NotFound
from patent_family.models.family import EnrichmentStage, Relationship
from patent_family.services.acquisition import AcquisitionResult, PatentAcquirer
from patent_family.services.sources.documents import DocumentStoreClient
from patent_family.services.sources.registry import RegistryClient


@pytest.mark.asyncio
async def test_registry_claims_take_precedence(make_pipeline, fake_registry, fake_documents, sample_document) -> None:
    fake_registry.add("10123456", claims=["1. Registry claim."])
    fake_documents.pages["US10123456B2"] = sample_document
    pipeline = make_pipeline()

    result = await pipeline.service.acquirer.acquire("US 10,123,456")

    assert result.patent_number == "10123456"
    assert result.claims_text == "1. Registry claim."
    assert result.claims_source == "registry"
    assert result.document_url == "https://documents.test/patent/US10123456B2/en"
    assert result.family_candidates == ["22222222"]


@pytest.mark.asyncio
async def test_document_claims_fill_in_for_empty_registry_claims(
    make_pipeline, fake_registry, fake_documents, sample_document
) -> None:
    fake_registry.add("10123456")
    fake_documents.pages["US10123456B2"] = sample_document
    pipeline = make_pipeline()

    result = await pipeline.service.acquirer.acquire("10123456")

    assert result.claims_source == "documents"
    assert result.claims_text.startswith("1. A widget comprising a frame.")
    assert "2. The widget of claim 1" in result.claims_text


@pytest.mark.asyncio
async def test_candidates_already_in_family_are_dropped(
    make_pipeline, fake_registry, fake_documents, sample_document
) -> None:
    fake_registry.add("10123456")
    fake_documents.pages["US10123456B2"] = sample_document
    pipeline = make_pipeline()

    result = await pipeline.service.acquirer.acquire("10123456", existing=["22222222"])

    assert result.family_candidates == []


@pytest.mark.asyncio
async def test_missing_document_uses_default_url(make_pipeline, fake_registry) -> None:
    fake_registry.add("10123456")
    pipeline = make_pipeline()

    result = await pipeline.service.acquirer.acquire("10123456")

    assert result.claims_text == ""
    assert result.claims_source == "none"
    assert result.document_url == "https://documents.test/patent/US10123456/en"
    assert result.family_candidates == []


@pytest.mark.asyncio
async def test_broken_document_source_does_not_fail_acquisition(settings, fake_registry) -> None:
    def broken(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("parser exploded")

    fake_registry.add("10123456", claims=["1. Claim."])
    acquirer = PatentAcquirer(
        RegistryClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(fake_registry))),
        DocumentStoreClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(broken))),
    )

    result = await acquirer.acquire("10123456")

    assert result.title == "Widget 10123456"
    assert result.claims_text == "1. Claim."


@pytest.mark.asyncio
async def test_registry_miss_is_not_found(make_pipeline, fake_documents, sample_document) -> None:
    fake_documents.pages["US10123456B2"] = sample_document
    pipeline = make_pipeline()

    with pytest.raises(NotFound):
        await pipeline.service.acquirer.acquire("10123456")


@pytest.mark.asyncio
async def test_invalid_identifier_makes_no_requests(make_pipeline, fake_registry, fake_documents) -> None:
    pipeline = make_pipeline()

    with pytest.raises(InvalidIdentifier):
        await pipeline.service.acquirer.acquire("US ,")

    assert fake_registry.requests == []
    assert fake_documents.requests == []


def test_to_record_marks_original() -> None:
    result = AcquisitionResult(
        patent_number="10123456",
        title="Widget",
        date="2020-01-01",
        patent_type="utility",
        claims_text="1. Claim.",
        document_url="https://documents.test/patent/US10123456/en",
    )

    record = result.to_record(is_original=True)

    assert record.relationship is Relationship.ORIGINAL
    assert record.stage is EnrichmentStage.RAW
    assert record.all_claims == "1. Claim."
    assert record.id.startswith("patent-")

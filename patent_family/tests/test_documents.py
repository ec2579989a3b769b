from __future__ import annotations

import httpx
import pytest

from patent_family.services.family_classifier import SectionClass
from patent_family.services.sources.documents import DocumentStoreClient, parse_document


def test_parse_document_numbers_untagged_claims(sample_document: str) -> None:
    document = parse_document(sample_document, own_number="10123456")

    assert document.claims_text == (
        "1. A widget comprising a frame.\n\n"
        "2. The widget of claim 1, wherein the frame is steel."
    )
    assert document.family_candidates == ["22222222"]
    assert document.classifications == {
        "Cited By (2)": SectionClass.CITATION,
        "Priority Applications (2)": SectionClass.FAMILY,
        "Similar Documents": SectionClass.CITATION,
    }


def test_parse_document_falls_back_to_region_text() -> None:
    html = '<div itemprop="claims"><p>What is claimed is:</p><p>A gear.</p></div>'
    document = parse_document(html, own_number="1")
    assert document.claims_text == "What is claimed is: A gear."


def test_parse_document_without_claims_region() -> None:
    html = '<span itemprop="publicationNumber">US1</span><h2>Description</h2><p>text</p>'
    document = parse_document(html, own_number="1")
    assert document.claims_text == ""
    assert document.family_candidates == []


def test_anchors_before_first_header_are_ignored() -> None:
    html = (
        '<a href="/patent/US55555555B2/en">US55555555B2</a>'
        '<h2>Priority Applications</h2><a href="/patent/US66666666B2/en">US66666666B2</a>'
    )
    assert parse_document(html, own_number="1").family_candidates == ["66666666"]


@pytest.mark.asyncio
async def test_fetch_document_tries_variants_in_order(settings, fake_documents, sample_document) -> None:
    fake_documents.pages["US10123456B1"] = "<html><body>Sorry, nothing here</body></html>"
    fake_documents.pages["US10123456A1"] = sample_document
    client = DocumentStoreClient(
        settings, client=httpx.AsyncClient(transport=httpx.MockTransport(fake_documents))
    )

    document = await client.fetch_document("10123456")

    assert document is not None
    assert fake_documents.requests == ["US10123456B2", "US10123456B1", "US10123456A1"]
    assert document.variant == "US10123456A1"
    assert document.url == "https://documents.test/patent/US10123456A1/en"
    assert document.family_candidates == ["22222222"]


@pytest.mark.asyncio
async def test_fetch_document_returns_none_when_no_variant_matches(settings, fake_documents) -> None:
    client = DocumentStoreClient(
        settings, client=httpx.AsyncClient(transport=httpx.MockTransport(fake_documents))
    )

    assert await client.fetch_document("10123456") is None
    assert fake_documents.requests[-1] == "US10123456"
    assert len(fake_documents.requests) == len(settings.document_kind_suffixes) + 1


@pytest.mark.asyncio
async def test_fetch_document_skips_transport_errors(settings, sample_document) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("US10123456B2/en"):
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text=sample_document)

    client = DocumentStoreClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    document = await client.fetch_document("10123456")

    assert document is not None
    assert document.variant == "US10123456B1"


def test_families_citing_section_is_not_family() -> None:
    html = (
        '<span itemprop="publicationNumber">US10123456B2</span>'
        '<h2>Priority And Related Applications</h2><a href="/patent/US22222222B1/en">US22222222B1</a>'
        '<h2>Families Citing this family (2)</h2><a href="/patent/US99999999B2/en">US99999999B2</a>'
    )
    document = parse_document(html, own_number="10123456")
    assert document.family_candidates == ["22222222"]
    assert document.classifications["Families Citing this family (2)"] is SectionClass.CITATION


def test_region_fallback_skips_claims_header() -> None:
    html = (
        '<section itemprop="claims"><h2>Claims (1)</h2>'
        "<p>What is claimed is:</p><p>A gear.</p></section>"
    )
    document = parse_document(html, own_number="1")
    assert document.claims_text == "What is claimed is: A gear."
    assert [section.header for section in document.sections] == ["Claims (1)"]

from __future__ import annotations

import json

import httpx
import pytest

from patent_family.core.errors import NotFound, UpstreamError
from patent_family.services.sources.registry import (
    RegistryClient,
    extract_patent,
    join_claims,
)


def make_client(settings, handler) -> RegistryClient:
    return RegistryClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def queried_ids(fake_registry, path: str) -> list[str]:
    return [
        json.loads(request.url.params["q"])["patent_id"]
        for request in fake_registry.requests
        if request.url.path.endswith(path)
    ]


def test_extract_patent_accepts_object_and_list_shapes() -> None:
    patent = {"patent_id": "10123456", "patent_title": "Widget"}
    assert extract_patent({"patents": [patent]}) == patent
    assert extract_patent({"patent": patent}) == patent
    assert extract_patent([patent]) == patent
    assert extract_patent(patent) == patent
    assert extract_patent({"patents": []}) is None
    assert extract_patent({"count": 0}) is None


def test_join_claims_orders_by_sequence() -> None:
    claims = [
        {"claim_sequence": 2, "claim_text": "3. Third."},
        {"claim_sequence": 0, "claim_text": "1. First."},
        {"claim_sequence": "1", "claim_text": " 2. Second. "},
        {"claim_sequence": 3, "claim_text": ""},
    ]
    assert join_claims(claims) == "1. First.\n\n2. Second.\n\n3. Third."


@pytest.mark.asyncio
async def test_fetch_by_id_returns_bibliographic_data(settings, fake_registry) -> None:
    fake_registry.add("10123456", claims=["1. A widget.", "2. The widget of claim 1."])
    client = make_client(settings, fake_registry)

    patent = await client.fetch_by_id("10123456")

    assert patent.patent_number == "10123456"
    assert patent.title == "Widget 10123456"
    assert patent.date == "2020-01-01"
    assert patent.patent_type == "utility"
    assert patent.claims_text == "1. A widget.\n\n2. The widget of claim 1."
    assert all(request.headers["X-Api-Key"] == "registry-key" for request in fake_registry.requests)


@pytest.mark.asyncio
async def test_fetch_by_id_retries_with_zero_padded_identifier(settings, fake_registry) -> None:
    fake_registry.add("01234567", claims=["1. A padded claim."])
    client = make_client(settings, fake_registry)

    patent = await client.fetch_by_id("1234567")

    assert patent.patent_number == "1234567"
    assert patent.lookup_id == "01234567"
    assert patent.claims_text == "1. A padded claim."
    assert queried_ids(fake_registry, "/patent/") == ["1234567", "01234567"]
    assert queried_ids(fake_registry, "/g_claim/") == ["1234567", "01234567"]


@pytest.mark.asyncio
async def test_missing_fields_fall_back_to_defaults(settings, fake_registry) -> None:
    fake_registry.add("10123456", patent_title="", patent_date=None, patent_type=None)
    client = make_client(settings, fake_registry)

    patent = await client.fetch_by_id("10123456")

    assert (patent.title, patent.date, patent.patent_type) == ("Untitled", "Unknown", "utility")
    assert patent.claims_text == ""


@pytest.mark.asyncio
async def test_unknown_identifier_raises_not_found(settings, fake_registry) -> None:
    client = make_client(settings, fake_registry)

    with pytest.raises(NotFound) as excinfo:
        await client.fetch_by_id("99999999")

    assert "only granted US patents" in str(excinfo.value)
    assert queried_ids(fake_registry, "/patent/") == ["99999999"]


@pytest.mark.asyncio
async def test_registry_error_status_raises_upstream_error(settings, fake_registry) -> None:
    fake_registry.failures["10123456"] = 503
    client = make_client(settings, fake_registry)

    with pytest.raises(UpstreamError) as excinfo:
        await client.fetch_by_id("10123456")

    assert excinfo.value.source == "registry"
    assert excinfo.value.status == 503
    assert excinfo.value.message == "registry down"


@pytest.mark.asyncio
async def test_transport_failure_raises_upstream_error(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = make_client(settings, handler)

    with pytest.raises(UpstreamError) as excinfo:
        await client.fetch_by_id("10123456")

    assert excinfo.value.status is None


@pytest.mark.asyncio
async def test_claims_failure_degrades_to_empty_text(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/g_claim/"):
            return httpx.Response(500, json={"error": "claims index offline"})
        return httpx.Response(200, json={"patents": [{"patent_id": "10123456", "patent_title": "Widget"}]})

    client = make_client(settings, handler)

    patent = await client.fetch_by_id("10123456")

    assert patent.title == "Widget"
    assert patent.claims_text == ""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Optional, Sequence

import httpx
import pytest

from patent_family.core.config import Settings
from patent_family.core.errors import UpstreamError
from patent_family.db.store import MemoryKeyValueStore
from patent_family.services.pipeline import FamilyPipeline, build_pipeline

REGISTRY_URL = "https://registry.test/api/v1"
DOCUMENT_URL = "https://documents.test"

SAMPLE_DOCUMENT = """
<html><body>
<span itemprop="publicationNumber">US10123456B2</span>
<section itemprop="claims">
  <div class="claims">
    <div class="claim" num="00001"><div class="claim-text">1. A widget comprising a frame.</div></div>
    <div class="claim-dependent">
      <div class="claim" num="00002"><div class="claim-text">The widget of claim 1, wherein the frame is steel.</div></div>
    </div>
  </div>
</section>
<h2>Cited By (2)</h2>
<a href="/patent/US11111111B2/en">US11111111B2</a>
<h2>Priority Applications (2)</h2>
<a href="/patent/US22222222B1/en">US22222222B1</a>
<a href="/patent/US10123456B2/en">US10123456B2</a>
<h2>Similar Documents</h2>
<a href="/patent/US33333333A1/en">US33333333A1</a>
</body></html>
"""


def registry_payload(patent_id: str, **fields) -> Dict:
    patent = {
        "patent_id": patent_id,
        "patent_title": f"Widget {patent_id}",
        "patent_date": "2020-01-01",
        "patent_type": "utility",
    }
    patent.update(fields)
    return {"error": False, "count": 1, "total_hits": 1, "patents": [patent]}


def claims_payload(patent_id: str, texts: Sequence[str]) -> Dict:
    return {
        "error": False,
        "g_claims": [
            {"patent_id": patent_id, "claim_sequence": index, "claim_text": text}
            for index, text in enumerate(texts)
        ],
    }


class FakeRegistry:
    """Routes registry requests to canned payloads keyed by patent id."""

    def __init__(self) -> None:
        self.patents: Dict[str, Dict] = {}
        self.claims: Dict[str, List[str]] = {}
        self.failures: Dict[str, int] = {}
        self.requests: List[httpx.Request] = []

    def add(self, patent_id: str, claims: Sequence[str] = (), **fields) -> None:
        self.patents[patent_id] = registry_payload(patent_id, **fields)
        if claims:
            self.claims[patent_id] = list(claims)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        patent_id = json.loads(request.url.params["q"])["patent_id"]
        if patent_id in self.failures:
            return httpx.Response(self.failures[patent_id], json={"detail": "registry down"})
        if request.url.path.endswith("/g_claim/"):
            return httpx.Response(200, json=claims_payload(patent_id, self.claims.get(patent_id, [])))
        if patent_id in self.patents:
            return httpx.Response(200, json=self.patents[patent_id])
        return httpx.Response(200, json={"error": False, "count": 0, "total_hits": 0, "patents": []})


class FakeDocuments:
    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages = pages or {}
        self.requests: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        variant = request.url.path.split("/")[2]
        self.requests.append(variant)
        if variant in self.pages:
            return httpx.Response(200, text=self.pages[variant])
        return httpx.Response(404, text="not found")


class StubAnalysis:
    """Deterministic stand-in for the analysis model."""

    def __init__(self, relationship: str = "continuation") -> None:
        self.relationship = relationship
        self.calls: List[str] = []
        self.fail_on: Optional[str] = None
        self.family_payload: Dict = {"analysis": []}

    @property
    def is_configured(self) -> bool:
        return True

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise UpstreamError("analysis", 529, "overloaded")

    async def extract_first_independent_claim(self, claims_text: str) -> str:
        self._record("claim")
        return claims_text.split("\n\n")[0]

    async def generate_inventive_concept(self, claim_text: str, title: str) -> str:
        self._record("concept")
        return f"Concept of {title}"

    async def classify_relationship(self, new_summary: str, existing_summaries: Sequence[str]) -> str:
        self._record("relationship")
        return self.relationship

    async def analyze_family(self, summaries: Sequence[str]) -> Dict:
        self._record("family")
        return self.family_payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        registry_base_url=REGISTRY_URL,
        registry_api_key="registry-key",
        document_base_url=DOCUMENT_URL,
        import_delay_seconds=0.0,
        openai_api_key=None,
    )


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def fake_documents() -> FakeDocuments:
    return FakeDocuments()


@pytest.fixture
def stub_analysis() -> StubAnalysis:
    return StubAnalysis()


@pytest.fixture
def make_pipeline(
    settings: Settings,
    fake_registry: FakeRegistry,
    fake_documents: FakeDocuments,
    stub_analysis: StubAnalysis,
) -> Callable[..., FamilyPipeline]:
    def factory(store: Optional[MemoryKeyValueStore] = None) -> FamilyPipeline:
        return build_pipeline(
            store or MemoryKeyValueStore(),
            settings,
            registry_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_registry)),
            document_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_documents)),
            analysis=stub_analysis,  # type: ignore[arg-type]
        )

    return factory


@pytest.fixture
def sample_document() -> str:
    return SAMPLE_DOCUMENT

"""Client for the authoritative patent registry (PatentsView PatentSearch API)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from patent_family.core.config import Settings, get_settings
from patent_family.core.errors import NotFound, UpstreamError
from patent_family.services.identifiers import lookup_variants, zero_pad

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Untitled"
FALLBACK_DATE = "Unknown"
FALLBACK_TYPE = "utility"

PATENT_FIELDS = [
    "patent_id",
    "patent_title",
    "patent_date",
    "patent_type",
    "patent_abstract",
]
CLAIM_FIELDS = ["patent_id", "claim_sequence", "claim_number", "claim_text"]

TITLE_KEYS = ("patent_title", "title")
DATE_KEYS = ("patent_date", "patent_issue_date", "filing_date", "date")
TYPE_KEYS = ("patent_type", "type")


@dataclass
class RegistryPatent:
    """Bibliographic data and claims returned by the registry."""

    patent_number: str
    title: str
    date: str
    patent_type: str
    abstract: Optional[str]
    claims_text: str
    lookup_id: str


def first_present(item: Dict[str, Any], keys: tuple, fallback: str) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return fallback


def extract_patent(payload: Any) -> Optional[Dict[str, Any]]:
    """Resolve the single-object and one-element-list response shapes alike."""

    if isinstance(payload, list):
        return extract_patent(payload[0]) if payload else None
    if not isinstance(payload, dict):
        return None
    for key in ("patents", "patent"):
        if key in payload:
            return extract_patent(payload[key])
    if "patent_id" in payload or "patent_number" in payload:
        return payload
    return None


def extract_claims(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if not isinstance(payload, dict):
        return []
    for key in ("g_claims", "claims", "g_claim"):
        if key in payload:
            return extract_claims(payload[key])
    if "claim_text" in payload:
        return [payload]
    return []


def join_claims(claims: List[Dict[str, Any]]) -> str:
    ordered = sorted(claims, key=lambda claim: _sequence(claim.get("claim_sequence")))
    texts = [str(claim.get("claim_text") or "").strip() for claim in ordered]
    return "\n\n".join(text for text in texts if text)


def _sequence(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


class RegistryClient:
    """Keyed lookups against the registry with zero-padded retry variants."""

    name = "registry"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.registry_api_key:
            headers["X-Api-Key"] = self.settings.registry_api_key
        return headers

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_by_id(self, canonical: str) -> RegistryPatent:
        """Return the registry record, retrying once with the zero-padded form."""

        item = await self._lookup(canonical)
        lookup_id = canonical
        padded = zero_pad(canonical)
        if item is None and padded != canonical:
            logger.info("Registry miss for %s; retrying as %s", canonical, padded)
            item = await self._lookup(padded)
            lookup_id = padded
        if item is None:
            raise NotFound(canonical)

        claims_text = await self.fetch_claims(canonical)
        return RegistryPatent(
            patent_number=canonical,
            title=first_present(item, TITLE_KEYS, FALLBACK_TITLE),
            date=first_present(item, DATE_KEYS, FALLBACK_DATE),
            patent_type=first_present(item, TYPE_KEYS, FALLBACK_TYPE),
            abstract=item.get("patent_abstract"),
            claims_text=claims_text,
            lookup_id=lookup_id,
        )

    async def fetch_claims(self, canonical: str) -> str:
        """Claim text ordered by claim sequence; empty when no variant yields claims."""

        for variant in lookup_variants(canonical):
            params = {
                "q": json.dumps({"patent_id": variant}),
                "f": json.dumps(CLAIM_FIELDS),
                "s": json.dumps([{"claim_sequence": "asc"}]),
                "o": json.dumps({"size": 1000}),
            }
            try:
                payload = await self._get("g_claim/", params)
            except (NotFound, UpstreamError) as exc:
                logger.warning("Claims lookup failed for %s: %s", variant, exc)
                continue
            claims = extract_claims(payload)
            if claims:
                return join_claims(claims)
        return ""

    async def _lookup(self, identifier: str) -> Optional[Dict[str, Any]]:
        params = {
            "q": json.dumps({"patent_id": identifier}),
            "f": json.dumps(PATENT_FIELDS),
        }
        try:
            payload = await self._get("patent/", params)
        except NotFound:
            return None
        return extract_patent(payload)

    async def _get(self, path: str, params: Dict[str, str]) -> Any:
        url = f"{self.settings.registry_base_url.rstrip('/')}/{path}"
        try:
            response = await self._client.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(self.name, None, str(exc)) from exc
        if response.status_code == 404:
            raise NotFound(params.get("q", ""))
        if response.status_code >= 400:
            raise UpstreamError(self.name, response.status_code, _error_message(response))
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(self.name, response.status_code, "invalid JSON body") from exc

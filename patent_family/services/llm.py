"""Analysis model helpers for claim extraction, summarization and classification."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from patent_family.core.config import Settings, get_settings
from patent_family.core.errors import AnalysisUnavailable, ParseFailure, UpstreamError

logger = logging.getLogger(__name__)

PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"


def load_prompt(name: str) -> str:
    """Read a system prompt template from disk."""

    return (PROMPT_DIR / f"{name}.md").read_text(encoding="utf-8").strip()


def find_json_object(text: str) -> Optional[str]:
    """Return the first balanced top-level ``{...}`` span in ``text``."""

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next opening brace.
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Strictly parse the first JSON object embedded in free-form model output."""

    span = find_json_object(text or "")
    if span is None:
        raise ParseFailure("No JSON object found in analysis response.", raw=text or "")
    try:
        payload = json.loads(span)
    except json.JSONDecodeError as exc:
        raise ParseFailure(f"Failed to parse analysis response: {exc}", raw=text) from exc
    if not isinstance(payload, dict):
        raise ParseFailure("Analysis response JSON is not an object.", raw=text)
    return payload


class AnalysisClient:
    """Wrapper around the downstream chat model."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        if self._client is None and self.settings.openai_api_key:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
            )

    @property
    def is_configured(self) -> bool:
        """Return True if a model client is available."""

        return self._client is not None

    async def analyze(self, system_prompt: str, user_content: str) -> str:
        """Send one system/user exchange and return the text reply."""

        if not self._client:
            raise AnalysisUnavailable("Analysis model not configured.")

        start_time = time.perf_counter()
        try:
            completion = await self._client.chat.completions.create(
                model=self.settings.openai_model,
                max_tokens=self.settings.openai_max_tokens,
                temperature=0.0,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
            )
        except OpenAIError as exc:
            status = getattr(exc, "status_code", None)
            raise UpstreamError("analysis", status, str(exc)) from exc

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug("Analysis call completed in %sms", latency_ms)
        raw_output = completion.choices[0].message.content if completion.choices else None
        if not raw_output:
            raise UpstreamError("analysis", None, "empty response body")
        return raw_output.strip()

    async def extract_first_independent_claim(self, claims_text: str) -> str:
        user = f"Extract the first independent claim from this patent claims text:\n\n{claims_text}"
        return await self.analyze(load_prompt("extract_claim"), user)

    async def generate_inventive_concept(self, claim_text: str, title: str) -> str:
        user = (
            f"Patent title: {title}\n\nFirst independent claim:\n{claim_text}\n\n"
            "Summarize the inventive concept:"
        )
        return await self.analyze(load_prompt("inventive_concept"), user)

    async def classify_relationship(self, new_summary: str, existing_summaries: Sequence[str]) -> str:
        existing = "\n".join(existing_summaries)
        user = f"Existing patents:\n{existing}\n\nNew patent:\n{new_summary}\n\nRelationship:"
        return await self.analyze(load_prompt("relationship"), user)

    async def analyze_family(self, summaries: Sequence[str]) -> Dict[str, Any]:
        user = "Analyze this patent family:\n\n" + "\n\n---\n\n".join(summaries)
        response = await self.analyze(load_prompt("family_analysis"), user)
        return extract_json_object(response)

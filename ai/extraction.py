"""AI field extraction collaborator.

Defines the narrow interface the pipeline consumes, the wrapper that turns
any collaborator response into a record plus confidence, and an adapter for
OpenAI-compatible chat completion endpoints.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from cvmatch.config import ExtractionSettings, settings
from cvmatch.errors import ExtractionError
from cvmatch.pipelines.normalization import calculate_confidence, parse_extraction_payload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You extract information from resumes. ALWAYS return valid JSON (no text outside the JSON) using this schema:
{
  "name": "string|null",
  "email": "string|null",
  "phone": "string|null",
  "linkedin": "string|null",
  "location": {"city": "string|null", "country": "string|null"},
  "education": [{"course": "string|null", "institution": "string|null", "start": "YYYY-MM|null", "end": "YYYY-MM|null"}],
  "experience": [{"company": "string|null", "title": "string|null", "start": "YYYY-MM|null", "end": "YYYY-MM|null", "location": "string|null", "description": "string|null"}],
  "skills": ["string"],
  "languages": [{"language": "string", "level": "string"}]
}
Rules:
- If a field is missing, use null or [] (never invent data).
- Dates as "YYYY-MM" when possible, otherwise null.
- Normalize email, phone and LinkedIn when possible.
- Input text may be in PT/EN/ES.
- Answer with the JSON only (no backticks, no comments)."""


@dataclass
class RawExtraction:
    """Collaborator response: text (possibly malformed JSON) or a record."""
    content: str | dict[str, Any]
    request_id: str | None = None


@dataclass
class ExtractionOutcome:
    """Salvaged record with its completeness confidence."""
    data: dict[str, Any]
    confidence: float
    request_id: str | None


class CVExtractor(Protocol):
    """Anything that turns resume text into structured fields."""

    async def extract(self, text: str) -> RawExtraction:
        ...


async def run_extraction(extractor: CVExtractor, text: str) -> ExtractionOutcome:
    """Call the collaborator and normalize its answer.

    Malformed payloads degrade to an empty record (confidence 0.0); only a
    failing collaborator raises.

    Raises:
        ExtractionError: If the collaborator call fails
    """
    try:
        raw = await extractor.extract(text)
    except ExtractionError:
        raise
    except Exception as e:
        logger.error(f"AI extraction failed: {e}")
        raise ExtractionError(f"AI extraction failed: {e}") from e

    data = parse_extraction_payload(raw.content)
    confidence = calculate_confidence(data)
    logger.info(f"Extraction {raw.request_id}: {len(data)} fields, confidence {confidence:.2f}")
    return ExtractionOutcome(data=data, confidence=confidence, request_id=raw.request_id)


class OpenAIChatExtractor:
    """Extractor backed by an OpenAI-compatible chat completions API."""

    def __init__(self, config: ExtractionSettings | None = None) -> None:
        self.config = config or settings.extraction
        if not self.config.api_key:
            raise ExtractionError("EXTRACTION_API_KEY is not configured")
        self.url = f"{self.config.base_url.rstrip('/')}/chat/completions"

    async def extract(self, text: str) -> RawExtraction:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": self.config.temperature,
        }
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, headers=headers, json=payload) as response:
                    if response.status != 200:
                        body = await response.text()
                        logger.error(f"Extraction API error {response.status}: {body[:200]}")
                        raise ExtractionError(f"Extraction API returned {response.status}")
                    data = await response.json()
        except aiohttp.ClientError as e:
            raise ExtractionError(f"Extraction API unreachable: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"] or "{}"
        except (KeyError, IndexError, TypeError) as e:
            raise ExtractionError("Extraction API response has no message content") from e

        return RawExtraction(content=content, request_id=data.get("id"))

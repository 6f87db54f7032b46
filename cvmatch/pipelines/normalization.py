"""Normalization of AI-extracted CV fields into the canonical record.

Handles date and skill canonicalization, confidence scoring, and salvaging
structured data from malformed extraction responses. Nothing here raises on
bad input: the worst case is an empty record with zero confidence.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Callable

from dateutil.parser import ParserError
from dateutil.parser import parse as date_parse

from config.skill_synonyms import SKILL_SYNONYMS
from cvmatch.config import settings
from cvmatch.models import EducationEntry, ExperienceEntry, LanguageEntry, ProfessionalRecord

logger = logging.getLogger(__name__)

_YEAR_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_YEAR_RE = re.compile(r"^\d{4}$")
_FENCE_RE = re.compile(r"```(?:json|text)?\s*", re.IGNORECASE)

# Fixed accented-vowel ranges: à-å, è-ë, ì-ï, ò-ö, ù-ü
_ACCENT_TABLE = str.maketrans({
    **{chr(c): "a" for c in range(ord("à"), ord("å") + 1)},
    **{chr(c): "e" for c in range(ord("è"), ord("ë") + 1)},
    **{chr(c): "i" for c in range(ord("ì"), ord("ï") + 1)},
    **{chr(c): "o" for c in range(ord("ò"), ord("ö") + 1)},
    **{chr(c): "u" for c in range(ord("ù"), ord("ü") + 1)},
})

_SYNONYM_MAP: dict[str, str] = {
    synonym: entry["canonical_skill"]
    for entry in SKILL_SYNONYMS
    for synonym in entry["synonyms"]
}

# Extraction field names, English first, then the original Portuguese schema
_EXPERIENCE_KEYS = ("experience", "experiencias")
_EDUCATION_KEYS = ("education", "formacao")
_SKILL_KEYS = ("skills", "competencias")
_LANGUAGE_KEYS = ("languages", "idiomas")


# Dates

def normalize_date(raw: Any) -> str | None:
    """Normalize a date to "YYYY-MM" (or keep a bare "YYYY").

    Returns None for empty or unparseable input.
    """
    if raw is None:
        return None
    cleaned = str(raw).strip()
    if not cleaned:
        return None

    if _YEAR_MONTH_RE.match(cleaned) or _YEAR_RE.match(cleaned):
        return cleaned

    # Parse against two default years; if they disagree the input had no year
    try:
        parsed = date_parse(cleaned, default=datetime(2000, 1, 1))
        other = date_parse(cleaned, default=datetime(2001, 1, 1))
    except (ParserError, ValueError, OverflowError):
        logger.debug(f"Unparseable date: {cleaned!r}")
        return None
    if parsed.year != other.year:
        logger.debug(f"Date without a year: {cleaned!r}")
        return None
    return parsed.strftime("%Y-%m")


# Skills

def strip_accents(text: str) -> str:
    return text.translate(_ACCENT_TABLE)


def canonical_skill(raw: Any) -> str | None:
    """Lowercase, trim, strip accents and map through the synonym table."""
    if raw is None:
        return None
    normalized = strip_accents(str(raw).lower().strip())
    if not normalized:
        return None
    return _SYNONYM_MAP.get(normalized, normalized)


def skill_terms(raw: Any) -> list[str]:
    """Lowercase and canonical forms of a query or job skill, for containment tests."""
    if raw is None:
        return []
    terms = []
    for term in (str(raw).lower().strip(), canonical_skill(raw)):
        if term and term not in terms:
            terms.append(term)
    return terms


# Professional record

def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _entries(cv_data: dict[str, Any], keys: tuple[str, ...]) -> list[Any]:
    value = _first(cv_data, *keys)
    return value if isinstance(value, list) else []


def build_professional_record(cv_data: dict[str, Any]) -> ProfessionalRecord:
    """Build the canonical record from an extraction, preserving source order.

    Malformed entries (non-objects in object lists, blank skills) are skipped.
    """
    if not isinstance(cv_data, dict):
        cv_data = {}

    experience = [
        ExperienceEntry(
            title=_text(_first(exp, "title", "cargo")),
            company=_text(_first(exp, "company", "empresa")),
            start=normalize_date(_first(exp, "start", "inicio")),
            end=normalize_date(_first(exp, "end", "fim")),
            location=_text(_first(exp, "location", "local")),
            description=_text(_first(exp, "description", "descricao")),
        )
        for exp in _entries(cv_data, _EXPERIENCE_KEYS)
        if isinstance(exp, dict)
    ]

    education = [
        EducationEntry(
            course=_text(_first(edu, "course", "curso")),
            institution=_text(_first(edu, "institution", "instituicao")),
            start=normalize_date(_first(edu, "start", "inicio")),
            end=normalize_date(_first(edu, "end", "fim")),
        )
        for edu in _entries(cv_data, _EDUCATION_KEYS)
        if isinstance(edu, dict)
    ]

    skills = []
    for raw_skill in _entries(cv_data, _SKILL_KEYS):
        if isinstance(raw_skill, (dict, list)):
            continue
        skill = canonical_skill(raw_skill)
        if skill:
            skills.append(skill)

    languages = [
        LanguageEntry(
            language=_text(_first(lang, "language", "idioma")),
            level=_text(_first(lang, "level", "nivel")),
        )
        for lang in _entries(cv_data, _LANGUAGE_KEYS)
        if isinstance(lang, dict)
    ]

    return ProfessionalRecord(
        experience=experience,
        education=education,
        skills=skills,
        languages=languages,
    )


# Confidence

def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return True


def calculate_confidence(cv_data: dict[str, Any]) -> float:
    """Fraction of top-level fields that are filled, capped below 1.0."""
    if not isinstance(cv_data, dict) or not cv_data:
        return 0.0
    filled = sum(1 for value in cv_data.values() if _is_filled(value))
    return min(settings.normalization.confidence_cap, filled / len(cv_data))


# Salvaging extraction responses

def _parse_direct(content: str) -> Any:
    return json.loads(content)


def _parse_without_fences(content: str) -> Any:
    return json.loads(_FENCE_RE.sub("", content).replace("```", "").strip())


def _parse_largest_fragment(content: str) -> Any:
    """Decode every embedded JSON object and keep the longest one."""
    decoder = json.JSONDecoder()
    best: Any = None
    best_len = 0
    for match in re.finditer(r"\{", content):
        try:
            obj, end = decoder.raw_decode(content, match.start())
        except json.JSONDecodeError:
            continue
        except RecursionError as e:
            raise ValueError("JSON fragment nested too deeply") from e
        if isinstance(obj, dict) and end - match.start() > best_len:
            best, best_len = obj, end - match.start()
    if best is None:
        raise ValueError("no JSON object found")
    return best


PARSE_STRATEGIES: tuple[tuple[str, Callable[[str], Any]], ...] = (
    ("direct", _parse_direct),
    ("strip_fences", _parse_without_fences),
    ("largest_fragment", _parse_largest_fragment),
)


def parse_extraction_payload(content: Any) -> dict[str, Any]:
    """Turn an extraction response into a record.

    Tries each strategy in PARSE_STRATEGIES in order and returns the first
    JSON object produced; falls back to an empty record.
    """
    if isinstance(content, dict):
        return content
    if not isinstance(content, str) or not content.strip():
        return {}

    for name, strategy in PARSE_STRATEGIES:
        try:
            parsed = strategy(content)
        except (ValueError, RecursionError):
            continue
        if isinstance(parsed, dict):
            if name != "direct":
                logger.info(f"Recovered extraction payload with strategy '{name}'")
            return parsed

    logger.warning(f"Could not parse extraction payload ({len(content)} chars), using empty record")
    return {}

"""Paginated, filterable listing over stored resumes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from cvmatch.errors import ValidationError
from cvmatch.models import Resume
from cvmatch.pipelines.normalization import skill_terms
from cvmatch.store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class ResumePage:
    """One page of the filtered resume set."""
    resumes: list[Resume]
    total: int
    has_more: bool
    limit: int
    offset: int


def parse_skill_filter(skills: str | None) -> list[str]:
    """Split a comma-separated filter into lowercase terms, dropping blanks."""
    if not skills:
        return []
    return [s.strip().lower() for s in skills.split(",") if s.strip()]


def _matches_search(resume: Resume, needles: list[str]) -> bool:
    fields = [resume.candidate_name, resume.email, *resume.skills]
    return any(value and needle in value.lower() for value in fields for needle in needles)


def _matches_skills(resume: Resume, wanted: list[str]) -> bool:
    # Stored skills are canonical, so each term is also tried in canonical form
    skills = [s.lower() for s in resume.skills]
    terms = [t for term in wanted for t in skill_terms(term)]
    return any(term in skill for term in terms for skill in skills)


def filter_resumes(
    resumes: Iterable[Resume],
    search: str | None = None,
    skills: str | None = None,
) -> list[Resume]:
    """Apply the free-text search and the skills filter (both must hold).

    Store order is preserved.
    """
    needles = skill_terms(search)
    wanted = parse_skill_filter(skills)

    result = []
    for resume in resumes:
        if needles and not _matches_search(resume, needles):
            continue
        if wanted and not _matches_skills(resume, wanted):
            continue
        result.append(resume)
    return result


async def list_resumes(
    store: DocumentStore,
    limit: int = 10,
    offset: int = 0,
    search: str | None = None,
    skills: str | None = None,
) -> ResumePage:
    """Return resumes [offset, offset + limit) of the filtered set.

    Raises:
        ValidationError: If limit < 1 or offset < 0
        StorageError: If the resume collection cannot be read
    """
    if limit < 1:
        raise ValidationError(f"limit must be at least 1, got {limit}")
    if offset < 0:
        raise ValidationError(f"offset must not be negative, got {offset}")

    filtered = filter_resumes(await store.list_resumes(), search, skills)
    total = len(filtered)
    page = filtered[offset:offset + limit]

    logger.debug(f"Listed {len(page)} of {total} resumes (offset={offset}, limit={limit})")
    return ResumePage(
        resumes=page,
        total=total,
        has_more=offset + limit < total,
        limit=limit,
        offset=offset,
    )

"""Matching pipeline: Job → Resumes with weighted scoring and reasons.

Scoring is pure: no I/O, no side effects, same inputs give the same score
and reasons. Only `match_job` touches the store.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from config.skill_synonyms import SENIORITY_LEVELS
from cvmatch.config import MatchingSettings, settings
from cvmatch.models import Job, Resume
from cvmatch.pipelines.normalization import skill_terms
from cvmatch.store import DocumentStore

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Some relevant skills found"


@dataclass
class MatchResult:
    """Single resume match result."""
    resume_id: str
    candidate_id: str
    score: int
    reasons: list[str]


@dataclass
class ScoreBreakdown:
    """The four independently capped score terms."""
    must_have: float
    nice_to_have: float
    experience: float
    seniority: float

    @property
    def total(self) -> int:
        """Rounded half-up and clamped to [0, 100]."""
        raw = self.must_have + self.nice_to_have + self.experience + self.seniority
        return max(0, min(100, math.floor(raw + 0.5)))


def matched_skills(required: Iterable[str], resume_skills: Iterable[str]) -> list[str]:
    """Job skills contained (case-insensitively) in at least one resume skill.

    Job skills are compared in both raw and canonical form, since resume
    skills are stored canonicalized ("AWS" -> "amazon web services").
    Returned names are the job's own spelling.
    """
    skills = [s.lower() for s in resume_skills]
    return [
        req for req in required
        if any(term in skill for term in skill_terms(req) for skill in skills)
    ]


def keyword_hits(terms: list[str], description: str | None) -> int:
    """Number of terms that occur in one experience description."""
    if not description:
        return 0
    desc = description.lower()
    return sum(1 for term in terms if term.lower() in desc)


def seniority_index(level: str | None) -> int | None:
    if not level:
        return None
    try:
        return SENIORITY_LEVELS.index(level.strip().lower())
    except ValueError:
        return None


def score_breakdown(job: Job, resume: Resume, config: MatchingSettings | None = None) -> ScoreBreakdown:
    cfg = config or settings.matching
    skills = resume.skills

    must_have = 0.0
    if job.must_have:
        must_have = len(matched_skills(job.must_have, skills)) / len(job.must_have) * cfg.must_have_weight

    nice_to_have = 0.0
    if job.nice_to_have:
        nice_to_have = len(matched_skills(job.nice_to_have, skills)) / len(job.nice_to_have) * cfg.nice_to_have_weight

    terms = job.relevant_terms
    hits = sum(keyword_hits(terms, exp.description) for exp in resume.professional.experience)
    experience = min(hits * cfg.keyword_hit_points, cfg.keyword_cap)

    seniority = 0.0
    job_level = seniority_index(job.seniority)
    resume_level = seniority_index(resume.professional.seniority)
    if job_level is not None and resume_level is not None:
        seniority = max(0.0, cfg.seniority_max - cfg.seniority_step * abs(job_level - resume_level))

    return ScoreBreakdown(
        must_have=must_have,
        nice_to_have=nice_to_have,
        experience=experience,
        seniority=seniority,
    )


def score(job: Job, resume: Resume, config: MatchingSettings | None = None) -> int:
    """Match score in [0, 100]."""
    return score_breakdown(job, resume, config).total


def match_reasons(job: Job, resume: Resume, match_score: int, config: MatchingSettings | None = None) -> list[str]:
    """Human-readable explanation of a score, derived independently of it."""
    cfg = config or settings.matching
    reasons = []

    must = matched_skills(job.must_have, resume.skills)
    if must:
        reasons.append(f"Matches {len(must)} required skills: {', '.join(must)}")

    nice = matched_skills(job.nice_to_have, resume.skills)
    if nice:
        reasons.append(f"Has {len(nice)} preferred skills: {', '.join(nice)}")

    terms = job.relevant_terms
    relevant = [exp for exp in resume.professional.experience if keyword_hits(terms, exp.description)]
    if relevant:
        reasons.append(f"{len(relevant)} relevant experience(s) found")

    if match_score >= cfg.excellent_threshold:
        reasons.append("Excellent overall match")
    elif match_score >= cfg.good_threshold:
        reasons.append("Good match")

    return reasons or [FALLBACK_REASON]


def rank_resumes(job: Job, resumes: Iterable[Resume], config: MatchingSettings | None = None) -> list[MatchResult]:
    """Score every resume, drop zero scores, sort by score descending.

    The sort is stable, so equal scores keep store order.
    """
    results = []
    for resume in resumes:
        value = score(job, resume, config)
        if value <= 0:
            continue
        results.append(MatchResult(
            resume_id=resume.resume_id,
            candidate_id=resume.candidate_id,
            score=value,
            reasons=match_reasons(job, resume, value, config),
        ))

    results.sort(key=lambda r: r.score, reverse=True)
    return results


async def match_job(store: DocumentStore, job: Job) -> list[MatchResult]:
    """Rank all stored resumes against a job.

    Raises:
        StorageError: If the resume collection cannot be read
    """
    resumes = await store.list_resumes()
    results = rank_resumes(job, resumes)
    logger.info(f"Matched job {job.job_id or job.title!r}: {len(results)} of {len(resumes)} resumes scored above 0")
    return results

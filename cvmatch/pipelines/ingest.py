"""Ingestion pipeline for resumes and jobs.

Reusable from the API upload handlers and from offline scripts. The
document pipeline combines text extraction, AI extraction, normalization,
identity assignment and persistence.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, BinaryIO, Mapping

from pydantic import ValidationError as PydanticValidationError

from ai.extraction import CVExtractor, run_extraction
from cvmatch.config import DuplicatePolicy, settings
from cvmatch.errors import ValidationError
from cvmatch.identity import compute_cv_hash, new_candidate_id, new_job_id, new_resume_id
from cvmatch.models import Job, Resume
from cvmatch.parsers import parse_file
from cvmatch.pipelines.normalization import build_professional_record
from cvmatch.store import DocumentStore

logger = logging.getLogger(__name__)


def build_resume(
    cv_data: Mapping[str, Any],
    source_text: str,
    confidence: float,
    correlation_id: str | None,
    *,
    file_path: str | None = None,
) -> Resume:
    """Assemble a Resume without persisting it.

    Confidence is clamped into [0, confidence_cap]; status follows from it.
    """
    cv_data = dict(cv_data) if isinstance(cv_data, Mapping) else {}
    norm = settings.normalization
    confidence = max(0.0, min(norm.confidence_cap, float(confidence)))

    return Resume(
        resume_id=new_resume_id(),
        candidate_id=new_candidate_id(),
        file_path=file_path,
        json_data=cv_data,
        professional=build_professional_record(cv_data),
        raw_text_excerpt=source_text[: norm.excerpt_length],
        overall_confidence=confidence,
        created_at=datetime.now(timezone.utc),
        openai_request_id=correlation_id,
        cv_hash=compute_cv_hash(source_text),
    )


async def create_resume(
    store: DocumentStore,
    cv_data: Mapping[str, Any],
    source_text: str,
    confidence: float,
    correlation_id: str | None,
    *,
    file_path: str | None = None,
) -> Resume:
    """Create and persist a resume from normalized extraction output.

    Raises:
        DuplicateResumeError: If the duplicate policy is "reject" and the
            same source text was already ingested
        StorageError: If the resume cannot be persisted
    """
    resume = build_resume(cv_data, source_text, confidence, correlation_id, file_path=file_path)
    reject = settings.ingest.duplicate_policy == DuplicatePolicy.REJECT
    if not reject:
        previous = await store.find_resume_by_hash(resume.cv_hash)
        if previous is not None:
            logger.info(f"Source text already ingested as resume {previous.resume_id}, storing another copy")
    await store.save_resume(resume, reject_duplicates=reject)

    logger.info(
        f"Created resume {resume.resume_id} for candidate {resume.candidate_id} "
        f"(confidence={resume.overall_confidence:.2f}, skills={len(resume.skills)})"
    )
    return resume


async def create_job(store: DocumentStore, fields: Mapping[str, Any] | Job) -> Job:
    """Validate job fields, assign id and timestamp, and persist.

    Raises:
        ValidationError: If the fields don't describe a valid job
        StorageError: If the job cannot be persisted
    """
    if isinstance(fields, Job):
        data = fields.model_dump(by_alias=True)
    else:
        data = dict(fields)
    data.update(job_id=new_job_id(), created_at=datetime.now(timezone.utc))

    try:
        job = Job.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"Rejected job: {e.error_count()} validation error(s)")
        raise ValidationError(f"Invalid job data: {e}") from e

    return await store.save_job(job)


async def process_document(
    store: DocumentStore,
    extractor: CVExtractor,
    file_obj: BinaryIO,
    filename: str,
) -> Resume:
    """Run an uploaded document through the complete pipeline.

    Steps:
    1. Extract plain text from the file
    2. Extract structured fields with the AI collaborator
    3. Salvage the payload and score confidence
    4. Build the canonical record and persist the resume

    Raises:
        ExtractionError: If text or field extraction fails
        DuplicateResumeError: Under the "reject" duplicate policy
        StorageError: If the resume cannot be persisted
    """
    logger.info(f"Processing document: {filename}")

    parsed = parse_file(file_obj, filename)
    logger.debug(f"Extracted {len(parsed.text)} characters from {filename}")

    outcome = await run_extraction(extractor, parsed.text)

    return await create_resume(
        store,
        outcome.data,
        parsed.text,
        outcome.confidence,
        outcome.request_id,
        file_path=filename,
    )

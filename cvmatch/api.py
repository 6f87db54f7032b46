"""FastAPI app exposing resume upload, listing, deletion, and job matching.

Error handlers map the service error taxonomy onto HTTP status codes.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from io import BytesIO
from typing import Any

from fastapi import Body, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ai.extraction import CVExtractor, OpenAIChatExtractor
from .config import settings
from .errors import (
    DuplicateResumeError,
    ExtractionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .logging_config import setup_logging
from .parsers import ParseError
from .pipelines.ingest import create_job, process_document
from .pipelines.matching import MatchResult, match_job
from .pipelines.query import list_resumes
from .store import DocumentStore

logger = logging.getLogger(__name__)


# Pydantic response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class MatchResultDTO(BaseModel):
    """Single match result."""
    resume_id: str
    candidate_id: str
    score: int
    reasons: list[str]

    @classmethod
    def from_result(cls, result: MatchResult) -> MatchResultDTO:
        return cls(
            resume_id=result.resume_id,
            candidate_id=result.candidate_id,
            score=result.score,
            reasons=result.reasons,
        )


class UploadResponse(BaseModel):
    """Resume upload response."""
    success: bool
    message: str
    resume_id: str
    candidate_id: str
    status: str
    overall_confidence: float


class ResumeListResponse(BaseModel):
    """Paginated resume listing."""
    success: bool
    resumes: list[dict[str, Any]]
    total: int
    limit: int
    offset: int
    hasMore: bool


class JobPostResponse(BaseModel):
    """Create job response with the best matching resume, if any."""
    success: bool
    message: str
    job_id: str
    job: dict[str, Any]
    top_resume: MatchResultDTO | None = None


class MatchResponse(BaseModel):
    """Match response."""
    success: bool
    job_id: str
    matches: list[MatchResultDTO] = Field(default_factory=list)


def get_store(request: Request) -> DocumentStore:
    """FastAPI dependency returning the app's document store."""
    return request.app.state.store


def get_extractor(request: Request) -> CVExtractor:
    """FastAPI dependency returning the configured AI extractor."""
    extractor = request.app.state.extractor
    if extractor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI extraction is not configured",
        )
    return extractor


def _default_extractor() -> CVExtractor | None:
    if not settings.extraction.api_key:
        logger.warning("EXTRACTION_API_KEY not set, uploads are disabled")
        return None
    return OpenAIChatExtractor()


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=str(exc)).model_dump(),
    )


def create_app(
    store: DocumentStore | None = None,
    extractor: CVExtractor | None = None,
) -> FastAPI:
    """Build the application; tests inject a temporary store and a fake extractor."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        app.state.store = store or DocumentStore()
        app.state.extractor = extractor if extractor is not None else _default_extractor()
        logger.info(f"Application starting up (data dir: {app.state.store.data_dir})")

        yield

        logger.info("Application shutting down")

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="CV normalization, storage, and job matching",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(DuplicateResumeError)
    async def duplicate_handler(request, exc: DuplicateResumeError):
        logger.info(f"Duplicate upload rejected: {exc}")
        return _error(status.HTTP_409_CONFLICT, "duplicate_resume", exc)

    @app.exception_handler(ValidationError)
    async def validation_handler(request, exc: ValidationError):
        logger.info(f"Validation error: {exc}")
        return _error(status.HTTP_400_BAD_REQUEST, "validation_error", exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request, exc: NotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "not_found", exc)

    @app.exception_handler(ParseError)
    async def parse_error_handler(request, exc: ParseError):
        logger.error(f"Parse error: {exc}")
        return _error(status.HTTP_400_BAD_REQUEST, "parse_error", exc)

    @app.exception_handler(ExtractionError)
    async def extraction_error_handler(request, exc: ExtractionError):
        logger.error(f"Extraction error: {exc}")
        return _error(status.HTTP_502_BAD_GATEWAY, "extraction_error", exc)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request, exc: StorageError):
        logger.error(f"Storage error: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_error", exc)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", version=settings.version)

    @app.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
    async def upload_resume(
        file: UploadFile = File(..., description="Resume file (PDF or plain text)"),
        store: DocumentStore = Depends(get_store),
        extractor: CVExtractor = Depends(get_extractor),
    ) -> UploadResponse:
        """Upload a resume and run it through extraction and normalization."""
        if not file.filename:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required")

        try:
            content = await file.read()
        finally:
            await file.close()

        if len(content) > settings.ingest.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File size must be at most {settings.ingest.max_upload_bytes} bytes",
            )

        logger.info(f"Received resume upload: {file.filename} ({len(content)} bytes)")
        resume = await process_document(store, extractor, BytesIO(content), file.filename)

        return UploadResponse(
            success=True,
            message="CV uploaded and processed successfully",
            resume_id=resume.resume_id,
            candidate_id=resume.candidate_id,
            status=resume.status.value,
            overall_confidence=resume.overall_confidence,
        )

    @app.get("/resumes", response_model=ResumeListResponse)
    async def get_resumes(
        limit: int = Query(default=settings.query.default_limit, ge=1, le=settings.query.max_limit),
        offset: int = Query(default=0, ge=0),
        search: str | None = None,
        skills: str | None = None,
        store: DocumentStore = Depends(get_store),
    ) -> ResumeListResponse:
        """List stored resumes with optional search and skills filter."""
        page = await list_resumes(store, limit=limit, offset=offset, search=search, skills=skills)
        return ResumeListResponse(
            success=True,
            resumes=[r.model_dump(mode="json", by_alias=True) for r in page.resumes],
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            hasMore=page.has_more,
        )

    @app.delete("/resumes/{resume_id}")
    async def delete_resume(resume_id: str, store: DocumentStore = Depends(get_store)) -> dict:
        """Hard-delete a resume."""
        if not await store.delete_resume(resume_id):
            raise NotFoundError(f"Resume {resume_id} not found")
        return {"success": True, "resume_id": resume_id}

    @app.post("/jobs", response_model=JobPostResponse, status_code=status.HTTP_201_CREATED)
    async def post_job(
        payload: dict[str, Any] = Body(...),
        store: DocumentStore = Depends(get_store),
    ) -> JobPostResponse:
        """Create a job posting and return the best matching resume."""
        job = await create_job(store, payload)
        results = await match_job(store, job)

        return JobPostResponse(
            success=True,
            message="Job posted successfully",
            job_id=job.job_id,
            job=job.model_dump(mode="json", by_alias=True),
            top_resume=MatchResultDTO.from_result(results[0]) if results else None,
        )

    @app.get("/jobs")
    async def get_jobs(store: DocumentStore = Depends(get_store)) -> dict:
        """List all job postings."""
        jobs = await store.list_jobs()
        return {"success": True, "jobs": [j.model_dump(mode="json", by_alias=True) for j in jobs]}

    @app.post("/jobs/{job_id}/match", response_model=MatchResponse)
    async def match_stored_job(job_id: str, store: DocumentStore = Depends(get_store)) -> MatchResponse:
        """Rank all resumes against a stored job."""
        job = await store.get_job(job_id)
        results = await match_job(store, job)
        return MatchResponse(
            success=True,
            job_id=job_id,
            matches=[MatchResultDTO.from_result(r) for r in results],
        )

    return app


app = create_app()

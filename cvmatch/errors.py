"""Error taxonomy shared by the pipelines, the store, and the API layer."""
from __future__ import annotations


class CVMatchError(Exception):
    """Base class for all service errors."""
    pass


class ValidationError(CVMatchError):
    """Raised when job or resume input is malformed."""
    pass


class DuplicateResumeError(ValidationError):
    """Raised when a document was already ingested and duplicates are rejected."""

    def __init__(self, cv_hash: str, existing_resume_id: str):
        super().__init__(f"Document already ingested as resume {existing_resume_id}")
        self.cv_hash = cv_hash
        self.existing_resume_id = existing_resume_id


class NotFoundError(CVMatchError):
    """Raised when a looked-up record does not exist."""
    pass


class StorageError(CVMatchError):
    """Raised when the backing collection files cannot be read or written."""
    pass


class ExtractionError(CVMatchError):
    """Raised when an extraction collaborator fails or returns nothing usable."""
    pass

"""Identifier and content-hash assignment for stored documents."""
from __future__ import annotations

import hashlib
import uuid


def new_resume_id() -> str:
    return str(uuid.uuid4())


def new_candidate_id() -> str:
    return str(uuid.uuid4())


def new_job_id() -> str:
    """Job ids keep the `job_` prefix but are random, so concurrent saves never collide."""
    return f"job_{uuid.uuid4().hex}"


def compute_cv_hash(text: str) -> str:
    """SHA-256 hex digest of the document text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()

"""JSON-file document store for jobs and resumes.

Each collection is one JSON array on disk. Mutations read the whole
collection, change it in memory and rewrite the file; a per-collection
asyncio lock makes every collection single-writer so concurrent requests
can't drop each other's appends. Files are replaced atomically via a
temporary file in the same directory.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from .config import settings
from .errors import DuplicateResumeError, NotFoundError, StorageError, ValidationError
from .models import Job, Resume

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class JsonCollection:
    """A named collection persisted as a single JSON array file.

    A missing file is an empty collection; the parent directory is created
    on first access. One instance must own a given file within a process.
    """

    def __init__(self, path: Path | str, *, indent: int = 2) -> None:
        self.path = Path(path)
        self.indent = indent
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.path.stem

    async def read_all(self) -> list[Record]:
        """Return every record in insertion order."""
        return await asyncio.to_thread(self._read)

    async def append(
        self,
        record: Record,
        *,
        guard: Callable[[list[Record]], None] | None = None,
    ) -> None:
        """Append one record.

        Args:
            record: JSON-serializable document
            guard: Optional check run against the current records while the
                write lock is held; raise from it to abort the append
        """
        async with self._lock:
            records = await asyncio.to_thread(self._read)
            if guard is not None:
                guard(records)
            records.append(record)
            await asyncio.to_thread(self._write, records)
        logger.debug(f"Appended record to {self.name} ({len(records)} total)")

    async def delete_where(self, predicate: Callable[[Record], bool]) -> int:
        """Remove every record matching predicate; returns the number removed."""
        async with self._lock:
            records = await asyncio.to_thread(self._read)
            kept = [r for r in records if not predicate(r)]
            removed = len(records) - len(kept)
            if removed:
                await asyncio.to_thread(self._write, kept)
        return removed

    async def clear(self) -> None:
        """Rewrite the collection as an empty array."""
        async with self._lock:
            await asyncio.to_thread(self._write, [])

    def _ensure_dir(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.path.parent}: {e}") from e

    def _read(self) -> list[Record]:
        self._ensure_dir()
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Failed to read {self.path}: {e}")
            raise StorageError(f"Failed to read collection {self.name}: {e}") from e

        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Collection file {self.path} is not valid JSON: {e}")
            raise StorageError(f"Collection {self.name} is corrupt: {e}") from e

        if not isinstance(data, list):
            raise StorageError(f"Collection {self.name} must be a JSON array, got {type(data).__name__}")
        return data

    def _write(self, records: list[Record]) -> None:
        self._ensure_dir()
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=self.indent or None, ensure_ascii=False)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {self.path}: {e}")
            raise StorageError(f"Failed to write collection {self.name}: {e}") from e


class DocumentStore:
    """Typed access to the jobs and resumes collections."""

    def __init__(
        self,
        data_dir: Path | str | None = None,
        *,
        jobs_file: str | None = None,
        resumes_file: str | None = None,
        indent: int | None = None,
    ) -> None:
        storage = settings.storage
        self.data_dir = Path(data_dir) if data_dir is not None else storage.data_dir
        indent = storage.indent if indent is None else indent

        self.jobs = JsonCollection(self.data_dir / (jobs_file or storage.jobs_file), indent=indent)
        self.resumes = JsonCollection(self.data_dir / (resumes_file or storage.resumes_file), indent=indent)

    # Resumes

    async def save_resume(self, resume: Resume, *, reject_duplicates: bool = False) -> Resume:
        """Persist a new resume.

        Raises:
            DuplicateResumeError: If reject_duplicates is set and a resume
                with the same cv_hash is already stored
            StorageError: If the collection cannot be read or written
        """

        def _check_duplicate(records: list[Record]) -> None:
            if not reject_duplicates or not resume.cv_hash:
                return
            existing = _record_with_hash(records, resume.cv_hash)
            if existing is not None:
                raise DuplicateResumeError(resume.cv_hash, existing.get("resume_id", "?"))

        await self.resumes.append(_dump(resume), guard=_check_duplicate)
        logger.info(f"Saved resume {resume.resume_id} (status={resume.status.value})")
        return resume

    async def list_resumes(self) -> list[Resume]:
        records = await self.resumes.read_all()
        return [_load(Resume, r, self.resumes.name) for r in records]

    async def find_resume_by_hash(self, cv_hash: str) -> Resume | None:
        """First stored resume ingested from the same source text, if any."""
        record = _record_with_hash(await self.resumes.read_all(), cv_hash)
        return _load(Resume, record, self.resumes.name) if record is not None else None

    async def delete_resume(self, resume_id: str) -> bool:
        """Hard-delete a resume; returns False when no resume had that id."""
        removed = await self.resumes.delete_where(lambda r: r.get("resume_id") == resume_id)
        if removed:
            logger.info(f"Deleted resume {resume_id}")
        else:
            logger.info(f"Resume {resume_id} not found, nothing deleted")
        return removed > 0

    # Jobs

    async def save_job(self, job: Job) -> Job:
        if not job.job_id:
            raise ValidationError("Job must have a job_id before it is saved")
        await self.jobs.append(_dump(job))
        logger.info(f"Saved job {job.job_id}: {job.title}")
        return job

    async def list_jobs(self) -> list[Job]:
        records = await self.jobs.read_all()
        return [_load(Job, r, self.jobs.name) for r in records]

    async def get_job(self, job_id: str) -> Job:
        """Look up one job.

        Raises:
            NotFoundError: If no job has that id
        """
        for record in await self.jobs.read_all():
            if record.get("job_id") == job_id:
                return _load(Job, record, self.jobs.name)
        raise NotFoundError(f"Job {job_id} not found")


def _record_with_hash(records: list[Record], cv_hash: str) -> Record | None:
    for record in records:
        if record.get("cv_hash") == cv_hash:
            return record
    return None


def _dump(model: Resume | Job) -> Record:
    return model.model_dump(mode="json", by_alias=True)


def _load(model_cls: type[Resume] | type[Job], record: Record, collection: str):
    try:
        return model_cls.model_validate(record)
    except PydanticValidationError as e:
        raise StorageError(f"Invalid record in collection {collection}: {e}") from e

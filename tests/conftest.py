"""
Pytest configuration and fixtures
"""

import pytest

from cvmatch.models import Job
from cvmatch.pipelines.ingest import build_resume
from cvmatch.store import DocumentStore


@pytest.fixture
def store(tmp_path):
    """Fixture providing a document store in a fresh temporary directory"""
    return DocumentStore(tmp_path / "data")


@pytest.fixture
def make_job():
    """Factory for valid jobs; keyword arguments override fields (snake_case)"""

    def _make(**overrides):
        fields = {
            "title": "Frontend Engineer",
            "seniority": "senior",
            "location": "Lisbon",
            "work_mode": "remote",
            "contract_type": "full-time",
            "languages": ["English"],
            "must_have": [],
            "nice_to_have": [],
            "salary_min": 40000,
            "salary_max": 60000,
            "currency": "EUR",
            "keywords": [],
            "raw_text": "",
        }
        fields.update(overrides)
        return Job(**fields)

    return _make


@pytest.fixture
def make_resume():
    """Factory building (unsaved) resumes from an extraction record"""

    def _make(skills=(), descriptions=(), name="Ana Silva", email="ana@example.com",
              confidence=0.8, text="resume text", **extra):
        cv_data = {
            "name": name,
            "email": email,
            "skills": list(skills),
            "experience": [{"title": "Developer", "description": d} for d in descriptions],
            **extra,
        }
        return build_resume(cv_data, text, confidence, "req-1")

    return _make

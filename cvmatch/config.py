"""Central configuration for the CV normalization and matching service.

This module uses Pydantic Settings for validation and env management.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class DuplicatePolicy(str, Enum):
    """What to do when an uploaded document hashes to an existing resume."""
    ALLOW = "allow"
    REJECT = "reject"


class StorageSettings(BaseSettings):
    """JSON document store configuration."""
    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore")

    data_dir: Path = Field(default=Path("data"), description="Directory holding the collection files")
    jobs_file: str = Field(default="jobs.json")
    resumes_file: str = Field(default="resumes.json")
    indent: int = Field(default=2, ge=0, le=8)


class NormalizationSettings(BaseSettings):
    """CV normalization configuration."""
    model_config = SettingsConfigDict(env_prefix="NORMALIZATION_", extra="ignore")

    review_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    confidence_cap: float = Field(default=0.99, ge=0.0, le=0.99)
    excerpt_length: int = Field(default=2000, ge=0)


class MatchingSettings(BaseSettings):
    """Matching engine weights and thresholds."""
    model_config = SettingsConfigDict(env_prefix="MATCHING_", extra="ignore")

    must_have_weight: float = Field(default=50.0, ge=0.0)
    nice_to_have_weight: float = Field(default=20.0, ge=0.0)
    keyword_hit_points: float = Field(default=2.0, ge=0.0)
    keyword_cap: float = Field(default=20.0, ge=0.0)
    seniority_max: float = Field(default=10.0, ge=0.0)
    seniority_step: float = Field(default=3.0, ge=0.0)
    excellent_threshold: int = Field(default=80, ge=0, le=100)
    good_threshold: int = Field(default=60, ge=0, le=100)


class QuerySettings(BaseSettings):
    """Resume listing configuration."""
    model_config = SettingsConfigDict(env_prefix="QUERY_", extra="ignore")

    default_limit: int = Field(default=10, ge=1)
    max_limit: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def check_limits(self) -> QuerySettings:
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        return self


class IngestSettings(BaseSettings):
    """Document ingestion configuration."""
    model_config = SettingsConfigDict(env_prefix="INGEST_", extra="ignore")

    duplicate_policy: DuplicatePolicy = Field(default=DuplicatePolicy.ALLOW)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)


class ExtractionSettings(BaseSettings):
    """AI extraction collaborator configuration."""
    model_config = SettingsConfigDict(env_prefix="EXTRACTION_", extra="ignore")

    api_key: str | None = Field(default=None)
    base_url: str = Field(default="https://api.openai.com/v1")
    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=60.0, gt=0.0)


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = Field(default="INFO")
    format: Literal["json", "text"] = Field(default="json")
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)
    app_name: str = Field(default="CV Matching Service")
    version: str = Field(default="0.1.0")

    # Sub-configs
    storage: StorageSettings = Field(default_factory=StorageSettings)
    normalization: NormalizationSettings = Field(default_factory=NormalizationSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()

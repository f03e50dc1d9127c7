from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ModelConfig(BaseModel):
    """Chat model settings used for every generation request."""

    name: str = Field("gpt-4", description="LLM identifier.")
    temperature: float = Field(0.7, ge=0, le=2)
    base_url: Optional[str] = Field(None, description="Override for OpenAI-compatible endpoints.")


class RetryConfig(BaseModel):
    """Backoff policy for calls to the generation service."""

    max_retries: int = Field(5, ge=0)
    base_delay_ms: int = Field(2000, ge=0)
    attempt_timeout_seconds: float = Field(60.0, gt=0)


class SupabaseConfig(BaseModel):
    """Hosted progress store credentials; empty values leave the store unconfigured."""

    url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    anon_key: str = Field(default_factory=lambda: os.getenv("SUPABASE_ANON_KEY", ""))
    table: str = "user_progress"


class PathsConfig(BaseModel):
    """Filesystem layout for locally persisted session state."""

    sessions_dir: Path = Field(Path("data/sessions"))


class LoggingConfig(BaseModel):
    """Controls for tutor logging output and format."""

    level: str = Field("INFO")
    use_json: bool = False

    @field_validator("level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        return value.upper()


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("TutorAI")
    model: ModelConfig = Field(default_factory=ModelConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

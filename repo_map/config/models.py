"""Configuration model for repo-map."""

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_STATE_DIR = ".claude"


class RepoMapConfig(BaseModel):
    """Global configuration model with validation."""

    # State Management
    state_dir: str = Field(default=DEFAULT_STATE_DIR)

    # Scanning Behavior
    max_workers: int = Field(
        default_factory=lambda: min(8, os.cpu_count() or 1), ge=1, le=64
    )
    engine_timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    git_timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    respect_gitignore: bool = Field(default=True)
    exclude_dirs: list[str] = Field(default_factory=list)

    # Logging
    log_level: str = Field(default="WARNING")

    @field_validator("state_dir")
    @classmethod
    def validate_state_dir(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("state_dir cannot be empty")
        return v.strip()

    @field_validator("exclude_dirs")
    @classmethod
    def validate_exclude_dirs(cls, v: list[str]) -> list[str]:
        for name in v:
            if not isinstance(name, str) or not name.strip():
                raise ValueError("exclude_dirs entries must be non-empty strings")
        return [name.strip().strip("/") for name in v]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

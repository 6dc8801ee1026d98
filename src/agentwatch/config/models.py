"""Configuration models using Pydantic."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from agentwatch.config.paths import get_agentwatch_home
from agentwatch.correlation.types import CorrelationConfig
from agentwatch.share.types import ContributorMeta
from agentwatch.sources.types import Project

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration error."""

    pass


class SharingConfig(BaseModel):
    """Defaults for preparing and exporting sessions.

    ``profile`` overrides the active profile stored in contrib/profiles.json.
    """

    profile: str | None = None
    preview_chars: int = Field(default=500, ge=0)
    bundle_format: Literal["jsonl", "zip", "auto"] = "auto"
    export_dir: Path = Field(default_factory=lambda: get_agentwatch_home() / "exports")
    contributor: ContributorMeta = Field(default_factory=ContributorMeta)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    log_to_file: bool = False
    retention_days: int = Field(default=7, ge=1)
    # Extra secret patterns for the JSONL log redactor
    redact_patterns: list[str] = Field(default_factory=list)


class AgentwatchConfig(BaseModel):
    """Root configuration model."""

    sharing: SharingConfig = Field(default_factory=SharingConfig)
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    # Order matters: the first project containing a cwd wins
    projects: list[Project] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _unique_project_ids(self) -> "AgentwatchConfig":
        seen: set[str] = set()
        for project in self.projects:
            if project.id in seen:
                raise ValueError(f"Duplicate project id: {project.id}")
            seen.add(project.id)
        return self

    def get_project(self, project_id: str) -> Project:
        """Get a project by id.

        Raises:
            ConfigError: If no project has that id.
        """
        for project in self.projects:
            if project.id == project_id:
                return project
        available = ", ".join(sorted(p.id for p in self.projects)) or "none"
        raise ConfigError(f"Unknown project '{project_id}'. Available: {available}")

"""Configuration helpers for the app directory index builder."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

from .paths import normalise_path, resolve_under


class BuildConfig(BaseModel):
    """Build level configuration."""

    root: Path = Field(default=Path("."))
    apps_dir: Path = Field(default=Path("apps"))
    projects_dir: Path = Field(default=Path("projects"))
    output_dir: Path = Field(default=Path("dist"))
    app_pattern: str = "**/*.json"
    enrich: bool = True
    github_api_url: str = "https://api.github.com"
    trusted_host: str = "github.com"
    user_agent: str = "LizardByte-App-Directory"
    github_token: Optional[str] = None
    # None leaves the HTTP transport default in place.
    request_timeout: Optional[float] = Field(default=None, gt=0)
    fetch_concurrency: int = Field(default=1, ge=1)
    read_concurrency: int = Field(default=16, ge=1)

    @property
    def apps_path(self) -> Path:
        return resolve_under(normalise_path(self.root), self.apps_dir)

    @property
    def projects_path(self) -> Path:
        return resolve_under(normalise_path(self.root), self.projects_dir)

    @property
    def output_path(self) -> Path:
        return resolve_under(normalise_path(self.root), self.output_dir)


def load_config(path: Optional[Path], **overrides: Any) -> BuildConfig:
    """Load configuration from a YAML file, applying non-``None`` overrides."""

    data: Dict[str, Any] = {}
    if path is not None and path.exists():
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    data.update({key: value for key, value in overrides.items() if value is not None})
    return BuildConfig(**data)

"""Exception hierarchy for the index builder."""
from __future__ import annotations

from pathlib import Path


class AppIndexError(Exception):
    """Base class for all index builder errors."""


class MalformedInputError(AppIndexError):
    """An app, project or category file is not parseable structured data."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class MissingCategoriesError(AppIndexError):
    """A project directory has no category definition file."""

    def __init__(self, project_id: str, path: Path) -> None:
        super().__init__(f"Categories file not found for {project_id}: {path}")
        self.project_id = project_id
        self.path = path


class MetadataFetchError(AppIndexError):
    """Repository metadata could not be validated, requested or parsed."""


class ArtifactWriteError(AppIndexError):
    """The output directory or an artifact could not be written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unable to write {path}: {reason}")
        self.path = path

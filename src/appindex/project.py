"""Per-project index construction: filtering, namespacing, counting and sorting."""
from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from .errors import MalformedInputError, MissingCategoriesError
from .schema import (
    AppRecord,
    CategoryDef,
    CategoryFile,
    NamespacedCategory,
    ProjectConfig,
    ProjectIndex,
    ProjectInfo,
    namespace_category,
    sort_apps,
)
from .utils.logging import get_logger


LOGGER = get_logger(__name__)
CATEGORIES_FILENAME = "categories.json"
PROJECT_FILENAME = "project.json"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""

    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def load_categories(path: Path) -> List[CategoryDef]:
    """Parse a category definition file."""

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (ValueError, RecursionError) as exc:
        raise MalformedInputError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedInputError(path, "expected a JSON object with a 'categories' list")
    try:
        return CategoryFile.model_validate(data).categories
    except ValidationError as exc:
        raise MalformedInputError(path, str(exc)) from exc


def filter_apps(apps: Sequence[AppRecord], config: ProjectConfig) -> List[AppRecord]:
    """Apply ``include_only``, then ``exclude_apps``, then ``featured_categories``."""

    selected = list(apps)
    if config.include_only:
        include = set(config.include_only)
        selected = [app for app in selected if app.id in include]
    if config.exclude_apps:
        exclude = set(config.exclude_apps)
        selected = [app for app in selected if app.id not in exclude]
    if config.featured_categories:
        featured = set(config.featured_categories)
        selected = [app for app in selected if app.category in featured]
    return selected


def count_categories(apps: Sequence[AppRecord]) -> Counter:
    """Number of apps per (un-namespaced) category id."""

    return Counter(app.category for app in apps)


class ProjectIndexBuilder:
    """Build the index for a single project from the shared app set."""

    def __init__(self, projects_dir: Path, clock: Optional[Clock] = None) -> None:
        self.projects_dir = projects_dir
        self.clock = clock or utc_now

    def categories_path(self, project_id: str) -> Path:
        return self.projects_dir / project_id / CATEGORIES_FILENAME

    def load_project_categories(self, project_id: str) -> List[CategoryDef]:
        path = self.categories_path(project_id)
        if not path.is_file():
            raise MissingCategoriesError(project_id, path)
        return load_categories(path)

    def assemble(
        self,
        project_id: str,
        config: ProjectConfig,
        all_apps: Sequence[AppRecord],
        definitions: Sequence[CategoryDef],
    ) -> ProjectIndex:
        """Pure part of the build; no file access."""

        apps = filter_apps(all_apps, config)
        known = {definition.id for definition in definitions}
        orphans = [app.id for app in apps if app.category not in known]
        if orphans:
            LOGGER.warning(
                "Dropping apps with categories undefined in %s: %s", project_id, ", ".join(sorted(orphans))
            )
            apps = [app for app in apps if app.category in known]

        counts = count_categories(apps)
        categories = [
            NamespacedCategory.from_definition(project_id, definition, counts.get(definition.id, 0))
            for definition in definitions
        ]
        namespaced_apps = [app.with_category(namespace_category(project_id, app.category)) for app in apps]
        return ProjectIndex(
            project=ProjectInfo(id=config.id, name=config.name, description=config.description),
            updated=format_timestamp(self.clock()),
            apps=sort_apps(namespaced_apps),
            categories=categories,
        )

    def build(self, project_id: str, config: ProjectConfig, all_apps: Sequence[AppRecord]) -> Optional[ProjectIndex]:
        """Return the project's index, or ``None`` when its categories file is missing."""

        try:
            definitions = self.load_project_categories(project_id)
        except MissingCategoriesError as exc:
            LOGGER.error("%s", exc)
            return None
        return self.assemble(project_id, config, all_apps, definitions)

"""Pydantic models describing app fragments, project configs and index artifacts."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


PROJECT_INDEX_VERSION = "0.1.0"
MASTER_INDEX_VERSION = "0.1.0"
NAMESPACE_SEPARATOR = ":"


def namespace_category(project_id: str, category_id: str) -> str:
    """Return ``category_id`` prefixed with its owning project, e.g. ``sunshine:client``."""

    return f"{project_id}{NAMESPACE_SEPARATOR}{category_id}"


def split_namespaced(namespaced_id: str) -> Tuple[str, str]:
    """Split a namespaced category id into ``(project_id, original_id)``."""

    project_id, separator, original_id = namespaced_id.partition(NAMESPACE_SEPARATOR)
    if not separator:
        raise ValueError(f"{namespaced_id!r} is not a namespaced category id")
    return project_id, original_id


class _Record(BaseModel):
    """Base model that keeps unknown keys verbatim."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def as_record(self) -> Dict[str, Any]:
        """Return a JSON-serialisable mapping containing only the keys that were provided."""

        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class GitHubMetadata(BaseModel):
    """Narrow projection of a repository as reported by the source-control API."""

    model_config = ConfigDict(populate_by_name=True)

    stars: int = Field(ge=0)
    open_issues: int = Field(alias="openIssues", ge=0)
    forks: int = Field(ge=0)
    last_updated: str = Field(alias="lastUpdated")
    license: Optional[str] = None


class AppRecord(_Record):
    """A single app fragment.

    Only ``id``, ``name`` and ``category`` are validated; the builders read
    nothing else except ``featured`` (truthiness, for ordering) and
    ``links.github``. Every other key, including ``featured`` itself, is
    kept exactly as the fragment wrote it. ``github`` is replaced only when
    enrichment succeeds.
    """

    id: str
    name: str
    category: str

    @field_validator("id", "name", "category")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def passthrough(self, key: str, default: Any = None) -> Any:
        return (self.model_extra or {}).get(key, default)

    @property
    def is_featured(self) -> bool:
        return bool(self.passthrough("featured"))

    @property
    def github_url(self) -> Optional[str]:
        links = self.passthrough("links")
        url = links.get("github") if isinstance(links, dict) else None
        return url if isinstance(url, str) else None

    def with_github(self, metadata: GitHubMetadata) -> "AppRecord":
        return self.model_copy(update={"github": metadata.model_dump(mode="json", by_alias=True)})

    def with_category(self, category: str) -> "AppRecord":
        return self.model_copy(update={"category": category})


def app_sort_key(app: AppRecord) -> Tuple[bool, str]:
    """Featured apps first, then case-insensitive by name."""

    return (not app.is_featured, app.name.lower())


def sort_apps(apps: Iterable[AppRecord]) -> List[AppRecord]:
    return sorted(apps, key=app_sort_key)


class ProjectConfig(BaseModel):
    """Per-project filters; an empty list means no restriction."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    include_only: List[str] = Field(default_factory=list)
    exclude_apps: List[str] = Field(default_factory=list)
    featured_categories: List[str] = Field(default_factory=list)

    @field_validator("include_only", "exclude_apps", "featured_categories", mode="before")
    @classmethod
    def validate_filter(cls, value: Optional[List[str]]) -> List[str]:
        return [] if value is None else value

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> str:
        return value or ""


class CategoryDef(_Record):
    id: str
    name: str


class CategoryFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    categories: List[CategoryDef] = Field(default_factory=list)


class NamespacedCategory(CategoryDef):
    original_id: str = Field(alias="originalId")
    count: int = Field(default=0, ge=0)

    @classmethod
    def from_definition(
        cls, project_id: str, definition: CategoryDef, count: int = 0, **extra: Any
    ) -> "NamespacedCategory":
        data = definition.as_record()
        data.update(extra)
        data["id"] = namespace_category(project_id, definition.id)
        data["originalId"] = definition.id
        data["count"] = count
        return cls.model_validate(data)


class MasterCategory(NamespacedCategory):
    project: str

    def with_count(self, count: int) -> "MasterCategory":
        return self.model_copy(update={"count": count})


class ProjectInfo(BaseModel):
    id: str
    name: str
    description: str


class ProjectIndex(BaseModel):
    version: str = PROJECT_INDEX_VERSION
    project: ProjectInfo
    updated: str
    apps: List[AppRecord]
    categories: List[NamespacedCategory]

    def as_record(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "project": self.project.model_dump(mode="json"),
            "updated": self.updated,
            "apps": [app.as_record() for app in self.apps],
            "categories": [category.as_record() for category in self.categories],
        }


class MasterIndex(BaseModel):
    version: str = MASTER_INDEX_VERSION
    updated: str
    apps: List[AppRecord]
    categories: List[MasterCategory]

    def as_record(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "updated": self.updated,
            "apps": [app.as_record() for app in self.apps],
            "categories": [category.as_record() for category in self.categories],
        }


class IndexSummary(BaseModel):
    """Aggregate summary information of a built index."""

    version: str
    total_apps: int
    featured_apps: int
    categories: Dict[str, int]

    @classmethod
    def from_index(cls, data: Mapping[str, Any]) -> "IndexSummary":
        apps = data.get("apps") or []
        counts: Dict[str, int] = {}
        for category in data.get("categories") or []:
            counts[category["id"]] = category.get("count", 0)
        return cls(
            version=data.get("version", "unknown"),
            total_apps=len(apps),
            featured_apps=sum(1 for app in apps if app.get("featured")),
            categories=counts,
        )

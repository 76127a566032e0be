"""Master catalog construction across every project."""
from __future__ import annotations

from functools import reduce
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import MalformedInputError
from .project import Clock, count_categories, format_timestamp, load_categories, utc_now
from .schema import AppRecord, CategoryDef, MasterCategory, MasterIndex, namespace_category, sort_apps
from .utils.logging import get_logger


LOGGER = get_logger(__name__)

ProjectCategories = Tuple[str, Sequence[CategoryDef]]


def _fold_project(
    merged: Mapping[str, MasterCategory], entry: ProjectCategories
) -> Mapping[str, MasterCategory]:
    project_id, definitions = entry
    additions = {}
    for definition in definitions:
        key = namespace_category(project_id, definition.id)
        if key in merged or key in additions:
            continue
        additions[key] = MasterCategory.from_definition(project_id, definition, project=project_id)
    return MappingProxyType({**merged, **additions})


def union_categories(entries: Iterable[ProjectCategories]) -> Mapping[str, MasterCategory]:
    """Merge project taxonomies into one read-only mapping keyed by namespaced id.

    The first definition seen for a namespaced id wins.
    """

    empty: Mapping[str, MasterCategory] = MappingProxyType({})
    return reduce(_fold_project, entries, empty)


def read_category_files(paths: Iterable[Path]) -> List[ProjectCategories]:
    """Load ``projects/<id>/categories.json`` files, skipping malformed ones."""

    loaded: List[ProjectCategories] = []
    for path in paths:
        project_id = path.parent.name
        try:
            loaded.append((project_id, load_categories(path)))
        except MalformedInputError as exc:
            LOGGER.error("Error processing %s: %s", path, exc.reason)
        except OSError as exc:
            LOGGER.error("Error reading %s: %s", path, exc)
    return loaded


class MasterIndexBuilder:
    """Build the unfiltered catalog over every app and every project's categories."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock or utc_now

    def assemble(self, all_apps: Sequence[AppRecord], entries: Iterable[ProjectCategories]) -> MasterIndex:
        counts = count_categories(all_apps)
        categories = [
            category.with_count(counts.get(category.original_id, 0))
            for category in union_categories(entries).values()
        ]
        return MasterIndex(
            updated=format_timestamp(self.clock()),
            apps=sort_apps(all_apps),
            categories=categories,
        )

    def build(self, all_apps: Sequence[AppRecord], category_files: Iterable[Path]) -> MasterIndex:
        return self.assemble(all_apps, read_category_files(category_files))

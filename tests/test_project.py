from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, List

import pytest

from appindex.errors import MalformedInputError
from appindex.project import ProjectIndexBuilder, filter_apps, format_timestamp
from appindex.schema import AppRecord, CategoryDef, ProjectConfig, split_namespaced
from conftest import FIXED_MOMENT, make_app, write_json


def _apps(*records: dict) -> List[AppRecord]:
    return [AppRecord.model_validate(record) for record in records]


@pytest.fixture
def apps() -> List[AppRecord]:
    return _apps(
        make_app("zeta", "Zeta", "client", featured=True),
        make_app("alpha", "Alpha", "tool", featured=False),
        make_app("beacon", "beacon", "tool"),
        make_app("moon", "Moonlight", "client"),
    )


@pytest.fixture
def definitions() -> List[CategoryDef]:
    return [
        CategoryDef(id="client", name="Clients", icon="monitor"),
        CategoryDef(id="tool", name="Tools"),
        CategoryDef(id="plugin", name="Plugins"),
    ]


def _config(**filters: list) -> ProjectConfig:
    return ProjectConfig(id="sunshine", name="Sunshine", **filters)


def test_featured_then_case_insensitive_name(
    apps: List[AppRecord], definitions: List[CategoryDef], fixed_clock: Callable[[], datetime]
) -> None:
    builder = ProjectIndexBuilder(Path("unused"), fixed_clock)
    index = builder.assemble("sunshine", _config(), apps, definitions)
    assert [app.name for app in index.apps] == ["Zeta", "Alpha", "beacon", "Moonlight"]


def test_exclude_apps_scenario(fixed_clock: Callable[[], datetime], definitions: List[CategoryDef]) -> None:
    apps = _apps(make_app("zeta", "Zeta", "client"), make_app("alpha", "Alpha", "tool"))
    builder = ProjectIndexBuilder(Path("unused"), fixed_clock)
    index = builder.assemble("sunshine", _config(exclude_apps=["zeta"]), apps, definitions)
    assert [app.id for app in index.apps] == ["alpha"]


def test_filters_apply_in_order(apps: List[AppRecord]) -> None:
    config = _config(include_only=["zeta", "alpha", "moon"], exclude_apps=["moon"], featured_categories=["client"])
    assert [app.id for app in filter_apps(apps, config)] == ["zeta"]
    assert filter_apps(apps, _config()) == apps


def test_categories_are_namespaced_and_counted(
    apps: List[AppRecord], definitions: List[CategoryDef], fixed_clock: Callable[[], datetime]
) -> None:
    builder = ProjectIndexBuilder(Path("unused"), fixed_clock)
    index = builder.assemble("sunshine", _config(exclude_apps=["beacon"]), apps, definitions)
    records = [category.as_record() for category in index.categories]
    assert records[0] == {"id": "sunshine:client", "name": "Clients", "icon": "monitor", "originalId": "client", "count": 2}
    assert [(record["id"], record["count"]) for record in records] == [
        ("sunshine:client", 2),
        ("sunshine:tool", 1),
        ("sunshine:plugin", 0),
    ]
    category_ids = {category.id for category in index.categories}
    assert all(app.category in category_ids for app in index.apps)
    for category in index.categories:
        assert split_namespaced(category.id) == ("sunshine", category.original_id)


def test_input_apps_are_not_mutated(
    apps: List[AppRecord], definitions: List[CategoryDef], fixed_clock: Callable[[], datetime]
) -> None:
    ProjectIndexBuilder(Path("unused"), fixed_clock).assemble("sunshine", _config(), apps, definitions)
    assert {app.category for app in apps} == {"client", "tool"}


def test_apps_with_undefined_category_are_dropped(
    definitions: List[CategoryDef], fixed_clock: Callable[[], datetime]
) -> None:
    apps = _apps(make_app("alpha", "Alpha", "tool"), make_app("ghost", "Ghost", "unknown"))
    index = ProjectIndexBuilder(Path("unused"), fixed_clock).assemble("sunshine", _config(), apps, definitions)
    assert [app.id for app in index.apps] == ["alpha"]


def test_project_block_and_timestamp(
    apps: List[AppRecord], definitions: List[CategoryDef], fixed_clock: Callable[[], datetime]
) -> None:
    index = ProjectIndexBuilder(Path("unused"), fixed_clock).assemble("sunshine", _config(), apps, definitions)
    record = index.as_record()
    assert record["version"] == "0.1.0"
    assert record["project"] == {"id": "sunshine", "name": "Sunshine", "description": ""}
    assert record["updated"] == "2024-05-01T12:30:00.000Z"
    assert format_timestamp(FIXED_MOMENT) == record["updated"]


def test_build_returns_none_without_categories(tmp_path: Path, apps: List[AppRecord]) -> None:
    (tmp_path / "beta").mkdir()
    assert ProjectIndexBuilder(tmp_path).build("beta", _config(), apps) is None


def test_build_reads_categories_file(tmp_path: Path, apps: List[AppRecord]) -> None:
    write_json(tmp_path / "sunshine" / "categories.json", {"categories": [{"id": "tool", "name": "Tools"}]})
    index = ProjectIndexBuilder(tmp_path).build("sunshine", _config(), apps)
    assert index is not None
    assert [app.category for app in index.apps] == ["sunshine:tool", "sunshine:tool"]


def test_build_rejects_malformed_categories(tmp_path: Path, apps: List[AppRecord]) -> None:
    path = tmp_path / "sunshine" / "categories.json"
    path.parent.mkdir()
    path.write_text("[", encoding="utf-8")
    with pytest.raises(MalformedInputError):
        ProjectIndexBuilder(tmp_path).build("sunshine", _config(), apps)


def test_null_filters_mean_no_restriction(apps: List[AppRecord]) -> None:
    config = ProjectConfig.model_validate(
        {
            "id": "sunshine",
            "name": "Sunshine",
            "description": None,
            "include_only": None,
            "exclude_apps": None,
            "featured_categories": None,
        }
    )
    assert config.include_only == config.exclude_apps == config.featured_categories == []
    assert filter_apps(apps, config) == apps


def test_build_rejects_deeply_nested_categories(tmp_path: Path, apps: List[AppRecord]) -> None:
    path = tmp_path / "sunshine" / "categories.json"
    path.parent.mkdir()
    path.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
    with pytest.raises(MalformedInputError):
        ProjectIndexBuilder(tmp_path).build("sunshine", _config(), apps)

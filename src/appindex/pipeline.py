"""End-to-end build: load apps once, write one index per project plus the master index."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import aiofiles
from pydantic import ValidationError

from .errors import ArtifactWriteError, MalformedInputError
from .loader import AppLoader
from .master import MasterIndexBuilder
from .metadata import MetadataFetcher
from .project import CATEGORIES_FILENAME, PROJECT_FILENAME, Clock, ProjectIndexBuilder
from .schema import AppRecord, ProjectConfig
from .utils.config import BuildConfig
from .utils.logging import get_logger


LOGGER = get_logger(__name__)
MASTER_INDEX_FILENAME = "index.json"


@dataclass(slots=True)
class BuildReport:
    """Outcome of a full build."""

    app_count: int = 0
    built_projects: List[str] = field(default_factory=list)
    skipped_projects: List[str] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)


def render_json(record: Dict[str, Any]) -> str:
    return json.dumps(record, indent=2, ensure_ascii=False)


async def write_artifact(path: Path, record: Dict[str, Any]) -> Path:
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as handle:
            await handle.write(render_json(record))
    except OSError as exc:
        raise ArtifactWriteError(path, str(exc)) from exc
    return path


def ensure_output_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArtifactWriteError(path, str(exc)) from exc
    return path


def load_project_config(path: Path) -> ProjectConfig:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (ValueError, RecursionError) as exc:
        raise MalformedInputError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedInputError(path, "expected a JSON object")
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise MalformedInputError(path, str(exc)) from exc


class IndexPipeline:
    """Wire the loader and both builders together for one repository tree."""

    def __init__(
        self,
        config: BuildConfig,
        clock: Optional[Clock] = None,
        fetcher: Optional[MetadataFetcher] = None,
    ) -> None:
        self.config = config
        self.loader = AppLoader(config, fetcher)
        self.project_builder = ProjectIndexBuilder(config.projects_path, clock)
        self.master_builder = MasterIndexBuilder(clock)

    def project_files(self) -> List[Path]:
        return sorted(self.config.projects_path.glob(f"*/{PROJECT_FILENAME}"))

    def category_files(self) -> List[Path]:
        return sorted(self.config.projects_path.glob(f"*/{CATEGORIES_FILENAME}"))

    async def build_project(self, project_file: Path, apps: Sequence[AppRecord], report: BuildReport) -> None:
        project_id = project_file.parent.name
        try:
            project_config = load_project_config(project_file)
            LOGGER.info("Building index for project: %s", project_config.name)
            index = self.project_builder.build(project_id, project_config, apps)
        except MalformedInputError as exc:
            LOGGER.error("Error processing %s: %s", project_file, exc.reason)
            index = None
        except Exception as exc:
            LOGGER.error("Error building index for %s: %s", project_file, exc)
            index = None

        if index is None:
            report.skipped_projects.append(project_id)
            return
        output = self.config.output_path / f"{project_id}.json"
        report.artifacts.append(await write_artifact(output, index.as_record()))
        report.built_projects.append(project_id)
        LOGGER.info("Built %s: %d apps, %d categories", output, len(index.apps), len(index.categories))

    async def build_master(self, apps: Sequence[AppRecord], report: BuildReport) -> None:
        LOGGER.info("Building master index...")
        index = self.master_builder.build(apps, self.category_files())
        output = self.config.output_path / MASTER_INDEX_FILENAME
        report.artifacts.append(await write_artifact(output, index.as_record()))
        LOGGER.info("Built %s: %d apps, %d categories", output, len(index.apps), len(index.categories))

    async def run(self) -> BuildReport:
        report = BuildReport()
        ensure_output_dir(self.config.output_path)

        LOGGER.info("Loading all apps...")
        apps = tuple(await self.loader.load_all_apps())
        report.app_count = len(apps)
        LOGGER.info("Loaded %d apps", len(apps))

        for project_file in self.project_files():
            await self.build_project(project_file, apps, report)
        await self.build_master(apps, report)
        LOGGER.info("Build complete!")
        return report


async def build_indexes(
    config: BuildConfig,
    clock: Optional[Clock] = None,
    fetcher: Optional[MetadataFetcher] = None,
) -> BuildReport:
    """Run the full build for ``config`` and return what was produced."""

    return await IndexPipeline(config, clock, fetcher).run()

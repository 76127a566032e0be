"""Discovery and parsing of app fragment files."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import aiofiles
from pydantic import ValidationError

from .errors import MalformedInputError
from .metadata import MetadataFetcher
from .schema import AppRecord
from .utils.config import BuildConfig
from .utils.logging import get_logger
from .utils.parallel import gather_bounded


LOGGER = get_logger(__name__)


async def read_json(path: Path) -> Any:
    """Read and decode a JSON document, raising :class:`MalformedInputError` on bad content."""

    # JSONDecodeError, UnicodeDecodeError and oversized integer literals are all ValueError.
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as handle:
            content = await handle.read()
        return json.loads(content)
    except (ValueError, RecursionError) as exc:
        raise MalformedInputError(path, f"invalid JSON: {exc}") from exc


class AppLoader:
    """Load every app fragment below the apps directory and enrich it."""

    def __init__(self, config: BuildConfig, fetcher: Optional[MetadataFetcher] = None) -> None:
        self.config = config
        self.fetcher = fetcher or MetadataFetcher(config)

    def discover(self) -> List[Path]:
        root = self.config.apps_path
        if not root.exists():
            LOGGER.warning("Apps directory %s does not exist", root)
            return []
        return sorted(path for path in root.glob(self.config.app_pattern) if path.is_file())

    async def parse(self, path: Path) -> AppRecord:
        data = await read_json(path)
        if not isinstance(data, dict):
            raise MalformedInputError(path, f"expected a JSON object, got {type(data).__name__}")
        try:
            return AppRecord.model_validate(data)
        except ValidationError as exc:
            raise MalformedInputError(path, str(exc)) from exc

    async def _parse_or_skip(self, path: Path) -> Optional[AppRecord]:
        try:
            return await self.parse(path)
        except MalformedInputError as exc:
            LOGGER.error("Error processing %s: %s", path, exc.reason)
        except OSError as exc:
            LOGGER.error("Error reading %s: %s", path, exc)
        return None

    async def enrich(self, app: AppRecord) -> AppRecord:
        """Attach a ``github`` block when the fetcher returns metadata."""

        url = app.github_url
        if not url:
            return app
        LOGGER.info("Fetching GitHub metadata for %s...", app.id)
        metadata = await self.fetcher.fetch(url)
        if metadata is None:
            return app
        return app.with_github(metadata)

    async def load_all_apps(self) -> List[AppRecord]:
        paths = self.discover()
        LOGGER.debug("Discovered %d app files under %s", len(paths), self.config.apps_path)
        parsed = await gather_bounded((self._parse_or_skip(path) for path in paths), self.config.read_concurrency)
        apps = [app for app in parsed if app is not None]
        if not self.config.enrich:
            return apps
        async with self.fetcher.session():
            return await gather_bounded((self.enrich(app) for app in apps), self.config.fetch_concurrency)

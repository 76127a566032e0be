from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from appindex.metadata import MetadataFetcher  # noqa: E402
from appindex.utils.config import BuildConfig  # noqa: E402


FIXED_MOMENT = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)

REPO_PAYLOAD: Dict[str, Any] = {
    "stargazers_count": 42,
    "open_issues_count": 3,
    "forks_count": 7,
    "updated_at": "2024-04-30T10:00:00Z",
    "license": {"key": "gpl-3.0", "spdx_id": "GPL-3.0"},
}


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def make_app(app_id: str, name: str, category: str, **extra: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": app_id,
        "name": name,
        "description": f"{name} description",
        "category": category,
        "platforms": ["linux"],
    }
    record.update(extra)
    return record


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_MOMENT


@pytest.fixture
def repo_tree(tmp_path: Path) -> Path:
    """A small repository: two apps, one valid project and one without categories."""

    root = tmp_path / "repo"
    write_json(
        root / "apps" / "zeta.json",
        make_app(
            "zeta",
            "Zeta",
            "client",
            featured=True,
            links={"github": "https://github.com/example/zeta.git", "website": "https://zeta.example"},
            compatibility={"sunshine": ">=0.20"},
        ),
    )
    write_json(root / "apps" / "tools" / "alpha.json", make_app("alpha", "Alpha", "tool", featured=False))
    write_json(root / "apps" / "tools" / "beacon.json", make_app("beacon", "beacon", "tool"))
    write_json(
        root / "projects" / "sunshine" / "project.json",
        {"id": "sunshine", "name": "Sunshine", "description": "Game streaming host"},
    )
    write_json(
        root / "projects" / "sunshine" / "categories.json",
        {
            "categories": [
                {"id": "client", "name": "Clients", "icon": "monitor"},
                {"id": "tool", "name": "Tools"},
                {"id": "plugin", "name": "Plugins"},
            ]
        },
    )
    write_json(root / "projects" / "beta" / "project.json", {"id": "beta", "name": "Beta"})
    return root


@pytest.fixture
def build_config(repo_tree: Path) -> BuildConfig:
    return BuildConfig(root=repo_tree, enrich=False)


@pytest.fixture
def requests_seen() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_fetcher(requests_seen: List[httpx.Request]) -> Callable[..., MetadataFetcher]:
    """Build a fetcher whose HTTP traffic is answered by ``handler``."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        config: BuildConfig | None = None,
    ) -> MetadataFetcher:
        def respond(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            if handler is not None:
                return handler(request)
            return httpx.Response(200, json=REPO_PAYLOAD)

        return MetadataFetcher(config, transport=httpx.MockTransport(respond))

    return factory

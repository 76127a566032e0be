"""Typer-based command line interface for the app directory index builder."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .errors import ArtifactWriteError
from .pipeline import build_indexes
from .schema import IndexSummary
from .utils.config import load_config
from .utils.logging import configure_logging

app = typer.Typer(add_completion=False)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.")) -> None:
    configure_logging("DEBUG" if verbose else "INFO")


@app.command()
def build(
    root: Optional[Path] = typer.Option(None, "--root", help="Repository root containing apps/ and projects/."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML build configuration."),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory for index artifacts."),
    github: Optional[bool] = typer.Option(None, "--github/--no-github", help="Enrich apps with GitHub statistics."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="Concurrent GitHub requests."),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="GitHub request timeout in seconds."),
    token: Optional[str] = typer.Option(None, "--token", envvar="GITHUB_TOKEN", help="GitHub API token."),
) -> None:
    if config_path is not None and not config_path.exists():
        raise typer.BadParameter(f"Config {config_path} not found")
    config = load_config(
        config_path,
        root=root,
        output_dir=out,
        enrich=github,
        fetch_concurrency=concurrency,
        request_timeout=timeout,
        github_token=token,
    )
    try:
        report = asyncio.run(build_indexes(config))
    except ArtifactWriteError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(
        f"Built {len(report.built_projects)} project indexes and the master index "
        f"from {report.app_count} apps into {config.output_path}"
    )
    if report.skipped_projects:
        typer.echo(f"Skipped projects: {', '.join(report.skipped_projects)}", err=True)


@app.command()
def summarize(
    index_path: Path = typer.Argument(..., help="Built project or master index JSON."),
    table: bool = typer.Option(False, "--table", help="Render a table instead of JSON."),
) -> None:
    if not index_path.exists():
        raise typer.BadParameter(f"Index {index_path} not found")
    summary = IndexSummary.from_index(json.loads(index_path.read_text(encoding="utf-8")))
    if not table:
        typer.echo(summary.model_dump_json(indent=2))
        return
    grid = Table(title=f"{index_path.name} (v{summary.version})")
    grid.add_column("Category")
    grid.add_column("Apps", justify="right")
    for category_id, count in summary.categories.items():
        grid.add_row(category_id, str(count))
    console.print(grid)
    console.print(f"{summary.total_apps} apps, {summary.featured_apps} featured")


if __name__ == "__main__":
    app()

"""Typer CLI — ``prshots capture`` and ``prshots validate`` commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from prshots.config import load_config
from prshots.schemas.config import CaptureConfig

# Load .env file from the working directory (if it exists)
load_dotenv()

app = typer.Typer(
    name="prshots",
    help="PR Shots — screenshot every pull request an author opened in a repository.",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger("prshots")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO — noisy and unhelpful for users
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(config: Path | None, **overrides: object) -> CaptureConfig:
    try:
        return load_config(config, overrides=overrides)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)


@app.command()
def validate(
    config: Path = typer.Option(None, "--config", "-c", help="Optional YAML config file."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate the configuration (file + environment) without running a capture."""
    _setup_logging(verbose)
    cfg = _load(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Repository:  {cfg.owner}/{cfg.repo}")
    console.print(f"  Author:      {cfg.author}")
    console.print(f"  Query:       {cfg.search_query}")
    console.print(f"  Browser:     {cfg.browser_endpoint}")
    console.print(f"  Batch size:  {cfg.batch_size}")
    console.print(f"  Output dir:  {cfg.output_directory}")


@app.command()
def capture(
    config: Path = typer.Option(None, "--config", "-c", help="Optional YAML config file."),
    owner: str = typer.Option(None, "--owner", help="Repository owner (overrides REPO_OWNER)."),
    repo: str = typer.Option(None, "--repo", help="Repository name (overrides REPO_NAME)."),
    author: str = typer.Option(None, "--author", help="Pull request author (overrides GITHUB_AUTHOR)."),
    output: Path = typer.Option(None, "--output", "-o", help="Screenshot directory."),
    batch_size: int = typer.Option(None, "--batch-size", "-b", help="Pull requests processed at once."),
    browser_url: str = typer.Option(None, "--browser-url", help="Chromium DevTools endpoint."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List matching pull requests without opening a browser."),
) -> None:
    """Search for the author's pull requests and screenshot each of them.

    Examples:

        prshots capture --owner octo --repo hello --author alice

        prshots capture -c prshots.yml --batch-size 5 --dry-run
    """
    _setup_logging(verbose)
    cfg = _load(
        config,
        owner=owner,
        repo=repo,
        author=author,
        output_directory=str(output) if output else None,
        batch_size=batch_size,
        browser_endpoint=browser_url,
    )

    console.print(f"[bold]Searching:[/] {cfg.search_query}\n")
    try:
        ok = asyncio.run(_run_capture(cfg, dry_run=dry_run))
    except Exception:
        logger.exception("Capture run aborted")
        raise typer.Exit(code=1)
    if not ok:
        raise typer.Exit(code=1)


async def _run_capture(cfg: CaptureConfig, *, dry_run: bool = False) -> bool:
    """Run the orchestrator; returns ``False`` if any pull request failed."""
    from prshots.capture.orchestrator import CaptureOrchestrator
    from prshots.schemas.pull_request import View

    orchestrator = CaptureOrchestrator(cfg)

    if dry_run:
        records = await orchestrator.plan()
        console.print(f"[yellow]DRY-RUN[/] — {len(records)} pull request(s) would be captured:\n")
        for record in records:
            console.print(f"  #{record.number} {escape(record.title)}")
            for view in (View.DETAILS, View.FILES):
                console.print(f"    [dim]{record.artifact_name(view)}[/]")
        return True

    summary = await orchestrator.run()
    if summary.total:
        console.print(
            f"\n[bold]Done:[/] {len(summary.succeeded)}/{summary.total} captured"
        )
    for outcome in summary.failed:
        console.print(f"  [red]PR #{outcome.number}:[/] {escape(outcome.error)}")
    return summary.ok


if __name__ == "__main__":
    app()

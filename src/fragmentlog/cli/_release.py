"""Commands that reshape the changelog directory: init and release."""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Optional

import click

from ..config import save_config
from ..scaffold import init_changelog_dir, prepare_release_dir
from ..utils import log_info, log_success, log_warning
from ._core import CLIContext

__all__ = [
    "create_release",
    "release_cmd",
    "initialize_changelog",
    "init_cmd",
]


def _compose_summary(
    summary: Optional[str], release_date: Optional[datetime.date], date_format: str
) -> Optional[str]:
    """Prefix the summary with a formatted date line when a date is given."""
    parts: list[str] = []
    if release_date is not None:
        parts.append(release_date.strftime(date_format))
    if summary and summary.strip():
        parts.append(summary.strip())
    return "\n\n".join(parts) or None


def create_release(
    ctx: CLIContext,
    version: str,
    *,
    summary: Optional[str] = None,
    release_date: Optional[datetime.date] = None,
) -> Path:
    """Move unreleased entries into the directory for ``version``."""
    config = ctx.ensure_config()
    project = ctx.load_project()
    unreleased = project.unreleased
    if unreleased is None or not unreleased.has_entries:
        log_warning("the unreleased folder holds no entries; the release will be empty.")
    target = prepare_release_dir(
        ctx.changelog_root,
        config,
        version,
        summary=_compose_summary(summary, release_date, config.release_date_formats[0]),
    )
    log_success(f"released {version} into {target}")
    return target


@click.command("release")
@click.argument("version")
@click.option("--summary", "-s", help="Summary text written to the release directory.")
@click.option(
    "--date",
    "release_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Release date (YYYY-MM-DD) recorded as the first summary line.",
)
@click.option("--today", is_flag=True, help="Record today's date as the release date.")
@click.pass_obj
def release_cmd(
    ctx: CLIContext,
    version: str,
    summary: Optional[str],
    release_date: Optional[datetime.datetime],
    today: bool,
) -> None:
    """Turn the unreleased entries into release VERSION."""
    if release_date is not None and today:
        raise click.UsageError("Use only one of --date or --today.")
    resolved_date: Optional[datetime.date] = None
    if release_date is not None:
        resolved_date = release_date.date()
    elif today:
        resolved_date = datetime.date.today()
    create_release(ctx, version, summary=summary, release_date=resolved_date)


def initialize_changelog(
    ctx: CLIContext,
    *,
    prologue: Optional[Path] = None,
    epilogue: Optional[Path] = None,
    project_url: Optional[str] = None,
) -> Path:
    """Create the changelog directory, its unreleased folder, and a config file."""
    config_existed = ctx.config_path.exists()
    config = ctx.ensure_config()
    if project_url:
        config.project_url = project_url.strip().rstrip("/")
    root = init_changelog_dir(
        ctx.changelog_root,
        config,
        prologue=prologue,
        epilogue=epilogue,
        config_path=ctx.config_path,
    )
    if config_existed and project_url:
        save_config(config, ctx.config_path)
        log_info(f"updated project_url in {ctx.config_path}")
    ctx.reset_config(config)
    log_success(f"initialized changelog at {root}")
    return root


@click.command("init")
@click.option(
    "--prologue",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="File copied in as the changelog prologue.",
)
@click.option(
    "--epilogue",
    "-e",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="File copied in as the changelog epilogue.",
)
@click.option("--project-url", help="Base URL used to link issues, e.g. a GitHub repository.")
@click.pass_obj
def init_cmd(
    ctx: CLIContext,
    prologue: Optional[Path],
    epilogue: Optional[Path],
    project_url: Optional[str],
) -> None:
    """Create a new changelog directory."""
    initialize_changelog(ctx, prologue=prologue, epilogue=epilogue, project_url=project_url)

"""Commands that read the changelog: build and find-duplicates."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from ..duplicates import find_duplicate_bodies, find_duplicates
from ..rendering import render_changelog, render_unreleased
from ..utils import emit_output, log_success, log_warning, render_to_text
from ._core import CLIContext

__all__ = [
    "build_changelog",
    "build_cmd",
    "run_find_duplicates",
    "find_duplicates_cmd",
]


def build_changelog(
    ctx: CLIContext,
    *,
    unreleased_only: bool = False,
    released_only: bool = False,
) -> str:
    """Load the changelog tree and render it to Markdown."""
    if unreleased_only and released_only:
        raise click.UsageError("Use only one of --unreleased or --released-only.")
    config = ctx.ensure_config()
    project = ctx.load_project()
    if unreleased_only:
        return render_unreleased(project, config)
    return render_changelog(project, config, include_unreleased=not released_only)


@click.command("build")
@click.option(
    "--unreleased",
    "-u",
    "unreleased_only",
    is_flag=True,
    help="Only render unreleased changes; fails when there are none.",
)
@click.option(
    "--released-only",
    is_flag=True,
    help="Leave the unreleased section out of the changelog.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write the changelog to a file instead of stdout.",
)
@click.pass_obj
def build_cmd(
    ctx: CLIContext,
    unreleased_only: bool,
    released_only: bool,
    output: Optional[Path],
) -> None:
    """Render the changelog as Markdown."""
    document = build_changelog(ctx, unreleased_only=unreleased_only, released_only=released_only)
    if output is None:
        emit_output(document, newline=False)
        return
    output.write_text(document, encoding="utf-8")
    log_success(f"changelog written to {output}")


def run_find_duplicates(ctx: CLIContext, *, bodies: bool = False) -> dict[str, list[str]]:
    """Return duplicates keyed by their display form (``#<n>`` or the entry text)."""
    project = ctx.load_project()
    report = {f"#{number}": labels for number, labels in find_duplicates(project).items()}
    if bodies:
        report.update(find_duplicate_bodies(project))
    return report


def _first_line(text: str) -> str:
    line = text.splitlines()[0] if text else ""
    return line if len(line) <= 60 else f"{line[:57]}..."


def _duplicates_table(report: dict[str, list[str]]) -> Table:
    table = Table(title="Duplicate entries", show_lines=False)
    table.add_column("Entry", style="issue", no_wrap=True)
    table.add_column("Releases", style="release")
    for key, labels in report.items():
        table.add_row(_first_line(key), ", ".join(labels))
    return table


@click.command("find-duplicates")
@click.option(
    "--bodies",
    is_flag=True,
    help="Also report identical entry texts recorded in several releases.",
)
@click.option("--table", "as_table", is_flag=True, help="Print the report as a table.")
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with status 1 when duplicates exist.",
)
@click.pass_obj
def find_duplicates_cmd(ctx: CLIContext, bodies: bool, as_table: bool, strict: bool) -> None:
    """Report issue or PR numbers that appear in more than one release."""
    report = run_find_duplicates(ctx, bodies=bodies)
    if not report:
        log_success("no duplicate entries found.")
        return
    if as_table:
        emit_output(render_to_text(_duplicates_table(report)), newline=False)
    else:
        for key, labels in report.items():
            emit_output(f"{_first_line(key)}: {', '.join(labels)}")
    log_warning(f"found {len(report)} duplicate entr{'y' if len(report) == 1 else 'ies'}.")
    if strict:
        raise click.exceptions.Exit(1)

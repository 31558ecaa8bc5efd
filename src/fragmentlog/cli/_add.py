"""Add command for creating unreleased entries."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Optional

import click

from ..scaffold import add_unreleased_entry
from ..utils import abort_on_user_interrupt, log_info, log_success, slugify
from ._core import CLIContext

__all__ = [
    "create_entry",
    "add",
    "_mask_comment_block",
    "_prompt_entry_body",
]


def _mask_comment_block(text: str) -> str:
    """Strip comment lines (starting with '#') from editor input."""
    lines = []
    for line in text.splitlines():
        if line.startswith("#"):
            continue
        lines.append(line.rstrip())
    return "\n".join(lines).strip()


def _prompt_entry_body(initial: str = "") -> str:
    log_info("launching editor for entry body (set EDITOR or pass --message to skip).")
    try:
        edited = click.edit(
            textwrap.dedent(
                """\
                # Write the entry below. Lines starting with '#' are ignored.
                # Save and close the editor to finish. Leave empty to abort.
                """
            )
            + ("\n" + initial if initial else "\n")
        )
    except (click.exceptions.Abort, KeyboardInterrupt) as exc:
        abort_on_user_interrupt(exc)
    if edited is None:
        return ""
    return _mask_comment_block(edited)


def _normalize_entry_id(entry_id: str, slug: Optional[str]) -> str:
    """Append an optional slug to the id following the ``<id>-<slug>`` convention."""
    cleaned = entry_id.strip()
    suffix = slugify(slug) if slug else ""
    return f"{cleaned}-{suffix}" if suffix else cleaned


def create_entry(
    ctx: CLIContext,
    *,
    category: str,
    entry_id: str,
    component: Optional[str] = None,
    slug: Optional[str] = None,
    message: Optional[str] = None,
    allow_interactive: bool = True,
) -> Path:
    """Python wrapper for creating entries that mirrors the CLI behavior."""

    config = ctx.ensure_config()
    config.validate_category(category)
    if component:
        config.validate_component(component)

    if message is not None:
        body = message
    else:
        body = _prompt_entry_body() if allow_interactive else ""
    if not body.strip():
        raise click.ClickException("Entry body is empty; nothing was written.")

    path = add_unreleased_entry(
        ctx.changelog_root,
        config,
        category=category,
        entry_id=_normalize_entry_id(entry_id, slug),
        body=body,
        component=component,
    )
    try:
        display_path = path.relative_to(Path.cwd())
    except ValueError:
        display_path = path
    log_success(f"entry created: {display_path}")
    return path


@click.command("add")
@click.option("--category", "-c", required=True, help="Category the entry belongs to.")
@click.option("--component", help="Registered component the entry belongs to.")
@click.option(
    "--id",
    "-i",
    "entry_id",
    required=True,
    help="Entry id, usually the issue or pull request number.",
)
@click.option("--slug", "-s", help="Short description appended to the id in the filename.")
@click.option(
    "--message",
    "-m",
    help="Entry text (skips opening an editor).",
)
@click.pass_obj
def add(
    ctx: CLIContext,
    category: str,
    component: Optional[str],
    entry_id: str,
    slug: Optional[str],
    message: Optional[str],
) -> None:
    """Create a new unreleased changelog entry."""
    create_entry(
        ctx,
        category=category,
        entry_id=entry_id,
        component=component,
        slug=slug,
        message=message,
    )

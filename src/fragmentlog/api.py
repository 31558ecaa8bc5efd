"""Python-friendly facade for invoking fragmentlog functionality."""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Optional

from .cli import (
    CLIContext,
    build_changelog,
    create_cli_context,
    create_entry,
    create_release,
    initialize_changelog,
)
from .config import CHANGELOG_DIRECTORY_NAME
from .duplicates import find_duplicate_bodies, find_duplicates
from .releases import Project


class Changelog:
    """High-level helper that mirrors the CLI commands for Python callers."""

    def __init__(
        self,
        path: Path | str = CHANGELOG_DIRECTORY_NAME,
        *,
        config: Path | str | None = None,
        debug: bool = False,
    ) -> None:
        resolved_config = Path(config) if config is not None else None
        self._ctx = create_cli_context(path=Path(path), config=resolved_config, debug=debug)

    @property
    def context(self) -> CLIContext:
        """Expose the underlying CLIContext for advanced scenarios."""

        return self._ctx

    @property
    def path(self) -> Path:
        return self._ctx.changelog_root

    def load(self) -> Project:
        """Load the changelog tree into a Project."""

        return self._ctx.load_project()

    def build(self, *, released_only: bool = False) -> str:
        """Render the changelog, optionally without unreleased changes."""

        return build_changelog(self._ctx, released_only=released_only)

    def build_unreleased(self) -> str:
        """Render the unreleased changes; raises when there are none."""

        return build_changelog(self._ctx, unreleased_only=True)

    def find_duplicates(self) -> dict[int, list[str]]:
        return find_duplicates(self.load())

    def find_duplicate_bodies(self) -> dict[str, list[str]]:
        return find_duplicate_bodies(self.load())

    def init(
        self,
        *,
        prologue: Path | str | None = None,
        epilogue: Path | str | None = None,
        project_url: Optional[str] = None,
    ) -> Path:
        """Create the changelog directory with an empty unreleased folder."""

        return initialize_changelog(
            self._ctx,
            prologue=Path(prologue) if prologue is not None else None,
            epilogue=Path(epilogue) if epilogue is not None else None,
            project_url=project_url,
        )

    def add(
        self,
        *,
        category: str,
        entry_id: str,
        message: str,
        component: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> Path:
        """Create an unreleased entry and return the resulting file path."""

        return create_entry(
            self._ctx,
            category=category,
            entry_id=entry_id,
            component=component,
            slug=slug,
            message=message,
            allow_interactive=False,
        )

    def release(
        self,
        version: str,
        *,
        summary: Optional[str] = None,
        release_date: Optional[datetime.date] = None,
    ) -> Path:
        """Move unreleased entries into the directory for ``version``."""

        return create_release(self._ctx, version, summary=summary, release_date=release_date)

"""Filesystem operations that create and rearrange changelog content."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

from .config import Config, default_config_path, save_config
from .errors import ChangelogError
from .loader import read_optional_text
from .releases import parse_release_version, split_release_date
from .utils import log_debug, log_info

GITKEEP_FILENAME = ".gitkeep"


def _touch_gitkeep(directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / GITKEEP_FILENAME).touch()


def _copy_into(source: Path, destination: Path) -> None:
    if not source.is_file():
        raise ChangelogError(f"cannot copy {source}: file does not exist")
    log_debug(f"copying {source} to {destination}")
    shutil.copyfile(source, destination)


def init_changelog_dir(
    root: Path,
    config: Optional[Config] = None,
    *,
    prologue: Optional[Path] = None,
    epilogue: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> Path:
    """Create a changelog directory with an empty unreleased folder.

    An existing config file and unreleased folder are left alone, so running
    this twice is harmless. Optional prologue and epilogue files are copied in
    under their configured names.
    """
    config = config or Config()
    root.mkdir(parents=True, exist_ok=True)
    unreleased = root / config.unreleased.folder
    if unreleased.exists():
        log_info(f"{unreleased} already exists")
    else:
        _touch_gitkeep(unreleased)
    if prologue is not None:
        _copy_into(prologue, root / config.prologue_filename)
    if epilogue is not None:
        _copy_into(epilogue, root / config.epilogue_filename)
    config_path = config_path or default_config_path(root)
    if not config_path.exists():
        save_config(config, config_path)
    return root


def _validate_entry_id(entry_id: str) -> str:
    cleaned = entry_id.strip()
    if not cleaned:
        raise ChangelogError("entry id must not be empty")
    if cleaned.startswith(".") or "/" in cleaned or "\\" in cleaned:
        raise ChangelogError(f"invalid entry id '{entry_id}'")
    return cleaned


def entry_path(
    root: Path,
    config: Config,
    *,
    category: str,
    entry_id: str,
    component: Optional[str] = None,
    release: Optional[str] = None,
) -> Path:
    """Return where an entry lives using the category-first layout."""
    directory = root / (release or config.unreleased.folder) / category
    if component:
        directory = directory / component
    return directory / f"{entry_id}{config.entry_suffix}"


def add_unreleased_entry(
    root: Path,
    config: Config,
    *,
    category: str,
    entry_id: str,
    body: str,
    component: Optional[str] = None,
) -> Path:
    """Write a new unreleased entry and return its path.

    Refuses to overwrite an existing entry.
    """
    config.validate_category(category)
    if component:
        config.validate_component(component)
    entry_id = _validate_entry_id(entry_id)
    text = body.strip()
    if not text:
        raise ChangelogError("entry body must not be empty")
    path = entry_path(root, config, category=category, entry_id=entry_id, component=component)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("x", encoding="utf-8") as handle:
            handle.write(text + "\n")
    except FileExistsError as exc:
        raise ChangelogError(f"entry {path} already exists") from exc
    return path


def merge_release_summary(
    existing: Optional[str], summary: Optional[str], config: Config
) -> Optional[str]:
    """Combine a summary already written for the release with new summary text.

    A date line from ``summary`` goes on top, replacing any date line the
    existing summary starts with. Existing text comes before the new text.
    """
    formats = config.release_date_formats
    existing = existing.strip() if existing else None
    summary = summary.strip() if summary else None
    new_date, new_text = split_release_date(summary, formats)
    old_date, old_text = split_release_date(existing, formats)
    date_line: Optional[str] = None
    if new_date is not None and summary:
        date_line = summary.partition("\n")[0].strip()
    elif old_date is not None and existing:
        date_line = existing.partition("\n")[0].strip()
    parts = [part for part in (date_line, old_text, new_text) if part]
    return "\n\n".join(parts) or None


def prepare_release_dir(
    root: Path,
    config: Config,
    version: str,
    *,
    summary: Optional[str] = None,
) -> Path:
    """Turn the unreleased folder into the release directory for ``version``.

    ``summary`` is merged into a summary file the unreleased folder already
    holds. A fresh, empty unreleased folder is created afterwards.
    """
    if parse_release_version(version) is None:
        raise ChangelogError(f"'{version}' is not a valid release version")
    unreleased = root / config.unreleased.folder
    if not unreleased.is_dir():
        raise ChangelogError(f"no unreleased folder at {unreleased}")
    target = root / version
    if target.exists():
        raise ChangelogError(f"release directory {target} already exists")

    log_debug(f"moving {unreleased} to {target}")
    shutil.move(str(unreleased), str(target))
    gitkeep = target / GITKEEP_FILENAME
    if gitkeep.exists():
        gitkeep.unlink()
    if summary and summary.strip():
        summary_path = target / config.change_sets.summary_filename
        merged = merge_release_summary(
            read_optional_text(summary_path), summary.strip(), config
        )
        if merged:
            summary_path.write_text(merged + "\n", encoding="utf-8")
    _touch_gitkeep(unreleased)
    return target

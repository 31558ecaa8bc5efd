"""Load a changelog directory tree into an immutable Project."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from semver import Version

from .config import Component, Config
from .entries import read_entries_sorted
from .errors import ChangelogReadError, InvalidDirectoryStructureError
from .releases import (
    UNRELEASED_LABEL,
    ChangeSet,
    Project,
    Release,
    order_change_sets,
    parse_release_version,
    sort_releases,
    split_release_date,
)
from .utils import log_debug, log_warning, trim_newlines


class ReleaseLayout(str, Enum):
    """Nesting order of category and component directories inside a release."""

    CATEGORY_FIRST = "category-first"
    COMPONENT_FIRST = "component-first"


@dataclass(frozen=True)
class DirectoryListing:
    """Visible children of a directory, split by kind and sorted by name."""

    path: Path
    directories: tuple[Path, ...] = ()
    files: tuple[Path, ...] = ()


@dataclass(frozen=True)
class ReleaseClassification:
    """Result of the classification pass over a release directory."""

    layout: ReleaseLayout
    categories: tuple[Path, ...] = ()
    components: tuple[Path, ...] = ()
    unknown: tuple[Path, ...] = ()


def list_directory(path: Path) -> DirectoryListing:
    """List ``path`` with hidden entries removed and children in lexical order."""
    try:
        children = sorted(path.iterdir(), key=lambda child: child.name)
    except OSError as exc:
        raise ChangelogReadError(path, exc.strerror or str(exc)) from exc
    directories: list[Path] = []
    files: list[Path] = []
    for child in children:
        if child.name.startswith("."):
            continue
        if child.is_dir():
            directories.append(child)
        else:
            files.append(child)
    return DirectoryListing(path=path, directories=tuple(directories), files=tuple(files))


def read_optional_text(path: Path) -> Optional[str]:
    """Return the trimmed content of ``path`` or ``None`` when absent or blank."""
    if not path.is_file():
        return None
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ChangelogReadError(path, f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise ChangelogReadError(path, exc.strerror or str(exc)) from exc
    text = trim_newlines(content)
    return text if text.strip() else None


def _read_summary(directory: Path, config: Config) -> Optional[str]:
    summary = read_optional_text(directory / config.change_sets.summary_filename)
    return summary.strip() if summary else None


def classify_release(listing: DirectoryListing, config: Config) -> ReleaseClassification:
    """Decide whether a release nests categories or components at its top level."""
    categories: list[Path] = []
    components: list[Path] = []
    unknown: list[Path] = []
    for directory in listing.directories:
        name = directory.name
        is_category = name in config.categories
        is_component = name in config.components.all
        if is_category and is_component:
            raise InvalidDirectoryStructureError(
                directory, f"'{name}' is both a category and a registered component"
            )
        if is_category:
            categories.append(directory)
        elif is_component:
            components.append(directory)
        else:
            unknown.append(directory)
    if categories and components:
        raise InvalidDirectoryStructureError(
            listing.path,
            "release mixes category directories "
            f"({', '.join(path.name for path in categories)}) with component directories "
            f"({', '.join(path.name for path in components)})",
        )
    layout = ReleaseLayout.COMPONENT_FIRST if components else ReleaseLayout.CATEGORY_FIRST
    return ReleaseClassification(
        layout=layout,
        categories=tuple(categories),
        components=tuple(components),
        unknown=tuple(unknown),
    )


def _entry_files(listing: DirectoryListing, config: Config) -> list[Path]:
    """Return the entry files of a change-set directory, rejecting stray files."""
    summary_filename = config.change_sets.summary_filename
    suffix = config.entry_suffix
    entries: list[Path] = []
    for path in listing.files:
        if path.name == summary_filename:
            continue
        if not path.name.endswith(suffix) or path.name == suffix:
            raise InvalidDirectoryStructureError(
                path, f"expected an entry file ending in '{suffix}' or '{summary_filename}'"
            )
        entries.append(path)
    return entries


def _reject_directories(listing: DirectoryListing, reason: str) -> None:
    if listing.directories:
        raise InvalidDirectoryStructureError(listing.directories[0], reason)


def _resolve_component(directory: Path, config: Config) -> Component:
    component = config.get_component(directory.name)
    if component is not None:
        return component
    log_warning(f"component '{directory.name}' in {directory.parent} is not registered")
    return Component(id=directory.name, name=directory.name)


def _load_change_set(
    directory: Path,
    listing: DirectoryListing,
    category: str,
    component: Optional[Component],
    config: Config,
) -> ChangeSet:
    entries = read_entries_sorted(
        _entry_files(listing, config),
        category,
        component.id if component else None,
        config.change_sets.sort_entries_by,
    )
    return ChangeSet(
        category=category,
        title=config.categories[category],
        entries=tuple(entries),
        component=component,
        summary=_read_summary(directory, config),
        path=directory,
    )


def _parse_category_first(
    classification: ReleaseClassification, config: Config
) -> list[ChangeSet]:
    change_sets: list[ChangeSet] = []
    for category_dir in classification.categories:
        category = category_dir.name
        listing = list_directory(category_dir)
        change_sets.append(_load_change_set(category_dir, listing, category, None, config))
        for component_dir in listing.directories:
            component = _resolve_component(component_dir, config)
            component_listing = list_directory(component_dir)
            _reject_directories(
                component_listing, "component directories may only contain entry files"
            )
            change_sets.append(
                _load_change_set(component_dir, component_listing, category, component, config)
            )
    return change_sets


def _parse_component_first(
    classification: ReleaseClassification, config: Config
) -> list[ChangeSet]:
    change_sets: list[ChangeSet] = []
    for component_dir in classification.components:
        component = config.components.all[component_dir.name]
        listing = list_directory(component_dir)
        if listing.files:
            raise InvalidDirectoryStructureError(
                listing.files[0], "component directories may only contain category directories"
            )
        for category_dir in listing.directories:
            category = category_dir.name
            if category not in config.categories:
                raise InvalidDirectoryStructureError(
                    category_dir, f"'{category}' is not a configured category"
                )
            category_listing = list_directory(category_dir)
            _reject_directories(
                category_listing, "category directories may only contain entry files"
            )
            change_sets.append(
                _load_change_set(category_dir, category_listing, category, component, config)
            )
    return change_sets


def load_release(
    path: Path,
    config: Config,
    *,
    label: str,
    version: Optional[Version] = None,
    is_unreleased: bool = False,
) -> Release:
    """Parse one release directory."""
    log_debug(f"loading release {label} from {path}")
    listing = list_directory(path)
    classification = classify_release(listing, config)
    for directory in classification.unknown:
        log_warning(f"ignoring unknown directory {directory}")
    for stray in listing.files:
        if stray.name != config.change_sets.summary_filename:
            log_warning(f"ignoring file {stray}")

    if classification.layout is ReleaseLayout.COMPONENT_FIRST:
        change_sets = _parse_component_first(classification, config)
    else:
        change_sets = _parse_category_first(classification, config)

    summary = _read_summary(path, config)
    release_date = None
    if not is_unreleased:
        release_date, summary = split_release_date(summary, config.release_date_formats)
        if release_date is None and "date" in config.sort_releases_by:
            log_warning(f"unable to determine a release date for {label}")

    return Release(
        label=label,
        change_sets=order_change_sets(
            (change_set for change_set in change_sets if not change_set.is_empty), config
        ),
        version=version,
        date=release_date,
        summary=summary,
        is_unreleased=is_unreleased,
        path=path,
    )


def load_project(root: Path, config: Config) -> Project:
    """Load every release under ``root`` into a Project.

    The first structural or read error aborts loading.
    """
    if not root.is_dir():
        raise InvalidDirectoryStructureError(root, "changelog directory does not exist")
    log_debug(f"loading changelog from {root}")
    listing = list_directory(root)

    unreleased: Optional[Release] = None
    releases: list[Release] = []
    for directory in listing.directories:
        name = directory.name
        if name == config.unreleased.folder:
            unreleased = load_release(
                directory, config, label=UNRELEASED_LABEL, is_unreleased=True
            )
            continue
        version = parse_release_version(name)
        if version is None:
            log_warning(f"ignoring directory {directory}: not a release version")
            continue
        releases.append(load_release(directory, config, label=name, version=version))

    ordered = sort_releases(releases, config.sort_releases_by)
    if unreleased is not None:
        ordered.insert(0, unreleased)

    return Project(
        root=root,
        releases=tuple(ordered),
        prologue=read_optional_text(root / config.prologue_filename),
        epilogue=read_optional_text(root / config.epilogue_filename),
    )

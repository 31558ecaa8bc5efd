"""Release, change set, and project model types."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from functools import cmp_to_key
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from semver import Version

from .config import Component, Config, SortReleasesBy
from .entries import Entry

UNRELEASED_LABEL = "Unreleased"
RELEASE_PREFIXES = ("v", "V")


@dataclass(frozen=True)
class ChangeSet:
    """Entries for one category within a release, optionally scoped to a component."""

    category: str
    title: str
    entries: tuple[Entry, ...] = ()
    component: Optional[Component] = None
    summary: Optional[str] = None
    path: Optional[Path] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries and not self.summary

    @property
    def is_general(self) -> bool:
        """Return True when the change set is not scoped to a component."""
        return self.component is None


@dataclass(frozen=True)
class Release:
    """One version's complete collection of change sets."""

    label: str
    change_sets: tuple[ChangeSet, ...] = ()
    version: Optional[Version] = None
    date: Optional[datetime.date] = None
    summary: Optional[str] = None
    is_unreleased: bool = False
    path: Optional[Path] = None

    @property
    def has_entries(self) -> bool:
        return any(change_set.entries for change_set in self.change_sets)

    def iter_entries(self) -> Iterator[tuple[ChangeSet, Entry]]:
        for change_set in self.change_sets:
            for entry in change_set.entries:
                yield change_set, entry

    def grouped_change_sets(self) -> list[tuple[str, list[ChangeSet]]]:
        """Return change sets grouped by category, keeping their order."""
        groups: dict[str, list[ChangeSet]] = {}
        for change_set in self.change_sets:
            groups.setdefault(change_set.category, []).append(change_set)
        return list(groups.items())


@dataclass(frozen=True)
class Project:
    """The root aggregate: every release plus the trailing and leading content."""

    root: Path
    releases: tuple[Release, ...] = ()
    prologue: Optional[str] = None
    epilogue: Optional[str] = None

    def __post_init__(self) -> None:
        unreleased = [release for release in self.releases if release.is_unreleased]
        if len(unreleased) > 1:
            raise ValueError("A project can contain at most one unreleased release.")
        if unreleased and not self.releases[0].is_unreleased:
            raise ValueError("The unreleased release must come first.")

    @property
    def unreleased(self) -> Optional[Release]:
        if self.releases and self.releases[0].is_unreleased:
            return self.releases[0]
        return None

    @property
    def released(self) -> tuple[Release, ...]:
        return tuple(release for release in self.releases if not release.is_unreleased)

    @property
    def is_empty(self) -> bool:
        """Return True when no release holds any entry."""
        return not any(release.has_entries for release in self.releases)

    def iter_entries(self) -> Iterator[tuple[Release, ChangeSet, Entry]]:
        """Yield every entry in render order with its release and change set."""
        for release in self.releases:
            for change_set, entry in release.iter_entries():
                yield release, change_set, entry


def parse_release_version(label: str) -> Optional[Version]:
    """Return the semantic version encoded in a release directory name.

    Accepts any semantic version with an optional ``v`` prefix, including
    pre-release and build suffixes. Returns ``None`` for anything else.
    """
    text = label[1:] if label.startswith(RELEASE_PREFIXES) else label
    try:
        return Version.parse(text)
    except ValueError:
        return None


def split_release_date(
    summary: Optional[str], formats: Sequence[str]
) -> tuple[Optional[datetime.date], Optional[str]]:
    """Parse a release date from the first summary line.

    Returns the date and the summary without the consumed line. If no format
    matches, the summary is returned untouched.
    """
    if not summary:
        return None, summary
    first_line, _, remainder = summary.partition("\n")
    candidate = first_line.strip()
    for date_format in formats:
        try:
            parsed = datetime.datetime.strptime(candidate, date_format).date()
        except ValueError:
            continue
        return parsed, remainder.strip("\n").strip() or None
    return None, summary


def _compare_releases(a: Release, b: Release, criteria: Sequence[SortReleasesBy]) -> int:
    """Order releases newest-first according to ``criteria``."""
    for criterion in criteria:
        if criterion == "version":
            if a.version == b.version or a.version is None or b.version is None:
                continue
            return -1 if a.version > b.version else 1
        if criterion == "date":
            # Skip to the next criterion when either side lacks a date.
            if a.date is None or b.date is None or a.date == b.date:
                continue
            return -1 if a.date > b.date else 1
    if a.version is None or b.version is None or a.version == b.version:
        return 0
    return -1 if a.version > b.version else 1


def sort_releases(releases: Iterable[Release], criteria: Sequence[SortReleasesBy]) -> list[Release]:
    """Return releases ordered newest-first."""
    return sorted(releases, key=cmp_to_key(lambda a, b: _compare_releases(a, b, criteria)))


def _change_set_sort_key(change_set: ChangeSet, config: Config) -> tuple[int, str, bool, str]:
    component_id = change_set.component.id if change_set.component else ""
    return (
        config.category_order(change_set.category),
        change_set.category,
        change_set.component is not None,
        component_id,
    )


def order_change_sets(change_sets: Iterable[ChangeSet], config: Config) -> tuple[ChangeSet, ...]:
    """Order change sets by category display order, general before components."""
    return tuple(sorted(change_sets, key=lambda item: _change_set_sort_key(item, config)))

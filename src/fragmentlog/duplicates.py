"""Detect entries that were recorded in more than one release."""

from __future__ import annotations

from typing import Callable, Hashable, Optional, TypeVar

from .entries import Entry
from .releases import Project, Release

KeyT = TypeVar("KeyT", bound=Hashable)


def _chronological(project: Project) -> list[Release]:
    """Return releases oldest-first with the unreleased release last."""
    ordered = list(reversed(project.released))
    if project.unreleased is not None:
        ordered.append(project.unreleased)
    return ordered


def _collect(
    project: Project, key: Callable[[Entry], Optional[KeyT]]
) -> dict[KeyT, list[str]]:
    labels_by_key: dict[KeyT, list[str]] = {}
    for release in _chronological(project):
        for _, entry in release.iter_entries():
            value = key(entry)
            if value is None:
                continue
            labels = labels_by_key.setdefault(value, [])
            if release.label not in labels:
                labels.append(release.label)
    return labels_by_key


def find_duplicates(project: Project) -> dict[int, list[str]]:
    """Map every issue or PR number found in several releases to those releases.

    Labels are listed oldest-first with ``Unreleased`` last and keys ascend.
    Entries without a number are not considered.
    """
    found = _collect(project, lambda entry: entry.number)
    return {number: found[number] for number in sorted(found) if len(found[number]) > 1}


def find_duplicate_bodies(project: Project) -> dict[str, list[str]]:
    """Map entry texts that appear verbatim in several releases to those releases."""
    found = _collect(project, lambda entry: entry.body)
    return {body: found[body] for body in sorted(found) if len(found[body]) > 1}

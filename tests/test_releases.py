"""Tests for release model helpers."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from semver import Version

from fragmentlog.config import Config
from fragmentlog.loader import load_project
from fragmentlog.releases import (
    Project,
    Release,
    parse_release_version,
    sort_releases,
    split_release_date,
)


def test_parse_release_version_accepts_semver_with_prefix() -> None:
    assert parse_release_version("v1.2.3") == Version.parse("1.2.3")
    assert parse_release_version("0.10.0") == Version.parse("0.10.0")
    assert parse_release_version("v1.0.0-rc.1") == Version.parse("1.0.0-rc.1")
    assert parse_release_version("v1.2") is None
    assert parse_release_version("unreleased") is None
    assert parse_release_version("v1.2.3.4") is None


def test_split_release_date_consumes_first_line() -> None:
    parsed, summary = split_release_date("2023-02-28\nHighlights below.", ("%Y-%m-%d",))

    assert parsed == date(2023, 2, 28)
    assert summary == "Highlights below."


def test_split_release_date_tries_every_format() -> None:
    parsed, summary = split_release_date("28.02.2023", ("%Y-%m-%d", "%d.%m.%Y"))

    assert parsed == date(2023, 2, 28)
    assert summary is None


def test_split_release_date_leaves_plain_summaries_alone() -> None:
    assert split_release_date("Just words.", ("%Y-%m-%d",)) == (None, "Just words.")
    assert split_release_date(None, ("%Y-%m-%d",)) == (None, None)


def test_sort_releases_falls_back_to_version_without_dates() -> None:
    older = Release(label="v1.0.0", version=Version.parse("1.0.0"), date=date(2024, 3, 1))
    newer = Release(label="v2.0.0", version=Version.parse("2.0.0"))

    ordered = sort_releases([older, newer], ("date",))

    assert [release.label for release in ordered] == ["v2.0.0", "v1.0.0"]


def test_project_requires_unreleased_first() -> None:
    released = Release(label="v1.0.0", version=Version.parse("1.0.0"))
    unreleased = Release(label="Unreleased", is_unreleased=True)

    Project(root=Path("."), releases=(unreleased, released))
    with pytest.raises(ValueError):
        Project(root=Path("."), releases=(released, unreleased))
    with pytest.raises(ValueError):
        Project(root=Path("."), releases=(unreleased, unreleased))


def test_project_iter_entries_follows_render_order(tmp_path: Path) -> None:
    for relative, text in (
        ("unreleased/features/3-c.md", "C"),
        ("v0.1.0/bug-fixes/1-a.md", "A"),
        ("v0.1.0/features/2-b.md", "B"),
    ):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    project = load_project(tmp_path, Config())

    assert [
        (release.label, change_set.category, entry.body)
        for release, change_set, entry in project.iter_entries()
    ] == [
        ("Unreleased", "features", "C"),
        ("v0.1.0", "features", "B"),
        ("v0.1.0", "bug-fixes", "A"),
    ]

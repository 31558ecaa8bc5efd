"""Tests for init, add, and release filesystem operations."""

from __future__ import annotations

from pathlib import Path

import pytest

from fragmentlog.config import Component, ComponentsConfig, Config, load_config
from fragmentlog.errors import ChangelogError, ConfigError
from fragmentlog.scaffold import (
    add_unreleased_entry,
    entry_path,
    init_changelog_dir,
    merge_release_summary,
    prepare_release_dir,
)


def test_init_creates_unreleased_folder_and_config(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    epilogue = tmp_path / "HISTORY.md"
    epilogue.write_text("Older history.\n", encoding="utf-8")

    init_changelog_dir(root, Config(project_url="https://example.com/repo"), epilogue=epilogue)

    assert (root / "unreleased" / ".gitkeep").is_file()
    assert (root / "epilogue.md").read_text(encoding="utf-8") == "Older history.\n"
    assert load_config(root / "config.yaml").project_url == "https://example.com/repo"


def test_init_keeps_existing_config(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    init_changelog_dir(root, Config(wrap=60))

    init_changelog_dir(root, Config(wrap=100))

    assert load_config(root / "config.yaml").wrap == 60


def test_init_rejects_missing_prologue(tmp_path: Path) -> None:
    with pytest.raises(ChangelogError, match="does not exist"):
        init_changelog_dir(tmp_path / ".changelog", prologue=tmp_path / "missing.md")


def test_entry_path_uses_category_first_layout(tmp_path: Path) -> None:
    config = Config()

    assert entry_path(tmp_path, config, category="features", entry_id="12-x") == (
        tmp_path / "unreleased" / "features" / "12-x.md"
    )
    assert entry_path(
        tmp_path, config, category="features", entry_id="12-x", component="docs", release="v1.0.0"
    ) == (tmp_path / "v1.0.0" / "features" / "docs" / "12-x.md")


def test_add_writes_trimmed_body(tmp_path: Path) -> None:
    path = add_unreleased_entry(
        tmp_path, Config(), category="bug-fixes", entry_id="12-crash", body="\n Fixed it \n\n"
    )

    assert path == tmp_path / "unreleased" / "bug-fixes" / "12-crash.md"
    assert path.read_text(encoding="utf-8") == "Fixed it\n"


def test_add_refuses_to_overwrite(tmp_path: Path) -> None:
    add_unreleased_entry(tmp_path, Config(), category="features", entry_id="1-x", body="First")

    with pytest.raises(ChangelogError, match="already exists"):
        add_unreleased_entry(tmp_path, Config(), category="features", entry_id="1-x", body="Two")

    assert (tmp_path / "unreleased" / "features" / "1-x.md").read_text(encoding="utf-8") == (
        "First\n"
    )


def test_add_validates_category_and_component(tmp_path: Path) -> None:
    config = Config(components=ComponentsConfig(all={"docs": Component(id="docs", name="Docs")}))

    with pytest.raises(ConfigError):
        add_unreleased_entry(tmp_path, config, category="chores", entry_id="1", body="x")
    with pytest.raises(ConfigError):
        add_unreleased_entry(
            tmp_path, config, category="features", entry_id="1", body="x", component="web"
        )
    path = add_unreleased_entry(
        tmp_path, config, category="features", entry_id="1", body="x", component="docs"
    )
    assert path == tmp_path / "unreleased" / "features" / "docs" / "1.md"


@pytest.mark.parametrize("entry_id", ["", "  ", "../escape", ".hidden"])
def test_add_rejects_unsafe_ids(tmp_path: Path, entry_id: str) -> None:
    with pytest.raises(ChangelogError):
        add_unreleased_entry(tmp_path, Config(), category="features", entry_id=entry_id, body="x")


def test_release_moves_unreleased_entries(tmp_path: Path) -> None:
    init_changelog_dir(tmp_path)
    add_unreleased_entry(tmp_path, Config(), category="features", entry_id="1-x", body="Thing")

    target = prepare_release_dir(tmp_path, Config(), "v0.1.0", summary="2024-02-01\n\nFirst.")

    assert target == tmp_path / "v0.1.0"
    assert (target / "features" / "1-x.md").is_file()
    assert not (target / ".gitkeep").exists()
    assert (target / "summary.md").read_text(encoding="utf-8") == "2024-02-01\n\nFirst.\n"
    assert sorted(path.name for path in (tmp_path / "unreleased").iterdir()) == [".gitkeep"]


def test_release_keeps_summary_written_before_release(tmp_path: Path) -> None:
    init_changelog_dir(tmp_path)
    (tmp_path / "unreleased" / "summary.md").write_text("Big release notes.\n", encoding="utf-8")

    target = prepare_release_dir(tmp_path, Config(), "v1.0.0", summary="2024-01-02")

    assert (target / "summary.md").read_text(encoding="utf-8") == (
        "2024-01-02\n\nBig release notes.\n"
    )


def test_merge_release_summary_replaces_old_date_and_appends_text() -> None:
    merged = merge_release_summary("2023-12-01\nOld notes.", "2024-01-02\n\nNew notes.", Config())

    assert merged == "2024-01-02\n\nOld notes.\n\nNew notes."
    assert merge_release_summary("2023-12-01\nOld notes.", "Extra.", Config()) == (
        "2023-12-01\n\nOld notes.\n\nExtra."
    )
    assert merge_release_summary(None, None, Config()) is None


def test_release_validates_version_and_target(tmp_path: Path) -> None:
    init_changelog_dir(tmp_path)
    (tmp_path / "v0.1.0").mkdir()

    with pytest.raises(ChangelogError, match="not a valid release version"):
        prepare_release_dir(tmp_path, Config(), "next")
    with pytest.raises(ChangelogError, match="already exists"):
        prepare_release_dir(tmp_path, Config(), "v0.1.0")


def test_release_requires_unreleased_folder(tmp_path: Path) -> None:
    with pytest.raises(ChangelogError, match="no unreleased folder"):
        prepare_release_dir(tmp_path, Config(), "v0.1.0")

"""Integration-style tests for the fragmentlog CLI."""

from __future__ import annotations

from pathlib import Path

import click
import pytest
import yaml
from click.testing import CliRunner, Result

from fragmentlog import __version__
from fragmentlog.cli import cli, main
from fragmentlog.config import load_config


def write_fragment(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_yaml(path: Path, content: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(content, sort_keys=False), encoding="utf-8")


def invoke(root: Path, *args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["--quiet", "--path", str(root), *args])


def test_cli_package_exports_resolve() -> None:
    import fragmentlog.cli as cli_package

    assert "INFO_PREFIX" not in cli_package.__all__
    for name in cli_package.__all__:
        assert hasattr(cli_package, name), name


def test_cli_version_option(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--version"])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.strip() == __version__


def test_build_prints_changelog(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/features/3-thing.md", "Added a thing")
    write_yaml(root / "config.yaml", {"project_url": "https://github.com/acme/widget"})

    result = invoke(root, "build")

    assert result.exit_code == 0, result.output
    assert result.output == (
        "# CHANGELOG\n"
        "\n"
        "## v0.1.0\n"
        "\n"
        "### FEATURES\n"
        "\n"
        "- Added a thing ([\\#3](https://github.com/acme/widget/issues/3))\n"
    )


def test_build_writes_output_file(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/features/3-thing.md", "Added a thing")
    output = tmp_path / "CHANGELOG.md"

    result = invoke(root, "build", "--output", str(output))

    assert result.exit_code == 0, result.output
    assert output.read_text(encoding="utf-8").startswith("# CHANGELOG\n\n## v0.1.0\n")


def test_build_unreleased_fails_without_changes(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    (root / "unreleased").mkdir(parents=True)
    write_fragment(root, "v0.1.0/features/3-thing.md", "Added a thing")

    result = invoke(root, "build", "--unreleased")

    assert result.exit_code == 1
    assert "no unreleased changes" in result.output
    assert "# CHANGELOG" not in result.output


def test_build_rejects_conflicting_modes(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    root.mkdir()

    result = invoke(root, "build", "--unreleased", "--released-only")

    assert result.exit_code == 2


def test_build_reports_structural_errors(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/features/3-thing.md", "Added a thing")
    stray = write_fragment(root, "v0.1.0/features/notes.txt", "Oops")

    result = invoke(root, "build")

    assert result.exit_code == 1
    assert str(stray) in result.output
    assert "# CHANGELOG" not in result.output


def test_main_defaults_to_build(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/features/3-thing.md", "Added a thing")

    exit_code = main(["--quiet", "--path", str(root)])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "- Added a thing" in captured.out


def test_main_returns_error_status(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = tmp_path / ".changelog"
    root.mkdir()

    exit_code = main(["--quiet", "--path", str(root), "build", "--unreleased"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "no unreleased changes" in captured.err


def test_find_duplicates_lists_releases(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/bug-fixes/42-x.md", "Fixed it")
    write_fragment(root, "v0.2.0/bug-fixes/42-x.md", "Fixed it again")

    result = invoke(root, "find-duplicates")
    strict = invoke(root, "find-duplicates", "--strict")

    assert result.exit_code == 0, result.output
    assert result.output == "#42: v0.1.0, v0.2.0\n"
    assert strict.exit_code == 1


def test_find_duplicates_strict_passes_when_clean(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/bug-fixes/41-x.md", "Fixed it")
    write_fragment(root, "v0.2.0/bug-fixes/42-x.md", "Fixed something else")

    result = invoke(root, "find-duplicates", "--strict")

    assert result.exit_code == 0, result.output
    assert result.output == ""


def test_find_duplicates_can_compare_bodies(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    write_fragment(root, "v0.1.0/features/rework.md", "Reworked the parser")
    write_fragment(root, "v0.2.0/features/rework.md", "Reworked the parser")

    plain = invoke(root, "find-duplicates")
    bodies = invoke(root, "find-duplicates", "--bodies")

    assert plain.output == ""
    assert bodies.output == "Reworked the parser: v0.1.0, v0.2.0\n"


def test_add_release_and_build(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    assert invoke(root, "init").exit_code == 0

    add_result = invoke(
        root, "add", "--category", "features", "--id", "12", "--slug", "New parser", "-m", "Parser"
    )
    assert add_result.exit_code == 0, add_result.output
    assert (root / "unreleased" / "features" / "12-new-parser.md").is_file()

    preview = invoke(root, "build", "--unreleased")
    assert preview.output == "## Unreleased\n\n### FEATURES\n\n- Parser\n"

    release_result = invoke(root, "release", "v0.1.0", "--date", "2024-03-01")
    assert release_result.exit_code == 0, release_result.output

    built = invoke(root, "build")
    assert built.output == (
        "# CHANGELOG\n\n## v0.1.0 (2024-03-01)\n\n### FEATURES\n\n- Parser\n"
    )
    assert invoke(root, "build", "--unreleased").exit_code == 1


def test_add_rejects_unknown_category(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"

    result = invoke(root, "add", "--category", "chores", "--id", "1", "-m", "Thing")

    assert result.exit_code == 1
    assert "Unknown category 'chores'" in result.output
    assert not root.exists()


def test_add_uses_editor_without_message(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root = tmp_path / ".changelog"
    monkeypatch.setattr(click, "edit", lambda text: text + "Edited body\n")

    result = invoke(root, "add", "--category", "bug-fixes", "--id", "5")

    assert result.exit_code == 0, result.output
    path = root / "unreleased" / "bug-fixes" / "5.md"
    assert path.read_text(encoding="utf-8") == "Edited body\n"


def test_add_aborts_on_empty_editor(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = tmp_path / ".changelog"
    monkeypatch.setattr(click, "edit", lambda text: text)

    result = invoke(root, "add", "--category", "bug-fixes", "--id", "5")

    assert result.exit_code == 1
    assert not (root / "unreleased" / "bug-fixes" / "5.md").exists()


def test_init_records_project_url(tmp_path: Path) -> None:
    root = tmp_path / ".changelog"
    prologue = tmp_path / "intro.md"
    prologue.write_text("Welcome.\n", encoding="utf-8")

    result = invoke(
        root, "init", "--project-url", "https://github.com/acme/widget/", "--prologue", str(prologue)
    )

    assert result.exit_code == 0, result.output
    assert (root / "unreleased" / ".gitkeep").is_file()
    assert (root / "prologue.md").read_text(encoding="utf-8") == "Welcome.\n"
    assert load_config(root / "config.yaml").project_url == "https://github.com/acme/widget"

    again = invoke(root, "init", "--project-url", "https://gitlab.com/acme/widget")
    assert again.exit_code == 0, again.output
    assert load_config(root / "config.yaml").project_url == "https://gitlab.com/acme/widget"

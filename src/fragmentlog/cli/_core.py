"""Core CLI infrastructure: context, the command group, and the entry point."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as metadata_version
from pathlib import Path
from typing import Optional

import click

from .. import __version__ as package_version
from ..config import CHANGELOG_DIRECTORY_NAME, Config, default_config_path, load_config_or_default
from ..loader import load_project
from ..releases import Project
from ..utils import abort_on_user_interrupt, configure_logging, log_debug

__all__ = [
    "CLIContext",
    "DEFAULT_COMMAND",
    "VERSION_FLAGS",
    "create_cli_context",
    "_create_cli_group",
    "main",
]

VERSION_FLAGS = {"--version", "-V"}
DEFAULT_COMMAND = "build"


def _resolve_cli_version() -> str:
    try:
        return metadata_version("fragmentlog")
    except PackageNotFoundError:
        return package_version


@dataclass
class CLIContext:
    """Shared command context."""

    changelog_root: Path
    config_path: Path
    _config: Optional[Config] = None

    def ensure_config(self) -> Config:
        if self._config is None:
            self._config = load_config_or_default(self.config_path)
        return self._config

    def reset_config(self, config: Config) -> None:
        self._config = config

    def load_project(self) -> Project:
        """Read the changelog tree from disk. Nothing is cached between calls."""
        return load_project(self.changelog_root, self.ensure_config())


def create_cli_context(
    *,
    path: Path | None = None,
    config: Optional[Path] = None,
    debug: bool = False,
    quiet: bool = False,
) -> CLIContext:
    """Return a CLIContext using the same resolution logic as the CLI entry point."""

    configure_logging(debug=debug, quiet=quiet)
    changelog_root = path if path is not None else Path(CHANGELOG_DIRECTORY_NAME)
    config_path = config if config is not None else default_config_path(changelog_root)
    log_debug(f"resolved changelog directory: {changelog_root}")
    log_debug(f"using config path: {config_path}")
    return CLIContext(changelog_root=changelog_root, config_path=config_path)


def _create_cli_group() -> click.Group:
    """Create the main CLI group. Commands are registered by the package."""

    @click.group(context_settings={"help_option_names": ["-h", "--help"]})
    @click.option(
        "--path",
        "-p",
        type=click.Path(path_type=Path, file_okay=False),
        help=f"Changelog directory (default: {CHANGELOG_DIRECTORY_NAME}).",
    )
    @click.option(
        "--config",
        type=click.Path(path_type=Path, dir_okay=False),
        help="Path to an explicit config YAML file.",
    )
    @click.option("--debug", "-d", is_flag=True, help="Enable debug logging.")
    @click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
    @click.pass_context
    def _cli(
        ctx: click.Context,
        path: Path | None,
        config: Optional[Path],
        debug: bool,
        quiet: bool,
    ) -> None:
        """Build a Markdown changelog from a directory of entry fragments."""

        ctx.obj = create_cli_context(path=path, config=config, debug=debug, quiet=quiet)

    return click.version_option(version=_resolve_cli_version())(_cli)


def main(argv: list[str] | None = None) -> int:
    """Entry point for console_scripts."""
    from . import cli

    args = list(argv) if argv is not None else list(sys.argv[1:])

    if any(flag in args for flag in VERSION_FLAGS):
        click.echo(_resolve_cli_version())
        return 0

    # Without a command, build the changelog.
    help_requested = any(arg in {"-h", "--help"} for arg in args)
    if not help_requested and not any(arg in cli.commands for arg in args):
        args.append(DEFAULT_COMMAND)

    try:
        result = cli.main(args=args, prog_name="fragmentlog", standalone_mode=False)
    except click.ClickException as exc:
        exc.show(file=sys.stderr)
        exit_code = getattr(exc, "exit_code", 1)
        return exit_code if isinstance(exit_code, int) else 1
    except (click.exceptions.Abort, KeyboardInterrupt) as exc:
        try:
            abort_on_user_interrupt(exc)
        except click.exceptions.Exit as exit_exc:
            exit_code = getattr(exit_exc, "exit_code", 130)
            return exit_code if isinstance(exit_code, int) else 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    return result if isinstance(result, int) else 0

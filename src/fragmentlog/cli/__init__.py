"""CLI package for fragmentlog.

This package contains the modular CLI implementation:
- _core.py: CLIContext, the command group, main entry point
- _build.py: build and find-duplicates commands
- _add.py: add command for creating entries
- _release.py: init and release commands
"""

from __future__ import annotations

from ._core import (
    CLIContext,
    DEFAULT_COMMAND,
    VERSION_FLAGS,
    create_cli_context,
    _create_cli_group,
    main,
)
from ._build import (
    build_changelog,
    build_cmd,
    run_find_duplicates,
    find_duplicates_cmd,
)
from ._add import (
    create_entry,
    add,
)
from ._release import (
    create_release,
    release_cmd,
    initialize_changelog,
    init_cmd,
)

# Create the main CLI group
cli = _create_cli_group()

# Register all commands with the cli group
cli.add_command(build_cmd)
cli.add_command(find_duplicates_cmd)
cli.add_command(add)
cli.add_command(release_cmd)
cli.add_command(init_cmd)


__all__ = [
    # Core
    "cli",
    "main",
    "CLIContext",
    "DEFAULT_COMMAND",
    "VERSION_FLAGS",
    "create_cli_context",
    # Build
    "build_changelog",
    "build_cmd",
    "run_find_duplicates",
    "find_duplicates_cmd",
    # Add
    "create_entry",
    "add",
    # Release
    "create_release",
    "release_cmd",
    "initialize_changelog",
    "init_cmd",
]

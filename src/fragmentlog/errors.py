"""Exception taxonomy for loading and rendering changelogs."""

from __future__ import annotations

from pathlib import Path

from click import ClickException


class ChangelogError(ClickException):
    """Base class for all fatal changelog errors.

    Deriving from ``ClickException`` lets the command line print the message
    and exit with a non-zero status.
    """


class StructuralError(ChangelogError):
    """The changelog directory contains unrecognized or ambiguous content."""


class InvalidDirectoryStructureError(StructuralError):
    """A specific path violates the expected directory layout."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid changelog structure at {path}: {reason}")


class MissingDataError(ChangelogError):
    """A request needs data the changelog does not contain."""


class NoUnreleasedChangesError(MissingDataError):
    """The unreleased release is absent or has no entries."""

    def __init__(self, message: str = "no unreleased changes") -> None:
        super().__init__(message)


class ChangelogReadError(ChangelogError):
    """A file or directory inside the changelog could not be read."""

    subject = "path"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to read {self.subject} {path}: {reason}")


class MalformedEntryError(ChangelogReadError):
    """An entry file could not be read."""

    subject = "entry"


class ConfigError(ChangelogError):
    """The configuration is invalid."""


class SkippedEntry(Exception):
    """Signals an empty fragment file that is left out of its change set.

    Not an error: the loader catches it and moves on.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"skipping empty entry {path}")

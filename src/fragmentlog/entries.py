"""Entry model: one fragment file per change."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import SortEntriesBy
from .errors import MalformedEntryError, SkippedEntry
from .utils import log_debug

ENTRY_FILENAME_SEPARATOR = "-"


@dataclass(frozen=True)
class Entry:
    """Representation of a changelog entry file."""

    entry_id: str
    category: str
    body: str
    path: Path
    component: Optional[str] = None
    number: Optional[int] = None

    @property
    def filename(self) -> str:
        return self.path.name


def parse_entry_number(entry_id: str) -> Optional[int]:
    """Extract the issue or pull request number from an entry identifier.

    The identifier prefix before the first separator is the entry id. Numeric
    prefixes (``0128-foo`` or ``7``) populate the number; anything else is an
    opaque identifier and yields ``None``.
    """
    prefix, _, _ = entry_id.partition(ENTRY_FILENAME_SEPARATOR)
    if not prefix.isdigit():
        return None
    number = int(prefix)
    return number if number > 0 else None


def read_entry(path: Path, category: str, component: Optional[str] = None) -> Entry:
    """Parse a fragment file into an Entry.

    Raises ``MalformedEntryError`` when the file cannot be read and
    ``SkippedEntry`` when it holds nothing but whitespace.
    """
    log_debug(f"loading entry from {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedEntryError(path, f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise MalformedEntryError(path, exc.strerror or str(exc)) from exc
    body = content.strip()
    if not body:
        raise SkippedEntry(path)
    entry_id = path.stem
    return Entry(
        entry_id=entry_id,
        category=category,
        body=body,
        path=path,
        component=component,
        number=parse_entry_number(entry_id),
    )


def _id_sort_key(entry: Entry) -> tuple[bool, int]:
    """Numbered entries first in ascending order, then unnumbered ones."""
    return entry.number is None, entry.number or 0


def sort_entries(entries: Iterable[Entry], sort_by: SortEntriesBy = "id") -> list[Entry]:
    """Return entries ordered by the configured policy.

    ``sorted`` is stable, so entries with equal keys keep their discovery order.
    """
    if sort_by == "entry-text":
        return sorted(entries, key=lambda entry: entry.body)
    return sorted(entries, key=_id_sort_key)


def read_entries_sorted(
    paths: Iterable[Path],
    category: str,
    component: Optional[str],
    sort_by: SortEntriesBy,
) -> list[Entry]:
    """Read every fragment in ``paths``, skipping empty ones, and order the result."""
    entries: list[Entry] = []
    for path in paths:
        try:
            entries.append(read_entry(path, category, component))
        except SkippedEntry as skipped:
            log_debug(str(skipped))
    return sort_entries(entries, sort_by)

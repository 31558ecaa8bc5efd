"""Markdown rendering for loaded changelog projects."""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional, Sequence

import mdformat

from .config import Component, Config
from .entries import Entry
from .errors import NoUnreleasedChangesError
from .releases import ChangeSet, Project, Release

MARKDOWN_EXTENSIONS = frozenset({"tables"})

_LIST_MARKER_PATTERN = re.compile(r"^(?P<indent> *)[-*+](?= |$)")
_BLOCK_START_PATTERN = re.compile(r"^ *(?:[-*+]|\d+[.)])(?: |$)")
_FENCE_PATTERN = re.compile(r"^\s*(?P<fence>`{3,}|~{3,})")
_ISSUE_HASH_PATTERN = re.compile(r"(?<![\\&])#(?=\d)")
# Code spans, inline link destinations, autolinks, and bare URLs.
_PROTECTED_PATTERN = re.compile(
    r"(?P<code>`+).+?(?P=code)"
    r"|\]\([^)]*\)"
    r"|<[^<>\s]+>"
    r"|\b[a-zA-Z][a-zA-Z0-9+.-]*://\S+"
)
_URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def _escape_segment(text: str) -> str:
    return _ISSUE_HASH_PATTERN.sub(r"\\#", text)


def escape_line(line: str) -> str:
    """Escape ``#`` before digits outside code spans, link destinations and URLs."""
    parts: list[str] = []
    position = 0
    for match in _PROTECTED_PATTERN.finditer(line):
        parts.append(_escape_segment(line[position : match.start()]))
        parts.append(match.group(0))
        position = match.end()
    parts.append(_escape_segment(line[position:]))
    return "".join(parts)


def _map_outside_fences(lines: Iterable[str], transform: Callable[[str], str]) -> list[str]:
    result: list[str] = []
    fence: Optional[str] = None
    for line in lines:
        match = _FENCE_PATTERN.match(line)
        if fence is not None:
            result.append(line)
            if match and match.group("fence").startswith(fence):
                fence = None
            continue
        if match:
            fence = match.group("fence")
            result.append(line)
            continue
        result.append(transform(line))
    return result


def escape_issue_references(text: str) -> str:
    """Escape issue-like ``#<digits>`` sequences so renderers do not auto-link them.

    Fenced code blocks are left untouched.
    """
    return "\n".join(_map_outside_fences(text.split("\n"), escape_line))


def links_to_number(body: str, number: int) -> bool:
    """Return True when ``body`` already links to issue or pull request ``number``."""
    patterns = (
        rf"/(?:issues|pull|pulls|merge_requests)/{number}(?!\d)",
        rf"\[\\?#{number}\]",
    )
    return any(re.search(pattern, body) for pattern in patterns)


def issue_link_suffix(entry: Entry, config: Config) -> str:
    """Return the ``([\\#n](url))`` suffix for an entry, or an empty string."""
    if entry.number is None or not config.project_url:
        return ""
    if links_to_number(entry.body, entry.number):
        return ""
    return f" ([\\#{entry.number}]({config.project_url}/issues/{entry.number}))"


def _as_list_item(body: str) -> str:
    """Turn a body into Markdown whose first block is a list item."""
    head, *rest = body.split("\n")
    if _LIST_MARKER_PATTERN.match(head):
        return body
    return "\n".join([f"- {head}", *(f"  {line}" if line.strip() else "" for line in rest)])


def _is_text_line(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not (
        _BLOCK_START_PATTERN.match(line)
        or _FENCE_PATTERN.match(line)
        or stripped.startswith(("|", ">"))
    )


def _attach_to_first_item(markdown: str, suffix: str) -> str:
    """Append ``suffix`` to the last paragraph line of the first list item."""
    lines = markdown.split("\n")
    if not suffix or not _is_text_line(lines[0][2:]):
        return markdown
    end = 1
    while end < len(lines) and _is_text_line(lines[end]):
        end += 1
    lines[end - 1] = f"{lines[end - 1]}{suffix}"
    return "\n".join(lines)


def normalize_markdown(text: str, wrap: int) -> list[str]:
    """Format Markdown with ``mdformat``, wrapping paragraphs to ``wrap`` columns."""
    formatted = mdformat.text(
        text,
        options={"wrap": wrap, "number": True},
        extensions=MARKDOWN_EXTENSIONS,
    )
    return formatted.rstrip("\n").split("\n")


def format_entry(entry: Entry, config: Config) -> list[str]:
    """Render one entry as bullet lines wrapped to ``config.wrap`` columns.

    A body that does not open with a list item becomes one. Bullet markers
    follow ``config.bullet_style`` and fenced code is kept verbatim.
    """
    markdown = _attach_to_first_item(_as_list_item(entry.body), issue_link_suffix(entry, config))
    marker = rf"\g<indent>{config.bullet_style}"

    def restyle(line: str) -> str:
        return escape_line(_LIST_MARKER_PATTERN.sub(marker, line, count=1))

    return _map_outside_fences(normalize_markdown(markdown, config.wrap), restyle)


def indent_lines(lines: Iterable[str], width: int) -> list[str]:
    """Prefix every non-blank line with ``width`` spaces."""
    padding = " " * width
    return [f"{padding}{line}" if line else line for line in lines]


def component_link_target(path: str) -> str:
    """Return a link target for a component path, relative paths prefixed with ``./``."""
    if path.startswith(("/", "./", "../", "#")) or _URL_SCHEME_PATTERN.match(path):
        return path
    return f"./{path}"


def format_component_label(component: Component, config: Config) -> str:
    if component.path:
        return f"{config.bullet_style} [{component.name}]({component_link_target(component.path)})"
    return f"{config.bullet_style} {component.name}"


def _format_entries(entries: Sequence[Entry], config: Config) -> list[str]:
    lines: list[str] = []
    for entry in entries:
        lines.extend(format_entry(entry, config))
    return lines


def render_category(change_sets: Sequence[ChangeSet], config: Config) -> list[str]:
    """Render the change sets of one category as Markdown paragraphs."""
    general = next((change_set for change_set in change_sets if change_set.is_general), None)
    scoped = [change_set for change_set in change_sets if not change_set.is_general]
    paragraphs = [f"### {change_sets[0].title}"]
    if general is not None and general.summary:
        paragraphs.append(escape_issue_references(general.summary))
    if not scoped:
        if general is not None and general.entries:
            paragraphs.append("\n".join(_format_entries(general.entries, config)))
        return paragraphs

    indent = config.components.entry_indent
    lines: list[str] = []
    if general is not None and general.entries:
        lines.append(f"{config.bullet_style} {config.components.general_entries_title}")
        lines.extend(indent_lines(_format_entries(general.entries, config), indent))
    for change_set in scoped:
        assert change_set.component is not None
        lines.append(format_component_label(change_set.component, config))
        if change_set.summary:
            summary = escape_issue_references(change_set.summary)
            lines.extend(indent_lines(summary.split("\n"), indent))
        lines.extend(indent_lines(_format_entries(change_set.entries, config), indent))
    paragraphs.append("\n".join(lines))
    return paragraphs


def release_heading(release: Release, config: Config) -> str:
    """Return the heading line for a release."""
    if release.is_unreleased:
        return config.unreleased.heading
    heading = f"## {release.label}"
    if release.date is not None:
        heading = f"{heading} ({release.date.isoformat()})"
    return heading


def render_release(release: Release, config: Config) -> list[str]:
    """Render a release as a list of Markdown paragraphs."""
    paragraphs = [release_heading(release, config)]
    if release.summary:
        paragraphs.append(escape_issue_references(release.summary))
    if not release.has_entries:
        paragraphs.append(config.empty_release_msg)
        return paragraphs
    for _, change_sets in release.grouped_change_sets():
        paragraphs.extend(render_category(change_sets, config))
    return paragraphs


def _join(paragraphs: Iterable[str]) -> str:
    return "\n\n".join(paragraph for paragraph in paragraphs if paragraph) + "\n"


def render_changelog(
    project: Project, config: Config, *, include_unreleased: bool = True
) -> str:
    """Render the full changelog document."""
    releases = [
        release
        for release in project.releases
        if include_unreleased or not release.is_unreleased
    ]
    if not any(release.has_entries for release in releases):
        return _join([config.heading, config.empty_msg])

    paragraphs = [config.heading]
    if project.prologue:
        paragraphs.append(project.prologue)
    for release in releases:
        if release.is_unreleased and not release.has_entries:
            continue
        paragraphs.extend(render_release(release, config))
    if project.epilogue:
        paragraphs.append(project.epilogue)
    return _join(paragraphs)


def render_released(project: Project, config: Config) -> str:
    """Render the changelog without the unreleased section."""
    return render_changelog(project, config, include_unreleased=False)


def render_unreleased(project: Project, config: Config) -> str:
    """Render only the unreleased changes.

    Raises ``NoUnreleasedChangesError`` when there is nothing to release.
    """
    release = project.unreleased
    if release is None or not release.has_entries:
        raise NoUnreleasedChangesError()
    return _join(render_release(release, config))

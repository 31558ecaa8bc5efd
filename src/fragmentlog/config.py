"""Configuration helpers for fragmentlog."""

from __future__ import annotations

from collections.abc import Iterable as IterableABC
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Literal, Mapping, MutableMapping, Optional, cast

import yaml

from .errors import ConfigError
from .utils import log_debug, log_info

BulletStyle = Literal["-", "*"]
SortEntriesBy = Literal["id", "entry-text"]
SortReleasesBy = Literal["version", "date"]

CONFIG_RELATIVE_PATH = Path("config.yaml")
CHANGELOG_DIRECTORY_NAME = ".changelog"

BULLET_STYLE_CHOICES: tuple[BulletStyle, ...] = ("-", "*")
SORT_ENTRIES_CHOICES: tuple[SortEntriesBy, ...] = ("id", "entry-text")
SORT_RELEASES_CHOICES: tuple[SortReleasesBy, ...] = ("version", "date")

DEFAULT_WRAP = 80
DEFAULT_HEADING = "# CHANGELOG"
DEFAULT_EMPTY_MSG = "Nothing to see here! Add some entries to get started."
DEFAULT_EMPTY_RELEASE_MSG = "Nothing to report."
DEFAULT_CATEGORIES = ("breaking-changes", "features", "improvements", "bug-fixes")


def default_config_path(changelog_root: Path) -> Path:
    """Return the default config path for a changelog directory."""
    return changelog_root / CONFIG_RELATIVE_PATH


def category_title(category_id: str) -> str:
    """Derive a section title from a category directory name."""
    return category_id.replace("-", " ").replace("_", " ").upper()


def _default_categories() -> dict[str, str]:
    return {category: category_title(category) for category in DEFAULT_CATEGORIES}


@dataclass(frozen=True)
class Component:
    """A named sub-module of the host project that entries can belong to."""

    id: str
    name: str
    path: Optional[str] = None


@dataclass
class UnreleasedConfig:
    """Where unreleased entries live and how they are titled."""

    folder: str = "unreleased"
    heading: str = "## Unreleased"


@dataclass
class ChangeSetsConfig:
    """File conventions and ordering inside change set directories."""

    summary_filename: str = "summary.md"
    entry_ext: str = "md"
    sort_entries_by: SortEntriesBy = "id"


@dataclass
class ComponentsConfig:
    """Component registry and how grouped entries are displayed."""

    general_entries_title: str = "General"
    entry_indent: int = 2
    all: dict[str, Component] = field(default_factory=dict)


@dataclass
class Config:
    """Structured representation of the changelog config."""

    project_url: Optional[str] = None
    wrap: int = DEFAULT_WRAP
    heading: str = DEFAULT_HEADING
    bullet_style: BulletStyle = "-"
    empty_msg: str = DEFAULT_EMPTY_MSG
    empty_release_msg: str = DEFAULT_EMPTY_RELEASE_MSG
    prologue_filename: str = "prologue.md"
    epilogue_filename: str = "epilogue.md"
    sort_releases_by: tuple[SortReleasesBy, ...] = ("version",)
    release_date_formats: tuple[str, ...] = ("%Y-%m-%d",)
    unreleased: UnreleasedConfig = field(default_factory=UnreleasedConfig)
    change_sets: ChangeSetsConfig = field(default_factory=ChangeSetsConfig)
    categories: dict[str, str] = field(default_factory=_default_categories)
    components: ComponentsConfig = field(default_factory=ComponentsConfig)

    @property
    def entry_suffix(self) -> str:
        """Return the entry file suffix including the leading dot."""
        return f".{self.change_sets.entry_ext}"

    def category_order(self, category_id: str) -> int:
        """Return the display position of a category."""
        try:
            return list(self.categories).index(category_id)
        except ValueError:
            return len(self.categories)

    def get_component(self, component_id: str) -> Optional[Component]:
        return self.components.all.get(component_id)

    def validate_category(self, category_id: str) -> None:
        """Ensure a category is configured before entries are created against it."""
        if category_id not in self.categories:
            allowed = ", ".join(self.categories)
            raise ConfigError(f"Unknown category '{category_id}'. Allowed categories: {allowed}")

    def validate_component(self, component_id: str) -> None:
        """Ensure a component is registered before entries are created against it."""
        if component_id in self.components.all:
            return
        allowed = ", ".join(self.components.all) or "none"
        raise ConfigError(
            f"Component '{component_id}' is not defined. Registered components: {allowed}"
        )


def normalize_string_choices(values: object | None) -> tuple[str, ...]:
    """Return a tuple of distinct, stripped strings from user-provided config values."""
    if values is None:
        return ()
    if isinstance(values, str):
        candidate = values.strip()
        return (candidate,) if candidate else ()
    normalized: list[str] = []
    if isinstance(values, IterableABC):
        candidates = cast(Iterable[object], values)
    else:
        candidate = str(values).strip()
        return (candidate,) if candidate else ()
    for item in candidates:
        text = str(item).strip()
        if not text or text in normalized:
            continue
        normalized.append(text)
    return tuple(normalized)


def parse_categories(values: object | None) -> dict[str, str]:
    """Parse categories from config, supporting both list and dict formats.

    Accepts:
      - A list of ids: ["features", "bug-fixes"] -> {"features": "FEATURES", ...}
      - A dict mapping ids to titles: {features: "New stuff"}
      - None: the default categories
    """
    if values is None:
        return _default_categories()
    if isinstance(values, Mapping):
        result: dict[str, str] = {}
        for key, value in values.items():
            category = str(key).strip()
            if not category:
                continue
            title = str(value).strip() if value else ""
            result[category] = title or category_title(category)
        return result
    names = normalize_string_choices(values)
    return {name: category_title(name) for name in names}


def parse_components(values: object | None) -> dict[str, Component]:
    """Parse the component registry.

    Accepts:
      - A dict mapping ids to tables: {docs: {name: "Documentation", path: "docs"}}
      - A dict mapping ids to display names: {docs: "Documentation"}
      - A list of ids: ["docs", "cli"] (display name equals the id)
      - None: -> {}
    """
    if values is None:
        return {}
    if isinstance(values, Mapping):
        result: dict[str, Component] = {}
        for key, value in values.items():
            component_id = str(key).strip()
            if not component_id:
                continue
            if isinstance(value, Mapping):
                name = str(value.get("name") or component_id).strip()
                path_raw = value.get("path")
                path = str(path_raw).strip() if path_raw else None
            else:
                name = str(value).strip() if value else component_id
                path = None
            result[component_id] = Component(id=component_id, name=name, path=path or None)
        return result
    names = normalize_string_choices(values)
    return {name: Component(id=name, name=name) for name in names}


def _require_mapping(raw: object, option: str) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Config option '{option}' must be a mapping.")
    return raw


def _optional_str(raw: Mapping[str, Any], key: str, default: str, *, option: str) -> str:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"Config option '{option}' must be a string.")
    return value


def _choice(value: object, choices: tuple[str, ...], option: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"Config option '{option}' must be a string.")
    normalized = value.strip().lower()
    if normalized not in choices:
        allowed = ", ".join(choices)
        raise ConfigError(f"Config option '{option}' must be one of: {allowed}")
    return normalized


def parse_config(raw: Mapping[str, Any]) -> Config:
    """Build a Config from a parsed YAML mapping."""
    defaults = Config()

    project_url_raw = raw.get("project_url")
    project_url = str(project_url_raw).strip().rstrip("/") if project_url_raw else None

    wrap_raw = raw.get("wrap", DEFAULT_WRAP)
    if isinstance(wrap_raw, bool) or not isinstance(wrap_raw, int) or wrap_raw <= 0:
        raise ConfigError("Config option 'wrap' must be a positive integer.")

    bullet_style: BulletStyle = "-"
    if raw.get("bullet_style") is not None:
        bullet_raw = raw["bullet_style"]
        if bullet_raw not in BULLET_STYLE_CHOICES:
            raise ConfigError("Config option 'bullet_style' must be one of: -, *")
        bullet_style = cast(BulletStyle, bullet_raw)

    sort_releases_by = defaults.sort_releases_by
    if raw.get("sort_releases_by") is not None:
        criteria = normalize_string_choices(raw["sort_releases_by"])
        sort_releases_by = tuple(
            cast(SortReleasesBy, _choice(value, SORT_RELEASES_CHOICES, "sort_releases_by"))
            for value in criteria
        )

    release_date_formats = defaults.release_date_formats
    if raw.get("release_date_formats") is not None:
        release_date_formats = (
            normalize_string_choices(raw["release_date_formats"]) or defaults.release_date_formats
        )

    unreleased_raw = _require_mapping(raw.get("unreleased"), "unreleased")
    unreleased = UnreleasedConfig(
        folder=_optional_str(
            unreleased_raw, "folder", UnreleasedConfig.folder, option="unreleased.folder"
        ),
        heading=_optional_str(
            unreleased_raw, "heading", UnreleasedConfig.heading, option="unreleased.heading"
        ),
    )

    change_sets_raw = _require_mapping(raw.get("change_sets"), "change_sets")
    sort_entries_by: SortEntriesBy = "id"
    if change_sets_raw.get("sort_entries_by") is not None:
        sort_entries_by = cast(
            SortEntriesBy,
            _choice(
                change_sets_raw["sort_entries_by"],
                SORT_ENTRIES_CHOICES,
                "change_sets.sort_entries_by",
            ),
        )
    entry_ext = _optional_str(
        change_sets_raw, "entry_ext", ChangeSetsConfig.entry_ext, option="change_sets.entry_ext"
    ).lstrip(".")
    if not entry_ext:
        raise ConfigError("Config option 'change_sets.entry_ext' must not be empty.")
    change_sets = ChangeSetsConfig(
        summary_filename=_optional_str(
            change_sets_raw,
            "summary_filename",
            ChangeSetsConfig.summary_filename,
            option="change_sets.summary_filename",
        ),
        entry_ext=entry_ext,
        sort_entries_by=sort_entries_by,
    )

    components_raw = _require_mapping(raw.get("components"), "components")
    entry_indent = components_raw.get("entry_indent", ComponentsConfig.entry_indent)
    if isinstance(entry_indent, bool) or not isinstance(entry_indent, int) or entry_indent < 0:
        raise ConfigError("Config option 'components.entry_indent' must be a non-negative integer.")
    components = ComponentsConfig(
        general_entries_title=_optional_str(
            components_raw,
            "general_entries_title",
            ComponentsConfig.general_entries_title,
            option="components.general_entries_title",
        ),
        entry_indent=entry_indent,
        all=parse_components(components_raw.get("all")),
    )

    categories = parse_categories(raw.get("categories"))
    if not categories:
        raise ConfigError("Config option 'categories' must name at least one category.")
    overlap = sorted(set(categories) & set(components.all))
    if overlap:
        raise ConfigError(
            f"Names used both as categories and components: {', '.join(overlap)}"
        )

    return Config(
        project_url=project_url,
        wrap=wrap_raw,
        heading=_optional_str(raw, "heading", DEFAULT_HEADING, option="heading"),
        bullet_style=bullet_style,
        empty_msg=_optional_str(raw, "empty_msg", DEFAULT_EMPTY_MSG, option="empty_msg"),
        empty_release_msg=_optional_str(
            raw, "empty_release_msg", DEFAULT_EMPTY_RELEASE_MSG, option="empty_release_msg"
        ),
        prologue_filename=_optional_str(
            raw, "prologue_filename", defaults.prologue_filename, option="prologue_filename"
        ),
        epilogue_filename=_optional_str(
            raw, "epilogue_filename", defaults.epilogue_filename, option="epilogue_filename"
        ),
        sort_releases_by=sort_releases_by,
        release_date_formats=release_date_formats,
        unreleased=unreleased,
        change_sets=change_sets,
        categories=categories,
        components=components,
    )


def load_config(path: Path) -> Config:
    """Load the configuration from disk."""
    with path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc
    if not isinstance(raw, MutableMapping):
        raise ConfigError(f"Config root in {path} must be a mapping")
    return parse_config(raw)


def load_config_or_default(path: Path) -> Config:
    """Load the configuration, falling back to defaults when the file is missing."""
    log_debug(f"loading configuration from {path}")
    if not path.exists():
        log_info(f"no configuration file at {path}, assuming defaults.")
        return Config()
    return load_config(path)


def _dump_component(component: Component) -> dict[str, str]:
    data = {"name": component.name}
    if component.path:
        data["path"] = component.path
    return data


def dump_config(config: Config) -> dict[str, Any]:
    """Convert a Config into a plain dictionary suitable for YAML output."""
    defaults = Config()
    data: dict[str, Any] = {}
    if config.project_url:
        data["project_url"] = config.project_url
    for key in (
        "wrap",
        "heading",
        "bullet_style",
        "empty_msg",
        "empty_release_msg",
        "prologue_filename",
        "epilogue_filename",
    ):
        value = getattr(config, key)
        if value != getattr(defaults, key):
            data[key] = value
    if config.sort_releases_by != defaults.sort_releases_by:
        data["sort_releases_by"] = list(config.sort_releases_by)
    if config.release_date_formats != defaults.release_date_formats:
        data["release_date_formats"] = list(config.release_date_formats)
    if config.unreleased != defaults.unreleased:
        data["unreleased"] = {
            "folder": config.unreleased.folder,
            "heading": config.unreleased.heading,
        }
    if config.change_sets != defaults.change_sets:
        data["change_sets"] = {
            "summary_filename": config.change_sets.summary_filename,
            "entry_ext": config.change_sets.entry_ext,
            "sort_entries_by": config.change_sets.sort_entries_by,
        }
    if config.categories != defaults.categories:
        data["categories"] = dict(config.categories)
    if config.components != defaults.components:
        components: dict[str, Any] = {}
        if config.components.general_entries_title != ComponentsConfig.general_entries_title:
            components["general_entries_title"] = config.components.general_entries_title
        if config.components.entry_indent != ComponentsConfig.entry_indent:
            components["entry_indent"] = config.components.entry_indent
        if config.components.all:
            components["all"] = {
                component_id: _dump_component(component)
                for component_id, component in config.components.all.items()
            }
        data["components"] = components
    return data


def save_config(config: Config, path: Path) -> None:
    """Write the configuration to disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(dump_config(config), handle, sort_keys=False)

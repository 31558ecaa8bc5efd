"""Core package exports for fragmentlog."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as metadata_version
from typing import TYPE_CHECKING, Any

__all__ = ["__version__", "Changelog", "load_project"]

try:
    __version__ = metadata_version("fragmentlog")
except PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

if TYPE_CHECKING:  # pragma: no cover
    from .api import Changelog
    from .loader import load_project


def __getattr__(name: str) -> Any:  # pragma: no cover - simple delegation
    if name == "Changelog":
        from .api import Changelog as _Changelog

        return _Changelog
    if name == "load_project":
        from .loader import load_project as _load_project

        return _load_project
    raise AttributeError(f"module 'fragmentlog' has no attribute {name!r}")

"""
Themes module - Built-in theme content.

Each theme is either:
- a subpackage that builds its ThemeSpec in Python (bigtech_worker)
- a JSON document under themes/data/ (startup)

Extra JSON themes can be dropped into the directory named by
THEMECARDS_THEME_DIR; they are picked up by list_themes()/get_theme().
"""

from __future__ import annotations
from pathlib import Path
from typing import Callable
import logging
import os

from ..errors import ConfigurationError
from ..spec_schema import ThemeSpec, load_theme, validate_theme
from .bigtech_worker import create_bigtech_worker_theme

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

_PYTHON_THEMES: dict[str, Callable[[], ThemeSpec]] = {
    "bigtech_worker": create_bigtech_worker_theme,
}


def _theme_dirs() -> list[Path]:
    dirs = [DATA_DIR]
    extra = os.getenv("THEMECARDS_THEME_DIR")
    if extra:
        dirs.append(Path(extra))
    return dirs


def _json_themes() -> dict[str, Path]:
    """theme id (file stem) -> path, later directories overriding earlier ones."""
    found: dict[str, Path] = {}
    for directory in _theme_dirs():
        if not directory.is_dir():
            logger.warning("Theme directory %s does not exist", directory)
            continue
        for path in sorted(directory.glob("*.json")):
            found[path.stem] = path
    return found


def list_themes() -> list[str]:
    """Ids of every available theme."""
    return sorted(set(_PYTHON_THEMES) | set(_json_themes()))


def get_theme(theme_id: str) -> ThemeSpec:
    """
    Build or load a theme by id.

    Raises:
        ConfigurationError: unknown theme id, or the theme fails validation
    """
    factory = _PYTHON_THEMES.get(theme_id)
    if factory:
        theme = factory()
        validate_theme(theme).raise_for_errors()
        return theme

    path = _json_themes().get(theme_id)
    if path is None:
        raise ConfigurationError(f"Unknown theme '{theme_id}'")
    return load_theme(path)


__all__ = [
    "DATA_DIR",
    "list_themes",
    "get_theme",
    "create_bigtech_worker_theme",
]

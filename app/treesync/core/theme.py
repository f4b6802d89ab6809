"""Theme management for treesync CLI.

Colors are defined on ThemeColors and may be overridden one by one in
~/.config/treesync/theme.toml:

    [colors]
    added = "#00ff00"
    removed = "#ff0000"
"""

import logging
import re
import tomllib
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError, ValidationInfo
from rich.theme import Theme

from treesync.core.paths import get_theme_path

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]{3}|[0-9a-fA-F]{6}")


def _parse_hex(value: object, info: ValidationInfo) -> str:
    if not isinstance(value, str):
        msg = f"{info.field_name}: color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = f"{info.field_name}: color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    if not _HEX_DIGITS.fullmatch(digits):
        msg = f"{info.field_name}: invalid hex color '{color}'"
        raise ValueError(msg)
    return color


HexColor = Annotated[str, BeforeValidator(_parse_hex)]


class ThemeColors(BaseModel):
    """Color configuration for treesync CLI (#RGB or #RRGGBB)."""

    model_config = ConfigDict(extra="forbid", validate_default=True)

    text: HexColor = "#e6e6e6"
    muted: HexColor = "#8a949b"
    header: HexColor = "#5fafd7"
    border: HexColor = "#3a5a70"

    success: HexColor = "#2ecc71"
    warning: HexColor = "#f0b429"
    error: HexColor = "#e5484d"
    info: HexColor = "#4fc1e9"

    added: HexColor = "#8ee05f"
    removed: HexColor = "#e5484d"
    changed: HexColor = "#4a9fd8"

    directory: HexColor = "#5fafd7"
    file: HexColor = "#e6e6e6"


# Rich style name -> (ThemeColors field, style prefix)
_STYLE_MAP: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "added": ("added", ""),
    "removed": ("removed", ""),
    "changed": ("changed", ""),
    "entry.dir": ("directory", "bold"),
    "entry.file": ("file", ""),
}


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read string values of the [colors] table.

    Returns:
        Color overrides, or None if the file is missing or unusable.
    """
    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse theme file %s: %s", path, e)
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {key: value for key, value in colors.items() if isinstance(value, str)}


def load_theme(path: Path | None = None) -> ThemeColors:
    """Load theme colors, applying user overrides.

    An invalid user theme is reported and the defaults are used instead.

    Args:
        path: Theme file to read. If None, uses ~/.config/treesync/theme.toml.

    Returns:
        ThemeColors instance.
    """
    theme_path = path or get_theme_path()
    overrides = _load_toml_colors(theme_path)
    if not overrides:
        return ThemeColors()

    try:
        colors = ThemeColors.model_validate(overrides)
    except ValidationError as e:
        logger.warning("Ignoring invalid theme %s: %s", theme_path, e)
        return ThemeColors()

    logger.debug("Applied %d color override(s) from %s", len(overrides), theme_path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Convert ThemeColors to a Rich Theme.

    Args:
        colors: Colors to convert. If None, loads the user theme.

    Returns:
        Rich Theme defining every style name the CLI uses.
    """
    if colors is None:
        colors = load_theme()

    styles = {
        name: f"{prefix} {getattr(colors, field)}".strip()
        for name, (field, prefix) in _STYLE_MAP.items()
    }
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Get the Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme

"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the tree, details, overlays, and status row.
Value syntax highlighting uses a separate pygments style setting.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    divider: str
    reverse: str
    reset: str
    tree_marker: str
    tree_root: str
    tree_branch: str
    tree_leaf: str
    tree_branch_leaf: str
    detail_label: str
    detail_dim: str
    status_info: str
    status_success: str
    status_warning: str
    status_error: str
    watch_put: str
    watch_delete: str
    help_heading: str
    help_key: str
    help_dim: str
    modal_title: str
    modal_border: str
    form_field_active: str


DEFAULT_THEME = UITheme(
    name="default",
    divider="\033[2m",
    reverse="\033[7m",
    reset="\033[0m",
    tree_marker="\033[38;5;44m",
    tree_root="\033[1;33m",
    tree_branch="\033[1;36m",
    tree_leaf="\033[32m",
    tree_branch_leaf="\033[1;32m",
    detail_label="\033[33m",
    detail_dim="\033[2;38;5;250m",
    status_info="\033[38;5;252m",
    status_success="\033[32m",
    status_warning="\033[33m",
    status_error="\033[31m",
    watch_put="\033[32m",
    watch_delete="\033[31m",
    help_heading="\033[1;38;5;81m",
    help_key="\033[38;5;229m",
    help_dim="\033[2;38;5;250m",
    modal_title="\033[1;38;5;45m",
    modal_border="\033[38;5;45m",
    form_field_active="\033[1;38;5;81m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    divider="\033[2;38;5;31m",
    reverse="\033[7m",
    reset="\033[0m",
    tree_marker="\033[38;5;39m",
    tree_root="\033[1;38;5;45m",
    tree_branch="\033[1;38;5;45m",
    tree_leaf="\033[38;5;117m",
    tree_branch_leaf="\033[1;38;5;117m",
    detail_label="\033[38;5;153m",
    detail_dim="\033[2;38;5;110m",
    status_info="\033[38;5;252m",
    status_success="\033[38;5;84m",
    status_warning="\033[38;5;215m",
    status_error="\033[38;5;203m",
    watch_put="\033[38;5;84m",
    watch_delete="\033[38;5;203m",
    help_heading="\033[1;38;5;45m",
    help_key="\033[38;5;153m",
    help_dim="\033[2;38;5;110m",
    modal_title="\033[1;38;5;39m",
    modal_border="\033[38;5;39m",
    form_field_active="\033[1;38;5;45m",
)

# Every escape blank: the layout renders unchanged without colour.
PLAIN_THEME = UITheme("plain", **{item.name: "" for item in fields(UITheme) if item.name != "name"})

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES.get(normalize_theme_name(name), DEFAULT_THEME)


def status_color(theme: UITheme, level: str) -> str:
    """Map a status level name to its palette entry."""
    return {
        "success": theme.status_success,
        "warning": theme.status_warning,
        "error": theme.status_error,
    }.get(level, theme.status_info)


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "available_theme_names",
    "normalize_theme_name",
    "resolve_theme",
    "status_color",
]

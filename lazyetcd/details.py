"""Details-pane text for a selected entry.

JSON values are pretty-printed and highlighted with Pygments; anything else
is shown verbatim after neutralizing terminal control bytes.
"""

from __future__ import annotations

import json
import re

from .keyspace import Entry
from .ui_theme import DEFAULT_THEME, UITheme

DEFAULT_VALUE_STYLE = "monokai"
INFINITE_TTL = "∞"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_PYGMENTS_READY = False
_PYGMENTS_HIGHLIGHT = None
_PYGMENTS_JSON_LEXER = None
_PYGMENTS_FORMATTER_CLS = None
_PYGMENTS_GET_STYLE_BY_NAME = None
_PYGMENTS_FORMATTERS: dict[str, object] = {}


def sanitize_terminal_text(source: str) -> str:
    """Escape control bytes so a stored value cannot move the cursor or ring the bell."""
    if _CONTROL_RE.search(source) is None:
        return source
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", source)


def _ensure_pygments_loaded() -> None:
    global _PYGMENTS_READY
    global _PYGMENTS_HIGHLIGHT
    global _PYGMENTS_JSON_LEXER
    global _PYGMENTS_FORMATTER_CLS
    global _PYGMENTS_GET_STYLE_BY_NAME

    if _PYGMENTS_READY:
        return
    from pygments import highlight
    from pygments.formatters import Terminal256Formatter
    from pygments.lexers import JsonLexer
    from pygments.styles import get_style_by_name

    _PYGMENTS_HIGHLIGHT = highlight
    _PYGMENTS_JSON_LEXER = JsonLexer()
    _PYGMENTS_FORMATTER_CLS = Terminal256Formatter
    _PYGMENTS_GET_STYLE_BY_NAME = get_style_by_name
    _PYGMENTS_READY = True


def _formatter_for_style(style: str):
    from pygments.util import ClassNotFound

    formatter = _PYGMENTS_FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    try:
        _PYGMENTS_GET_STYLE_BY_NAME(style)
    except ClassNotFound:
        style = DEFAULT_VALUE_STYLE
    formatter = _PYGMENTS_FORMATTER_CLS(style=style)
    _PYGMENTS_FORMATTERS[style] = formatter
    return formatter


def pretty_json(value: str) -> str | None:
    """Return indented JSON for object/array values, else ``None``."""
    stripped = value.strip()
    if not stripped or stripped[0] not in "{[":
        return None
    try:
        parsed = json.loads(stripped)
    except ValueError:
        return None
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def highlight_json(source: str, style: str = DEFAULT_VALUE_STYLE) -> str:
    _ensure_pygments_loaded()
    rendered = _PYGMENTS_HIGHLIGHT(source, _PYGMENTS_JSON_LEXER, _formatter_for_style(style))
    return rendered.rstrip("\n")


def format_value(value: str, *, color: bool = True, style: str = DEFAULT_VALUE_STYLE) -> list[str]:
    pretty = pretty_json(value)
    if pretty is None:
        return sanitize_terminal_text(value).splitlines() or [""]
    if color:
        return highlight_json(pretty, style).splitlines()
    return pretty.splitlines()


def ttl_text(entry: Entry, lease_ttl: int | None) -> str:
    if not entry.has_lease:
        return f"TTL: {INFINITE_TTL}"
    if lease_ttl is not None and lease_ttl >= 0:
        return f"TTL: {lease_ttl} seconds"
    return f"Lease: {entry.lease_id:x}"


def format_entry_details(
    entry: Entry,
    lease_ttl: int | None = None,
    *,
    theme: UITheme | None = None,
    color: bool = True,
    style: str = DEFAULT_VALUE_STYLE,
) -> list[str]:
    """Return styled lines describing ``entry`` for the details pane."""
    active = theme or DEFAULT_THEME
    label = active.detail_label
    dim = active.detail_dim
    reset = active.reset

    lines = [
        f"{label}Key:{reset} {sanitize_terminal_text(entry.key)}",
        "",
        f"{label}Value:{reset}",
    ]
    lines.extend(format_value(entry.value, color=color, style=style))
    lines.extend(
        [
            "",
            f"{dim}Create Revision:{reset} {entry.create_revision}",
            f"{dim}Mod Revision:{reset} {entry.mod_revision}",
            f"{dim}Version:{reset} {entry.version}",
            f"{dim}{ttl_text(entry, lease_ttl)}{reset}",
        ]
    )
    return lines


__all__ = [
    "DEFAULT_VALUE_STYLE",
    "INFINITE_TTL",
    "format_entry_details",
    "format_value",
    "highlight_json",
    "pretty_json",
    "sanitize_terminal_text",
    "ttl_text",
]

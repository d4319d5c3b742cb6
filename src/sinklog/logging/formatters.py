"""
Record serialization and console rendering.
"""

from __future__ import annotations

from typing import Any

import orjson
from structlog.typing import EventDict

COLORS = {
    "reset": "\033[0m",
    "debug": "\033[36m",
    "info": "\033[32m",
    "warning": "\033[33m",
    "error": "\033[31m",
    "critical": "\033[1;31m",
    "timestamp": "\033[90m",
    "logger": "\033[35m",
    "caller": "\033[2m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


# Characters str.splitlines() breaks on, plus the other C0 controls and DEL.
_LINE_BREAKS = (0x85, 0x2028, 0x2029)
_MESSAGE_ESCAPES = {c: repr(chr(c))[1:-1] for c in (*range(0x20), 0x7F, *_LINE_BREAKS)}
# orjson already escapes C0 controls; these remain raw in its output.
_JSON_ESCAPES = {c: f"\\u{c:04x}" for c in _LINE_BREAKS}


def orjson_dumps(v: Any) -> str:
    """Serialize to a compact JSON string; unknown types fall back to str()."""
    return orjson.dumps(v, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


class ConsoleFormatter:
    """Renders an event dict as one tab-separated, human-readable line.

    Columns: timestamp, level, logger, caller, message, remaining fields as a
    JSON object. Empty columns (no caller, no fields) are left out.
    """

    SEPARATOR = "\t"
    # Keys with their own column, or only useful in the JSON file.
    EXCLUDED_KEYS = {"timestamp", "level", "logger", "caller", "message", "file", "line"}

    @staticmethod
    def _maybe_color(text: str, color: str, use_color: bool) -> str:
        if not use_color:
            return text
        return colorize(text, color)

    @classmethod
    def format(cls, event_dict: EventDict, *, use_color: bool = False) -> str:
        """Format an event dict into a single line (no trailing newline)."""
        level = str(event_dict.get("level", "INFO"))
        columns = [
            cls._maybe_color(str(event_dict.get("timestamp", "")), "timestamp", use_color),
            cls._maybe_color(level.upper(), level.lower(), use_color),
            cls._maybe_color(str(event_dict.get("logger", "root")), "logger", use_color),
        ]

        caller = event_dict.get("caller")
        if caller:
            columns.append(cls._maybe_color(str(caller), "caller", use_color))

        # Line breaks would split one record over several console lines.
        message = str(event_dict.get("message", ""))
        columns.append(message.translate(_MESSAGE_ESCAPES))

        extras = {k: v for k, v in event_dict.items() if k not in cls.EXCLUDED_KEYS}
        if extras:
            columns.append(orjson_dumps(extras).translate(_JSON_ESCAPES))

        return cls.SEPARATOR.join(columns)

"""ANSI colors for diagnostics.

Colors are used only when stdout is a TTY, and can be forced on or off
with the ``FORCE_COLOR`` and ``NO_COLOR`` environment variables
(https://no-color.org/). ``FORCE_COLOR`` wins when both are set.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}

ColorName = Literal["reset", "bold", "dim", "cyan", "green", "yellow", "bright_red", "bright_green"]

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


# Decided once at import; tests patch this attribute.
_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    """Return True if diagnostics are colorized."""
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap ``text`` in the given ANSI codes, or return it unchanged.

    Example:
        >>> colorize("Error", "bright_red", "bold")
        '\\033[91m\\033[1mError\\033[0m'  # when colors are enabled
    """
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_CODES.get(color, "") for color in colors)
    if not prefix:
        return text
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences from ``text``."""
    return _ANSI_ESCAPE.sub("", text)


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    return colorize(text, "bright_red")


def hint(text: str) -> str:
    return colorize(text, "green")


def suggestion(text: str) -> str:
    return colorize(text, "bright_green", "bold")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def format_error_header(code: str | None, message: str) -> str:
    """Prefix ``message`` with a colored error code when one is given."""
    if code:
        return f"{error_code(code)}: {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Format one numbered source line, marking the failing line with ``>``.

    Example:
        >>> format_source_line(3, "<%= user %>", is_error=True)
        '>  3 | <%= user %>'  # without colors
    """
    marker = ">" if is_error else " "
    number = line_number(f"{marker}{lineno:>3}")
    text = error_line(content) if is_error else dim_text(content)
    return f"{number} | {text}"

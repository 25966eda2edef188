"""Segment nodes: literal text and embedded expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from snug.nodes.base import Node


class MarkerKind(Enum):
    """Which marker an expression was written with."""

    OUTPUT = "="
    SILENT = ""
    PIPE = "|"


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Literal text between markers, emitted verbatim."""

    value: str


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Embedded expression: <%= code %>, <% code %> or <%| code %>

    ``code`` is kept as written (minus one space next to each delimiter).
    ``indentation`` and ``trim_leading_newline`` are filled in by the
    indentation resolver; the parser leaves them at their defaults.
    """

    kind: MarkerKind
    code: str
    has_block: bool = False
    indentation: str = ""
    trim_leading_newline: bool = False

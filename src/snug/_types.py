"""Token types shared by the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of tokens produced by the lexer.

    Expression tokens are named after the marker that opened them:

    - ``OUTPUT``: ``<%= code %>``
    - ``SILENT``: ``<% code %>``
    - ``PIPE``: ``<%| code %>``
    - ``COMMENT``: ``<%# text %>``
    """

    DATA = "data"
    OUTPUT = "output"
    SILENT = "silent"
    PIPE = "pipe"
    COMMENT = "comment"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexed token with its source position.

    ``value`` holds literal text for ``DATA`` tokens and the marker's code
    for expression tokens. ``lineno`` is 1-based, ``col_offset`` 0-based and
    both point at the start of the token (the ``<`` of a marker).
    """

    type: TokenType
    value: str
    lineno: int
    col_offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"

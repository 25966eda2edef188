"""Lexer for snug templates.

Splits template source into literal text and expression markers:

- ``<%= code %>``: output the value of ``code``
- ``<% code %>``: run ``code`` for its effect (assignments, block headers)
- ``<%| code %>``: like ``<%``, and realign the indentation of its block
- ``<%# text %>``: comment, dropped from the output
- ``<%%``: a literal ``<%`` in the text

Every marker closes with ``%>``. Text is kept byte for byte, newlines and
trailing whitespace included; the indentation resolver relies on it.

Example:
    >>> [t.type.name for t in tokenize("Hi <%= name %>!")]
    ['DATA', 'OUTPUT', 'DATA', 'EOF']

"""

from __future__ import annotations

from snug._types import Token, TokenType
from snug.environment.exceptions import ErrorCode
from snug.parser.errors import ParseError

MARKER_START = "<%"
MARKER_END = "%>"

# Character following "<%" → token type. Anything else opens a silent marker.
_MARKER_TYPES = {
    "=": TokenType.OUTPUT,
    "|": TokenType.PIPE,
    "#": TokenType.COMMENT,
}


class LexerError(ParseError):
    """Malformed marker in template source."""


class Lexer:
    """Single-pass template tokenizer.

    Attributes:
        _source: Template source
        _filename: Filename used in error messages
        _pos: Current offset into the source
        _lineno: Line of ``_pos`` (1-based)
        _line_start: Offset of the first character of the current line

    Thread-Safety:
        A Lexer holds per-call state; create one per source string.
    """

    __slots__ = ("_filename", "_line_start", "_lineno", "_pos", "_source")

    def __init__(self, source: str, filename: str | None = None):
        self._source = source
        self._filename = filename
        self._pos = 0
        self._lineno = 1
        self._line_start = 0

    def tokenize(self) -> list[Token]:
        """Return the token list, ending with an EOF token.

        Raises:
            LexerError: If a marker is opened but never closed.
        """
        tokens: list[Token] = []
        source = self._source
        text: list[str] = []
        text_lineno, text_col = self._lineno, 0

        while True:
            start = source.find(MARKER_START, self._pos)
            if start == -1:
                text.append(source[self._pos :])
                self._advance(len(source))
                break

            if source.startswith("%", start + 2):
                # "<%%" is an escaped "<%"
                text.append(source[self._pos : start] + MARKER_START)
                self._advance(start + 3)
                continue

            text.append(source[self._pos : start])
            self._advance(start)
            if any(text):
                tokens.append(Token(TokenType.DATA, "".join(text), text_lineno, text_col))
            text = []

            tokens.append(self._read_marker(start))
            text_lineno, text_col = self._lineno, self._pos - self._line_start

        if any(text):
            tokens.append(Token(TokenType.DATA, "".join(text), text_lineno, text_col))
        tokens.append(Token(TokenType.EOF, "", self._lineno, self._pos - self._line_start))
        return tokens

    def _read_marker(self, start: int) -> Token:
        lineno, col = self._lineno, start - self._line_start
        code_start = start + len(MARKER_START)
        token_type = _MARKER_TYPES.get(self._source[code_start : code_start + 1])
        if token_type is None:
            token_type = TokenType.SILENT
        else:
            code_start += 1

        end = self._source.find(MARKER_END, code_start)
        if end == -1:
            opener = self._source[start:code_start]
            raise LexerError(
                f"Unterminated marker '{opener}'",
                Token(token_type, "", lineno, col),
                source=self._source,
                filename=self._filename,
                suggestion=f"Close the marker with '{MARKER_END}'",
                code=ErrorCode.UNTERMINATED_MARKER,
            )

        code = _strip_marker_spacing(self._source[code_start:end])
        self._advance(end + len(MARKER_END))
        return Token(token_type, code, lineno, col)

    def _advance(self, pos: int) -> None:
        """Move to ``pos``, keeping line bookkeeping in sync."""
        newlines = self._source.count("\n", self._pos, pos)
        if newlines:
            self._lineno += newlines
            self._line_start = self._source.rfind("\n", self._pos, pos) + 1
        self._pos = pos


def _strip_marker_spacing(code: str) -> str:
    """Drop one space on each side: ``<%= x %>`` holds ``x``."""
    if code.startswith(" "):
        code = code[1:]
    if code.endswith(" "):
        code = code[:-1]
    return code


def tokenize(source: str, filename: str | None = None) -> list[Token]:
    """Tokenize template source. See ``Lexer.tokenize``."""
    return Lexer(source, filename).tokenize()

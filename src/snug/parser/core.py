"""Parser: token stream → template tree.

Classifies every marker and nests block bodies:

- ``end`` closes the innermost open block
- a clause continuation (``elif x:``, ``else:``, ``case p:``) starts a new
  clause of the innermost open block
- a block-opening header (``if x:``, ``for x in xs:``) opens a block
- anything else is a plain expression or statement

The parser checks structure only. Whether the headers of a block fit together
(``else`` after ``for`` is fine, ``case`` after ``if`` is not) is checked by
the compiler when it assembles the Python statement.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from snug._types import Token, TokenType
from snug.compiler import syntax
from snug.environment.exceptions import ErrorCode
from snug.nodes import Block, Clause, Expr, MarkerKind, Node, Template, Text
from snug.parser.errors import ParseError

_MARKER_KINDS = {
    TokenType.OUTPUT: MarkerKind.OUTPUT,
    TokenType.SILENT: MarkerKind.SILENT,
    TokenType.PIPE: MarkerKind.PIPE,
}


@dataclass(slots=True)
class _OpenBlock:
    """A block whose ``end`` has not been seen yet."""

    token: Token
    expr: Expr
    clauses: list[tuple[Token, str, list[Node]]] = field(default_factory=list)

    @property
    def body(self) -> list[Node]:
        return self.clauses[-1][2]

    def close(self) -> Block:
        return Block(
            lineno=self.token.lineno,
            col_offset=self.token.col_offset,
            expr=self.expr,
            clauses=tuple(
                Clause(
                    lineno=token.lineno,
                    col_offset=token.col_offset,
                    code=code,
                    body=tuple(body),
                )
                for token, code, body in self.clauses
            ),
        )


class Parser:
    """Build an immutable ``Template`` node from lexer tokens.

    Example:
        >>> from snug.lexer import tokenize
        >>> tree = Parser(tokenize("<%| if ok: %>yes<% end %>")).parse()
        >>> type(tree.body[0]).__name__
        'Block'
    """

    __slots__ = ("_filename", "_name", "_root", "_source", "_stack", "_tokens")

    def __init__(
        self,
        tokens: list[Token],
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._tokens = tokens
        self._name = name
        self._filename = filename
        self._source = source
        self._root: list[Node] = []
        self._stack: list[_OpenBlock] = []

    def parse(self) -> Template:
        """Parse the token stream.

        Raises:
            ParseError: On a stray clause or ``end``, or an unclosed block.
        """
        for token in self._tokens:
            if token.type is TokenType.EOF:
                break
            if token.type is TokenType.DATA:
                self._append_text(token)
            elif token.type is not TokenType.COMMENT:
                self._parse_marker(token)

        if self._stack:
            open_block = self._stack[-1]
            raise self._error(
                f"Unclosed block '{open_block.expr.code.strip()}'",
                open_block.token,
                suggestion=f"Close the block with '<% {syntax.BLOCK_END} %>'",
                code=ErrorCode.UNCLOSED_BLOCK,
            )

        return Template(lineno=1, col_offset=0, body=tuple(self._root), name=self._name)

    @property
    def _body(self) -> list[Node]:
        return self._stack[-1].body if self._stack else self._root

    def _append_text(self, token: Token) -> None:
        body = self._body
        # Comments can leave two text tokens side by side
        if body and isinstance(body[-1], Text):
            previous = body[-1]
            body[-1] = Text(
                lineno=previous.lineno,
                col_offset=previous.col_offset,
                value=previous.value + token.value,
            )
        else:
            body.append(Text(lineno=token.lineno, col_offset=token.col_offset, value=token.value))

    def _parse_marker(self, token: Token) -> None:
        code = token.value

        if syntax.is_block_end(code):
            if not self._stack:
                raise self._error(
                    f"Unexpected '{syntax.BLOCK_END}' with no open block",
                    token,
                    code=ErrorCode.UNEXPECTED_END,
                )
            block = self._stack.pop().close()
            self._body.append(block)
            return

        keyword = syntax.clause_keyword(code)
        if keyword is not None:
            if not self._stack:
                raise self._error(
                    f"Unexpected '{keyword}' clause outside of a block",
                    token,
                    suggestion="Open the block first, e.g. '<% if condition: %>'",
                    code=ErrorCode.UNEXPECTED_CLAUSE,
                )
            self._stack[-1].clauses.append((token, code, []))
            return

        expr = Expr(
            lineno=token.lineno,
            col_offset=token.col_offset,
            kind=_MARKER_KINDS[token.type],
            code=code,
            has_block=syntax.is_block_opening(code),
        )
        if expr.has_block:
            open_block = _OpenBlock(token=token, expr=expr)
            open_block.clauses.append((token, code, []))
            self._stack.append(open_block)
        else:
            self._body.append(expr)

    def _error(
        self,
        message: str,
        token: Token,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ) -> ParseError:
        return ParseError(
            message,
            token,
            source=self._source,
            filename=self._filename,
            suggestion=suggestion,
            code=code,
            name=self._name,
        )

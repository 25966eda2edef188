"""snug Compiler: template tree → Python code object.

The Compiler resolves indentation on the parsed tree, then builds an
``ast.Module`` directly (no source strings) and compiles it.

Generated code runs at module level in a fresh namespace per render, so
embedded code reads and assigns template variables as plain globals.
Output uses the StringBuilder pattern:

    ```python
    _snug_out = []
    _snug_out.append("before")
    _snug_rc.line = 2
    _snug_buf1 = []
    if ok:
        _snug_buf1.append("\\n    one level")
    _snug_out.append(_snug_realign("".join(_snug_buf1), "    ", "  ", False))
    _snug_out.append("\\nafter")
    _snug_result = "".join(_snug_out)
    ```

Every pipe block renders into a private buffer so that its text can be
realigned as a whole; buffer names come from a counter owned by the
Compiler instance and advanced as compilation recurses into blocks.

Line Tracking:
    Before each expression and block the generated code stores the template
    line in the RenderContext (``_snug_rc.line = N``); runtime errors report
    it. Parsed fragments are also shifted to their template line so Python
    tracebacks point at the right place.
"""

from __future__ import annotations

import ast
import itertools
import logging
from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING

from snug.compiler import syntax
from snug.compiler.include import rewrite_includes
from snug.compiler.indentation import IndentationResolver
from snug.environment.exceptions import ErrorCode, TemplateSyntaxError
from snug.nodes import Block, Expr, MarkerKind, Node, Text

if TYPE_CHECKING:
    import types

    from snug.nodes import Template as TemplateNode

logger = logging.getLogger(__name__)

OUTPUT_BUFFER = "_snug_out"
RESULT_NAME = "_snug_result"
BUFFER_PREFIX = "_snug_buf"
RENDER_CONTEXT_NAME = "_snug_rc"
STR_HELPER = "_snug_str"
REALIGN_HELPER = "_snug_realign"


def _name(identifier: str) -> ast.Name:
    return ast.Name(id=identifier, ctx=ast.Load())


def _call(func: ast.expr, *args: ast.expr) -> ast.Call:
    return ast.Call(func=func, args=list(args), keywords=[])


def _at(stmt: ast.stmt, lineno: int) -> ast.stmt:
    stmt.lineno = stmt.end_lineno = lineno
    stmt.col_offset = stmt.end_col_offset = 0
    return stmt


def _assign(target: str, value: ast.expr, lineno: int) -> ast.stmt:
    return _at(ast.Assign(targets=[ast.Name(id=target, ctx=ast.Store())], value=value), lineno)


def _join(buffer: str) -> ast.Call:
    return _call(ast.Attribute(value=ast.Constant(value=""), attr="join", ctx=ast.Load()), _name(buffer))


class Compiler:
    """Compile a parsed template to a code object.

    Attributes:
        _name: Template name for error messages
        _filename: Source file path passed to ``compile()``
        _source: Template source for syntax error snippets
        _buffers: Counter naming pipe block buffers

    Node Dispatch:
        O(1) dict lookup from node type name to handler.

    Example:
        >>> from snug.lexer import tokenize
        >>> from snug.parser import Parser
        >>> tree = Parser(tokenize("Hi <%= who %>")).parse()
        >>> code = Compiler(name="hello").compile(tree)
        >>> code.co_filename
        '<template hello>'

    """

    __slots__ = ("_buffers", "_dispatch", "_filename", "_name", "_source")

    def __init__(
        self,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._name = name
        self._filename = filename
        self._source = source
        self._buffers: Iterator[int] = itertools.count(1)
        self._dispatch: dict[str, Callable[[Node, str], list[ast.stmt]]] = {
            "Text": self._compile_text,
            "Expr": self._compile_expr,
            "Block": self._compile_block,
        }

    def compile(self, template: TemplateNode) -> types.CodeType:
        """Resolve indentation and compile ``template``.

        Raises:
            TemplateSyntaxError: If embedded code is not valid Python or
                block headers do not fit together.
        """
        self._buffers = itertools.count(1)
        resolved = IndentationResolver().resolve(template)

        body = [_assign(OUTPUT_BUFFER, ast.List(elts=[], ctx=ast.Load()), 1)]
        body.extend(self._compile_body(resolved.body, OUTPUT_BUFFER))
        body.append(_assign(RESULT_NAME, _join(OUTPUT_BUFFER), 1))

        module = ast.Module(body=body, type_ignores=[])
        ast.fix_missing_locations(module)
        filename = self._filename or f"<template {self._name or 'string'}>"
        logger.debug(f"Compiled template {filename} ({len(resolved.body)} top-level nodes)")
        return compile(module, filename, "exec")

    def _compile_body(self, nodes: Sequence[Node], buffer: str) -> list[ast.stmt]:
        stmts: list[ast.stmt] = []
        for node in nodes:
            stmts.extend(self._dispatch[type(node).__name__](node, buffer))
        return stmts

    def _append(self, buffer: str, value: ast.expr, lineno: int) -> ast.stmt:
        method = ast.Attribute(value=_name(buffer), attr="append", ctx=ast.Load())
        return _at(ast.Expr(value=_call(method, value)), lineno)

    def _line_marker(self, node: Node) -> ast.stmt:
        target = ast.Attribute(value=_name(RENDER_CONTEXT_NAME), attr="line", ctx=ast.Store())
        return _at(ast.Assign(targets=[target], value=ast.Constant(value=node.lineno)), node.lineno)

    def _compile_text(self, node: Text, buffer: str) -> list[ast.stmt]:
        if not node.value:
            return []
        return [self._append(buffer, ast.Constant(value=node.value), node.lineno)]

    def _compile_expr(self, node: Expr, buffer: str) -> list[ast.stmt]:
        """Compile a marker without a block.

        <%= expr %>  → _append(_snug_str(expr))
        <%| expr %>  → same, minus a leading newline when first in its body
        <% stmts %>  → stmts
        """
        if node.kind is MarkerKind.SILENT:
            try:
                stmts = syntax.parse_statements(node.code)
            except SyntaxError as e:
                raise self._syntax_error(node, e) from e
            for stmt in stmts:
                ast.increment_lineno(stmt, node.lineno - 1)
                rewrite_includes(stmt, node.indentation)
            return [self._line_marker(node), *stmts]

        try:
            expr = syntax.parse_expression(node.code)
        except SyntaxError as e:
            raise self._syntax_error(node, e) from e
        ast.increment_lineno(expr, node.lineno - 1)
        value: ast.expr = _call(_name(STR_HELPER), rewrite_includes(expr, node.indentation))
        if node.trim_leading_newline:
            indentation = ast.Constant(value=node.indentation)
            value = _call(_name(REALIGN_HELPER), value, indentation, indentation, ast.Constant(True))
        return [self._line_marker(node), self._append(buffer, value, node.lineno)]

    def _compile_block(self, node: Block, buffer: str) -> list[ast.stmt]:
        """Compile a block; pipe blocks render into their own buffer.

        Each clause body compiles into the statement list that holds the
        matching header's ``pass`` placeholder.
        """
        try:
            stmt, bodies = syntax.block_skeleton([clause.code for clause in node.clauses])
        except SyntaxError as e:
            raise self._syntax_error(node.expr, e) from e
        ast.increment_lineno(stmt, node.lineno - 1)
        rewrite_includes(stmt, node.expr.indentation)

        target = f"{BUFFER_PREFIX}{next(self._buffers)}" if node.is_pipe else buffer
        for clause, body in zip(node.clauses, bodies):
            if body is None:
                self._check_clause_free(clause.body)
                continue
            body[:] = self._compile_body(clause.body, target) or [_at(ast.Pass(), clause.lineno)]

        if not node.is_pipe:
            return [self._line_marker(node), stmt]

        realigned = _call(
            _name(REALIGN_HELPER),
            _join(target),
            ast.Constant(value=node.baseline),
            ast.Constant(value=node.expr.indentation),
            ast.Constant(value=node.expr.trim_leading_newline),
        )
        return [
            self._line_marker(node),
            _assign(target, ast.List(elts=[], ctx=ast.Load()), node.lineno),
            stmt,
            self._append(buffer, realigned, node.lineno),
        ]

    def _check_clause_free(self, nodes: Sequence[Node]) -> None:
        """Only whitespace may sit between ``match v:`` and its first ``case``."""
        for node in nodes:
            if not (isinstance(node, Text) and not node.value.strip()):
                raise TemplateSyntaxError(
                    "Only 'case' clauses may follow a 'match' header",
                    lineno=node.lineno,
                    name=self._name,
                    filename=self._filename,
                    source=self._source,
                    col_offset=node.col_offset,
                    code=ErrorCode.INVALID_EXPRESSION,
                )

    def _syntax_error(self, node: Expr, error: SyntaxError) -> TemplateSyntaxError:
        return TemplateSyntaxError(
            f"Invalid code '{node.code.strip()}': {error.msg}",
            lineno=node.lineno,
            name=self._name,
            filename=self._filename,
            source=self._source,
            col_offset=node.col_offset,
            code=ErrorCode.INVALID_EXPRESSION,
        )

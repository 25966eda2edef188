"""Include call rewriting.

``include("card.txt", title=t)`` may appear anywhere in embedded code: in
an output marker, inside a silent statement, or in a block header. Every
such call is rewritten before compilation so that the included text is
indented to the call site::

    include("card.txt", title=t)
    → _snug_reindent(_snug_include("card.txt", title=t), "    ")

where ``"    "`` is the indentation in front of the marker holding the call.
Inside a pipe block the result is realigned a second time, together with
the rest of the block body.
"""

from __future__ import annotations

import ast

INCLUDE_NAME = "include"
INCLUDE_HELPER = "_snug_include"
REINDENT_HELPER = "_snug_reindent"


class IncludeRewriter(ast.NodeTransformer):
    """Wrap every ``include(...)`` call in a reindent call.

    Only direct calls of the bare name ``include`` are rewritten; a
    reference such as ``map(include, names)`` is left alone and resolves to
    the plain include helper at render time.
    """

    def __init__(self, indentation: str):
        self.indentation = indentation

    def visit_Call(self, node: ast.Call) -> ast.AST:
        self.generic_visit(node)
        func = node.func
        if not (isinstance(func, ast.Name) and func.id == INCLUDE_NAME):
            return node

        render_call = ast.Call(
            func=ast.Name(id=INCLUDE_HELPER, ctx=ast.Load()),
            args=node.args,
            keywords=node.keywords,
        )
        wrapped = ast.Call(
            func=ast.Name(id=REINDENT_HELPER, ctx=ast.Load()),
            args=[render_call, ast.Constant(value=self.indentation)],
            keywords=[],
        )
        return ast.copy_location(wrapped, node)


def rewrite_includes(tree: ast.AST, indentation: str) -> ast.AST:
    """Rewrite include calls in ``tree`` for a marker at ``indentation``."""
    return IncludeRewriter(indentation).visit(tree)

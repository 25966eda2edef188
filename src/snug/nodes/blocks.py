"""Block nodes: control-flow expressions with bodies."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from snug.nodes.base import Node
from snug.nodes.segments import Expr, MarkerKind


@dataclass(frozen=True, slots=True)
class Clause(Node):
    """One header and the body that follows it.

    The first clause of a block carries the block's own header
    (``if x:``); later clauses carry continuations (``elif y:``, ``else:``,
    ``case 1:``).
    """

    code: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Block(Node):
    """Block expression: <%| if cond: %>...<% else: %>...<% end %>

    ``baseline`` is only set on resolved pipe blocks. It is the indentation
    the template author used inside the body, and is replaced with
    ``expr.indentation`` when the body is rendered.
    """

    expr: Expr
    clauses: Sequence[Clause]
    baseline: str | None = None

    @property
    def is_pipe(self) -> bool:
        return self.expr.kind is MarkerKind.PIPE


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node of a parsed template."""

    body: Sequence[Node]
    name: str | None = None

"""Template tree nodes.

A template parses into an immutable tree::

    Template
    ├── Text("before\\n  ")
    ├── Block(expr=Expr(PIPE, "if ok:"), clauses=[
    │       Clause("if ok:", body=[Text(...), Expr(OUTPUT, "name"), Text(...)]),
    │       Clause("else:", body=[...]),
    │   ])
    └── Text("\\nafter")

"""

from snug.nodes.base import Node
from snug.nodes.blocks import Block, Clause, Template
from snug.nodes.segments import Expr, MarkerKind, Text

__all__ = [
    "Block",
    "Clause",
    "Expr",
    "MarkerKind",
    "Node",
    "Template",
    "Text",
]

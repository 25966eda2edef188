"""Template compilation: indentation resolution, include rewriting, codegen.

Pipeline:
    Template node → IndentationResolver → Compiler (+ IncludeRewriter) → code object
"""

from snug.compiler.core import Compiler
from snug.compiler.include import IncludeRewriter, rewrite_includes
from snug.compiler.indentation import (
    IndentationResolver,
    realign,
    realign_block,
    reindent_lines,
    trailing_indentation,
)

__all__ = [
    "Compiler",
    "IncludeRewriter",
    "IndentationResolver",
    "realign",
    "realign_block",
    "reindent_lines",
    "rewrite_includes",
    "trailing_indentation",
]

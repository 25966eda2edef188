"""Indentation resolver for pipe blocks.

A pipe block lets template source be indented for readability while the
output follows the indentation of the surrounding text:

    ```
    before                                  before
      <%| if True: %>                         one level
        one level                 ==>           two levels
          two levels                        after
      <% end %>
    after
    ```

Work is split between compile time and render time.

Compile time (``IndentationResolver.resolve``), for every pipe block:

1. *current indentation*: trailing spaces/tabs of the text right before
   the marker ("" when an expression or nothing precedes it)
2. the marker's own line is dropped: a trailing ``\\n[ \\t]*`` is removed
   from the preceding text
3. *baseline*: leading whitespace of the first body line, as authored
   (``\\n+([ \\t]*)`` at the start of the first clause body), or the
   current indentation when the body does not start that way
4. the last text of every clause body loses one trailing ``\\n[ \\t]*``,
   the line holding the next clause or ``end``
5. a block that is the first node of its body is flagged to lose the
   leading newline of its output

Render time (``realign_block``), on the block's rendered text: every
``\\n<baseline>`` becomes ``\\n<current>`` and the flagged leading newline
is dropped. Inner blocks are realigned before their parent joins its text,
so nesting composes from the inside out.

Every expression also records the indentation at its position; include
calls use it to indent the lines of the included template.

Tabs and spaces are compared and copied as raw characters. Nothing here
raises: a pattern that does not match means "leave the text alone".
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import replace

from snug.compiler import syntax
from snug.nodes import Block, Clause, Expr, MarkerKind, Node, Template, Text

_TRAILING_INDENT = re.compile(r"[ \t]*\Z")
_TRAILING_LINE = re.compile(r"\n[ \t]*\Z")
_LEADING_BASELINE = re.compile(r"\A\n+([ \t]*)")


def trailing_indentation(text: str) -> str:
    """Spaces and tabs at the very end of ``text``.

    Example:
        >>> trailing_indentation("<ul>\\n\\t  ")
        '\\t  '
    """
    match = _TRAILING_INDENT.search(text)
    return match.group() if match else ""


def trim_trailing_line(text: str) -> str:
    """Remove one trailing newline plus the indentation after it."""
    return _TRAILING_LINE.sub("", text, count=1)


def leading_baseline(text: str) -> str | None:
    """Indentation of the first line when ``text`` starts with a newline."""
    match = _LEADING_BASELINE.match(text)
    return match.group(1) if match else None


def realign(text: str, baseline: str, current: str) -> str:
    """Shift every line indented with ``baseline`` to ``current``.

    Only lines that start with ``baseline`` move; shallower lines and empty
    lines are kept verbatim. The first line has no preceding newline in
    ``text`` and is never touched.
    """
    if baseline == current:
        return text
    lines = text.split("\n")
    for index in range(1, len(lines)):
        line = lines[index]
        if line and line.startswith(baseline):
            lines[index] = current + line[len(baseline) :]
    return "\n".join(lines)


def realign_block(text: str, baseline: str, current: str, trim_leading_newline: bool) -> str:
    """Render-time half of pipe block handling."""
    text = realign(text, baseline, current)
    if trim_leading_newline and text.startswith("\n"):
        text = text[1:]
    return text


def reindent_lines(text: str, indentation: str) -> str:
    """Indent every line but the first; empty lines stay empty.

    Used for included templates, whose first line lands at the include
    call's position.

    Example:
        >>> reindent_lines("a\\nb\\n\\nc", "  ")
        'a\\n  b\\n\\n  c'
    """
    if not indentation:
        return text
    lines = text.split("\n")
    return "\n".join(
        [lines[0], *(indentation + line if line else line for line in lines[1:])]
    )


def block_baseline(block: Block, current: str) -> str:
    """Baseline of a block, read from its unresolved clause bodies."""
    for clause in block.clauses:
        if not syntax.clause_has_body(clause.code) or not clause.body:
            continue
        first = clause.body[0]
        if isinstance(first, Text):
            baseline = leading_baseline(first.value)
            if baseline is not None:
                return baseline
        return current
    return current


class IndentationResolver:
    """Compile-time pass over a parsed template.

    Returns a new tree: expressions carry the indentation at their position,
    pipe blocks carry their baseline, and text around pipe markers is
    trimmed. The input tree is not modified.

    Thread-Safety:
        Stateless; one instance can resolve any number of templates.
    """

    __slots__ = ()

    def resolve(self, template: Template) -> Template:
        return replace(template, body=self._resolve_body(template.body))

    def _resolve_body(self, nodes: Sequence[Node]) -> tuple[Node, ...]:
        resolved: list[Node] = []
        for index, node in enumerate(nodes):
            previous = nodes[index - 1] if index else None
            indentation = trailing_indentation(previous.value) if isinstance(previous, Text) else ""
            is_first = index == 0

            if isinstance(node, Expr):
                node = replace(
                    node,
                    indentation=indentation,
                    trim_leading_newline=is_first and node.kind is MarkerKind.PIPE,
                )
            elif isinstance(node, Block):
                node = self._resolve_block(node, indentation, is_first)
                if node.is_pipe and resolved and isinstance(resolved[-1], Text):
                    text = resolved[-1]
                    resolved[-1] = replace(text, value=trim_trailing_line(text.value))

            resolved.append(node)
        return tuple(node for node in resolved if not (isinstance(node, Text) and not node.value))

    def _resolve_block(self, block: Block, indentation: str, is_first: bool) -> Block:
        expr = replace(
            block.expr,
            indentation=indentation,
            trim_leading_newline=is_first and block.is_pipe,
        )
        clauses = tuple(
            replace(clause, body=self._resolve_body(clause.body)) for clause in block.clauses
        )
        if not block.is_pipe:
            return replace(block, expr=expr, clauses=clauses)

        return replace(
            block,
            expr=expr,
            clauses=tuple(self._trim_boundary(clause) for clause in clauses),
            baseline=block_baseline(block, indentation),
        )

    @staticmethod
    def _trim_boundary(clause: Clause) -> Clause:
        body = clause.body
        if not body or not isinstance(body[-1], Text):
            return clause
        value = trim_trailing_line(body[-1].value)
        last = (replace(body[-1], value=value),) if value else ()
        return replace(clause, body=(*body[:-1], *last))

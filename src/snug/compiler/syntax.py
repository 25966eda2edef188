"""Python syntax layer for embedded code.

The parser and the indentation resolver never look inside embedded code
themselves. They ask this module three questions about a marker's code:

- does it open a block (``if x:``, ``for x in xs:``, ``match v:``, ...)?
- does it continue an open block (``elif y:``, ``else:``, ``case 1:``, ...)?
- does it close one (``end``)?

The compiler also uses it to turn code into Python AST fragments, and to
assemble a block's headers into one compound statement whose bodies it can
fill in.
"""

from __future__ import annotations

import ast
import re
import textwrap

BLOCK_END = "end"

# Compound statements that may open a template block.
BLOCK_KEYWORDS = frozenset({"if", "for", "while", "match", "with", "try"})

# Headers that continue the innermost open block.
CLAUSE_KEYWORDS = frozenset({"elif", "else", "case", "except", "finally"})

_LEADING_WORD = re.compile(r"[A-Za-z_]+")

_INDENT = "    "


def leading_keyword(code: str) -> str | None:
    """First identifier of ``code``, e.g. ``"for"`` for ``"for x in xs:"``."""
    match = _LEADING_WORD.match(code.strip())
    return match.group() if match else None


def _is_header(code: str) -> bool:
    return code.rstrip().endswith(":")


def is_block_opening(code: str) -> bool:
    """True if ``code`` opens a block that must be closed with ``end``."""
    return _is_header(code) and leading_keyword(code) in BLOCK_KEYWORDS


def clause_keyword(code: str) -> str | None:
    """Keyword of a clause continuation (``"elif"``, ``"case"``, ...), else None."""
    if not _is_header(code):
        return None
    keyword = leading_keyword(code)
    return keyword if keyword in CLAUSE_KEYWORDS else None


def is_block_end(code: str) -> bool:
    return code.strip() == BLOCK_END


def clause_has_body(code: str) -> bool:
    """False for headers whose body holds only clauses (``match v:``)."""
    return leading_keyword(code) != "match"


def normalize(code: str) -> str:
    """Strip the common indentation and surrounding blank space of ``code``.

    Markers spanning several lines keep their relative indentation:
    ``"\\n  x = 1\\n  y = 2\\n"`` becomes ``"x = 1\\ny = 2"``.
    """
    return textwrap.dedent(code).strip()


def parse_expression(code: str) -> ast.expr:
    """Parse an output expression.

    Raises:
        SyntaxError: If ``code`` is not a single Python expression.
    """
    return ast.parse(normalize(code), mode="eval").body


def parse_statements(code: str) -> list[ast.stmt]:
    """Parse the simple statements of a silent marker.

    Raises:
        SyntaxError: If ``code`` is not valid Python.
    """
    return ast.parse(normalize(code), mode="exec").body


def block_skeleton(headers: list[str]) -> tuple[ast.stmt, list[list[ast.stmt] | None]]:
    """Assemble block headers into one compound statement.

    Each header gets a ``pass`` body. The function returns the statement and,
    for each header, the statement list holding that ``pass``; the caller
    replaces its contents with the compiled clause body. Headers without a
    body of their own (``match v:``) map to ``None``.

    Example:
        >>> stmt, bodies = block_skeleton(["if a:", "else:"])
        >>> type(stmt).__name__, len(bodies)
        ('If', 2)

    Raises:
        SyntaxError: If the headers do not form one compound statement.
    """
    lines: list[str] = []
    placeholders: list[int | None] = []
    for header in headers:
        # Continuation lines of a multi-line header sit inside brackets or
        # after a backslash, so only the first line needs indenting.
        first, *rest = normalize(header).splitlines() or [""]
        if clause_keyword(header) == "case":
            lines.extend([_INDENT + first, *rest, _INDENT * 2 + "pass"])
            placeholders.append(len(lines))
        elif not clause_has_body(header):
            lines.extend([first, *rest])
            placeholders.append(None)
        else:
            lines.extend([first, *rest, _INDENT + "pass"])
            placeholders.append(len(lines))

    module = ast.parse("\n".join(lines), mode="exec")
    if len(module.body) != 1:
        raise SyntaxError("block headers do not form a single statement")
    (stmt,) = module.body

    bodies: dict[int, list[ast.stmt]] = {}
    for node in ast.walk(stmt):
        for field in ("body", "orelse", "finalbody"):
            value = getattr(node, field, None)
            if isinstance(value, list) and len(value) == 1 and isinstance(value[0], ast.Pass):
                bodies[value[0].lineno] = value
    return stmt, [bodies[line] if line is not None else None for line in placeholders]

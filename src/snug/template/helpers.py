"""Runtime helpers injected into the template namespace.

Compiled template code runs with these names bound next to the caller's
bindings. None of them close over Environment state; the include helper is
the exception and is built per render by ``Template``.

Thread-Safety:
All functions are stateless and safe for concurrent use.

"""

from __future__ import annotations

import builtins
from typing import Any

from snug.compiler.indentation import realign_block, reindent_lines

# Prefix shared by every name the compiler generates.
INTERNAL_PREFIX = "_snug_"


def to_str(value: Any) -> str:
    """Output conversion for ``<%= %>``: None renders as nothing."""
    if value is None:
        return ""
    return str(value)


# Read-only after module load; copied into every render namespace.
STATIC_NAMESPACE: dict[str, Any] = {
    "__builtins__": builtins,
    "_snug_str": to_str,
    "_snug_realign": realign_block,
    "_snug_reindent": reindent_lines,
}


def visible_bindings(namespace: dict[str, Any]) -> dict[str, Any]:
    """The user-visible part of a render namespace.

    Drops builtins and generated names. Used to hand the current bindings to
    an included template and to list candidates for "Did you mean?".
    """
    return {
        key: value
        for key, value in namespace.items()
        if key != "__builtins__" and not key.startswith(INTERNAL_PREFIX)
    }


def lookup(ctx: dict[str, Any], var_name: str) -> Any:
    """Look up a binding, raising UndefinedError when it is missing.

    The error carries template name, line, source snippet and include chain
    from the current RenderContext.
    """
    from snug.environment.exceptions import UndefinedError, build_source_snippet
    from snug.render_context import get_render_context

    try:
        return ctx[var_name]
    except KeyError:
        render_ctx = get_render_context()
        template_name = render_ctx.template_name if render_ctx else None
        lineno = render_ctx.line if render_ctx else None
        source = render_ctx.source if render_ctx else None
        snippet = build_source_snippet(source, lineno) if source and lineno else None
        raise UndefinedError(
            var_name,
            template_name,
            lineno or None,
            available_names=frozenset(ctx.keys()),
            source_snippet=snippet,
            template_stack=render_ctx.template_stack if render_ctx else None,
        ) from None

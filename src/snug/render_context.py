"""snug RenderContext: per-render state kept out of the template namespace.

Holds what error reporting and includes need while a template renders:
the template's name and source, the current template line, the include
depth and the include chain. The state lives in a ContextVar, so every
thread (and asyncio task) renders with its own context.

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field

DEFAULT_MAX_INCLUDE_DEPTH = 50


@dataclass
class RenderContext:
    """Per-render state.

    Attributes:
        template_name: Current template name for error messages
        filename: Source file path for error messages
        source: Template source for runtime error snippets
        line: Current template line, updated by generated code
        include_depth: Number of includes between the outermost render and this one
        max_include_depth: Maximum allowed include depth
        template_stack: (template_name, line) of every include call site,
            outermost first
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    line: int = 0
    include_depth: int = 0
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH
    template_stack: list[tuple[str, int]] = field(default_factory=list)

    def check_include_depth(self, template_name: str) -> None:
        """Raise if another include would exceed ``max_include_depth``.

        Raises:
            TemplateRuntimeError: If depth >= max_include_depth
        """
        if self.include_depth >= self.max_include_depth:
            from snug.environment.exceptions import ErrorCode, TemplateRuntimeError

            raise TemplateRuntimeError(
                f"Maximum include depth exceeded ({self.max_include_depth}) "
                f"when including '{template_name}'",
                template_name=self.template_name,
                lineno=self.line or None,
                template_stack=self.template_stack,
                suggestion="Check for circular includes: A → B → A",
                code=ErrorCode.INCLUDE_DEPTH,
            )

    def child_context(
        self,
        template_name: str | None,
        filename: str | None = None,
        source: str | None = None,
    ) -> RenderContext:
        """Context for an included template, one level deeper.

        The current template and line are appended to the include chain.
        """
        stack = self.template_stack.copy()
        stack.append((self.template_name or "<template>", self.line))
        return RenderContext(
            template_name=template_name,
            filename=filename,
            source=source,
            include_depth=self.include_depth + 1,
            max_include_depth=self.max_include_depth,
            template_stack=stack,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "snug_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Current render context, or None outside of a render."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Current render context.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
) -> Iterator[RenderContext]:
    """Make a new RenderContext current for the duration of the block.

    Example:
        with render_context(template_name="page.txt") as ctx:
            exec(code, namespace)
            # ctx.line now holds the last template line that ran
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        source=source,
        max_include_depth=max_include_depth,
    )
    token = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


def set_render_context(ctx: RenderContext) -> Token[RenderContext | None]:
    """Make ``ctx`` current and return the token that undoes it.

    Used by includes, which restore the parent context in a ``finally``.
    """
    return _render_context.set(ctx)


def reset_render_context(token: Token[RenderContext | None]) -> None:
    """Restore the context that was current before ``set_render_context``."""
    _render_context.reset(token)

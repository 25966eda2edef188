"""snug Template: compiled template object ready for rendering.

The Template class wraps a module-level code object and provides the
``render()`` API. Templates are immutable and safe for concurrent rendering.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Prevents circular refs
    ├── _code: code object              # Compiled template module
    └── _name, _filename, _source       # For error messages
    ```

Render Namespace:
Every render executes the code object in a fresh dict used as globals:
    ```
    __builtins__              builtins module
    environment globals       Environment.globals
    bindings                  render() arguments
    _snug_str, _snug_realign  static helpers (template.helpers)
    _snug_include, include    include helper bound to this render
    _snug_rc                  the RenderContext
    ```
Embedded code therefore reads and assigns template variables as plain
Python globals, and assignments made by ``<% x = 1 %>`` vanish with the
namespace when the render ends.

Memory Safety:
Uses ``weakref.ref(env)`` to break potential cycles:
``Template → (weak) → Environment → cache → Template``

"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any

from snug.compiler.core import RENDER_CONTEXT_NAME, RESULT_NAME
from snug.compiler.include import INCLUDE_HELPER, INCLUDE_NAME
from snug.template.helpers import STATIC_NAMESPACE, lookup, visible_bindings

if TYPE_CHECKING:
    import types

    from snug.environment import Environment
    from snug.render_context import RenderContext


class Template:
    """Compiled template ready for rendering.

    Thread-Safety:
        - Template object is immutable after construction
        - Each ``render()`` call builds its own namespace and buffers
        - Multiple threads can render the same template simultaneously

    Attributes:
        name: Template identifier (for error messages)
        filename: Source file path (for error messages)
        source: Template source (for error snippets)

    Error Enhancement:
        Exceptions raised by embedded code are converted:
            ```
            NameError           → UndefinedError (with "Did you mean?")
            any other Exception → TemplateRuntimeError (original as __cause__)
            TemplateError       → propagates unchanged (e.g. from an include)
            ```

    Example:
            >>> from snug import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, <%= name.upper() %>!")
            >>> t.render(name="World")
            'Hello, WORLD!'

            >>> t.render({"name": "World"})  # Dict context also works
            'Hello, WORLD!'

    """

    __slots__ = ("_code", "_env_ref", "_filename", "_name", "_source")

    def __init__(
        self,
        env: Environment,
        code: types.CodeType,
        name: str | None,
        filename: str | None,
        source: str | None = None,
    ):
        """Initialize template with compiled code.

        Args:
            env: Parent Environment (stored as weak reference)
            code: Compiled template module
            name: Template name (for error messages)
            filename: Source filename (for error messages)
            source: Template source for runtime error snippets
        """
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._code = code
        self._name = name
        self._filename = filename
        self._source = source

    @property
    def _env(self) -> Environment:
        """Get the Environment (dereferences weak reference)."""
        env = self._env_ref()
        if env is None:
            raise RuntimeError(
                f"Environment has been garbage collected (template: {self._name or 'unknown'})"
            )
        return env

    @property
    def name(self) -> str | None:
        """Template name."""
        return self._name

    @property
    def filename(self) -> str | None:
        """Source filename."""
        return self._filename

    @property
    def source(self) -> str | None:
        """Template source."""
        return self._source

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render template with given bindings.

        Args:
            *args: Single dict of bindings
            **kwargs: Bindings as keyword arguments

        Returns:
            Rendered template as string

        Example:
            >>> t.render(name="World")
            'Hello, World!'
            >>> t.render({"name": "World"})
            'Hello, World!'
        """
        from snug.render_context import render_context

        env = self._env
        ctx: dict[str, Any] = {}
        ctx.update(env.globals)

        if args:
            if len(args) == 1 and isinstance(args[0], dict):
                ctx.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a dict), got {len(args)}"
                )

        ctx.update(kwargs)

        with render_context(
            template_name=self._name,
            filename=self._filename,
            source=self._source,
            max_include_depth=env.max_include_depth,
        ) as render_ctx:
            return self._render_with(ctx, render_ctx)

    async def render_async(self, *args: Any, **kwargs: Any) -> str:
        """Async wrapper for synchronous render.

        Runs ``render()`` in a worker thread to avoid blocking the event loop.
        """
        import asyncio

        return await asyncio.to_thread(self.render, *args, **kwargs)

    def _render_with(self, bindings: dict[str, Any], render_ctx: RenderContext) -> str:
        """Execute the template with ``render_ctx`` already current."""
        from snug.environment.exceptions import TemplateError

        namespace: dict[str, Any] = dict(STATIC_NAMESPACE)
        namespace.update(bindings)

        def include(template_name: str, /, **overrides: Any) -> str:
            """Render another template with the current bindings plus ``overrides``."""
            from snug.render_context import reset_render_context, set_render_context

            render_ctx.check_include_depth(template_name)
            included = self._env.get_template(template_name)
            child_bindings = visible_bindings(namespace)
            child_bindings.update(overrides)

            child_ctx = render_ctx.child_context(
                included.name, filename=included.filename, source=included.source
            )
            token = set_render_context(child_ctx)
            try:
                return included._render_with(child_bindings, child_ctx)
            finally:
                reset_render_context(token)

        namespace[INCLUDE_HELPER] = include
        namespace[INCLUDE_NAME] = include
        namespace[RENDER_CONTEXT_NAME] = render_ctx

        try:
            exec(self._code, namespace)
        except TemplateError:
            raise
        except NameError as e:
            available = visible_bindings(namespace)
            if e.name is None or e.name in available:
                raise self._enhance_error(e, render_ctx) from e
            lookup(available, e.name)
            raise
        except Exception as e:
            raise self._enhance_error(e, render_ctx) from e

        result: str = namespace[RESULT_NAME]
        return result

    def _enhance_error(self, error: Exception, render_ctx: RenderContext) -> Exception:
        """Wrap an exception from embedded code in a TemplateRuntimeError.

        The original message is kept verbatim; template name, line, source
        snippet and include chain come from the RenderContext.
        """
        from snug.environment.exceptions import TemplateRuntimeError, build_source_snippet

        lineno = render_ctx.line or None
        error_str = str(error).strip()

        # StopIteration and friends can carry no message at all
        if not error_str:
            error_str = f"{type(error).__name__} (no details available)"

        snippet = None
        if self._source and lineno:
            snippet = build_source_snippet(self._source, lineno)

        return TemplateRuntimeError(
            error_str,
            template_name=render_ctx.template_name,
            lineno=lineno,
            source_snippet=snippet,
            template_stack=render_ctx.template_stack,
        )

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"

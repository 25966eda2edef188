"""snug: Python-expression templates with indentation-aware pipe blocks.

Templates mix literal text with markers holding Python code. A block opened
with the pipe marker ``<%|`` re-indents its body to the position of the
marker, so template source can be indented for readability while the output
keeps the indentation of the surrounding text.

Quickstart:
    >>> from snug import Environment
    >>> env = Environment()
    >>> template = env.from_string("<ul>\\n  <%| for item in items: %>\\n    <li><%= item %></li>\\n  <% end %>\\n</ul>")
    >>> print(template.render(items=["a", "b"]))
    <ul>
      <li>a</li>
      <li>b</li>
    </ul>

Markers:
- ``<%= expr %>``: output ``expr`` (None renders as nothing)
- ``<% stmt %>``: run a statement or open a plain block
- ``<%| header: %>``: open a block whose body is re-indented
- ``<% elif x: %>``, ``<% else: %>``, ``<% case p: %>``: continue a block
- ``<% end %>``: close the innermost block
- ``<%# text %>``: comment
- ``<%%``: literal ``<%``

Includes:
``include(name, **bindings)`` renders another template with the current
bindings plus ``bindings``; every line after the first is indented to the
include's position:

    >>> from snug import DictLoader
    >>> env = Environment(loader=DictLoader({"row": "<td>a</td>\\n<td>b</td>"}))
    >>> print(env.from_string("<tr>\\n  <%= include('row') %>\\n</tr>").render())
    <tr>
      <td>a</td>
      <td>b</td>
    </tr>

Architecture:
Template Source → Lexer → Parser → snug tree → IndentationResolver → Compiler → Python AST → exec()

Thread-Safety:
- Compiled templates are immutable
- Each render executes in its own namespace with its own buffers
- The environment's template cache is guarded by a lock

"""

from snug.environment import (
    ChoiceLoader,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    FunctionLoader,
    Loader,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    build_source_snippet,
)
from snug._types import Token, TokenType  # noqa: I001
from snug.render_context import (
    RenderContext,
    get_render_context,
    get_render_context_required,
    render_context,
)
from snug.template import Template

__version__ = "0.1.0"

__all__ = [
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "Loader",
    "RenderContext",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "UndefinedError",
    "__version__",
    "build_source_snippet",
    "get_render_context",
    "get_render_context_required",
    "render_context",
]

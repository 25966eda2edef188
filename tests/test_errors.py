"""Tests for error reporting: codes, locations, snippets and include stacks."""

import pytest

from snug import (
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    TemplateError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
)
from snug.environment import terminal


@pytest.fixture(autouse=True)
def no_colors(monkeypatch):
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


class TestCompileErrors:
    """Embedded code that is not valid Python."""

    def test_invalid_expression(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("ok\n<%= 1 + %>", name="bad.txt")
        err = exc_info.value
        assert err.code is ErrorCode.INVALID_EXPRESSION
        assert err.lineno == 2
        assert "bad.txt:2" in str(err)
        assert "<%= 1 + %>" in str(err)

    def test_header_without_colon(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("<% if x %>y")
        assert exc_info.value.code is ErrorCode.INVALID_EXPRESSION

    def test_mismatched_clause(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("<% if a: %>x<% case 1: %>y<% end %>")
        assert exc_info.value.code is ErrorCode.INVALID_EXPRESSION

    def test_text_between_match_and_case(self, env):
        with pytest.raises(TemplateSyntaxError, match="Only 'case' clauses"):
            env.from_string("<% match v: %>oops<% case 1: %>x<% end %>")

    def test_format_compact_has_code(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("<%= ) %>")
        assert exc_info.value.format_compact().startswith("S-PAR-004: ")

    def test_unterminated_marker_from_environment(self, env):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("<%| if x: %>\n  <%= y")
        assert exc_info.value.code is ErrorCode.UNTERMINATED_MARKER

    def test_error_code_category(self):
        assert ErrorCode.UNCLOSED_BLOCK.category == "parser"
        assert ErrorCode.UNDEFINED_VARIABLE.category == "runtime"
        assert ErrorCode.TEMPLATE_NOT_FOUND.category == "template"


class TestUndefined:
    """Missing bindings raise UndefinedError."""

    def test_undefined_raises(self, env):
        with pytest.raises(UndefinedError) as exc_info:
            env.from_string("a\n<%= missing %>", name="page.txt").render()
        err = exc_info.value
        assert err.name == "missing"
        assert err.lineno == 2
        assert "Undefined variable 'missing' in page.txt:2" in str(err)
        assert "Pass missing=... to render() or to include()" in str(err)

    def test_did_you_mean(self, env):
        with pytest.raises(UndefinedError, match="Did you mean 'user'"):
            env.from_string("<%= usr %>").render(user="x")

    def test_undefined_in_block_header(self, env):
        with pytest.raises(UndefinedError) as exc_info:
            env.from_string("x\n\n  <%| for i in items: %>\n    <%= i %>\n  <% end %>").render()
        assert exc_info.value.lineno == 3

    def test_source_snippet(self, env):
        with pytest.raises(UndefinedError) as exc_info:
            env.from_string("one\ntwo <%= nope %>\nthree").render()
        snippet = exc_info.value.source_snippet
        assert snippet.error_line == 2
        assert (2, "two <%= nope %>") in snippet.lines

    def test_single_template_no_stack(self, env):
        with pytest.raises(UndefinedError) as exc_info:
            env.from_string("<%= undefined_var %>").render()
        assert exc_info.value.template_stack == []
        assert "Template stack:" not in str(exc_info.value)

    def test_is_template_error(self, env):
        with pytest.raises(TemplateError):
            env.from_string("<%= missing %>").render()


class TestRuntimeErrors:
    """Exceptions raised by embedded code."""

    def test_wrapped_with_cause(self, env):
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("total:\n<%= 1 / n %>", name="calc.txt").render(n=0)
        err = exc_info.value
        assert err.message == "division by zero"
        assert isinstance(err.__cause__, ZeroDivisionError)
        assert err.template_name == "calc.txt"
        assert err.lineno == 2
        assert err.code is ErrorCode.RUNTIME_ERROR
        assert "calc.txt:2" in str(err)

    def test_empty_message(self, env):
        with pytest.raises(TemplateRuntimeError, match="StopIteration"):
            env.from_string("<%= next(iter([])) %>").render()

    def test_error_in_silent_statement(self, env):
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("<% value = int('x') %>").render()
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_template_errors_propagate_unchanged(self, env):
        def fail():
            raise TemplateRuntimeError("custom failure")

        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("<%= fail() %>").render(fail=fail)
        assert exc_info.value.message == "custom failure"
        assert exc_info.value.__cause__ is None

    def test_name_error_for_bound_name_is_runtime_error(self, env):
        def broken():
            raise NameError("inner", name="value")

        with pytest.raises(TemplateRuntimeError):
            env.from_string("<%= broken() %>").render(broken=broken, value=1)

    def test_message_layout(self):
        err = TemplateRuntimeError("boom", template_name="t.txt", lineno=3)
        assert str(err) == "Runtime Error: boom\n  Location: t.txt:3"

    def test_format_compact(self, env):
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("<%= {}['k'] %>", name="t.txt").render()
        compact = exc_info.value.format_compact()
        assert compact.startswith("S-RUN-003: ")
        assert "t.txt:1" in compact


class TestTemplateStackTraces:
    """Include chains in error messages."""

    def test_nested_include_shows_stack(self, tmp_path):
        (tmp_path / "base.txt").write_text("<html>\n<%= include('nav.txt') %>\n</html>")
        (tmp_path / "nav.txt").write_text("<nav><%= undefined_var %></nav>")
        env = Environment(loader=FileSystemLoader(tmp_path))

        with pytest.raises(UndefinedError) as exc_info:
            env.render("base.txt")

        err = exc_info.value
        assert err.template == "nav.txt"
        assert err.template_stack == [("base.txt", 2)]
        assert "Template stack:" in str(err)
        assert "base.txt:2" in str(err)

    def test_deeply_nested_includes_full_stack(self):
        env = Environment(
            loader=DictLoader(
                {
                    "page": "<html>\n  <%= include('header') %>\n</html>",
                    "header": "<header>\n\n  <%= include('nav') %>\n</header>",
                    "nav": "<nav><%= 1 / 0 %></nav>",
                }
            )
        )
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.render("page")

        err = exc_info.value
        assert err.template_name == "nav"
        assert err.template_stack == [("page", 2), ("header", 3)]
        assert "page:2" in err.format_compact()

    def test_parent_context_restored_after_include(self):
        env = Environment(loader=DictLoader({"ok": "fine"}))
        tmpl = env.from_string("<%= include('ok') %>\n<%= missing %>", name="main")
        with pytest.raises(UndefinedError) as exc_info:
            tmpl.render()
        assert exc_info.value.template == "main"
        assert exc_info.value.template_stack == []

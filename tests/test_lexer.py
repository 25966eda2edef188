"""Tests for the snug lexer."""

import pytest

from snug._types import TokenType
from snug.environment.exceptions import ErrorCode, TemplateSyntaxError
from snug.lexer import LexerError, tokenize


def _types(source):
    return [t.type for t in tokenize(source)]


class TestMarkers:
    """Classification of marker kinds."""

    def test_plain_text(self):
        """Text without markers is one DATA token."""
        assert _types("foo bar") == [TokenType.DATA, TokenType.EOF]

    def test_output_marker(self):
        tokens = tokenize("Hi <%= name %>!")
        assert [t.type for t in tokens] == [
            TokenType.DATA,
            TokenType.OUTPUT,
            TokenType.DATA,
            TokenType.EOF,
        ]
        assert tokens[1].value == "name"

    def test_silent_marker(self):
        tokens = tokenize("<% x = 1 %>")
        assert tokens[0].type == TokenType.SILENT
        assert tokens[0].value == "x = 1"

    def test_pipe_marker(self):
        tokens = tokenize("<%| if ok: %>")
        assert tokens[0].type == TokenType.PIPE
        assert tokens[0].value == "if ok:"

    def test_comment_marker(self):
        tokens = tokenize("a<%# note %>b")
        assert [(t.type, t.value) for t in tokens[:3]] == [
            (TokenType.DATA, "a"),
            (TokenType.COMMENT, "note"),
            (TokenType.DATA, "b"),
        ]

    def test_empty_source(self):
        assert _types("") == [TokenType.EOF]


class TestMarkerSpacing:
    """One space next to each delimiter is not part of the code."""

    def test_single_spaces_stripped(self):
        assert tokenize("<%= x %>")[0].value == "x"

    def test_no_spaces(self):
        assert tokenize("<%=x%>")[0].value == "x"

    def test_only_one_space_stripped(self):
        assert tokenize("<%=  x  %>")[0].value == " x "

    def test_text_whitespace_kept(self):
        """Text around markers is kept byte for byte."""
        tokens = tokenize("  \t<%= x %>\n  ")
        assert tokens[0].value == "  \t"
        assert tokens[2].value == "\n  "


class TestEscape:
    """``<%%`` produces a literal ``<%``."""

    def test_escaped_marker_is_text(self):
        tokens = tokenize("<%%= x %>")
        assert [t.type for t in tokens] == [TokenType.DATA, TokenType.EOF]
        assert tokens[0].value == "<%= x %>"

    def test_escape_between_markers(self):
        tokens = tokenize("<%= a %> <%% <%= b %>")
        assert [t.value for t in tokens if t.type == TokenType.DATA] == [" <% "]


class TestPositions:
    """Line and column tracking."""

    def test_marker_position(self):
        tokens = tokenize("a\n  <%| if x: %>")
        pipe = tokens[1]
        assert (pipe.lineno, pipe.col_offset) == (2, 2)

    def test_text_after_multiline_marker(self):
        tokens = tokenize("<% x = (1,\n 2) %>tail")
        assert tokens[1].value == "tail"
        assert tokens[1].lineno == 2


class TestLexerErrors:
    """Unterminated markers."""

    def test_unterminated_output(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("Hello\n<%= name")
        err = exc_info.value
        assert err.code is ErrorCode.UNTERMINATED_MARKER
        assert err.lineno == 2
        assert "Unterminated marker '<%='" in str(err)
        assert "%>" in err.suggestion

    def test_unterminated_is_syntax_error(self):
        with pytest.raises(TemplateSyntaxError):
            tokenize("<% if x:")

    def test_source_line_in_message(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("ok\n  <%| for x in xs:\n", filename="page.txt")
        message = str(exc_info.value)
        assert "page.txt:2:2" in message
        assert "<%| for x in xs:" in message

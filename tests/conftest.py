"""Pytest configuration and fixtures for snug tests."""

import pytest

from snug import DictLoader, Environment

PARTIALS = {
    "partial": "line 1 from partial\nline 2 from partial\n",
    "partial_with_partial": (
        "line 1 from partial_with_partial\n"
        "  <%= include('partial') %>\n"
        "line 3 from partial_with_partial\n"
    ),
    "partial_with_conditional_partial": (
        "line 1 from partial_with_partial\n"
        "  <%| if condition: %>\n"
        "    <%= include('partial') %>\n"
        "  <% end %>\n"
        "line 3 from partial_with_partial\n"
    ),
    "hello_fr": "Bonjour <%= name %>",
    "hello_en": "Hello <%= name %>",
}


@pytest.fixture
def env():
    """Create a basic snug Environment."""
    return Environment()


@pytest.fixture
def env_heredoc():
    """Environment that drops the last line break of every source.

    Templates written as indented triple-quoted strings end with a newline
    that is not meant to be output.
    """
    return Environment(loader=DictLoader(PARTIALS), keep_trailing_newline=False)


@pytest.fixture
def env_with_loader():
    """Create an Environment with DictLoader and test templates."""
    loader = DictLoader(
        {
            "page.txt": "<body>\n  <%= include('card.txt', title='Hi') %>\n</body>",
            "card.txt": "<div>\n  <h1><%= title %></h1>\n</div>",
            "greeting.txt": "Hello, <%= name %>!",
        }
    )
    return Environment(loader=loader)

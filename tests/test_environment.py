"""Test environment configuration: loaders, caching, globals and async rendering."""

import asyncio
import gc
from concurrent.futures import ThreadPoolExecutor

import pytest

from snug import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    FunctionLoader,
    Template,
    TemplateNotFoundError,
)


class TestLoaders:
    """Built-in loaders."""

    def test_dict_loader(self):
        env = Environment(loader=DictLoader({"a.txt": "A<%= x %>"}))
        assert env.render("a.txt", x=1) == "A1"

    def test_dict_loader_suggestion(self):
        loader = DictLoader({"header.txt": "h"})
        with pytest.raises(TemplateNotFoundError, match="Did you mean 'header.txt'"):
            loader.get_source("headr.txt")

    def test_dict_loader_lists_available(self):
        loader = DictLoader({"a": "", "b": ""})
        with pytest.raises(TemplateNotFoundError, match="Available: a, b"):
            loader.get_source("zzzzzz")

    def test_filesystem_loader(self, tmp_path):
        (tmp_path / "partials").mkdir()
        (tmp_path / "partials" / "card.txt").write_text("card <%= n %>")
        env = Environment(loader=FileSystemLoader(tmp_path))
        tmpl = env.get_template("partials/card.txt")
        assert tmpl.render(n=1) == "card 1"
        assert tmpl.filename == str(tmp_path / "partials" / "card.txt")
        assert tmpl.name == "partials/card.txt"

    def test_filesystem_search_order(self, tmp_path):
        first, second = tmp_path / "first", tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (first / "x.txt").write_text("first")
        (second / "x.txt").write_text("second")
        (second / "y.txt").write_text("only second")
        env = Environment(loader=FileSystemLoader([first, second]))
        assert env.render("x.txt") == "first"
        assert env.render("y.txt") == "only second"
        assert env.list_templates() == ["x.txt", "y.txt"]

    def test_filesystem_not_found(self, tmp_path):
        with pytest.raises(TemplateNotFoundError, match="missing.txt"):
            FileSystemLoader(tmp_path).get_source("missing.txt")

    def test_choice_loader(self):
        loader = ChoiceLoader(
            [
                DictLoader({"nav": "custom"}),
                DictLoader({"nav": "default", "footer": "footer"}),
            ]
        )
        env = Environment(loader=loader)
        assert env.render("nav") == "custom"
        assert env.render("footer") == "footer"
        assert env.list_templates() == ["footer", "nav"]
        with pytest.raises(TemplateNotFoundError, match="any of 2 loaders"):
            env.get_template("nope")

    def test_function_loader(self):
        def load(name):
            if name == "greeting":
                return "Hello, <%= name %>!"
            if name == "named":
                return "n", "cms://named"
            return None

        env = Environment(loader=FunctionLoader(load))
        assert env.render("greeting", name="World") == "Hello, World!"
        assert env.get_template("greeting").filename == "<function>"
        assert env.get_template("named").filename == "cms://named"
        assert env.list_templates() == []
        with pytest.raises(TemplateNotFoundError):
            env.get_template("other")

    def test_no_loader(self, env):
        with pytest.raises(TemplateNotFoundError, match="no loader"):
            env.get_template("x")
        assert env.list_templates() == []


class TestCache:
    """Template cache."""

    def test_cached_template_reused(self, env_with_loader):
        assert env_with_loader.get_template("greeting.txt") is env_with_loader.get_template(
            "greeting.txt"
        )

    def test_clear_cache(self, env_with_loader):
        first = env_with_loader.get_template("greeting.txt")
        env_with_loader.clear_cache()
        assert env_with_loader.get_template("greeting.txt") is not first

    def test_lru_eviction(self):
        env = Environment(loader=DictLoader({"a": "a", "b": "b", "c": "c"}), cache_size=2)
        a = env.get_template("a")
        env.get_template("b")
        env.get_template("a")
        env.get_template("c")
        assert env.cache_info() == {"size": 2, "max_size": 2}
        assert env.get_template("a") is a

    def test_cache_disabled(self):
        env = Environment(loader=DictLoader({"a": "a"}), cache_size=0)
        assert env.get_template("a") is not env.get_template("a")
        assert env.cache_info()["size"] == 0

    def test_from_string_not_cached(self, env):
        env.from_string("x", name="x")
        assert env.cache_info()["size"] == 0


class TestGlobals:
    """Environment globals."""

    def test_globals_available(self):
        env = Environment(globals={"site": "snug"})
        assert env.from_string("<%= site %>").render() == "snug"

    def test_bindings_override_globals(self):
        env = Environment(globals={"site": "snug"})
        assert env.from_string("<%= site %>").render(site="other") == "other"

    def test_add_global_copy_on_write(self, env):
        before = env.globals
        env.add_global("answer", 42)
        assert env.from_string("<%= answer %>").render() == "42"
        assert "answer" not in before

    def test_globals_dict_copied(self):
        source = {"a": 1}
        env = Environment(globals=source)
        env.add_global("b", 2)
        assert source == {"a": 1}

    def test_builtins_available(self, env):
        assert env.from_string("<%= len(items) %>").render(items=[1, 2]) == "2"


class TestTemplate:
    """Template object API."""

    def test_properties(self, env):
        tmpl = env.from_string("x", name="inline")
        assert isinstance(tmpl, Template)
        assert tmpl.name == "inline"
        assert tmpl.filename is None
        assert tmpl.source == "x"
        assert repr(tmpl) == "<Template inline>"

    def test_render_after_environment_collected(self):
        """Templates hold the Environment weakly."""
        tmpl = Environment().from_string("x", name="orphan")
        gc.collect()
        with pytest.raises(RuntimeError, match="garbage collected.*orphan"):
            tmpl.render()

    def test_render_rejects_positional_non_dict(self, env):
        with pytest.raises(TypeError):
            env.from_string("x").render([1])

    def test_concurrent_renders(self, env):
        tmpl = env.from_string("<%| for i in range(n): %>\n  <%= i %><% end %>")

        def render(n):
            return tmpl.render(n=n)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(render, range(20)))
        assert results == ["\n".join(str(i) for i in range(n)) for n in range(20)]

    def test_render_async(self, env):
        tmpl = env.from_string("Hello, <%= name %>!")
        assert asyncio.run(tmpl.render_async(name="async")) == "Hello, async!"

    @pytest.mark.asyncio
    async def test_render_async_in_event_loop(self, env_with_loader):
        tmpl = env_with_loader.get_template("page.txt")
        result = await tmpl.render_async()
        assert "<h1>Hi</h1>" in result


class TestPublicAPI:
    """Names exported by the ``snug`` package."""

    def test_all_names_resolve(self):
        import snug

        for name in snug.__all__:
            assert hasattr(snug, name), name

    def test_unknown_attribute(self):
        import snug

        with pytest.raises(AttributeError):
            snug._Py_mod_gil  # noqa: B018

"""Tests for sitechat/utils.py and the log excerpt helper."""

import pytest

from sitechat.logger import excerpt
from sitechat.utils import (
    EMPTY_PREVIEW,
    add_freshness,
    build_pages,
    css_variable_name,
    is_valid_session_id,
    render_preview_page,
    slugify,
    styles_to_css,
)


class TestSlugs:
    @pytest.mark.parametrize(
        "name,slug",
        [("Home", "home"), ("About Us", "about-us"), ("  Our   Menu ", "our-menu")],
    )
    def test_slugify(self, name, slug):
        assert slugify(name) == slug

    def test_build_pages_orders_from_one(self):
        pages = build_pages(["Home", "About Us", "Contact"])
        assert [p["order"] for p in pages] == [1, 2, 3]
        assert pages[1] == {"name": "About Us", "slug": "about-us", "order": 2}

    def test_build_pages_keeps_first_duplicate(self):
        pages = build_pages(["Home", "Menu", "home ", ""])
        assert [p["slug"] for p in pages] == ["home", "menu"]


class TestSessionIds:
    @pytest.mark.parametrize("session_id", ["test_user_001", "abc-123", "X"])
    def test_valid(self, session_id):
        assert is_valid_session_id(session_id)

    @pytest.mark.parametrize("session_id", ["", "../up", "a/b", "sp ace", None])
    def test_invalid(self, session_id):
        assert not is_valid_session_id(session_id)


class TestRendering:
    def test_empty_page(self):
        page = render_preview_page()
        assert EMPTY_PREVIEW in page
        assert 'href="styles.css"' in page

    def test_section_page(self):
        page = render_preview_page("<h1>Hi</h1>")
        assert "<h1>Hi</h1>" in page
        assert EMPTY_PREVIEW not in page
        assert "{PREVIEW_CONTENT}" not in page

    @pytest.mark.parametrize(
        "key,name",
        [("primaryColor", "--primary-color"), ("font heading", "--font-heading"), ("bg_color", "--bg-color")],
    )
    def test_css_variable_name(self, key, name):
        assert css_variable_name(key) == name

    def test_styles_to_css(self):
        css = styles_to_css({"primaryColor": "#FF5733", "evil": "red; } body { x"})
        assert css.startswith(":root {")
        assert "  --primary-color: #FF5733;" in css
        assert "  --evil: red  body { x;" in css
        assert css.count("}") == 1


class TestFreshness:
    def test_appends_token(self):
        assert add_freshness("/prospects/u/index.html", "42") == "/prospects/u/index.html?t=42"

    def test_replaces_existing_query(self):
        assert add_freshness("/prospects/u/index.html?t=1", "2") == "/prospects/u/index.html?t=2"

    def test_generated_tokens_are_numeric(self):
        assert add_freshness("/x").split("?t=")[1].isdigit()


class TestExcerpt:
    def test_short_text_flattened(self):
        assert excerpt("hello\n\nworld") == "hello world"

    def test_long_text_truncated(self):
        assert excerpt("a" * 150, limit=10) == "a" * 10 + "..."

    def test_empty(self):
        assert excerpt(None) == ""

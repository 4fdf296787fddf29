"""Tests for sitechat/tagging.py: recognition, malformed tags and display stripping."""

import pytest

from sitechat.tagging import (
    CLEAR_PREVIEW,
    GENERATE_INDEX,
    GET_APPROVED_SECTIONS,
    METADATA,
    PREVIEW,
    SITEMAP,
    STYLES,
    Detection,
    TagGrammar,
    parse_pairs,
)


@pytest.fixture
def grammar():
    return TagGrammar()


FULL_MESSAGE = """Great, here's the plan!
[SITEMAP: Home, About Us, Contact]
[METADATA: businessName=Austin Tacos, domain=austintacos.example]
[STYLES: primaryColor=#FF5733, fontHeading=Inter]

[PREVIEW: section=hero]
<section class="hero"><h1>Austin Tacos</h1></section>
[/PREVIEW]

Take a look at the hero and let me know."""


# ---------------------------------------------------------------------------
# parse_pairs()
# ---------------------------------------------------------------------------

class TestParsePairs:
    def test_simple_pairs(self):
        assert parse_pairs("a=1, b=2") == {"a": "1", "b": "2"}

    def test_value_keeps_further_equals(self):
        assert parse_pairs("logo=https://x.example/?v=2") == {"logo": "https://x.example/?v=2"}

    def test_blank_key_or_value_dropped(self):
        assert parse_pairs("=orphan, empty=, ok=yes") == {"ok": "yes"}

    def test_chunk_without_equals_dropped(self):
        assert parse_pairs("justtext, a=1") == {"a": "1"}

    def test_whitespace_trimmed(self):
        assert parse_pairs("  businessName =  Austin Tacos  ") == {"businessName": "Austin Tacos"}


# ---------------------------------------------------------------------------
# detect()
# ---------------------------------------------------------------------------

class TestDetect:
    def test_empty_input_yields_empty_detection(self, grammar):
        assert grammar.detect("") == Detection()
        assert grammar.detect("").is_empty()

    def test_non_string_input_yields_empty_detection(self, grammar):
        assert grammar.detect(None).is_empty()
        assert grammar.detect(42).is_empty()

    def test_plain_text_has_no_tags(self, grammar):
        assert grammar.detect("What's your business called?").is_empty()

    def test_metadata(self, grammar):
        detection = grammar.detect("[METADATA: a=1, b=2]")
        assert detection.metadata == {"a": "1", "b": "2"}
        assert detection.kinds() == {METADATA}

    def test_sitemap_keeps_order_and_drops_empty_entries(self, grammar):
        detection = grammar.detect("[SITEMAP: Home, , About Us,Contact ]")
        assert detection.sitemap == ("Home", "About Us", "Contact")

    def test_styles(self, grammar):
        detection = grammar.detect("[STYLES: primaryColor=#FF5733]")
        assert detection.styles == {"primaryColor": "#FF5733"}

    def test_preview(self, grammar):
        detection = grammar.detect("[PREVIEW: section=hero]\n<h1>Hi</h1>\n[/PREVIEW]")
        assert detection.preview == ("hero", "<h1>Hi</h1>")

    def test_preview_section_may_contain_hyphen(self, grammar):
        detection = grammar.detect("[PREVIEW: section=hero-banner]<h1>Hi</h1>[/PREVIEW]")
        assert detection.preview == ("hero-banner", "<h1>Hi</h1>")

    def test_generate_index(self, grammar):
        detection = grammar.detect("[GENERATE_INDEX]<html></html>[/GENERATE_INDEX]")
        assert detection.generate_index == "<html></html>"

    def test_flags(self, grammar):
        detection = grammar.detect("[CLEAR_PREVIEW] and [GET_APPROVED_SECTIONS]")
        assert detection.clear_preview is True
        assert detection.get_approved_sections is True
        assert detection.kinds() == {CLEAR_PREVIEW, GET_APPROVED_SECTIONS}

    def test_multiple_kinds_in_one_message(self, grammar):
        detection = grammar.detect(FULL_MESSAGE)
        assert detection.kinds() == {SITEMAP, METADATA, STYLES, PREVIEW}
        assert detection.sitemap == ("Home", "About Us", "Contact")
        assert detection.metadata["domain"] == "austintacos.example"
        assert detection.preview[0] == "hero"


class TestMalformedTags:
    def test_unclosed_preview_is_absent(self, grammar):
        detection = grammar.detect("[PREVIEW: section=hero]<h1>never closed</h1>")
        assert detection.preview is None

    def test_empty_preview_body_is_absent(self, grammar):
        assert grammar.detect("[PREVIEW: section=hero]   [/PREVIEW]").preview is None

    def test_preview_without_section_is_absent(self, grammar):
        assert grammar.detect("[PREVIEW: hero]<h1>x</h1>[/PREVIEW]").preview is None

    def test_metadata_without_pairs_is_absent(self, grammar):
        assert grammar.detect("[METADATA: nothing here]").metadata is None

    def test_blank_sitemap_is_absent(self, grammar):
        assert grammar.detect("[SITEMAP: , ]").sitemap is None

    def test_empty_generate_index_is_absent(self, grammar):
        assert grammar.detect("[GENERATE_INDEX][/GENERATE_INDEX]").generate_index is None

    def test_malformed_tag_does_not_hide_valid_ones(self, grammar):
        detection = grammar.detect("[METADATA: broken] [SITEMAP: Home]")
        assert detection.kinds() == {SITEMAP}


class TestDerivedQueries:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain text",
            "[SITEMAP: Home]",
            "[METADATA: broken]",
            "[GENERATE_INDEX]<html></html>[/GENERATE_INDEX]",
            FULL_MESSAGE,
        ],
    )
    def test_has_tags_and_tag_kinds_agree_with_detect(self, grammar, text):
        detection = grammar.detect(text)
        assert grammar.has_tags(text) == (not detection.is_empty())
        assert grammar.tag_kinds(text) == detection.kinds()

    def test_malformed_only_message_has_no_tags(self, grammar):
        assert grammar.has_tags("[PREVIEW: section=hero]oops") is False


# ---------------------------------------------------------------------------
# strip_tags()
# ---------------------------------------------------------------------------

class TestStripTags:
    def test_removes_every_tag_span(self, grammar):
        stripped = grammar.strip_tags(FULL_MESSAGE)
        assert "[" not in stripped
        assert "<section" not in stripped
        assert stripped.startswith("Great, here's the plan!")
        assert stripped.endswith("let me know.")

    def test_collapses_blank_runs(self, grammar):
        stripped = grammar.strip_tags("Hello\n[SITEMAP: Home]\n\n\n\nBye")
        assert "\n\n\n" not in stripped
        assert stripped == "Hello\n\nBye"

    def test_plain_text_unchanged(self, grammar):
        assert grammar.strip_tags("Just chatting.") == "Just chatting."

    def test_non_string_returned_as_is(self, grammar):
        assert grammar.strip_tags(None) is None

    @pytest.mark.parametrize(
        "text",
        [
            FULL_MESSAGE,
            "[SITE[CLEAR_PREVIEW]MAP: Home] done",
            "[GENERATE_INDEX]<html>[/GENERATE_INDEX]\n\n\n\ntrailer",
            "  spaced  ",
        ],
    )
    def test_idempotent(self, grammar, text):
        once = grammar.strip_tags(text)
        assert grammar.strip_tags(once) == once

    def test_tag_exposed_by_removal_is_also_removed(self, grammar):
        assert grammar.strip_tags("[SITE[CLEAR_PREVIEW]MAP: Home] done") == "done"

    def test_stripped_text_has_no_tags(self, grammar):
        assert grammar.has_tags(grammar.strip_tags(FULL_MESSAGE)) is False

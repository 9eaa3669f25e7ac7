"""Tests for the post content sanitizer."""

import logging

import pytest
from bs4 import BeautifulSoup

from postdesk.core import sanitizer
from postdesk.core.sanitizer import ContentSanitizer


@pytest.fixture
def clean():
    return ContentSanitizer().clean


class TestAllowList:
    def test_allowed_markup_unchanged(self, clean):
        html = "<p>Hello <strong>world</strong> and <em>friends</em></p><ul><li>one</li></ul>"
        assert clean(html) == html

    def test_script_removed_with_content(self, clean):
        assert clean("<p>Hi</p><script>alert(1)</script>") == "<p>Hi</p>"

    def test_event_handlers_removed(self, clean):
        assert clean('<p onclick="steal()">Hi</p>') == "<p>Hi</p>"

    def test_javascript_links_lose_href(self, clean):
        result = clean('<p><a href="javascript:alert(1)">x</a></p>')
        assert "javascript" not in result
        assert ">x</a>" in result

    def test_disallowed_tags_stripped_text_kept(self, clean):
        assert clean("<h1>Title</h1>") == "<p>Title</p>"

    def test_inline_data_images_kept(self, clean):
        result = clean('<p><img src="data:image/png;base64,AAAA" alt="pasted"></p>')
        assert 'src="data:image/png;base64,AAAA"' in result
        assert 'alt="pasted"' in result

    def test_style_limited_to_allowed_properties(self, clean):
        result = clean('<p style="color: red; position: fixed">x</p>')
        assert "color: red" in result
        assert "position" not in result

    def test_iframe_only_when_enabled(self):
        html = '<iframe src="https://video.example.com/embed/1"></iframe>'
        assert "<iframe" not in ContentSanitizer().clean(html)
        assert "<iframe" in ContentSanitizer(allow_iframe=True).clean(html)


class TestPostProcessing:
    def test_links_open_in_new_tab(self, clean):
        result = clean('<p><a href="https://example.com">x</a></p>')
        assert 'target="_blank"' in result
        assert 'rel="noopener noreferrer"' in result

    def test_bare_text_wrapped_in_paragraphs(self, clean):
        assert clean("Hello world") == "<p>Hello world</p>"
        assert clean("First\n\nSecond") == "<p>First</p><p>Second</p>"

    def test_empty_elements_removed(self, clean):
        assert clean("<p>Intro</p><p> </p><h2></h2>") == "<p>Intro</p>"

    def test_empty_input(self, clean):
        assert clean("") == ""


@pytest.mark.parametrize("html", [
    "<p>Hello <strong>world</strong></p>",
    "Loose text with a <a href='https://example.com'>link</a>",
    "<script>x()</script><p style='color: blue; position: absolute'>styled</p>",
    "One\n\nTwo<br>Three",
    '<img src="https://example.com/a.png">',
])
def test_sanitizing_twice_is_stable(clean, html):
    once = clean(html)
    assert clean(once) == once


def test_escapes_when_bleach_missing(monkeypatch, caplog):
    monkeypatch.setattr(sanitizer, "_HAS_BLEACH", False)
    with caplog.at_level(logging.CRITICAL):
        fallback = ContentSanitizer()
        assert fallback.escape_only
        assert fallback.clean("<b>x</b>") == "&lt;b&gt;x&lt;/b&gt;"
    assert any(r.levelno == logging.CRITICAL for r in caplog.records)


class TestBlockStyles:
    def test_headings_and_lists_keep_allowed_styles(self, clean):
        result = clean(
            '<h2 style="text-align: center">T</h2>'
            '<ul style="list-style-type: square"><li style="color: red">a</li></ul>'
            '<blockquote style="margin-left: 10px">q</blockquote>'
        )
        soup = BeautifulSoup(result, "html.parser")
        assert "text-align: center" in soup.h2["style"]
        assert "list-style-type: square" in soup.ul["style"]
        assert "color: red" in soup.li["style"]
        assert "margin-left: 10px" in soup.blockquote["style"]

    def test_block_styles_still_filtered(self, clean):
        result = clean('<h3 style="position: fixed; color: blue">T</h3>')
        assert "position" not in result
        assert "color: blue" in result

    def test_styled_blocks_are_stable(self, clean):
        once = clean('<ol style="list-style-type: lower-roman"><li>x</li></ol>')
        assert clean(once) == once

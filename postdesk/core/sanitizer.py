"""
HTML sanitization for rich-text post bodies.

Content goes through an explicit allow-list with bleach, then a few
BeautifulSoup passes: links open in a new tab, stray top-level text is
wrapped in paragraphs, and empty elements are dropped. Running ``clean``
on its own output returns it unchanged.

When bleach (or tinycss2, needed for the CSS allow-list) is not
installed, content is HTML-escaped instead of stored as-is.
"""

from functools import lru_cache
import html
import logging
import re
from typing import Dict, FrozenSet, List

from bs4 import BeautifulSoup, NavigableString, Tag

from postdesk.core.config import settings

logger = logging.getLogger(__name__)

# Optional dependency
try:
    import bleach
    from bleach.css_sanitizer import CSSSanitizer

    _HAS_BLEACH = True
except ImportError:
    bleach = None  # type: ignore[assignment]
    CSSSanitizer = None  # type: ignore[assignment]
    _HAS_BLEACH = False


ALLOWED_TAGS = [
    "p", "br", "b", "strong", "i", "em", "u", "s", "strike", "span",
    "ul", "ol", "li",
    "a", "img",
    "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "code",
    "figure", "figcaption",
]
ALLOWED_ATTRS: Dict[str, List[str]] = {
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title", "width", "height", "style"],
    "span": ["style"],
    # Block elements keep a CSS-filtered style attribute
    **{tag: ["style"] for tag in (
        "p", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li",
        "blockquote", "pre", "figure", "figcaption",
    )},
}
IFRAME_ATTRS = ["src", "width", "height", "frameborder", "allowfullscreen", "title"]
ALLOWED_CSS_PROPERTIES = [
    "text-align", "float", "margin", "margin-left", "margin-right", "margin-top", "margin-bottom",
    "padding", "padding-left", "padding-right", "padding-top", "padding-bottom",
    "width", "height", "border", "border-collapse", "border-spacing", "list-style-type",
    "color", "background-color", "font-weight", "font-style", "text-decoration",
    "display",
]
# data: lets editors paste inline images
ALLOWED_PROTOCOLS = ["http", "https", "mailto", "ftp", "nntp", "news", "data"]

# Dropped together with their content before the allow-list runs
_DROP_WITH_CONTENT = ["script", "style", "noscript", "template"]
_BLOCK_TAGS = frozenset([
    "p", "ul", "ol", "li", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "figure", "figcaption", "iframe",
])
_KEEP_WHEN_EMPTY = frozenset(["br", "img", "iframe"])
_BLANK_LINE = re.compile(r"\n[ \t\r\f\v]*\n\s*")


class ContentSanitizer:
    """Reusable sanitization policy for post bodies"""

    def __init__(self, allow_iframe: bool = False):
        self.allow_iframe = allow_iframe
        self.tags: FrozenSet[str] = frozenset(ALLOWED_TAGS + (["iframe"] if allow_iframe else []))
        self.attributes = dict(ALLOWED_ATTRS)
        if allow_iframe:
            self.attributes["iframe"] = IFRAME_ATTRS
        self.escape_only = not _HAS_BLEACH
        self.css_sanitizer = None
        if self.escape_only:
            logger.critical(
                "bleach (with tinycss2) is not installed; post content will be HTML-escaped, not sanitized"
            )
        else:
            self.css_sanitizer = CSSSanitizer(allowed_css_properties=ALLOWED_CSS_PROPERTIES)

    def clean(self, raw_html: str) -> str:
        if not raw_html:
            return ""
        if self.escape_only:
            logger.critical("Sanitizer unavailable, escaping post content")
            return html.escape(raw_html)

        cleaned = bleach.clean(
            self._drop_dangerous_blocks(raw_html),
            tags=self.tags,
            attributes=self.attributes,
            protocols=ALLOWED_PROTOCOLS,
            css_sanitizer=self.css_sanitizer,
            strip=True,
            strip_comments=True,
        )

        soup = BeautifulSoup(cleaned, "html.parser")
        self._target_blank(soup)
        self._auto_paragraph(soup)
        self._remove_empty(soup)
        return str(soup)

    @staticmethod
    def _drop_dangerous_blocks(raw_html: str) -> str:
        soup = BeautifulSoup(raw_html, "html.parser")
        found = soup.find_all(_DROP_WITH_CONTENT)
        if not found:
            return raw_html
        for tag in found:
            tag.decompose()
        return str(soup)

    @staticmethod
    def _target_blank(soup: BeautifulSoup) -> None:
        for link in soup.find_all("a"):
            link["target"] = "_blank"
            link["rel"] = "noopener noreferrer"

    def _auto_paragraph(self, soup: BeautifulSoup) -> None:
        groups: List[List] = []
        current: List = []
        for node in list(soup.children):
            if self._is_inline(node):
                current.append(node)
            elif current:
                groups.append(current)
                current = []
        if current:
            groups.append(current)

        for group in groups:
            if not self._has_content(group):
                continue

            paragraphs: List[List] = [[]]
            for node in group:
                if isinstance(node, NavigableString):
                    for i, piece in enumerate(_BLANK_LINE.split(str(node))):
                        if i:
                            paragraphs.append([])
                        if piece:
                            paragraphs[-1].append(piece)
                else:
                    paragraphs[-1].append(node)

            marker = soup.new_string("")
            group[0].insert_before(marker)
            for nodes in paragraphs:
                if not self._has_content(nodes):
                    continue
                paragraph = soup.new_tag("p")
                for item in nodes:
                    paragraph.append(NavigableString(item) if isinstance(item, str) else item)
                marker.insert_before(paragraph)
            for node in group:
                if isinstance(node, NavigableString):
                    node.extract()
            marker.extract()

    @staticmethod
    def _is_inline(node) -> bool:
        if isinstance(node, Tag):
            return node.name not in _BLOCK_TAGS
        return isinstance(node, NavigableString)

    @staticmethod
    def _has_content(nodes) -> bool:
        for node in nodes:
            if isinstance(node, Tag):
                if node.name != "br":
                    return True
            elif str(node).strip():
                return True
        return False

    @staticmethod
    def _remove_empty(soup: BeautifulSoup) -> None:
        # Reverse document order visits children before their parents
        for tag in reversed(soup.find_all(True)):
            if tag.name in _KEEP_WHEN_EMPTY:
                continue
            if tag.get_text(strip=True):
                continue
            if tag.find(list(_KEEP_WHEN_EMPTY)):
                continue
            tag.decompose()


@lru_cache()
def get_content_sanitizer() -> ContentSanitizer:
    return ContentSanitizer(allow_iframe=settings.SANITIZER_ALLOW_IFRAME)


def sanitize_content(raw_html: str) -> str:
    return get_content_sanitizer().clean(raw_html)

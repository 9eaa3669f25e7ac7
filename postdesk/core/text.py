"""Plain-text helpers for post slugs and excerpts."""

import re
import unicodedata

from bs4 import BeautifulSoup

SLUG_MAX_LENGTH = 200

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lower-case ASCII slug; returns "" when nothing usable is left."""
    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", folded.lower()).strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


def strip_tags(html: str) -> str:
    """Text content of an HTML fragment with whitespace collapsed."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def generate_excerpt(html: str, length: int = 155) -> str:
    """
    Plain-text summary of ``html`` cut at a word boundary.

    Text shorter than ``length`` is returned whole; otherwise it is cut to
    at most ``length`` characters (ellipsis included) and ``...`` is appended.
    """
    text = strip_tags(html)
    if len(text) <= length:
        return text

    cut = text[: max(length - 3, 1)]
    if " " in cut and not text[len(cut)].isspace():
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:.-") + "..."

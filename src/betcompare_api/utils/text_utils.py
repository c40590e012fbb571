"""
# Text Derivation Utilities

Pure helpers used when content documents are written: slugs, HTML stripping,
word counts, reading time, excerpts and the heading-based table of contents.

HTML stripping goes through `bleach` with an empty tag allow-list, the same
sanitizer used by the request models, followed by entity unescaping so that
`&amp;` counts as one character and not five.
"""

import html
import math
import re
import unicodedata
from typing import Dict, List, Optional, Union

import bleach

WORDS_PER_MINUTE = 200

_SLUG_REMOVE_RE = re.compile(r"[*+~.()'\"!:@]")
_SLUG_STRICT_RE = re.compile(r"[^A-Za-z0-9\s-]")
_SLUG_SEPARATOR_RE = re.compile(r"[\s-]+")
_SLUG_FORMAT_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_HEADING_RE = re.compile(r"<h([1-6])[^>]*>([^<]+)</h[1-6]>", re.IGNORECASE)


def slugify(value: str) -> str:
    """
    Build a URL slug from a title or name.

    The value is transliterated to ASCII, punctuation is dropped, and runs of
    whitespace or hyphens collapse to a single hyphen.

    >>> slugify("Bet Way Kenya!")
    'bet-way-kenya'
    >>> slugify("Odibets vs. SportPesa: 2024")
    'odibets-vs-sportpesa-2024'
    """
    if not value:
        return ""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = _SLUG_REMOVE_RE.sub("", normalized)
    normalized = _SLUG_STRICT_RE.sub("", normalized)
    return _SLUG_SEPARATOR_RE.sub("-", normalized.strip()).strip("-").lower()


def is_valid_slug(value: str) -> bool:
    return bool(_SLUG_FORMAT_RE.match(value or ""))


def strip_html(content: Optional[str]) -> str:
    """Remove all tags from `content` and unescape entities."""
    if not content:
        return ""
    return html.unescape(bleach.clean(content, tags=[], strip=True))


def word_count(text: Optional[str]) -> int:
    """Count whitespace-delimited tokens after HTML stripping."""
    return len(strip_html(text).split())


def reading_time(words: int) -> int:
    """Minutes needed at 200 words per minute, rounded up."""
    return math.ceil(words / WORDS_PER_MINUTE)


def truncate_with_ellipsis(text: str, length: int) -> str:
    return text[:length] + "..."


def make_excerpt(content: Optional[str], length: int = 300) -> str:
    """First `length` characters of the stripped content followed by an ellipsis."""
    return truncate_with_ellipsis(strip_html(content), length)


def table_of_contents(content: Optional[str]) -> List[Dict[str, Union[int, str]]]:
    """
    Parse `<h1>`..`<h6>` headings out of HTML content.

    Headings containing nested markup are skipped.
    """
    if not content:
        return []
    entries = []
    for level, title in _HEADING_RE.findall(content):
        title = title.strip()
        entries.append({"level": int(level), "title": title, "anchor": slugify(title)})
    return entries


def seo_title(title: str, site_name: str) -> str:
    return f"{title} | {site_name}"

"""Anchor enumeration with hierarchical text context.

For each ``<a href>`` the extractor collects the link's own text, the alt text
of its first image, its title attribute and the cleaned text of up to three
ancestors (parent, grandparent, great-grandparent). Hrefs matching the ignore
list are dropped before any of that work happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from bs4 import BeautifulSoup  # type: ignore
from bs4.element import Tag  # type: ignore

from .scout_config import IGNORED_PATTERNS, MAX_LINKS_PER_SITE
from .scout_utils import clean_text, should_ignore_link

ANCESTOR_DEPTH = 3


@dataclass(frozen=True)
class AnchorInfo:
    href: str
    link_text: str = ""
    img_alt_text: str = ""
    title_attr: str = ""
    ancestor_text: str = ""


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def ancestor_text(tag: Tag, depth: int = ANCESTOR_DEPTH) -> str:
    """Join the cleaned text of up to *depth* ancestors, nearest first."""

    parts: List[str] = []
    current = tag.parent
    for _ in range(depth):
        if current is None or isinstance(current, BeautifulSoup):
            break
        text = clean_text(current.get_text(" "))
        if text:
            parts.append(text)
        current = current.parent
    return " ".join(parts)


def build_anchor_info(tag: Tag, href: str) -> AnchorInfo:
    img = tag.find("img")
    return AnchorInfo(
        href=href,
        link_text=clean_text(tag.get_text(" ")),
        img_alt_text=_attr(img, "alt") if isinstance(img, Tag) else "",
        title_attr=_attr(tag, "title"),
        ancestor_text=ancestor_text(tag),
    )


def iter_anchors(
    soup: BeautifulSoup,
    ignored_patterns: Iterable[str] = IGNORED_PATTERNS,
) -> Iterator[AnchorInfo]:
    """Yield context for every usable anchor in document order.

    Context is built only for anchors the caller actually consumes.
    """

    patterns = tuple(ignored_patterns)
    for tag in soup.find_all("a", href=True):
        href = _attr(tag, "href")
        if not href or should_ignore_link(href, patterns):
            continue
        yield build_anchor_info(tag, href)


def extract_anchors(
    soup: BeautifulSoup,
    ignored_patterns: Iterable[str] = IGNORED_PATTERNS,
    limit: Optional[int] = MAX_LINKS_PER_SITE,
) -> List[AnchorInfo]:
    anchors: List[AnchorInfo] = []
    for info in iter_anchors(soup, ignored_patterns):
        if limit is not None and len(anchors) >= limit:
            break
        anchors.append(info)
    return anchors

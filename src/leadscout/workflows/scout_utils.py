"""Shared helper functions used by the scan workflow."""

from __future__ import annotations

import random
import re
import unicodedata
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: Optional[str]) -> str:
    """Collapse newlines, tabs and runs of spaces into single spaces."""

    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def should_ignore_link(href: str, patterns: Iterable[str]) -> bool:
    """Return True when the raw href contains any ignore-list entry."""

    lowered = (href or "").lower()
    return any(pattern in lowered for pattern in patterns)


def is_absolute_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def safe_url_join(base: str, href: str) -> Optional[str]:
    """Resolve *href* against *base*; None when the result is not an absolute http(s) URL."""

    try:
        joined = urljoin(base, (href or "").strip())
    except ValueError:
        return None
    if not is_absolute_http_url(joined):
        return None
    return joined


def pick_user_agent(pool: Sequence[str], rng: Optional[random.Random] = None) -> str:
    chooser = rng or random
    return chooser.choice(list(pool))


def normalize_terms(terms: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Strip and dedupe keyword terms case-insensitively.

    The first spelling of each term is kept so it can be reported back as given.
    """

    seen: set[str] = set()
    out: List[str] = []
    for raw in terms or ():
        term = (raw or "").strip()
        key = term.lower()
        if not term or key in seen:
            continue
        seen.add(key)
        out.append(term)
    return tuple(out)


def find_terms(haystack: str, terms: Iterable[str]) -> List[str]:
    """Return the terms contained in the lower-cased *haystack*, in policy order."""

    return [term for term in terms if term.lower() in haystack]


def contains_any(haystack: str, terms: Iterable[str]) -> bool:
    return any(term.lower() in haystack for term in terms)


def collation_key(value: str) -> Tuple[str, str]:
    """Accent- and case-insensitive sort key; the raw value breaks ties."""

    decomposed = unicodedata.normalize("NFKD", value or "")
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), value or ""


def sanity_check() -> None:
    assert clean_text("  Trator\n\tusado  ") == "Trator usado"
    assert should_ignore_link("https://facebook.com/x", ("facebook",))
    assert safe_url_join("https://example.com/a/", "b") == "https://example.com/a/b"
    assert safe_url_join("https://example.com", "ftp://example.com/x") is None
    assert normalize_terms([" Trator ", "trator", ""]) == ("Trator",)
    assert find_terms("trator usado", ("Trator",)) == ["Trator"]
    assert collation_key("Árvore")[0] == "arvore"


sanity_check()

__all__ = [
    "clean_text",
    "should_ignore_link",
    "is_absolute_http_url",
    "safe_url_join",
    "pick_user_agent",
    "normalize_terms",
    "find_terms",
    "contains_any",
    "collation_key",
    "sanity_check",
]

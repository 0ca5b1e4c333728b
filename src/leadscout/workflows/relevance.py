"""Three-tier keyword classification of a single anchor.

Matching is plain case-insensitive substring containment: no stemming and no
fuzzy matching. The order of terms in a policy never changes the verdict,
only the order in which matched terms are reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..core.errors import PolicyError
from .link_context import AnchorInfo
from .scout_config import (
    DEFAULT_POSITIVE_KEYWORDS,
    DEFAULT_SHORT_LABELS,
    DEFAULT_STRONG_NEGATIVE_KEYWORDS,
    DEFAULT_WEAK_NEGATIVE_KEYWORDS,
)
from .scout_utils import contains_any, find_terms, normalize_terms, safe_url_join

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 150
MIN_DESCRIPTION_CHARS = 5
AUTO_PREFIX = "[AUTO] "
AUTO_CONTEXT_CHARS = 80

REASON_STRONG_NEGATIVE = "strong_negative"
REASON_NO_POSITIVE = "no_positive"
REASON_WEAK_NEGATIVE = "weak_negative"
REASON_BAD_URL = "bad_url"


@dataclass(frozen=True)
class KeywordPolicy:
    """Positive terms plus the two veto tiers, trimmed and deduped case-insensitively."""

    positive: Tuple[str, ...]
    strong_negative: Tuple[str, ...] = ()
    weak_negative: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("positive", "strong_negative", "weak_negative"):
            value = getattr(self, name)
            if isinstance(value, str):
                raise PolicyError(f"{name} must be a sequence of strings")
            try:
                value = tuple(value or ())
            except TypeError as exc:
                raise PolicyError(f"{name} must be a sequence of strings") from exc
            if not all(isinstance(term, str) for term in value):
                raise PolicyError(f"{name} must be a sequence of strings")
            object.__setattr__(self, name, normalize_terms(value))
        if not self.positive:
            raise PolicyError("at least one positive keyword is required")

    @classmethod
    def build(
        cls,
        positive: Optional[Iterable[str]] = None,
        strong_negative: Optional[Iterable[str]] = None,
        weak_negative: Optional[Iterable[str]] = None,
    ) -> "KeywordPolicy":
        """Build a policy, falling back to the defaults for empty lists."""

        return cls(
            positive=tuple(positive or ()) or DEFAULT_POSITIVE_KEYWORDS,
            strong_negative=tuple(strong_negative or ()) or DEFAULT_STRONG_NEGATIVE_KEYWORDS,
            weak_negative=tuple(weak_negative or ()) or DEFAULT_WEAK_NEGATIVE_KEYWORDS,
        )


DEFAULT_POLICY = KeywordPolicy.build()


@dataclass(frozen=True)
class LinkCandidate:
    description: str
    destination_url: str


@dataclass(frozen=True)
class Classification:
    matched: bool
    candidate: Optional[LinkCandidate] = None
    found_terms: Tuple[str, ...] = ()
    reason: Optional[str] = None

    @classmethod
    def rejected(cls, reason: str, found_terms: Tuple[str, ...] = ()) -> "Classification":
        return cls(matched=False, found_terms=found_terms, reason=reason)


def _join_context(*parts: str) -> str:
    return " ".join(part for part in parts if part).lower()


def _is_short_label(link_text: str, short_labels: Iterable[str]) -> bool:
    label = link_text.strip().lower()
    return bool(label) and label in {item.strip().lower() for item in short_labels}


def describe(anchor: AnchorInfo) -> str:
    """Pick a readable description, synthesizing one from ancestors when needed."""

    description = anchor.link_text or anchor.img_alt_text or anchor.title_attr
    if len(description) < MIN_DESCRIPTION_CHARS:
        description = f"{AUTO_PREFIX}{anchor.ancestor_text[:AUTO_CONTEXT_CHARS]}..."
    return description[:MAX_DESCRIPTION_CHARS]


def classify(
    anchor: AnchorInfo,
    source_url: str,
    policy: KeywordPolicy,
    short_labels: Iterable[str] = DEFAULT_SHORT_LABELS,
) -> Classification:
    full_context = _join_context(
        anchor.link_text,
        anchor.img_alt_text,
        anchor.title_attr,
        anchor.ancestor_text,
        anchor.href,
    )
    if contains_any(full_context, policy.strong_negative):
        return Classification.rejected(REASON_STRONG_NEGATIVE)

    found = tuple(find_terms(full_context, policy.positive))
    if not found:
        return Classification.rejected(REASON_NO_POSITIVE)

    # Generic captions ("ver", "clique aqui") stay out of the weak-negative check.
    short_label = _is_short_label(anchor.link_text, short_labels)
    link_context = _join_context(
        "" if short_label else anchor.link_text,
        anchor.img_alt_text,
        anchor.title_attr,
        anchor.href,
    )
    if contains_any(link_context, policy.weak_negative):
        return Classification.rejected(REASON_WEAK_NEGATIVE, found)

    destination = safe_url_join(source_url, anchor.href)
    if destination is None:
        return Classification.rejected(REASON_BAD_URL, found)

    candidate = LinkCandidate(
        description=describe(anchor),
        destination_url=destination,
    )
    return Classification(matched=True, candidate=candidate, found_terms=found)

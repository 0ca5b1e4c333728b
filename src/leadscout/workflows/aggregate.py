"""Cross-site flattening, deduplication and ordering of matched links."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from ..core.keys import K_DESCRIPTION, K_DESTINATION_URL, K_MATCHED_TERMS, K_SOURCE_SITE
from .scout_utils import collation_key
from .site_analyzer import SiteResult

TERMS_SEPARATOR = ", "


@dataclass(frozen=True)
class Opportunity:
    source_site: str
    matched_terms: str
    description: str
    destination_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_SOURCE_SITE: self.source_site,
            K_MATCHED_TERMS: self.matched_terms,
            K_DESCRIPTION: self.description,
            K_DESTINATION_URL: self.destination_url,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def flatten(site_results: Iterable[SiteResult]) -> List[Opportunity]:
    rows: List[Opportunity] = []
    for site in site_results:
        if not site.links:
            continue
        terms = TERMS_SEPARATOR.join(site.matched_terms)
        for link in site.links:
            rows.append(
                Opportunity(
                    source_site=site.url,
                    matched_terms=terms,
                    description=link.description,
                    destination_url=link.destination_url,
                )
            )
    return rows


def _sort_key(row: Opportunity):
    return collation_key(row.source_site), collation_key(row.description)


def aggregate(site_results: Iterable[SiteResult]) -> List[Opportunity]:
    """Flatten, keep the first row per destination URL, then sort deterministically."""

    seen: set[str] = set()
    unique: List[Opportunity] = []
    for row in flatten(site_results):
        if row.destination_url in seen:
            continue
        seen.add(row.destination_url)
        unique.append(row)
    # Stable sort: rows with identical keys keep traversal order.
    return sorted(unique, key=_sort_key)

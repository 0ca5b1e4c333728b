"""Shared report keys to avoid magic strings across leadscout modules."""

from __future__ import annotations

# Report envelope
K_META = "meta"
K_DATA = "data"
K_TOTAL_SITES = "total_sites"
K_OPPORTUNITIES_FOUND = "opportunities_found"
K_DURATION_MS = "duration_ms"

# Opportunity rows
K_SOURCE_SITE = "source_site"
K_MATCHED_TERMS = "matched_terms"
K_DESCRIPTION = "description"
K_DESTINATION_URL = "destination_url"

# Per-site results
K_URL = "url"
K_STATUS = "status"
K_HTTP_STATUS = "http_status"
K_LINKS = "links"
K_SCRIPT_RENDERED = "script_rendered"
K_FLAGGED = "flagged"
K_ERROR = "error"

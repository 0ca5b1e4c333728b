"""Scan defaults (keyword lists, ignore patterns, headers, limits).

Centralizes static defaults so the pipeline modules have no embedded magic
strings. These are baseline constants used to construct a ScoutConfig and a
KeywordPolicy; callers can inject their own values to override any of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Limits
DEFAULT_TIMEOUT = 30.0
MAX_LINKS_PER_SITE = 150
CONCURRENCY_LIMIT = 5
SHORT_CONTENT_BYTES = 5000
MAX_REDIRECTS = 5
MAX_URLS_PER_SCAN = 500
MAX_POSITIVE_KEYWORDS = 50

# Request headers
HDR_USER_AGENT = "User-Agent"
HDR_ACCEPT = "Accept"
HDR_ACCEPT_LANGUAGE = "Accept-Language"
ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7"

USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.3 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:123.0) Gecko/20100101 Firefox/123.0",
)

# Substrings that disqualify an href before any context is built
IGNORED_PATTERNS: Tuple[str, ...] = (
    "facebook",
    "twitter",
    "instagram",
    "linkedin",
    "whatsapp",
    "youtube",
    "login",
    "cadastro",
    "minha-conta",
    "recuperar",
    "politica",
    "fale-conosco",
    "javascript",
    "#",
    "tel:",
    "mailto:",
    "xmlrpc.php",
)

# Keyword policy defaults (agricultural equipment listings)
DEFAULT_POSITIVE_KEYWORDS: Tuple[str, ...] = (
    "trator",
    "tratores",
    "colheitadeira",
    "colhedora",
    "plantadeira",
    "semeadeira",
    "pulverizador",
    "retroescavadeira",
    "pá carregadeira",
    "implemento agrícola",
    "implementos agrícolas",
    "grade aradora",
    "roçadeira",
    "enfardadeira",
    "máquina agrícola",
    "máquinas agrícolas",
)

DEFAULT_STRONG_NEGATIVE_KEYWORDS: Tuple[str, ...] = (
    "sucata",
    "miniatura",
    "brinquedo",
    "peças de reposição",
    "aluguel",
    "locação",
    "vaga de emprego",
)

DEFAULT_WEAK_NEGATIVE_KEYWORDS: Tuple[str, ...] = (
    "notícia",
    "noticia",
    "blog",
    "artigo",
    "evento",
    "galeria",
    "vídeo",
    "manual",
)

# Generic captions that say nothing about the target page
DEFAULT_SHORT_LABELS: Tuple[str, ...] = (
    "ver",
    "veja",
    "lote",
    "clique",
    "clique aqui",
    "saiba mais",
    "detalhes",
    "mais",
)

# URL substrings that mark a site for special attention in progress reports
FLAG_PATTERNS: Tuple[str, ...] = ("kron",)


@dataclass
class ScoutConfig:
    """Configuration parameters for one scan run."""

    timeout: float = DEFAULT_TIMEOUT
    max_links_per_site: int = MAX_LINKS_PER_SITE
    concurrency: int = CONCURRENCY_LIMIT
    max_attempts: int = 1
    backoff_initial: float = 0.8
    backoff_max: float = 6.0
    max_redirects: int = MAX_REDIRECTS
    short_content_bytes: int = SHORT_CONTENT_BYTES
    user_agents: Tuple[str, ...] = USER_AGENTS
    accept: str = ACCEPT_HTML
    accept_language: str = ACCEPT_LANGUAGE
    ignored_patterns: Tuple[str, ...] = IGNORED_PATTERNS
    flag_patterns: Tuple[str, ...] = FLAG_PATTERNS
    short_labels: Tuple[str, ...] = DEFAULT_SHORT_LABELS

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_links_per_site <= 0:
            raise ValueError("max_links_per_site must be positive")
        if self.concurrency <= 0:
            raise ValueError("concurrency must be positive")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if not self.user_agents:
            raise ValueError("user_agents must not be empty")

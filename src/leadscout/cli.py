from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import typer

from .consumer import (
    build_config,
    build_policy,
    load_manifest,
    load_terms,
    render_site_summary,
    run_consumer,
    validate_urls,
)
from .core.errors import ScanError, ScanInputError
from .workflows.relevance import DEFAULT_POLICY
from .workflows.scout import scan_site
from .workflows.scout_config import DEFAULT_SHORT_LABELS, IGNORED_PATTERNS

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """leadscout (link opportunity scanner)

Usage:
  leadscout scan <urls.txt|-> [-k TERM]... [-s TERM]... [-w TERM]... [--out <FILE>] [--json]
  leadscout site <url> [-k TERM]...
  leadscout defaults

Common options:
  -k, --keyword          Positive keyword (repeatable; defaults to built-in list).
  -s, --strong-negative  Term that vetoes a link anywhere in its context.
  -w, --weak-negative    Term that vetoes a link only in its own text/href.
  --concurrency N        Sites analyzed at once (default 5).
  --timeout SECONDS      Per-request timeout (default 30).
  --max-links N          Links kept per site (default 150).
  --out <FILE>           Also write the JSON report to this file.
  --json                 Print compact JSON only (no site summary on stderr).

Discoverability:
  --help-full     Expanded help + env vars.
"""


def _help_full() -> str:
    return """leadscout CLI

Commands:
  scan       Scan every URL of a manifest (file or stdin) and print the report.
  site       Analyze a single URL and print its per-site result.
  defaults   Print the built-in keyword lists, ignore patterns and short labels.

Manifest format:
  One absolute http(s) URL per line. Blank lines and lines starting with '#'
  are skipped. At most 500 URLs per scan; malformed URLs are dropped.

Keyword files (--keywords-file, --strong-file, --weak-file):
  One term per line, '#' comments allowed. Merged with -k/-s/-w flags.

Report (stdout):
  {"meta": {"total_sites", "opportunities_found", "duration_ms"},
   "data": [{"source_site", "matched_terms", "description", "destination_url"}]}

Exit codes:
  0  success (partial site failures are normal)
  2  invalid input (manifest, URLs, keywords, options)
  3  fatal scan error, or --strict and no site was reachable

Env vars:
  LEADSCOUT_TIMEOUT
  LEADSCOUT_CONCURRENCY
  LEADSCOUT_MAX_LINKS
  LEADSCOUT_MAX_ATTEMPTS
  LEADSCOUT_LOG_LEVEL
"""


def _configure_logging(level: Optional[str]) -> None:
    name = (level or os.getenv("LEADSCOUT_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
) -> None:
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)


@app.command("scan", add_help_option=True)
def scan_cmd(
    path_or_dash: str = typer.Argument(..., help="Path to manifest or '-' for stdin."),
    keyword: Optional[List[str]] = typer.Option(None, "--keyword", "-k", help="Positive keyword (repeatable)."),
    strong_negative: Optional[List[str]] = typer.Option(None, "--strong-negative", "-s", help="Strong negative (repeatable)."),
    weak_negative: Optional[List[str]] = typer.Option(None, "--weak-negative", "-w", help="Weak negative (repeatable)."),
    keywords_file: Optional[Path] = typer.Option(None, "--keywords-file", help="File with positive keywords."),
    strong_file: Optional[Path] = typer.Option(None, "--strong-file", help="File with strong negatives."),
    weak_file: Optional[Path] = typer.Option(None, "--weak-file", help="File with weak negatives."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Sites analyzed at once."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    max_links: Optional[int] = typer.Option(None, "--max-links", help="Links kept per site."),
    attempts: Optional[int] = typer.Option(None, "--attempts", help="Fetch attempts per site."),
    out: Optional[Path] = typer.Option(None, "--out", help="Also write the JSON report here."),
    json_out: bool = typer.Option(False, "--json", help="Print compact JSON only."),
    strict: bool = typer.Option(False, "--strict", help="Exit 3 when no site was reachable."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default WARNING)."),
) -> None:
    _configure_logging(log_level)
    try:
        urls = load_manifest(path_or_dash)
        policy = build_policy(
            [*(keyword or []), *load_terms(keywords_file)],
            [*(strong_negative or []), *load_terms(strong_file)],
            [*(weak_negative or []), *load_terms(weak_file)],
        )
        config = build_config(
            timeout=timeout,
            concurrency=concurrency,
            max_links=max_links,
            attempts=attempts,
        )
    except (OSError, ValueError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)

    try:
        report, exit_code = run_consumer(urls, policy=policy, config=config, strict=strict)
    except ScanInputError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    except ScanError as exc:
        typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=3)

    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(report.to_json(indent=2) + "\n", encoding="utf-8")
    if json_out:
        sys.stdout.write(report.to_json() + "\n")
    else:
        typer.echo(render_site_summary(report), err=True)
        sys.stdout.write(report.to_json(indent=2) + "\n")
    raise typer.Exit(code=exit_code)


@app.command("site", add_help_option=True)
def site_cmd(
    url: str = typer.Argument(..., help="URL to analyze."),
    keyword: Optional[List[str]] = typer.Option(None, "--keyword", "-k", help="Positive keyword (repeatable)."),
    strong_negative: Optional[List[str]] = typer.Option(None, "--strong-negative", "-s", help="Strong negative (repeatable)."),
    weak_negative: Optional[List[str]] = typer.Option(None, "--weak-negative", "-w", help="Weak negative (repeatable)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    max_links: Optional[int] = typer.Option(None, "--max-links", help="Links kept per site."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default WARNING)."),
) -> None:
    _configure_logging(log_level)
    try:
        (valid_url,) = validate_urls([url])
        policy = build_policy(keyword, strong_negative, weak_negative)
        config = build_config(timeout=timeout, max_links=max_links)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    try:
        result = scan_site(valid_url, policy, config)
    except ScanError as exc:
        typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=3)
    sys.stdout.write(json.dumps(result.to_dict(), ensure_ascii=False, indent=2) + "\n")
    raise typer.Exit(code=0)


@app.command("defaults", add_help_option=True)
def defaults_cmd() -> None:
    """Print the built-in keyword lists and filters."""
    payload = {
        "positive": list(DEFAULT_POLICY.positive),
        "strong_negative": list(DEFAULT_POLICY.strong_negative),
        "weak_negative": list(DEFAULT_POLICY.weak_negative),
        "ignored_patterns": list(IGNORED_PATTERNS),
        "short_labels": list(DEFAULT_SHORT_LABELS),
    }
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")

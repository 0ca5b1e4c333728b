import json
from pathlib import Path

from typer.testing import CliRunner

from leadscout import cli
from leadscout.core.errors import ScanError
from leadscout.workflows.aggregate import Opportunity
from leadscout.workflows.scout import ScanReport
from leadscout.workflows.site_analyzer import SiteResult, SiteStatus

runner = CliRunner()


def _manifest(tmp_path: Path) -> Path:
    path = tmp_path / "urls.txt"
    path.write_text("https://loja.example.com/\n", encoding="utf-8")
    return path


def _report() -> ScanReport:
    return ScanReport(
        total_sites=1,
        duration_ms=12,
        opportunities=[
            Opportunity("https://loja.example.com/", "trator", "Trator MF 275", "https://loja.example.com/t/1")
        ],
        sites=[SiteResult(url="https://loja.example.com/", status=SiteStatus.ONLINE, http_status=200)],
    )


def test_scan_json_output(tmp_path: Path, monkeypatch) -> None:
    captured = {}

    def fake_run_consumer(urls, *, policy, config, progress_hook=None, strict=False):
        captured.update(urls=urls, policy=policy, config=config, strict=strict)
        return _report(), 0

    monkeypatch.setattr(cli, "run_consumer", fake_run_consumer)
    out_file = tmp_path / "out" / "report.json"

    result = runner.invoke(
        cli.app,
        ["scan", str(_manifest(tmp_path)), "-k", "Trator", "-w", "blog", "--concurrency", "2", "--out", str(out_file), "--json"],
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["meta"] == {"total_sites": 1, "opportunities_found": 1, "duration_ms": 12}
    assert payload["data"][0]["destination_url"] == "https://loja.example.com/t/1"
    assert captured["urls"] == ["https://loja.example.com/"]
    assert captured["policy"].positive == ("Trator",)
    assert captured["policy"].weak_negative == ("blog",)
    assert captured["config"].concurrency == 2
    assert json.loads(out_file.read_text(encoding="utf-8")) == payload


def test_scan_merges_keyword_files(tmp_path: Path, monkeypatch) -> None:
    captured = {}

    def fake_run_consumer(urls, *, policy, config, progress_hook=None, strict=False):
        captured["policy"] = policy
        return _report(), 0

    monkeypatch.setattr(cli, "run_consumer", fake_run_consumer)
    keywords = tmp_path / "kw.txt"
    keywords.write_text("colheitadeira\n# comentário\n", encoding="utf-8")

    result = runner.invoke(
        cli.app,
        ["scan", str(_manifest(tmp_path)), "-k", "trator", "--keywords-file", str(keywords), "--json"],
    )

    assert result.exit_code == 0
    assert captured["policy"].positive == ("trator", "colheitadeira")


def test_scan_summary_mode_prints_sites(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "run_consumer", lambda urls, **kwargs: (_report(), 0))

    result = runner.invoke(cli.app, ["scan", str(_manifest(tmp_path))])

    assert result.exit_code == 0
    assert "Online" in result.output
    assert "total: 1 sites, 1 opportunities" in result.output


def test_scan_missing_manifest_exits_2(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["scan", str(tmp_path / "nope.txt")])

    assert result.exit_code == 2
    assert "Manifest not found" in result.output


def test_scan_too_many_keywords_exits_2(tmp_path: Path) -> None:
    args = ["scan", str(_manifest(tmp_path))]
    for i in range(51):
        args += ["-k", f"termo{i}"]

    result = runner.invoke(cli.app, args)

    assert result.exit_code == 2


def test_scan_fatal_error_exits_3(tmp_path: Path, monkeypatch) -> None:
    def broken(urls, **kwargs):
        raise ScanError("batch aborted")

    monkeypatch.setattr(cli, "run_consumer", broken)

    result = runner.invoke(cli.app, ["scan", str(_manifest(tmp_path))])

    assert result.exit_code == 3
    assert "fatal: batch aborted" in result.output


def test_scan_propagates_strict_exit_code(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "run_consumer", lambda urls, **kwargs: (_report(), 3))

    result = runner.invoke(cli.app, ["scan", str(_manifest(tmp_path)), "--strict", "--json"])

    assert result.exit_code == 3


def test_site_command_prints_site_result(monkeypatch) -> None:
    def fake_scan_site(url, policy, config):
        return SiteResult(url=url, status=SiteStatus.TIMEOUT, error="timed out")

    monkeypatch.setattr(cli, "scan_site", fake_scan_site)

    result = runner.invoke(cli.app, ["site", "https://loja.example.com/"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["status"] == "Timeout"
    assert payload["links"] == []


def test_site_command_rejects_bad_url() -> None:
    result = runner.invoke(cli.app, ["site", "loja.example.com"])

    assert result.exit_code == 2


def test_defaults_command_lists_builtin_terms() -> None:
    result = runner.invoke(cli.app, ["defaults"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["positive"][0] == "trator"
    assert "facebook" in payload["ignored_patterns"]
    assert "clique aqui" in payload["short_labels"]


def test_help_full_lists_env_vars() -> None:
    result = runner.invoke(cli.app, ["--help-full"])

    assert result.exit_code == 0
    assert "LEADSCOUT_TIMEOUT" in result.stdout
    assert "Exit codes" in result.stdout


def test_scan_zero_limits_exit_2(tmp_path: Path) -> None:
    for option in ("--concurrency", "--max-links"):
        result = runner.invoke(cli.app, ["scan", str(_manifest(tmp_path)), option, "0"])

        assert result.exit_code == 2
        assert "must be positive" in result.output

import asyncio

import pytest

from leadscout.core.errors import ScanError
from leadscout.workflows.batch import BatchScheduler, SiteProgress
from leadscout.workflows.content_fetcher import FetchFailure
from leadscout.workflows.relevance import KeywordPolicy
from leadscout.workflows.scout_config import ScoutConfig
from leadscout.workflows.site_analyzer import SiteAnalyzer, SiteResult, SiteStatus

POLICY = KeywordPolicy(positive=("trator",))


def _urls(count: int):
    return [f"https://loja{i}.example.com/" for i in range(count)]


def _scheduler(fetcher, concurrency: int = 5) -> BatchScheduler:
    return BatchScheduler(SiteAnalyzer(ScoutConfig(concurrency=concurrency), POLICY, fetcher=fetcher))


def test_in_flight_fetches_never_exceed_concurrency(fake_fetcher) -> None:
    fetcher = fake_fetcher(default_delay=0.01)
    urls = _urls(12)

    results = asyncio.run(_scheduler(fetcher, concurrency=3).run(urls))

    assert len(results) == 12
    assert 1 <= fetcher.max_in_flight <= 3
    assert sorted(fetcher.calls) == sorted(urls)


def test_results_follow_input_order_not_completion_order(fake_fetcher) -> None:
    urls = _urls(5)
    delays = {url: 0.05 - i * 0.01 for i, url in enumerate(urls)}
    pages = {url: f"<html><body><a href='/trator/{i}'>Trator {i}</a></body></html>" for i, url in enumerate(urls)}
    fetcher = fake_fetcher(pages, delays=delays)
    seen = []

    results = asyncio.run(_scheduler(fetcher).run(urls, progress_hook=seen.append))

    assert [r.url for r in results] == urls
    assert [r.links[0].description for r in results] == [f"Trator {i}" for i in range(5)]
    # Fastest (last) site completes first.
    assert seen[0].url == urls[-1]


def test_progress_hook_called_once_per_url(fake_fetcher) -> None:
    urls = _urls(4)
    fetcher = fake_fetcher(failures={urls[1]: FetchFailure.TIMEOUT})
    seen = []

    asyncio.run(_scheduler(fetcher).run(urls, progress_hook=seen.append))

    assert len(seen) == 4
    assert all(isinstance(p, SiteProgress) for p in seen)
    assert sorted(p.index for p in seen) == [0, 1, 2, 3]
    assert [p.completed for p in seen] == [1, 2, 3, 4]
    assert {p.total for p in seen} == {4}
    timeout = next(p for p in seen if p.url == urls[1])
    assert timeout.status == "Timeout"
    assert timeout.match_count == 0


def test_failing_hook_does_not_abort_the_batch(fake_fetcher) -> None:
    def explode(progress):
        raise RuntimeError("hook broke")

    results = asyncio.run(_scheduler(fake_fetcher()).run(_urls(3), progress_hook=explode))

    assert len(results) == 3


def test_site_failures_are_contained(fake_fetcher) -> None:
    urls = _urls(3)
    fetcher = fake_fetcher(
        failures={urls[0]: FetchFailure.DNS_FAILURE, urls[2]: FetchFailure.CONNECTION_REFUSED}
    )

    results = asyncio.run(_scheduler(fetcher).run(urls))

    assert [r.status for r in results] == [
        SiteStatus.DNS_FAILURE,
        SiteStatus.SHORT_CONTENT,
        SiteStatus.CONNECTION_REFUSED,
    ]


def test_empty_input_returns_empty_list(fake_fetcher) -> None:
    fetcher = fake_fetcher()

    assert asyncio.run(_scheduler(fetcher).run([])) == []
    assert fetcher.calls == []


def test_unexpected_analyzer_error_raises_scan_error(fake_fetcher) -> None:
    class BrokenFetcher(fake_fetcher):
        async def fetch(self, session, url):
            raise RuntimeError("bug in fetcher")

    with pytest.raises(ScanError):
        asyncio.run(_scheduler(BrokenFetcher()).run(_urls(2)))


def test_progress_hook_is_deferred_to_the_event_loop(fake_fetcher) -> None:
    scheduler = _scheduler(fake_fetcher())
    result = SiteResult(url="https://loja0.example.com/", status=SiteStatus.ONLINE)
    seen = []

    async def run_once():
        scheduler._notify(seen.append, 0, 1, 1, result)
        pending = len(seen)
        await asyncio.sleep(0)
        return pending

    assert asyncio.run(run_once()) == 0
    assert [p.url for p in seen] == ["https://loja0.example.com/"]

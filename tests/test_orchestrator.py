import asyncio
import json
import os
import time

import pytest

from gallery_scraper.adapters.base import CatalogEntry
from gallery_scraper.errors import (
    InvalidIndexError,
    NavigationError,
    NotFoundError,
    ScrapeError,
)
from gallery_scraper.orchestrator import ScrapeOrchestrator

from fakes import (
    EMPTY_SEARCH_HTML,
    GALLERY_URL,
    SEARCH_URL,
    make_factory,
    site_pages,
)


def orchestrator(cache, settings, factory):
    return ScrapeOrchestrator(cache, settings=settings, navigator_factory=factory)


def test_live_scrape_numbers_and_caches(cache, settings, session_log):
    orch = orchestrator(cache, settings, make_factory(site_pages(), log=session_log))

    result = asyncio.run(orch.get_album("cosplay", "2"))

    assert result.source == "live"
    assert result.gallery_url == GALLERY_URL
    assert result.total == 5
    assert [e.id for e in result.entries] == [1, 2, 3, 4, 5]
    assert [e.name for e in result.entries] == [
        "image_1.jpg", "image_2.webp", "image_3.png", "image_4.png", "image_5.JPEG",
    ]
    assert session_log.launches == 1
    assert session_log.closes == 1

    on_disk = json.loads(result.cache_file.read_text(encoding="utf-8"))
    assert [CatalogEntry.from_dict(e) for e in on_disk] == result.entries


def test_cached_result_served_without_navigation(cache, settings, session_log):
    orch = orchestrator(cache, settings, make_factory(site_pages(), log=session_log))
    first = asyncio.run(orch.get_album("cosplay", "2"))
    visits = list(session_log.visits)

    second = asyncio.run(orch.get_album("cosplay", 2))

    assert second.source == "cache"
    assert second.entries == first.entries
    assert session_log.visits == visits
    assert session_log.launches == 1
    assert second.to_dict()["album"][0]["id"] == 1


def test_zero_links_exhausts_and_records_empty(cache, settings, session_log):
    factory = make_factory({SEARCH_URL: (200, EMPTY_SEARCH_HTML)}, log=session_log)
    orch = orchestrator(cache, settings, factory)

    with pytest.raises(NotFoundError) as exc_info:
        asyncio.run(orch.get_album("cosplay", "1"))

    err = exc_info.value
    assert err.attempts == 2
    assert err.links_found == 0
    assert err.search_url == SEARCH_URL
    assert not err.cached
    assert session_log.launches == 2
    assert session_log.closes == 2
    assert cache.get("cosplay", 1) == []


def test_recorded_empty_is_served_without_rescraping(cache, settings, session_log):
    factory = make_factory({SEARCH_URL: (200, EMPTY_SEARCH_HTML)}, log=session_log)
    orch = orchestrator(cache, settings, factory)
    with pytest.raises(NotFoundError):
        asyncio.run(orch.get_album("cosplay", "1"))

    with pytest.raises(NotFoundError) as exc_info:
        asyncio.run(orch.get_album("cosplay", "1"))

    assert exc_info.value.cached
    assert session_log.launches == 2


def test_expired_empty_record_is_scraped_again(cache, settings, session_log):
    settings.empty_ttl = 60
    path = cache.put("cosplay", 2, [])
    old = time.time() - 3600
    os.utime(path, (old, old))
    orch = orchestrator(cache, settings, make_factory(site_pages(), log=session_log))

    result = asyncio.run(orch.get_album("cosplay", "2"))

    assert result.source == "live"
    assert result.total == 5
    assert session_log.launches == 1


def test_index_out_of_range_is_not_retried_or_cached(cache, settings, session_log):
    pages = {"https://ahottie.net/search?kw=x": site_pages()[SEARCH_URL]}
    orch = orchestrator(cache, settings, make_factory(pages, log=session_log))

    with pytest.raises(InvalidIndexError):
        asyncio.run(orch.get_album("x", "99"))

    assert session_log.launches == 1
    assert session_log.closes == 1
    assert session_log.visits == ["https://ahottie.net/search?kw=x"]
    assert cache.get_record("x", 99) is None


@pytest.mark.parametrize("index", ["0", "abc", "-3"])
def test_malformed_index_rejected_before_any_session(cache, settings, session_log, index):
    orch = orchestrator(cache, settings, make_factory(site_pages(), log=session_log))

    with pytest.raises(InvalidIndexError):
        asyncio.run(orch.get_album("cosplay", index))

    assert session_log.launches == 0


def test_navigation_failure_then_success(cache, settings, session_log):
    broken = {SEARCH_URL: NavigationError("timed out", url=SEARCH_URL)}
    orch = orchestrator(cache, settings, make_factory(broken, site_pages(), log=session_log))

    result = asyncio.run(orch.get_album("cosplay", "2"))

    assert result.source == "live"
    assert result.total == 5
    assert session_log.launches == 2
    assert session_log.closes == 2


def test_empty_gallery_counts_as_failed_attempt(cache, settings, session_log):
    pages = {
        SEARCH_URL: site_pages()[SEARCH_URL],
        GALLERY_URL: (200, "<html><body><p>no images</p></body></html>"),
    }
    orch = orchestrator(cache, settings, make_factory(pages, log=session_log))

    with pytest.raises(NotFoundError) as exc_info:
        asyncio.run(orch.get_album("cosplay", "2"))

    assert exc_info.value.gallery_url == GALLERY_URL
    assert exc_info.value.links_found == 3
    assert exc_info.value.debug()["attempts_made"] == 2
    assert cache.get("cosplay", 2) == []


def test_unexpected_error_on_last_attempt_is_internal(cache, settings, session_log):
    pages = {SEARCH_URL: RuntimeError("browser crashed")}
    orch = orchestrator(cache, settings, make_factory(pages, log=session_log))

    with pytest.raises(ScrapeError) as exc_info:
        asyncio.run(orch.get_album("cosplay", "1"))

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert session_log.closes == session_log.launches == 2
    assert cache.get_record("cosplay", 1) is None


def test_launch_failure_still_releases_session(cache, settings, session_log):
    factory = make_factory(site_pages(), log=session_log, fail_launch=OSError("no chromium"))
    orch = orchestrator(cache, settings, factory)

    with pytest.raises(ScrapeError):
        asyncio.run(orch.get_album("cosplay", "1"))

    assert session_log.launches == 2
    assert session_log.closes == 2


def test_single_attempt_setting(cache, settings, session_log):
    settings.max_attempts = 1
    factory = make_factory({SEARCH_URL: (200, EMPTY_SEARCH_HTML)}, log=session_log)
    orch = orchestrator(cache, settings, factory)

    with pytest.raises(NotFoundError):
        asyncio.run(orch.get_album("cosplay", "1"))

    assert session_log.launches == 1


def test_concurrent_requests_for_same_key_scrape_once(cache, settings, session_log):
    orch = orchestrator(cache, settings, make_factory(site_pages(), log=session_log))

    async def both():
        return await asyncio.gather(orch.get_album("cosplay", "2"), orch.get_album("cosplay", "2"))

    first, second = asyncio.run(both())

    assert session_log.launches == 1
    assert sorted([first.source, second.source]) == ["cache", "live"]
    assert first.entries == second.entries
    assert orch._locks == {}


def test_empty_term_rejected(cache, settings, session_log):
    orch = orchestrator(cache, settings, make_factory(site_pages(), log=session_log))

    with pytest.raises(ValueError):
        asyncio.run(orch.get_album("  ", "1"))


def test_requires_env_or_factory(cache):
    with pytest.raises(ValueError):
        ScrapeOrchestrator(cache)

"""
Top-level entry point: cache lookup, retry loop, write-back.

    get_album(term, index)
        cache hit (non-empty)          → AlbumResult(source="cache")
        cache hit (empty, still fresh) → NotFoundError(cached=True)
        otherwise Attempting(1..max_attempts):
            non-empty result           → cache + AlbumResult(source="live")
            all attempts empty/failed  → cache [] + NotFoundError
            unexpected error on last   → ScrapeError (nothing cached)
        InvalidIndexError escapes immediately and is never cached.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from gallery_scraper.adapters.base import CatalogEntry, SiteAdapter, number_assets
from gallery_scraper.browser import PageNavigator, PlaywrightNavigator
from gallery_scraper.cache import CacheStore
from gallery_scraper.config import Environment, ScrapeSettings
from gallery_scraper.dispatcher import AttemptTrace, pick_adapter, run_attempt
from gallery_scraper.errors import (
    InvalidIndexError,
    NavigationError,
    NoResultsError,
    NotFoundError,
    ScrapeError,
)
from gallery_scraper.resolver import build_search_url, normalize_term, parse_index

logger = logging.getLogger(__name__)


@dataclass
class AlbumResult:
    term: str
    index: int
    entries: List[CatalogEntry]
    source: str                       # "cache" | "live"
    search_url: str
    cache_file: Path
    cached_at: str
    gallery_url: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "term": self.term,
            "index": self.index,
            "album": [e.to_dict() for e in self.entries],
            "total": self.total,
            "source": self.source,
            "search_url": self.search_url,
            "gallery_url": self.gallery_url or "N/A",
            "cache_file": str(self.cache_file),
            "cached_at": self.cached_at,
        }


class ScrapeOrchestrator:
    def __init__(
        self,
        cache: CacheStore,
        env: Optional[Environment] = None,
        settings: Optional[ScrapeSettings] = None,
        adapter: Optional[SiteAdapter] = None,
        navigator_factory: Optional[Callable[[], PageNavigator]] = None,
    ):
        self.cache = cache
        self.settings = settings or ScrapeSettings()
        self.adapter = adapter or pick_adapter()
        if navigator_factory is None:
            if env is None:
                raise ValueError("either env or navigator_factory is required")
            navigator_factory = partial(PlaywrightNavigator, env, self.settings)
        self.navigator_factory = navigator_factory

        # single-flight: one scrape per (term, index) at a time in this process
        self._locks: Dict[Tuple[str, int], asyncio.Lock] = {}
        self._waiting: Dict[Tuple[str, int], int] = {}

    async def get_album(self, term: str, index) -> AlbumResult:
        term = normalize_term(term)
        position = parse_index(index)

        key = (term, position)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiting[key] = self._waiting.get(key, 0) + 1
        try:
            async with lock:
                cached = await asyncio.to_thread(self._from_cache, term, position)
                if cached is not None:
                    return cached
                return await self._scrape(term, position)
        finally:
            self._waiting[key] -= 1
            if not self._waiting[key]:
                del self._waiting[key]
                del self._locks[key]

    def _from_cache(self, term: str, index: int) -> Optional[AlbumResult]:
        search_url = build_search_url(self.adapter, term)
        record = self.cache.get_record(term, index)
        if record is None:
            logger.info("No valid cache for %s at index %d, scraping...", term, index)
            return None

        if not record.is_empty:
            logger.info("Serving %d cached images for %s at index %d", len(record.entries), term, index)
            return AlbumResult(
                term=term,
                index=index,
                entries=record.entries,
                source="cache",
                search_url=search_url,
                cache_file=record.path,
                cached_at=record.cached_at,
            )

        ttl = self.settings.empty_ttl
        age = time.time() - record.mtime
        if ttl is None or age < ttl:
            logger.info("Cached empty result for %s at index %d (%.0fs old)", term, index, age)
            raise NotFoundError(term, str(index), search_url=search_url, cached=True)

        logger.info("Empty cache for %s at index %d expired, scraping...", term, index)
        self.cache.delete(term, index)
        return None

    async def _scrape(self, term: str, index: int) -> AlbumResult:
        search_url = build_search_url(self.adapter, term)
        max_attempts = max(1, self.settings.max_attempts)

        for attempt in range(1, max_attempts + 1):
            trace = AttemptTrace(number=attempt, search_url=search_url)
            logger.info("Scraping attempt %d/%d for %s at index %d...", attempt, max_attempts, term, index)
            try:
                records = await run_attempt(
                    self.navigator_factory(), self.adapter, term, index, self.settings, trace
                )
            except InvalidIndexError:
                raise
            except (NavigationError, NoResultsError) as exc:
                logger.warning("Attempt %d failed: %s", attempt, exc)
                continue
            except Exception as exc:
                logger.warning("Attempt %d failed unexpectedly: %s", attempt, exc)
                if attempt == max_attempts:
                    logger.error("Error for %s at index %d: %s", term, index, exc)
                    raise ScrapeError(f"Server error: {exc}") from exc
                continue

            entries = number_assets(records)
            path = await asyncio.to_thread(self.cache.put, term, index, entries)
            return AlbumResult(
                term=term,
                index=index,
                entries=entries,
                source="live",
                search_url=search_url,
                cache_file=path,
                cached_at=datetime.now(timezone.utc).isoformat(),
                gallery_url=trace.gallery_url,
            )

        await asyncio.to_thread(self.cache.put, term, index, [])
        logger.error("No images found for %s at index %d after %d attempts", term, index, max_attempts)
        raise NotFoundError(
            term,
            str(index),
            search_url=search_url,
            gallery_url=trace.gallery_url,
            attempts=max_attempts,
            links_found=trace.links_found,
        )

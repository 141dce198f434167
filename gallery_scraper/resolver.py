import logging
from typing import List, Tuple
from urllib.parse import quote

from gallery_scraper.adapters.base import SiteAdapter
from gallery_scraper.browser import PageNavigator
from gallery_scraper.config import ScrapeSettings
from gallery_scraper.errors import InvalidIndexError, NoResultsError
from gallery_scraper.utils.extract import extract_links

logger = logging.getLogger(__name__)


def parse_index(index) -> int:
    """1-based ordinal from user input ("2" → 2). Raises InvalidIndexError."""
    try:
        position = int(str(index).strip())
    except ValueError:
        raise InvalidIndexError(index) from None
    if position < 1:
        raise InvalidIndexError(index)
    return position


def normalize_term(term) -> str:
    """Search term as used for the cache key and search URL. Raises ValueError if blank."""
    term = (term or "").strip()
    if not term:
        raise ValueError("term must not be empty")
    return term


def build_search_url(adapter: SiteAdapter, term: str) -> str:
    return adapter.search_url(quote(term, safe=""))


async def search_galleries(
    nav: PageNavigator,
    adapter: SiteAdapter,
    term: str,
    settings: ScrapeSettings,
) -> List[str]:
    """Open the search page for `term`, scroll it once and collect gallery links."""
    search_url = build_search_url(adapter, term)
    await nav.open(search_url, settings.navigation_timeout_ms)
    await nav.wait_for_ready(adapter.SEARCH_READY, settings.ready_timeout_ms)
    await nav.auto_scroll(settings.scroll_step_px, settings.scroll_interval_ms, settings.scroll_max_steps)

    doc = await nav.snapshot()
    links = extract_links(doc, limit=settings.max_links, **adapter.link_rules())
    logger.info("Found %d gallery links for %s", len(links), term)
    return links


async def resolve_gallery(
    nav: PageNavigator,
    adapter: SiteAdapter,
    term: str,
    index,
    settings: ScrapeSettings,
) -> Tuple[str, List[str]]:
    """
    Resolve the index-th gallery (1-based) for `term`.

    Returns:
        (gallery_url, all links found)

    Raises:
        InvalidIndexError before any gallery page is opened
        NoResultsError when the search yields no links
    """
    position = parse_index(index)

    links = await search_galleries(nav, adapter, term, settings)
    if not links:
        raise NoResultsError(f"No gallery links found for {term}")
    if position > len(links):
        raise InvalidIndexError(index, len(links))

    gallery_url = links[position - 1]
    logger.info("Base gallery URL: %s", gallery_url)
    return gallery_url, links

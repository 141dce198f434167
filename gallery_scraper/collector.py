import asyncio
import logging
from typing import List
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from gallery_scraper.adapters.base import AssetRecord, SiteAdapter
from gallery_scraper.browser import PageNavigator
from gallery_scraper.config import ScrapeSettings
from gallery_scraper.errors import NavigationError, PageNotFoundError
from gallery_scraper.utils.extract import extract_assets

logger = logging.getLogger(__name__)


def page_url(base: str, page_num: int, param: str = "page") -> str:
    """Page 1 is the base link verbatim; later pages carry ?<param>=N."""
    if page_num <= 1:
        return base
    parts = urlsplit(base)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != param]
    query.append((param, str(page_num)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


async def collect_gallery(
    nav: PageNavigator,
    adapter: SiteAdapter,
    base_link: str,
    settings: ScrapeSettings,
) -> List[AssetRecord]:
    """
    Walk gallery sub-pages 1..max_pages and concatenate their assets in page order.

    The site has no "last page" marker: a 404 (or no response) ends pagination.
    Any other navigation failure skips that page only.
    """
    collected: List[AssetRecord] = []

    for page_num in range(1, settings.max_pages + 1):
        url = page_url(base_link, page_num, adapter.PAGE_PARAM)

        if page_num > 1 and settings.page_delay > 0:
            await asyncio.sleep(settings.page_delay)

        logger.info("Navigating to gallery page %d: %s", page_num, url)
        try:
            await nav.open(url, settings.navigation_timeout_ms)
        except PageNotFoundError as exc:
            logger.info("Page %d not found (%s), stopping pagination", page_num, exc)
            break
        except NavigationError as exc:
            logger.warning("Page %d failed to load, skipping: %s", page_num, exc)
            continue

        await nav.wait_for_ready(adapter.GALLERY_READY, settings.ready_timeout_ms)
        await nav.auto_scroll(settings.scroll_step_px, settings.scroll_interval_ms, settings.scroll_max_steps)

        doc = await nav.snapshot()
        records = extract_assets(doc, **adapter.asset_rules())
        logger.info("Found %d images on page %d of %s", len(records), page_num, url)
        collected.extend(records)

    return collected

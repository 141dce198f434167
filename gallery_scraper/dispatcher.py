from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse

from gallery_scraper.adapters.ahottie import AhottieAdapter
from gallery_scraper.adapters.base import AssetRecord, SiteAdapter
from gallery_scraper.browser import PageNavigator
from gallery_scraper.collector import collect_gallery
from gallery_scraper.config import ScrapeSettings
from gallery_scraper.errors import NoResultsError
from gallery_scraper.resolver import resolve_gallery
from gallery_scraper.utils.dedupe import dedupe


# Registered adapters, keyed by name. Each also declares the hosts it serves.
ADAPTERS: Dict[str, SiteAdapter] = {
    a.name: a for a in (AhottieAdapter(),)
}

DEFAULT_ADAPTER = "ahottie"


def pick_adapter(key: Optional[str] = None) -> SiteAdapter:
    """
    Select an adapter by registry name or by a URL on one of its domains.
    Example:
        "ahottie" or "https://ahottie.net/albums/x" → AhottieAdapter
    """
    key = (key or DEFAULT_ADAPTER).strip().lower()
    if key in ADAPTERS:
        return ADAPTERS[key]

    host = urlparse(key).netloc or key
    for a in ADAPTERS.values():
        if any(d in host for d in a.domains):
            return a

    raise ValueError(f"No adapter registered for: {key}")


@dataclass
class AttemptTrace:
    """What one attempt got as far as; kept for not-found diagnostics."""

    number: int
    search_url: str
    gallery_url: Optional[str] = None
    links_found: int = 0


async def run_attempt(
    navigator: PageNavigator,
    adapter: SiteAdapter,
    term: str,
    index: int,
    settings: ScrapeSettings,
    trace: AttemptTrace,
) -> List[AssetRecord]:
    """
    One attempt: resolve → collect → dedupe inside a single browser session.
    Steps:
        1. Launch the session.
        2. Resolve the index-th gallery from the search page.
        3. Collect assets across the gallery's sub-pages.
        4. Close the session (always, even on error).
        5. Deduplicate; an empty result is a NoResultsError.
    """
    async with navigator as nav:
        gallery_url, links = await resolve_gallery(nav, adapter, term, index, settings)
        trace.links_found = len(links)
        trace.gallery_url = gallery_url

        records = await collect_gallery(nav, adapter, gallery_url, settings)

    unique = dedupe(records)
    if not unique:
        raise NoResultsError(f"No images found in {trace.gallery_url}")
    return unique

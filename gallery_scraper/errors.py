from typing import Optional


class ScraperError(Exception):
    """Base class for every failure raised by the scrape engine."""


class NavigationError(ScraperError):
    """The remote page could not be loaded (timeout, network error, bad status)."""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class PageNotFoundError(NavigationError):
    """The remote answered 404 or sent no response at all."""


class NoResultsError(ScraperError):
    """A search or gallery produced zero links / zero assets."""


class InvalidIndexError(ScraperError):
    """The requested ordinal index is outside [1, link_count]."""

    def __init__(self, index, link_count: Optional[int] = None):
        if link_count is None:
            message = f"Invalid index {index}. Must be a positive integer"
        else:
            message = f"Invalid index {index}. Must be between 1 and {link_count}"
        super().__init__(message)
        self.index = index
        self.link_count = link_count


class NotFoundError(ScraperError):
    """Every attempt came back empty for (term, index)."""

    def __init__(
        self,
        term: str,
        index: str,
        search_url: str = "",
        gallery_url: Optional[str] = None,
        attempts: int = 0,
        links_found: int = 0,
        cached: bool = False,
    ):
        super().__init__(f'No images found for "{term}" at index {index}.')
        self.term = term
        self.index = index
        self.search_url = search_url
        self.gallery_url = gallery_url
        self.attempts = attempts
        self.links_found = links_found
        self.cached = cached

    def debug(self) -> dict:
        return {
            "search_url": self.search_url,
            "gallery_url": self.gallery_url or "N/A",
            "attempts_made": self.attempts,
            "links_found": self.links_found,
            "cached": self.cached,
        }


class BrowserNotFoundError(ScraperError):
    """The configured Chromium executable does not exist."""


class ScrapeError(ScraperError):
    """Unexpected failure on the final attempt (internal error)."""

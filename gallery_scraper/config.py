"""Startup environment and scrape tunables."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from gallery_scraper.errors import BrowserNotFoundError

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "t", "yes")


@dataclass(frozen=True)
class Environment:
    """Process-wide paths, built once and handed to CacheStore / navigators."""

    storage_path: Path
    browser_path: Optional[str] = None
    headless: bool = True

    @property
    def cache_dir(self) -> Path:
        return self.storage_path / "cache"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Environment":
        load_dotenv(dotenv_path, override=False)
        storage = os.getenv("STORAGE_PATH") or str(Path.cwd() / "storage")
        return cls(
            storage_path=Path(storage),
            browser_path=os.getenv("PLAYWRIGHT_EXECUTABLE_PATH") or None,
            headless=_env_bool("HEADLESS", True),
        )

    def prepare(self) -> Path:
        """Create the cache directory; returns it."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Cache directory ready: %s", self.cache_dir)
        return self.cache_dir

    def verify_browser(self) -> Optional[str]:
        """
        Returns the configured Chromium path, or None when Playwright's
        bundled browser is used. Raises BrowserNotFoundError if a configured
        path is missing.
        """
        if self.browser_path is None:
            return None
        if not Path(self.browser_path).exists():
            raise BrowserNotFoundError(f"Chromium not found at {self.browser_path}")
        return self.browser_path


@dataclass
class ScrapeSettings:
    """Retry, pagination, timing and pacing knobs for one scrape."""

    max_attempts: int = 2
    max_pages: int = 5
    max_links: int = 10
    navigation_timeout_ms: int = 90_000
    ready_timeout_ms: int = 45_000
    launch_timeout_ms: int = 60_000
    scroll_step_px: int = 200
    scroll_interval_ms: int = 100
    scroll_max_steps: int = 30
    page_delay: float = 1.0
    empty_ttl: Optional[float] = 3600.0
    viewport: dict = field(default_factory=lambda: {"width": 1280, "height": 720})

    @classmethod
    def from_env(cls) -> "ScrapeSettings":
        settings = cls()
        if os.getenv("SCRAPER_MAX_ATTEMPTS"):
            settings.max_attempts = max(1, int(os.environ["SCRAPER_MAX_ATTEMPTS"]))
        if os.getenv("SCRAPER_MAX_PAGES"):
            settings.max_pages = max(1, int(os.environ["SCRAPER_MAX_PAGES"]))
        if os.getenv("SCRAPER_PAGE_DELAY"):
            settings.page_delay = float(os.environ["SCRAPER_PAGE_DELAY"])
        if os.getenv("SCRAPER_EMPTY_TTL"):
            ttl = float(os.environ["SCRAPER_EMPTY_TTL"])
            # negative → recorded empties never expire
            settings.empty_ttl = None if ttl < 0 else ttl
        return settings

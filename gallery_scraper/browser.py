import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import (
    Error as PWError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from gallery_scraper.config import Environment, ScrapeSettings
from gallery_scraper.errors import NavigationError, PageNotFoundError

logger = logging.getLogger(__name__)


CHROME_ARGS = [
    "--no-sandbox",
    # Required inside Docker / CI where the Chromium sandbox is unavailable.
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
    # /dev/shm is tiny in most containers.
]


UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/117.0.0.0 Safari/537.36"
)


# Records the laid-out size of every image so the extractor can drop icons
# after the DOM has been serialized.
STAMP_SIZES_JS = """
() => {
    for (const img of document.images) {
        if (img.width > 0 && img.height > 0) {
            img.setAttribute('data-rendered-width', String(img.width));
            img.setAttribute('data-rendered-height', String(img.height));
        }
    }
}
"""


class Document:
    """
    A loaded page snapshot: query-by-selector plus attribute reads.
    Built from the live DOM by PlaywrightNavigator, or from static HTML in tests.
    """

    def __init__(self, html: str, url: str):
        self.url = url
        self.soup = BeautifulSoup(html or "", "html.parser")

    def select(self, selector: str) -> List:
        return self.soup.select(selector)

    def absolute(self, value: Optional[str]) -> Optional[str]:
        if not value or not value.strip():
            return None
        return urljoin(self.url, value.strip())


class PageNavigator:
    """
    One browser session. Use as `async with navigator:`; the session is
    released on every exit path, including a launch that fails half-way.
    """

    async def launch(self) -> None:
        raise NotImplementedError

    async def open(self, url: str, timeout_ms: int) -> int:
        """Navigate; returns the HTTP status. Raises NavigationError / PageNotFoundError."""
        raise NotImplementedError

    async def wait_for_ready(self, selector: str, timeout_ms: int) -> bool:
        raise NotImplementedError

    async def auto_scroll(self, step_px: int, interval_ms: int, max_steps: int) -> int:
        raise NotImplementedError

    async def snapshot(self) -> Document:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def __aenter__(self):
        try:
            await self.launch()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def close_page(pw, browser, context):
    """
    Closes whatever part of the Playwright stack was acquired.
    Skipping this leaves a Chromium process behind per failed attempt.
    """
    try:
        if context is not None:
            await context.close()
    finally:
        try:
            if browser is not None:
                await browser.close()
        finally:
            if pw is not None:
                await pw.stop()


class PlaywrightNavigator(PageNavigator):
    """Headless Chromium session driven through Playwright."""

    def __init__(self, env: Environment, settings: Optional[ScrapeSettings] = None):
        self.env = env
        self.settings = settings or ScrapeSettings()
        self._pw = None
        self._browser = None
        self._context = None
        self._page = None

    async def launch(self) -> None:
        executable_path = self.env.verify_browser()

        self._pw = await async_playwright().start()
        self._browser = await self._pw.chromium.launch(
            headless=self.env.headless,
            executable_path=executable_path,
            args=CHROME_ARGS,
            timeout=self.settings.launch_timeout_ms,
        )
        self._context = await self._browser.new_context(
            user_agent=UA,
            viewport=self.settings.viewport,
        )
        self._page = await self._context.new_page()
        logger.debug("Browser session started (executable=%s)", executable_path or "bundled")

    async def open(self, url: str, timeout_ms: int) -> int:
        logger.info("Navigating to: %s", url)
        try:
            response = await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationError(f"Timed out loading {url}", url=url) from exc
        except PWError as exc:
            raise NavigationError(f"Failed loading {url}: {exc}", url=url) from exc

        if response is None:
            raise PageNotFoundError(f"No response for {url}", url=url)
        if response.status == 404:
            raise PageNotFoundError(f"{url} returned 404", url=url, status=404)
        return response.status

    async def wait_for_ready(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self._page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.warning("Selector %r timeout on %s, proceeding...", selector, self._page.url)
            return False

    async def auto_scroll(self, step_px: int, interval_ms: int, max_steps: int) -> int:
        total = 0
        steps = 0
        while steps < max_steps:
            height = await self._page.evaluate("() => document.body ? document.body.scrollHeight : 0")
            await self._page.evaluate("(y) => window.scrollBy(0, y)", step_px)
            total += step_px
            steps += 1
            if total >= height:
                break
            await self._page.wait_for_timeout(interval_ms)
        logger.debug("Scrolled %d steps (%dpx) on %s", steps, total, self._page.url)
        return steps

    async def snapshot(self) -> Document:
        await self._page.evaluate(STAMP_SIZES_JS)
        html = await self._page.content()
        return Document(html, self._page.url)

    async def close(self) -> None:
        pw, browser, context = self._pw, self._browser, self._context
        self._pw = self._browser = self._context = self._page = None
        if pw is None and browser is None and context is None:
            return
        await close_page(pw, browser, context)
        logger.debug("Browser session closed")

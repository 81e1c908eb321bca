# src/scrapers/browser_session.py

"""Headless Playwright session shared by every page of a scrape run."""

import logging
from typing import Any

from playwright.sync_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Page,
    Playwright,
    Route,
    sync_playwright,
)
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from src.config.settings import Settings
from src.scrapers.request_filter import RequestPredicate
from src.scrapers.selectors import load_selectors

logger = logging.getLogger("warehouse_scraper.browser")


class PageLoadError(Exception):
    """A catalog page could not be scraped; the run may continue."""


class PageTimeoutError(PageLoadError):
    """Navigation or the readiness selector timed out."""


class PageNotFoundError(PageLoadError):
    """The site served its "not found" page for a configured URL."""


class BrowserAutomationError(PageLoadError):
    """Playwright raised a non-timeout automation fault."""


class BrowserSession:
    """Owns the Playwright browser, context and page for one run."""

    def __init__(
        self,
        headless: bool = Settings.HEADLESS,
        page_timeout: int = Settings.PAGE_TIMEOUT,
        selectors: dict[str, str] | None = None,
    ) -> None:
        self.headless = headless
        self.page_timeout = page_timeout
        self.selectors = selectors or load_selectors()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    # ── Lifecycle ────────────────────────────────────────

    def start(self) -> None:
        """Launch Chromium and open the single shared page."""
        logger.info("Starting browser (headless=%s)", self.headless)
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self.headless
            )
            self._context = self._browser.new_context()
            self._page = self._context.new_page()
            self._page.set_default_timeout(self.page_timeout * 1000)
        except PlaywrightError as exc:
            logger.error(
                "Browser launch failed, install it with "
                "'playwright install chromium': %s",
                exc,
                exc_info=True,
            )
            self.stop()
            raise BrowserAutomationError(str(exc)) from exc

    def stop(self) -> None:
        """Close page, context, browser and driver; failures are ignored."""
        for name, resource, closer in (
            ("page", self._page, "close"),
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._playwright, "stop"),
        ):
            if resource is None:
                continue
            try:
                getattr(resource, closer)()
            except Exception as exc:
                logger.debug("Ignoring %s shutdown error: %s", name, exc)
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        logger.info("Browser stopped")

    def __enter__(self) -> "BrowserSession":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    @property
    def page(self) -> Page:
        """The active page; raises if the session was never started."""
        if self._page is None:
            msg = "Browser session is not started"
            raise BrowserAutomationError(msg)
        return self._page

    # ── Request interception ─────────────────────────────

    def install_request_filter(self, allow: RequestPredicate) -> None:
        """Abort every request the predicate denies, continue the rest."""

        def handle(route: Route) -> None:
            request = route.request
            if allow(request.url, request.resource_type):
                route.continue_()
            else:
                logger.debug(
                    "Blocked %s %s - %s",
                    request.method,
                    request.resource_type,
                    request.url[:120],
                )
                route.abort()

        self.page.route("**/*", handle)

    # ── Page access ──────────────────────────────────────

    def navigate(self, url: str) -> None:
        """Load a URL and wait for the page load event."""
        try:
            self.page.goto(url, wait_until="load")
        except PlaywrightTimeoutError as exc:
            raise PageTimeoutError(
                f"Navigation timed out after {self.page_timeout}s"
            ) from exc
        except PlaywrightError as exc:
            raise BrowserAutomationError(str(exc)) from exc

    def wait_until_ready(self) -> None:
        """Wait for the price markup that signals tiles have rendered."""
        try:
            self.page.wait_for_selector(self.selectors["ready"])
        except PlaywrightTimeoutError as exc:
            raise PageTimeoutError(
                f"Products did not render within {self.page_timeout}s"
            ) from exc
        except PlaywrightError as exc:
            raise BrowserAutomationError(str(exc)) from exc

    def page_title(self) -> str:
        """Return the current document title."""
        try:
            return self.page.title()
        except PlaywrightError as exc:
            raise BrowserAutomationError(str(exc)) from exc

    def query_tiles(self) -> list[ElementHandle]:
        """Return a handle for every product tile on the page."""
        try:
            return self.page.query_selector_all(self.selectors["tile"])
        except PlaywrightError as exc:
            raise BrowserAutomationError(str(exc)) from exc

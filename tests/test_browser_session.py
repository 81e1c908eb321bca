# tests/test_browser_session.py

"""Tests for the Playwright browser session wrapper."""

import unittest
from unittest.mock import MagicMock, patch

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from src.scrapers.browser_session import (
    BrowserAutomationError,
    BrowserSession,
    PageLoadError,
    PageTimeoutError,
)
from src.scrapers.request_filter import build_request_filter


def _started_session() -> tuple[BrowserSession, MagicMock]:
    """Start a session against a mocked Playwright driver."""
    with patch("src.scrapers.browser_session.sync_playwright") as sync_pw:
        driver = sync_pw.return_value.start.return_value
        page = (
            driver.chromium.launch.return_value
            .new_context.return_value
            .new_page.return_value
        )
        session = BrowserSession(headless=True, page_timeout=12)
        session.start()
    return session, page


class TestLifecycle(unittest.TestCase):
    """Start/stop behaviour."""

    def test_start_sets_default_timeout(self) -> None:
        """The page timeout is applied in milliseconds."""
        _, page = _started_session()
        page.set_default_timeout.assert_called_once_with(12000)

    def test_page_before_start_raises(self) -> None:
        """Accessing the page before start is an automation fault."""
        with self.assertRaises(BrowserAutomationError):
            _ = BrowserSession().page

    def test_launch_failure_is_translated(self) -> None:
        """A missing browser binary surfaces as BrowserAutomationError."""
        with patch("src.scrapers.browser_session.sync_playwright") as sync_pw:
            driver = sync_pw.return_value.start.return_value
            driver.chromium.launch.side_effect = PlaywrightError(
                "Executable doesn't exist"
            )
            session = BrowserSession()
            with self.assertRaises(BrowserAutomationError):
                session.start()
        driver.stop.assert_called_once()

    def test_stop_ignores_close_errors(self) -> None:
        """Shutdown failures never propagate."""
        session, page = _started_session()
        page.close.side_effect = PlaywrightError("Target closed")
        session.stop()
        with self.assertRaises(BrowserAutomationError):
            _ = session.page

    def test_automation_error_is_page_level(self) -> None:
        """Automation faults are page-level failures."""
        self.assertTrue(issubclass(BrowserAutomationError, PageLoadError))
        self.assertTrue(issubclass(PageTimeoutError, PageLoadError))


class TestPageAccess(unittest.TestCase):
    """Playwright errors become page-level failures."""

    def setUp(self) -> None:
        """Start a mocked session."""
        self.session, self.page = _started_session()

    def test_navigation_timeout(self) -> None:
        """Navigation timeouts raise PageTimeoutError."""
        self.page.goto.side_effect = PlaywrightTimeoutError("Timeout 12000ms")
        with self.assertRaises(PageTimeoutError):
            self.session.navigate("https://www.thewarehouse.co.nz/c/x")

    def test_navigation_fault(self) -> None:
        """Other navigation errors raise BrowserAutomationError."""
        self.page.goto.side_effect = PlaywrightError("net::ERR_ABORTED")
        with self.assertRaises(BrowserAutomationError):
            self.session.navigate("https://www.thewarehouse.co.nz/c/x")

    def test_ready_timeout(self) -> None:
        """A readiness wait timeout raises PageTimeoutError."""
        self.page.wait_for_selector.side_effect = PlaywrightTimeoutError(
            "Timeout"
        )
        with self.assertRaises(PageTimeoutError):
            self.session.wait_until_ready()
        self.page.wait_for_selector.assert_called_once_with(
            self.session.selectors["ready"]
        )

    def test_query_tiles_uses_tile_selector(self) -> None:
        """Tiles are queried with the configured selector."""
        self.page.query_selector_all.return_value = ["a", "b"]
        self.assertEqual(self.session.query_tiles(), ["a", "b"])
        self.page.query_selector_all.assert_called_once_with(
            self.session.selectors["tile"]
        )


class TestRequestFilter(unittest.TestCase):
    """Route handler applies the allow predicate."""

    def setUp(self) -> None:
        """Install a filter and capture the route handler."""
        self.session, page = _started_session()
        self.session.install_request_filter(build_request_filter())
        page.route.assert_called_once()
        self.handler = page.route.call_args[0][1]

    def _route(self, url: str, resource_type: str) -> MagicMock:
        route = MagicMock()
        route.request.url = url
        route.request.resource_type = resource_type
        route.request.method = "GET"
        return route

    def test_document_continues(self) -> None:
        """Page documents are let through."""
        route = self._route("https://www.thewarehouse.co.nz/c/x", "document")
        self.handler(route)
        route.continue_.assert_called_once()
        route.abort.assert_not_called()

    def test_tracker_aborted(self) -> None:
        """Tracking scripts are aborted."""
        route = self._route(
            "https://www.googletagmanager.com/gtm.js?id=1", "script"
        )
        self.handler(route)
        route.abort.assert_called_once()
        route.continue_.assert_not_called()

    def test_image_aborted(self) -> None:
        """Images are aborted by the default filter."""
        route = self._route("https://cdn.x/R123.jpg", "image")
        self.handler(route)
        route.abort.assert_called_once()


if __name__ == "__main__":
    unittest.main()

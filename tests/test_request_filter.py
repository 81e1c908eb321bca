# tests/test_request_filter.py

"""Tests for the browser request allow/deny predicate."""

import unittest

from src.scrapers.request_filter import build_request_filter


class TestRequestFilter(unittest.TestCase):
    """build_request_filter behaviour."""

    def test_document_and_script_allowed(self) -> None:
        """Essential resource types proceed."""
        allow = build_request_filter()
        self.assertTrue(
            allow("https://www.thewarehouse.co.nz/c/food", "document")
        )
        self.assertTrue(
            allow("https://www.thewarehouse.co.nz/app.js", "script")
        )
        self.assertTrue(
            allow("https://www.thewarehouse.co.nz/api", "xhr")
        )

    def test_tracking_urls_blocked(self) -> None:
        """Known ad/tracking hosts are denied regardless of type."""
        allow = build_request_filter()
        self.assertFalse(
            allow("https://www.googletagmanager.com/gtm.js?id=1", "script")
        )
        self.assertFalse(
            allow("https://js-agent.newrelic.com/nr.js", "script")
        )

    def test_non_essential_types_blocked(self) -> None:
        """Stylesheets, media and fonts are denied."""
        allow = build_request_filter()
        for resource_type in ("stylesheet", "media", "font"):
            with self.subTest(resource_type=resource_type):
                self.assertFalse(
                    allow("https://www.thewarehouse.co.nz/x", resource_type)
                )

    def test_images_blocked_by_default(self) -> None:
        """Images are denied outside dry mode."""
        allow = build_request_filter(block_images=True)
        self.assertFalse(allow("https://cdn.example.com/a.jpg", "image"))

    def test_images_allowed_when_requested(self) -> None:
        """Images proceed when image blocking is off."""
        allow = build_request_filter(block_images=False)
        self.assertTrue(allow("https://cdn.example.com/a.jpg", "image"))

    def test_custom_exclusions(self) -> None:
        """Explicit lists replace the configured ones."""
        allow = build_request_filter(
            block_images=False,
            blocked_urls=["ads.example"],
            blocked_types=["websocket"],
        )
        self.assertFalse(allow("https://ads.example/x", "script"))
        self.assertFalse(allow("wss://live.example", "websocket"))
        self.assertTrue(allow("https://x.example/a.css", "stylesheet"))


if __name__ == "__main__":
    unittest.main()

# tests/test_source_list.py

"""Tests for URL list parsing and the override table loader."""

import json
import tempfile
import unittest
from pathlib import Path

from src.config.source_list import (
    ProductOverride,
    load_overrides,
    load_urls,
    optimise_url_query,
    parse_categorised_url,
)

BASE = "https://www.thewarehouse.co.nz/c/food-pets-household/food-drink"


class TestOptimiseUrlQuery(unittest.TestCase):
    """Query string replacement."""

    def test_adds_query_when_absent(self) -> None:
        """A bare URL gains the scrape parameters."""
        self.assertEqual(
            optimise_url_query(f"{BASE}/pantry/canned-food", "a=1"),
            f"{BASE}/pantry/canned-food?a=1",
        )

    def test_replaces_existing_query(self) -> None:
        """Existing query parameters are dropped."""
        self.assertEqual(
            optimise_url_query(f"{BASE}/pantry?srule=x&sz=24", "a=1"),
            f"{BASE}/pantry?a=1",
        )

    def test_search_url_keeps_search_term(self) -> None:
        """Search URLs keep the first parameter."""
        self.assertEqual(
            optimise_url_query(
                "https://www.thewarehouse.co.nz/search?q=milk&sz=24", "a=1"
            ),
            "https://www.thewarehouse.co.nz/search?q=milk&a=1",
        )


class TestParseCategorisedUrl(unittest.TestCase):
    """One-line URL list parsing."""

    def test_derives_category_from_path(self) -> None:
        """Without an override the URL path gives the category."""
        parsed = parse_categorised_url(f"{BASE}/pantry/canned-food")
        assert parsed is not None
        self.assertEqual(parsed.categories, ["canned-food"])
        self.assertTrue(parsed.url.startswith(f"{BASE}/pantry/canned-food?"))

    def test_category_override_token(self) -> None:
        """A trailing categories= token replaces the derived category."""
        parsed = parse_categorised_url(
            f"{BASE}/snacks/chocolate categories=confectionery,chocolate"
        )
        assert parsed is not None
        self.assertEqual(parsed.categories, ["confectionery", "chocolate"])

    def test_foreign_url_skipped(self) -> None:
        """URLs for other sites return None."""
        self.assertIsNone(
            parse_categorised_url("https://www.example.com/c/food-drink/x")
        )

    def test_blank_line_skipped(self) -> None:
        """Blank lines return None."""
        self.assertIsNone(parse_categorised_url("   "))


class TestLoadUrls(unittest.TestCase):
    """URL list file loading."""

    def test_reads_valid_lines(self) -> None:
        """Only usable lines are returned, in file order."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "urls.txt"
            path.write_text(
                f"{BASE}/pantry/milk-bread/milk\n"
                "\n"
                "https://www.example.com/ignored\n"
                f"{BASE}/pantry/canned-food categories=cans\n",
                encoding="utf-8",
            )
            urls = load_urls(path)
        self.assertEqual(len(urls), 2)
        self.assertEqual(urls[0].categories, ["milk"])
        self.assertEqual(urls[1].categories, ["cans"])

    def test_empty_file_raises(self) -> None:
        """A file with no usable URLs is a configuration error."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "urls.txt"
            path.write_text("\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_urls(path)

    def test_missing_file_raises(self) -> None:
        """A missing file raises OSError."""
        with self.assertRaises(OSError):
            load_urls(Path("/nonexistent/urls.txt"))


class TestLoadOverrides(unittest.TestCase):
    """Override table loading."""

    def test_loads_size_and_category(self) -> None:
        """Entries map to ProductOverride records."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "overrides.json"
            path.write_text(json.dumps({
                "R1": {"size": "500g"},
                "R2": {"category": ["milk"]},
                "R3": "malformed",
            }), encoding="utf-8")
            table = load_overrides(path)
        self.assertEqual(table["R1"], ProductOverride(size="500g"))
        self.assertEqual(table["R2"].category, ["milk"])
        self.assertIsNone(table["R2"].size)
        self.assertNotIn("R3", table)

    def test_missing_file_means_no_overrides(self) -> None:
        """An absent override file returns an empty table."""
        self.assertEqual(load_overrides(Path("/nonexistent/o.json")), {})


if __name__ == "__main__":
    unittest.main()

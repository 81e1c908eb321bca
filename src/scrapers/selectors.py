# src/scrapers/selectors.py

"""CSS selector table for the catalog pages."""

import json
from typing import Any

from src.config.settings import Settings


def load_selectors(selector_set: str = Settings.SELECTOR_SET) -> dict[str, str]:
    """Load CSS selectors for a site from selectors.json."""
    with open(Settings.SELECTORS_PATH, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)
    result: dict[str, str] = all_selectors.get(selector_set, {})
    return result

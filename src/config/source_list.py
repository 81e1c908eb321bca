# src/config/source_list.py

"""Loading of the catalog URL list and the manual product override table."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.filters.pattern_extractors import derive_category_from_url

logger = logging.getLogger("warehouse_scraper.config")

_CATEGORIES_TOKEN = "categories="


@dataclass(frozen=True)
class CategorisedURL:
    """A catalog page URL with the categories its products belong to."""

    url: str
    categories: list[str]


@dataclass(frozen=True)
class ProductOverride:
    """Operator-maintained size and/or category correction for one id."""

    size: str | None = None
    category: list[str] | None = field(default=None)


def optimise_url_query(url: str, replacement: str) -> str:
    """Replace a catalog URL's query string with the scrape parameters.

    Search URLs keep their first query parameter (the search term).
    """
    if "search?" in url:
        base = url.split("&", 1)[0]
        return f"{base}&{replacement}"
    base = url.split("?", 1)[0]
    return f"{base}?{replacement}"


def parse_categorised_url(
    line: str,
    url_should_contain: str = Settings.URL_SHOULD_CONTAIN,
    query_params: str = Settings.URL_QUERY_PARAMS,
) -> CategorisedURL | None:
    """Parse one URL-list line into a :class:`CategorisedURL`.

    A trailing ``categories=a,b`` token overrides the categories derived
    from the URL path. Returns None for blank or foreign lines.
    """
    tokens = line.split()
    if not tokens:
        return None

    raw_url = tokens[0]
    if url_should_contain not in raw_url:
        logger.debug("Skipping URL outside source site: %s", raw_url)
        return None

    categories = derive_category_from_url(raw_url)
    last = tokens[-1]
    if len(tokens) > 1 and last.startswith(_CATEGORIES_TOKEN):
        overridden = [
            c.strip()
            for c in last[len(_CATEGORIES_TOKEN):].split(",")
            if c.strip()
        ]
        if overridden:
            categories = overridden

    return CategorisedURL(
        url=optimise_url_query(raw_url, query_params),
        categories=categories,
    )


def load_urls(path: Path | None = None) -> list[CategorisedURL]:
    """Read the newline-delimited URL list.

    Raises ``OSError`` if the file cannot be read and ``ValueError`` if
    it contains no usable URLs.
    """
    url_path = path or Settings.URLS_PATH
    with open(url_path, encoding="utf-8") as f:
        lines = f.read().splitlines()

    urls: list[CategorisedURL] = []
    for line in lines:
        parsed = parse_categorised_url(line)
        if parsed is not None:
            urls.append(parsed)

    if not urls:
        msg = f"No valid URLs found in {url_path}"
        raise ValueError(msg)

    logger.info("Loaded %d URLs from %s", len(urls), url_path)
    return urls


def load_overrides(path: Path | None = None) -> dict[str, ProductOverride]:
    """Load the id -> override table; a missing file means no overrides."""
    overrides_path = path or Settings.OVERRIDES_PATH
    if not overrides_path.exists():
        logger.debug("No override table at %s", overrides_path)
        return {}

    with open(overrides_path, encoding="utf-8") as f:
        raw: dict[str, Any] = json.load(f)

    table: dict[str, ProductOverride] = {}
    for product_id, entry in raw.items():
        if not isinstance(entry, dict):
            logger.warning("Ignoring malformed override for %s", product_id)
            continue
        category = entry.get("category")
        table[product_id] = ProductOverride(
            size=entry.get("size"),
            category=list(category) if category else None,
        )
    logger.info("Loaded %d product overrides", len(table))
    return table

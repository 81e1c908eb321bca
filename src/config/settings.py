# src/config/settings.py

"""Central configuration for the warehouse_scraper pipeline."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the warehouse_scraper pipeline."""

    # --- Scraping ---
    PAGE_DELAY: float = 15.0            # Seconds between page scrapes
    PAGE_TIMEOUT: int = 30              # Seconds to wait for tiles to render
    HEADLESS: bool = os.getenv("HEADLESS", "true").lower() != "false"

    # --- Source site ---
    SOURCE_SITE: str = "thewarehouse.co.nz"
    SELECTOR_SET: str = "warehouse"
    URL_SHOULD_CONTAIN: str = "warehouse.co.nz"
    URL_QUERY_PARAMS: str = (
        "prefn1=marketplaceItem&prefv1=The%20Warehouse&srule=best-sellers"
    )
    CATEGORY_MARKER: str = "/food-drink/"
    CATEGORY_SKIP_SEGMENTS: int = 1     # Leading taxonomy segments after marker
    NOT_FOUND_TITLE_MARKERS: list[str] = [
        "page not found",
        "404",
    ]

    # --- Validation ---
    MIN_NAME_LENGTH: int = 4
    MAX_NAME_LENGTH: int = 100
    MIN_ID_LENGTH: int = 2
    MAX_ID_LENGTH: int = 20
    MAX_PRICE: float = 999.0

    # --- Images ---
    THUMBNAIL_SIZE_QUERY: str = "sw=292&sh=292"
    HIRES_SIZE_QUERY: str = "sw=765&sh=765"
    IMAGE_UPLOAD_FUNC_URL: str = os.getenv("IMAGE_UPLOAD_FUNC_URL", "")
    IMAGE_UPLOAD_TIMEOUT: int = 20
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"

    # --- Request filtering ---
    BLOCKED_URL_SUBSTRINGS: list[str] = [
        "googleoptimize.com",
        "gtm.js",
        "visitoridentification.js",
        "js-agent.newrelic.com",
        "cquotient.com",
        "googletagmanager.com",
        "cloudflareinsights.com",
        "dwanalytics",
        "edge.adobedc.net",
    ]
    BLOCKED_RESOURCE_TYPES: list[str] = ["stylesheet", "media", "font"]

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    OVERRIDES_PATH: Path = (
        BASE_DIR / "src" / "config" / "product_overrides.json"
    )
    URLS_PATH: Path = BASE_DIR / "urls.txt"
    DATA_DIR: Path = BASE_DIR / "data"
    PRODUCTS_DB_PATH: Path = Path(
        os.getenv("PRODUCTS_DB_PATH", str(DATA_DIR / "products.db"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

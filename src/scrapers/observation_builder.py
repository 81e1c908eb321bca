# src/scrapers/observation_builder.py

"""Turns one rendered catalog tile into a validated product observation."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from src.config.settings import Settings
from src.config.source_list import ProductOverride
from src.filters.pattern_extractors import (
    derive_category_from_url,
    derive_unit_price,
    extract_product_size,
    get_hires_image_url,
    parse_price_text,
)
from src.filters.product_validator import ProductValidator
from src.models.product import ProductObservation, hour_bucket
from src.scrapers.selectors import load_selectors

logger = logging.getLogger("warehouse_scraper.tiles")

REJECT_IN_STORE_CLEARANCE = "in-store-only clearance"
REJECT_EXTRACTION_FAULT = "extraction fault"


class TileHandle(Protocol):
    """The element capabilities needed to read one catalog tile."""

    def query_selector(self, selector: str) -> Optional["TileHandle"]: ...

    def inner_text(self) -> str: ...

    def get_attribute(self, name: str) -> str | None: ...


class MissingElementError(LookupError):
    """An element every product tile should contain was not found."""


@dataclass
class BuildResult:
    """Outcome of reading one tile: an observation or a rejection reason."""

    observation: ProductObservation | None
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.observation is not None


def _product_id_from_href(href: str) -> str:
    """'/p/anchor-milk/R2622731.html' -> 'R2622731'."""
    file_name = href.split("?", 1)[0].rstrip("/").split("/")[-1]
    return file_name.split(".", 1)[0]


class ObservationBuilder:
    """Reads product tiles for one source site."""

    def __init__(
        self,
        overrides: dict[str, ProductOverride] | None = None,
        selectors: dict[str, str] | None = None,
        source_site: str = Settings.SOURCE_SITE,
    ) -> None:
        self.overrides = overrides or {}
        self.selectors = selectors or load_selectors()
        self.source_site = source_site

    def _require(self, tile: TileHandle, key: str) -> TileHandle:
        element = tile.query_selector(self.selectors[key])
        if element is None:
            raise MissingElementError(f"missing '{key}' element")
        return element

    def _attribute_contains(
        self,
        tile: TileHandle,
        element_key: str,
        attr_key: str,
        value_key: str,
    ) -> bool:
        """True if an optional element's attribute holds a marker value."""
        element = tile.query_selector(self.selectors[element_key])
        if element is None:
            return False
        value = element.get_attribute(self.selectors[attr_key]) or ""
        return self.selectors[value_key] in value.lower()

    def _image_url(self, tile: TileHandle) -> str:
        image = tile.query_selector(self.selectors["image"])
        if image is None:
            return ""
        return get_hires_image_url(image.get_attribute("src"))

    def _extract(
        self,
        tile: TileHandle,
        page_url: str,
        categories: list[str],
        observed_at: datetime,
    ) -> BuildResult:
        link = self._require(tile, "link")
        name = link.inner_text().strip()
        href = link.get_attribute("href")
        if not href:
            raise MissingElementError("product link has no href")
        product_id = _product_id_from_href(href)

        price_text = self._require(tile, "price").inner_text()
        current_price = parse_price_text(price_text)

        size = extract_product_size(name)
        category = list(categories) or derive_category_from_url(page_url)
        override = self.overrides.get(product_id)
        if override is not None:
            if override.size is not None:
                size = override.size
            if override.category:
                category = list(override.category)

        in_store_only = self._attribute_contains(
            tile, "stock_status", "stock_status_attr", "in_store_only_value"
        )
        on_clearance = self._attribute_contains(
            tile, "badge", "badge_attr", "clearance_value"
        )
        if in_store_only and on_clearance:
            logger.info(
                "Skipping in-store-only clearance product: %s", name
            )
            return BuildResult(None, REJECT_IN_STORE_CLEARANCE)

        observation = ProductObservation(
            id=product_id,
            name=name,
            current_price=current_price,
            source_site=self.source_site,
            observed_at=observed_at,
            size=size,
            category=category,
            image_url=self._image_url(tile),
        )

        unit = derive_unit_price(size, current_price)
        if unit is not None:
            observation.unit_price = unit.unit_price
            observation.unit_name = unit.unit_name
            observation.original_unit_quantity = unit.original_unit_quantity

        failed_field = ProductValidator.invalid_field(observation)
        if failed_field is not None:
            logger.warning(
                "Rejected %s: invalid %s (price=%s)",
                name or product_id,
                failed_field,
                current_price,
            )
            return BuildResult(None, failed_field)

        return BuildResult(observation)

    def build(
        self,
        tile: TileHandle,
        page_url: str,
        categories: list[str],
        observed_at: datetime | None = None,
    ) -> BuildResult:
        """Build an observation from a tile, rejecting instead of raising."""
        try:
            return self._extract(
                tile, page_url, categories, hour_bucket(observed_at)
            )
        except Exception as exc:
            logger.warning(
                "Tile extraction failed on %s: %s", page_url, exc,
                exc_info=True,
            )
            return BuildResult(None, f"{REJECT_EXTRACTION_FAULT}: {exc}")

# src/services/page_orchestrator.py

"""Drives a scrape run across the configured catalog pages."""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from src.config.settings import Settings
from src.config.source_list import CategorisedURL
from src.models.product import ProductObservation, hour_bucket
from src.scrapers.browser_session import PageLoadError, PageNotFoundError
from src.scrapers.observation_builder import ObservationBuilder, TileHandle
from src.scrapers.request_filter import RequestPredicate, build_request_filter
from src.services.image_uploader import ImageUploader
from src.services.reconciler import ProductReconciler, UpsertResponse

logger = logging.getLogger("warehouse_scraper.orchestrator")


class PageBrowser(Protocol):
    """Browser capabilities the orchestrator drives per page."""

    def install_request_filter(self, allow: RequestPredicate) -> None: ...

    def navigate(self, url: str) -> None: ...

    def wait_until_ready(self) -> None: ...

    def page_title(self) -> str: ...

    def query_tiles(self) -> Sequence[TileHandle]: ...


@dataclass
class PageStats:
    """Per-page tallies of tile and reconciliation outcomes.

    ``stale`` counts the out-of-order observations included in
    ``up_to_date``; they were ignored, not re-checked.
    """

    url: str
    products_found: int = 0
    new: int = 0
    price_updated: int = 0
    info_updated: int = 0
    up_to_date: int = 0
    stale: int = 0
    failed: int = 0
    rejected: int = 0
    observed: int = 0
    elapsed_seconds: float = 0.0
    error: str = ""

    @property
    def skipped(self) -> bool:
        return bool(self.error)

    def record(self, response: UpsertResponse) -> None:
        """Increment the counter for one reconciliation outcome."""
        if response is UpsertResponse.NEW_PRODUCT:
            self.new += 1
        elif response is UpsertResponse.PRICE_UPDATED:
            self.price_updated += 1
        elif response is UpsertResponse.NON_PRICE_UPDATED:
            self.info_updated += 1
        elif response is UpsertResponse.ALREADY_UP_TO_DATE:
            self.up_to_date += 1
        else:
            self.failed += 1


@dataclass
class RunResult:
    """Container for a completed scrape run."""

    pages: list[PageStats] = field(
        default_factory=lambda: list[PageStats]()
    )
    elapsed_seconds: float = 0.0

    @property
    def pages_skipped(self) -> int:
        return sum(1 for p in self.pages if p.skipped)

    def total(self, counter: str) -> int:
        """Sum one :class:`PageStats` counter across every page."""
        return sum(int(getattr(p, counter)) for p in self.pages)


def is_not_found_title(title: str) -> bool:
    """True if a document title marks the site's "not found" page."""
    lowered = (title or "").lower()
    return any(
        marker in lowered for marker in Settings.NOT_FOUND_TITLE_MARKERS
    )


class PageOrchestrator:
    """Scrapes pages sequentially, one tile at a time.

    With no reconciler the run is dry: observations go to
    *observation_sink* and nothing is persisted.
    """

    def __init__(
        self,
        browser: PageBrowser,
        builder: ObservationBuilder,
        reconciler: ProductReconciler | None = None,
        observation_sink: Callable[[ProductObservation], None] | None = None,
        image_uploader: ImageUploader | None = None,
        page_delay: float = Settings.PAGE_DELAY,
    ) -> None:
        self.browser = browser
        self.builder = builder
        self.reconciler = reconciler
        self.observation_sink = observation_sink
        self.image_uploader = image_uploader
        self.page_delay = page_delay

    @property
    def dry_run(self) -> bool:
        return self.reconciler is None

    def _stale_count(self) -> int:
        if self.reconciler is None:
            return 0
        return self.reconciler.stale_count

    # ── Per tile ─────────────────────────────────────────

    def _process_observation(
        self, observation: ProductObservation, stats: PageStats,
    ) -> None:
        stats.observed += 1
        if self.reconciler is None:
            if self.observation_sink is not None:
                self.observation_sink(observation)
            return

        response = self.reconciler.upsert(observation)
        stats.record(response)

        if (
            self.image_uploader is not None
            and response is not UpsertResponse.FAILED
        ):
            self.image_uploader.upload(observation.id, observation.image_url)

    # ── Per page ─────────────────────────────────────────

    def scrape_page(self, target: CategorisedURL) -> PageStats:
        """Scrape one page; raises :class:`PageLoadError` if unusable."""
        stats = PageStats(url=target.url)
        started = time.monotonic()

        self.browser.navigate(target.url)
        title = self.browser.page_title()
        if is_not_found_title(title):
            raise PageNotFoundError(f"Page not found: {title}")
        self.browser.wait_until_ready()

        tiles = self.browser.query_tiles()
        stats.products_found = len(tiles)
        logger.info("%d products found on %s", len(tiles), target.url)

        stale_before = self._stale_count()
        observed_at = hour_bucket()
        for tile in tiles:
            result = self.builder.build(
                tile, target.url, target.categories, observed_at
            )
            if result.observation is None:
                stats.rejected += 1
                continue
            self._process_observation(result.observation, stats)

        stats.stale = self._stale_count() - stale_before
        stats.elapsed_seconds = time.monotonic() - started
        if not self.dry_run:
            logger.info(
                "Page done: %d new products, %d prices updated, "
                "%d info updated, %d already up-to-date (%d stale), "
                "%d failed, %d rejected (%.1fs)",
                stats.new,
                stats.price_updated,
                stats.info_updated,
                stats.up_to_date,
                stats.stale,
                stats.failed,
                stats.rejected,
                stats.elapsed_seconds,
            )
        return stats

    # ── Run ──────────────────────────────────────────────

    def run(
        self,
        targets: list[CategorisedURL],
        reverse: bool = False,
        on_page_done: Callable[[int, PageStats], None] | None = None,
    ) -> RunResult:
        """Scrape every page in order; page failures skip to the next page.

        Exceptions other than :class:`PageLoadError` propagate and end
        the run.
        """
        ordered = list(reversed(targets)) if reverse else list(targets)
        result = RunResult()
        run_started = time.monotonic()

        self.browser.install_request_filter(
            build_request_filter(block_images=not self.dry_run)
        )

        for index, target in enumerate(ordered):
            logger.info(
                "Loading page [%d/%d] %s", index + 1, len(ordered), target.url
            )
            page_started = time.monotonic()
            try:
                stats = self.scrape_page(target)
            except PageLoadError as exc:
                logger.error(
                    "Unable to load page %s - %s", target.url, exc
                )
                stats = PageStats(
                    url=target.url,
                    error=str(exc) or type(exc).__name__,
                    elapsed_seconds=time.monotonic() - page_started,
                )
            result.pages.append(stats)
            if on_page_done is not None:
                on_page_done(index, stats)

            if index != len(ordered) - 1:
                logger.debug(
                    "Waiting %.0fs until next page scrape", self.page_delay
                )
                time.sleep(self.page_delay)

        result.elapsed_seconds = time.monotonic() - run_started
        logger.info(
            "Scrape run finished: %d pages, %d skipped, %.1fs",
            len(result.pages),
            result.pages_skipped,
            result.elapsed_seconds,
        )
        return result

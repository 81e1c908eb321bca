# src/cli/runner.py

"""Headless CLI runner: scrape runs, price-history lookups and charts."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.config.source_list import load_overrides, load_urls
from src.models.product import ProductObservation
from src.scrapers.browser_session import BrowserAutomationError, BrowserSession
from src.scrapers.observation_builder import ObservationBuilder
from src.services.image_uploader import ImageUploader
from src.services.page_orchestrator import PageOrchestrator, PageStats, RunResult
from src.services.reconciler import ProductReconciler
from src.storage.product_store import (
    Found,
    ProductStore,
    StoreConnectionError,
)

logger = logging.getLogger("warehouse_scraper.cli")

# Stderr console for status messages so stdout stays clean for dry-run rows
_err = Console(stderr=True)
_out = Console()


def format_observation_row(observation: ProductObservation) -> str:
    """One fixed-width line per product for dry runs."""
    category = observation.category[-1] if observation.category else ""
    unit = (
        f"${observation.unit_price:.2f}/{observation.unit_name}"
        if observation.unit_price is not None
        else ""
    )
    return (
        f"{observation.id:>9} | {observation.name[:40]:<40} | "
        f"{observation.size:<8} | ${observation.current_price:>6.2f} | "
        f"{unit:<11} | {category}"
    )


def _print_observation(observation: ProductObservation) -> None:
    _out.print(
        format_observation_row(observation), markup=False, highlight=False
    )


def _print_page_summary(index: int, stats: PageStats, dry_run: bool) -> None:
    if stats.skipped:
        _err.print(
            f"[red]Page {index + 1} skipped: {stats.error}[/red]"
        )
        return
    if dry_run:
        _err.print(
            f"[dim]Page {index + 1}: {stats.observed} products, "
            f"{stats.rejected} rejected ({stats.elapsed_seconds:.1f}s)[/dim]"
        )
        return
    _err.print(
        f"[blue]Page {index + 1}: {stats.new} new products, "
        f"{stats.price_updated} prices updated, "
        f"{stats.info_updated} info updated, "
        f"{stats.up_to_date} already up-to-date"
        f"{f' ({stats.stale} stale)' if stats.stale else ''}"
        f"{f', {stats.failed} failed' if stats.failed else ''} "
        f"({stats.elapsed_seconds:.1f}s)[/blue]"
    )


def _print_run_summary(result: RunResult, dry_run: bool) -> None:
    """Render a Rich table of per-page outcomes to stderr."""
    table = Table(
        title="Scrape Summary",
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Page", overflow="fold", max_width=60)
    table.add_column("Found", justify="right")
    if dry_run:
        table.add_column("Valid", justify="right", style="green")
    else:
        table.add_column("New", justify="right", style="green")
        table.add_column("Price", justify="right", style="yellow")
        table.add_column("Info", justify="right")
        table.add_column("Same", justify="right", style="dim")
        table.add_column("Stale", justify="right", style="dim")
        table.add_column("Failed", justify="right", style="red")
    table.add_column("Rejected", justify="right")
    table.add_column("Time", justify="right")

    for idx, page in enumerate(result.pages, 1):
        label = page.url.split("?", 1)[0]
        if page.skipped:
            label = f"{label} [red](skipped)[/red]"
        counts = (
            [str(page.observed)]
            if dry_run
            else [
                str(page.new),
                str(page.price_updated),
                str(page.info_updated),
                str(page.up_to_date),
                str(page.stale),
                str(page.failed),
            ]
        )
        table.add_row(
            str(idx),
            label,
            str(page.products_found),
            *counts,
            str(page.rejected),
            f"{page.elapsed_seconds:.1f}s",
        )

    _err.print(table)
    _err.print(
        f"[green]Scraping completed: {len(result.pages)} pages, "
        f"{result.pages_skipped} skipped, "
        f"{result.elapsed_seconds:.0f}s[/green]"
    )


def run_scrape(
    dry_run: bool = False,
    reverse: bool = False,
    headless: bool = Settings.HEADLESS,
    page_delay: float = Settings.PAGE_DELAY,
    urls_path: Path | None = None,
) -> int:
    """Run one scrape over the URL list and return an exit code."""
    try:
        targets = load_urls(urls_path)
        overrides = load_overrides()
    except (OSError, ValueError) as exc:
        logger.error("Unable to read scrape configuration: %s", exc)
        _err.print(f"[red]Unable to read scrape configuration: {exc}[/red]")
        return 1

    if dry_run:
        _err.print("[yellow](Dry Run mode on)[/yellow]")

    store: ProductStore | None = None
    uploader: ImageUploader | None = None
    browser = BrowserSession(headless=headless)
    try:
        if not dry_run:
            try:
                store = ProductStore()
            except StoreConnectionError as exc:
                logger.error("%s", exc)
                _err.print(f"[red]{exc}[/red]")
                return 1
            if Settings.IMAGE_UPLOAD_FUNC_URL:
                uploader = ImageUploader()

        try:
            browser.start()
        except BrowserAutomationError as exc:
            _err.print(f"[red]Unable to start browser: {exc}[/red]")
            return 1

        orchestrator = PageOrchestrator(
            browser=browser,
            builder=ObservationBuilder(overrides=overrides),
            reconciler=ProductReconciler(store) if store else None,
            observation_sink=_print_observation if dry_run else None,
            image_uploader=uploader,
            page_delay=page_delay,
        )
        _err.print(
            f"[bold]Scraping {len(targets)} pages[/bold] "
            f"[dim](delay={page_delay:.0f}s, reverse={reverse})[/dim]"
        )
        result = orchestrator.run(
            targets,
            reverse=reverse,
            on_page_done=lambda i, s: _print_page_summary(i, s, dry_run),
        )
    except Exception:
        logger.critical("Scrape run aborted", exc_info=True)
        _err.print("[red]Scrape run aborted, see log for details[/red]")
        return 1
    finally:
        browser.stop()
        if uploader is not None:
            try:
                uploader.close()
            except Exception as exc:
                logger.debug("Ignoring uploader close error: %s", exc)
        if store is not None:
            try:
                store.close()
            except Exception as exc:
                logger.debug("Ignoring store close error: %s", exc)

    _print_run_summary(result, dry_run)
    return 0


def show_price_history(product_id: str) -> int:
    """Print a stored product's price history and trend summary."""
    try:
        store = ProductStore()
    except StoreConnectionError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    try:
        result = store.read(product_id)
        if not isinstance(result, Found):
            _err.print(f"[yellow]No stored product {product_id}.[/yellow]")
            return 1
        product = result.product
        summary = store.get_trend_summary(product_id)
    finally:
        store.close()

    table = Table(
        title=f"{product.name} ({product.id})",
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("Date (UTC)")
    table.add_column("Price", justify="right", style="green")
    for entry in product.price_history:
        table.add_row(
            entry.date.strftime("%Y-%m-%d %H:%M"), f"${entry.price:.2f}"
        )
    _out.print(table)

    if summary is not None:
        _out.print(
            f"min ${summary['min']}  max ${summary['max']}  "
            f"avg ${summary['avg']}  latest ${summary['latest']}  "
            f"({summary['count']} entries)",
            markup=False,
        )
    if product.unit_price is not None:
        _out.print(
            f"unit price ${product.unit_price:.2f}/{product.unit_name}",
            markup=False,
        )
    _out.print(
        f"last updated {product.last_updated:%Y-%m-%d %H:%M}, "
        f"last checked {product.last_checked:%Y-%m-%d %H:%M}",
        markup=False,
    )
    return 0


def run_chart_export(product_ids: list[str], open_browser: bool = True) -> int:
    """Write a Plotly chart for one product, or an overlay for several."""
    from src.storage.chart_exporter import (
        export_comparison_chart,
        export_price_chart,
    )

    try:
        store = ProductStore()
    except StoreConnectionError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    try:
        if len(product_ids) == 1:
            path = export_price_chart(
                product_ids[0], store, open_browser=open_browser
            )
        else:
            path = export_comparison_chart(
                product_ids, store, open_browser=open_browser
            )
    finally:
        store.close()

    if path is None:
        _err.print("[yellow]Not enough price history to chart.[/yellow]")
        return 1
    _err.print(f"[dim]Chart saved → {path}[/dim]")
    return 0

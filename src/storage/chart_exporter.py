# src/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts from stored price history."""

import importlib
import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from src.config.settings import Settings
from src.models.product import PersistedProduct
from src.storage.product_store import Found, ProductStore

logger = logging.getLogger("warehouse_scraper.chart")

_CHARTS_DIR: Path = Settings.DATA_DIR / "charts"


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir() -> Path:
    """Create charts directory if it doesn't exist."""
    _CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    return _CHARTS_DIR


def _load_product(
    product_id: str, store: ProductStore,
) -> PersistedProduct | None:
    result = store.read(product_id)
    if isinstance(result, Found):
        return result.product
    logger.warning("No stored product for chart: %s", product_id)
    return None


def _build_single_chart(product: PersistedProduct) -> Any:
    """Build a Plotly step chart for one product's price history."""
    go = _get_plotly_go()
    dates = [entry.date for entry in product.price_history]
    prices = [entry.price for entry in product.price_history]

    fig: Any = go.Figure()
    fig.add_trace(go.Scatter(
        x=dates,
        y=prices,
        mode="lines+markers",
        line_shape="hv",
        name=product.name[:50],
        hovertemplate=(
            "%{x|%Y-%m-%d %H:%M}<br>"
            "Price: $%{y:.2f}"
            "<extra></extra>"
        ),
    ))

    lowest = min(product.price_history, key=lambda e: e.price)
    highest = max(product.price_history, key=lambda e: e.price)
    for entry, label in ((lowest, "Low"), (highest, "High")):
        fig.add_annotation(
            x=entry.date, y=entry.price,
            text=f"{label}: ${entry.price:.2f}",
            showarrow=True, arrowhead=2,
        )
    fig.add_hline(
        y=product.current_price,
        line_dash="dot",
        annotation_text=f"Now ${product.current_price:.2f}",
    )

    first = prices[0]
    change = (product.current_price - first) / first * 100 if first else 0.0
    fig.update_layout(
        title=(
            f"{product.name[:60]} ({product.id}): "
            f"{change:+.1f}% since {dates[0]:%d %b %Y}"
        ),
        xaxis_title="Date",
        yaxis_title="Price ($)",
        hovermode="x unified",
        template="plotly_white",
    )
    return fig


def _write_chart(fig: Any, stem: str, open_browser: bool) -> Path:
    charts_dir = _ensure_charts_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"{stem}_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())
    return filepath


def export_price_chart(
    product_id: str,
    store: ProductStore,
    open_browser: bool = True,
) -> Path | None:
    """Export a single product's price chart as HTML."""
    product = _load_product(product_id, store)
    if product is None:
        return None
    if len(product.price_history) < 2:
        logger.warning(
            "Not enough data points for chart: %s", product_id,
        )
        return None

    fig = _build_single_chart(product)
    return _write_chart(fig, product.id, open_browser)


def export_comparison_chart(
    product_ids: list[str],
    store: ProductStore,
    open_browser: bool = True,
) -> Path | None:
    """Export an overlay chart comparing several products."""
    go = _get_plotly_go()
    fig: Any = go.Figure()
    for product_id in product_ids:
        product = _load_product(product_id, store)
        if product is None or len(product.price_history) < 2:
            continue
        fig.add_trace(go.Scatter(
            x=[entry.date for entry in product.price_history],
            y=[entry.price for entry in product.price_history],
            mode="lines+markers",
            line_shape="hv",
            name=f"{product.name[:40]} ({product.id})",
            hovertemplate=(
                "%{x|%Y-%m-%d %H:%M}<br>"
                "Price: $%{y:.2f}"
                "<extra></extra>"
            ),
        ))

    if not fig.data:
        logger.warning("No trend data for comparison chart")
        return None

    fig.update_layout(
        title="Price Comparison",
        xaxis_title="Date",
        yaxis_title="Price ($)",
        hovermode="x unified",
        template="plotly_white",
        legend={"orientation": "h", "y": -0.15},
    )
    return _write_chart(fig, "comparison", open_browser)

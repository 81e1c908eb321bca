# src/storage/product_store.py

"""SQLite-backed product store holding current values and price history."""

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings
from src.models.price_snapshot import DatedPrice
from src.models.product import PersistedProduct

logger = logging.getLogger("warehouse_scraper.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id                     TEXT PRIMARY KEY,
    name                   TEXT NOT NULL,
    size                   TEXT NOT NULL DEFAULT '',
    current_price          REAL NOT NULL,
    category               TEXT NOT NULL DEFAULT '[]',
    source_site            TEXT NOT NULL,
    unit_price             REAL,
    unit_name              TEXT,
    original_unit_quantity REAL,
    image_url              TEXT NOT NULL DEFAULT '',
    last_updated           TEXT NOT NULL,
    last_checked           TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_name ON products(name);

CREATE TABLE IF NOT EXISTS price_history (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id TEXT NOT NULL
               REFERENCES products(id) ON DELETE CASCADE,
    date       TEXT NOT NULL,
    price      REAL NOT NULL,
    UNIQUE (product_id, date)
);

CREATE INDEX IF NOT EXISTS idx_history_product_date
    ON price_history(product_id, date);
"""

_PRODUCT_COLUMNS = (
    "id, name, size, current_price, category, source_site, unit_price, "
    "unit_name, original_unit_quantity, image_url, last_updated, last_checked"
)


class StoreConnectionError(Exception):
    """The product database could not be opened or provisioned."""


class StoreError(Exception):
    """A read or write against the product database failed."""


@dataclass(frozen=True)
class Found:
    """A stored record exists for the requested id."""

    product: PersistedProduct


@dataclass(frozen=True)
class NotFound:
    """No record exists for the requested id."""

    product_id: str


@dataclass(frozen=True)
class StoreFault:
    """The lookup itself failed."""

    reason: str


ReadResult = Found | NotFound | StoreFault


class ProductStore:
    """Key-value store of :class:`PersistedProduct` records keyed by id.

    ``name`` is kept as an indexed partition attribute; point reads use
    the id alone so a renamed product still reconciles against its record.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.PRODUCTS_DB_PATH
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as exc:
            raise StoreConnectionError(
                f"Unable to open product store at {path}: {exc}"
            ) from exc
        logger.debug("ProductStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> "ProductStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Point read ───────────────────────────────────────

    def _load_history(self, product_id: str) -> list[DatedPrice]:
        rows = self._conn.execute(
            "SELECT date, price FROM price_history "
            "WHERE product_id = ? ORDER BY date ASC",
            (product_id,),
        ).fetchall()
        return [
            DatedPrice(date=datetime.fromisoformat(r[0]), price=r[1])
            for r in rows
        ]

    def read(self, product_id: str) -> ReadResult:
        """Look up one product by id."""
        try:
            row = self._conn.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?",
                (product_id,),
            ).fetchone()
            if row is None:
                return NotFound(product_id)
            history = self._load_history(product_id)
            product = PersistedProduct(
                id=row[0],
                name=row[1],
                size=row[2],
                current_price=row[3],
                category=list(json.loads(row[4])),
                source_site=row[5],
                unit_price=row[6],
                unit_name=row[7],
                original_unit_quantity=row[8],
                image_url=row[9],
                last_updated=datetime.fromisoformat(row[10]),
                last_checked=datetime.fromisoformat(row[11]),
                price_history=history,
            )
        except (sqlite3.Error, ValueError, TypeError) as exc:
            logger.error(
                "Read failed for %s: %s", product_id, exc, exc_info=True
            )
            return StoreFault(str(exc))

        return Found(product)

    # ── Upsert ───────────────────────────────────────────

    def upsert(self, product: PersistedProduct) -> None:
        """Insert or overwrite a product; history entries are only added.

        Raises :class:`StoreError` on any database fault.
        """
        cur = self._conn.cursor()
        try:
            cur.execute(
                f"INSERT INTO products ({_PRODUCT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "name=excluded.name, size=excluded.size, "
                "current_price=excluded.current_price, "
                "category=excluded.category, "
                "source_site=excluded.source_site, "
                "unit_price=excluded.unit_price, "
                "unit_name=excluded.unit_name, "
                "original_unit_quantity=excluded.original_unit_quantity, "
                "image_url=excluded.image_url, "
                "last_updated=excluded.last_updated, "
                "last_checked=excluded.last_checked",
                (
                    product.id,
                    product.name,
                    product.size,
                    product.current_price,
                    json.dumps(product.category),
                    product.source_site,
                    product.unit_price,
                    product.unit_name,
                    product.original_unit_quantity,
                    product.image_url,
                    product.last_updated.isoformat(),
                    product.last_checked.isoformat(),
                ),
            )
            cur.executemany(
                "INSERT OR IGNORE INTO price_history "
                "(product_id, date, price) VALUES (?, ?, ?)",
                [
                    (product.id, entry.date.isoformat(), entry.price)
                    for entry in product.price_history
                ],
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StoreError(
                f"Upsert failed for {product.id}: {exc}"
            ) from exc

    def touch_checked(self, product_id: str, when: datetime) -> None:
        """Advance ``last_checked`` alone for a record seen unchanged.

        Raises :class:`StoreError` on any database fault.
        """
        try:
            self._conn.execute(
                "UPDATE products SET last_checked = ? WHERE id = ?",
                (when.isoformat(), product_id),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StoreError(
                f"Touching last_checked failed for {product_id}: {exc}"
            ) from exc

    # ── Querying ─────────────────────────────────────────

    def get_price_history(self, product_id: str) -> list[DatedPrice]:
        """Return all price entries for a product, oldest first."""
        return self._load_history(product_id)

    def get_trend_summary(
        self, product_id: str,
    ) -> dict[str, object] | None:
        """Compute min / max / avg / latest price for a product."""
        row = self._conn.execute(
            "SELECT MIN(price), MAX(price), AVG(price), COUNT(id) "
            "FROM price_history WHERE product_id = ?",
            (product_id,),
        ).fetchone()
        if row is None or row[3] == 0:
            return None
        latest_row = self._conn.execute(
            "SELECT price FROM price_history WHERE product_id = ? "
            "ORDER BY date DESC LIMIT 1",
            (product_id,),
        ).fetchone()
        latest_price: float = latest_row[0] if latest_row else 0.0
        return {
            "min": row[0],
            "max": row[1],
            "avg": round(row[2], 2),
            "count": row[3],
            "latest": latest_price,
        }

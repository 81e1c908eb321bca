# src/models/product.py

"""Product data models for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.models.price_snapshot import DatedPrice


def hour_bucket(moment: datetime | None = None) -> datetime:
    """Truncate a timestamp to the hour (UTC) for price-history dedup.

    Naive timestamps are taken to be UTC already.
    """
    value = moment or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class UnitPrice:
    """Price normalised to a standard unit (litres or kilograms)."""

    unit_price: float
    unit_name: str
    original_unit_quantity: float

    @property
    def display_price(self) -> float:
        """Unit price rounded for display."""
        return round(self.unit_price, 2)


@dataclass
class ProductObservation:
    """A freshly extracted, not-yet-persisted product snapshot."""

    id: str
    name: str
    current_price: float
    source_site: str
    observed_at: datetime
    size: str = ""
    category: list[str] = field(default_factory=lambda: list[str]())
    unit_price: float | None = None
    unit_name: str | None = None
    original_unit_quantity: float | None = None
    image_url: str = ""

    @property
    def dated_price(self) -> DatedPrice:
        """The observation's price entry for its hour bucket."""
        return DatedPrice(
            date=hour_bucket(self.observed_at),
            price=self.current_price,
        )


@dataclass
class PersistedProduct:
    """Durable product record with its accumulated price history."""

    id: str
    name: str
    current_price: float
    source_site: str
    last_updated: datetime
    last_checked: datetime
    size: str = ""
    category: list[str] = field(default_factory=lambda: list[str]())
    price_history: list[DatedPrice] = field(
        default_factory=lambda: list[DatedPrice]()
    )
    unit_price: float | None = None
    unit_name: str | None = None
    original_unit_quantity: float | None = None
    image_url: str = ""

    @property
    def latest_bucket(self) -> datetime | None:
        """Date of the most recent price-history entry, if any."""
        if not self.price_history:
            return None
        return max(entry.date for entry in self.price_history)

# src/models/price_snapshot.py

"""Temporal price entry model for price history tracking."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DatedPrice:
    """A single price observation for a product in one hour bucket."""

    date: datetime
    price: float

# tests/test_product_model.py

"""Tests for the product data models."""

import unittest
from datetime import datetime, timedelta, timezone

from src.models.price_snapshot import DatedPrice
from src.models.product import (
    PersistedProduct,
    ProductObservation,
    UnitPrice,
    hour_bucket,
)

T1 = datetime(2026, 5, 1, 9, tzinfo=timezone.utc)


class TestHourBucket(unittest.TestCase):
    """Hour truncation used for price-history dedup."""

    def test_truncates_to_hour(self) -> None:
        """Minutes, seconds and microseconds are dropped."""
        moment = datetime(2026, 5, 1, 9, 41, 12, 5000, tzinfo=timezone.utc)
        self.assertEqual(hour_bucket(moment), T1)

    def test_other_zone_converted_to_utc(self) -> None:
        """Aware timestamps in other zones land on the UTC hour."""
        auckland = timezone(timedelta(hours=12))
        moment = datetime(2026, 5, 1, 21, 41, tzinfo=auckland)
        bucket = hour_bucket(moment)
        self.assertEqual(bucket, T1)
        self.assertEqual(bucket.tzinfo, timezone.utc)
        self.assertEqual(bucket.hour, 9)

    def test_naive_taken_as_utc(self) -> None:
        """Naive timestamps compare cleanly with stored UTC dates."""
        bucket = hour_bucket(datetime(2026, 5, 1, 9, 41))
        self.assertEqual(bucket.tzinfo, timezone.utc)
        self.assertEqual(bucket, T1)
        self.assertLess(bucket, T1 + timedelta(hours=1))

    def test_default_is_aware_utc(self) -> None:
        """With no argument the current UTC hour is used."""
        bucket = hour_bucket()
        self.assertEqual(bucket.tzinfo, timezone.utc)
        self.assertEqual(bucket.minute, 0)


class TestModels(unittest.TestCase):
    """Derived properties on the dataclasses."""

    def test_observation_dated_price_is_bucketed(self) -> None:
        """An observation's history entry sits on its hour bucket."""
        obs = ProductObservation(
            id="R123",
            name="Puhoi Valley Caramel Milk 300ml",
            current_price=2.9,
            source_site="thewarehouse.co.nz",
            observed_at=T1.replace(minute=30),
        )
        self.assertEqual(obs.dated_price, DatedPrice(T1, 2.9))

    def test_latest_bucket(self) -> None:
        """latest_bucket is the newest history date, or None."""
        product = PersistedProduct(
            id="R123",
            name="Puhoi Valley Caramel Milk 300ml",
            current_price=3.6,
            source_site="thewarehouse.co.nz",
            last_updated=T1,
            last_checked=T1,
        )
        self.assertIsNone(product.latest_bucket)
        later = T1.replace(day=2)
        product.price_history = [DatedPrice(later, 3.6), DatedPrice(T1, 2.9)]
        self.assertEqual(product.latest_bucket, later)

    def test_unit_price_display(self) -> None:
        """Unit prices display at two decimal places."""
        self.assertEqual(UnitPrice(9.666, "L", 300).display_price, 9.67)


if __name__ == "__main__":
    unittest.main()

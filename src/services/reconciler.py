# src/services/reconciler.py

"""Merges fresh observations into stored product records."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from src.filters.pattern_extractors import derive_unit_price
from src.models.product import PersistedProduct, ProductObservation
from src.storage.product_store import (
    Found,
    NotFound,
    ProductStore,
    StoreError,
    StoreFault,
)

logger = logging.getLogger("warehouse_scraper.reconciler")


class UpsertResponse(Enum):
    """How an observation changed (or did not change) the store."""

    NEW_PRODUCT = "new"
    PRICE_UPDATED = "price_updated"
    NON_PRICE_UPDATED = "info_updated"
    ALREADY_UP_TO_DATE = "up_to_date"
    FAILED = "failed"


@dataclass
class ReconcileDecision:
    """The classification plus what to write, if anything.

    ``record`` is the full record to upsert. ``checked_at`` is set when
    only ``last_checked`` should advance. ``stale`` marks observations
    older than the stored history, which are never written.
    """

    response: UpsertResponse
    record: PersistedProduct | None = None
    checked_at: datetime | None = None
    stale: bool = False


def _new_record(
    observation: ProductObservation, now: datetime,
) -> PersistedProduct:
    return PersistedProduct(
        id=observation.id,
        name=observation.name,
        size=observation.size,
        current_price=observation.current_price,
        category=list(observation.category),
        source_site=observation.source_site,
        unit_price=observation.unit_price,
        unit_name=observation.unit_name,
        original_unit_quantity=observation.original_unit_quantity,
        image_url=observation.image_url,
        price_history=[observation.dated_price],
        last_updated=now,
        last_checked=now,
    )


def _with_current_values(
    existing: PersistedProduct,
    observation: ProductObservation,
    **changes: Any,
) -> PersistedProduct:
    """Copy *existing* with every non-history field taken from the observation."""
    fields: dict[str, Any] = {
        "name": observation.name,
        "size": observation.size,
        "category": list(observation.category),
        "source_site": observation.source_site,
        "unit_price": observation.unit_price,
        "unit_name": observation.unit_name,
        "original_unit_quantity": observation.original_unit_quantity,
        "image_url": observation.image_url or existing.image_url,
    }
    fields.update(changes)
    return replace(existing, **fields)


def _unit_fields(size: str, price: float) -> dict[str, Any]:
    """Unit-price fields for *size* at *price*, all None if not derivable."""
    unit = derive_unit_price(size, price)
    if unit is None:
        return {
            "unit_price": None,
            "unit_name": None,
            "original_unit_quantity": None,
        }
    return {
        "unit_price": unit.unit_price,
        "unit_name": unit.unit_name,
        "original_unit_quantity": unit.original_unit_quantity,
    }


def _log_price_change(
    existing: PersistedProduct, observation: ProductObservation,
) -> None:
    trending_down = observation.current_price < existing.current_price
    logger.info(
        "  Price %s: %-40.40s | $%s > $%s",
        "Down" if trending_down else "Up  ",
        existing.name,
        existing.current_price,
        observation.current_price,
    )


def reconcile(
    observation: ProductObservation,
    existing: PersistedProduct | None,
    now: datetime | None = None,
) -> ReconcileDecision:
    """Classify an observation against the stored record for its id.

    The same observation applied twice within one hour bucket yields
    ``ALREADY_UP_TO_DATE`` the second time, with only ``last_checked``
    to advance. Observations older than the latest stored bucket are
    stale and never written.
    """
    checked_at = now or datetime.now(timezone.utc)

    if existing is None:
        return ReconcileDecision(
            UpsertResponse.NEW_PRODUCT, _new_record(observation, checked_at)
        )

    entry = observation.dated_price
    latest_bucket = existing.latest_bucket
    if latest_bucket is not None and entry.date < latest_bucket:
        logger.warning(
            "Ignoring stale observation for %s: bucket %s precedes %s",
            observation.id,
            entry.date.isoformat(),
            latest_bucket.isoformat(),
        )
        return ReconcileDecision(
            UpsertResponse.ALREADY_UP_TO_DATE, stale=True
        )

    price_changed = existing.current_price != observation.current_price
    other_changed = (
        existing.name != observation.name
        or existing.size != observation.size
        or " ".join(existing.category) != " ".join(observation.category)
        or existing.source_site != observation.source_site
    )

    if price_changed and latest_bucket != entry.date:
        _log_price_change(existing, observation)
        updated = _with_current_values(
            existing,
            observation,
            current_price=observation.current_price,
            price_history=[*existing.price_history, entry],
            last_updated=checked_at,
            last_checked=checked_at,
        )
        return ReconcileDecision(UpsertResponse.PRICE_UPDATED, updated)

    if other_changed:
        # current_price is kept, so unit fields must follow the stored price
        unit_changes = (
            _unit_fields(observation.size, existing.current_price)
            if price_changed
            else {}
        )
        updated = _with_current_values(
            existing, observation, last_checked=checked_at, **unit_changes,
        )
        return ReconcileDecision(UpsertResponse.NON_PRICE_UPDATED, updated)

    return ReconcileDecision(
        UpsertResponse.ALREADY_UP_TO_DATE, checked_at=checked_at
    )


class ProductReconciler:
    """Reads, classifies and writes observations against a product store.

    ``stale_count`` tallies out-of-order observations across the run.
    """

    def __init__(self, store: ProductStore) -> None:
        self.store = store
        self.stale_count = 0

    def upsert(self, observation: ProductObservation) -> UpsertResponse:
        """Reconcile one observation; store faults become ``FAILED``."""
        result = self.store.read(observation.id)
        if isinstance(result, StoreFault):
            logger.error(
                "Store read failed for %s: %s", observation.id, result.reason
            )
            return UpsertResponse.FAILED

        existing = result.product if isinstance(result, Found) else None
        if isinstance(result, NotFound):
            logger.debug("No stored record for %s", result.product_id)

        decision = reconcile(observation, existing)
        if decision.stale:
            self.stale_count += 1
            return decision.response

        try:
            if decision.record is not None:
                self.store.upsert(decision.record)
            elif decision.checked_at is not None:
                self.store.touch_checked(observation.id, decision.checked_at)
        except StoreError as exc:
            logger.error("%s", exc, exc_info=True)
            return UpsertResponse.FAILED

        if decision.response is UpsertResponse.NEW_PRODUCT:
            logger.info(
                "  New Product: %-8s | %-40.40s | $ %5s | %s",
                observation.id,
                observation.name,
                observation.current_price,
                observation.category[-1] if observation.category else "",
            )
        return decision.response

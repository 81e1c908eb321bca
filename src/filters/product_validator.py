# src/filters/product_validator.py

"""Observation validation: reject out-of-range products before storage."""

from src.config.settings import Settings
from src.models.product import ProductObservation


class ProductValidator:
    """Check observations against the stored-record range invariants."""

    @staticmethod
    def invalid_field(observation: ProductObservation) -> str | None:
        """Return the name of the first field out of range, or None."""
        name_len = len(observation.name or "")
        if not (
            Settings.MIN_NAME_LENGTH <= name_len <= Settings.MAX_NAME_LENGTH
        ):
            return "name"

        id_len = len(observation.id or "")
        if not Settings.MIN_ID_LENGTH <= id_len <= Settings.MAX_ID_LENGTH:
            return "id"

        price = observation.current_price
        if not 0 < price <= Settings.MAX_PRICE:
            return "current_price"

        return None

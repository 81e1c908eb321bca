# src/filters/pattern_extractors.py

"""Text-pattern heuristics for product size, unit price and category."""

import re

from src.config.settings import Settings
from src.models.product import UnitPrice

UNCATEGORISED = "Uncategorised"

# 'Anchor Blue Milk Powder 1kg' -> '1kg'
_SIZE_RE = re.compile(r"\s\d\w+$")

# '4 x 107mL', '6x330ml'
_MULTI_QTY_RE = re.compile(
    r"(\d+)\s*x\s*(\d+(?:\.\d+)?)\s*(ml|l|kg|g)\b",
    re.IGNORECASE,
)

# '1.5L', '400 g'
_SINGLE_QTY_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(ml|l|kg|g)\b",
    re.IGNORECASE,
)

# 'kg', 'L' with an implicit quantity of 1
_BARE_UNIT_RE = re.compile(r"^\s*(ml|l|kg|g)\s*$", re.IGNORECASE)

# unit -> (standard unit name, multiplier into the standard unit)
_UNIT_CONVERSIONS: dict[str, tuple[str, float]] = {
    "ml": ("L", 0.001),
    "l": ("L", 1.0),
    "g": ("kg", 0.001),
    "kg": ("kg", 1.0),
}

_PRICE_RE = re.compile(r"\d+(?:\.\d+)?")


def extract_product_size(product_name: str) -> str:
    """Return the trailing size token of a product name, or ``""``."""
    match = _SIZE_RE.search(product_name or "")
    return match.group(0).strip() if match else ""


def _parse_quantity(size: str) -> tuple[float, str] | None:
    """Parse a size string into (total quantity, unit) or None."""
    multi = _MULTI_QTY_RE.search(size)
    if multi:
        count = float(multi.group(1))
        amount = float(multi.group(2))
        return count * amount, multi.group(3).lower()

    single = _SINGLE_QTY_RE.search(size)
    if single:
        return float(single.group(1)), single.group(2).lower()

    bare = _BARE_UNIT_RE.match(size)
    if bare:
        return 1.0, bare.group(1).lower()

    return None


def derive_unit_price(size: str, price: float) -> UnitPrice | None:
    """Normalise a price to price-per-litre or price-per-kilogram.

    Handles ``2L``, ``4 x 107mL``, ``1.5L`` and a bare ``kg``. Returns
    ``None`` when no quantity/unit can be parsed or the quantity is zero.
    """
    if not size:
        return None

    parsed = _parse_quantity(size)
    if parsed is None:
        return None

    quantity, unit = parsed
    unit_name, multiplier = _UNIT_CONVERSIONS[unit]
    standard_quantity = quantity * multiplier
    if standard_quantity <= 0:
        return None

    return UnitPrice(
        unit_price=price / standard_quantity,
        unit_name=unit_name,
        original_unit_quantity=quantity,
    )


def derive_category_from_url(
    url: str,
    marker: str = Settings.CATEGORY_MARKER,
    skip_segments: int = Settings.CATEGORY_SKIP_SEGMENTS,
) -> list[str]:
    """Derive the most specific category from a catalog URL path.

    ``.../food-drink/pantry/ingredients-sauces-oils/table-sauces``
    with marker ``/food-drink/`` returns ``["table-sauces"]``. URLs
    without the marker return ``["Uncategorised"]``.
    """
    if not url or marker not in url:
        return [UNCATEGORISED]

    path = url.split("?", 1)[0]
    after_marker = path.split(marker, 1)[1]
    segments = [s for s in after_marker.split("/") if s]
    if not segments:
        return [UNCATEGORISED]

    remaining = segments[skip_segments:] or segments
    return [remaining[-1]]


def parse_price_text(text: str) -> float:
    """Parse a displayed price like ``'$1,299.00'`` into a float.

    Raises ``ValueError`` when the text holds no number.
    """
    cleaned = (text or "").replace(",", "")
    match = _PRICE_RE.search(cleaned)
    if not match:
        raise ValueError(f"No price found in {text!r}")
    return float(match.group(0))


def get_hires_image_url(image_src: str | None) -> str:
    """Swap a thumbnail image URL for its hi-res variant.

    Returns ``""`` when the image is not a sized product thumbnail.
    """
    if not image_src or Settings.THUMBNAIL_SIZE_QUERY not in image_src:
        return ""
    return image_src.replace(
        Settings.THUMBNAIL_SIZE_QUERY, Settings.HIRES_SIZE_QUERY
    )

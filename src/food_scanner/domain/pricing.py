"""Price estimation models."""

from dataclasses import dataclass
from typing import Literal

from food_scanner.domain.products import PriceConfidence

PriceSource = Literal["product_match", "category_match", "fallback"]


@dataclass(frozen=True)
class PriceEstimate:
    """Estimated price for a quantity of a product."""

    estimated_price: float
    price_per_100g: float
    confidence: PriceConfidence
    price_range: str
    currency: str
    source: PriceSource

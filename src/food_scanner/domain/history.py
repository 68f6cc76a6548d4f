"""Models for the scan history feed."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from food_scanner.domain.products import NutritionFacts, ProductData

HistoryEntryType = Literal["product", "meal"]


@dataclass(frozen=True)
class StoredProduct:
    """Product row as persisted for a user."""

    product: ProductData
    user_id: str | None
    estimated_cost: float
    created_at: datetime
    updated_at: datetime | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """Product or scanned meal projected into one display shape."""

    id: str
    type: HistoryEntryType
    name: str
    category: str
    nutrition_per_100g: NutritionFacts
    created_at: datetime
    brand: str | None = None
    ingredients: list[str] = field(default_factory=list)
    allergens: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    health_score: int | None = None
    image_url: str | None = None
    estimated_cost: float = 0.0
    meal_period: str | None = None
    serving_size_g: float | None = None


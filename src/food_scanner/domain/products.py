"""Product domain models."""

import secrets
import string
import time
from typing import Literal

from pydantic import BaseModel, Field

PriceConfidence = Literal["high", "medium", "low"]


class NutritionFacts(BaseModel):
    """Nutrition values normalized to 100 g of product.

    Core macros are always present. Everything else stays ``None`` when the
    source does not report it, so "unknown" is never confused with zero.
    Macros, fiber, sugar and fats are grams; sodium, cholesterol, potassium,
    calcium, iron and vitamin C are milligrams; vitamin D is micrograms.
    """

    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)
    fiber: float | None = Field(default=None, ge=0.0)
    sugar: float | None = Field(default=None, ge=0.0)
    sodium: float | None = Field(default=None, ge=0.0)
    saturated_fat: float | None = Field(default=None, ge=0.0)
    trans_fat: float | None = Field(default=None, ge=0.0)
    cholesterol: float | None = Field(default=None, ge=0.0)
    potassium: float | None = Field(default=None, ge=0.0)
    calcium: float | None = Field(default=None, ge=0.0)
    iron: float | None = Field(default=None, ge=0.0)
    vitamin_c: float | None = Field(default=None, ge=0.0)
    vitamin_d: float | None = Field(default=None, ge=0.0)


class ProductData(BaseModel):
    """Canonical description of a scanned product."""

    barcode: str | None = None
    synthetic_id: str | None = None
    name: str = Field(min_length=1)
    brand: str | None = None
    category: str = "Unknown"
    nutrition_per_100g: NutritionFacts
    ingredients: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    health_score: int | None = Field(default=None, ge=0, le=100)
    image_url: str | None = None
    serving_size: str | None = None
    servings_per_container: float | None = None
    estimated_price: float | None = None
    price_per_100g: float | None = None
    price_confidence: PriceConfidence | None = None

    @property
    def storage_key(self) -> str | None:
        """Key used to upsert the product: barcode, else the synthetic id."""
        return self.barcode or self.synthetic_id


SYNTHETIC_ID_PREFIXES = ("img_", "search_")
_ID_ALPHABET = string.ascii_lowercase + string.digits


def make_synthetic_id(prefix: str) -> str:
    """Generate ``<prefix>_<epoch ms>_<9 random chars>`` for barcode-less items."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def is_synthetic_id(key: str) -> bool:
    """Return True when a storage key was generated rather than scanned."""
    return key.startswith(SYNTHETIC_ID_PREFIXES)

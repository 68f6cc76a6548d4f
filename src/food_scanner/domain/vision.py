"""Models for vision extraction results."""

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from food_scanner.domain.products import NutritionFacts, ProductData

_BARCODE_PATTERN = re.compile(r"^\d{8,14}$")
_CORE_MACROS = ("calories", "protein", "carbs", "fat")


class VisionProduct(BaseModel):
    """Product fields read from a nutrition label by a vision model."""

    name: str = Field(min_length=1)
    brand: str | None = None
    category: str | None = None
    nutrition_per_100g: NutritionFacts
    ingredients: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    health_score: int | None = None
    barcode: str | None = None
    serving_size: str | None = None
    servings_per_container: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if isinstance(payload.get("name"), str):
            payload["name"] = payload["name"].strip()
        nutrition = payload.get("nutrition_per_100g")
        if not nutrition:
            raise ValueError("nutrition_per_100g is missing or empty")
        if isinstance(nutrition, dict):
            payload["nutrition_per_100g"] = {
                key: (0.0 if key in _CORE_MACROS and value is None else value)
                for key, value in nutrition.items()
            }
        for key in ("ingredients", "allergens", "labels"):
            if payload.get(key) is None:
                payload[key] = []
        return payload

    @field_validator("health_score", mode="before")
    @classmethod
    def _clamp_health_score(cls, value: object) -> object:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return max(0, min(100, round(value)))
        return value

    @field_validator("barcode", mode="before")
    @classmethod
    def _keep_real_barcodes(cls, value: object) -> object:
        if value is None:
            return None
        digits = re.sub(r"\s+", "", str(value))
        return digits if _BARCODE_PATTERN.match(digits) else None

    def to_product(self) -> ProductData:
        """Convert to the canonical product model."""
        return ProductData(
            barcode=self.barcode,
            name=self.name,
            brand=self.brand or None,
            category=(self.category or "").strip() or "Unknown",
            nutrition_per_100g=self.nutrition_per_100g,
            ingredients=[item for item in self.ingredients if item.strip()],
            allergens=[item for item in self.allergens if item.strip()],
            labels=[item for item in self.labels if item.strip()],
            health_score=self.health_score,
            serving_size=self.serving_size or None,
            servings_per_container=self.servings_per_container,
        )

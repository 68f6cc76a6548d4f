"""Logging scanned products as meals."""

import logging
from dataclasses import dataclass
from typing import Protocol

from food_scanner.domain.meals import MealLogDraft, MealLogRecord
from food_scanner.domain.products import ProductData
from food_scanner.errors import ValidationError
from food_scanner.services.pricing import PriceEstimator

_logger = logging.getLogger(__name__)

MEAL_PERIODS = frozenset(
    {
        "breakfast",
        "morning_snack",
        "lunch",
        "afternoon_snack",
        "dinner",
        "snack",
        "late_night",
    }
)
MIN_QUANTITY_GRAMS = 1.0
DEFAULT_HEALTH_SCORE = 50
# Scanned meals are named "<product> (<grams>g)"; history relies on this suffix.
SCANNED_MEAL_MARKER = "g)"


class MealLogRepository(Protocol):
    """Persistence interface for meal logs."""

    def create_meal(self, user_id: str, meal: MealLogDraft) -> MealLogRecord:
        """Persist a meal and return the stored record."""

    def list_scanned_meals(self, user_id: str, limit: int) -> list[MealLogRecord]:
        """Return the newest meals whose name follows the scanned convention."""


@dataclass
class MealLogService:
    """Service that scales product nutrition to a quantity and logs it."""

    repository: MealLogRepository
    price_estimator: PriceEstimator

    def add_to_log(
        self,
        user_id: str,
        product: ProductData,
        quantity_grams: float,
        meal_period: str = "snack",
    ) -> MealLogRecord:
        """Log ``quantity_grams`` of a product as a meal."""
        draft = self.build_meal(product, quantity_grams, meal_period)
        record = self.repository.create_meal(user_id, draft)
        _logger.info(
            "Logged scanned product: user=%s meal=%s period=%s",
            user_id,
            record.id,
            draft.meal_period,
        )
        return record

    def build_meal(
        self, product: ProductData, quantity_grams: float, meal_period: str
    ) -> MealLogDraft:
        """Compute meal values without persisting."""
        if quantity_grams < MIN_QUANTITY_GRAMS:
            raise ValidationError("Quantity must be at least 1 gram")
        period = (meal_period or "snack").strip().lower()
        if period not in MEAL_PERIODS:
            raise ValidationError(f"Unknown meal period: {meal_period!r}")

        factor = quantity_grams / 100
        nutrition = product.nutrition_per_100g
        return MealLogDraft(
            meal_name=scanned_meal_name(product.name, quantity_grams),
            meal_period=period,
            serving_size_g=quantity_grams,
            calories=round(nutrition.calories * factor),
            protein_g=round(nutrition.protein * factor),
            carbs_g=round(nutrition.carbs * factor),
            fat_g=round(nutrition.fat * factor),
            fiber_g=_scaled(nutrition.fiber, factor),
            sugar_g=_scaled(nutrition.sugar, factor),
            sodium_mg=_scaled(nutrition.sodium, factor),
            saturated_fat_g=_scaled(nutrition.saturated_fat, factor),
            cholesterol_mg=_scaled(nutrition.cholesterol, factor),
            category=product.category,
            ingredients=list(product.ingredients),
            allergens=list(product.allergens),
            labels=list(product.labels),
            health_score=(
                product.health_score
                if product.health_score is not None
                else DEFAULT_HEALTH_SCORE
            ),
            image_url=product.image_url,
            estimated_cost=self._estimated_cost(product, quantity_grams),
        )

    def _estimated_cost(self, product: ProductData, quantity_grams: float) -> float:
        if product.price_per_100g is not None:
            return round(product.price_per_100g * quantity_grams / 100, 2)
        estimate = self.price_estimator.estimate(
            product.name, product.category, quantity_grams
        )
        return estimate.estimated_price


def scanned_meal_name(product_name: str, quantity_grams: float) -> str:
    """Name a meal created from a scanned product."""
    grams = (
        str(int(quantity_grams))
        if float(quantity_grams).is_integer()
        else f"{quantity_grams:.1f}"
    )
    return f"{product_name} ({grams}{SCANNED_MEAL_MARKER}"


def _scaled(value: float | None, factor: float) -> float | None:
    if value is None:
        return None
    return round(value * factor)

"""Scan history built from stored products and scanned meals."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from food_scanner.domain.history import HistoryEntry, StoredProduct
from food_scanner.domain.meals import MealLogRecord
from food_scanner.domain.products import NutritionFacts
from food_scanner.services.meals import MealLogRepository
from food_scanner.services.products import ProductRepository

_logger = logging.getLogger(__name__)


@dataclass
class HistoryAggregator:
    """Merges products and scanned meals into one newest-first feed."""

    product_repository: ProductRepository
    meal_repository: MealLogRepository
    per_source_limit: int = 50
    max_entries: int = 100

    async def get_history(self, user_id: str) -> list[HistoryEntry]:
        """Return up to ``max_entries`` entries, newest first."""
        products, meals = await asyncio.gather(
            asyncio.to_thread(
                self.product_repository.list_by_user, user_id, self.per_source_limit
            ),
            asyncio.to_thread(
                self.meal_repository.list_scanned_meals, user_id, self.per_source_limit
            ),
            return_exceptions=True,
        )
        if isinstance(products, BaseException):
            _logger.warning("Product history failed for %s: %s", user_id, products)
            products = []
        if isinstance(meals, BaseException):
            _logger.warning("Meal history failed for %s: %s", user_id, meals)
            meals = []

        entries = [entry_from_product(stored) for stored in products]
        entries.extend(entry_from_meal(record) for record in meals)
        entries.sort(key=lambda entry: _aware(entry.created_at), reverse=True)
        return entries[: self.max_entries]


def entry_from_product(stored: StoredProduct) -> HistoryEntry:
    """Project a stored product into a history entry."""
    product = stored.product
    return HistoryEntry(
        id=product.storage_key or "",
        type="product",
        name=product.name,
        brand=product.brand,
        category=product.category,
        nutrition_per_100g=product.nutrition_per_100g,
        created_at=stored.created_at,
        ingredients=list(product.ingredients),
        allergens=list(product.allergens),
        labels=list(product.labels),
        health_score=product.health_score,
        image_url=product.image_url,
        estimated_cost=stored.estimated_cost,
    )


def entry_from_meal(record: MealLogRecord) -> HistoryEntry:
    """Project a scanned meal, deriving per-100 g values from its quantity."""
    meal = record.meal
    factor = meal.serving_size_g / 100 if meal.serving_size_g > 0 else 1.0
    return HistoryEntry(
        id=record.id,
        type="meal",
        name=meal.meal_name,
        category=meal.category,
        nutrition_per_100g=NutritionFacts(
            calories=_per_100g(meal.calories, factor),
            protein=_per_100g(meal.protein_g, factor),
            carbs=_per_100g(meal.carbs_g, factor),
            fat=_per_100g(meal.fat_g, factor),
            fiber=_optional_per_100g(meal.fiber_g, factor),
            sugar=_optional_per_100g(meal.sugar_g, factor),
            sodium=_optional_per_100g(meal.sodium_mg, factor),
            saturated_fat=_optional_per_100g(meal.saturated_fat_g, factor),
            cholesterol=_optional_per_100g(meal.cholesterol_mg, factor),
        ),
        created_at=record.created_at,
        ingredients=list(meal.ingredients),
        allergens=list(meal.allergens),
        labels=list(meal.labels),
        health_score=meal.health_score,
        image_url=meal.image_url,
        estimated_cost=meal.estimated_cost,
        meal_period=meal.meal_period,
        serving_size_g=meal.serving_size_g,
    )


def _per_100g(value: float, factor: float) -> float:
    return round(max(value, 0.0) / factor, 1)


def _optional_per_100g(value: float | None, factor: float) -> float | None:
    if value is None:
        return None
    return _per_100g(value, factor)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value

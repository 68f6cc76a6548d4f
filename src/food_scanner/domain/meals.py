"""Domain models for meals logged from scanned products."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class MealLogDraft:
    """Meal values computed for a quantity of a product, before persisting."""

    meal_name: str
    meal_period: str
    serving_size_g: float
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: float | None
    sugar_g: float | None
    sodium_mg: float | None
    saturated_fat_g: float | None
    cholesterol_mg: float | None
    category: str
    ingredients: list[str] = field(default_factory=list)
    allergens: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    health_score: int = 50
    image_url: str | None = None
    estimated_cost: float = 0.0


@dataclass(frozen=True)
class MealLogRecord:
    """Persisted meal row."""

    id: str
    user_id: str
    created_at: datetime
    meal: MealLogDraft

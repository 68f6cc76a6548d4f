"""Supabase repository for meals logged from scans."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from food_scanner.domain.meals import MealLogDraft, MealLogRecord
from food_scanner.services.meals import SCANNED_MEAL_MARKER, MealLogRepository

_TABLE = "meals"
_COLUMNS = (
    "id, user_id, meal_name, meal_period, serving_size_g, calories, protein_g, "
    "carbs_g, fat_g, fiber_g, sugar_g, sodium_mg, saturated_fat_g, "
    "cholesterol_mg, category, ingredients, allergens, labels, health_score, "
    "image_url, estimated_cost, created_at"
)


@dataclass
class SupabaseMealLogRepository(MealLogRepository):
    """Supabase implementation for meal logs."""

    client: Client

    def create_meal(self, user_id: str, meal: MealLogDraft) -> MealLogRecord:
        """Create a meal row and return the stored record."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "user_id": user_id,
                    "meal_name": meal.meal_name,
                    "meal_period": meal.meal_period,
                    "serving_size_g": meal.serving_size_g,
                    "calories": meal.calories,
                    "protein_g": meal.protein_g,
                    "carbs_g": meal.carbs_g,
                    "fat_g": meal.fat_g,
                    "fiber_g": meal.fiber_g,
                    "sugar_g": meal.sugar_g,
                    "sodium_mg": meal.sodium_mg,
                    "saturated_fat_g": meal.saturated_fat_g,
                    "cholesterol_mg": meal.cholesterol_mg,
                    "category": meal.category,
                    "ingredients": list(meal.ingredients),
                    "allergens": list(meal.allergens),
                    "labels": list(meal.labels),
                    "health_score": meal.health_score,
                    "image_url": meal.image_url,
                    "estimated_cost": meal.estimated_cost,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        row = response.data[0]
        return MealLogRecord(
            id=str(row["id"]),
            user_id=user_id,
            created_at=_parse_timestamp(row.get("created_at")),
            meal=meal,
        )

    def list_scanned_meals(self, user_id: str, limit: int) -> list[MealLogRecord]:
        """Return the newest meals named after a scanned quantity."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .ilike("meal_name", f"%{SCANNED_MEAL_MARKER}%")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]


def _parse_meal(row: dict[str, object]) -> MealLogRecord:
    return MealLogRecord(
        id=str(row["id"]),
        user_id=str(row.get("user_id", "")),
        created_at=_parse_timestamp(row.get("created_at")),
        meal=MealLogDraft(
            meal_name=str(row.get("meal_name", "")),
            meal_period=str(row.get("meal_period") or "snack"),
            serving_size_g=float(row.get("serving_size_g") or 0.0),
            calories=float(row.get("calories") or 0.0),
            protein_g=float(row.get("protein_g") or 0.0),
            carbs_g=float(row.get("carbs_g") or 0.0),
            fat_g=float(row.get("fat_g") or 0.0),
            fiber_g=_optional_float(row.get("fiber_g")),
            sugar_g=_optional_float(row.get("sugar_g")),
            sodium_mg=_optional_float(row.get("sodium_mg")),
            saturated_fat_g=_optional_float(row.get("saturated_fat_g")),
            cholesterol_mg=_optional_float(row.get("cholesterol_mg")),
            category=str(row.get("category") or "Unknown"),
            ingredients=list(row.get("ingredients") or []),
            allergens=list(row.get("allergens") or []),
            labels=list(row.get("labels") or []),
            health_score=int(row.get("health_score") or 50),
            image_url=row.get("image_url"),
            estimated_cost=float(row.get("estimated_cost") or 0.0),
        ),
    )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(tz=UTC)

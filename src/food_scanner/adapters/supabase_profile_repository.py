"""Supabase repository for nutrition plans and dietary questionnaires."""

from dataclasses import dataclass

from supabase import Client

from food_scanner.domain.profiles import NutritionPlan, Questionnaire
from food_scanner.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for profile reads."""

    client: Client

    def get_nutrition_plan(self, user_id: str) -> NutritionPlan | None:
        """Return the user's nutrition targets."""
        response = (
            self.client.table("nutrition_plans")
            .select("goal_calories, goal_protein_g, goal_carbs_g, goal_fats_g")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return NutritionPlan(
            goal_calories=_optional_float(row.get("goal_calories")),
            goal_protein_g=_optional_float(row.get("goal_protein_g")),
            goal_carbs_g=_optional_float(row.get("goal_carbs_g")),
            goal_fats_g=_optional_float(row.get("goal_fats_g")),
        )

    def get_questionnaire(self, user_id: str) -> Questionnaire | None:
        """Return the user's dietary questionnaire."""
        response = (
            self.client.table("user_questionnaires")
            .select("allergies, dietary_style, kosher")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return Questionnaire(
            allergies=_string_list(row.get("allergies")),
            dietary_style=row.get("dietary_style"),
            kosher=bool(row.get("kosher")),
        )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


def _string_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []

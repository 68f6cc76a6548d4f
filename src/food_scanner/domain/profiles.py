"""User profile models read from persistence."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class NutritionPlan:
    """Daily nutrition targets for a user."""

    goal_calories: float | None = None
    goal_protein_g: float | None = None
    goal_carbs_g: float | None = None
    goal_fats_g: float | None = None


@dataclass(frozen=True)
class Questionnaire:
    """Dietary constraints declared by a user."""

    allergies: list[str] = field(default_factory=list)
    dietary_style: str | None = None
    kosher: bool = False


@dataclass(frozen=True)
class UserProfile:
    """Nutrition plan and questionnaire, either of which may be missing."""

    plan: NutritionPlan | None = None
    questionnaire: Questionnaire | None = None

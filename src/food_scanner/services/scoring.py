"""Rule-based compatibility scoring of a product against a user profile."""

from dataclasses import dataclass

from food_scanner.domain.analysis import DailyContribution, UserAnalysis
from food_scanner.domain.products import NutritionFacts, ProductData
from food_scanner.domain.profiles import NutritionPlan, Questionnaire, UserProfile

BASELINE_SCORE = 70
MIN_SCORE = 0
MAX_SCORE = 100

ALLERGEN_PENALTY = 30
DIET_PENALTY = 20
KOSHER_PENALTY = 15
SUGAR_PENALTY = 10
SODIUM_PENALTY = 10
PROTEIN_BONUS = 10
FIBER_BONUS = 5

HIGH_SUGAR_G = 15.0
HIGH_SODIUM_MG = 500.0
HIGH_PROTEIN_G = 10.0
HIGH_FIBER_G = 5.0

EXCELLENT_FIT = "excellent fit"
MINOR_CAVEATS = "fit with minor caveats"
SEVERAL_CONCERNS = "several nutritional concerns"
NOT_RECOMMENDED = "not recommended for your goals"
ANALYSIS_FAILED = "could not analyze this product"

FALLBACK_SCORE = 50

_ASSESSMENT_THRESHOLDS = (
    (80, EXCELLENT_FIT),
    (60, MINOR_CAVEATS),
    (40, SEVERAL_CONCERNS),
)


@dataclass
class CompatibilityScorer:
    """Scores products against dietary constraints and nutrition goals."""

    baseline: int = BASELINE_SCORE

    def score(self, product: ProductData, profile: UserProfile | None) -> UserAnalysis:
        """Compute the personalized analysis for one product."""
        profile = profile or UserProfile()
        nutrition = product.nutrition_per_100g
        alerts: list[str] = []
        recommendations: list[str] = []

        # Running total is left unclamped; only the final value is bounded.
        total = self.baseline
        if profile.questionnaire is not None:
            total -= _apply_dietary_rules(product, profile.questionnaire, alerts)
        total += _apply_nutrition_rules(nutrition, alerts, recommendations)

        score = clamp_score(total)
        return UserAnalysis(
            compatibility_score=score,
            daily_contribution=daily_contribution(nutrition, profile.plan),
            alerts=alerts,
            recommendations=recommendations,
            health_assessment=assessment_for(score),
        )


def fallback_analysis() -> UserAnalysis:
    """Neutral analysis used when scoring could not run."""
    return UserAnalysis(
        compatibility_score=FALLBACK_SCORE,
        daily_contribution=DailyContribution(),
        health_assessment=ANALYSIS_FAILED,
    )


def clamp_score(value: int) -> int:
    """Bound a score to the 0-100 range."""
    return max(MIN_SCORE, min(MAX_SCORE, int(value)))


def assessment_for(score: int) -> str:
    """Return the narrative bucket for a clamped score."""
    for threshold, text in _ASSESSMENT_THRESHOLDS:
        if score >= threshold:
            return text
    return NOT_RECOMMENDED


def daily_contribution(
    nutrition: NutritionFacts, plan: NutritionPlan | None
) -> DailyContribution:
    """Percent of each daily target covered by 100 g, 0 without a target."""
    if plan is None:
        return DailyContribution()
    return DailyContribution(
        calories_percent=_percent(nutrition.calories, plan.goal_calories),
        protein_percent=_percent(nutrition.protein, plan.goal_protein_g),
        carbs_percent=_percent(nutrition.carbs, plan.goal_carbs_g),
        fat_percent=_percent(nutrition.fat, plan.goal_fats_g),
    )


def _apply_dietary_rules(
    product: ProductData, questionnaire: Questionnaire, alerts: list[str]
) -> int:
    penalty = 0
    matches = _matching_allergies(questionnaire.allergies, product.allergens)
    if matches:
        alerts.append(f"contains allergens: {', '.join(matches)}")
        penalty += ALLERGEN_PENALTY

    labels = {label.strip().lower() for label in product.labels}
    style = (questionnaire.dietary_style or "").strip().lower()
    if style == "vegan" and "vegan" not in labels:
        alerts.append("not suitable for a vegan diet")
        penalty += DIET_PENALTY
    if style == "vegetarian" and "meat" in labels:
        alerts.append("contains meat, not suitable for vegetarians")
        penalty += DIET_PENALTY
    if questionnaire.kosher and "kosher" not in labels:
        alerts.append("not kosher")
        penalty += KOSHER_PENALTY
    return penalty


def _apply_nutrition_rules(
    nutrition: NutritionFacts, alerts: list[str], recommendations: list[str]
) -> int:
    delta = 0
    if nutrition.sugar is not None and nutrition.sugar > HIGH_SUGAR_G:
        alerts.append("high in sugar")
        delta -= SUGAR_PENALTY
    if nutrition.sodium is not None and nutrition.sodium > HIGH_SODIUM_MG:
        alerts.append("high in sodium")
        delta -= SODIUM_PENALTY
    if nutrition.protein > HIGH_PROTEIN_G:
        recommendations.append("high in protein, good for muscle building")
        delta += PROTEIN_BONUS
    if nutrition.fiber is not None and nutrition.fiber > HIGH_FIBER_G:
        recommendations.append("high in fiber, supports gut health")
        delta += FIBER_BONUS
    return delta


def _matching_allergies(allergies: list[str], allergens: list[str]) -> list[str]:
    product_allergens = [allergen.lower() for allergen in allergens]
    matches = []
    for allergy in allergies:
        needle = allergy.strip().lower()
        if needle and any(needle in allergen for allergen in product_allergens):
            matches.append(allergy.strip())
    return matches


def _percent(value: float, goal: float | None) -> float:
    if not goal or goal <= 0:
        return 0.0
    return value / goal * 100

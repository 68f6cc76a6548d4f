"""Tests for compatibility scoring."""

import pytest

from food_scanner.domain.products import NutritionFacts
from food_scanner.domain.profiles import NutritionPlan, Questionnaire, UserProfile
from food_scanner.services.scoring import (
    ANALYSIS_FAILED,
    EXCELLENT_FIT,
    MINOR_CAVEATS,
    NOT_RECOMMENDED,
    SEVERAL_CONCERNS,
    CompatibilityScorer,
    assessment_for,
    fallback_analysis,
)
from tests.conftest import make_product


def _plain_product(**nutrition: float):
    values = {"calories": 100, "protein": 5, "carbs": 10, "fat": 2}
    values.update(nutrition)
    return make_product(
        nutrition_per_100g=NutritionFacts(**values), allergens=[], labels=[]
    )


def test_high_sugar_without_profile() -> None:
    analysis = CompatibilityScorer().score(_plain_product(sugar=20), None)

    assert analysis.compatibility_score == 60
    assert analysis.health_assessment == MINOR_CAVEATS
    assert analysis.alerts == ["high in sugar"]
    assert analysis.recommendations == []


def test_allergen_and_vegan_penalties() -> None:
    product = make_product(
        nutrition_per_100g=NutritionFacts(calories=500, protein=5, carbs=50, fat=30),
        allergens=["Peanuts", "soy"],
        labels=[],
    )
    profile = UserProfile(
        questionnaire=Questionnaire(allergies=["peanut"], dietary_style="vegan")
    )

    analysis = CompatibilityScorer().score(product, profile)

    assert analysis.compatibility_score == 20
    assert analysis.health_assessment == NOT_RECOMMENDED
    assert analysis.alerts == [
        "contains allergens: peanut",
        "not suitable for a vegan diet",
    ]


def test_score_is_clamped_once_at_the_end() -> None:
    product = make_product(
        nutrition_per_100g=NutritionFacts(
            calories=500, protein=20, carbs=50, fat=30, sugar=40, sodium=900
        ),
        allergens=["milk"],
        labels=["meat"],
    )
    profile = UserProfile(
        questionnaire=Questionnaire(
            allergies=["milk"], dietary_style="vegetarian", kosher=True
        )
    )

    analysis = CompatibilityScorer().score(product, profile)

    # 70 - 30 - 20 - 15 - 10 - 10 + 10 = -5
    assert analysis.compatibility_score == 0
    assert len(analysis.alerts) == 5
    assert analysis.recommendations == ["high in protein, good for muscle building"]


def test_bonuses_cap_at_one_hundred() -> None:
    scorer = CompatibilityScorer(baseline=95)

    analysis = scorer.score(_plain_product(protein=25, fiber=8), None)

    assert analysis.compatibility_score == 100
    assert analysis.health_assessment == EXCELLENT_FIT
    assert analysis.recommendations == [
        "high in protein, good for muscle building",
        "high in fiber, supports gut health",
    ]


def test_kosher_and_vegan_labels_avoid_penalties() -> None:
    product = make_product(
        nutrition_per_100g=NutritionFacts(calories=100, protein=5, carbs=10, fat=2),
        allergens=[],
        labels=["Vegan", "kosher"],
    )
    profile = UserProfile(
        questionnaire=Questionnaire(dietary_style="Vegan", kosher=True)
    )

    analysis = CompatibilityScorer().score(product, profile)

    assert analysis.compatibility_score == 70
    assert analysis.alerts == []


def test_unknown_nutrients_never_trigger_rules() -> None:
    analysis = CompatibilityScorer().score(_plain_product(), UserProfile())

    assert analysis.compatibility_score == 70
    assert analysis.alerts == []


def test_daily_contribution_uses_plan_targets() -> None:
    product = _plain_product(calories=250, protein=15)
    profile = UserProfile(
        plan=NutritionPlan(goal_calories=2000, goal_protein_g=120, goal_fats_g=0)
    )

    contribution = CompatibilityScorer().score(product, profile).daily_contribution

    assert contribution.calories_percent == 12.5
    assert contribution.protein_percent == 12.5
    assert contribution.carbs_percent == 0.0
    assert contribution.fat_percent == 0.0


def test_daily_contribution_is_zero_without_plan() -> None:
    contribution = CompatibilityScorer().score(_plain_product(), None).daily_contribution

    assert contribution.calories_percent == 0.0
    assert contribution.protein_percent == 0.0


def test_assessment_buckets() -> None:
    assert assessment_for(80) == EXCELLENT_FIT
    assert assessment_for(79) == MINOR_CAVEATS
    assert assessment_for(60) == MINOR_CAVEATS
    assert assessment_for(59) == SEVERAL_CONCERNS
    assert assessment_for(40) == SEVERAL_CONCERNS
    assert assessment_for(39) == NOT_RECOMMENDED


def test_daily_contribution_is_not_rounded() -> None:
    product = _plain_product(calories=100)
    profile = UserProfile(plan=NutritionPlan(goal_calories=3000))

    contribution = CompatibilityScorer().score(product, profile).daily_contribution

    assert contribution.calories_percent == pytest.approx(10 / 3)


def test_fallback_analysis_is_neutral() -> None:
    analysis = fallback_analysis()

    assert analysis.compatibility_score == 50
    assert analysis.health_assessment == ANALYSIS_FAILED
    assert analysis.alerts == []
    assert analysis.recommendations == []

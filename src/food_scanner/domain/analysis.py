"""Personalized product analysis models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DailyContribution:
    """Share of daily targets covered by 100 g of a product, in percent."""

    calories_percent: float = 0.0
    protein_percent: float = 0.0
    carbs_percent: float = 0.0
    fat_percent: float = 0.0


@dataclass(frozen=True)
class UserAnalysis:
    """Compatibility of a product with one user's profile."""

    compatibility_score: int
    daily_contribution: DailyContribution
    alerts: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    health_assessment: str = ""

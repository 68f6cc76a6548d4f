"""Loading of the dietary profile used for personalized analysis."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar

from food_scanner.domain.profiles import NutritionPlan, Questionnaire, UserProfile

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProfileRepository(Protocol):
    """Read-only persistence interface for user profile data."""

    def get_nutrition_plan(self, user_id: str) -> NutritionPlan | None:
        """Return the user's nutrition targets, if any."""

    def get_questionnaire(self, user_id: str) -> Questionnaire | None:
        """Return the user's dietary questionnaire, if any."""


@dataclass
class ProfileService:
    """Loads plan and questionnaire concurrently, defaulting each on error."""

    repository: ProfileRepository

    async def load(self, user_id: str) -> UserProfile:
        """Return the user's profile; missing or failing parts are None."""
        plan, questionnaire = await asyncio.gather(
            asyncio.to_thread(self.repository.get_nutrition_plan, user_id),
            asyncio.to_thread(self.repository.get_questionnaire, user_id),
            return_exceptions=True,
        )
        return UserProfile(
            plan=_value_or_none(plan, "nutrition plan", user_id),
            questionnaire=_value_or_none(questionnaire, "questionnaire", user_id),
        )


def _value_or_none(result: T | BaseException, part: str, user_id: str) -> T | None:
    if isinstance(result, BaseException):
        _logger.warning("Failed to load %s for user %s: %s", part, user_id, result)
        return None
    return result

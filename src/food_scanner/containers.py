"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_scanner.adapters.openai_vision_client import OpenAIVisionClient
from food_scanner.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_scanner.adapters.supabase_meal_log_repository import (
    SupabaseMealLogRepository,
)
from food_scanner.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from food_scanner.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from food_scanner.config import Settings
from food_scanner.services.history import HistoryAggregator
from food_scanner.services.meals import MealLogService
from food_scanner.services.pricing import PriceEstimator
from food_scanner.services.products import ProductResolver, ProductSearchService
from food_scanner.services.profiles import ProfileService
from food_scanner.services.scanner import FoodScannerService
from food_scanner.services.scoring import CompatibilityScorer
from food_scanner.services.vision import VisionExtractor


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    scanner_service: FoodScannerService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    product_repository = SupabaseProductRepository(supabase_client)
    meal_log_repository = SupabaseMealLogRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)

    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        product_timeout=resolved_settings.barcode_timeout_seconds,
        search_timeout=resolved_settings.search_timeout_seconds,
    )
    openai_client = OpenAIVisionClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.openai_timeout_seconds,
    )

    price_estimator = PriceEstimator()
    scanner_service = FoodScannerService(
        resolver=ProductResolver(
            repository=product_repository,
            off_client=off_client,
            price_estimator=price_estimator,
        ),
        search_service=ProductSearchService(
            off_client=off_client,
            price_estimator=price_estimator,
            page_size=resolved_settings.search_page_size,
            retry_delay_seconds=resolved_settings.search_retry_delay_seconds,
        ),
        vision_extractor=VisionExtractor(
            client=openai_client,
            model=resolved_settings.openai_model,
            max_completion_tokens=resolved_settings.openai_max_completion_tokens,
        ),
        product_repository=product_repository,
        price_estimator=price_estimator,
        scorer=CompatibilityScorer(),
        profile_service=ProfileService(profile_repository),
        history_aggregator=HistoryAggregator(
            product_repository=product_repository,
            meal_repository=meal_log_repository,
        ),
        meal_log_service=MealLogService(
            repository=meal_log_repository,
            price_estimator=price_estimator,
        ),
    )

    async def close_resources() -> None:
        await off_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        scanner_service=scanner_service,
        close_resources=close_resources,
    )

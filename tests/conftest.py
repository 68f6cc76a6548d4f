"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from food_scanner.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_scanner.config import Settings
from food_scanner.containers import AppContainer
from food_scanner.domain.history import StoredProduct
from food_scanner.domain.meals import MealLogDraft, MealLogRecord
from food_scanner.domain.products import NutritionFacts, ProductData
from food_scanner.domain.profiles import NutritionPlan, Questionnaire
from food_scanner.services.history import HistoryAggregator
from food_scanner.services.meals import (
    SCANNED_MEAL_MARKER,
    MealLogRepository,
    MealLogService,
)
from food_scanner.services.pricing import PriceEstimator
from food_scanner.services.products import (
    ProductRepository,
    ProductResolver,
    ProductSearchService,
)
from food_scanner.services.profiles import ProfileRepository, ProfileService
from food_scanner.services.scanner import FoodScannerService
from food_scanner.services.scoring import CompatibilityScorer
from food_scanner.services.vision import VisionClient, VisionExtractor

NUTELLA_BARCODE = "3017620422003"


def make_product(**overrides: object) -> ProductData:
    """Build a product with sensible defaults for tests."""
    values: dict[str, object] = {
        "barcode": NUTELLA_BARCODE,
        "name": "Nutella",
        "brand": "Ferrero",
        "category": "Spreads",
        "nutrition_per_100g": NutritionFacts(
            calories=539, protein=6.3, carbs=57.5, fat=30.9, sugar=56.3, sodium=43
        ),
        "allergens": ["milk", "nuts"],
        "labels": [],
    }
    values.update(overrides)
    return ProductData(**values)


def off_product_payload(barcode: str = NUTELLA_BARCODE) -> dict[str, object]:
    """Open Food Facts product response for a known barcode."""
    return {
        "status": 1,
        "code": barcode,
        "product": {
            "product_name": "Nutella",
            "brands": "Ferrero",
            "categories": "Spreads, Sweet spreads, Hazelnut spreads",
            "ingredients_text": "Sugar, palm oil, hazelnuts 13%, skimmed milk powder",
            "allergens_tags": ["en:milk", "en:nuts"],
            "labels_tags": ["en:gluten-free"],
            "image_url": "https://images.example/nutella.jpg",
            "nutriscore_score": 26,
            "serving_size": "15 g",
            "nutriments": {
                "energy-kcal_100g": 539,
                "proteins_100g": 6.3,
                "carbohydrates_100g": 57.5,
                "fat_100g": 30.9,
                "sugars_100g": 56.3,
                "sodium_100g": 0.043,
            },
        },
    }


VISION_PAYLOAD: dict[str, object] = {
    "name": "Greek Yogurt",
    "brand": "Tnuva",
    "category": "dairy",
    "nutrition_per_100g": {
        "calories": 97,
        "protein": 9,
        "carbs": 3.6,
        "fat": 5,
        "sugar": 3.6,
        "sodium": 36,
    },
    "ingredients": ["milk", "cultures"],
    "allergens": ["milk"],
    "labels": ["kosher"],
    "health_score": 78,
    "barcode": None,
}


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """Fake Open Food Facts client with queued failures."""

    products: dict[str, dict[str, object]] = field(default_factory=dict)
    search_payload: dict[str, object] = field(default_factory=lambda: {"products": []})
    product_errors: list[Exception] = field(default_factory=list)
    search_errors: list[Exception] = field(default_factory=list)
    product_calls: list[str] = field(default_factory=list)
    search_calls: list[tuple[str, int, int]] = field(default_factory=list)

    async def get_product(self, barcode: str) -> dict[str, object]:
        self.product_calls.append(barcode)
        if self.product_errors:
            raise self.product_errors.pop(0)
        return self.products.get(barcode, {"status": 0, "code": barcode})

    async def search_products(
        self, query: str, page: int = 1, page_size: int = 20
    ) -> dict[str, object]:
        self.search_calls.append((query, page, page_size))
        if self.search_errors:
            raise self.search_errors.pop(0)
        return self.search_payload


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning fixed text."""

    content: str = field(default_factory=lambda: json.dumps(VISION_PAYLOAD))
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
        max_completion_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "image_data_url": image_data_url,
                "max_completion_tokens": max_completion_tokens,
            }
        )
        return self.content


@dataclass
class InMemoryProductRepository(ProductRepository):
    """In-memory product repository for tests."""

    products: dict[str, ProductData] = field(default_factory=dict)
    owners: dict[str, str | None] = field(default_factory=dict)
    created: dict[str, datetime] = field(default_factory=dict)
    upserts: list[ProductData] = field(default_factory=list)
    touched: list[str] = field(default_factory=list)
    fail_listing: bool = False
    fail_lookups: bool = False
    fail_writes: bool = False

    def find_by_barcode(self, barcode: str) -> ProductData | None:
        if self.fail_lookups:
            raise RuntimeError("products unavailable")
        return self.products.get(barcode)

    def touch(self, barcode: str, accessed_at: datetime) -> None:
        self.touched.append(barcode)

    def upsert(self, product: ProductData, user_id: str | None) -> None:
        if self.fail_writes:
            raise RuntimeError("products unavailable")
        key = product.storage_key
        assert key is not None
        self.upserts.append(product)
        self.products[key] = product
        if user_id is not None:
            self.owners[key] = user_id
        self.created.setdefault(key, datetime.now(tz=UTC))

    def add(
        self, product: ProductData, user_id: str, created_at: datetime
    ) -> None:
        key = product.storage_key
        assert key is not None
        self.products[key] = product
        self.owners[key] = user_id
        self.created[key] = created_at

    def list_by_user(self, user_id: str, limit: int) -> list[StoredProduct]:
        if self.fail_listing:
            raise RuntimeError("products unavailable")
        stored = [
            StoredProduct(
                product=product,
                user_id=user_id,
                estimated_cost=product.estimated_price or 0.0,
                created_at=self.created[key],
            )
            for key, product in self.products.items()
            if self.owners.get(key) == user_id
        ]
        stored.sort(key=lambda item: item.created_at, reverse=True)
        return stored[:limit]

    def count_by_user(self, user_id: str) -> int:
        return sum(1 for owner in self.owners.values() if owner == user_id)


@dataclass
class InMemoryMealLogRepository(MealLogRepository):
    """In-memory meal log repository for tests."""

    meals: list[MealLogRecord] = field(default_factory=list)
    fail_listing: bool = False

    def create_meal(self, user_id: str, meal: MealLogDraft) -> MealLogRecord:
        record = MealLogRecord(
            id=f"meal-{len(self.meals) + 1}",
            user_id=user_id,
            created_at=datetime.now(tz=UTC),
            meal=meal,
        )
        self.meals.append(record)
        return record

    def list_scanned_meals(self, user_id: str, limit: int) -> list[MealLogRecord]:
        if self.fail_listing:
            raise RuntimeError("meals unavailable")
        matches = [
            record
            for record in self.meals
            if record.user_id == user_id
            and SCANNED_MEAL_MARKER in record.meal.meal_name
        ]
        matches.sort(key=lambda record: record.created_at, reverse=True)
        return matches[:limit]


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    plans: dict[str, NutritionPlan] = field(default_factory=dict)
    questionnaires: dict[str, Questionnaire] = field(default_factory=dict)
    fail_plan: bool = False
    fail_questionnaire: bool = False

    def get_nutrition_plan(self, user_id: str) -> NutritionPlan | None:
        if self.fail_plan:
            raise RuntimeError("plans unavailable")
        return self.plans.get(user_id)

    def get_questionnaire(self, user_id: str) -> Questionnaire | None:
        if self.fail_questionnaire:
            raise RuntimeError("questionnaires unavailable")
        return self.questionnaires.get(user_id)


def meal_record(
    name: str, created_at: datetime, user_id: str = "user-1", grams: float = 200.0
) -> MealLogRecord:
    """Build a stored meal record for history tests."""
    return MealLogRecord(
        id=f"meal-{name}",
        user_id=user_id,
        created_at=created_at,
        meal=MealLogDraft(
            meal_name=name,
            meal_period="lunch",
            serving_size_g=grams,
            calories=300,
            protein_g=20,
            carbs_g=30,
            fat_g=10,
            fiber_g=4,
            sugar_g=None,
            sodium_mg=None,
            saturated_fat_g=None,
            cholesterol_mg=None,
            category="Meals",
        ),
    )


def minutes_ago(minutes: int) -> datetime:
    return datetime.now(tz=UTC) - timedelta(minutes=minutes)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def product_repository() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def meal_repository() -> InMemoryMealLogRepository:
    return InMemoryMealLogRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def off_client() -> FakeOpenFoodFactsClient:
    return FakeOpenFoodFactsClient(products={NUTELLA_BARCODE: off_product_payload()})


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def price_estimator() -> PriceEstimator:
    return PriceEstimator()


@pytest.fixture
def scanner_service(
    settings: Settings,
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
    profile_repository: InMemoryProfileRepository,
    off_client: FakeOpenFoodFactsClient,
    vision_client: FakeVisionClient,
    price_estimator: PriceEstimator,
) -> FoodScannerService:
    return FoodScannerService(
        resolver=ProductResolver(
            repository=product_repository,
            off_client=off_client,
            price_estimator=price_estimator,
        ),
        search_service=ProductSearchService(
            off_client=off_client,
            price_estimator=price_estimator,
            retry_delay_seconds=0.0,
        ),
        vision_extractor=VisionExtractor(
            client=vision_client, model=settings.openai_model
        ),
        product_repository=product_repository,
        price_estimator=price_estimator,
        scorer=CompatibilityScorer(),
        profile_service=ProfileService(profile_repository),
        history_aggregator=HistoryAggregator(
            product_repository=product_repository,
            meal_repository=meal_repository,
        ),
        meal_log_service=MealLogService(
            repository=meal_repository, price_estimator=price_estimator
        ),
    )


@pytest.fixture
def container(
    settings: Settings, scanner_service: FoodScannerService
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        scanner_service=scanner_service,
        close_resources=close_resources,
    )

"""Scan orchestration: resolve or extract, price, persist and analyze."""

import logging
from dataclasses import dataclass

from food_scanner.domain.analysis import UserAnalysis
from food_scanner.domain.history import HistoryEntry
from food_scanner.domain.meals import MealLogRecord
from food_scanner.domain.products import ProductData, make_synthetic_id
from food_scanner.services.history import HistoryAggregator
from food_scanner.services.meals import MealLogService
from food_scanner.services.pricing import PriceEstimator
from food_scanner.services.products import (
    ProductRepository,
    ProductResolver,
    ProductSearchService,
    store_product,
)
from food_scanner.services.profiles import ProfileService
from food_scanner.services.scoring import CompatibilityScorer, fallback_analysis
from food_scanner.services.vision import VisionExtractor

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    """A resolved product together with its analysis for the scanning user."""

    product: ProductData
    analysis: UserAnalysis


@dataclass
class FoodScannerService:
    """Application service behind the food scanner endpoints."""

    resolver: ProductResolver
    search_service: ProductSearchService
    vision_extractor: VisionExtractor
    product_repository: ProductRepository
    price_estimator: PriceEstimator
    scorer: CompatibilityScorer
    profile_service: ProfileService
    history_aggregator: HistoryAggregator
    meal_log_service: MealLogService

    async def scan_barcode(self, barcode: str, user_id: str) -> ScanResult:
        """Resolve a barcode and analyze it for the user."""
        product = await self.resolver.resolve(barcode, user_id)
        product = self.price_estimator.annotate(product)
        analysis = await self.analyze(product, user_id)
        return ScanResult(product=product, analysis=analysis)

    async def scan_image(self, image_bytes: bytes, user_id: str) -> ScanResult:
        """Extract a product from a label photo, store it and analyze it."""
        product = await self.vision_extractor.extract_from_image(image_bytes)
        product = self.price_estimator.annotate(product)
        store_product(self.product_repository, product, user_id)
        analysis = await self.analyze(product, user_id)
        return ScanResult(product=product, analysis=analysis)

    async def search_by_name(self, query: str, page: int = 1) -> list[ProductData]:
        """Search products by name."""
        return await self.search_service.search(query, page)

    def save_search_result(self, product: ProductData, user_id: str) -> ProductData:
        """Store a product picked from search results in the user's history."""
        if product.storage_key is None:
            product = product.model_copy(
                update={"synthetic_id": make_synthetic_id("search")}
            )
        if product.estimated_price is None:
            product = self.price_estimator.annotate(product)
        store_product(self.product_repository, product, user_id)
        _logger.info("Saved search result: user=%s key=%s", user_id, product.storage_key)
        return product

    async def get_history(self, user_id: str) -> list[HistoryEntry]:
        """Return the user's merged scan history."""
        return await self.history_aggregator.get_history(user_id)

    def count_scanned(self, user_id: str) -> int:
        """Return how many products the user has stored."""
        return self.product_repository.count_by_user(user_id)

    def add_to_log(
        self,
        user_id: str,
        product: ProductData,
        quantity_grams: float,
        meal_period: str = "snack",
    ) -> MealLogRecord:
        """Log a quantity of a product as a meal."""
        return self.meal_log_service.add_to_log(
            user_id, product, quantity_grams, meal_period
        )

    async def analyze(self, product: ProductData, user_id: str) -> UserAnalysis:
        """Score a product against the user's stored profile."""
        try:
            profile = await self.profile_service.load(user_id)
            return self.scorer.score(product, profile)
        except Exception:
            _logger.exception("Analysis failed: user=%s", user_id)
            return fallback_analysis()

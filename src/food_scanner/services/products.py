"""Barcode resolution and free-text product search."""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import httpx

from food_scanner.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_scanner.domain.history import StoredProduct
from food_scanner.domain.products import NutritionFacts, ProductData
from food_scanner.errors import NetworkTimeoutError, NotFoundError, ValidationError
from food_scanner.services.pricing import PriceEstimator

_logger = logging.getLogger(__name__)

_BARCODE_PATTERN = re.compile(r"^\d{8,14}$")
_KJ_PER_KCAL = 4.184
_NUTRISCORE_BEST = -15
_NUTRISCORE_WORST = 40

# canonical field -> (Open Food Facts keys, multiplier to canonical unit)
_OPTIONAL_NUTRIENTS: dict[str, tuple[tuple[str, ...], float]] = {
    "fiber": (("fiber_100g",), 1.0),
    "sugar": (("sugars_100g",), 1.0),
    "sodium": (("sodium_100g",), 1000.0),
    "saturated_fat": (("saturated-fat_100g", "saturated_fat_100g"), 1.0),
    "trans_fat": (("trans-fat_100g", "trans_fat_100g"), 1.0),
    "cholesterol": (("cholesterol_100g",), 1000.0),
    "potassium": (("potassium_100g",), 1000.0),
    "calcium": (("calcium_100g",), 1000.0),
    "iron": (("iron_100g",), 1000.0),
    "vitamin_c": (("vitamin-c_100g", "vitamin_c_100g"), 1000.0),
    "vitamin_d": (("vitamin-d_100g", "vitamin_d_100g"), 1_000_000.0),
}


class ProductRepository(Protocol):
    """Persistence interface for scanned products."""

    def find_by_barcode(self, barcode: str) -> ProductData | None:
        """Return a stored product by barcode or synthetic id."""

    def touch(self, barcode: str, accessed_at: datetime) -> None:
        """Update the last accessed timestamp for a product."""

    def upsert(self, product: ProductData, user_id: str | None) -> None:
        """Insert or update a product keyed by its storage key."""

    def list_by_user(self, user_id: str, limit: int) -> list[StoredProduct]:
        """Return the most recently created products for a user."""

    def count_by_user(self, user_id: str) -> int:
        """Return the number of products stored for a user."""


@dataclass
class ProductResolver:
    """Resolves barcodes through the local store, then Open Food Facts."""

    repository: ProductRepository
    off_client: OpenFoodFactsClient
    price_estimator: PriceEstimator

    async def resolve(self, barcode: str, user_id: str | None = None) -> ProductData:
        """Return the product for a barcode or raise NotFoundError."""
        code = normalize_barcode(barcode)
        cached = self._find_cached(code)
        if cached is not None:
            _logger.info("Barcode cache hit: %s", code)
            return cached

        product = await self._fetch_external(code)
        if product is None:
            raise NotFoundError(f"Product not found for barcode {code}")
        product = self.price_estimator.annotate(product)
        store_product(self.repository, product, user_id)
        _logger.info("Barcode resolved from Open Food Facts: %s", code)
        return product

    def _find_cached(self, code: str) -> ProductData | None:
        # A store failure counts as a miss so the registry is still consulted.
        try:
            cached = self.repository.find_by_barcode(code)
            if cached is not None:
                self.repository.touch(code, datetime.now(tz=UTC))
        except Exception:
            _logger.exception("Product store lookup failed: %s", code)
            return None
        return cached

    async def _fetch_external(self, barcode: str) -> ProductData | None:
        try:
            payload = await self.off_client.get_product(barcode)
        except NetworkTimeoutError:
            _logger.warning("Open Food Facts lookup timed out: %s", barcode)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            _logger.warning("Open Food Facts lookup failed: %s: %s", barcode, exc)
            return None

        if not isinstance(payload, dict):
            _logger.warning("Unexpected Open Food Facts payload for %s", barcode)
            return None
        raw = payload.get("product")
        if payload.get("status") != 1 or not isinstance(raw, dict):
            return None
        try:
            return product_from_off(raw, barcode=barcode)
        except ValueError as exc:
            _logger.warning("Unusable Open Food Facts product %s: %s", barcode, exc)
            return None


@dataclass
class ProductSearchService:
    """Free-text product search with bounded retries on timeouts."""

    off_client: OpenFoodFactsClient
    price_estimator: PriceEstimator
    page_size: int = 20
    max_retries: int = 2
    retry_delay_seconds: float = 1.0

    async def search(self, query: str, page: int = 1) -> list[ProductData]:
        """Search products by name; returns an empty list on failure."""
        cleaned = query.strip()
        if not cleaned:
            return []
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                payload = await self.off_client.search_products(
                    cleaned, page=max(page, 1), page_size=self.page_size
                )
            except NetworkTimeoutError:
                _logger.warning(
                    "Product search timed out (attempt %s/%s): %s",
                    attempt,
                    attempts,
                    cleaned,
                )
                if attempt < attempts:
                    await asyncio.sleep(attempt * self.retry_delay_seconds)
                continue
            except (httpx.HTTPError, ValueError) as exc:
                _logger.error("Product search failed: query=%s error=%s", cleaned, exc)
                return []
            products = self._map_results(payload)
            _logger.info("Product search: query=%s results=%s", cleaned, len(products))
            return products
        return []

    def _map_results(self, payload: object) -> list[ProductData]:
        products: list[ProductData] = []
        if not isinstance(payload, dict):
            _logger.warning("Unexpected search payload: %s", type(payload).__name__)
            return products
        raw_products = payload.get("products") or []
        for raw in raw_products if isinstance(raw_products, list) else []:
            if not isinstance(raw, dict) or not raw.get("product_name"):
                continue
            try:
                product = product_from_off(raw)
            except ValueError as exc:
                _logger.debug("Skipping search result %s: %s", raw.get("code"), exc)
                continue
            products.append(self.price_estimator.annotate(product))
        return products


def store_product(
    repository: ProductRepository, product: ProductData, user_id: str | None
) -> bool:
    """Persist a product, logging instead of raising when the store fails."""
    try:
        repository.upsert(product, user_id)
    except Exception:
        _logger.exception("Failed to store product %s", product.storage_key)
        return False
    return True


def normalize_barcode(barcode: str) -> str:
    """Strip whitespace and check that a barcode is 8-14 digits."""
    code = re.sub(r"\s+", "", barcode or "")
    if not _BARCODE_PATTERN.match(code):
        raise ValidationError(f"Invalid barcode: {barcode!r}")
    return code


def product_from_off(raw: dict[str, object], barcode: str | None = None) -> ProductData:
    """Map an Open Food Facts product payload to ProductData."""
    nutriments = raw.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}
    ingredients_text = raw.get("ingredients_text_en") or raw.get("ingredients_text")
    return ProductData(
        barcode=barcode or _optional_str(raw.get("code")),
        name=_optional_str(raw.get("product_name")) or "Unknown Product",
        brand=_optional_str(raw.get("brands")),
        category=first_category(raw.get("categories")),
        nutrition_per_100g=_nutrition_from_off(nutriments),
        ingredients=split_ingredients(ingredients_text),
        allergens=_strip_tags(raw.get("allergens_tags")),
        labels=_strip_tags(raw.get("labels_tags")),
        health_score=health_from_nutriscore(raw.get("nutriscore_score")),
        image_url=_optional_str(raw.get("image_url") or raw.get("image_front_url")),
        serving_size=_optional_str(raw.get("serving_size")),
        servings_per_container=_to_float(raw.get("servings_per_container")),
    )


def first_category(categories: object) -> str:
    """Return the first entry of a comma separated taxonomy string."""
    if isinstance(categories, str):
        first = categories.split(",")[0].strip()
        if first:
            return first
    return "Unknown"


def split_ingredients(text: object) -> list[str]:
    """Split a comma separated ingredient list."""
    if not isinstance(text, str):
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def health_from_nutriscore(score: object) -> int | None:
    """Map a Nutri-Score points value onto a 0-100 health score."""
    value = _to_float(score)
    if value is None:
        return None
    span = _NUTRISCORE_WORST - _NUTRISCORE_BEST
    health = round((_NUTRISCORE_WORST - value) * 100 / span)
    return max(0, min(100, health))


def _nutrition_from_off(nutriments: dict[str, object]) -> NutritionFacts:
    calories = _first_number(nutriments, "energy-kcal_100g", "energy_kcal_100g")
    if calories is None:
        energy_kj = _first_number(nutriments, "energy_100g", "energy-kj_100g")
        calories = energy_kj / _KJ_PER_KCAL if energy_kj is not None else 0.0
    values: dict[str, float | None] = {
        "calories": _non_negative(calories),
        "protein": _non_negative(_first_number(nutriments, "proteins_100g")),
        "carbs": _non_negative(_first_number(nutriments, "carbohydrates_100g")),
        "fat": _non_negative(_first_number(nutriments, "fat_100g")),
    }
    for field_name, (keys, multiplier) in _OPTIONAL_NUTRIENTS.items():
        value = _first_number(nutriments, *keys)
        values[field_name] = (
            round(max(value, 0.0) * multiplier, 3) if value is not None else None
        )
    return NutritionFacts(**values)


def _first_number(data: dict[str, object], *keys: str) -> float | None:
    for key in keys:
        value = _to_float(data.get(key))
        if value is not None:
            return value
    return None


def _non_negative(value: float | None) -> float:
    if value is None:
        return 0.0
    return max(value, 0.0)


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _strip_tags(tags: object) -> list[str]:
    if not isinstance(tags, list):
        return []
    return [str(tag).split(":", 1)[-1] for tag in tags if str(tag).strip()]

"""Supabase repository for scanned products."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from food_scanner.domain.history import StoredProduct
from food_scanner.domain.products import NutritionFacts, ProductData, is_synthetic_id
from food_scanner.services.products import ProductRepository

_TABLE = "food_products"
_COLUMNS = (
    "barcode, user_id, product_name, brand, category, nutrition_per_100g, "
    "ingredients, allergens, labels, health_score, image_url, serving_size, "
    "servings_per_container, estimated_cost, price_per_100g, price_confidence, "
    "created_at, updated_at"
)


@dataclass
class SupabaseProductRepository(ProductRepository):
    """Supabase implementation for the product store.

    Synthetic ids share the ``barcode`` column so that every product has a
    single upsert key.
    """

    client: Client

    def find_by_barcode(self, barcode: str) -> ProductData | None:
        """Return a stored product by barcode or synthetic id."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def touch(self, barcode: str, accessed_at: datetime) -> None:
        """Update the last accessed timestamp for a product."""
        self.client.table(_TABLE).update(
            {"updated_at": accessed_at.isoformat()}
        ).eq("barcode", barcode).execute()

    def upsert(self, product: ProductData, user_id: str | None) -> None:
        """Insert or update a product keyed by its storage key."""
        key = product.storage_key
        if key is None:
            raise ValueError("Product has neither barcode nor synthetic id")
        row: dict[str, object] = {
            "barcode": key,
            "product_name": product.name,
            "brand": product.brand,
            "category": product.category,
            "nutrition_per_100g": product.nutrition_per_100g.model_dump(),
            "ingredients": list(product.ingredients),
            "allergens": list(product.allergens),
            "labels": list(product.labels),
            "health_score": product.health_score,
            "image_url": product.image_url,
            "serving_size": product.serving_size,
            "servings_per_container": product.servings_per_container,
            "estimated_cost": product.estimated_price or 0.0,
            "price_per_100g": product.price_per_100g,
            "price_confidence": product.price_confidence,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        # Ownership is set by user scans and never cleared.
        if user_id is not None:
            row["user_id"] = user_id
        self.client.table(_TABLE).upsert(row, on_conflict="barcode").execute()

    def list_by_user(self, user_id: str, limit: int) -> list[StoredProduct]:
        """Return the most recently created products for a user."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_stored(row) for row in response.data or []]

    def count_by_user(self, user_id: str) -> int:
        """Return the number of products stored for a user."""
        response = (
            self.client.table(_TABLE)
            .select("barcode", count="exact")
            .eq("user_id", user_id)
            .execute()
        )
        if response.count is not None:
            return int(response.count)
        return len(response.data or [])


def _parse_product(row: dict[str, object]) -> ProductData:
    key = str(row["barcode"])
    synthetic = is_synthetic_id(key)
    price_per_100g = row.get("price_per_100g")
    return ProductData(
        barcode=None if synthetic else key,
        synthetic_id=key if synthetic else None,
        name=str(row.get("product_name") or key),
        brand=row.get("brand"),
        category=row.get("category") or "Unknown",
        nutrition_per_100g=NutritionFacts.model_validate(
            row.get("nutrition_per_100g") or {}
        ),
        ingredients=list(row.get("ingredients") or []),
        allergens=list(row.get("allergens") or []),
        labels=list(row.get("labels") or []),
        health_score=row.get("health_score"),
        image_url=row.get("image_url"),
        serving_size=row.get("serving_size"),
        servings_per_container=row.get("servings_per_container"),
        estimated_price=row.get("estimated_cost"),
        price_per_100g=float(price_per_100g) if price_per_100g is not None else None,
        price_confidence=row.get("price_confidence"),
    )


def _parse_stored(row: dict[str, object]) -> StoredProduct:
    return StoredProduct(
        product=_parse_product(row),
        user_id=row.get("user_id"),
        estimated_cost=float(row.get("estimated_cost") or 0.0),
        created_at=_parse_timestamp(row.get("created_at")) or datetime.now(tz=UTC),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None

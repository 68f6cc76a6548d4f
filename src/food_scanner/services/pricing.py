"""Heuristic price estimation for products.

Prices are reference supermarket prices in Israeli shekels. No market feed is
consulted, so every estimate is reported with ``medium`` confidence.
"""

from dataclasses import dataclass, field

from food_scanner.domain.pricing import PriceEstimate, PriceSource
from food_scanner.domain.products import ProductData

CURRENCY = "ILS"
CURRENCY_SYMBOL = "₪"
MIN_PARTIAL_MATCH_LENGTH = 4

# name -> (price per unit, unit size in grams)
PRODUCT_PRICES: dict[str, tuple[float, float]] = {
    "chicken breast": (45, 1000),
    "chicken thigh": (35, 1000),
    "ground chicken": (40, 1000),
    "turkey breast": (55, 1000),
    "ground beef": (55, 1000),
    "beef steak": (120, 1000),
    "beef": (80, 1000),
    "salmon": (100, 1000),
    "canned tuna": (8, 160),
    "tuna": (90, 1000),
    "tilapia": (50, 1000),
    "eggs": (18, 600),
    "tofu": (20, 350),
    "hummus": (10, 400),
    "chickpeas": (8, 400),
    "lentils": (12, 1000),
    "cottage cheese": (8, 250),
    "cream cheese": (10, 200),
    "greek yogurt": (8, 200),
    "yogurt": (6, 200),
    "milk": (7, 1000),
    "cheddar": (45, 1000),
    "mozzarella": (40, 1000),
    "parmesan": (120, 1000),
    "feta": (50, 1000),
    "butter": (12, 200),
    "labane": (10, 300),
    "basmati rice": (18, 1000),
    "brown rice": (15, 1000),
    "rice": (12, 1000),
    "quinoa": (35, 1000),
    "pasta": (8, 500),
    "spaghetti": (8, 500),
    "couscous": (10, 500),
    "oats": (15, 1000),
    "whole wheat bread": (15, 500),
    "bread": (12, 500),
    "pita": (8, 400),
    "tortilla": (12, 300),
    "flour": (8, 1000),
    "tomatoes": (8, 1000),
    "cucumber": (6, 1000),
    "potato": (6, 1000),
    "avocado": (8, 200),
    "banana": (8, 1000),
    "apple": (10, 1000),
    "dates": (40, 1000),
    "almonds": (80, 1000),
    "walnuts": (100, 1000),
    "cashews": (90, 1000),
    "peanut butter": (25, 350),
    "tahini": (20, 400),
    "olive oil": (40, 1000),
    "canola oil": (12, 1000),
    "mayonnaise": (12, 400),
    "ketchup": (10, 500),
    "honey": (25, 350),
    "coffee": (40, 250),
    "orange juice": (12, 1000),
    "dark chocolate": (15, 100),
    "chocolate": (12, 100),
    "granola bar": (3, 30),
    "crackers": (10, 200),
    "chips": (12, 200),
}

# category -> price per 100 g
CATEGORY_PRICES: dict[str, float] = {
    "protein": 8,
    "meat": 9,
    "poultry": 5,
    "fish": 10,
    "seafood": 12,
    "eggs": 3,
    "dairy": 4,
    "cheese": 5,
    "milk": 1,
    "yogurt": 3,
    "grains": 2,
    "bakery": 3,
    "bread": 3,
    "pasta": 2,
    "rice": 2,
    "cereal": 4,
    "vegetables": 1.5,
    "vegetable": 1.5,
    "fruits": 2,
    "fruit": 2,
    "produce": 1.5,
    "nuts": 8,
    "seeds": 6,
    "oil": 4,
    "fats": 4,
    "condiment": 3,
    "sauce": 2.5,
    "spices": 15,
    "herbs": 10,
    "beverages": 1.5,
    "beverage": 1.5,
    "drink": 1.5,
    "snacks": 5,
    "snack": 5,
    "candy": 8,
    "sweets": 8,
}
DEFAULT_PRICE_PER_100G = 3.0


@dataclass
class PriceEstimator:
    """Deterministic price estimator backed by reference tables."""

    product_prices: dict[str, tuple[float, float]] = field(
        default_factory=lambda: dict(PRODUCT_PRICES)
    )
    category_prices: dict[str, float] = field(
        default_factory=lambda: dict(CATEGORY_PRICES)
    )
    default_price_per_100g: float = DEFAULT_PRICE_PER_100G

    def estimate(
        self, name: str, category: str | None, quantity_grams: float = 100
    ) -> PriceEstimate:
        """Estimate the price of ``quantity_grams`` of a product."""
        grams = max(float(quantity_grams), 0.0)
        per_100g, source = self._price_per_100g(name, category)
        estimated = round(per_100g * grams / 100, 2)
        return PriceEstimate(
            estimated_price=estimated,
            price_per_100g=round(per_100g, 2),
            confidence="medium",
            price_range=price_range(estimated),
            currency=CURRENCY,
            source=source,
        )

    def annotate(self, product: ProductData) -> ProductData:
        """Return a copy of the product with price fields for 100 g."""
        estimate = self.estimate(product.name, product.category, 100)
        return product.model_copy(
            update={
                "estimated_price": estimate.estimated_price,
                "price_per_100g": estimate.price_per_100g,
                "price_confidence": estimate.confidence,
            }
        )

    def _price_per_100g(
        self, name: str, category: str | None
    ) -> tuple[float, PriceSource]:
        product_entry = _match_product(self.product_prices, name)
        if product_entry is not None:
            price, unit_size = product_entry
            return price / unit_size * 100, "product_match"
        category_price = _match_category(self.category_prices, category or "")
        if category_price is not None:
            return category_price, "category_match"
        return self.default_price_per_100g, "fallback"


def price_range(price: float) -> str:
    """Format a ±15% range around a price."""
    low = round(price * 0.85)
    high = round(price * 1.15)
    return f"{CURRENCY_SYMBOL}{low}-{high}"


def _match_product(
    table: dict[str, tuple[float, float]], name: str
) -> tuple[float, float] | None:
    key = name.lower().strip()
    if not key:
        return None
    if key in table:
        return table[key]
    for candidate, entry in table.items():
        if candidate in key or _contained_in(key, candidate):
            return entry
    return None


def _match_category(table: dict[str, float], category: str) -> float | None:
    key = category.lower().strip()
    if not key:
        return None
    if key in table:
        return table[key]
    for candidate, price in table.items():
        if candidate in key or _contained_in(key, candidate):
            return price
    return None


def _contained_in(key: str, candidate: str) -> bool:
    return len(key) >= MIN_PARTIAL_MATCH_LENGTH and key in candidate

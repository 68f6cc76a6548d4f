"""Tests for the scan history feed."""

import asyncio
from datetime import datetime

from food_scanner.services.history import HistoryAggregator
from tests.conftest import (
    InMemoryMealLogRepository,
    InMemoryProductRepository,
    make_product,
    meal_record,
    minutes_ago,
)


def _aggregator(
    products: InMemoryProductRepository, meals: InMemoryMealLogRepository
) -> HistoryAggregator:
    return HistoryAggregator(product_repository=products, meal_repository=meals)


def test_history_merges_sources_newest_first(
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
) -> None:
    product_repository.add(
        make_product(barcode="11111111", name="Old Crackers"), "user-1", minutes_ago(30)
    )
    product_repository.add(
        make_product(barcode="22222222", name="New Hummus"), "user-1", minutes_ago(1)
    )
    product_repository.add(
        make_product(barcode="33333333", name="Other User"), "user-2", minutes_ago(0)
    )
    meal_repository.meals.append(meal_record("Rice Bowl (200g)", minutes_ago(10)))
    meal_repository.meals.append(meal_record("Home Salad", minutes_ago(5)))

    entries = asyncio.run(
        _aggregator(product_repository, meal_repository).get_history("user-1")
    )

    assert [entry.name for entry in entries] == [
        "New Hummus",
        "Rice Bowl (200g)",
        "Old Crackers",
    ]
    assert [entry.type for entry in entries] == ["product", "meal", "product"]
    assert entries[0].id == "22222222"


def test_history_is_capped(
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
) -> None:
    for index in range(60):
        product_repository.add(
            make_product(barcode=f"{10000000 + index}"), "user-1", minutes_ago(index)
        )
        meal_repository.meals.append(
            meal_record(f"Meal {index} (100g)", minutes_ago(index))
        )

    aggregator = HistoryAggregator(
        product_repository=product_repository,
        meal_repository=meal_repository,
        per_source_limit=60,
    )
    entries = asyncio.run(aggregator.get_history("user-1"))

    assert len(entries) == 100
    timestamps = [entry.created_at for entry in entries]
    assert timestamps == sorted(timestamps, reverse=True)


def test_failing_source_degrades_to_empty(
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
) -> None:
    product_repository.add(make_product(), "user-1", minutes_ago(1))
    meal_repository.meals.append(meal_record("Soup (300g)", minutes_ago(2)))
    meal_repository.fail_listing = True

    entries = asyncio.run(
        _aggregator(product_repository, meal_repository).get_history("user-1")
    )

    assert [entry.type for entry in entries] == ["product"]


def test_both_sources_failing_returns_empty(
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
) -> None:
    product_repository.fail_listing = True
    meal_repository.fail_listing = True

    entries = asyncio.run(
        _aggregator(product_repository, meal_repository).get_history("user-1")
    )

    assert entries == []


def test_meal_nutrition_is_converted_back_to_100_grams(
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
) -> None:
    meal_repository.meals.append(
        meal_record("Rice Bowl (200g)", minutes_ago(1), grams=200)
    )

    (entry,) = asyncio.run(
        _aggregator(product_repository, meal_repository).get_history("user-1")
    )

    assert entry.nutrition_per_100g.calories == 150.0
    assert entry.nutrition_per_100g.protein == 10.0
    assert entry.nutrition_per_100g.fiber == 2.0
    assert entry.nutrition_per_100g.sugar is None
    assert entry.meal_period == "lunch"
    assert entry.serving_size_g == 200


def test_naive_and_aware_timestamps_sort_together(
    product_repository: InMemoryProductRepository,
    meal_repository: InMemoryMealLogRepository,
) -> None:
    product_repository.add(make_product(), "user-1", datetime(2024, 1, 1, 12, 0))
    meal_repository.meals.append(meal_record("Toast (50g)", minutes_ago(1)))

    entries = asyncio.run(
        _aggregator(product_repository, meal_repository).get_history("user-1")
    )

    assert [entry.type for entry in entries] == ["meal", "product"]

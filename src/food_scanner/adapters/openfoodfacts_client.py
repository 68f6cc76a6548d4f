"""Open Food Facts API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from food_scanner.errors import NetworkTimeoutError


class OpenFoodFactsClient(Protocol):
    """Interface for Open Food Facts API interactions."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""

    async def search_products(
        self, query: str, page: int = 1, page_size: int = 20
    ) -> dict[str, object]:
        """Search products by free text and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    product_timeout: float = 5.0
    search_timeout: float = 15.0

    @classmethod
    def create(
        cls,
        base_url: str,
        user_agent: str,
        product_timeout: float = 5.0,
        search_timeout: float = 15.0,
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(headers={"User-Agent": user_agent}),
            product_timeout=product_timeout,
            search_timeout=search_timeout,
        )

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode."""
        url = f"{self.base_url}/api/v0/product/{barcode}.json"
        try:
            response = await self.http_client.get(url, timeout=self.product_timeout)
        except httpx.TimeoutException as exc:
            raise NetworkTimeoutError(f"Product lookup timed out: {barcode}") from exc
        response.raise_for_status()
        return response.json()

    async def search_products(
        self, query: str, page: int = 1, page_size: int = 20
    ) -> dict[str, object]:
        """Search products by free text."""
        url = f"{self.base_url}/cgi/search.pl"
        try:
            response = await self.http_client.get(
                url,
                params={
                    "search_terms": query,
                    "search_simple": 1,
                    "action": "process",
                    "json": 1,
                    "page_size": page_size,
                    "page": page,
                },
                timeout=self.search_timeout,
            )
        except httpx.TimeoutException as exc:
            raise NetworkTimeoutError(f"Product search timed out: {query}") from exc
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

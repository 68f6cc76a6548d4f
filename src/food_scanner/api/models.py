"""Pydantic request models for the food scanner endpoints."""

from pydantic import BaseModel, Field

from food_scanner.domain.products import ProductData


class BarcodeScanRequest(BaseModel):
    """Barcode scan payload."""

    barcode: str = Field(min_length=8, max_length=32)


class ImageScanRequest(BaseModel):
    """Label photo payload, base64 encoded with or without a data URL prefix."""

    image: str = Field(min_length=100)


class SaveSearchRequest(BaseModel):
    """Search result chosen by the user."""

    product: ProductData


class AddToMealRequest(BaseModel):
    """Scanned product to log as a meal."""

    product_data: ProductData
    quantity: float = Field(default=100.0, ge=1.0)
    meal_timing: str = "snack"

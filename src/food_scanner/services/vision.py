"""Nutrition label extraction from product photos using LLMs."""

import base64
import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol

import pydantic

from food_scanner.domain.products import ProductData, make_synthetic_id
from food_scanner.domain.vision import VisionProduct
from food_scanner.errors import ExtractionError

_logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

RETAKE_GUIDANCE = "Please retake the photo with the nutrition label clearly visible."

SYSTEM_PROMPT = """You are a nutrition label scanner. Analyze the food product \
image and extract complete nutritional information.

Return a single JSON object with exactly this structure:
{
  "name": "Product name",
  "brand": "Brand name if visible",
  "category": "Food category (dairy, snacks, grains, beverages, etc.)",
  "nutrition_per_100g": {
    "calories": number,
    "protein": number,
    "carbs": number,
    "fat": number,
    "fiber": number,
    "sugar": number,
    "sodium": number,
    "saturated_fat": number,
    "trans_fat": number,
    "cholesterol": number,
    "potassium": number,
    "calcium": number,
    "iron": number,
    "vitamin_c": number,
    "vitamin_d": number
  },
  "ingredients": ["ingredient1", "ingredient2"],
  "allergens": ["allergen1", "allergen2"],
  "labels": ["kosher", "vegan", "gluten-free", "organic", "non-gmo"],
  "health_score": number (0-100),
  "barcode": "digits if visible",
  "serving_size": "serving size if visible",
  "servings_per_container": number
}

All nutrition values are per 100 g. Macros, fiber, sugar and fats in grams; \
sodium, cholesterol, potassium, calcium, iron and vitamin C in milligrams; \
vitamin D in micrograms. Use null for values that are not visible. \
Estimate health_score from nutritional quality: high fiber and protein are \
good, high sugar and sodium are bad."""

USER_PROMPT = "Please analyze this food product label and extract nutritional information."


class VisionClient(Protocol):
    """Interface for LLM vision completion."""

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
        max_completion_tokens: int,
    ) -> str:
        """Return the raw text the model produced for the image."""


@dataclass
class VisionExtractor:
    """Turns a product photo into a validated ProductData record."""

    client: VisionClient
    model: str
    max_completion_tokens: int = 16000

    async def extract_from_image(self, image_bytes: bytes) -> ProductData:
        """Extract a product from an image or raise ExtractionError."""
        if not image_bytes:
            raise ExtractionError(f"No image data received. {RETAKE_GUIDANCE}")
        content = await self.client.complete(
            model=self.model,
            system_prompt=SYSTEM_PROMPT,
            user_prompt=USER_PROMPT,
            image_data_url=_to_data_url(image_bytes),
            max_completion_tokens=self.max_completion_tokens,
        )
        product = parse_vision_output(content)
        if product.barcode is None:
            product = product.model_copy(
                update={"synthetic_id": make_synthetic_id("img")}
            )
        _logger.info(
            "Vision extraction succeeded: name=%s key=%s",
            product.name,
            product.storage_key,
        )
        return product


def parse_vision_output(content: str | None) -> ProductData:
    """Parse free-form model output into a product, fenced or bare JSON."""
    if not content or not content.strip():
        raise ExtractionError(f"The vision model returned no content. {RETAKE_GUIDANCE}")
    try:
        data = json.loads(strip_code_fence(content))
    except json.JSONDecodeError as exc:
        _logger.warning("Vision output is not valid JSON: %s", content[:200])
        raise ExtractionError(
            f"Could not analyze the product label. {RETAKE_GUIDANCE}"
        ) from exc
    if not isinstance(data, dict):
        raise ExtractionError(f"Could not analyze the product label. {RETAKE_GUIDANCE}")
    try:
        return VisionProduct.model_validate(data).to_product()
    except pydantic.ValidationError as exc:
        _logger.warning("Vision output failed validation: %s", exc.errors())
        raise ExtractionError(
            f"Could not extract product information. {RETAKE_GUIDANCE}"
        ) from exc


def strip_code_fence(content: str) -> str:
    """Return the body of the first Markdown code fence, or the text itself."""
    match = _FENCE_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"

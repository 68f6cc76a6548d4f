"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from food_scanner.api.models import (
    AddToMealRequest,
    BarcodeScanRequest,
    ImageScanRequest,
    SaveSearchRequest,
)
from food_scanner.app_logging import configure_logging
from food_scanner.containers import AppContainer
from food_scanner.errors import (
    ExtractionError,
    NetworkTimeoutError,
    NotFoundError,
    ScannerError,
    UpstreamError,
    ValidationError,
)
from food_scanner.services.scanner import FoodScannerService, ScanResult

# Narrowest first; ExtractionError is also a ValidationError.
_ERROR_STATUS: tuple[tuple[type[ScannerError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ExtractionError, 422),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NetworkTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
)


async def require_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller's user id from the ``X-User-Id`` header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id.strip()


def _scanner(request: Request) -> FoodScannerService:
    container: AppContainer = request.app.state.container
    return container.scanner_service


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ScannerError)
    async def scanner_error_handler(
        request: Request, exc: ScannerError
    ) -> JSONResponse:
        status_code = error_status(exc)
        logger.warning(
            "Request failed: path=%s status=%s error=%s",
            request.url.path,
            status_code,
            exc,
        )
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/food-scanner/barcode")
    async def scan_barcode(
        payload: BarcodeScanRequest,
        request: Request,
        user_id: str = Depends(require_user_id),
    ) -> dict[str, object]:
        """Resolve a barcode and analyze it for the caller."""
        result = await _scanner(request).scan_barcode(payload.barcode, user_id)
        return _scan_response(result)

    @app.post("/food-scanner/image")
    async def scan_image(
        payload: ImageScanRequest,
        request: Request,
        user_id: str = Depends(require_user_id),
    ) -> dict[str, object]:
        """Extract a product from a label photo and analyze it."""
        image_bytes = decode_image(payload.image)
        result = await _scanner(request).scan_image(image_bytes, user_id)
        return _scan_response(result)

    @app.get("/food-scanner/search", dependencies=[Depends(require_user_id)])
    async def search(
        request: Request,
        q: str = Query(min_length=2),
        page: int = Query(default=1, ge=1),
    ) -> dict[str, object]:
        """Search products by name."""
        products = await _scanner(request).search_by_name(q, page)
        return {
            "products": [product.model_dump() for product in products],
            "page": page,
        }

    @app.post("/food-scanner/search/save")
    async def save_search_result(
        payload: SaveSearchRequest,
        request: Request,
        user_id: str = Depends(require_user_id),
    ) -> dict[str, object]:
        """Store a search result in the caller's history."""
        product = _scanner(request).save_search_result(payload.product, user_id)
        return {"product": product.model_dump()}

    @app.get("/food-scanner/history")
    async def history(
        request: Request, user_id: str = Depends(require_user_id)
    ) -> dict[str, object]:
        """Return the caller's scan history, newest first."""
        entries = await _scanner(request).get_history(user_id)
        return {"history": [asdict(entry) for entry in entries]}

    @app.get("/food-scanner/history/count")
    async def history_count(
        request: Request, user_id: str = Depends(require_user_id)
    ) -> dict[str, int]:
        """Return how many products the caller has stored."""
        return {"count": _scanner(request).count_scanned(user_id)}

    @app.post("/food-scanner/add-to-meal")
    async def add_to_meal(
        payload: AddToMealRequest,
        request: Request,
        user_id: str = Depends(require_user_id),
    ) -> dict[str, object]:
        """Log a quantity of a scanned product as a meal."""
        record = _scanner(request).add_to_log(
            user_id, payload.product_data, payload.quantity, payload.meal_timing
        )
        return {"meal": asdict(record)}

    return app


def error_status(exc: ScannerError) -> int:
    """Map a scanner error to its HTTP status code."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def decode_image(image: str) -> bytes:
    """Decode a base64 image, accepting an optional data URL prefix."""
    encoded = image.split(",", 1)[1] if image.startswith("data:") else image
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image is not valid base64 data") from exc


def _scan_response(result: ScanResult) -> dict[str, object]:
    return {
        "product": result.product.model_dump(),
        "analysis": asdict(result.analysis),
    }

import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .models import ProductInfo
from .services.product_catalog import ProductCatalog, ProductNotFoundError, UpstreamError, get_catalog
from .sustainability import build_product_info

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="EcoScan", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Unparseable JSON maps to 500; any other body shape has no usable barcode.
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        logger.warning("Unparseable request body on %s", request.url.path)
        return _error(500, "Internal Server Error", "Request body is not valid JSON")
    return _error(400, "Barcode is required")


def _barcode_from(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    barcode = (payload or {}).get("barcode")
    if not barcode or isinstance(barcode, bool) or not isinstance(barcode, (str, int)):
        return None
    return str(barcode).strip() or None


@app.post(
    "/api/product-info",
    response_model=ProductInfo,
    response_model_exclude_none=True,
)
def product_info(
    payload: Optional[Dict[str, Any]] = Body(None),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """
    Payload: { "barcode": "<ean/upc>" }
    Looks the product up on Open Food Facts and returns its SDG 12 breakdown.
    """
    barcode = _barcode_from(payload)
    if barcode is None:
        return _error(400, "Barcode is required")

    try:
        product = catalog.fetch_product(barcode)
        return build_product_info(barcode, product)
    except ProductNotFoundError as e:
        logger.info("Product not found barcode=%s: %s", barcode, e)
        return _error(404, str(e) or "Product not found")
    except UpstreamError as e:
        logger.error("Upstream failure barcode=%s: %s", barcode, e)
        return _error(500, "Internal Server Error", str(e))
    except Exception as e:
        logger.exception("Unexpected failure barcode=%s", barcode)
        return _error(500, "Internal Server Error", str(e) or type(e).__name__)


@app.get("/api/config")
def get_config():
    return {
        "env": settings.ENV,
        "catalog_base_url": settings.OFF_BASE_URL,
        "catalog_timeout_seconds": settings.OFF_TIMEOUT,
    }

"""Storefront API package."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.routes import cart_router, checkout_router, order_router, price_router
from storefront.errors import ConfigurationError, StockContention

logger = structlog.get_logger(__name__)

routers = [price_router, cart_router, checkout_router, order_router]


def register_storefront_exception_handlers(app: FastAPI) -> None:
    """Map engine failures to HTTP answers.

    Configuration problems are logged in full and answered with a generic
    message; stock lock timeouts are retryable.
    """

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("Configuration error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Cannot complete order"})

    @app.exception_handler(StockContention)
    async def stock_contention_handler(request: Request, exc: StockContention):
        logger.warning("Stock contention", path=request.url.path, lock=exc.key)
        return JSONResponse(status_code=409, content={"error": "Stock is busy, please try again"})


__all__ = [
    "cart_router",
    "checkout_router",
    "order_router",
    "price_router",
    "register_storefront_exception_handlers",
    "routers",
]

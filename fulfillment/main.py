"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fulfillment.api.middleware import LoggingMiddleware, RateLimitMiddleware
from fulfillment.api.routes import router
from fulfillment.config import get_settings
from fulfillment.database.mongodb import mongodb
from fulfillment.errors import FulfillmentError, PaymentProviderUnavailable
from fulfillment.services.email_service import notification_dispatcher
from fulfillment.utils.logger import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting application...")
    try:
        if not settings.payment_verification_enabled:
            logger.warning(
                "[SECURITY WARNING] PAYMENT VERIFICATION IS DISABLED (environment=%s). "
                "Orders will be stored without confirming payment.",
                settings.environment,
            )
        elif not settings.paystack_secret_key:
            logger.error("PAYSTACK_SECRET_KEY is not set; every order will be refused")

        await mongodb.connect()
        logger.info("All database connections established")

        yield

    finally:
        # Shutdown
        logger.info("Shutting down application...")
        await notification_dispatcher.drain()
        await mongodb.disconnect()
        logger.info("All database connections closed")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Order fulfillment with server-side repricing and payment verification",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.add_middleware(LoggingMiddleware)
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_period=settings.rate_limit_requests,
        period=settings.rate_limit_period,
        exempt_paths=("/", f"{settings.api_prefix}/health"),
    )

# Include routers
app.include_router(router)


# Exception handlers
@app.exception_handler(FulfillmentError)
async def fulfillment_exception_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    """Render pipeline errors as structured JSON."""
    headers = {"Retry-After": "30"} if isinstance(exc, PaymentProviderUnavailable) else None
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
        headers=headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
        },
    )


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fulfillment.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

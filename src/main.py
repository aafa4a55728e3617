# src/main.py
"""
Main Application - Customers API
================================
Customers API, customers portal and monitoring endpoints in one app.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from src.api.admin import router as admin_router
from src.api.app import router as app_router
from src.api.crud.crud_customer import CustomersStore, SqlAlchemyCustomersStore, build_customers_store
from src.api.services.customer_service import CustomerService
from src.core.config import Config, config
from src.core.logging_config import setup_logging
from src.core.middleware.correlation import CORRELATION_HEADER_NAME, CorrelationIdMiddleware
from src.core.monitoring.middleware import MetricsMiddleware
from src.core.resilience import ResiliencePolicy
from src.services.customers_api_client import CustomersApiClient

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _store_backend(store: CustomersStore) -> str:
    return "database" if isinstance(store, SqlAlchemyCustomersStore) else "memory"


def create_app(
    settings: Config = config,
    store: Optional[CustomersStore] = None,
    api_client: Optional[CustomersApiClient] = None,
) -> FastAPI:
    """
    Builds the application.

    Args:
        settings: Configuration to build from
        store: Customer store to use instead of the configured one
        api_client: Portal client to use instead of one pointed at CUSTOMERS_API_URL
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"🚀 STARTING CUSTOMERS API - Environment: {settings.ENVIRONMENT.upper()}")
        logger.info("=" * 60)

        customers_store = store if store is not None else build_customers_store(settings)
        app.state.customers_store = customers_store
        app.state.customers_store_backend = _store_backend(customers_store)
        app.state.customer_service = CustomerService(customers_store)

        client = api_client
        if client is None:
            client = CustomersApiClient(
                settings.CUSTOMERS_API_URL,
                ResiliencePolicy.from_config(settings),
                timeout=settings.RESILIENT_HTTP_TIMEOUT,
            )
        app.state.customers_api_client = client

        logger.info(f"   ├─ Customer store: {app.state.customers_store_backend}")
        logger.info(f"   └─ Customers API: {client.base_url}")
        logger.info("✅ APPLICATION READY!")
        logger.info("=" * 60)

        yield

        logger.info("=" * 60)
        logger.info("🛑 SHUTTING DOWN")
        logger.info("=" * 60)

        await client.aclose()
        logger.info("✅ Customers API client closed")

    app = FastAPI(
        title="Customers API",
        version="1.0.0",
        lifespan=lifespan
    )

    # ═══════════════════════════════════════════════════════════
    # MIDDLEWARE (last added runs first)
    # ═══════════════════════════════════════════════════════════

    if settings.is_development:
        allowed_origins = ["*"]
    else:
        allowed_origins = settings.get_allowed_origins_list()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER_NAME],
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    # ═══════════════════════════════════════════════════════════
    # ERRORS
    # ═══════════════════════════════════════════════════════════

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        cid = getattr(request.state, "correlation_id", None)
        logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=exc)

        headers = {CORRELATION_HEADER_NAME: cid} if cid else None
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "Something unexpected went wrong during the request!",
                "correlationId": cid,
            },
            headers=headers,
        )

    # ═══════════════════════════════════════════════════════════
    # ROUTES
    # ═══════════════════════════════════════════════════════════

    app.include_router(app_router)
    app.include_router(admin_router)

    @app.get("/", tags=["Health"])
    async def root() -> dict:
        return {
            "name": app.title,
            "version": app.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)

__all__ = ["app", "create_app"]

# tailorshop/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from tailorshop.api.common import field_errors
from tailorshop.api.customers import router as customers_router
from tailorshop.api.dashboard import router as dashboard_router
from tailorshop.api.employees import router as employees_router
from tailorshop.api.orders import router as orders_router
from tailorshop.config import Settings
from tailorshop.db.engine import create_db_engine
from tailorshop.db.schema import metadata
from tailorshop.errors import ServiceError, ValidationError
from tailorshop.services.images import customer_image_service, order_image_service
from tailorshop.services.orders import OrderService

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        body = {"error": exc.message, "reason": exc.reason}
        if isinstance(exc, ValidationError):
            body["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation failed",
                "reason": ValidationError.reason,
                "details": field_errors(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "reason": "persistence_error"},
        )


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    """
    Build the application around an explicitly owned engine.

    Tests pass their own engine; in production it is created from
    ``DATABASE_URL`` and disposed on shutdown.
    """
    settings = settings or Settings.from_env()
    engine = engine or create_db_engine(settings.database_url)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        metadata.create_all(engine)
        logger.info("Database schema ready")
        yield
        engine.dispose()

    app = FastAPI(
        title="Tailor Shop API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.customer_images = customer_image_service(engine, settings.customer_image_limit)
    app.state.order_images = order_image_service(engine, settings.order_image_limit)
    app.state.order_service = OrderService(engine, app.state.order_images)

    _register_error_handlers(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(customers_router)
    app.include_router(employees_router)
    app.include_router(orders_router)
    app.include_router(dashboard_router)

    return app


app = create_app()

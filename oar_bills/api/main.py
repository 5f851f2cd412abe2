"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from oar_bills.api.middleware import RequestIDMiddleware, MetricsMiddleware
from oar_bills.api.v1 import forecast, jobs, payments
from oar_bills.infrastructure.database.models import Base
from oar_bills.infrastructure.database.session import engine
from oar_bills.infrastructure.observability.logging import setup_logging
from oar_bills.services.reconciler import startup_reconciler
from oar_bills.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)

    if settings.run_startup_catch_up:
        # Catch up on overdue marking and auto-pay missed while the service was down
        try:
            result = startup_reconciler.run()
            logging.info(
                "Startup catch-up finished",
                extra={
                    "marked_overdue": result.overdue_check.updated,
                    "autopay_processed": result.auto_pay.processed,
                },
            )
        except Exception as e:
            # Data is corrected by the next scheduled run
            logging.error(f"Startup catch-up failed: {e}")

    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Oar Bills",
        description="Bill tracking, payment cycles and forecasting",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(jobs.router, prefix="/v1", tags=["jobs"])

    return app


app = create_app()

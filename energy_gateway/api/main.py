"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from energy_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from energy_gateway.api.v1 import affiliates, balances, energy_readings
from energy_gateway.infrastructure.observability.logging import setup_logging
from energy_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Energy Marketplace Gateway",
        description="Investor balances, energy meter readings and affiliate registry",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(balances.router, prefix="/v1", tags=["balances"])
    app.include_router(energy_readings.router, prefix="/v1", tags=["energy-readings"])
    app.include_router(affiliates.router, prefix="/v1", tags=["affiliates"])

    return app


app = create_app()

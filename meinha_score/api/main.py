"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from meinha_score.api.middleware import RequestIDMiddleware, MetricsMiddleware
from meinha_score.api.v1 import overrides, rules, score
from meinha_score.infrastructure.observability.logging import setup_logging
from meinha_score.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Meinha Score",
        description="Peer debt trust score service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
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
    app.include_router(score.router, prefix="/v1", tags=["scores"])
    app.include_router(rules.router, prefix="/v1", tags=["rules"])
    app.include_router(overrides.router, prefix="/v1", tags=["overrides"])

    return app


app = create_app()

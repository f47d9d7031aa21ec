"""FastAPI application factory"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finance_planner.api.errors import register_exception_handlers
from finance_planner.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finance_planner.api.v1 import (
    accounts,
    ai,
    auth,
    credit_cards,
    family_members,
    groups,
    installments,
    recurring_expenses,
    transactions,
)
from finance_planner.infrastructure.database.models import Base
from finance_planner.infrastructure.database.session import engine
from finance_planner.infrastructure.observability.logging import setup_logging
from finance_planner.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finance Planner",
        description="Personal and family finance tracking service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    @app.on_event("startup")
    def create_tables():
        Base.metadata.create_all(bind=engine)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "environment": settings.environment}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(accounts.router, prefix=f"{prefix}/accounts", tags=["accounts"])
    app.include_router(credit_cards.router, prefix=f"{prefix}/credit-cards", tags=["credit-cards"])
    app.include_router(transactions.router, prefix=f"{prefix}/transactions", tags=["transactions"])
    app.include_router(groups.router, prefix=f"{prefix}/groups", tags=["groups"])
    app.include_router(family_members.router, prefix=f"{prefix}/family-members", tags=["family-members"])
    app.include_router(
        recurring_expenses.router, prefix=f"{prefix}/recurring-expenses", tags=["recurring-expenses"]
    )
    app.include_router(installments.router, prefix=f"{prefix}/installments", tags=["installments"])
    app.include_router(ai.router, prefix=f"{prefix}/ai", tags=["ai"])

    return app


app = create_app()

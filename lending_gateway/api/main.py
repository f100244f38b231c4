"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from lending_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from lending_gateway.api.dependencies import get_request_id
from lending_gateway.api.v1 import contracts, documents, guarantees, offers, referrals, requests, rewards, users
from lending_gateway.api.v1.schemas import ErrorResponse
from lending_gateway.config import settings
from lending_gateway.domain.exceptions import ErrorKind, LendingError
from lending_gateway.domain.gateway import PersistenceGateway
from lending_gateway.domain.ledger import seed_rewards
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.infrastructure.database.repositories import SqlGateway
from lending_gateway.infrastructure.database.session import build_engine, build_session_factory, create_schema
from lending_gateway.infrastructure.memory.store import InMemoryGateway
from lending_gateway.infrastructure.observability.logging import setup_logging
from lending_gateway.infrastructure.observability.metrics import operation_failure_counter, record_retry

# Setup structured logging
setup_logging(settings.log_level)

ERROR_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTH: 403,
    ErrorKind.NETWORK: 503,
    ErrorKind.SERVER: 503,
}

# Documented bodies for the statuses produced by lending_error_handler
ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in sorted(set(ERROR_STATUS.values()))
}


def build_gateway() -> PersistenceGateway:
    """Persistence gateway selected by settings.storage_backend"""
    if settings.storage_backend == "sql":
        engine = build_engine(settings.database_url)
        if settings.create_schema:
            create_schema(engine)
        return SqlGateway(build_session_factory(engine))
    return InMemoryGateway()


def build_executor() -> ResilientExecutor:
    return ResilientExecutor(
        max_retries=settings.retry_max_retries,
        initial_delay=settings.retry_initial_delay_seconds,
        on_retry=record_retry,
    )


async def lending_error_handler(request: Request, exc: LendingError) -> JSONResponse:
    """Translate domain failures; only validation/auth reasons reach the client verbatim"""
    operation_failure_counter.labels(kind=exc.kind.value).inc()
    level = logging.WARNING if exc.kind == ErrorKind.VALIDATION else logging.ERROR
    logging.log(
        level,
        f"Request failed: {exc}",
        extra={"request_id": get_request_id(request), "error_kind": exc.kind.value, "path": request.url.path},
    )
    return JSONResponse(
        status_code=ERROR_STATUS[exc.kind],
        content={"detail": exc.user_message, "kind": exc.kind.value},
    )


def create_app(
    gateway: Optional[PersistenceGateway] = None,
    executor: Optional[ResilientExecutor] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.seed_rewards:
            added = await seed_rewards(app.state.gateway)
            logging.info("Rewards catalogue seeded", extra={"step": "seed_rewards", "added": added})
        yield

    app = FastAPI(
        title="P2P Lending Gateway",
        description="Loan offers, requests, contracts, rewards and user onboarding for a peer-to-peer marketplace",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.gateway = gateway if gateway is not None else build_gateway()
    app.state.executor = executor if executor is not None else build_executor()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(LendingError, lending_error_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(users.router, prefix="/v1", tags=["users"], responses=ERROR_RESPONSES)
    app.include_router(offers.router, prefix="/v1", tags=["offers"], responses=ERROR_RESPONSES)
    app.include_router(requests.router, prefix="/v1", tags=["requests"], responses=ERROR_RESPONSES)
    app.include_router(contracts.router, prefix="/v1", tags=["contracts"], responses=ERROR_RESPONSES)
    app.include_router(rewards.router, prefix="/v1", tags=["rewards"], responses=ERROR_RESPONSES)
    app.include_router(guarantees.router, prefix="/v1", tags=["guarantees"], responses=ERROR_RESPONSES)
    app.include_router(documents.router, prefix="/v1", tags=["documents"], responses=ERROR_RESPONSES)
    app.include_router(referrals.router, prefix="/v1", tags=["referrals"], responses=ERROR_RESPONSES)

    return app


app = create_app()

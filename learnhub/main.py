from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from learnhub.core.config import settings
from learnhub.core.exceptions import register_exception_handlers
from learnhub.core.log_config import RequestLoggingMiddleware, setup_logging
from learnhub.core.rate_limit import limiter
from learnhub.db import base  # noqa: F401
from learnhub.db.session import engine, get_db
from learnhub.enrollments.routes import checkout_router, enrollments_router, webhooks_router
from learnhub.enrollments.services.payment_gateway import build_payment_gateway

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    gateway = build_payment_gateway(settings)
    app.state.payment_gateway = gateway
    logger.info("payment_gateway_ready", configured=gateway.is_configured)

    yield

    logger.info("disposing_db_engine")
    engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Course enrollment and payment reconciliation API",
    version="1.0.0",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
register_exception_handlers(app, debug=settings.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(enrollments_router, prefix=settings.API_V1_PREFIX)
app.include_router(checkout_router, prefix=settings.API_V1_PREFIX)
app.include_router(webhooks_router, prefix=settings.API_V1_PREFIX, tags=["payment-webhooks"])


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": settings.PROJECT_NAME, "version": "1.0.0", "status": "running"}


@app.get("/health")
async def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str | bool]:
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        db_status = "unhealthy"

    gateway = getattr(request.app.state, "payment_gateway", None)

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "payments_configured": bool(gateway and gateway.is_configured),
    }

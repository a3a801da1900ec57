"""
FastAPI application entry point for the fintrack backend.

This module creates the FastAPI app instance and registers all routers.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fintrack.config import settings
from fintrack.routes.accounts import router as accounts_router
from fintrack.routes.auth import router as auth_router
from fintrack.routes.chat import router as chat_router
from fintrack.routes.health import router as health_router
from fintrack.routes.summary import router as summary_router
from fintrack.routes.transactions import router as transactions_router
from fintrack.utils.logging import LOG_FORMAT, resolve_level

logging.basicConfig(level=resolve_level(), format=LOG_FORMAT)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - ENVIRONMENT=production: CORS_ALLOWED_ORIGINS (comma separated); none if unset
    - anything else: all origins
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
            return origins

        logger.warning(
            "CORS_ALLOWED_ORIGINS not set in production. "
            "No web origins allowed. Set CORS_ALLOWED_ORIGINS for web clients."
        )
        return []

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


app = FastAPI(
    title="fintrack API",
    description="Backend service for the fintrack personal finance app",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation failures and return them as a 422 validation_error."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            # Offending input omitted; non-finite numbers cannot be rendered as JSON
            "details": jsonable_encoder(
                [{k: v for k, v in error.items() if k != "input"} for error in exc.errors()]
            ),
        }
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(summary_router)
app.include_router(chat_router)

logger.info("FastAPI app initialized successfully")

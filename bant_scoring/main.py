import logging
from contextlib import asynccontextmanager
from typing import Tuple, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from bant_scoring.api.v1.router import router as api_v1_router
from bant_scoring.core.config import settings as app_settings
from bant_scoring.core.database import engine
from bant_scoring.core.exceptions import (
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    ScoringEngineError,
    ValidationError,
)
from bant_scoring.core.rate_limit import limiter
from bant_scoring.dependencies import close_redis_client

logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# First match wins; anything else derived from ScoringEngineError is a 500
_STATUS_BY_ERROR: Tuple[Tuple[Type[ScoringEngineError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (ConfigurationError, 409),
    (PersistenceError, 503),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_redis_client()
    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title="BANT Lead Scoring Engine",
    description="Rule-based Budget / Authority / Need / Timeline lead qualification",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


def status_for(exc: ScoringEngineError) -> int:
    for error_class, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return 500


@app.exception_handler(ScoringEngineError)
async def scoring_error_handler(request: Request, exc: ScoringEngineError):
    """Render any domain error as its ``to_dict()`` payload."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_type, request.method, request.url.path, exc.detail)
    else:
        logger.warning("%s: %s", exc.error_type, exc.detail)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": exc.errors(),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Generic 500 so raw stack traces never reach the client."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )

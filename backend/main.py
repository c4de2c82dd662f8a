"""Main FastAPI application for DocTalk.

Entry point for the application. Configures:
- FastAPI app with settings
- Exception handlers
- Route registration
- Shutdown of HTTP clients
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import ConfigurationError, get_app_config, get_settings, setup_logging
from dependencies import (
    get_conversation_store,
    get_llm_service,
    get_sheets_reader,
    get_telegram_client,
)
from responses import ResponseCode, error_dict
from router import router as api_router

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    # Startup
    logger.info("Starting DocTalk...")

    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.critical("Startup validation failed: %s", e)
        raise

    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info("Environment: %s", settings.environment)
    logger.info("LLM Model: %s", settings.llm_model)
    logger.info("Table Model: %s", settings.table_model)
    logger.info(
        "Chunk size: %d, relevance: top %d (%s fallback)",
        settings.chunk_size,
        settings.relevance_limit,
        settings.relevance_fallback,
    )
    logger.info("DocTalk started successfully")

    yield

    # Shutdown
    logger.info("Shutting down DocTalk...")
    # Only close what was actually created
    for factory in (
        get_telegram_client,
        get_llm_service,
        get_sheets_reader,
        get_conversation_store,
    ):
        if factory.cache_info().currsize:
            await factory().close()


# Create FastAPI app with lifespan
app_config = get_app_config()
app = FastAPI(lifespan=lifespan, **app_config)


# =============================================================================
# Middleware
# =============================================================================


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests for tracing."""
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors (malformed updates)."""
    request_id = getattr(request.state, "request_id", None)

    first_error = exc.errors()[0] if exc.errors() else {}
    field_name = first_error.get("loc", ["unknown"])[-1]
    logger.warning("[%s] Rejected request: invalid '%s'", request_id, field_name)

    error_response = error_dict(
        code=ResponseCode.VALIDATION_ERROR,
        custom_message=f"Validation failed for field '{field_name}'",
        error_details={"validation_errors": jsonable_errors(exc)},
        request_id=request_id,
    )

    return JSONResponse(status_code=422, content=error_response)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions."""
    request_id = getattr(request.state, "request_id", None)

    code_map = {
        404: ResponseCode.NOT_FOUND,
        405: ResponseCode.METHOD_NOT_ALLOWED,
    }

    response_code = code_map.get(exc.status_code, ResponseCode.INTERNAL_ERROR)

    error_response = error_dict(
        code=response_code,
        custom_message=str(exc.detail),
        request_id=request_id,
    )

    return JSONResponse(status_code=exc.status_code, content=error_response)


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unhandled exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception("Unhandled exception: %s", exc)

    error_response = error_dict(
        code=ResponseCode.INTERNAL_ERROR,
        custom_message="An unexpected error occurred",
        error_details={"exception_type": type(exc).__name__},
        request_id=request_id,
    )

    return JSONResponse(status_code=500, content=error_response)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serializable ``ctx``/``input`` values."""
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


# =============================================================================
# Routes
# =============================================================================

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - shows API info."""
    return {
        "name": "DocTalk",
        "description": "Telegram assistant for documents and spreadsheets",
        "docs": "/api/docs",
        "health": "/api/health",
        "webhook": "/api/telegram/webhook",
    }


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

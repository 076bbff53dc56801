import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import get_settings
from .exceptions import (
    ChartCalculationError,
    InvalidInputError,
    UnknownBodyError,
)
from .middleware import RequestLoggingMiddleware, configure_logging
from .routers import router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Celestial Self API",
    description="Natal chart calculation API: planetary positions, houses, ascendant and aspects",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware, enabled=settings.REQUEST_LOGGING)


def _error(status_code: int, error: str, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "detail": detail
        }
    )


# Exception Handlers
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    """Handle malformed birth data."""
    return _error(422, "InvalidInputError", str(exc))


@app.exception_handler(UnknownBodyError)
async def unknown_body_handler(request: Request, exc: UnknownBodyError):
    """Handle unknown body identifiers."""
    logger.error("Unknown body: %s", exc)
    return _error(500, "UnknownBodyError", str(exc))


@app.exception_handler(ChartCalculationError)
async def chart_calculation_error_handler(request: Request, exc: ChartCalculationError):
    """Handle chart calculation errors."""
    return _error(500, "ChartCalculationError", str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    return _error(422, "ValidationError", "Request validation failed", jsonable_encoder(exc.errors()))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other unexpected exceptions."""
    logger.exception("Unhandled error on %s", request.url.path)
    return _error(500, "InternalServerError", "An unexpected error occurred")


# Include API router
app.include_router(router, prefix="/api/v1", tags=["API"])


# Root endpoints
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Celestial Self API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}

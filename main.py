import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exceptions import (
    SwissEphAPIException,
    ChartCalculationError,
    ExternalCalculatorError,
    InvalidTimestampError,
    InvalidCoordinatesError,
)
from models import ErrorDetail
from routers import router
from settings import APP_NAME, APP_VERSION, CORS_ALLOW_ORIGINS, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_NAME,
    description="Astrological chart calculation API using the Swiss Ephemeris swetest program",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(error=error, message=message, detail=detail).model_dump(),
    )


# Exception Handlers
@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions from the chart operations."""
    return _error(422, "ValidationError", str(exc))


@app.exception_handler(InvalidTimestampError)
async def invalid_timestamp_handler(request: Request, exc: InvalidTimestampError):
    """Handle unparseable datetimes."""
    return _error(422, "InvalidTimestampError", str(exc))


@app.exception_handler(InvalidCoordinatesError)
async def invalid_coordinates_handler(request: Request, exc: InvalidCoordinatesError):
    """Handle invalid coordinates errors."""
    return _error(422, "InvalidCoordinatesError", str(exc))


@app.exception_handler(ExternalCalculatorError)
async def external_calculator_error_handler(request: Request, exc: ExternalCalculatorError):
    """Handle swetest failures."""
    logger.warning("swetest failure on %s: %s (%s)", request.url.path, exc, exc.reason)
    return _error(502, "ExternalCalculatorError", str(exc), exc.reason)


@app.exception_handler(ChartCalculationError)
async def chart_calculation_error_handler(request: Request, exc: ChartCalculationError):
    """Handle chart calculation errors."""
    return _error(500, "ChartCalculationError", str(exc))


@app.exception_handler(SwissEphAPIException)
async def api_exception_handler(request: Request, exc: SwissEphAPIException):
    """Handle any other API error."""
    return _error(500, type(exc).__name__, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_errors(exc),
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raised ValueError, which is not JSON serializable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


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
        "message": APP_NAME,
        "version": APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .exceptions import (
    InvalidCoordinates,
    SubscriptionNotFound,
    SuggestionParseError,
    SuggestionUpstreamError,
)
from .response import error as resp_error

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"Invalid {loc}: {msg}" if loc else msg


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=resp_error(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # malformed bodies are client errors, reported as 400 like every other validation failure
        return JSONResponse(status_code=400, content=resp_error(_describe_validation_error(exc)))

    @app.exception_handler(SubscriptionNotFound)
    async def not_found_handler(request: Request, exc: SubscriptionNotFound):
        return JSONResponse(status_code=404, content=resp_error("Unknown endpoint"))

    @app.exception_handler(InvalidCoordinates)
    async def invalid_coordinates_handler(request: Request, exc: InvalidCoordinates):
        return JSONResponse(status_code=400, content=resp_error(str(exc)))

    @app.exception_handler(SuggestionUpstreamError)
    async def upstream_handler(request: Request, exc: SuggestionUpstreamError):
        logger.warning("Suggestion upstream failure: %s (%s)", exc, exc.detail)
        return JSONResponse(status_code=502, content=resp_error(str(exc), detail=exc.detail))

    @app.exception_handler(SuggestionParseError)
    async def parse_handler(request: Request, exc: SuggestionParseError):
        logger.warning("Suggestion parse failure: %s", exc)
        return JSONResponse(status_code=500, content=resp_error(str(exc), detail=exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=resp_error("Internal server error"))

"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mealer.api.ai import router as ai_router
from mealer.app_logging import configure_logging
from mealer.containers import AppContainer
from mealer.services.auth import AuthenticationError
from mealer.services.llm import ExternalServiceError
from mealer.services.profiles import OnboardingIncompleteError
from mealer.services.usage import RateLimitExceededError

_RATE_LIMIT_MESSAGES = {
    "receipt_scans": "Daily scan limit exceeded. Try again tomorrow",
    "substitutions": "Daily substitution limit exceeded. Try again tomorrow",
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(ai_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"field": _field_path(error.get("loc", ())), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return error_response(
            "VALIDATION_ERROR",
            "Validation failed",
            status.HTTP_400_BAD_REQUEST,
            details,
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        return error_response("UNAUTHORIZED", str(exc), status.HTTP_401_UNAUTHORIZED)

    @app.exception_handler(OnboardingIncompleteError)
    async def onboarding_error(
        request: Request, exc: OnboardingIncompleteError
    ) -> JSONResponse:
        return error_response("FORBIDDEN", str(exc), status.HTTP_403_FORBIDDEN)

    @app.exception_handler(RateLimitExceededError)
    async def rate_limited(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        return error_response(
            "RATE_LIMITED",
            _RATE_LIMIT_MESSAGES[exc.feature.value],
            status.HTTP_429_TOO_MANY_REQUESTS,
        )

    @app.exception_handler(ExternalServiceError)
    async def external_service_error(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        logger.error(
            "AI provider call failed",
            extra={"status_code": exc.status_code, "path": request.url.path},
        )
        return error_response(
            "EXTERNAL_SERVICE_ERROR", str(exc), status.HTTP_502_BAD_GATEWAY
        )

    return app


def error_response(
    code: str,
    message: str,
    status_code: int,
    details: list[dict[str, object]] | None = None,
) -> JSONResponse:
    """Build the JSON error envelope shared by all endpoints."""
    error: dict[str, object] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse({"error": error}, status_code=status_code)


def _field_path(loc: tuple[object, ...] | list[object]) -> str:
    parts = list(loc)
    if parts and parts[0] == "body":
        parts = parts[1:]
    return ".".join(str(part) for part in parts)

"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from nasiya.api import contracts, debtors, payments
from nasiya.config import NasiyaConfig
from nasiya.exceptions import NasiyaError, RateLimitedError
from nasiya.logging import ledger_context
from nasiya.services import Services, build_services

logger = logging.getLogger(__name__)


class LedgerContextMiddleware(BaseHTTPMiddleware):
    """Tags log records of a request with its employee and route, then logs the request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        with ledger_context(
            employee=request.headers.get("X-Employee-Id"),
            request=f"{request.method} {request.url.path}",
        ):
            response = await call_next(request)
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.info("%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


def create_app(
    services: Services | None = None,
    config: NasiyaConfig | None = None,
    run_sweeper: bool = False,
) -> FastAPI:
    """Build the REST app around ``services`` (fresh in-memory ones by default).

    Parameters
    ----------
    services : Services | None
        Service container; tests pass one with a seeded store.
    config : NasiyaConfig | None
        Used when ``services`` is not given.
    run_sweeper : bool
        Start the background debtor sweeper for the app's lifetime.
    """
    services = services or build_services(config)
    config = services.config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = services.sweeper() if run_sweeper else None
        if sweeper is not None:
            sweeper.start()
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.stop()

    app = FastAPI(title="Nasiya Installment Ledger API", lifespan=lifespan)
    app.state.services = services

    @app.exception_handler(NasiyaError)
    async def nasiya_error_handler(request: Request, exc: NasiyaError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Invalid request %s %s: %s", request.method, request.url.path, exc.errors())
        errors = [
            {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "code": "VALIDATION_ERROR", "message": "Invalid request", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "code": "INTERNAL_ERROR", "message": "Internal server error"},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(LedgerContextMiddleware)

    app.include_router(payments.router)
    app.include_router(contracts.router)
    app.include_router(debtors.router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "entities": services.store.summary()}

    return app

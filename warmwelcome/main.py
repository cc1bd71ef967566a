from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException

from warmwelcome.config import Settings, settings, validate_environment
from warmwelcome.context import AppContext
from warmwelcome.db import init_db
from warmwelcome.errors import AppError
from warmwelcome.observability import configure_logging
from warmwelcome.routers import emails, shopify
from warmwelcome.schemas import error_response

logger = logging.getLogger("app")


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> ORJSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "%s: %s",
            type(exc).__name__,
            exc,
            exc_info=exc if exc.status_code >= 500 else None,
            extra={"path": request.url.path, "status_code": exc.status_code},
        )
        return ORJSONResponse(status_code=exc.status_code, content=error_response(exc.public_message))

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException) -> ORJSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return ORJSONResponse(status_code=exc.status_code, content=error_response(message), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> ORJSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return ORJSONResponse(status_code=400, content=error_response("Validation failed", errors))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return ORJSONResponse(status_code=500, content=error_response("Unexpected server error."))


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    context = AppContext(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.ENVIRONMENT)
        validate_environment(config)
        init_db()
        yield
        context.reset()

    app = FastAPI(title="WarmWelcome API", default_response_class=ORJSONResponse, lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(shopify.router)
    app.include_router(emails.router)
    return app


app = create_app()

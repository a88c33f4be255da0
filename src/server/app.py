"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from src.server.auth import DatabaseIdentityOracle, IdentityOracle, create_auth_dependency
from src.server.config import ServerConfig, load_config_from_env
from src.server.errors import lifecycle_status
from src.server.middleware.rate_limit import RateLimitMiddleware
from src.server.middleware.logging import RequestLoggingMiddleware
from src.server.models.responses import ErrorResponse, ErrorDetail
from src.server.push import PushNotifier
from src.server.routes.health import create_health_router
from src.server.routes.messages import create_messages_router
from src.server.routes.preferences import create_preferences_router
from src.server.routes.proximity import create_proximity_router
from src.server.routes.push_tokens import create_push_tokens_router
from src.server.routes.users import create_users_router
from src.state.database import DatabaseManager
from src.state.errors import LifecycleError

logger = logging.getLogger(__name__)


def _build_push_notifier(
    config: ServerConfig,
    db_manager: DatabaseManager,
) -> Optional[PushNotifier]:
    """Build a PushNotifier when push is enabled, else return None."""
    if not config.push.enabled:
        return None
    return PushNotifier(
        db_manager=db_manager,
        endpoint=config.push.endpoint,
        access_token=config.push.access_token,
        timeout=config.push.timeout,
    )


def create_app(
    config: Optional[ServerConfig] = None,
    identity_oracle: Optional[IdentityOracle] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When called without arguments (e.g. via uvicorn --factory), loads
    configuration from environment variables and resolves bearer
    credentials against the local session store.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    if config is None:
        config = load_config_from_env()

    db_manager = DatabaseManager(config.db_path)
    oracle = identity_oracle or DatabaseIdentityOracle(db_manager)
    require_user = create_auth_dependency(oracle)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await db_manager.initialize()
        logger.info("Database initialized at %s", config.db_path)

        push_notifier = _build_push_notifier(config, db_manager)
        if push_notifier is not None:
            logger.info("Push delivery active, endpoint=%s", config.push.endpoint)
        else:
            logger.info("Push delivery disabled")

        app.state.push_notifier = push_notifier
        yield
        await db_manager.close()

    app = FastAPI(
        title="Consent Exchange",
        description="Consent messages delivered by link, push, and proximity",
        version=config.version,
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, requests_per_minute=config.rate_limit.requests_per_minute)
    app.add_exception_handler(LifecycleError, _lifecycle_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.include_router(create_health_router(config, db_manager))
    app.include_router(create_messages_router(db_manager, config, require_user))
    app.include_router(create_proximity_router(db_manager, config, require_user))
    app.include_router(create_push_tokens_router(db_manager, require_user))
    app.include_router(create_preferences_router(db_manager, require_user))
    app.include_router(create_users_router(db_manager, require_user))
    return app


async def _lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    status_code, code = lifecycle_status(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    response = ErrorResponse(error=ErrorDetail(code=code, message=exc.message, details=exc.details))
    return JSONResponse(status_code=status_code, content=response.model_dump(), headers=headers)


_HTTP_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown routes and wrong methods never reach a route handler.
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    response = ErrorResponse(error=ErrorDetail(code=code, message=str(exc.detail)))
    return JSONResponse(status_code=exc.status_code, content=response.model_dump(), headers=exc.headers)


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, (RequestValidationError, ValidationError)) else []
    response = ErrorResponse(error=ErrorDetail(
        code="INVALID_FORMAT", message="Request validation failed",
        details={"validation_errors": _jsonable(errors)},
    ))
    return JSONResponse(status_code=400, content=response.model_dump())


def _jsonable(errors: list) -> list[dict]:
    # ctx may carry exception objects that JSON cannot encode.
    return [
        {k: (str(v) if k == "ctx" else v) for k, v in err.items() if k != "input"}
        for err in errors
    ]

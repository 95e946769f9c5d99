from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notion_cms.gateway.api.v1 import routers as v1_routers
from notion_cms.gateway.config import Settings, get_settings
from notion_cms.gateway.exceptions import APIError
from notion_cms.gateway.logging_config import (
    RequestContextMiddleware,
    api_error_handler,
    configure_logging,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from notion_cms.gateway.redis_client import create_redis_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.dependency_overrides[get_settings]()
    assert isinstance(settings, Settings)

    app.state.redis_client = await create_redis_client(settings)

    yield

    await app.state.redis_client.aclose()


def create_app(
    settings: Settings | None = None,
    *,
    setup_logging: bool = True,
) -> FastAPI:
    if settings is None:
        settings = Settings()  # type: ignore

    if setup_logging:
        configure_logging(Path(settings.log_dir), settings.log_level)

    app = FastAPI(
        title="Notion CMS Gateway",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    for r in v1_routers:
        app.include_router(r)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from thinkboard.app import App
from thinkboard.config import Config
from thinkboard.errors import UserError
from thinkboard.web.error_handlers import general_exception_handler, user_error_handler
from thinkboard.web.openapi import set_custom_openapi
from thinkboard.web.routers import (
    attachments_router,
    notes_router,
    profile_router,
    reminders_router,
    sharing_router,
)

API_PREFIX = "/api/v1"
ROUTERS = (profile_router, notes_router, attachments_router, sharing_router, reminders_router)


async def bind_request_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Attach request id, method and path to every log line emitted while handling the request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=uuid4().hex[:12], method=request.method, path=request.url.path)
    return await call_next(request)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Build the HTTP application around an App facade."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        # Storage, services and the reminder scheduler live as long as the server
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="ThinkBoard API", lifespan=lifespan)
    app.middleware("http")(bind_request_context)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    set_custom_openapi(app)
    return app

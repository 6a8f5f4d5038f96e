"""FastAPI application exposing a PromptRouter over HTTP.

Error mapping:
- UninitializedError / CatalogFetchError / ConfigurationError → 503
- NoSuitableModelsError → 422
- any other PromptRouteError → 500
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from promptroute import __version__
from promptroute.errors import (
    CatalogFetchError,
    ConfigurationError,
    NoSuitableModelsError,
    PromptRouteError,
    UninitializedError,
)
from promptroute.routing.router import PromptRouter
from promptroute.web.routes import recommend

logger = logging.getLogger(__name__)

UNAVAILABLE_ERRORS = (UninitializedError, CatalogFetchError, ConfigurationError)


def create_app(router: PromptRouter) -> FastAPI:
    """Build the API around an (uninitialized) router.

    The app's lifespan initializes the router on startup and flushes it
    on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await router.initialize()
        except PromptRouteError as e:
            # Stay up; /recommend retries initialize() and reports 503 until it succeeds
            logger.error(f"Router failed to initialize: {e}")
        yield
        await router.shutdown()

    app = FastAPI(
        title="promptroute",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.router = router
    app.state.init_lock = asyncio.Lock()

    @app.exception_handler(PromptRouteError)
    async def handle_router_error(request: Request, exc: PromptRouteError):
        if isinstance(exc, NoSuitableModelsError):
            status, extra = 422, {"category": exc.category, "reason": exc.reason}
        elif isinstance(exc, UNAVAILABLE_ERRORS):
            status, extra = 503, {}
        else:
            logger.error(f"Unhandled router error: {exc}")
            status, extra = 500, {}
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "detail": str(exc), **extra},
        )

    app.include_router(recommend.router)
    return app

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .config import Settings
from .exceptions import (
    FeatureFlagMutationError,
    FeatureFlagNotFoundError,
    InvalidFeatureFlagError,
)
from .logging_config import get_logger

logger = get_logger(__name__)


def _create_minimal_app() -> FastAPI:
    """Create the FastAPI app object without running side-effectful wiring.
    Tests can import and call this to create fresh apps.
    """
    app = FastAPI(title="featuregate")
    # populated by composition.wire_app (or directly by tests)
    app.state.flag_cache = None
    return app


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a fully routed FastAPI application.

    This returns the app with routers, middleware and exception handlers but
    intentionally doesn't create the DB engine or the flag cache; that is
    performed by the composition root at startup.
    """
    if settings is None:
        settings = Settings()

    app = _create_minimal_app()
    app.state.flag_anonymous_rollout_admit = settings.flag_anonymous_rollout_admit

    from .metrics import metrics_response
    from .middleware.metrics_middleware import MetricsMiddleware
    from .routers import feature_flags, health

    app.include_router(health.router)
    app.include_router(feature_flags.router)

    app.add_middleware(MetricsMiddleware)

    @app.get("/metrics")
    async def _metrics():
        data, content_type = metrics_response()
        return Response(content=data, media_type=content_type)

    @app.exception_handler(FeatureFlagNotFoundError)
    async def _not_found_handler(request: Request, exc: FeatureFlagNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidFeatureFlagError)
    async def _invalid_handler(request: Request, exc: InvalidFeatureFlagError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(FeatureFlagMutationError)
    async def _mutation_error_handler(request: Request, exc: FeatureFlagMutationError):
        logger.error("feature_flag_mutation_error", extra={"operation": exc.operation})
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    return app


__all__ = ["create_app", "_create_minimal_app"]

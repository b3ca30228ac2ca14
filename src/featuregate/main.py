# configure logging early so library loggers are tamed before other app modules import
from .logging_config import get_logger

logger = get_logger(__name__)

# IMPORTANT: Import composition but do NOT call anything that creates engines at
# module import time. composition.wire_app() in on_startup() handles DB and cache
# initialization, so tests can set DATABASE_URL before any engines are created.
from . import composition
from .wiring import create_app

app = create_app()


@app.on_event("startup")
async def on_startup():
    # tests that call the lighter-weight wiring.create_app() do not execute this
    app.state.wire_result = await composition.wire_app(app)


@app.on_event("shutdown")
async def on_shutdown():
    wired = getattr(app.state, "wire_result", None)
    if wired is not None:
        await wired.teardown()
    logger.info("shutdown complete")


if __name__ == "__main__":
    import uvicorn

    from .config import Settings

    s = Settings()
    uvicorn.run("featuregate.main:app", host=s.server_host, port=s.server_port)

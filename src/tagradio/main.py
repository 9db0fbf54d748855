"""Radio station service main application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .api.playback import router as playback_router
from .api.station_admin import router as station_admin_router
from .api.stations import router as stations_router
from .api.tags import router as tags_router
from .api.tracks import router as tracks_router
from .core.config import app_settings
from .core.database import close_db, init_models
from .core.errors import register_exception_handlers
from .core.health import router as health_router
from .core.logging import configure_logging, get_logger
from .core.metrics import METRICS_CONTENT_TYPE, get_metrics
from .core.middleware import CorrelationIDMiddleware

# Configure logging
configure_logging(log_level=app_settings.log_level, log_format=app_settings.log_format)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("radio_station_service_starting", version=app_settings.app_version)

    if app_settings.create_tables_on_startup:
        await init_models()

    logger.info("radio_station_service_started", version=app_settings.app_version)

    yield

    logger.info("radio_station_service_shutting_down")
    await close_db()
    logger.info("radio_station_service_shutdown")


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routers."""
    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Tag-rule radio stations: dynamic playlists selected by require/include/exclude rules",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(stations_router, prefix=app_settings.api_prefix)
    app.include_router(station_admin_router, prefix=app_settings.api_prefix)
    app.include_router(tags_router, prefix=app_settings.api_prefix)
    app.include_router(tracks_router, prefix=app_settings.api_prefix)
    app.include_router(playback_router, prefix=app_settings.api_prefix)

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=get_metrics(), media_type=METRICS_CONTENT_TYPE)

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)


if __name__ == "__main__":
    run()

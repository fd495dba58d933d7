import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safeops.container import AppContainer, build_container
from safeops.core.config import settings
from safeops.core.database import init_db
from safeops.core.exceptions import register_exception_handlers
from safeops.core.logging import configure_logging
from safeops.middleware import CorrelationIdMiddleware

from safeops.api.health import router as health_router
from safeops.api.v1 import auth as auth_router
from safeops.api.v1 import notifications as v1_notifications
from safeops.api.v1 import raws as v1_raws
from safeops.api.v1 import venues as v1_venues

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    container = container or build_container(settings)

    app = FastAPI(title=container.settings.APP_NAME)
    app.state.container = container

    # Middleware: correlation id
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)

    # v1 API routes
    app.include_router(auth_router.router, prefix="/api/v1")
    app.include_router(v1_venues.router, prefix="/api/v1")
    app.include_router(v1_raws.router, prefix="/api/v1")
    app.include_router(v1_notifications.router, prefix="/api/v1")

    # Exception handlers
    register_exception_handlers(app)

    @app.on_event("startup")
    async def on_startup():
        logger.info("Starting app", extra={"app": container.settings.APP_NAME})
        if container.settings.CREATE_SCHEMA_ON_START:
            logger.info("CREATE_SCHEMA_ON_START enabled: creating tables")
            await init_db(container.engine)

    @app.on_event("shutdown")
    async def on_shutdown():
        logger.info("Shutting down")
        await container.close()

    return app


app = create_app()

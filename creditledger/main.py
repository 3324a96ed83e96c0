from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from creditledger import __version__
from creditledger.core.config import Settings, get_settings
from creditledger.core.container import ApplicationContainer
from creditledger.core.logging import configure_logging
from creditledger.interfaces.http import create_api_router
from creditledger.interfaces.http.errors import register_exception_handlers
from creditledger.interfaces.http.routers import health as health_router


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ApplicationContainer] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.logging, debug=settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # a container handed in by the caller is started and stopped by the caller
        if app.state.container is not None:
            yield
            return

        owned = ApplicationContainer.from_settings(settings)
        await owned.startup()
        app.state.container = owned
        try:
            yield
        finally:
            app.state.container = None
            await owned.shutdown()

    app = FastAPI(
        title=settings.project_name,
        description="Credit ledger administration service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(health_router.router)

    return app


app = create_app()

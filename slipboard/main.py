import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slipboard.api.v1.dashboard.router import router as dashboard_router
from slipboard.api.v1.events.router import router as events_router
from slipboard.api.v1.interviews.router import router as interviews_router
from slipboard.api.v1.obligations.router import router as obligations_router
from slipboard.api.v1.roster.router import router as roster_router
from slipboard.core.config import settings
from slipboard.core.exceptions import ServiceError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Slipboard")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Errors raised outside the routers' own try blocks, e.g. get_db without DATABASE_URL.
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.kind.value)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Routers
    app.include_router(events_router)
    app.include_router(obligations_router)
    app.include_router(roster_router)
    app.include_router(interviews_router)
    app.include_router(dashboard_router)

    return app


app = create_app()

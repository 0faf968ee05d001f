import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import coachstudio.models  # noqa: F401 - register all models with Base.metadata
from coachstudio.api.routes.availability import router as availability_router
from coachstudio.api.routes.bookings import router as bookings_router
from coachstudio.api.routes.jobs import router as jobs_router
from coachstudio.api.routes.recurring import router as recurring_router
from coachstudio.api.routes.slots import router as slots_router
from coachstudio.config import get_settings
from coachstudio.database import engine, init_db
from coachstudio.errors import SchedulingError
from coachstudio.schemas.jobs import StatusResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="CoachStudio",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.include_router(availability_router)
    app.include_router(slots_router)
    app.include_router(bookings_router)
    app.include_router(recurring_router)
    app.include_router(jobs_router)

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Unhandled scheduling error on %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.to_dict()},
        )

    @app.get("/api/system/status", response_model=StatusResponse)
    async def system_status() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()

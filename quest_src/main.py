import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from quest_src.auth.routes import auth_router, user_router
from quest_src.quests.routes import quest_router
from quest_src.system.routes import system_router
from quest_src.middleware import register_middleware
from quest_src.clock import ClockSource, build_clock
from quest_src.config import Config, PLACEHOLDER_JWT_SECRETS
from quest_src.db.db_connect import Database
from quest_src.exceptions import NotFound, PersistenceFailure
from quest_src.progression.reset import DailyResetService
from quest_src.progression.service import ProgressionService

logger = logging.getLogger(__name__)

version = "v1"
version_prefix = f"/api/{version}"

def create_app(database: Optional[Database] = None, clock: Optional[ClockSource] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=Config.LOG_LEVEL)
        if Config.JWT_SECRET_KEY in PLACEHOLDER_JWT_SECRETS:
            logger.warning("JWT_SECRET_KEY is still a placeholder value; set a strong secret in .env")

        app.state.database = database or Database(Config.DATABASE_URL)
        app.state.clock = clock or build_clock(Config)
        app.state.progression_service = ProgressionService()
        app.state.reset_service = DailyResetService()

        await app.state.database.create_all()
        logger.info("Quest API started")
        yield
        await app.state.clock.aclose()
        await app.state.database.dispose()
        logger.info("Quest API stopped")

    app = FastAPI(
        title="Quest API",
        description="Gamified quest tracker: XP, levels and daily streaks",
        version=version,
        lifespan=lifespan,
        openapi_url=f"{version_prefix}/openapi.json",
        docs_url=f"{version_prefix}/docs",
        redoc_url=f"{version_prefix}/redoc"
    )

    register_middleware(app)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
        logger.error(f"Unhandled persistence failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Database error"})

    @app.get("/")
    async def root():
        return {"service": "quest-api", "status": "ok"}

    app.include_router(auth_router, prefix=f"{version_prefix}/auth", tags=["auth"])
    app.include_router(user_router, prefix=f"{version_prefix}/user", tags=["user"])
    app.include_router(quest_router, prefix=f"{version_prefix}/quests", tags=["quests"])
    app.include_router(system_router, prefix=f"{version_prefix}/system", tags=["system"])

    return app

app = create_app()

from dotenv import load_dotenv
import logging
import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from nexus.core.config import Settings, get_settings
from nexus.core.database import build_engine, build_sessionmaker, create_all
from nexus.core.errors import NexusError

# ───────────────── ROUTER IMPORTS ─────────────────
from nexus.routes.student import router as student_router
from nexus.routes.programs import router as programs_router
from nexus.routes.programs import assignments_router
from nexus.routes.schedules import router as schedules_router
from nexus.routes.students import router as students_router
from nexus.routes.observations import router as observations_router

log = logging.getLogger(__name__)


# ───────── SAFE VALIDATION HANDLER (bytes in errors break JSON) ─────────

def _sanitize(obj):
    if isinstance(obj, (bytes, bytearray)):
        return f"<bytes:{len(obj)}>"
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, Exception):
        return str(obj)
    return obj


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"detail": _sanitize(exc.errors())})


async def nexus_exception_handler(request: Request, exc: NexusError):
    if exc.status_code >= 500:
        log.error("[api] %s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    content = {"detail": exc.message}
    if getattr(exc, "errors", None):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    """
    Composition root. The engine and sessionmaker live on app.state and
    reach the controllers through get_db.

    Run with: uvicorn nexus.main:create_app --factory
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.db_is_sqlite:
            # local/dev database; PostgreSQL schemas come from alembic
            await create_all(engine)
        yield
        await engine.dispose()

    app = FastAPI(
        title="Nexus API",
        description="Backend API for therapeutic programs, weekly schedules and student progress",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(NexusError, nexus_exception_handler)

    # ───────────────── CORS ─────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ───────────────── ROUTES ─────────────────
    app.include_router(student_router, prefix="/api")         # /api/student/...
    app.include_router(programs_router, prefix="/api")        # /api/professional/programs
    app.include_router(assignments_router, prefix="/api")     # /api/professional/assignments
    app.include_router(schedules_router, prefix="/api")       # /api/professional/schedules
    app.include_router(students_router, prefix="/api")        # /api/professional/students
    app.include_router(observations_router, prefix="/api")    # /api/professional/.../observations

    # ───────────────── HEALTH ─────────────────
    @app.get("/", tags=["Health"])
    async def root():
        return {
            "status": "ok",
            "app": "Nexus API",
            "env": settings.APP_ENV,
        }

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "healthy"}

    log.info("[app] started (%s), database %s", settings.APP_ENV, engine.url.get_backend_name())
    return app

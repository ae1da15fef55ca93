from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import attendance, conflicts, health, notifications, sessions, timetable
from app.core.config import get_engine_config, get_settings
from app.core.exceptions import AppError
from app.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Fail fast on a bad period schedule or day table.
    get_engine_config()
    ensure_runtime_schema_compatibility()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

school_prefix = f"{settings.api_prefix}/schools/{{school_id}}"

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(timetable.router, prefix=school_prefix, tags=["timetable"])
app.include_router(conflicts.router, prefix=school_prefix, tags=["conflicts"])
app.include_router(sessions.router, prefix=school_prefix, tags=["sessions"])
app.include_router(attendance.router, prefix=school_prefix, tags=["attendance"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])

"""FastAPI entrypoint for the timed exam engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlmodel import Session
from starlette.middleware.sessions import SessionMiddleware

from exam_engine.config import get_settings
from exam_engine.database import create_db_and_tables, engine
from exam_engine.errors import ExamEngineError
from exam_engine.routers import admin as admin_router_module
from exam_engine.routers import student as student_router_module
from exam_engine.seed import seed_demo_exam

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database schema and, if configured, seed a demo exam."""
    create_db_and_tables()
    if settings.seed_demo_data:
        with Session(engine) as session:
            seed_demo_exam(session)
    yield


app = FastAPI(title="Timed Exam Engine", lifespan=lifespan)


@app.exception_handler(ExamEngineError)
async def exam_engine_exception_handler(request: Request, exc: ExamEngineError):
    """Map service-level failures onto their HTTP status codes."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Structurally invalid payloads are a plain bad request."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request payload.", "issues": jsonable_errors(exc)},
    )


# Session middleware carries the identity set by the upstream login flow
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)

app.include_router(student_router_module.router, prefix="/student", tags=["student"])
app.include_router(admin_router_module.router, prefix="/admin", tags=["admin"])


@app.get("/health")
def health():
    return {"status": "ok"}


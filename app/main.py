import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.auth import router as auth_router
from app.api.reports import router as reports_router
from app.core.config import settings
from app.core.database import engine, init_db
from app.core.errors import AppError
from app.logging import setup_logging
from app.services.analyze import build_analysis_engine
from app.services.session import build_session_gate

setup_logging(level=settings.log_level)
log = logging.getLogger("labreports")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # ConfigurationError here stops the process: a missing key is never a per-request error
    app.state.analysis_engine = build_analysis_engine(settings)
    app.state.session_gate = build_session_gate(settings, engine)
    log.info(
        "Startup complete: model=%s auth_provider=%s",
        settings.openai_model,
        app.state.session_gate.provider.name,
    )
    yield


app = FastAPI(
    title="Lab Reports API",
    description="Lab report upload, AI explanation and grounded follow-up chat",
    lifespan=lifespan,
)


def _error_response(request: Request, status_code: int, detail: str, details: str | None = None) -> JSONResponse:
    body = {"error": detail}
    if details:
        body["details"] = details
    rid = getattr(request.state, "request_id", None)
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(AppError)
def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("%s on %s: %s (%s)", type(exc).__name__, request.url.path, exc.message, exc.details)
    else:
        log.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return _error_response(request, exc.status_code, exc.message, exc.details)


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = [str(p) for p in (first.get("loc") or []) if p != "body"]
    field = ".".join(loc)
    if first.get("type") == "missing":
        return f"Missing field: {field}" if field else "Request body is required."
    if first.get("type") == "extra_forbidden":
        return f"Unknown field: {field}"
    return f"{field}: {first.get('msg')}" if field else (first.get("msg") or "Invalid request.")


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.warning(
        "Request validation error: path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        exc.errors(),
    )
    return _error_response(request, 400, _validation_error_message(exc))


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    path = (request.url.path or "").strip()
    if path.startswith("/upload"):
        user_msg = "An unexpected error occurred during upload"
    else:
        user_msg = "An unexpected error occurred"
    return JSONResponse(status_code=500, content={"error": user_msg, "details": str(exc)[:500]})


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(reports_router)


@app.get("/health")
def health(request: Request):
    analysis_engine = getattr(request.app.state, "analysis_engine", None)
    database = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.warning("Health check database error: %s", e)
        database = "error"
    return {
        "status": "ok",
        "openai_configured": analysis_engine is not None and analysis_engine.ready,
        "database": database,
        "identity_provider": settings.auth_provider,
    }

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AnalysisError, ConfigurationError
from app.services.analyze import AnalysisEngine
from app.services.chat import ChatContextAssembler
from app.services.report_store import ReportStore
from app.services.session import CallerContext, SessionGate
from app.services.upload import UploadOrchestrator

security = HTTPBearer(auto_error=False)

# Cookie fallback for browser sessions without an Authorization header
SESSION_COOKIE = "access_token"


def get_session_gate(request: Request) -> SessionGate:
    gate = getattr(request.app.state, "session_gate", None)
    if gate is None:
        raise ConfigurationError("Session gate is not initialized.")
    return gate


def get_analysis_engine(request: Request) -> AnalysisEngine:
    engine = getattr(request.app.state, "analysis_engine", None)
    if engine is None:
        raise AnalysisError("AI client is not initialized.")
    return engine


def get_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    gate: SessionGate = Depends(get_session_gate),
) -> CallerContext:
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE)
    return gate.authenticate(token)


def get_report_store(db: Session = Depends(get_db)) -> ReportStore:
    return ReportStore(db)


def get_upload_orchestrator(
    engine: AnalysisEngine = Depends(get_analysis_engine),
    store: ReportStore = Depends(get_report_store),
) -> UploadOrchestrator:
    return UploadOrchestrator(engine, store)


def get_chat_assembler(engine: AnalysisEngine = Depends(get_analysis_engine)) -> ChatContextAssembler:
    return ChatContextAssembler(engine, max_chars=settings.chat_context_max_chars)

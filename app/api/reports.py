import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.api.deps import (
    get_analysis_engine,
    get_caller,
    get_chat_assembler,
    get_report_store,
    get_upload_orchestrator,
)
from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.schemas import (
    ChatRequest,
    ChatResponse,
    ChatTurn,
    LabReportItem,
    LabReportListResponse,
    LabReportSummary,
    TextAnalysisRequest,
    TextAnalysisResponse,
    UploadResponse,
)
from app.services.analyze import AnalysisEngine
from app.services.chat import ChatContextAssembler
from app.services.prompts import build_structured_analysis_prompt
from app.services.report_store import ReportStore
from app.services.session import CallerContext, SessionGate
from app.services.text_format import format_ai_text
from app.services.upload import UploadOrchestrator

log = logging.getLogger(__name__)

router = APIRouter(tags=["lab-reports"])


@router.post("/upload", response_model=UploadResponse)
async def upload_lab_report(
    file: UploadFile | None = File(None),
    fileName: str | None = Form(None),
    userId: str | None = Form(None),
    caller: CallerContext = Depends(get_caller),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
):
    """Multipart upload: 'file' (PDF), 'fileName', 'userId'; Authorization: Bearer <token>."""
    user_id = (userId or "").strip()
    file_name = (fileName or "").strip()
    if not user_id:
        raise ValidationError("User ID is required")
    if file is None or not file_name:
        raise ValidationError("File and fileName are required")
    SessionGate.authorize_owner(caller.identity, user_id)
    log.info("upload: user_id=%s file_name=%s content_type=%s", user_id, file_name, file.content_type)
    try:
        content = await file.read()
    except OSError as e:
        log.exception("upload file read error: %s", e)
        raise ValidationError("File could not be read") from e
    result = await run_in_threadpool(
        orchestrator.process,
        user_id,
        file_name,
        file.filename,
        file.content_type,
        content,
        settings.upload_max_mb * 1024 * 1024,
    )
    report = result.report
    return UploadResponse(
        analysisStatus=result.outcome.status,
        labReport=LabReportSummary(
            id=report.id,
            file_name=report.file_name,
            ai_analysis=report.ai_analysis,
            uploaded_at=report.uploaded_at,
            rawTextLength=result.raw_text_length,
        ),
    )


@router.get("/reports", response_model=LabReportListResponse)
def list_lab_reports(
    userId: str | None = None,
    caller: CallerContext = Depends(get_caller),
    store: ReportStore = Depends(get_report_store),
):
    if not userId:
        raise ValidationError("userId is required")
    SessionGate.authorize_owner(caller.identity, userId)
    reports = store.list_for_owner(userId)
    return LabReportListResponse(labReports=[LabReportItem.model_validate(r, from_attributes=True) for r in reports])


@router.delete("/reports/{report_id}")
def delete_lab_report(
    report_id: str,
    userId: str | None = None,
    caller: CallerContext = Depends(get_caller),
    store: ReportStore = Depends(get_report_store),
):
    if not userId:
        raise ValidationError("userId is required")
    SessionGate.authorize_owner(caller.identity, userId)
    if not store.delete_for_owner(report_id, userId):
        raise NotFoundError("Lab report not found")
    log.info("Lab report deleted: id=%s user_id=%s", report_id, userId)
    return {"success": True}


@router.post("/reports/{report_id}/chat", response_model=ChatResponse)
def chat_with_lab_report(
    report_id: str,
    body: ChatRequest,
    caller: CallerContext = Depends(get_caller),
    store: ReportStore = Depends(get_report_store),
    assembler: ChatContextAssembler = Depends(get_chat_assembler),
):
    """Follow-up question about one of the caller's reports, answered from its raw text.

    Uploads store text only when a TextExtractor is configured; with the default
    NullTextExtractor the row holds the NO_TEXT_PLACEHOLDER, which counts as no text,
    so chatting about such a report is a 400 ("Lab report text is required for chatting").
    """
    SessionGate.authorize_owner(caller.identity, body.userId)
    report = store.get_for_owner(report_id, body.userId)
    if report is None:
        raise NotFoundError("Lab report not found")
    answer = assembler.answer(report.grounding_text(), report.ai_analysis, body.question)
    return ChatResponse(
        reply=ChatTurn(role="assistant", content=format_ai_text(answer), timestamp=datetime.now(timezone.utc)),
    )


@router.post("/analyze/text", response_model=TextAnalysisResponse)
def analyze_lab_text(
    body: TextAnalysisRequest,
    caller: CallerContext = Depends(get_caller),
    engine: AnalysisEngine = Depends(get_analysis_engine),
):
    """Pasted lab values (optionally with parsed results) explained in plain language."""
    if not body.text.strip():
        raise ValidationError("Lab report text is required")
    log.info("analyze/text: user_id=%s chars=%d", caller.identity.id, len(body.text))
    analysis = engine.run_text_analysis(build_structured_analysis_prompt(body.text, body.structured_data))
    return TextAnalysisResponse(analysis=analysis)

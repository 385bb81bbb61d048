"""
Lab report ingestion: validate -> analyze the PDF -> (text fallback) -> persist.

AI failures never abort an upload: the report is still stored, with ai_analysis=None
and analysisStatus "failed". Store failures are fatal to the request.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from app.core.errors import AnalysisError, ValidationError
from app.models import LabReport
from app.services.analyze import PDF_MIME_TYPE, AnalysisEngine, DocumentAttachment
from app.services.prompts import (
    GENERIC_FALLBACK_TEXT,
    build_pdf_analysis_prompt,
    build_structured_analysis_prompt,
)
from app.services.report_store import ReportStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutcome:
    status: Literal["completed", "failed"]
    text: str | None = None
    cause: str | None = None

    @classmethod
    def completed(cls, text: str) -> "AnalysisOutcome":
        return cls(status="completed", text=text)

    @classmethod
    def failed(cls, cause: str) -> "AnalysisOutcome":
        return cls(status="failed", cause=cause)


class TextExtractor(Protocol):
    def extract(self, data: bytes, filename: str) -> str: ...


class NullTextExtractor:
    """No local extraction: document understanding is left to the model."""

    def extract(self, data: bytes, filename: str) -> str:
        return ""


@dataclass(frozen=True)
class UploadResult:
    report: LabReport
    outcome: AnalysisOutcome
    raw_text_length: int


def validate_pdf_upload(
    file_name: str,
    upload_filename: str | None,
    content_type: str | None,
    data: bytes,
    max_bytes: int,
) -> None:
    name = (upload_filename or file_name or "").lower()
    if (content_type or "").lower() != PDF_MIME_TYPE and not name.endswith(".pdf"):
        raise ValidationError("Only PDF files are supported")
    if not data:
        raise ValidationError("File is empty")
    if len(data) > max_bytes:
        raise ValidationError(f"File is too large (max {max_bytes // (1024 * 1024)} MB)")


class UploadOrchestrator:
    def __init__(
        self,
        engine: AnalysisEngine,
        store: ReportStore,
        extractor: TextExtractor | None = None,
    ) -> None:
        self.engine = engine
        self.store = store
        self.extractor = extractor or NullTextExtractor()

    def analyze(self, attachment: DocumentAttachment, extracted_text: str) -> AnalysisOutcome:
        """Primary document pass, then at most one text pass once the primary has settled."""
        outcome = self._primary(attachment)
        if outcome.status == "completed" or not extracted_text:
            return outcome
        return self._fallback(extracted_text, outcome)

    def _primary(self, attachment: DocumentAttachment) -> AnalysisOutcome:
        try:
            text = self.engine.run_document_analysis(build_pdf_analysis_prompt(attachment.filename), attachment)
        except AnalysisError as e:
            logger.exception("AI analysis error for %s: %s", attachment.filename, e)
            return AnalysisOutcome.failed(e.message)
        return AnalysisOutcome.completed(text)

    def _fallback(self, extracted_text: str, primary: AnalysisOutcome) -> AnalysisOutcome:
        logger.info("Document analysis failed (%s); trying text analysis", primary.cause)
        try:
            text = self.engine.run_text_analysis(
                build_structured_analysis_prompt(extracted_text.strip() or GENERIC_FALLBACK_TEXT)
            )
        except AnalysisError as e:
            logger.exception("Fallback AI analysis error: %s", e)
            return AnalysisOutcome.failed(e.message)
        return AnalysisOutcome.completed(text)

    def process(
        self,
        user_id: str,
        file_name: str,
        upload_filename: str | None,
        content_type: str | None,
        data: bytes,
        max_bytes: int,
    ) -> UploadResult:
        validate_pdf_upload(file_name, upload_filename, content_type, data, max_bytes)
        extracted_text = self.extractor.extract(data, file_name)
        attachment = DocumentAttachment(filename=file_name, data=data)
        outcome = self.analyze(attachment, extracted_text)
        report = self.store.insert(
            user_id=user_id,
            file_name=file_name,
            raw_text=extracted_text,
            ai_analysis=outcome.text if outcome.status == "completed" else None,
        )
        logger.info(
            "Lab report stored: id=%s user_id=%s analysis_status=%s",
            report.id,
            user_id,
            outcome.status,
        )
        return UploadResult(report=report, outcome=outcome, raw_text_length=len(extracted_text))

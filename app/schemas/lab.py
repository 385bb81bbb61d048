from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _as_utc(value: datetime) -> datetime:
    # SQLite returns stored timestamps without tzinfo; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class TestResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    value: str
    unit: str | None = None
    reference_range: str | None = None
    status: Literal["normal", "high", "low", "critical"] | None = None


class StructuredLabData(BaseModel):
    """Parsed test results; unknown keys are rejected at the request boundary."""

    model_config = ConfigDict(extra="forbid")

    test_type: str | None = None
    date: str | None = None
    patient_name: str | None = None
    test_results: list[TestResult] = Field(default_factory=list)


class LabReportSummary(BaseModel):
    id: str
    file_name: str
    ai_analysis: str | None = None
    uploaded_at: UtcDatetime
    rawTextLength: int = 0


class UploadResponse(BaseModel):
    success: bool = True
    analysisStatus: Literal["completed", "failed"]
    labReport: LabReportSummary


class LabReportItem(BaseModel):
    id: str
    user_id: str
    file_name: str
    raw_text: str
    structured_data: StructuredLabData | None = None
    ai_analysis: str | None = None
    uploaded_at: UtcDatetime


class LabReportListResponse(BaseModel):
    success: bool = True
    labReports: list[LabReportItem]


class ChatTurn(BaseModel):
    """One chat message; lives only for the duration of a chat session."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    userId: str
    question: str


class ChatResponse(BaseModel):
    success: bool = True
    reply: ChatTurn


class TextAnalysisRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    structured_data: StructuredLabData | None = None


class TextAnalysisResponse(BaseModel):
    success: bool = True
    analysis: str

from .auth import Token, UserCreate, UserLogin, UserResponse
from .lab import (
    ChatRequest,
    ChatResponse,
    ChatTurn,
    LabReportItem,
    LabReportListResponse,
    LabReportSummary,
    StructuredLabData,
    TestResult,
    TextAnalysisRequest,
    TextAnalysisResponse,
    UploadResponse,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ChatTurn",
    "LabReportItem",
    "LabReportListResponse",
    "LabReportSummary",
    "StructuredLabData",
    "TestResult",
    "TextAnalysisRequest",
    "TextAnalysisResponse",
    "Token",
    "UploadResponse",
    "UserCreate",
    "UserLogin",
    "UserResponse",
]

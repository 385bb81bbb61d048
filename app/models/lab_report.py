import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

# Stored when the upload produced no text (extraction is not wired in)
NO_TEXT_PLACEHOLDER = "No extractable text found"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LabReport(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    # Owner identity from the identity provider; no foreign key, hosted users live outside this database
    user_id: str = Field(index=True)
    file_name: str
    raw_text: str = NO_TEXT_PLACEHOLDER
    structured_data: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    ai_analysis: str | None = None  # null unless one analysis call completed
    uploaded_at: datetime = Field(default_factory=_utcnow, sa_type=DateTime(timezone=True), index=True)

    def grounding_text(self) -> str:
        """Raw text usable for chat; the placeholder counts as empty."""
        text = (self.raw_text or "").strip()
        return "" if text == NO_TEXT_PLACEHOLDER else self.raw_text

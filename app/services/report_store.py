"""Lab report persistence; every SQL failure surfaces as PersistenceError."""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from app.core.errors import PersistenceError
from app.models import NO_TEXT_PLACEHOLDER, LabReport

logger = logging.getLogger(__name__)


class ReportStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def insert(
        self,
        user_id: str,
        file_name: str,
        raw_text: str | None,
        ai_analysis: str | None,
        structured_data: dict[str, Any] | None = None,
    ) -> LabReport:
        report = LabReport(
            user_id=user_id,
            file_name=file_name,
            raw_text=raw_text or NO_TEXT_PLACEHOLDER,
            structured_data=structured_data,
            ai_analysis=ai_analysis,
            uploaded_at=datetime.now(timezone.utc),
        )
        try:
            self.db.add(report)
            self.db.commit()
            self.db.refresh(report)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database insertion error: %s", e)
            raise PersistenceError("Failed to save lab report metadata", details=str(e)) from e
        return report

    def list_for_owner(self, user_id: str) -> list[LabReport]:
        """Newest upload first."""
        stmt = (
            select(LabReport)
            .where(LabReport.user_id == user_id)
            .order_by(col(LabReport.uploaded_at).desc())
        )
        try:
            return list(self.db.exec(stmt).all())
        except SQLAlchemyError as e:
            logger.exception("Database error while listing lab reports: %s", e)
            raise PersistenceError("Failed to fetch lab reports", details=str(e)) from e

    def get_for_owner(self, report_id: str, user_id: str) -> LabReport | None:
        stmt = select(LabReport).where(LabReport.id == report_id, LabReport.user_id == user_id)
        try:
            return self.db.exec(stmt).first()
        except SQLAlchemyError as e:
            logger.exception("Database error while loading lab report %s: %s", report_id, e)
            raise PersistenceError("Failed to fetch lab report", details=str(e)) from e

    def delete_for_owner(self, report_id: str, user_id: str) -> bool:
        try:
            report = self.get_for_owner(report_id, user_id)
            if report is None:
                return False
            self.db.delete(report)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database error while deleting lab report %s: %s", report_id, e)
            raise PersistenceError("Failed to delete lab report", details=str(e)) from e
        return True

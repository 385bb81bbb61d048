from .lab_report import NO_TEXT_PLACEHOLDER, LabReport
from .user import User

__all__ = [
    "LabReport",
    "NO_TEXT_PLACEHOLDER",
    "User",
]

"""Pytest fixtures: test client, in-memory SQLite, fake OpenAI client, users with tokens."""
import os
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

# Must be set before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy")
os.environ.setdefault("AUTH_PROVIDER", "local")

from sqlmodel import Session, select  # noqa: E402

from app.api.deps import get_analysis_engine  # noqa: E402
from app.core.database import engine  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models import LabReport, User  # noqa: E402
from app.services.analyze import AnalysisEngine  # noqa: E402


class FakeCompletions:
    """Stands in for client.chat.completions; queued items are returned or raised in order."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.queue: list = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.queue.pop(0) if self.queue else "Hello, here is your explanation."
        if isinstance(item, Exception):
            raise item
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=item))],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=34),
        )


class FakeOpenAI:
    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def analysis_engine(fake_openai):
    return AnalysisEngine(fake_openai, model="test-model", document_timeout=90.0, text_timeout=30.0)


@pytest.fixture(scope="function")
def client(analysis_engine):
    """TestClient; the lifespan creates the in-memory tables, the model client is faked."""
    app.dependency_overrides[get_analysis_engine] = lambda: analysis_engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Creates a user row and returns it with ready-made Authorization headers."""

    def _make(email: str | None = None):
        user = User(email=email or f"{uuid.uuid4().hex[:10]}@example.com", hashed_password="unused", full_name="Test")
        with Session(engine) as db:
            db.add(user)
            db.commit()
            db.refresh(user)
        token = create_access_token(user.id)
        return SimpleNamespace(
            id=user.id,
            email=user.email,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def reports_of():
    """Stored lab reports for one owner."""

    def _rows(user_id: str) -> list[LabReport]:
        with Session(engine) as db:
            return list(db.exec(select(LabReport).where(LabReport.user_id == user_id)).all())

    return _rows


@pytest.fixture
def add_report():
    def _add(user_id: str, **fields) -> LabReport:
        fields.setdefault("file_name", "cbc.pdf")
        report = LabReport(user_id=user_id, **fields)
        with Session(engine) as db:
            db.add(report)
            db.commit()
            db.refresh(report)
        return report

    return _add

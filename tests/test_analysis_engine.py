"""AnalysisEngine against a fake OpenAI client."""
import base64

import httpx
import pytest
from openai import APIConnectionError, APITimeoutError, OpenAIError

from app.core.config import Settings
from app.core.errors import AnalysisError, ConfigurationError
from app.services.analyze import AnalysisEngine, DocumentAttachment, build_analysis_engine

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def test_text_analysis_returns_sanitized_text(analysis_engine, fake_openai):
    fake_openai.completions.queue.append("## Hi\n**Glucose** is fine.")
    assert analysis_engine.run_text_analysis("prompt") == "Hi\nGlucose is fine."
    call = fake_openai.completions.calls[0]
    assert call["model"] == "test-model"
    assert call["timeout"] == 30.0
    assert call["messages"] == [{"role": "user", "content": "prompt"}]


def test_text_analysis_timeout_override(analysis_engine, fake_openai):
    analysis_engine.run_text_analysis("prompt", timeout=5.0)
    assert fake_openai.completions.calls[0]["timeout"] == 5.0


def test_document_analysis_sends_pdf_attachment(analysis_engine, fake_openai):
    attachment = DocumentAttachment(filename="cbc.pdf", data=b"%PDF-1.4\n%")
    analysis_engine.run_document_analysis("read it", attachment)
    call = fake_openai.completions.calls[0]
    assert call["timeout"] == 90.0
    text_part, file_part = call["messages"][0]["content"]
    assert text_part == {"type": "text", "text": "read it"}
    assert file_part["type"] == "file"
    assert file_part["file"]["filename"] == "cbc.pdf"
    expected = base64.standard_b64encode(b"%PDF-1.4\n%").decode()
    assert file_part["file"]["file_data"] == f"data:application/pdf;base64,{expected}"


@pytest.mark.parametrize(
    "error",
    [
        APIConnectionError(request=_REQUEST),
        APITimeoutError(request=_REQUEST),
        OpenAIError("boom"),
    ],
)
def test_model_errors_become_analysis_error(analysis_engine, fake_openai, error):
    fake_openai.completions.queue.append(error)
    with pytest.raises(AnalysisError):
        analysis_engine.run_text_analysis("prompt")


@pytest.mark.parametrize("content", ["", "   ", "***"])
def test_empty_output_is_analysis_error(analysis_engine, fake_openai, content):
    fake_openai.completions.queue.append(content)
    with pytest.raises(AnalysisError):
        analysis_engine.run_document_analysis("p", DocumentAttachment(filename="a.pdf", data=b"x"))


def test_missing_client_is_analysis_error():
    engine = AnalysisEngine(None)
    assert not engine.ready
    with pytest.raises(AnalysisError):
        engine.run_text_analysis("prompt")


def test_build_engine_requires_api_key():
    with pytest.raises(ConfigurationError):
        build_analysis_engine(Settings(openai_api_key=""))
    with pytest.raises(ConfigurationError):
        build_analysis_engine(Settings(openai_api_key="not-a-key"))


def test_build_engine_uses_settings():
    engine = build_analysis_engine(
        Settings(openai_api_key="sk-test", openai_model="gpt-test", document_analysis_timeout=99, text_analysis_timeout=11)
    )
    assert engine.ready
    assert engine.model == "gpt-test"
    assert engine.document_timeout == 99
    assert engine.text_timeout == 11

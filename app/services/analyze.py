import base64
import logging
from dataclasses import dataclass

from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError

from app.core.config import OPENAI_KEY_PREFIX, Settings
from app.core.errors import AnalysisError, ConfigurationError
from app.services.text_format import clean_markdown

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class DocumentAttachment:
    """Binary document sent next to the prompt (mime type fixed, content base64)."""

    filename: str
    data: bytes
    mime_type: str = PDF_MIME_TYPE

    def as_base64(self) -> str:
        return base64.standard_b64encode(self.data).decode("utf-8")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.as_base64()}"

    def content_part(self) -> dict:
        return {
            "type": "file",
            "file": {"filename": self.filename, "file_data": self.data_url()},
        }


class AnalysisEngine:
    """
    Calls the generative model and returns sanitized text.

    The OpenAI client is built once at startup and handed in; nothing here retries.
    Callers decide on fallbacks (see app/services/upload.py).
    """

    def __init__(
        self,
        client: OpenAI | None,
        model: str = "gpt-4o-mini",
        document_timeout: float = 120.0,
        text_timeout: float = 45.0,
    ) -> None:
        self._client = client
        self.model = model
        self.document_timeout = document_timeout
        self.text_timeout = text_timeout

    @property
    def ready(self) -> bool:
        return self._client is not None

    def run_text_analysis(self, prompt: str, timeout: float | None = None) -> str:
        messages = [{"role": "user", "content": prompt}]
        return self._complete(messages, timeout or self.text_timeout, "text")

    def run_document_analysis(self, prompt: str, attachment: DocumentAttachment) -> str:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    attachment.content_part(),
                ],
            }
        ]
        return self._complete(messages, self.document_timeout, "document")

    def _complete(self, messages: list[dict], timeout: float, kind: str) -> str:
        if self._client is None:
            raise AnalysisError("AI client is not initialized.")
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                timeout=timeout,
            )
        except APITimeoutError as e:
            logger.warning("OpenAI %s analysis timed out after %.0fs", kind, timeout)
            raise AnalysisError("AI analysis timed out.", details=str(e)) from e
        except APIConnectionError as e:
            logger.warning("OpenAI %s analysis connection error: %s", kind, e)
            raise AnalysisError("AI service is unreachable.", details=str(e)) from e
        except OpenAIError as e:
            logger.exception("OpenAI API error in %s analysis: %s", kind, e)
            raise AnalysisError("AI service error.", details=str(e)) from e

        content = ""
        choices = getattr(response, "choices", None) or []
        if choices:
            content = choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(
                "OpenAI %s analysis usage: prompt_tokens=%s completion_tokens=%s",
                kind,
                getattr(usage, "prompt_tokens", 0) or 0,
                getattr(usage, "completion_tokens", 0) or 0,
            )
        text = clean_markdown(content)
        if not text:
            raise AnalysisError("AI returned an empty response.")
        return text


def build_analysis_engine(settings: Settings) -> AnalysisEngine:
    """Startup-only: a missing key is a configuration error, not a per-request failure."""
    key = (settings.openai_api_key or "").strip()
    if not key.startswith(OPENAI_KEY_PREFIX):
        raise ConfigurationError(
            "OPENAI_API_KEY is missing or invalid. Add OPENAI_API_KEY=sk-... to .env."
        )
    client = OpenAI(api_key=key)
    return AnalysisEngine(
        client,
        model=settings.openai_model,
        document_timeout=settings.document_analysis_timeout,
        text_timeout=settings.text_analysis_timeout,
    )

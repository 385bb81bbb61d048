import logging

from app.core.errors import ValidationError
from app.services.analyze import AnalysisEngine
from app.services.prompts import DEFAULT_CHAT_CONTEXT_CHARS, build_chat_prompt

logger = logging.getLogger(__name__)


class ChatContextAssembler:
    """Answers follow-up questions grounded in a report's raw text."""

    def __init__(self, engine: AnalysisEngine, max_chars: int = DEFAULT_CHAT_CONTEXT_CHARS) -> None:
        self.engine = engine
        self.max_chars = max_chars

    def answer(self, raw_text: str | None, prior_analysis: str | None, question: str | None) -> str:
        if not raw_text or not raw_text.strip():
            raise ValidationError("Lab report text is required for chatting")
        if not question or not question.strip():
            raise ValidationError("Question is required")
        if len(raw_text) > self.max_chars:
            logger.info("Chat grounding text truncated: %d -> %d chars", len(raw_text), self.max_chars)
        prompt = build_chat_prompt(raw_text, prior_analysis, question, max_chars=self.max_chars)
        # AnalysisError propagates: a chat answer has no stored result to fall back to
        return self.engine.run_text_analysis(prompt)

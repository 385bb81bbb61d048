"""
Prompt templates for lab report analysis and follow-up chat.

Every prompt carries the same task and formatting contract so the answers come back
as plain text with a friendly opening and a reminder to consult a clinician, which
the UI shows verbatim.
"""
from app.schemas.lab import StructuredLabData

DEFAULT_CHAT_CONTEXT_CHARS = 50000
TRUNCATION_NOTICE = "[... text truncated for length ...]"

# Used by the text fallback when the extraction step yields nothing
GENERIC_FALLBACK_TEXT = "This is a medical lab report. Provide a general explanation of lab results."

FORMATTING_CONTRACT = """IMPORTANT FORMATTING:
- do not use markdown formatting (no asterisks, hashtags or backticks).
- use plain text only.
- use line breaks and bullet points for readability.
- keep formatting clean and readable.
- start with a friendly greeting.
- end with a reminder to consult their healthcare provider.
- always address the patient in a friendly and reassuring tone."""

STRUCTURED_TASKS = """TASKS:
1. summarize the overall lab report in simple, reassuring language.
2. call out any abnormal values (high/low/critical) and explain in plain language what they might mean in broad terms.
3. for each abnormal value, explain what it typically indicates (in general terms, not a specific diagnosis).
4. suggest 3-5 concrete follow-up questions the patient could ask their clinician.
5. use short paragraphs and bullet points for clarity.
6. do not give any treatment plans, prescriptions, or specific medical advice.
7. always remind the patient to consult with their healthcare provider for personalized interpretation and advice."""

PDF_TASKS = """TASKS:
1. carefully read the entire attached lab report document, including any tables and reference ranges.
2. summarize the overall picture in simple, reassuring language.
3. call out any abnormal values (high/low/critical) and explain in plain language what they might mean in broad terms.
4. group results into categories (e.g. blood count, metabolic panel, lipid profile) when possible for clarity.
5. suggest 3-5 concrete follow-up questions the patient could ask their clinician.
6. do not give any treatment plans, prescriptions, or specific medical advice.
7. always remind the patient to consult with their healthcare provider for personalized interpretation and advice."""

CHAT_INSTRUCTIONS = """CRITICAL INSTRUCTIONS:
1. you have the complete raw text of the lab report available above. refer to it directly to ensure accuracy.
2. if an analysis summary is provided, you can reference it, but always verify details against the raw text.
3. DO NOT say you don't have access to the lab report data - you have the complete raw text available.
4. reference specific values, test names, reference ranges and findings from the raw text when answering.
5. use a friendly and reassuring tone.
6. do not give any treatment plans, prescriptions, or specific medical advice.
7. always end by reminding the patient to consult with their healthcare provider for personalized interpretation and advice."""


def _na(value: str | None) -> str:
    return value.strip() if value and value.strip() else "N/A"


def _render_structured_data(data: StructuredLabData) -> str:
    lines = [
        "EXTRACTED STRUCTURED DATA:",
        f"- Test Type: {_na(data.test_type)}",
        f"- Patient Name: {_na(data.patient_name)}",
        f"- Date: {_na(data.date)}",
        "- Test Results:",
    ]
    if not data.test_results:
        lines.append("  N/A")
    for result in data.test_results:
        value = f"{result.value} {result.unit}" if result.unit else result.value
        lines.append(
            f"  - {result.name}: {value} "
            f"(Reference Range: {_na(result.reference_range)}, Status: {result.status or 'N/A'})"
        )
    return "\n".join(lines)


def build_structured_analysis_prompt(raw_text: str, structured_data: StructuredLabData | None = None) -> str:
    prompt = (
        "You are a medical AI assistant. Analyze the following lab report text and explain it to the patient "
        "in clear, simple language.\n\n"
        f"RAW LAB REPORT TEXT:\n{raw_text}\n"
    )
    if structured_data is not None:
        prompt += (
            f"\n{STRUCTURED_TASKS}\n\n"
            f"{FORMATTING_CONTRACT}\n\n"
            f"{_render_structured_data(structured_data)}\n"
        )
    return prompt


def build_pdf_analysis_prompt(filename: str | None) -> str:
    """Text part of a document analysis call; the PDF itself travels as an attachment."""
    return (
        "You are a medical AI assistant. Analyze the lab report provided as the attached PDF document.\n\n"
        f"FILE NAME: {_na(filename) if filename else 'lab report pdf'}\n\n"
        f"{PDF_TASKS}\n\n"
        f"{FORMATTING_CONTRACT}\n"
    )


def bound_grounding_text(raw_text: str, max_chars: int = DEFAULT_CHAT_CONTEXT_CHARS) -> str:
    """First max_chars characters of raw_text, plus the truncation notice only when cut."""
    if len(raw_text) <= max_chars:
        return raw_text
    return raw_text[:max_chars] + "\n\n" + TRUNCATION_NOTICE


def build_chat_prompt(
    raw_text: str,
    prior_analysis: str | None,
    question: str,
    max_chars: int = DEFAULT_CHAT_CONTEXT_CHARS,
) -> str:
    prompt = (
        "You are a helpful medical AI assistant. You have access to the COMPLETE RAW TEXT from the user's lab "
        "report. Use the provided lab report text and analysis to answer the patient's question accurately "
        "and clearly.\n\n"
        "=== RAW LAB REPORT TEXT (COMPLETE) ===\n"
        f"{bound_grounding_text(raw_text, max_chars)}\n"
        "=== END OF LAB REPORT TEXT ===\n"
    )
    if prior_analysis and prior_analysis.strip():
        prompt += (
            "\n=== PREVIOUS AI ANALYSIS SUMMARY ===\n"
            f"{prior_analysis.strip()}\n"
            "=== END OF ANALYSIS ===\n"
        )
    prompt += (
        "\nThe patient is now asking a follow-up question about their lab results.\n\n"
        f"PATIENT'S QUESTION:\n{question.strip()}\n\n"
        f"{CHAT_INSTRUCTIONS}\n\n"
        f"{FORMATTING_CONTRACT}\n"
    )
    return prompt

"""Prompt templates: analysis contract, PDF prompt, chat grounding window."""
from app.schemas.lab import StructuredLabData
from app.services.prompts import (
    TRUNCATION_NOTICE,
    build_chat_prompt,
    build_pdf_analysis_prompt,
    build_structured_analysis_prompt,
)


def _cbc() -> StructuredLabData:
    return StructuredLabData.model_validate(
        {
            "test_type": "Complete Blood Count",
            "date": "2024-01-15",
            "test_results": [
                {"name": "Hemoglobin", "value": "14.2", "unit": "g/dL", "reference_range": "13.0 - 17.0", "status": "normal"},
                {"name": "LDL Cholesterol", "value": "125", "status": "high"},
            ],
        }
    )


def test_structured_prompt_without_data_only_embeds_text():
    prompt = build_structured_analysis_prompt("Hemoglobin 14.2 g/dL")
    assert "Hemoglobin 14.2 g/dL" in prompt
    assert "TASKS:" not in prompt
    assert "IMPORTANT FORMATTING:" not in prompt


def test_structured_prompt_with_data_appends_tasks_and_results():
    prompt = build_structured_analysis_prompt("raw cbc text", _cbc())
    assert "raw cbc text" in prompt
    assert "TASKS:" in prompt
    assert "3-5" in prompt
    assert "do not use markdown formatting" in prompt
    assert "start with a friendly greeting" in prompt
    assert "- Test Type: Complete Blood Count" in prompt
    assert "- Patient Name: N/A" in prompt
    assert "  - Hemoglobin: 14.2 g/dL (Reference Range: 13.0 - 17.0, Status: normal)" in prompt
    assert "  - LDL Cholesterol: 125 (Reference Range: N/A, Status: high)" in prompt


def test_structured_prompt_with_empty_results():
    prompt = build_structured_analysis_prompt("text", StructuredLabData())
    assert "- Test Results:\n  N/A" in prompt


def test_pdf_prompt_mentions_file_and_contract():
    prompt = build_pdf_analysis_prompt("lipid-panel.pdf")
    assert "FILE NAME: lipid-panel.pdf" in prompt
    assert "attached PDF document" in prompt
    assert "3-5" in prompt
    assert "end with a reminder to consult their healthcare provider" in prompt


def test_pdf_prompt_default_name():
    assert "FILE NAME: lab report pdf" in build_pdf_analysis_prompt("")


def test_chat_prompt_under_cap_embeds_text_verbatim():
    raw = "x" * 100
    prompt = build_chat_prompt(raw, None, "Is this ok?", max_chars=100)
    assert raw in prompt
    assert TRUNCATION_NOTICE not in prompt


def test_chat_prompt_over_cap_is_truncated_with_notice():
    raw = "a" * 50 + "b" * 50
    prompt = build_chat_prompt(raw, None, "Is this ok?", max_chars=60)
    assert raw[:60] + "\n\n" + TRUNCATION_NOTICE in prompt
    assert raw[:61] not in prompt


def test_chat_prompt_includes_analysis_only_when_present():
    with_analysis = build_chat_prompt("raw", "Your LDL is slightly high.", "What about LDL?")
    assert "PREVIOUS AI ANALYSIS SUMMARY" in with_analysis
    assert "Your LDL is slightly high." in with_analysis
    assert "PREVIOUS AI ANALYSIS SUMMARY" not in build_chat_prompt("raw", "   ", "q")
    assert "PREVIOUS AI ANALYSIS SUMMARY" not in build_chat_prompt("raw", None, "q")


def test_chat_prompt_grounding_instructions():
    prompt = build_chat_prompt("Glucose 95 mg/dL", None, "  Is my glucose fine?  ")
    assert "PATIENT'S QUESTION:\nIs my glucose fine?" in prompt
    assert "DO NOT say you don't have access to the lab report data" in prompt
    assert "do not give any treatment plans" in prompt
    assert "consult with their healthcare provider" in prompt

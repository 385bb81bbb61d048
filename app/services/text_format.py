"""
Cleans markdown artifacts out of model output so the UI can show it verbatim.

Rules run in a fixed order (headers, emphasis, code, quotes, horizontal rules,
lists, links, tags, whitespace). Order matters: "**# text**" must lose its emphasis
markers before the header rule can see the "#". The whole chain is re-applied until
the text stops changing, so clean_markdown(clean_markdown(x)) == clean_markdown(x).
"""
import re

BULLET = "•"

_Rule = tuple[re.Pattern[str], str]

_RULES: list[tuple[str, list[_Rule]]] = [
    ("headers", [
        (re.compile(r"^[ \t]*#{1,6}(?:[ \t]+|$)", re.M), ""),
    ]),
    ("emphasis", [
        (re.compile(r"\*\*(?=[^\s*])(.+?)(?<=[^\s*])\*\*"), r"\1"),
        (re.compile(r"(?<!\w)__(?=[^\s_])(.+?)(?<=[^\s_])__(?!\w)"), r"\1"),
        (re.compile(r"\*(?=[^\s*])(.+?)(?<=[^\s*])\*"), r"\1"),
        (re.compile(r"(?<!\w)_(?=[^\s_])(.+?)(?<=[^\s_])_(?!\w)"), r"\1"),
        (re.compile(r"~~(?=\S)(.+?)(?<=\S)~~"), r"\1"),
        (re.compile(r"<u>(.*?)</u>", re.I), r"\1"),
    ]),
    ("code", [
        (re.compile(r"^[ \t]*(?:```|~~~).*$", re.M), ""),
        (re.compile(r"`([^`\n]+)`"), r"\1"),
    ]),
    ("quotes", [
        (re.compile(r"^[ \t]*>[ \t]?", re.M), ""),
    ]),
    ("rules", [
        (re.compile(r"^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$", re.M), ""),
    ]),
    ("lists", [
        (re.compile(r"^[ \t]*[-*+][ \t]+", re.M), BULLET + " "),
        (re.compile(r"^[ \t]*\d{1,3}[.)][ \t]+", re.M), BULLET + " "),
    ]),
    ("links", [
        (re.compile(r"!\[[^\]]*\]\([^)]*\)"), ""),
        (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    ]),
    ("tags", [
        # A letter must follow "<" so reference ranges like "< 200" survive
        (re.compile(r"</?[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>"), ""),
    ]),
    ("whitespace", [
        (re.compile(r"[ \t]{2,}"), " "),
        (re.compile(r"[ \t]+$", re.M), ""),
        (re.compile(r"\n{3,}"), "\n\n"),
    ]),
]


def _apply_rules(text: str) -> str:
    for _name, rules in _RULES:
        for pattern, replacement in rules:
            text = pattern.sub(replacement, text)
    return text.strip()


def clean_markdown(text: str | None) -> str:
    """Strips markdown/HTML formatting from AI output; idempotent."""
    if not text:
        return ""
    current = text.replace("\r\n", "\n").replace("\r", "\n")
    while True:
        cleaned = _apply_rules(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def format_ai_text(text: str | None) -> str:
    """Display variant: every bullet starts on its own line."""
    cleaned = clean_markdown(text)
    if not cleaned:
        return ""
    cleaned = re.sub(rf"\s*{BULLET}[ \t]*", f"\n{BULLET} ", cleaned)
    return cleaned.strip()

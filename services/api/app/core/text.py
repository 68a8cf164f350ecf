import re
from typing import Optional


def clean_md(text: Optional[str]) -> str:
    """
    Sanitize markdown artifacts from model text.
    Removes:
    - Leading headers (#, ##)
    - Bold markers (**, __)
    - Leading bullets (-, *)
    - Wrapping quotes
    """
    if not text:
        return ""

    # Remove bolding (**text** -> text)
    text = re.sub(r"(\*\*|__)(.*?)\1", r"\2", text)

    # Remove leading headers (# Title -> Title)
    text = re.sub(r"^\s*#+\s+", "", text)

    # Remove leading bullets (- Item -> Item)
    text = re.sub(r"^\s*[-*•]\s+", "", text)

    return text.strip().strip('"').strip()


def clamp(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[:length - 1].rstrip() + "…"


def normalize_term(term: str) -> str:
    """Lowercase, trimmed, crude singular form used for ingredient matching."""
    t = (term or "").strip().lower()
    if len(t) > 3 and t.endswith("ies"):
        return t[:-3] + "y"
    if len(t) > 3 and t.endswith("s") and not t.endswith("ss"):
        return t[:-1]
    return t

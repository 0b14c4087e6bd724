"""Text clean-up shared by the transcription and translation wrappers."""

from __future__ import annotations

import re

_PARA_SPLIT = re.compile(r"\n\s*\n")
_SPACE_COLLAPSE = re.compile(r"\s+")
_WRAPPING_QUOTES = ('"', "“”")


def normalize_text(text: str | None) -> str:
    """Collapse runs of whitespace while keeping blank-line paragraph breaks."""

    if not text or not text.strip():
        return ""
    paragraphs = (_SPACE_COLLAPSE.sub(" ", block).strip() for block in _PARA_SPLIT.split(text.strip()))
    return "\n\n".join(p for p in paragraphs if p)


def strip_wrapping_quotes(text: str) -> str:
    """Drop one pair of quotes a chat model put around its whole answer."""

    for pair in _WRAPPING_QUOTES:
        opening, closing = (pair, pair) if len(pair) == 1 else (pair[0], pair[1])
        if len(text) >= 2 and text.startswith(opening) and text.endswith(closing):
            return text[1:-1].strip()
    return text


__all__ = ["normalize_text", "strip_wrapping_quotes"]

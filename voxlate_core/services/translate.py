"""Translation wrapper around the hosted chat-completion endpoint."""

from __future__ import annotations

import logging
from typing import Any, Final

from ..config import DEFAULT_API_BASE_URL
from ..languages import language_name
from ._client import get_openai_client
from .text_utils import normalize_text, strip_wrapping_quotes

LOGGER = logging.getLogger(__name__)

TRANSLATE_MODEL: Final[str] = "llama-3.3-70b-versatile"
CHAT_TEMPERATURE: Final[float] = 0.3
NO_SPEECH_MARKER: Final[str] = "[No speech detected - please try recording again]"
SYSTEM_PROMPT_TEMPLATE: Final[str] = (
    "You are a translator. Translate the following text to {target} if it's not already in {target}. "
    "If it's already in {target}, return it as is. "
    "Just return the translated text without any additional comments. "
    "Don't mention anything about the language of the text. "
    "If the text is not meaningful speech, return exactly: " + NO_SPEECH_MARKER
)


def build_instruction(target_lang: str = "en") -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(target=language_name(target_lang))


class TranslationClient:
    """Translate a whole transcript with a single chat request."""

    def __init__(
        self,
        model: str = TRANSLATE_MODEL,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 60.0,
        temperature: float = CHAT_TEMPERATURE,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.temperature = temperature
        self._client = client

    def translate(self, text: str, target_lang: str = "en") -> str:
        """Return *text* translated into *target_lang*, or the no-speech marker."""

        client = self._client or get_openai_client(self.base_url, self.timeout)
        LOGGER.info("Translating %d chars to %s (model=%s)", len(text), target_lang, self.model)
        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": build_instruction(target_lang)},
                {"role": "user", "content": text},
            ],
            temperature=self.temperature,
        )
        content = getattr(response.choices[0].message, "content", None) or ""
        LOGGER.debug("Received translation response (%d chars)", len(content))
        return strip_wrapping_quotes(normalize_text(content))


__all__ = [
    "CHAT_TEMPERATURE",
    "NO_SPEECH_MARKER",
    "TRANSLATE_MODEL",
    "TranslationClient",
    "build_instruction",
]

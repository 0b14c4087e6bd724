"""Speech-to-text wrapper around the hosted Whisper endpoint."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Final

from ..config import DEFAULT_API_BASE_URL
from ._client import get_openai_client
from .text_utils import normalize_text

LOGGER = logging.getLogger(__name__)

TRANSCRIBE_MODEL: Final[str] = "whisper-large-v3"


class TranscriptionClient:
    """Send a readable audio stream upstream and return the recognised text.

    An empty string is a valid result; callers decide whether it is an error.
    """

    def __init__(
        self,
        model: str = TRANSCRIBE_MODEL,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 60.0,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def transcribe(self, audio: BinaryIO) -> str:
        client = self._client or get_openai_client(self.base_url, self.timeout)
        LOGGER.info("Sending transcription request (model=%s)", self.model)
        response = client.audio.transcriptions.create(file=audio, model=self.model)
        text = getattr(response, "text", None)
        if text is None and isinstance(response, dict):
            text = response.get("text")
        LOGGER.debug("Received transcription response (%d chars)", len(text or ""))
        return normalize_text(text)


__all__ = ["TRANSCRIBE_MODEL", "TranscriptionClient"]

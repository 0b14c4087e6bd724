"""Upstream service wrappers used by the request pipeline."""

from .stt import TRANSCRIBE_MODEL, TranscriptionClient
from .translate import NO_SPEECH_MARKER, TRANSLATE_MODEL, TranslationClient, build_instruction

__all__ = [
    "NO_SPEECH_MARKER",
    "TRANSCRIBE_MODEL",
    "TRANSLATE_MODEL",
    "TranscriptionClient",
    "TranslationClient",
    "build_instruction",
]

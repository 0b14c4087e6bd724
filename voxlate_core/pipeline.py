"""Per-request orchestration: admission, staging, transcription, translation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Any, Final, Mapping

from .config import DEFAULT_MAX_UPLOAD_BYTES, Settings
from .languages import is_valid_language_code
from .rate_limit import FixedWindowRateLimiter
from .services import TranscriptionClient, TranslationClient
from .staging import DEFAULT_SUFFIX, AudioStager

LOGGER = logging.getLogger(__name__)

UNKNOWN_CLIENT: Final[str] = "unknown"

# MIME type -> staged file extension
ALLOWED_AUDIO_TYPES: Final[dict[str, str]] = {
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/mp4": ".m4a",
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/flac": ".flac",
}
_GENERIC_MIME_TYPES: Final[set[str]] = {"", "application/octet-stream"}
_EXTENSION_TO_MIME: Final[dict[str, str]] = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
}


class FailureKind(Enum):
    """Error exits of the pipeline with their machine code and HTTP status."""

    BAD_REQUEST = ("bad_request", 400)
    RATE_LIMITED = ("rate_limited", 429)
    UPSTREAM_EMPTY = ("upstream_empty", 400)
    INTERNAL = ("internal", 500)

    def __init__(self, code: str, status: int) -> None:
        self.code = code
        self.status = status


class PipelineState(Enum):
    RECEIVED = "received"
    RATE_CHECKED = "rate_checked"
    STAGED = "staged"
    TRANSCRIBED = "transcribed"
    TRANSLATED = "translated"
    RESPONDED = "responded"


class PipelineError(RuntimeError):
    """Raised when a request ends in a ``Failed`` state."""

    def __init__(self, kind: FailureKind, message: str, *, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.retry_after = retry_after

    @property
    def status(self) -> int:
        return self.kind.status


@dataclass(frozen=True, slots=True)
class Segment:
    start: float
    end: float
    original_text: str
    translated_text: str

    def to_mapping(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "originalText": self.original_text,
            "translatedText": self.translated_text,
        }


@dataclass(frozen=True, slots=True)
class AudioUpload:
    """Raw bytes of an uploaded clip plus what the client said about them."""

    data: bytes
    filename: str | None = None
    mimetype: str | None = None


def client_key_from_headers(headers: Mapping[str, str]) -> str:
    """Identify the caller from proxy headers; values are trusted as given."""

    forwarded = (headers.get("x-forwarded-for") or "").strip()
    if forwarded:
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    return real_ip or UNKNOWN_CLIENT


def normalize_mime_type(value: Any) -> str:
    mimetype = str(value or "").strip().lower()
    if ";" in mimetype:
        mimetype = mimetype.split(";", 1)[0].strip()
    return mimetype


class RequestPipeline:
    """Run one upload through admission, staging and both upstream services.

    The staged file is released on every exit path once it has been created.
    Every failure leaves :meth:`run` as a :class:`PipelineError`.
    """

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        stager: AudioStager,
        transcriber: TranscriptionClient,
        translator: TranslationClient,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        default_target_language: str = "en",
    ) -> None:
        self.rate_limiter = rate_limiter
        self.stager = stager
        self.transcriber = transcriber
        self.translator = translator
        self.max_upload_bytes = max_upload_bytes
        self.default_target_language = default_target_language

    @classmethod
    def from_settings(cls, settings: Settings) -> "RequestPipeline":
        return cls(
            FixedWindowRateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
            ),
            AudioStager(settings.staging_dir),
            TranscriptionClient(
                model=settings.transcribe_model,
                base_url=settings.api_base_url,
                timeout=settings.upstream_timeout_seconds,
            ),
            TranslationClient(
                model=settings.translate_model,
                base_url=settings.api_base_url,
                timeout=settings.upstream_timeout_seconds,
            ),
            max_upload_bytes=settings.max_upload_bytes,
            default_target_language=settings.default_target_language,
        )

    def run(
        self,
        client_key: str,
        upload: AudioUpload | None,
        target_lang: str | None = None,
    ) -> list[Segment]:
        self.admit(client_key)
        return self.process(client_key, upload, target_lang)

    def admit(self, client_key: str) -> None:
        """Charge one request to *client_key* or fail with ``RATE_LIMITED``.

        Callers that read the request body themselves must call this first.
        """
        if not self.rate_limiter.check_and_record(client_key):
            raise PipelineError(
                FailureKind.RATE_LIMITED,
                "Too many requests, please try again later",
                retry_after=self.rate_limiter.retry_after(client_key),
            )

    def process(
        self,
        client_key: str,
        upload: AudioUpload | None,
        target_lang: str | None = None,
    ) -> list[Segment]:
        """Handle an already admitted request from validation to response."""
        state = PipelineState.RATE_CHECKED
        try:
            suffix = self._validate_upload(upload)
            target = self._resolve_target(target_lang)

            with self.stager.staged(upload.data, suffix) as staged:  # type: ignore[union-attr]
                state = PipelineState.STAGED
                with staged.open() as audio:
                    original = self.transcriber.transcribe(audio)
                if not original:
                    raise PipelineError(FailureKind.UPSTREAM_EMPTY, "No text found in transcription")
                state = PipelineState.TRANSCRIBED

                translated = self.translator.translate(original, target)
                state = PipelineState.TRANSLATED

            segments = [Segment(start=0.0, end=0.0, original_text=original, translated_text=translated)]
            state = PipelineState.RESPONDED
            LOGGER.info("Completed request for %s (%d chars, target=%s)", client_key, len(original), target)
            return segments
        except PipelineError as exc:
            LOGGER.info("Request for %s failed in state %s: %s", client_key, state.value, exc.kind.code)
            raise
        except Exception as exc:
            LOGGER.exception("Unexpected failure in state %s for %s", state.value, client_key)
            raise PipelineError(FailureKind.INTERNAL, "Error processing transcription/translation") from exc

    def _validate_upload(self, upload: AudioUpload | None) -> str:
        if upload is None or not upload.data:
            raise PipelineError(FailureKind.BAD_REQUEST, "No file provided")
        if len(upload.data) > self.max_upload_bytes:
            raise PipelineError(
                FailureKind.BAD_REQUEST,
                f"File too large: limit is {self.max_upload_bytes // (1024 * 1024)} MB",
            )
        mimetype = normalize_mime_type(upload.mimetype)
        extension = PurePath(upload.filename or "").suffix.lower()
        if mimetype in _GENERIC_MIME_TYPES:
            mimetype = _EXTENSION_TO_MIME.get(extension, mimetype)
        if mimetype not in ALLOWED_AUDIO_TYPES:
            raise PipelineError(FailureKind.BAD_REQUEST, f"Unsupported audio type: {mimetype or 'unknown'}")
        return ALLOWED_AUDIO_TYPES.get(mimetype, DEFAULT_SUFFIX)

    def _resolve_target(self, target_lang: str | None) -> str:
        code = (target_lang or "").strip().lower() or self.default_target_language
        if not is_valid_language_code(code):
            raise PipelineError(FailureKind.BAD_REQUEST, f"Unsupported target language: {code}")
        return code


__all__ = [
    "ALLOWED_AUDIO_TYPES",
    "AudioUpload",
    "FailureKind",
    "PipelineError",
    "PipelineState",
    "RequestPipeline",
    "Segment",
    "UNKNOWN_CLIENT",
    "client_key_from_headers",
    "normalize_mime_type",
]

from __future__ import annotations

import pytest

from voxlate_core.pipeline import (
    AudioUpload,
    FailureKind,
    PipelineError,
    RequestPipeline,
    Segment,
    client_key_from_headers,
    normalize_mime_type,
)
from voxlate_core.rate_limit import FixedWindowRateLimiter


def upload(data=b"RIFFdata", filename="clip.wav", mimetype="audio/wav"):
    return AudioUpload(data=data, filename=filename, mimetype=mimetype)


def test_successful_run_returns_single_segment(pipeline, transcriber, translator, stager):
    segments = pipeline.run("1.1.1.1", upload())

    assert segments == [Segment(0.0, 0.0, "Bonjour le monde", "Hello world")]
    assert segments[0].to_mapping() == {
        "start": 0.0,
        "end": 0.0,
        "originalText": "Bonjour le monde",
        "translatedText": "Hello world",
    }
    assert transcriber.calls == [b"RIFFdata"]
    assert translator.calls == [("Bonjour le monde", "en")]
    assert stager.released_handles == stager.staged_handles
    assert not stager.staged_handles[0].path.exists()


def test_staged_file_uses_mime_extension(pipeline, stager):
    pipeline.run("k", upload(filename="rec", mimetype="audio/webm;codecs=opus"))
    assert stager.staged_handles[0].path.suffix == ".webm"


def test_rate_limited_request_does_no_work(pipeline, transcriber, stager):
    for _ in range(3):
        pipeline.run("k", upload())
    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", upload())

    assert excinfo.value.kind is FailureKind.RATE_LIMITED
    assert excinfo.value.status == 429
    assert excinfo.value.retry_after == pytest.approx(60)
    assert len(transcriber.calls) == 3
    assert len(stager.staged_handles) == 3


def test_missing_file_is_bad_request(pipeline, transcriber, translator, stager):
    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", None)

    assert excinfo.value.kind is FailureKind.BAD_REQUEST
    assert excinfo.value.message == "No file provided"
    assert stager.staged_handles == []
    assert transcriber.calls == []
    assert translator.calls == []
    # The admission check already counted this request.
    assert pipeline.rate_limiter.snapshot("k").count == 1


def test_empty_upload_is_bad_request(pipeline):
    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", upload(data=b""))
    assert excinfo.value.kind is FailureKind.BAD_REQUEST


def test_oversized_upload_is_bad_request(clock, stager, transcriber, translator):
    pipeline = RequestPipeline(
        FixedWindowRateLimiter(clock=clock), stager, transcriber, translator, max_upload_bytes=4
    )
    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", upload(data=b"12345"))
    assert excinfo.value.kind is FailureKind.BAD_REQUEST
    assert stager.staged_handles == []


def test_unsupported_type_is_bad_request(pipeline, stager):
    with pytest.raises(PipelineError, match="Unsupported audio type: text/plain"):
        pipeline.run("k", upload(filename="notes.txt", mimetype="text/plain"))
    assert stager.staged_handles == []


def test_generic_mime_type_falls_back_to_extension(pipeline, stager):
    pipeline.run("k", upload(filename="voice.FLAC", mimetype="application/octet-stream"))
    assert stager.staged_handles[0].path.suffix == ".flac"


def test_target_language_is_forwarded(pipeline, translator):
    pipeline.run("k", upload(), target_lang="ES")
    assert translator.calls == [("Bonjour le monde", "es")]


def test_unknown_target_language_is_bad_request(pipeline, stager):
    with pytest.raises(PipelineError, match="Unsupported target language"):
        pipeline.run("k", upload(), target_lang="klingon")
    assert stager.staged_handles == []


def test_empty_transcription_skips_translation(pipeline, transcriber, translator, stager):
    transcriber.text = ""
    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", upload())

    assert excinfo.value.kind is FailureKind.UPSTREAM_EMPTY
    assert excinfo.value.status == 400
    assert excinfo.value.message == "No text found in transcription"
    assert translator.calls == []
    assert stager.released_handles == stager.staged_handles


@pytest.mark.parametrize("failing", ["transcriber", "translator"])
def test_upstream_failure_is_internal_and_releases(failing, pipeline, transcriber, translator, stager):
    if failing == "transcriber":
        transcriber.error = ConnectionError("down")
    else:
        translator.error = RuntimeError("auth")

    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", upload())

    assert excinfo.value.kind is FailureKind.INTERNAL
    assert excinfo.value.status == 500
    assert excinfo.value.message == "Error processing transcription/translation"
    assert excinfo.value.__cause__ is not None
    assert len(stager.staged_handles) == 1
    assert stager.released_handles == stager.staged_handles
    assert not stager.staged_handles[0].path.exists()


def test_staging_failure_is_internal(pipeline, monkeypatch, transcriber):
    def broken_stage(data, suffix=".mp3"):
        raise OSError("disk full")

    monkeypatch.setattr(pipeline.stager, "stage", broken_stage)
    with pytest.raises(PipelineError) as excinfo:
        pipeline.run("k", upload())
    assert excinfo.value.kind is FailureKind.INTERNAL
    assert transcriber.calls == []


def test_cleanup_failure_does_not_replace_outcome(pipeline, monkeypatch):
    def busy_unlink(self, missing_ok=False):
        raise PermissionError("busy")

    monkeypatch.setattr("voxlate_core.staging.Path.unlink", busy_unlink)
    segments = pipeline.run("k", upload())
    assert segments[0].translated_text == "Hello world"


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}, "203.0.113.7"),
        ({"x-forwarded-for": " 198.51.100.2 "}, "198.51.100.2"),
        ({"x-real-ip": "192.0.2.5"}, "192.0.2.5"),
        ({"x-forwarded-for": "", "x-real-ip": "192.0.2.5"}, "192.0.2.5"),
        ({}, "unknown"),
    ],
)
def test_client_key_from_headers(headers, expected):
    assert client_key_from_headers(headers) == expected


def test_normalize_mime_type():
    assert normalize_mime_type("Audio/WebM; codecs=opus") == "audio/webm"
    assert normalize_mime_type(None) == ""


def test_admit_charges_quota_before_any_work(pipeline, stager, transcriber):
    for _ in range(3):
        pipeline.admit("k")
    with pytest.raises(PipelineError) as excinfo:
        pipeline.admit("k")

    assert excinfo.value.kind is FailureKind.RATE_LIMITED
    assert pipeline.rate_limiter.snapshot("k").count == 3
    assert stager.staged_handles == []
    assert transcriber.calls == []


def test_process_does_not_consult_rate_limiter(pipeline):
    for _ in range(3):
        pipeline.admit("k")
    segments = pipeline.process("k", upload())
    assert segments[0].original_text == "Bonjour le monde"
    assert pipeline.rate_limiter.snapshot("k").count == 3

import io
import types

import numpy as np
import pytest
import soundfile as sf

from voxlate.ui_web.app import create_app
from voxlate_core import AudioStager, FixedWindowRateLimiter, RequestPipeline, Settings


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStager(AudioStager):
    """AudioStager that remembers every staged and released handle."""

    def __init__(self, directory) -> None:
        super().__init__(directory)
        self.staged_handles = []
        self.released_handles = []

    def stage(self, data, suffix=".mp3"):
        handle = super().stage(data, suffix)
        self.staged_handles.append(handle)
        return handle

    def release(self, staged):
        self.released_handles.append(staged)
        super().release(staged)


class FakeTranscriber:
    def __init__(self, text="Bonjour le monde", error=None) -> None:
        self.text = text
        self.error = error
        self.calls = []

    def transcribe(self, audio):
        self.calls.append(audio.read())
        if self.error is not None:
            raise self.error
        return self.text


class FakeTranslator:
    def __init__(self, result="Hello world", error=None) -> None:
        self.result = result
        self.error = error
        self.calls = []

    def translate(self, text, target_lang="en"):
        self.calls.append((text, target_lang))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def wav_bytes() -> bytes:
    duration = 0.25
    samplerate = 16000
    t = np.linspace(0, duration, int(duration * samplerate), endpoint=False)
    tone = 0.1 * np.sin(2 * np.pi * 440 * t)
    buffer = io.BytesIO()
    sf.write(buffer, tone, samplerate, format='WAV')
    return buffer.getvalue()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(1000.0)


@pytest.fixture()
def stager(tmp_path) -> RecordingStager:
    return RecordingStager(tmp_path / "staging")


@pytest.fixture()
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture()
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture()
def pipeline(clock, stager, transcriber, translator) -> RequestPipeline:
    limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60, clock=clock)
    return RequestPipeline(limiter, stager, transcriber, translator)


@pytest.fixture()
def flask_app(pipeline):
    app = create_app({"TESTING": True, "VOXLATE_SETTINGS": Settings(), "VOXLATE_PIPELINE": pipeline})
    yield app


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def build_fake_openai(transcription_text=None, chat_content=None, seen=None):
    """Build a stand-in for the OpenAI client exposing only what the wrappers call."""

    def create_transcription(**kwargs):
        if seen is not None:
            seen.append(kwargs)
        return types.SimpleNamespace(text=transcription_text)

    def create_completion(**kwargs):
        if seen is not None:
            seen.append(kwargs)
        message = types.SimpleNamespace(content=chat_content)
        return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message, index=0)])

    audio = types.SimpleNamespace(transcriptions=types.SimpleNamespace(create=create_transcription))
    chat = types.SimpleNamespace(completions=types.SimpleNamespace(create=create_completion))
    return types.SimpleNamespace(audio=audio, chat=chat)


@pytest.fixture()
def fake_openai():
    return build_fake_openai

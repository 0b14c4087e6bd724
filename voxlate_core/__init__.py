"""Core services for voxlate: admission control, staging and the request pipeline."""

from .config import Settings, load_settings
from .pipeline import AudioUpload, FailureKind, PipelineError, RequestPipeline, Segment
from .rate_limit import FixedWindowRateLimiter
from .staging import AudioStager, StagedAudio

__all__ = [
    "AudioStager",
    "AudioUpload",
    "FailureKind",
    "FixedWindowRateLimiter",
    "PipelineError",
    "RequestPipeline",
    "Segment",
    "Settings",
    "StagedAudio",
    "load_settings",
]

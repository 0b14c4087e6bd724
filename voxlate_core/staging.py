"""Temporary on-disk staging of uploaded audio for the span of one request."""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

LOGGER = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".mp3"
STAGED_PREFIX = "voxlate-"


@dataclass(frozen=True, slots=True)
class StagedAudio:
    """Handle to an uploaded clip written to a private temporary file."""

    path: Path
    size: int

    def open(self) -> BinaryIO:
        return self.path.open("rb")


class AudioStager:
    """Write upload buffers to uniquely named temporary files and remove them."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory) if directory else None

    def stage(self, data: bytes, suffix: str = DEFAULT_SUFFIX) -> StagedAudio:
        if self.directory is not None:
            self.directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            prefix=STAGED_PREFIX,
            suffix=suffix or DEFAULT_SUFFIX,
            dir=self.directory,
            delete=False,
        ) as tmp:
            path = Path(tmp.name)
            try:
                tmp.write(data)
            except OSError:
                tmp.close()
                path.unlink(missing_ok=True)
                raise
        LOGGER.debug("Staged %d bytes of audio at %s", len(data), path)
        return StagedAudio(path=path, size=len(data))

    def release(self, staged: StagedAudio) -> None:
        """Delete *staged*; failures are logged and never raised."""
        try:
            staged.path.unlink(missing_ok=True)
        except OSError:
            LOGGER.warning("Failed to remove staged audio file: %s", staged.path)
        else:
            LOGGER.debug("Released staged audio %s", staged.path)

    @contextmanager
    def staged(self, data: bytes, suffix: str = DEFAULT_SUFFIX) -> Iterator[StagedAudio]:
        handle = self.stage(data, suffix)
        try:
            yield handle
        finally:
            self.release(handle)


__all__ = ["AudioStager", "StagedAudio", "DEFAULT_SUFFIX"]

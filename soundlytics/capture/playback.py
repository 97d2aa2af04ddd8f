"""
Playback handles for local preview of acquired clips.

A handle is a temporary file holding a copy of the clip. Handles are
tracked by the store that created them and must be revoked once the
AudioState that owns them is replaced or cleared.
"""

import logging
import shutil
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

import numpy as np
import soundfile as sf

from soundlytics.core.models import PlaybackHandle


@runtime_checkable
class PlaybackStore(Protocol):
    """Creates and revokes playback handles."""

    def create(self, data: bytes, suffix: str = "") -> PlaybackHandle:
        ...

    def revoke(self, handle: PlaybackHandle) -> bool:
        ...


class TempFilePlaybackStore:
    """
    PlaybackStore backed by files in a private temporary directory.

    Thread-safe: handles may be created on encoder worker threads and
    revoked from the UI thread.
    """

    def __init__(self, directory: Optional[Path] = None):
        self._directory = Path(directory) if directory else Path(
            tempfile.mkdtemp(prefix="soundlytics-")
        )
        self._directory.mkdir(parents=True, exist_ok=True)
        self._owns_directory = directory is None
        self._live: Dict[str, PlaybackHandle] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger("capture.playback")

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._live)

    def create(self, data: bytes, suffix: str = "") -> PlaybackHandle:
        handle_id = uuid.uuid4().hex
        path = self._directory / f"{handle_id}{suffix}"
        path.write_bytes(data)
        handle = PlaybackHandle(handle_id=handle_id, path=path)
        with self._lock:
            self._live[handle_id] = handle
        self.logger.debug(f"Created playback handle {handle_id} ({len(data)} bytes)")
        return handle

    def revoke(self, handle: PlaybackHandle) -> bool:
        """
        Release a handle.

        Returns False for a handle that is unknown or already revoked.
        """
        with self._lock:
            known = self._live.pop(handle.handle_id, None)
        if known is None:
            self.logger.warning(f"Playback handle {handle.handle_id} already revoked")
            return False
        known.path.unlink(missing_ok=True)
        self.logger.debug(f"Revoked playback handle {handle.handle_id}")
        return True

    def revoke_all(self) -> int:
        with self._lock:
            handles = list(self._live.values())
        revoked = sum(1 for handle in handles if self.revoke(handle))
        if self._owns_directory:
            shutil.rmtree(self._directory, ignore_errors=True)
        return revoked


class AudioPlayer:
    """
    Plays a playback handle through the default output device.

    Decoding uses soundfile, so playback covers the containers libsndfile
    reads (WAV, FLAC, OGG, AIFF and, with libsndfile >= 1.1, MP3).
    """

    def __init__(self):
        self._started_at: Optional[float] = None
        self._duration: float = 0.0
        self.logger = logging.getLogger("capture.player")

    def play(self, handle: PlaybackHandle) -> float:
        """
        Start playback from the beginning.

        Returns:
            Clip duration in seconds
        """
        import sounddevice as sd

        data, sample_rate = sf.read(str(handle.path), dtype="float32")
        if data.size == 0:
            return 0.0
        sd.play(np.asarray(data), sample_rate)
        self._started_at = time.monotonic()
        self._duration = len(data) / float(sample_rate)
        return self._duration

    def stop(self) -> None:
        import sounddevice as sd

        if self._started_at is not None:
            sd.stop()
        self._started_at = None

    @property
    def is_playing(self) -> bool:
        if self._started_at is None:
            return False
        if time.monotonic() - self._started_at >= self._duration:
            self._started_at = None
            return False
        return True

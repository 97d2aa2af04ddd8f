"""
Microphone recorder built on a sounddevice input stream.

Chunks delivered by the stream callback are buffered in memory and
finalized into a single WAV blob when recording stops. The device is
released whenever a session ends, fails or is cancelled.
"""

import io
import logging
import threading
from typing import Any, Callable, List, Optional

import numpy as np
import soundfile as sf

from soundlytics.core.models import AudioFile
from soundlytics.utils.errors import (
    CaptureStateError,
    EncodingFailedError,
    SensorAccessDeniedError,
)

RECORDING_FILE_NAME = "live_signal.wav"
RECORDING_MIME_TYPE = "audio/wav"

# Signature of sounddevice.InputStream(samplerate=, channels=, dtype=, callback=)
StreamFactory = Callable[..., Any]


def _default_stream_factory(**kwargs: Any) -> Any:
    import sounddevice as sd

    return sd.InputStream(**kwargs)


class MicrophoneRecorder:
    """
    One live capture session at a time.

    Usage:
        recorder = MicrophoneRecorder()
        recorder.start()
        ...
        clip = recorder.stop()  # AudioFile "live_signal.wav"
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        channels: int = 1,
        file_name: str = RECORDING_FILE_NAME,
        mime_type: str = RECORDING_MIME_TYPE,
        stream_factory: Optional[StreamFactory] = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.file_name = file_name
        self.mime_type = mime_type
        self._stream_factory = stream_factory or _default_stream_factory
        self._stream: Optional[Any] = None
        self._chunks: List[np.ndarray] = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger("capture.recorder")

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """
        Open the default input device and begin buffering.

        Raises:
            CaptureStateError: A session is already active
            SensorAccessDeniedError: The device could not be opened
        """
        if self.is_recording:
            raise CaptureStateError("A live capture is already in progress", recording=True)

        with self._lock:
            self._chunks = []

        stream = None
        try:
            stream = self._stream_factory(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                callback=self._on_chunk,
            )
            stream.start()
        except Exception as e:
            if stream is not None:
                try:
                    self._release(stream)
                except Exception as release_error:
                    self.logger.debug(f"Releasing failed stream: {release_error}")
            self.logger.warning(f"Microphone unavailable: {e}")
            raise SensorAccessDeniedError(
                "Microphone access was denied or no input device is available",
                original_error=e,
            ) from e

        self._stream = stream
        self.logger.info(f"Recording started ({self.sample_rate} Hz, {self.channels} ch)")

    def _on_chunk(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            self.logger.debug(f"Input stream status: {status}")
        with self._lock:
            self._chunks.append(indata.copy())

    def stop(self) -> AudioFile:
        """
        Stop recording and return the buffered audio as one WAV clip.

        Raises:
            CaptureStateError: No session is active
            EncodingFailedError: Nothing was captured
        """
        stream = self._stream
        if stream is None:
            raise CaptureStateError("No live capture is in progress", recording=False)

        self._stream = None
        self._release(stream)

        with self._lock:
            chunks, self._chunks = self._chunks, []

        if not chunks:
            raise EncodingFailedError("No audio was captured", file_name=self.file_name)

        samples = np.concatenate(chunks, axis=0)
        buffer = io.BytesIO()
        sf.write(buffer, samples, self.sample_rate, format="WAV", subtype="PCM_16")

        self.logger.info(
            f"Recording stopped: {len(samples) / self.sample_rate:.1f}s captured"
        )
        return AudioFile(name=self.file_name, mime_type=self.mime_type, data=buffer.getvalue())

    def cancel(self) -> None:
        """Abandon the current session, discarding buffered audio."""
        stream, self._stream = self._stream, None
        if stream is not None:
            self._release(stream)
            self.logger.info("Recording cancelled")
        with self._lock:
            self._chunks = []

    def _release(self, stream: Any) -> None:
        try:
            stream.stop()
        finally:
            stream.close()

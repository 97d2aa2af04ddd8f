"""
Capture source: file selection and live microphone capture.

Both paths end in the Encoder. Validation happens synchronously so a
rejected input raises before any work is scheduled and the caller's
current AudioState stays untouched.
"""

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, Optional, Union

from soundlytics.capture.encoder import AudioEncoder, AudioReadyCallback
from soundlytics.capture.recorder import MicrophoneRecorder
from soundlytics.core.models import AudioFile, AudioState, guess_mime_type
from soundlytics.utils.config import MAX_UPLOAD_BYTES
from soundlytics.utils.errors import InvalidFormatError, PayloadTooLargeError

ACCEPTED_MIME_PREFIX = "audio/"


class CaptureSource:
    """Acquires clips from files or the microphone and hands them to the encoder."""

    def __init__(
        self,
        encoder: AudioEncoder,
        recorder: Optional[MicrophoneRecorder] = None,
        max_file_size: int = MAX_UPLOAD_BYTES,
        accepted_mime_prefix: str = ACCEPTED_MIME_PREFIX,
    ):
        """
        Args:
            encoder: Encoder that produces AudioState objects
            recorder: Microphone recorder (default device if None)
            max_file_size: Largest accepted clip in bytes
            accepted_mime_prefix: Required MIME type prefix
        """
        self.encoder = encoder
        self.recorder = recorder or MicrophoneRecorder()
        self.max_file_size = max_file_size
        self.accepted_mime_prefix = accepted_mime_prefix
        self.logger = logging.getLogger("capture.source")

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    def validate(self, audio_file: AudioFile) -> None:
        """
        Check MIME type and size.

        Raises:
            InvalidFormatError: MIME type is not audio
            PayloadTooLargeError: Clip exceeds max_file_size
        """
        self.check(audio_file.name, audio_file.mime_type, audio_file.size)

    def check(self, name: str, mime_type: str, size: int) -> None:
        """Validate clip metadata; ``validate`` and path acquisition share this."""
        if not (mime_type or "").lower().startswith(self.accepted_mime_prefix):
            raise InvalidFormatError(
                f"Invalid format '{mime_type}' for {name}. "
                f"Expected {self.accepted_mime_prefix}*",
                mime_type=mime_type,
            )

        if size > self.max_file_size:
            raise PayloadTooLargeError(
                f"File too large: {size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_size=size,
                max_size=self.max_file_size,
            )

    def _read_path(self, file_path: Path) -> AudioFile:
        # Checked from metadata before any bytes are read
        if not file_path.exists():
            raise FileNotFoundError(f"Audio file not found: {file_path}")
        self.check(file_path.name, guess_mime_type(file_path), file_path.stat().st_size)
        return AudioFile.from_path(file_path)

    def acquire_from_file(
        self,
        source: Union[AudioFile, Path, str],
        callback: Optional[AudioReadyCallback] = None,
        recording: bool = False,
    ) -> "Future[AudioState]":
        """
        Validate a clip and start encoding it.

        Args:
            source: AudioFile or path on disk
            callback: Invoked once with the AudioState on success
            recording: True when the clip came from live capture

        Returns:
            Future resolving to the AudioState
        """
        audio_file = source if isinstance(source, AudioFile) else self._read_path(Path(source))
        self.validate(audio_file)
        self.logger.info(f"Accepted {audio_file.name} ({audio_file.mime_type}, {audio_file.size} bytes)")
        return self.encoder.encode(audio_file, recording=recording, callback=callback)

    def begin_live_capture(self) -> None:
        """
        Start recording from the microphone.

        Raises:
            CaptureStateError: Already recording
            SensorAccessDeniedError: Permission refused or no device
        """
        self.recorder.start()

    def end_live_capture(
        self, callback: Optional[AudioReadyCallback] = None
    ) -> "Future[AudioState]":
        """Stop recording and treat the take like a selected file."""
        clip = self.recorder.stop()
        return self.acquire_from_file(clip, callback=callback, recording=True)

    def cancel_live_capture(self) -> None:
        self.recorder.cancel()


def create_capture_source(
    config: Dict[str, Any], encoder: AudioEncoder
) -> CaptureSource:
    """
    Factory function to create a CaptureSource from the full config dict.
    """
    audio_config = config.get("audio", {})
    recording_config = config.get("recording", {})

    recorder = MicrophoneRecorder(
        sample_rate=recording_config.get("sample_rate", 44100),
        channels=recording_config.get("channels", 1),
        file_name=recording_config.get("file_name", "live_signal.wav"),
        mime_type=recording_config.get("mime_type", "audio/wav"),
    )
    return CaptureSource(
        encoder=encoder,
        recorder=recorder,
        max_file_size=audio_config.get("max_file_size", MAX_UPLOAD_BYTES),
        accepted_mime_prefix=audio_config.get("accepted_mime_prefix", ACCEPTED_MIME_PREFIX),
    )

"""
Encoder: turns a validated clip into an AudioState.

Encoding runs on a worker thread so a multi-megabyte clip never blocks
the UI loop. The result arrives through a Future and, optionally, a
single completion callback.
"""

import base64
import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

import soundfile as sf

from soundlytics.capture.playback import PlaybackStore
from soundlytics.core.models import DEFAULT_MIME_TYPE, AudioFile, AudioState, PlaybackHandle
from soundlytics.utils.errors import EncodingFailedError

AudioReadyCallback = Callable[[AudioState], None]


class AudioEncoder:
    """
    Produces the base64 payload and playback handle for a clip.

    Owns its executor unless one is injected.
    """

    def __init__(
        self,
        playback_store: PlaybackStore,
        executor: Optional[ThreadPoolExecutor] = None,
        default_mime_type: str = DEFAULT_MIME_TYPE,
    ):
        self.playback_store = playback_store
        self.default_mime_type = default_mime_type
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="encoder"
        )
        self.logger = logging.getLogger("capture.encoder")

    def encode(
        self,
        audio_file: AudioFile,
        recording: bool = False,
        callback: Optional[AudioReadyCallback] = None,
    ) -> "Future[AudioState]":
        """
        Encode a clip asynchronously.

        Args:
            audio_file: Validated clip
            recording: True when the clip came from live capture
            callback: Invoked once with the AudioState on success

        Returns:
            Future resolving to the AudioState, or failing with
            EncodingFailedError
        """
        future = self.executor.submit(self.encode_sync, audio_file, recording)
        if callback is not None:
            def _deliver(done: "Future[AudioState]") -> None:
                if not done.cancelled() and done.exception() is None:
                    callback(done.result())
            future.add_done_callback(_deliver)
        return future

    def encode_sync(self, audio_file: AudioFile, recording: bool = False) -> AudioState:
        """Encode on the calling thread."""
        data = audio_file.data
        if not isinstance(data, (bytes, bytearray)) or len(data) == 0:
            raise EncodingFailedError(
                f"Audio blob is empty or unreadable: {audio_file.name}",
                file_name=audio_file.name,
            )
        data = bytes(data)

        handle: Optional[PlaybackHandle] = None
        try:
            handle = self.playback_store.create(data, audio_file.suffix)
            encoded = base64.b64encode(data).decode("ascii")
            state = AudioState(
                source_blob=data,
                playback_handle=handle,
                encoded_payload=encoded,
                mime_type=audio_file.mime_type or self.default_mime_type,
                recording=recording,
                file_name=audio_file.name,
                duration=probe_duration(data),
            )
        except Exception as e:
            if handle is not None:
                self.playback_store.revoke(handle)
            raise EncodingFailedError(
                f"Failed to encode {audio_file.name}: {e}",
                file_name=audio_file.name,
            ) from e

        self.logger.info(
            f"Encoded {audio_file.name}: {len(data)} bytes, "
            f"{audio_file.mime_type or self.default_mime_type}"
            + (f", {state.duration:.1f}s" if state.duration is not None else "")
        )
        return state

    def shutdown(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False)


def probe_duration(data: bytes) -> Optional[float]:
    """
    Read the clip duration from its container header.

    Returns None for containers libsndfile cannot parse (e.g. WebM).
    """
    try:
        info = sf.info(io.BytesIO(data))
    except (RuntimeError, TypeError, ValueError):  # LibsndfileError is a RuntimeError
        return None
    if not info.samplerate:
        return None
    return info.frames / float(info.samplerate)

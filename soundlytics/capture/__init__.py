"""Audio acquisition: file selection, microphone capture, encoding and playback."""

from soundlytics.capture.playback import PlaybackStore, TempFilePlaybackStore, AudioPlayer
from soundlytics.capture.encoder import AudioEncoder, probe_duration
from soundlytics.capture.recorder import MicrophoneRecorder
from soundlytics.capture.source import CaptureSource, create_capture_source

__all__ = [
    "PlaybackStore",
    "TempFilePlaybackStore",
    "AudioPlayer",
    "AudioEncoder",
    "probe_duration",
    "MicrophoneRecorder",
    "CaptureSource",
    "create_capture_source",
]

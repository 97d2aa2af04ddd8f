"""Shared fixtures: mock model client, tracking playback store, fake microphone."""

import copy
import io
import json
import threading
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pytest
import soundfile as sf

from soundlytics.analysis.analyzer import AnalysisClient
from soundlytics.capture.encoder import AudioEncoder
from soundlytics.capture.recorder import MicrophoneRecorder
from soundlytics.capture.source import CaptureSource
from soundlytics.core.models import AudioFile, PlaybackHandle
from soundlytics.core.session import AnalysisSession


# ---------------------------------------------------------------------------
# Canned model output
# ---------------------------------------------------------------------------

VALID_PAYLOAD: Dict[str, Any] = {
    "primaryGenre": "Boom Bap",
    "confidenceScore": 87.4,
    "subGenres": [
        {"name": "Jazz Rap", "matchPercentage": 72},
        {"name": "Lo-Fi Hip Hop", "matchPercentage": 55.5},
    ],
    "moods": ["Nostalgic", "Laid-back"],
    "instrumentation": ["Sampled drums", "Rhodes", "Upright bass"],
    "similarArtists": ["Pete Rock", "A Tribe Called Quest"],
    "description": "Swung drums under a dusty electric piano loop.",
    "technicalDetails": {
        "bpmEstimate": "92 BPM",
        "keyEstimate": "D minor",
        "timeSignature": "4/4",
    },
    "culturalContext": "East Coast hip hop production of the early 1990s.",
}


# ---------------------------------------------------------------------------
# Mock generative client
# ---------------------------------------------------------------------------


class MockGenerativeClient:
    """
    Stands in for GenerativeClient without API calls.

    With a ``gate`` the call blocks until the gate is set, which lets a
    test change the session while a request is in flight.
    """

    def __init__(
        self,
        response: Optional[str] = None,
        error: Optional[Exception] = None,
        gate: Optional[threading.Event] = None,
    ):
        self.provider = "mock"
        self.model = "mock-model"
        self._response = response if response is not None else json.dumps(VALID_PAYLOAD)
        self._error = error
        self.gate = gate
        self.entered = threading.Event()
        self.calls: List[Dict[str, Any]] = []

    @property
    def model_id(self) -> str:
        return "mock/mock-model"

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def generate_json(self, system_instruction, parts, schema):
        self.calls.append({
            "system_instruction": system_instruction,
            "parts": list(parts),
            "schema": schema,
        })
        self.entered.set()
        if self.gate is not None:
            assert self.gate.wait(5), "gate was never released"
        if self._error is not None:
            raise self._error
        return self._response


# ---------------------------------------------------------------------------
# Playback store that records revocations
# ---------------------------------------------------------------------------


class TrackingPlaybackStore:
    """In-memory PlaybackStore counting revoke() calls per handle."""

    def __init__(self, gate: Optional[threading.Event] = None):
        self.gate = gate
        self.created: List[PlaybackHandle] = []
        self.revocations: Counter = Counter()
        self._live = set()
        self._lock = threading.Lock()

    @property
    def live(self) -> set:
        with self._lock:
            return set(self._live)

    def create(self, data: bytes, suffix: str = "") -> PlaybackHandle:
        if self.gate is not None:
            assert self.gate.wait(5), "gate was never released"
        with self._lock:
            handle_id = f"h{len(self.created) + 1}"
            handle = PlaybackHandle(handle_id=handle_id, path=Path(f"/nonexistent/{handle_id}{suffix}"))
            self.created.append(handle)
            self._live.add(handle_id)
        return handle

    def revoke(self, handle: PlaybackHandle) -> bool:
        with self._lock:
            self.revocations[handle.handle_id] += 1
            if handle.handle_id in self._live:
                self._live.remove(handle.handle_id)
                return True
            return False


# ---------------------------------------------------------------------------
# Fake microphone
# ---------------------------------------------------------------------------


class FakeStream:
    """Mimics sounddevice.InputStream: start/stop/close plus a callback."""

    def __init__(self, callback, fail_on_start: bool = False, **kwargs):
        self.callback = callback
        self.kwargs = kwargs
        self.fail_on_start = fail_on_start
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        if self.fail_on_start:
            raise OSError("Error opening InputStream: Device unavailable")
        self.started = True

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True

    def push(self, samples: np.ndarray) -> None:
        """Deliver one chunk as the audio thread would."""
        self.callback(samples, len(samples), None, None)


class FakeStreamFactory:
    """Callable passed as MicrophoneRecorder(stream_factory=...)."""

    def __init__(self, fail_on_start: bool = False, fail_on_open: bool = False):
        self.fail_on_start = fail_on_start
        self.fail_on_open = fail_on_open
        self.streams: List[FakeStream] = []

    @property
    def last(self) -> FakeStream:
        return self.streams[-1]

    def __call__(self, callback=None, **kwargs):
        if self.fail_on_open:
            raise PermissionError("Microphone permission denied")
        stream = FakeStream(callback, fail_on_start=self.fail_on_start, **kwargs)
        self.streams.append(stream)
        return stream


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def make_wav_bytes(seconds: float = 0.25, sample_rate: int = 8000) -> bytes:
    t = np.linspace(0, seconds, int(seconds * sample_rate), endpoint=False)
    samples = (0.3 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


@pytest.fixture
def valid_payload():
    """A schema-conforming model response as a dict."""
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def mock_generator():
    return MockGenerativeClient()


@pytest.fixture
def tracking_store():
    return TrackingPlaybackStore()


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()


@pytest.fixture
def wav_bytes():
    return make_wav_bytes()


@pytest.fixture
def wav_file(wav_bytes):
    return AudioFile(name="loop.wav", mime_type="audio/wav", data=wav_bytes)


@pytest.fixture
def make_session(tracking_store, stream_factory):
    """Build AnalysisSession instances over mocks; closed on teardown."""
    sessions = []

    def _make(generator=None, store=None, factory=None, max_file_size=20 * 1024 * 1024):
        store = store or tracking_store
        encoder = AudioEncoder(store)
        recorder = MicrophoneRecorder(
            sample_rate=8000, stream_factory=factory or stream_factory
        )
        capture = CaptureSource(encoder, recorder=recorder, max_file_size=max_file_size)
        client = AnalysisClient(generator or MockGenerativeClient())
        session = AnalysisSession(capture, client, store)
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.close()

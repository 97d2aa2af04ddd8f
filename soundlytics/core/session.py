"""
Analysis session for Soundlytics.

Owns the application state and coordinates capture, encoding and the
remote analysis call. State changes go through the transition functions
in ``soundlytics.core.state``; this module adds the side effects around
them (revoking playback handles, scheduling work, notifying listeners).
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from soundlytics.analysis.analyzer import AnalysisClient, create_analysis_client
from soundlytics.capture.encoder import AudioEncoder
from soundlytics.capture.playback import PlaybackStore, TempFilePlaybackStore
from soundlytics.capture.source import CaptureSource, create_capture_source
from soundlytics.core import state as transitions
from soundlytics.core.models import AnalysisRequest, AnalysisResult, AudioFile, AudioState
from soundlytics.core.state import AnalysisTicket, AppState
from soundlytics.utils.errors import (
    CaptureStateError,
    EncodingFailedError,
    InputValidationError,
    InvalidRequestError,
    SoundlyticsError,
)
from soundlytics.utils.logging import create_logger_with_context
from soundlytics.utils.translations import Language


StateListener = Callable[[AppState], None]


class AnalysisSession:
    """
    Top-level state holder.

    Design:
    - Dependency Injection: capture source, analysis client and playback
      store are injected (testable)
    - One request in flight, enforced by the state machine
    - Stale results and stale encodes are discarded, never applied
    - Listeners are called outside the lock, possibly from worker threads
    """

    def __init__(
        self,
        capture: CaptureSource,
        analysis_client: AnalysisClient,
        playback_store: PlaybackStore,
        language: Language = Language.EN,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.capture = capture
        self.analysis_client = analysis_client
        self.playback_store = playback_store
        self._state = AppState(language=Language.parse(language))
        self._lock = threading.RLock()
        self._listeners: List[StateListener] = []
        self._acquire_seq = 0
        self._closed = False
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="analysis"
        )
        self.logger = logging.getLogger("session")

    @property
    def state(self) -> AppState:
        with self._lock:
            return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def select_file(
        self, source: Union[AudioFile, Path, str]
    ) -> "Optional[Future[AudioState]]":
        """
        Validate and encode a clip.

        Validation errors are shown inline and leave the current audio
        and analysis untouched; None is returned in that case.
        """
        with self._lock:
            self._acquire_seq += 1
            seq = self._acquire_seq
            revision = self._state.input_revision

        try:
            future = self.capture.acquire_from_file(source)
        except InputValidationError as e:
            self.logger.warning(f"Rejected input: {e}")
            self._transition(transitions.report_input_error, e.message_key)
            return None

        return self._track_encode(future, seq, revision)

    def start_recording(self) -> bool:
        """Begin a live capture. Returns False if it could not start."""
        try:
            self.capture.begin_live_capture()
        except InputValidationError as e:
            self.logger.warning(f"Live capture unavailable: {e}")
            self._transition(transitions.report_input_error, e.message_key)
            return False
        except CaptureStateError as e:
            self.logger.warning(f"Ignoring capture request: {e}")
            return False

        self._transition(transitions.set_capturing, True)
        return True

    def stop_recording(self) -> "Optional[Future[AudioState]]":
        """Finish the live capture and encode the take."""
        with self._lock:
            self._acquire_seq += 1
            seq = self._acquire_seq
            revision = self._state.input_revision

        try:
            future = self.capture.end_live_capture()
        except CaptureStateError as e:
            self.logger.warning(f"Ignoring stop request: {e}")
            return None
        except EncodingFailedError as e:
            self.logger.error(f"Recording could not be finalized: {e}")
            self._transition(transitions.set_capturing, False)
            self._transition(transitions.report_input_error, e.message_key)
            return None
        except InputValidationError as e:
            self.logger.warning(f"Rejected recording: {e}")
            self._transition(transitions.set_capturing, False)
            self._transition(transitions.report_input_error, e.message_key)
            return None

        self._transition(transitions.set_capturing, False)
        return self._track_encode(future, seq, revision)

    def cancel_recording(self) -> None:
        self.capture.cancel_live_capture()
        self._transition(transitions.set_capturing, False)

    def clear_audio(self) -> None:
        with self._lock:
            self._acquire_seq += 1
            previous = self._state.audio
            self._state = transitions.clear_audio(self._state)
            current = self._state
        self._release(previous)
        self._notify(current)

    def set_text(self, text: str) -> None:
        """Update the description; any text discards the current clip."""
        with self._lock:
            previous = self._state.audio
            self._state = transitions.set_text(self._state, text)
            current = self._state
            if current.audio is None and previous is not None:
                self._acquire_seq += 1
            else:
                previous = None
        self._release(previous)
        self._notify(current)

    def set_language(self, language: Union[str, Language]) -> None:
        self._transition(transitions.set_language, Language.parse(language))

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def submit(self) -> "Optional[Future[Optional[AnalysisResult]]]":
        """
        Start analysing the current input.

        Returns:
            Future resolving to the applied result, or to None when the
            request failed or its result went stale. None (no future)
            when there was nothing to analyse.

        Raises:
            AnalysisBusyError: Another request is still in flight
        """
        with self._lock:
            try:
                request = transitions.build_request(self._state)
            except InvalidRequestError as e:
                self.logger.warning(f"Nothing to submit: {e}")
                self._state = transitions.report_input_error(self._state, e.message_key)
                current = self._state
                request = None
            else:
                self._state, ticket = transitions.begin_analysis(self._state)
                current = self._state
                language = current.language

        self._notify(current)
        if request is None:
            return None
        return self.executor.submit(self._run_analysis, ticket, request, language)

    def _run_analysis(
        self, ticket: AnalysisTicket, request: AnalysisRequest, language: Language
    ) -> Optional[AnalysisResult]:
        log = create_logger_with_context("session", {
            "request_id": ticket.request_id,
            "language": language.value,
            "source": "audio" if request.is_audio else "text",
        })

        try:
            result = self.analysis_client.analyze(request, language)
        except SoundlyticsError as e:
            log.error(f"Analysis failed: {e}")
            self._finish(ticket, error_key=getattr(e, "message_key", "error_engine"))
            return None
        except Exception:
            log.exception("Unexpected error during analysis")
            self._finish(ticket, error_key="error_engine")
            return None

        applied = self._finish(ticket, result=result)
        if not applied:
            log.info("Discarded stale analysis result")
            return None
        return result

    def _finish(
        self,
        ticket: AnalysisTicket,
        result: Optional[AnalysisResult] = None,
        error_key: Optional[str] = None,
    ) -> bool:
        with self._lock:
            if self._closed:
                return False
            if result is not None:
                self._state = transitions.complete_analysis(self._state, ticket, result)
                applied = self._state.analysis is result
            else:
                self._state = transitions.fail_analysis(
                    self._state, ticket, error_key or "error_engine"
                )
                applied = False
            current = self._state
        self._notify(current)
        return applied

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _track_encode(
        self, future: "Future[AudioState]", seq: int, revision: int
    ) -> "Future[Optional[AudioState]]":
        """Future that resolves once the encoded clip was applied or discarded."""
        applied: "Future[Optional[AudioState]]" = Future()

        def _done(done: "Future[AudioState]") -> None:
            try:
                applied.set_result(self._on_encoded(done, seq, revision))
            except Exception as e:
                self.logger.exception("Failed to apply encoded clip")
                applied.set_exception(e)

        future.add_done_callback(_done)
        return applied

    def _on_encoded(
        self, future: "Future[AudioState]", seq: int, revision: int
    ) -> Optional[AudioState]:
        """Apply an encoded clip. Returns it, or None if it failed or went stale."""
        error = future.exception()
        if error is not None:
            self.logger.error(f"Encoding failed: {error}")
            with self._lock:
                stale = self._closed or seq != self._acquire_seq
            if not stale:
                self._transition(
                    transitions.report_input_error,
                    getattr(error, "message_key", "error_encoding"),
                )
            return None

        audio = future.result()
        with self._lock:
            stale = (
                self._closed
                or seq != self._acquire_seq
                or revision != self._state.input_revision
            )
            if stale:
                previous = audio
            else:
                previous = self._state.audio
                self._state = transitions.apply_audio_ready(self._state, audio)
            current = self._state

        if stale:
            self.logger.info(f"Discarded stale clip {audio.file_name}")
        self._release(previous)
        if stale:
            return None
        self._notify(current)
        return audio

    def _release(self, audio: Optional[AudioState]) -> None:
        if audio is not None:
            self.playback_store.revoke(audio.playback_handle)

    def _transition(self, fn: Callable[..., AppState], *args: Any) -> AppState:
        with self._lock:
            self._state = fn(self._state, *args)
            current = self._state
        self._notify(current)
        return current

    def _notify(self, current: AppState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(current)

    def close(self) -> None:
        """Release the microphone, playback handles and worker threads."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            audio = self._state.audio
            self._listeners = []

        if self.capture.is_recording:
            self.capture.cancel_live_capture()
        self._release(audio)
        if isinstance(self.playback_store, TempFilePlaybackStore):
            self.playback_store.revoke_all()
        self.capture.encoder.shutdown()
        if self._owns_executor:
            self.executor.shutdown(wait=False)

    def __enter__(self) -> "AnalysisSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_session(
    config: Dict[str, Any],
    analysis_client: Optional[AnalysisClient] = None,
    playback_store: Optional[PlaybackStore] = None,
) -> AnalysisSession:
    """
    Factory function to create an AnalysisSession from the full config dict.
    """
    store = playback_store or TempFilePlaybackStore()
    encoder = AudioEncoder(
        store,
        default_mime_type=config.get("audio", {}).get("default_mime_type", "audio/mp3"),
    )
    capture = create_capture_source(config, encoder)
    client = analysis_client or create_analysis_client(config.get("analysis", {}))
    language = Language.parse(config.get("ui", {}).get("language", "en"))
    return AnalysisSession(capture, client, store, language=language)

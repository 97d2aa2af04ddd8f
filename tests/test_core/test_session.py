"""Tests for AnalysisSession: acquisition, submission and resource release."""

import json
import threading

import numpy as np
import pytest

from conftest import MockGenerativeClient, TrackingPlaybackStore
from soundlytics.core.models import AudioFile
from soundlytics.core.state import AnalysisStatus
from soundlytics.utils.errors import AnalysisBusyError, AnalysisFailedError
from soundlytics.utils.translations import Language


def _load(session, audio_file):
    future = session.select_file(audio_file)
    assert future is not None
    return future.result(timeout=5)


class TestFileSelection:
    def test_select_file_applies_audio(self, make_session, wav_file):
        session = make_session()
        session.set_text("typed first")

        audio = _load(session, wav_file)

        state = session.state
        assert state.audio is audio
        assert audio.file_name == "loop.wav"
        assert audio.mime_type == "audio/wav"
        assert state.text_input == ""
        assert state.error_key is None

    def test_invalid_format_keeps_state(self, make_session, tracking_store, wav_file):
        session = make_session()
        audio = _load(session, wav_file)

        bad = AudioFile(name="notes.txt", mime_type="text/plain", data=b"hello")
        assert session.select_file(bad) is None

        state = session.state
        assert state.error_key == "error_format"
        assert state.audio is audio
        assert len(tracking_store.created) == 1

    def test_oversized_file_never_encoded(self, make_session, tracking_store):
        session = make_session(max_file_size=16)
        big = AudioFile(name="big.wav", mime_type="audio/wav", data=b"x" * 17)

        assert session.select_file(big) is None
        assert session.state.error_key == "error_size"
        assert session.state.audio is None
        assert tracking_store.created == []

    def test_empty_blob_reports_encoding_error(self, make_session, tracking_store):
        session = make_session()
        empty = AudioFile(name="empty.wav", mime_type="audio/wav", data=b"")

        assert session.select_file(empty).result(timeout=5) is None
        assert session.state.error_key == "error_encoding"
        assert session.state.audio is None
        assert tracking_store.created == []

    def test_listeners_notified_until_unsubscribed(self, make_session, wav_file):
        session = make_session()
        seen = []
        unsubscribe = session.subscribe(seen.append)

        _load(session, wav_file)
        assert seen and seen[-1].audio is not None

        unsubscribe()
        count = len(seen)
        session.set_text("after unsubscribe")
        assert len(seen) == count


class TestPlaybackHandleRelease:
    def test_replaced_audio_revoked_once(self, make_session, tracking_store, wav_file):
        session = make_session()
        first = _load(session, wav_file)
        second = _load(session, wav_file)

        assert tracking_store.revocations[first.playback_handle.handle_id] == 1
        assert tracking_store.revocations[second.playback_handle.handle_id] == 0

    def test_clear_and_text_revoke(self, make_session, tracking_store, wav_file):
        session = make_session()
        first = _load(session, wav_file)
        session.clear_audio()
        session.clear_audio()

        second = _load(session, wav_file)
        session.set_text("now a description")
        session.set_text("edited description")

        assert tracking_store.revocations[first.playback_handle.handle_id] == 1
        assert tracking_store.revocations[second.playback_handle.handle_id] == 1

    def test_close_revokes_current(self, make_session, tracking_store, wav_file):
        session = make_session()
        audio = _load(session, wav_file)
        session.close()
        session.close()

        assert tracking_store.revocations[audio.playback_handle.handle_id] == 1
        assert tracking_store.live == set()

    def test_every_handle_revoked_exactly_once(self, make_session, tracking_store, wav_file):
        session = make_session()
        for _ in range(3):
            _load(session, wav_file)
        session.set_text("replace with text")
        _load(session, wav_file)
        session.close()

        assert len(tracking_store.created) == 4
        assert all(
            tracking_store.revocations[h.handle_id] == 1 for h in tracking_store.created
        )

    def test_stale_encode_is_discarded(self, make_session, wav_file):
        gate = threading.Event()
        store = TrackingPlaybackStore(gate=gate)
        session = make_session(store=store)

        pending = session.select_file(wav_file)
        session.set_text("changed my mind")
        gate.set()

        assert pending.result(timeout=5) is None
        assert session.state.audio is None
        assert session.state.text_input == "changed my mind"
        assert store.revocations[store.created[0].handle_id] == 1


class TestSubmit:
    def test_submit_without_input(self, make_session, mock_generator):
        session = make_session(generator=mock_generator)

        assert session.submit() is None
        assert session.state.error_key == "error_input"
        assert mock_generator.call_count == 0

    def test_text_analysis(self, make_session, mock_generator):
        session = make_session(generator=mock_generator)
        session.set_text("melancholic synthwave with gated reverb drums")

        result = session.submit().result(timeout=5)

        state = session.state
        assert state.status is AnalysisStatus.DONE
        assert state.analysis is result
        assert result.primary_genre == "Boom Bap"
        assert result.confidence_score == 87
        assert mock_generator.call_count == 1

    def test_audio_analysis_sends_inline_audio(self, make_session, mock_generator, wav_file):
        session = make_session(generator=mock_generator)
        audio = _load(session, wav_file)

        session.submit().result(timeout=5)

        parts = mock_generator.calls[0]["parts"]
        assert parts[0].audio_base64 == audio.encoded_payload
        assert parts[0].mime_type == "audio/wav"

    def test_language_reaches_model(self, make_session, mock_generator):
        session = make_session(generator=mock_generator)
        session.set_language("th")
        session.set_text("luk thung")

        result = session.submit().result(timeout=5)

        assert "Thai" in mock_generator.calls[0]["system_instruction"]
        assert result.language is Language.TH

    def test_busy_while_in_flight(self, make_session):
        gate = threading.Event()
        generator = MockGenerativeClient(gate=gate)
        session = make_session(generator=generator)
        session.set_text("footwork at 160")

        pending = session.submit()
        assert generator.entered.wait(5)
        assert session.state.is_submitting
        with pytest.raises(AnalysisBusyError):
            session.submit()

        gate.set()
        assert pending.result(timeout=5) is not None
        assert generator.call_count == 1
        assert session.state.status is AnalysisStatus.DONE

    def test_stale_result_is_discarded(self, make_session):
        gate = threading.Event()
        generator = MockGenerativeClient(gate=gate)
        session = make_session(generator=generator)
        session.set_text("first idea")

        pending = session.submit()
        assert generator.entered.wait(5)
        session.set_text("second idea")
        gate.set()

        assert pending.result(timeout=5) is None
        state = session.state
        assert state.analysis is None
        assert state.status is AnalysisStatus.IDLE
        assert state.text_input == "second idea"
        assert state.can_submit

    def test_remote_failure(self, make_session):
        generator = MockGenerativeClient(error=AnalysisFailedError("quota exceeded", provider="mock"))
        session = make_session(generator=generator)
        session.set_text("drill")

        assert session.submit().result(timeout=5) is None
        state = session.state
        assert state.status is AnalysisStatus.FAILED
        assert state.error_key == "error_engine"
        assert state.analysis is None

    def test_schema_violation(self, make_session, valid_payload):
        del valid_payload["culturalContext"]
        generator = MockGenerativeClient(response=json.dumps(valid_payload))
        session = make_session(generator=generator)
        session.set_text("drill")

        assert session.submit().result(timeout=5) is None
        assert session.state.status is AnalysisStatus.FAILED
        assert session.state.analysis is None

    def test_unexpected_error_is_reported(self, make_session):
        generator = MockGenerativeClient(error=RuntimeError("socket closed"))
        session = make_session(generator=generator)
        session.set_text("drill")

        assert session.submit().result(timeout=5) is None
        assert session.state.error_key == "error_engine"

    def test_identical_requests_are_not_cached(self, make_session, mock_generator):
        session = make_session(generator=mock_generator)
        session.set_text("same words")
        session.submit().result(timeout=5)
        session.submit().result(timeout=5)
        assert mock_generator.call_count == 2

    def test_result_after_close_is_dropped(self, make_session):
        gate = threading.Event()
        generator = MockGenerativeClient(gate=gate)
        session = make_session(generator=generator)
        session.set_text("x")

        pending = session.submit()
        assert generator.entered.wait(5)
        session.close()
        gate.set()

        assert pending.result(timeout=5) is None
        assert session.state.analysis is None


class TestLiveCapture:
    def test_record_round_trip(self, make_session, stream_factory):
        session = make_session()

        assert session.start_recording()
        assert session.state.capturing
        stream_factory.last.push(np.zeros((800, 1), dtype=np.float32))

        audio = session.stop_recording().result(timeout=5)

        assert not session.state.capturing
        assert session.state.audio is audio
        assert audio.recording
        assert audio.file_name == "live_signal.wav"
        assert audio.mime_type == "audio/wav"
        assert stream_factory.last.closed

    def test_sensor_denied(self, make_session):
        from conftest import FakeStreamFactory

        session = make_session(factory=FakeStreamFactory(fail_on_open=True))

        assert not session.start_recording()
        assert session.state.error_key == "error_sensor"
        assert not session.state.capturing

    def test_second_start_is_ignored(self, make_session, stream_factory):
        session = make_session()
        assert session.start_recording()
        assert not session.start_recording()
        assert len(stream_factory.streams) == 1
        session.cancel_recording()
        assert stream_factory.last.closed

    def test_stop_without_audio(self, make_session, stream_factory):
        session = make_session()
        session.start_recording()

        assert session.stop_recording() is None
        assert session.state.error_key == "error_encoding"
        assert not session.state.capturing
        assert stream_factory.last.closed

    def test_close_releases_microphone(self, make_session, stream_factory):
        session = make_session()
        session.start_recording()
        session.close()
        assert stream_factory.last.stopped
        assert stream_factory.last.closed

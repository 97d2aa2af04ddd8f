"""
Application state and its allowed transitions.

``AppState`` is immutable. Every user-visible change goes through one of
the transition functions below, each of which returns a new state and
never performs I/O. Side effects (revoking playback handles, issuing the
remote call) belong to ``AnalysisSession``.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from soundlytics.core.models import AnalysisRequest, AnalysisResult, AudioState
from soundlytics.utils.errors import AnalysisBusyError, InvalidRequestError
from soundlytics.utils.translations import Language


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisTicket:
    """Identifies one in-flight request and the input it was built from."""

    request_id: int
    input_revision: int


@dataclass(frozen=True)
class AppState:
    language: Language = Language.EN
    audio: Optional[AudioState] = None
    text_input: str = ""
    analysis: Optional[AnalysisResult] = None
    status: AnalysisStatus = AnalysisStatus.IDLE
    error_key: Optional[str] = None  # translation key of the message to show
    capturing: bool = False
    input_revision: int = 0
    last_request_id: int = 0
    in_flight: Optional[AnalysisTicket] = None

    @property
    def is_submitting(self) -> bool:
        return self.status is AnalysisStatus.SUBMITTING

    @property
    def has_input(self) -> bool:
        return self.audio is not None or bool(self.text_input.strip())

    @property
    def can_submit(self) -> bool:
        return self.has_input and not self.is_submitting


def apply_audio_ready(state: AppState, audio: AudioState) -> AppState:
    """New clip acquired: it replaces any previous clip, text and result."""
    return replace(
        state,
        audio=audio,
        text_input="",
        analysis=None,
        error_key=None,
        status=_settled_status(state),
        input_revision=state.input_revision + 1,
    )


def clear_audio(state: AppState) -> AppState:
    if state.audio is None:
        return state
    return replace(
        state,
        audio=None,
        input_revision=state.input_revision + 1,
    )


def set_text(state: AppState, text: str) -> AppState:
    """Typing a description discards the current clip."""
    if text == state.text_input:
        return state
    return replace(
        state,
        text_input=text,
        audio=None if text else state.audio,
        input_revision=state.input_revision + 1,
    )


def set_language(state: AppState, language: Language) -> AppState:
    return replace(state, language=Language.parse(language))


def set_capturing(state: AppState, capturing: bool) -> AppState:
    return replace(state, capturing=capturing, error_key=None if capturing else state.error_key)


def report_input_error(state: AppState, error_key: str) -> AppState:
    """Show a validation message without touching audio or analysis."""
    return replace(state, error_key=error_key)


def build_request(state: AppState) -> AnalysisRequest:
    """Request for the current input; audio takes precedence over text."""
    if state.audio is not None:
        return AnalysisRequest.for_audio(state.audio)
    if state.text_input.strip():
        return AnalysisRequest.for_text(state.text_input)
    raise InvalidRequestError("Nothing to analyze: no audio and no description")


def begin_analysis(state: AppState) -> Tuple[AppState, AnalysisTicket]:
    """
    Move to SUBMITTING and issue a ticket for the new request.

    Raises AnalysisBusyError while another request is outstanding.
    """
    if state.is_submitting:
        raise AnalysisBusyError(
            request_id=state.in_flight.request_id if state.in_flight else None
        )
    ticket = AnalysisTicket(
        request_id=state.last_request_id + 1,
        input_revision=state.input_revision,
    )
    new_state = replace(
        state,
        status=AnalysisStatus.SUBMITTING,
        analysis=None,
        error_key=None,
        last_request_id=ticket.request_id,
        in_flight=ticket,
    )
    return new_state, ticket


def is_current(state: AppState, ticket: AnalysisTicket) -> bool:
    """True when the ticket is the in-flight request and its input is unchanged."""
    return state.in_flight == ticket and state.input_revision == ticket.input_revision


def complete_analysis(
    state: AppState, ticket: AnalysisTicket, result: AnalysisResult
) -> AppState:
    """
    Apply a result if its ticket is still current.

    A result for changed input only releases the in-flight slot.
    """
    if state.in_flight != ticket:
        return state
    if not is_current(state, ticket):
        return replace(state, status=AnalysisStatus.IDLE, in_flight=None)
    return replace(
        state,
        status=AnalysisStatus.DONE,
        analysis=result,
        error_key=None,
        in_flight=None,
    )


def fail_analysis(state: AppState, ticket: AnalysisTicket, error_key: str) -> AppState:
    if state.in_flight != ticket:
        return state
    if not is_current(state, ticket):
        return replace(state, status=AnalysisStatus.IDLE, in_flight=None)
    return replace(
        state,
        status=AnalysisStatus.FAILED,
        analysis=None,
        error_key=error_key,
        in_flight=None,
    )


def _settled_status(state: AppState) -> AnalysisStatus:
    # In-flight requests keep the slot until they return
    if state.is_submitting:
        return AnalysisStatus.SUBMITTING
    return AnalysisStatus.IDLE

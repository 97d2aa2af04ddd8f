"""
Core module containing data models, application state and the session.

The session pulls in the capture and analysis layers (soundfile, model
SDK clients), so it is loaded lazily.
"""

# Models and state are lightweight - import directly
from soundlytics.core.models import (
    DEFAULT_MIME_TYPE,
    AudioFile,
    PlaybackHandle,
    AudioState,
    AnalysisRequest,
    SubGenre,
    TechnicalDetails,
    AnalysisResult,
    validate_request,
    validate_percentage,
)
from soundlytics.core.state import AnalysisStatus, AnalysisTicket, AppState

__all__ = [
    "DEFAULT_MIME_TYPE",
    "AudioFile",
    "PlaybackHandle",
    "AudioState",
    "AnalysisRequest",
    "SubGenre",
    "TechnicalDetails",
    "AnalysisResult",
    "validate_request",
    "validate_percentage",
    "AnalysisStatus",
    "AnalysisTicket",
    "AppState",
    # Lazy loaded
    "AnalysisSession",
    "create_session",
]


def __getattr__(name: str):
    """Lazy load the session and its dependencies."""
    if name in ("AnalysisSession", "create_session"):
        from soundlytics.core.session import AnalysisSession, create_session
        return AnalysisSession if name == "AnalysisSession" else create_session
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

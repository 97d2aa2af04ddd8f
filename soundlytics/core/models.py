"""
Core data models for Soundlytics.

Immutable domain models for acquired audio, analysis requests and the
structured analysis returned by the model.
"""

from __future__ import annotations

import json
import math
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from soundlytics.utils.errors import InvalidRequestError
from soundlytics.utils.translations import Language

DEFAULT_MIME_TYPE = "audio/mp3"

# Suffixes mimetypes does not know on every platform
AUDIO_MIME_TYPES: Dict[str, str] = {
    '.wav': 'audio/wav',
    '.mp3': 'audio/mpeg',
    '.flac': 'audio/flac',
    '.aif': 'audio/aiff',
    '.aiff': 'audio/aiff',
    '.ogg': 'audio/ogg',
    '.oga': 'audio/ogg',
    '.opus': 'audio/opus',
    '.m4a': 'audio/mp4',
    '.aac': 'audio/aac',
    '.webm': 'audio/webm',
}


def guess_mime_type(file_path: Path) -> str:
    """MIME type from the suffix, or an empty string when unknown."""
    file_path = Path(file_path)
    mime_type = AUDIO_MIME_TYPES.get(file_path.suffix.lower())
    if mime_type is None:
        mime_type = mimetypes.guess_type(file_path.name)[0] or ""
    return mime_type


@dataclass(frozen=True)
class AudioFile:
    """A candidate clip, selected from disk or finalized from a recording."""

    name: str
    mime_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, file_path: Path) -> "AudioFile":
        """
        Read a file from disk.

        The MIME type comes from the suffix; an unknown suffix yields an
        empty type, which validation rejects as a non-audio file.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Audio file not found: {file_path}")

        return cls(
            name=file_path.name,
            mime_type=guess_mime_type(file_path),
            data=file_path.read_bytes(),
        )


@dataclass(frozen=True)
class PlaybackHandle:
    """Revocable reference to a local copy of a clip, used for preview."""

    handle_id: str
    path: Path


@dataclass(frozen=True)
class AudioState:
    """
    Immutable snapshot of an acquired clip and its derived encodings.

    Replaced wholesale whenever the user supplies new input. Whoever drops
    an AudioState must revoke its playback handle.
    """

    source_blob: bytes = field(repr=False)
    playback_handle: PlaybackHandle
    encoded_payload: Optional[str] = field(default=None, repr=False)
    mime_type: str = DEFAULT_MIME_TYPE
    recording: bool = False
    file_name: str = ""
    duration: Optional[float] = None  # seconds, when the container could be probed

    @property
    def size(self) -> int:
        return len(self.source_blob)


@dataclass(frozen=True)
class AnalysisRequest:
    """
    Payload for one analysis call: encoded audio or a text description.

    Exactly one of ``audio`` and ``text`` is set.
    """

    audio: Optional[str] = field(default=None, repr=False)
    mime_type: Optional[str] = None
    text: Optional[str] = None

    def __post_init__(self) -> None:
        validate_request(self)

    @property
    def is_audio(self) -> bool:
        return self.audio is not None

    @classmethod
    def for_audio(cls, state: AudioState) -> "AnalysisRequest":
        if not state.encoded_payload:
            raise InvalidRequestError(
                "Audio has not been encoded yet",
                details={"file_name": state.file_name},
            )
        return cls(audio=state.encoded_payload, mime_type=state.mime_type or DEFAULT_MIME_TYPE)

    @classmethod
    def for_text(cls, description: str) -> "AnalysisRequest":
        return cls(text=description)


def validate_request(request: AnalysisRequest) -> None:
    """Raise InvalidRequestError unless exactly one payload is present."""
    has_audio = bool(request.audio)
    has_text = bool(request.text and request.text.strip())
    if has_audio == has_text:
        raise InvalidRequestError(
            "An analysis request needs exactly one of audio or text",
            details={"has_audio": has_audio, "has_text": has_text},
        )


@dataclass(frozen=True)
class SubGenre:
    """A secondary genre and how closely the clip matches it."""

    name: str
    match_percentage: float  # [0, 100]

    def __post_init__(self) -> None:
        validate_percentage(self.match_percentage, "matchPercentage")

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'matchPercentage': self.match_percentage}


@dataclass(frozen=True)
class TechnicalDetails:
    """Tempo, key and meter, always in universal musical notation."""

    bpm_estimate: str
    key_estimate: str
    time_signature: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bpmEstimate': self.bpm_estimate,
            'keyEstimate': self.key_estimate,
            'timeSignature': self.time_signature,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Structured musicological profile returned by the model."""

    primary_genre: str
    confidence_score: int  # [0, 100]
    sub_genres: List[SubGenre]
    moods: List[str]
    instrumentation: List[str]
    similar_artists: List[str]
    description: str
    technical_details: TechnicalDetails
    cultural_context: str
    language: Language = Language.EN

    def __post_init__(self) -> None:
        validate_percentage(self.confidence_score, "confidenceScore")

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, Any], language: Language = Language.EN
    ) -> "AnalysisResult":
        """
        Build a result from the wire (camelCase) form.

        Every field is required. Missing keys raise KeyError, nulls and
        wrong types raise TypeError, out-of-range scores raise ValueError.
        Nothing is defaulted.
        """
        if not isinstance(payload, Mapping):
            raise TypeError(f"Analysis payload must be an object, got {type(payload).__name__}")

        details = _require(payload, 'technicalDetails', Mapping)
        sub_genres = [
            SubGenre(
                name=_require(item, 'name', str),
                match_percentage=_require_number(item, 'matchPercentage'),
            )
            for item in _require_list(payload, 'subGenres', Mapping)
        ]

        return cls(
            primary_genre=_require(payload, 'primaryGenre', str),
            confidence_score=int(round(_require_number(payload, 'confidenceScore'))),
            sub_genres=sub_genres,
            moods=_require_list(payload, 'moods', str),
            instrumentation=_require_list(payload, 'instrumentation', str),
            similar_artists=_require_list(payload, 'similarArtists', str),
            description=_require(payload, 'description', str),
            technical_details=TechnicalDetails(
                bpm_estimate=_require(details, 'bpmEstimate', str),
                key_estimate=_require(details, 'keyEstimate', str),
                time_signature=_require(details, 'timeSignature', str),
            ),
            cultural_context=_require(payload, 'culturalContext', str),
            language=language,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire (camelCase) dictionary."""
        return {
            'primaryGenre': self.primary_genre,
            'confidenceScore': self.confidence_score,
            'subGenres': [sg.to_dict() for sg in self.sub_genres],
            'moods': list(self.moods),
            'instrumentation': list(self.instrumentation),
            'similarArtists': list(self.similar_artists),
            'description': self.description,
            'technicalDetails': self.technical_details.to_dict(),
            'culturalContext': self.cultural_context,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def get_summary(self) -> str:
        """One-line human-readable summary."""
        parts = [f"{self.primary_genre} ({self.confidence_score}%)"]
        td = self.technical_details
        parts.append(f"{td.bpm_estimate} | {td.key_estimate} | {td.time_signature}")
        if self.moods:
            parts.append(", ".join(self.moods[:3]))
        return " - ".join(parts)


def validate_percentage(value: float, name: str) -> None:
    """Validate a percentage is in [0, 100]."""
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be in [0, 100], got {value}")


def _require(payload: Mapping[str, Any], key: str, expected: type) -> Any:
    if key not in payload:
        raise KeyError(key)
    value = payload[key]
    if not isinstance(value, expected):
        raise TypeError(
            f"Field '{key}' must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _require_number(payload: Mapping[str, Any], key: str) -> float:
    if key not in payload:
        raise KeyError(key)
    value = payload[key]
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Field '{key}' must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError(f"Field '{key}' must be finite, got {value}")
    return float(value)


def _require_list(payload: Mapping[str, Any], key: str, item_type: type) -> List[Any]:
    items = _require(payload, key, list)
    for item in items:
        if not isinstance(item, item_type):
            raise TypeError(
                f"Items of '{key}' must be {item_type.__name__}, got {type(item).__name__}"
            )
    return list(items)

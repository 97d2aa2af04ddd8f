"""Output schema declared to the model, and strict parsing of its response."""

import json
import logging
from typing import Any, Dict, Optional

from soundlytics.core.models import AnalysisResult
from soundlytics.utils.errors import AnalysisFailedError
from soundlytics.utils.translations import Language

logger = logging.getLogger("analysis.schema")

_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": _STRING}

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "primaryGenre": {"type": "string", "description": "The core genre identified."},
        "confidenceScore": {"type": "number", "description": "Confidence score 0-100."},
        "subGenres": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _STRING,
                    "matchPercentage": {"type": "number"},
                },
                "required": ["name", "matchPercentage"],
                "additionalProperties": False,
            },
        },
        "moods": _STRING_LIST,
        "instrumentation": _STRING_LIST,
        "similarArtists": _STRING_LIST,
        "description": {"type": "string", "description": "A technical musicological summary."},
        "technicalDetails": {
            "type": "object",
            "properties": {
                "bpmEstimate": _STRING,
                "keyEstimate": _STRING,
                "timeSignature": _STRING,
            },
            "required": ["bpmEstimate", "keyEstimate", "timeSignature"],
            "additionalProperties": False,
        },
        "culturalContext": {"type": "string", "description": "Origins and era significance."},
    },
    "required": [
        "primaryGenre",
        "confidenceScore",
        "subGenres",
        "moods",
        "instrumentation",
        "similarArtists",
        "description",
        "technicalDetails",
        "culturalContext",
    ],
    "additionalProperties": False,
}


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned


def parse_analysis_response(
    raw: str, language: Language = Language.EN, provider: Optional[str] = None
) -> AnalysisResult:
    """
    Parse the model's JSON text into an AnalysisResult.

    Raises:
        AnalysisFailedError: Text is not JSON or violates the schema
    """
    try:
        payload = json.loads(strip_code_fence(raw or ""))
    except json.JSONDecodeError as e:
        logger.warning(f"Model response is not valid JSON: {e}")
        raise AnalysisFailedError(
            "Model response is not valid JSON", provider=provider, original_error=e
        ) from e

    try:
        return AnalysisResult.from_dict(payload, language=language)
    except KeyError as e:
        logger.warning(f"Model response is missing required field {e}")
        raise AnalysisFailedError(
            f"Model response is missing required field {e}",
            provider=provider,
            original_error=e,
        ) from e
    except (TypeError, ValueError) as e:
        logger.warning(f"Model response violates the output schema: {e}")
        raise AnalysisFailedError(
            f"Model response violates the output schema: {e}",
            provider=provider,
            original_error=e,
        ) from e

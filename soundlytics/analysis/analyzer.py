"""
Analysis client: turns an AnalysisRequest into an AnalysisResult.

All musicological inference happens in the hosted model. This module
builds the request content, issues exactly one structured-generation
call and parses the answer strictly. There is no retry and no caching;
identical inputs always trigger a fresh call.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Protocol

from soundlytics.analysis.client import ContentPart, create_generative_client
from soundlytics.analysis.prompts import AUDIO_INSTRUCTION, system_instruction, text_query
from soundlytics.analysis.schema import ANALYSIS_SCHEMA, parse_analysis_response
from soundlytics.core.models import AnalysisRequest, AnalysisResult, validate_request
from soundlytics.utils.translations import Language


class StructuredGenerator(Protocol):
    """What AnalysisClient needs from a model client."""

    provider: str

    @property
    def model_id(self) -> str:
        ...

    def generate_json(
        self, system_instruction: str, parts: List[ContentPart], schema: Dict[str, Any]
    ) -> str:
        ...


class AnalysisClient:
    """
    Narrow interface to the external analysis capability.

    Usage:
        client = AnalysisClient(create_generative_client(config["analysis"]))
        result = client.analyze(AnalysisRequest.for_text("lofi beat"), Language.TH)
    """

    def __init__(self, generator: StructuredGenerator):
        self.generator = generator
        self.logger = logging.getLogger("analysis.analyzer")

    def analyze(
        self, request: AnalysisRequest, language: Language = Language.EN
    ) -> AnalysisResult:
        """
        Analyze audio or a text description.

        Args:
            request: Exactly one of audio or text
            language: Natural language for descriptive output fields

        Returns:
            AnalysisResult: Fully populated result

        Raises:
            InvalidRequestError: Request has neither or both payloads
            AnalysisFailedError: Remote call failed or output violated the schema
        """
        validate_request(request)
        language = Language.parse(language)

        parts = self._build_parts(request)
        start_time = time.time()
        self.logger.info(
            f"Requesting {'audio' if request.is_audio else 'text'} analysis "
            f"from {self.generator.model_id} (language={language.value})"
        )

        raw = self.generator.generate_json(
            system_instruction=system_instruction(language),
            parts=parts,
            schema=ANALYSIS_SCHEMA,
        )
        result = parse_analysis_response(
            raw, language=language, provider=getattr(self.generator, "provider", None)
        )

        self.logger.info(
            f"Analysis complete in {time.time() - start_time:.2f}s: {result.get_summary()}"
        )
        return result

    def _build_parts(self, request: AnalysisRequest) -> List[ContentPart]:
        if request.is_audio:
            return [
                ContentPart.from_audio(request.audio, request.mime_type),
                ContentPart.from_text(AUDIO_INSTRUCTION),
            ]
        return [ContentPart.from_text(text_query(request.text))]


def create_analysis_client(
    config: Dict[str, Any], generator: Optional[StructuredGenerator] = None
) -> AnalysisClient:
    """
    Factory function to create an AnalysisClient.

    Args:
        config: The 'analysis' section from config.yaml
        generator: Optional pre-built model client
    """
    return AnalysisClient(generator or create_generative_client(config))

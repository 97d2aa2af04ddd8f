"""Remote analysis: model clients, prompts, output schema and the analysis client."""

from soundlytics.analysis.client import ContentPart, GenerativeClient, create_generative_client
from soundlytics.analysis.schema import ANALYSIS_SCHEMA, parse_analysis_response
from soundlytics.analysis.analyzer import AnalysisClient, create_analysis_client

__all__ = [
    "ContentPart",
    "GenerativeClient",
    "create_generative_client",
    "ANALYSIS_SCHEMA",
    "parse_analysis_response",
    "AnalysisClient",
    "create_analysis_client",
]

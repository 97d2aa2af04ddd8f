"""
Utility modules for configuration, logging, translations and error handling.
"""

from soundlytics.utils.errors import (
    SoundlyticsError,
    InputValidationError,
    InvalidFormatError,
    PayloadTooLargeError,
    SensorAccessDeniedError,
    EncodingFailedError,
    AnalysisFailedError,
    InvalidRequestError,
    AnalysisBusyError,
    CaptureStateError,
    ConfigurationError,
    ModelLoadError,
)
from soundlytics.utils.logging import get_logger, setup_logging, JSONFormatter
from soundlytics.utils.config import ConfigManager, load_config
from soundlytics.utils.translations import Language, get_strings, translate

__all__ = [
    "SoundlyticsError",
    "InputValidationError",
    "InvalidFormatError",
    "PayloadTooLargeError",
    "SensorAccessDeniedError",
    "EncodingFailedError",
    "AnalysisFailedError",
    "InvalidRequestError",
    "AnalysisBusyError",
    "CaptureStateError",
    "ConfigurationError",
    "ModelLoadError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "Language",
    "get_strings",
    "translate",
]

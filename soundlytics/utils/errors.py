"""
Custom exceptions for Soundlytics.

This module defines a hierarchy of exceptions for the capture, encoding
and analysis pipeline. Input validation errors are recoverable at the
input control; encoding and analysis failures end the current attempt.
"""

from typing import Optional, Any


class SoundlyticsError(Exception):
    """Base exception for all Soundlytics errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class InputValidationError(SoundlyticsError):
    """Raised when user-supplied input is rejected before encoding.

    Subclasses carry a ``message_key`` into the translation table so the
    UI can show a localized inline message.
    """

    message_key = "error_input"


class InvalidFormatError(InputValidationError):
    """Raised when a file does not declare an audio MIME type."""

    message_key = "error_format"

    def __init__(self, message: str, mime_type: Optional[str] = None):
        super().__init__(message, details={"mime_type": mime_type})
        self.mime_type = mime_type


class PayloadTooLargeError(InputValidationError):
    """Raised when a file exceeds the upload size limit."""

    message_key = "error_size"

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_size = file_size
        self.max_size = max_size
        self.details = {"file_size": file_size, "max_size": max_size}


class SensorAccessDeniedError(InputValidationError):
    """Raised when the microphone cannot be opened."""

    message_key = "error_sensor"

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
        self.details = {
            "original_error": str(original_error) if original_error else None,
        }


class EncodingFailedError(SoundlyticsError):
    """Raised when an audio blob cannot be turned into an AudioState."""

    message_key = "error_encoding"

    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(message, details={"file_name": file_name})
        self.file_name = file_name


class AnalysisFailedError(SoundlyticsError):
    """Raised when the remote analysis call fails or returns bad output."""

    message_key = "error_engine"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error
        self.details = {
            "provider": provider,
            "original_error": str(original_error) if original_error else None,
        }


class InvalidRequestError(SoundlyticsError):
    """Raised when an AnalysisRequest has neither or both payloads."""

    message_key = "error_input"


class AnalysisBusyError(SoundlyticsError):
    """Raised when an analysis is requested while another is in flight."""

    def __init__(self, request_id: Optional[int] = None):
        super().__init__(
            "An analysis request is already in flight.",
            details={"request_id": request_id},
        )
        self.request_id = request_id


class CaptureStateError(SoundlyticsError):
    """Raised when a live capture is started or ended out of order."""

    def __init__(self, message: str, recording: Optional[bool] = None):
        super().__init__(message, details={"recording": recording})
        self.recording = recording


class ConfigurationError(SoundlyticsError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class ModelLoadError(SoundlyticsError):
    """Raised when the generative model client cannot be created."""

    def __init__(self, message: str, model_name: Optional[str] = None):
        super().__init__(message)
        self.model_name = model_name
        self.details = {"model_name": model_name}

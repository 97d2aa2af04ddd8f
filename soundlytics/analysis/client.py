"""
Generative model client for structured analysis.

Wraps provider SDKs behind a single generate_json() call that takes a
system instruction, a list of content parts (text or inline audio) and a
JSON schema, and returns the model's raw JSON text.

Supports Gemini (google-genai) and OpenAI with thread-safe lazy
initialization.
"""

import base64
import copy
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from soundlytics.utils.errors import AnalysisFailedError, ModelLoadError


# Default models per provider
DEFAULT_MODELS: Dict[str, str] = {
    "gemini": "gemini-3-flash-preview",
    "openai": "gpt-4o-audio-preview",
}

# Environment variables consulted, in order, when no key is configured
API_KEY_ENV_VARS: Dict[str, List[str]] = {
    "gemini": ["GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"],
    "openai": ["OPENAI_API_KEY"],
}

# OpenAI input_audio only accepts these containers
OPENAI_AUDIO_FORMATS: Dict[str, str] = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


@dataclass(frozen=True)
class ContentPart:
    """One part of a request: either text or base64 inline audio."""

    text: Optional[str] = None
    audio_base64: Optional[str] = field(default=None, repr=False)
    mime_type: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_audio(cls, audio_base64: str, mime_type: str) -> "ContentPart":
        return cls(audio_base64=audio_base64, mime_type=mime_type)

    @property
    def is_audio(self) -> bool:
        return self.audio_base64 is not None


class GenerativeClient:
    """
    Shared, thread-safe, lazy-initialized structured-generation client.

    The provider SDK client is created on first use and reused across
    calls, guarded by double-checked locking.
    """

    def __init__(
        self,
        provider: str = "gemini",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.4,
        max_tokens: int = 2048,
    ):
        self.provider = provider.lower()
        if self.provider not in DEFAULT_MODELS:
            raise ModelLoadError(
                f"Unknown provider: {provider}. Use one of: {', '.join(DEFAULT_MODELS)}",
                model_name=provider,
            )
        self.model = model or DEFAULT_MODELS[self.provider]
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._api_key = self._resolve_api_key(api_key)
        self._client = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger("analysis.client")

    @property
    def model_id(self) -> str:
        """Provider/model identifier string."""
        return f"{self.provider}/{self.model}"

    @property
    def client(self):
        """Thread-safe lazy-initialized SDK client."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    def generate_json(
        self,
        system_instruction: str,
        parts: List[ContentPart],
        schema: Dict[str, Any],
    ) -> str:
        """
        Send one structured-generation request.

        Args:
            system_instruction: System-level instruction
            parts: Request content, in order
            schema: JSON schema the response must follow

        Returns:
            The raw JSON text returned by the model

        Raises:
            AnalysisFailedError: The call failed or returned no text
        """
        client = self.client

        try:
            if self.provider == "gemini":
                text = self._generate_gemini(client, system_instruction, parts, schema)
            else:
                text = self._generate_openai(client, system_instruction, parts, schema)
        except AnalysisFailedError:
            raise
        except Exception as e:
            raise AnalysisFailedError(
                f"Model API call failed: {e}",
                provider=self.provider,
                original_error=e,
            ) from e

        if not text:
            raise AnalysisFailedError("Model returned an empty response", provider=self.provider)
        return text

    def _generate_gemini(
        self,
        client,
        system_instruction: str,
        parts: List[ContentPart],
        schema: Dict[str, Any],
    ) -> Optional[str]:
        from google.genai import types

        contents = []
        for part in parts:
            if part.is_audio:
                contents.append(types.Part.from_bytes(
                    data=base64.b64decode(part.audio_base64),
                    mime_type=part.mime_type,
                ))
            else:
                contents.append(types.Part.from_text(text=part.text))

        response = client.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=to_gemini_schema(schema),
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
            ),
        )
        return response.text

    def _generate_openai(
        self,
        client,
        system_instruction: str,
        parts: List[ContentPart],
        schema: Dict[str, Any],
    ) -> Optional[str]:
        content = []
        for part in parts:
            if part.is_audio:
                audio_format = OPENAI_AUDIO_FORMATS.get((part.mime_type or "").lower())
                if audio_format is None:
                    raise AnalysisFailedError(
                        f"OpenAI audio input supports WAV and MP3 only, got {part.mime_type}",
                        provider=self.provider,
                    )
                content.append({
                    "type": "input_audio",
                    "input_audio": {"data": part.audio_base64, "format": audio_format},
                })
            else:
                content.append({"type": "text", "text": part.text})

        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": content},
            ],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "analysis", "schema": schema, "strict": True},
            },
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content

    def _resolve_api_key(self, api_key: Optional[str]) -> Optional[str]:
        """Resolve API key from parameter, template, or environment."""
        if api_key:
            if api_key.startswith("${") and api_key.endswith("}"):
                resolved = os.environ.get(api_key[2:-1])
                if resolved:
                    return resolved
            else:
                return api_key

        for var_name in API_KEY_ENV_VARS.get(self.provider, []):
            value = os.environ.get(var_name)
            if value:
                return value
        return None

    def _create_client(self):
        """Create the SDK client for the configured provider."""
        if not self._api_key:
            env_vars = " or ".join(API_KEY_ENV_VARS[self.provider])
            raise ModelLoadError(
                f"No API key found for {self.provider}. Set {env_vars} environment variable.",
                model_name=self.provider,
            )

        if self.provider == "gemini":
            from google import genai

            return genai.Client(api_key=self._api_key)

        from openai import OpenAI

        return OpenAI(api_key=self._api_key)


def to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a JSON schema to the OpenAPI subset Gemini accepts.

    Drops ``additionalProperties`` and upper-cases type names.
    """
    converted = copy.deepcopy(schema)

    def _convert(node: Any) -> Any:
        if isinstance(node, dict):
            node.pop("additionalProperties", None)
            if isinstance(node.get("type"), str):
                node["type"] = node["type"].upper()
            for value in node.values():
                _convert(value)
        elif isinstance(node, list):
            for item in node:
                _convert(item)
        return node

    return _convert(converted)


def create_generative_client(config: Dict) -> GenerativeClient:
    """
    Factory function to create GenerativeClient from config dict.

    Args:
        config: The 'analysis' section from config.yaml.
    """
    return GenerativeClient(
        provider=config.get("provider", "gemini"),
        model=config.get("model"),
        api_key=config.get("api_key"),
        temperature=config.get("temperature", 0.4),
        max_tokens=config.get("max_tokens", 2048),
    )

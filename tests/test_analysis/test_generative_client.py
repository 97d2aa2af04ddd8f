"""Tests for GenerativeClient."""

import os
from unittest.mock import MagicMock, patch

import pytest

from soundlytics.analysis.client import (
    DEFAULT_MODELS,
    ContentPart,
    GenerativeClient,
    create_generative_client,
    to_gemini_schema,
)
from soundlytics.analysis.schema import ANALYSIS_SCHEMA
from soundlytics.utils.errors import AnalysisFailedError, ModelLoadError


def _with_sdk(client: GenerativeClient) -> MagicMock:
    """Swap the lazily created SDK client for a mock."""
    sdk = MagicMock()
    client._client = sdk
    return sdk


class TestGenerativeClientInit:
    def test_default_provider(self):
        client = GenerativeClient(api_key="test-key")
        assert client.provider == "gemini"
        assert client.model == DEFAULT_MODELS["gemini"]

    def test_openai_provider(self):
        client = GenerativeClient(provider="OpenAI", api_key="test-key")
        assert client.provider == "openai"
        assert client.model == DEFAULT_MODELS["openai"]

    def test_custom_model(self):
        client = GenerativeClient(model="gemini-2.5-pro", api_key="test-key")
        assert client.model_id == "gemini/gemini-2.5-pro"

    def test_unknown_provider(self):
        with pytest.raises(ModelLoadError):
            GenerativeClient(provider="togetherai", api_key="test-key")


class TestGenerativeClientAPIKeyResolution:
    def test_direct_api_key(self):
        client = GenerativeClient(api_key="direct-key")
        assert client._api_key == "direct-key"

    def test_template_api_key(self):
        with patch.dict(os.environ, {"MY_KEY": "resolved-key"}):
            client = GenerativeClient(api_key="${MY_KEY}")
            assert client._api_key == "resolved-key"

    def test_unresolved_template_falls_back_to_env(self):
        with patch.dict(os.environ, {"GOOGLE_API_KEY": "google-key"}, clear=True):
            client = GenerativeClient(api_key="${GEMINI_API_KEY}")
            assert client._api_key == "google-key"

    def test_env_openai_key(self):
        with patch.dict(os.environ, {"OPENAI_API_KEY": "oai-key"}, clear=False):
            client = GenerativeClient(provider="openai")
            assert client._api_key == "oai-key"

    def test_missing_key_fails_on_first_use(self):
        with patch.dict(os.environ, {}, clear=True):
            client = GenerativeClient()
            with pytest.raises(ModelLoadError):
                client.generate_json("sys", [ContentPart.from_text("hi")], ANALYSIS_SCHEMA)


class TestGeminiGeneration:
    def test_returns_text_and_requests_json(self):
        client = GenerativeClient(api_key="k", temperature=0.2, max_tokens=512)
        sdk = _with_sdk(client)
        sdk.models.generate_content.return_value.text = '{"ok": true}'

        parts = [ContentPart.from_audio("AAAA", "audio/wav"), ContentPart.from_text("describe")]
        assert client.generate_json("system", parts, ANALYSIS_SCHEMA) == '{"ok": true}'

        kwargs = sdk.models.generate_content.call_args.kwargs
        assert kwargs["model"] == DEFAULT_MODELS["gemini"]
        assert len(kwargs["contents"]) == 2
        config = kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.system_instruction == "system"
        assert config.temperature == 0.2
        assert config.max_output_tokens == 512

    def test_transport_error_wrapped(self):
        client = GenerativeClient(api_key="k")
        sdk = _with_sdk(client)
        sdk.models.generate_content.side_effect = ConnectionError("reset by peer")

        with pytest.raises(AnalysisFailedError) as exc_info:
            client.generate_json("system", [ContentPart.from_text("x")], ANALYSIS_SCHEMA)
        assert exc_info.value.provider == "gemini"
        assert isinstance(exc_info.value.original_error, ConnectionError)

    def test_empty_response(self):
        client = GenerativeClient(api_key="k")
        sdk = _with_sdk(client)
        sdk.models.generate_content.return_value.text = None

        with pytest.raises(AnalysisFailedError):
            client.generate_json("system", [ContentPart.from_text("x")], ANALYSIS_SCHEMA)


class TestOpenAIGeneration:
    def _client(self, content='{"ok": true}'):
        client = GenerativeClient(provider="openai", api_key="k")
        sdk = _with_sdk(client)
        sdk.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content=content))
        ]
        return client, sdk

    def test_input_audio_part(self):
        client, sdk = self._client()
        parts = [ContentPart.from_audio("AAAA", "audio/mpeg"), ContentPart.from_text("describe")]

        assert client.generate_json("system", parts, ANALYSIS_SCHEMA) == '{"ok": true}'

        kwargs = sdk.chat.completions.create.call_args.kwargs
        system, user = kwargs["messages"]
        assert system == {"role": "system", "content": "system"}
        assert user["content"][0] == {
            "type": "input_audio",
            "input_audio": {"data": "AAAA", "format": "mp3"},
        }
        assert kwargs["response_format"]["json_schema"]["strict"] is True

    def test_unsupported_container(self):
        client, sdk = self._client()
        with pytest.raises(AnalysisFailedError):
            client.generate_json(
                "system", [ContentPart.from_audio("AAAA", "audio/webm")], ANALYSIS_SCHEMA
            )
        sdk.chat.completions.create.assert_not_called()


class TestToGeminiSchema:
    def test_converts_without_mutating(self):
        converted = to_gemini_schema(ANALYSIS_SCHEMA)

        assert converted["type"] == "OBJECT"
        assert "additionalProperties" not in converted
        sub_genre = converted["properties"]["subGenres"]["items"]
        assert sub_genre["type"] == "OBJECT"
        assert "additionalProperties" not in sub_genre
        assert ANALYSIS_SCHEMA["type"] == "object"
        assert ANALYSIS_SCHEMA["additionalProperties"] is False


class TestCreateGenerativeClient:
    def test_factory_creates_client(self):
        config = {"provider": "openai", "api_key": "factory-key", "temperature": 0.5}
        client = create_generative_client(config)
        assert isinstance(client, GenerativeClient)
        assert client.provider == "openai"
        assert client.temperature == 0.5

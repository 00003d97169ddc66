"""Tests for GeminiClient with the SDK patched out."""

from unittest.mock import MagicMock, patch

import pytest
from google.generativeai.types.generation_types import BlockedPromptException

from verifivue.config.prompts import CREDENTIAL_ANALYSIS_SCHEMA
from verifivue.llm import gemini_client
from verifivue.llm.gemini_client import GeminiClient


@pytest.fixture
def patched_genai():
    with patch.object(gemini_client, "genai") as genai, patch.object(gemini_client.time, "sleep") as sleep:
        model = MagicMock()
        genai.GenerativeModel.return_value = model
        yield genai, model, sleep


class TestGeminiClient:
    def test_requires_api_key(self, patched_genai):
        with patch.object(gemini_client.settings, "gemini_api_key", ""):
            with pytest.raises(ValueError):
                GeminiClient()

    def test_generate_json(self, patched_genai):
        genai, model, _ = patched_genai
        model.generate_content.return_value = MagicMock(text='{"confidence_score": 90}')

        client = GeminiClient(api_key="test-key", model_name="gemini-test")
        text = client.generate_json("prompt", b"bytes", "image/png", CREDENTIAL_ANALYSIS_SCHEMA)

        assert text == '{"confidence_score": 90}'
        genai.configure.assert_called_once_with(api_key="test-key")
        genai.GenerativeModel.assert_called_once_with("gemini-test")
        parts = model.generate_content.call_args.args[0]
        assert parts[0] == {"mime_type": "image/png", "data": b"bytes"}
        assert parts[1] == "prompt"
        config_kwargs = genai.types.GenerationConfig.call_args.kwargs
        assert config_kwargs["response_mime_type"] == "application/json"
        assert config_kwargs["response_schema"] is CREDENTIAL_ANALYSIS_SCHEMA

    def test_retries_then_succeeds(self, patched_genai):
        _, model, sleep = patched_genai
        model.generate_content.side_effect = [
            RuntimeError("503"),
            MagicMock(text="{}"),
        ]
        with patch.object(gemini_client.settings, "gemini_max_retries", 3):
            client = GeminiClient(api_key="test-key")
            assert client.generate_json("p", b"d", "image/png", {}) == "{}"
        assert model.generate_content.call_count == 2
        assert sleep.call_count == 1

    def test_gives_up_after_max_retries(self, patched_genai):
        _, model, sleep = patched_genai
        model.generate_content.side_effect = RuntimeError("503")
        with patch.object(gemini_client.settings, "gemini_max_retries", 3):
            client = GeminiClient(api_key="test-key")
            with pytest.raises(RuntimeError):
                client.generate_json("p", b"d", "image/png", {})
        assert model.generate_content.call_count == 3
        assert sleep.call_count == 2

    def test_blocked_prompt_not_retried(self, patched_genai):
        _, model, sleep = patched_genai
        model.generate_content.side_effect = BlockedPromptException("blocked")
        client = GeminiClient(api_key="test-key")
        with pytest.raises(BlockedPromptException):
            client.generate_json("p", b"d", "image/png", {})
        assert model.generate_content.call_count == 1
        sleep.assert_not_called()

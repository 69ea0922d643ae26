"""
Unit tests for the OpenAI chat and embedding clients. No request leaves the process.
"""

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from services.ai_workflow.utils.openai_utils import ChatCompletionClient
from services.embeddings.providers import openai_embedder
from services.errors import TransientBackendError


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client_with(completions: FakeCompletions) -> ChatCompletionClient:
    client = ChatCompletionClient(api_key="sk-test")
    client._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return client


class TestChatCompletionClient:
    """Tests for ChatCompletionClient."""

    def test_sdk_retries_disabled(self) -> None:
        assert ChatCompletionClient(api_key="sk-test")._get_client().max_retries == 0

    def test_unconfigured(self) -> None:
        client = ChatCompletionClient(api_key="")
        assert client.is_available() is False
        with pytest.raises(TransientBackendError):
            client.complete([{"role": "user", "content": "hi"}], "classification")

    def test_json_request(self) -> None:
        completions = FakeCompletions(content='{"a": 1}')
        result = _client_with(completions).complete(
            [{"role": "user", "content": "hi"}], "classification", response_format="json", temperature=0.1,
        )
        assert result == '{"a": 1}'
        assert completions.calls[0]["response_format"] == {"type": "json_object"}
        assert completions.calls[0]["temperature"] == 0.1

    def test_single_attempt_on_error(self) -> None:
        completions = FakeCompletions(error=OpenAIError("rate limited"))
        with pytest.raises(TransientBackendError):
            _client_with(completions).complete([{"role": "user", "content": "hi"}], "generation")
        assert len(completions.calls) == 1

    def test_empty_content(self) -> None:
        with pytest.raises(TransientBackendError):
            _client_with(FakeCompletions(content="")).complete([{"role": "user", "content": "hi"}], "generation")


class TestOpenAIEmbedder:
    """Tests for the OpenAI embedding backend client."""

    def test_sdk_retries_disabled(self, monkeypatch) -> None:
        monkeypatch.setattr(openai_embedder, "OPENAI_API_KEY", "sk-test")
        monkeypatch.setattr(openai_embedder, "_client", None)
        assert openai_embedder._get_client().max_retries == 0

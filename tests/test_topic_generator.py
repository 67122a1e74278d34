"""
Tests for the AI topic generator and its OpenAI client wrapper.
"""

from unittest.mock import MagicMock

import pytest

from ai import TopicGenerator, OpenAIClient, AIResponse


def response(content, success=True):
    return AIResponse(content=content, tokens_used=5, model_used="test-model", success=success,
                      error_message=None if success else "boom")


@pytest.fixture
def client():
    client = MagicMock(spec=OpenAIClient)
    client.is_available.return_value = True
    return client


class TestTopicGenerator:

    @pytest.mark.parametrize("content,expected", [
        ("Mango", "Mango"),
        ('"Fried rice."', "Fried rice"),
        ("1. Tiger\n2. Lion", "Tiger"),
        ("- Eiffel Tower!", "Eiffel Tower"),
    ])
    def test_cleans_provider_output(self, client, content, expected):
        client.generate_completion.return_value = response(content)

        assert TopicGenerator(client).generate("Food") == expected

    def test_rejects_long_answers(self, client):
        client.generate_completion.return_value = response("Here is a topic you could use")

        assert TopicGenerator(client).generate("Food") is None

    def test_failed_completion(self, client):
        client.generate_completion.return_value = response("AI service unavailable", success=False)

        assert TopicGenerator(client).generate("Food") is None

    def test_client_exception(self, client):
        client.generate_completion.side_effect = RuntimeError("socket closed")

        assert TopicGenerator(client).generate("Food") is None

    def test_prompt_mentions_category(self, client):
        client.generate_completion.return_value = response("Violin")

        TopicGenerator(client).generate("Musical Instrument")

        messages = client.generate_completion.call_args.kwargs['messages']
        assert '"Musical Instrument"' in messages[-1]['content']

    def test_enabled_flags(self, client):
        assert TopicGenerator(client).is_enabled()
        assert not TopicGenerator(client, enabled=False).is_enabled()

        client.is_available.return_value = False
        assert not TopicGenerator(client).is_enabled()

    def test_disabled_generator_does_not_call_client(self, client):
        assert TopicGenerator(client, enabled=False).generate("Food") is None
        client.generate_completion.assert_not_called()


class TestOpenAIClient:

    def test_local_endpoint_needs_no_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        client = OpenAIClient(base_url="http://localhost:11434/v1", timeout=10.0, max_retries=1)

        assert client.is_available()
        assert client.get_status()['base_url'] == "http://localhost:11434/v1"

    def test_missing_key_is_unavailable(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        client = OpenAIClient()
        result = client.generate_completion([{"role": "user", "content": "hi"}])

        assert not client.is_available()
        assert result.success is False

    def test_completion_content(self):
        client = OpenAIClient(api_key="test-key", max_retries=1)
        completion = MagicMock()
        completion.choices = [MagicMock()]
        completion.choices[0].message.content = "  Harbor  "
        completion.usage.total_tokens = 12
        client.client = MagicMock()
        client.client.chat.completions.create.return_value = completion

        result = client.generate_completion([{"role": "user", "content": "hi"}], max_tokens=10)

        assert result.success
        assert result.content == "Harbor"
        assert result.tokens_used == 12

    def test_errors_become_failed_response(self):
        client = OpenAIClient(api_key="test-key", max_retries=1)
        client.client = MagicMock()
        client.client.chat.completions.create.side_effect = RuntimeError("down")

        result = client.generate_completion([{"role": "user", "content": "hi"}])

        assert result.success is False
        assert "down" in result.error_message

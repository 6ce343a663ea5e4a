"""Integration tests for LLM adapter layer."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import pytest
from openai import APIConnectionError

from app.adapters.llm import AnthropicClient, OpenAIClient, create_llm_client
from app.adapters.llm.openai_client import parse_json_object
from app.core.config import LLMSettings, Tier2LLMSettings
from app.core.errors import ConfigurationAppError, LLMAppError


def _response(content: str | None) -> MagicMock:
    mock_response = MagicMock()
    mock_response.choices = [MagicMock(message=MagicMock(content=content))]
    return mock_response


class TestOpenAIClientIntegration:
    """Test OpenAI client integration with mocked API calls."""

    @pytest.mark.asyncio
    async def test_generate_json_success(self) -> None:
        client = OpenAIClient(api_key="test-key-123", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_response('{"name": "Myrcene", "effects": ["calm"]}'),
        ):
            result = await client.generate_json(prompt="Terpene guide for myrcene")

        assert result == {"name": "Myrcene", "effects": ["calm"]}

    @pytest.mark.asyncio
    async def test_request_uses_json_mode_and_system_prompt(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_response('{"result": "ok"}'),
        ) as mock_create:
            await client.generate_json(prompt="Test", system="Be brief.", max_tokens=100, stream=True)

        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["response_format"] == {"type": "json_object"}
        assert call_kwargs["temperature"] == 0.3
        assert call_kwargs["max_tokens"] == 100
        # Only the known sampling options are forwarded.
        assert "stream" not in call_kwargs
        assert call_kwargs["messages"][0] == {"role": "system", "content": "Be brief."}
        assert call_kwargs["messages"][1] == {"role": "user", "content": "Test"}

    @pytest.mark.asyncio
    async def test_invalid_json_raises_llm_error(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_response("This is not JSON"),
        ):
            with pytest.raises(LLMAppError) as exc:
                await client.generate_json(prompt="Test")
        assert exc.value.code == "llm_invalid_json"

    @pytest.mark.asyncio
    async def test_empty_response_raises_llm_error(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_response(None),
        ):
            with pytest.raises(LLMAppError) as exc:
                await client.generate_json(prompt="Test")
        assert exc.value.code == "llm_empty_response"

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=APIConnectionError(request=MagicMock()),
        ):
            with pytest.raises(LLMAppError) as exc:
                await client.generate_json(prompt="Test")
        assert exc.value.code == "llm_request_failed"


def _message(*blocks: SimpleNamespace) -> SimpleNamespace:
    return SimpleNamespace(content=list(blocks))


class TestAnthropicClientIntegration:
    @pytest.mark.asyncio
    async def test_text_block_parsed_as_json(self) -> None:
        client = AnthropicClient(api_key="test-key", model="claude-sonnet-4-6")
        reply = _message(
            SimpleNamespace(type="thinking", thinking="..."),
            SimpleNamespace(type="text", text="```json\n{\"grade\": \"A\"}\n```"),
        )

        with patch.object(client.client.messages, "create", new_callable=AsyncMock, return_value=reply) as mock_create:
            result = await client.generate_json(prompt="Review this COA", system="Be strict.", max_tokens=500)

        assert result == {"grade": "A"}
        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["model"] == "claude-sonnet-4-6"
        assert call_kwargs["max_tokens"] == 500
        assert call_kwargs["system"] == "Be strict."
        assert call_kwargs["messages"] == [{"role": "user", "content": "Review this COA"}]

    @pytest.mark.asyncio
    async def test_default_output_budget(self) -> None:
        client = AnthropicClient(api_key="test-key", model="claude-sonnet-4-6")
        reply = _message(SimpleNamespace(type="text", text='{"ok": true}'))

        with patch.object(client.client.messages, "create", new_callable=AsyncMock, return_value=reply) as mock_create:
            await client.generate_json(prompt="Test")

        assert mock_create.call_args.kwargs["max_tokens"] == 1500

    @pytest.mark.asyncio
    async def test_no_text_block_raises_llm_error(self) -> None:
        client = AnthropicClient(api_key="test-key", model="claude-sonnet-4-6")

        with patch.object(client.client.messages, "create", new_callable=AsyncMock, return_value=_message()):
            with pytest.raises(LLMAppError) as exc:
                await client.generate_json(prompt="Test")
        assert exc.value.code == "llm_empty_response"

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self) -> None:
        client = AnthropicClient(api_key="test-key", model="claude-sonnet-4-6")

        with patch.object(
            client.client.messages,
            "create",
            new_callable=AsyncMock,
            side_effect=anthropic.APIConnectionError(request=MagicMock()),
        ):
            with pytest.raises(LLMAppError) as exc:
                await client.generate_json(prompt="Test")
        assert exc.value.code == "llm_request_failed"


class TestParseJsonObject:
    def test_plain_object(self) -> None:
        assert parse_json_object('{"a": 1}') == {"a": 1}

    def test_object_wrapped_in_code_fence(self) -> None:
        assert parse_json_object('Here you go:\n```json\n{"a": {"b": 2}}\n```') == {"a": {"b": 2}}

    def test_non_object_rejected(self) -> None:
        with pytest.raises(LLMAppError):
            parse_json_object("[1, 2, 3]")


class TestLLMFactory:
    """Test LLM client factory pattern."""

    def test_create_llm_client_with_settings(self) -> None:
        client = create_llm_client(
            LLMSettings(provider="openai", api_key="test-key", model="gpt-4o-mini", timeout_seconds=30.0)
        )

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    def test_create_llm_client_missing_api_key_raises_error(self) -> None:
        with pytest.raises(ConfigurationAppError) as exc:
            create_llm_client(LLMSettings(provider="openai", api_key=None))
        assert exc.value.code == "llm_missing_api_key"

    def test_create_llm_client_unknown_provider_raises_error(self) -> None:
        with pytest.raises(ConfigurationAppError, match="Unknown LLM provider") as exc:
            create_llm_client(LLMSettings(provider="unknown-provider", api_key="test-key"))
        assert exc.value.code == "llm_unknown_provider"

    def test_create_anthropic_client_for_tier2(self) -> None:
        client = create_llm_client(Tier2LLMSettings(api_key="test-key"))

        assert isinstance(client, AnthropicClient)
        assert client.model == "claude-sonnet-4-6"

    def test_tier2_missing_key_hint_names_its_variable(self) -> None:
        with pytest.raises(ConfigurationAppError) as exc:
            create_llm_client(Tier2LLMSettings(api_key=None))
        assert exc.value.details == {"hint": "Set the LLM_TIER2_API_KEY environment variable"}

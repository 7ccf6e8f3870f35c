"""Tests for the LLM provider layer.

Covers the factory singleton, MockLLMProvider scripting, the
generate / generate_json helpers, and the SDK adapters with mocked clients.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hh_vibe.providers import GenerationError, TransientError
from hh_vibe.providers.config import ProviderConfig
from hh_vibe.providers.errors import AuthenticationError, ContentFilterError, RateLimitError
from hh_vibe.providers.factory import get_llm_provider, reset_providers
from hh_vibe.providers.generation import generate, generate_json, parse_json_object
from hh_vibe.providers.llm.base import LLMMessage, TaskType
from hh_vibe.providers.llm.claude_adapter import DEFAULT_CLAUDE_MODEL, ClaudeAdapter
from hh_vibe.providers.llm.gemini_adapter import GeminiAdapter
from hh_vibe.providers.llm.mock_adapter import MockLLMProvider
from hh_vibe.providers.llm.openai_adapter import OpenAIAdapter


class TestGetLLMProvider:
    """Factory singleton."""

    def setup_method(self):
        reset_providers()

    def teardown_method(self):
        reset_providers()

    def test_singleton_returns_same_instance(self):
        config = ProviderConfig(llm_provider="claude", anthropic_api_key="k")
        first = get_llm_provider(config)
        assert get_llm_provider() is first

    def test_selects_adapter_by_name(self):
        provider = get_llm_provider(ProviderConfig(llm_provider="gemini"))
        assert isinstance(provider, GeminiAdapter)

    def test_uses_env_config_when_none_given(self):
        with patch("hh_vibe.providers.factory.ProviderConfig.from_env") as from_env:
            from_env.return_value = ProviderConfig(llm_provider="gemini")
            get_llm_provider()
            from_env.assert_called_once()

    def test_raises_for_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm_provider(ProviderConfig(llm_provider="yandexgpt"))

    def test_reset_clears_singleton(self):
        config = ProviderConfig(llm_provider="gemini")
        first = get_llm_provider(config)
        reset_providers()
        assert get_llm_provider(config) is not first


class TestGeminiAdapterWithoutKey:
    """Gemini defers client creation until the first call."""

    @pytest.mark.asyncio
    async def test_missing_key_surfaces_as_authentication_error(self):
        adapter = GeminiAdapter(ProviderConfig(google_api_key=None))

        with pytest.raises(AuthenticationError, match="GOOGLE_API_KEY"):
            await adapter.complete(
                [LLMMessage(role="user", content="Привет")], TaskType.CHAT_RESPONSE
            )


class TestMockLLMProvider:
    """Scripting and call recording."""

    @pytest.mark.asyncio
    async def test_returns_configured_content_per_task(self):
        mock = MockLLMProvider(responses={TaskType.GAME_DAY: '{"steps": []}'})

        response = await mock.complete([LLMMessage(role="user", content="x")], TaskType.GAME_DAY)

        assert response.content == '{"steps": []}'
        assert response.model == "mock-model"

    @pytest.mark.asyncio
    async def test_default_content_for_unconfigured_task(self):
        mock = MockLLMProvider()

        response = await mock.complete([], TaskType.CHAT_RESPONSE)

        assert response.content == "Mock response for chat_response"

    @pytest.mark.asyncio
    async def test_records_calls_with_kwargs(self):
        mock = MockLLMProvider()

        await mock.complete([], TaskType.IMPACT, temperature=0.7, json_mode=True)

        assert mock.last_task is TaskType.IMPACT
        assert mock.calls_for(TaskType.IMPACT)[0]["kwargs"] == {
            "max_tokens": None,
            "temperature": 0.7,
            "json_mode": True,
        }
        mock.assert_called_with_task(TaskType.IMPACT)

    @pytest.mark.asyncio
    async def test_task_error_raised(self):
        mock = MockLLMProvider()
        mock.set_error(TaskType.COMPARISON, TransientError("down"))

        with pytest.raises(TransientError):
            await mock.complete([], TaskType.COMPARISON)

    @pytest.mark.asyncio
    async def test_default_error_spares_scripted_tasks(self):
        """default_error applies only to tasks without a scripted response."""
        mock = MockLLMProvider(default_error=TransientError("down"))
        mock.set_response(TaskType.CHAT_RESPONSE, "ok")

        assert (await mock.complete([], TaskType.CHAT_RESPONSE)).content == "ok"
        with pytest.raises(TransientError):
            await mock.complete([], TaskType.IMPACT)

    @pytest.mark.asyncio
    async def test_set_response_clears_task_error(self):
        mock = MockLLMProvider()
        mock.set_error(TaskType.IMPACT, TransientError("down"))
        mock.set_response(TaskType.IMPACT, "ok")

        assert (await mock.complete([], TaskType.IMPACT)).content == "ok"


class TestParseJsonObject:
    """Model answers into JSON objects."""

    def test_plain_object(self):
        assert parse_json_object('{"a": 1}') == {"a": 1}

    def test_json_code_fence(self):
        assert parse_json_object('Вот ответ:\n```json\n{"a": 1}\n```') == {"a": 1}

    def test_bare_code_fence(self):
        assert parse_json_object('```\n{"a": 1}\n```') == {"a": 1}

    def test_malformed_raises_generation_error(self):
        with pytest.raises(GenerationError, match="Malformed JSON"):
            parse_json_object("не json")

    def test_non_object_raises_generation_error(self):
        with pytest.raises(GenerationError, match="got list"):
            parse_json_object("[1, 2]")


class TestGenerate:
    """Single-prompt helpers."""

    @pytest.mark.asyncio
    async def test_generate_builds_system_and_user_messages(self):
        mock = MockLLMProvider(responses={TaskType.CHAT_RESPONSE: "  Привет!  "})

        text = await generate(
            mock, "вопрос", task=TaskType.CHAT_RESPONSE, temperature=0.8, system="ты hh"
        )

        assert text == "Привет!"
        messages = mock.calls[0]["messages"]
        assert [(m.role, m.content) for m in messages] == [
            ("system", "ты hh"),
            ("user", "вопрос"),
        ]
        assert mock.calls[0]["kwargs"]["temperature"] == 0.8

    @pytest.mark.asyncio
    async def test_generate_rejects_empty_completion(self):
        mock = MockLLMProvider(responses={TaskType.CHAT_RESPONSE: "   "})

        with pytest.raises(GenerationError, match="Empty completion"):
            await generate(mock, "x", task=TaskType.CHAT_RESPONSE, temperature=0.8)

    @pytest.mark.asyncio
    async def test_generate_json_sets_json_mode(self):
        mock = MockLLMProvider(responses={TaskType.IMPACT: '{"impact": "много"}'})

        data = await generate_json(mock, "x", task=TaskType.IMPACT, temperature=0.7)

        assert data == {"impact": "много"}
        assert mock.calls[0]["kwargs"]["json_mode"] is True

    @pytest.mark.asyncio
    async def test_generate_json_default_mock_text_is_not_json(self):
        """Unscripted mock answers make JSON call sites fall back."""
        with pytest.raises(GenerationError):
            await generate_json(MockLLMProvider(), "x", task=TaskType.IMPACT, temperature=0.7)


@pytest.fixture
def claude_config():
    return ProviderConfig(llm_provider="claude", anthropic_api_key="test-api-key", max_retries=0)


@pytest.fixture
def anthropic_response():
    response = MagicMock()
    response.content = [MagicMock(type="text", text='{"ok": true}')]
    response.usage = MagicMock(input_tokens=10, output_tokens=20)
    response.stop_reason = "end_turn"
    return response


class TestClaudeAdapter:
    """ClaudeAdapter with a mocked Anthropic client."""

    def test_routes_card_generation_to_larger_model(self, claude_config):
        with patch("hh_vibe.providers.llm.claude_adapter.AsyncAnthropic"):
            adapter = ClaudeAdapter(claude_config)

        assert adapter.get_model_for_task(TaskType.CARD_GENERATION) != DEFAULT_CLAUDE_MODEL
        assert adapter.get_model_for_task(TaskType.INTENT_CLASSIFICATION) == DEFAULT_CLAUDE_MODEL

    def test_custom_routing_overrides_defaults(self):
        config = ProviderConfig(
            anthropic_api_key="k",
            claude_model_routing={"intent_classification": "claude-custom"},
        )
        with patch("hh_vibe.providers.llm.claude_adapter.AsyncAnthropic"):
            adapter = ClaudeAdapter(config)

        assert adapter.get_model_for_task(TaskType.INTENT_CLASSIFICATION) == "claude-custom"

    @pytest.mark.asyncio
    async def test_json_mode_goes_into_system_prompt(self, claude_config, anthropic_response):
        with patch("hh_vibe.providers.llm.claude_adapter.AsyncAnthropic") as client_cls:
            client = client_cls.return_value
            client.messages.create = AsyncMock(return_value=anthropic_response)
            adapter = ClaudeAdapter(claude_config)

            response = await adapter.complete(
                [
                    LLMMessage(role="system", content="Ты карьерный консультант"),
                    LLMMessage(role="user", content="Сравни"),
                ],
                TaskType.COMPARISON,
                temperature=0.7,
                json_mode=True,
            )

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"].startswith("Ты карьерный консультант")
        assert "valid JSON" in kwargs["system"]
        assert kwargs["messages"] == [{"role": "user", "content": "Сравни"}]
        assert kwargs["temperature"] == 0.7
        assert response.content == '{"ok": true}'
        assert response.input_tokens == 10

    @pytest.mark.asyncio
    async def test_connection_error_becomes_transient(self, claude_config):
        import anthropic

        error = anthropic.APIConnectionError(request=MagicMock())
        with patch("hh_vibe.providers.llm.claude_adapter.AsyncAnthropic") as client_cls:
            client_cls.return_value.messages.create = AsyncMock(side_effect=error)
            adapter = ClaudeAdapter(claude_config)

            with pytest.raises(TransientError):
                await adapter.complete(
                    [LLMMessage(role="user", content="x")], TaskType.CHAT_RESPONSE
                )

    @pytest.mark.asyncio
    async def test_transient_error_retried_within_budget(self, anthropic_response):
        import anthropic

        config = ProviderConfig(anthropic_api_key="k", max_retries=1)
        error = anthropic.APIConnectionError(request=MagicMock())
        with (
            patch("hh_vibe.providers.llm.claude_adapter.AsyncAnthropic") as client_cls,
            patch("hh_vibe.providers.retry.asyncio.sleep", new_callable=AsyncMock),
        ):
            create = AsyncMock(side_effect=[error, anthropic_response])
            client_cls.return_value.messages.create = create
            adapter = ClaudeAdapter(config)

            response = await adapter.complete(
                [LLMMessage(role="user", content="x")], TaskType.CHAT_RESPONSE
            )

        assert create.call_count == 2
        assert response.finish_reason == "end_turn"


class TestOpenAIAdapter:
    @pytest.mark.asyncio
    async def test_json_mode_sets_response_format(self):
        completion = MagicMock()
        completion.choices = [MagicMock(finish_reason="stop")]
        completion.choices[0].message.content = '{"intent": "greeting"}'
        completion.usage = MagicMock(prompt_tokens=7, completion_tokens=3)

        with patch("hh_vibe.providers.llm.openai_adapter.AsyncOpenAI") as client_cls:
            create = AsyncMock(return_value=completion)
            client_cls.return_value.chat.completions.create = create
            adapter = OpenAIAdapter(ProviderConfig(openai_api_key="k", default_max_tokens=512))

            response = await adapter.complete(
                [
                    LLMMessage(role="system", content="Классифицируй"),
                    LLMMessage(role="user", content="Привет"),
                ],
                TaskType.INTENT_CLASSIFICATION,
                temperature=0.1,
                json_mode=True,
            )

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 512
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "Классифицируй"}
        assert response.content == '{"intent": "greeting"}'
        assert response.output_tokens == 3


class TestGeminiErrorMapping:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("429 RESOURCE_EXHAUSTED. Quota exceeded", RateLimitError),
            ("400 User location is not supported for the API use.", AuthenticationError),
            ("Response was blocked due to SAFETY", ContentFilterError),
            ("503 The model is overloaded. UNAVAILABLE", TransientError),
        ],
    )
    def test_error_text_classified(self, text, expected):
        adapter = GeminiAdapter(ProviderConfig(google_api_key="k"))

        error = adapter._classify_error(RuntimeError(text))

        assert type(error) is expected
        assert str(error) == text


class TestProviderConfigFromEnv:
    def test_reads_keys_and_routing(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", " Claude ")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        monkeypatch.setenv("OPENAI_API_KEY", "")
        monkeypatch.setenv("CLAUDE_MODEL_ROUTING", '{"game_day": "claude-custom"}')
        monkeypatch.setenv("LLM_MAX_RETRIES", "0")

        config = ProviderConfig.from_env()

        assert config.llm_provider == "claude"
        assert config.anthropic_api_key == "sk-ant"
        assert config.openai_api_key is None
        assert config.claude_model_routing == {"game_day": "claude-custom"}
        assert config.max_retries == 0

    def test_routing_must_be_object_of_strings(self, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL_ROUTING", '["gemini-2.5-pro"]')

        with pytest.raises(ValueError, match="GEMINI_MODEL_ROUTING"):
            ProviderConfig.from_env()

"""Tests for response parsing utilities and AgentSDKClient."""

import asyncio

import pytest
from unittest.mock import patch

from claude_agent_sdk import ResultMessage, AssistantMessage, TextBlock


def _make_result_message(result_text: str, structured_output=None) -> ResultMessage:
    """Helper to create a ResultMessage with required fields."""
    return ResultMessage(
        subtype="result",
        duration_ms=100,
        duration_api_ms=80,
        is_error=False,
        num_turns=1,
        session_id="test-session",
        total_cost_usd=0.001,
        usage={"input_tokens": 10, "output_tokens": 20},
        result=result_text,
        structured_output=structured_output,
    )


def _make_assistant_message(text: str) -> AssistantMessage:
    """Helper to create an AssistantMessage with a text block."""
    return AssistantMessage(
        content=[TextBlock(text=text)],
        model="claude-haiku-4-5",
        parent_tool_use_id=None,
        error=None,
    )


def _query_yielding(*messages, calls=None):
    async def mock_query(*args, **kwargs):
        if calls is not None:
            calls.append(kwargs)
        for message in messages:
            yield message
    return mock_query


class TestParseJsonResponse:
    def test_direct_json(self):
        from tools.response_parser import parse_json_response
        assert parse_json_response('{"key": "value", "num": 42}') == {"key": "value", "num": 42}

    def test_markdown_code_fence_with_lang(self):
        from tools.response_parser import parse_json_response
        assert parse_json_response('```json\n{"key": "value"}\n```') == {"key": "value"}

    def test_markdown_code_fence_without_lang(self):
        from tools.response_parser import parse_json_response
        assert parse_json_response('```\n{"key": "value"}\n```') == {"key": "value"}

    def test_json_embedded_in_prose(self):
        from tools.response_parser import parse_json_response
        result = parse_json_response('Here is the brief: {"score": 8.5, "passed": true}. Hope it helps.')
        assert result["score"] == 8.5
        assert result["passed"] is True

    def test_raw_newline_inside_string(self):
        from tools.response_parser import parse_json_response
        result = parse_json_response('{"body": "line one\nline two"}')
        assert result["body"] == "line one\nline two"

    def test_invalid_raises_value_error(self):
        from tools.response_parser import parse_json_response
        with pytest.raises(ValueError, match="Failed to parse"):
            parse_json_response("this is not json at all")

    def test_json_array(self):
        from tools.response_parser import parse_json_response
        assert parse_json_response("[1, 2, 3]") == [1, 2, 3]


class TestParseModel:
    def test_valid_payload(self):
        from models.schemas import InitialQueries
        from tools.response_parser import parse_model

        result = parse_model('{"queries": ["a", "b"]}', InitialQueries)
        assert result.queries == ["a", "b"]

    def test_single_element_list_is_unwrapped(self):
        from models.schemas import SupplementalQueries
        from tools.response_parser import parse_model

        result = parse_model('[{"queries": ["only"]}]', SupplementalQueries)
        assert result.queries == ["only"]

    def test_constraint_violation_names_schema_and_field(self):
        from config.exceptions import SchemaValidationError
        from models.schemas import InitialQueries
        from tools.response_parser import parse_model

        with pytest.raises(SchemaValidationError) as exc_info:
            parse_model('{"queries": ["just one"]}', InitialQueries)
        assert exc_info.value.schema == "InitialQueries"
        assert "queries" in exc_info.value.errors

    def test_non_json_is_a_schema_error(self):
        from config.exceptions import SchemaValidationError
        from models.schemas import InitialQueries
        from tools.response_parser import parse_model

        with pytest.raises(SchemaValidationError):
            parse_model("I could not find anything.", InitialQueries)


class TestIsAffirmative:
    @pytest.mark.parametrize("answer", ["YES", "yes", "Yes, more statistics are needed.", "  YES\n", "**YES**"])
    def test_yes(self, answer):
        from tools.response_parser import is_affirmative
        assert is_affirmative(answer)

    @pytest.mark.parametrize("answer", [
        "NO", "no", "The dossier is sufficient.", "", None, "Yesterday",
        "NO, yes the dossier is enough", "Not sure, maybe YES",
    ])
    def test_no(self, answer):
        from tools.response_parser import is_affirmative
        assert not is_affirmative(answer)


class TestAgentSDKClient:
    @pytest.mark.asyncio
    async def test_chat_returns_result_text(self, settings):
        with patch("tools.agent_sdk_client.query", _query_yielding(_make_result_message("Hello"))):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            result = await client.chat("system prompt", "user prompt")
            assert result == "Hello"
            assert client.total_calls == 1

    @pytest.mark.asyncio
    async def test_chat_defaults_to_analysis_model(self, settings):
        calls = []
        with patch("tools.agent_sdk_client.query", _query_yielding(_make_result_message("ok"), calls=calls)):
            from tools.agent_sdk_client import AgentSDKClient
            await AgentSDKClient(settings).chat("system", "user")
        assert calls[0]["options"].model == settings.llm_model_analysis

    @pytest.mark.asyncio
    async def test_chat_fallback_to_assistant_message(self, settings):
        with patch("tools.agent_sdk_client.query", _query_yielding(_make_assistant_message("Fallback text"))):
            from tools.agent_sdk_client import AgentSDKClient
            result = await AgentSDKClient(settings).chat("system", "user")
            assert result == "Fallback text"

    @pytest.mark.asyncio
    async def test_chat_raises_llm_error_on_exception(self, settings):
        from config.exceptions import LLMError

        async def mock_query(*args, **kwargs):
            raise RuntimeError("Connection failed")
            yield  # Make it an async generator

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            with pytest.raises(LLMError, match="Connection failed"):
                await client.chat("system", "user")
            assert client.get_usage_summary() == {"total_calls": 1, "failed_calls": 1}

    @pytest.mark.asyncio
    async def test_chat_times_out(self, settings):
        from config.exceptions import LLMTimeoutError

        async def mock_query(*args, **kwargs):
            await asyncio.sleep(1)
            yield _make_result_message("too late")

        settings.llm_timeout_seconds = 0.01
        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            with pytest.raises(LLMTimeoutError):
                await AgentSDKClient(settings).chat("system", "user")

    @pytest.mark.asyncio
    async def test_invoke_without_schema_returns_text(self, settings):
        with patch("tools.agent_sdk_client.query", _query_yielding(_make_result_message("NO"))):
            from tools.agent_sdk_client import AgentSDKClient
            assert await AgentSDKClient(settings).invoke("system", "user") == "NO"

    @pytest.mark.asyncio
    async def test_invoke_prefers_structured_output(self, settings):
        from models.schemas import InitialQueries

        calls = []
        message = _make_result_message("ignored prose", structured_output={"queries": ["a", "b", "c"]})
        with patch("tools.agent_sdk_client.query", _query_yielding(message, calls=calls)):
            from tools.agent_sdk_client import AgentSDKClient
            result = await AgentSDKClient(settings).invoke("system", "user", schema=InitialQueries, model="m")

        assert isinstance(result, InitialQueries)
        assert result.queries == ["a", "b", "c"]
        options = calls[0]["options"]
        assert options.model == "m"
        assert options.output_format["type"] == "json_schema"
        assert "JSON schema" in options.system_prompt

    @pytest.mark.asyncio
    async def test_invoke_parses_fenced_text(self, settings):
        from models.schemas import SupplementalQueries

        message = _make_result_message('```json\n{"queries": ["churn rate"]}\n```')
        with patch("tools.agent_sdk_client.query", _query_yielding(message)):
            from tools.agent_sdk_client import AgentSDKClient
            result = await AgentSDKClient(settings).invoke("system", "user", schema=SupplementalQueries)
        assert result.queries == ["churn rate"]

    @pytest.mark.asyncio
    async def test_invoke_rejects_invalid_payload(self, settings):
        from config.exceptions import SchemaValidationError
        from models.schemas import SupplementalQueries

        message = _make_result_message('{"queries": []}')
        with patch("tools.agent_sdk_client.query", _query_yielding(message)):
            from tools.agent_sdk_client import AgentSDKClient
            with pytest.raises(SchemaValidationError):
                await AgentSDKClient(settings).invoke("system", "user", schema=SupplementalQueries)

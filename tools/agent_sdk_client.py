"""Claude Agent SDK wrapper: the generative text capability used by every step."""

import asyncio
import json
import logging
import os
from typing import Callable, Optional, Type, TypeVar

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)
from pydantic import BaseModel

from config.settings import Settings
from config.exceptions import LLMError, LLMTimeoutError
from tools.response_parser import parse_model

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# The SDK refuses to start when it detects it is nested in a Claude Code session.
os.environ.pop("CLAUDECODE", None)

_SCHEMA_INSTRUCTIONS = (
    "\n\nRespond with a single JSON object only, no prose and no markdown fences. "
    "It must validate against this JSON schema:\n{schema}"
)


class AgentSDKClient:
    """Claude Agent SDK wrapper.

    Uses claude_agent_sdk.query() for all LLM interactions. Authentication is
    handled by the Claude Code CLI the SDK launches.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.total_calls = 0
        self.failed_calls = 0

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_turns: int = 1,
        on_event: Optional[Callable[[dict], None]] = None,
        output_format: Optional[dict] = None,
    ) -> str:
        """Send a request and return the text result.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            model: Model name override. Defaults to the analysis model.
            max_turns: Maximum agentic turns.
            on_event: Optional callback fired with progress events:
                      {"type": "text", "text": str}   first text chunk
                      {"type": "result"}              final result ready
            output_format: Optional structured output request passed to the SDK.

        Returns:
            The model's text response. When structured output was requested and
            the SDK returned it, the JSON-encoded structured payload.

        Raises:
            LLMTimeoutError: If the call exceeds ``llm_timeout_seconds``.
            LLMError: If the query fails.
        """
        model = model or self.settings.llm_model_analysis
        self.total_calls += 1

        logger.debug("AgentSDK call: model=%s, max_turns=%d", model, max_turns)
        logger.debug("AgentSDK prompt (%d chars): %s", len(user_prompt), user_prompt[:500])

        options_kwargs = {
            "system_prompt": system_prompt,
            "model": model,
            "max_turns": max_turns,
        }
        if output_format:
            options_kwargs["output_format"] = output_format

        try:
            result_text = await asyncio.wait_for(
                self._collect(user_prompt, ClaudeAgentOptions(**options_kwargs), on_event),
                timeout=self.settings.llm_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            self.failed_calls += 1
            raise LLMTimeoutError(
                "Agent SDK query timed out",
                {"model": model, "timeout": self.settings.llm_timeout_seconds},
            ) from e
        except Exception as e:
            self.failed_calls += 1
            raise LLMError(f"Agent SDK query failed: {e}", {"model": model}) from e

        if not result_text:
            logger.warning("AgentSDK returned no content (model=%s)", model)

        return result_text

    async def _collect(
        self,
        user_prompt: str,
        options: ClaudeAgentOptions,
        on_event: Optional[Callable[[dict], None]],
    ) -> str:
        # query() uses anyio cancel scopes internally, so the generator is
        # always exhausted rather than exited early.
        result_text = ""
        text_fired = False
        async for message in query(prompt=user_prompt, options=options):
            if isinstance(message, ResultMessage):
                structured = getattr(message, "structured_output", None)
                if structured is not None:
                    result_text = json.dumps(structured, ensure_ascii=False)
                else:
                    result_text = message.result or result_text
                logger.debug(
                    "AgentSDK result: %d chars, cost=$%s",
                    len(result_text),
                    message.total_cost_usd,
                )
                if on_event:
                    on_event({"type": "result"})
            elif isinstance(message, AssistantMessage):
                for block in message.content:
                    text = getattr(block, "text", None)
                    if not text:
                        continue
                    if on_event and not text_fired:
                        text_fired = True
                        on_event({"type": "text", "text": text})
                    if not result_text:
                        result_text = text
        return result_text

    async def invoke(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Optional[Type[ModelT]] = None,
        model: Optional[str] = None,
    ):
        """Free-text or schema-constrained generation.

        Without ``schema`` the raw text is returned. With a pydantic model the
        SDK is asked for structured output matching its JSON schema and the
        result is validated before being returned.

        Raises:
            LLMError: If the capability fails or times out.
            SchemaValidationError: If the payload does not match ``schema``.
        """
        if schema is None:
            return await self.chat(system_prompt, user_prompt, model=model)

        json_schema = schema.model_json_schema()
        text = await self.chat(
            system_prompt + _SCHEMA_INSTRUCTIONS.format(schema=json.dumps(json_schema)),
            user_prompt,
            model=model,
            output_format={"type": "json_schema", "schema": json_schema},
        )
        return parse_model(text, schema)

    def get_usage_summary(self) -> dict:
        """Return call count statistics."""
        return {"total_calls": self.total_calls, "failed_calls": self.failed_calls}

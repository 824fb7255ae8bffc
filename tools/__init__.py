"""Tools package: Agent SDK client, response parsing, prompt templates, and config stores."""

from tools.agent_sdk_client import AgentSDKClient
from tools.response_parser import parse_json_response, parse_model, is_affirmative
from tools.prompt_template import PromptTemplate, format_list
from tools.config_store import (
    ConfigurationStore,
    PromptFileConfigStore,
    DatabaseConfigStore,
    build_config_store,
)

__all__ = [
    "AgentSDKClient",
    "parse_json_response",
    "parse_model",
    "is_affirmative",
    "PromptTemplate",
    "format_list",
    "ConfigurationStore",
    "PromptFileConfigStore",
    "DatabaseConfigStore",
    "build_config_store",
]

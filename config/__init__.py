"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    ContentKitError,
    LLMError,
    LLMTimeoutError,
    SearchError,
    SearchTimeoutError,
    ConfigurationError,
    AgentConfigNotFoundError,
    DatabaseError,
    WorkflowError,
    StepError,
    WorkflowStateError,
    PreconditionError,
    NoSearchResultsError,
    FanOutError,
    ThemeSelectionError,
    RegenerationLimitError,
    ValidationError,
    SchemaValidationError,
    TemplateSlotError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "ContentKitError",
    "LLMError",
    "LLMTimeoutError",
    "SearchError",
    "SearchTimeoutError",
    "ConfigurationError",
    "AgentConfigNotFoundError",
    "DatabaseError",
    "WorkflowError",
    "StepError",
    "WorkflowStateError",
    "PreconditionError",
    "NoSearchResultsError",
    "FanOutError",
    "ThemeSelectionError",
    "RegenerationLimitError",
    "ValidationError",
    "SchemaValidationError",
    "TemplateSlotError",
    "InvalidConfigError",
]

"""Custom exception hierarchy for the content generation workflow."""

from typing import Optional


class ContentKitError(Exception):
    """Base exception for all content workflow errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message

    @property
    def step(self) -> Optional[str]:
        """Step id the error was raised in, if known."""
        return self.details.get("step")


# ---- LLM Errors ----

class LLMError(ContentKitError):
    """Base exception for LLM capability errors."""


class LLMTimeoutError(LLMError):
    """LLM request timed out."""


# ---- Search Errors ----

class SearchError(ContentKitError):
    """Vector search capability failed."""


class SearchTimeoutError(SearchError):
    """Vector search exceeded its per-query deadline."""


# ---- Configuration Errors ----

class ConfigurationError(ContentKitError):
    """Step configuration could not be loaded."""


class AgentConfigNotFoundError(ConfigurationError):
    """No active configuration exists for a step."""

    def __init__(self, step_id: str):
        super().__init__(f"No active configuration for step '{step_id}'", {"step": step_id})
        self.step_id = step_id


# ---- Database Errors ----

class DatabaseError(ContentKitError):
    """Database operation failed."""


# ---- Workflow Errors ----

class WorkflowError(ContentKitError):
    """Base exception for workflow orchestration errors."""


class StepError(WorkflowError):
    """Unexpected failure inside a generation step."""


class WorkflowStateError(WorkflowError):
    """Invalid or missing workflow state."""


class PreconditionError(WorkflowStateError):
    """A step's required upstream field is missing."""

    def __init__(self, step: str, field: str):
        super().__init__(
            f"Step '{step}' requires '{field}' but it is missing from state",
            {"step": step, "field": field},
        )
        self.field = field


class NoSearchResultsError(WorkflowError):
    """The retrieval loop finished without a single search hit."""

    def __init__(self, queries_issued: int, step: Optional[str] = None):
        details = {"queries_issued": queries_issued}
        if step:
            details["step"] = step
        super().__init__("No search results found across the retrieval loop", details)
        self.queries_issued = queries_issued


class FanOutError(WorkflowError):
    """One or more sibling steps of a fan-out group failed."""

    def __init__(self, group: str, failures: dict[str, BaseException]):
        failed = sorted(failures)
        super().__init__(
            f"Fan-out group '{group}' failed: {len(failed)} step(s) raised",
            {"step": group, "failed_steps": ",".join(failed)},
        )
        self.group = group
        self.failures = failures


class ThemeSelectionError(WorkflowError):
    """The selected theme id is not one of the generated themes."""

    def __init__(self, theme_id: str):
        super().__init__(f"Theme with ID {theme_id} not found", {"theme_id": theme_id})
        self.theme_id = theme_id


class RegenerationLimitError(WorkflowError):
    """Theme regeneration count reached the configured maximum."""

    def __init__(self, regeneration_count: int, max_regenerations: int):
        super().__init__(
            "Maximum theme regenerations reached",
            {"regeneration_count": regeneration_count, "max_regenerations": max_regenerations},
        )


# ---- Validation Errors ----

class ValidationError(ContentKitError):
    """Input or output validation failed."""


class SchemaValidationError(ValidationError):
    """A capability returned data that does not match the expected schema."""

    def __init__(self, schema: str, errors: str, step: Optional[str] = None):
        details = {"schema": schema}
        if step:
            details["step"] = step
        super().__init__(f"Response does not match {schema}: {errors}", details)
        self.schema = schema
        self.errors = errors


class TemplateSlotError(ValidationError):
    """A prompt template was rendered with missing or unknown slots."""

    def __init__(self, missing: set[str], unexpected: set[str]):
        parts = []
        if missing:
            parts.append(f"missing slots: {', '.join(sorted(missing))}")
        if unexpected:
            parts.append(f"unknown slots: {', '.join(sorted(unexpected))}")
        super().__init__(f"Prompt template rendering failed ({'; '.join(parts)})")
        self.missing = missing
        self.unexpected = unexpected


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""

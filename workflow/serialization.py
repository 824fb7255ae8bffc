"""JSON serialization of suspended workflow state."""

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from config.exceptions import WorkflowStateError
from workflow.state import ContentWorkflowState

_STATE_ADAPTER = TypeAdapter(ContentWorkflowState)


def dump_state(state: ContentWorkflowState) -> str:
    return _STATE_ADAPTER.dump_json(state).decode("utf-8")


def load_state(text: str | bytes) -> ContentWorkflowState:
    """Parse a stored state, rejecting fields of the wrong type."""
    try:
        return _STATE_ADAPTER.validate_json(text)
    except PydanticValidationError as e:
        raise WorkflowStateError(
            "Stored workflow state is invalid",
            {"errors": e.error_count()},
        ) from e


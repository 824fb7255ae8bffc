"""Stored workflow run record."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class WorkflowRun:
    """A workflow state held between Start and Resume."""
    run_id: str = ""
    whitepaper_id: str = ""
    current_step: str = ""
    needs_human_input: bool = False
    is_complete: bool = False
    state_json: str = "{}"  # Serialized ContentWorkflowState
    error: Optional[str] = None  # Last terminal failure, if any
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

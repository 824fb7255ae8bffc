"""Workflow package: LangGraph graph, state, routing, fan-out and utilities."""

from workflow.graph import ContentWorkflow, build_graph, run_workflow
from workflow.state import ContentWorkflowState
from workflow.conditions import (
    route_entry,
    route_after_brief,
    route_after_themes,
    route_after_research,
    route_after_content_generation,
)
from workflow.fan_out import FanOutGroup
from workflow.output import build_final_output
from workflow.serialization import dump_state, load_state
from workflow.callbacks import WorkflowCallback, LoggingCallback, RichProgressCallback

__all__ = [
    "ContentWorkflow",
    "build_graph",
    "run_workflow",
    "ContentWorkflowState",
    "route_entry",
    "route_after_brief",
    "route_after_themes",
    "route_after_research",
    "route_after_content_generation",
    "FanOutGroup",
    "build_final_output",
    "dump_state",
    "load_state",
    "WorkflowCallback",
    "LoggingCallback",
    "RichProgressCallback",
]

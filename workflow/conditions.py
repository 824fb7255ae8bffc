"""Conditional routing functions for the LangGraph workflow."""

from models.enums import WorkflowStep
from workflow.state import ContentWorkflowState

DRAFT_KEYS = ("article_output", "linkedin_output", "social_output")
COUNT_KEYS = ("articles_count", "linkedin_posts_count", "social_posts_count")


def route_entry(state: ContentWorkflowState) -> str:
    """Route from START: resume, regenerate themes, or begin a fresh run."""
    step = state.get("current_step")
    if step == WorkflowStep.THEME_SELECTED and state.get("selected_theme"):
        return "research_theme"
    if step == WorkflowStep.BRIEF_COMPLETE and state.get("marketing_brief"):
        return "generate_themes"
    return "create_brief"


def route_after_brief(state: ContentWorkflowState) -> str:
    """Route after create_brief: themes need a completed brief."""
    if state.get("marketing_brief") and state.get("current_step") == WorkflowStep.BRIEF_COMPLETE:
        return "generate_themes"
    return "__end__"


def route_after_themes(state: ContentWorkflowState) -> str:
    """Route after generate_themes: a full batch of 3 suspends for selection."""
    if len(state.get("generated_themes") or []) == 3:
        return "await_theme_selection"
    return "__end__"


def route_after_research(state: ContentWorkflowState) -> str:
    """Route after research_theme: draft only when some content was requested."""
    if state.get("research_dossier") and any(state.get(k, 0) > 0 for k in COUNT_KEYS):
        return "generate_content"
    return "finish"


def route_after_content_generation(state: ContentWorkflowState) -> str:
    """Route after generate_content: edit whatever was drafted."""
    if state.get("current_step") == WorkflowStep.CONTENT_GENERATED and any(
        state.get(k) for k in DRAFT_KEYS
    ):
        return "edit_content"
    return "finish"

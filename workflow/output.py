"""Final output assembly for a finished (or suspended) run."""

from datetime import datetime, timezone
from typing import Mapping, Optional

from models.enums import StepId
from models.schemas import ChannelContent, FinalContentOutput, GenerationMetadata, WorkflowStatus

# (state field that proves the step ran, step id), in pipeline order
_STEP_OUTPUTS = (
    ("marketing_brief", StepId.BRIEF_CREATOR),
    ("generated_themes", StepId.THEME_GENERATOR),
    ("research_dossier", StepId.RESEARCHER),
    ("article_output", StepId.ARTICLE_WRITER),
    ("linkedin_output", StepId.LINKEDIN_WRITER),
    ("social_output", StepId.SOCIAL_WRITER),
    ("edited_article_output", StepId.ARTICLE_EDITOR),
    ("edited_linkedin_output", StepId.LINKEDIN_EDITOR),
    ("edited_social_output", StepId.SOCIAL_EDITOR),
)

_EDITED = {
    "article": "edited_article_output",
    "linkedin": "edited_linkedin_output",
    "social": "edited_social_output",
}


def agents_used(state: Mapping) -> list[str]:
    return [step.value for key, step in _STEP_OUTPUTS if state.get(key)]


def build_final_output(state: Mapping, started_at: Optional[datetime] = None) -> FinalContentOutput:
    """Assemble the caller-facing result, preferring edited over unedited content.

    Args:
        state: Workflow state as returned by ``start`` or ``resume``.
        started_at: When the run began; enables ``processing_time_ms``.
    """
    now = datetime.now(timezone.utc)
    original = ChannelContent(
        article=state.get("article_output"),
        linkedin_posts=state.get("linkedin_output"),
        social_posts=state.get("social_output"),
    )
    edited = ChannelContent(
        article=state.get("edited_article_output"),
        linkedin_posts=state.get("edited_linkedin_output"),
        social_posts=state.get("edited_social_output"),
    )

    processing_ms = None
    if started_at is not None:
        processing_ms = int((now - started_at).total_seconds() * 1000)

    metadata = GenerationMetadata(
        created_at=now.isoformat(),
        processing_time_ms=processing_ms,
        agents_used=agents_used(state),
        search_queries_issued=len(state.get("search_history") or []),
        editing_completed=any(state.get(key) for key in _EDITED.values()),
        content_quality_scores={
            channel: (state.get(key) or {}).get("quality_score")
            for channel, key in _EDITED.items()
        },
    )

    return FinalContentOutput(
        marketing_brief=state.get("marketing_brief"),
        selected_theme=state.get("selected_theme"),
        generated_themes=state.get("generated_themes") or [],
        research_dossier=state.get("research_dossier"),
        article=edited.article or original.article,
        linkedin_posts=edited.linkedin_posts or original.linkedin_posts,
        social_posts=edited.social_posts or original.social_posts,
        original_content=original,
        edited_content=edited,
        workflow_state=WorkflowStatus(
            current_step=state.get("current_step"),
            needs_human_input=state.get("needs_human_input", False),
            is_complete=state.get("is_complete", False),
        ),
        generation_metadata=metadata,
    )

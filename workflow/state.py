"""LangGraph workflow state definition."""

from operator import add
from typing import Annotated, Optional

from typing_extensions import TypedDict


class ContentWorkflowState(TypedDict, total=False):
    """Global state threaded through every workflow node.

    Fields are grouped logically:
    - Input: business_context, target_audience, marketing_goals, counts, CTA, whitepaper
    - Control: current_step, needs_human_input, is_complete, last_node
    - Brief and themes: marketing_brief, generated_themes, previous_themes, regeneration_count
    - Research: selected_theme, research_dossier, search_history
    - Content: the three drafting outputs and their edited counterparts

    Records are stored as JSON-compatible dicts so the whole state can be
    handed back to the caller and serialized while suspended.
    """

    # Input
    business_context: str
    target_audience: str
    marketing_goals: str
    articles_count: int
    linkedin_posts_count: int
    social_posts_count: int
    cta_type: str  # "download_whitepaper" or "contact_us"
    cta_url: Optional[str]
    selected_whitepaper_id: Optional[str]

    # Control flow
    current_step: str
    needs_human_input: bool
    is_complete: bool
    last_node: str

    # Brief and themes
    marketing_brief: dict
    generated_themes: list[dict]  # exactly 3, replaced on regeneration
    previous_themes: Annotated[list[dict], add]  # every theme ever shown
    regeneration_count: int

    # Research
    selected_theme: dict
    research_dossier: dict
    search_history: Annotated[list[str], add]

    # Drafting
    article_output: dict
    linkedin_output: dict
    social_output: dict

    # Editing
    edited_article_output: dict
    edited_linkedin_output: dict
    edited_social_output: dict

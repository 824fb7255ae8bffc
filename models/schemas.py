"""Pydantic record schemas for step inputs and outputs.

Every payload a language model returns is validated against one of these
models before it is accepted into workflow state.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from config.exceptions import ConfigurationError
from models.enums import Confidence, SocialPlatform


# ---- Brief ----

class TargetPersona(BaseModel):
    demographic: str
    psychographic: str
    pain_points: list[str]
    motivations: list[str]


class ContentStrategy(BaseModel):
    articles: int = Field(ge=0)
    linkedin_posts: int = Field(ge=0)
    social_posts: int = Field(ge=0)


class CallToAction(BaseModel):
    type: str
    message: str
    url: Optional[str] = None


class MarketingBrief(BaseModel):
    executive_summary: str
    target_persona: TargetPersona
    campaign_objectives: list[str]
    key_messages: list[str]
    content_strategy: ContentStrategy
    call_to_action: CallToAction


# ---- Themes ----

class Theme(BaseModel):
    """A candidate content angle. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    why_it_works: list[str] = Field(min_length=3, max_length=3)
    detailed_description: str


class ThemeBatch(BaseModel):
    themes: list[Theme] = Field(min_length=3, max_length=3)


# ---- Research ----

class KeyFinding(BaseModel):
    claim: str
    evidence: str
    confidence: Confidence


class WhitepaperEvidence(BaseModel):
    key_findings: list[KeyFinding] = Field(min_length=6, max_length=8)


class SuggestedConcept(BaseModel):
    title: str
    angle: str
    why_it_works: str
    key_evidence: list[str] = Field(min_length=3, max_length=3)
    content_direction: str


class ResearchSynthesis(BaseModel):
    """What the research synthesis call returns; the step attaches the theme."""

    whitepaper_evidence: WhitepaperEvidence
    suggested_concepts: list[SuggestedConcept] = Field(min_length=3, max_length=3)
    research_summary: str


class ResearchDossier(ResearchSynthesis):
    selected_theme: Theme


# ---- Drafting ----

class Article(BaseModel):
    headline: str
    subheadline: str
    body: str
    word_count: int = Field(ge=0)
    key_takeaways: list[str] = Field(min_length=3, max_length=5)
    seo_keywords: list[str] = Field(min_length=3, max_length=8)
    call_to_action: str
    concept_used: str


class ArticleOutput(BaseModel):
    articles: list[Article] = Field(min_length=1, max_length=3)
    generation_strategy: str
    whitepaper_utilization: str


class LinkedInPost(BaseModel):
    hook: str
    body: str
    call_to_action: str
    character_count: int = Field(ge=0)
    concept_used: str


class LinkedInOutput(BaseModel):
    posts: list[LinkedInPost] = Field(min_length=1, max_length=10)
    generation_strategy: str
    whitepaper_utilization: str


class SocialPost(BaseModel):
    platform: SocialPlatform
    content: str
    character_count: int = Field(ge=0)
    visual_suggestion: str
    concept_used: str


class SocialOutput(BaseModel):
    posts: list[SocialPost] = Field(min_length=1, max_length=15)
    generation_strategy: str
    whitepaper_utilization: str


# ---- Editing ----

class EditedArticleOutput(BaseModel):
    articles: list[Article] = Field(min_length=1, max_length=3)
    editing_notes: str
    quality_score: float = Field(ge=1, le=10)


class EditedLinkedInOutput(BaseModel):
    posts: list[LinkedInPost] = Field(min_length=1, max_length=10)
    editing_notes: str
    quality_score: float = Field(ge=1, le=10)


class EditedSocialOutput(BaseModel):
    posts: list[SocialPost] = Field(min_length=1, max_length=15)
    editing_notes: str
    quality_score: float = Field(ge=1, le=10)


# ---- Retrieval loop ----

class InitialQueries(BaseModel):
    queries: list[str] = Field(min_length=2, max_length=3)


class QueryAnalysis(BaseModel):
    """Analysis of one query's hits; an empty ``next_queries`` ends the loop."""

    analysis: str
    next_queries: list[str] = Field(default_factory=list, max_length=4)


class EmergingConcept(BaseModel):
    angle: str
    reasoning: str


class ConceptAnalysis(QueryAnalysis):
    emerging_concepts: list[EmergingConcept] = Field(default_factory=list)


class SupplementalQueries(BaseModel):
    queries: list[str] = Field(min_length=1, max_length=3)


class SearchHit(BaseModel):
    id: str
    text: str
    score: float
    category: Optional[str] = None


class RetrievalLogEntry(BaseModel):
    query: str
    result_count: int
    analysis: str = ""
    error: Optional[str] = None


# ---- Configuration ----

class AgentConfig(BaseModel):
    """Prompt and model configuration for one generation step."""

    step_id: str
    system_prompt: str
    user_prompt_template: str
    model_name: str
    sections: dict[str, str] = Field(default_factory=dict)

    def section(self, name: str) -> str:
        """Return a named auxiliary template."""
        if name not in self.sections:
            raise ConfigurationError(
                f"Step '{self.step_id}' has no '{name}' template",
                {"step": self.step_id, "section": name},
            )
        return self.sections[name]


# ---- Final output ----

class ChannelContent(BaseModel):
    article: Optional[dict] = None
    linkedin_posts: Optional[dict] = None
    social_posts: Optional[dict] = None


class WorkflowStatus(BaseModel):
    current_step: Optional[str] = None
    needs_human_input: bool = False
    is_complete: bool = False


class GenerationMetadata(BaseModel):
    created_at: str
    processing_time_ms: Optional[int] = None
    agents_used: list[str] = Field(default_factory=list)
    search_queries_issued: int = 0
    editing_completed: bool = False
    content_quality_scores: dict[str, Optional[float]] = Field(default_factory=dict)


class FinalContentOutput(BaseModel):
    """Everything a run produced, with edited content preferred per channel."""

    marketing_brief: Optional[dict] = None
    selected_theme: Optional[dict] = None
    generated_themes: list[dict] = Field(default_factory=list)
    research_dossier: Optional[dict] = None
    article: Optional[dict] = None
    linkedin_posts: Optional[dict] = None
    social_posts: Optional[dict] = None
    original_content: ChannelContent
    edited_content: ChannelContent
    workflow_state: WorkflowStatus
    generation_metadata: GenerationMetadata

"""Shared pytest fixtures for the contentkit test suite."""

import itertools
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest


# ---------------------------------------------------------------------------
# Payload factories (what a well-behaved model would return per schema)
# ---------------------------------------------------------------------------

_theme_counter = itertools.count(1)


def brief_payload() -> dict:
    return {
        "executive_summary": "Position the platform as the fastest path to trustworthy analytics.",
        "target_persona": {
            "demographic": "Data leaders at mid-size companies",
            "psychographic": "Pragmatic, skeptical of hype",
            "pain_points": ["Slow reporting", "Untrusted numbers"],
            "motivations": ["Faster decisions", "Fewer fire drills"],
        },
        "campaign_objectives": ["Drive whitepaper downloads"],
        "key_messages": ["Trust your numbers again"],
        "content_strategy": {"articles": 1, "linkedin_posts": 2, "social_posts": 3},
        "call_to_action": {"type": "download_whitepaper", "message": "Get the report"},
    }


def theme_payload(title: str) -> dict:
    return {
        "id": "placeholder",
        "title": title,
        "description": f"{title} in one sentence.",
        "why_it_works": ["Timely", "Evidence-backed", "Audience pain point"],
        "detailed_description": f"A longer take on {title}.",
    }


def theme_batch_payload() -> dict:
    return {"themes": [theme_payload(f"Theme {next(_theme_counter)}") for _ in range(3)]}


def synthesis_payload() -> dict:
    return {
        "whitepaper_evidence": {
            "key_findings": [
                {"claim": f"Claim {i}", "evidence": f"Evidence {i}", "confidence": "high"}
                for i in range(6)
            ],
        },
        "suggested_concepts": [
            {
                "title": f"Concept {i}",
                "angle": "Contrarian",
                "why_it_works": "It surprises",
                "key_evidence": ["a", "b", "c"],
                "content_direction": "Lead with the number",
            }
            for i in range(3)
        ],
        "research_summary": "The whitepaper supports the theme well.",
    }


def article_payload() -> dict:
    return {
        "headline": "Trust is a pipeline problem",
        "subheadline": "Why data quality starts upstream",
        "body": "Body text.",
        "word_count": 900,
        "key_takeaways": ["One", "Two", "Three"],
        "seo_keywords": ["data", "quality", "analytics"],
        "call_to_action": "Download the whitepaper",
        "concept_used": "Concept 0",
    }


def linkedin_post_payload() -> dict:
    return {
        "hook": "Your dashboard is lying.",
        "body": "Here is why.",
        "call_to_action": "Read more",
        "character_count": 220,
        "concept_used": "Concept 1",
    }


def social_post_payload() -> dict:
    return {
        "platform": "twitter",
        "content": "73% of teams distrust their data.",
        "character_count": 34,
        "visual_suggestion": "Bar chart",
        "concept_used": "Concept 2",
    }


def channel_payload(items_key: str, item: dict) -> dict:
    return {
        items_key: [item],
        "generation_strategy": "One concept per item",
        "whitepaper_utilization": "Findings 1-3",
    }


def edited_payload(items_key: str, item: dict, score: float = 8.5) -> dict:
    return {items_key: [item], "editing_notes": "Tightened the hook.", "quality_score": score}


PAYLOADS = {
    "MarketingBrief": brief_payload,
    "InitialQueries": lambda: {"queries": ["broad query one", "broad query two"]},
    "QueryAnalysis": lambda: {"analysis": "Useful numbers found.", "next_queries": []},
    "ConceptAnalysis": lambda: {
        "analysis": "Strong evidence.",
        "next_queries": [],
        "emerging_concepts": [{"angle": "Cost of bad data", "reasoning": "Recurring statistic"}],
    },
    "SupplementalQueries": lambda: {"queries": ["extra statistic"]},
    "ThemeBatch": theme_batch_payload,
    "ResearchSynthesis": synthesis_payload,
    "ArticleOutput": lambda: channel_payload("articles", article_payload()),
    "LinkedInOutput": lambda: channel_payload("posts", linkedin_post_payload()),
    "SocialOutput": lambda: channel_payload("posts", social_post_payload()),
    "EditedArticleOutput": lambda: edited_payload("articles", article_payload(), 9.0),
    "EditedLinkedInOutput": lambda: edited_payload("posts", linkedin_post_payload(), 8.0),
    "EditedSocialOutput": lambda: edited_payload("posts", social_post_payload(), 7.5),
}


@pytest.fixture
def payloads():
    """Factories for valid model payloads, keyed by schema name."""
    return SimpleNamespace(
        by_schema=PAYLOADS,
        brief=brief_payload,
        theme=theme_payload,
        theme_batch=theme_batch_payload,
        synthesis=synthesis_payload,
        article=article_payload,
        linkedin_post=linkedin_post_payload,
        social_post=social_post_payload,
        channel=channel_payload,
        edited=edited_payload,
    )


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite database path."""
    return tmp_path / "test_contentkit.db"


@pytest.fixture
def db(tmp_db_path):
    """Return an initialized Database instance backed by a temp file."""
    from models.database import Database
    return Database(tmp_db_path)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        sqlite_db_path=tmp_path / "contentkit.db",
        chroma_persist_dir=tmp_path / "chroma",
        log_dir=tmp_path / "logs",
        max_search_iterations=4,
        llm_timeout_seconds=5,
        search_timeout_seconds=1,
    )


@pytest.fixture
def config_store(settings):
    """Prompt-file store reading the bundled default prompts."""
    from tools.config_store import PromptFileConfigStore
    return PromptFileConfigStore(settings)


# ---------------------------------------------------------------------------
# Capability mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm():
    """Scripted AgentSDKClient: ``invoke`` answers every schema with a valid payload.

    Free-text calls (the drafting pre-flight) answer ``preflight_answer``,
    "NO" by default. Set ``overrides[schema_name]`` to a callable or an
    exception to change one schema's behaviour.
    """
    llm = MagicMock()
    llm.preflight_answer = "NO"
    llm.overrides = {}

    async def _invoke(system_prompt, user_prompt, schema=None, model=None):
        if schema is None:
            return llm.preflight_answer
        override = llm.overrides.get(schema.__name__)
        if isinstance(override, BaseException):
            raise override
        factory = override or PAYLOADS[schema.__name__]
        return schema.model_validate(factory())

    llm.invoke = AsyncMock(side_effect=_invoke)
    llm.chat = AsyncMock(return_value="test response")
    llm.get_usage_summary.return_value = {"total_calls": 1, "failed_calls": 0}
    return llm


class FakeSearch:
    """In-memory SearchCapability recording every query."""

    def __init__(self, hits_per_query: int = 3, error: Exception | None = None):
        self.hits_per_query = hits_per_query
        self.error = error
        self.calls: list[tuple[str, str, int, int]] = []

    async def query(self, text, corpus_ref, top_k, top_n):
        from models.schemas import SearchHit
        self.calls.append((text, corpus_ref, top_k, top_n))
        if self.error is not None:
            raise self.error
        n = len(self.calls)
        return [
            SearchHit(id=f"chunk-{n}-{i}", text=f"Evidence for {text} #{i}", score=0.9 - i * 0.1)
            for i in range(min(self.hits_per_query, top_n))
        ]


@pytest.fixture
def fake_search():
    return FakeSearch()


@pytest.fixture
def make_search():
    """Factory for FakeSearch instances with custom behaviour."""
    return FakeSearch


# ---------------------------------------------------------------------------
# Sample state fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def base_input():
    """Campaign input for a run that writes one article only."""
    return {
        "business_context": "We sell a data observability platform.",
        "target_audience": "Heads of data",
        "marketing_goals": "Whitepaper downloads",
        "articles_count": 1,
        "linkedin_posts_count": 0,
        "social_posts_count": 0,
        "cta_type": "contact_us",
        "cta_url": "https://example.com/contact",
        "selected_whitepaper_id": "wp-1",
    }


@pytest.fixture
def selected_theme():
    return {**theme_payload("Selected theme"), "id": "theme-abc"}


@pytest.fixture
def research_state(base_input, selected_theme):
    """State as it stands right before the drafting fan-out."""
    dossier = {**synthesis_payload(), "selected_theme": selected_theme}
    return {
        **base_input,
        "marketing_brief": brief_payload(),
        "selected_theme": selected_theme,
        "research_dossier": dossier,
        "current_step": "research_complete",
    }


@pytest.fixture
def workflow(settings, config_store, mock_llm, fake_search, db):
    """ContentWorkflow wired to the scripted LLM and the in-memory search."""
    from workflow.graph import ContentWorkflow
    return ContentWorkflow(
        settings=settings,
        config_store=config_store,
        llm_client=mock_llm,
        search=fake_search,
        db=db,
    )

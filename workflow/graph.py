"""LangGraph StateGraph: orchestrates the content generation workflow."""

import logging
from typing import Mapping, Optional

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph

from agents import (
    ArticleEditorAgent,
    ArticleWriterAgent,
    BaseAgent,
    BriefCreatorAgent,
    LinkedInEditorAgent,
    LinkedInWriterAgent,
    ResearchAgent,
    SocialEditorAgent,
    SocialWriterAgent,
    ThemeGeneratorAgent,
)
from config.exceptions import (
    InvalidConfigError,
    RegenerationLimitError,
    ThemeSelectionError,
    WorkflowError,
    WorkflowStateError,
)
from config.settings import Settings, get_settings
from models.database import Database
from models.enums import CtaType, WorkflowStep
from retrieval.vector_search import ChromaSearch, SearchCapability
from tools.agent_sdk_client import AgentSDKClient
from tools.config_store import ConfigurationStore, build_config_store
from workflow.conditions import (
    route_after_brief,
    route_after_content_generation,
    route_after_research,
    route_after_themes,
    route_entry,
)
from workflow.fan_out import FanOutGroup
from workflow.state import ContentWorkflowState

logger = logging.getLogger(__name__)

_SUSPENDED_STEPS = (
    WorkflowStep.THEMES_GENERATED.value,
    WorkflowStep.AWAITING_THEME_SELECTION.value,
)

DEFAULT_COUNTS = {
    "articles_count": 1,
    "linkedin_posts_count": 4,
    "social_posts_count": 8,
}

# Upper bounds match the item limits of the channel output schemas
MAX_COUNTS = {
    "articles_count": 3,
    "linkedin_posts_count": 10,
    "social_posts_count": 15,
}


def _check_counts(state: Mapping) -> None:
    for key, limit in MAX_COUNTS.items():
        value = state[key]
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= limit:
            raise InvalidConfigError(
                f"{key} must be an integer between 0 and {limit}, got {value!r}",
                {"field": key, "value": value, "max": limit},
            )


# ---------------------------------------------------------------------------
# Shared resource management: one instance per ContentWorkflow
# ---------------------------------------------------------------------------

class _WorkflowResources:
    """Lazily-initialized resources shared by all nodes of a run.

    Anything passed in is used as-is; the rest is built from settings on
    first use, so a run that never searches never opens the vector store.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        db: Optional[Database] = None,
        search: Optional[SearchCapability] = None,
        llm: Optional[AgentSDKClient] = None,
        config_store: Optional[ConfigurationStore] = None,
    ):
        self._settings = settings
        self._db = db
        self._search = search
        self._llm = llm
        self._config_store = config_store

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = Database(self.settings.sqlite_db_path)
        return self._db

    @property
    def search(self) -> SearchCapability:
        if self._search is None:
            self._search = ChromaSearch(
                self.settings.chroma_persist_dir,
                collection_name=self.settings.chroma_collection,
                timeout_seconds=self.settings.search_timeout_seconds,
            )
        return self._search

    @property
    def llm(self) -> AgentSDKClient:
        if self._llm is None:
            self._llm = AgentSDKClient(self.settings)
        return self._llm

    @property
    def config_store(self) -> ConfigurationStore:
        if self._config_store is None:
            db = self.db if self.settings.prompt_source == "database" else None
            self._config_store = build_config_store(self.settings, db)
        return self._config_store

    def agent(self, agent_cls: type[BaseAgent], with_search: bool = False) -> BaseAgent:
        return agent_cls(
            self.config_store,
            llm_client=self.llm,
            settings=self.settings,
            search=self.search if with_search else None,
        )


def _get_resources(config: Optional[RunnableConfig]) -> _WorkflowResources:
    resources = ((config or {}).get("configurable") or {}).get("resources")
    if resources is None:
        raise WorkflowError("Workflow resources missing from the run configuration")
    return resources


def _content_generation_group(r: _WorkflowResources) -> FanOutGroup:
    return (
        FanOutGroup("content_generation", WorkflowStep.CONTENT_GENERATED)
        .add(r.agent(ArticleWriterAgent, with_search=True), lambda s: s.get("articles_count", 0) > 0)
        .add(r.agent(LinkedInWriterAgent, with_search=True), lambda s: s.get("linkedin_posts_count", 0) > 0)
        .add(r.agent(SocialWriterAgent, with_search=True), lambda s: s.get("social_posts_count", 0) > 0)
    )


def _content_editing_group(r: _WorkflowResources) -> FanOutGroup:
    return (
        FanOutGroup("content_editing", WorkflowStep.CONTENT_EDITED)
        .add(r.agent(ArticleEditorAgent), lambda s: bool(s.get("article_output")))
        .add(r.agent(LinkedInEditorAgent), lambda s: bool(s.get("linkedin_output")))
        .add(r.agent(SocialEditorAgent), lambda s: bool(s.get("social_output")))
    )


# ---------------------------------------------------------------------------
# Node functions. Errors propagate: any failing node ends the run.
# ---------------------------------------------------------------------------

async def create_brief(state: ContentWorkflowState, config: RunnableConfig) -> dict:
    """Turn campaign input into the marketing brief."""
    logger.info("Entering node: create_brief")
    r = _get_resources(config)
    update = await r.agent(BriefCreatorAgent).execute(state)
    return {**update, "last_node": "create_brief"}


async def generate_themes(state: ContentWorkflowState, config: RunnableConfig) -> dict:
    """Research the whitepaper and propose three themes."""
    logger.info("Entering node: generate_themes")
    r = _get_resources(config)
    update = await r.agent(ThemeGeneratorAgent, with_search=True).execute(state)
    return {**update, "last_node": "generate_themes"}


async def await_theme_selection(state: ContentWorkflowState) -> dict:
    """Mark the run as suspended; the graph ends right after this node."""
    logger.info("Entering node: await_theme_selection")
    return {
        "current_step": WorkflowStep.AWAITING_THEME_SELECTION.value,
        "needs_human_input": True,
        "is_complete": False,
        "last_node": "await_theme_selection",
    }


async def research_theme(state: ContentWorkflowState, config: RunnableConfig) -> dict:
    """Build the research dossier for the selected theme."""
    logger.info("Entering node: research_theme")
    r = _get_resources(config)
    update = await r.agent(ResearchAgent, with_search=True).execute(state)
    return {**update, "last_node": "research_theme"}


async def generate_content(state: ContentWorkflowState, config: RunnableConfig) -> dict:
    """Draft every requested channel concurrently."""
    logger.info("Entering node: generate_content")
    r = _get_resources(config)
    update = await _content_generation_group(r).run(state)
    return {**update, "last_node": "generate_content"}


async def edit_content(state: ContentWorkflowState, config: RunnableConfig) -> dict:
    """Edit every drafted channel concurrently; the run is complete afterwards."""
    logger.info("Entering node: edit_content")
    r = _get_resources(config)
    update = await _content_editing_group(r).run(state)
    return {
        **update,
        "is_complete": True,
        "needs_human_input": False,
        "last_node": "edit_content",
    }


async def finish(state: ContentWorkflowState) -> dict:
    """Terminate without (further) content; current_step stays where it is."""
    logger.info("Entering node: finish (current_step=%s)", state.get("current_step"))
    return {"is_complete": True, "needs_human_input": False, "last_node": "finish"}


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

def build_graph():
    """Build and return the compiled LangGraph workflow.

    The graph has no checkpointer: suspension for theme selection means the
    graph returns, and ``route_entry`` sends the next invocation to the
    right node based on the state the caller hands back.
    """
    graph = StateGraph(ContentWorkflowState)

    graph.add_node("create_brief", create_brief)
    graph.add_node("generate_themes", generate_themes)
    graph.add_node("await_theme_selection", await_theme_selection)
    graph.add_node("research_theme", research_theme)
    graph.add_node("generate_content", generate_content)
    graph.add_node("edit_content", edit_content)
    graph.add_node("finish", finish)

    # Entry: fresh run, theme regeneration, or resume after selection
    graph.add_conditional_edges(
        START,
        route_entry,
        {
            "create_brief": "create_brief",
            "generate_themes": "generate_themes",
            "research_theme": "research_theme",
        },
    )

    graph.add_conditional_edges(
        "create_brief",
        route_after_brief,
        {
            "generate_themes": "generate_themes",
            "__end__": END,
        },
    )

    graph.add_conditional_edges(
        "generate_themes",
        route_after_themes,
        {
            "await_theme_selection": "await_theme_selection",
            "__end__": END,
        },
    )

    # Hard suspension: control returns to the caller
    graph.add_edge("await_theme_selection", END)

    graph.add_conditional_edges(
        "research_theme",
        route_after_research,
        {
            "generate_content": "generate_content",
            "finish": "finish",
        },
    )

    graph.add_conditional_edges(
        "generate_content",
        route_after_content_generation,
        {
            "edit_content": "edit_content",
            "finish": "finish",
        },
    )

    graph.add_edge("edit_content", END)
    graph.add_edge("finish", END)

    return graph.compile()


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

class ContentWorkflow:
    """Start, resume and regenerate runs of the compiled graph.

    The workflow holds no run state between calls. ``start`` returns the
    suspended state; the caller stores it and later passes it to ``resume``
    or ``regenerate_themes``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config_store: Optional[ConfigurationStore] = None,
        llm_client: Optional[AgentSDKClient] = None,
        search: Optional[SearchCapability] = None,
        db: Optional[Database] = None,
    ):
        self.resources = _WorkflowResources(
            settings=settings,
            db=db,
            search=search,
            llm=llm_client,
            config_store=config_store,
        )
        self.app = build_graph()

    @property
    def settings(self) -> Settings:
        return self.resources.settings

    async def start(self, initial_state: Mapping, callback=None) -> ContentWorkflowState:
        """Run from campaign input until theme selection (or an error).

        Returns:
            State with ``current_step == "awaiting_theme_selection"`` and
            ``needs_human_input`` set, unless the brief or themes were missing.

        Raises:
            InvalidConfigError: If a content count is negative or above the
                channel limit, before any step runs.
        """
        state: ContentWorkflowState = {
            **DEFAULT_COUNTS,
            "cta_type": CtaType.DOWNLOAD_WHITEPAPER.value,
            **initial_state,
            "current_step": WorkflowStep.BRIEF_CREATION.value,
            "needs_human_input": False,
            "is_complete": False,
            "regeneration_count": initial_state.get("regeneration_count", 0),
            "previous_themes": list(initial_state.get("previous_themes") or []),
            "search_history": list(initial_state.get("search_history") or []),
        }
        _check_counts(state)
        logger.info(
            "Starting workflow: whitepaper=%s, counts=%d/%d/%d",
            state.get("selected_whitepaper_id"),
            state["articles_count"], state["linkedin_posts_count"], state["social_posts_count"],
        )
        return await self._invoke(state, callback)

    async def resume(
        self, state: Mapping, selected_theme_id: str, callback=None,
    ) -> ContentWorkflowState:
        """Continue a suspended run with the chosen theme through to completion.

        Raises:
            WorkflowStateError: If the run is not waiting for theme selection.
            ThemeSelectionError: If the id is not one of the generated themes.
        """
        self._require_suspended(state)
        themes = list(state.get("generated_themes") or [])
        selected = next((t for t in themes if t.get("id") == selected_theme_id), None)
        if selected is None:
            raise ThemeSelectionError(selected_theme_id)

        resumed: ContentWorkflowState = {
            **state,
            "previous_themes": [*(state.get("previous_themes") or []), *themes],
            "selected_theme": selected,
            "current_step": WorkflowStep.THEME_SELECTED.value,
            "needs_human_input": False,
            "is_complete": False,
        }
        logger.info("Resuming workflow with theme %s (%s)", selected_theme_id, selected.get("title"))
        return await self._invoke(resumed, callback)

    async def regenerate_themes(self, state: Mapping, callback=None) -> ContentWorkflowState:
        """Retire the current themes and generate a fresh batch of 3.

        Raises:
            WorkflowStateError: If the run is not waiting for theme selection.
            RegenerationLimitError: If ``max_theme_regenerations`` is reached.
        """
        self._require_suspended(state)
        regenerations = max(state.get("regeneration_count", 0) - 1, 0)
        limit = self.settings.max_theme_regenerations
        if limit and regenerations >= limit:
            raise RegenerationLimitError(regenerations, limit)

        retry: ContentWorkflowState = {
            **state,
            "previous_themes": [
                *(state.get("previous_themes") or []),
                *(state.get("generated_themes") or []),
            ],
            "generated_themes": [],
            "current_step": WorkflowStep.BRIEF_COMPLETE.value,
            "needs_human_input": False,
            "is_complete": False,
        }
        logger.info(
            "Regenerating themes (%d previous themes excluded)", len(retry["previous_themes"]),
        )
        return await self._invoke(retry, callback)

    @staticmethod
    def _require_suspended(state: Mapping) -> None:
        if state.get("current_step") not in _SUSPENDED_STEPS or not state.get("generated_themes"):
            raise WorkflowStateError(
                "Run is not waiting for theme selection",
                {"current_step": state.get("current_step")},
            )

    async def _invoke(self, state: ContentWorkflowState, callback) -> ContentWorkflowState:
        config: RunnableConfig = {"configurable": {"resources": self.resources}}
        if callback is not None:
            final_state = await _run_with_callback(self.app, state, config, callback)
        else:
            final_state = await self.app.ainvoke(state, config=config)
        logger.info(
            "Workflow returned: current_step=%s, needs_human_input=%s, is_complete=%s",
            final_state.get("current_step"),
            final_state.get("needs_human_input", False),
            final_state.get("is_complete", False),
        )
        return final_state


async def run_workflow(
    business_context: str,
    selected_whitepaper_id: str,
    target_audience: str = "",
    marketing_goals: str = "",
    articles_count: int = DEFAULT_COUNTS["articles_count"],
    linkedin_posts_count: int = DEFAULT_COUNTS["linkedin_posts_count"],
    social_posts_count: int = DEFAULT_COUNTS["social_posts_count"],
    cta_type: str = CtaType.DOWNLOAD_WHITEPAPER.value,
    cta_url: Optional[str] = None,
    callback=None,
    workflow: Optional[ContentWorkflow] = None,
) -> ContentWorkflowState:
    """Build a workflow and run it until theme selection.

    Args:
        business_context: What the business does and sells.
        selected_whitepaper_id: Whitepaper to research (vector store filter).
        target_audience: Optional audience description.
        marketing_goals: Optional campaign goals.
        articles_count: Articles to write (0 skips the channel).
        linkedin_posts_count: LinkedIn posts to write (0 skips the channel).
        social_posts_count: Social posts to write (0 skips the channel).
        cta_type: "download_whitepaper" or "contact_us".
        cta_url: Optional URL for the call to action.
        callback: Optional WorkflowCallback for progress reporting.
        workflow: Optional pre-built ContentWorkflow (injected resources).

    Returns:
        Suspended workflow state dict.
    """
    workflow = workflow or ContentWorkflow()
    initial_state: ContentWorkflowState = {
        "business_context": business_context,
        "target_audience": target_audience,
        "marketing_goals": marketing_goals,
        "articles_count": articles_count,
        "linkedin_posts_count": linkedin_posts_count,
        "social_posts_count": social_posts_count,
        "cta_type": cta_type,
        "cta_url": cta_url,
        "selected_whitepaper_id": selected_whitepaper_id,
    }
    return await workflow.start(initial_state, callback=callback)


async def _run_with_callback(app, initial_state: dict, config, callback) -> dict:
    """Run the workflow using astream() and emit progress callbacks.

    Args:
        app: Compiled LangGraph application.
        initial_state: Initial workflow state.
        config: LangGraph config dict carrying the run resources.
        callback: WorkflowCallback instance.

    Returns:
        Final state dict (the last full state value streamed).
    """
    final_state: dict = dict(initial_state)
    last_node = "__start__"

    try:
        async for mode, chunk in app.astream(
            initial_state, config=config, stream_mode=["updates", "values"],
        ):
            if mode == "values":
                final_state = chunk
                continue
            # "updates": {node_name: state_update_dict}
            for node_name, node_update in chunk.items():
                last_node = node_name
                callback.on_node_exit(node_name, node_update or {})
    except Exception as e:
        step = getattr(e, "details", {}).get("step", last_node)
        callback.on_error(step, str(e))
        raise

    callback.on_workflow_complete(final_state)
    return final_state

"""Theme Generator Agent: researches the whitepaper and proposes three content themes."""

import logging
import uuid
from typing import Mapping

from agents.base_agent import BaseAgent, format_json
from models.enums import StepId, WorkflowStep
from models.schemas import AgentConfig, ThemeBatch
from retrieval.retrieval_loop import RetrievalLoop, RetrievalPrompts
from tools.prompt_template import PromptTemplate, format_list

logger = logging.getLogger(__name__)


def _new_theme_id() -> str:
    return f"theme-{uuid.uuid4().hex[:12]}"


class ThemeGeneratorAgent(BaseAgent):
    """Runs a retrieval loop over the whitepaper, then synthesizes exactly 3 themes.

    Titles of every previously shown theme are passed to both the retrieval
    loop and the synthesis prompt so a regeneration does not repeat them.
    """

    step_id = StepId.THEME_GENERATOR
    required_fields = ("selected_whitepaper_id", "marketing_brief")
    output_keys = (
        "generated_themes",
        "search_history",
        "regeneration_count",
        "current_step",
        "needs_human_input",
    )

    def _retrieval_loop(self, config: AgentConfig) -> RetrievalLoop:
        prompts = RetrievalPrompts(
            system_prompt=config.section("retrieval_system"),
            initial_queries=PromptTemplate(config.section("initial_queries")),
            analysis=PromptTemplate(config.section("analysis")),
        )
        return RetrievalLoop(
            llm=self.llm,
            search=self._search_capability(),
            prompts=prompts,
            model=self.settings.llm_model_analysis,
            top_k=self.settings.theme_search_top_k,
            top_n=self.settings.theme_search_top_n,
            step=self.name,
        )

    async def _generate(self, state: Mapping) -> dict:
        config = self._load_config()
        previous = state.get("previous_themes") or []
        excluded_titles = [t["title"] for t in previous]
        values = self._common_values(state)

        seed_context = self._render(
            config.section("seed_context"),
            **values,
        )
        retrieval = await self._retrieval_loop(config).run(
            seed_context=seed_context,
            corpus_ref=state["selected_whitepaper_id"],
            max_iterations=self.settings.max_search_iterations,
            exclusion_set=excluded_titles,
            keep_top=self.settings.theme_results_keep,
        )

        user_prompt = self._render(
            config.user_prompt_template,
            **values,
            previous_themes=format_list(f"{t['title']}: {t['description']}" for t in previous),
            evidence=format_json([h.model_dump() for h in retrieval.ranked_results]),
            research_notes=format_list(a.analysis for a in retrieval.analyses),
        )
        batch = await self.llm.invoke(
            config.system_prompt,
            user_prompt,
            schema=ThemeBatch,
            model=config.model_name,
        )

        themes = [t.model_copy(update={"id": _new_theme_id()}) for t in batch.themes]
        repeated = {t.title for t in themes} & set(excluded_titles)
        if repeated:
            logger.warning("ThemeGeneratorAgent: repeated previous titles: %s", ", ".join(sorted(repeated)))

        logger.info(
            "ThemeGeneratorAgent: %d themes from %d ranked hits (%d queries)",
            len(themes), len(retrieval.ranked_results), len(retrieval.queries),
        )
        return {
            "generated_themes": [t.model_dump(mode="json") for t in themes],
            "search_history": retrieval.queries,
            "regeneration_count": state.get("regeneration_count", 0) + 1,
            "current_step": WorkflowStep.THEMES_GENERATED.value,
            "needs_human_input": True,
        }

"""Research Agent: deep-dives the whitepaper for the selected theme and builds the dossier."""

import logging
from typing import Mapping

from agents.base_agent import BaseAgent, format_json, format_theme
from models.enums import StepId, WorkflowStep
from models.schemas import AgentConfig, ConceptAnalysis, ResearchDossier, ResearchSynthesis, Theme
from retrieval.retrieval_loop import RetrievalLoop, RetrievalPrompts
from tools.prompt_template import PromptTemplate, format_list

logger = logging.getLogger(__name__)


class ResearchAgent(BaseAgent):
    """Builds the research dossier: 6–8 findings and 3 content concepts."""

    step_id = StepId.RESEARCHER
    required_fields = ("selected_theme", "selected_whitepaper_id", "marketing_brief")
    output_keys = ("research_dossier", "search_history", "current_step")

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
            top_k=self.settings.research_search_top_k,
            top_n=self.settings.research_search_top_n,
            analysis_schema=ConceptAnalysis,
            step=self.name,
        )

    async def _generate(self, state: Mapping) -> dict:
        config = self._load_config()
        theme = Theme.model_validate(state["selected_theme"])
        values = {**self._common_values(state), "theme": format_theme(state["selected_theme"])}

        retrieval = await self._retrieval_loop(config).run(
            seed_context=self._render(config.section("seed_context"), **values),
            corpus_ref=state["selected_whitepaper_id"],
            max_iterations=self.settings.max_search_iterations,
            keep_top=self.settings.research_results_keep,
        )

        concepts = [
            f"{c.angle}: {c.reasoning}"
            for analysis in retrieval.analyses
            for c in getattr(analysis, "emerging_concepts", [])
        ]
        evidence = retrieval.ranked_results[: self.settings.research_synthesis_evidence]

        user_prompt = self._render(
            config.user_prompt_template,
            **values,
            evidence=format_json([h.model_dump() for h in evidence]),
            research_notes=format_list(a.analysis for a in retrieval.analyses),
            emerging_concepts=format_list(concepts),
        )
        synthesis = await self.llm.invoke(
            config.system_prompt,
            user_prompt,
            schema=ResearchSynthesis,
            model=config.model_name,
        )
        dossier = ResearchDossier(selected_theme=theme, **synthesis.model_dump())

        logger.info(
            "ResearchAgent: %d findings, %d concepts from %d hits",
            len(dossier.whitepaper_evidence.key_findings),
            len(dossier.suggested_concepts),
            len(retrieval.ranked_results),
        )
        return {
            "research_dossier": dossier.model_dump(mode="json"),
            "search_history": retrieval.queries,
            "current_step": WorkflowStep.RESEARCH_COMPLETE.value,
        }

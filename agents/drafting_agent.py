"""Drafting agent base: pre-flight research decision, then schema-validated content generation."""

import logging
from typing import Mapping, Type

from pydantic import BaseModel

from agents.base_agent import BaseAgent, format_json, format_theme
from config.exceptions import LLMError, ValidationError
from models.schemas import AgentConfig, SearchHit, SupplementalQueries
from retrieval.retrieval_loop import rank_hits
from tools.response_parser import is_affirmative

logger = logging.getLogger(__name__)


class DraftingAgent(BaseAgent):
    """Writes one content channel from the research dossier.

    Before drafting, one YES/NO call asks whether the dossier is enough. Only
    on YES does the step plan 1–3 extra queries and run them. A failure
    anywhere in that phase leaves the step drafting from the dossier alone.
    """

    required_fields = ("marketing_brief", "research_dossier", "selected_theme", "selected_whitepaper_id")
    count_field: str
    output_key: str
    output_schema: Type[BaseModel]

    @property
    def output_keys(self) -> tuple[str, ...]:
        return (self.output_key,)

    def _values(self, state: Mapping) -> dict:
        return {
            **self._common_values(state),
            "count": state.get(self.count_field, 0),
            "theme": format_theme(state["selected_theme"]),
            "research_dossier": format_json(state["research_dossier"]),
        }

    async def _needs_more_research(self, config: AgentConfig, values: dict) -> bool:
        answer = await self.llm.invoke(
            config.section("research_system"),
            self._render(config.section("preflight"), **values),
            model=self.settings.llm_model_analysis,
        )
        decision = is_affirmative(answer)
        logger.info("%s: pre-flight research decision: %s", self.name, "YES" if decision else "NO")
        return decision

    async def _supplemental_research(self, config: AgentConfig, state: Mapping, values: dict) -> list[SearchHit]:
        search = self._search_capability()
        try:
            planned = await self.llm.invoke(
                config.section("research_system"),
                self._render(config.section("supplemental_queries"), **values),
                schema=SupplementalQueries,
                model=self.settings.llm_model_analysis,
            )
        except (LLMError, ValidationError) as e:
            logger.warning("%s: supplemental query planning failed, using dossier only: %s", self.name, e)
            return []

        top_k = self.settings.supplemental_search_top_k
        hits: list[SearchHit] = []
        for query in planned.queries:
            try:
                hits.extend(await search.query(query, state["selected_whitepaper_id"], top_k, top_k))
            except Exception as e:
                logger.warning("%s: supplemental search failed, counting as zero results: %s", self.name, e)
        return rank_hits(hits, top_k * len(planned.queries))

    async def _generate(self, state: Mapping) -> dict:
        config = self._load_config()
        values = self._values(state)

        extra: list[SearchHit] = []
        if await self._needs_more_research(config, values):
            extra = await self._supplemental_research(config, state, values)

        user_prompt = self._render(
            config.user_prompt_template,
            **values,
            supplemental_evidence=format_json([h.model_dump() for h in extra]) if extra else "None",
        )
        output = await self.llm.invoke(
            config.system_prompt,
            user_prompt,
            schema=self.output_schema,
            model=config.model_name,
        )
        logger.info("%s: drafted %s (%d supplemental hits)", self.name, self.output_key, len(extra))
        return {self.output_key: output.model_dump(mode="json")}

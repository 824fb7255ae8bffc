"""Iterative search, analyze, refine loop used before theme and research synthesis."""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Type

from config.exceptions import LLMError, NoSearchResultsError, SchemaValidationError
from models.schemas import InitialQueries, QueryAnalysis, RetrievalLogEntry, SearchHit
from retrieval.vector_search import SearchCapability
from tools.agent_sdk_client import AgentSDKClient
from tools.prompt_template import PromptTemplate, format_list

logger = logging.getLogger(__name__)

# Characters of each hit shown to the analysis call
_HIT_PREVIEW_CHARS = 600


@dataclass(frozen=True)
class RetrievalPrompts:
    """Prompts driving one retrieval loop.

    ``initial_queries`` slots: seed_context, exclusions.
    ``analysis`` slots: query, results, prior_queries, exclusions.
    """

    system_prompt: str
    initial_queries: PromptTemplate
    analysis: PromptTemplate


@dataclass
class RetrievalResult:
    ranked_results: list[SearchHit]
    execution_log: list[RetrievalLogEntry]
    queries: list[str] = field(default_factory=list)
    analyses: list[QueryAnalysis] = field(default_factory=list)

    @property
    def total_hits(self) -> int:
        return sum(entry.result_count for entry in self.execution_log)


def rank_hits(hits: Iterable[SearchHit], limit: int) -> list[SearchHit]:
    """Deduplicate by id (keeping the best score), sort by score, truncate."""
    best: dict[str, SearchHit] = {}
    for hit in hits:
        current = best.get(hit.id)
        if current is None or hit.score > current.score:
            best[hit.id] = hit
    ranked = sorted(best.values(), key=lambda h: h.score, reverse=True)
    return ranked[:limit]


def _format_hits(hits: list[SearchHit]) -> str:
    payload = [
        {"id": h.id, "score": round(h.score, 4), "category": h.category, "text": h.text[:_HIT_PREVIEW_CHARS]}
        for h in hits
    ]
    return json.dumps(payload, ensure_ascii=False, indent=2)


class RetrievalLoop:
    """Runs queries against a corpus until the budget or the follow-ups run out.

    The budget counts search calls, not rounds. A query whose search fails or
    times out counts against the budget and contributes zero hits. An analysis
    call that fails or returns malformed data yields no follow-up queries.
    """

    def __init__(
        self,
        llm: AgentSDKClient,
        search: SearchCapability,
        prompts: RetrievalPrompts,
        model: Optional[str] = None,
        top_k: int = 5,
        top_n: int = 5,
        analysis_schema: Type[QueryAnalysis] = QueryAnalysis,
        step: Optional[str] = None,
    ):
        self.llm = llm
        self.search = search
        self.prompts = prompts
        self.model = model
        self.top_k = top_k
        self.top_n = top_n
        self.analysis_schema = analysis_schema
        self.step = step

    async def run(
        self,
        seed_context: str,
        corpus_ref: str,
        max_iterations: int,
        exclusion_set: Iterable[str] = (),
        keep_top: int = 30,
    ) -> RetrievalResult:
        """Run the loop and return ranked, deduplicated hits plus the execution log.

        Raises:
            NoSearchResultsError: If no query returned any hit.
            LLMError / SchemaValidationError: If the initial query batch cannot be generated.
        """
        exclusions = format_list(exclusion_set)
        batch = await self._initial_queries(seed_context, exclusions)
        logger.info("[%s] Retrieval loop starting with %d queries (budget %d)",
                    self.step, len(batch), max_iterations)

        all_hits: list[SearchHit] = []
        log: list[RetrievalLogEntry] = []
        issued: list[str] = []
        analyses: list[QueryAnalysis] = []
        used = 0

        while used < max_iterations and batch:
            next_batch: Optional[list[str]] = None
            for query in batch:
                if used >= max_iterations:
                    break
                used += 1
                issued.append(query)
                logger.info("[%s] Search %d/%d: %s", self.step, used, max_iterations, query)

                try:
                    hits = await self.search.query(query, corpus_ref, self.top_k, self.top_n)
                except Exception as e:
                    logger.warning("[%s] Search failed, counting as zero results: %s", self.step, e)
                    log.append(RetrievalLogEntry(query=query, result_count=0, error=str(e)))
                    continue

                all_hits.extend(hits)
                analysis = await self._analyze(query, hits, issued, exclusions)
                analyses.append(analysis)
                log.append(RetrievalLogEntry(query=query, result_count=len(hits), analysis=analysis.analysis))
                next_batch = list(analysis.next_queries)

            # A batch in which every search failed is retried until the budget runs out
            if next_batch is not None:
                batch = next_batch

        ranked = rank_hits(all_hits, keep_top)
        logger.info("[%s] Retrieval loop finished: %d searches, %d raw hits, %d kept",
                    self.step, used, len(all_hits), len(ranked))

        if not all_hits:
            raise NoSearchResultsError(used, step=self.step)

        return RetrievalResult(ranked_results=ranked, execution_log=log, queries=issued, analyses=analyses)

    async def _initial_queries(self, seed_context: str, exclusions: str) -> list[str]:
        prompt = self.prompts.initial_queries.render_subset(seed_context=seed_context, exclusions=exclusions)
        result = await self.llm.invoke(self.prompts.system_prompt, prompt, schema=InitialQueries, model=self.model)
        return list(result.queries)

    async def _analyze(
        self,
        query: str,
        hits: list[SearchHit],
        issued: list[str],
        exclusions: str,
    ) -> QueryAnalysis:
        prompt = self.prompts.analysis.render_subset(
            query=query,
            results=_format_hits(hits),
            prior_queries=format_list(issued[:-1]),
            exclusions=exclusions,
        )
        try:
            return await self.llm.invoke(
                self.prompts.system_prompt, prompt, schema=self.analysis_schema, model=self.model,
            )
        except (LLMError, SchemaValidationError) as e:
            logger.warning("[%s] Analysis failed for '%s', no follow-up queries: %s", self.step, query, e)
            return self.analysis_schema(analysis=f"Analysis failed: {e}", next_queries=[])

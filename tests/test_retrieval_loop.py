"""Tests for the search, analyze, refine retrieval loop."""

from unittest.mock import AsyncMock

import pytest


def _prompts():
    from retrieval.retrieval_loop import RetrievalPrompts
    from tools.prompt_template import PromptTemplate
    return RetrievalPrompts(
        system_prompt="You plan searches.",
        initial_queries=PromptTemplate("Seed: {seed_context}\nAvoid: {exclusions}"),
        analysis=PromptTemplate("Q: {query}\nR: {results}\nPrior: {prior_queries}\nAvoid: {exclusions}"),
    )


def _scripted_llm(initial, analyses):
    """LLM whose first call returns ``initial`` queries, then one analysis per call."""
    from models.schemas import InitialQueries, QueryAnalysis

    remaining = list(analyses)
    prompts = []

    async def _invoke(system_prompt, user_prompt, schema=None, model=None):
        prompts.append(user_prompt)
        if schema is InitialQueries:
            return InitialQueries(queries=initial)
        item = remaining.pop(0) if remaining else []
        if isinstance(item, BaseException):
            raise item
        return QueryAnalysis(analysis="noted", next_queries=item)

    llm = AsyncMock()
    llm.invoke = AsyncMock(side_effect=_invoke)
    llm.prompts = prompts
    return llm


def _loop(llm, search, **kwargs):
    from retrieval.retrieval_loop import RetrievalLoop
    return RetrievalLoop(llm=llm, search=search, prompts=_prompts(), step="test", **kwargs)


class TestBudget:
    @pytest.mark.asyncio
    async def test_search_calls_never_exceed_budget(self, fake_search):
        llm = _scripted_llm(["q1", "q2", "q3"], [["a", "b", "c", "d"]] * 20)
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=5)

        assert len(fake_search.calls) == 5
        assert len(result.queries) == 5

    @pytest.mark.asyncio
    async def test_budget_stops_mid_batch(self, fake_search):
        llm = _scripted_llm(["q1", "q2", "q3"], [[], [], []])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=2)
        assert result.queries == ["q1", "q2"]

    @pytest.mark.asyncio
    async def test_empty_follow_ups_stop_the_loop(self, fake_search):
        llm = _scripted_llm(["q1", "q2"], [["follow"], []])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=10)
        assert result.queries == ["q1", "q2"]

    @pytest.mark.asyncio
    async def test_next_batch_comes_from_last_analysis(self, fake_search):
        llm = _scripted_llm(["q1", "q2"], [["from-q1"], ["from-q2"], []])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=10)
        assert result.queries == ["q1", "q2", "from-q2"]


class TestDegradation:
    @pytest.mark.asyncio
    async def test_failed_search_counts_as_zero_results(self, fake_search):
        from config.exceptions import SearchTimeoutError

        calls = {"n": 0}
        original = fake_search.query

        async def flaky(text, corpus_ref, top_k, top_n):
            calls["n"] += 1
            if calls["n"] == 1:
                raise SearchTimeoutError("slow")
            return await original(text, corpus_ref, top_k, top_n)

        fake_search.query = flaky
        llm = _scripted_llm(["q1", "q2"], [[]])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=10)

        assert result.queries == ["q1", "q2"]
        assert result.execution_log[0].result_count == 0
        assert "slow" in result.execution_log[0].error
        assert result.ranked_results

    @pytest.mark.asyncio
    async def test_adapter_exception_counts_as_zero_results(self, fake_search):
        calls = {"n": 0}
        original = fake_search.query

        async def flaky(text, corpus_ref, top_k, top_n):
            calls["n"] += 1
            if calls["n"] == 1:
                raise ConnectionError("socket reset")
            return await original(text, corpus_ref, top_k, top_n)

        fake_search.query = flaky
        llm = _scripted_llm(["q1", "q2"], [[]])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=10)

        assert result.queries == ["q1", "q2"]
        assert result.execution_log[0].error == "socket reset"
        assert result.execution_log[1].result_count > 0

    @pytest.mark.asyncio
    async def test_failed_analysis_yields_no_follow_ups(self, fake_search):
        from config.exceptions import LLMError
        llm = _scripted_llm(["q1"] * 2, [LLMError("down"), LLMError("down")])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=10)

        assert len(fake_search.calls) == 2
        assert all(a.next_queries == [] for a in result.analyses)

    @pytest.mark.asyncio
    async def test_total_search_failure_raises(self, make_search):
        from config.exceptions import NoSearchResultsError, SearchError

        search = make_search(error=SearchError("index offline"))
        llm = _scripted_llm(["q1", "q2"], [])
        with pytest.raises(NoSearchResultsError) as exc_info:
            await _loop(llm, search).run("seed", "wp-1", max_iterations=4)

        # an all-failed batch is retried until the budget is spent
        assert len(search.calls) == 4
        assert exc_info.value.queries_issued == 4
        assert exc_info.value.details["step"] == "test"

    @pytest.mark.asyncio
    async def test_initial_query_failure_is_fatal(self, fake_search):
        from config.exceptions import SchemaValidationError

        llm = AsyncMock()
        llm.invoke = AsyncMock(side_effect=SchemaValidationError("InitialQueries", "queries: too short"))
        with pytest.raises(SchemaValidationError):
            await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=4)
        assert fake_search.calls == []


class TestRanking:
    def test_rank_hits_dedupes_keeping_best_score(self):
        from models.schemas import SearchHit
        from retrieval.retrieval_loop import rank_hits

        hits = [
            SearchHit(id="a", text="A", score=0.4),
            SearchHit(id="b", text="B", score=0.7),
            SearchHit(id="a", text="A", score=0.9),
            SearchHit(id="c", text="C", score=0.1),
        ]
        ranked = rank_hits(hits, limit=2)
        assert [(h.id, h.score) for h in ranked] == [("a", 0.9), ("b", 0.7)]

    @pytest.mark.asyncio
    async def test_results_truncated_to_keep_top(self, fake_search):
        llm = _scripted_llm(["q1", "q2", "q3"], [[], [], []])
        result = await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=3, keep_top=4)

        assert len(result.ranked_results) == 4
        scores = [h.score for h in result.ranked_results]
        assert scores == sorted(scores, reverse=True)
        assert result.total_hits == 9


class TestPrompts:
    @pytest.mark.asyncio
    async def test_exclusions_reach_both_prompts(self, fake_search):
        llm = _scripted_llm(["q1", "q2"], [[]])
        await _loop(llm, fake_search).run(
            "seed", "wp-1", max_iterations=2, exclusion_set=["Old theme A", "Old theme B"],
        )
        initial_prompt, first_analysis = llm.prompts[0], llm.prompts[1]
        assert "- Old theme A" in initial_prompt
        assert "- Old theme B" in first_analysis

    @pytest.mark.asyncio
    async def test_analysis_sees_prior_queries(self, fake_search):
        llm = _scripted_llm(["q1", "q2"], [[]])
        await _loop(llm, fake_search).run("seed", "wp-1", max_iterations=2)
        second_analysis = llm.prompts[2]
        assert "Q: q2" in second_analysis
        assert "Prior: - q1" in second_analysis

    @pytest.mark.asyncio
    async def test_search_uses_corpus_and_windows(self, fake_search):
        llm = _scripted_llm(["q1", "q2"], [[]])
        await _loop(llm, fake_search, top_k=10, top_n=5).run("seed", "wp-9", max_iterations=1)
        assert fake_search.calls == [("q1", "wp-9", 10, 5)]

"""Retrieval package: vector search capability and the iterative retrieval loop."""

from retrieval.vector_search import SearchCapability, ChromaSearch
from retrieval.retrieval_loop import RetrievalLoop, RetrievalPrompts, RetrievalResult, rank_hits

__all__ = [
    "SearchCapability",
    "ChromaSearch",
    "RetrievalLoop",
    "RetrievalPrompts",
    "RetrievalResult",
    "rank_hits",
]

"""ChromaDB-backed search over whitepaper chunks."""

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import chromadb

from config.exceptions import SearchError, SearchTimeoutError
from models.schemas import SearchHit

logger = logging.getLogger(__name__)


@runtime_checkable
class SearchCapability(Protocol):
    """Idempotent ranked search against one corpus."""

    async def query(self, text: str, corpus_ref: str, top_k: int, top_n: int) -> list[SearchHit]:
        ...


class ChromaSearch:
    """Searches a persistent ChromaDB collection of whitepaper chunks.

    All whitepapers share one cosine-space collection; ``corpus_ref`` selects a
    whitepaper through the ``whitepaper_id`` metadata field. Chunks are written
    by the ingestion pipeline, not by this class.
    """

    DEFAULT_COLLECTION = "whitepaper_chunks"

    def __init__(
        self,
        persist_dir: str | Path,
        collection_name: str = DEFAULT_COLLECTION,
        timeout_seconds: float = 30.0,
        client=None,
    ):
        self.timeout_seconds = timeout_seconds
        if client is None:
            persist_dir = Path(persist_dir)
            persist_dir.mkdir(parents=True, exist_ok=True)
            client = chromadb.PersistentClient(path=str(persist_dir))
        self.client = client
        self.collection = self.client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    async def query(self, text: str, corpus_ref: str, top_k: int, top_n: int) -> list[SearchHit]:
        """Return up to ``top_n`` hits from the ``top_k`` nearest chunks.

        Raises:
            SearchTimeoutError: If the query exceeds the configured deadline.
            SearchError: If the underlying store fails.
        """
        try:
            hits = await asyncio.wait_for(
                asyncio.to_thread(self._query_sync, text, corpus_ref, top_k),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise SearchTimeoutError(
                "Search timed out",
                {"query": text[:80], "corpus": corpus_ref, "timeout": self.timeout_seconds},
            ) from e
        except SearchError:
            raise
        except Exception as e:
            raise SearchError(f"Search failed: {e}", {"query": text[:80], "corpus": corpus_ref}) from e

        hits.sort(key=lambda h: h.score, reverse=True)
        logger.debug("Search '%s' in %s: %d hits", text[:60], corpus_ref, len(hits))
        return hits[:top_n]

    def _query_sync(self, text: str, corpus_ref: str, top_k: int) -> list[SearchHit]:
        results = self.collection.query(
            query_texts=[text],
            n_results=top_k,
            where={"whitepaper_id": corpus_ref},
            include=["documents", "metadatas", "distances"],
        )
        if not results["ids"] or not results["ids"][0]:
            return []

        hits = []
        for doc_id, doc, meta, dist in zip(
            results["ids"][0],
            results["documents"][0],
            results["metadatas"][0],
            results["distances"][0],
        ):
            meta = meta or {}
            hits.append(SearchHit(
                id=doc_id,
                text=doc or "",
                score=1.0 - float(dist),
                category=meta.get("category"),
            ))
        return hits

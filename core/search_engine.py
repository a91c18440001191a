# core/search_engine.py
import asyncio
import logging
from typing import Any, List, Optional, Protocol, Sequence
from core.entities import EmbeddedRecord, ScoredCandidate
from core.vectors import prepare_window, rank_window
from util.enums import OrderHint
from util.errors import SearchDegradation
from util.timing import timed

logger = logging.getLogger(__name__)


class CandidateStore(Protocol):
    async def fetch_candidates(
        self,
        source_filter: Optional[str],
        window_size: int,
        order_hint: OrderHint = OrderHint.RECENT,
    ) -> List[EmbeddedRecord]:
        ...


class VectorSearchEngine:
    """
    Exhaustive similarity search over a bounded candidate window.

    `batch_search` fetches the window once and ranks it against every query;
    if that path fails it degrades to one `search` per query. One engine serves
    one request: `last_degraded` describes its latest batch.
    """

    def __init__(
        self,
        store: CandidateStore,
        *,
        window_multiplier: int = 50,
        window_max: int = 1000,
        store_timeout: float = 10.0,
        order_hint: OrderHint = OrderHint.RECENT,
    ) -> None:
        self._store = store
        self._multiplier = max(1, window_multiplier)
        self._window_max = max(1, window_max)
        self._timeout = store_timeout
        self._order = order_hint
        self.last_degraded = False

    def window_size(self, limit: int) -> int:
        return max(1, min(self._window_max, max(1, limit) * self._multiplier))

    async def _fetch(self, source_filter: Optional[str], size: int) -> List[EmbeddedRecord]:
        with timed(logger, "search.fetch", size=size):
            return await asyncio.wait_for(
                self._store.fetch_candidates(source_filter, size, self._order),
                timeout=self._timeout,
            )

    async def search(
        self,
        query_vector: Any,
        source_filter: Optional[str] = None,
        limit: int = 10,
        min_score: float = 0.0,
    ) -> List[ScoredCandidate]:
        records = await self._fetch(source_filter, self.window_size(limit))
        window = prepare_window(records)
        hits = rank_window(window, query_vector, limit, min_score)
        logger.info("search.single window=%d hits=%d", len(records), len(hits))
        return hits

    async def batch_search(
        self,
        query_vectors: Sequence[Any],
        source_filter: Optional[str] = None,
        per_query_limit: int = 10,
        min_score: float = 0.0,
    ) -> List[List[ScoredCandidate]]:
        """
        One ranked list per query vector, in input order.
        """
        self.last_degraded = False
        if not query_vectors:
            return []
        try:
            try:
                records = await self._fetch(source_filter, self.window_size(per_query_limit))
            except Exception as e:
                raise SearchDegradation(f"candidate fetch failed: {type(e).__name__}") from e
            if not records:
                raise SearchDegradation("empty candidate window")
            with timed(logger, "search.batch", queries=len(query_vectors), window=len(records)):
                window = prepare_window(records)
                return [
                    rank_window(window, q, per_query_limit, min_score)
                    for q in query_vectors
                ]
        except SearchDegradation as e:
            self.last_degraded = True
            logger.warning("search.batch.degraded reason=%s", e)
            return await self._sequential(query_vectors, source_filter, per_query_limit, min_score)

    async def _sequential(
        self,
        query_vectors: Sequence[Any],
        source_filter: Optional[str],
        limit: int,
        min_score: float,
    ) -> List[List[ScoredCandidate]]:
        out: List[List[ScoredCandidate]] = []
        for i, q in enumerate(query_vectors):
            try:
                out.append(await self.search(q, source_filter, limit, min_score))
            except Exception as e:
                logger.warning("search.single.failed idx=%d err=%s", i, type(e).__name__)
                out.append([])
        return out

# core/lead_pipeline.py
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
from core.dedup import deduplicate, resolve_scored
from core.embeddings import EmbeddingService
from core.entities import LeadCriteria, LeadSearchResult, ScoredCandidate
from core.formatter import build_insights, format_leads
from core.query_builder import build_queries
from core.scoring import score_all
from core.search_engine import CandidateStore, VectorSearchEngine
from util.errors import EmbeddingProviderError, InputValidationError
from util.timing import timed
from util.types import Diagnostics, QuerySummary

logger = logging.getLogger(__name__)


def merge_hits(per_query: Sequence[Sequence[ScoredCandidate]]) -> List[ScoredCandidate]:
    """
    Union of all query results keyed by record id, keeping each record's best
    similarity. Sorted by similarity so dedup's first-seen rule favours the closest match.
    """
    best: Dict[str, ScoredCandidate] = {}
    for hits in per_query:
        for c in hits:
            cur = best.get(c.record.id)
            if cur is None or c.similarity > cur.similarity:
                best[c.record.id] = c
    merged = list(best.values())
    merged.sort(key=lambda c: c.similarity, reverse=True)
    return merged


class LeadPipeline:
    """
    build queries -> embed (batch) -> batch search -> dedup -> score ->
    resolve -> filter/limit -> format. Stages run one after another.
    """

    def __init__(
        self,
        embeddings: EmbeddingService,
        store: CandidateStore,
        *,
        window_multiplier: int = 50,
        window_max: int = 1000,
        store_timeout: float = 10.0,
        min_similarity: float = 0.1,
        per_query_limit_factor: int = 5,
        fallback_top_n: int = 5,
    ) -> None:
        self._embeddings = embeddings
        self._store = store
        self._window_multiplier = window_multiplier
        self._window_max = window_max
        self._store_timeout = store_timeout
        self._min_similarity = min_similarity
        self._per_query_factor = max(1, per_query_limit_factor)
        self._fallback_top_n = max(1, fallback_top_n)

    def _engine(self) -> VectorSearchEngine:
        return VectorSearchEngine(
            self._store,
            window_multiplier=self._window_multiplier,
            window_max=self._window_max,
            store_timeout=self._store_timeout,
        )

    async def find_leads(
        self, criteria: LeadCriteria, now: Optional[datetime] = None
    ) -> LeadSearchResult:
        timings: Dict[str, int] = {}
        queries = build_queries(
            criteria.product, criteria.industry, criteria.region, criteria.keywords
        )
        limit = max(1, criteria.limit)

        with timed(logger, "leads.embed", queries=len(queries)) as span:
            embedded = await self._embeddings.embed_batch(queries)
        timings["embed"] = span["ms"]

        usable = [(r.text, r.vector) for r in embedded if r.vector]
        failures = len(embedded) - len(usable)
        if not usable:
            first_error = next((r.error for r in embedded if r.error), "no vectors returned")
            logger.error("leads.embed.all_failed n=%d", len(embedded))
            raise EmbeddingProviderError(f"all {len(embedded)} query embeddings failed: {first_error}")

        engine = self._engine()
        per_query_limit = limit * self._per_query_factor
        with timed(logger, "leads.search", queries=len(usable)) as span:
            per_query = await engine.batch_search(
                [v for _, v in usable],
                criteria.source_filter,
                per_query_limit,
                self._min_similarity,
            )
        timings["search"] = span["ms"]
        summary: List[QuerySummary] = [
            {"query": q, "resultsCount": len(hits)} for (q, _), hits in zip(usable, per_query)
        ]

        with timed(logger, "leads.dedup") as span:
            unique = deduplicate(merge_hits(per_query))
        timings["dedup"] = span["ms"]

        with timed(logger, "leads.score", n=len(unique)) as span:
            scored = score_all(unique, criteria, now=now or datetime.now(timezone.utc))
            resolved = resolve_scored(scored)
        timings["score"] = span["ms"]

        qualified = [c for c in resolved if c.final_score >= criteria.min_score]
        chosen = qualified[:limit]
        warning: Optional[str] = None
        fallback = False
        diagnostics: Diagnostics = {
            "queries": list(queries),
            "searchSummary": summary,
            "embeddingFailures": failures,
            "degraded": engine.last_degraded,
            "candidatesScored": len(scored),
            "scoringAnomalies": sum(1 for c in scored if c.anomaly),
            "timingsMs": timings,
        }

        if not resolved:
            warning = "No matching records found for these criteria"
            diagnostics["reason"] = "no_candidates"
            logger.warning("leads.empty reason=no_candidates queries=%d", len(queries))
        elif not qualified:
            chosen = resolved[: self._fallback_top_n]
            fallback = True
            warning = (
                f"No leads scored at or above {criteria.min_score:g}; "
                f"showing the {len(chosen)} closest match(es)"
            )
            diagnostics["reason"] = "below_min_score"
            logger.warning(
                "leads.fallback reason=below_min_score min_score=%s shown=%d",
                criteria.min_score,
                len(chosen),
            )

        leads = format_leads(chosen)
        logger.info(
            "leads.done total=%d qualified=%d returned=%d fallback=%s",
            len(resolved),
            len(qualified),
            len(leads),
            fallback,
        )
        return LeadSearchResult(
            leads=leads,
            total_matches=len(resolved),
            qualified_count=len(qualified),
            queries=list(queries),
            insights=build_insights(leads, criteria, total_analyzed=len(resolved)),
            diagnostics=dict(diagnostics),
            warning=warning,
            fallback=fallback,
        )

    async def search_similar(
        self, query: str, source_filter: Optional[str] = None, top_k: int = 5
    ) -> List[ScoredCandidate]:
        if not query or not query.strip():
            raise InputValidationError("query is required")
        vector = await self._embeddings.embed(query)
        return await self._engine().search(
            vector, source_filter, max(1, top_k), self._min_similarity
        )

# service/lead_service.py
import asyncio
import logging
import time
from typing import NoReturn
from redis.exceptions import RedisError
from core.entities import LeadCriteria
from core.formatter import format_similar
from core.lead_pipeline import LeadPipeline
from model.api import (
    FindLeadsRequest,
    FindLeadsResponse,
    SearchCriteriaOut,
    SearchSimilarRequest,
    SearchSimilarResponse,
)
from util.enums import ErrorMessage
from util.errors import AppError, EmbeddingProviderError, InputValidationError

logger = logging.getLogger(__name__)


def _raise(err: ErrorMessage) -> NoReturn:
    raise AppError(err.value.message, err.value.http_status)


class LeadService:
    """
    HTTP-facing wrapper around LeadPipeline: builds criteria from the request,
    maps domain failures to AppError and shapes the response.
    """

    def __init__(self, pipeline: LeadPipeline) -> None:
        self._pipeline = pipeline

    async def find_leads(self, req: FindLeadsRequest) -> FindLeadsResponse:
        started = time.perf_counter()
        criteria = LeadCriteria(
            product=req.product,
            industry=req.industry,
            region=req.region or None,
            keywords=[k for k in req.keywords if k and k.strip()],
            limit=req.limit,
            min_score=req.minScore,
            source_filter=req.sourceFilter or None,
        )
        try:
            result = await self._pipeline.find_leads(criteria)
        except InputValidationError:
            logger.warning("leads.request.invalid")
            _raise(ErrorMessage.MISSING_CRITERIA)
        except EmbeddingProviderError as e:
            logger.error("leads.request.embedding_unavailable err=%s", type(e).__name__)
            _raise(ErrorMessage.EMBEDDING_UNAVAILABLE)
        except (RedisError, asyncio.TimeoutError) as e:
            logger.error("leads.request.store_unavailable err=%s", type(e).__name__)
            _raise(ErrorMessage.STORE_UNAVAILABLE)

        elapsed = int((time.perf_counter() - started) * 1000)
        return FindLeadsResponse(
            leads=result.leads,
            totalMatches=result.total_matches,
            qualifiedCount=result.qualified_count,
            searchCriteria=SearchCriteriaOut(
                product=(criteria.product or "").strip(),
                industry=(criteria.industry or "").strip(),
                region=criteria.region,
                keywords=list(criteria.keywords),
                limit=criteria.limit,
                minScore=criteria.min_score,
                sourceFilter=criteria.source_filter,
                searchQueries=result.queries,
            ),
            warning=result.warning,
            fallback=result.fallback,
            insights=result.insights,
            diagnostics=result.diagnostics,
            responseTime=elapsed,
        )

    async def search_similar(self, req: SearchSimilarRequest) -> SearchSimilarResponse:
        try:
            hits = await self._pipeline.search_similar(req.query, req.sourceFilter, req.topK)
        except InputValidationError:
            _raise(ErrorMessage.MISSING_QUERY)
        except EmbeddingProviderError as e:
            logger.error("similar.embedding_unavailable err=%s", type(e).__name__)
            _raise(ErrorMessage.EMBEDDING_UNAVAILABLE)
        except (RedisError, asyncio.TimeoutError) as e:
            logger.error("similar.store_unavailable err=%s", type(e).__name__)
            _raise(ErrorMessage.STORE_UNAVAILABLE)
        logger.info("similar.ok hits=%d", len(hits))
        return SearchSimilarResponse(results=format_similar(hits))

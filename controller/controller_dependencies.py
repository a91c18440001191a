# controller/controller_dependencies.py
from functools import lru_cache
from config.settings import settings
from core.embeddings import EmbeddingProvider, EmbeddingService, OpenAIEmbeddingProvider
from core.lead_pipeline import LeadPipeline
from core.resilience import CircuitBreaker, RateLimiter
from repository.record_repository import RecordRepository
from service.lead_service import LeadService


@lru_cache(maxsize=1)
def get_circuit_breaker() -> CircuitBreaker:
    return CircuitBreaker(
        failure_threshold=settings.BREAKER_FAILURE_THRESHOLD,
        reset_timeout=settings.BREAKER_RESET_SECONDS,
    )


@lru_cache(maxsize=1)
def get_embed_rate_limiter() -> RateLimiter:
    return RateLimiter(
        requests_per_minute=settings.EMBED_REQUESTS_PER_MINUTE,
        tokens_per_minute=settings.EMBED_TOKENS_PER_MINUTE,
    )


def build_embedding_provider() -> EmbeddingProvider:
    if settings.EMBEDDING_PROVIDER.lower() == "openai":
        return OpenAIEmbeddingProvider(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_EMBEDDING_MODEL,
            url=settings.OPENAI_EMBEDDINGS_URL,
            timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        )
    # torch import is heavy; only pay for it when the local model is used
    from core.local_embedder import LocalEmbeddingProvider

    return LocalEmbeddingProvider(model_name=settings.EMBEDDING_MODEL_NAME)


@lru_cache(maxsize=1)
def get_embedding_service() -> EmbeddingService:
    return EmbeddingService(
        build_embedding_provider(),
        breaker=get_circuit_breaker(),
        limiter=get_embed_rate_limiter(),
        timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        batch_size=settings.EMBED_BATCH_SIZE,
        max_concurrency=settings.EMBED_MAX_CONCURRENCY,
    )


def get_lead_service() -> LeadService:
    _pipeline = LeadPipeline(
        get_embedding_service(),
        RecordRepository(),
        window_multiplier=settings.CANDIDATE_WINDOW_MULTIPLIER,
        window_max=settings.CANDIDATE_WINDOW_MAX,
        store_timeout=settings.STORE_TIMEOUT_SECONDS,
        min_similarity=settings.SEARCH_MIN_SIMILARITY,
        per_query_limit_factor=settings.PER_QUERY_LIMIT_FACTOR,
        fallback_top_n=settings.FALLBACK_TOP_N,
    )
    return LeadService(_pipeline)

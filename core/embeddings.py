# core/embeddings.py
import asyncio
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable
import httpx
import logging
from core.entities import EmbeddingResult
from core.resilience import CircuitBreaker, RateLimiter
from util.errors import CircuitOpenError, EmbeddingProviderError
from util.timing import timed

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        ...


async def _post_json(
    url: str, headers: Dict[str, str], payload: Dict[str, Any], timeout: float
) -> Dict[str, Any]:
    """
    JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
    """
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return {}


class OpenAIEmbeddingProvider:
    """
    Remote embeddings through an OpenAI-compatible /v1/embeddings endpoint.
    """

    def __init__(self, *, api_key: str, model: str, url: str, timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._model = model
        self._url = url
        self._timeout = timeout

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        headers = {
            "authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }
        payload = {"model": self._model, "input": list(texts)}
        with timed(logger, "embed.remote", n=len(texts), model=self._model):
            data = await _post_json(self._url, headers, payload, timeout=self._timeout)

        rows = data.get("data") or []
        if len(rows) != len(texts):
            raise EmbeddingProviderError(
                f"provider returned {len(rows)} embeddings for {len(texts)} inputs"
            )
        rows = sorted(rows, key=lambda r: int(r.get("index", 0)))
        return [list(r.get("embedding") or []) for r in rows]


class EmbeddingService:
    """
    Protected access to an EmbeddingProvider.

    - Every provider call passes the shared circuit breaker and rate limiter.
    - `embed` raises EmbeddingProviderError; `embed_batch` never raises and
      reports failures per text instead.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        breaker: CircuitBreaker,
        limiter: RateLimiter,
        timeout: float = 30.0,
        batch_size: int = 100,
        max_concurrency: int = 5,
    ) -> None:
        self._provider = provider
        self._breaker = breaker
        self._limiter = limiter
        self._timeout = timeout
        self._batch_size = max(1, batch_size)
        self._max_concurrency = max(1, max_concurrency)

    async def _call(self, texts: Sequence[str]) -> List[List[float]]:
        if not self._breaker.allow_request():
            raise CircuitOpenError("embedding provider temporarily unavailable (circuit OPEN)")

        tokens = sum(RateLimiter.estimate_tokens(t) for t in texts)
        wait = self._limiter.reserve(1, tokens)
        if wait > 0:
            await asyncio.sleep(wait)

        try:
            vectors = await asyncio.wait_for(
                self._provider.embed_texts(texts), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            self._breaker.record_failure()
            raise EmbeddingProviderError(f"embedding timed out after {self._timeout}s") from e
        except EmbeddingProviderError:
            self._breaker.record_failure()
            raise
        except Exception as e:
            self._breaker.record_failure()
            raise EmbeddingProviderError(f"{type(e).__name__}: {e}") from e

        if len(vectors) != len(texts) or any(not v for v in vectors):
            self._breaker.record_failure()
            raise EmbeddingProviderError("provider returned empty or misaligned vectors")
        self._breaker.record_success()
        return vectors

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingProviderError("cannot embed empty text")
        with timed(logger, "embed.one", chars=len(text)):
            vectors = await self._call([text.strip()])
        return vectors[0]

    async def embed_batch(
        self,
        texts: Sequence[str],
        *,
        batch_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ) -> List[EmbeddingResult]:
        """
        Embed `texts` in chunks under a bounded semaphore.
        Output is aligned with input; a failed chunk marks only its own texts.
        """
        items = list(texts)
        if not items:
            return []
        size = max(1, batch_size or self._batch_size)
        chunks = [items[i : i + size] for i in range(0, len(items), size)]
        sem = asyncio.Semaphore(max(1, max_concurrency or self._max_concurrency))

        async def _one_chunk(chunk: List[str]) -> List[List[float]]:
            async with sem:
                return await self._call(chunk)

        with timed(logger, "embed.batch", n=len(items), chunks=len(chunks)):
            outcomes = await asyncio.gather(
                *(_one_chunk(c) for c in chunks), return_exceptions=True
            )

        results: List[EmbeddingResult] = []
        for chunk, outcome in zip(chunks, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(
                    "embed.batch.chunk_failed size=%d err=%s",
                    len(chunk),
                    type(outcome).__name__,
                )
                results.extend(EmbeddingResult(text=t, vector=None, error=str(outcome)) for t in chunk)
            else:
                results.extend(EmbeddingResult(text=t, vector=v) for t, v in zip(chunk, outcome))

        ok = sum(1 for r in results if r.vector is not None)
        logger.info("embed.batch.result ok=%d total=%d", ok, len(results))
        return results
